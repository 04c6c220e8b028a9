from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.db import get_db
from skilllink.messaging import MessageService
from skilllink.models import User
from skilllink.schemas import MessageOut

router = APIRouter()


class SendMessageBody(BaseModel):
    recipient_id: str
    content: str


@router.post("", status_code=201)
def send_message(body: SendMessageBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    message = MessageService(db).send(user, body.recipient_id, body.content)
    return {"message": MessageOut.model_validate(message)}


@router.get("/conversations")
def list_conversations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    conversations = MessageService(db).conversations(user)
    return {
        "conversations": [
            {
                "user_id": c["user_id"],
                "last_message": MessageOut.model_validate(c["last_message"]),
                "unread": c["unread"],
            }
            for c in conversations
        ]
    }


@router.get("/{other_user_id}")
def read_conversation(other_user_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    messages = MessageService(db).conversation(user, other_user_id)
    return {"messages": [MessageOut.model_validate(m) for m in messages]}
