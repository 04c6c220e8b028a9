import logging
import threading
from typing import Callable

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from skilllink.errors import InvalidInput, NotFound
from skilllink.models import Message, User

logger = logging.getLogger(__name__)


class ConversationFeed:
    """
    In-process push channel for new messages.

    A conversation view subscribes with a callback for the pair of users it
    shows and calls the returned function when it goes away. Delivery is
    fire-and-forget: a failing callback is logged and dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[frozenset, list[Callable]] = {}

    def subscribe(self, user_a: str, user_b: str, callback: Callable[[Message], None]) -> Callable[[], None]:
        key = frozenset((user_a, user_b))
        with self._lock:
            self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(key, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(key, None)

        return unsubscribe

    def subscriber_count(self, user_a: str, user_b: str) -> int:
        with self._lock:
            return len(self._subscribers.get(frozenset((user_a, user_b)), []))

    def publish(self, message: Message) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(frozenset((message.sender_id, message.recipient_id)), []))
        for callback in callbacks:
            try:
                callback(message)
            except Exception as e:
                logger.warning(f"Message subscriber failed for message {message.id}: {e}")


feed = ConversationFeed()


class MessageService:
    def __init__(self, db: Session, channel: ConversationFeed = feed):
        self.db = db
        self.channel = channel

    def send(self, sender: User, recipient_id: str, content: str) -> Message:
        if not content or not content.strip():
            raise InvalidInput("Message content is required")
        if recipient_id == sender.id:
            raise InvalidInput("Cannot message yourself")
        if self.db.get(User, recipient_id) is None:
            raise NotFound("Recipient not found")

        message = Message(sender_id=sender.id, recipient_id=recipient_id, content=content.strip())
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        self.channel.publish(message)
        return message

    def conversation(self, user: User, other_id: str) -> list[Message]:
        """Messages between two users in the order they were sent; marks inbound ones read."""
        messages = (
            self.db.query(Message)
            .filter(
                or_(
                    and_(Message.sender_id == user.id, Message.recipient_id == other_id),
                    and_(Message.sender_id == other_id, Message.recipient_id == user.id),
                )
            )
            .order_by(Message.id.asc())
            .all()
        )
        unread = [m for m in messages if m.recipient_id == user.id and not m.is_read]
        if unread:
            for m in unread:
                m.is_read = True
            self.db.commit()
        return messages

    def conversations(self, user: User) -> list[dict]:
        """One entry per correspondent: last message and unread count, most recent first."""
        rows = (
            self.db.query(Message)
            .filter(or_(Message.sender_id == user.id, Message.recipient_id == user.id))
            .order_by(Message.id.desc())
            .all()
        )
        unread_counts = dict(
            self.db.query(Message.sender_id, func.count(Message.id))
            .filter(Message.recipient_id == user.id, Message.is_read.is_(False))
            .group_by(Message.sender_id)
            .all()
        )

        seen = {}
        for m in rows:
            other = m.recipient_id if m.sender_id == user.id else m.sender_id
            if other not in seen:
                seen[other] = {
                    "user_id": other,
                    "last_message": m,
                    "unread": unread_counts.get(other, 0),
                }
        return list(seen.values())
