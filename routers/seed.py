import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skilllink import config
from skilllink.db import all_or_nothing_session, get_db
from skilllink.seed import seed_database

logger = logging.getLogger(__name__)

router = APIRouter()


def handle_seed_request(db: Session):
    logger.info("Seed endpoint called")
    if not config.SEED_ENABLED:
        return JSONResponse(
            status_code=500,
            content={"error": "Seeding is disabled", "seedEnabled": False},
        )

    try:
        db.execute(text("SELECT 1"))
        # Release the request session before the loader opens its own connection
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Seed connection test failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Database connection failed", "message": str(e)},
        )

    try:
        with all_or_nothing_session(db.get_bind()) as session:
            result = seed_database(session)
    except Exception as e:
        logger.exception(f"Error seeding database: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to seed database", "message": str(e)},
        )

    return {"success": True, "message": "Database seeding completed successfully", "result": result}


@router.get("")
def seed_get(db: Session = Depends(get_db)):
    return handle_seed_request(db)


@router.post("")
def seed_post(db: Session = Depends(get_db)):
    return handle_seed_request(db)
