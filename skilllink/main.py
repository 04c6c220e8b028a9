import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from routers import admin, bookings, messages, reviews, seed, skills, slots, users
from skilllink import config
from skilllink.db import init_db
from skilllink.errors import DomainError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="SkillLink API", version="0.1.0")

app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(skills.router, prefix="/skills", tags=["skills"])
app.include_router(slots.router, prefix="/slots", tags=["slots"])
app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
app.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
app.include_router(messages.router, prefix="/messages", tags=["messages"])
app.include_router(admin.flags_router, prefix="/flags", tags=["flags"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(seed.router, prefix="/seed", tags=["seed"])


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.reason})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled store error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
def on_startup():
    if config.skip_db_init():
        return
    init_db()


@app.get("/")
def root():
    return {"ok": True, "service": "skilllink-api"}
