import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mongoengine.errors import NotUniqueError, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from database import close_db, connect_db
from routers import (
    auth,
    comments,
    community_notes,
    courses,
    leaderboard,
    levels,
    material_requests,
    official_notes,
    past_questions,
    quizzes,
    search,
    upload,
    users,
    votes,
)

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "StudyHive"
APP_VERSION = "1.0.0"

@asynccontextmanager
async def lifespan(app: FastAPI):
    connect_db()
    logger.info("%s API started (%s)", APP_NAME, Config.ENVIRONMENT)
    yield
    close_db()
    logger.info("%s API stopped", APP_NAME)

app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)

origins = Config.cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["users"])
app.include_router(levels.router, prefix=f"{API_PREFIX}/levels", tags=["levels"])
app.include_router(courses.router, prefix=f"{API_PREFIX}/courses", tags=["courses"])
app.include_router(past_questions.router, prefix=f"{API_PREFIX}/past-questions", tags=["past-questions"])
app.include_router(official_notes.router, prefix=f"{API_PREFIX}/official-notes", tags=["official-notes"])
app.include_router(community_notes.router, prefix=f"{API_PREFIX}/community-notes", tags=["community-notes"])
app.include_router(comments.router, prefix=f"{API_PREFIX}/comments", tags=["comments"])
app.include_router(votes.router, prefix=f"{API_PREFIX}/votes", tags=["votes"])
app.include_router(quizzes.router, prefix=f"{API_PREFIX}/quizzes", tags=["quizzes"])
app.include_router(material_requests.router, prefix=f"{API_PREFIX}/requests", tags=["requests"])
app.include_router(leaderboard.router, prefix=f"{API_PREFIX}/leaderboard", tags=["leaderboard"])
app.include_router(search.router, prefix=f"{API_PREFIX}/search", tags=["search"])
app.include_router(upload.router, prefix=f"{API_PREFIX}/upload", tags=["upload"])


def error_response(status_code: int, message: str, exc: Exception = None, headers=None) -> JSONResponse:
    body = {"success": False, "message": message}
    if exc is not None and Config.is_development():
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body, headers=headers)

# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), exc, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Validation error"
    return error_response(status.HTTP_400_BAD_REQUEST, message)

@app.exception_handler(NotUniqueError)
async def not_unique_handler(request: Request, exc: NotUniqueError):
    logger.warning("Duplicate key on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_409_CONFLICT, "Duplicate value for a unique field", exc)

@app.exception_handler(ValidationError)
async def document_validation_handler(request: Request, exc: ValidationError):
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc.message or "Validation error"), exc)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", exc)


@app.get("/api/status")
async def api_status():
    return {"status": "online", "app": APP_NAME, "version": APP_VERSION}

@app.get(f"{API_PREFIX}/")
async def api_root():
    return {"success": True, "message": f"{APP_NAME} API v1", "version": APP_VERSION}

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
