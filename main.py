import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

import content_store
import database
import progress_tracker
import query_service
from errors import AppError, StorageError, describe_validation_errors
from schemas import MarkCompletedRequest

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DEMO_USER_ID = os.getenv("DEMO_USER_ID", "demo-user")
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", Path(__file__).resolve().parent / "public"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        database.ensure_indexes()
    except StorageError as e:
        logger.warning("Skipping index creation: %s", e.message)
    yield


app = FastAPI(title="Weekly Physics Chapters API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if PUBLIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=PUBLIC_DIR), name="static")


# --- Error responses: always {"message": ...} ---

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": describe_validation_errors(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": str(exc)})


def current_user_id() -> str:
    # No authentication: every request acts as the configured demo user.
    return DEMO_USER_ID


@app.get("/")
def read_root():
    index = PUBLIC_DIR / "index.html"
    if index.is_file():
        return FileResponse(index)
    return {"message": "Weekly Physics Chapters backend is running"}


# --- Reader endpoints ---

@app.get("/api/current-chapter", response_model=dict)
def current_chapter():
    return content_store.get_current_chapter() or {}


@app.get("/api/upcoming-test", response_model=dict)
def upcoming_test():
    return content_store.get_upcoming_test() or {}


@app.get("/api/previous-chapters", response_model=List[dict])
def previous_chapters():
    return content_store.get_previous_chapters()


@app.post("/api/mark-completed", response_model=dict)
def mark_completed(payload: MarkCompletedRequest, user_id: str = Depends(current_user_id)):
    progress_tracker.mark_chapter_completed(user_id, payload.chapter_number)
    return {"success": True}


@app.get("/api/user-progress", response_model=dict)
def user_progress(user_id: str = Depends(current_user_id)):
    return query_service.compute_progress_summary(user_id).model_dump(by_alias=True)


# --- Admin endpoints ---

@app.post("/api/chapters", response_model=dict, status_code=201)
def create_chapter(fields: dict = Body(...)):
    return content_store.create_chapter(fields)


@app.post("/api/tests", response_model=dict, status_code=201)
def create_test(fields: dict = Body(...)):
    return content_store.create_test(fields)


@app.get("/test")
def database_check():
    """Report whether the database is reachable and which indexes each collection has."""
    response = {
        "backend": "running",
        "database": "not configured",
        "collections": {},
    }
    if database.db is None:
        return response

    try:
        existing = set(database.db.list_collection_names())
        for name in (content_store.CHAPTERS, content_store.TESTS, progress_tracker.USER_PROGRESS):
            present = name in existing
            response["collections"][name] = {
                "exists": present,
                "indexes": sorted(database.db[name].index_information()) if present else [],
            }
        response["database"] = "connected"
    except PyMongoError as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"error: {str(e)[:80]}"

    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
