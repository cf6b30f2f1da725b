"""
Content store: chapters and tests.

Content is append-only. Creation always stores an active record, and only
active records take part in the current/upcoming/previous queries.
"""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError as SchemaError
from pymongo import DESCENDING

import database
from errors import ValidationError, describe_validation_errors
from schemas import Chapter, ChapterCreate, Test, TestCreate, as_naive_utc, utcnow

logger = logging.getLogger(__name__)

CHAPTERS = "chapter"
TESTS = "test"

ACTIVE = {"isActive": True}


def create_chapter(fields: dict) -> dict:
    try:
        payload = ChapterCreate.model_validate(fields)
    except SchemaError as e:
        raise ValidationError(f"Chapter validation failed: {describe_validation_errors(e.errors())}") from e

    chapter = Chapter(**payload.model_dump(exclude_none=True))
    doc = database.create_document(CHAPTERS, chapter)
    logger.info("Created chapter %s (#%s) releasing %s",
                doc["id"], chapter.chapter_number, chapter.release_date.isoformat())
    return doc


def create_test(fields: dict) -> dict:
    try:
        payload = TestCreate.model_validate(fields)
    except SchemaError as e:
        raise ValidationError(f"Test validation failed: {describe_validation_errors(e.errors())}") from e

    test = Test(**payload.model_dump())
    doc = database.create_document(TESTS, test)
    logger.info("Created test %s covering chapters %s", doc["id"], test.chapters_covered)
    return doc


def get_current_chapter() -> Optional[dict]:
    """Active chapter with the latest releaseDate, future releases included."""
    with database.storage_errors("find current chapter"):
        doc = database.collection(CHAPTERS).find_one(
            ACTIVE, sort=[("releaseDate", DESCENDING), ("_id", DESCENDING)]
        )
    return database.to_str_id(doc)


def get_upcoming_test() -> Optional[dict]:
    # Tests carry no date of their own; the most recently created active test wins.
    with database.storage_errors("find upcoming test"):
        doc = database.collection(TESTS).find_one(
            ACTIVE, sort=[("createdAt", DESCENDING), ("_id", DESCENDING)]
        )
    return database.to_str_id(doc)


def get_previous_chapters(now: Optional[datetime] = None) -> List[dict]:
    """Active chapters released strictly before `now`, newest first."""
    now = as_naive_utc(now) if now is not None else utcnow()
    logger.debug("Listing chapters released before %s", now.isoformat())
    return database.get_documents(
        CHAPTERS,
        {**ACTIVE, "releaseDate": {"$lt": now}},
        sort=[("releaseDate", DESCENDING), ("_id", DESCENDING)],
    )


def count_active_chapters() -> int:
    with database.storage_errors("count active chapters"):
        return database.collection(CHAPTERS).count_documents(ACTIVE)
