"""
Progress tracker: per-user completed chapters and test scores.
"""

import logging

from pymongo import ReturnDocument

import database
from schemas import UserProgress

logger = logging.getLogger(__name__)

USER_PROGRESS = "userprogress"


def mark_chapter_completed(user_id: str, chapter_number: int) -> UserProgress:
    """
    Add `chapter_number` to the user's completed set, creating the record on
    first use. Repeating a completion is a no-op.

    Runs as a single upsert with $addToSet, so concurrent completions for the
    same user cannot overwrite each other.
    """
    with database.storage_errors("mark chapter completed"):
        doc = database.collection(USER_PROGRESS).find_one_and_update(
            {"userId": user_id},
            {
                "$addToSet": {"chaptersCompleted": chapter_number},
                "$setOnInsert": {"testScores": []},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    logger.info("User %s completed chapter %s", user_id, chapter_number)
    return UserProgress.model_validate(database.to_str_id(doc))


def get_progress(user_id: str) -> UserProgress:
    """Stored progress for the user, or an empty record. Never writes."""
    with database.storage_errors("read user progress"):
        doc = database.collection(USER_PROGRESS).find_one({"userId": user_id})
    if doc is None:
        return UserProgress(user_id=user_id)
    return UserProgress.model_validate(database.to_str_id(doc))
