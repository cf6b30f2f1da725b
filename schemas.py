"""
Database Schemas

MongoDB collection schemas for the weekly chapters app, defined as Pydantic
models. They validate payloads before anything is written to the database.

Each entity model maps to a collection named after the lowercased model name:
- Chapter -> "chapter" collection
- Test -> "test" collection
- UserProgress -> "userprogress" collection

Stored documents and JSON responses use camelCase keys (chapterNumber,
releaseDate, isActive, ...), Python code uses the snake_case attributes.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Naive UTC timestamp, the form pymongo hands back from the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_naive_utc)]


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Content ---

class ChapterCreate(Document):
    """Fields accepted by the admin chapter endpoint. isActive is not settable."""
    chapter_number: int = Field(..., description="Chapter number, not enforced unique")
    title: str = Field(..., description="Chapter title")
    description: Optional[str] = None
    content: Optional[str] = Field(None, description="Chapter body as HTML")
    pdf_url: Optional[str] = None
    release_date: Optional[UtcDatetime] = Field(None, description="Defaults to creation time")

    @field_validator("release_date", mode="before")
    @classmethod
    def blank_release_date(cls, value):
        # An empty date falls back to the creation time, like a missing one.
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Chapter(ChapterCreate):
    """
    Weekly chapter.
    Collection name: "chapter"
    """
    id: Optional[str] = None
    release_date: UtcDatetime = Field(default_factory=utcnow)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class TestQuestion(Document):
    question_text: str
    options: List[str] = Field(default_factory=list)
    correct_answer: int = Field(..., ge=0, description="Index into options")
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def check_answer_in_options(self):
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer} is out of range for {len(self.options)} options"
            )
        return self


class TestCreate(Document):
    """Fields accepted by the admin test endpoint."""
    title: str
    description: Optional[str] = None
    questions: List[TestQuestion] = Field(default_factory=list)
    chapters_covered: List[int] = Field(default_factory=list)
    time_limit: Optional[int] = Field(None, description="Minutes allowed")


class Test(TestCreate):
    """
    Test covering one or more chapters.
    Collection name: "test"
    """
    id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


# --- Progress ---

class TestScore(Document):
    test_id: str
    score: float
    date_taken: datetime

    @field_validator("test_id", mode="before")
    @classmethod
    def object_id_to_str(cls, value):
        if isinstance(value, ObjectId):
            return str(value)
        return value


class UserProgress(Document):
    """
    Per-user completion record, at most one per userId.
    Collection name: "userprogress"
    """
    id: Optional[str] = None
    user_id: str
    chapters_completed: List[int] = Field(default_factory=list)
    test_scores: List[TestScore] = Field(default_factory=list)


class MarkCompletedRequest(Document):
    chapter_number: int


class ProgressSummary(BaseModel):
    completed: int
    total: int
    percent: int = Field(..., serialization_alias="progress")
