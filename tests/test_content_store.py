from datetime import datetime, timedelta, timezone

import pytest

import content_store
from errors import StorageError, ValidationError

DAY1 = datetime(2026, 1, 1)
DAY3 = datetime(2026, 1, 5)
NOW = datetime(2026, 1, 8)
DAY2 = datetime(2026, 1, 10)


def make_chapter(number, release_date=None, **extra):
    fields = {
        "chapterNumber": number,
        "title": f"Chapter {number}",
        "description": f"About chapter {number}",
        "pdfUrl": f"/pdf/{number}.pdf",
    }
    if release_date is not None:
        fields["releaseDate"] = release_date
    fields.update(extra)
    return content_store.create_chapter(fields)


def make_test(title="Weekly test", **extra):
    fields = {
        "title": title,
        "questions": [
            {
                "questionText": "Unit of electric charge?",
                "options": ["Volt", "Coulomb", "Ampere"],
                "correctAnswer": 1,
                "explanation": "Charge is measured in coulombs.",
            }
        ],
        "chaptersCovered": [1, 2],
        "timeLimit": 30,
    }
    fields.update(extra)
    return content_store.create_test(fields)


def test_create_chapter_stores_active_record(mongo_db):
    doc = make_chapter(1, DAY1)

    assert isinstance(doc["id"], str)
    assert doc["chapterNumber"] == 1
    assert doc["isActive"] is True
    assert doc["releaseDate"] == DAY1.replace(tzinfo=timezone.utc)
    stored = mongo_db["chapter"].find_one({"chapterNumber": 1})
    assert stored["title"] == "Chapter 1"
    assert stored["pdfUrl"] == "/pdf/1.pdf"
    assert "createdAt" in stored


def test_create_chapter_defaults_release_date_to_now(mongo_db):
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    doc = make_chapter(2)
    after = datetime.now(timezone.utc) + timedelta(seconds=1)

    assert before <= doc["releaseDate"] <= after


def test_create_chapter_ignores_caller_is_active(mongo_db):
    doc = make_chapter(3, DAY1, isActive=False)
    assert doc["isActive"] is True
    assert content_store.count_active_chapters() == 1


def test_create_chapter_coerces_basic_types(mongo_db):
    doc = content_store.create_chapter(
        {"chapterNumber": "4", "title": "Optics", "releaseDate": "2026-01-05T06:30:00+05:30"}
    )
    assert doc["chapterNumber"] == 4
    assert doc["releaseDate"] == datetime(2026, 1, 5, 1, 0, tzinfo=timezone.utc)


def test_create_chapter_without_title_is_rejected(mongo_db):
    with pytest.raises(ValidationError) as excinfo:
        content_store.create_chapter({"chapterNumber": 1, "description": "No title"})

    assert "title" in excinfo.value.message
    assert mongo_db["chapter"].count_documents({}) == 0


def test_create_chapter_with_wrong_type_is_rejected(mongo_db):
    with pytest.raises(ValidationError):
        content_store.create_chapter({"chapterNumber": "one", "title": "Electrostatics"})
    assert mongo_db["chapter"].count_documents({}) == 0


def test_current_chapter_is_none_without_active_chapters(mongo_db):
    assert content_store.get_current_chapter() is None

    mongo_db["chapter"].insert_one({"chapterNumber": 1, "title": "Hidden", "releaseDate": DAY1, "isActive": False})
    assert content_store.get_current_chapter() is None


def test_current_and_previous_chapters_scenario(mongo_db):
    make_chapter(1, DAY1)
    make_chapter(2, DAY2)
    make_chapter(3, DAY3)

    current = content_store.get_current_chapter()
    assert current["chapterNumber"] == 2

    previous = content_store.get_previous_chapters(now=NOW)
    assert [c["chapterNumber"] for c in previous] == [3, 1]
    assert all("_id" not in c for c in previous)


def test_previous_chapters_excludes_inactive_and_exact_now(mongo_db):
    make_chapter(1, DAY1)
    make_chapter(2, NOW)
    mongo_db["chapter"].insert_one({"chapterNumber": 9, "title": "Retired", "releaseDate": DAY3, "isActive": False})

    previous = content_store.get_previous_chapters(now=NOW)
    assert [c["chapterNumber"] for c in previous] == [1]


def test_previous_chapters_accepts_aware_now(mongo_db):
    make_chapter(1, DAY1)
    make_chapter(3, DAY3)

    aware_now = datetime(2026, 1, 3, tzinfo=timezone.utc)
    assert [c["chapterNumber"] for c in content_store.get_previous_chapters(now=aware_now)] == [1]


def test_count_active_chapters(mongo_db):
    assert content_store.count_active_chapters() == 0
    make_chapter(1, DAY1)
    make_chapter(1, DAY3)
    mongo_db["chapter"].insert_one({"chapterNumber": 5, "title": "Off", "isActive": False})

    assert content_store.count_active_chapters() == 2


def test_create_test_stores_questions(mongo_db):
    doc = make_test()

    assert doc["isActive"] is True
    assert doc["timeLimit"] == 30
    assert doc["chaptersCovered"] == [1, 2]
    question = doc["questions"][0]
    assert question["questionText"] == "Unit of electric charge?"
    assert question["correctAnswer"] == 1


def test_create_test_rejects_out_of_range_answer(mongo_db):
    bad_question = {"questionText": "?", "options": ["a", "b"], "correctAnswer": 2}
    with pytest.raises(ValidationError) as excinfo:
        make_test(questions=[bad_question])

    assert "correctAnswer" in excinfo.value.message
    assert mongo_db["test"].count_documents({}) == 0


def test_create_test_requires_title(mongo_db):
    with pytest.raises(ValidationError):
        content_store.create_test({"timeLimit": 20})


def test_upcoming_test_is_most_recently_created_active_test(mongo_db):
    assert content_store.get_upcoming_test() is None

    mongo_db["test"].insert_many([
        {"title": "Old", "isActive": True, "createdAt": DAY1},
        {"title": "Newest but inactive", "isActive": False, "createdAt": DAY2},
        {"title": "Recent", "isActive": True, "createdAt": DAY3},
    ])

    assert content_store.get_upcoming_test()["title"] == "Recent"


def test_queries_fail_with_storage_error_when_database_missing(no_db):
    with pytest.raises(StorageError):
        content_store.get_current_chapter()
    with pytest.raises(StorageError):
        content_store.count_active_chapters()
    with pytest.raises(StorageError):
        make_chapter(1, DAY1)


def test_stored_naive_dates_are_returned_as_utc(mongo_db):
    make_chapter(1, DAY1)

    current = content_store.get_current_chapter()
    assert current["releaseDate"].tzinfo is not None
    assert current["releaseDate"].utcoffset() == timedelta(0)
    assert mongo_db["chapter"].find_one()["releaseDate"].tzinfo is None


def test_blank_release_date_defaults_to_now(mongo_db):
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    doc = make_chapter(5, releaseDate="")

    assert doc["releaseDate"] >= before


def test_create_test_accepts_loose_question_shapes(mongo_db):
    single_option = {"questionText": "True?", "options": ["yes"], "correctAnswer": 0}
    doc = make_test(questions=[single_option], timeLimit=0)

    assert doc["timeLimit"] == 0
    assert doc["questions"][0]["options"] == ["yes"]
