from datetime import datetime, timedelta, timezone

import pytest

from dental_portal.core.exceptions import InvalidInputError, NotFoundError
from dental_portal.models.classroom import ClassroomStatus
from dental_portal.services.classroom_service import (
    classroom_out,
    classroom_status,
    create_classroom,
    get_classroom,
    list_classrooms,
    update_classroom,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
YESTERDAY = NOW - timedelta(days=1)
TOMORROW = NOW + timedelta(days=1)


@pytest.mark.parametrize(
    "published,expires,expected",
    [
        (YESTERDAY, None, ClassroomStatus.active),
        (YESTERDAY, TOMORROW, ClassroomStatus.active),
        (NOW, None, ClassroomStatus.active),
        (TOMORROW, None, ClassroomStatus.upcoming),
        (None, None, ClassroomStatus.upcoming),
        (YESTERDAY, YESTERDAY, ClassroomStatus.expired),
        (TOMORROW, YESTERDAY, ClassroomStatus.expired),
        (None, YESTERDAY, ClassroomStatus.expired),
    ],
)
def test_classroom_status(published, expires, expected):
    assert classroom_status(published, expires, NOW) is expected


def test_naive_dates_are_read_as_utc():
    naive_yesterday = YESTERDAY.replace(tzinfo=None)
    assert classroom_status(naive_yesterday, None, NOW) is ClassroomStatus.active


def test_classroom_out_lists_only_present_assessment_links(db, make_course, make_classroom):
    course = make_course()
    room = make_classroom(course, assessment_link="https://quiz/1", assessment_link_3="https://quiz/3", ce_credits=1.5)

    out = classroom_out(room, course_title=course.title)

    assert out["assessment_links"] == ["https://quiz/1", "https://quiz/3"]
    assert out["ce_credits"] == 1.5
    assert out["status"] == "active"
    assert out["discussion_enabled"] is True


def test_list_by_course_is_in_creation_order_with_status(db, make_course, make_classroom):
    course = make_course()
    other = make_course("Other")
    make_classroom(course, title="Live now")
    make_classroom(course, title="Next week", published_in=timedelta(days=7))
    make_classroom(course, title="Gone", published_in=timedelta(days=-30), expires_in=timedelta(days=-2))
    make_classroom(other, title="Elsewhere")

    rows = list_classrooms(db, course_id=course.id)

    assert [(r["title"], r["status"]) for r in rows] == [
        ("Live now", "active"),
        ("Next week", "upcoming"),
        ("Gone", "expired"),
    ]
    assert {r["course_title"] for r in rows} == {course.title}


def test_list_for_missing_course_is_not_found(db):
    with pytest.raises(NotFoundError):
        list_classrooms(db, course_id=12345)


def test_create_and_update_keep_required_fields(db, make_course):
    course = make_course()
    room = create_classroom(db, {"course_id": course.id, "title": "Intro", "published_date": YESTERDAY})

    updated = update_classroom(db, room.id, {"title": None, "discussion_enabled": None, "speaker": "Dr Ruiz"})

    assert updated.title == "Intro"
    assert updated.discussion_enabled is True
    assert updated.speaker == "Dr Ruiz"


def test_update_cannot_invert_dates(db, make_course):
    course = make_course()
    room = create_classroom(db, {"course_id": course.id, "title": "Intro", "published_date": NOW})

    with pytest.raises(InvalidInputError):
        update_classroom(db, room.id, {"expiration_date": YESTERDAY})
    with pytest.raises(InvalidInputError):
        update_classroom(db, room.id, {"published_date": TOMORROW + timedelta(days=30), "expiration_date": TOMORROW})

    db.expire_all()
    assert get_classroom(db, room.id).expiration_date is None
    assert update_classroom(db, room.id, {"expiration_date": TOMORROW}).expiration_date is not None
