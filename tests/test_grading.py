from datetime import datetime, timedelta, timezone

import pytest
from conftest import DEFAULT_DUE, auth_header, create_assessment, submit


def grade(client, user_id, assessment_id, submission_id, points, feedback=None):
    payload = {"points": points}
    if feedback is not None:
        payload["feedback"] = feedback
    return client.patch(
        f"/assessments/{assessment_id}/submissions/{submission_id}/grade",
        headers=auth_header(user_id),
        json=payload,
    )


@pytest.fixture()
def scenario(client, seed):
    """maxPoints=100, due 2024-01-10, 20% per late day, late work accepted."""
    return create_assessment(
        client,
        seed.instructor,
        seed.course,
        publish=True,
        max_points=100,
        late_penalty=20,
        allow_late_submission=True,
    )


def test_two_days_late_loses_forty_percent(client, seed, clock, scenario):
    clock.now = datetime(2024, 1, 12, tzinfo=timezone.utc)
    sub = submit(client, seed.student, scenario["id"]).json()
    assert sub["is_late"] is True

    r = grade(client, seed.instructor, scenario["id"], sub["id"], 90, "Nice work")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "graded"
    assert body["grade"]["points"] == pytest.approx(54)
    assert body["grade"]["raw_points"] == 90
    assert body["grade"]["feedback"] == "Nice work"
    assert body["grade"]["graded_by"] == seed.instructor


def test_on_time_keeps_raw_points(client, seed, clock, scenario):
    clock.now = datetime(2024, 1, 9, tzinfo=timezone.utc)
    sub = submit(client, seed.student, scenario["id"]).json()

    r = grade(client, seed.instructor, scenario["id"], sub["id"], 80)
    assert r.status_code == 200
    assert r.json()["grade"]["points"] == 80
    assert r.json()["grade"]["feedback"] is None


def test_one_second_late_costs_a_full_day(client, seed, clock, scenario):
    clock.now = DEFAULT_DUE + timedelta(seconds=1)
    sub = submit(client, seed.student, scenario["id"]).json()

    r = grade(client, seed.instructor, scenario["id"], sub["id"], 50)
    assert r.json()["grade"]["points"] == pytest.approx(40)


def test_very_late_work_floors_at_zero(client, seed, clock, scenario):
    # 6 days * 20% = 120%; no cap on the fraction, so only the floor applies
    clock.now = DEFAULT_DUE + timedelta(days=5, hours=1)
    sub = submit(client, seed.student, scenario["id"]).json()

    r = grade(client, seed.instructor, scenario["id"], sub["id"], 100)
    assert r.json()["grade"]["points"] == 0


def test_late_without_penalty_rate_keeps_raw_points(client, seed, clock):
    a = create_assessment(
        client, seed.instructor, seed.course, publish=True, late_penalty=0
    )
    clock.now = DEFAULT_DUE + timedelta(days=3)
    sub = submit(client, seed.student, a["id"]).json()
    assert sub["is_late"] is True

    r = grade(client, seed.instructor, a["id"], sub["id"], 70)
    assert r.json()["grade"]["points"] == 70


def test_regrade_overwrites_and_penalty_uses_original_submission_time(client, seed, clock, scenario):
    clock.now = datetime(2024, 1, 12, tzinfo=timezone.utc)
    sub = submit(client, seed.student, scenario["id"]).json()

    first = grade(client, seed.instructor, scenario["id"], sub["id"], 90).json()

    # grading weeks later must not change the days-late count
    clock.now = datetime(2024, 2, 1, tzinfo=timezone.utc)
    second = grade(client, seed.instructor, scenario["id"], sub["id"], 90, "regraded").json()

    assert second["grade"]["points"] == pytest.approx(first["grade"]["points"])
    assert second["grade"]["feedback"] == "regraded"
    assert second["grade"]["graded_at"].startswith("2024-02-01")
    assert second["status"] == "graded"
    assert second["is_late"] is True
    assert second["submitted_at"] == first["submitted_at"]


def test_admin_can_grade(client, seed, scenario):
    sub = submit(client, seed.student, scenario["id"]).json()
    r = grade(client, seed.admin, scenario["id"], sub["id"], 75)
    assert r.status_code == 200
    assert r.json()["grade"]["graded_by"] == seed.admin


def test_non_owner_cannot_grade(client, seed, scenario):
    sub = submit(client, seed.student, scenario["id"]).json()

    for user_id in (seed.student, seed.other_instructor):
        r = grade(client, user_id, scenario["id"], sub["id"], 100)
        assert r.status_code == 403
        assert r.json()["kind"] == "Forbidden"


def test_grading_missing_submission(client, seed, scenario):
    r = grade(client, seed.instructor, scenario["id"], 999999, 10)
    assert r.status_code == 404
    assert r.json() == {"kind": "NotFound", "detail": "Submission not found"}


def test_submission_from_another_assessment_is_not_found(client, seed, scenario):
    other = create_assessment(client, seed.instructor, seed.course, publish=True)
    sub = submit(client, seed.student, other["id"]).json()

    r = grade(client, seed.instructor, scenario["id"], sub["id"], 10)
    assert r.status_code == 404


def test_negative_points_rejected(client, seed, scenario):
    sub = submit(client, seed.student, scenario["id"]).json()
    r = grade(client, seed.instructor, scenario["id"], sub["id"], -1)
    assert r.status_code == 400
    assert r.json()["field"] == "points"


def test_list_submissions_newest_first_and_paginated(client, seed, clock, scenario):
    students = (seed.student, seed.student2, seed.other_instructor)
    for offset, student in enumerate(students):
        clock.now = datetime(2024, 1, 6, tzinfo=timezone.utc) + timedelta(hours=offset)
        assert submit(client, student, scenario["id"]).status_code == 201

    r = client.get(
        f"/assessments/{scenario['id']}/submissions",
        headers=auth_header(seed.instructor),
        params={"page": 1, "limit": 2},
    )
    assert r.status_code == 200
    body = r.json()
    assert [s["student_id"] for s in body["items"]] == [seed.other_instructor, seed.student2]
    assert body["total"] == 3
    assert body["total_pages"] == 2
    assert body["has_next"] is True
    assert body["has_prev"] is False
    assert body["items"][0]["student"]["email"] == "instructor2@university.edu"

    r = client.get(
        f"/assessments/{scenario['id']}/submissions",
        headers=auth_header(seed.instructor),
        params={"page": 2, "limit": 2},
    )
    assert [s["student_id"] for s in r.json()["items"]] == [seed.student]


def test_list_submissions_is_owner_only(client, seed, scenario):
    r = client.get(
        f"/assessments/{scenario['id']}/submissions",
        headers=auth_header(seed.student),
    )
    assert r.status_code == 403

    r = client.get(
        f"/assessments/{scenario['id']}/submissions",
        headers=auth_header(seed.admin),
    )
    assert r.status_code == 200
    assert r.json()["total"] == 0
    assert r.json()["total_pages"] == 0


@pytest.mark.parametrize("raw", ["Infinity", "-Infinity", "NaN"])
def test_non_finite_points_rejected(client, seed, scenario, raw):
    sub = submit(client, seed.student, scenario["id"]).json()

    r = client.patch(
        f"/assessments/{scenario['id']}/submissions/{sub['id']}/grade",
        headers={**auth_header(seed.instructor), "Content-Type": "application/json"},
        content=f'{{"points": {raw}}}',
    )
    assert r.status_code == 400
    assert r.json()["kind"] == "ValidationError"
    assert r.json()["field"] == "points"

    r = client.get(f"/assessments/{scenario['id']}", headers=auth_header(seed.instructor))
    assert r.json()["submissions"][0]["status"] == "submitted"
