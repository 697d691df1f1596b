"""
Tests for double-booking detection and assignment scheduling rules
"""
import uuid
from datetime import date

import pytest

from model import Assignment, AssignmentType, CrewMember, CrewStatus, Project
from service import ConflictCandidate, SchedulingService, intervals_overlap


svc = SchedulingService()
CREW = uuid.uuid4()


def _assignment(start, end, crew_member_id=CREW, project_id=None):
    return Assignment(
        crew_member_id=crew_member_id,
        project_id=project_id,
        start_date=start,
        end_date=end,
    )


def _candidate(start, end, exclude=None, crew_member_id=CREW):
    return ConflictCandidate(
        crew_member_id=crew_member_id,
        start_date=start,
        end_date=end,
        exclude_assignment_id=exclude,
    )


def test_shared_boundary_day_is_a_conflict():
    """[01-01, 01-10] and [01-10, 01-15] share one day"""
    a = _assignment(date(2024, 1, 1), date(2024, 1, 10))

    conflicts = svc.find_conflicts(_candidate(date(2024, 1, 10), date(2024, 1, 15)), [a])

    assert conflicts == [a]


def test_disjoint_intervals_do_not_conflict():
    a = _assignment(date(2024, 1, 1), date(2024, 1, 9))
    b = _assignment(date(2024, 1, 10), date(2024, 1, 15))

    assert svc.find_conflicts(_candidate(b.start_date, b.end_date), [a]) == []
    assert svc.find_conflicts(_candidate(a.start_date, a.end_date), [b]) == []


@pytest.mark.parametrize(
    "first,second",
    [
        ((date(2024, 1, 1), date(2024, 1, 10)), (date(2024, 1, 10), date(2024, 1, 15))),
        ((date(2024, 1, 1), date(2024, 1, 31)), (date(2024, 1, 5), date(2024, 1, 6))),
        ((date(2024, 1, 5), date(2024, 1, 5)), (date(2024, 1, 1), date(2024, 1, 5))),
    ],
)
def test_conflict_is_symmetric(first, second):
    a = _assignment(*first)
    b = _assignment(*second)

    assert svc.find_conflicts(_candidate(*second), [a]) == [a]
    assert svc.find_conflicts(_candidate(*first), [b]) == [b]


def test_other_crew_members_are_ignored():
    other = _assignment(date(2024, 1, 1), date(2024, 1, 10), crew_member_id=uuid.uuid4())

    assert svc.find_conflicts(_candidate(date(2024, 1, 5), date(2024, 1, 6)), [other]) == []


def test_excluded_assignment_is_not_reported():
    """Editing an assignment never conflicts with its own prior record"""
    a = _assignment(date(2024, 1, 1), date(2024, 1, 10))

    conflicts = svc.find_conflicts(
        _candidate(date(2024, 1, 2), date(2024, 1, 12), exclude=a.id), [a]
    )

    assert conflicts == []


def test_conflicts_keep_input_order():
    a = _assignment(date(2024, 3, 1), date(2024, 3, 10))
    b = _assignment(date(2024, 1, 1), date(2024, 1, 10))
    c = _assignment(date(2024, 2, 1), date(2024, 2, 10))

    conflicts = svc.find_conflicts(_candidate(date(2024, 1, 1), date(2024, 12, 31)), [a, b, c])

    assert conflicts == [a, b, c]


def test_malformed_dates_never_overlap():
    a = _assignment("not-a-date", date(2024, 1, 10))

    assert svc.find_conflicts(_candidate(date(2024, 1, 1), date(2024, 1, 31)), [a]) == []
    assert intervals_overlap(None, date(2024, 1, 1), date(2024, 1, 1), date(2024, 1, 1)) is False


def test_iso_strings_are_accepted():
    assert intervals_overlap("2024-01-01", "2024-01-10", "2024-01-10T08:00:00+00:00", "2024-01-15")


def test_strings_with_trailing_garbage_never_overlap():
    assert intervals_overlap("2024-01-01", "2024-01-10", "2024-01-10garbage", "2024-01-15") is False
    assert intervals_overlap("2024-01-01", "2024-01-10", "2024-01-05", "2024-01-15xyz") is False


def test_describe_conflicts_names_projects_and_training():
    project = Project(name="MV Aurora", type="refit")
    on_project = _assignment(date(2024, 1, 1), date(2024, 1, 10), project_id=project.id)
    training = Assignment(
        crew_member_id=CREW,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 2),
        assignment_type=AssignmentType.TRAINING,
        training_description="STCW refresher",
    )

    message = svc.describe_conflicts([on_project, training], {project.id: project})

    assert message == (
        "Crew member already assigned to MV Aurora, STCW refresher during this period."
    )


def test_create_assignment_rejects_inverted_interval():
    with pytest.raises(ValueError, match="End date must be after start date"):
        svc.create_assignment(CREW, uuid.uuid4(), date(2024, 1, 10), date(2024, 1, 1))


def test_vessel_assignment_requires_project():
    with pytest.raises(ValueError, match="Project is required"):
        svc.create_assignment(CREW, None, date(2024, 1, 1), date(2024, 1, 10))


def test_training_assignment_drops_project_and_role():
    a = svc.create_assignment(
        CREW,
        uuid.uuid4(),
        date(2024, 1, 1),
        date(2024, 1, 3),
        role_on_project="Deckhand",
        assignment_type=AssignmentType.TRAINING,
        training_description="  Fire fighting  ",
    )

    assert a.project_id is None
    assert a.role_on_project is None
    assert a.training_description == "Fire fighting"


def test_single_day_assignment_is_valid():
    a = svc.create_assignment(CREW, uuid.uuid4(), date(2024, 1, 1), date(2024, 1, 1))

    assert a.start_date == a.end_date


def test_update_assignment_keeps_unspecified_dates():
    a = _assignment(date(2024, 1, 1), date(2024, 1, 10))

    svc.update_assignment(a, end_date=date(2024, 1, 20))

    assert a.start_date == date(2024, 1, 1)
    assert a.end_date == date(2024, 1, 20)


def test_crew_goes_on_project_when_booking_has_started():
    crew = CrewMember(full_name="Ana", role="Deckhand")
    today = date(2024, 1, 5)

    svc.crew_status_after_assign(crew, _assignment(date(2024, 1, 5), date(2024, 1, 9), crew.id), today)

    assert crew.status == CrewStatus.ON_PROJECT


def test_future_booking_leaves_status_unchanged():
    crew = CrewMember(full_name="Ana", role="Deckhand")

    svc.crew_status_after_assign(
        crew, _assignment(date(2024, 2, 1), date(2024, 2, 9), crew.id), date(2024, 1, 5)
    )

    assert crew.status == CrewStatus.AVAILABLE


def test_crew_freed_only_when_nothing_runs_today():
    crew = CrewMember(full_name="Ana", role="Deckhand", status=CrewStatus.ON_PROJECT)
    today = date(2024, 1, 5)
    running = _assignment(date(2024, 1, 1), date(2024, 1, 5), crew.id)
    future = _assignment(date(2024, 1, 6), date(2024, 1, 9), crew.id)

    svc.crew_status_after_removal(crew, [running, future], today)
    assert crew.status == CrewStatus.ON_PROJECT

    svc.crew_status_after_removal(crew, [future], today)
    assert crew.status == CrewStatus.AVAILABLE


@pytest.mark.parametrize(
    "end,expected",
    [
        (date(2024, 1, 4), "past"),
        (date(2024, 1, 5), "ending_critical"),
        (date(2024, 1, 8), "ending_critical"),
        (date(2024, 1, 9), "ending_soon"),
        (date(2024, 1, 12), "ending_soon"),
        (date(2024, 1, 13), "active"),
        ("garbage", "past"),
    ],
)
def test_classify_assignment(end, expected):
    assert svc.classify_assignment(end, date(2024, 1, 5)) == expected
