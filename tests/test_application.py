"""
Tests for application use cases: directory management, assignment
scheduling with crew status sync, and best-effort auditing
"""
from datetime import date, datetime, timezone

import pytest

from application import (
    ApplicationError,
    CheckAssignmentConflictsCommand,
    CheckAssignmentConflictsUseCase,
    ConflictError,
    CreateAssignmentCommand,
    CreateAssignmentUseCase,
    CreateClientCommand,
    CreateClientUseCase,
    CreateConsultantCommand,
    CreateConsultantUseCase,
    CreateCrewMemberCommand,
    CreateCrewMemberUseCase,
    CreateCrewRoleCommand,
    CreateCrewRoleUseCase,
    CreateProjectCommand,
    CreateProjectUseCase,
    DeleteCrewRoleUseCase,
    GetDashboardMetricsUseCase,
    GetRecordHistoryUseCase,
    GlobalSearchUseCase,
    ListAuditLogsQuery,
    ListAuditLogsUseCase,
    ListCrewRolesUseCase,
    NotFoundError,
    RemoveAssignmentUseCase,
    ReorderCrewRolesCommand,
    ReorderCrewRolesUseCase,
    UpdateAssignmentCommand,
    UpdateAssignmentUseCase,
    UpdateProjectCommand,
    UpdateProjectStatusCommand,
    UpdateProjectStatusUseCase,
    UpdateProjectUseCase,
)
from model import AssignmentType, AuditAction, CrewStatus, ProjectStatus


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _crew(uow, user=None, name="Ana Silva", role="Deckhand"):
    return CreateCrewMemberUseCase().execute(
        CreateCrewMemberCommand(full_name=name, role=role, flag_state="pt", user=user), uow
    )


def _project(uow, user=None, name="MV Aurora"):
    return CreateProjectUseCase().execute(
        CreateProjectCommand(name=name, type="refit", user=user), uow
    )


def _book(uow, crew, project, start, end, user=None, force=False):
    return CreateAssignmentUseCase().execute(
        CreateAssignmentCommand(
            crew_member_id=_uuid(crew.id),
            project_id=_uuid(project.id),
            start_date=start,
            end_date=end,
            force=force,
            user=user,
        ),
        uow,
    )


def _uuid(value):
    import uuid
    return uuid.UUID(value)


def _audit(db, table=None):
    return [e for e in db.audit_logs if table is None or e.table_name == table]


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------

def test_create_crew_member_defaults_and_audit(uow, db, user):
    crew = _crew(uow, user)

    assert crew.status == "available"
    assert crew.flag_state == "PT"
    [entry] = _audit(db, "crew_members")
    assert entry.action == AuditAction.CREATE
    assert entry.record_id == crew.id
    assert entry.user_id == "user-1"


def test_project_end_before_start_is_rejected(uow):
    with pytest.raises(ValueError):
        CreateProjectUseCase().execute(
            CreateProjectCommand(
                name="Bad", type="refit",
                start_date=date(2024, 2, 1), end_date=date(2024, 1, 1),
            ),
            uow,
        )


def test_project_with_unknown_client_is_not_found(uow):
    import uuid

    with pytest.raises(NotFoundError):
        CreateProjectUseCase().execute(
            CreateProjectCommand(name="P", type="refit", client_id=uuid.uuid4()), uow
        )


def test_update_project_records_changed_fields(uow, db, user):
    client = CreateClientUseCase().execute(CreateClientCommand(name="Acme Marine"), uow)
    project = _project(uow, user)

    UpdateProjectUseCase().execute(
        UpdateProjectCommand(
            project_id=_uuid(project.id),
            name=project.name,
            type=project.type,
            status=ProjectStatus.COMPLETED,
            client_id=_uuid(client.id),
            user=user,
        ),
        uow,
    )

    update = _audit(db, "projects")[-1]
    assert update.action == AuditAction.UPDATE
    assert "status" in update.changed_fields
    assert "client_id" in update.changed_fields
    assert "name" not in update.changed_fields
    assert update.old_values["status"] == "active"
    assert update.new_values["status"] == "completed"


def test_mutations_without_user_are_not_audited(uow, db):
    _crew(uow)
    _project(uow)

    assert _audit(db) == []


def test_audit_failure_does_not_fail_the_mutation(uow, db, user, monkeypatch):
    def boom(entry):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(uow.audit_logs, "append", boom)

    crew = _crew(uow, user)

    assert db.crew_members.fetch(_uuid(crew.id)) is not None
    assert _audit(db) == []


def test_project_status_change_is_audited(uow, db, user):
    project = _project(uow, user)

    result = UpdateProjectStatusUseCase().execute(
        UpdateProjectStatusCommand(
            project_id=_uuid(project.id), status=ProjectStatus.COMPLETED, user=user
        ),
        uow,
    )

    assert result.status == "completed"
    update = _audit(db, "projects")[-1]
    assert update.action == AuditAction.UPDATE
    assert update.record_id == project.id
    assert "status" in update.changed_fields
    assert "name" not in update.changed_fields
    assert update.old_values["status"] == "active"
    assert update.new_values["status"] == "completed"


def test_project_status_change_for_unknown_project_is_not_found(uow):
    import uuid

    with pytest.raises(NotFoundError):
        UpdateProjectStatusUseCase().execute(
            UpdateProjectStatusCommand(project_id=uuid.uuid4(), status=ProjectStatus.ACTIVE),
            uow,
        )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def test_search_ignores_queries_shorter_than_two_characters(uow):
    _crew(uow, name="Ana Silva")

    result = GlobalSearchUseCase().execute("  a  ", uow)

    assert result.query == "a"
    assert result.total_count == 0
    assert result.crew == []


def test_search_is_case_insensitive_across_categories(uow):
    CreateProjectUseCase().execute(
        CreateProjectCommand(name="Silver Wind", type="windfarm", color="#112233"), uow
    )
    crew = _crew(uow, name="Ana Silva", role="Deckhand")
    _crew(uow, name="Ben Costa", role="Silversmith")
    client = CreateClientUseCase().execute(
        CreateClientCommand(name="Acme Marine", contact_name="Joao Silveira"), uow
    )
    CreateConsultantUseCase().execute(
        CreateConsultantCommand(full_name="Rita Moura", email="rita@silva.pt", role="Surveyor"),
        uow,
    )
    _crew(uow, name="Carl Jones", role="Cook")

    result = GlobalSearchUseCase().execute(" SIL ", uow)

    assert result.query == "SIL"
    assert result.total_count == 5
    [project_hit] = result.projects
    assert project_hit.subtitle == "Wind Farm"
    assert project_hit.color == "#112233"
    assert project_hit.href.startswith("/projects/")
    assert [h.title for h in result.crew] == ["Ana Silva", "Ben Costa"]
    assert result.crew[0].subtitle == "Deckhand"
    assert result.crew[0].href == f"/crew/{crew.id}"
    assert result.crew[0].status == "available"
    [client_hit] = result.clients
    assert client_hit.title == "Acme Marine"
    assert client_hit.subtitle == "Joao Silveira"
    assert client_hit.href == f"/clients/{client.id}"
    [consultant_hit] = result.consultants
    assert consultant_hit.subtitle == "Surveyor"
    assert consultant_hit.category == "consultants"


def test_search_returns_at_most_five_per_category(uow):
    for i in range(7):
        _crew(uow, name=f"Deck Hand {i}")

    result = GlobalSearchUseCase().execute("deck", uow)

    assert len(result.crew) == 5
    assert result.total_count == 5


def test_search_passes_unknown_project_types_through(uow):
    CreateProjectUseCase().execute(CreateProjectCommand(name="Harbour", type="refit"), uow)

    [hit] = GlobalSearchUseCase().execute("harb", uow).projects

    assert hit.subtitle == "refit"
    assert hit.color is None


# ---------------------------------------------------------------------------
# Crew roles
# ---------------------------------------------------------------------------

def test_roles_are_appended_in_display_order(uow):
    for name in ("Captain", "Mate", "Deckhand"):
        CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name=name), uow)

    roles = ListCrewRolesUseCase().execute(uow)

    assert [(r.name, r.display_order) for r in roles] == [
        ("Captain", 0), ("Mate", 1), ("Deckhand", 2),
    ]


def test_duplicate_role_name_is_rejected(uow):
    CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name="Captain"), uow)

    with pytest.raises(ApplicationError, match="already exists"):
        CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name="captain"), uow)


def test_reorder_audits_only_moved_roles(uow, db, user):
    roles = [
        CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name=n), uow)
        for n in ("Captain", "Mate", "Deckhand")
    ]

    result = ReorderCrewRolesUseCase().execute(
        ReorderCrewRolesCommand(
            ordered_role_ids=[_uuid(r.id) for r in reversed(roles)], user=user
        ),
        uow,
    )

    assert [r.name for r in result] == ["Deckhand", "Mate", "Captain"]
    updates = [e for e in _audit(db, "crew_roles") if e.action == AuditAction.UPDATE]
    assert sorted(e.new_values["name"] for e in updates) == ["Captain", "Deckhand"]
    assert all(e.changed_fields == ["display_order"] for e in updates)


def test_reorder_with_missing_ids_is_rejected(uow):
    role = CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name="Captain"), uow)
    CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name="Mate"), uow)

    with pytest.raises(ValueError):
        ReorderCrewRolesUseCase().execute(
            ReorderCrewRolesCommand(ordered_role_ids=[_uuid(role.id)]), uow
        )


def test_role_in_use_cannot_be_deleted(uow, db):
    role = CreateCrewRoleUseCase().execute(CreateCrewRoleCommand(name="Captain"), uow)
    _crew(uow, role="Captain")

    with pytest.raises(ApplicationError, match="assigned to crew members"):
        DeleteCrewRoleUseCase().execute(_uuid(role.id), uow)

    assert db.crew_roles.fetch(_uuid(role.id)) is not None


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

def test_overlapping_booking_raises_conflict(uow, db):
    crew = _crew(uow)
    first = _project(uow, name="MV Aurora")
    second = _project(uow, name="MV Borealis")
    existing = _book(uow, crew, first, date(2024, 1, 1), date(2024, 1, 10))

    with pytest.raises(ConflictError) as excinfo:
        _book(uow, crew, second, date(2024, 1, 10), date(2024, 1, 15))

    assert str(excinfo.value) == (
        "Crew member already assigned to MV Aurora during this period."
    )
    [conflict] = excinfo.value.conflicts
    assert conflict.assignment_id == existing.id
    assert conflict.project_name == "MV Aurora"
    assert len(db.assignments) == 1


def test_forced_booking_is_saved_despite_conflict(uow, db):
    crew = _crew(uow)
    project = _project(uow)
    _book(uow, crew, project, date(2024, 1, 1), date(2024, 1, 10))

    _book(uow, crew, project, date(2024, 1, 5), date(2024, 1, 15), force=True)

    assert len(db.assignments) == 2


def test_check_conflicts_is_read_only(uow, db):
    crew = _crew(uow)
    project = _project(uow)
    existing = _book(uow, crew, project, date(2024, 1, 1), date(2024, 1, 10))

    check = CheckAssignmentConflictsUseCase().execute(
        CheckAssignmentConflictsCommand(
            crew_member_id=_uuid(crew.id),
            start_date=date(2024, 1, 3),
            end_date=date(2024, 1, 4),
        ),
        uow,
    )
    excluded = CheckAssignmentConflictsUseCase().execute(
        CheckAssignmentConflictsCommand(
            crew_member_id=_uuid(crew.id),
            start_date=date(2024, 1, 3),
            end_date=date(2024, 1, 4),
            exclude_assignment_id=_uuid(existing.id),
        ),
        uow,
    )

    assert check.has_conflict is True
    assert [c.assignment_id for c in check.conflicts] == [existing.id]
    assert excluded.has_conflict is False
    assert excluded.message is None
    assert len(db.assignments) == 1


def test_editing_an_assignment_ignores_itself(uow, db, user):
    crew = _crew(uow)
    project = _project(uow)
    booking = _book(uow, crew, project, date(2024, 1, 1), date(2024, 1, 10))

    updated = UpdateAssignmentUseCase().execute(
        UpdateAssignmentCommand(
            assignment_id=_uuid(booking.id), end_date=date(2024, 1, 12), user=user
        ),
        uow,
    )

    assert updated.end_date == "2024-01-12"
    [entry] = _audit(db, "assignments")
    assert entry.action == AuditAction.UPDATE
    assert "end_date" in entry.changed_fields


def test_editing_into_another_booking_conflicts(uow):
    crew = _crew(uow)
    project = _project(uow)
    _book(uow, crew, project, date(2024, 1, 1), date(2024, 1, 10))
    later = _book(uow, crew, project, date(2024, 2, 1), date(2024, 2, 10))

    with pytest.raises(ConflictError):
        UpdateAssignmentUseCase().execute(
            UpdateAssignmentCommand(
                assignment_id=_uuid(later.id), start_date=date(2024, 1, 10)
            ),
            uow,
        )


def test_training_booking_needs_no_project(uow):
    crew = _crew(uow)

    booking = CreateAssignmentUseCase().execute(
        CreateAssignmentCommand(
            crew_member_id=_uuid(crew.id),
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 2),
            assignment_type=AssignmentType.TRAINING,
            training_description="STCW refresher",
        ),
        uow,
    )

    assert booking.project_id is None
    assert booking.assignment_type == "training"


def test_vessel_booking_without_project_is_rejected(uow):
    crew = _crew(uow)

    with pytest.raises(ValueError, match="Project is required"):
        CreateAssignmentUseCase().execute(
            CreateAssignmentCommand(
                crew_member_id=_uuid(crew.id),
                start_date=date(2024, 3, 1),
                end_date=date(2024, 3, 2),
            ),
            uow,
        )


def test_booking_unknown_crew_is_not_found(uow):
    import uuid

    project = _project(uow)
    with pytest.raises(NotFoundError):
        CreateAssignmentUseCase().execute(
            CreateAssignmentCommand(
                crew_member_id=uuid.uuid4(),
                project_id=_uuid(project.id),
                start_date=date(2024, 3, 1),
                end_date=date(2024, 3, 2),
            ),
            uow,
        )


def test_started_booking_puts_crew_on_project_and_removal_frees_them(uow, db, user, days):
    crew = _crew(uow, user)
    project = _project(uow, user)

    booking = _book(uow, crew, project, days(-1), days(5), user=user)

    assert db.crew_members.fetch(_uuid(crew.id)).status == CrewStatus.ON_PROJECT
    status_update = _audit(db, "crew_members")[-1]
    assert status_update.action == AuditAction.UPDATE
    assert "status" in status_update.changed_fields
    assert status_update.new_values["status"] == "on_project"

    RemoveAssignmentUseCase().execute(_uuid(booking.id), uow, user)

    assert db.crew_members.fetch(_uuid(crew.id)).status == CrewStatus.AVAILABLE
    assert [e.action for e in _audit(db, "assignments")] == [
        AuditAction.CREATE, AuditAction.DELETE,
    ]
    assert _audit(db, "crew_members")[-1].new_values["status"] == "available"


def test_future_booking_keeps_crew_available(uow, db, user, days):
    crew = _crew(uow, user)
    project = _project(uow, user)

    _book(uow, crew, project, days(10), days(20), user=user)

    assert db.crew_members.fetch(_uuid(crew.id)).status == CrewStatus.AVAILABLE
    assert [e.action for e in _audit(db, "crew_members")] == [AuditAction.CREATE]


def test_removal_keeps_crew_on_project_while_another_booking_runs(uow, db, days):
    crew = _crew(uow)
    project = _project(uow)
    running = _book(uow, crew, project, days(-3), days(3))
    future = _book(uow, crew, project, days(10), days(20))

    RemoveAssignmentUseCase().execute(_uuid(future.id), uow)
    assert db.crew_members.fetch(_uuid(crew.id)).status == CrewStatus.ON_PROJECT

    RemoveAssignmentUseCase().execute(_uuid(running.id), uow)
    assert db.crew_members.fetch(_uuid(crew.id)).status == CrewStatus.AVAILABLE


def test_removing_unknown_assignment_is_not_found(uow):
    import uuid

    with pytest.raises(NotFoundError):
        RemoveAssignmentUseCase().execute(uuid.uuid4(), uow)


# ---------------------------------------------------------------------------
# Dashboard & audit read side
# ---------------------------------------------------------------------------

def test_dashboard_metrics_from_store(uow, days):
    crew = _crew(uow)
    _crew(uow, name="Ben Okafor")
    project = _project(uow)
    _book(uow, crew, project, days(-2), days(2))

    metrics = GetDashboardMetricsUseCase().execute(uow)

    assert metrics.active_projects == 1
    assert metrics.available_crew == 1
    assert metrics.crew_on_projects == 1
    assert metrics.upcoming_departures == 1
    assert metrics.projects_needing_crew == 1


def test_dashboard_metrics_at_fixed_time(uow):
    crew = _crew(uow)
    project = _project(uow)
    _book(uow, crew, project, date(2024, 1, 1), date(2024, 1, 10))

    before = GetDashboardMetricsUseCase().execute(
        uow, now=datetime(2024, 1, 5, tzinfo=timezone.utc)
    )
    after = GetDashboardMetricsUseCase().execute(
        uow, now=datetime(2024, 1, 11, tzinfo=timezone.utc)
    )

    assert before.crew_on_projects == 1
    assert after.crew_on_projects == 0


def test_list_audit_logs_by_table(uow, user):
    for name in ("A", "B", "C"):
        _project(uow, user, name=name)
    _crew(uow, user, name="Ana")
    _crew(uow, user, name="Ben")

    page = ListAuditLogsUseCase().execute(
        ListAuditLogsQuery(table_name="projects", limit=50, offset=0), uow
    )

    assert page.count == 3
    assert len(page.data) == 3
    assert {e.table_name for e in page.data} == {"projects"}


def test_record_history_newest_first(uow, user):
    project = _project(uow, user)
    UpdateProjectUseCase().execute(
        UpdateProjectCommand(
            project_id=_uuid(project.id),
            name="Renamed",
            type=project.type,
            status=ProjectStatus.ACTIVE,
            user=user,
        ),
        uow,
    )

    history = GetRecordHistoryUseCase().execute("projects", project.id, uow)

    assert [e.action for e in history.data] == ["UPDATE", "CREATE"]
    assert history.data[0].changed_fields[0] == "name"
