"""
Tests for audit entry construction, history ordering and the audit read side
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from application import AuditQuery, AuditRecorder
from infrastructure import InMemoryAuditLogRepository, _AuditStore
from model import AuditAction, AuditLogEntry, AuditTable, Project, ProjectStatus
from service import AuditService


svc = AuditService()


@pytest.fixture
def store():
    return _AuditStore()


@pytest.fixture
def repo(store):
    return InMemoryAuditLogRepository(store)


# ---------------------------------------------------------------------------
# changed_fields
# ---------------------------------------------------------------------------

def test_changed_fields_lists_new_keys_then_removed_keys():
    old = {"name": "A", "status": "active", "legacy": 1}
    new = {"name": "B", "status": "active", "color": "#fff"}

    assert svc.changed_fields(old, new) == ["name", "color", "legacy"]


def test_changed_fields_uses_value_equality_for_nested_values():
    old = {"tags": ["a", "b"], "meta": {"x": 1}}
    new = {"tags": ["a", "b"], "meta": {"x": 1}}

    assert svc.changed_fields(old, new) == []


def test_changed_fields_distinguishes_booleans_from_numbers():
    assert svc.changed_fields({"flag": 1, "n": 0}, {"flag": True, "n": False}) == ["flag", "n"]
    assert svc.changed_fields({"x": 1}, {"x": 1.0}) == ["x"]
    assert svc.changed_fields({"x": {"a": 1}}, {"x": {"a": True}}) == ["x"]


def test_identical_update_still_produces_an_entry(user):
    values = {"name": "MV Aurora", "status": "active"}

    entry = svc.build_update("projects", "p1", values, dict(values), user)

    assert entry.action == AuditAction.UPDATE
    assert entry.changed_fields == []
    assert entry.old_values == entry.new_values == values


def test_create_and_delete_entries_carry_one_snapshot(user):
    project = Project(name="MV Aurora", type="refit", status=ProjectStatus.ACTIVE)

    created = svc.build_create("projects", project.id, project, user)
    deleted = svc.build_delete("projects", project.id, project, user)

    assert created.old_values is None and created.changed_fields is None
    assert created.new_values["status"] == "active"
    assert created.new_values["id"] == str(project.id)
    assert deleted.new_values is None
    assert deleted.old_values == created.new_values
    assert created.record_id == str(project.id)


def test_snapshot_is_detached_from_the_entity(user):
    project = Project(name="Before", type="refit")

    entry = svc.build_create("projects", project.id, project, user)
    project.name = "After"

    assert entry.new_values["name"] == "Before"


def test_empty_user_id_is_stored_as_none():
    from model import UserContext

    entry = svc.build_create("clients", "c1", {"name": "x"}, UserContext("", "a@b.c"))

    assert entry.user_id is None
    assert entry.user_email == "a@b.c"


# ---------------------------------------------------------------------------
# AuditRecorder
# ---------------------------------------------------------------------------

def test_recorder_appends_in_creation_order(repo, store, user):
    recorder = AuditRecorder(repo)

    recorder.log_create("projects", "p1", {"name": "a"}, user)
    recorder.log_update("projects", "p1", {"name": "a"}, {"name": "b"}, user)
    recorder.log_delete("projects", "p1", {"name": "b"}, user)

    assert [e.action for e in store] == [AuditAction.CREATE, AuditAction.UPDATE, AuditAction.DELETE]
    assert [e.sequence_number for e in store] == [1, 2, 3]


def test_recorder_swallows_write_failures(repo, user, monkeypatch, caplog):
    def boom(entry):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(repo, "append", boom)

    assert AuditRecorder(repo).log_create("projects", "p1", {"name": "a"}, user) is None
    assert "Failed to write CREATE audit entry" in caplog.text


def test_recorder_skips_without_user(repo, store):
    assert AuditRecorder(repo).log_create("projects", "p1", {"name": "a"}, None) is None
    assert len(store) == 0


# ---------------------------------------------------------------------------
# AuditQuery
# ---------------------------------------------------------------------------

def test_count_reflects_table_filter(repo, user):
    recorder = AuditRecorder(repo)
    for i in range(3):
        recorder.log_create(AuditTable.PROJECTS.value, f"p{i}", {"name": i}, user)
    for i in range(2):
        recorder.log_create(AuditTable.CREW_MEMBERS.value, f"c{i}", {"name": i}, user)

    page = AuditQuery(repo).get_audit_logs(table_name="projects", limit=50, offset=0)

    assert page.count == 3
    assert len(page.data) == 3
    assert page.error is None


def test_pagination_returns_total_count(repo, user):
    recorder = AuditRecorder(repo)
    for i in range(5):
        recorder.log_create("clients", f"c{i}", {"name": i}, user)

    page = AuditQuery(repo).get_audit_logs(limit=2, offset=2)

    assert page.count == 5
    assert [e.record_id for e in page.data] == ["c2", "c1"]


def test_returned_entries_do_not_share_stored_values(repo, store, user):
    AuditRecorder(repo).log_update("clients", "c1", {"name": "a"}, {"name": "a", "tags": ["x"]}, user)

    page = AuditQuery(repo).get_audit_logs()
    page.data[0].new_values["name"] = "changed"
    page.data[0].new_values["tags"].append("y")
    page.data[0].old_values.clear()

    assert store[0].new_values == {"name": "a", "tags": ["x"]}
    assert store[0].old_values == {"name": "a"}


def test_action_and_user_filters(repo, user):
    from model import UserContext

    other = UserContext("user-2", "other@example.com")
    recorder = AuditRecorder(repo)
    recorder.log_create("clients", "c1", {"name": "a"}, user)
    recorder.log_update("clients", "c1", {"name": "a"}, {"name": "b"}, other)

    query = AuditQuery(repo)
    updates = query.get_audit_logs(action=AuditAction.UPDATE)
    mine = query.get_audit_logs(user_id="user-1")

    assert [e.action for e in updates.data] == ["UPDATE"]
    assert [e.user_email for e in mine.data] == ["planner@example.com"]


def test_record_history_is_newest_first(repo, user):
    recorder = AuditRecorder(repo)
    recorder.log_create("projects", "p1", {"name": "a"}, user)
    recorder.log_create("projects", "p2", {"name": "x"}, user)
    recorder.log_update("projects", "p1", {"name": "a"}, {"name": "b"}, user)

    history = AuditQuery(repo).get_audit_logs_for_record("projects", "p1")

    assert [e.action for e in history.data] == ["UPDATE", "CREATE"]
    assert history.error is None


def test_same_timestamp_is_ordered_by_insertion(repo, store, user):
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for action in (AuditAction.CREATE, AuditAction.UPDATE):
        repo.append(
            AuditLogEntry(
                table_name="projects",
                record_id="p1",
                action=action,
                user_email=user.user_email,
                created_at=stamp,
            )
        )

    history = AuditQuery(repo).get_audit_logs_for_record("projects", "p1")

    assert [e.action for e in history.data] == ["UPDATE", "CREATE"]


def test_older_entries_sort_last(repo, user):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, record in ((2, "late"), (0, "early"), (1, "middle")):
        repo.append(
            AuditLogEntry(
                table_name="clients",
                record_id=record,
                action=AuditAction.CREATE,
                user_email=user.user_email,
                created_at=base + timedelta(hours=offset),
            )
        )

    page = AuditQuery(repo).get_audit_logs(limit=None)

    assert [e.record_id for e in page.data] == ["late", "middle", "early"]


def test_read_failure_returns_empty_page_with_error(repo, monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(repo, "list_matching", boom)

    page = AuditQuery(repo).get_audit_logs(limit=50)

    assert page.data == []
    assert page.count == 0
    assert page.error == "connection reset"


def test_negative_limit_is_reported_not_raised(repo):
    page = AuditQuery(repo).get_audit_logs(limit=-1)

    assert page.data == []
    assert page.error == "limit must not be negative."


def test_record_history_failure_is_reported(repo, monkeypatch):
    def boom(table_name, record_id):
        raise RuntimeError("timeout")

    monkeypatch.setattr(repo, "list_for_record", boom)

    history = AuditQuery(repo).get_audit_logs_for_record("projects", str(uuid.uuid4()))

    assert history.data == []
    assert history.error == "timeout"
