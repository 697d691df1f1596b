"""
infrastructure.py

In-memory implementation of all repository interfaces and the Unit of Work.

This is a self-contained backend that stores everything in plain Python
dicts keyed by UUID.  It is intentionally simple — suitable for local
development, demos, and integration testing without needing a real database.

To swap in a real database (e.g. SQLAlchemy + PostgreSQL) later, implement
the same Abstract* interfaces from application.py and override get_uow() in
api.py:

    app.dependency_overrides[get_uow] = lambda: SqlAlchemyUnitOfWork(session)

A real backend should also enforce non-overlapping assignments per crew
member at the storage level (e.g. a PostgreSQL exclusion constraint on
daterange), since the application-level check is not atomic.

Nothing in service.py, application.py, or api.py needs to change.
"""

from __future__ import annotations

import itertools
import uuid
from typing import List, Optional

from application import (
    AbstractAssignmentRepository,
    AbstractAuditLogRepository,
    AbstractClientRepository,
    AbstractConsultantRepository,
    AbstractCrewMemberRepository,
    AbstractCrewRoleRepository,
    AbstractProjectRepository,
    AbstractUnitOfWork,
)
from model import AuditAction, AuditLogEntry


# ---------------------------------------------------------------------------
# Generic in-memory store
# ---------------------------------------------------------------------------

class _Store(dict):
    """A plain dict with typed get/save/delete helpers."""

    def fetch(self, key: uuid.UUID):
        return self.get(key)

    def put(self, obj) -> None:
        self[obj.id] = obj

    def remove(self, key: uuid.UUID) -> None:
        self.pop(key, None)

    def all(self) -> list:
        return list(self.values())


class _AuditStore(list):
    """
    Append-only list of audit entries.  Each appended entry is stamped with
    a monotonically increasing sequence number.
    """

    def __init__(self):
        super().__init__()
        self._seq = itertools.count(1)

    def add(self, entry: AuditLogEntry) -> None:
        entry.sequence_number = next(self._seq)
        self.append(entry)


# ---------------------------------------------------------------------------
# Shared in-memory database (module-level singleton)
# Lives as long as the process; restarting uvicorn empties it.
# ---------------------------------------------------------------------------

class InMemoryDatabase:
    def __init__(self):
        self.clients:      _Store = _Store()
        self.consultants:  _Store = _Store()
        self.crew_roles:   _Store = _Store()
        self.crew_members: _Store = _Store()
        self.projects:     _Store = _Store()
        self.assignments:  _Store = _Store()
        self.audit_logs:   _AuditStore = _AuditStore()


# Module-level singleton shared by every request
_db = InMemoryDatabase()


# ---------------------------------------------------------------------------
# Repository implementations
# ---------------------------------------------------------------------------

class InMemoryClientRepository(AbstractClientRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, client_id):         return self._s.fetch(client_id)
    def list_all(self):               return self._s.all()
    def save(self, client):           self._s.put(client)
    def delete(self, client_id):      self._s.remove(client_id)


class InMemoryConsultantRepository(AbstractConsultantRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, consultant_id):     return self._s.fetch(consultant_id)
    def list_all(self):               return self._s.all()
    def save(self, consultant):       self._s.put(consultant)
    def delete(self, consultant_id):  self._s.remove(consultant_id)


class InMemoryCrewRoleRepository(AbstractCrewRoleRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, role_id):           return self._s.fetch(role_id)
    def list_all(self):               return self._s.all()
    def save(self, role):             self._s.put(role)
    def delete(self, role_id):        self._s.remove(role_id)


class InMemoryCrewMemberRepository(AbstractCrewMemberRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, crew_id):           return self._s.fetch(crew_id)
    def list_all(self):               return self._s.all()
    def save(self, crew):             self._s.put(crew)
    def delete(self, crew_id):        self._s.remove(crew_id)


class InMemoryProjectRepository(AbstractProjectRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, project_id):        return self._s.fetch(project_id)
    def list_all(self):               return self._s.all()
    def save(self, project):          self._s.put(project)
    def delete(self, project_id):     self._s.remove(project_id)


class InMemoryAssignmentRepository(AbstractAssignmentRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, assignment_id):     return self._s.fetch(assignment_id)
    def list_all(self):               return self._s.all()
    def list_for_crew_member(self, crew_id):
        return [a for a in self._s.all() if a.crew_member_id == crew_id]
    def list_for_project(self, project_id):
        return [a for a in self._s.all() if a.project_id == project_id]
    def save(self, assignment):       self._s.put(assignment)
    def delete(self, assignment_id):  self._s.remove(assignment_id)


class InMemoryAuditLogRepository(AbstractAuditLogRepository):
    def __init__(self, store: _AuditStore): self._s = store

    def append(self, entry: AuditLogEntry) -> None:
        self._s.add(entry)

    def list_matching(
        self,
        table_name: Optional[str] = None,
        action: Optional[AuditAction] = None,
        user_id: Optional[str] = None,
    ) -> List[AuditLogEntry]:
        return [
            e for e in self._s
            if (table_name is None or e.table_name == table_name)
            and (action is None or e.action == action)
            and (user_id is None or e.user_id == user_id)
        ]

    def list_for_record(self, table_name: str, record_id: str) -> List[AuditLogEntry]:
        return [
            e for e in self._s
            if e.table_name == table_name and e.record_id == record_id
        ]


# ---------------------------------------------------------------------------
# Unit of Work
# ---------------------------------------------------------------------------

class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Wraps all in-memory repositories.  commit() and rollback() are no-ops
    because dict mutations are immediate — there is no transaction to manage.
    In a real SQL implementation, commit() would call session.commit().
    """

    def __init__(self, db: InMemoryDatabase = _db):
        self.clients      = InMemoryClientRepository(db.clients)
        self.consultants  = InMemoryConsultantRepository(db.consultants)
        self.crew_roles   = InMemoryCrewRoleRepository(db.crew_roles)
        self.crew_members = InMemoryCrewMemberRepository(db.crew_members)
        self.projects     = InMemoryProjectRepository(db.projects)
        self.assignments  = InMemoryAssignmentRepository(db.assignments)
        self.audit_logs   = InMemoryAuditLogRepository(db.audit_logs)

    def commit(self)   -> None: pass   # no-op for in-memory
    def rollback(self) -> None: pass   # no-op for in-memory
