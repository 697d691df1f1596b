"""
application.py

Application layer for the Crew Planning & Assignment Scheduling System.

Overview
--------
The application layer sits between the presentation layer (API / UI) and the
domain / service layer.  It is responsible for:

  1. Defining clean output DTOs (dataclasses) that carry only the data
     the presentation layer needs — no raw domain objects are leaked upward.
  2. Declaring abstract Repository interfaces so that the application layer
     remains fully persistence-agnostic (implementations live in infrastructure).
  3. Declaring the UnitOfWork abstraction so that the repository mutations of
     a single use case are committed together.
  4. Recording and querying the audit trail (AuditRecorder, AuditQuery).
  5. Implementing Use Case handlers — one class per user-facing operation —
     that orchestrate service calls, repository reads/writes, and side-effects
     (crew status sync, audit entries) in the correct order.

Structure
---------
DTOs
    ClientDTO, ConsultantDTO, CrewRoleDTO, CrewMemberDTO, ProjectDTO
    AssignmentDTO, ConflictDTO, ConflictCheckDTO, DashboardMetricsDTO
    AuditLogEntryDTO, AuditLogPageDTO, RecordHistoryDTO
    SearchResultDTO, SearchResponseDTO

Repository interfaces
    AbstractClientRepository
    AbstractConsultantRepository
    AbstractCrewRoleRepository
    AbstractCrewMemberRepository
    AbstractProjectRepository
    AbstractAssignmentRepository
    AbstractAuditLogRepository

Unit of Work
    AbstractUnitOfWork

Audit
    AuditRecorder      – best-effort writer, never raises
    AuditQuery         – paginated / per-record reader, never raises

Use Cases
    --- Directory ---
    Create/Update/Delete/Get/List ClientUseCase
    Create/Update/Delete/Get/List ConsultantUseCase
    Create/Rename/Delete/Reorder/List CrewRoleUseCase
    Create/Update/Delete/Get/List CrewMemberUseCase, UpdateCrewStatusUseCase
    Create/Update/Delete/Get/List ProjectUseCase, UpdateProjectStatusUseCase

    --- Scheduling ---
    CheckAssignmentConflictsUseCase
    CreateAssignmentUseCase
    UpdateAssignmentUseCase
    RemoveAssignmentUseCase
    GetAssignmentUseCase
    ListAssignmentsUseCase

    --- Dashboard, search & audit ---
    GetDashboardMetricsUseCase
    GlobalSearchUseCase
    ListAuditLogsUseCase
    GetRecordHistoryUseCase

Design notes
------------
- Use cases receive commands and return DTOs only; no domain objects cross
  the application boundary.
- Audit entries are written strictly after the primary write has been
  committed, outside its transaction.  A failed audit write is logged and
  swallowed; it never fails or rolls back the mutation.
- Mutations by an anonymous caller (no UserContext) are not audited.
- All timestamps flowing out are ISO-8601 strings (UTC).
- Errors bubble up as ApplicationError (business) or ValueError (validation).
"""

from __future__ import annotations

import abc
import copy
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from config import settings
from model import (
    Assignment,
    AssignmentType,
    AuditAction,
    AuditLogEntry,
    AuditTable,
    Client,
    ClientStatus,
    Consultant,
    ConsultantStatus,
    CrewMember,
    CrewRole,
    CrewStatus,
    Project,
    ProjectStatus,
    UserContext,
)
from service import (
    AuditService,
    ClientService,
    ConflictCandidate,
    ConsultantService,
    CrewService,
    DashboardMetrics,
    MetricsService,
    ProjectService,
    SchedulingService,
    SearchService,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ApplicationError(Exception):
    """Raised when a use case cannot complete due to a business rule violation."""


class NotFoundError(ApplicationError):
    """Raised when a requested entity does not exist."""


class ConflictError(ApplicationError):
    """Raised when a booking would double-book a crew member and was not forced."""

    def __init__(self, message: str, conflicts: List["ConflictDTO"]):
        super().__init__(message)
        self.conflicts = conflicts


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fmt(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO-8601 UTC string, or None."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _fmt_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None


def _id(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value else None


def _today() -> date:
    return datetime.now(timezone.utc).date()


# ===========================================================================
# DTO DEFINITIONS
# ===========================================================================

# ---------------------------------------------------------------------------
# Directory DTOs
# ---------------------------------------------------------------------------

@dataclass
class ClientDTO:
    id: str
    name: str
    contact_name: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    status: str
    created_at: str
    updated_at: str


@dataclass
class ConsultantDTO:
    id: str
    full_name: str
    email: Optional[str]
    phone: Optional[str]
    role: Optional[str]
    notes: Optional[str]
    status: str
    created_at: str
    updated_at: str


@dataclass
class CrewRoleDTO:
    id: str
    name: str
    display_order: int


@dataclass
class CrewMemberDTO:
    id: str
    full_name: str
    role: str
    email: Optional[str]
    phone: Optional[str]
    nationality: Optional[str]
    flag_state: Optional[str]
    home_airport: Optional[str]
    company: Optional[str]
    status: str
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Scheduling DTOs
# ---------------------------------------------------------------------------

@dataclass
class ProjectDTO:
    id: str
    name: str
    type: str
    status: str
    start_date: Optional[str]
    end_date: Optional[str]
    color: Optional[str]
    notes: Optional[str]
    client_id: Optional[str]
    consultant_id: Optional[str]
    created_at: str
    updated_at: str


@dataclass
class AssignmentDTO:
    id: str
    crew_member_id: str
    project_id: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    role_on_project: Optional[str]
    assignment_type: str
    training_description: Optional[str]
    urgency: str
    created_at: str
    updated_at: str


@dataclass
class ConflictDTO:
    """An existing booking that overlaps the proposed one."""
    assignment_id: str
    crew_member_id: str
    start_date: Optional[str]
    end_date: Optional[str]
    project_id: Optional[str]
    project_name: Optional[str]
    training_description: Optional[str]


@dataclass
class ConflictCheckDTO:
    has_conflict: bool
    message: Optional[str]
    conflicts: List[ConflictDTO] = field(default_factory=list)


@dataclass
class DashboardMetricsDTO:
    active_projects: int
    available_crew: int
    crew_on_projects: int
    upcoming_departures: int
    projects_needing_crew: int


# ---------------------------------------------------------------------------
# Audit DTOs
# ---------------------------------------------------------------------------

@dataclass
class AuditLogEntryDTO:
    id: str
    table_name: str
    record_id: str
    action: str
    changed_fields: Optional[List[str]]
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    user_id: Optional[str]
    user_email: str
    created_at: str


@dataclass
class AuditLogPageDTO:
    """
    One page of audit history plus the total number of matching entries.
    `error` is set (and `data` empty) when the store could not be read.
    """
    data: List[AuditLogEntryDTO]
    count: int
    limit: Optional[int]
    offset: int
    error: Optional[str] = None


@dataclass
class RecordHistoryDTO:
    table_name: str
    record_id: str
    data: List[AuditLogEntryDTO]
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Search DTOs
# ---------------------------------------------------------------------------

@dataclass
class SearchResultDTO:
    id: str
    title: str
    subtitle: Optional[str]
    category: str               # projects | crew | clients | consultants
    href: str
    status: str
    color: Optional[str] = None  # projects only


@dataclass
class SearchResponseDTO:
    """Matches grouped by category, at most five per category."""
    query: str
    projects: List[SearchResultDTO] = field(default_factory=list)
    crew: List[SearchResultDTO] = field(default_factory=list)
    clients: List[SearchResultDTO] = field(default_factory=list)
    consultants: List[SearchResultDTO] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.projects) + len(self.crew) + len(self.clients) + len(self.consultants)


# ===========================================================================
# DTO ASSEMBLERS
# ===========================================================================

class _Assembler:
    """Converts domain model instances into DTOs."""

    @staticmethod
    def client(c: Client) -> ClientDTO:
        return ClientDTO(
            id=str(c.id),
            name=c.name,
            contact_name=c.contact_name,
            contact_email=c.contact_email,
            contact_phone=c.contact_phone,
            address=c.address,
            notes=c.notes,
            status=c.status.value,
            created_at=_fmt(c.created_at),
            updated_at=_fmt(c.updated_at),
        )

    @staticmethod
    def consultant(c: Consultant) -> ConsultantDTO:
        return ConsultantDTO(
            id=str(c.id),
            full_name=c.full_name,
            email=c.email,
            phone=c.phone,
            role=c.role,
            notes=c.notes,
            status=c.status.value,
            created_at=_fmt(c.created_at),
            updated_at=_fmt(c.updated_at),
        )

    @staticmethod
    def crew_role(r: CrewRole) -> CrewRoleDTO:
        return CrewRoleDTO(id=str(r.id), name=r.name, display_order=r.display_order)

    @staticmethod
    def crew_member(c: CrewMember) -> CrewMemberDTO:
        return CrewMemberDTO(
            id=str(c.id),
            full_name=c.full_name,
            role=c.role,
            email=c.email,
            phone=c.phone,
            nationality=c.nationality,
            flag_state=c.flag_state,
            home_airport=c.home_airport,
            company=c.company,
            status=c.status.value,
            created_at=_fmt(c.created_at),
            updated_at=_fmt(c.updated_at),
        )

    @staticmethod
    def project(p: Project) -> ProjectDTO:
        return ProjectDTO(
            id=str(p.id),
            name=p.name,
            type=p.type,
            status=p.status.value,
            start_date=_fmt_date(p.start_date),
            end_date=_fmt_date(p.end_date),
            color=p.color,
            notes=p.notes,
            client_id=_id(p.client_id),
            consultant_id=_id(p.consultant_id),
            created_at=_fmt(p.created_at),
            updated_at=_fmt(p.updated_at),
        )

    @staticmethod
    def assignment(a: Assignment, today: Optional[date] = None) -> AssignmentDTO:
        return AssignmentDTO(
            id=str(a.id),
            crew_member_id=str(a.crew_member_id),
            project_id=_id(a.project_id),
            start_date=_fmt_date(a.start_date),
            end_date=_fmt_date(a.end_date),
            role_on_project=a.role_on_project,
            assignment_type=a.assignment_type.value,
            training_description=a.training_description,
            urgency=_scheduling_svc.classify_assignment(a.end_date, today or _today()),
            created_at=_fmt(a.created_at),
            updated_at=_fmt(a.updated_at),
        )

    @staticmethod
    def conflict(a: Assignment, project: Optional[Project]) -> ConflictDTO:
        return ConflictDTO(
            assignment_id=str(a.id),
            crew_member_id=str(a.crew_member_id),
            start_date=_fmt_date(a.start_date),
            end_date=_fmt_date(a.end_date),
            project_id=_id(a.project_id),
            project_name=project.name if project else None,
            training_description=a.training_description,
        )

    @staticmethod
    def metrics(m: DashboardMetrics) -> DashboardMetricsDTO:
        return DashboardMetricsDTO(
            active_projects=m.active_projects,
            available_crew=m.available_crew,
            crew_on_projects=m.crew_on_projects,
            upcoming_departures=m.upcoming_departures,
            projects_needing_crew=m.projects_needing_crew,
        )

    @staticmethod
    def audit_entry(e: AuditLogEntry) -> AuditLogEntryDTO:
        return AuditLogEntryDTO(
            id=str(e.id),
            table_name=e.table_name,
            record_id=e.record_id,
            action=e.action.value,
            changed_fields=list(e.changed_fields) if e.changed_fields is not None else None,
            old_values=copy.deepcopy(e.old_values),
            new_values=copy.deepcopy(e.new_values),
            user_id=e.user_id,
            user_email=e.user_email,
            created_at=_fmt(e.created_at),
        )

    @staticmethod
    def project_hit(p: Project) -> SearchResultDTO:
        return SearchResultDTO(
            id=str(p.id),
            title=p.name,
            subtitle=_search_svc.format_project_type(p.type),
            category="projects",
            href=f"/projects/{p.id}",
            status=p.status.value,
            color=p.color,
        )

    @staticmethod
    def crew_hit(c: CrewMember) -> SearchResultDTO:
        return SearchResultDTO(
            id=str(c.id),
            title=c.full_name,
            subtitle=c.role,
            category="crew",
            href=f"/crew/{c.id}",
            status=c.status.value,
        )

    @staticmethod
    def client_hit(c: Client) -> SearchResultDTO:
        return SearchResultDTO(
            id=str(c.id),
            title=c.name,
            subtitle=c.contact_name,
            category="clients",
            href=f"/clients/{c.id}",
            status=c.status.value,
        )

    @staticmethod
    def consultant_hit(c: Consultant) -> SearchResultDTO:
        return SearchResultDTO(
            id=str(c.id),
            title=c.full_name,
            subtitle=c.role,
            category="consultants",
            href=f"/consultants/{c.id}",
            status=c.status.value,
        )


# ===========================================================================
# REPOSITORY INTERFACES
# ===========================================================================

class AbstractClientRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, client_id: uuid.UUID) -> Optional[Client]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Client]: ...
    @abc.abstractmethod
    def save(self, client: Client) -> None: ...
    @abc.abstractmethod
    def delete(self, client_id: uuid.UUID) -> None: ...


class AbstractConsultantRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, consultant_id: uuid.UUID) -> Optional[Consultant]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Consultant]: ...
    @abc.abstractmethod
    def save(self, consultant: Consultant) -> None: ...
    @abc.abstractmethod
    def delete(self, consultant_id: uuid.UUID) -> None: ...


class AbstractCrewRoleRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, role_id: uuid.UUID) -> Optional[CrewRole]: ...
    @abc.abstractmethod
    def list_all(self) -> List[CrewRole]: ...
    @abc.abstractmethod
    def save(self, role: CrewRole) -> None: ...
    @abc.abstractmethod
    def delete(self, role_id: uuid.UUID) -> None: ...


class AbstractCrewMemberRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, crew_id: uuid.UUID) -> Optional[CrewMember]: ...
    @abc.abstractmethod
    def list_all(self) -> List[CrewMember]: ...
    @abc.abstractmethod
    def save(self, crew: CrewMember) -> None: ...
    @abc.abstractmethod
    def delete(self, crew_id: uuid.UUID) -> None: ...


class AbstractProjectRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, project_id: uuid.UUID) -> Optional[Project]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Project]: ...
    @abc.abstractmethod
    def save(self, project: Project) -> None: ...
    @abc.abstractmethod
    def delete(self, project_id: uuid.UUID) -> None: ...


class AbstractAssignmentRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, assignment_id: uuid.UUID) -> Optional[Assignment]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Assignment]: ...
    @abc.abstractmethod
    def list_for_crew_member(self, crew_id: uuid.UUID) -> List[Assignment]: ...
    @abc.abstractmethod
    def list_for_project(self, project_id: uuid.UUID) -> List[Assignment]: ...
    @abc.abstractmethod
    def save(self, assignment: Assignment) -> None: ...
    @abc.abstractmethod
    def delete(self, assignment_id: uuid.UUID) -> None: ...


class AbstractAuditLogRepository(abc.ABC):
    """
    Append-only store of AuditLogEntry records.  There is deliberately no
    update or delete operation.
    """
    @abc.abstractmethod
    def append(self, entry: AuditLogEntry) -> None: ...
    @abc.abstractmethod
    def list_matching(
        self,
        table_name: Optional[str] = None,
        action: Optional[AuditAction] = None,
        user_id: Optional[str] = None,
    ) -> List[AuditLogEntry]: ...
    @abc.abstractmethod
    def list_for_record(self, table_name: str, record_id: str) -> List[AuditLogEntry]: ...


# ===========================================================================
# UNIT OF WORK
# ===========================================================================

class AbstractUnitOfWork(abc.ABC):
    """
    Groups all repositories under a single transactional boundary.
    Use as a context manager:

        with uow:
            uow.projects.save(project)
            uow.commit()

    `audit_logs` is written after commit and is not part of the entity
    transaction.
    """
    clients: AbstractClientRepository
    consultants: AbstractConsultantRepository
    crew_roles: AbstractCrewRoleRepository
    crew_members: AbstractCrewMemberRepository
    projects: AbstractProjectRepository
    assignments: AbstractAssignmentRepository
    audit_logs: AbstractAuditLogRepository

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        else:
            self.commit()

    @abc.abstractmethod
    def commit(self) -> None: ...

    @abc.abstractmethod
    def rollback(self) -> None: ...


# ===========================================================================
# SERVICE SINGLETONS (shared across use cases)
# ===========================================================================

_client_svc = ClientService()
_consultant_svc = ConsultantService()
_crew_svc = CrewService()
_project_svc = ProjectService()
_scheduling_svc = SchedulingService()
_search_svc = SearchService()
_metrics_svc = MetricsService(
    min_crew_per_project=settings.min_crew_per_project,
    departure_window_days=settings.departure_window_days,
)
_audit_svc = AuditService()


# ===========================================================================
# AUDIT TRAIL
# ===========================================================================

class AuditRecorder:
    """
    Best-effort writer for the audit log.

    Call only after the primary mutation has been committed.  Every failure
    (building the entry or writing it) is logged and swallowed, so the
    caller's operation always succeeds regardless of the audit outcome.
    A missing UserContext skips the write.
    """

    def __init__(self, repository: AbstractAuditLogRepository):
        self._repo = repository

    def log_create(
        self, table: str, record_id: Any, new_values: Any, user: Optional[UserContext]
    ) -> Optional[AuditLogEntry]:
        return self._record(
            AuditAction.CREATE, table, record_id, user,
            lambda u: _audit_svc.build_create(table, record_id, new_values, u),
        )

    def log_update(
        self,
        table: str,
        record_id: Any,
        old_values: Any,
        new_values: Any,
        user: Optional[UserContext],
    ) -> Optional[AuditLogEntry]:
        return self._record(
            AuditAction.UPDATE, table, record_id, user,
            lambda u: _audit_svc.build_update(table, record_id, old_values, new_values, u),
        )

    def log_delete(
        self, table: str, record_id: Any, old_values: Any, user: Optional[UserContext]
    ) -> Optional[AuditLogEntry]:
        return self._record(
            AuditAction.DELETE, table, record_id, user,
            lambda u: _audit_svc.build_delete(table, record_id, old_values, u),
        )

    def _record(self, action, table, record_id, user, build) -> Optional[AuditLogEntry]:
        if user is None:
            logger.warning(
                "No user context; skipping %s audit entry for %s/%s",
                action.value, table, record_id,
            )
            return None
        try:
            entry = build(user)
            self._repo.append(entry)
        except Exception:
            logger.exception(
                "Failed to write %s audit entry for %s/%s", action.value, table, record_id
            )
            return None
        return entry


class AuditQuery:
    """
    Read side of the audit trail.  Results are newest first.  A read
    failure is logged and returned as an empty result with `error` set,
    never raised.
    """

    def __init__(self, repository: AbstractAuditLogRepository):
        self._repo = repository

    def get_audit_logs(
        self,
        table_name: Optional[str] = None,
        action: Optional[AuditAction] = None,
        user_id: Optional[str] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> AuditLogPageDTO:
        try:
            matching = self._repo.list_matching(
                table_name=table_name, action=action, user_id=user_id
            )
            page, count = _audit_svc.paginate(matching, limit=limit, offset=offset)
        except Exception as exc:
            logger.exception("Failed to fetch audit logs")
            return AuditLogPageDTO(
                data=[], count=0, limit=limit, offset=offset, error=str(exc) or type(exc).__name__
            )
        return AuditLogPageDTO(
            data=[_Assembler.audit_entry(e) for e in page],
            count=count,
            limit=limit,
            offset=offset,
        )

    def get_audit_logs_for_record(self, table_name: str, record_id: str) -> RecordHistoryDTO:
        try:
            entries = _audit_svc.newest_first(
                self._repo.list_for_record(table_name, str(record_id))
            )
        except Exception as exc:
            logger.exception("Failed to fetch audit logs for %s/%s", table_name, record_id)
            return RecordHistoryDTO(
                table_name=table_name,
                record_id=str(record_id),
                data=[],
                error=str(exc) or type(exc).__name__,
            )
        return RecordHistoryDTO(
            table_name=table_name,
            record_id=str(record_id),
            data=[_Assembler.audit_entry(e) for e in entries],
        )


# ===========================================================================
# USE CASE HELPERS
# ===========================================================================

def _get_or_raise(repo, entity_id: uuid.UUID, label: str):
    entity = repo.get(entity_id)
    if entity is None:
        raise NotFoundError(f"{label} {entity_id} not found.")
    return entity


def _projects_by_id(uow: AbstractUnitOfWork) -> Dict[uuid.UUID, Project]:
    return {p.id: p for p in uow.projects.list_all()}


def _conflict_dtos(
    conflicts: Sequence[Assignment], projects_by_id: Dict[uuid.UUID, Project]
) -> List[ConflictDTO]:
    return [
        _Assembler.conflict(a, projects_by_id.get(a.project_id) if a.project_id else None)
        for a in conflicts
    ]


def _check_conflicts(
    uow: AbstractUnitOfWork, candidate: ConflictCandidate
) -> ConflictCheckDTO:
    existing = uow.assignments.list_for_crew_member(candidate.crew_member_id)
    conflicts = _scheduling_svc.find_conflicts(candidate, existing)
    if not conflicts:
        return ConflictCheckDTO(has_conflict=False, message=None, conflicts=[])
    projects = _projects_by_id(uow)
    return ConflictCheckDTO(
        has_conflict=True,
        message=_scheduling_svc.describe_conflicts(conflicts, projects),
        conflicts=_conflict_dtos(conflicts, projects),
    )


# ===========================================================================
# USE CASES — CLIENTS
# ===========================================================================

@dataclass
class CreateClientCommand:
    name: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    user: Optional[UserContext] = None


class CreateClientUseCase:
    def execute(self, cmd: CreateClientCommand, uow: AbstractUnitOfWork) -> ClientDTO:
        with uow:
            client = _client_svc.create_client(
                name=cmd.name,
                contact_name=cmd.contact_name,
                contact_email=cmd.contact_email,
                contact_phone=cmd.contact_phone,
                address=cmd.address,
                notes=cmd.notes,
            )
            uow.clients.save(client)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_create(
            AuditTable.CLIENTS.value, client.id, client, cmd.user
        )
        return _Assembler.client(client)


@dataclass
class UpdateClientCommand:
    client_id: uuid.UUID
    name: str
    status: ClientStatus
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    user: Optional[UserContext] = None


class UpdateClientUseCase:
    def execute(self, cmd: UpdateClientCommand, uow: AbstractUnitOfWork) -> ClientDTO:
        with uow:
            client = _get_or_raise(uow.clients, cmd.client_id, "Client")
            before = _audit_svc.snapshot(client)
            client = _client_svc.update_client(
                client,
                name=cmd.name,
                status=cmd.status,
                contact_name=cmd.contact_name,
                contact_email=cmd.contact_email,
                contact_phone=cmd.contact_phone,
                address=cmd.address,
                notes=cmd.notes,
            )
            uow.clients.save(client)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.CLIENTS.value, client.id, before, client, cmd.user
        )
        return _Assembler.client(client)


class DeleteClientUseCase:
    def execute(
        self, client_id: uuid.UUID, uow: AbstractUnitOfWork, user: Optional[UserContext] = None
    ) -> None:
        with uow:
            client = _get_or_raise(uow.clients, client_id, "Client")
            uow.clients.delete(client_id)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_delete(
            AuditTable.CLIENTS.value, client_id, client, user
        )


class GetClientUseCase:
    def execute(self, client_id: uuid.UUID, uow: AbstractUnitOfWork) -> ClientDTO:
        with uow:
            return _Assembler.client(_get_or_raise(uow.clients, client_id, "Client"))


class ListClientsUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[ClientDTO]:
        with uow:
            clients = sorted(uow.clients.list_all(), key=lambda c: c.name.casefold())
            return [_Assembler.client(c) for c in clients]


# ===========================================================================
# USE CASES — CONSULTANTS
# ===========================================================================

@dataclass
class CreateConsultantCommand:
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    user: Optional[UserContext] = None


class CreateConsultantUseCase:
    def execute(self, cmd: CreateConsultantCommand, uow: AbstractUnitOfWork) -> ConsultantDTO:
        with uow:
            consultant = _consultant_svc.create_consultant(
                full_name=cmd.full_name,
                email=cmd.email,
                phone=cmd.phone,
                role=cmd.role,
                notes=cmd.notes,
            )
            uow.consultants.save(consultant)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_create(
            AuditTable.CONSULTANTS.value, consultant.id, consultant, cmd.user
        )
        return _Assembler.consultant(consultant)


@dataclass
class UpdateConsultantCommand:
    consultant_id: uuid.UUID
    full_name: str
    status: ConsultantStatus
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    user: Optional[UserContext] = None


class UpdateConsultantUseCase:
    def execute(self, cmd: UpdateConsultantCommand, uow: AbstractUnitOfWork) -> ConsultantDTO:
        with uow:
            consultant = _get_or_raise(uow.consultants, cmd.consultant_id, "Consultant")
            before = _audit_svc.snapshot(consultant)
            consultant = _consultant_svc.update_consultant(
                consultant,
                full_name=cmd.full_name,
                status=cmd.status,
                email=cmd.email,
                phone=cmd.phone,
                role=cmd.role,
                notes=cmd.notes,
            )
            uow.consultants.save(consultant)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.CONSULTANTS.value, consultant.id, before, consultant, cmd.user
        )
        return _Assembler.consultant(consultant)


class DeleteConsultantUseCase:
    def execute(
        self, consultant_id: uuid.UUID, uow: AbstractUnitOfWork, user: Optional[UserContext] = None
    ) -> None:
        with uow:
            consultant = _get_or_raise(uow.consultants, consultant_id, "Consultant")
            uow.consultants.delete(consultant_id)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_delete(
            AuditTable.CONSULTANTS.value, consultant_id, consultant, user
        )


class GetConsultantUseCase:
    def execute(self, consultant_id: uuid.UUID, uow: AbstractUnitOfWork) -> ConsultantDTO:
        with uow:
            return _Assembler.consultant(
                _get_or_raise(uow.consultants, consultant_id, "Consultant")
            )


class ListConsultantsUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[ConsultantDTO]:
        with uow:
            consultants = sorted(
                uow.consultants.list_all(), key=lambda c: c.full_name.casefold()
            )
            return [_Assembler.consultant(c) for c in consultants]


# ===========================================================================
# USE CASES — CREW ROLES
# ===========================================================================

@dataclass
class CreateCrewRoleCommand:
    name: str
    user: Optional[UserContext] = None


class CreateCrewRoleUseCase:
    def execute(self, cmd: CreateCrewRoleCommand, uow: AbstractUnitOfWork) -> CrewRoleDTO:
        with uow:
            try:
                role = _crew_svc.create_role(cmd.name, uow.crew_roles.list_all())
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.crew_roles.save(role)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_create(
            AuditTable.CREW_ROLES.value, role.id, role, cmd.user
        )
        return _Assembler.crew_role(role)


@dataclass
class RenameCrewRoleCommand:
    role_id: uuid.UUID
    name: str
    user: Optional[UserContext] = None


class RenameCrewRoleUseCase:
    def execute(self, cmd: RenameCrewRoleCommand, uow: AbstractUnitOfWork) -> CrewRoleDTO:
        with uow:
            role = _get_or_raise(uow.crew_roles, cmd.role_id, "CrewRole")
            before = _audit_svc.snapshot(role)
            try:
                role = _crew_svc.rename_role(role, cmd.name, uow.crew_roles.list_all())
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.crew_roles.save(role)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.CREW_ROLES.value, role.id, before, role, cmd.user
        )
        return _Assembler.crew_role(role)


class DeleteCrewRoleUseCase:
    def execute(
        self, role_id: uuid.UUID, uow: AbstractUnitOfWork, user: Optional[UserContext] = None
    ) -> None:
        with uow:
            role = _get_or_raise(uow.crew_roles, role_id, "CrewRole")
            try:
                _crew_svc.ensure_role_unused(role, uow.crew_members.list_all())
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.crew_roles.delete(role_id)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_delete(
            AuditTable.CREW_ROLES.value, role_id, role, user
        )


@dataclass
class ReorderCrewRolesCommand:
    ordered_role_ids: List[uuid.UUID]
    user: Optional[UserContext] = None


class ReorderCrewRolesUseCase:
    """Each role whose position moved gets its own UPDATE audit entry."""

    def execute(self, cmd: ReorderCrewRolesCommand, uow: AbstractUnitOfWork) -> List[CrewRoleDTO]:
        with uow:
            roles = uow.crew_roles.list_all()
            before = {r.id: _audit_svc.snapshot(r) for r in roles}
            old_order = {r.id: r.display_order for r in roles}
            roles = _crew_svc.reorder_roles(roles, cmd.ordered_role_ids)
            moved = [r for r in roles if r.display_order != old_order[r.id]]
            for role in moved:
                uow.crew_roles.save(role)
            uow.commit()
        recorder = AuditRecorder(uow.audit_logs)
        for role in moved:
            recorder.log_update(
                AuditTable.CREW_ROLES.value, role.id, before[role.id], role, cmd.user
            )
        return [_Assembler.crew_role(r) for r in roles]


class ListCrewRolesUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[CrewRoleDTO]:
        with uow:
            roles = sorted(uow.crew_roles.list_all(), key=lambda r: r.display_order)
            return [_Assembler.crew_role(r) for r in roles]


# ===========================================================================
# USE CASES — CREW MEMBERS
# ===========================================================================

@dataclass
class CreateCrewMemberCommand:
    full_name: str
    role: str
    email: Optional[str] = None
    phone: Optional[str] = None
    nationality: Optional[str] = None
    flag_state: Optional[str] = None
    home_airport: Optional[str] = None
    company: Optional[str] = None
    user: Optional[UserContext] = None


class CreateCrewMemberUseCase:
    def execute(self, cmd: CreateCrewMemberCommand, uow: AbstractUnitOfWork) -> CrewMemberDTO:
        with uow:
            crew = _crew_svc.create_crew_member(
                full_name=cmd.full_name,
                role=cmd.role,
                email=cmd.email,
                phone=cmd.phone,
                nationality=cmd.nationality,
                flag_state=cmd.flag_state,
                home_airport=cmd.home_airport,
                company=cmd.company,
            )
            uow.crew_members.save(crew)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_create(
            AuditTable.CREW_MEMBERS.value, crew.id, crew, cmd.user
        )
        return _Assembler.crew_member(crew)


@dataclass
class UpdateCrewMemberCommand:
    crew_id: uuid.UUID
    full_name: str
    role: str
    status: CrewStatus
    email: Optional[str] = None
    phone: Optional[str] = None
    nationality: Optional[str] = None
    flag_state: Optional[str] = None
    home_airport: Optional[str] = None
    company: Optional[str] = None
    user: Optional[UserContext] = None


class UpdateCrewMemberUseCase:
    def execute(self, cmd: UpdateCrewMemberCommand, uow: AbstractUnitOfWork) -> CrewMemberDTO:
        with uow:
            crew = _get_or_raise(uow.crew_members, cmd.crew_id, "CrewMember")
            before = _audit_svc.snapshot(crew)
            crew = _crew_svc.update_crew_member(
                crew,
                full_name=cmd.full_name,
                role=cmd.role,
                status=cmd.status,
                email=cmd.email,
                phone=cmd.phone,
                nationality=cmd.nationality,
                flag_state=cmd.flag_state,
                home_airport=cmd.home_airport,
                company=cmd.company,
            )
            uow.crew_members.save(crew)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.CREW_MEMBERS.value, crew.id, before, crew, cmd.user
        )
        return _Assembler.crew_member(crew)


@dataclass
class UpdateCrewStatusCommand:
    crew_id: uuid.UUID
    status: CrewStatus
    user: Optional[UserContext] = None


class UpdateCrewStatusUseCase:
    def execute(self, cmd: UpdateCrewStatusCommand, uow: AbstractUnitOfWork) -> CrewMemberDTO:
        with uow:
            crew = _get_or_raise(uow.crew_members, cmd.crew_id, "CrewMember")
            before = _audit_svc.snapshot(crew)
            crew = _crew_svc.change_status(crew, cmd.status)
            uow.crew_members.save(crew)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.CREW_MEMBERS.value, crew.id, before, crew, cmd.user
        )
        return _Assembler.crew_member(crew)


class DeleteCrewMemberUseCase:
    """
    Assignments referencing the crew member are left in place; they keep
    the original id as a dangling reference.
    """

    def execute(
        self, crew_id: uuid.UUID, uow: AbstractUnitOfWork, user: Optional[UserContext] = None
    ) -> None:
        with uow:
            crew = _get_or_raise(uow.crew_members, crew_id, "CrewMember")
            uow.crew_members.delete(crew_id)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_delete(
            AuditTable.CREW_MEMBERS.value, crew_id, crew, user
        )


class GetCrewMemberUseCase:
    def execute(self, crew_id: uuid.UUID, uow: AbstractUnitOfWork) -> CrewMemberDTO:
        with uow:
            return _Assembler.crew_member(
                _get_or_raise(uow.crew_members, crew_id, "CrewMember")
            )


class ListCrewMembersUseCase:
    def execute(
        self, uow: AbstractUnitOfWork, status: Optional[CrewStatus] = None
    ) -> List[CrewMemberDTO]:
        with uow:
            crew = [
                c for c in uow.crew_members.list_all()
                if status is None or c.status == status
            ]
            crew.sort(key=lambda c: c.full_name.casefold())
            return [_Assembler.crew_member(c) for c in crew]


# ===========================================================================
# USE CASES — PROJECTS
# ===========================================================================

@dataclass
class CreateProjectCommand:
    name: str
    type: str
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    consultant_id: Optional[uuid.UUID] = None
    user: Optional[UserContext] = None


def _ensure_project_links(
    uow: AbstractUnitOfWork,
    client_id: Optional[uuid.UUID],
    consultant_id: Optional[uuid.UUID],
) -> None:
    if client_id is not None:
        _get_or_raise(uow.clients, client_id, "Client")
    if consultant_id is not None:
        _get_or_raise(uow.consultants, consultant_id, "Consultant")


class CreateProjectUseCase:
    def execute(self, cmd: CreateProjectCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            _ensure_project_links(uow, cmd.client_id, cmd.consultant_id)
            project = _project_svc.create_project(
                name=cmd.name,
                type=cmd.type,
                status=cmd.status,
                start_date=cmd.start_date,
                end_date=cmd.end_date,
                color=cmd.color,
                notes=cmd.notes,
                client_id=cmd.client_id,
                consultant_id=cmd.consultant_id,
            )
            uow.projects.save(project)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_create(
            AuditTable.PROJECTS.value, project.id, project, cmd.user
        )
        return _Assembler.project(project)


@dataclass
class UpdateProjectCommand:
    project_id: uuid.UUID
    name: str
    type: str
    status: ProjectStatus
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    consultant_id: Optional[uuid.UUID] = None
    user: Optional[UserContext] = None


class UpdateProjectUseCase:
    def execute(self, cmd: UpdateProjectCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            project = _get_or_raise(uow.projects, cmd.project_id, "Project")
            _ensure_project_links(uow, cmd.client_id, cmd.consultant_id)
            before = _audit_svc.snapshot(project)
            project = _project_svc.update_project(
                project,
                name=cmd.name,
                type=cmd.type,
                status=cmd.status,
                start_date=cmd.start_date,
                end_date=cmd.end_date,
                color=cmd.color,
                notes=cmd.notes,
                client_id=cmd.client_id,
                consultant_id=cmd.consultant_id,
            )
            uow.projects.save(project)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.PROJECTS.value, project.id, before, project, cmd.user
        )
        return _Assembler.project(project)


@dataclass
class UpdateProjectStatusCommand:
    project_id: uuid.UUID
    status: ProjectStatus
    user: Optional[UserContext] = None


class UpdateProjectStatusUseCase:
    def execute(self, cmd: UpdateProjectStatusCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            project = _get_or_raise(uow.projects, cmd.project_id, "Project")
            before = _audit_svc.snapshot(project)
            project = _project_svc.change_status(project, cmd.status)
            uow.projects.save(project)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.PROJECTS.value, project.id, before, project, cmd.user
        )
        return _Assembler.project(project)


class DeleteProjectUseCase:
    def execute(
        self, project_id: uuid.UUID, uow: AbstractUnitOfWork, user: Optional[UserContext] = None
    ) -> None:
        with uow:
            project = _get_or_raise(uow.projects, project_id, "Project")
            uow.projects.delete(project_id)
            uow.commit()
        AuditRecorder(uow.audit_logs).log_delete(
            AuditTable.PROJECTS.value, project_id, project, user
        )


class GetProjectUseCase:
    def execute(self, project_id: uuid.UUID, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            return _Assembler.project(_get_or_raise(uow.projects, project_id, "Project"))


class ListProjectsUseCase:
    def execute(
        self, uow: AbstractUnitOfWork, status: Optional[ProjectStatus] = None
    ) -> List[ProjectDTO]:
        with uow:
            projects = [
                p for p in uow.projects.list_all()
                if status is None or p.status == status
            ]
            projects.sort(key=lambda p: p.name.casefold())
            return [_Assembler.project(p) for p in projects]


# ===========================================================================
# USE CASES — ASSIGNMENTS
# ===========================================================================

@dataclass
class CheckAssignmentConflictsCommand:
    crew_member_id: uuid.UUID
    start_date: date
    end_date: date
    exclude_assignment_id: Optional[uuid.UUID] = None


class CheckAssignmentConflictsUseCase:
    """Read-only double-booking check used for live feedback while planning."""

    def execute(
        self, cmd: CheckAssignmentConflictsCommand, uow: AbstractUnitOfWork
    ) -> ConflictCheckDTO:
        with uow:
            return _check_conflicts(
                uow,
                ConflictCandidate(
                    crew_member_id=cmd.crew_member_id,
                    start_date=cmd.start_date,
                    end_date=cmd.end_date,
                    exclude_assignment_id=cmd.exclude_assignment_id,
                ),
            )


@dataclass
class CreateAssignmentCommand:
    crew_member_id: uuid.UUID
    start_date: date
    end_date: date
    project_id: Optional[uuid.UUID] = None
    role_on_project: Optional[str] = None
    assignment_type: AssignmentType = AssignmentType.VESSEL
    training_description: Optional[str] = None
    force: bool = False
    user: Optional[UserContext] = None


class CreateAssignmentUseCase:
    """
    Book a crew member.

    Overlapping bookings raise ConflictError unless `force` is set, in which
    case the booking is saved anyway and the overlap is only logged.  When
    the booking has already started the crew member is moved to ON_PROJECT.
    """

    def execute(self, cmd: CreateAssignmentCommand, uow: AbstractUnitOfWork) -> AssignmentDTO:
        with uow:
            crew = _get_or_raise(uow.crew_members, cmd.crew_member_id, "CrewMember")
            if cmd.assignment_type == AssignmentType.VESSEL and cmd.project_id is not None:
                _get_or_raise(uow.projects, cmd.project_id, "Project")

            assignment = _scheduling_svc.create_assignment(
                crew_member_id=cmd.crew_member_id,
                project_id=cmd.project_id,
                start_date=cmd.start_date,
                end_date=cmd.end_date,
                role_on_project=cmd.role_on_project,
                assignment_type=cmd.assignment_type,
                training_description=cmd.training_description,
            )

            check = _check_conflicts(
                uow,
                ConflictCandidate(
                    crew_member_id=assignment.crew_member_id,
                    start_date=assignment.start_date,
                    end_date=assignment.end_date,
                ),
            )
            if check.has_conflict:
                if not cmd.force:
                    raise ConflictError(check.message, check.conflicts)
                logger.warning(
                    "Forcing overlapping assignment for crew %s: %s",
                    crew.id, check.message,
                )

            crew_before = _audit_svc.snapshot(crew)
            uow.assignments.save(assignment)
            crew = _scheduling_svc.crew_status_after_assign(crew, assignment, _today())
            crew_changed = crew.status.value != crew_before["status"]
            if crew_changed:
                uow.crew_members.save(crew)
            uow.commit()

        logger.info("Assignment %s created for crew %s", assignment.id, crew.id)
        recorder = AuditRecorder(uow.audit_logs)
        recorder.log_create(
            AuditTable.ASSIGNMENTS.value, assignment.id, assignment, cmd.user
        )
        if crew_changed:
            recorder.log_update(
                AuditTable.CREW_MEMBERS.value, crew.id, crew_before, crew, cmd.user
            )
        return _Assembler.assignment(assignment)


@dataclass
class UpdateAssignmentCommand:
    assignment_id: uuid.UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    role_on_project: Optional[str] = None
    training_description: Optional[str] = None
    force: bool = False
    user: Optional[UserContext] = None


class UpdateAssignmentUseCase:
    """
    Move or relabel an existing booking.  The conflict check excludes the
    booking being edited.
    """

    def execute(self, cmd: UpdateAssignmentCommand, uow: AbstractUnitOfWork) -> AssignmentDTO:
        with uow:
            assignment = _get_or_raise(uow.assignments, cmd.assignment_id, "Assignment")
            before = _audit_svc.snapshot(assignment)

            new_start = cmd.start_date or assignment.start_date
            new_end = cmd.end_date or assignment.end_date
            _scheduling_svc.validate_interval(new_start, new_end)

            check = _check_conflicts(
                uow,
                ConflictCandidate(
                    crew_member_id=assignment.crew_member_id,
                    start_date=new_start,
                    end_date=new_end,
                    exclude_assignment_id=assignment.id,
                ),
            )
            if check.has_conflict:
                if not cmd.force:
                    raise ConflictError(check.message, check.conflicts)
                logger.warning(
                    "Forcing overlapping edit of assignment %s: %s",
                    assignment.id, check.message,
                )

            assignment = _scheduling_svc.update_assignment(
                assignment,
                start_date=cmd.start_date,
                end_date=cmd.end_date,
                role_on_project=cmd.role_on_project,
                training_description=cmd.training_description,
            )
            uow.assignments.save(assignment)
            uow.commit()

        AuditRecorder(uow.audit_logs).log_update(
            AuditTable.ASSIGNMENTS.value, assignment.id, before, assignment, cmd.user
        )
        return _Assembler.assignment(assignment)


class RemoveAssignmentUseCase:
    """
    Delete a booking.  A crew member left with no booking running today is
    moved back to AVAILABLE.
    """

    def execute(
        self,
        assignment_id: uuid.UUID,
        uow: AbstractUnitOfWork,
        user: Optional[UserContext] = None,
    ) -> None:
        crew = None
        crew_before: Dict[str, Any] = {}
        with uow:
            assignment = _get_or_raise(uow.assignments, assignment_id, "Assignment")
            uow.assignments.delete(assignment_id)

            crew = uow.crew_members.get(assignment.crew_member_id)
            if crew is not None:
                crew_before = _audit_svc.snapshot(crew)
                remaining = uow.assignments.list_for_crew_member(crew.id)
                crew = _scheduling_svc.crew_status_after_removal(crew, remaining, _today())
                if crew.status.value != crew_before["status"]:
                    uow.crew_members.save(crew)
                else:
                    crew = None
            uow.commit()

        logger.info("Assignment %s removed", assignment_id)
        recorder = AuditRecorder(uow.audit_logs)
        recorder.log_delete(
            AuditTable.ASSIGNMENTS.value, assignment_id, assignment, user
        )
        if crew is not None:
            recorder.log_update(
                AuditTable.CREW_MEMBERS.value, crew.id, crew_before, crew, user
            )


class GetAssignmentUseCase:
    def execute(self, assignment_id: uuid.UUID, uow: AbstractUnitOfWork) -> AssignmentDTO:
        with uow:
            return _Assembler.assignment(
                _get_or_raise(uow.assignments, assignment_id, "Assignment")
            )


class ListAssignmentsUseCase:
    def execute(
        self,
        uow: AbstractUnitOfWork,
        crew_member_id: Optional[uuid.UUID] = None,
        project_id: Optional[uuid.UUID] = None,
    ) -> List[AssignmentDTO]:
        with uow:
            if crew_member_id is not None:
                assignments = uow.assignments.list_for_crew_member(crew_member_id)
            elif project_id is not None:
                assignments = uow.assignments.list_for_project(project_id)
            else:
                assignments = uow.assignments.list_all()
            if project_id is not None:
                assignments = [a for a in assignments if a.project_id == project_id]
            assignments = sorted(assignments, key=lambda a: (a.start_date, a.end_date))
            today = _today()
            return [_Assembler.assignment(a, today) for a in assignments]


# ===========================================================================
# USE CASES — DASHBOARD & AUDIT
# ===========================================================================

class GetDashboardMetricsUseCase:
    """Fetch fresh snapshots and compute the five dashboard counters."""

    def execute(
        self, uow: AbstractUnitOfWork, now: Optional[datetime] = None
    ) -> DashboardMetricsDTO:
        with uow:
            metrics = _metrics_svc.calculate_dashboard_metrics(
                projects=uow.projects.list_all(),
                crew=uow.crew_members.list_all(),
                assignments=uow.assignments.list_all(),
                now=now,
            )
            return _Assembler.metrics(metrics)


class GlobalSearchUseCase:
    """
    Search projects (name), crew (name, role, email), clients (name,
    contact name) and consultants (name, role, email) in one call.
    """

    def execute(self, query: Optional[str], uow: AbstractUnitOfWork) -> SearchResponseDTO:
        q = _search_svc.normalise_query(query)
        if not _search_svc.is_searchable(q):
            return SearchResponseDTO(query=q)
        with uow:
            return SearchResponseDTO(
                query=q,
                projects=[
                    _Assembler.project_hit(p)
                    for p in _search_svc.filter(uow.projects.list_all(), q, "name")
                ],
                crew=[
                    _Assembler.crew_hit(c)
                    for c in _search_svc.filter(
                        uow.crew_members.list_all(), q, "full_name", "role", "email"
                    )
                ],
                clients=[
                    _Assembler.client_hit(c)
                    for c in _search_svc.filter(
                        uow.clients.list_all(), q, "name", "contact_name"
                    )
                ],
                consultants=[
                    _Assembler.consultant_hit(c)
                    for c in _search_svc.filter(
                        uow.consultants.list_all(), q, "full_name", "role", "email"
                    )
                ],
            )


@dataclass
class ListAuditLogsQuery:
    table_name: Optional[str] = None
    action: Optional[AuditAction] = None
    user_id: Optional[str] = None
    limit: Optional[int] = 50
    offset: int = 0


class ListAuditLogsUseCase:
    def execute(self, query: ListAuditLogsQuery, uow: AbstractUnitOfWork) -> AuditLogPageDTO:
        with uow:
            return AuditQuery(uow.audit_logs).get_audit_logs(
                table_name=query.table_name,
                action=query.action,
                user_id=query.user_id,
                limit=query.limit,
                offset=query.offset,
            )


class GetRecordHistoryUseCase:
    def execute(
        self, table_name: str, record_id: str, uow: AbstractUnitOfWork
    ) -> RecordHistoryDTO:
        with uow:
            return AuditQuery(uow.audit_logs).get_audit_logs_for_record(table_name, record_id)
