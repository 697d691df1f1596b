"""
service.py

Service layer for the Crew Planning & Assignment Scheduling System.

Responsibilities
----------------
Each service class encapsulates all business logic for its domain.
Services receive and return domain model instances (from model.py).
No persistence is handled here — callers are responsible for storing
and retrieving models via a repository layer of their choosing.

Services
--------
- ClientService       – Client creation and field updates
- ConsultantService   – Consultant creation and field updates
- CrewService         – Crew members, crew roles and role ordering
- ProjectService      – Project creation, field updates and status changes
- SearchService       – Case-insensitive substring search for the
                        global search box
- SchedulingService   – Assignment building, double-booking detection,
                        crew status synchronisation
- MetricsService      – Live dashboard counters from snapshots
- AuditService        – Field-level diffs, audit entry construction,
                        ordering and pagination of history

Design notes
------------
- UTC datetimes are used throughout.
- Business rule violations raise a ValueError with a descriptive message.
- SchedulingService.find_conflicts and MetricsService are pure and never
  raise for well-formed snapshots: dates that cannot be interpreted are
  treated as "not overlapping" / "not within window".
- Methods that would normally persist data return the mutated object(s)
  so the caller can hand them to a repository.
"""

from __future__ import annotations

import dataclasses
import json
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from model import (
    Assignment,
    AssignmentType,
    AuditAction,
    AuditLogEntry,
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


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_date(value: Any) -> Optional[date]:
    """
    Interpret a snapshot value as a calendar date.

    Accepts date, datetime and ISO-8601 strings ("2024-01-10" or a full
    timestamp). Anything else, including strings with trailing garbage,
    yields None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            return None
    return None


def _encode(value: Any) -> str:
    """Canonical JSON text of a snapshot value; `1`, `1.0` and `true` differ."""
    return json.dumps(value, sort_keys=True, default=str)


def _require_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required.")
    return value.strip()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _jsonable(value: Any) -> Any:
    """Normalise a value into plain JSON types for audit snapshots."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class ConflictCandidate:
    """A proposed booking to test against a crew member's existing assignments."""
    crew_member_id: uuid.UUID
    start_date: Any
    end_date: Any
    exclude_assignment_id: Optional[uuid.UUID] = None


@dataclasses.dataclass(frozen=True)
class DashboardMetrics:
    active_projects: int = 0
    available_crew: int = 0
    crew_on_projects: int = 0
    upcoming_departures: int = 0
    projects_needing_crew: int = 0


# ---------------------------------------------------------------------------
# ClientService
# ---------------------------------------------------------------------------

class ClientService:

    def create_client(
        self,
        name: str,
        contact_name: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Client:
        """Create and return a new Client (unsaved)."""
        now = _utcnow()
        return Client(
            name=_require_text(name, "Client name"),
            contact_name=_blank_to_none(contact_name),
            contact_email=_blank_to_none(contact_email),
            contact_phone=_blank_to_none(contact_phone),
            address=_blank_to_none(address),
            notes=_blank_to_none(notes),
            status=ClientStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

    def update_client(
        self,
        client: Client,
        name: str,
        status: ClientStatus,
        contact_name: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Client:
        """Replace the editable fields of a client (full-form update)."""
        client.name = _require_text(name, "Client name")
        client.status = status
        client.contact_name = _blank_to_none(contact_name)
        client.contact_email = _blank_to_none(contact_email)
        client.contact_phone = _blank_to_none(contact_phone)
        client.address = _blank_to_none(address)
        client.notes = _blank_to_none(notes)
        client.updated_at = _utcnow()
        return client


# ---------------------------------------------------------------------------
# ConsultantService
# ---------------------------------------------------------------------------

class ConsultantService:

    def create_consultant(
        self,
        full_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        role: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Consultant:
        now = _utcnow()
        return Consultant(
            full_name=_require_text(full_name, "Full name"),
            email=_blank_to_none(email),
            phone=_blank_to_none(phone),
            role=_blank_to_none(role),
            notes=_blank_to_none(notes),
            status=ConsultantStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

    def update_consultant(
        self,
        consultant: Consultant,
        full_name: str,
        status: ConsultantStatus,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        role: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Consultant:
        consultant.full_name = _require_text(full_name, "Full name")
        consultant.status = status
        consultant.email = _blank_to_none(email)
        consultant.phone = _blank_to_none(phone)
        consultant.role = _blank_to_none(role)
        consultant.notes = _blank_to_none(notes)
        consultant.updated_at = _utcnow()
        return consultant


# ---------------------------------------------------------------------------
# CrewService
# ---------------------------------------------------------------------------

class CrewService:
    """
    Manages crew members and the configurable list of crew roles.
    """

    # --- Crew members -------------------------------------------------------

    def create_crew_member(
        self,
        full_name: str,
        role: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        nationality: Optional[str] = None,
        flag_state: Optional[str] = None,
        home_airport: Optional[str] = None,
        company: Optional[str] = None,
    ) -> CrewMember:
        """New crew members always start as AVAILABLE."""
        now = _utcnow()
        flag_state = _blank_to_none(flag_state)
        return CrewMember(
            full_name=_require_text(full_name, "Full name"),
            role=_require_text(role, "Role"),
            email=_blank_to_none(email),
            phone=_blank_to_none(phone),
            nationality=_blank_to_none(nationality),
            flag_state=flag_state.upper() if flag_state else None,
            home_airport=_blank_to_none(home_airport),
            company=_blank_to_none(company),
            status=CrewStatus.AVAILABLE,
            created_at=now,
            updated_at=now,
        )

    def update_crew_member(
        self,
        crew: CrewMember,
        full_name: str,
        role: str,
        status: CrewStatus,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        nationality: Optional[str] = None,
        flag_state: Optional[str] = None,
        home_airport: Optional[str] = None,
        company: Optional[str] = None,
    ) -> CrewMember:
        flag_state = _blank_to_none(flag_state)
        crew.full_name = _require_text(full_name, "Full name")
        crew.role = _require_text(role, "Role")
        crew.status = status
        crew.email = _blank_to_none(email)
        crew.phone = _blank_to_none(phone)
        crew.nationality = _blank_to_none(nationality)
        crew.flag_state = flag_state.upper() if flag_state else None
        crew.home_airport = _blank_to_none(home_airport)
        crew.company = _blank_to_none(company)
        crew.updated_at = _utcnow()
        return crew

    def change_status(self, crew: CrewMember, status: CrewStatus) -> CrewMember:
        crew.status = status
        crew.updated_at = _utcnow()
        return crew

    # --- Crew roles ---------------------------------------------------------

    def create_role(self, name: str, existing_roles: List[CrewRole]) -> CrewRole:
        """
        Create a role at the end of the display order.
        Role names are unique, compared case-insensitively.
        """
        name = _require_text(name, "Role name")
        self._ensure_unique_name(name, existing_roles)
        next_order = max((r.display_order for r in existing_roles), default=-1) + 1
        return CrewRole(name=name, display_order=next_order, created_at=_utcnow())

    def rename_role(
        self, role: CrewRole, name: str, existing_roles: List[CrewRole]
    ) -> CrewRole:
        name = _require_text(name, "Role name")
        self._ensure_unique_name(
            name, [r for r in existing_roles if r.id != role.id]
        )
        role.name = name
        return role

    def ensure_role_unused(self, role: CrewRole, crew: List[CrewMember]) -> None:
        """Raise ValueError if any crew member still holds the role."""
        if any(c.role in (role.name, str(role.id)) for c in crew):
            raise ValueError("Cannot delete role that is assigned to crew members.")

    def reorder_roles(
        self, roles: List[CrewRole], ordered_ids: List[uuid.UUID]
    ) -> List[CrewRole]:
        """
        Re-assign 0-based `display_order` values following the provided id
        sequence. Returns the roles sorted by their new order.
        """
        id_to_role: Dict[uuid.UUID, CrewRole] = {r.id: r for r in roles}
        if len(ordered_ids) != len(id_to_role) or set(ordered_ids) != set(id_to_role):
            raise ValueError("ordered_ids must contain exactly the ids of all existing roles.")
        for i, role_id in enumerate(ordered_ids):
            id_to_role[role_id].display_order = i
        return sorted(roles, key=lambda r: r.display_order)

    @staticmethod
    def _ensure_unique_name(name: str, roles: Iterable[CrewRole]) -> None:
        if any(r.name.casefold() == name.casefold() for r in roles):
            raise ValueError("A role with this name already exists.")


# ---------------------------------------------------------------------------
# ProjectService
# ---------------------------------------------------------------------------

class ProjectService:

    def create_project(
        self,
        name: str,
        type: str,
        status: ProjectStatus = ProjectStatus.ACTIVE,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
        consultant_id: Optional[uuid.UUID] = None,
    ) -> Project:
        """Create and return a new Project instance (unsaved)."""
        if start_date and end_date and end_date < start_date:
            raise ValueError("end_date must not be before start_date.")
        now = _utcnow()
        return Project(
            name=_require_text(name, "Project name"),
            type=_require_text(type, "Project type"),
            status=status,
            start_date=start_date,
            end_date=end_date,
            color=_blank_to_none(color),
            notes=_blank_to_none(notes),
            client_id=client_id,
            consultant_id=consultant_id,
            created_at=now,
            updated_at=now,
        )

    def update_project(
        self,
        project: Project,
        name: str,
        type: str,
        status: ProjectStatus,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
        consultant_id: Optional[uuid.UUID] = None,
    ) -> Project:
        if start_date and end_date and end_date < start_date:
            raise ValueError("end_date must not be before start_date.")
        project.name = _require_text(name, "Project name")
        project.type = _require_text(type, "Project type")
        project.status = status
        project.start_date = start_date
        project.end_date = end_date
        project.color = _blank_to_none(color)
        project.notes = _blank_to_none(notes)
        project.client_id = client_id
        project.consultant_id = consultant_id
        project.updated_at = _utcnow()
        return project

    def change_status(self, project: Project, status: ProjectStatus) -> Project:
        project.status = status
        project.updated_at = _utcnow()
        return project


# ---------------------------------------------------------------------------
# SearchService
# ---------------------------------------------------------------------------

_PROJECT_TYPE_LABELS = {
    "vessel": "Vessel",
    "windfarm": "Wind Farm",
    "other": "Other",
}


class SearchService:
    """
    Case-insensitive substring search used by the global search box.
    Queries shorter than MIN_QUERY_LENGTH (after trimming) match nothing.
    """

    MIN_QUERY_LENGTH = 2
    MAX_RESULTS_PER_CATEGORY = 5

    def normalise_query(self, query: Optional[str]) -> str:
        return (query or "").strip()

    def is_searchable(self, query: str) -> bool:
        return len(query) >= self.MIN_QUERY_LENGTH

    def filter(self, items: Iterable[Any], query: str, *fields: str) -> List[Any]:
        """
        Return at most MAX_RESULTS_PER_CATEGORY items, in input order, where
        any of `fields` contains `query` ignoring case. None fields never match.
        """
        needle = query.casefold()
        found: List[Any] = []
        for item in items:
            if len(found) >= self.MAX_RESULTS_PER_CATEGORY:
                break
            values = (getattr(item, f, None) for f in fields)
            if any(v is not None and needle in str(v).casefold() for v in values):
                found.append(item)
        return found

    @staticmethod
    def format_project_type(type: str) -> str:
        return _PROJECT_TYPE_LABELS.get(type, type)


# ---------------------------------------------------------------------------
# SchedulingService
# ---------------------------------------------------------------------------

def intervals_overlap(start1: Any, end1: Any, start2: Any, end2: Any) -> bool:
    """
    Closed-interval overlap test: [s1, e1] and [s2, e2] overlap iff
    s1 <= e2 and s2 <= e1. A shared boundary day counts as overlap.
    Returns False when any bound cannot be read as a date.
    """
    s1, e1, s2, e2 = (_as_date(v) for v in (start1, end1, start2, end2))
    if None in (s1, e1, s2, e2):
        return False
    return s1 <= e2 and s2 <= e1


class SchedulingService:
    """
    Assignment lifecycle and double-booking detection.
    """

    # Days-left thresholds used to colour assignments on the planning board.
    CRITICAL_DAYS = 3
    SOON_DAYS = 7

    # --- Conflict detection -------------------------------------------------

    def find_conflicts(
        self,
        candidate: ConflictCandidate,
        existing_assignments: Sequence[Assignment],
    ) -> List[Assignment]:
        """
        Return the assignments of the same crew member whose interval shares
        at least one day with the candidate, in their input order.

        The assignment named by `exclude_assignment_id` is skipped so an edit
        is never reported as conflicting with its own prior record. Advisory
        only: whether a conflict blocks the save is the caller's policy.
        """
        return [
            a
            for a in existing_assignments
            if a.crew_member_id == candidate.crew_member_id
            and (
                candidate.exclude_assignment_id is None
                or a.id != candidate.exclude_assignment_id
            )
            and intervals_overlap(
                candidate.start_date, candidate.end_date, a.start_date, a.end_date
            )
        ]

    def describe_conflicts(
        self,
        conflicts: Sequence[Assignment],
        projects_by_id: Dict[uuid.UUID, Project],
    ) -> str:
        """Build a user-facing sentence naming what the crew is already booked on."""
        labels = []
        for a in conflicts:
            project = projects_by_id.get(a.project_id) if a.project_id else None
            if project is not None:
                labels.append(project.name)
            elif a.training_description:
                labels.append(a.training_description)
            else:
                labels.append("Unknown")
        return (
            f"Crew member already assigned to {', '.join(labels)} during this period."
        )

    # --- Assignment building ------------------------------------------------

    @staticmethod
    def validate_interval(start_date: date, end_date: date) -> None:
        if start_date is None or end_date is None:
            raise ValueError("start_date and end_date are required.")
        if start_date > end_date:
            raise ValueError("End date must be after start date.")

    def create_assignment(
        self,
        crew_member_id: uuid.UUID,
        project_id: Optional[uuid.UUID],
        start_date: date,
        end_date: date,
        role_on_project: Optional[str] = None,
        assignment_type: AssignmentType = AssignmentType.VESSEL,
        training_description: Optional[str] = None,
    ) -> Assignment:
        """
        Create and return a new Assignment (unsaved).

        Training bookings never carry a project or a role; vessel bookings
        require a project and never carry a training description.
        """
        self.validate_interval(start_date, end_date)
        if assignment_type == AssignmentType.VESSEL and project_id is None:
            raise ValueError("Project is required for vessel assignments.")

        now = _utcnow()
        if assignment_type == AssignmentType.TRAINING:
            return Assignment(
                crew_member_id=crew_member_id,
                project_id=None,
                start_date=start_date,
                end_date=end_date,
                role_on_project=None,
                assignment_type=AssignmentType.TRAINING,
                training_description=_blank_to_none(training_description),
                created_at=now,
                updated_at=now,
            )
        return Assignment(
            crew_member_id=crew_member_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
            role_on_project=_blank_to_none(role_on_project),
            assignment_type=AssignmentType.VESSEL,
            training_description=None,
            created_at=now,
            updated_at=now,
        )

    def update_assignment(
        self,
        assignment: Assignment,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        role_on_project: Optional[str] = None,
        training_description: Optional[str] = None,
    ) -> Assignment:
        """
        Apply a partial edit. Dates left as None keep their current value;
        an empty string clears role_on_project / training_description.
        """
        new_start = start_date or assignment.start_date
        new_end = end_date or assignment.end_date
        self.validate_interval(new_start, new_end)
        assignment.start_date = new_start
        assignment.end_date = new_end
        if role_on_project is not None:
            assignment.role_on_project = _blank_to_none(role_on_project)
        if training_description is not None:
            assignment.training_description = _blank_to_none(training_description)
        assignment.updated_at = _utcnow()
        return assignment

    # --- Crew status synchronisation ----------------------------------------

    def crew_status_after_assign(
        self, crew: CrewMember, assignment: Assignment, today: date
    ) -> CrewMember:
        """A booking that has already started puts the crew member ON_PROJECT."""
        start = _as_date(assignment.start_date)
        if start is not None and start <= today and crew.status != CrewStatus.ON_PROJECT:
            crew.status = CrewStatus.ON_PROJECT
            crew.updated_at = _utcnow()
        return crew

    def crew_status_after_removal(
        self,
        crew: CrewMember,
        remaining_assignments: Sequence[Assignment],
        today: date,
    ) -> CrewMember:
        """
        Free the crew member when none of their remaining bookings is running
        today (started and not yet ended).
        """
        running = [
            a
            for a in remaining_assignments
            if a.crew_member_id == crew.id
            and intervals_overlap(a.start_date, a.end_date, today, today)
        ]
        if not running and crew.status != CrewStatus.AVAILABLE:
            crew.status = CrewStatus.AVAILABLE
            crew.updated_at = _utcnow()
        return crew

    def classify_assignment(self, end_date: Any, today: date) -> str:
        """
        Urgency band of an assignment by days left until it ends:
        past, ending_critical, ending_soon or active.
        """
        end = _as_date(end_date)
        if end is None:
            return "past"
        days_left = (end - today).days
        if days_left < 0:
            return "past"
        if days_left <= self.CRITICAL_DAYS:
            return "ending_critical"
        if days_left <= self.SOON_DAYS:
            return "ending_soon"
        return "active"


# ---------------------------------------------------------------------------
# MetricsService
# ---------------------------------------------------------------------------

class MetricsService:
    """
    Computes the dashboard summary counters from point-in-time snapshots.

    All five counters are evaluated against a single reference day captured
    once per call, so they are always mutually consistent.
    """

    def __init__(
        self,
        min_crew_per_project: int = 3,
        departure_window_days: int = 7,
        active_status: ProjectStatus = ProjectStatus.ACTIVE,
        available_status: CrewStatus = CrewStatus.AVAILABLE,
    ):
        self.min_crew_per_project = min_crew_per_project
        self.departure_window_days = departure_window_days
        self.active_status = active_status
        self.available_status = available_status

    def calculate_dashboard_metrics(
        self,
        projects: Sequence[Project],
        crew: Sequence[CrewMember],
        assignments: Sequence[Assignment],
        now: Optional[datetime] = None,
    ) -> DashboardMetrics:
        """
        Counters
        --------
        active_projects        projects whose status is active
        available_crew         crew members whose status is available
        crew_on_projects       distinct crew with an assignment not yet ended
                               (future bookings included)
        upcoming_departures    assignments ending within [today, today + window]
        projects_needing_crew  active projects with fewer than
                               `min_crew_per_project` not-yet-ended assignments

        Runs in O(P + C + A): one pass over assignments builds the crew-id
        set and the per-project counts.
        """
        today = self._reference_day(now)

        active_projects = sum(1 for p in projects if p.status == self.active_status)
        active_project_ids: Set[uuid.UUID] = {
            p.id for p in projects if p.status == self.active_status
        }
        available_crew = sum(1 for c in crew if c.status == self.available_status)

        crew_on_projects: Set[uuid.UUID] = set()
        open_per_project: Dict[uuid.UUID, int] = {}
        upcoming_departures = 0

        for a in assignments:
            end = _as_date(a.end_date)
            if end is None:
                continue
            days_left = (end - today).days
            if days_left < 0:
                continue
            crew_on_projects.add(a.crew_member_id)
            if a.project_id is not None:
                open_per_project[a.project_id] = open_per_project.get(a.project_id, 0) + 1
            if days_left <= self.departure_window_days:
                upcoming_departures += 1

        projects_needing_crew = sum(
            1
            for project_id in active_project_ids
            if open_per_project.get(project_id, 0) < self.min_crew_per_project
        )

        return DashboardMetrics(
            active_projects=active_projects,
            available_crew=available_crew,
            crew_on_projects=len(crew_on_projects),
            upcoming_departures=upcoming_departures,
            projects_needing_crew=projects_needing_crew,
        )

    @staticmethod
    def _reference_day(now: Optional[datetime]) -> date:
        if now is None:
            return _utcnow().date()
        if isinstance(now, datetime):
            if now.tzinfo is not None:
                now = now.astimezone(timezone.utc)
            return now.date()
        return now


# ---------------------------------------------------------------------------
# AuditService
# ---------------------------------------------------------------------------

class AuditService:
    """
    Builds AuditLogEntry records and orders / pages audit history.
    Entries are immutable once written; nothing here mutates an entry.
    """

    def snapshot(self, record: Any) -> Dict[str, Any]:
        """
        Copy an entity (dataclass or mapping) into a JSON-ready dict.
        The result shares no mutable state with the source record.
        """
        if record is None:
            return {}
        if dataclasses.is_dataclass(record) and not isinstance(record, type):
            record = dataclasses.asdict(record)
        return _jsonable(dict(record))

    def changed_fields(
        self, old_values: Dict[str, Any], new_values: Dict[str, Any]
    ) -> List[str]:
        """
        Top-level field names whose values differ, comparing the canonical
        JSON encoding of the normalised snapshots (so `1` and `true` are
        different values). Fields of `new_values` come first in their own
        order, followed by fields that only exist in `old_values`.
        """
        old = self.snapshot(old_values)
        new = self.snapshot(new_values)
        changed = [
            key for key in new
            if key not in old or _encode(old[key]) != _encode(new[key])
        ]
        changed.extend(key for key in old if key not in new)
        return changed

    def build_create(
        self, table_name: str, record_id: Any, new_values: Any, user: UserContext
    ) -> AuditLogEntry:
        return AuditLogEntry(
            table_name=table_name,
            record_id=str(record_id),
            action=AuditAction.CREATE,
            changed_fields=None,
            old_values=None,
            new_values=self.snapshot(new_values),
            user_id=user.user_id or None,
            user_email=user.user_email,
            created_at=_utcnow(),
        )

    def build_update(
        self,
        table_name: str,
        record_id: Any,
        old_values: Any,
        new_values: Any,
        user: UserContext,
    ) -> AuditLogEntry:
        """
        An UPDATE entry is produced even when nothing changed; in that case
        `changed_fields` is an empty list.
        """
        old = self.snapshot(old_values)
        new = self.snapshot(new_values)
        return AuditLogEntry(
            table_name=table_name,
            record_id=str(record_id),
            action=AuditAction.UPDATE,
            changed_fields=self.changed_fields(old, new),
            old_values=old,
            new_values=new,
            user_id=user.user_id or None,
            user_email=user.user_email,
            created_at=_utcnow(),
        )

    def build_delete(
        self, table_name: str, record_id: Any, old_values: Any, user: UserContext
    ) -> AuditLogEntry:
        return AuditLogEntry(
            table_name=table_name,
            record_id=str(record_id),
            action=AuditAction.DELETE,
            changed_fields=None,
            old_values=self.snapshot(old_values),
            new_values=None,
            user_id=user.user_id or None,
            user_email=user.user_email,
            created_at=_utcnow(),
        )

    def newest_first(self, entries: Iterable[AuditLogEntry]) -> List[AuditLogEntry]:
        return sorted(
            entries,
            key=lambda e: (e.created_at, e.sequence_number),
            reverse=True,
        )

    def paginate(
        self,
        entries: Iterable[AuditLogEntry],
        limit: Optional[int],
        offset: int = 0,
    ) -> Tuple[List[AuditLogEntry], int]:
        """
        Sort newest first and return (page, total_count). A `limit` of None
        returns everything from `offset` on.
        """
        ordered = self.newest_first(entries)
        offset = max(offset, 0)
        if limit is None:
            return ordered[offset:], len(ordered)
        if limit < 0:
            raise ValueError("limit must not be negative.")
        return ordered[offset:offset + limit], len(ordered)
