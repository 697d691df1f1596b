"""
model.py

Domain models for the Crew Planning & Assignment Scheduling System.

Entities
--------
- Client
- Consultant
- CrewRole
- CrewMember
- Project
- Assignment
- AuditLogEntry
- UserContext (transient, never persisted)

All models use Python dataclasses for clean, framework-agnostic definitions.
UUID primary keys are used throughout for portability.
Timestamps are always stored in UTC.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CrewStatus(str, Enum):
    """Availability of a crew member."""
    AVAILABLE = "available"
    ON_PROJECT = "on_project"
    ON_LEAVE = "on_leave"


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ConsultantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AssignmentType(str, Enum):
    """
    Kind of booking.

    VESSEL    – Crew is booked onto a project; project_id is mandatory.
    TRAINING  – Crew is away on training; there is no project and the
                booking is described by training_description instead.
    """
    VESSEL = "vessel"
    TRAINING = "training"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditTable(str, Enum):
    """Tables whose mutations are recorded in the audit log."""
    CLIENTS = "clients"
    CONSULTANTS = "consultants"
    CREW_MEMBERS = "crew_members"
    PROJECTS = "projects"
    ASSIGNMENTS = "assignments"
    CREW_ROLES = "crew_roles"


# ---------------------------------------------------------------------------
# Directory Entities
# ---------------------------------------------------------------------------


@dataclass
class Client:
    """An organisation that commissions projects."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: ClientStatus = ClientStatus.ACTIVE

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Consultant:
    """An external consultant who may be attached to a project."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    full_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    status: ConsultantStatus = ConsultantStatus.ACTIVE

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class CrewRole:
    """
    A configurable job title crew members can hold (e.g. Captain, Deckhand).

    `display_order` controls the sequence in role pickers; it is 0-based and
    re-assigned wholesale when roles are reordered.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    display_order: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class CrewMember:
    """
    A person who can be booked onto projects.

    Crew members may be deleted, but assignments and audit entries keep the
    original id as a dangling reference so that history stays intact.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    full_name: str = ""
    role: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    nationality: Optional[str] = None
    flag_state: Optional[str] = None        # ISO country code, stored upper-case
    home_airport: Optional[str] = None
    company: Optional[str] = None
    status: CrewStatus = CrewStatus.AVAILABLE

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Scheduling Entities
# ---------------------------------------------------------------------------


@dataclass
class Project:
    """A vessel project that crew members are assigned to."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    type: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    color: Optional[str] = None             # Hex colour used on the planning board
    notes: Optional[str] = None

    client_id: Optional[uuid.UUID] = None       # FK → Client.id
    consultant_id: Optional[uuid.UUID] = None   # FK → Consultant.id

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Assignment:
    """
    Books a crew member onto a project (or training) for a closed date
    interval [start_date, end_date]; both ends are inclusive.

    Crew member and project are referenced by id only, never embedded.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    crew_member_id: uuid.UUID = field(default_factory=uuid.uuid4)   # FK → CrewMember.id
    project_id: Optional[uuid.UUID] = None                          # FK → Project.id; None for training

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    role_on_project: Optional[str] = None
    assignment_type: AssignmentType = AssignmentType.VESSEL
    training_description: Optional[str] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Audit Entities
# ---------------------------------------------------------------------------


@dataclass
class AuditLogEntry:
    """
    Immutable record of a single create/update/delete on a core entity.

    old_values / new_values are JSON-ready snapshots owned by the entry; they
    do not reference live entities, so history survives deletion of the
    source record. Entries are append-only and never edited or deleted.

    `changed_fields` is only populated for UPDATE (possibly empty).
    `sequence_number` is assigned by the store on append and breaks ties
    between entries that share a created_at.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    table_name: str = ""
    record_id: str = ""
    action: AuditAction = AuditAction.CREATE

    changed_fields: Optional[List[str]] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None

    user_id: Optional[str] = None
    user_email: str = ""

    sequence_number: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class UserContext:
    """The authenticated actor for one request. Never persisted."""
    user_id: str
    user_email: str
