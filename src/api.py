"""
api.py

REST API layer for the Crew Planning & Assignment Scheduling System.

Framework : FastAPI
Identity  : The acting user is read from the `X-User-Id` / `X-User-Email`
            request headers (set by the upstream auth proxy) and resolved to
            an optional UserContext by the get_user_context dependency.
            Requests without an e-mail header are treated as anonymous:
            mutations still succeed but are not written to the audit log.

Structure
---------
  Routers (all prefixed under /api/v1)
  ├── /clients                      — client directory
  ├── /consultants                  — consultant directory
  ├── /crew-roles                   — configurable crew roles
  │   └── /order                    — reorder roles
  ├── /crew                         — crew member directory
  │   └── /{crew_id}/status         — quick status change
  ├── /projects                     — project CRUD
  │   └── /{project_id}/status      — quick status change
  ├── /assignments                  — crew bookings
  │   └── /conflicts                — read-only double-booking check
  ├── /dashboard/metrics            — summary counters
  ├── /search?q=                    — global search across the directories
  └── /audit                        — audit log listing
      └── /{table}/{record_id}      — history of one record

Error handling
--------------
  NotFoundError      → 404
  ConflictError      → 409 (body lists the conflicting assignments)
  ApplicationError   → 422
  ValueError         → 422
  Unhandled          → 500 (FastAPI default)

Response envelope
-----------------
  Success  : { "data": <payload> }
  Error    : { "detail": "<message>" }

Running
-------
  uvicorn main:app --reload
"""

from __future__ import annotations

import dataclasses
import logging
import math
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Path, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_mcp import FastApiMCP
from pydantic import BaseModel, EmailStr, Field, field_validator

from application import (
    # Exceptions
    ApplicationError,
    ConflictError,
    NotFoundError,
    # Unit of Work
    AbstractUnitOfWork,
    # Commands / queries
    CheckAssignmentConflictsCommand,
    CreateAssignmentCommand,
    CreateClientCommand,
    CreateConsultantCommand,
    CreateCrewMemberCommand,
    CreateCrewRoleCommand,
    CreateProjectCommand,
    ListAuditLogsQuery,
    RenameCrewRoleCommand,
    ReorderCrewRolesCommand,
    UpdateAssignmentCommand,
    UpdateClientCommand,
    UpdateConsultantCommand,
    UpdateCrewMemberCommand,
    UpdateCrewStatusCommand,
    UpdateProjectCommand,
    UpdateProjectStatusCommand,
    # Use cases
    CheckAssignmentConflictsUseCase,
    CreateAssignmentUseCase,
    CreateClientUseCase,
    CreateConsultantUseCase,
    CreateCrewMemberUseCase,
    CreateCrewRoleUseCase,
    CreateProjectUseCase,
    DeleteClientUseCase,
    DeleteConsultantUseCase,
    DeleteCrewMemberUseCase,
    DeleteCrewRoleUseCase,
    DeleteProjectUseCase,
    GetAssignmentUseCase,
    GetClientUseCase,
    GetConsultantUseCase,
    GetCrewMemberUseCase,
    GetDashboardMetricsUseCase,
    GetProjectUseCase,
    GetRecordHistoryUseCase,
    GlobalSearchUseCase,
    ListAssignmentsUseCase,
    ListAuditLogsUseCase,
    ListClientsUseCase,
    ListConsultantsUseCase,
    ListCrewMembersUseCase,
    ListCrewRolesUseCase,
    ListProjectsUseCase,
    RemoveAssignmentUseCase,
    RenameCrewRoleUseCase,
    ReorderCrewRolesUseCase,
    UpdateAssignmentUseCase,
    UpdateClientUseCase,
    UpdateConsultantUseCase,
    UpdateCrewMemberUseCase,
    UpdateCrewStatusUseCase,
    UpdateProjectStatusUseCase,
    UpdateProjectUseCase,
)
from config import settings
from infrastructure import InMemoryUnitOfWork
from model import (
    AssignmentType,
    AuditAction,
    AuditTable,
    ClientStatus,
    ConsultantStatus,
    CrewStatus,
    ProjectStatus,
    UserContext,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# App bootstrap
# ---------------------------------------------------------------------------

app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description=(
        "REST API for planning crew onto vessel projects: client, consultant "
        "and crew directories, assignment scheduling with double-booking "
        "detection, dashboard metrics, and a field-level audit trail."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(NotFoundError)
async def not_found_handler(request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request, exc: ConflictError):
    logger.info("Rejected overlapping booking: %s", exc)
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "conflicts": [dataclasses.asdict(c) for c in exc.conflicts],
        },
    )


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_uow() -> AbstractUnitOfWork:
    """Returns the in-memory Unit of Work (no database required)."""
    return InMemoryUnitOfWork()


def get_user_context(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> Optional[UserContext]:
    """
    Resolve the acting user from request headers.  Returns None when no
    e-mail is supplied; callers treat that as an anonymous request.
    """
    if not x_user_email:
        return None
    return UserContext(user_id=x_user_id or "", user_email=x_user_email)


# ---------------------------------------------------------------------------
# Envelope helper
# ---------------------------------------------------------------------------

def _ok(data: Any) -> Dict:
    """Wrap a DTO or list of DTOs in the standard success envelope."""
    if dataclasses.is_dataclass(data):
        return {"data": dataclasses.asdict(data)}
    if isinstance(data, list):
        return {
            "data": [
                dataclasses.asdict(item) if dataclasses.is_dataclass(item) else item
                for item in data
            ]
        }
    return {"data": data}


def _enum_validator(enum_cls, label: str):
    def _validate(v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        valid = {e.value for e in enum_cls}
        if v not in valid:
            raise ValueError(f"{label} must be one of: {sorted(valid)}")
        return v
    return _validate


_check_client_status = _enum_validator(ClientStatus, "status")
_check_consultant_status = _enum_validator(ConsultantStatus, "status")
_check_crew_status = _enum_validator(CrewStatus, "status")
_check_project_status = _enum_validator(ProjectStatus, "status")
_check_assignment_type = _enum_validator(AssignmentType, "assignment_type")


# ===========================================================================
# REQUEST BODY SCHEMAS  (Pydantic v2)
# ===========================================================================

# ---------------------------------------------------------------------------
# Client schemas
# ---------------------------------------------------------------------------

class CreateClientRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None


class UpdateClientRequest(CreateClientRequest):
    status: str = Field(default=ClientStatus.ACTIVE.value, description="active or inactive")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_client_status(v)


# ---------------------------------------------------------------------------
# Consultant schemas
# ---------------------------------------------------------------------------

class CreateConsultantRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None


class UpdateConsultantRequest(CreateConsultantRequest):
    status: str = Field(default=ConsultantStatus.ACTIVE.value, description="active or inactive")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_consultant_status(v)


# ---------------------------------------------------------------------------
# Crew role schemas
# ---------------------------------------------------------------------------

class CrewRoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ReorderCrewRolesRequest(BaseModel):
    ordered_role_ids: List[uuid.UUID] = Field(
        ..., description="All role IDs in their desired display order."
    )


# ---------------------------------------------------------------------------
# Crew member schemas
# ---------------------------------------------------------------------------

class CreateCrewMemberRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    nationality: Optional[str] = Field(default=None, max_length=100)
    flag_state: Optional[str] = Field(default=None, max_length=3)
    home_airport: Optional[str] = Field(default=None, max_length=10)
    company: Optional[str] = Field(default=None, max_length=200)


class UpdateCrewMemberRequest(CreateCrewMemberRequest):
    status: str = Field(
        default=CrewStatus.AVAILABLE.value,
        description="One of: available, on_project, on_leave",
    )

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_crew_status(v)


class UpdateCrewStatusRequest(BaseModel):
    status: str = Field(..., description="One of: available, on_project, on_leave")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_crew_status(v)


# ---------------------------------------------------------------------------
# Project schemas
# ---------------------------------------------------------------------------

class ProjectRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1, max_length=100)
    status: str = Field(
        default=ProjectStatus.ACTIVE.value,
        description="One of: planned, active, completed, cancelled",
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    notes: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    consultant_id: Optional[uuid.UUID] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_project_status(v)


class UpdateProjectStatusRequest(BaseModel):
    status: str = Field(..., description="One of: planned, active, completed, cancelled")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_project_status(v)


# ---------------------------------------------------------------------------
# Assignment schemas
# ---------------------------------------------------------------------------

class CreateAssignmentRequest(BaseModel):
    crew_member_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    role_on_project: Optional[str] = Field(default=None, max_length=100)
    assignment_type: str = Field(default=AssignmentType.VESSEL.value, description="vessel or training")
    training_description: Optional[str] = None

    @field_validator("assignment_type")
    @classmethod
    def validate_assignment_type(cls, v: str) -> str:
        return _check_assignment_type(v)


class UpdateAssignmentRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    role_on_project: Optional[str] = Field(default=None, max_length=100)
    training_description: Optional[str] = None


class CheckConflictsRequest(BaseModel):
    crew_member_id: uuid.UUID
    start_date: date
    end_date: date
    exclude_assignment_id: Optional[uuid.UUID] = None


# ===========================================================================
# ROUTERS
# ===========================================================================

api_v1 = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

client_router = APIRouter(prefix="/clients", tags=["Clients"])


@client_router.post("", status_code=status.HTTP_201_CREATED, summary="Create a client")
def create_client(
    body: CreateClientRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = CreateClientCommand(
        name=body.name,
        contact_name=body.contact_name,
        contact_email=str(body.contact_email) if body.contact_email else None,
        contact_phone=body.contact_phone,
        address=body.address,
        notes=body.notes,
        user=user,
    )
    return _ok(CreateClientUseCase().execute(cmd, uow))


@client_router.get("", summary="List all clients")
def list_clients(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListClientsUseCase().execute(uow))


@client_router.get("/{client_id}", summary="Get a client by ID")
def get_client(
    client_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetClientUseCase().execute(client_id, uow))


@client_router.put("/{client_id}", summary="Update a client")
def update_client(
    body: UpdateClientRequest,
    client_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateClientCommand(
        client_id=client_id,
        name=body.name,
        status=ClientStatus(body.status),
        contact_name=body.contact_name,
        contact_email=str(body.contact_email) if body.contact_email else None,
        contact_phone=body.contact_phone,
        address=body.address,
        notes=body.notes,
        user=user,
    )
    return _ok(UpdateClientUseCase().execute(cmd, uow))


@client_router.delete(
    "/{client_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a client"
)
def delete_client(
    client_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    DeleteClientUseCase().execute(client_id, uow, user)


# ---------------------------------------------------------------------------
# Consultants
# ---------------------------------------------------------------------------

consultant_router = APIRouter(prefix="/consultants", tags=["Consultants"])


@consultant_router.post("", status_code=status.HTTP_201_CREATED, summary="Create a consultant")
def create_consultant(
    body: CreateConsultantRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = CreateConsultantCommand(
        full_name=body.full_name,
        email=str(body.email) if body.email else None,
        phone=body.phone,
        role=body.role,
        notes=body.notes,
        user=user,
    )
    return _ok(CreateConsultantUseCase().execute(cmd, uow))


@consultant_router.get("", summary="List all consultants")
def list_consultants(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListConsultantsUseCase().execute(uow))


@consultant_router.get("/{consultant_id}", summary="Get a consultant by ID")
def get_consultant(
    consultant_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetConsultantUseCase().execute(consultant_id, uow))


@consultant_router.put("/{consultant_id}", summary="Update a consultant")
def update_consultant(
    body: UpdateConsultantRequest,
    consultant_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateConsultantCommand(
        consultant_id=consultant_id,
        full_name=body.full_name,
        status=ConsultantStatus(body.status),
        email=str(body.email) if body.email else None,
        phone=body.phone,
        role=body.role,
        notes=body.notes,
        user=user,
    )
    return _ok(UpdateConsultantUseCase().execute(cmd, uow))


@consultant_router.delete(
    "/{consultant_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a consultant"
)
def delete_consultant(
    consultant_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    DeleteConsultantUseCase().execute(consultant_id, uow, user)


# ---------------------------------------------------------------------------
# Crew roles
# ---------------------------------------------------------------------------

crew_role_router = APIRouter(prefix="/crew-roles", tags=["Crew Roles"])


@crew_role_router.post("", status_code=status.HTTP_201_CREATED, summary="Add a crew role")
def create_crew_role(
    body: CrewRoleRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    """New roles are appended to the end of the display order."""
    cmd = CreateCrewRoleCommand(name=body.name, user=user)
    return _ok(CreateCrewRoleUseCase().execute(cmd, uow))


@crew_role_router.get("", summary="List crew roles in display order")
def list_crew_roles(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListCrewRolesUseCase().execute(uow))


@crew_role_router.put("/order", summary="Reorder crew roles")
def reorder_crew_roles(
    body: ReorderCrewRolesRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    """The request must list every existing role id exactly once."""
    cmd = ReorderCrewRolesCommand(ordered_role_ids=body.ordered_role_ids, user=user)
    return _ok(ReorderCrewRolesUseCase().execute(cmd, uow))


@crew_role_router.put("/{role_id}", summary="Rename a crew role")
def rename_crew_role(
    body: CrewRoleRequest,
    role_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = RenameCrewRoleCommand(role_id=role_id, name=body.name, user=user)
    return _ok(RenameCrewRoleUseCase().execute(cmd, uow))


@crew_role_router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a crew role (only if no crew member holds it)",
)
def delete_crew_role(
    role_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    DeleteCrewRoleUseCase().execute(role_id, uow, user)


# ---------------------------------------------------------------------------
# Crew members
# ---------------------------------------------------------------------------

crew_router = APIRouter(prefix="/crew", tags=["Crew"])


@crew_router.post("", status_code=status.HTTP_201_CREATED, summary="Add a crew member")
def create_crew_member(
    body: CreateCrewMemberRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = CreateCrewMemberCommand(
        full_name=body.full_name,
        role=body.role,
        email=str(body.email) if body.email else None,
        phone=body.phone,
        nationality=body.nationality,
        flag_state=body.flag_state,
        home_airport=body.home_airport,
        company=body.company,
        user=user,
    )
    return _ok(CreateCrewMemberUseCase().execute(cmd, uow))


@crew_router.get("", summary="List crew members")
def list_crew_members(
    status_filter: Optional[str] = Query(
        default=None, alias="status", description="available, on_project or on_leave"
    ),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    crew_status = CrewStatus(_check_crew_status(status_filter)) if status_filter else None
    return _ok(ListCrewMembersUseCase().execute(uow, status=crew_status))


@crew_router.get("/{crew_id}", summary="Get a crew member by ID")
def get_crew_member(
    crew_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetCrewMemberUseCase().execute(crew_id, uow))


@crew_router.put("/{crew_id}", summary="Update a crew member")
def update_crew_member(
    body: UpdateCrewMemberRequest,
    crew_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateCrewMemberCommand(
        crew_id=crew_id,
        full_name=body.full_name,
        role=body.role,
        status=CrewStatus(body.status),
        email=str(body.email) if body.email else None,
        phone=body.phone,
        nationality=body.nationality,
        flag_state=body.flag_state,
        home_airport=body.home_airport,
        company=body.company,
        user=user,
    )
    return _ok(UpdateCrewMemberUseCase().execute(cmd, uow))


@crew_router.patch("/{crew_id}/status", summary="Change a crew member's status")
def update_crew_status(
    body: UpdateCrewStatusRequest,
    crew_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateCrewStatusCommand(crew_id=crew_id, status=CrewStatus(body.status), user=user)
    return _ok(UpdateCrewStatusUseCase().execute(cmd, uow))


@crew_router.delete(
    "/{crew_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a crew member"
)
def delete_crew_member(
    crew_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    DeleteCrewMemberUseCase().execute(crew_id, uow, user)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

project_router = APIRouter(prefix="/projects", tags=["Projects"])


@project_router.post("", status_code=status.HTTP_201_CREATED, summary="Create a project")
def create_project(
    body: ProjectRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = CreateProjectCommand(
        name=body.name,
        type=body.type,
        status=ProjectStatus(body.status),
        start_date=body.start_date,
        end_date=body.end_date,
        color=body.color,
        notes=body.notes,
        client_id=body.client_id,
        consultant_id=body.consultant_id,
        user=user,
    )
    return _ok(CreateProjectUseCase().execute(cmd, uow))


@project_router.get("", summary="List projects")
def list_projects(
    status_filter: Optional[str] = Query(
        default=None, alias="status", description="planned, active, completed or cancelled"
    ),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    project_status = (
        ProjectStatus(_check_project_status(status_filter)) if status_filter else None
    )
    return _ok(ListProjectsUseCase().execute(uow, status=project_status))


@project_router.get("/{project_id}", summary="Get a project by ID")
def get_project(
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetProjectUseCase().execute(project_id, uow))


@project_router.put("/{project_id}", summary="Update a project")
def update_project(
    body: ProjectRequest,
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateProjectCommand(
        project_id=project_id,
        name=body.name,
        type=body.type,
        status=ProjectStatus(body.status),
        start_date=body.start_date,
        end_date=body.end_date,
        color=body.color,
        notes=body.notes,
        client_id=body.client_id,
        consultant_id=body.consultant_id,
        user=user,
    )
    return _ok(UpdateProjectUseCase().execute(cmd, uow))


@project_router.patch("/{project_id}/status", summary="Change a project's status")
def update_project_status(
    body: UpdateProjectStatusRequest,
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateProjectStatusCommand(
        project_id=project_id, status=ProjectStatus(body.status), user=user
    )
    return _ok(UpdateProjectStatusUseCase().execute(cmd, uow))


@project_router.delete(
    "/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a project"
)
def delete_project(
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    DeleteProjectUseCase().execute(project_id, uow, user)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

assignment_router = APIRouter(prefix="/assignments", tags=["Assignments"])


@assignment_router.post(
    "/conflicts",
    summary="Check a proposed booking for double-booking (read-only)",
)
def check_assignment_conflicts(
    body: CheckConflictsRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Returns `has_conflict`, a human-readable `message` and the list of
    overlapping bookings.  Pass `exclude_assignment_id` when editing an
    existing booking so it is not reported against itself.
    """
    cmd = CheckAssignmentConflictsCommand(
        crew_member_id=body.crew_member_id,
        start_date=body.start_date,
        end_date=body.end_date,
        exclude_assignment_id=body.exclude_assignment_id,
    )
    return _ok(CheckAssignmentConflictsUseCase().execute(cmd, uow))


@assignment_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Book a crew member onto a project or training",
)
def create_assignment(
    body: CreateAssignmentRequest,
    force: bool = Query(default=False, description="Save even if the booking overlaps another"),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    """
    Overlapping bookings for the same crew member are rejected with 409 and
    the list of conflicts, unless `force=true` is passed.
    """
    cmd = CreateAssignmentCommand(
        crew_member_id=body.crew_member_id,
        project_id=body.project_id,
        start_date=body.start_date,
        end_date=body.end_date,
        role_on_project=body.role_on_project,
        assignment_type=AssignmentType(body.assignment_type),
        training_description=body.training_description,
        force=force,
        user=user,
    )
    return _ok(CreateAssignmentUseCase().execute(cmd, uow))


@assignment_router.get("", summary="List assignments")
def list_assignments(
    crew_member_id: Optional[uuid.UUID] = Query(default=None, description="Filter by crew member"),
    project_id: Optional[uuid.UUID] = Query(default=None, description="Filter by project"),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(
        ListAssignmentsUseCase().execute(
            uow, crew_member_id=crew_member_id, project_id=project_id
        )
    )


@assignment_router.get("/{assignment_id}", summary="Get an assignment by ID")
def get_assignment(
    assignment_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetAssignmentUseCase().execute(assignment_id, uow))


@assignment_router.patch("/{assignment_id}", summary="Move or relabel an assignment")
def update_assignment(
    body: UpdateAssignmentRequest,
    assignment_id: uuid.UUID = Path(...),
    force: bool = Query(default=False, description="Save even if the booking overlaps another"),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    cmd = UpdateAssignmentCommand(
        assignment_id=assignment_id,
        start_date=body.start_date,
        end_date=body.end_date,
        role_on_project=body.role_on_project,
        training_description=body.training_description,
        force=force,
        user=user,
    )
    return _ok(UpdateAssignmentUseCase().execute(cmd, uow))


@assignment_router.delete(
    "/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an assignment",
)
def remove_assignment(
    assignment_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
    user: Optional[UserContext] = Depends(get_user_context),
):
    RemoveAssignmentUseCase().execute(assignment_id, uow, user)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@dashboard_router.get("/metrics", summary="Summary counters for the dashboard")
def get_dashboard_metrics(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(GetDashboardMetricsUseCase().execute(uow))


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

search_router = APIRouter(prefix="/search", tags=["Search"])


@search_router.get("", summary="Search projects, crew, clients and consultants")
def global_search(
    q: str = Query(default="", description="At least two characters after trimming"),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    result = GlobalSearchUseCase().execute(q, uow)
    return _ok({
        "results": {
            "projects": [dataclasses.asdict(r) for r in result.projects],
            "crew": [dataclasses.asdict(r) for r in result.crew],
            "clients": [dataclasses.asdict(r) for r in result.clients],
            "consultants": [dataclasses.asdict(r) for r in result.consultants],
        },
        "query": result.query,
        "total_count": result.total_count,
    })


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

audit_router = APIRouter(prefix="/audit", tags=["Audit Log"])


def _check_table(table: Optional[str]) -> Optional[str]:
    """An empty value means no filter."""
    if not table:
        return None
    valid = {t.value for t in AuditTable}
    if table not in valid:
        raise ValueError(f"table must be one of: {sorted(valid)}")
    return table


@audit_router.get("", summary="List audit log entries, newest first")
def list_audit_logs(
    table: Optional[str] = Query(default=None, description="Filter by table name"),
    action: Optional[str] = Query(default=None, description="CREATE, UPDATE or DELETE"),
    user_id: Optional[str] = Query(default=None, description="Filter by acting user"),
    page: int = Query(default=1, ge=1, description="1-based page number"),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Read failures do not produce an error status: the page comes back empty
    with `error` set. Empty filter values are ignored.
    """
    action = action or None
    user_id = user_id or None
    if action is not None and action not in {a.value for a in AuditAction}:
        raise ValueError(f"action must be one of: {sorted(a.value for a in AuditAction)}")

    page_size = settings.audit_page_size
    query = ListAuditLogsQuery(
        table_name=_check_table(table),
        action=AuditAction(action) if action else None,
        user_id=user_id,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    result = ListAuditLogsUseCase().execute(query, uow)
    return _ok({
        "entries": [dataclasses.asdict(e) for e in result.data],
        "count": result.count,
        "page": page,
        "page_size": page_size,
        "total_pages": math.ceil(result.count / page_size) if page_size else 0,
        "error": result.error,
    })


@audit_router.get("/{table}/{record_id}", summary="Full history of one record, newest first")
def get_record_history(
    table: str = Path(...),
    record_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetRecordHistoryUseCase().execute(_check_table(table), record_id, uow))


# ===========================================================================
# REGISTER ROUTERS
# ===========================================================================

api_v1.include_router(client_router)
api_v1.include_router(consultant_router)
api_v1.include_router(crew_role_router)
api_v1.include_router(crew_router)
api_v1.include_router(project_router)
api_v1.include_router(assignment_router)
api_v1.include_router(dashboard_router)
api_v1.include_router(search_router)
api_v1.include_router(audit_router)

app.include_router(api_v1)

# ---------------------------------------------------------------------------
# MCP Server: every API route is exposed as an MCP tool
# Accessible at: http://localhost:8000/mcp
# ---------------------------------------------------------------------------
mcp = FastApiMCP(app)
mcp.mount_http()


# ===========================================================================
# HEALTH CHECK
# ===========================================================================

@app.get("/health", tags=["Health"], summary="Service health check")
def health():
    return {"status": "ok"}


# ===========================================================================
# OPENAPI CUSTOMISATION — tag order and descriptions
# ===========================================================================

tags_metadata = [
    {
        "name": "Health",
        "description": "Liveness probe.",
    },
    {
        "name": "Clients",
        "description": "Organisations that commission vessel projects.",
    },
    {
        "name": "Consultants",
        "description": "External consultants who may be attached to a project.",
    },
    {
        "name": "Crew Roles",
        "description": (
            "Configurable job titles.  Names are unique; a role still held by a "
            "crew member cannot be deleted."
        ),
    },
    {
        "name": "Crew",
        "description": (
            "Crew member directory.  Status moves to on_project when a booking "
            "starts and back to available when the last running booking is removed."
        ),
    },
    {
        "name": "Projects",
        "description": "Vessel projects that crew members are booked onto.",
    },
    {
        "name": "Assignments",
        "description": (
            "Crew bookings over closed date intervals.  Overlapping bookings for "
            "the same crew member are reported as conflicts; a shared boundary "
            "day counts as overlap."
        ),
    },
    {
        "name": "Dashboard",
        "description": (
            "Active projects, available crew, crew on projects, upcoming "
            "departures and projects needing crew."
        ),
    },
    {
        "name": "Search",
        "description": (
            "Case-insensitive substring search over project names, crew, clients "
            "and consultants.  Up to five matches per category."
        ),
    },
    {
        "name": "Audit Log",
        "description": (
            "Append-only, field-level history of every create, update and delete "
            "on the core entities.  Writes are best-effort and never block the "
            "mutation they record."
        ),
    },
]

app.openapi_tags = tags_metadata
