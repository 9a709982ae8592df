"""
Data and configuration routes for the TaskPulse server.

- GET  /api/config - Configuration status (password masked)
- POST /api/config - Save connection parameters for the setup flow
- POST /api/init   - Create any missing tables
- GET  /api/data   - The full entity graph
- POST /api/data   - Replace the full entity graph in one transaction
"""

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from taskpulse.config import (
    ConnectionConfig,
    connection_status,
    resolve_connection,
    save_connection,
)
from taskpulse.database.connection import DatabaseConnection, open_connection
from taskpulse.database.models import EntityGraph
from taskpulse.database.repository import GraphRepository
from taskpulse.database.schema import initialize_database
from taskpulse.errors import NotConfigured, Unreachable
from taskpulse.utils.constants import DB_NOT_CONFIGURED

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request models ──────────────────────────────────────────────


class ConnectionPayload(BaseModel):
    host: str = ""
    port: Optional[int] = None
    user: str = ""
    password: str = ""
    database: str = ""
    driver: str = "postgresql"


class DailyLogPayload(BaseModel):
    id: str
    date: Optional[str] = ""
    progressSnapshot: int = Field(0, ge=0, le=100)
    note: Optional[str] = ""


class MilestonePayload(BaseModel):
    id: str
    title: Optional[str] = ""
    isCompleted: bool = False


class TaskPayload(BaseModel):
    id: str
    title: Optional[str] = ""
    outcome: Optional[str] = ""
    assignedTo: Optional[str] = ""
    startDate: Optional[str] = ""
    dueDate: Optional[str] = ""
    progress: int = Field(0, ge=0, le=100)
    logs: list[DailyLogPayload] = Field(default_factory=list)
    milestones: list[MilestonePayload] = Field(default_factory=list)


class MemberPayload(BaseModel):
    id: str
    name: Optional[str] = ""
    role: Optional[str] = ""
    avatar: Optional[str] = ""
    groupId: Optional[str] = ""


class GroupPayload(BaseModel):
    id: str
    name: Optional[str] = ""


class GraphPayload(BaseModel):
    tasks: list[TaskPayload] = Field(default_factory=list)
    members: list[MemberPayload] = Field(default_factory=list)
    groups: list[GroupPayload] = Field(default_factory=list)


# ── Store access ────────────────────────────────────────────────


def open_store() -> DatabaseConnection:
    """Connect using whatever configuration resolves right now."""
    return open_connection(resolve_connection())


def get_store_factory() -> Callable[[], DatabaseConnection]:
    """Dependency hook; tests override it to point at a scratch store."""
    return open_store


def _error(status_code: int, message: str, details: str | None = None) -> JSONResponse:
    content = {"error": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ── Endpoints ───────────────────────────────────────────────────


@router.get("/config")
def get_config() -> dict:
    return connection_status()


@router.post("/config")
def post_config(payload: ConnectionPayload):
    try:
        save_connection(ConnectionConfig.from_dict(payload.model_dump()))
    except OSError as e:
        logger.error("Saving config failed: %s", e)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save config")
    return {"success": True}


@router.post("/init")
def init_database(connect: Callable = Depends(get_store_factory)):
    """Create the five tables if they are missing; never drops data."""
    try:
        db = connect()
    except NotConfigured:
        return _error(status.HTTP_400_BAD_REQUEST, "Database not configured")
    try:
        initialize_database(db)
    except Exception as e:
        logger.error("Init failed: %s", e)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    return {"success": True, "message": "Database initialized successfully"}


@router.get("/data")
def get_data(connect: Callable = Depends(get_store_factory)):
    try:
        db = connect()
    except NotConfigured:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, DB_NOT_CONFIGURED)
    try:
        graph = GraphRepository(db).read()
    except Unreachable as e:
        logger.error("Fetch failed: %s", e)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR,
                      "Failed to fetch data from database", str(e))
    return graph.to_dict()


@router.post("/data")
def post_data(payload: GraphPayload,
              connect: Callable = Depends(get_store_factory)):
    graph = EntityGraph.from_dict(payload.model_dump())
    try:
        GraphRepository(connect()).write(graph)
    except (NotConfigured, Unreachable) as e:
        logger.error("Save failed: %s", e)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR,
                      "Failed to save data to database")
    return {"success": True}
