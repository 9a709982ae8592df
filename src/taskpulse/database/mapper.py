"""Schema mapper — flat table rows <-> nested entity graph.

Every persisted field is declared once in a table below, giving its storage
column, its dataclass attribute, and its camelCase key in the JSON wire
format. Both directions of both translations are driven by these tables, so
a field cannot be renamed in one place and forgotten in another.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from taskpulse.database.models import (
    DailyLog,
    EntityGraph,
    Group,
    Member,
    Milestone,
    Task,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    column: str
    attr: str
    wire: str
    kind: type = str


GROUP_FIELDS = (
    FieldSpec("id", "id", "id"),
    FieldSpec("name", "name", "name"),
)

MEMBER_FIELDS = (
    FieldSpec("id", "id", "id"),
    FieldSpec("name", "name", "name"),
    FieldSpec("role", "role", "role"),
    FieldSpec("avatar", "avatar", "avatar"),
    FieldSpec("group_id", "group_id", "groupId"),
)

TASK_FIELDS = (
    FieldSpec("id", "id", "id"),
    FieldSpec("title", "title", "title"),
    FieldSpec("outcome", "outcome", "outcome"),
    FieldSpec("assigned_to", "assigned_to", "assignedTo"),
    FieldSpec("start_date", "start_date", "startDate"),
    FieldSpec("due_date", "due_date", "dueDate"),
    FieldSpec("progress", "progress", "progress", int),
)

LOG_FIELDS = (
    FieldSpec("id", "id", "id"),
    FieldSpec("date", "date", "date"),
    FieldSpec("progress_snapshot", "progress_snapshot", "progressSnapshot", int),
    FieldSpec("note", "note", "note"),
)

MILESTONE_FIELDS = (
    FieldSpec("id", "id", "id"),
    FieldSpec("title", "title", "title"),
    FieldSpec("is_completed", "is_completed", "isCompleted", bool),
)

# Column holding a child row's owning task
PARENT_COLUMN = "task_id"
# Column preserving list order across backends
POSITION_COLUMN = "position"

# Table name -> (entity class, field table), in parent-before-child order
TABLES = {
    "groups": (Group, GROUP_FIELDS),
    "members": (Member, MEMBER_FIELDS),
    "tasks": (Task, TASK_FIELDS),
    "daily_logs": (DailyLog, LOG_FIELDS),
    "milestones": (Milestone, MILESTONE_FIELDS),
}

CHILD_TABLES = ("daily_logs", "milestones")


def table_columns(table: str) -> list[str]:
    """Storage columns of a table, in insert order."""
    columns = [f.column for f in TABLES[table][1]]
    if table in CHILD_TABLES:
        columns.insert(1, PARENT_COLUMN)
    columns.append(POSITION_COLUMN)
    return columns


def _coerce(value: Any, kind: type) -> Any:
    if kind is bool:
        return bool(value)
    if kind is int:
        return int(value) if value not in (None, "") else 0
    return "" if value is None else str(value)


@dataclass
class FlatRecords:
    """The five record sets as lists of column -> value dicts."""

    groups: list[dict] = field(default_factory=list)
    members: list[dict] = field(default_factory=list)
    tasks: list[dict] = field(default_factory=list)
    daily_logs: list[dict] = field(default_factory=list)
    milestones: list[dict] = field(default_factory=list)

    def rows(self, table: str) -> list[dict]:
        return getattr(self, table)


def to_row(entity, field_specs, position: int = 0, **extra) -> dict:
    row = {f.column: getattr(entity, f.attr) for f in field_specs}
    row.update(extra)
    row[POSITION_COLUMN] = position
    return row


def from_row(row, cls, field_specs):
    row = dict(row)
    return cls(**{
        f.attr: _coerce(row.get(f.column), f.kind) for f in field_specs
    })


def flatten(graph: EntityGraph) -> FlatRecords:
    """Split the graph into one list of rows per table."""
    records = FlatRecords(
        groups=[to_row(g, GROUP_FIELDS, i) for i, g in enumerate(graph.groups)],
        members=[to_row(m, MEMBER_FIELDS, i) for i, m in enumerate(graph.members)],
        tasks=[to_row(t, TASK_FIELDS, i) for i, t in enumerate(graph.tasks)],
    )
    for task in graph.tasks:
        records.daily_logs.extend(
            to_row(log, LOG_FIELDS, i, task_id=task.id)
            for i, log in enumerate(task.logs)
        )
        records.milestones.extend(
            to_row(ms, MILESTONE_FIELDS, i, task_id=task.id)
            for i, ms in enumerate(task.milestones)
        )
    return records


def _ordered(rows) -> list[dict]:
    rows = [dict(r) for r in rows]
    return sorted(rows, key=lambda r: r.get(POSITION_COLUMN) or 0)


def reconstruct(records: FlatRecords) -> EntityGraph:
    """Rebuild the nested graph, grouping child rows under their task."""
    logs_by_task = defaultdict(list)
    for row in _ordered(records.daily_logs):
        logs_by_task[row.get(PARENT_COLUMN)].append(row)
    milestones_by_task = defaultdict(list)
    for row in _ordered(records.milestones):
        milestones_by_task[row.get(PARENT_COLUMN)].append(row)

    tasks = []
    for row in _ordered(records.tasks):
        task = from_row(row, Task, TASK_FIELDS)
        task.logs = [
            from_row(r, DailyLog, LOG_FIELDS)
            for r in logs_by_task.pop(task.id, [])
        ]
        task.milestones = [
            from_row(r, Milestone, MILESTONE_FIELDS)
            for r in milestones_by_task.pop(task.id, [])
        ]
        tasks.append(task)

    orphans = sum(len(v) for v in logs_by_task.values())
    orphans += sum(len(v) for v in milestones_by_task.values())
    if orphans:
        logger.warning("Dropped %d log/milestone rows with no owning task", orphans)

    return EntityGraph(
        groups=[from_row(r, Group, GROUP_FIELDS) for r in _ordered(records.groups)],
        members=[from_row(r, Member, MEMBER_FIELDS) for r in _ordered(records.members)],
        tasks=tasks,
    )


# ── JSON wire format ────────────────────────────────────────────


def _to_wire(entity, field_specs) -> dict:
    return {f.wire: getattr(entity, f.attr) for f in field_specs}


def _from_wire(data: dict, cls, field_specs):
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object for {cls.__name__}, got {data!r}")
    values = {}
    for f in field_specs:
        if f.wire in data:
            values[f.attr] = _coerce(data[f.wire], f.kind)
    return cls(**values)


def graph_to_wire(graph: EntityGraph) -> dict:
    tasks = []
    for task in graph.tasks:
        item = _to_wire(task, TASK_FIELDS)
        item["logs"] = [_to_wire(log, LOG_FIELDS) for log in task.logs]
        item["milestones"] = [_to_wire(m, MILESTONE_FIELDS) for m in task.milestones]
        tasks.append(item)
    return {
        "tasks": tasks,
        "members": [_to_wire(m, MEMBER_FIELDS) for m in graph.members],
        "groups": [_to_wire(g, GROUP_FIELDS) for g in graph.groups],
    }


def graph_from_wire(data: dict) -> EntityGraph:
    """Parse the wire form; missing collections are treated as empty."""
    if not isinstance(data, dict):
        raise ValueError("Entity graph payload must be an object")
    tasks = []
    for item in data.get("tasks") or []:
        task = _from_wire(item, Task, TASK_FIELDS)
        task.logs = [_from_wire(l, DailyLog, LOG_FIELDS)
                     for l in item.get("logs") or []]
        task.milestones = [_from_wire(m, Milestone, MILESTONE_FIELDS)
                           for m in item.get("milestones") or []]
        tasks.append(task)
    return EntityGraph(
        groups=[_from_wire(g, Group, GROUP_FIELDS) for g in data.get("groups") or []],
        members=[_from_wire(m, Member, MEMBER_FIELDS) for m in data.get("members") or []],
        tasks=tasks,
    )
