"""Data models for the entity graph."""

import copy
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Group:
    id: str = ""
    name: str = ""


@dataclass
class Member:
    id: str = ""
    name: str = ""
    role: str = ""
    avatar: str = ""
    group_id: str = ""


@dataclass
class DailyLog:
    """One progress report; append-only once recorded."""
    id: str = ""
    date: str = ""  # ISO timestamp
    progress_snapshot: int = 0
    note: str = ""


@dataclass
class Milestone:
    id: str = ""
    title: str = ""
    is_completed: bool = False


@dataclass
class Task:
    id: str = ""
    title: str = ""
    outcome: str = ""
    assigned_to: str = ""  # Member id, not enforced
    start_date: str = ""
    due_date: str = ""
    progress: int = 0  # 0-100
    logs: list[DailyLog] = field(default_factory=list)
    milestones: list[Milestone] = field(default_factory=list)

    @property
    def latest_log(self) -> Optional[DailyLog]:
        return self.logs[-1] if self.logs else None

    @property
    def completed_milestones(self) -> int:
        return sum(1 for m in self.milestones if m.is_completed)

    def find_milestone(self, milestone_id: str) -> Optional[Milestone]:
        return next((m for m in self.milestones if m.id == milestone_id), None)


@dataclass
class EntityGraph:
    """Everything the dashboard edits: groups, members, and tasks."""

    groups: list[Group] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)

    def find_group(self, group_id: str) -> Optional[Group]:
        return next((g for g in self.groups if g.id == group_id), None)

    def find_member(self, member_id: str) -> Optional[Member]:
        return next((m for m in self.members if m.id == member_id), None)

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def members_in_group(self, group_id: str) -> list[Member]:
        return [m for m in self.members if m.group_id == group_id]

    def copy(self) -> "EntityGraph":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """JSON-ready form with camelCase keys."""
        from taskpulse.database.mapper import graph_to_wire
        return graph_to_wire(self)

    @classmethod
    def from_dict(cls, data: dict) -> "EntityGraph":
        from taskpulse.database.mapper import graph_from_wire
        return graph_from_wire(data)
