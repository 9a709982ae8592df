"""EditSession — the in-memory entity graph and every edit the dashboard makes.

Edits are validated before they touch the graph; a rejected edit raises
ValidationFailure and leaves the graph exactly as it was. Each applied edit
emits ``changed``, which an attached SyncScheduler turns into a save.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from PySide6.QtCore import QObject, Signal

from taskpulse.database.models import (
    DailyLog,
    EntityGraph,
    Group,
    Member,
    Milestone,
    Task,
)
from taskpulse.errors import NotConfigured, ValidationFailure
from taskpulse.utils.constants import PROGRESS_MAX, PROGRESS_MIN

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Time-ordered unique id for entities created in this session."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _check_progress(value: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailure(f"Progress must be an integer, got {value!r}")
    if not PROGRESS_MIN <= value <= PROGRESS_MAX:
        raise ValidationFailure(
            f"Progress must be between {PROGRESS_MIN} and {PROGRESS_MAX}, got {value}"
        )


class EditSession(QObject):
    """Single-editor owner of the mutable graph."""

    changed = Signal()
    config_required = Signal()
    loaded = Signal()

    def __init__(self, connector, parent=None):
        super().__init__(parent)
        self.connector = connector
        self.graph = EntityGraph()
        self.scheduler = None
        self.is_loaded = False

    def attach_scheduler(self, scheduler):
        """Route every applied edit to ``scheduler.notify_changed``."""
        self.scheduler = scheduler
        self.changed.connect(scheduler.notify_changed)
        if self.is_loaded:
            scheduler.mark_loaded()

    def snapshot(self) -> EntityGraph:
        return self.graph.copy()

    def load(self) -> EntityGraph:
        """Fetch the initial graph; no save is scheduled before this returns.

        When the server has no database yet, the offline graph is shown but
        saving stays disarmed; call ``load`` again once setup completes.
        """
        try:
            self.graph = self.connector.fetch_graph()
        except NotConfigured:
            logger.info("Database not configured; prompting for setup")
            self.graph = self.connector.load_offline()
            self.config_required.emit()
            return self.graph
        self.is_loaded = True
        if self.scheduler is not None:
            self.scheduler.mark_loaded()
        self.loaded.emit()
        return self.graph

    def close(self):
        if self.scheduler is not None:
            self.scheduler.close()

    def _commit(self):
        self.changed.emit()

    # ── Lookups ─────────────────────────────────────────────────

    def _require_task(self, task_id: str) -> Task:
        task = self.graph.find_task(task_id)
        if task is None:
            raise ValidationFailure(f"Unknown task {task_id!r}")
        return task

    def _index_of(self, items: list, item_id: str, kind: str) -> int:
        for i, item in enumerate(items):
            if item.id == item_id:
                return i
        raise ValidationFailure(f"Unknown {kind} {item_id!r}")

    def _reject_duplicate(self, items: list, item_id: str, kind: str):
        if not item_id:
            raise ValidationFailure(f"A {kind} needs an id")
        if any(item.id == item_id for item in items):
            raise ValidationFailure(f"Duplicate {kind} id {item_id!r}")

    # ── Groups ──────────────────────────────────────────────────

    def add_group(self, group: Group) -> Group:
        self._reject_duplicate(self.graph.groups, group.id, "group")
        self.graph.groups.append(group)
        self._commit()
        return group

    def update_group(self, group: Group):
        idx = self._index_of(self.graph.groups, group.id, "group")
        self.graph.groups[idx] = group
        self._commit()

    def delete_group(self, group_id: str):
        """Remove a group; refused while any member still belongs to it."""
        idx = self._index_of(self.graph.groups, group_id, "group")
        members = self.graph.members_in_group(group_id)
        if members:
            raise ValidationFailure(
                f"Group {group_id!r} still has {len(members)} member(s); "
                "move or remove them first"
            )
        del self.graph.groups[idx]
        self._commit()

    # ── Members ─────────────────────────────────────────────────

    def add_member(self, member: Member) -> Member:
        self._reject_duplicate(self.graph.members, member.id, "member")
        self.graph.members.append(member)
        self._commit()
        return member

    def update_member(self, member: Member):
        idx = self._index_of(self.graph.members, member.id, "member")
        self.graph.members[idx] = member
        self._commit()

    def delete_member(self, member_id: str):
        """Remove a member. Their tasks keep the now-dangling assignment."""
        idx = self._index_of(self.graph.members, member_id, "member")
        del self.graph.members[idx]
        self._commit()

    # ── Tasks ───────────────────────────────────────────────────

    def add_task(self, task: Task) -> Task:
        self._reject_duplicate(self.graph.tasks, task.id, "task")
        _check_progress(task.progress)
        self.graph.tasks.append(task)
        self._commit()
        return task

    def update_task(self, task_id: str, **changes) -> Task:
        """Edit a task's own fields; logs and milestones have their own calls."""
        task = self._require_task(task_id)
        allowed = {"title", "outcome", "assigned_to", "start_date",
                   "due_date", "progress"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationFailure(f"Cannot edit task fields {sorted(unknown)}")
        if "progress" in changes:
            _check_progress(changes["progress"])
        for name, value in changes.items():
            setattr(task, name, value)
        self._commit()
        return task

    def delete_task(self, task_id: str):
        idx = self._index_of(self.graph.tasks, task_id, "task")
        del self.graph.tasks[idx]
        self._commit()

    def record_progress(self, task_id: str, progress: int, note: str = "",
                        when: Optional[datetime] = None) -> DailyLog:
        """Set a task's progress and append the matching daily log."""
        task = self._require_task(task_id)
        _check_progress(progress)
        log = DailyLog(
            id=new_id(),
            date=(when or datetime.now(timezone.utc)).isoformat(),
            progress_snapshot=progress,
            note=note,
        )
        task.progress = progress
        task.logs.append(log)
        self._commit()
        return log

    # ── Milestones ──────────────────────────────────────────────

    def add_milestone(self, task_id: str, title: str) -> Milestone:
        task = self._require_task(task_id)
        milestone = Milestone(id=new_id(), title=title)
        task.milestones.append(milestone)
        self._commit()
        return milestone

    def toggle_milestone(self, task_id: str, milestone_id: str) -> Milestone:
        task = self._require_task(task_id)
        idx = self._index_of(task.milestones, milestone_id, "milestone")
        milestone = task.milestones[idx]
        milestone.is_completed = not milestone.is_completed
        self._commit()
        return milestone

    def delete_milestone(self, task_id: str, milestone_id: str):
        task = self._require_task(task_id)
        idx = self._index_of(task.milestones, milestone_id, "milestone")
        del task.milestones[idx]
        self._commit()
