import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from event_tasks.core.errors import (
    DomainError,
    InvalidReference,
    MalformedInput,
    NotFound,
    translate_storage_error,
)
from event_tasks.models.assignment import Assignment
from event_tasks.models.task import Task
from event_tasks.schemas.task import TaskItemOut, TaskOut
from event_tasks.services.directory import UserDirectory
from event_tasks.services.event_gate import EventGate
from event_tasks.services.store import EntityStore

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = {"title", "description", "due_time"}


def format_instant(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def normalize_instant(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def unique_in_order(values: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    result: list[int] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def check_user_ids(value: object, allow_empty: bool = False) -> list[int]:
    if not isinstance(value, list):
        raise MalformedInput("assigned_to", "must be an array of user IDs")
    if any(isinstance(item, bool) or not isinstance(item, int) for item in value):
        raise MalformedInput("assigned_to", "must contain only integer user IDs")
    if any(item <= 0 for item in value):
        raise MalformedInput("assigned_to", "must contain only positive user IDs")
    if not value and not allow_empty:
        raise MalformedInput("assigned_to", "must contain at least one user")
    return value


class AssignmentManager:
    """Tasks of one event together with their assigned users.

    Every operation first confirms the event through ``EventGate``. Mutations
    resolve the requested user ids before writing anything and then perform the
    task row and assignment rows as a single ``EntityStore`` transaction, so a
    rejected call never leaves partial rows behind. Assignment sets are always
    replaced wholesale and returned sorted and de-duplicated.
    """

    def __init__(
        self,
        store: EntityStore,
        gate: Optional[EventGate] = None,
        directory: Optional[UserDirectory] = None,
    ):
        self.store = store
        self.gate = gate or EventGate(store)
        self.directory = directory or UserDirectory(store)

    def _validate_user_ids(self, requested: list[int]) -> list[int]:
        unique_ids = unique_in_order(requested)
        existing = self.directory.resolve(unique_ids)
        invalid = [user_id for user_id in unique_ids if user_id not in existing]
        if invalid:
            raise InvalidReference("assigned_to", invalid)
        return unique_ids

    def _get_scoped_task(self, event_id: str, task_id: str) -> Task:
        task = self.store.first_where(Task, Task.id == task_id, Task.event_id == event_id)
        if not task:
            raise NotFound("Task", task_id)
        return task

    def _assignments_by_task(self, task_ids: list[str]) -> dict[str, list[int]]:
        grouped: dict[str, list[int]] = {task_id: [] for task_id in task_ids}
        if not task_ids:
            return grouped
        rows = self.store.select_where(
            (Assignment.task_id, Assignment.user_id),
            Assignment.task_id.in_(task_ids),
        )
        for task_id, user_id in rows:
            grouped.setdefault(task_id, []).append(user_id)
        return {task_id: sorted(set(user_ids)) for task_id, user_ids in grouped.items()}

    def _assigned_to(self, task_id: str) -> list[int]:
        return self._assignments_by_task([task_id])[task_id]

    @staticmethod
    def _item_out(task: Task, assigned_to: list[int]) -> TaskItemOut:
        return TaskItemOut(
            id=task.id,
            title=task.title,
            description=task.description,
            due_time=format_instant(task.due_time),
            assigned_to=assigned_to,
        )

    @staticmethod
    def _task_out(task: Task, assigned_to: list[int]) -> TaskOut:
        return TaskOut(
            id=task.id,
            title=task.title,
            description=task.description,
            due_time=format_instant(task.due_time),
            event_id=task.event_id,
            assigned_to=assigned_to,
        )

    def create(
        self,
        event_id: str,
        title: str,
        description: str,
        due_time: datetime,
        assigned_to: list[int],
    ) -> TaskOut:
        self.gate.verify(event_id)
        check_user_ids(assigned_to)
        user_ids = self._validate_user_ids(assigned_to)

        task = Task(
            title=title,
            description=description,
            due_time=normalize_instant(due_time),
            event_id=event_id,
        )
        with self.store.transaction():
            self.store.add(task)
            self.store.flush()
            self.store.add_all(Assignment(task_id=task.id, user_id=user_id) for user_id in user_ids)

        logger.info("Task %s created in event %s with %d assignment(s)", task.id, event_id, len(user_ids))
        return self._task_out(task, sorted(user_ids))

    def find_all(self, event_id: str) -> list[TaskItemOut]:
        self.gate.verify(event_id)
        tasks = self.store.list_where(
            Task,
            Task.event_id == event_id,
            order_by=(Task.due_time.asc(), Task.id.asc()),
        )
        assignments = self._assignments_by_task([task.id for task in tasks])
        return [self._item_out(task, assignments[task.id]) for task in tasks]

    def find_one(self, event_id: str, task_id: str) -> TaskItemOut:
        self.gate.verify(event_id)
        task = self._get_scoped_task(event_id, task_id)
        return self._item_out(task, self._assigned_to(task.id))

    def update(self, event_id: str, task_id: str, patch: dict) -> TaskItemOut:
        try:
            self.gate.verify(event_id)
            task = self._get_scoped_task(event_id, task_id)

            unknown = set(patch) - PATCHABLE_FIELDS - {"assigned_to"}
            if unknown:
                raise MalformedInput(", ".join(sorted(unknown)), "should not exist")

            replace_assignments = patch.get("assigned_to") is not None
            user_ids: list[int] = []
            if replace_assignments:
                requested = check_user_ids(patch["assigned_to"], allow_empty=True)
                if requested:
                    user_ids = self._validate_user_ids(requested)

            with self.store.transaction():
                if replace_assignments:
                    self.store.delete_where(Assignment, Assignment.task_id == task.id)
                    self.store.add_all(Assignment(task_id=task.id, user_id=user_id) for user_id in user_ids)
                for key in PATCHABLE_FIELDS:
                    value = patch.get(key)
                    if value is None:
                        continue
                    if key == "due_time":
                        value = normalize_instant(value)
                    setattr(task, key, value)

            assigned_to = sorted(user_ids) if replace_assignments else self._assigned_to(task.id)
            logger.info("Task %s updated in event %s", task.id, event_id)
            return self._item_out(task, assigned_to)
        except DomainError:
            raise
        except Exception as exc:
            raise translate_storage_error(exc) from exc

    def remove(self, event_id: str, task_id: str) -> TaskOut:
        self.gate.verify(event_id)
        try:
            task = self._get_scoped_task(event_id, task_id)
            snapshot = self._task_out(task, self._assigned_to(task.id))

            with self.store.transaction():
                self.store.delete_where(Assignment, Assignment.task_id == task.id)
                self.store.delete(task)

            logger.info("Task %s removed from event %s", task_id, event_id)
            return snapshot
        except DomainError:
            raise
        except Exception as exc:
            raise translate_storage_error(exc) from exc
