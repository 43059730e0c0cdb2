import logging

from event_tasks.core.errors import MalformedInput
from event_tasks.models.assignment import Assignment
from event_tasks.models.event import Event
from event_tasks.models.task import Task
from event_tasks.services.assignments import normalize_instant
from event_tasks.services.event_gate import EventGate
from event_tasks.services.store import EntityStore

logger = logging.getLogger(__name__)

EVENT_FIELDS = ("name", "location", "start_time", "end_time")
TIME_FIELDS = {"start_time", "end_time"}


def clean_event_data(data: dict) -> dict:
    values = {}
    for key in EVENT_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        values[key] = normalize_instant(value) if key in TIME_FIELDS else value
    return values


def check_time_window(start_time, end_time):
    if not start_time or not end_time:
        return
    if normalize_instant(end_time) < normalize_instant(start_time):
        raise MalformedInput("end_time", "must not be before start_time")


class EventService:
    """Plain event CRUD. Deleting an event takes its tasks and their
    assignments with it, in the same order the task manager uses."""

    def __init__(self, store: EntityStore, gate: EventGate = None):
        self.store = store
        self.gate = gate or EventGate(store)

    def create(self, data: dict) -> Event:
        values = clean_event_data(data)
        check_time_window(values.get("start_time"), values.get("end_time"))
        event = Event(**values)
        with self.store.transaction():
            self.store.add(event)
        logger.info("Event %s created", event.id)
        return event

    def find_all(self) -> list[Event]:
        return self.store.list_where(Event, order_by=(Event.start_time.asc(), Event.id.asc()))

    def find_one(self, event_id: str) -> Event:
        return self.gate.verify(event_id)

    def update(self, event_id: str, data: dict) -> Event:
        event = self.gate.verify(event_id)
        changes = clean_event_data(data)
        check_time_window(
            changes.get("start_time", event.start_time),
            changes.get("end_time", event.end_time),
        )
        with self.store.transaction():
            for key, value in changes.items():
                setattr(event, key, value)
        return event

    def remove(self, event_id: str) -> dict:
        event = self.gate.verify(event_id)
        task_ids = [task_id for (task_id,) in self.store.select_where((Task.id,), Task.event_id == event_id)]
        with self.store.transaction():
            if task_ids:
                self.store.delete_where(Assignment, Assignment.task_id.in_(task_ids))
            self.store.delete_where(Task, Task.event_id == event_id)
            self.store.delete(event)
        logger.info("Event %s removed with %d task(s)", event_id, len(task_ids))
        return {"message": "Event deleted successfully"}
