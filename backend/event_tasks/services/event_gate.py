from event_tasks.core.errors import NotFound
from event_tasks.models.event import Event
from event_tasks.services.store import EntityStore


class EventGate:
    def __init__(self, store: EntityStore):
        self.store = store

    def verify(self, event_id: str) -> Event:
        event = self.store.get(Event, event_id)
        if not event:
            raise NotFound("Event", event_id)
        return event
