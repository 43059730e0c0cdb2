from fastapi import APIRouter, Depends, status

from event_tasks.core.auth import get_current_user
from event_tasks.database.deps import get_store
from event_tasks.models.user import User
from event_tasks.schemas.event import EventCreate, EventDeleted, EventOut, EventUpdate
from event_tasks.services.events import EventService
from event_tasks.services.store import EntityStore

router = APIRouter(prefix="/events", tags=["Events"])


def get_event_service(store: EntityStore = Depends(get_store)):
    return EventService(store)


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    service: EventService = Depends(get_event_service),
    current_user: User = Depends(get_current_user)
):
    return service.create(payload.model_dump())


@router.get("", response_model=list[EventOut])
def list_events(
    service: EventService = Depends(get_event_service),
    current_user: User = Depends(get_current_user)
):
    return service.find_all()


@router.get("/{event_id}", response_model=EventOut)
def read_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
    current_user: User = Depends(get_current_user)
):
    return service.find_one(event_id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    service: EventService = Depends(get_event_service),
    current_user: User = Depends(get_current_user)
):
    return service.update(event_id, payload.model_dump(exclude_unset=True))


@router.delete("/{event_id}", response_model=EventDeleted)
def delete_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
    current_user: User = Depends(get_current_user)
):
    return service.remove(event_id)
