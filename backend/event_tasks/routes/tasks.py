from fastapi import APIRouter, Depends, status

from event_tasks.core.auth import get_current_user
from event_tasks.database.deps import get_store
from event_tasks.models.user import User
from event_tasks.schemas.task import TaskCreate, TaskItemOut, TaskOut, TaskUpdate
from event_tasks.services.assignments import AssignmentManager
from event_tasks.services.store import EntityStore

router = APIRouter(
    prefix="/events/{event_id}/tasks",
    tags=["tasks"]
)


def get_assignment_manager(store: EntityStore = Depends(get_store)):
    return AssignmentManager(store)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    event_id: str,
    task: TaskCreate,
    manager: AssignmentManager = Depends(get_assignment_manager),
    current_user: User = Depends(get_current_user)
):
    return manager.create(
        event_id,
        title=task.title,
        description=task.description,
        due_time=task.due_time,
        assigned_to=task.assigned_to,
    )


@router.get("", response_model=list[TaskItemOut])
def read_tasks(
    event_id: str,
    manager: AssignmentManager = Depends(get_assignment_manager),
    current_user: User = Depends(get_current_user)
):
    return manager.find_all(event_id)


@router.get("/{task_id}", response_model=TaskItemOut)
def read_task(
    event_id: str,
    task_id: str,
    manager: AssignmentManager = Depends(get_assignment_manager),
    current_user: User = Depends(get_current_user)
):
    return manager.find_one(event_id, task_id)


@router.put("/{task_id}", response_model=TaskItemOut)
def update_task(
    event_id: str,
    task_id: str,
    task: TaskUpdate,
    manager: AssignmentManager = Depends(get_assignment_manager),
    current_user: User = Depends(get_current_user)
):
    return manager.update(event_id, task_id, task.model_dump(exclude_unset=True))


@router.delete("/{task_id}", response_model=TaskOut)
def delete_task(
    event_id: str,
    task_id: str,
    manager: AssignmentManager = Depends(get_assignment_manager),
    current_user: User = Depends(get_current_user)
):
    return manager.remove(event_id, task_id)
