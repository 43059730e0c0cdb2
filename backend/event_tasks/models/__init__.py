from event_tasks.models.assignment import Assignment  # noqa: F401
from event_tasks.models.event import Event  # noqa: F401
from event_tasks.models.task import Task  # noqa: F401
from event_tasks.models.user import User  # noqa: F401
