from typing import Iterable

from event_tasks.models.user import User
from event_tasks.services.store import EntityStore


class UserDirectory:
    """Read-only existence check over users."""

    def __init__(self, store: EntityStore):
        self.store = store

    def resolve(self, ids: Iterable[int]) -> set[int]:
        requested = set(ids)
        if not requested:
            return set()
        return {user.id for user in self.store.get_many(User, requested)}
