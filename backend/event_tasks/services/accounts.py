import logging

from fastapi import HTTPException, status

from event_tasks.core.errors import Conflict
from event_tasks.core.security import create_access_token, get_password_hash, verify_password
from event_tasks.models.user import User
from event_tasks.services.store import EntityStore

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, store: EntityStore):
        self.store = store

    def register(self, name: str, email: str, password: str, shard: int = 0) -> User:
        if self.store.first_where(User, User.email == email):
            raise Conflict("users.email")
        user = User(name=name, email=email, password=get_password_hash(password), shard=shard)
        with self.store.transaction():
            self.store.add(user)
        logger.info("User %s registered", user.id)
        return user

    def login(self, email: str, password: str) -> dict:
        user = self.store.first_where(User, User.email == email)
        if not user or not verify_password(password, user.password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        token = create_access_token({"sub": str(user.id), "email": user.email})
        return {"access_token": token, "token_type": "bearer"}
