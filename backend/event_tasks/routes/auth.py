from fastapi import APIRouter, Depends, status

from event_tasks.core.auth import get_current_user
from event_tasks.database.deps import get_store
from event_tasks.models.user import User
from event_tasks.schemas.token import Token
from event_tasks.schemas.user import UserCreate, UserLogin, UserOut
from event_tasks.services.accounts import AccountService
from event_tasks.services.store import EntityStore

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_account_service(store: EntityStore = Depends(get_store)):
    return AccountService(store)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, service: AccountService = Depends(get_account_service)):
    return service.register(payload.name, payload.email, payload.password, payload.shard)


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, service: AccountService = Depends(get_account_service)):
    return service.login(credentials.email, credentials.password)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
