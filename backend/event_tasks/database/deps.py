from fastapi import Depends

from event_tasks.database.session import SessionLocal
from event_tasks.services.store import EntityStore


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db=Depends(get_db)):
    return EntityStore(db)
