from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from event_tasks.database.base import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    due_time = Column(DateTime(timezone=True), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
