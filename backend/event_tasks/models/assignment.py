from sqlalchemy import Column, ForeignKey, Integer, String
from event_tasks.database.base import Base

class Assignment(Base):
    __tablename__ = "task_assignments"

    task_id = Column(String(36), ForeignKey("tasks.id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True, index=True)
