"""SQLModel ORM tables for the task status store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class TaskStatusRecord(SQLModel, table=True):
    __tablename__ = "task_statuses"  # type: ignore[bad-override]

    task_id: str = Field(primary_key=True)
    status: str = Field(index=True)
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
