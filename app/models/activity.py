import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class EventPlan(Base):
    """활동(행사) 계획.

    status: planning / ongoing / completed / cancelled
    """

    __tablename__ = "event_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="planning")

    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())


class ActivityDetail(Base):
    """활동에 딸린 세부 항목 (일정, 준비물, 공지 등)."""

    __tablename__ = "activity_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    event_plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("event_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    detail_type: Mapped[str] = mapped_column(String(30), nullable=False, server_default="general")

    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())


class ActivityRegistration(Base):
    """활동 참가 신청. (event_plan_id, user_id) 쌍은 유일."""

    __tablename__ = "activity_registrations"
    __table_args__ = (
        UniqueConstraint("event_plan_id", "user_id", name="uq_activity_registrations_event_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    event_plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("event_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="pending")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    registered_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
