from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    Enum as SAEnum,
    Float,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class TransactionType(str, Enum):
    income = "INCOME"
    expense = "EXPENSE"


class Platform(str, Enum):
    youtube = "YouTube"
    instagram = "Instagram"
    freelance = "Freelance"
    other = "Other"


class ProjectType(str, Enum):
    thumbnail = "Thumbnail"
    video_editing = "Video Editing"
    graphic_design = "Graphic Design"
    consultation = "Consultation"


class TaskStatus(str, Enum):
    pending = "PENDING"
    working = "WORKING"
    completed = "COMPLETED"


def _values_enum(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda cls: [member.value for member in cls],
    )


class ClientRow(Base):
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    platform: Mapped[Platform] = mapped_column(
        _values_enum(Platform, "platform"), nullable=False
    )
    project_type: Mapped[ProjectType] = mapped_column(
        _values_enum(ProjectType, "projecttype"), nullable=False
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    budget: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_clients_owner_created", "owner_id", "created_at"),
        CheckConstraint("budget IS NULL OR budget >= 0", name="ck_clients_budget"),
    )


class TransactionRow(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        _values_enum(TransactionType, "transactiontype"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    date: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # weak reference, deliberately no ForeignKey
    client_id: Mapped[Optional[str]] = mapped_column(String(36))

    __table_args__ = (
        Index("ix_transactions_owner_date", "owner_id", "date"),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )


class CredentialRow(Base):
    __tablename__ = "credentials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    platform_name: Mapped[str] = mapped_column(String(200), nullable=False)
    login_name: Mapped[str] = mapped_column(String(200), nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("ix_credentials_owner_created", "owner_id", "created_at"),)


class WorkspaceTaskRow(Base):
    __tablename__ = "workspace_tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    client_id: Mapped[Optional[str]] = mapped_column(String(36))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[TaskStatus] = mapped_column(
        _values_enum(TaskStatus, "taskstatus"), nullable=False
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    budget: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    started_at: Mapped[Optional[int]] = mapped_column(BigInteger)
    completed_at: Mapped[Optional[int]] = mapped_column(BigInteger)

    __table_args__ = (
        Index("ix_workspace_tasks_owner_created", "owner_id", "created_at"),
    )
