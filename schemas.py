import datetime as dt
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models import (
    ClientRow,
    CredentialRow,
    Platform,
    ProjectType,
    TaskStatus,
    TransactionRow,
    TransactionType,
    WorkspaceTaskRow,
)


def _normalize_transaction_type(value: Any) -> Any:
    # older documents were written with lower-case types
    if isinstance(value, str):
        return value.strip().upper()
    return value


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ClientIn(WireModel):
    name: str = Field(..., max_length=200)
    platform: Platform
    project_type: ProjectType
    notes: str = ""
    budget: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    _name_required = field_validator("name")(_require_text)


class TransactionIn(WireModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    type: TransactionType
    category: str = Field(default="", max_length=100)
    date: dt.date
    note: str = ""
    client_id: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, value: Any) -> Any:
        return _normalize_transaction_type(value)

    @field_validator("client_id")
    @classmethod
    def _blank_client_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class CredentialIn(WireModel):
    platform_name: str = Field(..., max_length=200)
    login_name: str = Field(..., max_length=200)
    password: str
    notes: str = ""

    _platform_required = field_validator("platform_name")(_require_text)


class WorkspaceTaskIn(WireModel):
    client_id: Optional[str] = None
    title: str = Field(..., max_length=200)
    description: str = ""
    status: TaskStatus = TaskStatus.pending
    due_date: date
    budget: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    _title_required = field_validator("title")(_require_text)

    @field_validator("client_id")
    @classmethod
    def _blank_client_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class TaskStatusIn(BaseModel):
    status: TaskStatus


class ClientOut(ClientIn):
    id: str
    owner_id: str = Field(alias="userId")
    created_at: int


class TransactionOut(TransactionIn):
    id: str
    owner_id: str = Field(alias="userId")


class CredentialOut(CredentialIn):
    id: str
    owner_id: str = Field(alias="userId")
    created_at: int


class WorkspaceTaskOut(WorkspaceTaskIn):
    id: str
    owner_id: str = Field(alias="userId")
    created_at: int
    started_at: Optional[int] = None
    completed_at: Optional[int] = None


@dataclass(frozen=True)
class Collection:
    """Storage descriptor shared by the local and remote adapters."""

    key: str
    row: type
    record: type[WireModel]
    order_by: str
    stamped: bool = True


CLIENTS = Collection("clients", ClientRow, ClientOut, "created_at")
TRANSACTIONS = Collection(
    "transactions", TransactionRow, TransactionOut, "date", stamped=False
)
CREDENTIALS = Collection("credentials", CredentialRow, CredentialOut, "created_at")
WORKSPACE_TASKS = Collection(
    "workspaceTasks", WorkspaceTaskRow, WorkspaceTaskOut, "created_at"
)
ALL_COLLECTIONS = (CLIENTS, TRANSACTIONS, CREDENTIALS, WORKSPACE_TASKS)
