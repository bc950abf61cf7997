from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from app.models.enums import ExpenseType
from app.schemas.user import UserRead

def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # stored datetimes are naive UTC
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

class ExpenseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    amount: float = Field(gt=0)
    type: ExpenseType = ExpenseType.expense
    category: str = Field(min_length=1, max_length=100)
    date: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value):
        return _to_naive_utc(value)

class ExpenseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[ExpenseType] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator("title", "amount", "type", "category", "date")
    @classmethod
    def reject_null(cls, value):
        # only note may be cleared; the other columns are NOT NULL
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value):
        return _to_naive_utc(value)

class ExpenseRead(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    amount: float
    type: ExpenseType
    category: str
    date: datetime
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ExpenseWithUserRead(ExpenseRead):
    user: Optional[UserRead] = None

    model_config = ConfigDict(from_attributes=True)

class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    totalPage: int

class ExpenseListResponse(BaseModel):
    # items may be trimmed by the `fields` query param, so they stay loose dicts
    data: List[Dict[str, Any]]
    meta: PaginationMeta

class DashboardSummary(BaseModel):
    totalExpenses: float
    totalTransactions: int

class MonthlyExpenses(BaseModel):
    month: str
    expenses: float

class CategoryShare(BaseModel):
    category: str
    amount: float
    percentage: float

class DashboardResponse(BaseModel):
    summary: DashboardSummary
    monthlyData: List[MonthlyExpenses]
    chart: List[CategoryShare]
    meta: PaginationMeta
