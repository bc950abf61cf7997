from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime

from app.models.enums import ExpenseType

if TYPE_CHECKING:
    from app.models.user import User

class Expense(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    title: str
    amount: float
    type: ExpenseType = Field(default=ExpenseType.expense)
    category: str = Field(index=True)
    date: datetime = Field(default_factory=datetime.utcnow)
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    user: Optional["User"] = Relationship(back_populates="expenses")
