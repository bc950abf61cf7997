"""
Expense service: CRUD with per-user ownership, listing and dashboard data.

Every function receives the open ``Session`` and, where the operation is
scoped to a user, the acting user's id.  Ownership violations surface as
``UnauthorizedError`` and missing records as ``NotFoundError``; the API
layer turns both into HTTP responses.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from sqlmodel import Session

from app.constants.expense import (
    EXPENSE_FILTER_FIELDS,
    EXPENSE_INCLUDE,
    EXPENSE_NESTED_FILTERS,
    EXPENSE_RANGE_FILTERS,
    EXPENSE_SEARCH_FIELDS,
)
from app.core.errors import NotFoundError, UnauthorizedError
from app.models.enums import ExpenseType
from app.models.expense import Expense
from app.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseWithUserRead
from app.utils.query_builder import QueryBuilder

logger = logging.getLogger(__name__)


def assert_ownership(session: Session, expense_id: UUID, user_id: UUID) -> Expense:
    expense = session.get(Expense, expense_id)
    if not expense:
        raise NotFoundError(f"Expense not found with this id: {expense_id}")
    if expense.user_id != user_id:
        logger.warning("User %s denied access to expense %s", user_id, expense_id)
        raise UnauthorizedError("You are not authorized to access this expense")
    return expense


def build_expense_query(
    session: Session,
    params: Mapping[str, Any],
    user_id: UUID,
    paginate: bool = True,
) -> QueryBuilder:
    builder = (
        QueryBuilder(params, Expense, session)
        .filter(EXPENSE_FILTER_FIELDS)
        .search(EXPENSE_SEARCH_FIELDS)
        .nested_filter(EXPENSE_NESTED_FILTERS)
        .sort()
    )
    if paginate:
        builder = builder.paginate()
    return (
        builder
        .include(EXPENSE_INCLUDE)
        .fields()
        .raw_filter({"user_id": user_id})
        .filter_by_range(EXPENSE_RANGE_FILTERS)
    )


def serialize_expense(expense: Expense, fields: Optional[List[str]] = None) -> Dict[str, Any]:
    data = ExpenseWithUserRead.model_validate(expense, from_attributes=True).model_dump(mode="json")
    if fields:
        return {key: value for key, value in data.items() if key in fields}
    return data


def create_expense(session: Session, data: ExpenseCreate, user_id: UUID) -> Expense:
    values = data.model_dump()
    if values.get("date") is None:
        values["date"] = datetime.utcnow()

    expense = Expense(**values, user_id=user_id)
    session.add(expense)
    session.commit()
    session.refresh(expense)

    logger.info("Created expense %s for user %s", expense.id, user_id)
    return expense


def get_expenses(session: Session, params: Mapping[str, Any], user_id: UUID) -> Dict[str, Any]:
    builder = build_expense_query(session, params, user_id)

    expenses = builder.execute()
    meta = builder.count_total()

    return {
        "data": [serialize_expense(e, builder.selected_fields) for e in expenses],
        "meta": meta,
    }


def get_expense_by_id(session: Session, expense_id: UUID) -> Optional[Expense]:
    return session.get(Expense, expense_id)


def update_expense(session: Session, expense_id: UUID, data: ExpenseUpdate, user_id: UUID) -> Expense:
    expense = assert_ownership(session, expense_id, user_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(expense, field, value)
    expense.updated_at = datetime.utcnow()

    session.add(expense)
    session.commit()
    session.refresh(expense)

    logger.info("Updated expense %s", expense_id)
    return expense


def delete_expense(session: Session, expense_id: UUID, user_id: UUID) -> None:
    expense = assert_ownership(session, expense_id, user_id)
    session.delete(expense)
    session.commit()
    logger.info("Deleted expense %s", expense_id)


def _percentage(amount: float, total: float) -> float:
    return round(amount / total * 100, 2) if total else 0


def summarize_expenses(expenses: List[Expense]) -> Dict[str, Any]:
    """Reduce a result set to the dashboard blocks.

    Months are keyed by their short name and keep the order in which they
    first appear in ``expenses``; income rows register the month but add
    nothing to it.  The category chart only looks at expense rows.
    """
    total_expenses = 0.0
    monthly: Dict[str, float] = {}
    by_category: Dict[str, float] = defaultdict(float)

    for e in expenses:
        month = e.date.strftime("%b")
        monthly.setdefault(month, 0.0)
        if e.type == ExpenseType.expense:
            total_expenses += e.amount
            monthly[month] += e.amount
            by_category[e.category] += e.amount

    return {
        "summary": {
            "totalExpenses": total_expenses,
            "totalTransactions": len(expenses),
        },
        "monthlyData": [
            {"month": month, "expenses": amount} for month, amount in monthly.items()
        ],
        "chart": [
            {
                "category": category,
                "amount": amount,
                "percentage": _percentage(amount, total_expenses),
            }
            for category, amount in by_category.items()
        ],
    }


def get_dashboard_data(session: Session, params: Mapping[str, Any], user_id: UUID) -> Dict[str, Any]:
    # the dashboard aggregates the whole filtered set, not a single page
    builder = build_expense_query(session, params, user_id, paginate=False)

    expenses = builder.execute()
    meta = builder.count_total()

    return {**summarize_expenses(expenses), "meta": meta}
