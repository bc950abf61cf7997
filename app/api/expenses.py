from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from app.core.security import get_current_user
from app.database import get_session
from app.schemas.expense import (
    DashboardResponse,
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseRead,
    ExpenseUpdate,
    ExpenseWithUserRead,
)
from app.services import expenses as expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])

@router.post("", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_expense(
    expense_data: ExpenseCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    expense = expense_service.create_expense(session, expense_data, user_id)
    return ExpenseRead.model_validate(expense, from_attributes=True)

@router.get("", response_model=ExpenseListResponse)
@router.get("/", response_model=ExpenseListResponse, include_in_schema=False)
def list_expenses(
    request: Request,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Query params: searchTerm, type, category, userEmail, minAmount, maxAmount,
    startDate, endDate, sort (e.g. ``-date,amount``), page, limit, fields.
    """
    return expense_service.get_expenses(session, request.query_params, user_id)

# declared before /{expense_id} so "dashboard" is not parsed as an id
@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    request: Request,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return expense_service.get_dashboard_data(session, request.query_params, user_id)

@router.get("/{expense_id}", response_model=ExpenseWithUserRead)
def get_expense(
    expense_id: UUID,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    expense = expense_service.assert_ownership(session, expense_id, user_id)
    return ExpenseWithUserRead.model_validate(expense, from_attributes=True)

@router.patch("/{expense_id}", response_model=ExpenseRead)
def update_expense(
    expense_id: UUID,
    data: ExpenseUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    expense = expense_service.update_expense(session, expense_id, data, user_id)
    return ExpenseRead.model_validate(expense, from_attributes=True)

@router.delete("/{expense_id}")
def delete_expense(
    expense_id: UUID,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    expense_service.delete_expense(session, expense_id, user_id)
    return {"message": "Expense deleted successfully"}
