from enum import Enum

class ExpenseType(str, Enum):
    income = "income"
    expense = "expense"
