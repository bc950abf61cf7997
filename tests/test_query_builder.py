from datetime import datetime

import pytest

from app.constants.expense import EXPENSE_NESTED_FILTERS, EXPENSE_RANGE_FILTERS, EXPENSE_SEARCH_FIELDS
from app.core.errors import BadRequestError
from app.models import Expense, ExpenseType
from app.utils.query_builder import QueryBuilder


def _builder(session, params):
    return QueryBuilder(params, Expense, session)


def test_filter_exact_match_and_enum_coercion(session, user, make_expense):
    make_expense(user, 10.0, category="Food")
    make_expense(user, 20.0, category="Rent")
    make_expense(user, 30.0, category="Food", type=ExpenseType.income)

    rows = _builder(session, {"category": "Food", "type": "expense"}).filter(["type", "category"]).execute()

    assert [r.amount for r in rows] == [10.0]


def test_filter_rejects_unknown_enum_value(session):
    with pytest.raises(BadRequestError):
        _builder(session, {"type": "refund"}).filter(["type"])


def test_search_is_case_insensitive_across_fields(session, user, make_expense):
    make_expense(user, 1.0, title="Coffee beans")
    make_expense(user, 2.0, title="Bus", note="late COFFEE run")
    make_expense(user, 3.0, title="Rent")

    rows = _builder(session, {"searchTerm": "coffee"}).search(EXPENSE_SEARCH_FIELDS).execute()

    assert sorted(r.amount for r in rows) == [1.0, 2.0]


def test_sort_descending_and_unknown_fields_ignored(session, user, make_expense):
    for amount in (5.0, 15.0, 10.0):
        make_expense(user, amount)

    rows = _builder(session, {"sort": "-amount,bogus"}).sort().execute()

    assert [r.amount for r in rows] == [15.0, 10.0, 5.0]


def test_paginate_and_count_total(session, user, make_expense):
    for i in range(7):
        make_expense(user, float(i + 1))

    builder = _builder(session, {"page": "2", "limit": "3", "sort": "amount"}).sort().paginate()

    assert [r.amount for r in builder.execute()] == [4.0, 5.0, 6.0]
    assert builder.count_total() == {"page": 2, "limit": 3, "total": 7, "totalPage": 3}


@pytest.mark.parametrize("params", [{"page": "abc"}, {"page": "0"}, {"limit": "-1"}])
def test_paginate_rejects_bad_values(session, params):
    with pytest.raises(BadRequestError):
        _builder(session, params).paginate()


def test_limit_is_capped(session):
    assert _builder(session, {"limit": "1000"}).paginate().limit == 100


def test_range_filters(session, user, make_expense):
    make_expense(user, 5.0, date=datetime(2025, 1, 31, 23, 0))
    make_expense(user, 50.0, date=datetime(2025, 2, 10))
    make_expense(user, 500.0, date=datetime(2025, 2, 28, 18, 30))
    make_expense(user, 70.0, date=datetime(2025, 3, 1))

    params = {"startDate": "2025-02-01", "endDate": "2025-02-28", "minAmount": "10"}
    rows = _builder(session, params).filter_by_range(EXPENSE_RANGE_FILTERS).execute()

    assert sorted(r.amount for r in rows) == [50.0, 500.0]

    params = {"maxAmount": "60"}
    rows = _builder(session, params).filter_by_range(EXPENSE_RANGE_FILTERS).execute()
    assert sorted(r.amount for r in rows) == [5.0, 50.0]


def test_range_filter_rejects_garbage(session):
    with pytest.raises(BadRequestError):
        _builder(session, {"startDate": "yesterday"}).filter_by_range(EXPENSE_RANGE_FILTERS)


def test_nested_filter_joins_relationship(session, user, other_user, make_expense):
    make_expense(user, 1.0)
    make_expense(other_user, 2.0)

    rows = _builder(session, {"userEmail": other_user.email}).nested_filter(EXPENSE_NESTED_FILTERS).execute()

    assert [r.amount for r in rows] == [2.0]


def test_raw_filter_and_fields(session, user, other_user, make_expense):
    make_expense(user, 1.0)
    make_expense(other_user, 2.0)

    builder = _builder(session, {"fields": "amount, nope"}).fields().raw_filter({"user_id": user.id})

    assert [r.amount for r in builder.execute()] == [1.0]
    assert builder.selected_fields == ["id", "amount"]


def test_search_treats_wildcards_literally(session, user, make_expense):
    make_expense(user, 1.0, title="50% off shoes")
    make_expense(user, 2.0, title="500 units")
    make_expense(user, 3.0, title="gift_card")
    make_expense(user, 4.0, title="giftXcard")

    percent = _builder(session, {"searchTerm": "50%"}).search(EXPENSE_SEARCH_FIELDS).execute()
    underscore = _builder(session, {"searchTerm": "gift_"}).search(EXPENSE_SEARCH_FIELDS).execute()

    assert [r.amount for r in percent] == [1.0]
    assert [r.amount for r in underscore] == [3.0]


def test_unpaginated_count_never_reports_zero_limit(session, user, make_expense):
    builder = _builder(session, {}).raw_filter({"user_id": user.id})
    assert builder.count_total() == {"page": 1, "limit": 1, "total": 0, "totalPage": 0}

    make_expense(user, 1.0)
    make_expense(user, 2.0)
    assert builder.count_total() == {"page": 1, "limit": 2, "total": 2, "totalPage": 1}
