from app.utils.query_builder import NestedFilter, RangeFilter

EXPENSE_FILTER_FIELDS = ["type", "category"]

EXPENSE_SEARCH_FIELDS = ["title", "category", "note"]

EXPENSE_NESTED_FILTERS = [
    NestedFilter(param="userEmail", relationship="user", column="email"),
]

EXPENSE_RANGE_FILTERS = [
    RangeFilter(field="amount", min_param="minAmount", max_param="maxAmount", kind="number"),
    RangeFilter(field="date", min_param="startDate", max_param="endDate", kind="date"),
]

EXPENSE_INCLUDE = ["user"]
