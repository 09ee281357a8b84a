# fastapi_extjs_filterable/operators.py

from .utils import split_list


def _string_condition(column: str, value: str):
    return f"UPPER({column}) like ?", f"%{value.upper()}%"


def _list_condition(column: str, value: str):
    return f"{column} IN (?)", split_list(value)


# filter type -> (quoted column, raw value) -> (condition fragment, bound value)
FILTER_TYPES = {
    "string": _string_condition,
    "list": _list_condition,
}
