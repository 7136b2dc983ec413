"""Splynx ``main_attributes`` REST filter builder."""

from collections.abc import Iterable
from typing import Any

from conduit.query.filters import FilterClause, FilterOperator

_OPERATOR_PREFIX = {
    FilterOperator.NOT_EQUALS: "!=",
    FilterOperator.GREATER_THAN: ">",
    FilterOperator.LESS_THAN: "<",
    FilterOperator.GREATER_THAN_OR_EQUAL: ">=",
    FilterOperator.LESS_THAN_OR_EQUAL: "<=",
}


def clause_attribute(clause: FilterClause) -> Any | None:
    """Splynx attribute value for one clause, or None if Splynx cannot express it."""
    op = clause.operator
    if op == FilterOperator.EQUALS:
        return clause.value
    if op == FilterOperator.CONTAINS:
        return ["like", f"%{clause.value}%"]
    if op == FilterOperator.IS_EMPTY:
        return ["is", "null"]
    if op == FilterOperator.IS_NOT_EMPTY:
        return ["is not", "null"]
    if op in _OPERATOR_PREFIX:
        return [_OPERATOR_PREFIX[op], clause.value]
    return None


def build_main_attributes(clauses: Iterable[FilterClause]) -> dict[str, Any] | None:
    """Build the ``main_attributes`` mapping.

    Splynx ANDs all attributes together. A later clause on the same
    field replaces an earlier one.

    Returns:
        ``None`` when no clause is usable.
    """
    attributes: dict[str, Any] = {}
    for clause in clauses:
        if not clause.is_usable:
            continue
        value = clause_attribute(clause)
        if value is not None:
            attributes[clause.field] = value
    return attributes or None


def flatten_main_attributes(attributes: dict[str, Any]) -> dict[str, str]:
    """Encode ``main_attributes`` as PHP-style query parameters.

    ``{"status": "active", "age": [">", 30]}`` becomes
    ``main_attributes[status]=active``, ``main_attributes[age][0]=>``,
    ``main_attributes[age][1]=30``.
    """
    params: dict[str, str] = {}
    for field, value in attributes.items():
        if isinstance(value, list):
            for index, item in enumerate(value):
                params[f"main_attributes[{field}][{index}]"] = str(item)
        else:
            params[f"main_attributes[{field}]"] = str(value)
    return params
