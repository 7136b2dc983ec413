"""Cross-platform filter clauses."""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

_DECIMAL = re.compile(r"-?\d+(\.\d+)?")


class FilterOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


VALUELESS_OPERATORS = frozenset({FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY})


class FilterClause(BaseModel):
    """One ``{field, operator, value}`` triple."""

    model_config = ConfigDict(frozen=True)

    field: str
    operator: FilterOperator
    value: Any = None

    @property
    def needs_value(self) -> bool:
        return self.operator not in VALUELESS_OPERATORS

    @property
    def is_usable(self) -> bool:
        """A clause is usable unless it needs a value and has a blank one.

        ``0`` and ``False`` are real values.
        """
        if not self.field:
            return False
        if not self.needs_value:
            return True
        if self.value is None:
            return False
        return str(self.value).strip() != ""


def parse_clauses(raw: Any) -> list[FilterClause]:
    """Parse a list of clause mappings, dropping entries that do not validate."""
    if not isinstance(raw, list):
        return []
    clauses = []
    for item in raw:
        if isinstance(item, FilterClause):
            clauses.append(item)
        elif isinstance(item, dict):
            try:
                clauses.append(FilterClause.model_validate(item))
            except ValueError:
                continue
    return clauses


def is_numeric(value: Any) -> bool:
    """Whether a value looks like a plain decimal number.

    Bools do not count, nor do ``nan``/``inf`` or strings such as ``"1_000"``
    that ``float()`` happens to accept.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return _DECIMAL.fullmatch(str(value).strip()) is not None
