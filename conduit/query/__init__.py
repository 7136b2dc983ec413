"""External query adapter: filter clauses to platform-native queries."""

from typing import Any

from conduit.query.airtable import build_formula
from conduit.query.filters import FilterClause, FilterOperator, parse_clauses
from conduit.query.splynx import build_main_attributes

BUILDERS = {
    "airtable": build_formula,
    "splynx": build_main_attributes,
}


def build_native_query(platform_type: str, clauses: list[FilterClause]) -> Any | None:
    """Translate clauses for a platform.

    Returns ``None`` ("no filter") for platforms without a query
    language and for clause lists with nothing usable in them.
    """
    builder = BUILDERS.get(platform_type)
    if builder is None:
        return None
    return builder(clauses)


__all__ = [
    "FilterClause",
    "FilterOperator",
    "build_formula",
    "build_main_attributes",
    "build_native_query",
    "parse_clauses",
]
