"""Airtable ``filterByFormula`` builder."""

from collections.abc import Iterable

from conduit.query.filters import FilterClause, FilterOperator, is_numeric

COMPARISONS = {
    FilterOperator.EQUALS: "=",
    FilterOperator.NOT_EQUALS: "!=",
    FilterOperator.GREATER_THAN: ">",
    FilterOperator.LESS_THAN: "<",
    FilterOperator.GREATER_THAN_OR_EQUAL: ">=",
    FilterOperator.LESS_THAN_OR_EQUAL: "<=",
}


def _quote(value) -> str:
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _literal(value) -> str:
    return str(value).strip() if is_numeric(value) else _quote(value)


def clause_formula(clause: FilterClause) -> str:
    """Formula for a single clause."""
    field = f"{{{clause.field}}}"
    op = clause.operator
    if op == FilterOperator.IS_EMPTY:
        return f"{field} = BLANK()"
    if op == FilterOperator.IS_NOT_EMPTY:
        return f"{field} != BLANK()"
    if op == FilterOperator.CONTAINS:
        return f"FIND({_quote(clause.value)}, {field}) > 0"
    if op == FilterOperator.NOT_CONTAINS:
        return f"FIND({_quote(clause.value)}, {field}) = 0"
    return f"{field} {COMPARISONS[op]} {_literal(clause.value)}"


def build_formula(clauses: Iterable[FilterClause]) -> str | None:
    """Combine clauses into one formula.

    Returns:
        ``None`` when no clause is usable, the bare formula for a single
        clause, otherwise ``AND(a, b, ...)``.
    """
    parts = [clause_formula(c) for c in clauses if c.is_usable]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return f"AND({', '.join(parts)})"
