"""Filter builder: SQL predicates for filtered loads, deletes and updates.

- build_filter_clause(): AND of `column IN (...)` over a Filter's constrained
  columns
- normalize_filter(): coerce the filter argument of load_filtered_policy()
  into a BatchFilter
- build_row_match_clause(): equality on ptype and every non-empty slot of a
  (partial) row
- conditions_to_query(): fold raw boolean conditions into a SELECT, combined
  with OR or AND

Usage:
    from sqlalchemy import select

    clause = build_filter_clause(CasbinRule, Filter(v0=["alice"]))
    stmt = select(CasbinRule).where(clause)
"""

from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, and_, or_, text, true

from rulestore.core.errors import UnsupportedFilterError
from rulestore.domain.entities import RuleRow
from rulestore.domain.enums import CombineType
from rulestore.domain.value_objects import BatchFilter, Filter

_Statement = TypeVar("_Statement")


def build_filter_clause(model: type, rule_filter: Filter) -> ColumnElement[bool]:
    """Build the WHERE clause of one Filter.

    Args:
        model: Mapped rule table model.
        rule_filter: Per-column accepted values.

    Returns:
        ColumnElement[bool]: Conjunction of IN predicates, or true() when the
            filter constrains nothing.

    Raises:
        UnsupportedFilterError: If a constrained column does not exist on
            the table (e.g. v7 on a six-column table).
    """
    columns = model.__table__.c
    clauses = []
    for name, values in rule_filter.constraints().items():
        if name not in columns:
            raise UnsupportedFilterError(
                f"filter constrains column {name} which table "
                f"{model.__table__.name} does not have",
                details={"column": name},
            )
        clauses.append(columns[name].in_(values))

    if not clauses:
        return true()
    return and_(*clauses)


def normalize_filter(rule_filter: Any) -> BatchFilter:
    """Coerce a Filter, BatchFilter or list/tuple of Filters into a BatchFilter.

    Raises:
        UnsupportedFilterError: For any other value.
    """
    if isinstance(rule_filter, BatchFilter):
        return rule_filter
    if isinstance(rule_filter, Filter):
        return BatchFilter(filters=(rule_filter,))
    if isinstance(rule_filter, (list, tuple)) and all(
        isinstance(item, Filter) for item in rule_filter
    ):
        return BatchFilter(filters=tuple(rule_filter))

    raise UnsupportedFilterError(
        f"unsupported filter type: {type(rule_filter).__name__}",
        details={"filter": repr(rule_filter)},
    )


def build_row_match_clause(model: type, row: RuleRow) -> ColumnElement[bool]:
    """Match ptype and every non-empty slot of a row.

    Empty slots are unconstrained, so a short rule also matches longer stored
    rules sharing its prefix values.

    Args:
        model: Mapped rule table model.
        row: Encoded (possibly partial) row.

    Returns:
        ColumnElement[bool]: Conjunction of equality predicates.
    """
    columns = model.__table__.c
    return and_(
        *(columns[name] == value for name, value in row.non_empty_columns().items())
    )


def conditions_to_query(
    stmt: _Statement,
    conditions: Sequence[str | ColumnElement[bool]],
    combine: CombineType | str = CombineType.OR,
) -> _Statement:
    """Fold raw conditions into a statement's WHERE clause.

    Plain strings are wrapped with text(). Conditions are combined left to
    right with OR or AND, and the result is ANDed onto any existing WHERE.
    The conditions typically come from Casbin's get_allowed_object_conditions().

    Args:
        stmt: SELECT (or any statement supporting .where()).
        conditions: SQL fragments or boolean expressions.
        combine: CombineType.OR or CombineType.AND.

    Returns:
        The statement with the combined condition applied; unchanged when
        conditions is empty.

    Example:
        >>> stmt = conditions_to_query(
        ...     select(Document), ["owner = 'alice'", "public = 1"], CombineType.OR
        ... )
        # SELECT ... WHERE owner = 'alice' OR public = 1
    """
    combine = CombineType(combine)
    joiner = or_ if combine is CombineType.OR else and_

    combined: ColumnElement[bool] | None = None
    for condition in conditions:
        clause = text(condition) if isinstance(condition, str) else condition
        combined = clause if combined is None else joiner(combined, clause)

    if combined is None:
        return stmt
    return stmt.where(combined)
