"""Rule filter value objects.

A Filter lists, per column, the values a row may hold. Empty columns are
unconstrained; constrained columns are combined with AND.

A BatchFilter is an ordered sequence of Filters. Applying it runs every
filter as its own query and concatenates the results in filter order. A row
matched by two filters appears twice unless distinct=True is requested.

Usage:
    from rulestore.domain.value_objects import BatchFilter, Filter

    only_alice = Filter(v0=["alice"])
    batch = BatchFilter(filters=[Filter(v0=["alice"]), Filter(v1=["data2"])])
    await enforcer.load_filtered_policy(batch)
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, fields

FILTER_COLUMNS: tuple[str, ...] = (
    "ptype",
    "v0",
    "v1",
    "v2",
    "v3",
    "v4",
    "v5",
    "v6",
    "v7",
)


def _as_tuple(values: Iterable[str] | str) -> tuple[str, ...]:
    # A bare string is one value, not a sequence of characters.
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True, slots=True, kw_only=True)
class Filter:
    """Per-column accepted values for one filtered query.

    Attributes:
        ptype: Accepted rule families.
        v0-v7: Accepted values for each value column.

    Example:
        Filter(ptype=["p"], v0=["alice", "bob"])
        # ptype IN ('p') AND v0 IN ('alice', 'bob')
    """

    ptype: Sequence[str] = ()
    v0: Sequence[str] = ()
    v1: Sequence[str] = ()
    v2: Sequence[str] = ()
    v3: Sequence[str] = ()
    v4: Sequence[str] = ()
    v5: Sequence[str] = ()
    v6: Sequence[str] = ()
    v7: Sequence[str] = ()

    def __post_init__(self) -> None:
        """Freeze every column into a tuple."""
        for column in fields(self):
            object.__setattr__(
                self, column.name, _as_tuple(getattr(self, column.name))
            )

    def constraints(self) -> dict[str, tuple[str, ...]]:
        """Constrained columns only, in column order.

        Returns:
            dict: Column name -> accepted values, omitting empty columns.
        """
        return {
            name: tuple(getattr(self, name))
            for name in FILTER_COLUMNS
            if getattr(self, name)
        }

    @property
    def is_empty(self) -> bool:
        """True when no column is constrained (matches every row)."""
        return not self.constraints()


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchFilter:
    """Ordered sequence of filters whose results are concatenated.

    Attributes:
        filters: Filters applied in order.
        distinct: Skip rows an earlier filter already produced. Off by default;
            duplicates are part of the observable behavior.
    """

    filters: Sequence[Filter] = field(default_factory=tuple)
    distinct: bool = False

    def __post_init__(self) -> None:
        """Freeze the filter list."""
        object.__setattr__(self, "filters", tuple(self.filters))

    def __iter__(self):
        return iter(self.filters)

    def __len__(self) -> int:
        return len(self.filters)
