"""Rule row entity.

Fixed-width representation of one policy rule, independent of the table
model used to persist it.

Layout:
    ptype='p', values=('alice', 'data1', 'read', '', '', '')
    ptype='g', values=('alice', 'admin', '', '', '', '')

The empty string only ever means "slot unused". The id is assigned by the
database and is used for ordering; two rows with the same ptype and values
are the same rule regardless of id.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class RuleRow:
    """One policy rule encoded into fixed-width columns.

    Attributes:
        ptype: Rule family ('p', 'p2', 'g', 'g2', ...).
        values: Exactly one entry per value column, '' for unused slots.
        id: Database identity, None until persisted.
    """

    ptype: str
    values: tuple[str, ...]
    id: int | None = None

    @property
    def width(self) -> int:
        """Number of value slots."""
        return len(self.values)

    @property
    def section(self) -> str:
        """Model section the rule belongs to ('p' or 'g')."""
        return self.ptype[:1]

    def to_columns(self) -> dict[str, str]:
        """Column mapping for inserts: {'ptype': ..., 'v0': ..., ...}."""
        columns = {"ptype": self.ptype}
        for index, value in enumerate(self.values):
            columns[f"v{index}"] = value
        return columns

    def non_empty_columns(self) -> dict[str, str]:
        """Column mapping restricted to ptype and the non-empty value slots."""
        columns = {"ptype": self.ptype}
        for index, value in enumerate(self.values):
            if value != "":
                columns[f"v{index}"] = value
        return columns

    def identity(self) -> tuple[str, ...]:
        """Deduplication key (ptype followed by every slot)."""
        return (self.ptype, *self.values)
