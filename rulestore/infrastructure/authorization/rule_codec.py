"""Rule codec: variable-length rules <-> fixed-width rule rows.

A rule is [ptype, v0, ..., vk]. A row always has one entry per value column;
unused trailing slots hold ''. Decoding drops trailing '' slots but keeps
interior ones, so a rule survives the round trip unless it ends in ''.

    encode_rule("p", ["alice", "", "read"], 6)
    # RuleRow(ptype='p', values=('alice', '', 'read', '', '', ''))
    decode_rule(row)
    # ['p', 'alice', '', 'read']
"""

from collections.abc import Sequence

from rulestore.core.errors import RuleEncodingError
from rulestore.domain.entities import RuleRow


def encode_rule(ptype: str, rule: Sequence[str], value_slots: int) -> RuleRow:
    """Encode a rule (without ptype) into a fixed-width row.

    Args:
        ptype: Rule family.
        rule: Rule values.
        value_slots: Number of value columns of the table.

    Returns:
        RuleRow: Row with unused slots set to ''.

    Raises:
        RuleEncodingError: If the rule has more values than value columns.
    """
    if len(rule) > value_slots:
        raise RuleEncodingError(
            f"rule has {len(rule)} values but the table has {value_slots} value columns",
            details={"ptype": ptype, "rule": list(rule)},
        )
    values = tuple(rule) + ("",) * (value_slots - len(rule))
    return RuleRow(ptype=ptype, values=values)


def decode_rule(row: RuleRow) -> list[str]:
    """Decode a row into [ptype, v0, ..., vm], m being the last non-empty slot."""
    last = len(row.values)
    while last > 0 and row.values[last - 1] == "":
        last -= 1
    return [row.ptype, *row.values[:last]]


def encode_field_filter(
    ptype: str,
    field_index: int,
    field_values: Sequence[str],
    value_slots: int,
) -> RuleRow:
    """Encode field values starting at field_index into a partial row.

    Slots outside the given range, and slots whose value is '', stay
    unconstrained.

    Args:
        ptype: Rule family.
        field_index: Value column of the first field value.
        field_values: Values for consecutive columns from field_index on.
        value_slots: Number of value columns of the table.

    Returns:
        RuleRow: Partial row for build_row_match_clause().

    Raises:
        RuleEncodingError: If field_index is negative or the values run past
            the last value column.
    """
    if field_index < 0 or field_index + len(field_values) > value_slots:
        raise RuleEncodingError(
            f"fields {field_index}..{field_index + len(field_values) - 1} "
            f"do not fit {value_slots} value columns",
            details={"ptype": ptype, "field_index": field_index},
        )
    values = [""] * value_slots
    for offset, value in enumerate(field_values):
        values[field_index + offset] = value
    return RuleRow(ptype=ptype, values=tuple(values))
