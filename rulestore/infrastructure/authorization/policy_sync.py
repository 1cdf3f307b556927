"""Policy model sync: move rules between rule rows and a Casbin model.

The Casbin model is owned by the enforcer. It is only read on save and
populated on load.
"""

from collections.abc import Iterable, Iterator

from casbin.model import Model

from rulestore.domain.entities import RuleRow
from rulestore.infrastructure.authorization.rule_codec import decode_rule

SAVED_SECTIONS = ("p", "g")


def _known(model: Model, sec: str, ptype: str) -> bool:
    return ptype in model.model.get(sec, {})


def preview(rows: Iterable[RuleRow], model: Model) -> list[RuleRow]:
    """Pre-check rows against the model before loading them.

    Every row is decoded first, so a bad row raises before anything is
    loaded and a load never half succeeds.

    Args:
        rows: Rule rows in load order.
        model: Casbin model the rows are meant for.

    Returns:
        list[RuleRow]: The rows whose rule the model does not hold yet, in
        their original order.
    """
    rows = list(rows)
    rules = [decode_rule(row) for row in rows]

    fresh = []
    for row, rule in zip(rows, rules):
        ptype, values = rule[0], rule[1:]
        sec = ptype[:1]
        if _known(model, sec, ptype) and model.has_policy(sec, ptype, values):
            continue
        fresh.append(row)
    return fresh


def load_rules(model: Model, rows: Iterable[RuleRow]) -> int:
    """Load decoded rows into the model.

    Rows go through preview() first, so a bad row leaves the model as it
    was. Rows the model already holds, and rows whose section or ptype the
    model does not define, are skipped.

    Args:
        model: Casbin model to populate.
        rows: Rule rows in load order.

    Returns:
        int: Number of rules added to the model.
    """
    loaded = 0
    for row in preview(rows, model):
        rule = decode_rule(row)
        ptype, values = rule[0], rule[1:]
        sec = ptype[:1]
        if not _known(model, sec, ptype):
            continue
        # The same rule can appear twice in one batch.
        if model.has_policy(sec, ptype, values):
            continue
        model.add_policy(sec, ptype, values)
        loaded += 1
    return loaded


def collect_rules(model: Model) -> Iterator[tuple[str, list[str]]]:
    """Yield (ptype, rule) for every policy rule, then every grouping rule."""
    for sec in SAVED_SECTIONS:
        for ptype, assertion in model.model.get(sec, {}).items():
            for rule in assertion.policy:
                yield ptype, rule
