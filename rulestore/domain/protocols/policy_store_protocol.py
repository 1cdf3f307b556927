"""Policy store protocols (ports) for transactional rule persistence.

PolicyStoreProtocol is the mutation contract every adapter view honors: the
plain adapter, the session-bound adapter handed to a transaction closure, and
the adapter exposed by a transaction context. TransactionContextProtocol is
the explicit-finalization handle returned by begin_transaction().

Following hexagonal architecture:
- Domain defines the PORTS (these protocols)
- Infrastructure provides the ADAPTER (SQLAlchemy-backed Adapter)

Usage:
    ctx: TransactionContextProtocol = await adapter.begin_transaction()
    store: PolicyStoreProtocol = ctx.adapter
    await store.add_policy("p", "p", ["alice", "data1", "read"])
    await ctx.commit()
"""

from collections.abc import Sequence
from typing import Any, Protocol

from rulestore.domain.enums import TransactionState


class PolicyStoreProtocol(Protocol):
    """Mutation and load contract of a policy store.

    Rules are passed without their ptype; sec is the model section ('p' or
    'g') and ptype the rule family inside it.
    """

    async def load_policy(self, model: Any) -> None:
        """Load every stored rule into the model, ordered by row id."""
        ...

    async def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Store one rule; a duplicate is ignored."""
        ...

    async def add_policies(
        self, sec: str, ptype: str, rules: Sequence[Sequence[str]]
    ) -> bool:
        """Store several rules in one statement; duplicates are ignored."""
        ...

    async def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Delete rows matching the rule."""
        ...

    async def remove_policies(
        self, sec: str, ptype: str, rules: Sequence[Sequence[str]]
    ) -> bool:
        """Delete rows matching any of the rules, atomically."""
        ...

    async def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> bool:
        """Delete rows whose fields from field_index on match field_values."""
        ...

    async def update_policy(
        self, sec: str, ptype: str, old_rule: Sequence[str], new_rule: Sequence[str]
    ) -> bool:
        """Replace one stored rule with another."""
        ...

    async def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> bool:
        """Replace rules pairwise, atomically."""
        ...

    async def update_filtered_policies(
        self,
        sec: str,
        ptype: str,
        new_rules: Sequence[Sequence[str]],
        field_index: int,
        *field_values: str,
    ) -> list[list[str]]:
        """Replace filtered rules with new ones; return the deleted rules."""
        ...


class TransactionContextProtocol(Protocol):
    """One isolated unit of work with explicit, single finalization."""

    @property
    def state(self) -> TransactionState:
        """Current lifecycle state."""
        ...

    @property
    def adapter(self) -> PolicyStoreProtocol:
        """Store view executing on this context's transaction."""
        ...

    async def commit(self) -> None:
        """Commit; raises TransactionFinishedError when already finished."""
        ...

    async def rollback(self) -> None:
        """Roll back; raises TransactionFinishedError when already finished."""
        ...
