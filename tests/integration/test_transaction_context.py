"""Integration tests for Adapter.begin_transaction() contexts.

Tests cover:
- Commit/rollback and the single-finalization guard
- Isolation of uncommitted writes from other sessions
- Cancellation through an event and through a deadline
- Concurrent independent contexts
- Async context manager usage
"""

import asyncio
from unittest.mock import patch

import casbin
import pytest

from rulestore import (
    EmptyFieldFilterError,
    TransactionCancelledError,
    TransactionFinishedError,
    TransactionState,
    TransactionTimeoutError,
)


@pytest.mark.integration
class TestContextLifecycle:
    """Test finalization of a context."""

    async def test_commit_persists(self, adapter, stored_rules, mock_logger):
        """Test committed writes are stored."""
        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        await ctx.commit()

        assert ctx.state == TransactionState.COMMITTED
        assert await stored_rules() == [["p", "alice", "data1", "read"]]
        mock_logger.info.assert_any_call(
            "transaction_context_opened", table="casbin_rule", timeout=None
        )
        mock_logger.info.assert_any_call("transaction_context_committed")

    async def test_rollback_discards(self, adapter, stored_rules):
        """Test rolled back writes are not stored."""
        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        await ctx.rollback()

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []

    async def test_double_commit(self, adapter, stored_rules):
        """Test the second commit fails with TransactionFinishedError."""
        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])
        await ctx.commit()

        with pytest.raises(TransactionFinishedError):
            await ctx.commit()

        assert ctx.state == TransactionState.COMMITTED
        assert await stored_rules() == [["p", "alice", "data1", "read"]]

    async def test_double_rollback(self, adapter):
        """Test the second rollback fails with TransactionFinishedError."""
        ctx = await adapter.begin_transaction()
        await ctx.rollback()

        with pytest.raises(TransactionFinishedError):
            await ctx.rollback()

    async def test_rollback_after_commit(self, adapter):
        """Test rollback() on a committed context fails."""
        ctx = await adapter.begin_transaction()
        await ctx.commit()

        with pytest.raises(TransactionFinishedError):
            await ctx.rollback()

    async def test_operation_after_finish(self, adapter, stored_rules):
        """Test the context's adapter refuses work once finalized."""
        ctx = await adapter.begin_transaction()
        await ctx.commit()

        with pytest.raises(TransactionFinishedError):
            await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        assert await stored_rules() == []

    async def test_failed_operation_leaves_context_active(self, adapter, stored_rules):
        """Test an error in one operation does not finalize the context."""
        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        with pytest.raises(EmptyFieldFilterError):
            await ctx.adapter.remove_filtered_policy("p", "p", 0, "")

        assert ctx.state == TransactionState.ACTIVE
        await ctx.commit()
        assert await stored_rules() == [["p", "alice", "data1", "read"]]


@pytest.mark.integration
class TestContextIsolation:
    """Test what other sessions and the context itself observe."""

    async def test_uncommitted_writes_invisible(self, adapter, stored_rules):
        """Test other sessions see a context's writes only after commit."""
        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        assert await stored_rules() == []

        await ctx.commit()
        assert await stored_rules() == [["p", "alice", "data1", "read"]]

    async def test_context_reads_own_writes(self, adapter, seed_rules, rbac_model_path):
        """Test an enforcer on the context's adapter loads uncommitted rules."""
        await seed_rules(["p", "bob", "data2", "write"])
        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        enforcer = casbin.AsyncEnforcer(rbac_model_path, ctx.adapter)
        await enforcer.load_policy()

        assert enforcer.get_policy() == [
            ["bob", "data2", "write"],
            ["alice", "data1", "read"],
        ]
        await ctx.rollback()

    async def test_atomic_operations_roll_back_with_context(
        self, adapter, seed_rules, stored_rules
    ):
        """Test savepoint-backed operations are undone by the context rollback."""
        await seed_rules(["p", "alice", "data1", "read"], ["p", "bob", "data2", "write"])
        ctx = await adapter.begin_transaction()

        await ctx.adapter.update_policies(
            "p",
            "p",
            [["alice", "data1", "read"], ["bob", "data2", "write"]],
            [["alice", "data1", "write"], ["bob", "data2", "read"]],
        )
        await ctx.adapter.remove_policies("p", "p", [["alice", "data1", "write"]])
        await ctx.rollback()

        assert await stored_rules() == [
            ["p", "alice", "data1", "read"],
            ["p", "bob", "data2", "write"],
        ]

    async def test_parent_adapter_untouched(self, adapter):
        """Test the context adapter is a separate, bound adapter."""
        ctx = await adapter.begin_transaction()

        assert ctx.adapter is not adapter
        assert ctx.adapter.is_bound is True
        assert adapter.is_bound is False
        await ctx.rollback()


@pytest.mark.integration
class TestContextCancellation:
    """Test cancel events and deadlines."""

    async def test_already_cancelled_event(self, adapter):
        """Test begin_transaction() refuses an event that is already set."""
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(TransactionCancelledError):
            await adapter.begin_transaction(cancel_event=cancel_event)

    async def test_non_positive_timeout(self, adapter):
        """Test a zero timeout is already expired."""
        with pytest.raises(TransactionTimeoutError):
            await adapter.begin_transaction(timeout=0)

    async def test_cancel_before_commit(self, adapter, stored_rules, mock_logger):
        """Test commit after cancellation rolls back and reports the cancellation."""
        cancel_event = asyncio.Event()
        ctx = await adapter.begin_transaction(cancel_event=cancel_event)
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        cancel_event.set()

        with pytest.raises(TransactionCancelledError):
            await ctx.commit()

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []
        mock_logger.warning.assert_any_call(
            "transaction_context_cancelled", reason="cancelled"
        )

    async def test_cancel_before_operation(self, adapter, stored_rules):
        """Test operations fail once cancelled; rollback is still allowed."""
        cancel_event = asyncio.Event()
        ctx = await adapter.begin_transaction(cancel_event=cancel_event)
        cancel_event.set()

        with pytest.raises(TransactionCancelledError):
            await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        assert ctx.state == TransactionState.ACTIVE
        await ctx.rollback()
        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []

    async def test_cancel_during_operation(self, adapter):
        """Test an event set while an operation runs interrupts it."""
        cancel_event = asyncio.Event()
        ctx = await adapter.begin_transaction(cancel_event=cancel_event)
        asyncio.get_running_loop().call_later(0.01, cancel_event.set)

        with pytest.raises(TransactionCancelledError):
            await ctx.run(lambda: asyncio.sleep(5))

        await ctx.rollback()

    async def test_deadline_during_operation(self, adapter):
        """Test an operation still running at the deadline times out."""
        ctx = await adapter.begin_transaction(timeout=0.05)

        with pytest.raises(TransactionTimeoutError):
            await ctx.run(lambda: asyncio.sleep(5))

        await ctx.rollback()

    async def test_expired_deadline_blocks_commit(
        self, adapter, stored_rules, mock_logger
    ):
        """Test a context past its deadline cannot commit its writes."""
        ctx = await adapter.begin_transaction(timeout=0.05)
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])
        await asyncio.sleep(0.1)

        with pytest.raises(TransactionTimeoutError):
            await ctx.adapter.add_policy("p", "p", ["bob", "data2", "write"])
        with pytest.raises(TransactionTimeoutError):
            await ctx.commit()

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []
        mock_logger.warning.assert_any_call(
            "transaction_context_cancelled", reason="timeout"
        )
        with pytest.raises(TransactionFinishedError):
            await ctx.rollback()

    async def test_commit_outlasting_deadline_is_not_applied(
        self, adapter, stored_rules
    ):
        """Test a commit still running at the deadline is rolled back."""
        ctx = await adapter.begin_transaction(timeout=0.2)
        await ctx.adapter.add_policy("p", "p", ["late", "data", "read"])
        real_commit = ctx._session.commit

        async def slow_commit():
            await asyncio.sleep(0.4)
            await real_commit()

        with patch.object(ctx._session, "commit", slow_commit):
            with pytest.raises(TransactionTimeoutError):
                await ctx.commit()

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []

    async def test_cancel_while_committing_is_not_applied(
        self, adapter, stored_rules
    ):
        """Test an event set during the commit rolls the writes back."""
        cancel_event = asyncio.Event()
        ctx = await adapter.begin_transaction(cancel_event=cancel_event)
        await ctx.adapter.add_policy("p", "p", ["late", "data", "read"])
        real_commit = ctx._session.commit

        async def slow_commit():
            cancel_event.set()
            await asyncio.sleep(0.4)
            await real_commit()

        with patch.object(ctx._session, "commit", slow_commit):
            with pytest.raises(TransactionCancelledError):
                await ctx.commit()

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []


@pytest.mark.integration
class TestConcurrentContexts:
    """Test independent contexts running together."""

    async def test_distinct_rules_all_committed(self, adapter, stored_rules):
        """Test K concurrent contexts each commit their own rule exactly once."""

        async def grant(index):
            ctx = await adapter.begin_transaction(timeout=30)
            try:
                await ctx.adapter.add_policy("p", "p", [f"user{index}", "data", "read"])
                await ctx.commit()
            except Exception:
                if not ctx.state.is_terminal:
                    await ctx.rollback()
                raise

        await asyncio.gather(*(grant(index) for index in range(8)))

        users = [rule[1] for rule in await stored_rules()]
        assert sorted(users) == sorted(f"user{index}" for index in range(8))

    async def test_contexts_independent_of_legacy_lock(
        self, adapter, enforcer, stored_rules
    ):
        """Test a context can finish while a transaction() closure is running."""
        release = asyncio.Event()

        async def waits(e):
            await release.wait()

        legacy = asyncio.ensure_future(adapter.transaction(enforcer, waits))
        await asyncio.sleep(0)

        ctx = await adapter.begin_transaction()
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])
        await ctx.commit()

        release.set()
        await legacy
        assert await stored_rules() == [["p", "alice", "data1", "read"]]


@pytest.mark.integration
class TestContextManager:
    """Test async with usage."""

    async def test_commits_on_clean_exit(self, adapter, stored_rules):
        """Test leaving the block normally commits."""
        async with await adapter.begin_transaction() as ctx:
            await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])

        assert ctx.state == TransactionState.COMMITTED
        assert await stored_rules() == [["p", "alice", "data1", "read"]]

    async def test_rolls_back_on_error(self, adapter, stored_rules):
        """Test leaving the block with an exception rolls back."""
        with pytest.raises(RuntimeError):
            async with await adapter.begin_transaction() as ctx:
                await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])
                raise RuntimeError("abort")

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []

    async def test_explicit_finish_inside_block(self, adapter, stored_rules):
        """Test an explicit rollback inside the block is not repeated on exit."""
        async with await adapter.begin_transaction() as ctx:
            await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])
            await ctx.rollback()

        assert ctx.state == TransactionState.ROLLED_BACK
        assert await stored_rules() == []
