"""Transaction context: one independent unit of work on its own session.

Contexts take no lock and share no mutable state with each other; isolation
between concurrent contexts is the database's. A context is finalized exactly
once, by commit() or rollback(). Operations run through the context's adapter
check the caller's cancel event and deadline before and after they run, and
race both while they run.

Usage:
    ctx = await adapter.begin_transaction(timeout=5.0)
    try:
        await ctx.adapter.add_policy("p", "p", ["alice", "data1", "read"])
        await ctx.commit()
    except Exception:
        await ctx.rollback()
        raise

    # or, committing on clean exit:
    async with await adapter.begin_transaction() as ctx:
        await ctx.adapter.add_policy("p", "p", ["bob", "data2", "write"])
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from rulestore.core.errors import (
    TransactionCancelledError,
    TransactionFinishedError,
    TransactionTimeoutError,
)
from rulestore.domain.enums import TransactionState

if TYPE_CHECKING:
    from rulestore.domain.protocols.logger_protocol import LoggerProtocol
    from rulestore.infrastructure.authorization.sqlalchemy_adapter import Adapter

T = TypeVar("T")


class TransactionContext:
    """Explicitly finalized transaction bound to one session.

    Attributes:
        adapter: Adapter executing on this context's transaction.
        state: Current lifecycle state.
        deadline: Absolute deadline on the event loop clock, or None.

    Note:
        A failed operation (including a cancelled one) leaves the context
        ACTIVE. rollback() is always allowed on an active context, also after
        cancellation, so the session can be released. commit() races the
        cancel event and deadline too; a commit that loses is rolled back.
    """

    def __init__(
        self,
        parent: Adapter,
        session: AsyncSession,
        *,
        deadline: float | None = None,
        cancel_event: asyncio.Event | None = None,
        logger: LoggerProtocol,
    ) -> None:
        """Bind a context to a session whose transaction has begun.

        Args:
            parent: Adapter the context was opened from.
            session: Session with an active transaction, owned by the context.
            deadline: Absolute loop time after which operations time out.
            cancel_event: Set by the caller to cancel the context.
            logger: Structured logger.
        """
        self._session = session
        self._deadline = deadline
        self._cancel_event = cancel_event
        self._logger = logger
        self._state = TransactionState.ACTIVE
        self._adapter = parent.bind_session(session, runner=self.run)

    @property
    def adapter(self) -> Adapter:
        """Adapter whose operations run on this context's transaction."""
        return self._adapter

    @property
    def state(self) -> TransactionState:
        """Current lifecycle state."""
        return self._state

    @property
    def deadline(self) -> float | None:
        """Absolute deadline on the event loop clock, or None."""
        return self._deadline

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run one operation on the context's transaction.

        Args:
            operation: Zero-argument callable returning the awaitable to run.

        Returns:
            The operation's result.

        Raises:
            TransactionFinishedError: If the context is finalized.
            TransactionCancelledError: If the cancel event is set before,
                during or right after the operation.
            TransactionTimeoutError: If the deadline passes before, during
                or right after the operation.
        """
        self._ensure_active()
        self._check_cancelled()
        return await self._race(operation)

    async def _race(self, operation: Callable[[], Awaitable[T]]) -> T:
        task = asyncio.ensure_future(operation())
        waiters: set[asyncio.Future[Any]] = {task}
        cancel_waiter = None
        if self._cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(self._cancel_event.wait())
            waiters.add(cancel_waiter)

        timed_out = False
        try:
            async with asyncio.timeout_at(self._deadline):
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except TimeoutError:
            timed_out = True
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        # A result that arrives after cancellation is discarded.
        self._check_cancelled(timed_out=timed_out)
        return task.result()

    async def commit(self) -> None:
        """Commit the transaction.

        The backend commit races the cancel event and the deadline like any
        other operation. A context cancelled before the commit lands is
        rolled back. A commit that lands after the cancellation still raises;
        the context is then COMMITTED, since the database kept the writes.

        Raises:
            TransactionFinishedError: If already committed or rolled back.
            TransactionCancelledError: If the context was cancelled.
            TransactionTimeoutError: If the deadline passed.
        """
        self._ensure_active()
        landed = False

        async def commit_session() -> None:
            nonlocal landed
            await self._session.commit()
            landed = True

        try:
            try:
                self._check_cancelled()
                await self._race(commit_session)
            except TransactionCancelledError:
                if landed:
                    self._state = TransactionState.COMMITTED
                    self._logger.warning("transaction_context_committed_late")
                else:
                    await self._rollback_after_cancel()
                raise
            except Exception as e:
                self._state = TransactionState.ROLLED_BACK
                self._logger.error("transaction_context_failed", error=e)
                raise

            self._state = TransactionState.COMMITTED
            self._logger.info("transaction_context_committed")
        finally:
            if not self._state.is_terminal:
                self._state = TransactionState.ROLLED_BACK
            await self._session.close()

    async def rollback(self) -> None:
        """Roll the transaction back.

        Raises:
            TransactionFinishedError: If already committed or rolled back.
        """
        self._ensure_active()
        try:
            await self._session.rollback()
            self._state = TransactionState.ROLLED_BACK
            self._logger.info("transaction_context_rolled_back")
        except Exception as e:
            self._logger.error("transaction_context_failed", error=e)
            raise
        finally:
            # Terminal even when the backend call fails.
            self._state = TransactionState.ROLLED_BACK
            await self._session.close()

    async def _rollback_after_cancel(self) -> None:
        # The cancellation is what the caller sees; a rollback failure is
        # only logged.
        try:
            await self._session.rollback()
            self._logger.info("transaction_context_rolled_back")
        except Exception as e:
            self._logger.error("transaction_context_failed", error=e)
        finally:
            self._state = TransactionState.ROLLED_BACK

    def _ensure_active(self) -> None:
        if self._state.is_terminal:
            raise TransactionFinishedError(
                "transaction already finished",
                details={"state": self._state.value},
            )

    def _check_cancelled(self, *, timed_out: bool = False) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            self._logger.warning("transaction_context_cancelled", reason="cancelled")
            raise TransactionCancelledError("transaction cancelled")
        if timed_out or (
            self._deadline is not None
            and asyncio.get_running_loop().time() >= self._deadline
        ):
            self._logger.warning("transaction_context_cancelled", reason="timeout")
            raise TransactionTimeoutError("transaction deadline exceeded")

    async def __aenter__(self) -> TransactionContext:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._state.is_terminal:
            return
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()
