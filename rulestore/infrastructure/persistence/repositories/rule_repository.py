"""RuleRepository - SQLAlchemy implementation.

Storage gateway for rule rows. Maps between the domain RuleRow entity and the
rule table model, and hides the dialect-specific "insert, ignore duplicates"
statement.

The repository never begins or commits a transaction itself; the caller owns
the session's transaction boundaries.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, and_, delete, insert, select, true, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rulestore.domain.entities import RuleRow
from rulestore.infrastructure.persistence.models.casbin_rule import value_slots_of


class RuleRepository:
    """SQLAlchemy implementation of the rule storage gateway.

    Attributes:
        session: SQLAlchemy async session for database operations.
        model: Mapped rule table model.
        value_slots: Number of value columns of the model.

    Example:
        >>> async with database.transaction() as session:
        ...     repo = RuleRepository(session, CasbinRule)
        ...     await repo.create_many([row])
        ...     rows = await repo.find(CasbinRule.ptype == "p")
    """

    def __init__(self, session: AsyncSession, model: type) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session.
            model: Mapped rule table model.
        """
        self.session = session
        self.model = model
        self.value_slots = value_slots_of(model)

    @property
    def table(self) -> Any:
        """Core table of the model."""
        return self.model.__table__

    async def create_many(self, rows: Sequence[RuleRow]) -> None:
        """Insert rows, silently skipping rows that already exist.

        Args:
            rows: Encoded rule rows.
        """
        if not rows:
            return

        params = [row.to_columns() for row in rows]
        dialect = self.session.bind.dialect.name

        if dialect == "postgresql":
            stmt = postgresql.insert(self.table).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite.insert(self.table).on_conflict_do_nothing()
        elif dialect in ("mysql", "mariadb"):
            stmt = insert(self.table).prefix_with("IGNORE")
        else:
            await self._create_each(params)
            return

        await self.session.execute(stmt, params)

    async def _create_each(self, params: list[dict[str, str]]) -> None:
        # No portable insert-ignore: isolate every row in its own savepoint.
        for values in params:
            try:
                async with self.session.begin_nested():
                    await self.session.execute(insert(self.table).values(**values))
            except IntegrityError:
                continue

    async def find(self, clause: ColumnElement[bool] | None = None) -> list[RuleRow]:
        """Select rows matching a clause, ordered by id.

        Args:
            clause: Boolean SQL expression; None selects every row.

        Returns:
            list[RuleRow]: Matching rows in insertion order.
        """
        stmt = select(self.model).order_by(self.model.id)
        if clause is not None:
            stmt = stmt.where(clause)

        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def delete(self, clause: ColumnElement[bool]) -> int:
        """Delete rows matching a clause.

        Args:
            clause: Boolean SQL expression.

        Returns:
            int: Number of deleted rows.
        """
        result = await self.session.execute(delete(self.table).where(clause))
        return result.rowcount

    async def truncate(self) -> int:
        """Delete every row inside the current transaction.

        Returns:
            int: Number of deleted rows.
        """
        return await self.delete(true())

    async def update_exact(self, old_row: RuleRow, new_row: RuleRow) -> int:
        """Overwrite the row equal to old_row in every column with new_row.

        Args:
            old_row: Row to replace (all columns compared).
            new_row: Replacement values.

        Returns:
            int: Number of updated rows (0 or 1 given the unique index).
        """
        stmt = (
            update(self.table)
            .where(self._exact_clause(old_row))
            .values(**new_row.to_columns())
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    def _exact_clause(self, row: RuleRow) -> ColumnElement[bool]:
        columns = self.table.c
        return and_(
            *(columns[name] == value for name, value in row.to_columns().items())
        )

    def _to_domain(self, model: Any) -> RuleRow:
        """Convert database model to domain entity.

        Args:
            model: Rule table model instance.

        Returns:
            RuleRow: Domain entity; NULL columns read as ''.
        """
        return RuleRow(
            id=model.id,
            ptype=model.ptype or "",
            values=tuple(
                getattr(model, f"v{index}") or "" for index in range(self.value_slots)
            ),
        )
