"""Casbin rule database model for policy storage.

This module defines the CasbinRule model that stores Casbin policy rules, and
a factory for tables with another name or number of value columns.

Policy Types (ptype):
    - 'p', 'p2', ...: Permission rules (subject, object, action, ...)
    - 'g', 'g2', ...: Role grouping rules (user/role, parent_role, ...)

Every value column is NOT NULL with '' meaning "slot unused", so the unique
index over (ptype, v0..vN-1) also catches duplicates of short rules.
"""

import re
from typing import Any

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rulestore.core.errors import RuleModelError
from rulestore.infrastructure.persistence.base import BaseModel

VALUE_COLUMN_LENGTH = 100
_VALUE_COLUMN = re.compile(r"^v(\d+)$")


def _value_column(index: int) -> Any:
    return mapped_column(
        String(VALUE_COLUMN_LENGTH),
        nullable=False,
        default="",
        server_default="",
        comment=f"Policy value {index}",
    )


def _unique_index(table_name: str, value_slots: int) -> Index:
    return Index(
        f"idx_{table_name}",
        "ptype",
        *(f"v{i}" for i in range(value_slots)),
        unique=True,
    )


class CasbinRule(BaseModel):
    """Casbin rule model with the default six value columns.

    Policy Examples:
        Permission rule (ptype='p'):
            ptype='p', v0='alice', v1='data1', v2='read'

        Role grouping (ptype='g'):
            ptype='g', v0='alice', v1='admin'

    Fields:
        id: Auto-incrementing integer primary key (ordering only)
        ptype: Rule family
        v0-v5: Rule values, '' when unused
    """

    __tablename__ = "casbin_rule"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False,
    )

    ptype: Mapped[str] = mapped_column(
        String(VALUE_COLUMN_LENGTH),
        nullable=False,
        default="",
        server_default="",
        comment="Rule family: 'p', 'g', 'p2', ...",
    )

    v0: Mapped[str] = _value_column(0)
    v1: Mapped[str] = _value_column(1)
    v2: Mapped[str] = _value_column(2)
    v3: Mapped[str] = _value_column(3)
    v4: Mapped[str] = _value_column(4)
    v5: Mapped[str] = _value_column(5)

    __table_args__ = (_unique_index("casbin_rule", 6),)

    def __repr__(self) -> str:
        """String representation for debugging.

        Returns:
            str: Human-readable representation of the rule.
        """
        return (
            f"<CasbinRule(ptype={self.ptype}, "
            f"v0={self.v0}, v1={self.v1}, v2={self.v2}, "
            f"v3={self.v3}, v4={self.v4}, v5={self.v5})>"
        )


_MODELS: dict[str, type[BaseModel]] = {CasbinRule.__tablename__: CasbinRule}


def value_slots_of(model: type) -> int:
    """Count the value columns (v0, v1, ...) of a rule model.

    Args:
        model: Mapped rule model class.

    Returns:
        int: Number of consecutive value columns starting at v0.

    Raises:
        RuleModelError: If the model lacks id, ptype or v0.
    """
    table = getattr(model, "__table__", None)
    if table is None:
        raise RuleModelError(f"{model!r} is not a mapped table model")

    names = set(table.columns.keys())
    missing = [name for name in ("id", "ptype", "v0") if name not in names]
    if missing:
        raise RuleModelError(
            f"rule model {model.__name__} is missing columns: {', '.join(missing)}",
            details={"table": table.name, "missing": missing},
        )

    indexes = {
        int(match.group(1))
        for name in names
        if (match := _VALUE_COLUMN.match(name)) is not None
    }
    slots = 0
    while slots in indexes:
        slots += 1
    return slots


def rule_model(table_name: str = "casbin_rule", value_slots: int = 6) -> type[BaseModel]:
    """Return the rule model for a table, creating it on first use.

    Models are cached per table name because a table can only be mapped once
    per metadata.

    Args:
        table_name: Full table name (prefix already applied).
        value_slots: Number of value columns.

    Returns:
        type[BaseModel]: Mapped rule model class.

    Raises:
        RuleModelError: If value_slots is not positive, or the table is
            already mapped with a different number of value columns.
    """
    if value_slots < 1:
        raise RuleModelError("value_slots must be at least 1")

    existing = _MODELS.get(table_name)
    if existing is not None:
        existing_slots = value_slots_of(existing)
        if existing_slots != value_slots:
            raise RuleModelError(
                f"table {table_name} is already defined with "
                f"{existing_slots} value columns, not {value_slots}",
                details={"table": table_name},
            )
        return existing

    attrs: dict[str, Any] = {
        "__tablename__": table_name,
        "__table_args__": (_unique_index(table_name, value_slots),),
        "id": mapped_column(
            Integer, primary_key=True, autoincrement=True, nullable=False
        ),
        "ptype": mapped_column(
            String(VALUE_COLUMN_LENGTH),
            nullable=False,
            default="",
            server_default="",
        ),
    }
    for index in range(value_slots):
        attrs[f"v{index}"] = _value_column(index)

    class_name = "".join(part.title() for part in re.split(r"\W+|_", table_name))
    model = type(class_name or "RuleModel", (BaseModel,), attrs)
    _MODELS[table_name] = model
    return model
