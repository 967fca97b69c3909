from __future__ import annotations

from sqlalchemy import String, Text, Boolean, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin


class FormulaLookup(TimestampMixin, Base):
    __tablename__ = "formula_lookup"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    default_action: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    conditions: Mapped[list["FormulaLookupCondition"]] = relationship(
        "FormulaLookupCondition",
        back_populates="lookup",
        order_by="FormulaLookupCondition.condition_order",
        cascade="all, delete-orphan",
    )


class FormulaLookupCondition(Base):
    __tablename__ = "formula_lookup_condition"
    __table_args__ = (UniqueConstraint("lookup_id", "condition_order"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    lookup_id: Mapped[int] = mapped_column(ForeignKey("formula_lookup.id", ondelete="CASCADE"), nullable=False)
    condition_order: Mapped[int] = mapped_column(nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False, default="rule")
    condition_rule: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_shortcode: Mapped[str | None] = mapped_column(Text, nullable=True)
    condition_logic: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    action: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    lookup: Mapped["FormulaLookup"] = relationship("FormulaLookup", back_populates="conditions")
