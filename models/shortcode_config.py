from sqlalchemy import String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class ShortcodeConfig(TimestampMixin, Base):
    __tablename__ = "shortcode_config"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    example: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    replacement_value: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
