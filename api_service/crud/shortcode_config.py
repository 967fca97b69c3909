from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.common import apply_changes, commit_or_raise, not_found
from api_service.schemas.shortcode_config import ShortcodeCategory, ShortcodeConfigCreate, ShortcodeConfigUpdate
from models import ShortcodeConfig


async def fetch_shortcode_configs(session: AsyncSession,
                                  category: ShortcodeCategory | None = None) -> list[ShortcodeConfig]:
    stmt = (select(ShortcodeConfig).where(ShortcodeConfig.is_active.is_(True))
            .order_by(ShortcodeConfig.category, ShortcodeConfig.name))
    if category:
        stmt = stmt.where(ShortcodeConfig.category == category)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_shortcode_config(session: AsyncSession, shortcode_id: int) -> ShortcodeConfig | None:
    result = await session.execute(select(ShortcodeConfig).where(ShortcodeConfig.id == shortcode_id))
    return result.scalar_one_or_none()


async def create_shortcode_config(session: AsyncSession, data: ShortcodeConfigCreate) -> ShortcodeConfig:
    shortcode = ShortcodeConfig(**data.model_dump())
    session.add(shortcode)
    await commit_or_raise(session, f"Shortcode '{data.name}' already exists")
    await session.refresh(shortcode)
    return shortcode


async def update_shortcode_config(session: AsyncSession, shortcode_id: int,
                                  data: ShortcodeConfigUpdate) -> ShortcodeConfig:
    shortcode = await fetch_shortcode_config(session, shortcode_id)
    if shortcode is None:
        raise not_found("Shortcode", shortcode_id)

    apply_changes(shortcode, data.model_dump(exclude_unset=True))

    await commit_or_raise(session, f"Shortcode '{shortcode.name}' already exists")
    await session.refresh(shortcode)
    return shortcode


async def deactivate_shortcode_config(session: AsyncSession, shortcode_id: int):
    """Shortcodes are soft deleted; the name stays taken."""
    shortcode = await fetch_shortcode_config(session, shortcode_id)
    if shortcode is None or not shortcode.is_active:
        raise not_found("Shortcode", shortcode_id)
    shortcode.is_active = False
    await commit_or_raise(session, f"Cannot delete shortcode {shortcode_id}")


def replace_placeholders(content: str, shortcodes: Iterable[ShortcodeConfig], context: dict[str, Any]) -> str:
    """
    Replaces every `{{name}}` placeholder of the given shortcodes.

    A dotted name such as `customer.name` takes `context["customer"]["name"]`
    when the context has a non-empty value there; otherwise the shortcode's
    replacement_value is used.
    """
    for shortcode in shortcodes:
        value = shortcode.replacement_value
        if "." in shortcode.name:
            group, key = shortcode.name.split(".", 1)
            section = context.get(group)
            if isinstance(section, dict) and section.get(key) not in (None, ""):
                value = str(section[key])
        content = content.replace(f"{{{{{shortcode.name}}}}}", value)
    return content
