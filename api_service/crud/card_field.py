from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.common import apply_changes, commit_or_raise, not_found
from api_service.schemas.card_field import CardFieldCreate, CardFieldUpdate
from models import CardField


async def fetch_card_fields(session: AsyncSession) -> list[CardField]:
    result = await session.execute(select(CardField).order_by(CardField.sort_order, CardField.id))
    return list(result.scalars().all())


async def fetch_card_field(session: AsyncSession, field_id: int) -> CardField | None:
    result = await session.execute(select(CardField).where(CardField.id == field_id))
    return result.scalar_one_or_none()


async def create_card_field(session: AsyncSession, data: CardFieldCreate) -> CardField:
    card_field = CardField(**data.model_dump())
    session.add(card_field)
    await commit_or_raise(session, f"Card field '{data.field_name}' already exists")
    await session.refresh(card_field)
    return card_field


async def update_card_field(session: AsyncSession, field_id: int, data: CardFieldUpdate) -> CardField:
    card_field = await fetch_card_field(session, field_id)
    if card_field is None:
        raise not_found("Card field", field_id)

    apply_changes(card_field, data.model_dump(exclude_unset=True))

    await commit_or_raise(session, f"Card field '{card_field.field_name}' already exists")
    await session.refresh(card_field)
    return card_field


async def delete_card_field(session: AsyncSession, field_id: int):
    card_field = await fetch_card_field(session, field_id)
    if card_field is None:
        raise not_found("Card field", field_id)
    await session.delete(card_field)
    await commit_or_raise(session, f"Cannot delete card field {field_id}")
