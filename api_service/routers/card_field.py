from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api_service.crud.card_field import create_card_field, delete_card_field, fetch_card_fields, update_card_field
from api_service.routers.widget import invalidate_widget_config
from api_service.schemas import CardFieldCreate, CardFieldResponse, CardFieldUpdate
from engine import db

card_field_router = APIRouter(prefix="/card-fields", tags=["Card Fields"])


@card_field_router.get("", response_model=list[CardFieldResponse])
async def get_card_fields(session: AsyncSession = Depends(db.session_dependency)):
    return await fetch_card_fields(session)


@card_field_router.post("", response_model=CardFieldResponse, status_code=status.HTTP_201_CREATED)
async def add_card_field(data: CardFieldCreate, session: AsyncSession = Depends(db.session_dependency)):
    card_field = await create_card_field(session, data)
    await invalidate_widget_config()
    return card_field


@card_field_router.put("/{field_id}", response_model=CardFieldResponse)
async def edit_card_field(field_id: int, data: CardFieldUpdate,
                          session: AsyncSession = Depends(db.session_dependency)):
    card_field = await update_card_field(session, field_id, data)
    await invalidate_widget_config()
    return card_field


@card_field_router.delete("/{field_id}")
async def remove_card_field(field_id: int, session: AsyncSession = Depends(db.session_dependency)):
    await delete_card_field(session, field_id)
    await invalidate_widget_config()
    return {"status": "ok"}
