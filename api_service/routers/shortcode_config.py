from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api_service.crud.common import not_found
from api_service.crud.shortcode_config import (
    create_shortcode_config,
    deactivate_shortcode_config,
    fetch_shortcode_config,
    fetch_shortcode_configs,
    replace_placeholders,
    update_shortcode_config,
)
from api_service.schemas import (
    ShortcodeConfigCreate,
    ShortcodeConfigResponse,
    ShortcodeConfigUpdate,
    ShortcodeProcessRequest,
    ShortcodeProcessResponse,
)
from api_service.schemas.shortcode_config import ShortcodeCategory
from engine import db

shortcode_config_router = APIRouter(prefix="/pdf-shortcodes", tags=["PDF Shortcodes"])


@shortcode_config_router.get("", response_model=list[ShortcodeConfigResponse])
async def get_shortcode_configs(category: ShortcodeCategory | None = None,
                                session: AsyncSession = Depends(db.session_dependency)):
    return await fetch_shortcode_configs(session, category=category)


@shortcode_config_router.post("", response_model=ShortcodeConfigResponse, status_code=status.HTTP_201_CREATED)
async def add_shortcode_config(data: ShortcodeConfigCreate, session: AsyncSession = Depends(db.session_dependency)):
    return await create_shortcode_config(session, data)


@shortcode_config_router.post("/process", response_model=ShortcodeProcessResponse)
async def process_content(body: ShortcodeProcessRequest, session: AsyncSession = Depends(db.session_dependency)):
    shortcodes = await fetch_shortcode_configs(session)
    return ShortcodeProcessResponse(content=replace_placeholders(body.content, shortcodes, body.context))


@shortcode_config_router.get("/{shortcode_id}", response_model=ShortcodeConfigResponse)
async def get_shortcode_config(shortcode_id: int, session: AsyncSession = Depends(db.session_dependency)):
    shortcode = await fetch_shortcode_config(session, shortcode_id)
    if shortcode is None or not shortcode.is_active:
        raise not_found("Shortcode", shortcode_id)
    return shortcode


@shortcode_config_router.put("/{shortcode_id}", response_model=ShortcodeConfigResponse)
async def edit_shortcode_config(shortcode_id: int, data: ShortcodeConfigUpdate,
                                session: AsyncSession = Depends(db.session_dependency)):
    return await update_shortcode_config(session, shortcode_id, data)


@shortcode_config_router.delete("/{shortcode_id}")
async def remove_shortcode_config(shortcode_id: int, session: AsyncSession = Depends(db.session_dependency)):
    await deactivate_shortcode_config(session, shortcode_id)
    return {"status": "ok"}
