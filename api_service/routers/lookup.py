from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api_service.crud.lookup import (
    create_lookup,
    delete_lookup,
    fetch_lookup,
    fetch_lookup_by_name,
    fetch_lookups,
    lookup_to_schema,
    update_lookup,
)
from api_service.formula.service import FormulaService
from api_service.routers.widget import invalidate_widget_config
from api_service.schemas import LookupCreate, LookupResponse, LookupTestRequest, LookupTestResponse, LookupUpdate
from engine import db

lookup_router = APIRouter(prefix="/lookups", tags=["Lookup Tables"])


@lookup_router.get("", response_model=list[LookupResponse])
async def get_lookups(active_only: bool = False, session: AsyncSession = Depends(db.session_dependency)):
    return [lookup_to_schema(lookup) for lookup in await fetch_lookups(session, active_only=active_only)]


@lookup_router.post("", response_model=LookupResponse, status_code=status.HTTP_201_CREATED)
async def add_lookup(data: LookupCreate, session: AsyncSession = Depends(db.session_dependency)):
    lookup = await create_lookup(session, data)
    await invalidate_widget_config()
    return lookup_to_schema(lookup)


@lookup_router.get("/{lookup_id}", response_model=LookupResponse)
async def get_lookup(lookup_id: int, session: AsyncSession = Depends(db.session_dependency)):
    lookup = await fetch_lookup(session, lookup_id)
    if lookup is None:
        raise HTTPException(404, "Lookup table not found")
    return lookup_to_schema(lookup)


@lookup_router.put("/{lookup_id}", response_model=LookupResponse)
async def edit_lookup(lookup_id: int, data: LookupUpdate, session: AsyncSession = Depends(db.session_dependency)):
    lookup = await update_lookup(session, lookup_id, data)
    await invalidate_widget_config()
    return lookup_to_schema(lookup)


@lookup_router.delete("/{lookup_id}")
async def remove_lookup(lookup_id: int, session: AsyncSession = Depends(db.session_dependency)):
    await delete_lookup(session, lookup_id)
    await invalidate_widget_config()
    return {"status": "ok"}


@lookup_router.post("/{name}/test", response_model=LookupTestResponse)
async def test_lookup(name: str, body: LookupTestRequest, session: AsyncSession = Depends(db.session_dependency)):
    if await fetch_lookup_by_name(session, name) is None:
        raise HTTPException(404, f"Lookup table '{name}' not found")
    return await FormulaService.test_lookup(session, name, body.fields)
