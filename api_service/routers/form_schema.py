from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api_service.crud.form_schema import (
    create_form_schema,
    create_form_schema_version,
    delete_form_schema,
    fetch_active_form_schema,
    fetch_form_schema,
    fetch_form_schemas,
    update_form_schema,
)
from api_service.schemas import FormSchemaCreate, FormSchemaResponse, FormSchemaUpdate
from engine import db

form_schema_router = APIRouter(prefix="/form-schemas", tags=["Form Schemas"])


@form_schema_router.get("", response_model=list[FormSchemaResponse])
async def get_form_schemas(name: str | None = None, is_active: bool | None = None,
                           session: AsyncSession = Depends(db.session_dependency)):
    return await fetch_form_schemas(session, name=name, is_active=is_active)


@form_schema_router.post("", response_model=FormSchemaResponse, status_code=status.HTTP_201_CREATED)
async def add_form_schema(data: FormSchemaCreate, session: AsyncSession = Depends(db.session_dependency)):
    return await create_form_schema(session, data)


@form_schema_router.get("/active/{name}", response_model=FormSchemaResponse)
async def get_active_form_schema(name: str, session: AsyncSession = Depends(db.session_dependency)):
    schema = await fetch_active_form_schema(session, name)
    if schema is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No active form schema '{name}'")
    return schema


@form_schema_router.get("/{schema_id}", response_model=FormSchemaResponse)
async def get_form_schema(schema_id: int, session: AsyncSession = Depends(db.session_dependency)):
    schema = await fetch_form_schema(session, schema_id)
    if schema is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Form schema {schema_id} not found")
    return schema


@form_schema_router.put("/{schema_id}", response_model=FormSchemaResponse)
async def edit_form_schema(schema_id: int, data: FormSchemaUpdate,
                           session: AsyncSession = Depends(db.session_dependency)):
    return await update_form_schema(session, schema_id, data)


@form_schema_router.post("/{schema_id}/versions", response_model=FormSchemaResponse,
                         status_code=status.HTTP_201_CREATED)
async def add_form_schema_version(schema_id: int, data: FormSchemaUpdate,
                                  session: AsyncSession = Depends(db.session_dependency)):
    return await create_form_schema_version(session, schema_id, data)


@form_schema_router.delete("/{schema_id}")
async def remove_form_schema(schema_id: int, hard: bool = False,
                             session: AsyncSession = Depends(db.session_dependency)):
    await delete_form_schema(session, schema_id, hard=hard)
    return {"status": "ok"}
