from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.common import apply_changes, commit_or_raise, not_found
from api_service.schemas.form_schema import FormSchemaCreate, FormSchemaUpdate
from models import FormSchema


async def fetch_form_schemas(session: AsyncSession, name: str | None = None,
                             is_active: bool | None = None) -> list[FormSchema]:
    stmt = select(FormSchema)
    if name is not None:
        stmt = stmt.where(FormSchema.name == name).order_by(FormSchema.version.desc())
    else:
        stmt = stmt.order_by(FormSchema.created_at.desc(), FormSchema.id.desc())
    if is_active is not None:
        stmt = stmt.where(FormSchema.is_active.is_(is_active))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_form_schema(session: AsyncSession, schema_id: int) -> FormSchema | None:
    result = await session.execute(select(FormSchema).where(FormSchema.id == schema_id))
    return result.scalar_one_or_none()


async def fetch_active_form_schema(session: AsyncSession, name: str) -> FormSchema | None:
    schemas = await fetch_form_schemas(session, name=name, is_active=True)
    return schemas[0] if schemas else None


async def next_version(session: AsyncSession, name: str) -> int:
    latest = (await session.execute(
        select(func.max(FormSchema.version)).where(FormSchema.name == name)
    )).scalar_one_or_none()
    return (latest or 0) + 1


async def create_form_schema(session: AsyncSession, data: FormSchemaCreate) -> FormSchema:
    schema = FormSchema(**data.model_dump(), version=await next_version(session, data.name))
    session.add(schema)
    await commit_or_raise(session, f"Cannot create form schema '{data.name}'")
    await session.refresh(schema)
    return schema


async def update_form_schema(session: AsyncSession, schema_id: int, data: FormSchemaUpdate) -> FormSchema:
    schema = await fetch_form_schema(session, schema_id)
    if schema is None:
        raise not_found("Form schema", schema_id)

    apply_changes(schema, data.model_dump(exclude_unset=True))

    await commit_or_raise(session, f"Cannot update form schema {schema_id}")
    await session.refresh(schema)
    return schema


async def create_form_schema_version(session: AsyncSession, schema_id: int, data: FormSchemaUpdate) -> FormSchema:
    """Deactivates the schema and stores a copy, with `data` applied, as the next version of its name."""
    current = await fetch_form_schema(session, schema_id)
    if current is None:
        raise not_found("Form schema", schema_id)

    name = data.name or current.name
    schema = FormSchema(
        name=name,
        description=data.description if "description" in data.model_fields_set else current.description,
        schema_data=data.schema_data if data.schema_data is not None else current.schema_data,
        version=await next_version(session, name),
    )
    current.is_active = False
    session.add(schema)
    await commit_or_raise(session, f"Cannot create a new version of form schema {schema_id}")
    await session.refresh(schema)
    return schema


async def delete_form_schema(session: AsyncSession, schema_id: int, hard: bool = False):
    schema = await fetch_form_schema(session, schema_id)
    if schema is None:
        raise not_found("Form schema", schema_id)
    if hard:
        await session.delete(schema)
    else:
        schema.is_active = False
    await commit_or_raise(session, f"Cannot delete form schema {schema_id}")
