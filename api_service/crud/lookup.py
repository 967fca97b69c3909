from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette import status

from api_service.crud.common import apply_changes, commit_or_raise, not_found
from api_service.formula.shortcodes import normalize_name
from api_service.formula.validation import validate_formula, validate_target
from api_service.schemas.lookup import (
    FormulaAction,
    LogicCondition,
    LookupCreate,
    LookupResponse,
    LookupUpdate,
    RuleCondition,
)
from models import FormulaLookup, FormulaLookupCondition


def condition_to_row(condition: RuleCondition | LogicCondition, order: int) -> FormulaLookupCondition:
    row = FormulaLookupCondition(condition_order=order, kind=condition.kind,
                                 description=condition.description, is_active=condition.is_active)
    if isinstance(condition, LogicCondition):
        row.condition_logic = condition.condition_logic.model_dump()
        row.action = condition.action.model_dump()
    else:
        row.condition_rule = condition.condition_rule
        row.target_shortcode = condition.target_shortcode
    return row


def condition_to_dict(row: FormulaLookupCondition) -> dict:
    data = {"kind": row.kind, "description": row.description, "is_active": row.is_active}
    if row.kind == "logic":
        data.update(condition_logic=row.condition_logic, action=row.action)
    else:
        data.update(condition_rule=row.condition_rule, target_shortcode=row.target_shortcode)
    return data


def lookup_to_schema(lookup: FormulaLookup) -> LookupResponse:
    return LookupResponse.model_validate({
        "id": lookup.id,
        "name": lookup.name,
        "title": lookup.title,
        "description": lookup.description,
        "is_active": lookup.is_active,
        "default_action": lookup.default_action,
        "conditions": [condition_to_dict(row) for row in lookup.conditions],
        "created_at": lookup.created_at,
        "updated_at": lookup.updated_at,
    })


def check_lookup_expressions(data: LookupCreate | LookupUpdate):
    expressions = list()
    errors = list()
    for condition in data.conditions or []:
        if isinstance(condition, RuleCondition):
            expressions.append(condition.condition_rule)
            target = condition.target_shortcode
            errors.extend(f"{target}: {error}" for error in validate_target(target))
        elif isinstance(condition.action, FormulaAction) and condition.action.formula_text:
            expressions.append(condition.action.formula_text)
    if isinstance(data.default_action, FormulaAction) and data.default_action.formula_text:
        expressions.append(data.default_action.formula_text)

    for text in expressions:
        validation = validate_formula(text)
        errors.extend(f"{text}: {error}" for error in validation.errors)
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)


async def fetch_lookups(session: AsyncSession, active_only: bool = False) -> list[FormulaLookup]:
    stmt = select(FormulaLookup).options(selectinload(FormulaLookup.conditions)).order_by(FormulaLookup.name)
    if active_only:
        stmt = stmt.where(FormulaLookup.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_lookup(session: AsyncSession, lookup_id: int, refresh: bool = False) -> FormulaLookup | None:
    stmt = select(FormulaLookup).options(selectinload(FormulaLookup.conditions)).where(FormulaLookup.id == lookup_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def fetch_lookup_by_name(session: AsyncSession, name: str) -> FormulaLookup | None:
    key = normalize_name(name)
    for lookup in await fetch_lookups(session):
        if normalize_name(lookup.name) == key:
            return lookup
    return None


async def check_lookup_name_free(session: AsyncSession, name: str, lookup_id: int | None = None):
    existing = await fetch_lookup_by_name(session, name)
    if existing is not None and existing.id != lookup_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"Lookup table name '{name}' is already used by '{existing.name}'")


async def create_lookup(session: AsyncSession, data: LookupCreate) -> FormulaLookup:
    check_lookup_expressions(data)
    await check_lookup_name_free(session, data.name)
    lookup = FormulaLookup(
        name=data.name,
        title=data.title,
        description=data.description,
        is_active=data.is_active,
        default_action=data.default_action.model_dump() if data.default_action else None,
        conditions=[condition_to_row(c, order) for order, c in enumerate(data.conditions)],
    )
    session.add(lookup)
    await commit_or_raise(session, f"Lookup table '{data.name}' already exists")
    return await fetch_lookup(session, lookup.id, refresh=True)


async def update_lookup(session: AsyncSession, lookup_id: int, data: LookupUpdate) -> FormulaLookup:
    lookup = await fetch_lookup(session, lookup_id)
    if lookup is None:
        raise not_found("Lookup table", lookup_id)
    check_lookup_expressions(data)

    if data.name is not None:
        await check_lookup_name_free(session, data.name, lookup_id)
    apply_changes(lookup, data.model_dump(exclude_unset=True, exclude={"conditions", "default_action"}))
    if "default_action" in data.model_fields_set:
        lookup.default_action = data.default_action.model_dump() if data.default_action else None

    if data.conditions is not None:
        lookup.conditions.clear()
        await session.flush()
        lookup.conditions.extend(condition_to_row(c, order) for order, c in enumerate(data.conditions))

    await commit_or_raise(session, f"Lookup table '{lookup.name}' already exists")
    return await fetch_lookup(session, lookup_id, refresh=True)


async def delete_lookup(session: AsyncSession, lookup_id: int):
    lookup = await fetch_lookup(session, lookup_id)
    if lookup is None:
        raise not_found("Lookup table", lookup_id)
    await session.delete(lookup)
    await commit_or_raise(session, f"Cannot delete lookup table {lookup_id}")
