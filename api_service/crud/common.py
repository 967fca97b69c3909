import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

log = logging.getLogger(__name__)


async def commit_or_raise(session: AsyncSession, conflict_detail: str):
    try:
        await session.commit()

    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict_detail)

    except SQLAlchemyError as e:
        await session.rollback()
        log.error("Database error: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected database error")


def apply_changes(instance, values: dict):
    """An explicit null only clears nullable columns; for NOT NULL columns it means 'leave as is'."""
    columns = instance.__table__.columns
    for key, value in values.items():
        if value is None and not columns[key].nullable:
            continue
        setattr(instance, key, value)


def not_found(what: str, ident) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} {ident} not found")
