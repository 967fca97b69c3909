from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class FormSchemaCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    schema_data: Dict[str, Any]


class FormSchemaUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    schema_data: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class FormSchemaResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    schema_data: Dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
