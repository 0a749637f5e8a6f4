"""
Configuration schemas.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class ConfigurationResponse(BaseModel):
    key: str
    value: Any = None
    category: str
    description: Optional[str] = None
    is_editable: bool = True
    source: str = "database"
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConfigurationUpdate(BaseModel):
    value: Any
    category: Optional[str] = None
    description: Optional[str] = None


class ConfigResetResponse(BaseModel):
    message: str
    keys: List[str]
