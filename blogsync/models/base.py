"""Base model class for all database models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DBModel(BaseModel):
    """Base model for all database models."""

    model_config = ConfigDict(from_attributes=True)

    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
