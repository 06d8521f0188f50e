from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional


class BrandEmailConfig(BaseModel):
    """Outbound email configuration embedded in a brand."""
    model_config = ConfigDict(extra="forbid")

    type: Optional[Literal["simple", "custom"]] = None
    template: Optional[str] = None


class BrandCreate(BaseModel):
    """Schema for creating a brand."""
    code: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    user_id: Optional[str] = None


class BrandListParams(BaseModel):
    """Pagination and search arguments of the ``brands`` query."""
    page: Optional[int] = Field(None, ge=1)
    per_page: Optional[int] = Field(None, ge=1)
    search_value: Optional[str] = None

    @field_validator("search_value")
    @classmethod
    def strip_search_value(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None
