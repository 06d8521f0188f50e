from pydantic import BaseModel, Field, field_validator
from typing import Optional


class CustomerListParams(BaseModel):
    """Common filter and pagination arguments of the customer list queries."""
    page: Optional[int] = Field(None, ge=1)
    per_page: Optional[int] = Field(None, ge=1)
    segment: Optional[str] = None
    tag: Optional[str] = None
    ids: Optional[list[Optional[str]]] = None
    search_value: Optional[str] = None
    lead_status: Optional[str] = None
    lifecycle_state: Optional[str] = None

    @field_validator("search_value")
    @classmethod
    def strip_search_value(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @property
    def id_list(self) -> Optional[list[str]]:
        """Requested ids without nulls; None means no id filter."""
        if self.ids is None:
            return None
        return [i for i in self.ids if i is not None]
