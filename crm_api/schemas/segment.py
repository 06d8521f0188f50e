"""
Segment Schemas

Validation for segment definitions, both persisted segments and the
inline ("fake") definitions sent by clients to preview a count.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional
from enum import Enum

from crm_api.models.content_types import ContentType
from crm_api.models.segment import SegmentConnector


class ConditionOperator(str, Enum):
    EQUALS = "e"
    NOT_EQUALS = "dne"
    CONTAINS = "c"
    NOT_CONTAINS = "dnc"
    GREATER_THAN = "igt"
    LESS_THAN = "ilt"
    IS_TRUE = "it"
    IS_FALSE = "if"
    IS_SET = "is"
    IS_NOT_SET = "ins"


class ConditionValueType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


class SegmentCondition(BaseModel):
    """Single condition: ``field <operator> value``."""
    field: str = Field(..., min_length=1, description="Customer field, e.g. 'firstName'")
    operator: ConditionOperator
    value: Any = Field(None, description="Value to compare against")
    # Defaults to the value type of the target field
    type: Optional[ConditionValueType] = None


class SegmentDefinition(BaseModel):
    """Conditions plus the content type they apply to."""
    model_config = ConfigDict(populate_by_name=True)

    content_type: str = Field(..., alias="contentType")
    connector: SegmentConnector = SegmentConnector.all
    conditions: list[SegmentCondition] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def wrap_single_condition(cls, v):
        """A lone condition object is accepted as a one-item list."""
        if isinstance(v, dict):
            return [v]
        return v if v is not None else []

    @field_validator("connector", mode="before")
    @classmethod
    def default_connector(cls, v):
        return v or SegmentConnector.all

    @property
    def is_customer_segment(self) -> bool:
        return self.content_type == ContentType.customer.value

