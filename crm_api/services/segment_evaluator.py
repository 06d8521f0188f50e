"""
Segment Evaluator Service

Turns segment conditions into SQL filters over the customers table and
resolves segment membership. Membership is always computed, never stored.

Operators:
- e, dne: Equal, not equal (case-insensitive for strings)
- c, dnc: Contains, does not contain (case-insensitive)
- igt, ilt: Greater than, less than
- it, if: Is true, is false
- is, ins: Is set, is not set

Segment format:
{
    "contentType": "customer",
    "connector": "all" | "any",
    "conditions": [
        {"field": "firstName", "operator": "c", "value": "ann", "type": "string"},
        {"field": "createdAt", "operator": "igt", "value": "2024-01-01", "type": "date"}
    ]
}

A stored segment may also name a head segment (``sub_of``); the head's
filter is ANDed with its own.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func, and_, or_, true, false
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from crm_api.exceptions import ValidationError
from crm_api.models.customer import Customer
from crm_api.models.segment import Segment, SegmentConnector
from crm_api.schemas.segment import (
    ConditionOperator,
    ConditionValueType,
    SegmentCondition,
    SegmentDefinition,
)

logger = logging.getLogger(__name__)

# Operators that compare against nothing
VALUELESS_OPERATORS = {
    ConditionOperator.IS_TRUE,
    ConditionOperator.IS_FALSE,
    ConditionOperator.IS_SET,
    ConditionOperator.IS_NOT_SET,
}

# Value types each operator applies to; operators not listed apply to any field
OPERATOR_VALUE_TYPES = {
    ConditionOperator.CONTAINS: {ConditionValueType.STRING},
    ConditionOperator.NOT_CONTAINS: {ConditionValueType.STRING},
    ConditionOperator.GREATER_THAN: {ConditionValueType.NUMBER, ConditionValueType.DATE},
    ConditionOperator.LESS_THAN: {ConditionValueType.NUMBER, ConditionValueType.DATE},
    ConditionOperator.IS_TRUE: {ConditionValueType.BOOLEAN},
    ConditionOperator.IS_FALSE: {ConditionValueType.BOOLEAN},
}


def like_pattern(value: str) -> str:
    """Escape LIKE wildcards and wrap for substring matching."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def parse_definition(data: Any) -> SegmentDefinition:
    """Validate an inline segment definition, e.g. ``byFakeSegment``."""
    if isinstance(data, SegmentDefinition):
        return data
    if not isinstance(data, dict):
        raise ValidationError("Segment definition must be an object")
    try:
        return SegmentDefinition.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("Invalid segment definition", e)


class SegmentEvaluator:
    """
    Evaluates customer segment membership.

    Condition fields use the public (GraphQL) customer field names. Each
    field has one value type; a condition's declared type and operator must
    agree with it.
    """

    FIELD_MAPPING = {
        "_id": (Customer.id, ConditionValueType.STRING),
        "firstName": (Customer.first_name, ConditionValueType.STRING),
        "lastName": (Customer.last_name, ConditionValueType.STRING),
        "email": (Customer.email, ConditionValueType.STRING),
        "phone": (Customer.phone, ConditionValueType.STRING),
        "position": (Customer.position, ConditionValueType.STRING),
        "department": (Customer.department, ConditionValueType.STRING),
        "leadStatus": (Customer.lead_status, ConditionValueType.STRING),
        "lifecycleState": (Customer.lifecycle_state, ConditionValueType.STRING),
        "description": (Customer.description, ConditionValueType.STRING),
        "doNotDisturb": (Customer.do_not_disturb, ConditionValueType.BOOLEAN),
        "ownerId": (Customer.owner_id, ConditionValueType.STRING),
        "createdAt": (Customer.created_at, ConditionValueType.DATE),
        "modifiedAt": (Customer.modified_at, ConditionValueType.DATE),
    }

    def __init__(self, db: AsyncSession):
        """Initialize evaluator with database session."""
        self.db = db

    async def get_segment(self, segment_id: Optional[str]) -> Optional[Segment]:
        if not segment_id:
            return None
        result = await self.db.execute(select(Segment).where(Segment.id == segment_id))
        return result.scalar_one_or_none()

    async def segment_filter(self, segment_id: str) -> ColumnElement:
        """
        Build the customer filter for a stored segment.

        Unknown segments and segments for another content type match nothing.
        """
        segment = await self.get_segment(segment_id)
        if segment is None:
            logger.debug("Segment %s not found, filter matches nothing", segment_id)
            return false()
        return await self._stored_segment_filter(segment, seen=set())

    async def _stored_segment_filter(self, segment: Segment, seen: set) -> ColumnElement:
        seen.add(segment.id)

        condition = self.definition_filter(self.definition_from_segment(segment))
        if segment.sub_of and segment.sub_of not in seen:
            head = await self.get_segment(segment.sub_of)
            if head is not None:
                condition = and_(condition, await self._stored_segment_filter(head, seen))
            else:
                logger.warning(
                    "Segment %s references missing head segment %s", segment.id, segment.sub_of
                )
        return condition

    @staticmethod
    def definition_from_segment(segment: Segment) -> SegmentDefinition:
        try:
            return SegmentDefinition.model_validate(
                {
                    "contentType": segment.content_type,
                    "connector": segment.connector,
                    "conditions": segment.conditions or [],
                }
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(f"Segment {segment.id} has invalid conditions", e)

    def definition_filter(self, definition: Any) -> ColumnElement:
        """Build the customer filter for a segment definition (stored or inline)."""
        definition = parse_definition(definition)

        if not definition.is_customer_segment:
            return false()

        condition = self._build_conditions(definition)
        return condition if condition is not None else true()

    def _build_conditions(self, definition: SegmentDefinition) -> Optional[ColumnElement]:
        conditions = [self._build_single_condition(c) for c in definition.conditions]
        if not conditions:
            return None
        if definition.connector == SegmentConnector.any:
            return or_(*conditions)
        return and_(*conditions)

    def _resolve_field(self, condition: SegmentCondition):
        """Return the column and value type a condition targets, rejecting mismatches."""
        mapped = self.FIELD_MAPPING.get(condition.field)
        if mapped is None:
            raise ValidationError(f"Unknown customer field '{condition.field}'")
        column, value_type = mapped

        if condition.type is not None and condition.type != value_type:
            raise ValidationError(
                f"Field '{condition.field}' holds {value_type.value} values, "
                f"not {condition.type.value}"
            )

        allowed = OPERATOR_VALUE_TYPES.get(condition.operator)
        if allowed is not None and value_type not in allowed:
            raise ValidationError(
                f"Operator '{condition.operator.value}' cannot be applied to "
                f"{value_type.value} field '{condition.field}'"
            )

        if condition.operator in VALUELESS_OPERATORS and condition.value not in (None, ""):
            raise ValidationError(
                f"Operator '{condition.operator.value}' on '{condition.field}' takes no value"
            )
        return column, value_type

    def _build_single_condition(self, condition: SegmentCondition) -> ColumnElement:
        """Build condition for a single rule."""
        column, value_type = self._resolve_field(condition)
        operator = condition.operator
        is_text = value_type == ConditionValueType.STRING

        if operator == ConditionOperator.IS_TRUE:
            return column.is_(True)
        if operator == ConditionOperator.IS_FALSE:
            return column.is_(False)
        if operator == ConditionOperator.IS_SET:
            return and_(column.isnot(None), column != "") if is_text else column.isnot(None)
        if operator == ConditionOperator.IS_NOT_SET:
            return or_(column.is_(None), column == "") if is_text else column.is_(None)

        value = self._coerce_value(condition, value_type)

        if operator == ConditionOperator.CONTAINS:
            return column.ilike(like_pattern(value), escape="\\")
        if operator == ConditionOperator.NOT_CONTAINS:
            return or_(column.is_(None), ~column.ilike(like_pattern(value), escape="\\"))
        if operator == ConditionOperator.EQUALS:
            if is_text:
                return func.lower(column) == value.lower()
            return column == value
        if operator == ConditionOperator.NOT_EQUALS:
            if is_text:
                return or_(column.is_(None), func.lower(column) != value.lower())
            return or_(column.is_(None), column != value)
        if operator == ConditionOperator.GREATER_THAN:
            return column > value
        if operator == ConditionOperator.LESS_THAN:
            return column < value

        raise ValidationError(f"Unsupported operator '{operator.value}'")

    @staticmethod
    def _coerce_value(condition: SegmentCondition, value_type: ConditionValueType) -> Any:
        """Convert the raw condition value to the field's value type."""
        value = condition.value
        if value is None or value == "":
            raise ValidationError(
                f"Operator '{condition.operator.value}' on '{condition.field}' requires a value"
            )

        try:
            if value_type == ConditionValueType.NUMBER:
                if isinstance(value, bool):
                    raise ValueError(value)
                return float(value)
            if value_type == ConditionValueType.BOOLEAN:
                if isinstance(value, bool):
                    return value
                lowered = str(value).lower()
                if lowered not in ("true", "false"):
                    raise ValueError(value)
                return lowered == "true"
            if value_type == ConditionValueType.DATE:
                if isinstance(value, datetime):
                    return value
                return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except (TypeError, ValueError):
            raise ValidationError(
                f"Value {value!r} for '{condition.field}' is not a valid {value_type.value}"
            )
        return str(value)

    async def evaluate_segment(self, segment_id: str) -> list[str]:
        """
        Evaluate a segment and return matching customer IDs.

        Args:
            segment_id: The segment to evaluate

        Returns:
            IDs of customers matching every condition of the segment
        """
        query = select(Customer.id).where(await self.segment_filter(segment_id))
        result = await self.db.execute(query)
        return [r[0] for r in result.all()]

    async def count_definition(
        self, definition: Any, base_filters: Iterable[ColumnElement] = ()
    ) -> int:
        """Count customers matching an unsaved definition plus any base filters."""
        query = (
            select(func.count(Customer.id))
            .where(*base_filters)
            .where(self.definition_filter(definition))
        )
        result = await self.db.execute(query)
        return result.scalar() or 0
