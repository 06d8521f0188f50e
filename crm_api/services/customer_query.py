"""
Customer Query Service

Composes the customer list filters (ids, tag, segment, search value,
lead status, lifecycle state) and runs the list, paginated list and
detail queries behind the GraphQL customer fields.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from crm_api.exceptions import ValidationError
from crm_api.models.customer import Customer, CustomerTag
from crm_api.schemas.customer import CustomerListParams
from crm_api.services.segment_evaluator import SegmentEvaluator, like_pattern
from crm_api.utils.pagination import apply_offset_pagination

logger = logging.getLogger(__name__)

SEARCH_FIELDS = (
    Customer.first_name,
    Customer.last_name,
    Customer.email,
    Customer.phone,
)


def parse_list_params(**kwargs) -> CustomerListParams:
    try:
        return CustomerListParams(**kwargs)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("Invalid customer list arguments", e)


def search_filter(search_value: str) -> ColumnElement:
    """Case-insensitive substring match on any of the searchable fields."""
    pattern = like_pattern(search_value)
    return or_(*(field.ilike(pattern, escape="\\") for field in SEARCH_FIELDS))


def tag_filter(tag_id: str) -> ColumnElement:
    """Customers linked to the given tag."""
    return Customer.id.in_(
        select(CustomerTag.customer_id).where(CustomerTag.tag_id == tag_id)
    )


class CustomerQueryService:
    """Customer list, paginated list, count and detail queries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.segments = SegmentEvaluator(db)

    async def build_filters(self, params: CustomerListParams) -> list[ColumnElement]:
        """Translate list arguments into SQL conditions, combined with AND."""
        filters = []

        ids = params.id_list
        if ids is not None:
            filters.append(Customer.id.in_(ids))

        if params.search_value:
            filters.append(search_filter(params.search_value))

        if params.segment:
            filters.append(await self.segments.segment_filter(params.segment))

        if params.tag:
            filters.append(tag_filter(params.tag))

        if params.lead_status:
            filters.append(Customer.lead_status == params.lead_status)

        if params.lifecycle_state:
            filters.append(Customer.lifecycle_state == params.lifecycle_state)

        logger.debug(
            "Customer filters built",
            extra={"filter_count": len(filters), "segment": params.segment, "tag": params.tag},
        )
        return filters

    async def list_customers(self, params: CustomerListParams) -> list[Customer]:
        """Filtered customers, newest first; paginated only when page/perPage is given."""
        filters = await self.build_filters(params)
        return await self._fetch(filters, params)

    async def list_customers_main(
        self, params: CustomerListParams
    ) -> tuple[list[Customer], int]:
        """One page of customers plus the filtered total before pagination."""
        filters = await self.build_filters(params)
        customers = await self._fetch(filters, params)
        total = await self.count(filters)
        return customers, total

    async def count(self, filters: list[ColumnElement]) -> int:
        result = await self.db.execute(select(func.count(Customer.id)).where(*filters))
        return result.scalar() or 0

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        result = await self.db.execute(select(Customer).where(Customer.id == customer_id))
        return result.scalar_one_or_none()

    async def _fetch(
        self, filters: list[ColumnElement], params: CustomerListParams
    ) -> list[Customer]:
        query = (
            select(Customer)
            .where(*filters)
            .order_by(Customer.created_at.desc(), Customer.id)
        )
        query = apply_offset_pagination(query, params.page, params.per_page)

        result = await self.db.execute(query)
        return list(result.scalars().all())
