"""
Customer Count Service

Aggregate customer counts per segment, per tag and for an unsaved
("fake") segment definition. Only segments and tags scoped to customers
are counted; every count also honours the common list filters.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from crm_api.exceptions import ValidationError
from crm_api.models.content_types import ContentType
from crm_api.models.customer import Customer, CustomerTag
from crm_api.models.segment import Segment
from crm_api.models.tag import Tag
from crm_api.schemas.customer import CustomerListParams
from crm_api.services.customer_query import CustomerQueryService

logger = logging.getLogger(__name__)


class CustomerCountService:
    """Builds the ``customerCounts`` payload."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.queries = CustomerQueryService(db)
        self.segments = self.queries.segments

    async def counts(
        self,
        params: CustomerListParams,
        by_fake_segment: Optional[Any] = None,
    ) -> dict:
        """
        Returns:
            {
                "bySegment": {segment_id: count},
                "byTag": {tag_id: count},
                "byFakeSegment": count,
            }
        """
        base_filters = await self.queries.build_filters(params)

        counts = {
            "bySegment": await self.count_by_segment(base_filters),
            "byTag": await self.count_by_tag(base_filters),
            "byFakeSegment": 0,
        }

        if by_fake_segment:
            counts["byFakeSegment"] = await self.segments.count_definition(
                by_fake_segment, base_filters
            )

        logger.debug(
            "Customer counts computed",
            extra={"segments": len(counts["bySegment"]), "tags": len(counts["byTag"])},
        )
        return counts

    async def count_by_segment(self, base_filters: list) -> dict[str, int]:
        """
        Count every customer segment in one aggregate query.

        A stored segment whose conditions cannot be evaluated is logged and
        left out; it does not fail the other counts.
        """
        result = await self.db.execute(
            select(Segment.id)
            .where(Segment.content_type == ContentType.customer.value)
            .order_by(Segment.created_at, Segment.id)
        )

        segment_filters = {}
        for segment_id in result.scalars().all():
            try:
                segment_filters[segment_id] = await self.segments.segment_filter(segment_id)
            except ValidationError as e:
                logger.warning(
                    "Skipping segment %s in counts: %s",
                    segment_id,
                    e.detail,
                    extra={"segment_id": segment_id},
                )

        if not segment_filters:
            return {}

        columns = [
            func.coalesce(func.sum(case((segment_filter, 1), else_=0)), 0)
            for segment_filter in segment_filters.values()
        ]
        query = select(*columns).select_from(Customer).where(*base_filters)
        row = (await self.db.execute(query)).one()
        return {segment_id: int(count) for segment_id, count in zip(segment_filters, row)}

    async def count_by_tag(self, base_filters: list) -> dict[str, int]:
        """Count every customer tag in one grouped query; unused tags count 0."""
        result = await self.db.execute(
            select(Tag.id)
            .where(Tag.type == ContentType.customer.value)
            .order_by(Tag.created_at, Tag.id)
        )
        by_tag = {tag_id: 0 for tag_id in result.scalars().all()}
        if not by_tag:
            return by_tag

        # Aliased so a tag filter subquery on customer_tags is not correlated to it
        link = aliased(CustomerTag)
        rows = await self.db.execute(
            select(link.tag_id, func.count(Customer.id))
            .join(Customer, Customer.id == link.customer_id)
            .where(link.tag_id.in_(list(by_tag)), *base_filters)
            .group_by(link.tag_id)
        )
        for tag_id, count in rows.all():
            by_tag[tag_id] = count
        return by_tag
