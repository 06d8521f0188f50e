import strawberry
from typing import Annotated, List, Optional
from sqlalchemy import select
from strawberry.types import Info

from crm_api.models.segment import Segment
from crm_api.models.tag import Tag
from .types import SegmentType, TagType


@strawberry.type
class TagQueries:

    @strawberry.field
    async def tags(self, info: Info, type: Optional[str] = None) -> List[TagType]:
        query = select(Tag).order_by(Tag.name)
        if type:
            query = query.where(Tag.type == type)
        result = await info.context.db.execute(query)
        return result.scalars().all()


@strawberry.type
class SegmentQueries:

    @strawberry.field
    async def segments(
        self, info: Info, content_type: Optional[str] = None
    ) -> List[SegmentType]:
        query = select(Segment).order_by(Segment.name)
        if content_type:
            query = query.where(Segment.content_type == content_type)
        result = await info.context.db.execute(query)
        return result.scalars().all()

    @strawberry.field
    async def segment_detail(
        self,
        info: Info,
        segment_id: Annotated[str, strawberry.argument(name="_id")],
    ) -> Optional[SegmentType]:
        result = await info.context.db.execute(select(Segment).where(Segment.id == segment_id))
        return result.scalar_one_or_none()
