import strawberry
from typing import Annotated, List, Optional
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func, or_
from strawberry.types import Info

from crm_api.exceptions import NotFoundError, ValidationError
from crm_api.models.brand import Brand
from crm_api.schemas.brand import BrandListParams
from crm_api.services.segment_evaluator import like_pattern
from crm_api.utils.pagination import apply_offset_pagination
from .types import BrandType, BrandEmailConfigInput


def parse_brand_list_params(**kwargs) -> BrandListParams:
    try:
        return BrandListParams(**kwargs)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("Invalid brand list arguments", e)


def _brand_search(search_value: Optional[str]):
    if not search_value:
        return []
    pattern = like_pattern(search_value)
    return [or_(Brand.name.ilike(pattern, escape="\\"), Brand.code.ilike(pattern, escape="\\"))]


async def _get_brand(info: Info, brand_id: str) -> Optional[Brand]:
    result = await info.context.db.execute(select(Brand).where(Brand.id == brand_id))
    return result.scalar_one_or_none()


@strawberry.type
class BrandQueries:

    @strawberry.field
    async def brands(
        self,
        info: Info,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        search_value: Optional[str] = None,
    ) -> List[BrandType]:
        params = parse_brand_list_params(
            page=page, per_page=per_page, search_value=search_value
        )
        query = (
            select(Brand)
            .where(*_brand_search(params.search_value))
            .order_by(Brand.created_at.desc(), Brand.id)
        )
        query = apply_offset_pagination(query, params.page, params.per_page)
        result = await info.context.db.execute(query)
        return result.scalars().all()

    @strawberry.field
    async def brands_total_count(self, info: Info) -> int:
        result = await info.context.db.execute(select(func.count(Brand.id)))
        return result.scalar() or 0

    @strawberry.field
    async def brand_detail(
        self,
        info: Info,
        brand_id: Annotated[str, strawberry.argument(name="_id")],
    ) -> Optional[BrandType]:
        return await _get_brand(info, brand_id)


@strawberry.type
class BrandMutations:

    @strawberry.mutation
    async def brands_add(
        self,
        info: Info,
        name: str,
        code: Optional[str] = None,
        description: Optional[str] = None,
        user_id: Optional[str] = None,
        email_config: Optional[BrandEmailConfigInput] = None,
    ) -> BrandType:
        return await Brand.create_brand(
            info.context.db,
            {"code": code, "name": name, "description": description, "user_id": user_id},
            email_config.to_dict() if email_config else None,
        )

    @strawberry.mutation
    async def brands_config_email(
        self,
        info: Info,
        brand_id: Annotated[str, strawberry.argument(name="_id")],
        email_config: BrandEmailConfigInput,
    ) -> BrandType:
        brand = await _get_brand(info, brand_id)
        if brand is None:
            raise NotFoundError("Brand", brand_id)
        return await brand.update_email_config(info.context.db, email_config.to_dict())
