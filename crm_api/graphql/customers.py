import strawberry
from typing import Annotated, List, Optional
from strawberry.scalars import JSON
from strawberry.types import Info

from crm_api.services.customer_counts import CustomerCountService
from crm_api.services.customer_query import CustomerQueryService, parse_list_params
from .types import CustomerType, CustomerListResponse


@strawberry.type
class CustomerQueries:

    @strawberry.field
    async def customers(
        self,
        info: Info,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        segment: Optional[str] = None,
        tag: Optional[str] = None,
        ids: Optional[List[Optional[str]]] = None,
        search_value: Optional[str] = None,
        lead_status: Optional[str] = None,
        lifecycle_state: Optional[str] = None,
    ) -> List[CustomerType]:
        params = parse_list_params(
            page=page,
            per_page=per_page,
            segment=segment,
            tag=tag,
            ids=ids,
            search_value=search_value,
            lead_status=lead_status,
            lifecycle_state=lifecycle_state,
        )
        return await CustomerQueryService(info.context.db).list_customers(params)

    @strawberry.field
    async def customers_main(
        self,
        info: Info,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        segment: Optional[str] = None,
        tag: Optional[str] = None,
        ids: Optional[List[Optional[str]]] = None,
        search_value: Optional[str] = None,
        lead_status: Optional[str] = None,
        lifecycle_state: Optional[str] = None,
    ) -> CustomerListResponse:
        params = parse_list_params(
            page=page,
            per_page=per_page,
            segment=segment,
            tag=tag,
            ids=ids,
            search_value=search_value,
            lead_status=lead_status,
            lifecycle_state=lifecycle_state,
        )
        customers, total = await CustomerQueryService(info.context.db).list_customers_main(params)
        return CustomerListResponse(list=customers, total_count=total)

    @strawberry.field
    async def customer_counts(
        self,
        info: Info,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        segment: Optional[str] = None,
        tag: Optional[str] = None,
        ids: Optional[List[Optional[str]]] = None,
        search_value: Optional[str] = None,
        lead_status: Optional[str] = None,
        lifecycle_state: Optional[str] = None,
        by_fake_segment: Optional[JSON] = None,
    ) -> JSON:
        # page/perPage are accepted for argument parity with the list queries; counts ignore them
        params = parse_list_params(
            segment=segment,
            tag=tag,
            ids=ids,
            search_value=search_value,
            lead_status=lead_status,
            lifecycle_state=lifecycle_state,
        )
        return await CustomerCountService(info.context.db).counts(params, by_fake_segment)

    @strawberry.field
    async def customer_detail(
        self,
        info: Info,
        customer_id: Annotated[str, strawberry.argument(name="_id")],
    ) -> Optional[CustomerType]:
        return await CustomerQueryService(info.context.db).get_customer(customer_id)
