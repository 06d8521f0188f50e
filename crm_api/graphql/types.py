import strawberry
from datetime import datetime
from typing import List, Optional
from strawberry.scalars import JSON


@strawberry.type(name="Customer")
class CustomerType:
    id: str = strawberry.field(name="_id")
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    tag_ids: List[str]
    position: Optional[str]
    department: Optional[str]
    lead_status: Optional[str]
    lifecycle_state: Optional[str]
    description: Optional[str]
    do_not_disturb: Optional[bool]
    owner_id: Optional[str]
    created_at: Optional[datetime]
    modified_at: Optional[datetime]


@strawberry.type(name="CustomerListResponse")
class CustomerListResponse:
    list: List[CustomerType]
    total_count: int


@strawberry.type(name="Tag")
class TagType:
    id: str = strawberry.field(name="_id")
    name: str
    type: str
    color_code: Optional[str]
    created_at: Optional[datetime]


@strawberry.type(name="Segment")
class SegmentType:
    id: str = strawberry.field(name="_id")
    content_type: str
    name: str
    description: Optional[str]
    sub_of: Optional[str]
    color: Optional[str]
    connector: Optional[str]
    conditions: Optional[JSON]
    created_at: Optional[datetime]


@strawberry.type(name="BrandEmailConfig")
class BrandEmailConfigType:
    type: Optional[str]
    template: Optional[str]


@strawberry.input(name="BrandEmailConfigInput")
class BrandEmailConfigInput:
    type: Optional[str] = None
    template: Optional[str] = None

    def to_dict(self) -> dict:
        return {"type": self.type, "template": self.template}


@strawberry.type(name="Brand")
class BrandType:
    id: str = strawberry.field(name="_id")
    code: Optional[str]
    name: Optional[str]
    description: Optional[str]
    user_id: Optional[str]
    created_at: Optional[datetime]

    @strawberry.field
    def email_config(self) -> Optional[BrandEmailConfigType]:
        # Resolved against the ORM row, where email_config is the stored JSON dict
        config = self.email_config
        if not config:
            return None
        return BrandEmailConfigType(type=config.get("type"), template=config.get("template"))
