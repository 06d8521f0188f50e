from crm_api.models.customer import Customer, CustomerTag
from crm_api.models.tag import Tag
from crm_api.models.segment import Segment
from crm_api.models.brand import Brand

__all__ = [
    "Customer",
    "CustomerTag",
    "Tag",
    "Segment",
    "Brand",
]
