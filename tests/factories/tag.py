import factory
from faker import Faker

from crm_api.models.content_types import ContentType
from crm_api.models.ids import random_id
from crm_api.models.tag import Tag

fake = Faker()


class TagFactory(factory.Factory):
    """Factory for customer tags."""

    class Meta:
        model = Tag

    id = factory.LazyFunction(random_id)
    name = factory.LazyFunction(lambda: fake.unique.word())
    type = ContentType.customer.value
    color_code = factory.LazyFunction(fake.hex_color)

