from datetime import datetime, timezone

import factory
from faker import Faker

from crm_api.models.brand import Brand
from crm_api.models.ids import random_id

fake = Faker()


class BrandFactory(factory.Factory):
    """Factory for brands with a simple email config."""

    class Meta:
        model = Brand

    id = factory.LazyFunction(random_id)
    code = factory.LazyFunction(lambda: fake.unique.lexify("????").upper())
    name = factory.LazyFunction(fake.company)
    description = factory.LazyFunction(fake.catch_phrase)
    user_id = factory.LazyFunction(random_id)
    created_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))
    email_config = factory.LazyFunction(lambda: {"type": "simple", "template": None})
