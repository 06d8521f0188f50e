"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation. Factories build
unsaved ORM instances; ``persist`` stores them through the test session.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from .customer import CustomerFactory
from .tag import TagFactory
from .segment import SegmentFactory
from .brand import BrandFactory


async def persist(db: AsyncSession, instance):
    """Insert a built instance and reload server-generated columns."""
    db.add(instance)
    await db.commit()
    await db.refresh(instance)
    return instance


__all__ = [
    "CustomerFactory",
    "TagFactory",
    "SegmentFactory",
    "BrandFactory",
    "persist",
]
