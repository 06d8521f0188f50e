from datetime import datetime, timezone
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Column, String, DateTime, Text, JSON
from sqlalchemy.ext.asyncio import AsyncSession

from crm_api.database import Base
from crm_api.exceptions import ValidationError
from crm_api.models.ids import random_id, ID_LENGTH
from crm_api.schemas.brand import BrandCreate, BrandEmailConfig

logger = logging.getLogger(__name__)


def validate_email_config(email_config) -> dict | None:
    """Validate an email config and return it as a plain dict for the JSON column."""
    if email_config is None:
        return None
    if isinstance(email_config, BrandEmailConfig):
        return email_config.model_dump()
    try:
        return BrandEmailConfig.model_validate(email_config).model_dump()
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("Invalid brand email config", e)


class Brand(Base):
    """Tenant/grouping entity with its own outbound email configuration."""

    __tablename__ = "brands"

    id = Column(String(ID_LENGTH), primary_key=True, default=random_id)
    code = Column(String(50), index=True)
    name = Column(String(100))
    description = Column(Text)
    user_id = Column(String(ID_LENGTH))
    created_at = Column(DateTime(timezone=True))

    # {"type": "simple" | "custom", "template": str}
    email_config = Column(JSON)

    def __repr__(self):
        return f"<Brand id={self.id} code='{self.code}'>"

    @classmethod
    async def create_brand(
        cls,
        db: AsyncSession,
        brand_data: dict | BrandCreate,
        email_config: dict | BrandEmailConfig | None = None,
    ) -> "Brand":
        """
        Create a brand.

        Stamps ``created_at`` with the current time and embeds the validated
        email config in the same insert.

        Args:
            db: Database session
            brand_data: code, name, description, user_id
            email_config: {"type": "simple" | "custom", "template": ...}

        Returns:
            The newly created brand
        """
        if not isinstance(brand_data, BrandCreate):
            try:
                brand_data = BrandCreate.model_validate(brand_data)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid brand", e)

        brand = cls(
            **brand_data.model_dump(),
            created_at=datetime.now(timezone.utc),
            email_config=validate_email_config(email_config),
        )
        db.add(brand)
        await db.commit()
        await db.refresh(brand)

        logger.info("Created brand %s (code=%s)", brand.id, brand.code)
        return brand

    async def update_email_config(
        self, db: AsyncSession, email_config: dict | BrandEmailConfig | None
    ) -> "Brand":
        """Replace the embedded email config."""
        self.email_config = validate_email_config(email_config)
        await db.commit()
        await db.refresh(self)
        logger.info("Updated email config for brand %s", self.id)
        return self
