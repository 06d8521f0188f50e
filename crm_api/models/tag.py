from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from crm_api.database import Base
from crm_api.models.ids import random_id, ID_LENGTH


class Tag(Base):
    """Label attachable to entities of the declared ``type``."""

    __tablename__ = "tags"

    id = Column(String(ID_LENGTH), primary_key=True, default=random_id)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False, index=True)
    color_code = Column(String(7))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Tag id={self.id} name='{self.name}' type={self.type}>"
