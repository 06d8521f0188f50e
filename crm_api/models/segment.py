"""
Segment model.

A segment is a saved filter over one entity type. Membership is never
stored: it is computed from ``conditions`` every time the segment is used.

Conditions example:
    [
        {"field": "firstName", "operator": "c", "value": "ann", "type": "string"},
        {"field": "doNotDisturb", "operator": "if", "type": "boolean"},
    ]

``connector`` decides how conditions combine ("all" = AND, "any" = OR).
``sub_of`` points at a head segment whose conditions are always ANDed in.
"""

from sqlalchemy import Column, String, DateTime, Text, JSON
from sqlalchemy.sql import func
import enum
from crm_api.database import Base
from crm_api.models.ids import random_id, ID_LENGTH


class SegmentConnector(str, enum.Enum):
    all = "all"
    any = "any"


class Segment(Base):
    """Customer segment definition."""

    __tablename__ = "segments"

    id = Column(String(ID_LENGTH), primary_key=True, default=random_id)
    content_type = Column(String(50), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    sub_of = Column(String(ID_LENGTH), index=True)
    color = Column(String(7), default="#3B82F6")
    connector = Column(String(10), default=SegmentConnector.all.value)
    conditions = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Segment id={self.id} name='{self.name}' content_type={self.content_type}>"
