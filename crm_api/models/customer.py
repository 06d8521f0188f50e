from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from crm_api.database import Base
from crm_api.models.ids import random_id, ID_LENGTH


class LeadStatus(str, enum.Enum):
    new = "new"
    open = "open"
    in_progress = "inProgress"
    open_deal = "openDeal"
    unqualified = "unqualified"
    attempted_to_contact = "attemptedToContact"
    connected = "connected"
    bad_timing = "badTiming"


class LifecycleState(str, enum.Enum):
    subscriber = "subscriber"
    lead = "lead"
    marketing_qualified_lead = "marketingQualifiedLead"
    sales_qualified_lead = "salesQualifiedLead"
    opportunity = "opportunity"
    customer = "customer"
    evangelist = "evangelist"
    other = "other"


class CustomerTag(Base):
    """Link between a customer and one of its tags."""

    __tablename__ = "customer_tags"

    customer_id = Column(
        String(ID_LENGTH), ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id = Column(
        String(ID_LENGTH), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True
    )

    def __repr__(self):
        return f"<CustomerTag customer={self.customer_id} tag={self.tag_id}>"


class Customer(Base):
    """Customer model."""

    __tablename__ = "customers"

    id = Column(String(ID_LENGTH), primary_key=True, default=random_id)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255), index=True)
    phone = Column(String(50))

    position = Column(String(100))
    department = Column(String(100))
    lead_status = Column(String(50))
    lifecycle_state = Column(String(50))
    description = Column(Text)
    do_not_disturb = Column(Boolean, default=False)
    owner_id = Column(String(ID_LENGTH))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    modified_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Eagerly loaded: async sessions cannot lazy load on attribute access
    tag_links = relationship(
        "CustomerTag",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tag_ids = association_proxy(
        "tag_links", "tag_id", creator=lambda tag_id: CustomerTag(tag_id=tag_id)
    )

    def __repr__(self):
        return f"<Customer {self.first_name} {self.last_name}>"
