import enum


class ContentType(str, enum.Enum):
    """Entity kinds that tags and segments are scoped to."""

    customer = "customer"
    company = "company"
