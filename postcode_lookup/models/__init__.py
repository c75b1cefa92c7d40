"""SQLAlchemy ORM models."""

from postcode_lookup.models.api_usage import ApiUsage
from postcode_lookup.models.base import Base
from postcode_lookup.models.profile import Profile
from postcode_lookup.models.residential_address import ResidentialAddress

__all__ = ["Base", "Profile", "ResidentialAddress", "ApiUsage"]
