"""ResidentialAddress model — addresses submitted by API consumers."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from postcode_lookup.models.base import Base


class ResidentialAddress(Base):
    """A user-submitted address, matched by its whitespace-free postcode key."""

    __tablename__ = "residential_addresses"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    postcode: Mapped[str] = mapped_column(String(16), nullable=False)
    postcode_key: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    building_number: Mapped[str] = mapped_column(String(100), nullable=False)
    street_address: Mapped[str] = mapped_column(String(200), nullable=False)
    town: Mapped[str] = mapped_column(String(100), nullable=False)
    full_address: Mapped[str] = mapped_column(String(400), nullable=False)
    submitted_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
