"""Profile model — an API consumer, its key, limits and allowed domains."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from postcode_lookup.models.base import Base


class Profile(Base):
    """Identity store row resolved from the bearer API key."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    api_key: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True, index=True,
    )
    rate_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_request_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    allowed_domains: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
