"""Access control — API key resolution, domain allow-list and rate limits.

Per request: Unauthenticated -> DemoAllowed | KeyResolved | Rejected.

  - no key / demo key: per-IP demo limiter first, then 401 (no key) or demo identity
  - unknown key: 401; identity store failure: 500
  - Origin/Referer outside a non-empty allow-list: 403
  - key over its own per-window limit: 429
"""

import logging
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from postcode_lookup.config import Settings
from postcode_lookup.crud import profiles as profile_crud
from postcode_lookup.errors import AccessDenied
from postcode_lookup.services.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

DEMO_USER_ID = "demo_user"


@dataclass(frozen=True)
class Identity:
    kind: Literal["demo", "api_key"]
    id: str
    allowed_domains: frozenset[str] = frozenset()
    rate_limit: int = 0

    @property
    def is_demo(self) -> bool:
        return self.kind == "demo"


DEMO_IDENTITY = Identity(kind="demo", id=DEMO_USER_ID)


def extract_api_key(authorization: str | None) -> str | None:
    """Second token of ``Authorization: Bearer <key>``, or None."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) < 2:
        return None
    return parts[1].strip() or None


def client_ip(request: Request) -> str:
    ip = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if not ip:
        ip = request.client.host if request.client else "unknown"
    return ip


def request_hostname(request: Request) -> str | None:
    """Hostname of the Origin (or Referer) header; "" if unparseable, None if absent."""
    origin = request.headers.get("origin") or request.headers.get("referer")
    if not origin:
        return None
    try:
        return urlparse(origin).hostname or ""
    except ValueError:
        return ""


def domain_allowed(hostname: str | None, allowed_domains: frozenset[str]) -> bool:
    # An empty allow-list means no restriction has been configured yet.
    if hostname is None or not allowed_domains:
        return True
    return hostname in allowed_domains


class AccessController:
    """Resolves the caller of a lookup endpoint to an Identity."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        demo_limiter: RateLimiter,
        key_limiter: RateLimiter,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.demo_limiter = demo_limiter
        self.key_limiter = key_limiter

    async def authorize(self, request: Request) -> Identity:
        api_key = extract_api_key(request.headers.get("authorization"))

        if not api_key or api_key == self.settings.demo_api_key:
            ip = client_ip(request)
            decision = self.demo_limiter.hit(ip)
            if not decision.allowed:
                logger.info("Rate limit exceeded | ip=%s | key=%s", ip, "demo" if api_key else "none")
                raise AccessDenied(
                    429,
                    "Too many requests. Please sign up for full access.",
                    headers={"Retry-After": str(decision.retry_after)},
                )
            if not api_key:
                raise AccessDenied(401, "API key is required")
            logger.debug("Demo request | ip=%s", ip)
            return DEMO_IDENTITY

        try:
            async with self.session_factory() as session:
                profile = await profile_crud.get_by_api_key(session, api_key)
        except Exception as e:
            logger.error("Error validating API key: %s", str(e)[:200])
            raise AccessDenied(500, "Error validating API key") from e

        if profile is None:
            logger.info("Unauthorized request | key=%s…", api_key[:6])
            raise AccessDenied(401, "Unauthorized")

        identity = Identity(
            kind="api_key",
            id=profile.id,
            allowed_domains=frozenset(profile.allowed_domains or []),
            rate_limit=profile.rate_limit,
        )

        hostname = request_hostname(request)
        if not domain_allowed(hostname, identity.allowed_domains):
            logger.info("Unauthorized domain | user=%s | domain=%s", identity.id, hostname)
            raise AccessDenied(
                403,
                "Domain not authorized. Please add this domain in your dashboard settings.",
            )

        decision = self.key_limiter.hit(identity.id, limit=identity.rate_limit)
        if not decision.allowed:
            logger.info("Rate limit exceeded | user=%s | limit=%d", identity.id, identity.rate_limit)
            raise AccessDenied(
                429,
                "Rate limit exceeded",
                headers={"Retry-After": str(decision.retry_after)},
            )
        return identity
