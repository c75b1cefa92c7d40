"""Process-lifetime services, built once per application instance."""

import logging
import time
from collections.abc import Callable

from postcode_lookup.config import Settings
from postcode_lookup.database import Database
from postcode_lookup.integrations.google_places import GooglePlacesClient
from postcode_lookup.integrations.postcodes_io import PostcodesIOClient
from postcode_lookup.services.access import AccessController
from postcode_lookup.services.aggregator import AddressAggregator
from postcode_lookup.services.cache import AddressCaches, CacheSweeper
from postcode_lookup.services.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Owns caches, limiters, upstream clients, the database and the sweeper task.

    Tests build their own container (with a fake timer or stub clients) so
    several isolated apps can live in one process.
    """

    def __init__(
        self,
        settings: Settings,
        database: Database | None = None,
        resolver: PostcodesIOClient | None = None,
        places: GooglePlacesClient | None = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.database = database or Database(settings.database_url)

        self.caches = AddressCaches(settings, timer=timer)

        self.resolver = resolver or PostcodesIOClient(
            settings.postcodes_io_url, timeout=settings.upstream_timeout_seconds,
        )
        self.places = places or GooglePlacesClient(
            settings.google_maps_api_key,
            base_url=settings.google_places_url,
            timeout=settings.upstream_timeout_seconds,
        )
        self.aggregator = AddressAggregator(
            self.caches, self.resolver, self.places, self.database.session_factory, settings,
        )

        self.demo_limiter = RateLimiter(
            settings.demo_rate_limit, settings.demo_rate_window_seconds, timer=timer,
        )
        self.key_limiter = RateLimiter(
            settings.default_rate_limit, settings.rate_window_seconds, timer=timer,
        )
        self.access = AccessController(
            settings, self.database.session_factory, self.demo_limiter, self.key_limiter,
        )
        self.sweeper = CacheSweeper(
            self.caches,
            interval=settings.cache_sweep_interval,
            limiters=(self.demo_limiter, self.key_limiter),
        )

    async def start(self) -> None:
        db_ok = await self.database.init()
        logger.info("Database: %s", "connected" if db_ok else "unavailable (continuing without)")
        if not self.settings.has_places_key:
            logger.warning("GOOGLE_MAPS_API_KEY not set — lookups will return residential results only")
        self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()
        await self.database.close()
