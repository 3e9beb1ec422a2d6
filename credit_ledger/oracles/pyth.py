"""Pyth Network price oracle for one non-stable asset."""
import logging
import ssl
import time

import aiohttp
import certifi

from ..config import PythConfig

logger = logging.getLogger(__name__)


class PythOracle:
    """Fetch the latest price of a single feed from Pyth Hermes.

    Failures and prices older than ``max_age_seconds`` are logged and
    reported as a zero price, which the collateral engine rejects as invalid.
    """

    def __init__(self, config: PythConfig, feed_id: str) -> None:
        self.hermes_url = config.hermes_url
        self.max_age_seconds = config.max_age_seconds
        self.feed_id = feed_id
        self._decimals: int | None = None

    def _is_stale(self, publish_time) -> bool:
        if publish_time is None or self.max_age_seconds <= 0:
            return False
        age = time.time() - int(publish_time)
        return age > self.max_age_seconds

    async def _fetch(self) -> tuple[int, int]:
        """Return ``(price, expo)`` for the feed, ``(0, 0)`` on any failure."""
        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching price from Pyth: HTTP %s", response.status
                        )
                        return 0, 0

                    data = await response.json()
                    for item in data.get("parsed", []):
                        if item.get("id") != self.feed_id:
                            continue
                        price_data = item.get("price", {})
                        publish_time = price_data.get("publish_time")
                        if self._is_stale(publish_time):
                            logger.warning(
                                "Stale Pyth price for feed %s (published at %s)",
                                self.feed_id,
                                publish_time,
                            )
                            return 0, 0
                        return int(price_data.get("price", 0)), int(price_data.get("expo", 0))

                    logger.error("Pyth response has no entry for feed %s", self.feed_id)
        except Exception as e:
            logger.error("Error fetching price from Pyth: %s", e)

        return 0, 0

    async def latest_price(self) -> int:
        price, expo = await self._fetch()
        logger.debug("Pyth feed %s: price=%d expo=%d", self.feed_id, price, expo)
        if expo >= 0:
            # whole units; report zero decimals
            self._decimals = 0
            return price * 10**expo
        self._decimals = -expo
        return price

    async def price_decimals(self) -> int:
        """Decimals of the most recent price; fetches one if none was read yet."""
        if self._decimals is None:
            await self.latest_price()
        return self._decimals or 0
