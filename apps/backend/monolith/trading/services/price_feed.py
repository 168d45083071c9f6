"""
Simulated market data feed for development.

Each tick moves every price by a random step of at most 2% in either
direction, rounds to cents, writes the prices to the cache and publishes a
`price.updated` event per tick.
"""

import logging
import random
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional

from trading.application.ports import EventBusPort
from trading.application.retry import RetryPolicy

from .market_price_cache import set_cached_price

logger = logging.getLogger(__name__)

PRICE_UPDATED_TOPIC = "price.updated"

CENT = Decimal("0.01")
MAX_STEP_BASIS_POINTS = 200  # 2%


@dataclass(frozen=True)
class StockSeed:
    symbol: str
    name: str
    price: Decimal


DEFAULT_STOCKS = (
    StockSeed("AAPL", "Apple Inc.", Decimal("175.50")),
    StockSeed("GOOGL", "Alphabet Inc.", Decimal("140.25")),
    StockSeed("MSFT", "Microsoft Corp.", Decimal("380.75")),
    StockSeed("AMZN", "Amazon.com Inc.", Decimal("155.60")),
    StockSeed("TSLA", "Tesla Inc.", Decimal("245.30")),
    StockSeed("META", "Meta Platforms Inc.", Decimal("485.90")),
    StockSeed("NVDA", "NVIDIA Corp.", Decimal("720.45")),
    StockSeed("NFLX", "Netflix Inc.", Decimal("625.80")),
)


def random_walk_step(price: Decimal, basis_points: int) -> Decimal:
    """Apply a move of `basis_points` / 10000, rounded to cents, floored at one cent."""
    moved = price * (Decimal(1) + Decimal(basis_points) / Decimal(10000))
    return max(moved.quantize(CENT, rounding=ROUND_HALF_UP), CENT)


class SimulatedPriceFeed:
    """
    In-process random-walk price source.

    Args:
        stocks: Starting prices (defaults to DEFAULT_STOCKS)
        bus: Event bus receiving one `price.updated` event per tick
        retry_policy: Bounded retry for cache writes
        rng: Random source (seed it for reproducible walks)
        writer: Function storing one price (defaults to the Django cache)
    """

    def __init__(
        self,
        stocks: Iterable[StockSeed] = DEFAULT_STOCKS,
        bus: Optional[EventBusPort] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rng: Optional[random.Random] = None,
        writer: Callable[[str, Decimal], object] = set_cached_price,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.prices: dict[str, Decimal] = {s.symbol: s.price for s in stocks}
        self.bus = bus
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=1)
        self.rng = rng or random.Random()
        self.writer = writer
        self._sleep = sleep
        self.ticks = 0

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self.prices)

    def advance(self) -> dict[str, Decimal]:
        """Move every price one step. Does not publish."""
        for symbol, price in self.prices.items():
            step = self.rng.randint(-MAX_STEP_BASIS_POINTS, MAX_STEP_BASIS_POINTS)
            self.prices[symbol] = random_walk_step(price, step)
        self.ticks += 1
        return self.snapshot()

    def publish(self) -> None:
        """
        Write current prices to the cache and announce them.

        Cache failures are retried with `retry_policy`; the last failure
        propagates to the caller.
        """
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        self.retry_policy.run(self._write_all, retry_on=(Exception,), label="price cache write", **kwargs)
        if self.bus is not None:
            self.bus.publish(
                PRICE_UPDATED_TOPIC,
                {"tick": self.ticks, "prices": {s: str(p) for s, p in self.prices.items()}},
            )

    def tick(self) -> dict[str, Decimal]:
        prices = self.advance()
        self.publish()
        logger.debug(f"Price tick {self.ticks}: {prices}")
        return prices

    def _write_all(self) -> None:
        for symbol, price in self.prices.items():
            self.writer(symbol, price)
