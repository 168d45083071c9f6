"""
Run Price Feed Management Command

Runs the simulated random-walk feed: every tick moves all prices, writes
them to the cache (read by every web process) and publishes
`price.updated` on this process's event bus.

Usage:
    python manage.py run_price_feed                  # forever, LEDGER['PRICE_TICK_INTERVAL']
    python manage.py run_price_feed --interval 1 --ticks 10
"""

import logging
import random
import time

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from trading.application.wiring import get_event_bus, price_feed_retry_policy
from trading.middleware.logging_filter import correlation_scope
from trading.services.market_price_cache import get_cached_price
from trading.services.price_feed import DEFAULT_STOCKS, SimulatedPriceFeed, StockSeed

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Run the simulated market price feed'

    # Patched in tests
    sleep = staticmethod(time.sleep)

    def add_arguments(self, parser):
        parser.add_argument(
            '--interval',
            type=float,
            default=None,
            help="Seconds between ticks (default: LEDGER['PRICE_TICK_INTERVAL'])",
        )
        parser.add_argument(
            '--ticks',
            type=int,
            default=0,
            help='Stop after this many ticks (default: 0 = run until interrupted)',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for a reproducible walk',
        )

    def handle(self, *args, **options):
        interval = options['interval']
        if interval is None:
            interval = settings.LEDGER.get('PRICE_TICK_INTERVAL', 3.0)
        if interval < 0:
            raise CommandError('--interval must not be negative')
        max_ticks = options['ticks']
        if max_ticks < 0:
            raise CommandError('--ticks must not be negative')

        # Resume from cached prices so restarts do not jump back to the seeds
        stocks = [
            StockSeed(seed.symbol, seed.name, get_cached_price(seed.symbol) or seed.price)
            for seed in DEFAULT_STOCKS
        ]
        feed = SimulatedPriceFeed(
            stocks=stocks,
            bus=get_event_bus(),
            retry_policy=price_feed_retry_policy(),
            rng=random.Random(options['seed']),
            sleep=self.sleep,
        )

        self.stdout.write(self.style.HTTP_INFO(
            f'Price feed started: {len(stocks)} stocks, every {interval}s'
            + (f', {max_ticks} ticks' if max_ticks else '')
        ))

        try:
            while not max_ticks or feed.ticks < max_ticks:
                with correlation_scope():
                    try:
                        prices = feed.tick()
                    except Exception as e:
                        logger.error(f"Price feed stopped after {feed.ticks} ticks: {e}", exc_info=True)
                        raise CommandError(f'Price cache unavailable: {e}') from e
                self.stdout.write(
                    f'tick {feed.ticks}: ' + ' '.join(f'{s}={p}' for s, p in prices.items())
                )
                if not max_ticks or feed.ticks < max_ticks:
                    self.sleep(interval)
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('Interrupted'))

        self.stdout.write(self.style.SUCCESS(f'Price feed finished after {feed.ticks} ticks'))
