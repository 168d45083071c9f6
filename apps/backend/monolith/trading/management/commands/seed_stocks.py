"""
Seed Stocks Management Command

Creates the default tradable stocks and primes the price cache with their
starting prices, so the portfolio and market endpoints have prices before
the feed runs.

Run: python manage.py seed_stocks [--no-prices]
"""

from django.core.management.base import BaseCommand

from trading.models import Stock
from trading.services.market_price_cache import get_cached_price, set_cached_price
from trading.services.price_feed import DEFAULT_STOCKS


class Command(BaseCommand):
    help = 'Create the default stocks and prime the price cache'

    def add_arguments(self, parser):
        parser.add_argument(
            '--no-prices',
            action='store_true',
            help='Only create stocks, leave the price cache untouched',
        )
        parser.add_argument(
            '--reset-prices',
            action='store_true',
            help='Overwrite cached prices with the starting prices',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.HTTP_INFO('Seeding stocks...'))

        created_count = 0
        for seed in DEFAULT_STOCKS:
            stock, created = Stock.objects.get_or_create(symbol=seed.symbol, defaults={'name': seed.name})
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'  ✓ Created: {stock.symbol} ({stock.name})'))
            elif stock.name == stock.symbol:
                # Auto-created by a BUY before seeding; give it its real name
                stock.name = seed.name
                stock.save(update_fields=['name', 'updated_at'])
                self.stdout.write(self.style.HTTP_INFO(f'  ~ Named: {stock.symbol} ({stock.name})'))

            if options['no_prices']:
                continue
            if options['reset_prices'] or get_cached_price(seed.symbol) is None:
                set_cached_price(seed.symbol, seed.price)

        self.stdout.write(self.style.SUCCESS(
            f'Processed {len(DEFAULT_STOCKS)} stocks ({created_count} created)'
        ))
