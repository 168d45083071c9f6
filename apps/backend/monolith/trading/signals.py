"""
Signals for the trading app.

Every user gets exactly one wallet, created together with the user so the
ledger never meets a user without a cash account.
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


def initial_wallet_balance() -> Decimal:
    return Decimal(str(getattr(settings, 'LEDGER', {}).get('INITIAL_WALLET_BALANCE', '0.00')))


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_wallet_on_user_creation(sender, instance, created, raw=False, **kwargs):
    """
    Create the user's wallet with LEDGER['INITIAL_WALLET_BALANCE'].

    Args:
        sender: User model
        instance: The user instance being saved
        created: Boolean indicating if this is a new user
        raw: True when loading fixtures; fixtures carry their own wallets
    """
    if not created or raw:
        return

    from trading.models import Wallet

    wallet, wallet_created = Wallet.objects.get_or_create(
        user=instance,
        defaults={'balance': initial_wallet_balance()},
    )
    if wallet_created:
        logger.info(f"Created wallet for user {instance.pk} with balance {wallet.balance}")
