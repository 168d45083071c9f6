# trading/models/base.py
"""
Base mixins shared by the ledger models.
"""

from django.db import models


class TimestampMixin(models.Model):
    """
    Mixin that adds automatic timestamp fields.
    """
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Record creation timestamp"
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Last update timestamp"
    )

    class Meta:
        abstract = True
