"""
Ledger error taxonomy.

Business errors (validation, insufficient funds/holdings, unknown symbol) are
raised before or inside a unit of work and always leave the ledger untouched.
Store errors describe why the store could not complete a unit of work.

Each error carries a stable `code` used by the HTTP layer.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every ledger error."""

    code = "ledger_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or (self.__class__.__doc__ or "").strip()


class ValidationError(LedgerError):
    """Invalid trade or wallet request."""

    code = "validation_error"


class InsufficientFundsError(LedgerError):
    """Insufficient balance."""

    code = "insufficient_funds"

    def __init__(self, required=None, available=None):
        message = "Insufficient balance"
        if required is not None and available is not None:
            message = f"Insufficient balance: required {required}, available {available}"
        super().__init__(message)
        self.required = required
        self.available = available


class InsufficientHoldingsError(LedgerError):
    """Insufficient stock quantity."""

    code = "insufficient_holdings"

    def __init__(self, symbol: str = "", requested=None, held=None):
        message = "Insufficient stock quantity"
        if symbol:
            message = f"Insufficient stock quantity for {symbol}: requested {requested}, held {held or 0}"
        super().__init__(message)
        self.symbol = symbol
        self.requested = requested
        self.held = held


class SymbolNotFoundError(LedgerError):
    """Stock not found."""

    code = "symbol_not_found"

    def __init__(self, symbol: str = ""):
        super().__init__(f"Stock not found: {symbol}" if symbol else "")
        self.symbol = symbol


class WalletNotFoundError(LedgerError):
    """Wallet not found."""

    code = "wallet_not_found"


class OrderNotFoundError(LedgerError):
    """Order not found."""

    code = "order_not_found"


class StoreError(LedgerError):
    """Ledger store failure."""

    code = "store_error"


class StoreConflictError(StoreError):
    """Concurrent modification detected, please retry."""

    code = "store_conflict"


class StoreUnavailableError(StoreError):
    """Ledger store unavailable."""

    code = "store_unavailable"
