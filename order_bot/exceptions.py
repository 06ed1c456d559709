"""Exceptions raised by the order bot's store adapters."""


class OrderBotError(Exception):
    """Base class for order bot errors."""


class StoreNotConfiguredError(OrderBotError):
    """Raised when the spreadsheet store is used without credentials or document id."""
