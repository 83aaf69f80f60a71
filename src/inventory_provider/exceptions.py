class InventoryError(Exception):
    """Base class for errors raised by the inventory provider."""


class UnknownUriError(InventoryError, ValueError):
    """A content URI did not match any route the provider serves."""


class ProductValidationError(InventoryError, ValueError):
    """Product values were rejected before reaching the database."""
