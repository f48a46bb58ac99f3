"""Typed failures raised by the ledger store.

The repository turns every one of these into a ``Result`` error, so callers
above it never see them raised.
"""


class LedgerError(Exception):
    """Base class for ledger failures."""


class ProductNotFound(LedgerError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__("Product not found")


class InsufficientStock(LedgerError):
    def __init__(self, current: int, requested_removal: int):
        self.current = current
        self.requested_removal = requested_removal
        super().__init__(
            f"Insufficient stock. Current: {current}, Attempted removal: {requested_removal}"
        )


class InvalidRequest(LedgerError):
    """Malformed input: blank SKU or name, unknown movement type, bad limit."""


class InvalidQuantity(InvalidRequest):
    pass


class DuplicateSku(LedgerError):
    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"A product with SKU {sku!r} already exists")


class StorageFailure(LedgerError):
    """Persistence error; the SQLAlchemy exception is kept as ``__cause__``."""
