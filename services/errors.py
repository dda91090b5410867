"""Errors raised by the bookstore services.

Routes translate these into HTTP responses; scripts let them propagate.
"""


class BookstoreError(Exception):
    """Base class for every domain failure."""


class InvalidArgument(BookstoreError):
    """The caller sent something unusable. Nothing was changed."""


class InsufficientStock(BookstoreError):
    """Book missing or not enough copies left. Nothing was changed."""


class PersistenceError(BookstoreError):
    """Storage failed.

    ``stock_reserved`` is True when the stock decrement had already been
    committed, i.e. copies are gone but the purchase record may not exist.
    Those cases need manual reconciliation; the decrement is not undone.
    """

    def __init__(self, message: str, stock_reserved: bool = False):
        super().__init__(message)
        self.stock_reserved = stock_reserved
