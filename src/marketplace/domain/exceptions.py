"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Each subclass carries a stable machine-readable ``kind``.
"""


class DomainException(Exception):
    """Base class for all domain errors."""

    kind = "domain_error"


class ValidationError(DomainException):
    """Malformed or missing input, or a business rule was violated."""

    kind = "validation_error"


class ProductUnavailable(DomainException):
    """The product does not exist or is no longer active."""

    kind = "product_unavailable"


class InsufficientStock(DomainException):
    """The requested quantity exceeds the available stock."""

    kind = "insufficient_stock"

    def __init__(self, message: str, product_id: str | None = None) -> None:
        super().__init__(message)
        self.product_id = product_id


class InvalidStatus(DomainException):
    """Unknown status or an illegal state transition."""

    kind = "invalid_status"


class StockUpdateFailed(DomainException):
    """A conditional stock decrement lost a race at commit time."""

    kind = "stock_update_failed"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = "not_found"


class LineNotFound(EntityNotFoundError):
    """The cart has no line for the given product."""


class InternalError(DomainException):
    """Storage or infrastructure failure."""

    kind = "internal"
