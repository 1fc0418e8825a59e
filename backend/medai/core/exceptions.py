"""
Error taxonomy for the pharmacy ledger.

Services raise the domain exceptions below and leave the session rolled
back. The API layer turns them into HTTP errors through `BusinessError`;
nothing here is fatal, every error is recoverable by correcting the input.
"""
import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base class for every locally recoverable validation failure."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InsufficientStockError(PharmacyError):
    """Requested quantity exceeds stock, or stock would go negative."""

    def __init__(self, medicine_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {medicine_name}: requested {requested}, available {available}"
        )
        self.medicine_name = medicine_name
        self.requested = requested
        self.available = available


class MissingSelectionError(PharmacyError):
    """No patient, empty cart, no agency, or nothing matched."""


class InvalidAmountError(PharmacyError):
    """Non-positive or non-numeric amount or quantity."""


class RecordNotFoundError(PharmacyError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, record_id: str):
        super().__init__(f"{resource} {record_id} not found")
        self.resource = resource
        self.record_id = record_id


class OverpaymentNotConfirmedError(PharmacyError):
    """Payment exceeds the pending balance and was not explicitly confirmed."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, amount, pending):
        super().__init__(
            f"Payment of {amount} exceeds pending balance of {pending}; confirm to proceed"
        )
        self.amount = amount
        self.pending = pending


class InvalidStateError(PharmacyError):
    status_code = status.HTTP_409_CONFLICT


class ScanError(PharmacyError):
    """The external extraction service failed or returned garbage."""

    status_code = status.HTTP_502_BAD_GATEWAY


class ScanBusyError(ScanError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("A bill scan is already in progress")


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages."""

    @staticmethod
    def from_domain(error: PharmacyError) -> HTTPException:
        """
        Map a domain error to its HTTP status.

        The message is safe to echo: the user caused the issue.
        """
        logger.info(f"{type(error).__name__}: {error.detail}")
        return HTTPException(status_code=error.status_code, detail=error.detail)

    @staticmethod
    def not_found(resource: str = "Resource") -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation errors.
        Examples: "Quantity must be positive", "Image is empty"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )


async def pharmacy_error_handler(request: Request, exc: PharmacyError) -> JSONResponse:
    """Registered on the app so routes can let domain errors propagate."""
    http_exc = BusinessError.from_domain(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})
