"""Shared plumbing for core services: result boundary and retrying units of work"""

import functools
import inspect
import logging
import time
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import ConflictError, DomainException, ErrorKind
from digital_wallet.domain.models import ServiceResult
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.metrics import ledger_conflict_counter

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNEXPECTED_MESSAGE = "An unexpected error occurred"

# PostgreSQL serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_PGCODES = {"40001", "40P01", "55P03"}


def is_transient_conflict(error: OperationalError) -> bool:
    """Lock timeouts and serialization failures are worth retrying; other operational errors are not"""
    if getattr(error.orig, "pgcode", None) in RETRYABLE_PGCODES:
        return True
    return "database is locked" in str(error.orig).lower()


def _failure(operation: str, error: Exception) -> ServiceResult:
    if isinstance(error, DomainException):
        logger.warning(
            f"{operation} rejected: {error.message}",
            extra={"operation": operation, "error_kind": error.kind.value},
        )
        return ServiceResult.failure(error.kind, error.message, error.errors)

    logger.exception(f"{operation} failed unexpectedly", extra={"operation": operation})
    message = f"{UNEXPECTED_MESSAGE}: {error}" if settings.debug else UNEXPECTED_MESSAGE
    return ServiceResult.failure(ErrorKind.UNEXPECTED, message)


def service_operation(operation: str, success_message: str | None = None) -> Callable:
    """
    Boundary between the exception-raising core and callers expecting a ServiceResult.

    Domain exceptions become failures carrying their kind and messages; anything
    else is logged with traceback and reported as a generic unexpected error.
    Works for both plain and async methods.
    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> ServiceResult:
                try:
                    data = await func(*args, **kwargs)
                except Exception as e:
                    return _failure(operation, e)
                return ServiceResult.success(data, success_message)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> ServiceResult:
            try:
                data = func(*args, **kwargs)
            except Exception as e:
                return _failure(operation, e)
            return ServiceResult.success(data, success_message)

        return wrapper

    return decorator


def run_atomically(
    session_factory: sessionmaker,
    work: Callable[[UnitOfWork], T],
    max_retries: int | None = None,
    backoff_base: float | None = None,
) -> T:
    """
    Run `work` inside one unit of work and commit it.

    Retry strategy:
    - The whole unit is rolled back and re-run on transient lock/serialization conflicts
    - Exponential backoff: base, 2*base, 4*base ...
    - After max_retries re-runs the operation fails with ConflictError

    Domain exceptions raised by `work` roll back and propagate unchanged.
    """
    max_retries = settings.ledger_max_retries if max_retries is None else max_retries
    backoff_base = settings.ledger_retry_backoff_seconds if backoff_base is None else backoff_base

    attempt = 0
    while True:
        try:
            with UnitOfWork(session_factory) as uow:
                result = work(uow)
                uow.commit()
                return result

        except OperationalError as e:
            if not is_transient_conflict(e):
                raise
            attempt += 1
            ledger_conflict_counter.inc()

            if attempt > max_retries:
                raise ConflictError() from e

            backoff = backoff_base * (2 ** (attempt - 1))
            logger.info(
                "Retrying unit of work after conflict",
                extra={"attempt": attempt, "backoff_seconds": backoff},
            )
            time.sleep(backoff)
