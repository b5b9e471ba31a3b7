from typing import Callable, TypeVar

from review_admin.clients.errors import AuthenticationError, RemoteError, TransportError
from review_admin.logger import logger
from review_admin.result import ErrorKind, Result

T = TypeVar("T")


def attempt(action: str, fn: Callable[..., T], *args, **kwargs) -> Result[T]:
    """Run one admin API write and fold its failure into a Result."""
    try:
        value = fn(*args, **kwargs)
    except AuthenticationError as e:
        return Result.failure(ErrorKind.AUTHENTICATION, str(e))
    except TransportError as e:
        logger.error("%s failed: admin API unreachable (%s)", action, e)
        return Result.failure(ErrorKind.TRANSPORT, str(e))
    except RemoteError as e:
        logger.warning("%s rejected: %s", action, e.message)
        kind = ErrorKind.NOT_FOUND if e.status_code == 404 else ErrorKind.SERVER
        return Result.failure(kind, e.message)

    logger.info("%s succeeded", action)
    return Result.success(value)


def read_or_empty(action: str, fn: Callable[..., T], empty: T, *args, **kwargs):
    """
    Run one admin API read. Transport and server failures yield `empty` plus an
    error message for the view; authentication failures propagate.
    """
    try:
        return fn(*args, **kwargs), None
    except (TransportError, RemoteError) as e:
        logger.warning("%s failed: %s", action, e)
        return empty, str(e)
