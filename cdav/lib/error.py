#!/usr/bin/env python
import asyncio
import logging
import os
from typing import Any
from typing import Optional

from cdav import __version__

## Environmental variables prepended with "PYTHON_CDAV" are used for debug purposes,
## environmental variables prepended with "CDAV_" are for connection parameters
debug_dump_communication = bool(os.environ.get("PYTHON_CDAV_COMMDUMP", False))
## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
try:
    debugmode = os.environ["PYTHON_CDAV_DEBUGMODE"]
except KeyError:
    if "dev" in __version__ or __version__ == "(unknown)":
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("cdav")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def weirdness(*reasons):
    from cdav.lib.debug import xmlstring

    reason = " : ".join([xmlstring(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")
    if debugmode == "DEBUG_PDB":
        log.error(f"Dropping into debugger due to {reason}")
        import pdb

        pdb.set_trace()


def assert_(condition: object) -> None:
    try:
        assert condition
    except AssertionError:
        if debugmode == "PRODUCTION":
            log.error(
                "Deviation from expectations found.  %s" % ERR_FRAGMENT, exc_info=True
            )
        elif debugmode == "DEBUG_PDB":
            log.error("Deviation from expectations found.  Dropping into debugger")
            import pdb

            pdb.set_trace()
        else:
            raise


ERR_FRAGMENT: str = "Please consider raising an issue, include this error and the traceback (if any) and tell what server you are using"


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class NetworkRequestError(DAVError):
    """
    No response reached the caller - DNS failure, connection refused,
    connection reset, TLS problems, timeouts.  The caller may retry.

    All network request errors carry the status code and the body of
    the response.  When there was no response, status is -1 and body
    is None.
    """

    status: int = -1
    body: Any = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        status: int = -1,
        body: Any = None,
    ) -> None:
        super().__init__(url=url, reason=reason)
        self.status = status
        self.body = body


class NetworkRequestAbortedError(NetworkRequestError, asyncio.CancelledError):
    """
    The request was cancelled by the caller.  Never retried.

    Also a CancelledError, so task cancellation and asyncio timeouts
    keep working for code awaiting the request.
    """

    pass


class NetworkRequestHttpError(NetworkRequestError):
    """The server answered with a status that is neither 2xx, 4xx nor 5xx"""

    pass


class NetworkRequestClientError(NetworkRequestHttpError):
    """4xx - the request was invalid or unauthorized.  Not retried."""

    pass


class NetworkRequestServerError(NetworkRequestHttpError):
    """5xx - the server failed.  The caller may retry."""

    pass


class AuthorizationError(NetworkRequestClientError):
    """
    The client encountered an HTTP 401 or 403 error and is passing it on
    to the user. The url property will contain the url in question,
    the reason property will contain the excuse the server sent.
    """

    pass


class NotFoundError(DAVError):
    pass


def error_for_status(
    status: int, url: Optional[str] = None, reason: Optional[str] = None, body: Any = None
) -> NetworkRequestHttpError:
    """
    Classify a non-2xx HTTP status into the error taxonomy above.
    """
    if status in (401, 403):
        cls = AuthorizationError
    elif 400 <= status < 500:
        cls = NetworkRequestClientError
    elif 500 <= status < 600:
        cls = NetworkRequestServerError
    else:
        cls = NetworkRequestHttpError
    return cls(url=url, reason=reason, status=status, body=body)
