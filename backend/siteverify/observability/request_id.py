"""Request correlation ids.

The id of the HTTP request that caused a transition follows it into the
audit log lines, the geocoding threads of a bulk import and the
notification threads that run after commit.
"""

import contextvars
import re
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Client-supplied ids end up in every log line of the request
_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


def generate_request_id() -> str:
    return str(uuid.uuid4())


def accept_request_id(header_value: Optional[str]) -> str:
    """Reuse the caller's X-Request-ID when it is a plain token, else mint one.

    Example:
        >>> accept_request_id("req-123")
        'req-123'
        >>> accept_request_id("bad id\\n") != "bad id\\n"
        True
    """
    if header_value and _ACCEPTED_REQUEST_ID.match(header_value):
        return header_value
    return generate_request_id()


def get_request_id() -> str:
    """Current request id, or "no-request-id" outside a request."""
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> contextvars.Token:
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    request_id_var.reset(token)


def bind_context(fn: Callable[..., T]) -> Callable[..., T]:
    """Wrap fn so it runs with the caller's request id on a pool thread.

    ThreadPoolExecutor workers do not inherit context variables; the
    snapshot is taken when bind_context is called.
    """
    context = contextvars.copy_context()

    def run(*args: Any, **kwargs: Any) -> T:
        return context.copy().run(fn, *args, **kwargs)

    return run
