from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Iterator

import sentry_sdk

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class RequestContextFilter(logging.Filter):
    """Copy the active log context (request, user and bound fields) onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get({})
        for key in ("request_id", "user_id"):
            if getattr(record, key, None) is None:
                setattr(record, key, context.get(key))
        for key, value in context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def push_request_context(request_id: str) -> Token:
    return _log_context.set({"request_id": request_id, "user_id": None})


def pop_request_context(token: Token) -> None:
    _log_context.reset(token)


def set_user_context(user_id: str | None) -> None:
    context = _log_context.get({})
    if context:
        context["user_id"] = user_id
    else:  # middleware bypassed (direct service calls, scripts)
        _log_context.set({"request_id": None, "user_id": user_id})
    sentry_sdk.set_user({"id": user_id} if user_id else None)


@contextmanager
def bound_log_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every record logged inside the block."""
    token = _log_context.set({**_log_context.get({}), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


__all__ = [
    "RequestContextFilter",
    "bound_log_context",
    "push_request_context",
    "pop_request_context",
    "set_user_context",
]
