"""DEBUG call tracing for the solver modules.

A module opts in by ending with ``apply_debug_logging(globals(), logger=logger)``.
Wrapped functions cost a single level check while DEBUG is off.
"""

from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_MAX_ITEMS = 5
_MAX_LENGTH = 400

_repr = reprlib.Repr()
_repr.maxother = 160
_repr.maxlist = _MAX_ITEMS * 2


def _summarize_array(value: np.ndarray) -> str:
    head = f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"
    if value.size == 0:
        return head
    if value.size <= _MAX_ITEMS:
        return f"{head}, values={_repr.repr(value.tolist())}"
    if np.issubdtype(value.dtype, np.number):
        return f"{head}, min={float(value.min()):.6g}, max={float(value.max()):.6g}"
    return head


def _safe_repr(value: Any) -> str:
    """Bounded rendering of an argument or return value."""

    if isinstance(value, np.ndarray):
        return _summarize_array(value)
    if isinstance(value, dict):
        pairs = [f"{_safe_repr(k)}: {_safe_repr(v)}" for k, v in list(value.items())[:_MAX_ITEMS]]
        if len(value) > _MAX_ITEMS:
            pairs.append("...")
        return "{" + ", ".join(pairs) + "}"
    if isinstance(value, (list, tuple)):
        items = [_safe_repr(item) for item in value[:_MAX_ITEMS]]
        if len(value) > _MAX_ITEMS:
            items.append("...")
        body = ", ".join(items)
        return f"({body})" if isinstance(value, tuple) else f"[{body}]"
    rendered = _repr.repr(value)
    if len(rendered) > _MAX_LENGTH:
        return rendered[:_MAX_LENGTH] + "... (truncated)"
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = []
    if args:
        parts.append("args=[" + ", ".join(_safe_repr(arg) for arg in args) + "]")
    if kwargs:
        parts.append("kwargs={" + ", ".join(f"{k}={_safe_repr(v)}" for k, v in kwargs.items()) + "}")
    return ", ".join(parts) or "no-args"


def debug_log_call(logger: logging.Logger, *, name: Optional[str] = None) -> Callable[[F], F]:
    """Decorator logging entry, result and exceptions of a call at DEBUG."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func
        label = name or func.__qualname__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("Entering %s (%s)", label, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.exception("Exception in %s", label)
                raise
            logger.debug("Exiting %s -> %s", label, _safe_repr(result))
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
) -> None:
    """Wrap every function defined in the module ``namespace`` with :func:`debug_log_call`."""

    module_name = namespace.get("__name__")
    logger = logger or logging.getLogger(module_name if isinstance(module_name, str) else __name__)
    skipped = set(skip or ())

    for name, value in list(namespace.items()):
        if name in skipped:
            continue
        if inspect.isfunction(value) and value.__module__ == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)
