"""Async programming utilities and helpers."""

from __future__ import annotations

import asyncio
import logging
import traceback
from collections import abc
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from localevents.exceptions import ExitRequest


_T = TypeVar("_T")  # type
_P = ParamSpec("_P")  # params

logger = logging.getLogger("LocalEvents")


def format_traceback(exc: BaseException, **kwargs: Any) -> str:
    """
    Like `traceback.print_exc` but returns a string. Uses the passed-in exception.
    Any additional `**kwargs` are passed to the underlaying `traceback.format_exception`.
    """
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__, **kwargs))


def task_wrapper(
    afunc: abc.Callable[_P, abc.Coroutine[Any, Any, _T]] | None = None, *, critical: bool = False
):
    """
    Decorator for coroutines meant to run as background tasks.

    ExitRequest ends the task silently, anything else is logged and re-raised into the task.
    With critical=True, a failure also asks the owning application to close.
    The application is looked up on the first positional argument: either it is the
    application itself, or it has an `_app` attribute pointing at it.
    """

    def decorator(
        afunc: abc.Callable[_P, abc.Coroutine[Any, Any, _T]],
    ) -> abc.Callable[_P, abc.Coroutine[Any, Any, _T]]:
        @wraps(afunc)
        async def wrapper(*args: _P.args, **kwargs: _P.kwargs):
            try:
                await afunc(*args, **kwargs)
            except ExitRequest:
                pass
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"Exception in {afunc.__name__} task")
                if critical:
                    from localevents.core.client import LocalEvents  # cyclic import

                    probe = args and args[0] or None
                    if probe is not None and not isinstance(probe, LocalEvents):
                        probe = getattr(probe, "_app", None)
                    if isinstance(probe, LocalEvents):
                        probe.close()
                raise

        return wrapper

    if afunc is None:
        return decorator
    return decorator(afunc)
