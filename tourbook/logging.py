import functools
import json
import logging
from collections.abc import Callable
from typing import Any, Concatenate, ParamSpec, TypeVar

from pydantic import BaseModel

P = ParamSpec("P")
R = TypeVar("R")

InstanceMethod = Callable[Concatenate[Any, P], R]

logger = logging.getLogger(__name__)


def _sanitise(o: Any) -> Any:
    """Make arguments and results JSON-friendly for log lines."""
    if isinstance(o, BaseModel):
        return o.model_dump(mode="json")
    if isinstance(o, list | tuple):
        return [_sanitise(item) for item in o]
    return json.loads(json.dumps(o, default=str))


def log_method_inputs_and_outputs(
    method: InstanceMethod[P, R],
) -> InstanceMethod[P, R]:
    """Log a method's arguments and return value at DEBUG level."""

    @functools.wraps(method)
    def wrapper(self: Any, *args: P.args, **kwargs: P.kwargs) -> R:
        name = f"{type(self).__name__}.{method.__name__}"
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"{name} called with args={_sanitise(args)} kwargs={_sanitise(kwargs)}"
            )
        result = method(self, *args, **kwargs)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{name} returned {_sanitise(result)}")
        return result

    return wrapper
