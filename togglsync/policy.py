from __future__ import annotations
import functools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict

from togglsync.integrations.toggl_client import TogglAPIError

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    # RECOVER_TO_NULL is reserved: an idle timer is a normal None result, and
    # current-timer failures still propagate.
    PROPAGATE = "propagate"
    RECOVER_TO_EMPTY = "recover_to_empty"
    RECOVER_TO_NULL = "recover_to_null"


_registry: dict[str, FailurePolicy] = {}


def _recover(name: str, policy: FailurePolicy, error: Exception) -> Any:
    logger.warning(
        f"Toggl operation {name} failed, continuing without data: {error!r}",
        extra={"operation": name},
    )
    if policy is FailurePolicy.RECOVER_TO_EMPTY:
        return []
    return None


def remote_operation(name: str, policy: FailurePolicy = FailurePolicy.PROPAGATE):
    """
    Declare a facade method as a remote operation with a failure policy.

    PROPAGATE notifies the user once through the owner's ``_notify_failure``
    and re-raises Toggl API errors. The recovering policies absorb any
    exception, including malformed response shapes, log a warning and
    return [] or None.
    """
    def deco(fn: Callable[..., Awaitable[Any]]):
        _registry[name] = policy

        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            try:
                return await fn(self, *args, **kwargs)
            except TogglAPIError as e:
                if policy is FailurePolicy.PROPAGATE:
                    self._notify_failure(name, e)
                    raise
                return _recover(name, policy, e)
            except Exception as e:
                if policy is FailurePolicy.PROPAGATE:
                    raise
                return _recover(name, policy, e)

        wrapper.operation_name = name
        wrapper.failure_policy = policy
        return wrapper
    return deco


def get_policy(name: str) -> FailurePolicy:
    if name not in _registry:
        raise ValueError(f"Unknown operation: {name}")
    return _registry[name]


def list_policies() -> Dict[str, FailurePolicy]:
    return dict(sorted(_registry.items()))
