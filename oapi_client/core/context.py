"""Defines the execution Context shared by the stages of one logical operation."""

import threading
import time
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from oapi_client.core.constants import CTX_KEY_HTTP_STATUS_CODE, CTX_KEY_REQUEST_ID
from oapi_client.exceptions import RequestCancelledError

if TYPE_CHECKING:
    from oapi_client.core.dependency_container import DependencyContainer


class Context:
    """Cancellable, deadline-bearing handle carrying state for one logical operation.

    The key/value store is lock-guarded; other threads may read it while the pipeline runs.

    Attributes:
        container: The dependency container the operation runs against.
    """

    def __init__(
        self,
        container: "DependencyContainer",
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        deadline: Optional[float] = None,
    ) -> None:
        """
        Initializes the context.

        Args:
            container: The dependency container holding settings and collaborators.
            cancel_event: A caller-owned event; setting it cancels the operation.
            timeout: Seconds from now until the operation's deadline.
            deadline: Absolute deadline as a `time.monotonic()` value. Takes precedence over timeout.
        """
        self.container = container
        self._cancel_event = cancel_event or threading.Event()
        if deadline is None and timeout is not None:
            deadline = time.monotonic() + timeout
        self._deadline = deadline
        self._lock = threading.RLock()
        self._values: Dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def get(self, key: str) -> Tuple[Any, bool]:
        """Returns `(value, True)` for the key, or `(None, False)` if it was never set."""
        with self._lock:
            if key in self._values:
                return self._values[key], True
            return None, False

    def value(self, key: str, default: Any = None) -> Any:
        val, exists = self.get(key)
        return val if exists else default

    def get_request_id(self) -> str:
        return self.value(CTX_KEY_REQUEST_ID, "") or ""

    def get_http_status_code(self) -> int:
        return self.value(CTX_KEY_HTTP_STATUS_CODE, 0)

    # --- Cancellation ---

    def deadline(self) -> Optional[float]:
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (never negative), or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        self._cancel_event.set()

    def done(self) -> bool:
        return self.err() is not None

    def err(self) -> Optional[RequestCancelledError]:
        """Returns why the context is done, or None while it is still live."""
        if self._cancel_event.is_set():
            return RequestCancelledError("context cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return RequestCancelledError("context deadline exceeded")
        return None

    def __repr__(self) -> str:
        return f"<Context request_id={self.get_request_id()!r} status={self.get_http_status_code()}>"
