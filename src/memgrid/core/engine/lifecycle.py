from __future__ import annotations

import structlog

from memgrid.core.engine.scheduler import Callback, Scheduler, TimerHandle
from memgrid.core.logging.setup import bind_context

log = structlog.get_logger()


class SessionLifecycle:
    """
    Explicit session lifecycle controller.

    - each begin() allocates a new, strictly increasing session token
    - delayed callbacks are bound to the token current at schedule time;
      once the session is superseded or stopped they become no-ops
    - begin()/stop() cancel everything still pending for the old session
    """

    def __init__(self, *, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._session_id = 0
        self._active = False
        self._sequence = 0
        self._pending: dict[int, TimerHandle] = {}
        self._next_handle_id = 0

    @property
    def session_id(self) -> int:
        return self._session_id

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def pending(self) -> int:
        return len(self._pending)

    def next_sequence(self) -> int:
        # event ordering number; monotonic across sessions
        self._sequence += 1
        return self._sequence

    def is_current(self, session_id: int) -> bool:
        return self._active and session_id == self._session_id

    def begin(self) -> int:
        self._cancel_pending()
        self._session_id += 1
        self._active = True

        bind_context(session_id=self._session_id, component="engine")
        log.info("session.started", session_id=self._session_id)
        return self._session_id

    def stop(self) -> None:
        if not self._active:
            return
        self._cancel_pending()
        self._active = False
        log.info("session.stopped", session_id=self._session_id)

    def schedule(self, delay_ms: int, callback: Callback) -> None:
        """
        Schedule `callback` on behalf of the current session.
        """
        if not self._active:
            raise RuntimeError("cannot schedule without an active session")

        token = self._session_id
        handle_id = self._next_handle_id
        self._next_handle_id += 1

        def _guarded() -> None:
            self._pending.pop(handle_id, None)
            if not self.is_current(token):
                log.debug("session.stale_callback", session_id=token, current=self._session_id)
                return
            callback()

        self._pending[handle_id] = self._scheduler.call_later(delay_ms, _guarded)

    def _cancel_pending(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
