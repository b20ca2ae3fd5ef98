"""Debounced autosave: cancel-and-reschedule timers in front of the worker.

Every trigger within the quiet period replaces the pending call, so only the
last snapshot of a burst of edits is written. A call that already fired is
never interrupted.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from django.conf import settings
from django.db import connections

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, wait: float, callback: Callable[..., Any]) -> None:
        self.wait = wait
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._call: Tuple[tuple, dict] = ((), {})

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._call = (args, kwargs)
            self._timer = threading.Timer(self.wait, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> bool:
        with self._lock:
            timer, self._timer = self._timer, None
            self._generation += 1
        if timer is None:
            return False
        timer.cancel()
        return True

    def flush(self) -> bool:
        """Run the pending call now, in the calling thread."""

        with self._lock:
            timer, self._timer = self._timer, None
            self._generation += 1
            args, kwargs = self._call
        if timer is None:
            return False
        timer.cancel()
        self.callback(*args, **kwargs)
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
            args, kwargs = self._call
        try:
            self.callback(*args, **kwargs)
        except Exception:
            logger.exception("Debounced call to %r failed", self.callback)
        finally:
            # Timer threads open their own database connections.
            connections.close_all()


def _dispatch(form_id: str, snapshot: Dict[str, Any]) -> None:
    from .tasks import autosave_form

    autosave_form.delay(form_id, snapshot)


class AutosaveScheduler:
    """One debouncer per form id; the last snapshot of each form wins."""

    def __init__(
        self,
        wait: Optional[float] = None,
        dispatch: Callable[[str, Dict[str, Any]], None] = _dispatch,
    ) -> None:
        self._wait = wait
        self._dispatch = dispatch
        self._lock = threading.Lock()
        self._debouncers: Dict[str, Debouncer] = {}

    @property
    def wait(self) -> float:
        if self._wait is not None:
            return self._wait
        return settings.QUOTE_FORMS["AUTOSAVE_QUIET_PERIOD"]

    def schedule(self, form_id: str, snapshot: Dict[str, Any]) -> None:
        key = str(form_id)
        with self._lock:
            debouncer = self._debouncers.get(key)
            if debouncer is None:
                debouncer = Debouncer(self.wait, self._run)
                self._debouncers[key] = debouncer
        debouncer.trigger(key, snapshot)
        logger.debug("Autosave of form %s rescheduled", key)

    def pending(self, form_id: str) -> bool:
        debouncer = self._debouncers.get(str(form_id))
        return debouncer is not None and debouncer.pending

    def cancel(self, form_id: str) -> bool:
        with self._lock:
            debouncer = self._debouncers.pop(str(form_id), None)
        return debouncer is not None and debouncer.cancel()

    def flush(self, form_id: str) -> bool:
        debouncer = self._debouncers.get(str(form_id))
        return debouncer is not None and debouncer.flush()

    def _run(self, form_id: str, snapshot: Dict[str, Any]) -> None:
        with self._lock:
            debouncer = self._debouncers.get(form_id)
            if debouncer is not None and not debouncer.pending:
                del self._debouncers[form_id]
        self._dispatch(form_id, snapshot)


scheduler = AutosaveScheduler()
