from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

from .engine import Engine
from .protocol import ProgressMessage, Response, handle_message


log = logging.getLogger(__name__)

_STOP = object()


class EngineWorker:
    """Run an :class:`Engine` on its own thread.

    Requests are processed one at a time in submission order. ``submit``
    returns a future resolved with the request's single terminal response;
    progress messages go to ``on_progress`` from the worker thread.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        on_progress: Callable[[ProgressMessage], None] | None = None,
        name: str = "chunkfinder-engine",
    ):
        self.engine = engine or Engine()
        self.on_progress = on_progress
        self._inbox: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._closed = False
        self._thread.start()

    def submit(self, payload: Any) -> Future[Response]:
        if self._closed:
            raise RuntimeError("worker is closed")
        fut: Future[Response] = Future()
        self._inbox.put((payload, fut))
        return fut

    def request(self, payload: Any, timeout: float | None = None) -> Response:
        return self.submit(payload).result(timeout=timeout)

    def close(self, timeout: float | None = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        self._inbox.put(_STOP)
        self._thread.join(timeout=timeout)

    def __enter__(self) -> EngineWorker:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._inbox.get()
            if item is _STOP:
                break
            payload, fut = item
            if not fut.set_running_or_notify_cancel():
                continue
            resp = handle_message(self.engine, payload, on_progress=self._progress)
            fut.set_result(resp)

    def _progress(self, msg: ProgressMessage) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(msg)
        except Exception:
            log.exception("Progress callback failed")
