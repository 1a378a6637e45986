from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


_default_logger: Optional["JsonlLogger"] = None


class JsonlLogger:
    """Append-only JSON-lines event log.

    The most recently opened logger becomes the process default that
    log_event() writes to. Every record is prefixed with the static context
    given here (run name, seed, ...). With flush_every > 0 the file is flushed
    whenever that many seconds have passed since the last flush.
    """

    def __init__(self, path: Path, context: Optional[Dict[str, Any]] = None, flush_every: float = 0.0):
        self.path = path
        ensure_dir(self.path.parent)
        self.context = dict(context or {})
        self.flush_every = float(flush_every)
        self._last_flush = time.monotonic()
        self._file = self.path.open("a", encoding="utf-8")

        global _default_logger
        _default_logger = self

    def log(self, obj: Dict[str, Any]) -> None:
        record = {**self.context, **obj}
        self._file.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        if self.flush_every > 0 and time.monotonic() - self._last_flush >= self.flush_every:
            self.flush()

    def flush(self) -> None:
        self._file.flush()
        self._last_flush = time.monotonic()

    def close(self) -> None:
        global _default_logger
        if _default_logger is self:
            _default_logger = None
        self._file.close()

    def __enter__(self) -> "JsonlLogger":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def log_event(event_type: str, payload: Dict[str, Any]) -> None:
    # Library code logs unconditionally; without a configured logger this is a no-op.
    if _default_logger is None:
        return

    _default_logger.log({"type": event_type, "ts": round(time.time(), 3), **payload})


def flush() -> None:
    if _default_logger is not None:
        _default_logger.flush()
