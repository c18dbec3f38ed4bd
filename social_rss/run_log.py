from __future__ import annotations

import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_MESSAGE_LIMIT = 2000
_TRACEBACK_LIMIT = 12000


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class RunLogger:
    """
    JSONL log of one normalization run.

    Every line holds ts, level, event, session_id, the provider (once known) and
    the event data, so dropped posts and provider failures can be audited later.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        overwrite: bool = True,
        provider: str | None = None,
        session_id: str | None = None,
    ) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._fp = target.open("w" if overwrite else "a", encoding="utf-8", newline="\n")
        self._provider = (provider or "").strip() or None
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex

    @classmethod
    def open(cls, path: str | Path, **kwargs: Any) -> "RunLogger":
        return cls(path, **kwargs)

    def close(self) -> None:
        if not self._fp.closed:
            self._fp.close()

    def __enter__(self) -> "RunLogger":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def set_provider(self, provider: str) -> None:
        self._provider = (provider or "").strip() or self._provider

    def info(self, event: str, **data: Any) -> None:
        self._emit("INFO", event, data)

    def warning(self, event: str, **data: Any) -> None:
        self._emit("WARN", event, data)

    def exception(self, event: str, *, exc: BaseException, **data: Any) -> None:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        data["error"] = {
            "type": type(exc).__name__,
            "message": _clip(str(exc), _MESSAGE_LIMIT),
            "traceback": _clip(trace, _TRACEBACK_LIMIT),
        }
        self._emit("ERROR", event, data)

    def _emit(self, level: str, event: str, data: dict[str, Any]) -> None:
        record: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "session_id": self._session_id,
        }
        if self._provider:
            record["provider"] = self._provider
        if data:
            record["data"] = data

        line = json.dumps(record, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
        self._fp.write(line + "\n")
        self._fp.flush()
