"""Persisted records of failed conversations."""

from __future__ import annotations

import json
import threading
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger


class ErrorRecorder:
    """Append one JSON document per failed conversation to a file.

    Only result keys are stored, never the answers themselves.
    """

    def __init__(self, file_path: str | Path) -> None:
        self.file_path = Path(file_path)
        self._lock = threading.Lock()

    def record(
        self,
        *,
        chat_id: str,
        user_id: str,
        error: BaseException,
        result_keys: list[str],
        elapsed_ms: int,
    ) -> None:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "chat_id": chat_id,
            "user_id": user_id,
            "error": str(error),
            "error_type": type(error).__name__,
            "traceback": "".join(traceback.format_exception(error)),
            "result_keys": result_keys,
            "elapsed_ms": elapsed_ms,
        }
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock, open(self.file_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        logger.debug("error_log.recorded path={}", self.file_path)

    def read(self) -> list[dict[str, Any]]:
        if not self.file_path.exists():
            return []
        with open(self.file_path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
