import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .types import VendorPayload

logger = logging.getLogger(__name__)


class FilePayloadLogger:
    """
    Writes a JSON summary of every outgoing request to a directory.

    Only a summary is written (model, message count, tool presence, sampling
    options), never conversation content. Failures are logged and swallowed
    so payload logging can never break a request.
    """

    def __init__(self, log_dir: Union[str, Path], enabled: bool = True):
        self.log_dir = Path(log_dir)
        self.enabled = enabled
        if self.enabled:
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("Failed to create payload log directory %s: %s", self.log_dir, e)

    def is_enabled(self) -> bool:
        return self.enabled

    @staticmethod
    def summarize(
        provider: str,
        kind: str,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": provider,
            "kind": kind,
            "model": model,
            "messages_count": len(payload.messages),
            "has_system": payload.system is not None,
            "has_tools": bool(payload.tools),
            "temperature": options.get("temperature"),
            "max_tokens": options.get("max_tokens"),
        }

    def _write(self, record: Dict[str, Any]) -> Optional[Path]:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        path = self.log_dir / f"{record['provider']}-{record['kind']}-{stamp}.json"
        try:
            path.write_text(json.dumps(record, indent=2, default=str), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save payload log %s: %s", path, e)
            return None
        return path

    async def log_payload(
        self,
        provider: str,
        kind: str,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> Optional[Path]:
        """
        Record one request.

        Args:
            provider: Provider name.
            kind: "chat" or "stream".
            model: Model identifier.
            payload: The adapted payload being sent.
            options: Generation options of the request.

        Returns:
            Path of the written file, or None when disabled or on failure.
        """
        if not self.enabled:
            return None
        record = self.summarize(provider, kind, model, payload, options)
        return await asyncio.to_thread(self._write, record)
