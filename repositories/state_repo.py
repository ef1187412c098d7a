import json
import os
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from core.exceptions import StateException
from core.logger import get_logger
from models.state import Watermark

logger = get_logger(__name__)


class WatermarkStore:
    """
    File-backed watermark. Read once at the start of a run, overwritten
    wholesale at commit points. Concurrent runs are not coordinated.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Watermark:
        """
        Returns the stored watermark. A missing, unreadable or corrupt file
        counts as uninitialized.
        """
        if not self.path.exists():
            logger.info(f"[STATE] No state file at {self.path}, starting uninitialized")
            return Watermark()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            watermark = Watermark.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"[STATE] Ignoring unreadable state file {self.path}: {e}")
            return Watermark()

        logger.info(f"[STATE] Loaded watermark: {watermark.last_seen_id}")
        return watermark

    def save(self, watermark: Watermark) -> None:
        """Atomically replaces the state file."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(watermark.model_dump(by_alias=True), f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StateException(
                "Failed to write state file", {"path": str(self.path), "error": str(e)}
            ) from e

        logger.info(f"[STATE] Saved watermark: {watermark.last_seen_id}")
