"""Environment utilities for resolving Docker secret files."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def load_secret_file_variables() -> None:
    """
    Expose the content of every ``KEY_FILE`` variable as ``KEY``.

    IoT Hub and LoRaWAN keys are usually mounted as secrets, so a missing or
    unreadable file is logged and the variable is left unset.
    """

    for key, file_path in list(os.environ.items()):
        if not key.endswith("_FILE") or not file_path:
            continue
        target_key = key[: -len("_FILE")]
        if os.environ.get(target_key):
            continue
        try:
            os.environ[target_key] = Path(file_path).read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "env.secret_file.load_failed",
                extra={"key": key, "path": file_path, "error": str(exc)},
            )


load_secret_file_variables()
