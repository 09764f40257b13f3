from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


@dataclass(frozen=True)
class Settings:
    # Naming conventions used by role detection.
    file_prefix: str = os.getenv("CHUNKFINDER_FILE_PREFIX", "file_name_")
    chunk_prefix: str = os.getenv("CHUNKFINDER_CHUNK_PREFIX", "chunk_id_")

    # Explicit group hints; when both are set detection is skipped.
    file_group: int | None = _optional_int("CHUNKFINDER_FILE_GROUP")
    chunk_group: int | None = _optional_int("CHUNKFINDER_CHUNK_GROUP")

    # Web API
    host: str = os.getenv("CHUNKFINDER_HOST", "127.0.0.1")
    port: int = int(os.getenv("CHUNKFINDER_PORT", "8000"))

    log_level: str = os.getenv("CHUNKFINDER_LOG_LEVEL", "WARNING")
