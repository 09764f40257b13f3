from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable


CSV_HEADER = "chunk_id"


def chunks_to_csv(chunks: Iterable[str]) -> str:
    # Ids are JSON-quoted so commas and quotes inside an id survive.
    body = "\n".join(json.dumps(c, ensure_ascii=False) for c in chunks)
    return f"{CSV_HEADER}\n{body}\n"


def write_csv(path: Path, chunks: list[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(chunks_to_csv(chunks), encoding="utf-8")
