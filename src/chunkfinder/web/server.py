import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any


log = logging.getLogger(__name__)


def create_app(*, preload_path: str | None = None, worker=None):
    # Lazy import so the core CLI works without web deps.
    from fastapi import FastAPI, File, Form, UploadFile
    from fastapi.responses import JSONResponse, Response

    from ..config import Settings
    from ..engine import Engine
    from ..errors import NotLoaded
    from ..export import chunks_to_csv
    from ..graph.query import filter_features
    from ..protocol import ErrorResponse, ResultResponse
    from ..worker import EngineWorker

    settings = Settings()
    if worker is None:
        worker = EngineWorker(Engine(file_prefix=settings.file_prefix, chunk_prefix=settings.chunk_prefix))

    def _load_request(text: str, file_group_hint: int | None, chunk_group_hint: int | None) -> dict[str, Any]:
        return {
            "type": "load",
            "text": text,
            "fileGroupHint": file_group_hint if file_group_hint is not None else settings.file_group,
            "chunkGroupHint": chunk_group_hint if chunk_group_hint is not None else settings.chunk_group,
        }

    if preload_path:
        text = Path(preload_path).read_text(encoding="utf-8", errors="replace")
        resp = worker.request(_load_request(text, None, None))
        if isinstance(resp, ErrorResponse):
            log.error("Failed to preload %s: %s", preload_path, resp.error)

    @asynccontextmanager
    async def lifespan(_app):
        yield
        worker.close()

    app = FastAPI(title="Chunk Finder", version="0.1.0", lifespan=lifespan)

    def _reply(resp):
        if isinstance(resp, ErrorResponse):
            return JSONResponse({"ok": False, "error": resp.error}, status_code=400)
        return {"ok": True, **resp.to_wire()}

    @app.get("/api/health")
    def health():
        return {"ok": True, "loaded": worker.engine.loaded}

    @app.post("/api/load")
    def load(payload: dict[str, Any]):
        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            return JSONResponse({"ok": False, "error": "text is required (graph JSON)"}, status_code=400)
        req = _load_request(text, payload.get("fileGroupHint"), payload.get("chunkGroupHint"))
        return _reply(worker.request(req))

    @app.post("/api/load/upload")
    async def load_upload(
        file: UploadFile = File(...),
        file_group_hint: int | None = Form(None),
        chunk_group_hint: int | None = Form(None),
    ):
        data = await file.read()
        text = data.decode("utf-8", errors="replace")
        fut = worker.submit(_load_request(text, file_group_hint, chunk_group_hint))
        resp = await asyncio.wrap_future(fut)
        return _reply(resp)

    @app.get("/api/features")
    def features(q: str | None = None):
        try:
            state = worker.engine.state
        except NotLoaded as e:
            return JSONResponse({"ok": False, "error": str(e)}, status_code=400)
        ids = filter_features(state.feature_ids, q)
        return {
            "ok": True,
            "featureIds": ids,
            "total": len(state.feature_ids),
            "chunkCount": state.chunk_count,
        }

    @app.post("/api/query")
    def query(payload: dict[str, Any]):
        return _reply(worker.request({**payload, "type": "query"}))

    @app.post("/api/export")
    def export(payload: dict[str, Any]):
        resp = worker.request({**payload, "type": "query"})
        if not isinstance(resp, ResultResponse):
            return _reply(resp)
        return Response(
            content=chunks_to_csv(resp.chunks),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="chunks.csv"'},
        )

    return app
