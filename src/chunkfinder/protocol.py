"""Request/response messages exchanged with the engine.

Every message is a JSON object tagged by ``type``. Requests are ``load`` and
``query``; a request is answered by exactly one terminal response (``ready``,
``result`` or ``error``), possibly preceded by ``progress`` updates. Field names
are camelCase on the wire and snake_case in Python.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from .engine import Engine
from .errors import ChunkFinderError, MalformedInput
from .graph.query import Mode


log = logging.getLogger(__name__)


class _Message(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class LoadRequest(_Message):
    type: Literal["load"] = "load"
    text: str
    file_group_hint: int | None = None
    chunk_group_hint: int | None = None


class QueryRequest(_Message):
    type: Literal["query"] = "query"
    selected: list[str]
    mode: Mode


class ProgressMessage(_Message):
    type: Literal["progress"] = "progress"
    pct: int
    msg: str


class ReadyResponse(_Message):
    type: Literal["ready"] = "ready"
    feature_ids: list[str]
    chunk_count: int
    file_group: int
    chunk_group: int
    role_source: str
    dangling_links: int = 0


class ResultResponse(_Message):
    type: Literal["result"] = "result"
    chunks: list[str]


class ErrorResponse(_Message):
    type: Literal["error"] = "error"
    error: str


Request = Annotated[Union[LoadRequest, QueryRequest], Field(discriminator="type")]
Response = Union[ReadyResponse, ResultResponse, ErrorResponse]

_request_adapter: TypeAdapter[Request] = TypeAdapter(Request)


def parse_request(payload: Any) -> LoadRequest | QueryRequest:
    """Validate a raw message (JSON text, bytes or a dict) into a request."""
    if isinstance(payload, (LoadRequest, QueryRequest)):
        return payload
    try:
        if isinstance(payload, (str, bytes, bytearray)):
            return _request_adapter.validate_json(payload)
        return _request_adapter.validate_python(payload)
    except ValidationError as e:
        raise MalformedInput(f"Unrecognized request: {_describe(e)}") from e


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def handle_message(
    engine: Engine,
    payload: Any,
    *,
    on_progress: Callable[[ProgressMessage], None] | None = None,
) -> Response:
    """Run one request against ``engine`` and return its terminal response.

    Never raises: failures become an :class:`ErrorResponse`.
    """
    try:
        req = parse_request(payload)
        if isinstance(req, LoadRequest):
            progress = None
            if on_progress is not None:
                progress = lambda pct, msg: on_progress(ProgressMessage(pct=pct, msg=msg))  # noqa: E731
            state = engine.load(
                req.text,
                file_group_hint=req.file_group_hint,
                chunk_group_hint=req.chunk_group_hint,
                progress=progress,
            )
            return ReadyResponse(
                feature_ids=list(state.feature_ids),
                chunk_count=state.chunk_count,
                file_group=state.roles.file_group,
                chunk_group=state.roles.chunk_group,
                role_source=state.roles.source,
                dangling_links=state.index.dangling_links,
            )

        if on_progress is not None:
            on_progress(ProgressMessage(pct=50, msg="Computing"))
        chunks = engine.query(req.selected, req.mode)
        return ResultResponse(chunks=chunks)
    except ChunkFinderError as e:
        return ErrorResponse(error=str(e))
    except Exception as e:
        log.exception("Request failed")
        return ErrorResponse(error=f"Internal error: {e}")
