from __future__ import annotations


class ChunkFinderError(RuntimeError):
    pass


class MalformedInput(ChunkFinderError):
    """Graph text or a request did not parse, or did not have the expected shape."""


class NotLoaded(ChunkFinderError):
    pass
