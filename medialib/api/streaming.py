"""Audio streaming API endpoints."""
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..metrics import streaming_bytes_sent_total, streams_started_total
from ..services.streaming_service import StreamingResolver
from ..shared.db import get_db
from ..shared.logging import get_logger
from ..shared.storage import FileStream, LocalFileStorage, get_storage

logger = get_logger(__name__)

router = APIRouter(prefix="/tracks", tags=["streaming"])


class RangeNotSatisfiable(Exception):
    """The requested byte range lies outside the file."""


def parse_range(header: str, size: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single-range Range header against a file size.

    Args:
        header: Raw header value, e.g. "bytes=0-1023", "bytes=500-" or "bytes=-200"
        size: Total file size in bytes

    Returns:
        Inclusive (start, end) offsets, or None when the header should be
        ignored (malformed, or a multi-range request)

    Raises:
        RangeNotSatisfiable: the range cannot be served from this file
    """
    unit, _, spec = header.partition("=")
    if unit.strip().lower() != "bytes" or "," in spec:
        return None

    first, sep, last = spec.strip().partition("-")
    if not sep:
        return None
    try:
        if first:
            start = int(first)
            end = size - 1
            if last:
                end = int(last)
                if start > end:
                    return None
        elif last:
            suffix = int(last)
            if suffix == 0:
                raise RangeNotSatisfiable(header)
            start = max(size - suffix, 0)
            end = size - 1
        else:
            return None
    except ValueError:
        return None

    if start >= size:
        raise RangeNotSatisfiable(header)
    return start, min(end, size - 1)


async def _send(stream: FileStream, start: int, end: int):
    try:
        async for chunk in stream.iter_bytes(start, end):
            streaming_bytes_sent_total.inc(len(chunk))
            yield chunk
    finally:
        stream.close()


@router.get("/{track_id}/stream")
async def stream_track(
    track_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
) -> Response:
    """
    Stream a track's audio bytes.

    Supports single HTTP range requests for seeking and resuming playback.
    """
    resolver = StreamingResolver(db, storage)
    stream = await resolver.resolve(track_id)

    range_header = request.headers.get("range")
    try:
        byte_range = parse_range(range_header, stream.size) if range_header else None
    except RangeNotSatisfiable:
        stream.close()
        logger.info("range_not_satisfiable", track_id=track_id, range=range_header, size=stream.size)
        return Response(
            status_code=status.HTTP_416_RANGE_NOT_SATISFIABLE,
            headers={"Content-Range": f"bytes */{stream.size}"},
        )

    headers = {"Accept-Ranges": "bytes"}
    if byte_range is None:
        start, end = 0, stream.size - 1
        status_code = status.HTTP_200_OK
        streams_started_total.labels(status="full").inc()
    else:
        start, end = byte_range
        status_code = status.HTTP_206_PARTIAL_CONTENT
        headers["Content-Range"] = f"bytes {start}-{end}/{stream.size}"
        streams_started_total.labels(status="partial").inc()
    headers["Content-Length"] = str(max(end - start + 1, 0))

    logger.info(
        "streaming_track",
        track_id=track_id,
        start=start,
        end=end,
        size=stream.size,
        partial=byte_range is not None,
    )
    return StreamingResponse(
        _send(stream, start, end),
        status_code=status_code,
        headers=headers,
        media_type=stream.media_type,
    )
