import logging
import zlib

import orjson
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ..deps import Services, get_services, read_body
from ..errors import PayloadTooLarge, ServiceError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["postback"])

GZIP_MAGIC = b"\x1f\x8b"


def inflate(raw: bytes, limit: int) -> bytes:
    d = zlib.decompressobj(wbits=31)
    out = d.decompress(raw, limit + 1)
    if len(out) > limit or d.unconsumed_tail:
        raise PayloadTooLarge("Request body too large.")
    if not d.eof:
        raise EOFError("truncated gzip stream")
    return out


def decode_body(raw: bytes, limit: int, content_encoding: str | None = None):
    """Parse a postback body, inflating it first when the provider gzipped it."""
    if (content_encoding or "").lower() == "gzip" or raw.startswith(GZIP_MAGIC):
        raw = inflate(raw, limit)
    return orjson.loads(raw) if raw else None


@router.post("/postback", response_class=PlainTextResponse)
async def postback(request: Request, services: Services = Depends(get_services)):
    limit = request.app.state.settings.max_body_bytes
    try:
        raw = await read_body(request)
        body = decode_body(raw, limit, request.headers.get("content-encoding"))
    except PayloadTooLarge as exc:
        logger.warning("Postback refused: %s", exc.message)
        return PlainTextResponse(exc.message, status_code=413)
    except (EOFError, zlib.error, orjson.JSONDecodeError) as exc:
        logger.warning("Undecodable postback body: %s", exc)
        return PlainTextResponse("Invalid postback body.", status_code=400)

    try:
        await services.coordinator.apply_postback(body)
    except ValidationError as exc:
        return PlainTextResponse(exc.message, status_code=400)
    except ServiceError as exc:
        logger.error("Postback error: %s", exc.message)
        return PlainTextResponse("Postback error.", status_code=500)
    return PlainTextResponse("OK")
