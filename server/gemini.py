"""
Minimal Gemini protocol listener.

Wire format
───────────
  request   <absolute URL>\\r\\n            (URL at most 1024 bytes)
  response  <status><SP><meta>\\r\\n[body]   (body only for status 2x)

Each connection carries one request. Routing runs in a worker thread so a
slow logo read never stalls the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from urllib.parse import parse_qsl, unquote, urlsplit

from core.errors import ConfigError, FeedMirrorError
from core.responses import STATUS_BAD_REQUEST, Request, Response, Success
from core.router import RequestRouter

logger = logging.getLogger(__name__)

MAX_URL_BYTES = 1024
READ_TIMEOUT = 30.0
SCHEMES = frozenset(["gemini", ""])


class RequestLineError(FeedMirrorError, ValueError):
    """The request line is not a valid Gemini request."""


def parse_request_line(line: bytes) -> Request:
    """Decode a raw request line into a ``Request``.

    Raises:
        RequestLineError: If the line is too long, not UTF-8, lacks the CRLF
            terminator, or names a non-gemini scheme.
    """
    if not line.endswith(b"\r\n"):
        raise RequestLineError("request line must end with CRLF")
    raw = line[:-2]
    if len(raw) > MAX_URL_BYTES:
        raise RequestLineError("request URL longer than 1024 bytes")
    try:
        url = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RequestLineError("request URL is not UTF-8") from exc
    if not url:
        raise RequestLineError("empty request URL")

    parts = urlsplit(url)
    if parts.scheme not in SCHEMES:
        raise RequestLineError(f"unsupported scheme {parts.scheme!r}")

    path = unquote(parts.path) or "/"
    query = tuple(parse_qsl(parts.query, keep_blank_values=True))
    return Request(path=path, query=query)


def encode_header(status: int, meta: str) -> bytes:
    return f"{status} {meta}\r\n".encode("utf-8")


def build_ssl_context(cert_file: str, key_file: str) -> ssl.SSLContext:
    """Server-side TLS context; failures are configuration errors."""
    ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    try:
        ctx.load_cert_chain(cert_file, key_file)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigError(f"Cannot load TLS certificate {cert_file}/{key_file}: {exc}") from exc
    return ctx


class GeminiServer:
    """Accepts TLS connections and answers each with the router's response."""

    def __init__(
        self,
        router: RequestRouter,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext | None,
    ) -> None:
        self.router = router
        self.host = host
        self.port = port
        self._ssl = ssl_context

    async def _write_response(self, writer: asyncio.StreamWriter, response: Response) -> None:
        writer.write(encode_header(response.status, response.meta))
        if isinstance(response, Success):
            try:
                writer.write(response.body.read())
            finally:
                response.body.close()
        await writer.drain()

    async def handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        peer = writer.get_extra_info("peername")
        try:
            try:
                line = await asyncio.wait_for(reader.readuntil(b"\r\n"), READ_TIMEOUT)
                request = parse_request_line(line)
            except (asyncio.IncompleteReadError, asyncio.LimitOverrunError, RequestLineError) as exc:
                logger.info("%s bad request: %s", peer, exc)
                writer.write(encode_header(STATUS_BAD_REQUEST, "Bad request"))
                await writer.drain()
                return

            response = await asyncio.to_thread(self.router.handle, request)
            logger.info("%s %s -> %d", peer, request.path, response.status)
            await self._write_response(writer, response)
        except asyncio.TimeoutError:
            logger.info("%s timed out before sending a request", peer)
        except (ConnectionError, ssl.SSLError) as exc:
            logger.info("%s connection dropped: %s", peer, exc)
        except Exception:
            logger.exception("Error serving %s", peer)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, ssl.SSLError):
                pass

    async def serve_forever(self) -> None:
        server = await asyncio.start_server(
            self.handle_connection,
            self.host,
            self.port,
            ssl=self._ssl,
            limit=MAX_URL_BYTES + 2,
        )
        logger.info("Listening on gemini://%s:%d", self.host, self.port)
        async with server:
            await server.serve_forever()
