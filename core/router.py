"""Request routing and page rendering.

Routes
──────
/                      latest item (position 0)
/timeline              positions 0..timeline_size-1, missing ones skipped
/select_tweet          input prompt for an offset
/select_tweet?<n>      item at offset n
anything else          not found

Every page body is ``header + content + footer``. The header is the optional
logo file followed by the navigation menu; the footer is an attribution link.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol

from core.errors import InputParseError, NotAvailable, RouteNotFound
from core.models import Item
from core.responses import ClientError, InputPrompt, NotFound, Request, Response, Success

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

MENU = (
    "=> / Last tweet\n"
    "=> /timeline Timeline\n"
    "=> /select_tweet Tweet selector\n"
)

OFFSET_PROMPT = "Get tweet offset. f.e. 5"
OFFSET_PARSE_ERROR = "Failed to parse input. Please use numbers."
UNKNOWN_LOCATION = "Unknown location"

_OFFSET_RE = re.compile(r"[+]?[0-9]+")


class ItemSource(Protocol):
    """Read contract the router needs from the cache."""

    def item_at(self, pos: int) -> Item: ...


def load_logo(path: str | None) -> str | None:
    """Return the logo file's text, or ``None`` when no logo is available."""
    if not path:
        return None
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Cannot read logo file %s: %s", path, exc)
        return None


def parse_offset(request: Request) -> int:
    """Extract the offset from the first query key.

    Raises:
        InputParseError: If the key is not a non-negative integer.
    """
    keys = request.query_keys
    if len(keys) > 1:
        logger.debug("Ignoring extra query keys %r", keys[1:])
    raw = keys[0] if keys else ""
    if not _OFFSET_RE.fullmatch(raw):
        raise InputParseError(f"invalid offset {raw!r}")
    return int(raw)


class RequestRouter:
    """Maps a ``Request`` to exactly one ``Response`` variant."""

    def __init__(
        self,
        cache: ItemSource,
        *,
        logo_file: str = "",
        delimiter: str = "",
        footer_link: str = "",
        timeline_size: int = 10,
        logo_loader: Callable[[str | None], str | None] = load_logo,
    ) -> None:
        self._cache = cache
        self.logo_file = logo_file
        self.delimiter = delimiter
        self.footer_link = footer_link
        self.timeline_size = timeline_size
        self._load_logo = logo_loader
        self._routes: dict[str, Callable[[Request], Response]] = {
            "/": self._latest,
            "/timeline": self._timeline,
            "/select_tweet": self._select,
        }

    @classmethod
    def from_settings(cls, cache: ItemSource, settings: Settings) -> "RequestRouter":
        return cls(
            cache,
            logo_file=settings.logo_file,
            delimiter=settings.delimiter,
            footer_link=settings.footer_link,
            timeline_size=settings.timeline_size,
        )

    # ── Rendering ──────────────────────────────────────────────────────────

    def header(self) -> str:
        logo = self._load_logo(self.logo_file) or ""
        return f"{logo}\n\n{MENU}\n"

    def footer(self) -> str:
        return f"\n\n{self.footer_link}\n"

    def wrap(self, content: str) -> str:
        return f"{self.header()}{content}{self.footer()}"

    def format_item(self, pos: int) -> str:
        """Render one item, or an empty string if it is not cached."""
        try:
            item = self._cache.item_at(pos)
        except NotAvailable:
            return ""
        return f"\n\n{item.render()}"

    def format_timeline(self) -> str:
        parts: list[str] = []
        for pos in range(self.timeline_size):
            try:
                item = self._cache.item_at(pos)
            except NotAvailable:
                continue
            parts.append(f"\n\n{item.render()}\n\n{self.delimiter}")
        return "".join(parts)

    # ── Handlers ───────────────────────────────────────────────────────────

    def _show_item(self, pos: int) -> Success:
        return Success.from_text(self.wrap(self.format_item(pos)))

    def _latest(self, request: Request) -> Response:
        return self._show_item(0)

    def _timeline(self, request: Request) -> Response:
        return Success.from_text(self.wrap(self.format_timeline()))

    def _select(self, request: Request) -> Response:
        if not request.query:
            return InputPrompt(OFFSET_PROMPT)
        try:
            offset = parse_offset(request)
        except InputParseError as exc:
            logger.debug("Rejecting offset: %s", exc)
            return ClientError(OFFSET_PARSE_ERROR)
        return self._show_item(offset)

    def resolve(self, path: str) -> Callable[[Request], Response]:
        """Return the handler for *path*.

        Raises:
            RouteNotFound: If no route matches.
        """
        try:
            return self._routes[path or "/"]
        except KeyError:
            raise RouteNotFound(path) from None

    def handle(self, request: Request) -> Response:
        """Route *request*; never raises."""
        try:
            handler = self.resolve(request.path)
        except RouteNotFound:
            logger.debug("No route for %r", request.path)
            return NotFound(UNKNOWN_LOCATION)
        return handler(request)
