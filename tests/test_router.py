"""Tests for core/router.py — routing table, offset parsing and page rendering."""

from __future__ import annotations

import pytest

from conftest import ScriptedFetcher, make_items
from core.cache import FeedCache
from core.responses import (
    STATUS_CLIENT_ERROR,
    STATUS_INPUT,
    STATUS_NOT_FOUND,
    STATUS_SUCCESS,
    ClientError,
    InputPrompt,
    NotFound,
    Request,
    Success,
)
from core.router import MENU, RequestRouter, load_logo, parse_offset

FOOTER_LINK = "=> https://example.org/mirror Source"
DELIM = "~~~"


# ── Fixtures ───────────────────────────────────────────────────────────────────


def cache_with(n: int) -> FeedCache:
    cache = FeedCache(ScriptedFetcher(make_items(n)))
    if n:
        cache.refresh_once()
    return cache


def make_router(n: int = 0, **overrides) -> RequestRouter:
    kwargs = {"delimiter": DELIM, "footer_link": FOOTER_LINK}
    kwargs.update(overrides)
    return RequestRouter(cache_with(n), **kwargs)


def body_of(response) -> str:
    assert isinstance(response, Success)
    return response.body.read().decode("utf-8")


def req(path: str, *keys: str) -> Request:
    return Request(path=path, query=tuple((k, "") for k in keys))


EMPTY_PAGE = f"\n\n{MENU}\n\n\n{FOOTER_LINK}\n"


# ── Routing table ──────────────────────────────────────────────────────────────


class TestRouting:
    def test_root_renders_latest(self):
        body = body_of(make_router(3).handle(req("/")))
        assert "Post 0\n\nAda" in body
        assert "Post 1" not in body

    def test_root_ignores_query(self):
        body = body_of(make_router(3).handle(req("/", "7")))
        assert "Post 0" in body

    def test_empty_path_is_root(self):
        assert isinstance(make_router(1).handle(req("")), Success)

    def test_select_without_query_prompts(self):
        response = make_router(3).handle(req("/select_tweet"))
        assert response == InputPrompt("Get tweet offset. f.e. 5")
        assert response.status == STATUS_INPUT

    def test_select_with_offset(self):
        body = body_of(make_router(8).handle(req("/select_tweet", "5")))
        assert "Post 5\n\nAda" in body
        assert "Post 0" not in body

    @pytest.mark.parametrize("raw", ["abc", "-1", " 5", "1.5", "5x", "+", "+-5"])
    def test_select_with_bad_offset(self, raw):
        response = make_router(8).handle(req("/select_tweet", raw))
        assert response == ClientError("Failed to parse input. Please use numbers.")
        assert response.status == STATUS_CLIENT_ERROR

    def test_select_offset_beyond_cache_renders_empty_page(self):
        response = make_router(3).handle(req("/select_tweet", "50"))
        assert body_of(response) == EMPTY_PAGE

    def test_select_with_plus_signed_offset(self):
        response = make_router(8).handle(req("/select_tweet", "+5"))
        assert response.status == STATUS_SUCCESS
        assert "Post 5\n\nAda" in body_of(response)

    def test_select_uses_first_key_only(self):
        body = body_of(make_router(5).handle(req("/select_tweet", "2", "abc")))
        assert "Post 2" in body

    @pytest.mark.parametrize("path", ["/nope", "/timeline/", "/Timeline", "/select_tweet/5", "//"])
    def test_unknown_paths_not_found(self, path):
        response = make_router(3).handle(req(path))
        assert response == NotFound("Unknown location")
        assert response.status == STATUS_NOT_FOUND

    def test_success_meta_is_gemini_mime(self):
        response = make_router(1).handle(req("/"))
        assert response.status == STATUS_SUCCESS
        assert response.meta == "text/gemini"


# ── Rendering ──────────────────────────────────────────────────────────────────


class TestRendering:
    def test_empty_cache_root_is_header_and_footer_only(self):
        response = make_router(0).handle(req("/"))
        assert response.status == STATUS_SUCCESS
        assert body_of(response) == EMPTY_PAGE

    def test_single_item_layout(self):
        body = body_of(make_router(1).handle(req("/")))
        assert body == f"\n\n{MENU}\n\n\nPost 0\n\nAda\n\n{FOOTER_LINK}\n"

    def test_timeline_with_three_items(self):
        body = body_of(make_router(3).handle(req("/timeline")))
        assert body.count(DELIM) == 3
        for i in range(3):
            assert f"\n\nPost {i}\n\nAda\n\n{DELIM}" in body

    def test_timeline_caps_at_ten(self):
        body = body_of(make_router(25).handle(req("/timeline")))
        assert body.count(DELIM) == 10
        assert "Post 9" in body
        assert "Post 10" not in body

    def test_timeline_on_empty_cache(self):
        assert body_of(make_router(0).handle(req("/timeline"))) == EMPTY_PAGE

    def test_timeline_size_is_configurable(self):
        body = body_of(make_router(8, timeline_size=4).handle(req("/timeline")))
        assert body.count(DELIM) == 4

    def test_menu_links_present(self):
        body = body_of(make_router(0).handle(req("/")))
        for link in ("=> / ", "=> /timeline ", "=> /select_tweet "):
            assert link in body

    def test_logo_prepended(self, tmp_path):
        logo = tmp_path / "logo.txt"
        logo.write_text("  /\\_/\\\n ( o.o )")
        body = body_of(make_router(0, logo_file=str(logo)).handle(req("/")))
        assert body.startswith("  /\\_/\\\n ( o.o )\n\n=> / Last tweet")

    def test_non_utf8_logo_still_renders(self, tmp_path):
        logo = tmp_path / "logo.txt"
        logo.write_bytes(b"\xb0\xb1\xb2 cp437 art \xdb\xdb")
        for path in ("/", "/timeline"):
            response = make_router(2, logo_file=str(logo)).handle(req(path))
            assert response.status == STATUS_SUCCESS
            assert " cp437 art " in body_of(response)

    def test_missing_logo_is_empty(self, tmp_path):
        router = make_router(0, logo_file=str(tmp_path / "missing.txt"))
        assert body_of(router.handle(req("/"))) == EMPTY_PAGE

    def test_each_response_has_fresh_body(self):
        router = make_router(1)
        first = router.handle(req("/"))
        second = router.handle(req("/"))
        assert body_of(first) == body_of(second)


# ── Helpers ────────────────────────────────────────────────────────────────────


class TestLoadLogo:
    def test_no_path(self):
        assert load_logo("") is None
        assert load_logo(None) is None

    def test_missing_file(self, tmp_path):
        assert load_logo(str(tmp_path / "nope")) is None

    def test_directory_is_not_a_logo(self, tmp_path):
        assert load_logo(str(tmp_path)) is None

    def test_undecodable_bytes_are_replaced(self, tmp_path):
        path = tmp_path / "logo.txt"
        path.write_bytes(b"\xdbLOGO\xdb")
        assert load_logo(str(path)) == "\ufffdLOGO\ufffd"

    def test_reads_text(self, tmp_path):
        path = tmp_path / "logo.txt"
        path.write_text("LOGO")
        assert load_logo(str(path)) == "LOGO"


class TestParseOffset:
    def test_leading_plus(self):
        assert parse_offset(req("/select_tweet", "+5")) == 5

    def test_plain_number(self):
        assert parse_offset(req("/select_tweet", "12")) == 12

    def test_zero(self):
        assert parse_offset(req("/select_tweet", "0")) == 0
