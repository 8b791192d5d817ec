"""
Request and response shapes exchanged with the Gemini transport.

A response is exactly one of four variants; only ``Success`` carries a body.

    Success      20  meta = MIME type, body follows
    InputPrompt  10  meta = prompt shown to the user
    ClientError  42  meta = error text
    NotFound     51  meta = location error text
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO, ClassVar, Union

STATUS_INPUT = 10
STATUS_SUCCESS = 20
STATUS_CLIENT_ERROR = 42
STATUS_NOT_FOUND = 51
STATUS_BAD_REQUEST = 59

GEMINI_MIME = "text/gemini"


@dataclass(frozen=True)
class Request:
    """A routed request: normalized path plus query keys in arrival order."""

    path: str
    query: tuple[tuple[str, str], ...] = ()

    @property
    def query_keys(self) -> list[str]:
        return [key for key, _ in self.query]


@dataclass(frozen=True)
class Success:
    status: ClassVar[int] = STATUS_SUCCESS

    body: BinaryIO
    mime: str = GEMINI_MIME

    @classmethod
    def from_text(cls, text: str) -> "Success":
        return cls(body=io.BytesIO(text.encode("utf-8")))

    @property
    def meta(self) -> str:
        return self.mime


@dataclass(frozen=True)
class InputPrompt:
    status: ClassVar[int] = STATUS_INPUT

    meta: str


@dataclass(frozen=True)
class ClientError:
    status: ClassVar[int] = STATUS_CLIENT_ERROR

    meta: str


@dataclass(frozen=True)
class NotFound:
    status: ClassVar[int] = STATUS_NOT_FOUND

    meta: str = "Unknown location"


Response = Union[Success, InputPrompt, ClientError, NotFound]
