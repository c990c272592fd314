"""SVG sanitisation: drops script elements and onload attributes."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

_WS = frozenset(b" \t\n\r")
_LT, _GT, _SLASH, _QM, _EQ, _BANG = (ord(c) for c in "<>/?=!")
_DQUOTE, _SQUOTE = ord('"'), ord("'")
_LBRACKET, _RBRACKET = ord("["), ord("]")


class SvgError(ValueError):
    """Raised when an SVG document cannot be tokenised."""


class _Kind(enum.Enum):
    TEXT = enum.auto()
    START_TAG = enum.auto()
    START_TAG_PI = enum.auto()
    ATTRIBUTE = enum.auto()
    START_TAG_CLOSE = enum.auto()
    START_TAG_CLOSE_VOID = enum.auto()
    START_TAG_CLOSE_PI = enum.auto()
    END_TAG = enum.auto()
    COMMENT = enum.auto()
    CDATA = enum.auto()
    DOCTYPE = enum.auto()


@dataclass(frozen=True)
class _Token:
    kind: _Kind
    data: bytes
    name: bytes = b""


class _Lexer:
    """A lenient XML tokenizer whose tokens concatenate back into the input."""

    def __init__(self, data: bytes) -> None:
        self._buf = bytearray(data)
        self._start = 0
        self._pos = 0
        self._in_tag = False

    def __iter__(self) -> Iterator[_Token]:
        while (token := self._next()) is not None:
            yield token

    def _peek(self, offset: int = 0) -> int:
        index = self._pos + offset
        return self._buf[index] if index < len(self._buf) else 0

    def _at(self, seq: bytes) -> bool:
        return self._buf[self._pos:self._pos + len(seq)] == seq

    def _shift(self) -> bytes:
        chunk = bytes(self._buf[self._start:self._pos])
        self._start = self._pos
        return chunk

    def _stop(self) -> None:
        if self._pos < len(self._buf):
            raise SvgError("unexpected NULL character")

    def _is_tag_end(self, c: int) -> bool:
        return c == _GT or (c in (_SLASH, _QM) and self._peek(1) == _GT)

    def _next(self) -> _Token | None:
        if self._in_tag:
            while self._peek() in _WS:
                self._pos += 1
            c = self._peek()
            if c == 0:
                self._stop()
                return None
            if not self._is_tag_end(c):
                return self._attribute()
            self._start = self._pos
            self._in_tag = False
            if c == _SLASH:
                self._pos += 2
                return _Token(_Kind.START_TAG_CLOSE_VOID, self._shift())
            if c == _QM:
                self._pos += 2
                return _Token(_Kind.START_TAG_CLOSE_PI, self._shift())
            self._pos += 1
            return _Token(_Kind.START_TAG_CLOSE, self._shift())

        while True:
            c = self._peek()
            if c == _LT:
                if self._pos > self._start:
                    return _Token(_Kind.TEXT, self._shift())
                following = self._peek(1)
                if following == _SLASH:
                    self._pos += 2
                    return self._end_tag()
                if following == _BANG:
                    self._pos += 2
                    if self._at(b"--"):
                        self._pos += 2
                        return self._until(b"-->", _Kind.COMMENT)
                    if self._at(b"[CDATA["):
                        self._pos += 7
                        return self._until(b"]]>", _Kind.CDATA)
                    if self._at(b"DOCTYPE"):
                        self._pos += 7
                        return self._doctype()
                    self._pos -= 2
                elif following == _QM:
                    self._pos += 2
                    self._in_tag = True
                    return self._start_tag(_Kind.START_TAG_PI)
                self._pos += 1
                self._in_tag = True
                return self._start_tag(_Kind.START_TAG)
            if c == 0:
                if self._pos > self._start:
                    return _Token(_Kind.TEXT, self._shift())
                self._stop()
                return None
            self._pos += 1

    def _start_tag(self, kind: _Kind) -> _Token:
        name_start = self._pos
        while True:
            c = self._peek()
            if c in _WS or c == 0 or self._is_tag_end(c):
                break
            self._pos += 1
        name = bytes(self._buf[name_start:self._pos]).lower()
        return _Token(kind, self._shift(), name)

    def _end_tag(self) -> _Token:
        while True:
            c = self._peek()
            if c == _GT:
                name = bytes(self._buf[self._start + 2:self._pos])
                self._pos += 1
                break
            if c == 0:
                name = bytes(self._buf[self._start + 2:self._pos])
                break
            self._pos += 1
        return _Token(_Kind.END_TAG, self._shift(), name.rstrip(b" \t\n\r"))

    def _until(self, terminator: bytes, kind: _Kind) -> _Token:
        while True:
            if self._at(terminator):
                self._pos += len(terminator)
                return _Token(kind, self._shift())
            if self._peek() == 0:
                return _Token(kind, self._shift())
            self._pos += 1

    def _doctype(self) -> _Token:
        in_string = False
        in_brackets = False
        while True:
            c = self._peek()
            if c == _DQUOTE:
                in_string = not in_string
            elif c in (_LBRACKET, _RBRACKET) and not in_string:
                in_brackets = c == _LBRACKET
            elif c == _GT and not in_string and not in_brackets:
                self._pos += 1
                return _Token(_Kind.DOCTYPE, self._shift())
            elif c == 0:
                return _Token(_Kind.DOCTYPE, self._shift())
            self._pos += 1

    def _attribute(self) -> _Token:
        name_start = self._pos
        while True:
            c = self._peek()
            if c in _WS or c == _EQ or c == 0 or self._is_tag_end(c):
                break
            self._pos += 1
        name_end = self._pos

        while self._peek() in _WS:
            self._pos += 1

        if self._peek() == _EQ:
            self._pos += 1
            while self._peek() in _WS:
                self._pos += 1
            delim = self._peek()
            if delim in (_DQUOTE, _SQUOTE):
                self._pos += 1
                while True:
                    c = self._peek()
                    if c == delim:
                        self._pos += 1
                        break
                    if c == 0:
                        break
                    if c in (0x09, 0x0A, 0x0D):
                        self._buf[self._pos] = 0x20
                    self._pos += 1
            else:
                while True:
                    c = self._peek()
                    if c in _WS or c == 0 or self._is_tag_end(c):
                        break
                    self._pos += 1
        else:
            self._pos = name_end

        name = bytes(self._buf[name_start:name_end]).lower()
        return _Token(_Kind.ATTRIBUTE, self._shift(), name)


def sanitize(data: bytes) -> bytes:
    """Return the SVG with script elements and onload attributes removed."""
    out = bytearray()
    ignore_depth = 0

    for token in _Lexer(data):
        if ignore_depth > 0:
            if token.kind in (_Kind.END_TAG, _Kind.START_TAG_CLOSE_VOID):
                ignore_depth -= 1
            elif token.kind is _Kind.START_TAG:
                ignore_depth += 1
            continue

        if token.kind is _Kind.START_TAG and token.name == b"script":
            ignore_depth += 1
            continue
        if token.kind is _Kind.ATTRIBUTE and token.name == b"onload":
            continue
        out += token.data

    return bytes(out)