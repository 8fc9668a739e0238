"""Streaming decoder for RFC822-style control stanzas (Release, Sources, Packages)."""

import zlib
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator

from aptdrift.errors import DecodeError, ParseError
from aptdrift.models import ControlRecord, Package, Release, Source


class GzipStream:
    """Incremental gunzip that accepts data in arbitrary chunks.

    Concatenated gzip members are decoded back to back, like ``gzip.open`` does.
    """

    def __init__(self):
        self._decompressor = self._new_decompressor()
        self._in_member = False

    @staticmethod
    def _new_decompressor():
        return zlib.decompressobj(wbits=zlib.MAX_WBITS | 16)

    def feed(self, data: bytes) -> bytes:
        out: list[bytes] = []
        while data:
            self._in_member = True
            try:
                out.append(self._decompressor.decompress(data))
            except zlib.error as e:
                raise DecodeError(f"Invalid gzip data: {e}") from e
            if not self._decompressor.eof:
                break
            # member finished, anything left over belongs to the next one
            self._in_member = False
            data = self._decompressor.unused_data
            self._decompressor = self._new_decompressor()
        return b"".join(out)

    def close(self) -> bytes:
        if self._in_member:
            raise DecodeError("Truncated gzip stream")
        return self._decompressor.flush()


class StanzaDecoder:
    """Split a byte stream into stanza texts.

    Stanzas are separated by one or more blank (or whitespace-only) lines. Only the
    lines of the stanza currently being read are buffered.
    """

    def __init__(self):
        self._partial = b""
        self._lines: list[bytes] = []

    def feed(self, data: bytes) -> list[str]:
        """Consume a chunk, returning every stanza it completed."""
        *lines, self._partial = (self._partial + data).split(b"\n")
        stanzas = []
        for line in lines:
            if (stanza := self._push_line(line)) is not None:
                stanzas.append(stanza)
        return stanzas

    def close(self) -> list[str]:
        """Signal end of input, returning the trailing stanza if there is one."""
        stanzas = []
        if self._partial:
            if (stanza := self._push_line(self._partial)) is not None:
                stanzas.append(stanza)
            self._partial = b""
        if self._lines:
            stanzas.append(self._flush())
        return stanzas

    def _push_line(self, line: bytes) -> str | None:
        if line.strip():
            self._lines.append(line.rstrip(b"\r"))
            return None
        if self._lines:
            return self._flush()
        return None

    def _flush(self) -> str:
        raw = b"\n".join(self._lines)
        self._lines = []
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Stanza is not valid UTF-8: {e}") from e


def iter_stanzas(chunks: Iterable[bytes], compressed: bool = False) -> Iterator[str]:
    """Lazily decode stanzas from an iterable of byte chunks."""
    gunzip = GzipStream() if compressed else None
    decoder = StanzaDecoder()
    for chunk in chunks:
        if gunzip is not None:
            chunk = gunzip.feed(chunk)
        yield from decoder.feed(chunk)
    if gunzip is not None:
        yield from decoder.feed(gunzip.close())
    yield from decoder.close()


async def aiter_stanzas(chunks: AsyncIterable[bytes], compressed: bool = False) -> AsyncIterator[str]:
    """Asynchronously decode stanzas from a stream of byte chunks, e.g. an HTTP response body."""
    gunzip = GzipStream() if compressed else None
    decoder = StanzaDecoder()
    async for chunk in chunks:
        if gunzip is not None:
            chunk = gunzip.feed(chunk)
        for stanza in decoder.feed(chunk):
            yield stanza
    if gunzip is not None:
        for stanza in decoder.feed(gunzip.close()):
            yield stanza
    for stanza in decoder.close():
        yield stanza


def iter_fields(stanza: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs from a stanza.

    Lines starting with whitespace continue the previous field; their text is appended on a
    new line, with a lone ``.`` standing for an empty line.
    """
    key: str | None = None
    value_lines: list[str] = []
    for line in stanza.split("\n"):
        if line.startswith("#"):
            continue
        if line[:1] in (" ", "\t"):
            if key is None:
                raise ParseError(f"Continuation line before any field: {line!r}")
            text = line.strip()
            value_lines.append("" if text == "." else text)
            continue

        if key is not None:
            yield key, "\n".join(value_lines)
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ParseError(f"Malformed field line: {line!r}")
        key = name.strip()
        value_lines = [value.strip()]

    if key is not None:
        yield key, "\n".join(value_lines)


def map_stanza[T: ControlRecord](stanza: str, model: type[T]) -> T:
    """Build a record from the stanza keys ``model`` recognises.

    Raises:
        ParseError: if a recognised key appears more than once
    """
    values: dict[str, str | list[str]] = {}
    for key, value in iter_fields(stanza):
        attr = model.stanza_keys.get(key)
        if attr is None:
            continue
        if attr in values:
            raise ParseError(f"Duplicate key {key!r} in {model.__name__} stanza")
        values[attr] = value.split() if attr in model.list_attrs else value
    return model.model_validate(values)


def parse_release(stanza: str) -> Release:
    return map_stanza(stanza, Release)


def parse_package(stanza: str) -> Package:
    return map_stanza(stanza, Package)


def parse_source(stanza: str) -> Source:
    return map_stanza(stanza, Source)
