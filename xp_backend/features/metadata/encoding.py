"""
Text decoding helpers for EXIF comment fields.

EXIF `UserComment` starts with an 8-byte character-code header
(`UNICODE\\0`, `ASCII\\0\\0\\0`, `JIS\\0\\0\\0\\0\\0` or eight NULs) followed by the
payload. Writers disagree on the UTF-16 byte order, so it is sniffed.
"""
from __future__ import annotations

import re
from typing import Any, Optional

UNICODE_PREFIX = b"UNICODE\x00"
ASCII_PREFIX = b"ASCII\x00\x00\x00"
JIS_PREFIX = b"JIS\x00\x00\x00\x00\x00"
UNDEFINED_PREFIX = b"\x00" * 8
_HEADER_LEN = 8

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def _utf16_byte_order(payload: bytes) -> str:
    """Guess LE vs BE from which byte positions hold the NULs of ASCII text."""
    if payload.startswith(b"\xff\xfe"):
        return "utf-16-le"
    if payload.startswith(b"\xfe\xff"):
        return "utf-16-be"
    sample = payload[:256]
    even_nuls = sum(1 for i in range(0, len(sample), 2) if sample[i] == 0)
    odd_nuls = sum(1 for i in range(1, len(sample), 2) if sample[i] == 0)
    return "utf-16-be" if even_nuls > odd_nuls else "utf-16-le"


def _decode_utf16(payload: bytes) -> str:
    if len(payload) % 2:
        payload = payload[:-1]
    codec = _utf16_byte_order(payload)
    if payload[:2] in (b"\xff\xfe", b"\xfe\xff"):
        payload = payload[2:]
    return payload.decode(codec, errors="replace")


def normalize_text(text: str) -> str:
    """Drop control characters (keeping tab/newline/CR) and trim."""
    return _CONTROL_CHARS_RE.sub("", text).strip()


def decode_user_comment(value: Any) -> str:
    """
    Decode an EXIF UserComment into text.

    Accepts raw bytes (with or without the character-code header), a list of
    byte values, or an already-decoded string. Returns "" when nothing useful
    is left.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        if value.startswith("UNICODE"):
            return normalize_text(extract_text_after_unicode_prefix(value) or "")
        if value.startswith("ASCII"):
            return normalize_text(value[_HEADER_LEN:])
        return normalize_text(value)
    if isinstance(value, (list, tuple)):
        try:
            value = bytes(int(v) & 0xFF for v in value)
        except (TypeError, ValueError):
            return ""
    if not isinstance(value, (bytes, bytearray)):
        return ""

    raw = bytes(value)
    header = raw[:_HEADER_LEN]
    payload = raw[_HEADER_LEN:]
    if header == UNICODE_PREFIX:
        return normalize_text(_decode_utf16(payload))
    if header in (ASCII_PREFIX, UNDEFINED_PREFIX):
        return normalize_text(payload.decode("utf-8", errors="replace"))
    if header == JIS_PREFIX:
        return normalize_text(payload.decode("shift_jis", errors="replace"))
    try:
        return normalize_text(raw.decode("utf-8"))
    except UnicodeDecodeError:
        return normalize_text(raw.decode("latin-1"))


def extract_text_after_unicode_prefix(text: str) -> Optional[str]:
    """Return what follows the first `UNICODE\\0` marker, or None when absent."""
    idx = text.find("UNICODE")
    if idx == -1:
        return None
    rest = text[idx + len("UNICODE"):]
    return rest[1:] if rest.startswith("\x00") else rest


def extract_text_from_utf16le(data: str) -> str:
    """
    Recover text from a UTF-16 payload that was decoded one byte per char.

    Keeps the non-NUL characters, which for ASCII content are exactly the
    original characters whichever byte order was used.
    """
    return "".join(ch for ch in data if ch != "\x00")


def extract_text_from_exif_blob(blob: bytes) -> Optional[str]:
    """Find a `UNICODE\\0` marker anywhere in a raw EXIF blob and decode the text after it."""
    if not blob:
        return None
    idx = blob.find(UNICODE_PREFIX)
    if idx == -1:
        return None
    text = normalize_text(_decode_utf16(blob[idx + _HEADER_LEN:]))
    return text or None


def contains_a1111_markers(text: Any) -> bool:
    return isinstance(text, str) and ("Steps:" in text or "CFG scale:" in text)
