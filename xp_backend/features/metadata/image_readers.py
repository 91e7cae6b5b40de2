"""
Pillow-backed readers for image containers.

PNG text chunks (tEXt/zTXt/iTXt) come from `img.info`; EXIF fields (IFD0 and
the Exif sub-IFD, where `UserComment` lives) from `img.getexif()`.
"""

from __future__ import annotations

from typing import Any, Dict

from PIL import ExifTags, Image

_XP_TAGS = ("XPTitle", "XPComment", "XPAuthor", "XPKeywords", "XPSubject")


def _decode_xp_tag(value: Any) -> Any:
    """Windows XP* tags are UTF-16LE byte strings (sometimes given as int tuples)."""
    if isinstance(value, (tuple, list)):
        try:
            value = bytes(value)
        except (TypeError, ValueError):
            return value
    if isinstance(value, bytes):
        return value.decode("utf-16-le", errors="replace").rstrip("\x00")
    return value


def _collect_text_chunks(img: Image.Image) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in dict(getattr(img, "info", {}) or {}).items():
        if isinstance(value, str):
            out[str(key)] = value
        elif key == "comment" and isinstance(value, bytes):
            # JPEG COM segment
            out["comment"] = value.decode("utf-8", errors="replace")
    text = getattr(img, "text", None)
    if isinstance(text, dict):
        for key, value in text.items():
            out.setdefault(str(key), str(value))
    return out


def _collect_exif_fields(img: Image.Image) -> Dict[str, Any]:
    exif = img.getexif()
    if not exif:
        return {}
    out: Dict[str, Any] = {}
    for tag_id, value in exif.items():
        out[ExifTags.TAGS.get(tag_id, str(tag_id))] = value
    try:
        exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
    except KeyError:
        exif_ifd = {}
    for tag_id, value in (exif_ifd or {}).items():
        out[ExifTags.TAGS.get(tag_id, str(tag_id))] = value
    for name in _XP_TAGS:
        if name in out:
            out[name] = _decode_xp_tag(out[name])
    return out


def read_image_info(path: str) -> Dict[str, Any]:
    """
    Read everything the extractors need from an image file.

    Returns:
        dict with `format`, `width`, `height`, `text` (PNG text chunks and
        other string info entries), `exif` (tag name -> value) and
        `exif_raw` (the undecoded EXIF blob, if any).

    Raises:
        OSError: file missing/unreadable or not an image Pillow understands.
    """
    with Image.open(path) as img:
        raw_exif = img.info.get("exif")
        return {
            "format": (img.format or "").lower(),
            "width": int(img.width),
            "height": int(img.height),
            "text": _collect_text_chunks(img),
            "exif": _collect_exif_fields(img),
            "exif_raw": raw_exif if isinstance(raw_exif, (bytes, bytearray)) else b"",
        }
