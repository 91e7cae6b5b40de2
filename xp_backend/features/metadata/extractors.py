"""
Metadata extractors for different file types.
Pull ComfyUI workflows and A1111 generation parameters out of what the
readers return (Pillow image info for PNG/JPEG/WebP, ffprobe data for video).

Every extractor returns a raw extraction dict with any of `workflow`,
`prompt`, `parameters`, `raw_parameters`, `user_comment`, `metadata`, or
None when the file carries nothing recognisable.
"""
from typing import Any, Optional

from ...shared import get_logger
from ..geninfo.a1111_parser import contains_a1111_parameters, parse_a1111_parameters
from .encoding import decode_user_comment, extract_text_from_exif_blob
from .parsing_utils import (
    extract_json_candidates,
    find_workflow_in_text,
    looks_like_comfyui_prompt_graph,
    parse_json_value,
    try_parse_json_text,
    unwrap_workflow,
    validate_comfyui_workflow,
)

logger = get_logger(__name__)

PNG_KEYWORDS = ("parameters", "workflow", "prompt", "comfyui", "ComfyUI")
JPEG_TEXT_FIELDS = (
    "UserComment",
    "ImageDescription",
    "XPComment",
    "XPKeywords",
    "Software",
    "Artist",
    "Copyright",
    "Comment",
)
# ComfyUI's WebP saver writes "workflow:<json>" into Make and "prompt:<json>" into Model
_WEBP_WORKFLOW_FIELDS = ("Make", "ImageDescription")
_WEBP_PROMPT_FIELDS = ("Model",)
VIDEO_FORMAT_TAGS = ("comment", "description", "metadata", "workflow", "comfyui", "ComfyUI", "prompt")


def _apply_a1111_text(result: dict[str, Any], text: str) -> None:
    result["parameters"] = parse_a1111_parameters(text)
    result["raw_parameters"] = text


def _apply_comment_text(result: dict[str, Any], text: str) -> None:
    """Classify a decoded comment: A1111 parameters, a ComfyUI graph, or plain text."""
    if contains_a1111_parameters(text):
        _apply_a1111_text(result, text)
        return
    if "workflow" in text or "prompt" in text:
        parsed = try_parse_json_text(text)
        if parsed is not None and validate_comfyui_workflow(parsed):
            result["workflow"] = unwrap_workflow(parsed)
        else:
            result["metadata"] = text
        return
    result["user_comment"] = text


def extract_png_metadata(info: dict[str, Any]) -> Optional[dict[str, Any]]:
    """
    PNG: look at the tEXt/iTXt/zTXt keywords ComfyUI and A1111 write.

    `parameters` is parsed as A1111 text; the others as JSON. A chunk that is
    not JSON is kept verbatim under its keyword.
    """
    chunks = info.get("text") or {}
    result: dict[str, Any] = {}
    for keyword in PNG_KEYWORDS:
        text = chunks.get(keyword)
        if not isinstance(text, str) or not text:
            continue
        if keyword == "parameters":
            _apply_a1111_text(result, text)
            continue
        parsed = try_parse_json_text(text)
        if parsed is None:
            result[keyword] = text
        elif keyword == "prompt" and looks_like_comfyui_prompt_graph(parsed):
            result["prompt"] = parsed
        elif validate_comfyui_workflow(parsed) and "workflow" not in result:
            result["workflow"] = unwrap_workflow(parsed)
        else:
            result[keyword] = parsed
    return result or None


def _workflow_from_exif_blob(blob: bytes) -> Optional[dict[str, Any]]:
    if not blob:
        return None
    text = blob.decode("latin-1")
    for candidate in extract_json_candidates(text):
        parsed = try_parse_json_text(candidate)
        if parsed is not None and validate_comfyui_workflow(parsed):
            return parsed
    return None


def extract_jpeg_metadata(info: dict[str, Any]) -> Optional[dict[str, Any]]:
    """
    JPEG: scan the EXIF text fields for an embedded workflow, then decode
    UserComment (where A1111 writes its parameters), then ImageDescription.
    """
    exif = dict(info.get("exif") or {})
    comment = (info.get("text") or {}).get("comment")
    if isinstance(comment, str) and "Comment" not in exif:
        exif["Comment"] = comment

    result: dict[str, Any] = {}
    for field in JPEG_TEXT_FIELDS:
        value = exif.get(field)
        if not isinstance(value, str) or not value:
            continue
        workflow = find_workflow_in_text(value)
        if workflow is not None:
            result["workflow"] = unwrap_workflow(workflow)
            break

    if "workflow" not in result:
        decoded = decode_user_comment(exif.get("UserComment"))
        if decoded:
            _apply_comment_text(result, decoded)

    if "workflow" not in result and "parameters" not in result:
        description = exif.get("ImageDescription")
        if contains_a1111_parameters(description):
            _apply_a1111_text(result, description)

    if not result:
        workflow = _workflow_from_exif_blob(info.get("exif_raw") or b"")
        if workflow is not None:
            result["workflow"] = unwrap_workflow(workflow)
    return result or None


def extract_webp_metadata(info: dict[str, Any]) -> Optional[dict[str, Any]]:
    """
    WebP: ComfyUI graphs in the Make/Model EXIF fields, otherwise a
    `UNICODE`-prefixed UserComment (A1111 / Forge).
    """
    exif = info.get("exif") or {}
    result: dict[str, Any] = {}

    for field in _WEBP_WORKFLOW_FIELDS:
        parsed = parse_json_value(exif.get(field))
        if parsed is not None and validate_comfyui_workflow(parsed):
            result["workflow"] = unwrap_workflow(parsed)
            break
    for field in _WEBP_PROMPT_FIELDS:
        parsed = parse_json_value(exif.get(field))
        if parsed is not None and looks_like_comfyui_prompt_graph(parsed):
            result["prompt"] = parsed
            break

    if "workflow" not in result:
        text = decode_user_comment(exif.get("UserComment")) or extract_text_from_exif_blob(info.get("exif_raw") or b"")
        if text:
            _apply_comment_text(result, text)

    if not result:
        # Some tools write PNG-style keywords into WebP XMP/text chunks.
        png_like = extract_png_metadata(info)
        if png_like:
            result.update(png_like)
    return result or None


def _tag_lookup(tags: dict[str, Any], name: str) -> Any:
    for key in (name, name.lower(), name.upper()):
        if key in tags:
            return tags[key]
    return None


def extract_video_metadata(probe_data: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """
    Video (MP4/WebM/MOV): check the well-known container tags first, then
    every stream tag. A `{"workflow": {...}}` wrapper is unwrapped.
    """
    if not isinstance(probe_data, dict):
        return None

    fmt = probe_data.get("format") or {}
    format_tags = fmt.get("tags") if isinstance(fmt, dict) else None
    if isinstance(format_tags, dict):
        for name in VIDEO_FORMAT_TAGS:
            value = _tag_lookup(format_tags, name)
            workflow = find_workflow_in_text(value) if isinstance(value, str) else None
            if workflow is not None:
                logger.debug("Workflow found in container tag %r", name)
                return {"workflow": unwrap_workflow(workflow)}

    for stream in probe_data.get("streams") or []:
        tags = stream.get("tags") if isinstance(stream, dict) else None
        if not isinstance(tags, dict):
            continue
        for key, value in tags.items():
            if not isinstance(value, str):
                continue
            parsed = try_parse_json_text(value)
            if parsed is not None and validate_comfyui_workflow(parsed):
                logger.debug("Workflow found in stream tag %r", key)
                return {"workflow": unwrap_workflow(parsed)}
    return None
