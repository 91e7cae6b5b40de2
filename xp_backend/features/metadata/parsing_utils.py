"""
Shared parsing utilities for metadata extraction (JSON payload sniffing and
ComfyUI workflow shape checks).
"""
import base64
import json
import logging
import re
import zlib
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_METADATA_JSON_SIZE = 10 * 1024 * 1024  # 10MB
MAX_DECOMPRESSED_SIZE = 50 * 1024 * 1024
MIN_BASE64_CANDIDATE_LEN = 80

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=\s]+$")
_NUMERIC_KEY_RE = re.compile(r"^\d+$")
_KNOWN_PREFIXES = ("workflow:", "prompt:", "makeprompt:")
WRAPPER_KEYS = ("workflow", "prompt", "extra_pnginfo")


def _safe_zlib_decompress(data: bytes, max_size: int = MAX_DECOMPRESSED_SIZE) -> Optional[bytes]:
    """Decompress zlib data, giving up past `max_size`."""
    decompressor = zlib.decompressobj()
    result = bytearray()
    chunk_size = 81920
    try:
        for offset in range(0, len(data), chunk_size):
            result.extend(decompressor.decompress(data[offset:offset + chunk_size]))
            if len(result) > max_size:
                return None
        result.extend(decompressor.flush())
    except zlib.error:
        return None
    if len(result) > max_size:
        return None
    return bytes(result)


def _strip_known_json_prefix(raw: str) -> str:
    lower_raw = raw.lower()
    for prefix in _KNOWN_PREFIXES:
        if lower_raw.startswith(prefix):
            return raw[len(prefix):].strip()
    return raw


def _loads_maybe_dict(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return None
    if isinstance(parsed, dict):
        return parsed
    if isinstance(parsed, str):
        # JSON that was stringified twice
        try:
            nested = json.loads(parsed)
        except (TypeError, ValueError):
            return None
        return nested if isinstance(nested, dict) else None
    return None


def _decode_base64_candidate(raw: str) -> Optional[bytes]:
    if len(raw) < MIN_BASE64_CANDIDATE_LEN or len(raw) > (MAX_METADATA_JSON_SIZE * 2):
        return None
    if not _BASE64_RE.match(raw):
        return None
    try:
        return base64.b64decode(raw, validate=False)
    except (ValueError, TypeError):
        return None


def _maybe_decompress_zlib(decoded: bytes) -> bytes:
    if not (decoded.startswith(b"x\x9c") or decoded.startswith(b"x\xda")):
        return decoded
    decompressed = _safe_zlib_decompress(decoded)
    return decompressed if decompressed is not None else decoded


def try_parse_json_text(text: Any) -> Optional[Dict[str, Any]]:
    """Parse a JSON object embedded in text, handling ComfyUI prefixes and base64/zlib payloads."""
    if not isinstance(text, str):
        return None
    raw = _strip_known_json_prefix(text.strip())
    if not raw or len(raw) > MAX_METADATA_JSON_SIZE:
        return None

    direct = _loads_maybe_dict(raw)
    if direct is not None:
        return direct

    decoded = _decode_base64_candidate(raw)
    if decoded is None:
        return None
    decoded_text = _maybe_decompress_zlib(decoded).decode("utf-8", errors="replace").strip()
    if not decoded_text or len(decoded_text) > MAX_METADATA_JSON_SIZE:
        return None
    return _loads_maybe_dict(decoded_text)


def parse_json_value(value: Any) -> Optional[Dict[str, Any]]:
    """Try to parse a JSON payload from a tag value. Accept strings, bytes or lists."""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        candidates = [value]
    elif isinstance(value, (list, tuple)):
        candidates = [v for v in value if isinstance(v, str)]
    else:
        return None

    for raw in candidates:
        parsed = try_parse_json_text(raw)
        if isinstance(parsed, dict):
            return parsed
    return None


def extract_json_candidates(text: str) -> List[str]:
    """
    Return every balanced `{...}` substring of `text`, outermost first.

    String literals are respected so braces inside quoted values don't
    unbalance the scan.
    """
    if not isinstance(text, str) or "{" not in text:
        return []
    out: List[str] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for idx, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = idx
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start >= 0:
                out.append(text[start:idx + 1])
                start = -1
    return out


def looks_like_prompt_node_id(value: Any) -> bool:
    """Accept plain integers or colon-delimited numeric ids (e.g. '91:68')."""
    if isinstance(value, int) and not isinstance(value, bool):
        return True
    if not isinstance(value, str) or not value:
        return False
    return all(part.isdigit() for part in value.split(":"))


def _looks_like_workflow_node(node: Any) -> bool:
    if not isinstance(node, dict) or "id" not in node:
        return False
    if "type" in node:
        return True
    return any(key in node for key in ("title", "outputs", "inputs"))


def looks_like_comfyui_workflow(value: Optional[Dict[str, Any]]) -> bool:
    """Heuristic check for a ComfyUI UI workflow (`nodes`/`links` export)."""
    if not isinstance(value, dict):
        return False
    nodes = value.get("nodes")
    if not isinstance(nodes, list) or not nodes:
        return False
    links = value.get("links")
    if links is not None and not isinstance(links, list):
        return False
    sample = nodes[:5]
    valid_nodes = sum(1 for node in sample if _looks_like_workflow_node(node))
    return valid_nodes >= max(1, len(sample) // 2)


def _prompt_graph_node_looks_valid(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    ct = node.get("class_type") or node.get("type")
    return isinstance(ct, str) and isinstance(node.get("inputs"), dict)


def looks_like_comfyui_prompt_graph(value: Optional[Dict[str, Any]]) -> bool:
    """Heuristic check for a ComfyUI API prompt graph (`{"3": {"class_type": ...}}`)."""
    if not isinstance(value, dict) or not value:
        return False
    if isinstance(value.get("nodes"), list):
        return False
    keys = list(value.keys())[:8]
    digit_keys = sum(1 for key in keys if looks_like_prompt_node_id(key))
    valid_nodes = sum(1 for key in keys if _prompt_graph_node_looks_valid(value.get(key)))
    threshold = max(1, len(keys) // 2)
    return digit_keys >= threshold and valid_nodes >= threshold


def validate_comfyui_workflow(data: Any, strict: bool = False) -> bool:
    """
    Accept anything that carries a ComfyUI graph.

    - API prompt: numeric keys with at least one `class_type` node
    - UI workflow: a `nodes` list (strict mode requires it to look valid)
    - wrapper dicts with `workflow` / `prompt` / `extra_pnginfo`
    - a list containing `class_type` nodes
    """
    if isinstance(data, list):
        return any(isinstance(item, dict) and isinstance(item.get("class_type"), str) for item in data)
    if not isinstance(data, dict) or not data:
        return False

    numeric_keys = [key for key in data if isinstance(key, str) and _NUMERIC_KEY_RE.match(key)]
    if numeric_keys:
        return any(
            isinstance(data[key], dict) and isinstance(data[key].get("class_type"), str)
            for key in numeric_keys
        )
    if isinstance(data.get("nodes"), list):
        return looks_like_comfyui_workflow(data) if strict else True
    return any(data.get(key) for key in WRAPPER_KEYS)


def unwrap_workflow(parsed: Dict[str, Any]) -> Dict[str, Any]:
    """Return the inner graph of a `{"workflow": {...}}` wrapper, else `parsed` itself."""
    inner = parsed.get("workflow") if isinstance(parsed, dict) else None
    if isinstance(inner, str):
        inner = try_parse_json_text(inner)
    if isinstance(inner, dict) and (looks_like_comfyui_workflow(inner) or looks_like_comfyui_prompt_graph(inner)):
        return inner
    return parsed


def find_workflow_in_text(text: Any) -> Optional[Dict[str, Any]]:
    """Parse `text` as JSON, or scan it for an embedded JSON object, and return the first ComfyUI graph."""
    parsed = try_parse_json_text(text) if isinstance(text, str) else None
    if parsed is not None:
        return parsed if validate_comfyui_workflow(parsed) else None
    if not isinstance(text, str):
        return None
    for candidate in extract_json_candidates(text):
        parsed = _loads_maybe_dict(candidate)
        if parsed is not None and validate_comfyui_workflow(parsed):
            return parsed
    return None
