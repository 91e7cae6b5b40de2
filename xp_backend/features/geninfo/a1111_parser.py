"""
Automatic1111 "parameters" text parser.

A1111 writes one text blob per image:

    <positive prompt>
    Negative prompt: <negative prompt>
    Steps: 20, Sampler: Euler a, CFG scale: 7, Seed: 1, Size: 512x768, ...

`parse_a1111_parameters` returns a flat, typed map (`steps`/`seed` as int,
`cfg`/`denoise` as float) that the workflow converter consumes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ...shared import get_logger

logger = get_logger(__name__)

NEGATIVE_MARKERS = ("Negative prompt:", "Negative:", "negative prompt:", "negative:")
PARAMETER_MARKERS = ("Steps:", "Sampler:", "CFG scale:", "Size:", "Seed:", "Model:")
MAX_PROMPT_LENGTH = 10000

# Field names must start the text, a line or a comma-separated entry so that
# e.g. "Hires steps:" is never read as "Steps:".
_FIELD_START = r"(?:^|[,\n])\s*"

_INT_FIELDS = {
    "steps": re.compile(_FIELD_START + r"Steps:\s*(\d+)", re.IGNORECASE),
    "seed": re.compile(_FIELD_START + r"Seed:\s*(\d+)", re.IGNORECASE),
    "clip_skip": re.compile(_FIELD_START + r"Clip skip:\s*(\d+)", re.IGNORECASE),
    "hires_steps": re.compile(_FIELD_START + r"Hires steps:\s*(\d+)", re.IGNORECASE),
}
_FLOAT_FIELDS = {
    "cfg": re.compile(_FIELD_START + r"CFG scale:\s*([\d.]+)", re.IGNORECASE),
    "denoise": re.compile(_FIELD_START + r"Denoising strength:\s*([\d.]+)", re.IGNORECASE),
    "hires_denoising": re.compile(_FIELD_START + r"Hires denoising strength:\s*([\d.]+)", re.IGNORECASE),
}
_TEXT_FIELDS = {
    "sampler": re.compile(_FIELD_START + r"Sampler:\s*([^,\n]+)", re.IGNORECASE),
    "model": re.compile(_FIELD_START + r"Model:\s*([^,\n]+)", re.IGNORECASE),
    "size": re.compile(_FIELD_START + r"Size:\s*(\d+x\d+)", re.IGNORECASE),
    "ensd": re.compile(_FIELD_START + r"ENSD:\s*([^,\n]+)", re.IGNORECASE),
    "hires_upscaler": re.compile(_FIELD_START + r"Hires upscaler:\s*([^,\n]+)", re.IGNORECASE),
}
_HIRES_UPSCALE_RE = re.compile(r"Hires upscale:\s*[\d.]+", re.IGNORECASE)
_NEGATIVE_PROMPT_RE = re.compile(r"Negative prompt:", re.IGNORECASE)

_FORMAT_INDICATORS = (
    re.compile(r"Steps:\s*\d+", re.IGNORECASE),
    re.compile(r"CFG scale:\s*[\d.]+", re.IGNORECASE),
    re.compile(r"Sampler:\s*[^,\n]+", re.IGNORECASE),
    re.compile(r"Seed:\s*\d+", re.IGNORECASE),
    re.compile(r"Model:\s*[^,\n]+", re.IGNORECASE),
    re.compile(r"Size:\s*\d+x\d+", re.IGNORECASE),
    _NEGATIVE_PROMPT_RE,
)

_NUMERIC_RANGES = (
    ("steps", 1, 1000),
    ("cfg", 0, 30),
    ("seed", 0, 2**53 - 1),
    ("denoise", 0, 1),
    ("clip_skip", 1, 12),
)


@dataclass(frozen=True)
class PromptSeparation:
    positive: str
    negative: str


def separate_prompts(text: str) -> PromptSeparation:
    """Split the prompt part of an A1111 blob into positive and negative prompts."""
    normalized = (text or "").strip()

    negative_idx = -1
    marker_len = 0
    for marker in NEGATIVE_MARKERS:
        idx = normalized.find(marker)
        if idx != -1:
            negative_idx, marker_len = idx, len(marker)
            break

    found = [idx for idx in (normalized.find(m) for m in PARAMETER_MARKERS) if idx != -1]
    params_idx = min(found) if found else -1

    if negative_idx != -1 and params_idx > negative_idx:
        positive = normalized[:negative_idx]
        negative = normalized[negative_idx + marker_len:params_idx]
    elif negative_idx != -1:
        positive = normalized[:negative_idx]
        negative = normalized[negative_idx + marker_len:]
    elif params_idx != -1:
        positive, negative = normalized[:params_idx], ""
    else:
        positive, negative = normalized, ""
    return PromptSeparation(positive=positive.strip(), negative=negative.strip())


def extract_generation_settings(text: str) -> Dict[str, Any]:
    settings: Dict[str, Any] = {}
    for key, pattern in _INT_FIELDS.items():
        match = pattern.search(text)
        if match:
            settings[key] = int(match.group(1))
    for key, pattern in _FLOAT_FIELDS.items():
        match = pattern.search(text)
        if match:
            try:
                settings[key] = float(match.group(1))
            except ValueError:
                continue
    for key, pattern in _TEXT_FIELDS.items():
        match = pattern.search(text)
        if match and match.group(1).strip():
            settings[key] = match.group(1).strip()
    if _HIRES_UPSCALE_RE.search(text):
        settings["hires_fix"] = True
    if "Restore faces" in text:
        settings["restore_faces"] = True
    return settings


def parse_a1111_parameters(text: str) -> Dict[str, Any]:
    """
    Parse an A1111 parameters blob.

    Raises:
        ValueError: `text` is not a string or is blank.
    """
    if not isinstance(text, str):
        raise ValueError("Invalid input: text must be a non-empty string")
    clean = text.strip()
    if not clean:
        raise ValueError("Invalid input: text cannot be empty")

    try:
        prompts = separate_prompts(clean)
        result: Dict[str, Any] = {"positive_prompt": prompts.positive, "raw_text": clean}
        result.update(extract_generation_settings(clean))
    except (re.error, ValueError, OverflowError) as exc:
        logger.debug("A1111 parse fell back to raw prompt: %s", exc)
        return {"positive_prompt": clean, "raw_text": clean}
    if prompts.negative:
        result["negative_prompt"] = prompts.negative
    return result


def validate_a1111_format(text: Any) -> bool:
    if not isinstance(text, str) or not text.strip():
        return False
    return any(pattern.search(text) for pattern in _FORMAT_INDICATORS)


def contains_a1111_parameters(text: Any) -> bool:
    """Cheap check used by the extractors before running the full parser."""
    return isinstance(text, str) and ("Steps:" in text or "CFG scale:" in text)


def is_valid_prompt_separation(text: Any) -> bool:
    """A separation is valid when a positive prompt exists and any negative came from a marker."""
    if not isinstance(text, str) or not text:
        return False
    prompts = separate_prompts(text)
    if not prompts.positive:
        return False
    if prompts.negative and not _NEGATIVE_PROMPT_RE.search(text):
        return False
    return len(prompts.positive) + len(prompts.negative) <= MAX_PROMPT_LENGTH


def validate_a1111_parameters(params: Optional[Mapping[str, Any]]) -> bool:
    if not isinstance(params, Mapping):
        return False
    prompt = params.get("positive_prompt")
    if not isinstance(prompt, str) or not prompt:
        return False
    for key, low, high in _NUMERIC_RANGES:
        if key not in params:
            continue
        value = params[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if value != value or value < low or value > high:
            return False
    return True
