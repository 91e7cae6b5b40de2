"""LoRA tag extraction (`<lora:NAME:STRENGTH>`) and stripping for A1111 prompts."""
from __future__ import annotations

import math
import re

from .params import LoRAReference

_LORA_TAG_RE = re.compile(r"<lora:([^:>]+):([0-9.]+)>")
_ANY_LORA_TAG_RE = re.compile(r"<lora:[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_lora_tags(prompt: str) -> list[LoRAReference]:
    """Return LoRA references in prompt order; tags with a bad strength are skipped."""
    if not prompt:
        return []
    loras: list[LoRAReference] = []
    for match in _LORA_TAG_RE.finditer(prompt):
        name = match.group(1).strip()
        try:
            strength = float(match.group(2))
        except ValueError:
            continue
        if not name or not math.isfinite(strength):
            continue
        loras.append(LoRAReference(name=name, strength=strength))
    return loras


def strip_lora_tags(prompt: str) -> str:
    """Remove every LoRA tag and collapse the leftover whitespace."""
    if not prompt:
        return ""
    return _WHITESPACE_RE.sub(" ", _ANY_LORA_TAG_RE.sub("", prompt)).strip()
