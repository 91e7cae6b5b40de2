"""Decide whether a hi-res (upscale + second sampler) pass is requested."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .params import (
    UPSCALE_DEFAULT_DENOISING,
    UPSCALE_DEFAULT_MODEL,
    UPSCALE_DEFAULT_STEPS,
    UPSCALE_SCALE,
    UpscaleSpec,
    parse_float,
    parse_int,
    parse_text,
)

_ENABLED_VALUES = ("true", "True")


def hires_fix_enabled(value: Any) -> bool:
    if value is True:
        return True
    return isinstance(value, str) and value.strip() in _ENABLED_VALUES


def resolve_upscale(raw: Mapping[str, Any]) -> Optional[UpscaleSpec]:
    """
    Either an explicit `hires_fix` flag or a non-empty `hires_upscaler` turns
    the pass on. Each field falls back to its own default; `scale` is fixed.
    """
    upscaler = raw.get("hires_upscaler")
    has_upscaler = upscaler is not None and str(upscaler).strip() != ""
    if not (hires_fix_enabled(raw.get("hires_fix")) or has_upscaler):
        return None

    denoising = parse_float(raw.get("hires_denoising"), UPSCALE_DEFAULT_DENOISING)
    return UpscaleSpec(
        model=parse_text(upscaler, UPSCALE_DEFAULT_MODEL).strip(),
        steps=parse_int(raw.get("hires_steps"), UPSCALE_DEFAULT_STEPS),
        denoising=min(1.0, max(0.0, denoising)),
        scale=UPSCALE_SCALE,
    )
