"""
Typed generation parameters and the fallible parse helpers that build them.

The raw parameter map comes from the A1111 parser (or a caller) and may hold
strings, numbers or nothing at all; every helper here returns its default
instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

DEFAULT_STEPS = 20
DEFAULT_CFG = 7.0
DEFAULT_SAMPLER = "DPM++ 2M Karras"
DEFAULT_SEED = 42
DEFAULT_MODEL = "sd_xl_base_1.0.safetensors"
DEFAULT_SIZE = "512x512"
DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512

UPSCALE_DEFAULT_MODEL = "ESRGAN_4x"
UPSCALE_DEFAULT_STEPS = 10
UPSCALE_DEFAULT_DENOISING = 0.5
UPSCALE_SCALE = 2.0


@dataclass(frozen=True)
class LoRAReference:
    """A `<lora:name:strength>` tag found in a prompt."""

    name: str
    strength: float

    @property
    def path(self) -> str:
        return f"{self.name}.safetensors"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "strength": self.strength, "path": self.path}


@dataclass(frozen=True)
class UpscaleSpec:
    """Second (hi-res) sampling pass settings."""

    model: str = UPSCALE_DEFAULT_MODEL
    steps: int = UPSCALE_DEFAULT_STEPS
    denoising: float = UPSCALE_DEFAULT_DENOISING
    scale: float = UPSCALE_SCALE

    def to_dict(self) -> dict[str, Any]:
        return {"model": self.model, "steps": self.steps, "denoising": self.denoising, "scale": self.scale}


@dataclass
class GenerationParameters:
    positive_prompt: str = ""
    negative_prompt: str = ""
    steps: int = DEFAULT_STEPS
    cfg: float = DEFAULT_CFG
    sampler: str = DEFAULT_SAMPLER
    seed: int = DEFAULT_SEED
    model: str = DEFAULT_MODEL
    size: str = DEFAULT_SIZE
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    loras: list[LoRAReference] = field(default_factory=list)
    upscale: Optional[UpscaleSpec] = None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_float(value: Any, default: float) -> float:
    """Parse a finite float, returning `default` on anything else."""
    if _is_blank(value) or isinstance(value, bool):
        return default
    try:
        out = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    return out if math.isfinite(out) else default


def parse_int(value: Any, default: int) -> int:
    """Parse an integer; decimal strings truncate toward zero ("7.9" -> 7)."""
    if _is_blank(value) or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except (TypeError, ValueError):
        pass
    as_float = parse_float(text, math.nan)
    if math.isnan(as_float):
        return default
    return int(as_float)


def parse_text(value: Any, default: str) -> str:
    if _is_blank(value):
        return default
    return str(value)


def parse_size(size: Any, default: tuple[int, int] = (DEFAULT_WIDTH, DEFAULT_HEIGHT)) -> tuple[int, int]:
    """Split `"<width>x<height>"`; malformed input yields `default`."""
    if _is_blank(size):
        return default
    parts = str(size).strip().lower().split("x")
    if len(parts) != 2:
        return default
    width = parse_int(parts[0], 0)
    height = parse_int(parts[1], 0)
    if width <= 0 or height <= 0:
        return default
    return width, height


def normalize_parameters(
    raw: Mapping[str, Any],
    *,
    positive_prompt: Optional[str] = None,
    loras: Sequence[LoRAReference] = (),
    upscale: Optional[UpscaleSpec] = None,
    default_model: str = DEFAULT_MODEL,
    default_size: str = DEFAULT_SIZE,
) -> GenerationParameters:
    """
    Build typed `GenerationParameters` from a raw parameter map.

    Args:
        raw: String-keyed map (`positive_prompt`, `steps`, `cfg`, `size`, ...).
        positive_prompt: Overrides the raw prompt (e.g. with LoRA tags stripped).
        loras: Already-extracted LoRA references.
        upscale: Already-resolved hi-res settings, if any.
        default_model: Checkpoint used when `model` is missing.
        default_size: Canvas size used when `size` is missing or malformed.
    """
    default_dims = parse_size(default_size)
    size_text = parse_text(raw.get("size"), default_size)
    width, height = parse_size(size_text, default_dims)
    prompt = positive_prompt if positive_prompt is not None else parse_text(raw.get("positive_prompt"), "")

    return GenerationParameters(
        positive_prompt=prompt,
        negative_prompt=parse_text(raw.get("negative_prompt"), ""),
        steps=parse_int(raw.get("steps"), DEFAULT_STEPS),
        cfg=parse_float(raw.get("cfg"), DEFAULT_CFG),
        sampler=parse_text(raw.get("sampler"), DEFAULT_SAMPLER),
        seed=parse_int(raw.get("seed"), DEFAULT_SEED),
        model=parse_text(raw.get("model"), default_model),
        size=size_text,
        width=width,
        height=height,
        loras=list(loras),
        upscale=upscale,
    )
