import pytest

from xp_backend.features.workflow.lora_tags import extract_lora_tags, strip_lora_tags
from xp_backend.features.workflow.params import (
    DEFAULT_CFG,
    DEFAULT_SEED,
    DEFAULT_STEPS,
    GenerationParameters,
    LoRAReference,
    normalize_parameters,
    parse_float,
    parse_int,
    parse_size,
)
from xp_backend.features.workflow.upscale import resolve_upscale


def test_extract_lora_tags_in_prompt_order() -> None:
    loras = extract_lora_tags("<lora:style1:0.8> <lora:style2:0.6>")
    assert [lora.to_dict() for lora in loras] == [
        {"name": "style1", "strength": 0.8, "path": "style1.safetensors"},
        {"name": "style2", "strength": 0.6, "path": "style2.safetensors"},
    ]


def test_extract_lora_tags_keeps_duplicates_and_trims_names() -> None:
    loras = extract_lora_tags("a <lora: my style :1> b <lora: my style :1>")
    assert loras == [LoRAReference("my style", 1.0), LoRAReference("my style", 1.0)]


def test_extract_lora_tags_skips_unparseable_strength() -> None:
    assert extract_lora_tags("<lora:broken:1.2.3> <lora:ok:0.5>") == [LoRAReference("ok", 0.5)]
    assert extract_lora_tags("<lora:nostrength>") == []
    assert extract_lora_tags("") == []


def test_strip_lora_tags_collapses_whitespace() -> None:
    assert strip_lora_tags("a   <lora:test:1.0>   b") == "a b"
    assert strip_lora_tags("<lora:x:1>") == ""
    assert strip_lora_tags("") == ""


def test_resolve_upscale_all_fields() -> None:
    spec = resolve_upscale(
        {"hires_fix": "true", "hires_upscaler": "ESRGAN_4x", "hires_steps": "15", "hires_denoising": "0.7"}
    )
    assert spec is not None
    assert spec.to_dict() == {"model": "ESRGAN_4x", "steps": 15, "denoising": 0.7, "scale": 2.0}


def test_resolve_upscale_absent_without_flag_or_upscaler() -> None:
    assert resolve_upscale({}) is None
    assert resolve_upscale({"hires_fix": "false"}) is None
    assert resolve_upscale({"hires_fix": "yes"}) is None
    assert resolve_upscale({"hires_upscaler": "   "}) is None


def test_resolve_upscale_fields_fall_back_independently() -> None:
    spec = resolve_upscale({"hires_fix": "True", "hires_steps": "many", "hires_denoising": "1.8"})
    assert spec is not None
    assert spec.model == "ESRGAN_4x"
    assert spec.steps == 10
    assert spec.denoising == 1.0
    assert spec.scale == 2.0

    only_upscaler = resolve_upscale({"hires_upscaler": "Latent"})
    assert only_upscaler is not None and only_upscaler.model == "Latent"

    assert resolve_upscale({"hires_fix": True}) is not None


@pytest.mark.parametrize(
    "value, expected",
    [("12", 12), (" 7.9 ", 7), ("-3", -3), ("abc", 5), ("", 5), (None, 5), (True, 5), (9, 9)],
)
def test_parse_int_falls_back_to_default(value, expected) -> None:
    assert parse_int(value, 5) == expected


def test_parse_float_rejects_non_finite() -> None:
    assert parse_float("6.5", 1.0) == 6.5
    assert parse_float("nan", 1.0) == 1.0
    assert parse_float("inf", 1.0) == 1.0
    assert parse_float("x", 1.0) == 1.0


def test_parse_size_malformed_uses_default() -> None:
    assert parse_size("832x1216") == (832, 1216)
    assert parse_size("832X1216") == (832, 1216)
    assert parse_size("big") == (512, 512)
    assert parse_size("0x100") == (512, 512)
    assert parse_size("1x2x3", (64, 64)) == (64, 64)


def test_normalize_parameters_defaults_for_empty_map() -> None:
    params = normalize_parameters({})
    assert params == GenerationParameters()
    assert params.steps == DEFAULT_STEPS
    assert params.cfg == DEFAULT_CFG
    assert params.seed == DEFAULT_SEED


def test_normalize_parameters_non_numeric_fields_do_not_raise() -> None:
    params = normalize_parameters({"steps": "twenty", "cfg": "high", "seed": "random", "size": "oops"})
    assert (params.steps, params.cfg, params.seed) == (DEFAULT_STEPS, DEFAULT_CFG, DEFAULT_SEED)
    assert (params.width, params.height) == (512, 512)


def test_normalize_parameters_uses_overrides() -> None:
    params = normalize_parameters(
        {"positive_prompt": "raw <lora:a:1>", "size": "640x480"},
        positive_prompt="raw",
        default_model="custom.ckpt",
    )
    assert params.positive_prompt == "raw"
    assert params.model == "custom.ckpt"
    assert (params.width, params.height) == (640, 480)
