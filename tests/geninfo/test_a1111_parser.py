import pytest

from xp_backend.features.geninfo.a1111_parser import (
    contains_a1111_parameters,
    extract_generation_settings,
    is_valid_prompt_separation,
    parse_a1111_parameters,
    separate_prompts,
    validate_a1111_format,
    validate_a1111_parameters,
)
from xp_backend.features.workflow.converter import convert_a1111_to_comfyui


def test_parse_full_parameters(a1111_text) -> None:
    params = parse_a1111_parameters(a1111_text)
    assert params["positive_prompt"] == "masterpiece, 1girl <lora:style1:0.8> <lora:detail tweaker:0.5>"
    assert params["negative_prompt"] == "lowres, bad anatomy"
    assert params["steps"] == 28
    assert params["sampler"] == "DPM++ 2M Karras"
    assert params["cfg"] == 6.5
    assert params["seed"] == 1234
    assert params["size"] == "832x1216"
    assert params["model"] == "animagine-xl"
    assert params["denoise"] == 0.4
    assert params["hires_fix"] is True
    assert params["hires_steps"] == 12
    assert params["hires_upscaler"] == "4x-UltraSharp"
    assert params["raw_text"] == a1111_text.strip()


def test_hires_steps_not_read_as_steps() -> None:
    settings = extract_generation_settings("Hires steps: 5, Steps: 30")
    assert settings["steps"] == 30
    assert settings["hires_steps"] == 5


def test_prompt_only_text() -> None:
    params = parse_a1111_parameters("just a prompt")
    assert params == {"positive_prompt": "just a prompt", "raw_text": "just a prompt"}


def test_negative_without_parameters_block() -> None:
    sep = separate_prompts("cat\nNegative prompt: dog")
    assert sep.positive == "cat"
    assert sep.negative == "dog"


def test_parameters_without_negative() -> None:
    sep = separate_prompts("a red fox\nSteps: 20, Seed: 1")
    assert sep.positive == "a red fox"
    assert sep.negative == ""
    assert "negative_prompt" not in parse_a1111_parameters("a red fox\nSteps: 20, Seed: 1")


@pytest.mark.parametrize("value", ["", "   ", None, 42])
def test_parse_rejects_invalid_input(value) -> None:
    with pytest.raises(ValueError):
        parse_a1111_parameters(value)


def test_restore_faces_and_clip_skip() -> None:
    settings = extract_generation_settings("Steps: 10, Clip skip: 2, Restore faces: CodeFormer, ENSD: 31337")
    assert settings["clip_skip"] == 2
    assert settings["restore_faces"] is True
    assert settings["ensd"] == "31337"


def test_format_checks(a1111_text) -> None:
    assert validate_a1111_format(a1111_text)
    assert not validate_a1111_format("hello world")
    assert not validate_a1111_format(None)
    assert contains_a1111_parameters("x, CFG scale: 7")
    assert not contains_a1111_parameters({"Steps:": 1})


def test_prompt_separation_validity() -> None:
    assert is_valid_prompt_separation("cat\nNegative prompt: dog\nSteps: 20")
    assert not is_valid_prompt_separation("Negative prompt: only negative")
    assert not is_valid_prompt_separation("")


def test_validate_parameter_ranges() -> None:
    assert validate_a1111_parameters({"positive_prompt": "x", "steps": 20, "cfg": 7.0})
    assert not validate_a1111_parameters({"positive_prompt": "x", "steps": 0})
    assert not validate_a1111_parameters({"positive_prompt": "x", "cfg": 31})
    assert not validate_a1111_parameters({"positive_prompt": "x", "denoise": "0.5"})
    assert not validate_a1111_parameters({"positive_prompt": ""})
    assert not validate_a1111_parameters(None)


def test_parsed_parameters_convert(a1111_text) -> None:
    result = convert_a1111_to_comfyui(parse_a1111_parameters(a1111_text))
    assert result.success
    assert [lora.name for lora in result.loras] == ["style1", "detail tweaker"]
    assert result.upscaler is not None
    assert result.upscaler.model == "4x-UltraSharp"
    assert result.upscaler.steps == 12
    sampler = next(n for n in result.workflow["nodes"] if n["type"] == "KSampler")
    assert sampler["widgets_values"][:5] == [1234, "randomize", 28, 6.5, "DPM++ 2M Karras"]
