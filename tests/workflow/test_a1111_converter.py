import pytest

from xp_backend import config
from xp_backend.features.workflow import converter as converter_mod
from xp_backend.features.workflow.converter import (
    ERROR_PREFIX,
    ConversionOptions,
    convert_a1111_to_comfyui,
    should_convert_to_comfyui,
)
from xp_backend.features.workflow.document import validate_workflow_document


def _types(workflow: dict) -> list[str]:
    return [node["type"] for node in workflow["nodes"]]


def test_minimal_conversion() -> None:
    result = convert_a1111_to_comfyui({"positive_prompt": "test"})
    assert result.success is True
    assert result.error is None
    assert result.loras == []
    assert result.upscaler is None
    assert _types(result.workflow).count("KSampler") == 1
    assert len(result.workflow["nodes"]) == 7
    assert validate_workflow_document(result.workflow) == []


def test_conversion_of_empty_map_uses_defaults() -> None:
    result = convert_a1111_to_comfyui({})
    assert result.success is True
    ckpt = result.workflow["nodes"][0]
    assert ckpt["type"] == "CheckpointLoaderSimple"
    assert ckpt["widgets_values"] == ["sd_xl_base_1.0.safetensors"]
    assert ckpt["id"] == 1


def test_conversion_full_parameters() -> None:
    params = {
        "positive_prompt": "a castle <lora:style1:0.8>  at dusk <lora:style2:0.6>",
        "negative_prompt": "blurry",
        "steps": "30",
        "cfg": "6.5",
        "sampler": "Euler a",
        "seed": "1234",
        "model": "dreamshaper.safetensors",
        "size": "768x512",
        "hires_upscaler": "4x-UltraSharp",
        "hires_steps": "15",
        "hires_denoising": "0.35",
    }
    result = convert_a1111_to_comfyui(params)
    assert result.success
    assert [lora.name for lora in result.loras] == ["style1", "style2"]
    assert result.upscaler is not None and result.upscaler.model == "4x-UltraSharp"

    workflow = result.workflow
    types = _types(workflow)
    assert types.count("LoraLoader") == 2
    assert types.count("KSampler") == 2
    assert "UpscaleModelLoader" in types and "ImageUpscaleWithModel" in types

    encoders = [n for n in workflow["nodes"] if n["type"] == "CLIPTextEncode"]
    assert encoders[0]["widgets_values"] == ["a castle at dusk"]
    assert encoders[1]["widgets_values"] == ["blurry"]

    latent = next(n for n in workflow["nodes"] if n["type"] == "EmptyLatentImage")
    assert latent["widgets_values"] == [768, 512, 1]
    assert result.original_parameters == params


def test_keep_lora_tags_still_extracts_loras() -> None:
    result = convert_a1111_to_comfyui(
        {"positive_prompt": "x <lora:keep:1.0>"},
        ConversionOptions(strip_lora_tags=False),
    )
    assert result.success
    assert [lora.name for lora in result.loras] == ["keep"]
    encoder = next(n for n in result.workflow["nodes"] if n["type"] == "CLIPTextEncode")
    assert encoder["widgets_values"] == ["x <lora:keep:1.0>"]


def test_start_node_id_option() -> None:
    result = convert_a1111_to_comfyui({"positive_prompt": "x"}, ConversionOptions(start_node_id=5))
    ids = [n["id"] for n in result.workflow["nodes"]]
    assert ids == list(range(5, 5 + len(ids)))
    assert result.workflow["last_node_id"] == ids[-1]


def test_default_size_and_model_options() -> None:
    result = convert_a1111_to_comfyui(
        {"size": "garbage"},
        ConversionOptions(default_model="base.ckpt", default_size="1024x1024"),
    )
    nodes = result.workflow["nodes"]
    assert nodes[0]["widgets_values"] == ["base.ckpt"]
    latent = next(n for n in nodes if n["type"] == "EmptyLatentImage")
    assert latent["widgets_values"][:2] == [1024, 1024]


def test_conversion_never_raises(monkeypatch) -> None:
    class _Boom:
        def __init__(self, *args, **kwargs):
            pass

        def build(self, params):
            raise RuntimeError("builder exploded")

    monkeypatch.setattr(converter_mod, "WorkflowGraphBuilder", _Boom)
    result = convert_a1111_to_comfyui({"positive_prompt": "x"})
    assert result.success is False
    assert result.workflow is None
    assert result.error == f"{ERROR_PREFIX} builder exploded"
    assert result.to_dict() == {
        "success": False,
        "error": f"{ERROR_PREFIX} builder exploded",
        "original_parameters": {"positive_prompt": "x"},
    }


def test_invalid_start_node_id_is_reported() -> None:
    result = convert_a1111_to_comfyui({"positive_prompt": "x"}, ConversionOptions(start_node_id=0))
    assert result.success is False
    assert result.error.startswith(ERROR_PREFIX)


def test_to_dict_success_shape() -> None:
    data = convert_a1111_to_comfyui({"positive_prompt": "<lora:a:0.5> b", "hires_fix": "true"}).to_dict()
    assert set(data) == {"success", "workflow", "loras", "upscaler", "original_parameters"}
    assert data["loras"] == [{"name": "a", "strength": 0.5, "path": "a.safetensors"}]
    assert data["upscaler"] == {"model": "ESRGAN_4x", "steps": 10, "denoising": 0.5, "scale": 2.0}


@pytest.mark.parametrize(
    "params, expected",
    [
        ({"positive_prompt": "x"}, True),
        ({"steps": "20"}, True),
        ({"cfg": 7}, True),
        ({"positive_prompt": ""}, False),
        ({"seed": "1"}, False),
        ({}, False),
        (None, False),
    ],
)
def test_should_convert_to_comfyui(params, expected) -> None:
    assert should_convert_to_comfyui(params) is expected


def test_defaults_ignore_environment_overrides(monkeypatch) -> None:
    monkeypatch.setattr(config, "DEFAULT_MODEL_NAME", "other.ckpt")
    monkeypatch.setattr(config, "DEFAULT_START_NODE_ID", 50)
    opts = ConversionOptions()
    assert (opts.default_model, opts.default_size, opts.start_node_id) == ("sd_xl_base_1.0.safetensors", "512x512", 1)

    result = convert_a1111_to_comfyui({"positive_prompt": "x"})
    assert result.workflow["nodes"][0]["id"] == 1
    assert result.workflow["nodes"][0]["widgets_values"] == ["sd_xl_base_1.0.safetensors"]


@pytest.mark.parametrize("parameters", [[1, 2], 42, "positive_prompt"])
def test_non_mapping_input_is_reported_not_raised(parameters) -> None:
    result = convert_a1111_to_comfyui(parameters)
    assert result.success is False
    assert result.workflow is None
    assert result.error.startswith(ERROR_PREFIX)
    assert result.original_parameters == {}
