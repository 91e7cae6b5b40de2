import json

from xp_backend.features.output.formatter import format_output
from xp_backend.features.output.workflow_info import (
    PromptPair,
    extract_workflow_data,
    extract_workflow_info,
    ui_workflow_to_prompt_graph,
)
from xp_backend.features.workflow.converter import convert_a1111_to_comfyui


def _converted() -> dict:
    return convert_a1111_to_comfyui(
        {
            "positive_prompt": "a castle <lora:a:0.5>",
            "negative_prompt": "blurry",
            "steps": "30",
            "seed": "7",
            "model": "base.safetensors",
        }
    ).workflow


def test_workflow_info_for_prompt_graph(prompt_graph) -> None:
    info = extract_workflow_info(prompt_graph)
    assert info.node_count == 5
    assert info.node_types == ["KSampler", "CheckpointLoaderSimple", "EmptyLatentImage", "CLIPTextEncode"]
    assert info.has_prompt and info.has_model


def test_workflow_data_for_prompt_graph(prompt_graph) -> None:
    data = extract_workflow_data(prompt_graph)
    assert data.prompts == [PromptPair("a cat <lora:fluffy:0.7>", "blurry")]
    assert data.sampler_settings["steps"] == 20
    assert data.sampler_settings["sampler"] == "euler"
    assert data.models == ["sdxl.safetensors"]


def test_ui_workflow_flattening() -> None:
    graph = ui_workflow_to_prompt_graph(_converted())
    assert graph["1"] == {"class_type": "CheckpointLoaderSimple", "inputs": {"ckpt_name": "base.safetensors"}}
    assert graph["2"]["inputs"]["lora_name"] == "a.safetensors"
    assert graph["2"]["inputs"]["model"] == ["1", 0]
    sampler = next(node for node in graph.values() if node["class_type"] == "KSampler")
    assert sampler["inputs"]["steps"] == 30
    assert sampler["inputs"]["positive"][0] == "3"


def test_workflow_data_for_generated_workflow() -> None:
    data = extract_workflow_data(_converted())
    assert data.loras == [{"name": "a.safetensors", "strength": 0.5}]
    assert data.prompts == [PromptPair("a castle", "blurry")]
    assert data.sampler_settings["seed"] == 7
    assert data.models == ["base.safetensors"]


def test_wrapper_with_string_prompt(prompt_graph) -> None:
    info = extract_workflow_info({"prompt": json.dumps(prompt_graph)})
    assert info.node_count == 5


def test_json_format_round_trips() -> None:
    results = [{"file": "a.png", "workflow": {"1": {"class_type": "X", "inputs": {}}}}]
    out = format_output(results, "json")
    assert json.loads(out) == results
    assert out.startswith("[\n  {")


def test_raw_format_only_lists_workflows() -> None:
    results = [{"file": "a.png", "workflow": {"k": 1}}, {"file": "b.png", "parameters": {}}]
    assert format_output(results, "raw") == 'a.png: {"k":1}\n'


def test_pretty_generated_workflow() -> None:
    out = format_output([{"file": "x.png", "workflow": _converted()}], "pretty")
    lines = out.splitlines()
    assert "=== x.png ===" in lines
    assert "LoRA Models:" in lines
    assert "  1. a.safetensors (strength: 0.5)" in lines
    assert "  Positive 1: a castle" in lines
    assert "  Negative 1: blurry" in lines
    assert "  Steps: 30" in lines
    assert "  Seed: 7" in lines
    assert "  1. base.safetensors" in lines
    assert "  Total Nodes: 8" in lines
    assert (
        "  Node Types: CheckpointLoaderSimple, LoraLoader, CLIPTextEncode, EmptyLatentImage, KSampler..."
        in lines
    )


def test_pretty_prompts_without_pairing_are_numbered() -> None:
    graph = {
        "1": {"class_type": "CLIPTextEncode", "inputs": {"text": "first"}},
        "2": {"class_type": "CLIPTextEncode", "inputs": {"text": "second"}},
        "3": {"class_type": "CLIPTextEncode", "inputs": {"text": "third"}},
    }
    lines = format_output([{"file": "p.png", "workflow": graph}], "pretty").splitlines()
    assert "  1: first" in lines
    assert "  3: third" in lines
    assert not any("Positive" in line for line in lines)


def test_pretty_parameters_metadata_and_empty() -> None:
    results = [
        {"file": "a.png", "parameters": {"positive_prompt": "cat", "negative_prompt": "dog", "steps": 20}},
        {"file": "m.png", "metadata": "x" * 300},
        {"file": "n.png"},
    ]
    lines = format_output(results, "pretty").splitlines()
    assert "A1111-style Parameters:" in lines
    assert "  Positive: cat" in lines
    assert "  Negative: dog" in lines
    assert "  Steps: 20" in lines
    assert "  " + "x" * 200 + "..." in lines
    assert "No workflow found" in lines


def test_unknown_format_falls_back_to_json() -> None:
    assert json.loads(format_output([{"file": "a"}], "xml")) == [{"file": "a"}]
