import sys

import pytest

from repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def a1111_text() -> str:
    return (
        "masterpiece, 1girl <lora:style1:0.8> <lora:detail tweaker:0.5>\n"
        "Negative prompt: lowres, bad anatomy\n"
        "Steps: 28, Sampler: DPM++ 2M Karras, CFG scale: 6.5, Seed: 1234, "
        "Size: 832x1216, Model: animagine-xl, Denoising strength: 0.4, "
        "Hires upscale: 2, Hires steps: 12, Hires upscaler: 4x-UltraSharp"
    )


@pytest.fixture
def comfy_workflow() -> dict:
    return {
        "last_node_id": 2,
        "last_link_id": 1,
        "nodes": [
            {"id": 1, "type": "CheckpointLoaderSimple", "widgets_values": ["model.safetensors"], "inputs": [], "outputs": []},
            {"id": 2, "type": "CLIPTextEncode", "widgets_values": ["a cat"], "inputs": [], "outputs": []},
        ],
        "links": [],
        "version": 0.4,
    }


@pytest.fixture
def prompt_graph() -> dict:
    return {
        "3": {
            "class_type": "KSampler",
            "inputs": {
                "seed": 42,
                "steps": 20,
                "cfg": 7.0,
                "sampler_name": "euler",
                "scheduler": "normal",
                "denoise": 1.0,
                "model": ["4", 0],
                "positive": ["6", 0],
                "negative": ["7", 0],
                "latent_image": ["5", 0],
            },
        },
        "4": {"class_type": "CheckpointLoaderSimple", "inputs": {"ckpt_name": "models/sdxl.safetensors"}},
        "5": {"class_type": "EmptyLatentImage", "inputs": {"width": 512, "height": 512, "batch_size": 1}},
        "6": {"class_type": "CLIPTextEncode", "inputs": {"text": "a cat <lora:fluffy:0.7>", "clip": ["4", 1]}},
        "7": {"class_type": "CLIPTextEncode", "inputs": {"text": "blurry", "clip": ["4", 1]}},
    }
