"""
Summaries of an extracted ComfyUI graph for human-readable output.

Handles both shapes ComfyUI embeds: the API prompt graph
(`{"3": {"class_type": ..., "inputs": {...}}}`) and the UI workflow
(`{"nodes": [...], "links": [...]}`). UI workflows are first flattened into
the prompt-graph shape; widget values are named through `NODE_KINDS` where
the node type is known.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..workflow.node_types import NODE_KINDS

_LORA_TAG_RE = re.compile(r"<lora:([^:>]+):([0-9.]+)>")
_NUMERIC_KEY_RE = re.compile(r"^\d+$")
RGTHREE_LORA_LOADER = "Power Lora Loader (rgthree)"
_PROMPT_NODE_TYPES = ("CLIPTextEncode", "WanVideoTextEncode", "Text Multiline", "easy showAnything")


@dataclass
class WorkflowInfo:
    node_count: int = 0
    node_types: List[str] = field(default_factory=list)
    has_prompt: bool = False
    has_model: bool = False


@dataclass
class PromptPair:
    positive: str = ""
    negative: Optional[str] = None


@dataclass
class WorkflowData:
    loras: List[Dict[str, Any]] = field(default_factory=list)
    prompts: List[PromptPair] = field(default_factory=list)
    sampler_settings: Optional[Dict[str, Any]] = None
    models: List[str] = field(default_factory=list)


def _basename(value: str) -> str:
    return value.replace("\\", "/").split("/")[-1] or value


def _named_widgets(node_type: str, widgets: List[Any]) -> Dict[str, Any]:
    kind = NODE_KINDS.get(node_type)
    if kind is not None:
        return {name: value for name, value in zip(kind.widgets, widgets)}
    named: Dict[str, Any] = {}
    strings = [w for w in widgets if isinstance(w, str)]
    if "TextEncode" in node_type and strings:
        named["text"] = strings[0]
    elif "Lora" in node_type and strings:
        named["lora_name"] = strings[0]
        numbers = [w for w in widgets if isinstance(w, (int, float)) and not isinstance(w, bool)]
        if numbers:
            named["strength_model"] = numbers[0]
    elif ("CheckpointLoader" in node_type or "ModelLoader" in node_type) and strings:
        named["ckpt_name"] = strings[0]
    return named


def ui_workflow_to_prompt_graph(workflow: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a UI workflow into `{node_id: {"class_type", "inputs"}}`."""
    link_lookup: Dict[Any, tuple[Any, Any]] = {}
    for link in workflow.get("links") or []:
        if isinstance(link, (list, tuple)) and len(link) >= 5:
            link_lookup[link[0]] = (link[1], link[2])

    graph: Dict[str, Any] = {}
    for node in workflow.get("nodes") or []:
        if not isinstance(node, dict) or "id" not in node:
            continue
        node_type = str(node.get("type") or "")
        widgets = node.get("widgets_values")
        inputs: Dict[str, Any] = _named_widgets(node_type, widgets) if isinstance(widgets, list) else {}
        for slot in node.get("inputs") or []:
            if not isinstance(slot, dict):
                continue
            source = link_lookup.get(slot.get("link"))
            if source is not None and slot.get("name"):
                inputs[str(slot["name"])] = [str(source[0]), source[1]]
        graph[str(node["id"])] = {"class_type": node_type, "inputs": inputs}
    return graph


def as_prompt_graph(workflow: Any) -> Dict[str, Any]:
    """Return the API prompt-graph view of whatever graph shape was extracted."""
    if not isinstance(workflow, dict):
        return {}
    if isinstance(workflow.get("nodes"), list):
        return ui_workflow_to_prompt_graph(workflow)
    prompt = workflow.get("prompt")
    if isinstance(prompt, str):
        try:
            prompt = json.loads(prompt)
        except ValueError:
            prompt = None
    if isinstance(prompt, dict):
        return prompt
    return workflow


def _graph_nodes(graph: Dict[str, Any]):
    for node_id, node in graph.items():
        if _NUMERIC_KEY_RE.match(str(node_id)) and isinstance(node, dict):
            yield str(node_id), node


def extract_workflow_info(workflow: Any) -> WorkflowInfo:
    info = WorkflowInfo()
    types: List[str] = []
    for _, node in _graph_nodes(as_prompt_graph(workflow)):
        info.node_count += 1
        class_type = node.get("class_type")
        if not isinstance(class_type, str) or not class_type:
            continue
        if class_type not in types:
            types.append(class_type)
        lowered = class_type.lower()
        if "prompt" in lowered or "textencode" in lowered:
            info.has_prompt = True
        if "model" in lowered or "checkpoint" in lowered:
            info.has_model = True
    info.node_types = types
    return info


def _find_prompt_connections(graph: Dict[str, Any]) -> tuple[set[str], set[str]]:
    positive: set[str] = set()
    negative: set[str] = set()
    for _, node in _graph_nodes(graph):
        if "Sampler" not in str(node.get("class_type") or ""):
            continue
        inputs = node.get("inputs") or {}
        if isinstance(inputs.get("positive"), list) and inputs["positive"]:
            positive.add(str(inputs["positive"][0]))
        if isinstance(inputs.get("negative"), list) and inputs["negative"]:
            negative.add(str(inputs["negative"][0]))
    return positive, negative


def _collect_loras(class_type: str, inputs: Dict[str, Any], out: List[Dict[str, Any]]) -> None:
    if class_type == RGTHREE_LORA_LOADER:
        for key, cfg in inputs.items():
            if key.startswith("lora_") and isinstance(cfg, dict) and cfg.get("on") is True and cfg.get("lora"):
                if cfg.get("strength") is not None:
                    out.append({"name": _basename(str(cfg["lora"])), "strength": cfg["strength"]})
    lora = inputs.get("lora") or inputs.get("lora_name")
    strength = inputs.get("strength", inputs.get("strength_model"))
    if isinstance(lora, str) and strength is not None:
        out.append({"name": _basename(lora), "strength": strength})
    text = inputs.get("text")
    if isinstance(text, str):
        for name, value in _LORA_TAG_RE.findall(text):
            out.append({"name": _basename(name), "strength": float(value)})


def _merge_prompt_pairs(prompts: List[PromptPair]) -> List[PromptPair]:
    positives = [p.positive for p in prompts if p.positive]
    negatives = [p.negative for p in prompts if p.negative]
    if not positives or not negatives:
        return [p for p in prompts if p.positive or p.negative]
    merged: List[PromptPair] = []
    for idx in range(max(len(positives), len(negatives))):
        pos = positives[idx] if idx < len(positives) else ""
        neg = negatives[idx] if idx < len(negatives) else None
        if pos or neg:
            merged.append(PromptPair(pos, neg))
    return merged


def extract_workflow_data(workflow: Any) -> WorkflowData:
    """LoRAs, prompts (paired via sampler positive/negative links), sampler settings and models."""
    data = WorkflowData()
    graph = as_prompt_graph(workflow)
    positive_ids, negative_ids = _find_prompt_connections(graph)

    for node_id, node in _graph_nodes(graph):
        class_type = str(node.get("class_type") or "")
        inputs = node.get("inputs") if isinstance(node.get("inputs"), dict) else {}

        if "Lora" in class_type or class_type == "WanVideoLoraSelect":
            _collect_loras(class_type, inputs, data.loras)

        if class_type in _PROMPT_NODE_TYPES or "TextEncode" in class_type:
            text = inputs.get("text") or inputs.get("positive_prompt")
            if isinstance(text, str) and text.strip():
                if node_id in positive_ids:
                    data.prompts.append(PromptPair(text, None))
                elif node_id in negative_ids:
                    data.prompts.append(PromptPair("", text))
                else:
                    neg = inputs.get("negative_prompt") or inputs.get("negative")
                    data.prompts.append(PromptPair(text, neg if isinstance(neg, str) else None))

        if "Sampler" in class_type:
            cfg = inputs.get("cfg")
            data.sampler_settings = {
                "steps": inputs.get("steps"),
                "cfg": cfg if isinstance(cfg, (int, float)) else inputs.get("shift"),
                "sampler": inputs.get("sampler_name"),
                "scheduler": inputs.get("scheduler"),
                "seed": inputs.get("seed"),
                "denoise": inputs.get("denoise_strength", inputs.get("denoise")),
            }
        if class_type == "CreateCFGScheduleFloatList":
            settings = data.sampler_settings or {}
            settings["cfg_start"] = inputs.get("cfg_scale_start")
            settings["cfg_end"] = inputs.get("cfg_scale_end")
            data.sampler_settings = settings

        if any(tag in class_type for tag in ("ModelLoader", "CheckpointLoader", "VAELoader")):
            name = inputs.get("model_name") or inputs.get("ckpt_name") or inputs.get("model")
            if isinstance(name, str) and name:
                data.models.append(_basename(name))

    data.prompts = _merge_prompt_pairs(data.prompts)
    return data
