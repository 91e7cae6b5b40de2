"""
Console output formats for extraction results: `json`, `pretty`, `raw`.

Each result is a dict with a `file` key plus whatever the extractor found
(`workflow`, `parameters`, `metadata`, ...).
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Literal

from .workflow_info import extract_workflow_data, extract_workflow_info

OutputFormat = Literal["json", "pretty", "raw"]
OUTPUT_FORMATS = ("json", "pretty", "raw")
_METADATA_PREVIEW = 200
_NODE_TYPES_SHOWN = 5


def _format_json(results: List[Dict[str, Any]]) -> str:
    return json.dumps(results, indent=2, ensure_ascii=False, default=str)


def _pretty_workflow(workflow: Any, lines: List[str]) -> None:
    data = extract_workflow_data(workflow)
    lines.append("ComfyUI Workflow:")

    if data.loras:
        lines.append("")
        lines.append("LoRA Models:")
        for idx, lora in enumerate(data.loras, 1):
            lines.append(f"  {idx}. {lora['name']} (strength: {lora['strength']})")

    if data.prompts:
        lines.append("")
        lines.append("Prompts:")
        # Only label positive/negative when a clearly distinct pair was found
        distinguish = len(data.prompts) <= 2 and any(
            p.positive and p.negative and p.positive != p.negative for p in data.prompts
        )
        for idx, prompt in enumerate(data.prompts, 1):
            if prompt.positive:
                label = f"Positive {idx}" if distinguish else str(idx)
                lines.append(f"  {label}: {prompt.positive}")
            if prompt.negative:
                if distinguish:
                    lines.append("")
                    lines.append(f"  Negative {idx}: {prompt.negative}")
                else:
                    lines.append(f"  {idx}: {prompt.negative}")

    settings = data.sampler_settings
    if settings:
        lines.append("")
        lines.append("Sampler Settings:")
        if settings.get("steps"):
            lines.append(f"  Steps: {settings['steps']}")
        if settings.get("cfg") is not None:
            lines.append(f"  CFG Scale: {settings['cfg']}")
        if settings.get("cfg_start") is not None and settings.get("cfg_end") is not None:
            lines.append(f"  CFG Schedule: {settings['cfg_start']} -> {settings['cfg_end']}")
        if settings.get("sampler"):
            lines.append(f"  Sampler: {settings['sampler']}")
        if settings.get("scheduler"):
            lines.append(f"  Scheduler: {settings['scheduler']}")
        if settings.get("seed") is not None:
            lines.append(f"  Seed: {settings['seed']}")
        if settings.get("denoise") is not None:
            lines.append(f"  Denoise: {settings['denoise']}")

    if data.models:
        lines.append("")
        lines.append("Models:")
        for idx, model in enumerate(data.models, 1):
            lines.append(f"  {idx}. {model}")

    info = extract_workflow_info(workflow)
    shown = ", ".join(info.node_types[:_NODE_TYPES_SHOWN])
    more = "..." if len(info.node_types) > _NODE_TYPES_SHOWN else ""
    lines.append("")
    lines.append("Workflow Stats:")
    lines.append(f"  Total Nodes: {info.node_count}")
    lines.append(f"  Node Types: {shown}{more}")


def _pretty_parameters(params: Dict[str, Any], lines: List[str]) -> None:
    lines.append("A1111-style Parameters:")
    if params.get("positive_prompt"):
        lines.append("")
        lines.append("Prompts:")
        lines.append(f"  Positive: {params['positive_prompt']}")
        if params.get("negative_prompt"):
            lines.append("")
            lines.append(f"  Negative: {params['negative_prompt']}")
    lines.append("")
    lines.append("Generation Settings:")
    for key, label in (("steps", "Steps"), ("cfg", "CFG Scale"), ("sampler", "Sampler"), ("seed", "Seed"), ("model", "Model"), ("size", "Size")):
        if params.get(key):
            lines.append(f"  {label}: {params[key]}")


def _format_pretty(results: List[Dict[str, Any]]) -> str:
    lines: List[str] = []
    for result in results:
        lines.append("")
        lines.append(f"=== {result.get('file')} ===")
        if result.get("workflow"):
            _pretty_workflow(result["workflow"], lines)
        elif isinstance(result.get("parameters"), dict):
            _pretty_parameters(result["parameters"], lines)
        elif result.get("metadata"):
            text = str(result["metadata"])
            suffix = "..." if len(text) > _METADATA_PREVIEW else ""
            lines.append("Metadata found:")
            lines.append(f"  {text[:_METADATA_PREVIEW]}{suffix}")
        else:
            lines.append("No workflow found")
        lines.append("")
    return "\n".join(lines) + "\n"


def _format_raw(results: List[Dict[str, Any]]) -> str:
    return "".join(
        f"{result.get('file')}: {json.dumps(result['workflow'], ensure_ascii=False, separators=(',', ':'))}\n"
        for result in results
        if result.get("workflow")
    )


def format_output(results: Iterable[Dict[str, Any]], fmt: str = "json") -> str:
    """Render results in `fmt`; unknown formats fall back to JSON."""
    items = list(results)
    if fmt == "pretty":
        return _format_pretty(items)
    if fmt == "raw":
        return _format_raw(items)
    return _format_json(items)
