"""
A1111 -> ComfyUI conversion entry point.

`convert_a1111_to_comfyui` never raises: any failure while building the graph
is logged and reported as `ConversionResult(success=False, error=...)` so a
batch run can keep going.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ...shared import get_logger
from .document import assemble_workflow_document, validate_workflow_document
from .graph_builder import GraphBuildError, WorkflowGraphBuilder
from .lora_tags import extract_lora_tags, strip_lora_tags
from .params import DEFAULT_MODEL, DEFAULT_SIZE, LoRAReference, UpscaleSpec, normalize_parameters, parse_text
from .upscale import resolve_upscale

logger = get_logger(__name__)

ERROR_PREFIX = "Conversion error:"


@dataclass
class ConversionOptions:
    strip_lora_tags: bool = True
    default_model: str = DEFAULT_MODEL
    default_size: str = DEFAULT_SIZE
    start_node_id: int = 1


@dataclass
class ConversionResult:
    success: bool
    original_parameters: dict[str, Any]
    workflow: Optional[dict[str, Any]] = None
    loras: list[LoRAReference] = field(default_factory=list)
    upscaler: Optional[UpscaleSpec] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            out["workflow"] = self.workflow
            out["loras"] = [lora.to_dict() for lora in self.loras]
            out["upscaler"] = self.upscaler.to_dict() if self.upscaler else None
        else:
            out["error"] = self.error
        out["original_parameters"] = self.original_parameters
        return out


def should_convert_to_comfyui(parameters: Optional[Mapping[str, Any]]) -> bool:
    """True when the map carries enough A1111 fields to be worth converting."""
    if not parameters:
        return False
    for key in ("positive_prompt", "steps", "cfg"):
        value = parameters.get(key)
        if value is None or value is False:
            continue
        if isinstance(value, str) and not value:
            continue
        return True
    return False


def convert_a1111_to_comfyui(
    parameters: Optional[Mapping[str, Any]],
    options: Optional[ConversionOptions] = None,
) -> ConversionResult:
    opts = options or ConversionOptions()
    raw: dict[str, Any] = {}
    try:
        raw = dict(parameters or {})
        raw_prompt = parse_text(raw.get("positive_prompt"), "")
        loras = extract_lora_tags(raw_prompt)
        upscaler = resolve_upscale(raw)
        prompt = strip_lora_tags(raw_prompt) if opts.strip_lora_tags else raw_prompt

        params = normalize_parameters(
            raw,
            positive_prompt=prompt,
            loras=loras,
            upscale=upscaler,
            default_model=opts.default_model,
            default_size=opts.default_size,
        )
        builder = WorkflowGraphBuilder(start_node_id=opts.start_node_id)
        nodes, links = builder.build(params)
        workflow = assemble_workflow_document(nodes, links)

        problems = validate_workflow_document(workflow)
        if problems:
            raise GraphBuildError("; ".join(problems))
    except Exception as exc:
        logger.warning("A1111 conversion failed: %s", exc)
        return ConversionResult(
            success=False,
            original_parameters=raw,
            error=f"{ERROR_PREFIX} {exc}",
        )

    logger.debug(
        "Converted A1111 parameters: %d nodes, %d LoRA, hires=%s",
        len(workflow["nodes"]), len(loras), upscaler is not None,
    )
    return ConversionResult(
        success=True,
        original_parameters=raw,
        workflow=workflow,
        loras=loras,
        upscaler=upscaler,
    )
