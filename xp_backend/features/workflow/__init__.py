"""
A1111 -> ComfyUI workflow synthesis.
"""
from .converter import (
    ConversionOptions,
    ConversionResult,
    convert_a1111_to_comfyui,
    should_convert_to_comfyui,
)
from .document import WORKFLOW_SCHEMA_VERSION, assemble_workflow_document, validate_workflow_document
from .graph_builder import GraphBuildError, WorkflowGraphBuilder
from .lora_tags import extract_lora_tags, strip_lora_tags
from .params import GenerationParameters, LoRAReference, UpscaleSpec, normalize_parameters
from .upscale import resolve_upscale

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "convert_a1111_to_comfyui",
    "should_convert_to_comfyui",
    "WORKFLOW_SCHEMA_VERSION",
    "assemble_workflow_document",
    "validate_workflow_document",
    "GraphBuildError",
    "WorkflowGraphBuilder",
    "extract_lora_tags",
    "strip_lora_tags",
    "GenerationParameters",
    "LoRAReference",
    "UpscaleSpec",
    "normalize_parameters",
    "resolve_upscale",
]
