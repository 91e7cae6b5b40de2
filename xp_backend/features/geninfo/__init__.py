"""
Generation-info parsing (Automatic1111 parameters text).
"""
from .a1111_parser import (
    PromptSeparation,
    contains_a1111_parameters,
    extract_generation_settings,
    is_valid_prompt_separation,
    parse_a1111_parameters,
    separate_prompts,
    validate_a1111_format,
    validate_a1111_parameters,
)

__all__ = [
    "PromptSeparation",
    "contains_a1111_parameters",
    "extract_generation_settings",
    "is_valid_prompt_separation",
    "parse_a1111_parameters",
    "separate_prompts",
    "validate_a1111_format",
    "validate_a1111_parameters",
]
