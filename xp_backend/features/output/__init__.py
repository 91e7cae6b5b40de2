"""Formatting and saving of extraction results."""
from .formatter import OUTPUT_FORMATS, format_output
from .saver import (
    NAME_PATTERNS,
    ORGANIZE_MODES,
    SavedFile,
    SaveOptions,
    SaveStats,
    calculate_save_stats,
    handle_duplicate_names,
    save_extracted_data,
    save_workflow,
)
from .workflow_info import WorkflowData, WorkflowInfo, extract_workflow_data, extract_workflow_info

__all__ = [
    "OUTPUT_FORMATS",
    "format_output",
    "NAME_PATTERNS",
    "ORGANIZE_MODES",
    "SavedFile",
    "SaveOptions",
    "SaveStats",
    "calculate_save_stats",
    "handle_duplicate_names",
    "save_extracted_data",
    "save_workflow",
    "WorkflowData",
    "WorkflowInfo",
    "extract_workflow_data",
    "extract_workflow_info",
]
