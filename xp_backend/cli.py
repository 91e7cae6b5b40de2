"""
extract-prompts command line.

    extract-prompts image.png outputs/ "renders/**/*.webp" --pretty
    extract-prompts a1111.png --convert-a1111 --save out/
"""
from __future__ import annotations

import argparse
import glob
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import __version__, config
from .features.metadata.service import MetadataService
from .features.output.formatter import format_output
from .features.output.saver import (
    NAME_PATTERNS,
    ORGANIZE_MODES,
    SaveOptions,
    save_extracted_data,
    save_workflow,
)
from .features.workflow.converter import ConversionOptions, convert_a1111_to_comfyui, should_convert_to_comfyui
from .shared import (
    EXTENSIONS,
    Result,
    error_from_result,
    file_id_var,
    format_error_message,
    get_error_severity,
    get_logger,
    set_log_level,
)

logger = get_logger(__name__)

_MEDIA_SUFFIXES = frozenset(EXTENSIONS["image"] | EXTENSIONS["video"])


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="extract-prompts",
        description="Extract ComfyUI workflow JSON and A1111 parameters from images and videos.",
    )
    parser.add_argument("files", nargs="+", help="Files, directories or glob patterns to process")
    output = parser.add_mutually_exclusive_group()
    output.add_argument("-p", "--pretty", action="store_true", help="Human-readable output format")
    output.add_argument("--raw", action="store_true", help="Print `file: <workflow json>` lines")
    parser.add_argument(
        "-s",
        "--save",
        nargs="?",
        const="",
        default=None,
        metavar="DIR",
        help="Save workflows to DIR (defaults to each input file's directory)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress non-error output")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite existing files when saving")
    parser.add_argument("--name-pattern", choices=NAME_PATTERNS, default="source", help="Saved file naming")
    parser.add_argument("--organize", choices=ORGANIZE_MODES, default="none", help="Organize saved files")
    parser.add_argument(
        "--convert-a1111",
        action="store_true",
        help="Convert A1111 parameters to a ComfyUI workflow and save it",
    )
    parser.add_argument(
        "--keep-lora-tags",
        action="store_true",
        help="Leave <lora:...> tags in the converted positive prompt",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def expand_inputs(patterns: Sequence[str]) -> List[str]:
    """Directories expand recursively to supported media; everything else is a glob."""
    files: List[str] = []
    for pattern in patterns:
        target = Path(pattern)
        if target.is_dir():
            files.extend(
                str(path)
                for path in sorted(target.rglob("*"))
                if path.is_file() and path.suffix.lower() in _MEDIA_SUFFIXES
            )
            continue
        matches = sorted(glob.glob(pattern, recursive=True))
        files.extend(m for m in matches if os.path.isfile(m))
    return list(dict.fromkeys(files))


def _save_directory(args: argparse.Namespace, file_path: str) -> str:
    if args.save:
        return args.save
    return os.path.dirname(file_path) or "."


def _save_options(args: argparse.Namespace, fmt: str = "json") -> SaveOptions:
    return SaveOptions(format=fmt, overwrite=args.overwrite, name_pattern=args.name_pattern, organize=args.organize)


def _info(args: argparse.Namespace, message: str) -> None:
    if not args.quiet:
        print(message)


def _report_failure(args: argparse.Namespace, file_path: str, message: str) -> None:
    if not args.quiet:
        print(f"Error processing {file_path}: {message}", file=sys.stderr)


def _convert_and_save(args: argparse.Namespace, file_path: str, parameters: Dict[str, Any], index: int) -> bool:
    options = ConversionOptions(
        strip_lora_tags=not args.keep_lora_tags,
        default_model=config.DEFAULT_MODEL_NAME,
        default_size=config.DEFAULT_CANVAS_SIZE,
        start_node_id=config.DEFAULT_START_NODE_ID,
    )
    conversion = convert_a1111_to_comfyui(parameters, options)
    if not conversion.success or conversion.workflow is None:
        if not args.quiet:
            print(f"Failed to convert A1111 parameters for {file_path}: {conversion.error}", file=sys.stderr)
        return False

    saved = save_workflow(file_path, conversion.workflow, _save_directory(args, file_path), _save_options(args), index)
    if not saved.ok:
        _report_failure(args, file_path, saved.error or "save failed")
        return bool(saved.meta.get("skipped"))

    _info(args, f"Converted A1111 parameters to ComfyUI workflow for {file_path}")
    if conversion.loras:
        _info(args, f"  Found {len(conversion.loras)} LoRA(s): {', '.join(lora.name for lora in conversion.loras)}")
    if conversion.upscaler:
        _info(args, f"  Found upscaler: {conversion.upscaler.model}")
    _info(args, f"Saved ComfyUI workflow: {saved.data.saved_file}")
    return True


def _process_file(
    args: argparse.Namespace,
    result: Result[Optional[Dict[str, Any]]],
    file_path: str,
    index: int,
    printed: List[Dict[str, Any]],
) -> bool:
    if not result.ok:
        error = error_from_result(result, file_path)
        logger.debug("Extraction failed for %s: %s (%s)", file_path, result.code, result.error)
        _report_failure(args, file_path, f"{format_error_message(error)} [{get_error_severity(error).value}]")
        return False

    data = result.data or {}
    parameters = data.get("parameters")
    has_a1111 = isinstance(parameters, dict) and should_convert_to_comfyui(parameters)
    workflow = data.get("workflow")

    if has_a1111 and args.convert_a1111:
        return _convert_and_save(args, file_path, parameters, index)

    if workflow and args.save is not None:
        directory = _save_directory(args, file_path)
        saved = save_workflow(file_path, workflow, directory, _save_options(args), index)
        if not saved.ok:
            _report_failure(args, file_path, saved.error or "save failed")
            return bool(saved.meta.get("skipped"))
        _info(args, f"Saved ComfyUI workflow from {file_path} to {directory}")
        return True

    if has_a1111 and args.save is not None:
        directory = _save_directory(args, file_path)
        item = {"file": os.path.basename(file_path), **data}
        saved_all = save_extracted_data([item], directory, _save_options(args))
        for saved in saved_all:
            if not saved.ok:
                _report_failure(args, file_path, saved.error or "save failed")
                return bool(saved.meta.get("skipped"))
        _info(args, f"Saved A1111 parameters from {file_path} to {directory}")
        return True

    printed.append({"file": file_path, **data})
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    set_log_level("DEBUG" if args.verbose else config.LOG_LEVEL)

    files = expand_inputs(args.files)
    if not files:
        print("No files found matching the specified patterns", file=sys.stderr)
        return 1

    results = MetadataService().extract_batch(files)
    printed: List[Dict[str, Any]] = []
    processed = 0
    for index, file_path in enumerate(files):
        token = file_id_var.set(os.path.basename(file_path))
        try:
            if _process_file(args, results[file_path], file_path, index, printed):
                processed += 1
        finally:
            file_id_var.reset(token)

    if printed:
        fmt = "pretty" if args.pretty else "raw" if args.raw else "json"
        output = format_output(printed, fmt)
        if output:
            sys.stdout.write(output if output.endswith("\n") else output + "\n")

    return 0 if processed else 1


if __name__ == "__main__":
    raise SystemExit(main())
