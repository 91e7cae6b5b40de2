"""
Save extracted workflows / parameters to disk.

Writes go through a temp file in the target directory and are moved into
place, so an interrupted run never leaves a half-written JSON behind.
"""
from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional

from ...shared import ErrorCode, Result, get_logger, log_success, sanitize_error_message
from .formatter import format_output

logger = get_logger(__name__)

NamePattern = Literal["source", "sequential", "timestamp"]
OrganizeMode = Literal["none", "format", "date"]
NAME_PATTERNS = ("source", "sequential", "timestamp")
ORGANIZE_MODES = ("none", "format", "date")
WORKFLOW_SUBDIR = "workflows"
_EXTENSIONS = {"json": ".json", "pretty": ".txt", "raw": ".txt"}


@dataclass
class SaveOptions:
    format: str = "json"
    overwrite: bool = False
    name_pattern: str = "source"
    organize: str = "none"


@dataclass
class SavedFile:
    source_file: str
    saved_file: str
    size: int


@dataclass
class SaveStats:
    total_files: int = 0
    saved_files: int = 0
    skipped_files: int = 0
    errors: int = 0
    total_size: int = 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def date_folder(when: Optional[datetime] = None) -> str:
    """`YYYY-MM-DD` (UTC) folder name used by `organize="date"`."""
    return (when or _utc_now()).strftime("%Y-%m-%d")


def _source_stem(source_file: str) -> str:
    return Path(str(source_file)).stem or "workflow"


def workflow_file_name(source_file: str, name_pattern: str = "source", index: int = 0) -> str:
    if name_pattern == "timestamp":
        stamp = _utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return f"workflow_{stamp.replace(':', '-').replace('.', '-')}.json"
    if name_pattern == "sequential":
        return f"workflow_{index + 1:03d}.json"
    return f"{_source_stem(source_file)}_workflow.json"


def data_file_name(source_file: str, name_pattern: str = "source", fmt: str = "json", index: int = 0) -> str:
    extension = _EXTENSIONS.get(fmt, ".json")
    if name_pattern == "sequential":
        base = f"workflow_{index + 1:03d}"
    elif name_pattern == "timestamp":
        base = f"workflow_{int(_utc_now().timestamp() * 1000)}_{index}"
    else:
        base = _source_stem(source_file)
    return f"{base}{extension}"


def target_directory(directory: str | Path, organize: str, subdir: str) -> Path:
    """Resolve the directory a file lands in for the given `organize` mode."""
    base = Path(directory)
    if organize == "format":
        return base / subdir
    if organize == "date":
        return base / date_folder()
    return base


def _write_text(target: Path, content: str, source_file: str, overwrite: bool) -> Result[SavedFile]:
    if target.exists() and not overwrite:
        logger.warning("File already exists, skipping: %s", target)
        return Result.Err(
            ErrorCode.ALREADY_EXISTS,
            f"File already exists: {target}. Use overwrite option to replace.",
            skipped=True,
            path=str(target),
        )

    tmp_path: Optional[str] = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), prefix=".save_", suffix=target.suffix)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_path).replace(target)
        tmp_path = None
    except OSError as exc:
        logger.error("Failed to write %s: %s", target, exc)
        return Result.Err(
            ErrorCode.WRITE_FAILED,
            sanitize_error_message(exc, f"Failed to write {target.name}"),
            path=str(target),
        )
    finally:
        if tmp_path:
            Path(tmp_path).unlink(missing_ok=True)

    return Result.Ok(SavedFile(source_file=str(source_file), saved_file=str(target), size=len(content)))


def save_workflow(
    source_file: str,
    workflow: Any,
    directory: str | Path,
    options: Optional[SaveOptions] = None,
    index: int = 0,
) -> Result[SavedFile]:
    """
    Save one workflow as pretty-printed JSON.

    The file name follows `options.name_pattern` (`<source>_workflow.json`
    by default). An existing file is left alone unless `options.overwrite`
    is set; that case returns `Result.Err(ALREADY_EXISTS, skipped=True)`.
    """
    opts = options or SaveOptions()
    folder = target_directory(directory, opts.organize, WORKFLOW_SUBDIR)
    target = folder / workflow_file_name(source_file, opts.name_pattern, index)
    content = json.dumps(workflow, indent=2, ensure_ascii=False)
    result = _write_text(target, content, source_file, opts.overwrite)
    if result.ok:
        logger.debug("Saved workflow %s -> %s", source_file, target)
    return result


def _render_item(item: Dict[str, Any], fmt: str) -> str:
    if fmt in ("pretty", "raw"):
        return format_output([item], fmt)
    return json.dumps([item], indent=2, ensure_ascii=False, default=str)


def save_extracted_data(
    items: Iterable[Dict[str, Any]],
    directory: str | Path,
    options: Optional[SaveOptions] = None,
) -> List[Result[SavedFile]]:
    """
    Save each extraction result (`{"file": ..., ...}`) to its own file.

    JSON output wraps the item in a one-element list, matching the console
    `json` format. With `organize="format"` files go to `<directory>/<format>`.
    Returns one Result per item; a failure never stops the rest.
    """
    opts = options or SaveOptions()
    folder = target_directory(directory, opts.organize, opts.format)
    results: List[Result[SavedFile]] = []
    for index, item in enumerate(items):
        source = str(item.get("file") or f"item_{index}")
        target = folder / data_file_name(source, opts.name_pattern, opts.format, index)
        results.append(_write_text(target, _render_item(item, opts.format), source, opts.overwrite))

    saved = [r.data for r in results if r.ok and r.data is not None]
    log_success(logger, f"Saved {len(saved)} of {len(results)} files to {directory}")
    return results


def handle_duplicate_names(files: List[str]) -> List[str]:
    """Suffix repeated base names with `_2`, `_3`, ... keeping the first as-is."""
    counts: Dict[str, int] = {}
    renamed: List[str] = []
    for name in files:
        path = Path(name)
        stem, suffix = path.stem, path.suffix
        if stem in counts:
            counts[stem] += 1
            renamed.append(f"{stem}_{counts[stem]}{suffix}")
        else:
            counts[stem] = 1
            renamed.append(name)
    return renamed


def calculate_save_stats(results: Iterable[Result[SavedFile]]) -> SaveStats:
    stats = SaveStats()
    for result in results:
        stats.total_files += 1
        if result.ok:
            stats.saved_files += 1
            if result.data is not None:
                stats.total_size += result.data.size
        elif (result.meta or {}).get("skipped"):
            stats.skipped_files += 1
        else:
            stats.errors += 1
    return stats
