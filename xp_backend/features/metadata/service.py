"""
Metadata service - picks the reader/extractor for a file and turns failures
into `Result.Err` values.
"""
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from ...adapters.tools.ffprobe import FFProbe
from ...config import METADATA_CACHE_TTL
from ...shared import (
    SUPPORTED_FORMATS,
    ErrorCode,
    Result,
    classify_file,
    get_logger,
    log_structured,
    severity_for_code,
    timer,
)
from .extractors import (
    extract_jpeg_metadata,
    extract_png_metadata,
    extract_video_metadata,
    extract_webp_metadata,
)
from .image_readers import read_image_info
from .metadata_cache import MetadataCache

logger = get_logger(__name__)

_IMAGE_EXTRACTORS: Dict[str, Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = {
    ".png": extract_png_metadata,
    ".jpg": extract_jpeg_metadata,
    ".jpeg": extract_jpeg_metadata,
    ".webp": extract_webp_metadata,
}
VIDEO_SEARCHED_FIELDS = ["format.tags", "streams.tags"]


def _err(code: ErrorCode, message: str, file_path: str, **meta: Any) -> Result[Any]:
    return Result.Err(code, message, file_path=file_path, severity=severity_for_code(code).value, **meta)


class MetadataService:
    """
    Metadata extraction service.

    Images are read with Pillow; videos go through ffprobe (cached per path).
    `extract()` returns `Result.Ok(None)` for an image that carries no
    recognisable metadata.
    """

    def __init__(self, ffprobe: Optional[FFProbe] = None, cache: Optional[MetadataCache] = None):
        """
        Args:
            ffprobe: FFProbe adapter (created lazily on the first video when omitted)
            cache: Probe result cache
        """
        self._ffprobe = ffprobe
        self.cache = cache if cache is not None else MetadataCache(METADATA_CACHE_TTL)

    @property
    def ffprobe(self) -> FFProbe:
        if self._ffprobe is None:
            self._ffprobe = FFProbe()
        return self._ffprobe

    def extract(self, file_path: str) -> Result[Optional[Dict[str, Any]]]:
        """
        Extract embedded workflow / generation parameters from one file.

        Returns:
            Result with the raw extraction dict (`workflow`, `prompt`,
            `parameters`, `raw_parameters`, ...); `meta` carries `kind` on
            success and `severity` plus error details on failure.
        """
        ext = os.path.splitext(file_path)[1].lower()
        kind = classify_file(file_path)
        if kind == "unknown":
            return _err(
                ErrorCode.UNSUPPORTED,
                f"Unsupported file format: {ext or '(none)'}",
                file_path,
                extension=ext.lstrip(".") or "unknown",
                supported_formats=list(SUPPORTED_FORMATS),
            )
        if not os.path.isfile(file_path):
            return _err(ErrorCode.NOT_FOUND, f"File not found: {file_path}", file_path, operation="stat")

        logger.debug("Extracting metadata from %s file: %s", kind, file_path)
        try:
            with timer(f"extract {os.path.basename(file_path)}", logger):
                if kind == "image":
                    return self._extract_image(file_path, ext)
                return self._extract_video(file_path)
        except Exception as exc:
            logger.error("Metadata extraction failed: %s", exc)
            return _err(ErrorCode.PARSE_ERROR, f"Metadata extraction failed: {exc}", file_path, raw_data="")

    def extract_batch(self, file_paths: List[str]) -> Dict[str, Result[Optional[Dict[str, Any]]]]:
        """Extract several files; videos are probed in parallel up front."""
        videos = [p for p in file_paths if classify_file(p) == "video" and os.path.isfile(p)]
        uncached = [p for p in videos if self.cache.get(p) is None]
        if len(uncached) > 1:
            for path, probe in self.ffprobe.read_batch(uncached).items():
                if probe.ok and isinstance(probe.data, dict):
                    self.cache.put(path, probe.data)
        return {path: self.extract(path) for path in file_paths}

    def _extract_image(self, file_path: str, ext: str) -> Result[Optional[Dict[str, Any]]]:
        try:
            info = read_image_info(file_path)
        except OSError as exc:
            self._log_metadata_issue(logging.WARNING, "Image read failed", file_path, tool="pillow", error=str(exc))
            return _err(ErrorCode.FILE_ACCESS_ERROR, str(exc), file_path, operation="read")

        extracted = _IMAGE_EXTRACTORS[ext](info)
        if extracted is None:
            logger.debug("No embedded metadata in %s", file_path)
            return Result.Ok(None, kind="image", format=info.get("format"))
        return Result.Ok(extracted, kind="image", format=info.get("format"))

    def _read_probe(self, file_path: str) -> Result[Dict[str, Any]]:
        cached = self.cache.get(file_path)
        if cached is not None:
            return Result.Ok(cached, cached=True)
        probe = self.ffprobe.read(file_path)
        if probe.ok and isinstance(probe.data, dict):
            self.cache.put(file_path, probe.data)
        return probe

    def _extract_video(self, file_path: str) -> Result[Optional[Dict[str, Any]]]:
        probe = self._read_probe(file_path)
        if not probe.ok:
            code = probe.code or ErrorCode.FFPROBE_ERROR.value
            self._log_metadata_issue(logging.WARNING, "ffprobe failed", file_path, tool="ffprobe", error=probe.error)
            meta = dict(probe.meta or {})
            meta.update(file_path=file_path, severity=severity_for_code(code).value)
            return Result.Err(code, probe.error or "ffprobe failed", **meta)

        extracted = extract_video_metadata(probe.data)
        if extracted is None:
            return _err(
                ErrorCode.METADATA_NOT_FOUND,
                f"No workflow metadata found in video file: {file_path}",
                file_path,
                file_type="video",
                searched_fields=list(VIDEO_SEARCHED_FIELDS),
            )
        return Result.Ok(extracted, kind="video")

    def _log_metadata_issue(
        self,
        level: int,
        message: str,
        file_path: str,
        tool: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        context: Dict[str, Any] = {"file_path": file_path}
        if tool:
            context["tool"] = tool
        if error:
            context["error"] = error
        log_structured(logger, level, message, **context)
