"""
FFprobe adapter for reading container/stream tags of video files.
"""
import json
import os
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional

from ...config import FFPROBE_BIN, FFPROBE_MAX_WORKERS, FFPROBE_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = ("&", "|", ";", ">", "<", "\x00", "\n", "\r")


class FFProbe:
    """
    FFprobe wrapper.

    Never raises exceptions - always returns Result. Failed results carry
    `command`, `args`, `exit_code` and `stderr` in `meta` so callers can
    rebuild an `ExternalCommandError`.
    """

    def __init__(
        self,
        bin_name: Optional[str] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            bin_name: FFprobe binary name or path (defaults to XP_FFPROBE_PATH)
            timeout: Command timeout in seconds
            max_workers: Thread pool size for read_batch()
        """
        self.bin = bin_name or FFPROBE_BIN
        self.timeout = float(timeout) if timeout is not None else float(FFPROBE_TIMEOUT)
        self._max_workers = max(1, int(max_workers if max_workers is not None else FFPROBE_MAX_WORKERS))
        self._resolved_bin: Optional[str] = self._resolve_executable(self.bin)

    def _resolve_executable(self, bin_name: str) -> Optional[str]:
        """Resolve the configured value to an actual ffprobe binary (not an arbitrary command)."""
        raw = (bin_name or "").strip()
        if not raw or any(ch in raw for ch in _UNSAFE_CHARS):
            return None
        resolved = shutil.which(raw)
        if not resolved:
            try:
                candidate = Path(raw)
                if not candidate.is_file():
                    return None
                resolved = str(candidate.resolve(strict=True))
            except (OSError, RuntimeError, ValueError):
                return None
        return resolved if Path(resolved).name.lower().startswith("ffprobe") else None

    def is_available(self) -> bool:
        return self._resolved_bin is not None

    def build_args(self, path: str) -> List[str]:
        return [
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]

    def read(self, path: str) -> Result[dict]:
        """
        Probe a video file.

        Returns:
            Result with a dict holding 'format', 'streams' and 'video_stream'
        """
        args = self.build_args(path)
        if not self.is_available():
            return Result.Err(
                ErrorCode.TOOL_MISSING,
                f"ffprobe not found: {self.bin}",
                command="ffprobe", args=args, exit_code=None, stderr="executable not found",
            )

        try:
            process = subprocess.run(
                [self._resolved_bin or self.bin, *args],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout,
                shell=False,
                close_fds=os.name != "nt",
            )
        except subprocess.TimeoutExpired:
            logger.error("ffprobe timeout for %s", path)
            return Result.Err(
                ErrorCode.TIMEOUT,
                f"ffprobe timeout after {self.timeout}s",
                command="ffprobe", args=args, exit_code=None, stderr="timeout",
            )
        except OSError as exc:
            logger.error("ffprobe could not be started: %s", exc)
            return Result.Err(
                ErrorCode.EXTERNAL_COMMAND_ERROR,
                f"Process error: {exc}",
                command="ffprobe", args=args, exit_code=None, stderr=str(exc),
            )
        return self._parse_output(process.stdout or "", process.stderr or "", process.returncode, path, args)

    def _parse_output(self, stdout: str, stderr: str, returncode: Optional[int], path: str, args: List[str]) -> Result[dict]:
        if returncode != 0:
            stderr_msg = stderr.strip()
            logger.warning("ffprobe error for %s: %s", path, stderr_msg)
            return Result.Err(
                ErrorCode.FFPROBE_ERROR,
                stderr_msg or "ffprobe command failed",
                command="ffprobe", args=args, exit_code=returncode, stderr=stderr_msg,
            )
        if not stdout.strip():
            return Result.Err(
                ErrorCode.FFPROBE_ERROR,
                "No ffprobe output",
                command="ffprobe", args=args, exit_code=returncode, stderr=stderr.strip(),
            )
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            logger.error("ffprobe JSON parse error: %s", exc)
            return Result.Err(
                ErrorCode.PARSE_ERROR,
                f"Failed to parse ffprobe output: {exc}",
                raw_data=stdout, parse_type="JSON",
            )
        if not isinstance(data, dict):
            return Result.Err(ErrorCode.PARSE_ERROR, "Invalid ffprobe output format", raw_data=stdout)

        streams = data.get("streams") or []
        return Result.Ok(
            {
                "format": data.get("format") or {},
                "streams": streams,
                "video_stream": self._find_stream(streams, "video"),
            }
        )

    def read_batch(self, paths: List[str]) -> Dict[str, Result[dict]]:
        """
        Probe several files in parallel (one subprocess per file).

        Returns:
            Dict mapping file path to its Result
        """
        if not paths:
            return {}
        if not self.is_available():
            err: Result[dict] = Result.Err(ErrorCode.TOOL_MISSING, f"ffprobe not found: {self.bin}")
            return {str(p): err for p in paths}

        results: Dict[str, Result[dict]] = {}
        max_workers = min(self._max_workers, len(paths))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_path = {executor.submit(self.read, path): path for path in paths}
            for future in as_completed(future_to_path):
                path = future_to_path[future]
                try:
                    results[str(path)] = future.result()
                except Exception as exc:
                    logger.error("FFProbe batch error for %s: %s", path, exc)
                    results[str(path)] = Result.Err(ErrorCode.FFPROBE_ERROR, str(exc))
        return results

    @staticmethod
    def _find_stream(streams: list, codec_type: str) -> dict:
        for stream in streams:
            if isinstance(stream, dict) and stream.get("codec_type") == codec_type:
                return stream
        return {}
