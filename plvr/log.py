# plvr/log.py
#
# Pipeline logger with elapsed time.
#
# Design decisions:
#   - Plain stdout lines with elapsed time ("[plvr MM:SS] message"); errors
#     go to stderr. No logging framework: the crawler is a batch job.
#   - A PipelineLog instance is handed to every component; nothing reads a
#     module-level logger at call time.
#   - Optional file mirror: every emitted line is also appended to log_file.
#   - Thread-safe: each line is written under a lock so concurrent season
#     tasks never interleave partial lines.
from __future__ import annotations

import sys
import threading
import time
from pathlib import Path
from typing import TextIO


class PipelineLog:
    """Timestamped line logger shared by all pipeline components."""

    def __init__(
        self,
        *,
        verbose: bool = False,
        log_file: Path | None = None,
        stream: TextIO | None = None,
        error_stream: TextIO | None = None,
    ) -> None:
        self.verbose = verbose
        self.log_file = log_file
        self._stream = stream
        self._error_stream = error_stream
        self._start = time.monotonic()
        self._lock = threading.Lock()
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)

    def _emit(self, level: str, message: str, stream: TextIO) -> None:
        elapsed = time.monotonic() - self._start
        minutes, seconds = divmod(int(elapsed), 60)
        tag = "" if level == "INFO" else f" {level}"
        line = f"[plvr {minutes:02d}:{seconds:02d}]{tag} {message}\n"
        with self._lock:
            stream.write(line)
            stream.flush()
            if self.log_file is not None:
                with self.log_file.open("a", encoding="utf-8") as fh:
                    fh.write(line)

    def info(self, message: str) -> None:
        self._emit("INFO", message, self._stream or sys.stdout)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit("DEBUG", message, self._stream or sys.stdout)

    def error(self, message: str) -> None:
        self._emit("ERROR", message, self._error_stream or sys.stderr)

    __call__ = info
