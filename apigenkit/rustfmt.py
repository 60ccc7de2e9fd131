"""A writer that pipes generated Rust code through rustfmt when it is available."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import BinaryIO


def rustfmt_path() -> Path | None:
    """Locate rustfmt; an empty RUSTFMT variable disables formatting."""
    configured = os.environ.get("RUSTFMT")
    if configured is not None:
        return Path(configured) if configured else None
    found = shutil.which("rustfmt")
    return Path(found) if found else None


class RustFmtWriter:
    """Writes bytes to a file, formatting them with rustfmt if it can be found.

    The writer takes ownership of ``output_file`` and closes it on ``close``.
    """

    def __init__(self, output_file: BinaryIO) -> None:
        self._file = output_file
        self._process: subprocess.Popen[bytes] | None = None
        path = rustfmt_path()
        if path is not None:
            self._process = subprocess.Popen(
                [str(path), "--edition=2018"],
                stdin=subprocess.PIPE,
                stdout=output_file,
                stderr=None,
            )

    @property
    def formatted(self) -> bool:
        """Whether output goes through rustfmt."""
        return self._process is not None

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""
        if self._process is not None:
            assert self._process.stdin is not None
            written = self._process.stdin.write(data)
        else:
            written = self._file.write(data)
        return len(data) if written is None else written

    def flush(self) -> None:
        """Flush buffered output to the file; a no-op while formatting."""
        if self._process is None:
            self._file.flush()

    def close(self) -> None:
        """Finish writing; raise CalledProcessError if rustfmt failed."""
        try:
            if self._process is not None:
                if self._process.stdin is not None:
                    self._process.stdin.close()
                returncode = self._process.wait()
                if returncode != 0:
                    raise subprocess.CalledProcessError(
                        returncode, self._process.args
                    )
            else:
                self._file.flush()
                os.fsync(self._file.fileno())
        finally:
            self._file.close()

    def __enter__(self) -> RustFmtWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()