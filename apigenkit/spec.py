"""Template specs: where a template comes from and where its output goes."""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, BinaryIO, ClassVar, Iterator, Sequence

import yaml

SEPARATOR = ":"


class TemplatingError(Exception):
    """Raised when templates, specs or data cannot be used."""


@dataclass(frozen=True)
class StreamOrPath:
    """Either a standard stream (``path is None``) or a file path."""

    path: Path | None = None

    STREAM: ClassVar[StreamOrPath]

    @classmethod
    def parse(cls, text: str) -> StreamOrPath:
        """An empty string denotes a stream, anything else a path."""
        return cls() if not text else cls(Path(text))

    def is_stream(self) -> bool:
        return self.path is None

    def name(self) -> str:
        """A descriptive name: the full path, or 'stream'."""
        return "stream" if self.path is None else str(self.path)

    def short_name(self) -> str:
        """The file stem of the path, or 'stream'."""
        if self.path is None:
            return "stream"
        if not self.path.name or self.path.name == "..":
            return "<invalid-file-stem>"
        return self.path.stem

    @contextmanager
    def open_as_output(self, append: bool) -> Iterator[BinaryIO]:
        """Open for binary writing; standard output for a stream."""
        if self.path is None:
            sys.stdout.flush()
            out = sys.stdout.buffer
            try:
                yield out
            finally:
                out.flush()
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TemplatingError(
                f"Could not create directory leading towards '{self.path}'"
            ) from exc
        try:
            handle = open(self.path, "ab" if append else "wb")
        except OSError as exc:
            raise TemplatingError(f"Could not open '{self.path}' for writing") from exc
        with handle:
            yield handle

    @contextmanager
    def open_as_input(self) -> Iterator[BinaryIO]:
        """Open for binary reading; standard input for a stream."""
        if self.path is None:
            if sys.stdin.isatty():
                raise TemplatingError(
                    "Cannot read from standard input while a terminal is connected"
                )
            yield sys.stdin.buffer
            return
        try:
            handle = open(self.path, "rb")
        except OSError as exc:
            raise TemplatingError(f"Could not open '{self.path}' for reading") from exc
        with handle:
            yield handle

    def __str__(self) -> str:
        return "" if self.path is None else str(self.path)


StreamOrPath.STREAM = StreamOrPath()


@dataclass(frozen=True)
class Spec:
    """Maps a template source to an output destination."""

    src: StreamOrPath
    dst: StreamOrPath

    @classmethod
    def parse(cls, text: str) -> Spec:
        """Parse ``<src>:<dst>``; a missing part denotes a stream."""
        src, sep, dst = text.partition(SEPARATOR)
        if not sep:
            return cls(StreamOrPath.parse(src), StreamOrPath.STREAM)
        return cls(StreamOrPath.parse(src), StreamOrPath.parse(dst))

    def __str__(self) -> str:
        if self.src.is_stream():
            return SEPARATOR + str(self.dst)
        if self.dst.is_stream():
            return str(self.src)
        return f"{self.src}{SEPARATOR}{self.dst}"


def _canonical(path: Path) -> Path | None:
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return None


def validate(data: StreamOrPath, specs: Sequence[Spec]) -> None:
    """Check that the specs can be processed together with the data source."""
    if not specs:
        raise TemplatingError(
            "No spec provided, neither from standard input, nor from file"
        )
    needing_stdin = sum(1 for spec in specs if spec.src.is_stream())
    if needing_stdin > 1:
        raise TemplatingError(
            "Cannot read more than one template spec from standard input"
        )
    if data.is_stream() and needing_stdin == 1:
        raise TemplatingError(
            "Data is read from standard input, as well as one template. Please choose one"
        )
    for spec in specs:
        if spec.src.path is None or spec.dst.path is None:
            continue
        src = _canonical(spec.src.path)
        if src is not None and src == _canonical(spec.dst.path):
            raise TemplatingError(
                f"Refusing to overwrite input file at '{spec.src}' with output"
            )


def de_json_or_yaml(stream: IO[Any]) -> Any:
    """Read all of ``stream`` and parse it as JSON, falling back to YAML."""
    try:
        raw = stream.read()
    except OSError as exc:
        raise TemplatingError(
            "Could not read input stream data deserialization"
        ) from exc
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplatingError(
                "Could not deserialize data, tried JSON and YAML"
            ) from exc
    else:
        text = raw
    try:
        return json.loads(text)
    except ValueError as json_err:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as yaml_err:
            raise TemplatingError(
                "Could not deserialize data, tried JSON and YAML: "
                f"JSON deserialization failed: {json_err}; "
                f"YAML deserialization failed: {yaml_err}"
            ) from yaml_err