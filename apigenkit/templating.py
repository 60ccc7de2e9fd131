"""Substitute templates with structured JSON or YAML data."""

from __future__ import annotations

import sys
from typing import Any, Sequence

import jinja2
import yaml

from apigenkit.spec import (
    Spec,
    StreamOrPath,
    TemplatingError,
    de_json_or_yaml,
    validate,
)


def substitute_in_data(data: Any, replacements: Sequence[tuple[str, str]]) -> Any:
    """Apply each (find, replace) pair, in order, to every string value in ``data``."""
    if not replacements:
        return data
    if isinstance(data, str):
        for find, replace in replacements:
            data = data.replace(find, replace)
        return data
    if isinstance(data, list):
        return [substitute_in_data(item, replacements) for item in data]
    if isinstance(data, dict):
        return {key: substitute_in_data(value, replacements) for key, value in data.items()}
    return data


def _load_data(input_data: StreamOrPath) -> Any:
    if input_data.path is None:
        if sys.stdin.isatty():
            raise TemplatingError(
                "Stdin is a TTY. Cannot substitute a template without any data."
            )
        return de_json_or_yaml(sys.stdin.buffer)
    try:
        handle = open(input_data.path, "rb")
    except OSError as exc:
        raise TemplatingError(
            f"Could not open input data file at '{input_data.path}'"
        ) from exc
    with handle:
        return de_json_or_yaml(handle)


def _render(engine: jinja2.Environment, spec: Spec, dataset: dict[str, Any]) -> str:
    with spec.src.open_as_input() as source:
        raw = source.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TemplatingError(
            f"Template at '{spec.src.name()}' is not valid UTF8"
        ) from exc
    try:
        template = engine.from_string(text)
    except jinja2.TemplateSyntaxError as exc:
        raise TemplatingError(
            f"Failed to parse liquid template at '{spec.src.name()}': {exc}"
        ) from exc
    try:
        return template.render(dataset)
    except jinja2.TemplateError as exc:
        raise TemplatingError(
            f"Failed to render template from template at '{spec.src.short_name()}': {exc}"
        ) from exc


def substitute(
    input_data: StreamOrPath,
    specs: Sequence[Spec],
    separator: str | bytes,
    try_deserialize: bool,
    replacements: Sequence[tuple[str, str]],
) -> None:
    """Render every spec's template with the data and write it to its destination."""
    dataset = _load_data(input_data)
    if input_data.path is not None and not specs:
        specs = [Spec(StreamOrPath.STREAM, StreamOrPath.STREAM)]
    validate(input_data, specs)

    dataset = substitute_in_data(dataset, replacements)
    if not isinstance(dataset, dict):
        raise TemplatingError("Data model root must be an object")

    sep = separator.encode("utf-8") if isinstance(separator, str) else separator
    engine = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )

    seen_file_outputs: set[StreamOrPath] = set()
    writes_to_stdout = 0
    for spec in specs:
        if spec.dst.is_stream():
            writes_to_stdout += 1
            append = False
        else:
            append = spec.dst in seen_file_outputs
            seen_file_outputs.add(spec.dst)

        with spec.dst.open_as_output(append) as out:
            if writes_to_stdout > 1 or append:
                out.write(sep)
            rendered = _render(engine, spec, dataset)
            if try_deserialize:
                try:
                    yaml.safe_load(rendered)
                except yaml.YAMLError as exc:
                    raise TemplatingError(
                        f"Validation of template output at '{spec.dst.name()}' failed. "
                        "It's neither valid YAML, nor JSON"
                    ) from exc
            out.write(rendered.encode("utf-8"))