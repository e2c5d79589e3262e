"""Loading and validating codes.json into the build IR.

WHY: codes.json is written by hand. A missing "sourceFile" on an inject
entry, or a typo in a "type", should fail before any assembler runs, with
a message that says where in the file the problem is.

HOW: load_config() reads the file and hands the decoded JSON to
parse_config(), which validates it against codes.schema.json with
jsonschema and then builds the frozen IR dataclasses.

RULES:
- Keys are camelCase: outputFiles, codes, name, authors, description,
  build, type, address, targetAddress, annotation, isRecursive,
  sourceFile, sourceFolder, value
- Schema violations raise ConfigError naming the JSON path
- At least one output file is required
- Relative source paths are resolved later, against BuildConfig.base_dir
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Union

import jsonschema
from jsonschema.exceptions import best_match

from gecko_builder.core.ir import BuildConfig, PatchDescription, PatchEntry, PatchKind
from gecko_builder.errors import ConfigError

_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "codes.schema.json"

_CACHED_SCHEMA: Dict[str, Any] | None = None


def _get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _format_path(path: Iterable[Any]) -> str:
    """Render a jsonschema error path as ``codes[0].build[2].type``."""
    parts = []
    for element in path:
        if isinstance(element, int):
            parts.append("[{}]".format(element))
        elif parts:
            parts.append(".{}".format(element))
        else:
            parts.append(str(element))
    return "".join(parts) or "<root>"


def _validate(data: Any) -> None:
    validator = jsonschema.Draft7Validator(_get_schema())
    error = best_match(validator.iter_errors(data))
    if error is not None:
        raise ConfigError(
            "Invalid config at {}: {}".format(_format_path(error.absolute_path), error.message)
        )


def _parse_entry(raw: Dict[str, Any]) -> PatchEntry:
    return PatchEntry(
        kind=PatchKind(raw["type"]),
        address=raw.get("address", ""),
        target_address=raw.get("targetAddress", ""),
        value=raw.get("value", ""),
        annotation=raw.get("annotation", ""),
        source_file=raw.get("sourceFile", ""),
        source_folder=raw.get("sourceFolder", ""),
        is_recursive=raw.get("isRecursive", False),
    )


def _parse_description(raw: Dict[str, Any]) -> PatchDescription:
    return PatchDescription(
        name=raw["name"],
        authors=tuple(raw.get("authors", [])),
        description=tuple(raw.get("description", [])),
        build=tuple(_parse_entry(entry) for entry in raw.get("build", [])),
    )


def parse_config(data: Any, base_dir: Union[str, Path] = ".") -> BuildConfig:
    """Validate decoded codes.json content and build the IR.

    Args:
        data: The decoded JSON document.
        base_dir: Directory that relative source paths resolve against.

    Returns:
        A frozen BuildConfig.

    Raises:
        ConfigError: If the document does not match codes.schema.json.
    """
    _validate(data)
    return BuildConfig(
        output_files=tuple(data["outputFiles"]),
        codes=tuple(_parse_description(code) for code in data["codes"]),
        base_dir=Path(base_dir),
    )


def load_config(path: Union[str, Path]) -> BuildConfig:
    """Read and parse a codes.json file.

    WHY: The CLI and any embedding host start every build here.

    HOW: Reads the file as UTF-8, decodes JSON, validates and converts it
    via parse_config(). The config file's directory becomes base_dir.

    RULES:
    - Unreadable file -> ConfigError naming the file
    - Invalid JSON -> ConfigError with the decoder's line/column
    """
    config_path = Path(path)
    try:
        contents = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError("Failed to read config file {}: {}".format(config_path, exc)) from exc

    try:
        data = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            "Failed to get json content from config file {}. "
            "Check for syntax error/valid json: {}".format(config_path, exc)
        ) from exc

    return parse_config(data, base_dir=config_path.resolve().parent)
