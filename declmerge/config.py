"""Configuration loading for declmerge (api-extractor.json)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import json5

from .logging import get_logger
from .models import ExtractorLogLevel, MaturityLevel

PROJECT_FOLDER_TOKEN = "<projectFolder>"
UNSCOPED_PACKAGE_NAME_TOKEN = "<unscopedPackageName>"
DEFAULT_API_JSON_FILE_PATH = f"{PROJECT_FOLDER_TOKEN}/temp/{UNSCOPED_PACKAGE_NAME_TOKEN}.api.json"
MISSING_RELEASE_TAG_RULE = "ae-missing-release-tag"

# dtsRollup field -> tier whose rollup it names
_ROLLUP_FIELDS: Tuple[Tuple[str, MaturityLevel], ...] = (
    ("publicTrimmedFilePath", MaturityLevel.PUBLIC),
    ("betaTrimmedFilePath", MaturityLevel.BETA),
    ("alphaTrimmedFilePath", MaturityLevel.ALPHA),
    ("untrimmedFilePath", MaturityLevel.INTERNAL),
)

# Sections merged key-by-key when a config extends another.
_MERGED_SECTIONS = ("dtsRollup", "docModel")
_MESSAGE_TABLES = (
    "compilerMessageReporting",
    "extractorMessageReporting",
    "tsdocMessageReporting",
)

_logger = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when api-extractor.json cannot be loaded or is incomplete."""


RollupPaths = Dict[MaturityLevel, Path]


@dataclass(frozen=True)
class MissingReleaseTagConfig:
    """How declarations without a release tag are reported."""

    log_level: ExtractorLogLevel = ExtractorLogLevel.NONE
    add_to_api_report_file: bool = False


@dataclass(frozen=True)
class DocModelConfig:
    """Doc model (.api.json) output settings."""

    enabled: bool
    api_json_file_path: Path


@dataclass(frozen=True)
class ParsedConfig:
    """Resolved settings for one declmerge run; every path is absolute."""

    config_path: Path
    project_folder: Path
    main_entry_point_file_path: Path
    rollup_paths: RollupPaths = field(default_factory=dict)
    missing_release_tag: MissingReleaseTagConfig = field(default_factory=MissingReleaseTagConfig)
    doc_model: Optional[DocModelConfig] = None


def load_config(config_path: Path | str) -> ParsedConfig:
    """Load api-extractor.json, following its ``extends`` chain."""
    config_file = _absolute(Path(config_path).expanduser())
    if not config_file.is_file():
        raise ConfigError(f"Config file not found: {config_file}")

    data = _load_config_chain(config_file, ())
    config_dir = config_file.parent

    project_folder_raw = _as_str(data.get("projectFolder"))
    project_folder = (
        _resolve_path(project_folder_raw, config_dir, config_dir)
        if project_folder_raw
        else config_dir
    )

    entry_raw = _as_str(data.get("mainEntryPointFilePath"))
    if not entry_raw:
        raise ConfigError(f"Missing required field 'mainEntryPointFilePath' in {config_file}")
    entry_point = _resolve_path(entry_raw, project_folder, config_dir)

    rollup_data = _as_dict(data.get("dtsRollup"))
    rollup_paths: RollupPaths = {}
    for field_name, level in _ROLLUP_FIELDS:
        raw = _as_str(rollup_data.get(field_name))
        if raw:
            rollup_paths[level] = _resolve_path(raw, project_folder, config_dir)

    config = ParsedConfig(
        config_path=config_file,
        project_folder=project_folder,
        main_entry_point_file_path=entry_point,
        rollup_paths=rollup_paths,
        missing_release_tag=_parse_missing_release_tag(data),
        doc_model=_parse_doc_model(data, project_folder, config_dir),
    )
    _logger.debug(
        "Loaded %s: project folder %s, %d rollup(s)",
        config_file,
        project_folder,
        len(rollup_paths),
    )
    return config


def rollup_paths_for_maturity(level: MaturityLevel, rollup_paths: RollupPaths) -> List[Path]:
    """Return the rollups a declaration of ``level`` belongs in.

    The internal rollup receives everything, the alpha rollup receives alpha,
    beta and public declarations, the beta rollup beta and public ones, and the
    public rollup only public ones. Tiers without a configured rollup are
    skipped.
    """
    level = MaturityLevel(level)
    paths: List[Path] = []

    internal = rollup_paths.get(MaturityLevel.INTERNAL)
    if internal is not None:
        paths.append(internal)

    alpha = rollup_paths.get(MaturityLevel.ALPHA)
    if alpha is not None and level in (MaturityLevel.ALPHA, MaturityLevel.BETA, MaturityLevel.PUBLIC):
        paths.append(alpha)

    beta = rollup_paths.get(MaturityLevel.BETA)
    if beta is not None and level in (MaturityLevel.BETA, MaturityLevel.PUBLIC):
        paths.append(beta)

    public = rollup_paths.get(MaturityLevel.PUBLIC)
    if public is not None and level is MaturityLevel.PUBLIC:
        paths.append(public)

    return paths


def _load_config_chain(path: Path, chain: Tuple[Path, ...]) -> Dict[str, Any]:
    if path in chain:
        cycle = " -> ".join(str(item) for item in (*chain, path))
        raise ConfigError(f"Circular 'extends' chain: {cycle}")

    data = _read_config(path)
    base_ref = _as_str(data.get("extends"))
    if not base_ref:
        return data

    base_path = _absolute(path.parent / base_ref)
    if not base_path.is_file():
        raise ConfigError(f"Base config file not found: {base_path} (extended by {path})")
    _logger.debug("%s extends %s", path, base_path)
    base = _load_config_chain(base_path, (*chain, path))
    return _merge_configs(base, data)


def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = {**base, **override}
    for section in _MERGED_SECTIONS:
        if section in base or section in override:
            merged[section] = {**_as_dict(base.get(section)), **_as_dict(override.get(section))}

    if "messages" in base or "messages" in override:
        base_messages = _as_dict(base.get("messages"))
        override_messages = _as_dict(override.get("messages"))
        messages = {**base_messages, **override_messages}
        for table in _MESSAGE_TABLES:
            if table in base_messages or table in override_messages:
                messages[table] = {
                    **_as_dict(base_messages.get(table)),
                    **_as_dict(override_messages.get(table)),
                }
        merged["messages"] = messages
    return merged


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {path}. {exc}") from exc

    try:
        loaded = json5.loads(text)
    except ValueError as exc:
        raise ConfigError(f"Failed to parse config file: {path}. {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file must contain a JSON object at the root: {path}")
    return loaded


def _parse_missing_release_tag(data: Dict[str, Any]) -> MissingReleaseTagConfig:
    messages = _as_dict(data.get("messages"))
    reporting = _as_dict(messages.get("extractorMessageReporting"))
    rule = _as_dict(reporting.get(MISSING_RELEASE_TAG_RULE))
    if not rule:
        return MissingReleaseTagConfig()
    return MissingReleaseTagConfig(
        log_level=_as_log_level(rule.get("logLevel")),
        add_to_api_report_file=_as_bool(rule.get("addToApiReportFile")) or False,
    )


def _parse_doc_model(
    data: Dict[str, Any], project_folder: Path, config_dir: Path
) -> Optional[DocModelConfig]:
    doc_model = _as_dict(data.get("docModel"))
    if not _as_bool(doc_model.get("enabled")):
        return None

    raw = _as_str(doc_model.get("apiJsonFilePath")) or DEFAULT_API_JSON_FILE_PATH
    if UNSCOPED_PACKAGE_NAME_TOKEN in raw:
        package_name = _read_unscoped_package_name(project_folder)
        if package_name is None:
            _logger.debug(
                "No package name found under %s; doc model output disabled", project_folder
            )
            return None
        raw = raw.replace(UNSCOPED_PACKAGE_NAME_TOKEN, package_name)

    return DocModelConfig(
        enabled=True,
        api_json_file_path=_resolve_path(raw, project_folder, config_dir),
    )


def _read_unscoped_package_name(project_folder: Path) -> Optional[str]:
    manifest = project_folder / "package.json"
    try:
        payload = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    name = payload.get("name")
    if not isinstance(name, str) or not name:
        return None
    # @scope/name -> name
    return name.rsplit("/", 1)[-1]


def _resolve_path(raw: str, project_folder: Path, config_dir: Path) -> Path:
    candidate = Path(raw.replace(PROJECT_FOLDER_TOKEN, str(project_folder)))
    if not candidate.is_absolute():
        candidate = config_dir / candidate
    return _absolute(candidate)


def _absolute(path: Path) -> Path:
    return Path(os.path.abspath(path))


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_log_level(value: Any) -> ExtractorLogLevel:
    if isinstance(value, str):
        try:
            return ExtractorLogLevel(value.strip().lower())
        except ValueError:
            pass
    return ExtractorLogLevel.NONE


__all__ = [
    "ConfigError",
    "DocModelConfig",
    "MissingReleaseTagConfig",
    "ParsedConfig",
    "RollupPaths",
    "load_config",
    "rollup_paths_for_maturity",
]
