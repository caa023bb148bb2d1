import json
import logging
import re
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import (
    DISABLED_FOR_TASKS_WITH_NAME_KEY,
    DISABLED_KEY,
    ENABLED_FOR_TASKS_WITH_NAME_KEY,
    KNOWN_KEYS,
    OUTPUT_HOME_PATH_KEY,
    ConfigError,
    RunConfig,
    UnsupportedConfigFormatError,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "build-stats.properties"
DEFAULT_REPORTS_DIR = Path("build") / "reports" / "build-stats"

_PROPERTY_KEY_END = re.compile(r"[=:\s]")


def default_output_home(project_dir: str | Path) -> Path:
    return Path(project_dir) / DEFAULT_REPORTS_DIR


def default_config(output_home: str | Path) -> RunConfig:
    return RunConfig(active=True, output_home_path=str(output_home))


def read_config(
    project_dir: str | Path,
    *,
    config_path: str | Path | None = None,
    disabled: bool = False,
    output_home: str | Path | None = None,
    log: logging.Logger | None = None,
) -> RunConfig:
    """Lenient entry point: never raises, falls back to defaults on bad input.

    ``disabled`` is the host-level switch and wins over the file contents.
    """
    log = log or logger
    home = output_home if output_home is not None else default_output_home(project_dir)
    path = Path(config_path) if config_path is not None else Path(project_dir) / CONFIG_FILE_NAME

    if not path.exists():
        if config_path is not None:
            log.warning("Build stats config %s not found, using defaults", path)
        else:
            log.debug("No config at %s, using defaults", path)
        config = default_config(home)
    else:
        try:
            config = load_config(path, output_home=home, log=log)
        except ConfigError as exc:
            log.warning("Ignoring build stats config: %s", exc)
            config = default_config(home)

    if output_home is not None:
        config = replace(config, output_home_path=str(output_home))
    if disabled:
        config = replace(config, active=False)

    log.debug("%s", config)
    return config


def load_config(
    path: str | Path, *, output_home: str | Path, log: logging.Logger | None = None
) -> RunConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    return _build_run_config(raw_file, pure_path.parent, output_home, log or logger)


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".properties":
            return "properties"
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .properties, .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    match fmt:
        case "properties":
            return _parse_properties(path)
        case "yaml":
            return _parse_yaml(path)
        case "toml":
            return _parse_toml(path)
        case "json":
            return _parse_json(path)
        case _:
            raise AssertionError("Unreachable")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"{path}: cannot read file") from exc


def _parse_properties(path: Path) -> Mapping[str, Any]:
    # java.util.Properties: the key ends at the first '=', ':' or whitespace
    raw_file: dict[str, str] = {}

    for line in _read_text(path).splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#!":
            continue

        match = _PROPERTY_KEY_END.search(stripped)
        if match is None:
            raw_file[stripped] = ""
            continue

        key = stripped[: match.start()]
        value = stripped[match.start() :].lstrip()
        if value[:1] in ("=", ":"):
            value = value[1:]

        raw_file[key] = value.strip()

    return raw_file


def _parse_yaml(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = yaml.safe_load(_read_text(path))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML") from exc

    # An empty YAML document is an empty config
    if raw_file is None:
        return {}

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: YAML parsed succesfully but top-level value in not an object: {type(raw_file)}"
        )

    return raw_file


def _parse_toml(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = tomllib.loads(_read_text(path))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: invalid TOML") from exc

    return raw_file


def _parse_json(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON") from exc

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: JSON parsed succesfully but top-level value in not an object: {type(raw_file)}"
        )

    return raw_file


def _build_run_config(
    raw: Mapping[str, Any], base_dir: Path, default_home: str | Path, log: logging.Logger
) -> RunConfig:
    for key in raw.keys():
        if key not in KNOWN_KEYS:
            log.warning("Unknown build stats config key %r, ignoring it", key)

    disabled = _parse_bool(DISABLED_KEY, raw.get(DISABLED_KEY, False))

    output_home = str(default_home)
    if OUTPUT_HOME_PATH_KEY in raw:
        value = raw[OUTPUT_HOME_PATH_KEY]
        if not isinstance(value, str):
            raise ConfigError(f"'{OUTPUT_HOME_PATH_KEY}' should be a string")

        if len(value.strip()) < 1:
            raise ConfigError(f"'{OUTPUT_HOME_PATH_KEY}' can't be empty")

        home = Path(value.strip()).expanduser()
        if not home.is_absolute():
            home = base_dir / home
        output_home = str(home)

    include = _parse_suffixes(
        ENABLED_FOR_TASKS_WITH_NAME_KEY, raw.get(ENABLED_FOR_TASKS_WITH_NAME_KEY, [])
    )
    exclude = _parse_suffixes(
        DISABLED_FOR_TASKS_WITH_NAME_KEY, raw.get(DISABLED_FOR_TASKS_WITH_NAME_KEY, [])
    )

    return RunConfig(
        active=not disabled,
        output_home_path=output_home,
        include_suffixes=include,
        exclude_suffixes=exclude,
    )


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        return value.strip().lower() == "true"

    raise ConfigError(f"'{key}' should be a boolean, got {type(value)}")


def _parse_suffixes(key: str, value: Any) -> frozenset[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = value
    else:
        raise ConfigError(f"'{key}' should be a comma separated string or a list")

    suffixes = set()
    for item in items:
        if not isinstance(item, str):
            raise ConfigError(f"'{key}': {item} should be a string")

        # Blank entries come from trailing or doubled commas
        suffix = item.strip()
        if suffix:
            suffixes.add(suffix)

    return frozenset(suffixes)
