import json
from pathlib import Path
from typing import Any, Mapping

import yaml

from buildstats.listener import (
    BuildResult,
    TaskFailureResult,
    TaskFinishEvent,
    TaskResult,
    TaskSkippedResult,
    TaskSuccessResult,
)

from .types import EventLog, ReplayError

_TOP_LEVEL_KEYS = {
    "project",
    "requestedTasks",
    "buildStartTime",
    "buildEndTime",
    "buildResult",
    "events",
}
_EVENT_KEYS = {"path", "startTime", "endTime", "outcome", "upToDate", "fromCache", "message"}


def load_event_log(path: str | Path) -> EventLog:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ReplayError(f"Event log not found: {pure_path}")

    if not pure_path.is_file():
        raise ReplayError(f"Event log path is not a file: {pure_path}")

    match pure_path.suffix:
        case ".yaml" | ".yml":
            raw = _parse_yaml(pure_path)
        case ".json":
            raw = _parse_json(pure_path)
        case fmt:
            raise ReplayError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .json"
            )

    if not isinstance(raw, Mapping):
        raise ReplayError(f"{pure_path}: top-level value is not an object: {type(raw)}")

    return _build_event_log(raw)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReplayError(f"{path}: cannot read file") from exc


def _parse_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(_read_text(path))
    except yaml.YAMLError as exc:
        raise ReplayError(f"{path}: invalid YAML") from exc


def _parse_json(path: Path) -> Any:
    try:
        return json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ReplayError(f"{path}: invalid JSON") from exc


def _build_event_log(raw: Mapping[str, Any]) -> EventLog:
    for key in raw.keys():
        if key not in _TOP_LEVEL_KEYS:
            raise ReplayError(f"Can't process: {key}")

    project = raw.get("project")
    if not isinstance(project, str) or len(project.strip()) < 1:
        raise ReplayError("'project' must be a non-empty string")

    requested = raw.get("requestedTasks", [])
    if not isinstance(requested, list) or not all(isinstance(t, str) for t in requested):
        raise ReplayError("'requestedTasks' must be a list of strings")

    if "events" not in raw:
        raise ReplayError("Missing 'events' field")

    if not isinstance(raw["events"], list):
        raise ReplayError(f"'events' must be a list, got {type(raw['events'])}")

    events = [_build_event(i, item) for i, item in enumerate(raw["events"])]

    return EventLog(
        project=project.strip(),
        events=events,
        requested_tasks=[t.strip() for t in requested if t.strip()],
        build_start_time=_optional_millis(raw, "buildStartTime"),
        build_end_time=_optional_millis(raw, "buildEndTime"),
        build_result=_build_result(raw.get("buildResult")),
    )


def _build_event(index: int, fields: Any) -> TaskFinishEvent:
    if not isinstance(fields, Mapping):
        raise ReplayError(f"events[{index}] must be a mapping")

    for field in fields.keys():
        if field not in _EVENT_KEYS:
            raise ReplayError(f"events[{index}]: Can't process: {field}")

    path = fields.get("path")
    if not isinstance(path, str) or len(path.strip()) < 1:
        raise ReplayError(f"events[{index}]: 'path' must be a non-empty string")

    start = _required_millis(fields, "startTime", f"events[{index}]")
    end = _required_millis(fields, "endTime", f"events[{index}]")

    return TaskFinishEvent(path.strip(), start, end, _task_result(index, fields))


def _task_result(index: int, fields: Mapping[str, Any]) -> TaskResult:
    outcome = fields.get("outcome", "failed")
    if not isinstance(outcome, str):
        raise ReplayError(f"events[{index}]: 'outcome' should be a string")

    match outcome.strip().lower():
        case "success":
            return TaskSuccessResult(
                up_to_date=_flag(index, fields, "upToDate"),
                from_cache=_flag(index, fields, "fromCache"),
            )
        case "skipped":
            message = fields.get("message")
            if message is not None and not isinstance(message, str):
                raise ReplayError(f"events[{index}]: 'message' should be a string")
            return TaskSkippedResult(message)
        case "failed":
            return TaskFailureResult()
        case other:
            raise ReplayError(
                f"events[{index}]: unknown outcome '{other}', expected success, skipped or failed"
            )


def _flag(index: int, fields: Mapping[str, Any], key: str) -> bool:
    value = fields.get(key, False)
    if not isinstance(value, bool):
        raise ReplayError(f"events[{index}]: '{key}' should be a boolean")
    return value


def _build_result(value: Any) -> BuildResult | None:
    if value is None:
        return None

    if not isinstance(value, str):
        raise ReplayError("'buildResult' should be a string")

    match value.strip().lower():
        case "success":
            return BuildResult()
        case "failed" | "failure":
            return BuildResult(failure="build failed")
        case other:
            raise ReplayError(f"unknown buildResult '{other}', expected success or failed")


def _required_millis(fields: Mapping[str, Any], key: str, where: str) -> int:
    if key not in fields:
        raise ReplayError(f"{where}: missing '{key}'")
    value = fields[key]
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ReplayError(f"{where}: '{key}' should be an integer (epoch millis)")
    return value


def _optional_millis(raw: Mapping[str, Any], key: str) -> int | None:
    if raw.get(key) is None:
        return None
    return _required_millis(raw, key, "log")
