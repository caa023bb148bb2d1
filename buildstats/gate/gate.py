from collections.abc import Iterable

from buildstats.config import RunConfig


def is_active(config: RunConfig, task_names: Iterable[str]) -> bool:
    """Decide whether a run with ``task_names`` should be recorded.

    Suffix matching is case-insensitive. A non-empty include list fully
    overrides the exclude list.
    """
    if not config.active:
        return False

    names = [name.lower() for name in task_names]
    if not names:
        return True

    include = _normalize(config.include_suffixes)
    if include:
        return any(_ends_with_any(name, include) for name in names)

    exclude = _normalize(config.exclude_suffixes)
    if exclude:
        return not any(_ends_with_any(name, exclude) for name in names)

    return True


def _normalize(suffixes: Iterable[str]) -> tuple[str, ...]:
    return tuple(s.strip().lower() for s in suffixes if s.strip())


def _ends_with_any(name: str, suffixes: tuple[str, ...]) -> bool:
    return name.endswith(suffixes)
