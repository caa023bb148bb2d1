from __future__ import annotations

import threading
from pathlib import Path

import pytest
import yaml

from buildstats.config.types import RunConfig
from buildstats.report import (
    BuildStatus,
    Failed,
    OpenOutcome,
    ReportState,
    ReportWriter,
    Skipped,
    Success,
    TaskRecord,
    render_status,
)
from buildstats.report.naming import format_timestamp, report_stem, task_segment

START = 1_700_000_000_000


def _writer(home: Path, tasks: list[str] | None = None) -> ReportWriter:
    config = RunConfig(active=True, output_home_path=str(home))
    return ReportWriter(config, tasks or [])


def _load(path: Path) -> dict:
    return yaml.safe_load(path.read_text(encoding="utf-8"))


# -------------------------
# Status rendering
# -------------------------


@pytest.mark.parametrize(
    "status, expected",
    [
        (Success(), "SUCCESS"),
        (Success(up_to_date=True), "SUCCESS UP-TO-DATE"),
        (Success(from_cache=True), "SUCCESS FROM-CACHE"),
        (Success(up_to_date=True, from_cache=True), "SUCCESS UP-TO-DATE FROM-CACHE"),
        (Skipped(), "SKIPPED"),
        (Skipped(""), "SKIPPED"),
        (Skipped("NO-SOURCE"), "SKIPPED NO-SOURCE"),
        (Failed(), "FAILED"),
    ],
)
def test_render_status(status, expected: str) -> None:
    assert render_status(status) == expected


# -------------------------
# File naming
# -------------------------


def test_task_segment_uses_last_component_and_skips_flags() -> None:
    tasks = [":app:assembleDebug", "--offline", "test", ":lib:", "--tests=com.x.FooTest", "com.x.Foo"]
    assert task_segment(tasks) == "assembledebug-test"


def test_report_stem_layout() -> None:
    stem = report_stem(START, "My App", [":app:Build"])
    assert stem == f"{format_timestamp(START)}-my-app-build"
    assert report_stem(START, "app", []) == f"{format_timestamp(START)}-app"


def test_timestamp_format() -> None:
    stamp = format_timestamp(START)
    date, time = stamp.split("--")
    assert len(date.split("-")) == 3
    assert len(time.split("-")) == 3


# -------------------------
# Lifecycle
# -------------------------


def test_open_writes_header_to_provisional_file(tmp_path: Path) -> None:
    home = tmp_path / "nested" / "reports"
    writer = _writer(home, [":app:build"])

    assert writer.open("app", START) is OpenOutcome.OPENED
    assert writer.state is ReportState.OPEN

    provisional = writer.provisional_path
    assert provisional is not None
    assert provisional.name.endswith(".yaml.inprogress")
    assert provisional.read_text(encoding="utf-8").splitlines() == [
        "version: 1",
        'project: "app"',
        f"buildStartTime: {START}",
    ]


def test_open_twice_is_a_no_op(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    assert writer.open("app", START) is OpenOutcome.OPENED
    assert writer.open("other", START + 5) is OpenOutcome.OPENED

    assert len(list(tmp_path.iterdir())) == 1
    assert 'project: "app"' in writer.provisional_path.read_text(encoding="utf-8")


def test_add_task_is_flushed_immediately(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    writer.add_task(TaskRecord(":app:compile", 12, Success()))

    partial = _load(writer.provisional_path)
    assert partial["taskDetails"] == [
        {"path": ":app:compile", "duration": 12, "status": "SUCCESS"}
    ]


def test_finalize_writes_full_document_in_order(tmp_path: Path) -> None:
    writer = _writer(tmp_path, [":app:assembleDebug"])
    writer.open("app", START)
    records = [
        TaskRecord(":app:preBuild", 0, Success(up_to_date=True)),
        TaskRecord(":app:compile", 50, Success(from_cache=True)),
        TaskRecord(":app:lint", 3, Skipped('message with "quotes"')),
        TaskRecord(":app:test", 7, Failed()),
    ]
    for record in records:
        writer.add_task(record)

    path = writer.finalize([":app:assembleDebug"], BuildStatus.FAILED, 200)

    assert path is not None
    assert path == tmp_path / f"{report_stem(START, 'app', [':app:assembleDebug'])}.yaml"
    assert writer.state is ReportState.FINALIZED
    assert not writer.provisional_path.exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == [path.name]

    text = path.read_text(encoding="utf-8")
    keys = [line.split(":")[0] for line in text.splitlines() if not line.startswith(("-", " "))]
    assert keys == [
        "version",
        "project",
        "buildStartTime",
        "buildTaskNames",
        "taskDetails",
        "buildStatus",
        "buildDuration",
    ]

    report = _load(path)
    assert report["version"] == 1
    assert report["project"] == "app"
    assert report["buildStartTime"] == START
    assert report["buildTaskNames"] == [":app:assembleDebug"]
    assert [t["path"] for t in report["taskDetails"]] == [r.path for r in records]
    assert [t["duration"] for t in report["taskDetails"]] == [0, 50, 3, 7]
    assert [t["status"] for t in report["taskDetails"]] == [
        "SUCCESS UP-TO-DATE",
        "SUCCESS FROM-CACHE",
        'SKIPPED message with "quotes"',
        "FAILED",
    ]
    assert report["buildStatus"] == "FAILED"
    assert report["buildDuration"] == 200


def test_finalize_uses_late_task_names_for_file_name(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    writer.add_task(TaskRecord(":lint", 4, Success()))

    path = writer.finalize([":lint"], "SUCCESS", 4)

    assert path is not None
    assert path.name == f"{format_timestamp(START)}-app-lint.yaml"
    assert _load(path)["buildTaskNames"] == [":lint"]


def test_finalize_without_tasks_renders_empty_lists(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)

    path = writer.finalize([], BuildStatus.SUCCESS, 0)

    report = _load(path)
    assert report["buildTaskNames"] == []
    assert report["taskDetails"] == []


def test_totals_track_added_tasks(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    writer.add_task(TaskRecord("a", 10, Success()))
    writer.add_task(TaskRecord("b", 15, Failed()))

    totals = writer.totals
    assert totals.task_count == 2
    assert totals.sum_of_durations == 25


def test_add_task_before_open_is_ignored(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.add_task(TaskRecord("a", 10, Success()))

    assert writer.totals.task_count == 0
    assert list(tmp_path.iterdir()) == []


def test_finalize_and_discard_are_idempotent(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    path = writer.finalize([], BuildStatus.SUCCESS, 1)
    content = path.read_text(encoding="utf-8")

    assert writer.finalize([], BuildStatus.FAILED, 99) is None
    writer.discard()
    writer.add_task(TaskRecord("late", 1, Success()))

    assert writer.state is ReportState.FINALIZED
    assert path.read_text(encoding="utf-8") == content


def test_discard_removes_artifact(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    writer.add_task(TaskRecord("a", 1, Success()))

    writer.discard()
    writer.discard()

    assert writer.state is ReportState.DISCARDED
    assert list(tmp_path.iterdir()) == []
    assert writer.finalize(["a"], BuildStatus.SUCCESS, 1) is None
    assert list(tmp_path.iterdir()) == []


def test_discard_before_open(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.discard()

    assert writer.state is ReportState.DISCARDED
    assert writer.open("app", START) is OpenOutcome.SUPPRESSED
    assert list(tmp_path.iterdir()) == []


# -------------------------
# Failures are suppressed
# -------------------------


def test_unusable_output_dir_suppresses_tracking(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    writer = _writer(blocker / "reports")

    assert writer.open("app", START) is OpenOutcome.SUPPRESSED
    assert writer.state is ReportState.SUPPRESSED

    writer.add_task(TaskRecord("a", 1, Success()))
    assert writer.finalize(["a"], BuildStatus.SUCCESS, 1) is None
    writer.discard()
    assert writer.state is ReportState.SUPPRESSED
    assert sorted(p.name for p in tmp_path.iterdir()) == ["blocker"]


def test_existing_report_file_suppresses_tracking(tmp_path: Path) -> None:
    stem = report_stem(START, "app", [":build"])
    (tmp_path / f"{stem}.yaml.inprogress").write_text("taken", encoding="utf-8")
    writer = _writer(tmp_path, [":build"])

    assert writer.open("app", START) is OpenOutcome.SUPPRESSED
    assert (tmp_path / f"{stem}.yaml.inprogress").read_text(encoding="utf-8") == "taken"


def test_existing_final_report_is_never_overwritten(tmp_path: Path) -> None:
    stem = report_stem(START, "app", [":lint"])
    (tmp_path / f"{stem}.yaml").write_text("earlier run", encoding="utf-8")
    writer = _writer(tmp_path, [":lint"])
    writer.open("app", START)

    path = writer.finalize([":lint"], BuildStatus.SUCCESS, 1)

    assert path == tmp_path / f"{stem}-2.yaml"
    assert (tmp_path / f"{stem}.yaml").read_text(encoding="utf-8") == "earlier run"


def test_runs_sharing_a_final_name_both_keep_their_report(tmp_path: Path) -> None:
    # Different requested names give distinct journals, the late names collide
    first = _writer(tmp_path)
    second = _writer(tmp_path, [":lint"])
    assert first.open("app", START) is OpenOutcome.OPENED
    assert second.open("app", START) is OpenOutcome.OPENED
    first.add_task(TaskRecord(":lint", 4, Success()))
    second.add_task(TaskRecord(":lint", 9, Failed()))

    first_path = first.finalize([":lint"], BuildStatus.SUCCESS, 4)
    second_path = second.finalize([":lint"], BuildStatus.FAILED, 9)

    assert first_path is not None and second_path is not None
    assert first_path != second_path
    assert _load(first_path)["buildStatus"] == "SUCCESS"
    assert _load(second_path)["buildStatus"] == "FAILED"
    assert sorted(p.name for p in tmp_path.iterdir()) == sorted(
        [first_path.name, second_path.name]
    )


def test_report_path_is_set_only_after_finalize(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    provisional = writer.provisional_path

    assert writer.report_path is None
    path = writer.finalize([], BuildStatus.SUCCESS, 0)

    assert writer.report_path == path
    assert provisional is not None and not provisional.exists()


# -------------------------
# Concurrency
# -------------------------


def test_concurrent_add_task_writes_every_record_once(tmp_path: Path) -> None:
    writer = _writer(tmp_path)
    writer.open("app", START)
    n_threads = 8
    per_thread = 25
    barrier = threading.Barrier(n_threads)

    def work(worker: int) -> None:
        barrier.wait()
        for i in range(per_thread):
            writer.add_task(TaskRecord(f":w{worker}:t{i}", i, Success()))

    threads = [threading.Thread(target=work, args=(w,)) for w in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    partial = _load(writer.provisional_path)
    assert len(partial["taskDetails"]) == n_threads * per_thread

    path = writer.finalize([], BuildStatus.SUCCESS, 0)
    details = _load(path)["taskDetails"]
    paths = [t["path"] for t in details]
    assert len(paths) == n_threads * per_thread
    assert set(paths) == {f":w{w}:t{i}" for w in range(n_threads) for i in range(per_thread)}
    assert writer.totals.task_count == n_threads * per_thread
