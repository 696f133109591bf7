import asyncio
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from watchfiles import Change

from sessionlens.file_watcher import FileWatcher, SessionActivityTracker, classify_event


class _RecordingEmitter:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def emit(self, event, payload=None):
        self.events.append((event, payload))


class _FailingEmitter:
    def emit(self, event, payload=None):
        raise RuntimeError("window closed")


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _fake_awatch(batches=(), error=None):
    calls = []

    async def _awatch(*paths, **kwargs):
        calls.append((paths, kwargs))
        if error is not None:
            raise error
        for batch in batches:
            yield batch
        await kwargs["stop_event"].wait()

    return _awatch, calls


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


class ClassifyEventTests(unittest.TestCase):
    def test_claude_md_wins_over_settings_directory(self) -> None:
        self.assertEqual(classify_event("/home/me/.claude/settings/CLAUDE.md"), "claude-md-changed")

    def test_settings_json(self) -> None:
        self.assertEqual(classify_event("/home/me/.claude/settings.json"), "settings-changed")
        self.assertEqual(classify_event("/home/me/.claude/settings.local.json"), "settings-changed")
        self.assertEqual(classify_event("/home/me/.claude/agents/settings.json"), "settings-changed")

    def test_log_files(self) -> None:
        self.assertEqual(classify_event("/home/me/.claude/projects/-a/abc.jsonl"), "history-changed")

    def test_entity_directories(self) -> None:
        for name in ("agents", "rules", "commands", "skills", "hooks"):
            self.assertEqual(classify_event(f"/home/me/.claude/{name}/item.md"), "entity-changed")
        self.assertEqual(classify_event("C:\\Users\\me\\.claude\\rules\\r.md"), "entity-changed")

    def test_unrelated_paths(self) -> None:
        self.assertIsNone(classify_event("/home/me/.claude/todos/list.txt"))
        self.assertIsNone(classify_event("/home/me/.claude/agents"))


class SessionActivityTrackerTests(unittest.TestCase):
    def test_sweep_removes_only_idle_entries(self) -> None:
        clock = _FakeClock()
        tracker = SessionActivityTracker(60, clock)
        tracker.touch("/p/a.jsonl")
        clock.now += 30
        tracker.touch("/p/b.jsonl")
        clock.now += 31

        self.assertEqual(tracker.sweep(), ["/p/a.jsonl"])
        self.assertNotIn("/p/a.jsonl", tracker)
        self.assertIn("/p/b.jsonl", tracker)

    def test_touch_refreshes_activity(self) -> None:
        clock = _FakeClock()
        tracker = SessionActivityTracker(60, clock)
        tracker.touch("/p/a.jsonl")
        clock.now += 59
        tracker.touch("/p/a.jsonl")
        clock.now += 59
        self.assertEqual(tracker.sweep(), [])
        self.assertEqual(len(tracker), 1)


class FileWatcherProcessingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.emitter = _RecordingEmitter()
        self.watcher = FileWatcher(self.emitter, completion_timeout=60, clock=self.clock)

    def test_each_event_kind_is_emitted_once_per_batch(self) -> None:
        emitted = self.watcher.process_changes(
            {
                (Change.modified, "/c/projects/-a/one.jsonl"),
                (Change.modified, "/c/projects/-a/two.jsonl"),
                (Change.added, "/c/projects/-b/three.jsonl"),
                (Change.modified, "/c/settings.json"),
                (Change.modified, "/c/CLAUDE.md"),
                (Change.modified, "/c/todos/ignored.txt"),
            }
        )

        self.assertEqual(sorted(emitted), ["claude-md-changed", "history-changed", "settings-changed"])
        names = [name for name, _ in self.emitter.events]
        self.assertEqual(sorted(names), sorted(emitted))
        self.assertEqual(len(self.watcher.tracker), 3)

    def test_quiet_session_completes_exactly_once(self) -> None:
        self.watcher.process_changes({(Change.modified, "/c/projects/-a/abc.jsonl")})
        self.emitter.events.clear()

        self.clock.now += 60
        self.assertEqual(self.watcher.sweep_completed(), [])

        self.clock.now += 1
        self.assertEqual(self.watcher.sweep_completed(), ["abc"])
        self.assertEqual(self.emitter.events, [("session-completed", "abc")])
        self.assertEqual(len(self.watcher.tracker), 0)

        self.clock.now += 120
        self.assertEqual(self.watcher.sweep_completed(), [])
        self.assertEqual(len(self.emitter.events), 1)

    def test_new_activity_postpones_completion(self) -> None:
        self.watcher.process_changes({(Change.modified, "/c/projects/-a/abc.jsonl")})
        self.clock.now += 50
        self.watcher.process_changes({(Change.modified, "/c/projects/-a/abc.jsonl")})
        self.clock.now += 50
        self.assertEqual(self.watcher.sweep_completed(), [])

    def test_emitter_failures_are_swallowed(self) -> None:
        watcher = FileWatcher(_FailingEmitter(), completion_timeout=60, clock=self.clock)
        self.assertEqual(
            watcher.process_changes({(Change.modified, "/c/projects/-a/abc.jsonl")}),
            ["history-changed"],
        )


class FileWatcherLifecycleTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)
        self.emitter = _RecordingEmitter()

    async def test_start_is_idempotent_and_processes_batches(self) -> None:
        fake, calls = _fake_awatch(
            batches=[
                {(Change.modified, str(self.root / "projects" / "-a" / "abc.jsonl"))},
                set(),
            ]
        )
        watcher = FileWatcher(self.emitter, debounce_ms=500, poll_seconds=10)

        with patch("sessionlens.file_watcher.awatch", fake):
            await watcher.start(self.root)
            await watcher.start(self.root)
            await _settle()

            self.assertTrue(watcher.is_started)
            self.assertTrue(watcher.is_running)
            self.assertEqual(len(calls), 1)
            self.assertEqual(calls[0][1]["debounce"], 500)
            self.assertEqual(calls[0][1]["step"], 500)
            self.assertEqual(calls[0][1]["rust_timeout"], 10000)
            self.assertTrue(calls[0][1]["yield_on_timeout"])
            self.assertEqual(self.emitter.events, [("history-changed", None)])

            await watcher.stop()

        self.assertFalse(watcher.is_running)

    async def test_missing_root_does_not_latch(self) -> None:
        fake, calls = _fake_awatch()
        watcher = FileWatcher(self.emitter)

        with patch("sessionlens.file_watcher.awatch", fake):
            with self.assertLogs("sessionlens.watcher", level="WARNING"):
                await watcher.start(self.root / "missing")
            self.assertFalse(watcher.is_started)

            await watcher.start(self.root)
            await _settle()
            self.assertTrue(watcher.is_started)
            self.assertEqual(len(calls), 1)
            await watcher.stop()

    async def test_watch_failure_is_logged_not_raised(self) -> None:
        fake, _calls = _fake_awatch(error=OSError("inotify watch limit reached"))
        watcher = FileWatcher(self.emitter)

        with patch("sessionlens.file_watcher.awatch", fake):
            with self.assertLogs("sessionlens.watcher", level="ERROR"):
                await watcher.start(self.root)
                await _settle()

        self.assertTrue(watcher.is_started)
        self.assertFalse(watcher.is_running)
        self.assertEqual(self.emitter.events, [])
        await watcher.stop()

    async def test_burst_of_writes_emits_one_event(self) -> None:
        log_path = self.root / "abc.jsonl"
        log_path.write_text("", encoding="utf-8")
        watcher = FileWatcher(self.emitter, debounce_ms=500, poll_seconds=1)

        await watcher.start(self.root)
        try:
            await asyncio.sleep(0.5)
            for n in range(3):
                with log_path.open("a", encoding="utf-8") as handle:
                    handle.write(f'{{"n": {n}}}\n')
                await asyncio.sleep(0.15)
            await asyncio.sleep(1.5)
        finally:
            await watcher.stop()

        names = [name for name, _ in self.emitter.events]
        self.assertEqual(names.count("history-changed"), 1)
        self.assertIn(str(log_path), watcher.tracker)


if __name__ == "__main__":
    unittest.main()
