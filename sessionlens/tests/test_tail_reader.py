import json
import tempfile
import unittest
from pathlib import Path

from sessionlens.archive import SessionNotFoundError
from sessionlens.services.tail_reader import tail_session


class TailReaderTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.path = Path(tmpdir.name) / "session.jsonl"
        self.path.write_text("", encoding="utf-8")

    def _append(self, *lines) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            for line in lines:
                handle.write((line if isinstance(line, str) else json.dumps(line)) + "\n")

    def _message(self, kind: str, text: str, **usage) -> dict:
        message = {"role": kind, "content": text, "model": "claude-sonnet" if kind == "assistant" else ""}
        if usage:
            message["usage"] = usage
        return {"type": kind, "timestamp": f"ts-{text}", "message": message}

    def test_total_lines_counts_every_non_blank_line(self) -> None:
        self._append(
            self._message("user", "hello"),
            "",
            "{broken",
            {"type": "progress", "data": {}},
            self._message("assistant", "", input_tokens=1),
            self._message("assistant", "hi", input_tokens=5, output_tokens=7),
        )

        result = tail_session(self.path, 0)

        self.assertEqual(result.totalLines, 5)
        self.assertEqual([m.content for m in result.messages], ["hello", "hi"])
        self.assertEqual((result.messages[0].tokensIn, result.messages[0].tokensOut), (0, 0))
        self.assertEqual((result.messages[1].tokensIn, result.messages[1].tokensOut), (5, 7))
        self.assertEqual(result.messages[1].model, "claude-sonnet")
        self.assertEqual(result.messages[1].messageKind, "assistant")

    def test_resuming_from_total_lines_is_idempotent(self) -> None:
        self._append(self._message("user", "one"), self._message("assistant", "two"))
        first = tail_session(self.path, 0)
        again = tail_session(self.path, first.totalLines)

        self.assertEqual(again.messages, [])
        self.assertEqual(again.totalLines, first.totalLines)

        self._append(self._message("user", "three"), self._message("assistant", "four"), self._message("user", "five"))
        grown = tail_session(self.path, again.totalLines)

        self.assertEqual([m.content for m in grown.messages], ["three", "four", "five"])
        self.assertEqual(grown.totalLines, first.totalLines + 3)

    def test_lines_before_offset_are_skipped(self) -> None:
        self._append(self._message("user", "one"), "{bad", self._message("user", "three"))
        result = tail_session(self.path, 2)
        self.assertEqual([m.content for m in result.messages], ["three"])
        self.assertEqual(result.totalLines, 3)

    def test_missing_file_raises_not_found(self) -> None:
        with self.assertRaises(SessionNotFoundError):
            tail_session(self.path.with_name("missing.jsonl"), 0)

    def test_directory_with_log_suffix_raises_not_found(self) -> None:
        directory = self.path.with_name("abc.jsonl")
        directory.mkdir()
        with self.assertRaises(SessionNotFoundError):
            tail_session(directory, 0)


if __name__ == "__main__":
    unittest.main()
