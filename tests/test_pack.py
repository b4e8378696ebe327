#!/usr/bin/env python3
"""
Tests for folder -> text serialization.

Covers:
- Depth-first, name-sorted traversal
- Ignore rules for folders and files
- Header emission policy and content cleaning
- File-count ceiling
- Round trip through restore
"""

import unittest
import tempfile
import shutil
import sys
from pathlib import Path

# Import from parent directory
sys.path.insert(0, str(Path(__file__).parent.parent))
import folder_text_tool as ftt


class PackTestCase(unittest.TestCase):

    def setUp(self):
        """Create temporary source tree directory."""
        self.test_dir = tempfile.mkdtemp()
        self.test_path = Path(self.test_dir)
        self.src = self.test_path / "src"
        self.src.mkdir()

    def tearDown(self):
        """Clean up temporary directory."""
        shutil.rmtree(self.test_dir)

    def make(self, relative_path: str, content: str = "") -> Path:
        path = self.src / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    def packer(self, rules=None):
        return ftt.FolderSerializer(ftt.FileDiscoverer(rules or ftt.IgnoreRules()))

    def relative_files(self, rules=None):
        rules = rules or ftt.IgnoreRules()
        return [p.relative_to(self.src).as_posix() for p in ftt.FileDiscoverer(rules).find(self.src)]


class TestIterFiles(PackTestCase):
    """Traversal order and ignore rules."""

    def test_depth_first_sorted_order(self):
        for name in ["c.txt", "sub/z.txt", "A.txt", "sub/a.txt", "b.txt", "sub/inner/m.txt"]:
            self.make(name)

        self.assertEqual(
            self.relative_files(),
            ["A.txt", "b.txt", "c.txt", "sub/a.txt", "sub/inner/m.txt", "sub/z.txt"],
        )

    def test_ignored_folders_are_pruned(self):
        self.make("app.js")
        self.make("node_modules/lib/index.js")
        self.make("build-out/bundle.js")
        self.make("nested/node_modules/x.js")

        rules = ftt.IgnoreRules(folders=("node_modules", "build*"))
        self.assertEqual(self.relative_files(rules), ["app.js"])

    def test_ignored_files_are_skipped(self):
        self.make("app.log")
        self.make("keep.py")
        self.make("deep/trace.log")
        self.make("deep/app.min.js")

        rules = ftt.IgnoreRules(files=("*.log", "*.min.js"))
        self.assertEqual(self.relative_files(rules), ["keep.py"])

    def test_patterns_match_base_name_only(self):
        self.make("docs/readme.md")

        rules = ftt.IgnoreRules(files=("docs*",))
        self.assertEqual(self.relative_files(rules), ["docs/readme.md"])

    def test_count_matches_walk(self):
        for i in range(5):
            self.make(f"d{i}/f.txt")
        self.make("skip.log")

        rules = ftt.IgnoreRules(files=("*.log",))
        self.assertEqual(ftt.FileDiscoverer(rules).count(self.src), 5)


class TestSerialize(PackTestCase):
    """Per-file header policy and cleaning."""

    def records(self):
        return {r.relative_path: r for r in self.packer().serialize(self.src)}

    def test_header_style_follows_extension(self):
        self.make("main.py", "print(1)\n")
        self.make("style.css", "p {}\n")
        self.make("page.html", "<p></p>\n")
        self.make("q.sql", "SELECT 1;\n")
        self.make("README.md", "# Title\n")

        records = self.records()

        self.assertEqual(records["main.py"].header_line, "# File: main.py")
        self.assertEqual(records["style.css"].header_line, "/* File: style.css */")
        self.assertEqual(records["page.html"].header_line, "<!-- File: page.html -->")
        self.assertEqual(records["q.sql"].header_line, "-- File: q.sql")
        self.assertEqual(records["README.md"].header_line, "// File: README.md")

    def test_existing_header_is_not_duplicated(self):
        self.make("tool.py", "\n# File: custom/tool.py\nprint(1)\n")

        record = self.records()["tool.py"]

        self.assertIsNone(record.header_line)
        self.assertEqual(record.render(), "\n# File: custom/tool.py\nprint(1)\n\n\n")

    def test_nested_paths_are_posix_relative(self):
        self.make("a/b/c.ts", "export {};\n")
        self.assertEqual(self.records()["a/b/c.ts"].header_line, "// File: a/b/c.ts")

    def test_content_is_cleaned(self):
        self.make("q.js", "\ufeffconst q = \u201cx\u201d;\r\n")
        self.assertEqual(self.records()["q.js"].content, 'const q = "x";\n')

    def test_whole_file_fence_is_unwrapped(self):
        self.make("x.py", "```python\nprint(1)\n```\n")

        record = self.records()["x.py"]

        self.assertEqual(record.content, "print(1)")
        self.assertEqual(record.header_line, "# File: x.py")

    def test_render_format(self):
        record = ftt.SerializedFile(relative_path="a.js", header_line="// File: a.js", content="let a;\n")
        self.assertEqual(record.render(), "// File: a.js\nlet a;\n\n\n")

    def test_missing_root(self):
        with self.assertRaises(ftt.InputUnreadableError):
            list(self.packer().serialize(self.test_path / "nope"))


class TestPackFolder(PackTestCase):
    """Writing the flat document."""

    def test_writes_document(self):
        self.make("a.js", "let a;\n")
        self.make("b/c.css", "p {}")
        output = self.test_path / "out" / "dump.txt"

        result = self.packer().pack(self.src, output)

        self.assertEqual(result.files_written, 2)
        self.assertEqual(result.output_path, output)
        self.assertEqual(
            output.read_bytes().decode("utf-8"),
            "// File: a.js\nlet a;\n\n\n/* File: b/c.css */\np {}\n\n",
        )

    def test_output_inside_root_is_not_packed(self):
        self.make("a.js", "let a;\n")
        output = self.src / "dump.txt"
        output.write_text("stale")

        result = self.packer().pack(self.src, output)

        self.assertEqual(result.files_written, 1)
        self.assertNotIn("dump.txt", output.read_text(encoding="utf-8"))

    def test_ceiling_enforced_before_output(self):
        for i in range(1001):
            self.make(f"f{i:04d}.txt", "x")
        output = self.test_path / "dump.txt"

        with self.assertRaises(ftt.FileCountExceededError) as ctx:
            self.packer().pack(self.src, output)

        self.assertEqual(ctx.exception.count, 1001)
        self.assertEqual(ctx.exception.limit, ftt.MAX_FILES)
        self.assertFalse(output.exists())

    def test_ignored_files_do_not_count_toward_limit(self):
        for i in range(3):
            self.make(f"f{i}.txt", "x")
        self.make("skip/a.txt", "x")
        self.make("skip/b.txt", "x")
        output = self.test_path / "dump.txt"

        result = self.packer(ftt.IgnoreRules(folders=("skip",))).pack(self.src, output, limit=3)
        self.assertEqual(result.files_written, 3)

        with self.assertRaises(ftt.FileCountExceededError):
            self.packer().pack(self.src, output, limit=3)

    def test_missing_root(self):
        with self.assertRaises(ftt.InputUnreadableError):
            self.packer().pack(self.test_path / "nope", self.test_path / "dump.txt")

    def test_unwritable_output(self):
        self.make("a.js", "let a;\n")
        blocker = self.test_path / "blocker"
        blocker.write_text("file")

        with self.assertRaises(ftt.OutputUnwritableError):
            self.packer().pack(self.src, blocker / "dump.txt")


class TestRoundTrip(PackTestCase):
    """pack -> restore reproduces the tree."""

    def test_round_trip(self):
        self.make("a/b.txt", "hello")
        self.make("c.css", "body{}")
        self.make("d.json", '{"k": 1}\n')
        self.make("e.py", "# File: e.py\nprint(1)\n")
        document = self.test_path / "out" / "dump.txt"

        self.packer().pack(self.src, document)
        result = ftt.DocumentRestorer().restore_document(document)

        restored = result.output_root
        self.assertEqual(result.files_written, 4)
        self.assertEqual((restored / "a" / "b.txt").read_bytes(), b"// File: a/b.txt\nhello")
        self.assertEqual((restored / "c.css").read_bytes(), b"/* File: c.css */\nbody{}")
        self.assertEqual((restored / "d.json").read_bytes(), b'{"k": 1}\n')
        self.assertEqual((restored / "e.py").read_bytes(), b"# File: e.py\nprint(1)\n")


if __name__ == '__main__':
    unittest.main()
