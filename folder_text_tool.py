from __future__ import annotations

import argparse
import re
import sys
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple, runtime_checkable
import json5


MAX_FILES = 1000
RESTORE_DIR_NAME = "restored-data"
DEFAULT_IGNORE_CONFIG = "ignore.json"
DEFAULT_LANG = "en"


# ============================================================================
# DOMAIN MODELS
# ============================================================================

class CommentStyle(Enum):
    """Comment syntaxes a File: header can be written in."""
    SLASH = "//"
    BLOCK = "/*"
    HASH = "#"
    HTML = "<!--"
    DASH = "--"

    def format_header(self, relative_path: str) -> str:
        if self is CommentStyle.BLOCK:
            return f"/* File: {relative_path} */"
        elif self is CommentStyle.HTML:
            return f"<!-- File: {relative_path} -->"
        else:
            return f"{self.value} File: {relative_path}"


EXTENSION_STYLES: Dict[str, CommentStyle] = {
    **{ext: CommentStyle.SLASH for ext in [".js", ".ts", ".jsx", ".tsx", ".java", ".c", ".cpp", ".h"]},
    **{ext: CommentStyle.BLOCK for ext in [".css", ".scss", ".sass", ".less"]},
    **{ext: CommentStyle.HASH for ext in [".py", ".sh", ".rb", ".ps1"]},
    **{ext: CommentStyle.HTML for ext in [".html", ".htm", ".vue", ".svelte"]},
    **{ext: CommentStyle.DASH for ext in [".sql", ".lua"]},
}


@dataclass(frozen=True)
class IgnoreRules:
    """Wildcard patterns matched against folder and file base names."""

    folders: Tuple[str, ...] = ()
    files: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IgnoreRules:
        if not isinstance(data, dict):
            raise ValueError("ignore config must be an object with 'folders' and 'files'")

        processed = {}
        for key in ("folders", "files"):
            patterns = data.get(key) or []
            if not isinstance(patterns, list):
                raise ValueError(f"'{key}' must be a list of patterns")
            processed[key] = tuple(str(p) for p in patterns)

        return cls(**processed)

    def to_dict(self) -> Dict[str, Any]:
        return {key: list(value) for key, value in asdict(self).items()}

    def ignores_folder(self, name: str) -> bool:
        return any(WildcardMatcher.matches(name, pattern) for pattern in self.folders)

    def ignores_file(self, name: str) -> bool:
        return any(WildcardMatcher.matches(name, pattern) for pattern in self.files)


@dataclass
class FileRecord:
    """A file being rebuilt from a flat document; the header is its first line."""
    relative_path: str
    header_line: str
    content_lines: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SerializedFile:
    """One packed file: header to prepend (None if already annotated) and content."""
    relative_path: str
    header_line: Optional[str]
    content: str

    def render(self) -> str:
        body = self.content if self.header_line is None else f"{self.header_line}\n{self.content}"
        return f"{body}\n\n"


@dataclass(frozen=True)
class PackResult:
    files_written: int
    output_path: Path
    elapsed_ms: int


@dataclass(frozen=True)
class RestoreResult:
    files_written: int
    files_dropped: int
    output_root: Path
    elapsed_ms: int


@dataclass(frozen=True)
class StripResult:
    lines_in: int
    lines_out: int
    output_path: Path
    elapsed_ms: int


class ProjectType(Enum):
    """Project types with their own default ignore rules."""
    GENERAL = "general"
    PYTHON = "python"
    NODEJS = "nodejs"
    PHP = "php"
    FLUTTER = "flutter"
    DOTNET = "dotnet"


# ============================================================================
# ERRORS
# ============================================================================

class FolderTextError(Exception):
    """Base class for failures of pack, restore and strip."""


class InputUnreadableError(FolderTextError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read '{path}': {reason}")


class OutputUnwritableError(FolderTextError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot write '{path}': {reason}")


class FileCountExceededError(FolderTextError):
    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"{count} files found, limit is {limit}")


# ============================================================================
# PROTOCOLS (Interfaces)
# ============================================================================

@runtime_checkable
class IgnoreConfigProvider(Protocol):
    def load(self) -> IgnoreRules: ...
    def save(self, rules: IgnoreRules) -> None: ...
    def reset(self) -> IgnoreRules: ...


@runtime_checkable
class ProgressListener(Protocol):
    def on_start(self, total: int) -> None: ...
    def on_file(self, path: str) -> None: ...
    def on_skip(self, path: str, reason: str) -> None: ...
    def on_complete(self, processed: int, elapsed_time: float) -> None: ...


# ============================================================================
# LOCALIZATION
# ============================================================================

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "usage": "Usage: folder-text-tool pack FOLDER -o OUTPUT | restore DOCUMENT | strip INPUT OUTPUT",
        "file_limit_exceeded": "({count}) The number of files exceeds the limit of {limit}",
        "start_writing": "Starting writing output file {path}",
        "writing_file": "Writing file {path}",
        "finished_writing": "Finished writing output file {path}",
        "found_files": "Found {total} files to process...",
        "skipped_path": "Skipped {path}: {reason}",
        "completed": "Processed {count} files in {elapsed:.2f}s.",
        "restored_files": "Restored {count} files into {path} ({dropped} dropped)",
        "stripped_document": "Wrote cleaned content to {path} ({lines_in} -> {lines_out} lines)",
        "fatal_error": "Error: {error}",
    },
    "es": {
        "usage": "Uso: folder-text-tool pack CARPETA -o SALIDA | restore DOCUMENTO | strip ENTRADA SALIDA",
        "file_limit_exceeded": "({count}) El número de archivos supera el límite de {limit}",
        "start_writing": "Comenzando a escribir el archivo de salida {path}",
        "writing_file": "Escribiendo archivo {path}",
        "finished_writing": "Terminó de escribir el archivo de salida {path}",
        "found_files": "Se encontraron {total} archivos para procesar...",
        "skipped_path": "Omitido {path}: {reason}",
        "completed": "Se procesaron {count} archivos en {elapsed:.2f}s.",
        "restored_files": "Se restauraron {count} archivos en {path} ({dropped} descartados)",
        "stripped_document": "Contenido limpio escrito en {path} ({lines_in} -> {lines_out} líneas)",
        "fatal_error": "Error: {error}",
    },
    "pt": {
        "usage": "Uso: folder-text-tool pack PASTA -o SAIDA | restore DOCUMENTO | strip ENTRADA SAIDA",
        "file_limit_exceeded": "({count}) O número de arquivos excede o limite de {limit}",
        "start_writing": "Iniciando a escrita do arquivo de saída {path}",
        "writing_file": "Escrevendo arquivo {path}",
        "finished_writing": "Escrita do arquivo de saída concluída {path}",
        "found_files": "{total} arquivos encontrados para processar...",
        "skipped_path": "Ignorado {path}: {reason}",
        "completed": "{count} arquivos processados em {elapsed:.2f}s.",
        "restored_files": "{count} arquivos restaurados em {path} ({dropped} descartados)",
        "stripped_document": "Conteúdo limpo gravado em {path} ({lines_in} -> {lines_out} linhas)",
        "fatal_error": "Erro: {error}",
    },
}


class Messages:
    """Localized console text; unknown languages and keys fall back to English."""

    def __init__(self, lang: str = DEFAULT_LANG):
        self.lang = lang if lang in MESSAGES else DEFAULT_LANG

    def get(self, key: str, **kwargs: Any) -> str:
        template = MESSAGES[self.lang].get(key) or MESSAGES[DEFAULT_LANG].get(key, key)
        return template.format(**kwargs)


# ============================================================================
# CONFIGURATION MANAGEMENT
# ============================================================================

class ProjectTypeRegistry:
    """Dynamic registry of per-project-type ignore rules."""

    _project_types: Dict[ProjectType, Dict[str, List[str]]] = {}

    @classmethod
    def register(cls, project_type: ProjectType, rules: Dict[str, List[str]]):
        cls._project_types[project_type] = rules

    @classmethod
    def get_rules(cls, project_type: ProjectType) -> Dict[str, List[str]]:
        if not cls._project_types:
            cls.initialize_defaults()
        return cls._project_types.get(project_type, cls._project_types[ProjectType.GENERAL])

    @classmethod
    def initialize_defaults(cls):
        """Initialize default rules for all project types."""
        defaults = {
            ProjectType.GENERAL: {"folders": [], "files": []},
            ProjectType.PYTHON: {
                "folders": [
                    "__pycache__", ".venv", "venv", "env", ".tox", ".pytest_cache",
                    ".mypy_cache", "*.egg-info", "build", "dist", "htmlcov",
                ],
                "files": ["*.pyc", "*.pyo", "*.pyd", ".coverage"],
            },
            ProjectType.NODEJS: {
                "folders": ["node_modules", "dist", "build", "coverage", ".next", ".nuxt"],
                "files": ["package-lock.json", "yarn.lock", "pnpm-lock.yaml", "*.min.js", "*.map"],
            },
            ProjectType.PHP: {
                "folders": ["vendor"],
                "files": ["composer.lock"],
            },
            ProjectType.FLUTTER: {
                "folders": [".dart_tool", "build"],
                "files": ["pubspec.lock", "*.g.dart"],
            },
            ProjectType.DOTNET: {
                "folders": ["bin", "obj", "packages"],
                "files": ["*.dll", "*.exe", "*.pdb", "*.user", "*.suo"],
            },
        }

        for ptype, rules in defaults.items():
            cls.register(ptype, rules)


class IgnoreRulesFactory:
    """Creates project-specific ignore rules on top of the core rules."""

    CORE_RULES = {
        "folders": [".git", ".svn", ".hg", ".idea", ".vscode", RESTORE_DIR_NAME],
        "files": [
            ".DS_Store", "Thumbs.db", "*.log", "*.swp",
            "*.png", "*.jpg", "*.jpeg", "*.gif", "*.ico", "*.pdf", "*.zip", "*.gz",
            "*.woff", "*.woff2", "*.ttf",
        ],
    }

    @staticmethod
    def create(project_type: ProjectType) -> IgnoreRules:
        specific = ProjectTypeRegistry.get_rules(project_type)
        return IgnoreRules.from_dict(IgnoreRulesFactory._apply_core_rules(specific))

    @staticmethod
    def _apply_core_rules(specific: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {
            key: list(dict.fromkeys(IgnoreRulesFactory.CORE_RULES[key] + specific.get(key, [])))
            for key in ("folders", "files")
        }


class ProjectTypeDetector:
    """Detects project type based on characteristic files."""

    @staticmethod
    def detect(root: Path) -> ProjectType:
        """Heuristically detect project type."""
        if (root / "pubspec.yaml").exists():
            return ProjectType.FLUTTER
        if any(root.glob("*.sln")) or any(root.glob("*.csproj")):
            return ProjectType.DOTNET
        if (root / "package.json").exists():
            return ProjectType.NODEJS
        if (root / "composer.json").exists():
            return ProjectType.PHP
        if any((root / marker).exists() for marker in ("pyproject.toml", "setup.py", "requirements.txt")):
            return ProjectType.PYTHON

        return ProjectType.GENERAL


class JsonIgnoreConfigProvider:
    """Handles ignore-rule I/O using a JSON5 file with 'folders' and 'files' lists."""

    def __init__(self, path: Path, project_root: Optional[Path] = None):
        self.path = Path(path)
        self.project_root = Path(project_root) if project_root else Path.cwd()

    def load(self) -> IgnoreRules:
        if not self.path.exists():
            return self._create_default()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json5.load(f)
            rules = IgnoreRules.from_dict(data)
            print(f"✅ Ignore rules loaded from: {self.path}")
            return rules
        except (ValueError, TypeError, OSError) as e:
            print(f"⚠️ Could not read ignore rules from {self.path}: {e}. Using defaults.")
            return self._defaults()

    def save(self, rules: IgnoreRules) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json5.dump(rules.to_dict(), f, indent=2, ensure_ascii=False)
            print(f"✅ Ignore rules saved to: {self.path}")
        except OSError as e:
            print(f"❌ Error saving ignore rules: {e}")

    def reset(self) -> IgnoreRules:
        """Reset to factory defaults."""
        rules = self._defaults()
        self.save(rules)
        return rules

    def _defaults(self) -> IgnoreRules:
        project_type = ProjectTypeDetector.detect(self.project_root)
        print(f"🔍 Detected project type: {project_type.value}")
        return IgnoreRulesFactory.create(project_type)

    def _create_default(self) -> IgnoreRules:
        """Create and save default rules."""
        rules = self.reset()
        print(f"🆕 Created ignore config: {self.path}")
        return rules



# ============================================================================
# TEXT ENGINE
# ============================================================================

class ArtifactCleaner:
    """Normalize text pasted out of chat transcripts and editors."""

    BOM = "\ufeff"
    ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\u2060]")
    CRLF_RE = re.compile(r"\r+\n")
    QUOTE_TABLE = str.maketrans({"\u201c": '"', "\u201d": '"', "\u2018": "'", "\u2019": "'"})
    FENCE_RE = re.compile(r"^\s*```[^`\s]*\s*$")

    @staticmethod
    def clean(raw: str) -> str:
        """Remove chat-transcript artifacts: BOM, zero-width chars, curly quotes, CRLF."""
        text = ArtifactCleaner.ZERO_WIDTH_RE.sub("", raw)
        text = ArtifactCleaner.CRLF_RE.sub("\n", text)
        text = text.translate(ArtifactCleaner.QUOTE_TABLE)
        return text.lstrip(ArtifactCleaner.BOM)

    @staticmethod
    def is_fence(line: str) -> bool:
        return ArtifactCleaner.FENCE_RE.match(line) is not None

    @staticmethod
    def unfence(raw: str) -> str:
        """Unwrap a single ``` fence enclosing the whole text; otherwise return it unchanged."""
        trimmed = raw.strip()
        if not trimmed.startswith("```"):
            return raw

        lines = trimmed.split("\n")
        if len(lines) < 2 or not ArtifactCleaner.is_fence(lines[0]) or not ArtifactCleaner.is_fence(lines[-1]):
            return raw
        return "\n".join(lines[1:-1])

    @staticmethod
    def split_lines(text: str) -> List[str]:
        """Split on LF; a terminal newline does not start another line."""
        if not text:
            return []
        lines = text.split("\n")
        if text.endswith("\n"):
            lines.pop()
        return lines


class WildcardMatcher:
    """Base-name matching where only '*' is special."""

    _cache: Dict[str, re.Pattern] = {}

    @classmethod
    def matches(cls, name: str, pattern: str) -> bool:
        if name == pattern:
            return True

        compiled = cls._cache.get(pattern)
        if compiled is None:
            compiled = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")
            cls._cache[pattern] = compiled
        return compiled.match(name) is not None


class HeaderRecognizer:
    """Recognize File: header comments in any supported comment syntax."""

    # Priority order matters: first match wins.
    PATTERNS: Tuple[Tuple[CommentStyle, re.Pattern], ...] = (
        (CommentStyle.SLASH, re.compile(r"^\s*//\s*File:\s*(.*?)\s*$")),
        (CommentStyle.BLOCK, re.compile(r"^\s*/\*\s*File:\s*(.*?)\s*\*/\s*$")),
        (CommentStyle.HASH, re.compile(r"^\s*#\s*File:\s*(.*?)\s*$")),
        (CommentStyle.HTML, re.compile(r"^\s*<!--\s*File:\s*(.*?)\s*-->\s*$")),
        (CommentStyle.DASH, re.compile(r"^\s*--\s*File:\s*(.*?)\s*$")),
    )

    @classmethod
    def recognize(cls, line: str) -> Optional[str]:
        """Return the path encoded by a File: header line, or None."""
        candidate = ArtifactCleaner.clean(line.rstrip())
        for _style, pattern in cls.PATTERNS:
            match = pattern.match(candidate)
            if match:
                return match.group(1).strip() or None
        return None

    @classmethod
    def has_header(cls, content: str) -> bool:
        """True if the first non-blank line is already a File: header."""
        first = next((line for line in content.split("\n") if line.strip()), "")
        return cls.recognize(first) is not None


class HeaderFormatter:
    """Format File: headers for different file types."""

    @staticmethod
    def get_style(relative_path: str) -> CommentStyle:
        return EXTENSION_STYLES.get(PurePosixPath(relative_path).suffix.lower(), CommentStyle.SLASH)

    @staticmethod
    def format_header(relative_path: str) -> str:
        return HeaderFormatter.get_style(relative_path).format_header(relative_path)


class PathSanitizer:
    """Turns header paths into targets under an output root."""

    DRIVE_RE = re.compile(r"^[A-Za-z]:")

    @staticmethod
    def sanitize(path: str) -> str:
        """Strip leading drive letters and separators; backslashes become '/'."""
        sanitized = path.replace("\\", "/")
        while True:
            stripped = PathSanitizer.DRIVE_RE.sub("", sanitized, count=1).lstrip("/")
            if stripped == sanitized:
                return sanitized
            sanitized = stripped

    @staticmethod
    def resolve_target(relative_path: str, output_root: Path) -> Optional[Path]:
        """Map a header path to a file under output_root, or None if it would land elsewhere."""
        sanitized = PathSanitizer.sanitize(relative_path)
        if not sanitized:
            return None

        root = output_root.resolve()
        target = (root / sanitized).resolve()
        if target == root:
            return None
        try:
            target.relative_to(root)
        except ValueError:
            return None
        return target


# ============================================================================
# DESERIALIZER (text -> folder)
# ============================================================================

class DocumentRestorer:
    """Rebuilds files from the File: segments of a flat document."""

    def __init__(self, listener: Optional[ProgressListener] = None):
        self.listener = listener or NullProgressListener()

    @staticmethod
    def segment(lines: Iterable[str]) -> Iterator[FileRecord]:
        """Split document lines into file records; fenced lines are never headers."""
        in_fence = False
        current: Optional[FileRecord] = None

        for line in lines:
            if ArtifactCleaner.is_fence(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue

            path = HeaderRecognizer.recognize(line)
            if path is not None:
                if current is not None:
                    yield current
                current = FileRecord(relative_path=path, header_line=line, content_lines=[line])
            elif current is not None:
                current.content_lines.append(line)
            # Lines before the first header are dropped.

        if current is not None:
            yield current

    @staticmethod
    def unwrap_document(text: str) -> str:
        """Remove a fence wrapping the whole document, unless fences also occur inside it."""
        unwrapped = ArtifactCleaner.unfence(text)
        if any(ArtifactCleaner.is_fence(line) for line in unwrapped.split("\n")):
            # The outer fences belong to separate blocks; the toggle decides.
            return text
        return unwrapped

    def restore_text(self, text: str, output_root: Path) -> RestoreResult:
        """Materialize every File: segment of text as a file under output_root."""
        output_root = Path(output_root)
        start_time = time.monotonic()

        try:
            output_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputUnwritableError(output_root, str(e)) from e

        lines = ArtifactCleaner.split_lines(self.unwrap_document(ArtifactCleaner.clean(text)))
        records = list(self.segment(lines))
        self.listener.on_start(len(records))

        written = 0
        dropped = 0
        for record in records:
            target = PathSanitizer.resolve_target(record.relative_path, output_root)
            if target is None:
                dropped += 1
                self.listener.on_skip(record.relative_path, "path outside output root")
                continue

            self.listener.on_file(record.relative_path)
            FileOutputWriter.write(target, self._record_content(record, target))
            written += 1

        elapsed = time.monotonic() - start_time
        self.listener.on_complete(written, elapsed)
        return RestoreResult(
            files_written=written,
            files_dropped=dropped,
            output_root=output_root,
            elapsed_ms=int(elapsed * 1000),
        )

    def restore_document(self, document_path: Path) -> RestoreResult:
        """Restore a flat document into the restored-data folder next to it."""
        document_path = Path(document_path)
        try:
            text = document_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputUnreadableError(document_path, str(e)) from e

        return self.restore_text(text, document_path.resolve().parent / RESTORE_DIR_NAME)

    @staticmethod
    def _record_content(record: FileRecord, target: Path) -> str:
        lines = list(record.content_lines)
        if target.suffix.lower() == ".json":
            # JSON cannot carry a comment header.
            lines = lines[1:]
        if lines and lines[-1] == "":
            # Blank separator written after each packed file.
            lines.pop()
        return "\n".join(lines)


# ============================================================================
# SERIALIZER (folder -> text)
# ============================================================================

class FileDiscoverer:
    """Discovers files depth-first and applies the ignore rules."""

    def __init__(self, rules: IgnoreRules):
        self.rules = rules

    def find(self, root: Path, exclude: Iterable[Path] = ()) -> Iterator[Path]:
        excluded = {Path(p).resolve() for p in exclude}
        stack: List[Iterator[Path]] = [iter(self._sorted_entries(Path(root)))]

        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            if entry.is_dir():
                if entry.is_symlink() or self.rules.ignores_folder(entry.name):
                    continue
                stack.append(iter(self._sorted_entries(entry)))
            elif entry.is_file():
                if self.rules.ignores_file(entry.name) or (excluded and entry.resolve() in excluded):
                    continue
                yield entry

    def count(self, root: Path, exclude: Iterable[Path] = ()) -> int:
        return sum(1 for _ in self.find(root, exclude))

    @staticmethod
    def _sorted_entries(directory: Path) -> List[Path]:
        try:
            return sorted(directory.iterdir(), key=lambda p: (p.name.lower(), p.name))
        except OSError as e:
            raise InputUnreadableError(directory, str(e)) from e


class FolderSerializer:
    """Packs the discovered files into one flat document."""

    def __init__(self, discoverer: FileDiscoverer, listener: Optional[ProgressListener] = None):
        self.discoverer = discoverer
        self.listener = listener or NullProgressListener()

    @staticmethod
    def read_source(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise InputUnreadableError(path, str(e)) from e

    def serialize(self, root: Path, exclude: Iterable[Path] = ()) -> Iterator[SerializedFile]:
        """Lazily yield each retained file with the header it needs, if any."""
        root = Path(root)
        if not root.is_dir():
            raise InputUnreadableError(root, "not a directory")

        for path in self.discoverer.find(root, exclude):
            relative_path = path.relative_to(root).as_posix()
            content = ArtifactCleaner.unfence(ArtifactCleaner.clean(self.read_source(path)))
            header = None if HeaderRecognizer.has_header(content) else HeaderFormatter.format_header(relative_path)
            yield SerializedFile(relative_path=relative_path, header_line=header, content=content)

    def check_limit(self, root: Path, output_path: Path, limit: int = MAX_FILES) -> int:
        """Count the files to pack, failing before any output exists if there are too many."""
        root = Path(root)
        if not root.is_dir():
            raise InputUnreadableError(root, "not a directory")

        total = self.discoverer.count(root, exclude=[output_path])
        if total > limit:
            raise FileCountExceededError(total, limit)
        return total

    def write(self, root: Path, output_path: Path, total: int) -> PackResult:
        root = Path(root)
        output_path = Path(output_path)
        start_time = time.monotonic()
        self.listener.on_start(total)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output = output_path.open("w", encoding="utf-8", newline="")
        except OSError as e:
            raise OutputUnwritableError(output_path, str(e)) from e

        written = 0
        with output:
            for record in self.serialize(root, exclude=[output_path]):
                self.listener.on_file(record.relative_path)
                try:
                    output.write(record.render())
                except OSError as e:
                    raise OutputUnwritableError(output_path, str(e)) from e
                written += 1

        elapsed = time.monotonic() - start_time
        self.listener.on_complete(written, elapsed)
        return PackResult(files_written=written, output_path=output_path, elapsed_ms=int(elapsed * 1000))

    def pack(self, root: Path, output_path: Path, limit: int = MAX_FILES) -> PackResult:
        """Write every retained file under root into one flat document."""
        total = self.check_limit(root, output_path, limit)
        return self.write(root, output_path, total)


# ============================================================================
# COMMENT STRIPPER
# ============================================================================

class CommentStripper:
    """Remove non-header comments from a flat document."""

    LINE_COMMENT_MARKERS = ("//", "#", "--")
    BLOCK_COMMENT_MARKERS = (("/*", "*/"), ("<!--", "-->"))

    def strip(self, text: str) -> str:
        """Drop non-header comments, trim lines and collapse blank-line runs.

        A File: header is kept verbatim even inside an unterminated block
        comment, and it ends that block.
        """
        kept: List[str] = []
        closer: Optional[str] = None
        blank_run = 0

        for line in ArtifactCleaner.split_lines(text):
            if HeaderRecognizer.recognize(line) is not None:
                closer = None
                blank_run = 0
                kept.append(line)
                continue

            if closer is not None:
                if closer in line:
                    closer = None
                continue

            trimmed = line.strip()
            if trimmed.startswith(self.LINE_COMMENT_MARKERS):
                continue

            block = self._block_opened_by(trimmed)
            if block is not None:
                opener, block_closer = block
                if block_closer not in trimmed[len(opener):]:
                    closer = block_closer
                continue

            if not trimmed:
                blank_run += 1
                if blank_run > 1:
                    continue
            else:
                blank_run = 0
            kept.append(trimmed)

        return "\n".join(kept)

    def strip_document(self, input_path: Path, output_path: Path) -> StripResult:
        input_path = Path(input_path)
        output_path = Path(output_path)
        start_time = time.monotonic()

        try:
            text = ArtifactCleaner.clean(input_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise InputUnreadableError(input_path, str(e)) from e

        stripped = self.strip(text)
        FileOutputWriter.write(output_path, stripped)

        elapsed = time.monotonic() - start_time
        return StripResult(
            lines_in=len(ArtifactCleaner.split_lines(text)),
            lines_out=len(ArtifactCleaner.split_lines(stripped)),
            output_path=output_path,
            elapsed_ms=int(elapsed * 1000),
        )

    def _block_opened_by(self, trimmed: str) -> Optional[Tuple[str, str]]:
        return next(((o, c) for o, c in self.BLOCK_COMMENT_MARKERS if trimmed.startswith(o)), None)


# ============================================================================
# OUTPUT & PROGRESS
# ============================================================================

class FileOutputWriter:
    """Write UTF-8 text files, creating missing parent folders."""

    @staticmethod
    def write(path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise OutputUnwritableError(path, str(e)) from e


class NullProgressListener:
    """Listener that reports nothing."""

    def on_start(self, total: int):
        pass

    def on_file(self, path: str):
        pass

    def on_skip(self, path: str, reason: str):
        pass

    def on_complete(self, processed: int, elapsed_time: float):
        pass


class ConsoleProgressListener:
    """Display progress in console."""

    def __init__(self, messages: Messages):
        self.messages = messages

    def on_start(self, total: int):
        print(f"\n📁 {self.messages.get('found_files', total=total)}")

    def on_file(self, path: str):
        print(f"  📄 {self.messages.get('writing_file', path=path)}")

    def on_skip(self, path: str, reason: str):
        print(f"  ⚠️ {self.messages.get('skipped_path', path=path, reason=reason)}")

    def on_complete(self, processed: int, elapsed_time: float):
        print(f"✅ {self.messages.get('completed', count=processed, elapsed=elapsed_time)}")


# ============================================================================
# COMPONENT FACTORIES
# ============================================================================

class ComponentFactory:
    """Create application components."""

    @staticmethod
    def create_core_components(listener: ProgressListener) -> tuple:
        restorer = DocumentRestorer(listener)
        stripper = CommentStripper()
        return restorer, stripper

    @staticmethod
    def create_ui_components(lang: str) -> tuple:
        messages = Messages(lang)
        progress_listener = ConsoleProgressListener(messages)
        return messages, progress_listener

    @staticmethod
    def create_serializer(rules: IgnoreRules, listener: ProgressListener) -> FolderSerializer:
        return FolderSerializer(FileDiscoverer(rules), listener)


# ============================================================================
# APPLICATION ORCHESTRATOR
# ============================================================================

class FolderTextApp:
    """Runs pack / restore / strip and turns failures into exit statuses."""

    def __init__(
        self,
        config_path: Path,
        messages: Messages,
        listener: ProgressListener,
        restorer: DocumentRestorer,
        stripper: CommentStripper,
    ):
        self.config_path = Path(config_path)
        self.messages = messages
        self.listener = listener
        self.restorer = restorer
        self.stripper = stripper

    def pack(self, folder: Path, output: Path, limit: int = MAX_FILES) -> int:
        folder = Path(folder)
        output = Path(output)
        try:
            rules = JsonIgnoreConfigProvider(self.config_path, project_root=folder).load()
            serializer = ComponentFactory.create_serializer(rules, self.listener)
            total = serializer.check_limit(folder, output, limit)
            print(f"🚀 {self.messages.get('start_writing', path=output)}")
            result = serializer.write(folder, output, total)
        except FileCountExceededError as e:
            print(f"❌ {self.messages.get('file_limit_exceeded', count=e.count, limit=e.limit)}")
            return 1
        except FolderTextError as e:
            print(f"❌ {self.messages.get('fatal_error', error=e)}")
            return 1

        print(f"✅ {self.messages.get('finished_writing', path=result.output_path)}")
        return 0

    def restore(self, document: Path) -> int:
        try:
            result = self.restorer.restore_document(Path(document))
        except FolderTextError as e:
            print(f"❌ {self.messages.get('fatal_error', error=e)}")
            return 1

        print(
            f"✅ {self.messages.get('restored_files', count=result.files_written, path=result.output_root, dropped=result.files_dropped)}"
        )
        return 0

    def strip(self, input_path: Path, output_path: Path) -> int:
        try:
            result = self.stripper.strip_document(Path(input_path), Path(output_path))
        except FolderTextError as e:
            print(f"❌ {self.messages.get('fatal_error', error=e)}")
            return 1

        print(
            f"✅ {self.messages.get('stripped_document', path=result.output_path, lines_in=result.lines_in, lines_out=result.lines_out)}"
        )
        return 0

    def run_interactive(self) -> int:
        """Start main interactive loop."""
        self._show_header()
        while True:
            try:
                choice = self._show_menu()

                if choice == "0":
                    print("Goodbye! 👋")
                    return 0
                elif choice == "1":
                    folder = input("👉 Folder to pack: ").strip()
                    output = input("👉 Output file: ").strip()
                    if folder and output:
                        self.pack(Path(folder), Path(output))
                    else:
                        print("⏹️ No selection made.")
                elif choice == "2":
                    document = input("👉 Document to restore: ").strip()
                    if document:
                        self.restore(Path(document))
                    else:
                        print("⏹️ No selection made.")
                elif choice == "3":
                    input_path = input("👉 Document to clean: ").strip()
                    output_path = input("👉 Cleaned output file: ").strip()
                    if input_path and output_path:
                        self.strip(Path(input_path), Path(output_path))
                    else:
                        print("⏹️ No selection made.")
                elif choice == "?":
                    print(self.messages.get("usage"))
                else:
                    print("❌ Invalid choice. Enter '?' for help.")

            except (KeyboardInterrupt, EOFError):
                print("\n\n⏹️ Operation cancelled. Goodbye! 👋")
                return 0

    def _show_header(self):
        print("\n" + "=" * 60)
        print("           📦 FOLDER <-> TEXT TOOL")
        print("=" * 60)
        print(f"📁 Root: {Path.cwd().name}")
        print(f"🙈 Ignore config: {self.config_path}")
        print("=" * 60)

    def _show_menu(self) -> str:
        print("\n🏠 MAIN MENU")
        print("   [1] 📦 Pack a folder into a text file")
        print("   [2] 📂 Restore files from a text file")
        print("   [3] 🧹 Strip comments from a text file")
        print("   [0] 🚪 Exit")
        print("   [?] ❓ Help")

        return input("\n👉 Choose an option (0-3 or ?): ").strip()


# ============================================================================
# COMPOSITION ROOT & ENTRY POINT
# ============================================================================

class AppFactory:
    """Factory to compose the application."""

    @staticmethod
    def create(config_path: Path, lang: str = DEFAULT_LANG) -> FolderTextApp:
        """Wire up the console UI and the core components."""
        messages, progress_listener = ComponentFactory.create_ui_components(lang)
        restorer, stripper = ComponentFactory.create_core_components(progress_listener)

        return FolderTextApp(
            config_path=config_path,
            messages=messages,
            listener=progress_listener,
            restorer=restorer,
            stripper=stripper,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folder-text-tool",
        description="Pack a folder into one text file with 'File:' header comments, and restore it back.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
Examples:
  folder-text-tool pack src -o output/src.txt
  folder-text-tool strip pasted.txt cleaned.txt
  folder-text-tool restore cleaned.txt      # writes ./restored-data/
  folder-text-tool                          # interactive menu
        """,
    )
    parser.add_argument("--lang", default=DEFAULT_LANG, help="Message language (en, es, pt). Default: en")
    parser.add_argument("--ignore-config", type=Path, default=Path(DEFAULT_IGNORE_CONFIG),
                        help=f"JSON5 file with 'folders' and 'files' ignore patterns. Default: ./{DEFAULT_IGNORE_CONFIG}")

    subparsers = parser.add_subparsers(dest="command")

    pack_parser = subparsers.add_parser("pack", help="Serialize a folder into a single text file")
    pack_parser.add_argument("folder", type=Path, help="Folder to serialize")
    pack_parser.add_argument("-o", "--output", type=Path, required=True, help="Output text file")
    pack_parser.add_argument("--limit", type=int, default=MAX_FILES,
                             help=f"Abort if more than N files would be written. Default: {MAX_FILES}")

    restore_parser = subparsers.add_parser("restore", help=f"Rebuild files into ./{RESTORE_DIR_NAME} next to the document")
    restore_parser.add_argument("document", type=Path, help="Flat text document with 'File:' headers")

    strip_parser = subparsers.add_parser("strip", help="Remove non-header comments and extra blank lines")
    strip_parser.add_argument("input", type=Path, help="Document to clean")
    strip_parser.add_argument("output", type=Path, help="Where to write the cleaned document")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    app = AppFactory.create(args.ignore_config, args.lang)

    if args.command == "pack":
        return app.pack(args.folder, args.output, args.limit)
    elif args.command == "restore":
        return app.restore(args.document)
    elif args.command == "strip":
        return app.strip(args.input, args.output)
    else:
        return app.run_interactive()


if __name__ == "__main__":
    sys.exit(main())
