# file_scanner.py
"""
Loading of the plain-text content directories (prompts and resources).

Every file under a root with the .txt extension is read and stored under its
logical path: the path relative to the root, with '/' separators and the
extension removed (resources/docs/intro.txt -> docs/intro).
A file that cannot be read is logged and skipped; the rest of the scan goes on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sensei.utils.log_utils import LogContext

TEXT_SUFFIX = ".txt"


class FileLoadError(Exception):
    """A content file is missing, unreadable or not valid UTF-8."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to load file {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class ScanResult:
    """Outcome of scan_directory()."""
    root: Path
    considered: int = 0
    entries: dict[str, str] = field(default_factory=dict)
    failed: list[Path] = field(default_factory=list)

    @property
    def loaded(self) -> int:
        return len(self.entries)


def logical_path(file_path: Path, root: Path) -> str:
    """ Logical identifier of a content file.
        Args:
            file_path (Path): File inside `root`.
            root (Path): The scanned directory.
        Returns:
            str: Relative POSIX path with the last extension removed.
    """
    rel = file_path.relative_to(root)
    return rel.with_suffix("").as_posix()


def load_file(path: Path, log: Optional[LogContext] = None) -> str:
    """ Read a file's content as text.
        Args:
            path (Path): File to read.
            log (LogContext): Logging context.
        Returns:
            str: The file content.
        Raises:
            FileLoadError: The file is absent, unreadable or not UTF-8.
    """
    log = log or LogContext()
    with log.span("load_file", path=str(path)):
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error("❌ Failed to load file %s: %s", path, e)
            raise FileLoadError(Path(path), str(e)) from e


def scan_directory(root: Path | str, log: Optional[LogContext] = None,
                   suffix: str = TEXT_SUFFIX) -> ScanResult:
    """
    Load every `suffix` file below `root` into a map keyed by logical path.

    Args:
        root (Path | str): Directory to scan. Created if it does not exist.
        log (LogContext): Logging context.
        suffix (str): File extension that qualifies a file.

    Returns:
        ScanResult: Number of entries walked, the loaded map and the files
                    that failed to load. Empty if the root is inaccessible.
    """
    log = log or LogContext()
    root_path = Path(root)
    result = ScanResult(root=root_path)

    try:
        root_path.mkdir(parents=True, exist_ok=True)
        log.debug("Ensuring directory exists: %s", root_path)
        # 20261019 rglob to pick up files in subdirectories too.
        paths = sorted(root_path.rglob("*"))
    except OSError as e:
        log.error("❌ Directory %s is not accessible: %s", root_path, e)
        return result

    result.considered = len(paths)
    log.info("Found %i potential files in %s", result.considered, root_path)

    for path in paths:
        with log.span("process_file", file=str(path)) as span:
            if path.is_dir():
                log.trace("Skipping directory %s", path)
                span.outcome = "skipped_directory"
                continue
            if path.suffix != suffix or not path.is_file():
                log.trace("Skipping non-%s file %s", suffix, path)
                span.outcome = "skipped_non_txt"
                continue

            try:
                content = load_file(path, log)
            except FileLoadError:
                # Already logged by load_file; one bad file does not stop the scan.
                result.failed.append(path)
                span.outcome = "error"
                continue

            result.entries[logical_path(path, root_path)] = content

    return result
