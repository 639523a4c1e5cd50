"""Directory scanning with ant-style include patterns."""

import logging
import os
import re
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

# Version control metadata is never scanned, as with ant's default excludes
DEFAULT_EXCLUDED_DIRS = {".git", ".svn", ".hg", ".bzr", "CVS"}

PATTERN_SEPARATOR = re.compile(r"[,\s]+")


def split_patterns(includes: str) -> list[str]:
    """Split "a/**/*.xml, b/*.xml" into normalized single patterns."""
    patterns = []
    for pattern in PATTERN_SEPARATOR.split(includes.strip()):
        if not pattern:
            continue
        pattern = pattern.replace("\\", "/").lstrip("/")
        if pattern.startswith("./"):
            pattern = pattern[2:]
        if pattern.endswith("/"):
            pattern += "**"
        patterns.append(pattern)
    return patterns


def _translate_segment(segment: str) -> str:
    parts = []
    for char in segment:
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def compile_pattern(pattern: str) -> re.Pattern:
    """Compile one ant-style pattern to a regex over relative POSIX paths."""
    parts = []
    segments = pattern.split("/")
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            # zero or more whole directories
            parts.append(".*" if last else "(?:.*/)?")
            continue
        parts.append(_translate_segment(segment))
        if not last:
            parts.append("/")
    return re.compile("^" + "".join(parts) + "$")


def _raise_walk_error(error: OSError) -> None:
    raise error


class Scanner:
    """Finds files below a directory matching ant-style include patterns."""

    def scan(self, directory: Union[str, Path], includes: str) -> list[str]:
        """Return sorted relative paths of the files matching includes.

        Raises FileNotFoundError or NotADirectoryError for a bad directory,
        and re-raises any OSError hit while walking the tree.
        """
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"Directory not found: {directory}")
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        matchers = [compile_pattern(p) for p in split_patterns(includes)]
        if not matchers:
            return []

        found = []
        for root, dirnames, filenames in os.walk(directory, onerror=_raise_walk_error):
            dirnames[:] = sorted(d for d in dirnames if d not in DEFAULT_EXCLUDED_DIRS)
            relative_root = Path(root).relative_to(directory)
            for filename in filenames:
                relative = (relative_root / filename).as_posix()
                if any(m.match(relative) for m in matchers):
                    found.append(relative)

        logger.debug(f"Scanned {directory} for [{includes}]: {len(found)} matches")
        return sorted(found)
