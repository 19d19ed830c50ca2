"""File discovery.

Walks a project tree and returns the files to scan, using pathspec's
gitwildmatch patterns for include/exclude globs and for ``.gitignore``
files (root and nested).
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Union

import pathspec

from envaudit.core.errors import FileSystemError
from envaudit.core.models import ScanOptions

logger = logging.getLogger(__name__)


def _spec(patterns: Iterable[str]) -> pathspec.PathSpec:
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


class IncludeMatcher:
    """Include globs that only ever select files.

    A gitwildmatch pattern without a slash also matches every path under a
    directory of that name, so ``env`` would pull in all of ``env/``.
    Such patterns are matched against the file name; patterns containing a
    slash are matched against the root-relative path.
    """

    def __init__(self, patterns: Iterable[str]):
        name_patterns: list[str] = []
        path_patterns: list[str] = []
        for pattern in patterns:
            bare = pattern.lstrip("!")
            if "/" in bare:
                path_patterns.append(pattern)
            else:
                name_patterns.append(pattern)
        self._names = _spec(name_patterns)
        self._paths = _spec(path_patterns)

    def match(self, relative: str) -> bool:
        file_name = relative.rsplit("/", 1)[-1]
        return self._names.match_file(file_name) or self._paths.match_file(relative)


class GitignoreFilter:
    """Gitignore matcher with nested .gitignore support.

    Nested files are registered while walking, so directories pruned
    earlier (node_modules and the like) are never read.
    """

    def __init__(self, root: Path):
        self.root = root
        self._specs: dict[str, pathspec.PathSpec] = {}

    def load(self, directory: Path) -> None:
        """Register ``directory/.gitignore`` if it exists."""
        gitignore_path = directory / ".gitignore"
        if not gitignore_path.is_file():
            return
        try:
            with open(gitignore_path, encoding="utf-8") as f:
                lines = f.readlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable {gitignore_path}: {e}")
            return
        relative = directory.relative_to(self.root).as_posix()
        self._specs["" if relative == "." else relative] = _spec(lines)

    def should_ignore(self, relative: str, is_dir: bool = False) -> bool:
        """
        Check a root-relative POSIX path against every applicable .gitignore.

        Deeper .gitignore files are checked first.
        """
        candidate = relative + "/" if is_dir else relative
        for base in sorted(self._specs, key=lambda b: b.count("/") + bool(b), reverse=True):
            if base and not candidate.startswith(base + "/"):
                continue
            local = candidate[len(base) + 1:] if base else candidate
            if local and self._specs[base].match_file(local):
                return True
        return False


def discover_files(
    root: Union[str, Path],
    options: ScanOptions,
    extra_include: Iterable[str] = (),
    extra_exclude: Iterable[str] = (),
) -> tuple[str, ...]:
    """
    Find files under ``root`` to hand to providers.

    Args:
        root: Project directory
        options: Scan options (include/exclude, gitignore, symlinks, size ceiling)
        extra_include: Additional include globs (framework patterns)
        extra_exclude: Additional exclude globs (framework patterns)

    Returns:
        Sorted absolute file paths

    Raises:
        FileSystemError: If ``root`` is not a directory
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise FileSystemError(f"Directory does not exist: {root}", "read", str(root))

    include = IncludeMatcher(dict.fromkeys([*options.include, *extra_include]))
    exclude_spec = _spec(list(dict.fromkeys([*options.exclude, *extra_exclude])))
    gitignore = GitignoreFilter(root) if options.respect_gitignore else None

    logger.debug(f"Scanning directory: {root}")
    found: list[str] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=options.follow_symlinks):
        current = Path(dirpath)
        relative_dir = current.relative_to(root).as_posix()
        prefix = "" if relative_dir == "." else relative_dir + "/"

        if gitignore is not None:
            gitignore.load(current)

        kept_dirs = []
        for dirname in sorted(dirnames):
            relative = prefix + dirname
            if exclude_spec.match_file(relative + "/"):
                continue
            if gitignore is not None and gitignore.should_ignore(relative, is_dir=True):
                continue
            kept_dirs.append(dirname)
        dirnames[:] = kept_dirs

        for filename in filenames:
            relative = prefix + filename
            if not include.match(relative) or exclude_spec.match_file(relative):
                continue
            if gitignore is not None and gitignore.should_ignore(relative):
                continue

            file_path = current / filename
            try:
                size = file_path.stat().st_size
            except OSError as e:
                logger.debug(f"Error reading file stats for {file_path}: {e}")
                continue
            if size > options.max_file_size:
                logger.debug(f"Skipping large file: {relative} ({size} bytes)")
                continue
            found.append(str(file_path))

    found.sort()
    logger.info(f"Found {len(found)} files to scan")
    return tuple(found)
