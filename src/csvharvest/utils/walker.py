import logging
import os
import stat
from pathlib import Path
from typing import Iterator, NamedTuple

logger = logging.getLogger(__name__)


def list_directory(path: Path) -> list[Path]:
    """List the entries of a directory in name order.

    A directory that cannot be listed (permission denied, removed during the walk, ...)
    is treated as empty.
    """
    try:
        return sorted(path.iterdir())
    except OSError as e:
        logger.debug(f"Cannot list {path}: {e}")
        return []


def _is_directory(path: Path) -> bool:
    try:
        return stat.S_ISDIR(path.stat(follow_symlinks=False).st_mode)
    except OSError:
        return False


def walk_directories(path: Path) -> Iterator[Path]:
    """Recursively yield every directory below path, parents before children.

    Symbolic links are not followed.
    """
    for child in list_directory(path):
        if _is_directory(child):
            yield child
            yield from walk_directories(child)


class FolderPolicy(NamedTuple):
    """Naming rules for backup folders.

    Attributes:
        folder_name: Plain name of a backup folder (e.g. 'drishti_backup')
        exclusion_marker: Name fragment marking a backup folder as excluded (e.g. '_nhp')
    """
    folder_name: str
    exclusion_marker: str

    @property
    def excluded_name(self) -> str:
        return self.folder_name + self.exclusion_marker

    def is_candidate(self, name: str) -> bool:
        """Whether name looks like a backup folder, with or without a suffix."""
        return name.casefold().startswith(self.folder_name.casefold())

    def is_target(self, name: str) -> bool:
        """Whether name is exactly the plain backup folder name."""
        return name.casefold() == self.folder_name.casefold()


def is_excluded_name(name: str, policy: FolderPolicy) -> bool:
    """The folder is named exactly like the excluded variant of the backup folder."""
    return name.casefold() == policy.excluded_name.casefold()


def name_contains_marker(name: str, policy: FolderPolicy) -> bool:
    """The exclusion marker appears somewhere in the folder's own name."""
    return policy.exclusion_marker.casefold() in name.casefold()


def path_contains_marker(path: Path, policy: FolderPolicy, root: Path | None = None) -> bool:
    """Some segment of the path, parents included, carries the exclusion marker.

    With a root, only the segments below root are checked; the root folder's own path is
    chosen by the operator and never excludes what lies beneath it.
    """
    marker = policy.exclusion_marker.casefold()
    parts = path.relative_to(root).parts if root is not None else path.parts
    return any(marker in part.casefold() for part in parts)


def is_excluded_folder(path: Path, policy: FolderPolicy, root: Path | None = None) -> bool:
    return (is_excluded_name(path.name, policy)
            or name_contains_marker(path.name, policy)
            or path_contains_marker(path, policy, root))


class DiscoveryResult(NamedTuple):
    """Outcome of searching one root folder for backup folders.

    Attributes:
        root_exists: False when the root folder is missing or is not a directory
        targets: Backup folders whose files are eligible for harvesting, in walk order
        excluded: Backup folders rejected because they carry the exclusion marker
        ignored: Backup folders with some other suffix, skipped without being counted
    """
    root_exists: bool
    targets: list[Path]
    excluded: list[Path]
    ignored: list[Path]


def discover_backup_folders(root: Path, policy: FolderPolicy) -> DiscoveryResult:
    """Walk root once and sort every backup folder candidate into targets, excluded and ignored.

    The exclusion check runs on every candidate before the exact-name check, so a plain
    backup folder nested under a marked parent is excluded rather than harvested.
    """
    if not root.is_dir():
        return DiscoveryResult(False, [], [], [])

    targets: list[Path] = []
    excluded: list[Path] = []
    ignored: list[Path] = []

    for directory in walk_directories(root):
        if not policy.is_candidate(directory.name):
            continue

        if is_excluded_folder(directory, policy, root):
            excluded.append(directory)
        elif policy.is_target(directory.name):
            targets.append(directory)
        else:
            ignored.append(directory)

    return DiscoveryResult(True, targets, excluded, ignored)


def list_files_with_extension(directory: Path, extension: str) -> Iterator[tuple[Path, os.stat_result]]:
    """Yield (path, stat) for regular files directly inside directory with the given extension.

    The extension is compared case-insensitively. Entries whose metadata cannot be read are
    skipped.
    """
    suffix = extension.casefold()
    for child in list_directory(directory):
        if not child.name.casefold().endswith(suffix):
            continue
        try:
            st = child.stat(follow_symlinks=False)
        except OSError as e:
            logger.debug(f"Cannot stat {child}: {e}")
            continue
        if stat.S_ISREG(st.st_mode):
            yield child, st
