"""Case-insensitive index of the filenames already archived in the output directory."""

import logging
import stat
from pathlib import Path
from typing import Iterable, Iterator

from ..utils.walker import list_directory

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Comparison key of a filename. Only the name takes part, never its directory."""
    return name.lower()


class ExistingNameIndex:
    """Set of normalized filenames present in the output directory.

    Seeded from the output directory's regular files and grown as unique files are copied.
    Subdirectories (including the duplicates directory) are not part of the index.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._keys: set[str] = set()
        for name in names:
            self.add(name)

    @classmethod
    def from_directory(cls, directory: Path) -> 'ExistingNameIndex':
        """Index the regular files directly inside directory.

        A missing or unreadable directory yields an empty index.
        """
        index = cls()
        for child in list_directory(directory):
            try:
                is_file = stat.S_ISREG(child.stat().st_mode)
            except OSError:
                continue
            if is_file:
                index.add(child.name)
        logger.info(f"Indexed {len(index)} existing files in {directory}")
        return index

    def add(self, name: str) -> bool:
        """Add a filename; return False when its key was already present."""
        key = normalize_name(name)
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._keys))
