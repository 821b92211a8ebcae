"""Statistics accumulated while harvesting."""

import logging
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any


@dataclass
class FolderStatistics:
    """Counters for one root folder (or, summed, for the whole run).

    Attributes:
        found: Files with the target extension and a recent enough modification time
        copied: Files copied, to either the output or the duplicates directory
        unique_copied: Files copied to the output directory
        skipped_directories: Backup folders excluded by the exclusion marker
        failed: Copies that raised an error
    """
    found: int = 0
    copied: int = 0
    unique_copied: int = 0
    skipped_directories: int = 0
    failed: int = 0

    def __iadd__(self, other: 'FolderStatistics') -> 'FolderStatistics':
        self.found += other.found
        self.copied += other.copied
        self.unique_copied += other.unique_copied
        self.skipped_directories += other.skipped_directories
        self.failed += other.failed
        return self

    @property
    def duplicates_copied(self) -> int:
        return self.copied - self.unique_copied

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FolderStatistics':
        return cls(**data)


@dataclass
class HarvestStatistics:
    """Per-root statistics of a run, in the order the roots were processed."""
    roots: dict[str, FolderStatistics] = field(default_factory=dict)

    def start_root(self, root: Path) -> FolderStatistics:
        """Create the record of a root at the start of its processing."""
        record = FolderStatistics()
        self.roots[str(root)] = record
        return record

    @property
    def totals(self) -> FolderStatistics:
        total = FolderStatistics()
        for record in self.roots.values():
            total += record
        return total

    def to_dict(self) -> dict[str, Any]:
        return {
            'roots': {root: record.to_dict() for root, record in self.roots.items()},
            'totals': self.totals.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'HarvestStatistics':
        return cls({root: FolderStatistics.from_dict(record) for root, record in data['roots'].items()})


def log_summary(
        logger: logging.Logger,
        statistics: HarvestStatistics,
        output: Path,
        duplicates: Path) -> None:
    """Write the per-root breakdown, then the global summary."""
    for root, record in statistics.roots.items():
        logger.info(f"Root folder: {root}")
        logger.info(f"  Files found: {record.found}")
        logger.info(f"  Files copied: {record.copied}")
        logger.info(f"  Unique files copied: {record.unique_copied}")
        logger.info(f"  Directories skipped: {record.skipped_directories}")
        if record.failed:
            logger.info(f"  Copy failures: {record.failed}")

    totals = statistics.totals
    logger.info("Summary")
    logger.info(f"  Total files found: {totals.found}")
    logger.info(f"  Total files copied: {totals.copied}")
    logger.info(f"  Total unique files copied: {totals.unique_copied}")
    logger.info(f"  Total duplicates copied: {totals.duplicates_copied}")
    logger.info(f"  Total directories skipped: {totals.skipped_directories}")
    logger.info(f"  Total copy failures: {totals.failed}")
    logger.info(f"  Output directory: {output.resolve()}")
    logger.info(f"  Duplicates directory: {duplicates.resolve()}")
