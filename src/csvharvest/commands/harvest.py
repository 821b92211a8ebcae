import datetime
import logging
import shutil
from pathlib import Path
from typing import Callable, Iterator, NamedTuple

from ..index.existing import ExistingNameIndex
from ..report.stats import FolderStatistics, HarvestStatistics
from ..report.store import CopyCategory, CopyRecord
from ..settings import HarvestConfig
from ..utils.walker import FolderPolicy, discover_backup_folders, list_files_with_extension

logger = logging.getLogger(__name__)


def compute_cutoff(window_days: int, now: datetime.datetime | None = None) -> datetime.datetime:
    """Midnight of the day window_days before now."""
    if now is None:
        now = datetime.datetime.now()
    day = (now - datetime.timedelta(days=window_days)).date()
    return datetime.datetime.combine(day, datetime.time.min, tzinfo=now.tzinfo)


def list_recent_files(directory: Path, extension: str, cutoff: datetime.datetime) -> Iterator[Path]:
    """Yield files in directory with the extension and a modification time at or after cutoff."""
    threshold = cutoff.timestamp()
    for path, st in list_files_with_extension(directory, extension):
        if st.st_mtime >= threshold:
            yield path


def copy_exclusive(source: Path, destination: Path) -> None:
    """Copy content and metadata, failing with FileExistsError if destination exists.

    A destination created by this call is removed again when the copy fails, so no partial
    file is left behind.
    """
    with open(source, 'rb') as fsrc:
        fdst = open(destination, 'xb')
        try:
            with fdst:
                shutil.copyfileobj(fsrc, fdst)
            shutil.copystat(source, destination)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise


def copy_overwrite(source: Path, destination: Path) -> None:
    shutil.copy2(source, destination)


class HarvestArgs(NamedTuple):
    """Arguments of a harvest operation."""
    config: HarvestConfig
    cutoff: datetime.datetime
    # Called with every CopyRecord produced, e.g. to persist a run report
    record_sink: Callable[[CopyRecord], None] | None = None


class HarvestProcessor:
    """Runs the discovery, filter and copy stages over every root folder."""

    def __init__(self, index: ExistingNameIndex, args: HarvestArgs):
        self._index = index
        self._config = args.config
        self._cutoff = args.cutoff
        self._record_sink = args.record_sink
        self._policy = FolderPolicy(args.config.folder_name, args.config.exclusion_marker)
        self._processed = 0

    @property
    def processed(self) -> int:
        """Number of files handed to the copy stage so far."""
        return self._processed

    def run(self) -> HarvestStatistics:
        statistics = HarvestStatistics()
        for root in self._config.roots:
            self.process_root(root, statistics.start_root(root))
        return statistics

    def process_root(self, root: Path, record: FolderStatistics) -> None:
        logger.info(f"Processing root folder: {root}")
        discovery = discover_backup_folders(root, self._policy)
        if not discovery.root_exists:
            logger.warning(f"Root folder not found, skipping: {root}")
            return

        record.skipped_directories += len(discovery.excluded)
        for directory in discovery.excluded:
            logger.debug(f"Skipping excluded folder: {directory}")
        for directory in discovery.ignored:
            logger.debug(f"Ignoring folder with unrecognized suffix: {directory}")

        logger.info(f"Found {len(discovery.targets)} backup folders in {root} "
                    f"({len(discovery.excluded)} excluded)")

        for directory in discovery.targets:
            self.process_directory(directory, record)

    def process_directory(self, directory: Path, record: FolderStatistics) -> None:
        for path in list_recent_files(directory, self._config.extension, self._cutoff):
            record.found += 1
            self.process_file(path, record)

    def process_file(self, source: Path, record: FolderStatistics) -> None:
        """Copy one file to the output or duplicates directory, by its name alone."""
        if source.name in self._index:
            destination = self._config.duplicates / source.name
            category = CopyCategory.DUPLICATE
            copy = copy_overwrite
        else:
            destination = self._config.output / source.name
            category = CopyCategory.UNIQUE
            copy = copy_exclusive

        try:
            copy(source, destination)
        except OSError as e:
            record.failed += 1
            logger.error(f"Failed to copy {source.name}: {e}")
            self._emit(CopyRecord(source, destination, CopyCategory.FAILED, str(e)))
        else:
            record.copied += 1
            if category is CopyCategory.UNIQUE:
                self._index.add(source.name)
                record.unique_copied += 1
            logger.debug(f"Copied {source} -> {destination}")
            self._emit(CopyRecord(source, destination, category))

        self._processed += 1
        if self._processed % self._config.progress_interval == 0:
            logger.info(f"Processed {self._processed} files")

    def _emit(self, copy_record: CopyRecord) -> None:
        if self._record_sink is not None:
            self._record_sink(copy_record)


def do_harvest(index: ExistingNameIndex, args: HarvestArgs) -> HarvestStatistics:
    return HarvestProcessor(index, args).run()
