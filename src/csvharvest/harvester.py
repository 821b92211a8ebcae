import datetime
import logging
from pathlib import Path

from .commands.harvest import do_harvest, compute_cutoff, HarvestArgs
from .index.existing import ExistingNameIndex
from .report.stats import HarvestStatistics, log_summary
from .report.store import RunManifest, RunReportStore
from .settings import HarvestConfig

logger = logging.getLogger(__name__)


class Harvester:
    """Workflow layer of a harvest run.

    A run is a strictly sequential pipeline: prepare the output directories, index the files
    already archived, harvest every root folder, then report. Copy failures are logged and
    counted but never stop the run.
    """

    def __init__(self, config: HarvestConfig, report_dir: Path | None = None):
        """
        Args:
            config: Resolved run configuration
            report_dir: Directory receiving a run report, or None to write no report
        """
        self._config = config
        self._report_dir = report_dir

    @property
    def config(self) -> HarvestConfig:
        return self._config

    def prepare(self) -> None:
        """Create the output and duplicates directories if missing."""
        self._config.output.mkdir(parents=True, exist_ok=True)
        self._config.duplicates.mkdir(parents=True, exist_ok=True)

    def run(self, now: datetime.datetime | None = None) -> HarvestStatistics:
        """Harvest every root folder and return the statistics of the run.

        Args:
            now: Reference time of the age cutoff, the current time by default
        """
        started = datetime.datetime.now()
        if now is None:
            now = started
        cutoff = compute_cutoff(self._config.window_days, now)

        logger.info("Starting CSV harvest")
        logger.info(f"Root folders: {', '.join(str(root) for root in self._config.roots)}")
        logger.info(f"Including files modified since {cutoff.isoformat()}")

        self.prepare()
        index = ExistingNameIndex.from_directory(self._config.output)

        if self._report_dir is None:
            statistics = do_harvest(index, HarvestArgs(self._config, cutoff))
        else:
            with RunReportStore(self._report_dir) as store:
                statistics = do_harvest(index, HarvestArgs(self._config, cutoff, store.write_copy_record))
                store.write_manifest(RunManifest(
                    started=started.isoformat(),
                    finished=datetime.datetime.now().isoformat(),
                    roots=[str(root) for root in self._config.roots],
                    output_path=str(self._config.output.resolve()),
                    duplicates_path=str(self._config.duplicates.resolve()),
                    window_days=self._config.window_days,
                    cutoff=cutoff.isoformat(),
                    statistics=statistics.to_dict(),
                ))
            logger.info(f"Run report written to {self._report_dir}")

        log_summary(logger, statistics, self._config.output, self._config.duplicates)
        return statistics
