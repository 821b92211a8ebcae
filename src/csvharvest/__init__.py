from .harvester import Harvester
from .settings import HarvestConfig, HarvestSettings
from .index.existing import ExistingNameIndex, normalize_name
from .report.stats import FolderStatistics, HarvestStatistics
from .report.store import CopyCategory, CopyRecord, RunManifest, RunReportStore
