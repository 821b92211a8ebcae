"""Tests for report module.

Test Files and Coverage:
========================

| Test File                  | Test Classes                 | Tested Constructs                          | Tested Functionalities              |
|----------------------------|------------------------------|--------------------------------------------|-------------------------------------|
| test_stats.py              | FolderStatisticsTest         | FolderStatistics                           | Accumulation, dict conversion       |
|                            | HarvestStatisticsTest        | HarvestStatistics, log_summary             | Totals, per-root records, summary   |
| test_report_store.py       | CopyRecordTest               | CopyRecord                                 | Msgpack serialization, description  |
|                            | RunReportStoreTest           | RunReportStore, RunManifest                | Record stream, manifest persistence |
"""
