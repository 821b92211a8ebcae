"""Report module for run statistics and run reports.

This package contains:
- stats: FolderStatistics and HarvestStatistics counters, and the log summary
- store: RunReportStore, RunManifest, and CopyRecord for persistence
"""
