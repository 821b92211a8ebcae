"""Tests for command implementation modules.

Test Files and Coverage:
========================

| Test File                  | Test Classes                 | Tested Constructs                          | Tested Functionalities                        |
|----------------------------|------------------------------|--------------------------------------------|-----------------------------------------------|
| test_harvest.py            | ComputeCutoffTest            | compute_cutoff()                           | Day truncation                                |
|                            | ListRecentFilesTest          | list_recent_files()                        | Recency and extension filter                  |
|                            | CopyFunctionsTest            | copy_exclusive(), copy_overwrite()         | No-overwrite and overwrite copies             |
|                            | HarvestScenarioTest          | do_harvest()                               | Exclusion, dedup, second run, missing roots   |
|                            | CopyFailureTest              | HarvestProcessor.process_file()            | Failures logged, counted, run continues       |
|                            | ProgressTest                 | HarvestProcessor                           | Progress messages                             |
"""
