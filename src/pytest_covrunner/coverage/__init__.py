"""Coverage data for instrumented runs.

This module holds the Istanbul-compatible coverage data model and the state
that fills it while the suite runs:

    statementMap / fnMap / branchMap   static, from instrumentation
    s / f / b                          hit counters, from execution

Exports:
    FileCoverage: Coverage data of one file
    CoverageMap: Coverage data of every file, keyed by canonical path
    CoverageAggregator: Live hit-count state of a run
    CoverageSummary: Covered/total counts per metric
    UnvisitedFileBackfiller: Zero coverage for files never imported
"""

from __future__ import annotations

from pytest_covrunner.coverage.aggregator import CoverageAggregator, FileCounters
from pytest_covrunner.coverage.backfill import UnvisitedFileBackfiller
from pytest_covrunner.coverage.file_coverage import BranchMapping, FileCoverage, FunctionMapping, Position, Range
from pytest_covrunner.coverage.mapper import CoverageMap
from pytest_covrunner.coverage.summary import CoverageSummary, Totals


__all__ = [
    'BranchMapping',
    'CoverageAggregator',
    'CoverageMap',
    'CoverageSummary',
    'FileCounters',
    'FileCoverage',
    'FunctionMapping',
    'Position',
    'Range',
    'Totals',
    'UnvisitedFileBackfiller',
]
