"""
Sync Module Package

Provides the ClickUp -> Dust mirroring pipeline.

Structure:
    - fetcher.py: RetryingFetcher - throttled, retrying fetch of one node's children
    - walker.py: TreeWalker, flatten - tree expansion and candidate filtering
    - upsert.py: UpsertPipeline - batched, failure-isolating destination writes
    - manager.py: SyncManager - per-root orchestration
    - reporter.py: SyncReporter, LoggingReporter - diagnostics hooks

Usage:
    from doc_mirror.sync import SyncManager
"""

from doc_mirror.sync.fetcher import RetryingFetcher
from doc_mirror.sync.manager import RootState, SyncManager
from doc_mirror.sync.reporter import LoggingReporter, SyncReporter
from doc_mirror.sync.upsert import UpsertPipeline, build_envelope
from doc_mirror.sync.walker import TreeWalker, flatten, is_syncable

__all__ = ['SyncManager', 'RootState', 'RetryingFetcher', 'TreeWalker', 'flatten', 'is_syncable',
           'UpsertPipeline', 'build_envelope', 'SyncReporter', 'LoggingReporter']
