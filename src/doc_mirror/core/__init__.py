"""
Core Module Package

Building blocks shared by the clients and the sync pipeline:
- throttle: per-lane rate and concurrency limiter
- retry: retry policy and helper

Usage:
    from doc_mirror.core import Throttle, RetryPolicy, with_retry
"""

from doc_mirror.core.retry import RetryPolicy, with_retry
from doc_mirror.core.throttle import Permit, Throttle

__all__ = ['Throttle', 'Permit', 'RetryPolicy', 'with_retry']
