"""
API Client Package

Package Structure:
    - base.py: SourceClient / DestinationClient capabilities, shared HTTP handling
    - clickup.py: ClickUpClient - source (ClickUp Docs)
    - dust.py: DustClient - destination (Dust data source)

Usage:
    from doc_mirror.clients import ClickUpClient, DustClient
"""

from doc_mirror.clients.base import DestinationClient, HttpClientBase, SourceClient
from doc_mirror.clients.clickup import ClickUpClient
from doc_mirror.clients.dust import DustClient

__all__ = [
    'SourceClient',
    'DestinationClient',
    'HttpClientBase',
    'ClickUpClient',
    'DustClient',
]
