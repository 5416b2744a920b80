"""
doc-mirror: mirror ClickUp Docs page trees into a Dust data source.
"""

__version__ = "0.1.0"
