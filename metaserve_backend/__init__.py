"""
MetaServe backend: JSON file metadata for a sandboxed root directory.
"""

from .config import ServerConfig
from .dispatcher import DispatchOutcome, MetadataDispatcher, MetaServe, OutcomeKind
from .features.metadata import PluginRegistry

__all__ = [
    "MetaServe",
    "MetadataDispatcher",
    "DispatchOutcome",
    "OutcomeKind",
    "ServerConfig",
    "PluginRegistry",
]
