"""Local-first lead synchronization engine."""

__version__ = "0.1.0"

from .config import EngineSettings, load_settings
from .engine import SyncEngine, create_engine, create_orchestrator

__all__ = [
    "EngineSettings",
    "load_settings",
    "SyncEngine",
    "create_engine",
    "create_orchestrator",
]
