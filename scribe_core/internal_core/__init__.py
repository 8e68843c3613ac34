from .config import EngineConfig, load_config
from .state_store import InMemorySectionStateStore, JsonFileSectionStateStore

__all__ = ["EngineConfig", "load_config", "InMemorySectionStateStore", "JsonFileSectionStateStore"]
