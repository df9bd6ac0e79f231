"""Engine configuration management."""

from functools import lru_cache
from pathlib import Path

from .schemas import EngineConfig
from .utils import load_json

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'live_config.json'


@lru_cache(maxsize=1)
def get_config(config_path: Path | str | None = None) -> EngineConfig:
    """
    Load engine configuration from data/live_config.json.

    Configuration is cached after first load. A missing file yields the
    schema defaults; a present but invalid file raises.

    Returns:
        EngineConfig object with validated settings

    Raises:
        ValueError: If the config file has invalid structure

    Example:
        from fplive.config import get_config
        config = get_config()
        print(f"Change events kept: {config.max_change_events}")
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        return EngineConfig()
    return load_json(path, schema=EngineConfig)


def get_league_id() -> int | None:
    """Get the classic league id from config."""
    return get_config().league_id


def get_captain_fallback() -> str:
    """Get the captain fallback rule ('none' or 'vice_captain')."""
    return get_config().captain_fallback


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file is modified during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
