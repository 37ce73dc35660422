# Guild configuration: registry, store, migrations and process settings

from .registry import CONFIG_VERSION, REGISTRY, get_option
from .paths import Path, resolve
from .store import ConfigStore
from .migrations import MigrationPipeline, MigrationResult, MigrationStep
from .manager import GuildConfigManager, GuildContext
from .setup import run_setup

__all__ = [
    "CONFIG_VERSION",
    "REGISTRY",
    "get_option",
    "Path",
    "resolve",
    "ConfigStore",
    "MigrationPipeline",
    "MigrationResult",
    "MigrationStep",
    "GuildConfigManager",
    "GuildContext",
    "run_setup",
]
