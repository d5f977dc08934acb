"""Default configuration parameters for the speedrun core."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoreParams:
    """SQLite store parameters."""
    db_path: str = "speedrun.db"
    timeout_seconds: float = 30.0                   # sqlite3 busy timeout


@dataclass(frozen=True)
class RunDefaults:
    """Configuration written on first access to an empty database."""
    title: str = "New Speedrun"
    category: str = "Any%"
    split_names: tuple[str, ...] = ("Level 1", "Level 2", "Level 3", "Final Boss")


@dataclass(frozen=True)
class ImportParams:
    """Configuration import parameters."""
    synthetic_start_offset_hours: int = 24          # Imported PB start = now - offset


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    store: StoreParams
    defaults: RunDefaults
    importer: ImportParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        store=StoreParams(),
        defaults=RunDefaults(),
        importer=ImportParams(),
        logging=LoggingParams(),
    )
