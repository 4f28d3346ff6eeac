"""Configuration package for estudio."""

from estudio.config.app_config import (
    AppConfig,
    ExamDefaults,
    StorageConfig,
    StudyDefaults,
    clear_config_cache,
    get_data_dir,
    load_app_config,
    resolve_db_path,
    resolve_sets_dir,
)

__all__ = [
    "AppConfig",
    "ExamDefaults",
    "StorageConfig",
    "StudyDefaults",
    "clear_config_cache",
    "get_data_dir",
    "load_app_config",
    "resolve_db_path",
    "resolve_sets_dir",
]
