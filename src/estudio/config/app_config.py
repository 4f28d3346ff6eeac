"""Application configuration loader.

Loads centralized configuration from data/config/estudio_v1.yaml
with fallback to built-in defaults.

Usage:
    from estudio.config.app_config import load_app_config, get_data_dir

    config = load_app_config()
    db_path = resolve_db_path(config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/estudio_v1.yaml")

# Environment override for the data directory
DATA_DIR_ENV = "ESTUDIO_DATA_DIR"


@dataclass
class StorageConfig:
    """Configuration for the progress / question set database."""

    db_path: str = "db/estudio.db"
    sets_dir: str = "sets"


@dataclass
class ExamDefaults:
    """Default values for the exam configuration screen."""

    question_count: int = 20
    time_per_question: int = 90  # seconds
    total_time_minutes: int = 30
    use_timer: bool = True
    random_order: bool = True


@dataclass
class StudyDefaults:
    """Default values for Study / Review sessions."""

    random_order: bool = False
    answer_level: str = "super_corta"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    exam: ExamDefaults = field(default_factory=ExamDefaults)
    study: StudyDefaults = field(default_factory=StudyDefaults)
    paths: dict[str, str] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "storage": {
            "db_path": "db/estudio.db",
            "sets_dir": "sets",
        },
        "exam": {
            "question_count": 20,
            "time_per_question": 90,
            "total_time_minutes": 30,
            "use_timer": True,
            "random_order": True,
        },
        "study": {
            "random_order": False,
            "answer_level": "super_corta",
        },
        "paths": {
            "data_dir": "data",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    storage_data = {**defaults["storage"], **(data.get("storage") or {})}
    storage = StorageConfig(
        db_path=str(storage_data["db_path"]),
        sets_dir=str(storage_data["sets_dir"]),
    )

    exam_data = {**defaults["exam"], **(data.get("exam") or {})}
    exam = ExamDefaults(
        question_count=int(exam_data["question_count"]),
        time_per_question=int(exam_data["time_per_question"]),
        total_time_minutes=int(exam_data["total_time_minutes"]),
        use_timer=bool(exam_data["use_timer"]),
        random_order=bool(exam_data["random_order"]),
    )

    study_data = {**defaults["study"], **(data.get("study") or {})}
    study = StudyDefaults(
        random_order=bool(study_data["random_order"]),
        answer_level=str(study_data["answer_level"]),
    )

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(storage=storage, exam=exam, study=study, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_data_dir(config: AppConfig | None = None) -> Path:
    """Get the data directory.

    ESTUDIO_DATA_DIR takes precedence over the configured path.
    """
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)

    config = config or load_app_config()
    return Path(config.paths.get("data_dir", "data"))


def resolve_db_path(config: AppConfig | None = None) -> Path:
    """Resolve the SQLite database path (relative paths live under data_dir)."""
    config = config or load_app_config()
    db_path = Path(config.storage.db_path)
    if db_path.is_absolute():
        return db_path
    return get_data_dir(config) / db_path


def resolve_sets_dir(config: AppConfig | None = None) -> Path:
    """Resolve the directory holding built-in question sets."""
    config = config or load_app_config()
    sets_dir = Path(config.storage.sets_dir)
    if sets_dir.is_absolute():
        return sets_dir
    return get_data_dir(config) / sets_dir


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
