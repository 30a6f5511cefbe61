"""
Configuration management for Photo Booth Print Compositor
Loads settings from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from loguru import logger

from .canvas import LayoutKind
from .errors import UnknownLayoutError
from .logo import LogoSettings


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True
    TESTING: bool = False

    # Paths
    OUTPUT_FOLDER: str = "output"
    EVENTS_FILE: str = "config/events.yaml"
    SAMPLE_PHOTO: Optional[str] = None  # Generated gradient if None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Uploads
    MAX_UPLOAD_SIZE: int = 20 * 1024 * 1024  # 20MB
    ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"]

    # Rendering
    JPEG_QUALITY: int = Field(default=95, ge=1, le=100)
    RENDER_WORKERS: int = Field(default=4, ge=1)

    # Printer calibration
    PRINT_SHRINK_PERCENT: float = Field(default=95.25, gt=0, le=100)
    PRINT_VERTICAL_OFFSET_PX: int = -5


class EventConfig(BaseModel):
    """Event definition: branding and the layouts guests may pick"""
    slug: str
    name: str
    logo_path: Optional[str] = None
    photo_area_ratio: int = Field(default=85, ge=0, le=100)
    logo_settings: LogoSettings = Field(default_factory=LogoSettings)
    layouts: List[str] = Field(default_factory=lambda: [kind.value for kind in LayoutKind])
    background_color: Optional[str] = None

    @field_validator('logo_settings', mode='before')
    @classmethod
    def _parse_logo_settings(cls, value: Any) -> LogoSettings:
        return LogoSettings.from_config(value)

    @field_validator('layouts', mode='before')
    @classmethod
    def _parse_layouts(cls, value: Any) -> List[str]:
        if not value:
            return [kind.value for kind in LayoutKind]
        try:
            return [LayoutKind.parse(item).value for item in value]
        except UnknownLayoutError as e:
            raise ValueError(e.message)

    def allows(self, kind: LayoutKind) -> bool:
        return kind.value in self.layouts


def load_yaml_config(file_path: str) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}


def load_config(environment: str = "development", overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
    """Load configuration with environment-specific overrides"""

    # Load base settings
    base_config = load_yaml_config("config/settings.yaml")

    # Load environment-specific settings
    env_config = load_yaml_config(f"config/settings_{environment}.yaml")

    # Merge configurations (env overrides base)
    config_dict = {**base_config, **env_config}

    # Apply environment variable overrides
    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'OUTPUT_FOLDER': os.getenv('OUTPUT_FOLDER'),
        'EVENTS_FILE': os.getenv('EVENTS_FILE'),
        'PRINT_SHRINK_PERCENT': os.getenv('SHRINK_PERCENT'),
        'PRINT_VERTICAL_OFFSET_PX': os.getenv('VERTICAL_OFFSET_PX'),
    }

    # Only include non-None values
    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    # Special handling for boolean DEBUG flag
    if 'FLASK_ENV' in config_dict:
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    # Explicit overrides (app factory, tests) win over everything
    if overrides:
        config_dict.update(overrides)

    try:
        return AppConfig(**config_dict)
    except ValueError as e:
        logger.error(f"Configuration validation error: {e}")
        # Return default config on validation error
        return AppConfig()


def load_event_config(file_path: str = "config/events.yaml") -> Dict[str, EventConfig]:
    """Load the event catalogue from YAML, keyed by slug"""
    config_data = load_yaml_config(file_path)
    events = {}

    for item in config_data.get("events", []) or []:
        try:
            event = EventConfig(**item)
            events[event.slug] = event
        except (ValueError, TypeError) as e:
            logger.error(f"Error loading event config {item.get('slug', 'unknown')}: {e}")

    logger.info(f"Loaded {len(events)} event configurations")
    return events
