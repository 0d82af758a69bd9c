import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

import config
from exceptions import SettingsError

logger = logging.getLogger(__name__)


@dataclass
class TemplateSettings:
    name: str
    path: str
    threshold: float
    min_distance: float
    red: float = 255.0
    green: float = 255.0
    blue: float = 255.0
    resolution: Optional[float] = None
    always_active: bool = False

    @property
    def color(self):
        return self.red, self.green, self.blue


@dataclass
class RandomOffsetSettings:
    enabled: bool = config.RANDOM_OFFSET_ENABLED
    max_x_offset: int = config.MAX_X_OFFSET
    max_y_offset: int = config.MAX_Y_OFFSET


@dataclass
class HumanLikeMovementSettings:
    enabled: bool = config.HUMAN_LIKE_MOVEMENT_ENABLED
    max_deviation: float = config.MAX_DEVIATION
    speed_variation: float = config.SPEED_VARIATION
    curve_smoothness: int = config.CURVE_SMOOTHNESS
    min_pause_ms: int = config.MIN_PAUSE_MS
    max_pause_ms: int = config.MAX_PAUSE_MS
    base_speed: float = config.BASE_SPEED
    min_down_ms: int = config.MIN_DOWN_MS
    max_down_ms: int = config.MAX_DOWN_MS
    min_up_ms: int = config.MIN_UP_MS
    max_up_ms: int = config.MAX_UP_MS
    min_move_delay_ms: int = config.MIN_MOVE_DELAY_MS
    max_move_delay_ms: int = config.MAX_MOVE_DELAY_MS


@dataclass
class Settings:
    window_title: str
    reference_width: int
    reference_height: int
    resolution: float = config.RESOLUTION
    rescan_delay: int = config.RESCAN_DELAY
    convert_to_grayscale: bool = config.CONVERT_TO_GRAYSCALE
    templates: List[TemplateSettings] = field(default_factory=list)
    random_offset: RandomOffsetSettings = field(default_factory=RandomOffsetSettings)
    human_like_movement: HumanLikeMovementSettings = field(default_factory=HumanLikeMovementSettings)

    @classmethod
    def from_dict(cls, data):
        try:
            templates = [TemplateSettings(**entry) for entry in data.get("templates", [])]
            return cls(
                window_title=data["window_title"],
                reference_width=data["reference_width"],
                reference_height=data["reference_height"],
                resolution=data.get("resolution", config.RESOLUTION),
                rescan_delay=data.get("rescan_delay", config.RESCAN_DELAY),
                convert_to_grayscale=data.get("convert_to_grayscale", config.CONVERT_TO_GRAYSCALE),
                templates=templates,
                random_offset=RandomOffsetSettings(**data.get("random_offset", {})),
                human_like_movement=HumanLikeMovementSettings(**data.get("human_like_movement", {})),
            )
        except KeyError as exc:
            raise SettingsError(f"Missing setting: {exc.args[0]}") from exc
        except (TypeError, AttributeError) as exc:
            raise SettingsError(f"Invalid settings: {exc}") from exc

    def to_dict(self):
        return asdict(self)


def load_settings(settings_path):
    path = Path(settings_path)
    try:
        with path.open("r", encoding="utf-8") as settings_file:
            data = json.load(settings_file)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Settings file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")

    settings = Settings.from_dict(data)
    logger.info(f"Loaded settings from {path} ({len(settings.templates)} templates)")
    return settings


def save_settings(settings, settings_path):
    path = Path(settings_path)
    with path.open("w", encoding="utf-8") as settings_file:
        json.dump(settings.to_dict(), settings_file, indent=2)
    logger.info(f"Settings saved to {path}")


def load_or_create_settings(settings_path, window_title=config.WINDOW_TITLE, window_size=None):
    path = Path(settings_path)
    if path.exists():
        return load_settings(path)

    width, height = window_size or (config.REFERENCE_WIDTH, config.REFERENCE_HEIGHT)
    settings = Settings(
        window_title=window_title,
        reference_width=width,
        reference_height=height,
    )
    save_settings(settings, path)
    logger.warning(f"No settings found, created defaults at {path}. Add your templates there.")
    return settings
