"""
Persistent settings in ImageTrim.json.

Keys follow the document the desktop tool always wrote: SrcDir, DstDir,
AllowColor, Threshold, WindowWidth, WindowHeight. Unknown keys are ignored;
missing keys keep their defaults.
"""

import json
import logging
from dataclasses import asdict, dataclass

from .core.batch import TransferConfig
from .core.color import DEFAULT_THRESHOLD, clamp_threshold

logger = logging.getLogger(__name__)

CONFIG_FILE = "ImageTrim.json"


@dataclass
class AppConfig:
    SrcDir: str = ""
    DstDir: str = ""
    AllowColor: bool = False
    Threshold: int = DEFAULT_THRESHOLD
    WindowWidth: int = 800
    WindowHeight: int = 600

    def __post_init__(self):
        if not isinstance(self.AllowColor, bool):
            raise TypeError(f"AllowColor must be true or false, got {self.AllowColor!r}")
        self.Threshold = clamp_threshold(self.Threshold)

    @classmethod
    def from_dict(cls, data):
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def to_dict(self):
        return asdict(self)

    def transfer_config(self):
        return TransferConfig(
            src_dir=self.SrcDir,
            dst_dir=self.DstDir,
            allow_color=self.AllowColor,
            threshold=self.Threshold,
        )


def load_config(path=CONFIG_FILE):
    """
    Read the settings file. Falls back to defaults when it is missing or
    malformed, so a broken file never blocks a run.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        logger.info("Could not read %s, using defaults: %s", path, e)
        return AppConfig()
    except json.JSONDecodeError as e:
        logger.warning("Could not parse %s, using defaults: %s", path, e)
        return AppConfig()

    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return AppConfig()

    try:
        conf = AppConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.warning("Invalid values in %s, using defaults: %s", path, e)
        return AppConfig()

    logger.info("Loaded settings from %s", path)
    return conf


def save_config(conf, path=CONFIG_FILE):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(conf.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info("Settings saved to %s", path)
