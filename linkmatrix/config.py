"""Configuration loading for the link matrix."""

import logging
from pathlib import Path
from typing import Any

import yaml
from PIL import ImageColor
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".linkmatrix.yaml"

# (max documents, cell side in px); anything larger gets the fallback
SCALE_TIERS: list[tuple[int, int]] = [(50, 16), (100, 8), (200, 4)]
FALLBACK_SCALE = 2


class ViewportConfig(BaseModel):
    tick_hz: float = 30.0
    accel: float = 0.9
    drag: float = 0.2
    zoom_factor: float = 1.15
    min_scale: float = 0.01
    max_scale: float = 400.0
    hover_window_ms: float = 20.0
    settle_epsilon: float = 1e-4

    @field_validator("tick_hz", "zoom_factor", "min_scale", "max_scale", "hover_window_ms")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.tick_hz


class Config(BaseModel):
    foreground_color: str = "hsl(214, 84%, 57%)"
    background_color: str = "hsl(20, 17%, 3%)"
    cell_scale: int | None = None
    show_folder_overlay: bool = True
    export_name_prefix: str = "adj"
    export_folder_path: str = "/"
    alpha_gain: float = 1 / 1.5
    alpha_offset: float = 1 / 3
    folder_palette: list[str] = Field(default_factory=lambda: [
        "#e5484d", "#f5d90a", "#46a758", "#00a2c7", "#8e4ec6", "#f76b15",
    ])
    folder_outline_width: int = 1
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)

    @field_validator("foreground_color", "background_color")
    @classmethod
    def _valid_color(cls, value: str) -> str:
        ImageColor.getrgb(value)  # raises ValueError on unknown colours
        return value

    @field_validator("folder_palette")
    @classmethod
    def _valid_palette(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("folder_palette needs at least one colour")
        for color in value:
            ImageColor.getrgb(color)
        return value

    @field_validator("cell_scale", mode="before")
    @classmethod
    def _lenient_scale(cls, value: Any) -> int | None:
        """Invalid scales are dropped so the size-tiered default applies."""
        if value is None or value == "" or value == 0:
            return None
        scale = None
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            try:
                scale = int(str(value).strip())
            except ValueError:
                scale = None
        if scale is None or scale < 1:
            logger.warning("Ignoring cell_scale=%r, using the default", value)
            return None
        return scale

    @property
    def foreground_rgb(self) -> tuple[int, int, int]:
        return ImageColor.getrgb(self.foreground_color)[:3]

    @property
    def background_rgb(self) -> tuple[int, int, int]:
        return ImageColor.getrgb(self.background_color)[:3]

    def resolve_cell_scale(self, n_documents: int) -> int:
        """Side length of one cell in px for a matrix of ``n_documents``."""
        if self.cell_scale is not None:
            return self.cell_scale
        return default_cell_scale(n_documents)


def default_cell_scale(n_documents: int) -> int:
    for limit, scale in SCALE_TIERS:
        if n_documents < limit:
            return scale
    return FALLBACK_SCALE


def _project_root() -> Path:
    """Return the linkmatrix project root directory."""
    return Path(__file__).parent.parent


def find_config(vault_root: Path | None = None) -> Path:
    """Vault-local config wins over the project-level ``config.yaml``."""
    if vault_root is not None:
        candidate = vault_root / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
    return _project_root() / "config.yaml"


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        logger.debug("Loaded config from %s", config_path)
        return Config(**raw)

    return Config()
