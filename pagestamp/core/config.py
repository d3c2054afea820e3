"""
Configuration for the template rendering engine.

Centralizes every value the renderers would otherwise hardcode: asset
locations, fonts, pattern tuning, element defaults and placeholder styling.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from .exceptions import ConfigurationError


ANONYMOUS_USER_LABEL = "משתמש אנונימי"
USER_INFO_DEFAULT_CONTENT = "קובץ זה נוצר עבור {{user.email}}"


def _default_element_styles() -> Dict[str, Dict[str, Any]]:
    return {
        "logo": {"size": 80, "opacity": 100, "rotation": 0},
        "text": {
            "fontSize": 12,
            "color": "#000000",
            "bold": False,
            "italic": False,
            "opacity": 100,
            "rotation": 0,
            "width": 300,
        },
        "url": {
            "fontSize": 12,
            "color": "#0066cc",
            "bold": False,
            "italic": False,
            "opacity": 100,
            "rotation": 0,
            "width": 300,
        },
        "box": {"width": 100, "height": 100, "color": "#000000", "borderWidth": 2, "fillColor": None},
        "circle": {"size": 50, "color": "#000000", "borderWidth": 2, "fillColor": None},
        "line": {"length": 100, "thickness": 2, "color": "#000000"},
    }


@dataclass
class TemplateConfig:
    """Complete configuration for template rendering and page replacement."""

    # URLs
    frontend_url: str = "https://ludora.app"

    # Fonts
    font_dir: Path = Path("fonts")
    hebrew_font_files: Dict[str, str] = field(default_factory=lambda: {
        "regular": "NotoSansHebrew-Regular.ttf",
        "bold": "NotoSansHebrew-Bold.ttf",
    })
    download_fonts: bool = False  # Fetch a Hebrew font when none is installed
    font_cache_dir: Optional[Path] = None

    # Assets
    logo_path: Path = Path("assets/images/logo.png")
    placeholder_path: Path = Path("assets/placeholders/preview-not-available.pdf")
    logo_fallback_text: str = "LOGO"
    logo_fallback_color: Tuple[float, float, float] = (0.2, 0.4, 0.8)

    # SVG canvas used when width/height attributes are missing
    svg_default_width: float = 800.0
    svg_default_height: float = 600.0

    # Patterns
    grid_spacing: Tuple[float, float] = (200.0, 150.0)
    scatter_density: float = 0.3
    scatter_area_unit: float = 50000.0
    max_pattern_positions: int = 2000

    # Text layout
    line_height_ratio: float = 1.2
    hebrew_fallback_notice: str = "[Hebrew text unavailable]"
    dash_array: Tuple[float, float] = (3.0, 3.0)

    # Variable defaults
    anonymous_user_label: str = ANONYMOUS_USER_LABEL
    user_info_default_content: str = USER_INFO_DEFAULT_CONTENT
    date_format: str = "%d/%m/%Y"
    time_format: str = "%H:%M:%S"

    # Element style defaults, keyed by element kind
    element_defaults: Dict[str, Dict[str, Any]] = field(default_factory=_default_element_styles)

    # Placeholder page annotations
    placeholder_label_size: float = 10.0
    placeholder_label_color: Tuple[float, float, float] = (0.68, 0.71, 0.74)
    placeholder_page_size: Tuple[float, float] = (612.0, 792.0)  # US letter

    # Selective access
    apply_watermarks_to_accessible: bool = True
    layer_behind_opacity: float = 0.6  # SVG group opacity when layered behind content

    log_level: str = "INFO"

    def __post_init__(self):
        self.font_dir = Path(self.font_dir)
        self.logo_path = Path(self.logo_path)
        self.placeholder_path = Path(self.placeholder_path)
        if self.font_cache_dir is not None:
            self.font_cache_dir = Path(self.font_cache_dir)
        self.grid_spacing = tuple(float(v) for v in self.grid_spacing)
        self.dash_array = tuple(float(v) for v in self.dash_array)
        self.logo_fallback_color = tuple(self.logo_fallback_color)
        self.placeholder_label_color = tuple(self.placeholder_label_color)
        self.placeholder_page_size = tuple(float(v) for v in self.placeholder_page_size)
        self.validate()

    def validate(self) -> None:
        """Reject values the engine cannot work with."""
        if len(self.grid_spacing) != 2 or min(self.grid_spacing) <= 0:
            raise ConfigurationError(
                "Grid spacing must be two positive numbers",
                config_key="grid_spacing",
                invalid_value=self.grid_spacing
            )
        if self.scatter_density < 0:
            raise ConfigurationError(
                "Scatter density cannot be negative",
                config_key="scatter_density",
                invalid_value=self.scatter_density
            )
        if self.scatter_area_unit <= 0:
            raise ConfigurationError(
                "Scatter area unit must be positive",
                config_key="scatter_area_unit",
                invalid_value=self.scatter_area_unit
            )
        if self.max_pattern_positions < 1:
            raise ConfigurationError(
                "max_pattern_positions must be at least 1",
                config_key="max_pattern_positions",
                invalid_value=self.max_pattern_positions
            )
        if self.line_height_ratio <= 0:
            raise ConfigurationError(
                "Line height ratio must be positive",
                config_key="line_height_ratio",
                invalid_value=self.line_height_ratio
            )
        if len(self.dash_array) != 2 or self.dash_array[0] <= 0 or self.dash_array[1] < 0:
            raise ConfigurationError(
                "dash_array must be [dashLength > 0, gapLength >= 0]",
                config_key="dash_array",
                invalid_value=self.dash_array
            )
        levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if str(self.log_level).upper() not in levels:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                config_key="log_level",
                invalid_value=self.log_level,
                valid_values=levels
            )

    def defaults_for(self, kind: str) -> Dict[str, Any]:
        """Style defaults for an element kind (``text``, ``logo``, ``box``...)."""
        return dict(self.element_defaults.get(kind, {}))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Path):
                data[key] = str(value)
            elif isinstance(value, tuple):
                data[key] = list(value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateConfig":
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                config_key=unknown[0],
                valid_values=sorted(known)
            )
        values = dict(data)
        if "element_defaults" in values:
            merged = _default_element_styles()
            for kind, style in (values["element_defaults"] or {}).items():
                merged.setdefault(kind, {}).update(style or {})
            values["element_defaults"] = merged
        return cls(**values)

    def hebrew_font_paths(self) -> Dict[str, Path]:
        return {style: self.font_dir / name for style, name in self.hebrew_font_files.items()}


