"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:        str = "mdcbridge"
    parser_config:   str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    output_dir:      str = Field(default="dist", description="Directory for converted documents")
    highlight:       bool = Field(default=False, description="Decorate code blocks when saving")
    highlight_theme: str = Field(default="default", description="Pygments style for the default theme")
    highlight_dark_theme:  str = Field(default="github-dark", description="Pygments style for the dark theme")
    highlight_light_theme: Optional[str] = Field(default=None, description="Optional Pygments style for the light theme")
    max_diff_tokens: int = Field(default=1000, ge=1, description="Token ceiling per side for word diffs")
    log_level:       str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    def highlight_themes(self) -> dict[str, str]:
        """Theme key -> Pygments style name, as accepted by Highlighter."""
        themes = {"default": self.highlight_theme, "dark": self.highlight_dark_theme}
        if self.highlight_light_theme:
            themes["light"] = self.highlight_light_theme
        return themes


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDCBRIDGE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MDCBRIDGE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
