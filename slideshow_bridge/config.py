"""Slideshow Bridge: configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. System config: /etc/slideshow-bridge/config.yaml
    3. User config:   ~/.slideshow-bridge/config.yaml
    4. An explicit config file passed to ``Settings.load()``
    5. Environment variables prefixed with SLIDESHOW_

Call ``Settings.load()`` once at startup and pass the instance to the
objects that need it, or rely on ``get_settings()``.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_PACKAGE_DIR = Path(__file__).resolve().parent

# Config files read by the Settings instance being built by ``Settings.load()``.
_config_files: ContextVar[tuple[Path, ...]] = ContextVar("config_files", default=())


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class HelperEntry(BaseModel):
    """A helper executable registered in addition to the built-in table."""

    platform: str = Field(min_length=1, description="Platform id, e.g. 'darwin', 'win32', 'linux'.")
    application: str = Field(min_length=1, description="Application id, e.g. 'keynote6'.")
    executable: str = Field(min_length=1, description="File name of the helper in the bundle.")


class HelpersConfig(BaseModel):
    extra: list[HelperEntry] = Field(
        default_factory=list,
        description=(
            "Helpers layered over the built-in table.  An entry with the same "
            "platform/application key replaces the built-in one."
        ),
    )


class InstallConfig(BaseModel):
    bundle_dir: Path = Field(
        default=_PACKAGE_DIR / "connectors",
        description="Read-only directory holding the bundled helper assets.",
    )
    target_dir: Path = Field(
        default=Path("~/.slideshow-bridge/connectors"),
        description="Writable directory the assets are copied to in packaged mode.",
    )
    packaged: bool | None = Field(
        default=None,
        description=(
            "Force packaged mode on or off.  None detects it from sys.frozen "
            "(PyInstaller and similar freezers)."
        ),
    )
    asset_suffixes: list[str] = Field(
        default_factory=lambda: [".scpt", ".sh", ".bat", ".js"],
        description="Bundled files with these suffixes are copied in packaged mode.",
    )
    executable_suffixes: list[str] = Field(
        default_factory=lambda: [".sh"],
        description="Copied files with these suffixes get mode 0755 (non-Windows only).",
    )

    @field_validator("bundle_dir", "target_dir", mode="after")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


class ChannelConfig(BaseModel):
    env: dict[str, str] = Field(
        default_factory=lambda: {"CONNECTOR": "slideshow-bridge"},
        description=(
            "Variables asserted into the helper environment on top of the "
            "inherited one.  Reserved for passing session context."
        ),
    )
    line_limit: Annotated[int, Field(ge=1024, le=1_073_741_824)] = Field(
        default=16 * 1024 * 1024,
        description="Maximum size in bytes of a single reply line.",
    )
    shutdown_timeout: Annotated[float, Field(gt=0, le=600)] = Field(
        default=5.0,
        description="Seconds to wait for the helper to exit after end() before killing it.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SLIDESHOW_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    helpers: HelpersConfig = Field(default_factory=HelpersConfig)
    install: InstallConfig = Field(default_factory=InstallConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Later files win; nested blocks are merged key by key across sources.
        yaml_settings = tuple(
            YamlConfigSettingsSource(settings_cls, yaml_file=path)
            for path in reversed(_config_files.get())
        )
        return (init_settings, env_settings, dotenv_settings, *yaml_settings, file_secret_settings)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from config files + environment variables."""
        candidates = [
            Path("/etc/slideshow-bridge/config.yaml"),
            Path.home() / ".slideshow-bridge" / "config.yaml",
        ]
        if config_file:
            candidates.append(Path(config_file))

        token = _config_files.set(tuple(p for p in candidates if p.exists()))
        try:
            return cls()
        finally:
            _config_files.reset(token)


# Module-level singleton, replaced by ``override_settings()`` or built lazily.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests and by the CLI."""
    global _settings
    _settings = settings
