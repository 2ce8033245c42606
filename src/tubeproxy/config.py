"""Configuration management for tubeproxy.

Configuration Discovery Precedence (Highest to Lowest Priority):
===============================================================

1. **TUBEPROXY_CONFIG_DIR Environment Variable** (Highest Priority)
   - Set by the CLI when it launches mitmdump, or manually
   - Looks for: `${TUBEPROXY_CONFIG_DIR}/tubeproxy.yaml`

2. **~/.tubeproxy Directory** (Fallback)
   - Looks for: `~/.tubeproxy/tubeproxy.yaml`

If no `tubeproxy.yaml` is found, default configuration is applied.

The filter toggles accept both the snake_case field names and the camelCase
keys used by the TV client settings page (``enableAdBlock``,
``hideWatchedVideosThreshold``, ...).
"""

import logging
import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tubeproxy.yaml"


class FilterConfig(BaseModel):
    """Feature toggles and thresholds read by the transform pipeline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    enable_ad_block: bool = True
    """Strip ad placements, ad slots, player ads and short-form feed ads"""

    enable_paid_promotion_overlay: bool = False
    """Keep the "includes paid promotion" overlay"""

    video_preferred_codec: str = "any"
    """Keep only adaptive video formats of this codec ("any" disables filtering)"""

    enable_hide_end_screen_cards: bool = False
    """Drop end screen cards"""

    enable_you_there_renderer: bool = False
    """Keep the "are you still watching" prompt"""

    enable_shorts: bool = True
    """Show short-form content"""

    enable_previews: bool = False
    """Play a muted inline preview when a tile is focused"""

    enable_dearrow: bool = Field(default=False, alias="enableDeArrow")
    """Replace titles with community-sourced DeArrow titles"""

    enable_dearrow_thumbnails: bool = Field(default=False, alias="enableDeArrowThumbnails")
    """Also replace thumbnails with DeArrow captures"""

    enable_hq_thumbnails: bool = False
    """Upgrade tile thumbnails to the sddefault variant"""

    enable_long_press: bool = True
    """Synthesize long-press menus for tiles that lack one"""

    enable_hide_watched_videos: bool = False
    """Hide videos watched at or above the threshold"""

    hide_watched_videos_pages: list[str] = Field(default_factory=list)
    """Page contexts where watched videos are hidden (empty = everywhere)"""

    hide_watched_videos_threshold: float = 80
    """Watch progress percentage at which a video counts as watched"""

    enable_hide_watched_in_playlists: bool = False
    """Also hide watched videos inside playlists"""

    sponsor_block_manual_skips: list[str] = Field(default_factory=list)
    """SponsorBlock categories offered as skip buttons"""

    enable_sponsor_block_highlight: bool = True
    """Offer a "skip to highlight" transport button"""

    pass_overrides: str = ""
    """Comma-separated pass overrides: +name forces a pass, -name skips it"""

    def read(self, key: str) -> Any:
        """Read a setting by field name or camelCase key.

        Raises:
            KeyError: If no setting matches ``key``
        """
        fields = type(self).model_fields
        if key in fields:
            return getattr(self, key)
        for name, field_info in fields.items():
            if field_info.alias == key:
                return getattr(self, name)
        raise KeyError(key)

    def snapshot(self) -> "FilterConfig":
        """Return a detached copy that later config edits cannot reach."""
        return self.model_copy(deep=True)


class MitmConfig(BaseModel):
    """Configuration for the mitmproxy interception layer."""

    port: int = 8080
    """Port for mitmproxy to listen on"""

    listen_host: str = "0.0.0.0"
    """Address for mitmproxy to bind"""

    mode: str = "regular"
    """mitmproxy mode string (regular, upstream:..., reverse:...)"""

    api_hosts: list[str] = Field(
        default_factory=lambda: ["youtubei.googleapis.com", "www.youtube.com", "m.youtube.com"]
    )
    """Hosts whose responses are rewritten"""

    api_path_prefix: str = "/youtubei/v1/"
    """Only paths under this prefix are rewritten"""

    debug: bool = False
    """Enable debug logging of intercepted flows"""


class ServiceConfig(BaseModel):
    """Endpoints of the community metadata services."""

    dearrow_api: str = "https://sponsor.ajay.app"
    dearrow_thumbnail_api: str = "https://dearrow-thumb.ajay.app"
    sponsorblock_api: str = "https://sponsor.ajay.app"

    request_timeout: float = 5.0
    """Timeout for a single metadata request (seconds)"""

    segment_prefetch_timeout: float = 2.0
    """How long a watch response waits for sponsor segments (seconds)"""

    branding_cache_size: int = 2048
    """Number of resolved DeArrow entries kept in memory"""


class TubeProxyConfig(BaseSettings):
    """Main configuration for tubeproxy that reads from tubeproxy.yaml."""

    model_config = SettingsConfigDict(
        env_prefix="TUBEPROXY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    filters: FilterConfig = Field(default_factory=FilterConfig)
    mitm: MitmConfig = Field(default_factory=MitmConfig)
    services: ServiceConfig = Field(default_factory=ServiceConfig)

    # Path to tubeproxy config
    config_path: Path = Field(default_factory=lambda: Path("./tubeproxy.yaml"))

    def read(self, key: str) -> Any:
        """Read a filter setting (see ``FilterConfig.read``)."""
        return self.filters.read(key)

    @classmethod
    def from_yaml(cls, yaml_path: Path, **kwargs: Any) -> "TubeProxyConfig":
        """Load configuration from a tubeproxy.yaml file.

        Args:
            yaml_path: Path to the tubeproxy.yaml file
            **kwargs: Additional keyword arguments

        Returns:
            TubeProxyConfig instance

        Raises:
            pydantic.ValidationError: If a section has invalid values
        """
        instance = cls(config_path=yaml_path, **kwargs)

        if not yaml_path.exists():
            return instance

        with yaml_path.open() as f:
            data = yaml.safe_load(f) or {}

        section = data.get("tubeproxy", {}) or {}

        if "debug" in section:
            instance.debug = bool(section["debug"])

        if "filters" in section:
            filters_data = section["filters"]
            if isinstance(filters_data, dict):
                instance.filters = FilterConfig.model_validate(filters_data)
            else:
                logger.warning(f"Invalid filters config format: {type(filters_data)}")

        if "mitm" in section:
            mitm_data = section["mitm"]
            # Propagate top-level debug flag if not explicitly set in mitm config
            if "debug" not in mitm_data and instance.debug:
                mitm_data = {**mitm_data, "debug": instance.debug}
            instance.mitm = MitmConfig(**mitm_data)

        if "services" in section:
            instance.services = ServiceConfig(**section["services"])

        return instance


# Global configuration instance
_config_instance: TubeProxyConfig | None = None
_config_lock = threading.Lock()


def get_config() -> TubeProxyConfig:
    """Get the configuration instance."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check locking pattern
            if _config_instance is None:
                env_config_dir = os.environ.get("TUBEPROXY_CONFIG_DIR")
                if env_config_dir:
                    config_dir = Path(env_config_dir)
                    logger.info(f"Using config directory from environment: {config_dir}")
                else:
                    config_dir = Path.home() / ".tubeproxy"

                yaml_path = config_dir / CONFIG_FILENAME
                if yaml_path.exists():
                    logger.info(f"Loading tubeproxy config from: {yaml_path}")
                    _config_instance = TubeProxyConfig.from_yaml(yaml_path)
                else:
                    logger.info(f"{CONFIG_FILENAME} not found at {yaml_path}, using default config")
                    _config_instance = TubeProxyConfig(config_path=yaml_path)

    return _config_instance


def set_config_instance(config: TubeProxyConfig) -> None:
    """Set the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = config


def clear_config_instance() -> None:
    """Clear the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = None
