"""Configuration management for the codestream backend."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import yaml
from dotenv import load_dotenv

from codestream.llm.models import GatewayConfig

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")


@dataclass(frozen=True)
class RelayConfig:
    """Process-wide settings, built once at startup and passed by reference."""
    gateway: GatewayConfig
    temperatures: dict[str, float] = field(default_factory=dict)
    tick_interval: float = 0.01
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


class Configuration:
    """Manages configuration and environment variables for the backend."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for the gateway key
        self._config = self._load_yaml_config(config_path or DEFAULT_CONFIG_PATH)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Configuration:
        """Build a configuration from an in-memory dict (no file access)."""
        instance = cls.__new__(cls)
        instance._config = config
        return instance

    @property
    def gateway_api_key(self) -> str | None:
        """Get the gateway API key, or ``None`` when it is not set.

        A missing key is reported per request, not at startup.
        """
        env_key = self.get_gateway_config().get("api_key_env", "AI_GATEWAY_API_KEY")
        return os.getenv(env_key) or None

    def get_gateway_config(self) -> dict[str, Any]:
        """Get upstream gateway configuration from YAML.

        Raises:
            ValueError: If required gateway parameters are missing.
        """
        gateway_config = self._config.get("gateway", {})

        for key in ["base_url", "model"]:
            if key not in gateway_config:
                raise ValueError(
                    f"gateway.{key} must be explicitly configured in config.yaml"
                )

        return gateway_config

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP client timeouts for the gateway.

        Raises:
            ValueError: If required timeouts are missing or not positive.
        """
        http_config = self.get_gateway_config().get("http_client", {})

        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
        ]
        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"gateway.http_client.{key} must be explicitly configured "
                    "in config.yaml"
                )
            if http_config[key] <= 0:
                raise ValueError(f"gateway.http_client.{key} must be positive")

        return http_config

    def get_assistant_temperatures(self) -> dict[str, float]:
        """Get per-tool sampling temperatures.

        Raises:
            ValueError: If a temperature is outside [0, 2].
        """
        temperatures = self._config.get("assistants", {}).get("temperatures", {})
        for name, value in temperatures.items():
            if not 0 <= value <= 2:
                raise ValueError(
                    f"assistants.temperatures.{name} must be between 0 and 2"
                )
        return dict(temperatures)

    def get_playback_config(self) -> dict[str, Any]:
        """Get playback configuration from YAML.

        Raises:
            ValueError: If tick_interval is missing or not positive.
        """
        playback_config = self._config.get("playback", {})

        if "tick_interval" not in playback_config:
            raise ValueError(
                "playback.tick_interval must be explicitly configured in config.yaml"
            )
        if playback_config["tick_interval"] <= 0:
            raise ValueError("playback.tick_interval must be positive")

        return playback_config

    def get_server_config(self) -> dict[str, Any]:
        """Get HTTP server configuration from YAML.

        Raises:
            ValueError: If host or port is missing or the port is invalid.
        """
        server_config = self._config.get("server", {})

        for key in ["host", "port"]:
            if key not in server_config:
                raise ValueError(
                    f"server.{key} must be explicitly configured in config.yaml"
                )

        port = server_config["port"]
        if not isinstance(port, int) or not 0 < port < 65536:
            raise ValueError("server.port must be an integer between 1 and 65535")

        return server_config

    def build_relay_config(self) -> RelayConfig:
        """Assemble the read-only settings shared by every request."""
        gateway_config = self.get_gateway_config()
        http_config = self.get_http_client_config()
        server_config = self.get_server_config()

        gateway = GatewayConfig(
            base_url=gateway_config["base_url"],
            model=gateway_config["model"],
            api_key=self.gateway_api_key,
            connect_timeout=http_config["connect_timeout"],
            read_timeout=http_config["read_timeout"],
            write_timeout=http_config["write_timeout"],
            pool_timeout=http_config["pool_timeout"],
        )

        return RelayConfig(
            gateway=gateway,
            temperatures=self.get_assistant_temperatures(),
            tick_interval=self.get_playback_config()["tick_interval"],
            host=server_config["host"],
            port=server_config["port"],
            log_level=server_config.get("log_level", "info"),
            cors_origins=list(server_config.get("cors_origins", ["*"])),
        )
