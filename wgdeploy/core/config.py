"""Deployment configuration: model, file loading and resolution.

Values are merged in order defaults < config file < environment < CLI
options. The public server address is detected from external endpoints
when none is supplied.
"""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wgdeploy.core.errors import ConfigFileError, InvalidConfigError, MissingAddressError
from wgdeploy.core.interaction import Interaction
from wgdeploy.core.logger import get_logger

logger = get_logger(__name__)

# Default config search paths
CONFIG_PATHS = [
    "./wgdeploy.yml",
    "/etc/wgdeploy/wgdeploy.yml",
]

ADDRESS_ENDPOINTS = [
    "https://api.ipify.org",
    "https://ifconfig.me/ip",
    "https://icanhazip.com",
]

# Environment variable -> config field
ENV_FIELDS = {
    "WGDEPLOY_PORT": "port",
    "WGDEPLOY_PEERS": "peers",
    "WGDEPLOY_CONFIG_DIR": "config_dir",
    "WGDEPLOY_TIMEZONE": "timezone",
    "WGDEPLOY_SERVER_ADDRESS": "server_address",
    "WGDEPLOY_PEER_DNS": "peer_dns",
    "WGDEPLOY_INTERNAL_SUBNET": "internal_subnet",
    "WGDEPLOY_AUTO_CONFIRM": "auto_confirm",
}


class DeploymentConfig(BaseModel):
    """Immutable deployment settings, built once per run."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    port: int = Field(51820, description="UDP port the server listens on")
    peers: int = Field(1, description="Number of peer configurations to generate")
    config_dir: str = Field("/opt/wireguard/config", description="Host directory mounted at /config")
    timezone: str = "Etc/UTC"
    server_address: Optional[str] = Field(None, description="Public IP or hostname peers connect to")
    auto_confirm: bool = False
    peer_dns: str = "auto"
    internal_subnet: str = "10.13.13.0"

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {v}")
        return v

    @field_validator('peers')
    @classmethod
    def validate_peers(cls, v):
        if v < 1:
            raise ValueError(f"Peer count must be a positive integer, got {v}")
        return v

    @field_validator('config_dir')
    @classmethod
    def validate_config_dir(cls, v):
        if not v.startswith('/'):
            raise ValueError(f"Config directory must be an absolute path, got {v}")
        return v.rstrip('/') or '/'

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v):
        if not v.strip():
            raise ValueError("Timezone must not be empty")
        return v.strip()

    @field_validator('server_address')
    @classmethod
    def normalize_address(cls, v):
        if v is None:
            return None
        return v.strip() or None

    def container_env(self) -> Dict[str, str]:
        """Environment variables handed to the container, one per field."""
        return {
            "TZ": self.timezone,
            "SERVERURL": self.server_address or "auto",
            "SERVERPORT": str(self.port),
            "PEERS": str(self.peers),
            "PEERDNS": self.peer_dns,
            "INTERNAL_SUBNET": self.internal_subnet,
        }


def find_config(config_path: Optional[str] = None) -> Optional[str]:
    """Locate the configuration file, if any."""
    if config_path:
        return config_path

    if env_config := os.environ.get("WGDEPLOY_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return path

    return None


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML config file into a plain mapping.

    Raises:
        ConfigFileError: If the file is missing, unreadable, or not a mapping
    """
    try:
        data = yaml.safe_load(Path(path).read_text())
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    # Accept dashed keys as written on the command line
    return {str(key).replace('-', '_'): value for key, value in data.items()}


def options_from_env(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Collect config overrides from WGDEPLOY_* environment variables."""
    environ = os.environ if environ is None else environ
    return {
        field: environ[var]
        for var, field in ENV_FIELDS.items()
        if environ.get(var)
    }


class ConfigResolver:
    """Merges option layers and resolves the public server address."""

    def __init__(
        self,
        interaction: Interaction,
        session: Optional[requests.Session] = None,
        endpoints: Optional[List[str]] = None,
        timeout: float = 5.0,
        environ: Optional[Dict[str, str]] = None,
    ):
        """Initialize resolver.

        Args:
            interaction: Used to ask for the address when detection fails
            session: HTTP session for address detection
            endpoints: Ordered address-detection URLs
            timeout: Per-endpoint timeout in seconds
            environ: Environment mapping (defaults to os.environ)
        """
        self.interaction = interaction
        self.session = session or requests.Session()
        self.endpoints = endpoints if endpoints is not None else list(ADDRESS_ENDPOINTS)
        self.timeout = timeout
        self.environ = environ

    def resolve(
        self,
        options: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        probe_address: bool = True,
    ) -> DeploymentConfig:
        """Build the final DeploymentConfig.

        Args:
            options: Explicit options (CLI); None values are ignored
            config_path: Optional YAML config file
            probe_address: Leave server_address unset instead of probing

        Returns:
            Validated, immutable DeploymentConfig

        Raises:
            ConfigFileError: Config file unreadable
            InvalidConfigError: Merged values fail validation
            MissingAddressError: No address detected and no operator to ask
        """
        merged: Dict[str, Any] = {}

        path = find_config(config_path)
        if path:
            logger.debug(f"Loading config file {path}")
            merged.update(load_config_file(path))

        merged.update(options_from_env(self.environ))
        merged.update({k: v for k, v in (options or {}).items() if v is not None})

        config = self._validate(merged)

        if config.server_address or not probe_address:
            return config

        address = self.detect_address()
        return self._validate({**config.model_dump(), "server_address": address})

    def detect_address(self) -> str:
        """Detect the public address, prompting as a last resort."""
        for url in self.endpoints:
            address = self._probe(url)
            if address:
                logger.info(f"Detected public address {address} via {url}")
                return address

        if self.interaction.is_interactive():
            address = self.interaction.prompt("Could not detect public address. Enter server IP or hostname")
            if address:
                return address

        raise MissingAddressError(
            "Could not detect the public server address. "
            "Pass it explicitly with --server-address."
        )

    def _probe(self, url: str) -> Optional[str]:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Address detection via {url} failed: {e}")
            return None

        address = response.text.strip()
        if not address:
            logger.warning(f"Address detection via {url} returned an empty response")
            return None
        return address

    @staticmethod
    def _validate(values: Dict[str, Any]) -> DeploymentConfig:
        try:
            return DeploymentConfig(**values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidConfigError(f"Invalid configuration: {problems}")
