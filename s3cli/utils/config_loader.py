"""
Configuration loader for the s3cmd-style credentials file and client settings
"""
import configparser
import os
from pathlib import Path
from typing import Optional, Dict, Any

from ..errors import ConfigError


DEFAULT_CONFIG_PATH = os.path.join(str(Path.home()), ".s3cfg")

# Values applied when neither the CLI nor the credentials file sets them.
DEFAULT_CLIENT_SETTINGS: Dict[str, Any] = {
    "max_sockets": 30,
    "insecure": False,
    "timeout": 60.0,
    "action_timeout": None,
    "concurrency": 20,
    "endpoint_url": None,
    "region": None,
}

_AWS_HOST_BASES = ("s3.amazonaws.com", "amazonaws.com")


class ClientConfig:
    """Explicit client configuration threaded through the store client,
    the key resolver and the task pool.

    Args:
        max_sockets: Maximum pooled HTTP connections to the store
        insecure: If True, talk to the store over plain HTTP
        timeout: Connect/read timeout in seconds for every network call
        action_timeout: Optional deadline in seconds for one whole transfer
        concurrency: Maximum number of actions in flight
        endpoint_url: Custom endpoint (S3-compatible stores)
        region: Region name passed to boto3
        access_key: Access key id
        secret_key: Secret access key
    """

    def __init__(self, max_sockets=30, insecure=False, timeout=60.0,
                 action_timeout=None, concurrency=20, endpoint_url=None,
                 region=None, access_key=None, secret_key=None):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if max_sockets < 1:
            raise ValueError("max_sockets must be at least 1")
        self.max_sockets = max_sockets
        self.insecure = insecure
        self.timeout = timeout
        self.action_timeout = action_timeout
        self.concurrency = concurrency
        self.endpoint_url = endpoint_url
        self.region = region
        self.access_key = access_key
        self.secret_key = secret_key

    @property
    def use_ssl(self):
        return not self.insecure

    @classmethod
    def from_sources(cls, credentials: Optional[Dict[str, Any]] = None,
                     overrides: Optional[Dict[str, Any]] = None) -> 'ClientConfig':
        """Merge defaults, the credentials file and CLI overrides.

        Args:
            credentials: Output of :meth:`ConfigLoader.load_s3cfg`
            overrides: CLI values; ``None`` values are ignored

        Returns:
            ClientConfig instance
        """
        settings = dict(DEFAULT_CLIENT_SETTINGS)
        credentials = credentials or {}

        if credentials.get("endpoint_url"):
            settings["endpoint_url"] = credentials["endpoint_url"]
        if credentials.get("region"):
            settings["region"] = credentials["region"]
        if credentials.get("use_https") is False:
            settings["insecure"] = True

        for key, value in (overrides or {}).items():
            if value is not None and key in settings:
                settings[key] = value

        return cls(access_key=credentials.get("access_key"),
                   secret_key=credentials.get("secret_key"),
                   **settings)


class ConfigLoader:
    """Handles loading the s3cmd-format credentials file."""

    @staticmethod
    def get_config_path(path=None):
        """
        Resolve the credentials file path.

        Args:
            path: Explicit path from ``--config``, or None for ``~/.s3cfg``

        Returns:
            Expanded path string
        """
        return os.path.expanduser(path) if path else DEFAULT_CONFIG_PATH

    @staticmethod
    def load_s3cfg(path=None):
        """
        Load access credentials from an s3cmd-style INI file.

        Only the ``[default]`` section is read. ``host_base`` becomes a custom
        endpoint unless it points at AWS, ``use_https = False`` turns TLS off
        and ``bucket_location`` becomes the region.

        Args:
            path: Config file path (defaults to ``~/.s3cfg``)

        Returns:
            Dictionary with access_key, secret_key, endpoint_url,
            use_https and region

        Raises:
            ConfigError: If the file cannot be read or lacks credentials
        """
        config_path = ConfigLoader.get_config_path(path)
        parser = configparser.ConfigParser(interpolation=None)

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                parser.read_file(f)
        except (OSError, configparser.Error) as e:
            raise ConfigError(
                "This utility needs a config file formatted the same as for s3cmd"
            ) from e

        section = parser["default"] if parser.has_section("default") else {}
        access_key = section.get("access_key", "").strip()
        secret_key = section.get("secret_key", "").strip()
        if not access_key or not secret_key:
            raise ConfigError("Config file missing access_key or secret_key")

        use_https = _parse_bool(section.get("use_https", "True"))
        host_base = section.get("host_base", "").strip()
        endpoint_url = None
        if host_base and not host_base.endswith(_AWS_HOST_BASES):
            scheme = "https" if use_https else "http"
            endpoint_url = host_base if "://" in host_base else f"{scheme}://{host_base}"

        region = section.get("bucket_location", "").strip()
        # s3cmd writes "US" for the classic region
        if region.upper() in ("", "US"):
            region = None

        return {
            "access_key": access_key,
            "secret_key": secret_key,
            "endpoint_url": endpoint_url,
            "use_https": use_https,
            "region": region,
        }


def _parse_bool(value) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")
