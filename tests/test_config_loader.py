"""
Tests for credentials loading and client configuration.
"""
import pytest

from s3cli.errors import ConfigError
from s3cli.utils.config_loader import ClientConfig, ConfigLoader


def write_cfg(tmp_path, body):
    path = tmp_path / "s3cfg"
    path.write_text(body)
    return str(path)


class TestLoadS3cfg:
    """Test s3cmd-format credential parsing."""

    def test_minimal_file(self, tmp_path):
        path = write_cfg(tmp_path, "[default]\naccess_key = AKIA\nsecret_key = s3cr3t\n")
        creds = ConfigLoader.load_s3cfg(path)
        assert creds["access_key"] == "AKIA"
        assert creds["secret_key"] == "s3cr3t"
        assert creds["endpoint_url"] is None
        assert creds["use_https"] is True
        assert creds["region"] is None

    def test_custom_host_and_region(self, tmp_path):
        path = write_cfg(tmp_path, "[default]\naccess_key = a\nsecret_key = b\n"
                                   "host_base = minio.local:9000\nuse_https = False\n"
                                   "bucket_location = eu-west-1\n")
        creds = ConfigLoader.load_s3cfg(path)
        assert creds["endpoint_url"] == "http://minio.local:9000"
        assert creds["use_https"] is False
        assert creds["region"] == "eu-west-1"

    def test_aws_host_is_not_a_custom_endpoint(self, tmp_path):
        path = write_cfg(tmp_path, "[default]\naccess_key = a\nsecret_key = b\n"
                                   "host_base = s3.amazonaws.com\nbucket_location = US\n")
        creds = ConfigLoader.load_s3cfg(path)
        assert creds["endpoint_url"] is None
        assert creds["region"] is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="formatted the same as for s3cmd"):
            ConfigLoader.load_s3cfg(str(tmp_path / "nope"))

    def test_missing_keys(self, tmp_path):
        path = write_cfg(tmp_path, "[default]\naccess_key = a\n")
        with pytest.raises(ConfigError, match="missing access_key or secret_key"):
            ConfigLoader.load_s3cfg(path)

    def test_secret_with_percent_sign(self, tmp_path):
        path = write_cfg(tmp_path, "[default]\naccess_key = a\nsecret_key = 100%sure\n")
        assert ConfigLoader.load_s3cfg(path)["secret_key"] == "100%sure"


class TestClientConfig:
    """Test merging defaults, credentials and CLI overrides."""

    def test_defaults(self):
        config = ClientConfig.from_sources()
        assert config.max_sockets == 30
        assert config.concurrency == 20
        assert config.timeout == 60.0
        assert config.action_timeout is None
        assert config.use_ssl

    def test_overrides_win_and_none_is_ignored(self):
        creds = {"access_key": "a", "secret_key": "b", "use_https": False,
                 "endpoint_url": "http://h", "region": "r"}
        config = ClientConfig.from_sources(creds, {"max_sockets": 5, "timeout": None,
                                                   "insecure": None})
        assert config.max_sockets == 5
        assert config.timeout == 60.0
        assert config.insecure is True
        assert config.endpoint_url == "http://h"
        assert (config.access_key, config.secret_key, config.region) == ("a", "b", "r")

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            ClientConfig(concurrency=0)
        with pytest.raises(ValueError):
            ClientConfig(max_sockets=0)
