import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from entprep.common.config import (
    AppConfig, ConfigLoader, ExamConfig, RemoteConfig, StorageConfig, reload_config
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("ENTPREP_REMOTE__TIMEOUT_SECONDS", "ENTPREP_STORAGE__BACKEND", "CONFIG_PATH"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_defaults(self):
        config = AppConfig()
        assert config.remote.timeout_seconds == 10.0
        assert config.storage.backend == "file"
        assert config.storage.key_prefix == "entprep"
        assert config.exam.time_limit_seconds == 7200
        assert config.exam.tick_interval_seconds == 1.0
        assert config.gateway.cache_remote_reads is True
        assert config.data.reference_data_path is None

    def test_base_url_trailing_slash_is_stripped(self):
        assert RemoteConfig(base_url="https://api.example.com/").base_url == "https://api.example.com"


class TestValidation:

    def test_unknown_storage_backend(self):
        with pytest.raises(PydanticValidationError):
            StorageConfig(backend="sqlite")

    def test_backend_is_case_insensitive(self):
        assert StorageConfig(backend="Redis").backend == "redis"

    def test_non_positive_timeout(self):
        with pytest.raises(PydanticValidationError):
            RemoteConfig(timeout_seconds=0)

    def test_non_positive_time_limit(self):
        with pytest.raises(PydanticValidationError):
            ExamConfig(time_limit_seconds=-5)


class TestConfigLoader:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "entprep.yaml"
        path.write_text(
            "storage:\n"
            "  backend: memory\n"
            "exam:\n"
            "  time_limit_seconds: 600\n"
        )
        config = ConfigLoader(str(path)).load()
        assert config.storage.backend == "memory"
        assert config.exam.time_limit_seconds == 600

    def test_json_file(self, tmp_path):
        path = tmp_path / "entprep.json"
        path.write_text(json.dumps({"remote": {"base_url": "https://ent.example.com"}}))
        config = ConfigLoader(str(path)).load()
        assert config.remote.base_url == "https://ent.example.com"

    def test_missing_file_falls_back_to_defaults(self, tmp_path):
        config = ConfigLoader(str(tmp_path / "absent.yaml")).load()
        assert config.storage.backend == "file"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "entprep.yaml"
        path.write_text("remote:\n  timeout_seconds: 20\n  base_url: https://ent.example.com\n")
        monkeypatch.setenv("ENTPREP_REMOTE__TIMEOUT_SECONDS", "3")

        config = ConfigLoader(str(path)).load()
        assert config.remote.timeout_seconds == 3.0
        assert config.remote.base_url == "https://ent.example.com"

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "entprep.yaml"
        path.write_text("storage:\n  backend: memory\n")
        monkeypatch.setenv("CONFIG_PATH", str(path))

        assert reload_config().storage.backend == "memory"
