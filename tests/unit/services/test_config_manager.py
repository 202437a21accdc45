import pytest
import yaml

from lawcast.services.config_manager import ConfigManager, ConfigValidationError


@pytest.fixture
def valid_config_file(tmp_path):
    config_content = {
        "source": {"url": "https://example.com/api/notices", "items_key": "items"},
        "polling": {"interval_minutes": 5},
        "cache": {"max_size": 30},
        "registry": {"path": str(tmp_path / "destinations.json")},
        "logging": {"level": "debug", "json_output": False},
    }
    config_file = tmp_path / "lawcast.yaml"
    with open(config_file, "w") as f:
        yaml.dump(config_content, f)
    return config_file


def test_load_valid_config(valid_config_file):
    manager = ConfigManager(config_path=str(valid_config_file))

    config = manager.load_config()

    assert config.source.url == "https://example.com/api/notices"
    assert config.source.items_key == "items"
    assert config.polling.interval_minutes == 5
    assert config.cache.max_size == 30
    assert config.logging.level == "DEBUG"
    # untouched sections use defaults
    assert config.notification.max_concurrent_deliveries == 10


def test_load_config_is_cached(valid_config_file):
    manager = ConfigManager(config_path=str(valid_config_file))

    assert manager.load_config() is manager.load_config()


def test_load_missing_config():
    manager = ConfigManager(config_path="nonexistent.yaml")
    with pytest.raises(FileNotFoundError):
        manager.load_config()


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("LAWCAST_TEST_SOURCE", "https://env.example.com/notices")
    config_file = tmp_path / "lawcast.yaml"
    config_file.write_text('source:\n  url: "${LAWCAST_TEST_SOURCE}"\n')

    config = ConfigManager(config_path=str(config_file)).load_config()

    assert config.source.url == "https://env.example.com/notices"


def test_unset_env_var_fails_validation(tmp_path, monkeypatch):
    monkeypatch.delenv("LAWCAST_UNSET_VAR", raising=False)
    config_file = tmp_path / "lawcast.yaml"
    config_file.write_text('source:\n  url: "${LAWCAST_UNSET_VAR}"\n')

    with pytest.raises(ConfigValidationError, match="Invalid configuration"):
        ConfigManager(config_path=str(config_file)).load_config()


def test_invalid_yaml(tmp_path):
    config_file = tmp_path / "lawcast.yaml"
    config_file.write_text("source: [unclosed\n")

    with pytest.raises(ConfigValidationError, match="Failed to parse"):
        ConfigManager(config_path=str(config_file)).load_config()


def test_non_mapping_yaml(tmp_path):
    config_file = tmp_path / "lawcast.yaml"
    config_file.write_text("- just\n- a list\n")

    with pytest.raises(ConfigValidationError, match="mapping"):
        ConfigManager(config_path=str(config_file)).load_config()


def test_missing_source_section(tmp_path):
    config_file = tmp_path / "lawcast.yaml"
    config_file.write_text("polling:\n  interval_minutes: 5\n")

    with pytest.raises(ConfigValidationError):
        ConfigManager(config_path=str(config_file)).load_config()


def test_out_of_range_value(tmp_path):
    config_file = tmp_path / "lawcast.yaml"
    config_file.write_text(
        'source:\n  url: "https://example.com"\npolling:\n  interval_minutes: 0\n'
    )

    with pytest.raises(ConfigValidationError):
        ConfigManager(config_path=str(config_file)).load_config()
