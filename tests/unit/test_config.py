"""Unit tests for Dictate2MeConfig."""

import os
from pathlib import Path

import pytest

from dictate2me.config import DEFAULT_CONFIG, Dictate2MeConfig


@pytest.mark.unit
class TestDictate2MeConfig:
    """Test cases for Dictate2MeConfig class."""

    def test_defaults_without_file(self):
        config = Dictate2MeConfig()

        assert config.config_file is None
        assert config.get('audio.chunk_duration_seconds') == 4.0
        assert config.get('transcription.locale') == 'en-US'
        assert config.get('pubsub.audio_topic') == 'audio.chunk'

    def test_defaults_not_shared_between_instances(self):
        first = Dictate2MeConfig()
        first.set('audio.sample_rate', 44100)

        assert Dictate2MeConfig().get('audio.sample_rate') == 16000
        assert DEFAULT_CONFIG['audio']['sample_rate'] == 16000

    def test_file_values_merged_over_defaults(self, config_file):
        path = config_file("audio:\n  chunk_duration_seconds: 2.5\ncorrection:\n  enabled: false\n")

        config = Dictate2MeConfig(path)

        assert config.get('audio.chunk_duration_seconds') == 2.5
        assert config.get('audio.sample_rate') == 16000
        assert config.get('correction.enabled') is False

    def test_missing_file_raises(self, temp_data_dir):
        with pytest.raises(FileNotFoundError):
            Dictate2MeConfig(os.path.join(temp_data_dir, "missing.yaml"))

    def test_empty_file_raises(self, config_file):
        with pytest.raises(ValueError, match="empty"):
            Dictate2MeConfig(config_file(""))

    def test_invalid_yaml_raises(self, config_file):
        with pytest.raises(ValueError, match="Invalid YAML"):
            Dictate2MeConfig(config_file("audio: [unclosed\n"))

    def test_non_mapping_raises(self, config_file):
        with pytest.raises(ValueError):
            Dictate2MeConfig(config_file("- just\n- a list\n"))

    def test_relative_paths_resolved_against_config_dir(self, config_file, temp_data_dir):
        path = config_file("google_cloud:\n  credentials_path: creds/key.json\n"
                           "logging:\n  file_path: logs/app.log\n")

        config = Dictate2MeConfig(path)

        assert config.get('google_cloud.credentials_path') == str(Path(temp_data_dir) / "creds/key.json")
        assert config.get('logging.file_path') == str(Path(temp_data_dir) / "logs/app.log")

    def test_get_missing_key_returns_default(self):
        config = Dictate2MeConfig()

        assert config.get('audio.nonexistent', 'fallback') == 'fallback'
        assert config.get('nope.deeper.still') is None

    def test_set_creates_nested_keys(self):
        config = Dictate2MeConfig()

        config.set('correction.extra.flag', True)

        assert config.get('correction.extra.flag') is True

    def test_credentials_path_not_configured(self):
        with pytest.raises(ValueError):
            Dictate2MeConfig().get_google_credentials_path()

    def test_credentials_file_missing(self, config_file):
        config = Dictate2MeConfig(config_file("google_cloud:\n  credentials_path: nowhere.json\n"))

        with pytest.raises(FileNotFoundError):
            config.get_google_credentials_path()

    def test_credentials_file_present(self, config_file, temp_data_dir):
        (Path(temp_data_dir) / "key.json").write_text("{}", encoding="utf-8")
        config = Dictate2MeConfig(config_file("google_cloud:\n  credentials_path: key.json\n"))

        assert config.get_google_credentials_path() == str((Path(temp_data_dir) / "key.json").absolute())
