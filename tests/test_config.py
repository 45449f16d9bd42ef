"""Tests for nano-jarvis configuration."""

import pytest
import yaml

from nano_jarvis.config import (
    DEFAULT_BASE_URL,
    ChatSettings,
    load_settings,
)
from nano_jarvis.errors import ConfigurationError


class TestChatSettings:
    def test_defaults(self):
        s = ChatSettings()
        assert s.base_url == DEFAULT_BASE_URL
        assert s.api_key is None
        assert s.streaming is True
        assert s.effective_model == "llama3.1"

    def test_effective_model(self):
        assert ChatSettings(model="qwen3-8b").effective_model == "qwen3-8b"

    def test_completions_url(self):
        assert ChatSettings(base_url="http://h:1/v1").completions_url == "http://h:1/v1/chat/completions"
        assert ChatSettings(base_url="http://h:1/v1/").completions_url == "http://h:1/v1/chat/completions"

    def test_validate_returns_self(self):
        s = ChatSettings()
        assert s.validate() is s

    def test_missing_base_url(self):
        with pytest.raises(ConfigurationError, match="LLM_API_BASE_URL is not set"):
            ChatSettings(base_url="").validate()

    def test_non_http_base_url(self):
        with pytest.raises(ConfigurationError):
            ChatSettings(base_url="localhost:11434").validate()
        with pytest.raises(ConfigurationError):
            ChatSettings(base_url="ftp://example.com").validate()

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError):
            ChatSettings(timeout=0).validate()


class TestLoadSettings:
    def test_defaults_when_no_file(self, tmp_path):
        s = load_settings(tmp_path / "does_not_exist.yaml", environ={})
        assert s.base_url == DEFAULT_BASE_URL
        assert s.model is None
        assert s.streaming is True

    def test_load_from_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({
            "base_url": "https://api.openai.com/v1",
            "api_key": "sk-test",
            "model": "gpt-4o-mini",
            "streaming": False,
            "timeout": 30,
        }))

        s = load_settings(config_path, environ={})
        assert s.base_url == "https://api.openai.com/v1"
        assert s.api_key == "sk-test"
        assert s.model == "gpt-4o-mini"
        assert s.streaming is False
        assert s.timeout == 30.0

    def test_load_empty_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("")
        assert load_settings(config_path, environ={}) == ChatSettings()

    def test_non_mapping_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_settings(config_path, environ={})

    def test_env_overrides_file(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({"base_url": "http://file:1/v1", "model": "file-model"}))
        env = {
            "LLM_API_BASE_URL": "http://env:2/v1",
            "LLM_API_KEY": "env-key",
            "LLM_CHAT_MODEL": "env-model",
            "LLM_STREAMING": "no",
            "LLM_TIMEOUT": "5",
        }
        s = load_settings(config_path, environ=env)
        assert s.base_url == "http://env:2/v1"
        assert s.api_key == "env-key"
        assert s.model == "env-model"
        assert s.streaming is False
        assert s.timeout == 5.0

    def test_openai_api_key_fallback(self, tmp_path):
        s = load_settings(tmp_path / "none.yaml", environ={"OPENAI_API_KEY": "sk-openai"})
        assert s.api_key == "sk-openai"
        s = load_settings(
            tmp_path / "none.yaml",
            environ={"OPENAI_API_KEY": "sk-openai", "LLM_API_KEY": "llm"},
        )
        assert s.api_key == "llm"

    def test_streaming_only_disabled_by_no(self, tmp_path):
        assert load_settings(tmp_path / "x.yaml", environ={"LLM_STREAMING": "yes"}).streaming
        assert load_settings(tmp_path / "x.yaml", environ={"LLM_STREAMING": ""}).streaming
        assert not load_settings(tmp_path / "x.yaml", environ={"LLM_STREAMING": "no"}).streaming

    def test_empty_base_url_env_fails_validation(self, tmp_path):
        s = load_settings(tmp_path / "x.yaml", environ={"LLM_API_BASE_URL": ""})
        with pytest.raises(ConfigurationError):
            s.validate()

    def test_invalid_timeout(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid timeout"):
            load_settings(tmp_path / "x.yaml", environ={"LLM_TIMEOUT": "soon"})
