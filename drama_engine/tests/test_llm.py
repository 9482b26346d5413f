"""Tests for the openai-backed ChatClient."""
from __future__ import annotations

from types import SimpleNamespace

import openai
import pytest
from pydantic import ValidationError

from drama_engine.config import Settings
from drama_engine.errors import UpstreamError
from drama_engine.llm import OpenAIChatClient, system, user


class _FakeCompletions:
    def __init__(self, result):
        self.result = result
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _fake_sdk(result):
    completions = _FakeCompletions(result)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def settings():
    return Settings(openai_api_key="sk-test", llm_model="test-model", temperature=0.2)


class TestOpenAIChatClient:
    def test_sends_messages_and_returns_text(self, settings):
        sdk, completions = _fake_sdk(_response("### Scene 1: Dock"))
        client = OpenAIChatClient(settings, client=sdk)

        text = client.complete([system("be terse"), user("adapt this")])

        assert text == "### Scene 1: Dock"
        assert completions.kwargs["model"] == "test-model"
        assert completions.kwargs["temperature"] == 0.2
        assert completions.kwargs["messages"] == [
            {"role": "system", "content": "be terse"},
            {"role": "user", "content": "adapt this"},
        ]
        assert "response_format" not in completions.kwargs

    def test_passes_response_format(self, settings):
        sdk, completions = _fake_sdk(_response("{}"))
        fmt = {"type": "json_object"}
        OpenAIChatClient(settings, client=sdk).complete([user("x")], response_format=fmt)
        assert completions.kwargs["response_format"] == fmt

    def test_per_call_key_gets_its_own_client(self, settings, monkeypatch):
        default_sdk, default_completions = _fake_sdk(_response("default"))
        keyed_sdk, _ = _fake_sdk(_response("keyed"))
        client = OpenAIChatClient(settings, client=default_sdk)
        seen = []

        def build(api_key):
            seen.append(api_key)
            return keyed_sdk

        monkeypatch.setattr(client, "_build_client", build)
        assert client.complete([user("x")], api_key="sk-caller") == "keyed"
        assert seen == ["sk-caller"]
        assert default_completions.kwargs is None

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_empty_content_is_upstream_error(self, settings, content):
        sdk, _ = _fake_sdk(_response(content))
        with pytest.raises(UpstreamError, match="empty"):
            OpenAIChatClient(settings, client=sdk).complete([user("x")])

    def test_no_choices_is_upstream_error(self, settings):
        sdk, _ = _fake_sdk(SimpleNamespace(choices=[]))
        with pytest.raises(UpstreamError):
            OpenAIChatClient(settings, client=sdk).complete([user("x")])

    def test_sdk_error_is_wrapped(self, settings):
        sdk, _ = _fake_sdk(openai.OpenAIError("connection reset"))
        with pytest.raises(UpstreamError) as info:
            OpenAIChatClient(settings, client=sdk).complete([user("x")])
        assert "connection reset" in info.value.cause
        assert isinstance(info.value.__cause__, openai.OpenAIError)


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DRAMA_ENGINE_LLM_MODEL", "env-model")
        monkeypatch.setenv("DRAMA_ENGINE_MAX_SCENE_SEC", "12")
        settings = Settings()
        assert settings.llm_model == "env-model"
        assert settings.duration_params().max_scene_sec == 12

    def test_duration_params_defaults(self):
        params = Settings().duration_params()
        assert (params.speech_chars_per_sec, params.min_scene_sec, params.max_scene_sec) == (4.0, 2, 15)

    @pytest.mark.parametrize(
        "env",
        [
            {"DRAMA_ENGINE_MAX_SCENE_SEC": "20"},
            {"DRAMA_ENGINE_MIN_SCENE_SEC": "1"},
            {"DRAMA_ENGINE_MIN_SCENE_SEC": "10", "DRAMA_ENGINE_MAX_SCENE_SEC": "8"},
        ],
    )
    def test_scene_bounds_outside_contract_rejected(self, monkeypatch, env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings()
