# Tests for the lookup core in ai.py (prompt building, JSON parsing, error mapping).
# All backend calls go to a fake OpenAI client.

import json

import pytest
from openai import OpenAIError

import ai
from conftest import make_candidates, make_detail, make_openai_client
from errors import BackendError, InvalidInputError, ResponseShapeError
from prompts import LOOKUP_USER_TEMPLATE, PROMPTS_BY_VERSION


def test_build_messages_system_then_user_turn():
    messages = ai.build_messages("谢谢", "v2")
    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"] == PROMPTS_BY_VERSION["v2"]
    assert messages[1]["content"] == LOOKUP_USER_TEMPLATE.format(term="谢谢")
    assert "谢谢" in messages[1]["content"]


def test_build_messages_unknown_version_uses_default_prompt():
    messages = ai.build_messages("谢谢", "v0")
    assert messages[0]["content"] == PROMPTS_BY_VERSION["v4"]


def test_prompt_versions_differ_in_schema():
    assert "definitions" in PROMPTS_BY_VERSION["v1"]
    assert "meanings" not in PROMPTS_BY_VERSION["v1"]
    for version in ("v2", "v3", "v4"):
        assert "meanings" in PROMPTS_BY_VERSION[version]
        assert "2つ以上" in PROMPTS_BY_VERSION[version]
    assert '"type": "candidates"' in PROMPTS_BY_VERSION["v4"]
    assert '"type": "detail"' in PROMPTS_BY_VERSION["v4"]


@pytest.mark.parametrize("term", ["", "   ", "\n\t", None, 42])
def test_empty_term_raises_before_backend_call(term):
    client = make_openai_client(content="{}")
    with pytest.raises(InvalidInputError):
        ai.generate_content(term, client=client)
    assert client.chat.completions.calls == []


def test_generate_content_passes_payload_through_unmodified():
    payload = make_detail("谢谢")
    payload["extra_field"] = {"kept": True}
    client = make_openai_client(content=json.dumps(payload, ensure_ascii=False))

    result = ai.generate_content("  谢谢 ", client=client, model_name="gpt-4o")

    assert result == payload
    call = client.chat.completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][1]["content"].endswith("谢谢")


def test_generate_content_uses_configured_model_and_version(monkeypatch):
    monkeypatch.setenv("PROMPT_VERSION", "v1")
    client = make_openai_client(content=json.dumps({"word": "谢谢", "definitions": {"original": "感謝"}}))

    ai.generate_content("谢谢", client=client)

    call = client.chat.completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["messages"][0]["content"] == PROMPTS_BY_VERSION["v1"]


def test_generate_content_accepts_candidates():
    payload = make_candidates()
    client = make_openai_client(content=json.dumps(payload, ensure_ascii=False))
    assert ai.generate_content("肩こり", client=client) == payload


def test_backend_error_carries_details():
    client = make_openai_client(error=OpenAIError("quota exceeded"))
    with pytest.raises(BackendError) as exc_info:
        ai.generate_content("谢谢", client=client)
    assert "quota exceeded" in exc_info.value.details


def test_invalid_json_is_backend_error():
    client = make_openai_client(content="谢谢 means thank you")
    with pytest.raises(BackendError):
        ai.generate_content("谢谢", client=client)


def test_empty_response_is_backend_error():
    client = make_openai_client(content="")
    with pytest.raises(BackendError):
        ai.generate_content("谢谢", client=client)


@pytest.mark.parametrize("payload", [[1, 2], {"pinyin": "xièxie"}, {"type": "candidates", "candidates": []}])
def test_shape_mismatch_is_backend_error(payload):
    client = make_openai_client(content=json.dumps(payload))
    with pytest.raises(ResponseShapeError):
        ai.generate_content("谢谢", client=client)


def test_missing_api_key_is_backend_error(monkeypatch):
    monkeypatch.setattr(ai, "_OPENAI_CLIENT", None)
    with pytest.raises(BackendError):
        ai.generate_content("谢谢")


def test_get_openai_client_disables_retries(monkeypatch):
    monkeypatch.setattr(ai, "_OPENAI_CLIENT", None)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = ai.get_openai_client()
    assert client is not None
    assert client.max_retries == 0
    assert ai.get_openai_client() is client
