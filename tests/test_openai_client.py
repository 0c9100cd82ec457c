"""Tests du client LLM OpenAI (fallback et erreurs fournisseur)."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from sagasynth.core.constants import REQUIRED_ROW_FIELDS
from sagasynth.domain.errors import UpstreamError
from sagasynth.infra.llm.openai_client import OpenAILLM

MESSAGES = [{"role": "user", "content": "paraphrase this"}]


def test_fallback_without_key_returns_structured_row():
    llm = OpenAILLM(api_key=None)
    parsed = json.loads(llm.generate(MESSAGES, json_output=True))
    assert set(parsed) == set(REQUIRED_ROW_FIELDS)
    assert llm.generate(MESSAGES).startswith("FAKE_OPENAI")


def test_json_mode_and_parameters_are_forwarded():
    llm = OpenAILLM(api_key=None, model="gpt-test", temperature=0.2, max_tokens=50)
    llm.client = MagicMock()
    llm.client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": 1}'))]
    )
    assert llm.generate(MESSAGES, json_output=True) == '{"ok": 1}'
    kwargs = llm.client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["max_tokens"] == 50
    assert kwargs["response_format"] == {"type": "json_object"}


def test_empty_choices_yield_empty_text():
    llm = OpenAILLM(api_key=None)
    llm.client = MagicMock()
    llm.client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    assert llm.generate(MESSAGES) == ""


def test_provider_error_becomes_upstream_error():
    llm = OpenAILLM(api_key=None)
    llm.client = MagicMock()
    llm.client.chat.completions.create.side_effect = OpenAIError("quota exceeded")
    with pytest.raises(UpstreamError) as exc:
        llm.generate(MESSAGES)
    assert "quota exceeded" in exc.value.details
