"""Tests de l'orchestrateur de génération (politique d'échec partiel / total)."""

import json

import pytest

from sagasynth.domain.errors import GenerationFailedError, UpstreamError, ValidationError
from sagasynth.domain.generation import DatasetGenerator, build_messages, verify_row
from tests.fakes import VALID_ROW, FakeLLM, row_json


def test_partial_failure_keeps_successful_rows():
    llm = FakeLLM([row_json(), "{not json", row_json(medical_specialty="Neurology")])
    record = DatasetGenerator(llm).generate("chest pain", 3)
    assert len(llm.calls) == 3
    assert len(record.rows) == 2
    assert [r.verification_status for r in record.rows] == ["verified", "verified"]
    assert record.rows[1].synthetic_output["medical_specialty"] == "Neurology"


def test_every_attempt_failing_raises_aggregate_error():
    llm = FakeLLM(["", "   ", "[1, 2]", UpstreamError("quota")])
    with pytest.raises(GenerationFailedError) as exc:
        DatasetGenerator(llm).generate("text", 4)
    assert exc.value.message == "Generation failed, no results."
    assert len(llm.calls) == 4


def test_provider_exception_does_not_abort_remaining_attempts():
    llm = FakeLLM([RuntimeError("boom"), row_json()])
    record = DatasetGenerator(llm).generate("text", 2)
    assert len(record.rows) == 1


def test_incomplete_row_is_retained_as_failed():
    llm = FakeLLM([json.dumps({**VALID_ROW, "explanation": ""}), row_json()])
    record = DatasetGenerator(llm).generate("text", 2)
    assert [r.verification_status for r in record.rows] == ["failed", "verified"]
    assert record.verified_count == 1


def test_verify_row_statuses():
    assert verify_row("t", VALID_ROW).verified
    missing = {k: v for k, v in VALID_ROW.items() if k != "medical_specialty"}
    assert verify_row("t", missing).verification_status == "failed"
    # la vérification elle-même lève -> ligne écartée
    assert verify_row("t", 42) is None


def test_iter_rows_is_lazy():
    llm = FakeLLM([row_json()])
    rows = DatasetGenerator(llm).iter_rows("text", 5)
    assert llm.calls == []
    next(rows)
    assert len(llm.calls) == 1


@pytest.mark.parametrize("size", [0, -1, 51, "3", True, None])
def test_invalid_sample_size(size):
    with pytest.raises(ValidationError):
        DatasetGenerator(FakeLLM(), max_sample_size=50).generate("text", size)


def test_empty_input_text_is_rejected():
    with pytest.raises(ValidationError) as exc:
        DatasetGenerator(FakeLLM()).generate("  ", 1)
    assert exc.value.fields == ["input_text"]


def test_prompt_mentions_domain_and_text():
    messages = build_messages("knee injury", "orthopedic")
    assert messages[0]["role"] == "system"
    assert "orthopedic" in messages[1]["content"]
    assert "knee injury" in messages[1]["content"]
