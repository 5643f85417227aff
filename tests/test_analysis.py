import json
from datetime import UTC, datetime

import pytest

import fin_analyzer.analysis as analysis_mod
from fin_analyzer import AnalysisError, normalize
from fin_analyzer.analysis import analyze_financial_data
from fin_analyzer.settings import Settings
from tests.helpers.openai_stub import OpenAIStub, StatusError

_real_sleep_backoff = analysis_mod._sleep_backoff

_ANALYSIS = {
    "cashFlowForecast": {"month1": {"inflow": 500, "outflow": 50, "netFlow": 450}},
    "anomalies": [],
    "kpis": {"grossMargin": 0.9, "netBurnRate": 0, "dso": 30, "dpo": 15},
}


@pytest.fixture
def data():
    raw = [
        {"type": "invoice", "amount": 500, "date": "2024-02-01"},
        {"vendor": "Acme", "amount": 50, "date": "2024-02-02"},
    ]
    return normalize(raw, now=datetime(2024, 2, 1, tzinfo=UTC))


@pytest.fixture
def settings():
    return Settings(api_key="test-key", model="test/model", temperature=0.2, max_tokens=123)


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(analysis_mod, "_sleep_backoff", lambda attempt_no: None)


def test_success_returns_decoded_analysis(data, settings):
    stub = OpenAIStub(lambda payload: json.dumps(_ANALYSIS))

    out = analyze_financial_data(data, settings=settings, client=stub)

    assert out == _ANALYSIS
    assert len(stub.calls) == 1
    call = stub.calls[0]
    assert call["model"] == "test/model"
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 123
    assert [m["role"] for m in call["messages"]] == ["system", "user"]


def test_canonical_payload_is_embedded_in_prompt(data, settings):
    seen = []

    def reply(payload):
        seen.append(payload)
        return "{}"

    analyze_financial_data(data, settings=settings, client=OpenAIStub(reply))

    assert seen == [data.to_dict()]
    assert seen[0]["metadata"]["recordCount"] == 2


def test_fenced_reply_is_unwrapped(data, settings):
    stub = OpenAIStub(lambda payload: "```json\n" + json.dumps(_ANALYSIS) + "\n```")
    assert analyze_financial_data(data, settings=settings, client=stub) == _ANALYSIS


@pytest.mark.parametrize("reply", ["Sorry, I cannot help with that.", "[1, 2]"])
def test_unparseable_reply_is_returned_raw(data, settings, reply):
    out = analyze_financial_data(data, settings=settings, client=OpenAIStub(lambda p: reply))
    assert out == {"error": "Analysis parsing failed", "rawResponse": reply}


def test_non_text_content_raises(data, settings):
    stub = OpenAIStub(lambda payload: None)

    with pytest.raises(AnalysisError, match="message content is not text"):
        analyze_financial_data(data, settings=settings, client=stub)
    assert len(stub.calls) == 1


@pytest.mark.parametrize("status", [429, 500, 503])
def test_transient_errors_are_retried(data, settings, status):
    stub = OpenAIStub(lambda payload: json.dumps(_ANALYSIS), errors=[StatusError(status)])

    assert analyze_financial_data(data, settings=settings, client=stub) == _ANALYSIS
    assert len(stub.calls) == 2


def test_retries_are_bounded(data, settings):
    stub = OpenAIStub(lambda payload: "{}", errors=[StatusError(503)] * 3)

    with pytest.raises(AnalysisError, match="Financial analysis failed"):
        analyze_financial_data(data, settings=settings, client=stub)
    assert len(stub.calls) == 3


@pytest.mark.parametrize("exc", [StatusError(400), StatusError(401), ValueError("boom")])
def test_non_retryable_errors_fail_immediately(data, settings, exc):
    stub = OpenAIStub(lambda payload: "{}", errors=[exc])

    with pytest.raises(AnalysisError) as ei:
        analyze_financial_data(data, settings=settings, client=stub)

    assert ei.value.__cause__ is exc
    assert len(stub.calls) == 1


def test_backoff_schedule_uses_jitter(monkeypatch):
    slept = []
    monkeypatch.setattr(analysis_mod.time, "sleep", slept.append)
    monkeypatch.setattr(analysis_mod.random, "uniform", lambda a, b: b)

    _real_sleep_backoff(1)
    _real_sleep_backoff(2)
    _real_sleep_backoff(5)

    assert slept == pytest.approx([0.6, 2.4, 2.4])


def test_missing_api_key_without_client(data):
    with pytest.raises(RuntimeError, match="OPENROUTER_API_KEY"):
        analyze_financial_data(data, settings=Settings())


def test_accepts_plain_payload_mapping(data, settings):
    seen = []

    def reply(payload):
        seen.append(payload)
        return "{}"

    analyze_financial_data(data.to_dict(), settings=settings, client=OpenAIStub(reply))
    assert seen == [data.to_dict()]
