import threading

import pytest
import requests

from smartagri import advisory
from smartagri.advisory import (
    AdvisoryFlow,
    crop_prediction_prompt,
    generate_text,
    safe_generate,
    soil_health_prompt,
)
from smartagri.config import Settings
from smartagri.crops import MANUAL, get_profile
from smartagri.errors import AdvisoryHttpError


class DummyResponse:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeGemini:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def gemini(monkeypatch):
    fake = FakeGemini(DummyResponse(data=gemini_reply("Add compost.")))
    monkeypatch.setattr(advisory.requests, "post", fake.post)
    return fake


def test_generate_text_request_shape(gemini):
    assert generate_text("hello", "k123", "gemini-1.5-flash", timeout=5) == "Add compost."
    url, kwargs = gemini.calls[0]
    assert url.endswith("/models/gemini-1.5-flash:generateContent")
    assert kwargs["params"] == {"key": "k123"}
    assert kwargs["json"] == {"contents": [{"role": "user", "parts": [{"text": "hello"}]}]}
    assert kwargs["timeout"] == 5


def test_generate_text_http_error(gemini):
    gemini.response = DummyResponse(status_code=403, text="PERMISSION_DENIED")
    with pytest.raises(AdvisoryHttpError) as excinfo:
        generate_text("hello", "k", "m")
    assert excinfo.value.status == 403
    assert str(excinfo.value) == "HTTP error! status: 403, body: PERMISSION_DENIED"


@pytest.mark.parametrize("data", [{}, {"candidates": []}, gemini_reply("")])
def test_generate_text_without_text(gemini, data):
    gemini.response = DummyResponse(data=data)
    with pytest.raises(AdvisoryHttpError, match="No response received."):
        generate_text("hello", "k", "m")


def test_generate_text_network_error(gemini):
    gemini.response = requests.ConnectionError("offline")
    with pytest.raises(AdvisoryHttpError, match="offline"):
        generate_text("hello", "k", "m")


def test_safe_generate_ok(gemini, settings):
    assert safe_generate("hello", settings) == ("Add compost.", None)


def test_safe_generate_missing_key(gemini):
    text, err = safe_generate("hello", Settings())
    assert text is None
    assert err == "API key is missing. Please configure it to use this feature."
    assert gemini.calls == []


def test_safe_generate_failure_message(gemini, settings):
    gemini.response = DummyResponse(status_code=500, text="boom")
    text, err = safe_generate("hello", settings)
    assert text is None
    assert err.startswith("Failed to fetch response from Gemini. Error: HTTP error! status: 500")
    assert err.endswith("Please check your API key and network.")


def test_soil_health_prompt(readings):
    wheat = get_profile("Wheat")
    prompt = soil_health_prompt(readings, wheat.ranges, "Wheat")
    assert "Soil Moisture: 85.0%" in prompt
    assert "(Favorable: 40-60)" in prompt
    assert "Nitrogen: 30mg/kg" in prompt
    assert "growing Wheat" in prompt
    assert "Temperature" not in prompt
    assert "the selected crop" in soil_health_prompt(readings, wheat.ranges, MANUAL)


def test_crop_prediction_prompt(readings):
    prompt = crop_prediction_prompt(readings)
    for line in ("Temperature: 25°C", "Humidity: 65%", "Soil Moisture: 85.0%", "Potassium: 120mg/kg"):
        assert line in prompt
    assert "comma-separated" in prompt


def test_flow_run_sets_result():
    flow = AdvisoryFlow("soil-health")
    flow.run(lambda: ("Irrigate.", None))
    assert flow.result == "Irrigate."
    flow.run(lambda: (None, "API key is missing."))
    assert flow.result == "API key is missing."
    assert not flow.loading


def test_flow_submit_in_background():
    flow = AdvisoryFlow("crop-prediction")
    worker = flow.submit(lambda: ("Rice, Wheat", None))
    worker.join(timeout=2)
    assert not flow.loading
    assert flow.result == "Rice, Wheat"
    flow.clear()
    assert flow.result == ""


def test_flow_survives_crashing_request():
    def crash():
        raise RuntimeError("kaput")

    flow = AdvisoryFlow("soil-health")
    flow.submit(crash).join(timeout=2)
    assert not flow.loading
    assert "kaput" in flow.result


def test_clear_drops_answer_still_in_flight():
    release = threading.Event()

    def slow():
        release.wait(2)
        return "Advice for the previous crop", None

    flow = AdvisoryFlow("soil-health")
    worker = flow.submit(slow)
    assert flow.loading
    flow.clear()
    assert not flow.loading
    release.set()
    worker.join(timeout=2)
    assert flow.result == ""


def test_newer_submit_wins_over_older():
    release = threading.Event()

    def slow():
        release.wait(2)
        return "old", None

    flow = AdvisoryFlow("crop-prediction")
    first = flow.submit(slow)
    flow.submit(lambda: ("new", None)).join(timeout=2)
    release.set()
    first.join(timeout=2)
    assert flow.result == "new"
    assert not flow.loading
