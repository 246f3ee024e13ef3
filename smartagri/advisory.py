"""
AI suggestions from the Gemini generateContent endpoint.

Two independent flows use it: soil-health advice and crop prediction.
Failures never raise into the page; they come back as readable text.
"""

import logging
import threading
from typing import Callable, Mapping, Optional, Tuple

import requests

from .crops import MANUAL
from .errors import AdvisoryHttpError, ConfigMissing
from .measurements import Measurement, SensorReadings, format_value

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

NUTRIENTS = (Measurement.SOIL_MOISTURE, Measurement.NITROGEN, Measurement.PHOSPHORUS, Measurement.POTASSIUM)


def _reading_line(readings: SensorReadings, measurement: Measurement) -> str:
    return f"{measurement.label}: {format_value(measurement, readings.value(measurement))}{measurement.unit}"


def soil_health_prompt(readings: SensorReadings, ranges: Mapping[Measurement, str], crop: str) -> str:
    lines = [
        "Current soil moisture and nutrient (Nitrogen, Phosphorus, Potassium) readings:",
    ]
    for m in NUTRIENTS:
        lines.append(f"{_reading_line(readings, m)} (Favorable: {ranges.get(m, '') or 'not set'})")
    target = "the selected crop" if crop == MANUAL else crop
    lines += [
        "",
        f"Give precise, actionable suggestions ONLY on soil moisture and nutrient management for growing {target}. "
        "List specific steps to reach or keep optimal levels.",
    ]
    return "\n".join(lines)


def crop_prediction_prompt(readings: SensorReadings) -> str:
    lines = ["Current soil and environmental parameters:"]
    lines += [_reading_line(readings, m) for m in Measurement]
    lines += [
        "",
        "List only the crops that grow well in exactly these conditions. No explanations and no advice "
        "on changing the conditions, just a comma-separated list of crop names.",
    ]
    return "\n".join(lines)


def _extract_text(data) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        text = None
    if not text:
        raise AdvisoryHttpError("No response received.")
    return text


def generate_text(prompt: str, api_key: str, model: str, timeout: float = 30) -> str:
    """POST one prompt and return the first candidate's text."""
    payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
    try:
        r = requests.post(
            GEMINI_URL.format(model=model),
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise AdvisoryHttpError(f"Request failed: {exc}") from exc
    if not r.ok:
        raise AdvisoryHttpError(f"HTTP error! status: {r.status_code}, body: {r.text}", status=r.status_code, body=r.text)
    try:
        data = r.json()
    except ValueError as exc:
        raise AdvisoryHttpError(f"Invalid JSON in response: {exc}", status=r.status_code, body=r.text) from exc
    return _extract_text(data)


def safe_generate(prompt: str, settings) -> Tuple[Optional[str], Optional[str]]:
    """Return (text, error_message); exactly one of them is set."""
    try:
        settings.require_advisory()
    except ConfigMissing as exc:
        logger.error("Gemini API key is missing: %s", exc)
        return None, "API key is missing. Please configure it to use this feature."
    try:
        return generate_text(prompt, settings.gemini_api_key, settings.gemini_model, settings.gemini_timeout), None
    except AdvisoryHttpError as exc:
        logger.error("Gemini API error: %s", exc)
        return None, f"Failed to fetch response from Gemini. Error: {exc}. Please check your API key and network."


class AdvisoryFlow:
    """
    One suggestion box: its own loading flag and result, filled from a background thread.

    Every submit() and clear() starts a new generation; an answer that comes
    back for an older generation is dropped.
    """

    def __init__(self, name: str):
        self.name = name
        self.loading = False
        self.result = ""
        self._generation = 0
        self._lock = threading.Lock()

    def _finish(self, generation: int, text: str):
        with self._lock:
            if generation != self._generation:
                logger.debug("%s: dropping stale response", self.name)
                return
            self.result = text
            self.loading = False

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            self.loading = True
            self.result = ""
            return self._generation

    def run(self, request: Callable[[], Tuple[Optional[str], Optional[str]]]) -> None:
        generation = self._begin()
        text, err = request()
        self._finish(generation, text if err is None else err)

    def submit(self, request: Callable[[], Tuple[Optional[str], Optional[str]]]) -> threading.Thread:
        generation = self._begin()
        worker = threading.Thread(
            target=self._guarded_run, args=(generation, request), name=f"advisory-{self.name}", daemon=True
        )
        worker.start()
        return worker

    def _guarded_run(self, generation, request):
        try:
            text, err = request()
        except Exception as exc:
            logger.exception("%s request crashed", self.name)
            self._finish(generation, f"Unexpected error: {exc}")
            return
        self._finish(generation, text if err is None else err)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self.result = ""
            self.loading = False
