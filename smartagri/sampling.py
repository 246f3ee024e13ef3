"""
In-memory soil sample log.

While capture is on, one sample of all six readings is appended every
minute. Samples are never edited; the log only grows until the user clears
it, which also restarts numbering at 1. Nothing is written to disk.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

import pandas as pd

from .measurements import Measurement, SensorReadings, scale_soil_moisture

logger = logging.getLogger(__name__)

SAMPLE_INTERVAL_SECONDS = 60.0
TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


@dataclass(frozen=True)
class Sample:
    number: int
    timestamp: datetime
    temperature: float
    humidity: float
    soil_moisture: float
    nitrogen: float
    phosphorus: float
    potassium: float

    @classmethod
    def from_readings(cls, number: int, readings: SensorReadings, timestamp: Optional[datetime] = None) -> "Sample":
        return cls(
            number=number,
            timestamp=timestamp or datetime.now(),
            temperature=readings.temperature,
            humidity=readings.humidity,
            soil_moisture=scale_soil_moisture(readings.soil_moisture),
            nitrogen=readings.nitrogen,
            phosphorus=readings.phosphorus,
            potassium=readings.potassium,
        )

    @property
    def units(self) -> Dict[Measurement, str]:
        return {m: m.unit for m in Measurement}


def _column(measurement: Measurement) -> str:
    return f"{measurement.label} ({measurement.unit})"


class SampleLog:
    """Append-only ordered log; index + 1 is the sample number."""

    def __init__(self):
        self._lock = threading.Lock()
        self._samples = []
        self._counter = 0

    def append(
        self,
        readings: SensorReadings,
        timestamp: Optional[datetime] = None,
        accept: Optional[Callable[[], bool]] = None,
    ) -> Optional[Sample]:
        """Append the next sample. When ``accept`` is given it is checked under the lock; False drops the sample."""
        with self._lock:
            if accept is not None and not accept():
                return None
            self._counter += 1
            sample = Sample.from_readings(self._counter, readings, timestamp)
            self._samples.append(sample)
        return sample

    def clear(self) -> None:
        with self._lock:
            self._samples = []
            self._counter = 0

    @property
    def samples(self) -> Tuple[Sample, ...]:
        with self._lock:
            return tuple(self._samples)

    def __len__(self):
        with self._lock:
            return len(self._samples)

    def to_frame(self) -> pd.DataFrame:
        columns = ["Sample #", "Timestamp"] + [_column(m) for m in Measurement]
        rows = [
            [s.number, s.timestamp.strftime(TIMESTAMP_FORMAT)]
            + [getattr(s, m.field_name) for m in Measurement]
            for s in self.samples
        ]
        return pd.DataFrame(rows, columns=columns)

    def to_csv(self) -> bytes:
        return self.to_frame().to_csv(index=False).encode("utf-8")


class SamplingTask:
    """
    Repeating capture on a background thread. ``cancel()`` may be called any number of times.

    ``alive`` is polled before every capture; once it returns False the task
    cancels itself (used to end capture when the owning browser session is gone).
    """

    def __init__(
        self,
        log: SampleLog,
        snapshot: Callable[[], SensorReadings],
        interval: float = SAMPLE_INTERVAL_SECONDS,
        alive: Optional[Callable[[], bool]] = None,
    ):
        self.log = log
        self.snapshot = snapshot
        self.interval = interval
        self.alive = alive
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def tick(self) -> Optional[Sample]:
        readings = self.snapshot()
        # Checked under the log lock so a cancel() followed by clear() never sees a late sample.
        sample = self.log.append(readings, accept=lambda: not self._stop.is_set())
        if sample is not None:
            logger.debug("Captured sample #%d", sample.number)
        return sample

    def _owner_alive(self) -> bool:
        if self.alive is None:
            return True
        try:
            return bool(self.alive())
        except Exception:
            logger.exception("Session liveness check failed")
            return False

    def _run(self):
        # First sample lands one full interval after start.
        while not self._stop.wait(self.interval):
            if not self._owner_alive():
                logger.info("Owning session is gone, stopping sample capture")
                self.cancel()
                return
            try:
                self.tick()
            except Exception:
                logger.exception("Sample capture failed")

    def start(self) -> "SamplingTask":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name="sample-capture", daemon=True)
        self._thread.start()
        logger.info("Sample capture started (every %.0f s)", self.interval)
        return self

    def cancel(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        if self._thread is not None:
            if self._thread is not threading.current_thread():
                self._thread.join(timeout=1.0)
            logger.info("Sample capture stopped after %d samples", len(self.log))

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
