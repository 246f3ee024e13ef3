"""
Firebase Realtime Database feed.

The field unit overwrites one node (``SmartAgri`` by default) with all six
readings. We listen on that node, turn every change into a complete snapshot
and keep the latest one. Reconnects are handled by the Firebase SDK.
"""

import base64
import json
import logging
import queue
import threading
from typing import Any, Mapping, Optional

import firebase_admin
from firebase_admin import credentials, db

from .errors import AuthFailure, ConfigMissing, SubscriptionEmpty
from .measurements import SensorReadings

logger = logging.getLogger(__name__)

APP_NAME = "smartagri"

_CLOSED = object()


def load_credentials(settings):
    """Service-account credentials from FIREBASE_KEY_B64, else the FIREBASE_CREDENTIALS file."""
    try:
        if settings.firebase_key_b64:
            info = json.loads(base64.b64decode(settings.firebase_key_b64).decode("utf-8"))
            return credentials.Certificate(info)
        return credentials.Certificate(settings.firebase_credentials)
    except (ValueError, OSError) as exc:
        raise AuthFailure(f"Firebase credentials could not be loaded: {exc}") from exc


def connect(settings):
    """Return the initialised Firebase app, creating it on first use."""
    settings.require_datastore()
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass
    cred = load_credentials(settings)
    app = firebase_admin.initialize_app(cred, {"databaseURL": settings.firebase_database_url}, name=APP_NAME)
    logger.info("Firebase initialised for %s", settings.firebase_database_url)
    return app


def snapshot_readings(payload: Any, path: str = "") -> SensorReadings:
    if not payload or not isinstance(payload, Mapping):
        raise SubscriptionEmpty(f"No sensor data found at '{path}'")
    return SensorReadings.from_payload(payload)


class RealtimeSubscription:
    """
    Cancellable handle over a database listener.

    Iterating yields one complete payload (dict, or None when the node is
    empty) per change, and stops once ``close()`` is called.
    """

    def __init__(self, reference):
        self.reference = reference
        self._queue = queue.Queue()
        self._closed = threading.Event()
        self._registration = None

    @property
    def path(self) -> str:
        return getattr(self.reference, "path", "")

    def start(self) -> "RealtimeSubscription":
        if self._registration is None and not self._closed.is_set():
            self._registration = self.reference.listen(self._on_event)
            logger.info("Listening for sensor data at '%s'", self.path)
        return self

    def _on_event(self, event):
        if self._closed.is_set():
            return
        if event.event_type == "put" and event.path == "/":
            payload = event.data
        else:
            # Child update or patch: read the whole node so consumers never see partial data.
            payload = self.reference.get()
        self._queue.put(payload)

    def __iter__(self):
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        if self._registration is not None:
            self._registration.close()
        self._queue.put(_CLOSED)
        logger.info("Stopped listening at '%s'", self.path)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()


class LiveReadings:
    """Latest complete snapshot; last write wins."""

    def __init__(self, initial: Optional[SensorReadings] = None, path: str = ""):
        self.path = path
        self._lock = threading.Lock()
        self._readings = initial or SensorReadings()
        self._thread = None

    @property
    def readings(self) -> SensorReadings:
        with self._lock:
            return self._readings

    def apply(self, payload) -> bool:
        try:
            readings = snapshot_readings(payload, self.path)
        except SubscriptionEmpty as exc:
            logger.info("%s, keeping previous readings", exc)
            return False
        with self._lock:
            self._readings = readings
        return True

    def follow(self, subscription: RealtimeSubscription) -> threading.Thread:
        def _consume():
            for payload in subscription:
                self.apply(payload)

        self._thread = threading.Thread(target=_consume, name="sensor-feed", daemon=True)
        self._thread.start()
        return self._thread


def open_live_feed(settings):
    """Connect and start following the sensor node. Returns (live, subscription, error_message)."""
    live = LiveReadings(path=settings.sensor_path)
    try:
        app = connect(settings)
    except (ConfigMissing, AuthFailure) as exc:
        logger.error("Realtime data unavailable: %s", exc)
        return live, None, str(exc)
    try:
        subscription = RealtimeSubscription(db.reference(settings.sensor_path, app=app)).start()
    except Exception as exc:
        logger.exception("Realtime subscription failed")
        return live, None, f"Realtime subscription failed: {exc}"
    live.follow(subscription)
    return live, subscription, None
