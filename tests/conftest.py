import pytest

from smartagri.config import Settings
from smartagri.measurements import SensorReadings


@pytest.fixture
def readings():
    return SensorReadings(
        temperature=25.0,
        humidity=65.0,
        soil_moisture=850.0,
        nitrogen=30.0,
        phosphorus=40.0,
        potassium=120.0,
    )


@pytest.fixture
def settings():
    return Settings(
        firebase_database_url="https://farm.example.firebaseio.com",
        firebase_credentials="/tmp/service-account.json",
        gemini_api_key="test-key",
    )
