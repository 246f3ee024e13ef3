"""SmartAgri - live soil & climate dashboard helpers."""

__version__ = "0.1.0"
