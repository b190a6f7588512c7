"""Proximity-aware weather cache in front of the OpenWeather API."""

__version__ = "0.1.0"
