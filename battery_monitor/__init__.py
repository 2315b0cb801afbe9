"""Battery monitor: low battery signs, alerts and automatic shutdown."""

__version__ = "0.1.0"
