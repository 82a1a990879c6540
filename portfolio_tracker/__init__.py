"""Personal portfolio tracker: price refresh, analytics and alerting core."""

__version__ = "0.1.0"
