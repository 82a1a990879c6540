"""Configuration package for the portfolio tracker service."""

from .settings import DEFAULT_ACCOUNT, AppSettings, get_settings

__all__ = ["AppSettings", "DEFAULT_ACCOUNT", "get_settings"]
