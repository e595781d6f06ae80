"""Configuration module - exports the Settings class."""

from scene.config.settings import Settings

__all__ = ["Settings"]
