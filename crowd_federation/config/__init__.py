"""Configuration module for the Crowd federation provider."""
from .settings import CrowdConfig, load_settings

__all__ = ["CrowdConfig", "load_settings"]
