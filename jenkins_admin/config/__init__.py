"""Configuration module for Jenkins administration."""
from .settings import JenkinsSettings, load_settings

__all__ = ["JenkinsSettings", "load_settings"]
