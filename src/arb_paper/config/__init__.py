"""Configuration system."""

from arb_paper.config.loader import load_config
from arb_paper.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
