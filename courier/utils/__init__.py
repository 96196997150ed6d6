"""
Utilities Module
================

Shared helpers:
- logger: Console logging with levels and component context
- config: Centralized environment configuration
"""

from courier.utils.logger import Logger
from courier.utils.config import get_config, Config

__all__ = ["Logger", "get_config", "Config"]
