"""Core infrastructure modules."""

from vcloud_client.core.config import ClientConfig, ConfigError
from vcloud_client.core.lazy import LazyValue
from vcloud_client.core.logger import Logger, get_logger

__all__ = ['ClientConfig', 'ConfigError', 'LazyValue', 'Logger', 'get_logger']
