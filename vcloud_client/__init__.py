"""
vCloud Director API Client Package
Version discovery, session login and XML verb operations for the vCloud REST API.
"""

__version__ = '1.0.0'

from vcloud_client.core.config import ClientConfig, ConfigError
from vcloud_client.core.logger import Logger, get_logger
from vcloud_client.handlers.xml_codec import XMLCodec, XMLCodecError
from vcloud_client.handlers.transport import RequestSpec, Transport
from vcloud_client.handlers.response import VCloudObject
from vcloud_client.handlers.api_client import (
    APIClient,
    APIError,
    HTTPStatusError,
    TransportError,
    VersionResolutionError,
    XMLDecodeError,
)

__all__ = [
    'ClientConfig',
    'ConfigError',
    'Logger',
    'get_logger',
    'XMLCodec',
    'XMLCodecError',
    'RequestSpec',
    'Transport',
    'VCloudObject',
    'APIClient',
    'APIError',
    'HTTPStatusError',
    'TransportError',
    'VersionResolutionError',
    'XMLDecodeError',
]
