"""Handlers for XML bodies, HTTP transport and API operations."""

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
