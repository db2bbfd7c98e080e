"""
HTTP transport module for vCloud Director Client.
Sends prepared requests through a requests session with the configured TLS policy.
"""

from pathlib import Path
from typing import Mapping, NamedTuple, Optional, Union
import requests
import urllib3
from requests.structures import CaseInsensitiveDict


class RequestSpec(NamedTuple):
    """One outgoing request: method, absolute URL, body and headers."""
    method: str
    url: str
    body: Optional[bytes]
    headers: Mapping[str, str]


class Transport:
    """
    Executes requests against the vCloud endpoint.
    Owns the HTTP session, TLS verification settings and request timeout.
    """

    def __init__(self, ssl_verify: bool = True,
                 ssl_ca_file: Optional[Union[str, Path]] = None,
                 timeout: int = 120, session: Optional[requests.Session] = None):
        """
        Initialize transport.

        Args:
            ssl_verify: Verify the server certificate
            ssl_ca_file: CA bundle used for verification. If None, requests' default bundle is used.
            timeout: Request timeout in seconds
            session: Pre-built session to send requests through
        """
        self.ssl_verify = ssl_verify
        self.ssl_ca_file = ssl_ca_file
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.logger = None

        if not ssl_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            self._get_logger().warning(
                "TLS certificate verification is disabled for vCloud requests"
            )

    def _get_logger(self):
        """Lazy logger initialization."""
        if self.logger is None:
            from vcloud_client.core.logger import get_logger
            self.logger = get_logger()
        return self.logger

    @property
    def verify(self) -> Union[bool, str]:
        """Value handed to requests for certificate verification."""
        if not self.ssl_verify:
            return False
        if self.ssl_ca_file:
            return str(self.ssl_ca_file)
        return True

    def send(self, request: RequestSpec) -> requests.Response:
        """
        Send a request and return the response, whatever its status.

        Args:
            request: Request to send

        Returns:
            Response received from the server

        Raises:
            requests.RequestException: If the exchange could not complete
        """
        return self.session.request(
            request.method,
            request.url,
            data=request.body,
            headers=CaseInsensitiveDict(request.headers),
            timeout=self.timeout,
            verify=self.verify,
            allow_redirects=True,
        )

    def close(self):
        """Close the underlying session."""
        self.session.close()
