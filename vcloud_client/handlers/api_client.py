"""
API client module for vCloud Director Client.
Handles version discovery, login and HTTP communication with the vCloud API.
"""

import base64
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urljoin
import certifi
import requests
from requests.structures import CaseInsensitiveDict

from vcloud_client.core.config import ClientConfig, DEFAULT_ORGNAME, DEFAULT_TIMEOUT, validate_timeout
from vcloud_client.core.lazy import LazyValue
from vcloud_client.handlers.response import VCloudObject
from vcloud_client.handlers.transport import RequestSpec, Transport
from vcloud_client.handlers.xml_codec import XMLCodec, XMLCodecError


VERSIONS_PATH = '/api/versions'
TOKEN_HEADER = 'x-vcloud-authorization'
ACCEPT_TEMPLATE = 'application/*+xml;version={version}'


class APIError(Exception):
    """
    Raised when communication with the vCloud API fails.

    Attributes:
        message: Short description of the failure
        uri: Absolute URI of the request, when one was made
        request: RequestSpec that was sent
        response: requests.Response that was received
    """

    kind = 'api'

    def __init__(self, message: str, uri: Optional[str] = None,
                 request: Optional[RequestSpec] = None,
                 response: Optional[requests.Response] = None):
        super().__init__(message)
        self.message = message
        self.uri = uri
        self.request = request
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None

    def __str__(self):
        text = self.message
        if self.uri:
            text += f" [{self.uri}]"
        if self.response is not None:
            text += f" (HTTP {self.response.status_code})"
        return text


class TransportError(APIError):
    """The HTTP exchange could not complete (network, timeout, TLS)."""
    kind = 'transport'


class HTTPStatusError(APIError):
    """The server answered with a 4xx or 5xx status."""
    kind = 'http_status'


class XMLDecodeError(APIError):
    """The response body is not well-formed XML."""
    kind = 'decode'

    def __init__(self, message: str, error: Optional[Exception] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.error = error


class VersionResolutionError(APIError):
    """The version document lists no usable API version."""
    kind = 'version'


class APIClient:
    """
    Handles communication with a vCloud Director endpoint.

    The API version and login URL are discovered from ``/api/versions`` on
    first use and cached together; ``login()`` obtains the session token that
    is attached to every later request.
    """

    def __init__(self, hostname: str, username: str, password: str,
                 orgname: str = DEFAULT_ORGNAME, ssl_verify: bool = True,
                 ssl_ca_file: Optional[Union[str, Path]] = None,
                 timeout: int = DEFAULT_TIMEOUT, debug: bool = False,
                 transport: Optional[Transport] = None,
                 codec: Optional[XMLCodec] = None):
        """
        Initialize API client.

        Args:
            hostname: Host name (optionally with port) of the vCloud endpoint
            username: User to log in as
            password: Password for the user
            orgname: Organization of the user
            ssl_verify: Verify the server certificate
            ssl_ca_file: CA bundle for verification. If None, the certifi bundle is used.
            timeout: Request timeout in seconds
            debug: Trace requests and version selection to the log
            transport: Transport to send requests through. Built on first use if None.
            codec: XML codec for request and response bodies
        """
        self.hostname = hostname
        self.username = username
        self.password = password
        self.orgname = orgname
        self.ssl_verify = ssl_verify
        self._timeout = validate_timeout(timeout)
        self.debug = debug
        self.codec = codec if codec is not None else XMLCodec()
        self.logger = None

        self.authorization_token: Optional[str] = None

        self._ssl_ca_file = LazyValue(self._build_ssl_ca_file, 'ssl_ca_file')
        if ssl_ca_file:
            self._ssl_ca_file.set(Path(ssl_ca_file))
        self._base_url = LazyValue(self._build_base_url, 'base_url')
        self._ua = LazyValue(self._build_ua, 'ua')
        if transport is not None:
            self._ua.set(transport)

        # raw_version_full -> raw_version -> api_version / url_login / accept header
        self._raw_version_full = LazyValue(self._build_raw_version_full, 'raw_version_full')
        self._raw_version = LazyValue(
            self._build_raw_version, 'raw_version'
        ).depends_on(self._raw_version_full)
        self._api_version = LazyValue(
            self._build_api_version, 'api_version'
        ).depends_on(self._raw_version)
        self._url_login = LazyValue(
            self._build_url_login, 'url_login'
        ).depends_on(self._raw_version)
        self._default_accept_header = LazyValue(
            self._build_default_accept_header, 'default_accept_header'
        ).depends_on(self._api_version)

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> 'APIClient':
        """
        Build a client from a ClientConfig.

        Args:
            config: Validated configuration
            **kwargs: Passed through to the constructor (e.g. transport)
        """
        return cls(
            hostname=config.hostname,
            username=config.username,
            password=config.password,
            orgname=config.orgname,
            ssl_verify=config.ssl_verify,
            ssl_ca_file=config.ssl_ca_file,
            timeout=config.timeout,
            debug=config.debug,
            **kwargs
        )

    def __repr__(self):
        return f"<APIClient {self.username}@{self.orgname} on {self.hostname}>"

    def _get_logger(self):
        """Lazy logger initialization."""
        if self.logger is None:
            from vcloud_client.core.logger import get_logger
            self.logger = get_logger()
        return self.logger

    def _trace(self, message: str):
        if self.debug:
            self._get_logger().debug(message)

    # ------------------------------------------------------------------
    # connection settings

    @property
    def timeout(self) -> int:
        """Request timeout in seconds."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: int):
        self._timeout = validate_timeout(value)
        if self._ua.is_resolved:
            self._ua.get().timeout = self._timeout

    @property
    def ssl_ca_file(self) -> Path:
        return self._ssl_ca_file.get()

    @property
    def base_url(self) -> str:
        """Prefix that relative request paths are resolved against."""
        return self._base_url.get()

    def _set_base_url(self, url: str):
        self._base_url.set(url)

    @property
    def transport(self) -> Transport:
        return self._ua.get()

    def close(self):
        """
        Close the transport's HTTP session.

        The next request builds a fresh transport from the current settings.
        Cached version data and the session token are kept.
        """
        if self._ua.is_resolved:
            self._ua.get().close()
        self._ua.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def default_accept_header(self) -> str:
        return self._default_accept_header.get()

    def _build_ssl_ca_file(self) -> Path:
        return Path(certifi.where())

    def _build_base_url(self) -> str:
        return f"https://{self.hostname}/"

    def _build_ua(self) -> Transport:
        return Transport(
            ssl_verify=self.ssl_verify,
            ssl_ca_file=self.ssl_ca_file,
            timeout=self.timeout,
        )

    def _build_default_accept_header(self) -> str:
        return ACCEPT_TEMPLATE.format(version=self.api_version)

    # ------------------------------------------------------------------
    # XML bodies

    def _decode_xml_response(self, response: requests.Response) -> Dict[str, Any]:
        """
        Decode a response body.

        Raises:
            XMLDecodeError: If the body is not well-formed XML
        """
        try:
            return self.codec.decode(response.content)
        except XMLCodecError as e:
            self._get_logger().error(f"XML decode failed for {response.url}: {e}")
            raise XMLDecodeError(
                f"XML decode failed - {e}",
                error=e,
                uri=response.url or None,
                response=response,
            ) from e

    def _encode_xml_content(self, content: Union[Mapping[str, Any], str, bytes, None]) -> Optional[bytes]:
        if content is None:
            return None
        if isinstance(content, Mapping):
            return self.codec.encode(dict(content))
        if isinstance(content, str):
            return content.encode('utf-8')
        return bytes(content)

    # ------------------------------------------------------------------
    # request execution

    def _request(self, method: str, url: str, content: Optional[bytes] = None,
                 headers: Optional[Mapping[str, str]] = None,
                 authenticated: bool = True) -> requests.Response:
        """
        Send one request to the API.

        Args:
            method: HTTP method
            url: Absolute URL, or a path resolved against base_url
            content: Request body
            headers: Headers applied verbatim before the defaults
            authenticated: Attach the session token when one is held

        Returns:
            Response with a non-error status

        Raises:
            TransportError: If the exchange could not complete
            HTTPStatusError: If the server answered with an error status
        """
        uri = urljoin(self.base_url, str(url))
        self._trace(f"Method: {method}")
        self._trace(f"URI:    {uri}")

        request_headers = CaseInsensitiveDict()
        if content:
            request_headers['Content-Length'] = str(len(content))
        else:
            content = None
            request_headers['Content-Length'] = '0'

        # caller headers take precedence over everything set below
        seen_accept = False
        for name, value in (headers or {}).items():
            request_headers[name] = value
            if name.lower() == 'accept':
                seen_accept = True

        if not seen_accept:
            request_headers['Accept'] = self.default_accept_header

        if authenticated and self.has_authorization_token() and TOKEN_HEADER not in request_headers:
            request_headers[TOKEN_HEADER] = self.authorization_token

        request = RequestSpec(method, uri, content, request_headers)

        try:
            response = self.transport.send(request)
        except requests.RequestException as e:
            self._get_logger().error(f"{method} {uri} could not be completed: {e}")
            raise TransportError(
                f"{method} request bombed",
                uri=uri,
                request=request,
            ) from e

        self._trace(f"Response: HTTP {response.status_code}")

        if response.status_code >= 400:
            self._get_logger().error(f"{method} {uri} failed: HTTP {response.status_code}")
            self._trace(f"Response body: {response.text[:2000]}")
            raise HTTPStatusError(
                f"{method} request failed",
                uri=uri,
                request=request,
                response=response,
            )

        return response

    # ------------------------------------------------------------------
    # version discovery

    @property
    def api_version(self) -> str:
        """
        Highest non-deprecated API version offered by the endpoint.

        Discovered from /api/versions on first access and cached afterwards,
        together with the login URL.
        """
        return self._api_version.get()

    @property
    def url_login(self) -> str:
        """Login URL that belongs to the selected API version."""
        return self._url_login.get()

    @property
    def raw_version(self) -> Dict[str, Any]:
        """Decoded VersionInfo block of the selected version."""
        return self._raw_version.get()

    @property
    def raw_version_full(self) -> Dict[str, Any]:
        """Complete decoded /api/versions document."""
        return self._raw_version_full.get()

    def clear_version_cache(self):
        """Forget the discovered version so the next access queries the endpoint again."""
        self._raw_version_full.clear()

    def _build_api_version(self) -> str:
        return self.raw_version['Version']

    def _build_url_login(self) -> str:
        return self.raw_version['LoginUrl']

    def _build_raw_version(self) -> Dict[str, Any]:
        document = self.raw_version_full
        supported = document.get('SupportedVersions') if isinstance(document, dict) else None
        blocks = supported.get('VersionInfo', []) if isinstance(supported, dict) else []
        if isinstance(blocks, dict):
            blocks = [blocks]

        version = 0.0
        version_block = None
        for block in blocks:
            if not isinstance(block, dict) or block.get('-deprecated') != 'false':
                continue
            try:
                number = float(block.get('Version'))
            except (TypeError, ValueError):
                self._trace(f"Skipping version block without numeric version: {block}")
                continue
            if number > version:
                version_block = block
                version = number

        self._trace(f"vCloud API version seen: {version}")
        self._trace(f"vCloud API version block: {version_block}")

        if version_block is None:
            self._get_logger().error(f"No non-deprecated API version offered by {self.hostname}")
            raise VersionResolutionError(
                "No valid version block seen",
                uri=urljoin(self.base_url, VERSIONS_PATH),
            )

        self._get_logger().info(f"Using vCloud API version {version_block['Version']}")
        return version_block

    def _build_raw_version_full(self) -> Dict[str, Any]:
        response = self._request(
            'GET', VERSIONS_PATH, headers={'Accept': 'text/xml'}, authenticated=False
        )
        return self._decode_xml_response(response)

    # ------------------------------------------------------------------
    # session

    def has_authorization_token(self) -> bool:
        return self.authorization_token is not None

    def clear_authorization_token(self):
        """Drop the session token; later requests go out unauthenticated."""
        self.authorization_token = None

    def login(self) -> VCloudObject:
        """
        Log in with the configured credentials and keep the session token.

        Returns:
            The decoded login response (the session document)

        Raises:
            APIError: If the login request fails or returns no token
        """
        login_id = f"{self.username}@{self.orgname}"
        credentials = base64.b64encode(f"{login_id}:{self.password}".encode('utf-8'))
        encoded_auth = 'Basic ' + credentials.decode('ascii')

        self._get_logger().info(f"vCloud attempting login as: {login_id}")
        response = self._request(
            'POST', self.url_login, headers={'Authorization': encoded_auth}, authenticated=False
        )

        # if we got here then it succeeded, since we raise on failure
        token = response.headers.get(TOKEN_HEADER)
        if not token:
            self._get_logger().error(f"Login as {login_id} returned no session token")
            raise APIError(
                f"Login response carried no {TOKEN_HEADER} header",
                uri=response.url or self.url_login,
                response=response,
            )

        document = self._decode_xml_response(response)
        self.authorization_token = token
        self._trace("vCloud authentication token received")

        self._get_logger().info(f"Logged in to {self.hostname} as {login_id}")
        return VCloudObject(document, self)

    # ------------------------------------------------------------------
    # verbs

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> VCloudObject:
        """GET a document."""
        response = self._request('GET', url, headers=headers)
        return VCloudObject(self._decode_xml_response(response), self)

    def put(self, url: str, content: Union[Mapping[str, Any], str, bytes, None] = None,
            headers: Optional[Mapping[str, str]] = None) -> VCloudObject:
        """
        PUT a document.

        Args:
            url: Target URL or path
            content: Mapping (encoded to XML), XML text, or raw bytes
            headers: Extra headers, e.g. the resource's Content-Type
        """
        body = self._encode_xml_content(content)
        response = self._request('PUT', url, body, headers=headers)
        return VCloudObject(self._decode_xml_response(response), self)

    def post(self, url: str, content: Union[Mapping[str, Any], str, bytes, None] = None,
             headers: Optional[Mapping[str, str]] = None) -> VCloudObject:
        """POST a document; ``content`` is handled as for put()."""
        body = self._encode_xml_content(content)
        response = self._request('POST', url, body, headers=headers)
        return VCloudObject(self._decode_xml_response(response), self)

    def delete(self, url: str, headers: Optional[Mapping[str, str]] = None) -> VCloudObject:
        response = self._request('DELETE', url, headers=headers)
        return VCloudObject(self._decode_xml_response(response), self)

    GET = get
    PUT = put
    POST = post
    DELETE = delete
