"""Tests for version discovery in APIClient."""

import pytest

from vcloud_client.handlers.api_client import (
    HTTPStatusError,
    VersionResolutionError,
    XMLDecodeError,
)


def versions_document(*entries):
    blocks = ''.join(
        f'<VersionInfo deprecated="{deprecated}">'
        f'<Version>{version}</Version>'
        f'<LoginUrl>https://vcloud.example.com/api/{version}/sessions</LoginUrl>'
        f'</VersionInfo>'
        for version, deprecated in entries
    )
    return (
        '<SupportedVersions xmlns="http://www.vmware.com/vcloud/versions">'
        f'{blocks}</SupportedVersions>'
    ).encode()


class TestVersionSelection:
    """Tests for choosing the API version."""

    def test_highest_non_deprecated_wins(self, client, transport, versions_response):
        transport.queue(versions_response)

        assert client.api_version == '2.0'
        assert client.url_login == 'https://vcloud.example.com/api/sessions'

    def test_numeric_not_lexical_comparison(self, client, transport, respond):
        transport.queue(respond(200, versions_document(('9.0', 'false'), ('27.0', 'false'))))

        assert client.api_version == '27.0'

    def test_first_entry_wins_on_ties(self, client, transport, respond):
        document = (
            b'<SupportedVersions>'
            b'<VersionInfo deprecated="false"><Version>5.5</Version>'
            b'<LoginUrl>https://first/api/sessions</LoginUrl></VersionInfo>'
            b'<VersionInfo deprecated="false"><Version>5.50</Version>'
            b'<LoginUrl>https://second/api/sessions</LoginUrl></VersionInfo>'
            b'</SupportedVersions>'
        )
        transport.queue(respond(200, document))

        assert client.url_login == 'https://first/api/sessions'

    def test_single_version_block(self, client, transport, respond):
        transport.queue(respond(200, versions_document(('31.0', 'false'))))

        assert client.api_version == '31.0'

    def test_non_numeric_versions_never_qualify(self, client, transport, respond):
        transport.queue(respond(200, versions_document(('beta', 'false'), ('1.5', 'false'))))

        assert client.api_version == '1.5'

    def test_all_deprecated_raises(self, client, transport, respond):
        transport.queue(respond(200, versions_document(('1.0', 'true'), ('5.1', 'true'))))

        with pytest.raises(VersionResolutionError, match="No valid version block seen") as excinfo:
            client.api_version

        assert excinfo.value.kind == 'version'
        assert excinfo.value.uri == 'https://vcloud.example.com/api/versions'

    def test_document_without_versions_raises(self, client, transport, respond):
        transport.queue(respond(200, b'<Error message="nope"/>'))

        with pytest.raises(VersionResolutionError):
            client.url_login

    def test_raw_version_documents_are_kept(self, client, transport, versions_response):
        transport.queue(versions_response)

        assert client.raw_version['Version'] == '2.0'
        entries = client.raw_version_full['SupportedVersions']['VersionInfo']
        assert len(entries) == 3


class TestDiscoveryRequest:
    """Tests for the /api/versions request itself."""

    def test_request_shape(self, client, transport, versions_response):
        transport.queue(versions_response)

        client.api_version

        request = transport.last
        assert request.method == 'GET'
        assert request.url == 'https://vcloud.example.com/api/versions'
        assert request.headers['Accept'] == 'text/xml'
        assert request.body is None

    def test_discovery_never_carries_token(self, client, transport, versions_response, token):
        client.authorization_token = token
        transport.queue(versions_response)

        client.api_version

        assert 'x-vcloud-authorization' not in transport.last.headers

    def test_http_failure_propagates(self, client, transport, respond):
        transport.queue(respond(503, b'unavailable'))

        with pytest.raises(HTTPStatusError):
            client.api_version

    def test_malformed_document_raises_decode_error(self, client, transport, respond):
        transport.queue(respond(200, b'<SupportedVersions>'))

        with pytest.raises(XMLDecodeError):
            client.api_version


class TestVersionCache:
    """Tests for caching and clearing the discovered version."""

    def test_discovered_once(self, client, transport, versions_response):
        transport.queue(versions_response)

        assert client.api_version == '2.0'
        assert client.url_login == 'https://vcloud.example.com/api/sessions'
        assert client.default_accept_header == 'application/*+xml;version=2.0'
        assert client.api_version == '2.0'

        assert len(transport.requests) == 1

    def test_failed_discovery_is_retried_on_next_access(self, client, transport, respond,
                                                        versions_response):
        transport.queue(respond(500, b''), versions_response)

        with pytest.raises(HTTPStatusError):
            client.api_version

        assert client.api_version == '2.0'
        assert len(transport.requests) == 2

    def test_clear_resets_whole_chain(self, client, transport, respond):
        transport.queue(
            respond(200, versions_document(('5.5', 'false'))),
            respond(200, versions_document(('5.5', 'false'), ('9.0', 'false'))),
        )
        assert client.default_accept_header == 'application/*+xml;version=5.5'

        client.clear_version_cache()

        assert client.url_login == 'https://vcloud.example.com/api/9.0/sessions'
        assert client.api_version == '9.0'
        assert client.default_accept_header == 'application/*+xml;version=9.0'
        assert len(transport.requests) == 2
