"""Shared fixtures: a recording fake transport and canned vCloud responses."""

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from vcloud_client.core.logger import Logger
from vcloud_client.handlers.api_client import APIClient


VERSIONS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<SupportedVersions xmlns="http://www.vmware.com/vcloud/versions">
    <VersionInfo deprecated="false">
        <Version>1.0</Version>
        <LoginUrl>https://vcloud.example.com/api/v1/sessions</LoginUrl>
    </VersionInfo>
    <VersionInfo deprecated="true">
        <Version>3.0</Version>
        <LoginUrl>https://vcloud.example.com/api/v3/sessions</LoginUrl>
    </VersionInfo>
    <VersionInfo deprecated="false">
        <Version>2.0</Version>
        <LoginUrl>https://vcloud.example.com/api/sessions</LoginUrl>
    </VersionInfo>
</SupportedVersions>
"""

SESSION_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<Session xmlns="http://www.vmware.com/vcloud/v1.5" user="admin" org="System"
         href="https://vcloud.example.com/api/session/">
    <Link rel="down" type="application/vnd.vmware.vcloud.orgList+xml"
          href="https://vcloud.example.com/api/org/"/>
</Session>
"""

ORG_LIST_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<OrgList xmlns="http://www.vmware.com/vcloud/v1.5" href="https://vcloud.example.com/api/org/">
    <Org name="System" href="https://vcloud.example.com/api/org/a93c"/>
    <Org name="Tenant" href="https://vcloud.example.com/api/org/b71d"/>
</OrgList>
"""

TASK_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<Task xmlns="http://www.vmware.com/vcloud/v1.5" status="running" operationName="vappDelete"
      href="https://vcloud.example.com/api/task/9f1e"/>
"""

TOKEN = 'c5a4b8e1d2f34a0b9e8d7c6b5a4f3e2d'


def make_response(status=200, content=b'', headers=None, url='https://vcloud.example.com/'):
    """Build a real requests.Response with the given status, body and headers."""
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.headers = CaseInsensitiveDict(headers or {})
    response.url = url
    response.encoding = 'utf-8'
    return response


class FakeTransport:
    """Records every RequestSpec and replays queued responses or exceptions."""

    def __init__(self, responses=None):
        self.requests = []
        self.responses = list(responses or [])
        self.timeout = 120
        self.closed = False

    def queue(self, *responses):
        self.responses.extend(responses)

    def send(self, request):
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome.url in (None, '', 'https://vcloud.example.com/'):
            outcome.url = request.url
        return outcome

    def close(self):
        self.closed = True

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture(autouse=True)
def reset_logger():
    Logger.reset()
    yield
    Logger.reset()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    return APIClient(
        'vcloud.example.com', 'admin', 'secret', orgname='System', transport=transport
    )


@pytest.fixture
def versions_response():
    return make_response(200, VERSIONS_XML)


@pytest.fixture
def login_response():
    return make_response(200, SESSION_XML, {'x-vcloud-authorization': TOKEN})


@pytest.fixture
def logged_in_client(client, transport, versions_response, login_response):
    transport.queue(versions_response, login_response)
    client.login()
    return client


@pytest.fixture
def respond():
    return make_response


@pytest.fixture
def token():
    return TOKEN


@pytest.fixture
def org_list_xml():
    return ORG_LIST_XML


@pytest.fixture
def task_xml():
    return TASK_XML
