import collections
import json

import aiohttp.web
import pytest

import trackobot.config
from trackobot.settings import Settings

ServiceRequest = collections.namedtuple('ServiceRequest',
                                        'path headers body')

DEFAULT_REPLIES = {
    '/users.json': (201, {'username': 'u', 'password': 'p'}),
    '/profile/results.json': (200, {'result': {'id': 42}}),
    '/one_time_auth.json': (200, {'url': 'https://trackobot.com/p?t=1'}),
}


class FakeService:
    """In-process stand-in for the web profile.

    Records every request it receives and answers with the replies queued
    through :meth:`reply`, falling back to DEFAULT_REPLIES.
    """

    def __init__(self):
        self.requests = []
        self.replies = collections.defaultdict(list)

    def reply(self, path, status, payload):
        """Queue a one-shot reply. `payload` is JSON encoded unless it is
        already a string."""
        self.replies[path].append((status, payload))

    def requests_to(self, path):
        return [r for r in self.requests if r.path == path]

    async def handler(self, request):
        raw = await request.read()
        self.requests.append(ServiceRequest(
            request.path,
            dict(request.headers),
            json.loads(raw) if raw else None,
        ))
        if self.replies[request.path]:
            status, payload = self.replies[request.path].pop(0)
        else:
            status, payload = DEFAULT_REPLIES[request.path]
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        return aiohttp.web.Response(status=status, text=payload,
                                    content_type='application/json')

    def make_app(self):
        app = aiohttp.web.Application()
        for path in DEFAULT_REPLIES:
            app.router.add_route('POST', path, self.handler)
        return app


class FakeWebProfile:
    """Web profile double answering uploads with the queued status codes
    (200 when none is queued)."""

    def __init__(self):
        self.uploaded = []
        self.codes = []

    async def upload_result(self, result, callbacks):
        self.uploaded.append(result)
        code = self.codes.pop(0) if self.codes else 200
        if code == 200:
            callbacks.succeeded({'result': {'id': len(self.uploaded)}})
        else:
            callbacks.failed(result, code)


@pytest.fixture
def cfg_dir(tmp_path, monkeypatch):
    """Points the configuration loader to an empty, uncached directory."""
    directory = tmp_path / 'cfg'
    directory.mkdir()
    monkeypatch.setenv('TRACKOBOT_CFG_DIR', str(directory))
    monkeypatch.setattr(trackobot.config, 'LOADED_CONFIGS', {})
    return directory


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / 'settings.yml')


@pytest.fixture
def settings(settings_path):
    return Settings(settings_path)


@pytest.fixture
def fake_service():
    return FakeService()


@pytest.fixture
async def service_url(aiohttp_server, fake_service):
    server = await aiohttp_server(fake_service.make_app())
    return str(server.make_url('')).rstrip('/')


@pytest.fixture
def account(settings, service_url):
    """Settings of an existing account on the fake service."""
    settings.set('webserviceUrl', service_url)
    settings.set('username', 'u')
    settings.set('password', 'p')
    return settings


@pytest.fixture
def fake_web_profile():
    return FakeWebProfile()
