# SPDX-License-Identifier: GPL-2.0-or-later
"""Client for the Track-o-Bot web profile: account creation, result upload
and one-time authenticated profile links.
"""

import asyncio
import base64
import collections
import contextlib
import json
import logging
import ssl
import urllib.parse
import webbrowser

import aiohttp

from trackobot import USER_AGENT
from trackobot.signals import Signal

DEFAULT_WEBSERVICE_URL = 'https://trackobot.com'

# The root certificate of the web profile might not be trusted yet (only after
# the user browsed to the website). On these errors the certificate presented
# by the host is trusted as is, its hostname still has to match.
TOLERATED_CERTIFICATE_ERRORS = {
    18,  # X509_V_ERR_DEPTH_ZERO_SELF_SIGNED_CERT
    19,  # X509_V_ERR_SELF_SIGNED_CERT_IN_CHAIN
}

UploadCallbacks = collections.namedtuple('UploadCallbacks',
                                         'succeeded failed')


class BaseError(Exception):
    """Base class for all exceptions here."""

    pass


class MalformedReplyError(BaseError):
    """Raised when the web profile answered with an unexpected payload."""

    pass


def is_tolerated_certificate_error(error):
    """Returns whether a certificate verification `error` is allowed."""
    return (isinstance(error, ssl.SSLCertVerificationError)
            and error.verify_code in TOLERATED_CERTIFICATE_ERRORS)


def error_code(exc):
    """Returns the HTTP status code of a failed request, or 0 when no HTTP
    response was received."""
    if isinstance(exc, aiohttp.ClientResponseError):
        return exc.status
    return 0


def basic_authorization(username, password):
    """Returns the value of a Basic `Authorization` header. Unlike
    aiohttp.BasicAuth, this accepts empty credentials."""
    credentials = '{}:{}'.format(username, password).encode('utf-8')
    return 'Basic ' + base64.b64encode(credentials).decode('ascii')


def parse_json_object(body):
    try:
        obj = json.loads(body)
    except ValueError:
        raise MalformedReplyError("Couldn't parse response")
    if not isinstance(obj, dict):
        raise MalformedReplyError('Response is not an object')
    return obj


class WebProfile:
    """Authenticated JSON client for the web profile.

    Credentials and the service URL are read from `settings`. `meta` is a
    callable returning the diagnostic list sent along with each result.
    """

    def __init__(self, settings, meta=None, timeout=30, http_client=None):
        self.settings = settings
        self.meta = meta or (lambda: [])
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        # For testing, we may have to use an existing client.
        self._http_client = http_client
        self.account_created = Signal('account_created')

    #
    # Settings
    #

    @property
    def username(self):
        return self.settings.get('username') or ''

    @property
    def password(self):
        return self.settings.get('password') or ''

    def is_account_set_up(self):
        return bool(self.username) and bool(self.password)

    def webservice_url(self, path=''):
        url = self.settings.get('webserviceUrl')
        if not url:
            self.set_webservice_url(DEFAULT_WEBSERVICE_URL)
            url = DEFAULT_WEBSERVICE_URL
        return url + path

    def set_webservice_url(self, url):
        self.settings.set('webserviceUrl', url)

    #
    # Transport
    #

    @contextlib.asynccontextmanager
    async def _client(self):
        if self._http_client is not None:
            # The lifecycle of existing clients are handled externally. It's
            # important not to close (__aexit__) them ourselves.
            yield self._http_client
            return

        async with aiohttp.ClientSession(timeout=self.timeout) as client:
            yield client

    async def _send(self, client, url, data, headers, ssl_check):
        async with client.post(url, data=data, headers=headers,
                               ssl=ssl_check) as resp:
            resp.raise_for_status()
            return await resp.text()

    async def _peer_ssl_context(self, url):
        """Returns a context trusting the certificate presented by the host
        of `url`. Chain errors are lifted, the hostname is still checked.

        Raises aiohttp.ClientConnectionError if the certificate cannot be
        fetched.
        """
        parts = urllib.parse.urlsplit(url)
        address = (parts.hostname, parts.port or 443)
        loop = asyncio.get_running_loop()
        try:
            pem = await loop.run_in_executor(
                None, lambda: ssl.get_server_certificate(
                    address, timeout=self.timeout.total))
        except OSError as e:
            raise aiohttp.ClientConnectionError(
                'cannot fetch the certificate of {}:{}: {}'.format(
                    *address, e)) from e
        ctx = ssl.create_default_context()
        ctx.load_verify_locations(cadata=pem)
        # The peer certificate might not be self-signed (code 19).
        ctx.verify_flags |= ssl.VERIFY_X509_PARTIAL_CHAIN
        return ctx

    async def _post(self, path, payload=None, authenticated=False):
        """Posts `payload` (a JSON data structure, or None for an empty body)
        to `path` and returns the body of the response.

        Raises aiohttp.ClientError for HTTP and transport errors.
        """
        url = self.webservice_url(path)
        headers = {'User-Agent': USER_AGENT}
        data = b''
        if payload is not None:
            data = json.dumps(payload).encode('utf-8')
            headers['Content-Type'] = 'application/json'
        if authenticated:
            headers['Authorization'] = basic_authorization(self.username,
                                                           self.password)

        async with self._client() as client:
            try:
                return await self._send(client, url, data, headers, True)
            except aiohttp.ClientConnectorCertificateError as e:
                if not is_tolerated_certificate_error(e.certificate_error):
                    raise
                logging.warning('untrusted certificate for %s (%s), '
                                'trusting the one presented by the host',
                                url, e.certificate_error)
                ssl_check = await self._peer_ssl_context(url)
                return await self._send(client, url, data, headers,
                                        ssl_check)

    #
    # Public interface
    #

    async def create_account(self):
        """Creates a new account and stores its credentials."""
        try:
            body = await self._post('/users.json')
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logging.error('there was a problem creating an account. '
                          'HTTP status code: %d (%s)', error_code(e), e)
            return

        logging.info('account creation was successful!')
        try:
            user = parse_json_object(body)
            username, password = user['username'], user['password']
            if not isinstance(username, str) or not isinstance(password, str):
                raise MalformedReplyError('credentials must be strings')
        except (KeyError, MalformedReplyError) as e:
            logging.error("couldn't parse account creation response: %s", e)
            return

        logging.info('welcome %s', username)
        self.settings.set('username', username)
        self.settings.set('password', password)
        self.account_created.emit()

    async def upload_result(self, result, callbacks):
        """Uploads `result` then invokes exactly one of `callbacks.succeeded`
        (with the parsed response) or `callbacks.failed` (with `result` and
        the HTTP status code, 0 when unknown).
        """
        params = {'result': result, '_meta': self.meta()}
        try:
            body = await self._post('/profile/results.json', params,
                                    authenticated=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logging.error('there was a problem uploading the result. '
                          'HTTP status code: %d (%s)', error_code(e), e)
            callbacks.failed(result, error_code(e))
            return

        try:
            response = parse_json_object(body)
            result_id = response['result']['id']
        except (KeyError, TypeError, MalformedReplyError) as e:
            logging.error('malformed upload response: %s', e)
            callbacks.failed(result, 0)
            return

        if (not isinstance(result_id, int) or isinstance(result_id, bool)
                or result_id <= 0):
            logging.error('response without id received')
            callbacks.failed(result, 0)
            return

        logging.info('result was uploaded successfully!')
        callbacks.succeeded(response)

    async def open_profile(self, opener=None):
        """Requests a one-time authenticated profile URL and hands it to
        `opener` (the web browser by default). Returns the URL, or None on
        failure."""
        try:
            body = await self._post('/one_time_auth.json', authenticated=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logging.error('there was a problem creating an auth token. '
                          'HTTP status code: %d (%s)', error_code(e), e)
            return None

        try:
            url = parse_json_object(body)['url']
            if not isinstance(url, str):
                raise MalformedReplyError('url must be a string')
        except (KeyError, MalformedReplyError) as e:
            logging.error("couldn't parse profile link response: %s", e)
            return None

        (opener or webbrowser.open)(url)
        return url
