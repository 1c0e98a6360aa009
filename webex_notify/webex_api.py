"""
A module to build, send and parse requests against the Webex Teams REST API.
"""
import json
import logging
import os
from collections import namedtuple
from urllib.parse import quote, urlparse

from requests import Request, Session
from requests.exceptions import RequestException

from webex_notify.exception import ConfigError, RequestError, ResponseParseError

AUTH_HEADER_FIELD = "Authorization"
AUTH_HEADER_VALUE = "Bearer {}"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

ROOMS_PATH = "/rooms"
MESSAGES_PATH = "/messages"
MESSAGE_PATH = "/messages/{}"

PROXY_SCHEMES = ('http', 'https', 'socks5', 'socks5h')

LOG = logging.getLogger(__name__)


def _require_id(kind, data):
    if not isinstance(data, dict) or not data.get('id'):
        raise ResponseParseError(f"{kind} response has no id: {data!r}")
    return data


class Room(namedtuple('_Room', ['id', 'title', 'type', 'is_locked', 'team_id', 'created', 'last_activity'])):
    """
    A Webex Teams room (space), as returned by the rooms endpoints.
    """
    __slots__ = ()

    @classmethod
    def from_json(cls, data):
        data = _require_id('Room', data)
        return cls(
            id=data['id'],
            title=data.get('title'),
            type=data.get('type'),
            is_locked=data.get('isLocked', False),
            team_id=data.get('teamId'),
            created=data.get('created'),
            last_activity=data.get('lastActivity'),
        )


class Message(namedtuple('_Message', [
        'id', 'room_id', 'room_type', 'text', 'markdown', 'html', 'files', 'person_id', 'person_email', 'created'
])):
    """
    A message posted to a room.
    """
    __slots__ = ()

    @classmethod
    def from_json(cls, data):
        data = _require_id('Message', data)
        return cls(
            id=data['id'],
            room_id=data.get('roomId'),
            room_type=data.get('roomType'),
            text=data.get('text'),
            markdown=data.get('markdown'),
            html=data.get('html'),
            files=list(data.get('files') or []),
            person_id=data.get('personId'),
            person_email=data.get('personEmail'),
            created=data.get('created'),
        )


def parse_proxy_url(proxy):
    """
    Validate a proxy URL of the form scheme://[user:pass@]host:port.

    Returns:
        dict: A requests ``proxies`` mapping routing both http and https through the proxy.

    Raises:
        ConfigError: if the URL is malformed.
    """
    parsed = urlparse(proxy)
    try:
        port = parsed.port
    except ValueError as exc:
        raise ConfigError(f"invalid proxy URL >>{proxy}<<: {exc}") from exc

    if parsed.scheme not in PROXY_SCHEMES:
        raise ConfigError("invalid proxy URL >>{}<<: scheme must be one of {}".format(proxy, ', '.join(PROXY_SCHEMES)))
    if not parsed.hostname or port is None:
        raise ConfigError(f"invalid proxy URL >>{proxy}<<: expected scheme://[user:pass@]host:port")
    if parsed.path not in ('', '/') or parsed.query or parsed.fragment:
        raise ConfigError(f"invalid proxy URL >>{proxy}<<: unexpected path or query")

    return {'http': proxy, 'https': proxy}


def _error_detail(response):
    """
    The API's own error message when it sent one, otherwise the raw body.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get('message'):
        return body['message']
    return response.text


class WebexApi:
    """
    Webex Teams REST API client holding the token and proxy settings of one run.
    """
    def __init__(self, config):
        """
        Arguments:
            config (NotifyConfig): Token, optional proxy and API base URL.

        Raises:
            ConfigError: if the proxy URL is malformed. No request has been sent at that point.
        """
        self.base_url = config.base_url
        self.proxies = parse_proxy_url(config.proxy) if config.proxy else {}
        self.session = Session()
        if self.proxies:
            # A configured proxy must not be overridden by proxy settings from the environment.
            # CA bundles from the environment still apply.
            self.session.trust_env = False
            self.session.verify = os.environ.get('REQUESTS_CA_BUNDLE') or os.environ.get('CURL_CA_BUNDLE') or True
        self.session.headers[AUTH_HEADER_FIELD] = AUTH_HEADER_VALUE.format(config.token)

    def _url(self, path):
        if path.startswith(('http://', 'https://')):
            return path
        return "{}/{}".format(self.base_url, path.lstrip('/'))

    def build_request(self, method, path, params=None, json_body=None, fields=None, files=None):
        """
        Build an authenticated request carrying either a JSON body or a multipart body.

        Arguments:
            method (str): HTTP method.
            path (str): API path relative to the base URL, or an absolute URL.
            params (dict): Query parameters.
            json_body: Value serialized as the JSON request body.
            fields (dict): Form fields of a multipart body.
            files (dict): File parts of a multipart body, as accepted by requests.

        Returns:
            requests.PreparedRequest
        """
        if json_body is not None and (fields or files):
            raise ConfigError("a request carries either a JSON body or a multipart body, not both")

        headers = {}
        data = None
        if json_body is not None:
            headers['Content-Type'] = JSON_CONTENT_TYPE
            data = json.dumps(json_body).encode('utf-8')
        elif fields or files:
            # requests generates the multipart/form-data boundary header.
            data = fields

        request = Request(method, self._url(path), params=params, headers=headers, data=data, files=files)
        return self.session.prepare_request(request)

    def send(self, prepared):
        """
        Send a prepared request and check its status.

        Raises:
            RequestError: on a transport failure or a non-2xx response.
        """
        LOG.debug("%s %s", prepared.method, prepared.url)
        try:
            settings = self.session.merge_environment_settings(prepared.url, self.proxies, None, None, None)
            response = self.session.send(prepared, **settings)
        except RequestException as exc:
            raise RequestError(f"{prepared.method} {prepared.url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise RequestError(
                "{} {} returned {}: {}".format(
                    prepared.method, prepared.url, response.status_code, _error_detail(response)
                ),
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _parse_json(response):
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseParseError(f"malformed response body from {response.url}: {exc}") from exc

    def list_items(self, path, params=None):
        """
        Return every item of a listing endpoint, following "next" Link headers.
        """
        items = []
        url = path
        while url:
            response = self.send(self.build_request('GET', url, params=params))
            body = self._parse_json(response)
            page = body.get('items') if isinstance(body, dict) else None
            if not isinstance(page, list):
                raise ResponseParseError(f"listing response from {response.url} has no items")
            items.extend(page)
            url = response.links.get('next', {}).get('url')
            # The next link already carries the query string.
            params = None
        return items

    def list_rooms(self, team_id=None):
        """
        List group rooms visible to the token, optionally restricted to one team.
        """
        params = {'type': 'group'}
        if team_id:
            params['teamId'] = team_id
        return [Room.from_json(item) for item in self.list_items(ROOMS_PATH, params)]

    def create_room(self, title, team_id):
        """
        Create a group room under a team.
        """
        prepared = self.build_request('POST', ROOMS_PATH, json_body={'title': title, 'teamId': team_id})
        return Room.from_json(self._parse_json(self.send(prepared)))

    def create_message(self, json_body=None, fields=None, files=None):
        """
        Post a message with either a JSON body or a multipart body.
        """
        prepared = self.build_request('POST', MESSAGES_PATH, json_body=json_body, fields=fields, files=files)
        return Message.from_json(self._parse_json(self.send(prepared)))

    def delete_message(self, message_id):
        """
        Delete a message. The API answers 204 with an empty body.
        """
        self.send(self.build_request('DELETE', MESSAGE_PATH.format(quote(message_id, safe=''))))
