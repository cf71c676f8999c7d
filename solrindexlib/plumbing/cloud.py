"""
Acquia Cloud API calls, authenticated with OAuth2 client credentials.

Every call fetches a fresh access token first; tokens are never cached between calls.  Remote calls
don't raise: they return a `Reply` declaring whether the expected response arrived, the server
answered with some other status, or the request failed in transport.
"""

from enum import Enum
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from requests import RequestException, Response, Session as RequestsSession

from .common import Secret
from . import endpoints


LOG = logging.getLogger(__name__)

TIMEOUT = 30
"""
Default number of seconds to wait for each HTTP request.
"""


class Credentials(NamedTuple):
    """
    API client identity and the application it manages, read once from site configuration.
    """

    client_id: str
    client_secret: Secret
    application_id: Optional[str]
    config_set_id: Optional[str]


class Token(NamedTuple):
    """
    Bearer credential granted by the token endpoint.
    """

    access_token: Secret
    token_type: str

    def header(self) -> Secret:
        """
        Value for the `Authorization` header of an API request.
        """
        return self.access_token.wrap("{} {{}}".format(self.token_type.capitalize()))


class Outcome(Enum):
    """
    Enumeration used by `Reply` to declare how a remote call ended.
    """

    ok = 0
    """
    The server answered with the expected status code.
    """
    unexpected_status = 1
    """
    The server answered, but with a different status code.
    """
    transport_error = 2
    """
    No usable answer: connection failure, timeout, or no token granted.
    """


class Reply(NamedTuple):
    """
    Outcome of a single API call, with the decoded payload if successful.
    """

    outcome: Outcome
    status: Optional[int] = None
    payload: Any = None
    cause: Optional[Exception] = None

    @classmethod
    def ok(cls, status: int, payload: Any) -> "Reply":
        return cls(Outcome.ok, status, payload)

    @classmethod
    def unexpected(cls, status: int, body: str) -> "Reply":
        return cls(Outcome.unexpected_status, status, body)

    @classmethod
    def failed(cls, cause: Exception) -> "Reply":
        return cls(Outcome.transport_error, cause=cause)

    def __bool__(self) -> bool:
        return self.outcome == Outcome.ok

    def describe(self) -> str:
        """
        Raw error text suitable for logging.
        """
        if self.outcome == Outcome.unexpected_status:
            return "HTTP {}: {}".format(self.status, self.payload)
        elif self.outcome == Outcome.transport_error:
            return str(self.cause)
        else:
            return "HTTP {}".format(self.status)


class Match(Enum):
    """
    Enumeration used by `EnvironmentMatch` to separate a missing environment from a failed lookup.
    """

    found = 0
    not_found = 1
    failed = 2


class EnvironmentMatch(NamedTuple):
    """
    Result of resolving an environment name to its identifier.
    """

    match: Match
    id: Optional[str] = None
    reply: Optional[Reply] = None

    def __bool__(self) -> bool:
        return self.match == Match.found


def get_token(sess: RequestsSession, credentials: Credentials, timeout: float = TIMEOUT) -> Token:
    """
    Request a new access token using the client credentials grant.
    """
    data = {"grant_type": "client_credentials",
            "client_id": credentials.client_id,
            "client_secret": str(credentials.client_secret)}
    LOG.debug("Requesting access token: %r", credentials.client_id)
    resp = sess.post(endpoints.TOKEN, data=data, headers={"Accept": "application/json"},
                     timeout=timeout)
    resp.raise_for_status()
    body = resp.json()
    try:
        access_token = body["access_token"]
    except (KeyError, TypeError):
        raise ValueError("No access token in response") from None
    return Token(Secret(access_token), body.get("token_type") or "bearer")


def call(sess: RequestsSession, credentials: Credentials, method: str, url: str, expect: int,
         body: Optional[Mapping[str, Any]] = None, timeout: float = TIMEOUT) -> Reply:
    """
    Make an authenticated JSON request, expecting a specific status code in response.
    """
    try:
        token = get_token(sess, credentials, timeout)
        headers = {"Accept": "application/json", "Authorization": str(token.header())}
        LOG.debug("Request: %s %s %r", method, url, body)
        resp = sess.request(method, url, headers=headers, json=body, timeout=timeout)
        if resp.status_code != expect:
            LOG.debug("Unexpected response: %s %s -> %d", method, url, resp.status_code)
            return Reply.unexpected(resp.status_code, resp.text)
    except (RequestException, ValueError) as ex:
        LOG.debug("Request failed: %s %s -> %r", method, url, ex)
        return Reply.failed(ex)
    return Reply.ok(resp.status_code, decode(resp))


def decode(resp: Response) -> Any:
    """
    Decode the JSON body of an accepted response, or an empty object if it has none or isn't JSON.
    """
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        LOG.warning("Ignoring undecodable body: %s %r", resp.status_code, resp.text)
        return {}


def get_items(payload: Any) -> List[Dict[str, Any]]:
    """
    Unpack the members of a paginated collection response, skipping any that aren't objects.
    """
    try:
        items = payload["_embedded"]["items"]
    except (KeyError, TypeError):
        return []
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def get_environment_id(items: List[Dict[str, Any]], name: str) -> str:
    """
    Find the identifier of the first environment with the given name.

    Raises `KeyError` if no environment matches, or `ValueError` if the match has no identifier.
    """
    for env in items:
        if env.get("name") == name:
            env_id = env.get("id")
            if not env_id:
                raise ValueError("Environment {!r} has no ID".format(name))
            return env_id
    raise KeyError(name)


def get_index(items: List[Dict[str, Any]], environment_id: str,
              database_role: str) -> Dict[str, Any]:
    """
    Find the first search index serving the given database of an environment.
    """
    for index in items:
        if index.get("environment_id") == environment_id and \
                index.get("database_role") == database_role:
            return index
    raise KeyError((environment_id, database_role))


def get_notification_url(payload: Any) -> Optional[str]:
    """
    Extract the polling address from an asynchronous operation response, if present.
    """
    try:
        return payload["_links"]["notification"]["href"]
    except (KeyError, TypeError):
        return None


def index_metadata(config_set_id: str, database_role: str) -> Dict[str, str]:
    """
    Request body for creating a search index.
    """
    return {"config_set_id": config_set_id, "database_role": database_role}
