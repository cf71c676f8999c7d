"""
Helper methods for faking the Acquia Cloud API and creating temporary site files.

API calls are made through a mock `requests.Session`: token requests use `Session.post`, while all
other calls go through `Session.request`, so tests can queue up API responses without worrying
about interleaved token requests.
"""

from inspect import cleandoc
import json
import os.path
from typing import Any, List, Optional, Tuple
from unittest.mock import Mock

from requests import HTTPError, Session as RequestsSession

from solrindexlib.plumbing.site import Site


SITE = """
[search_acsf.settings]
clientId = client
clientSecret = secret
application_id = app-1
config_set_id = config-set-1

[acquia_search.settings]
api_host = https://search.example.com

[modules]
acquia_connector = yes

[acquia_connector]
key = connector-key
identifier = ABCD-12345

[state:acquia_subscription_data]
uuid = subscription-1

[search_api_server:default]
backend = search_api_solr

[search_api_server:backup]
backend = search_api_solr
"""

TOKEN = {"access_token": "token-1", "token_type": "bearer", "expires_in": 300}

NOTIFICATION = "https://cloud.acquia.com/api/notifications/note-1"


def response(status: int = 200, body: Any = None) -> Mock:
    """
    Create a fake HTTP response, with a JSON body if given.
    """
    resp = Mock()
    resp.status_code = status
    resp.content = b"" if body is None else json.dumps(body).encode("utf-8")
    resp.text = resp.content.decode("utf-8")
    resp.json.return_value = body
    if status >= 400:
        resp.raise_for_status.side_effect = HTTPError("{} Error".format(status))
    return resp


def collection(*items: Any) -> dict:
    """
    Wrap items in a paginated collection response body.
    """
    return {"total": len(items), "_embedded": {"items": list(items)}}


def environments(*pairs: Tuple[str, str]) -> dict:
    """
    Collection of environments from `(id, name)` pairs.
    """
    return collection(*({"id": id_, "name": name} for id_, name in pairs))


def index(id_: str, env_id: str, database_role: str, status: str = "active") -> dict:
    return {"id": id_, "environment_id": env_id, "database_role": database_role,
            "status": status}


def created(message: str = "Solr index is being created.",
            notification: Optional[str] = NOTIFICATION) -> dict:
    body = {"message": message}
    if notification:
        body["_links"] = {"notification": {"href": notification}}
    return body


def make_session(*responses: Mock) -> Mock:
    """
    Create a fake HTTP session, which grants tokens and answers API calls with the responses given
    in order.
    """
    sess = Mock(spec=RequestsSession)
    sess.post.return_value = response(200, TOKEN)
    sess.request.side_effect = list(responses)
    return sess


def api_calls(sess: Mock) -> List[Tuple[str, str]]:
    """
    List the `(method, url)` pairs of API calls made through a fake session.
    """
    return [c[0][:2] for c in sess.request.call_args_list]


def make_site(directory: str, content: str = SITE) -> Site:
    """
    Write a site file into a (temporary) directory, and load it.
    """
    path = os.path.join(directory, "site.ini")
    with open(path, "w") as f:
        f.write(cleandoc(content) + "\n")
    return Site.load(path)
