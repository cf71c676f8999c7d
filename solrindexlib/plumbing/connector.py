"""
Acquia Connector integration: pushing subscription details into local search servers.
"""

import logging
from typing import NamedTuple

from .common import Collect, Result, Secret
from .site import SearchServer, Site
from . import endpoints


LOG = logging.getLogger(__name__)

MODULE = "acquia_connector"
"""
Name of the companion module that must be enabled for the site.
"""

SUBSCRIPTION = "acquia_subscription_data"
"""
State key of subscription data cached by the connector.
"""

SEARCH_SETTINGS = "acquia_search.settings"
"""
Configuration object holding Acquia Search options, such as the API host.
"""


class ConnectorSettings(NamedTuple):
    """
    Acquia Search storage values shared by all search servers of a site.
    """

    api_host: str
    api_key: Secret
    identifier: str
    uuid: str


def get_settings(site: Site) -> ConnectorSettings:
    """
    Collect storage values from the connector, raising `KeyError` if it isn't available (the module
    is disabled, or no subscription data has been cached yet).
    """
    if not site.module_exists(MODULE):
        raise KeyError(MODULE)
    subscription = site.get_state(SUBSCRIPTION)
    if not subscription.get("uuid"):
        raise KeyError(SUBSCRIPTION)
    try:
        api_host = site.get_config(SEARCH_SETTINGS).get("api_host")
    except KeyError:
        api_host = None
    try:
        storage = site.get_config(MODULE)
    except KeyError:
        storage = {}
    return ConnectorSettings(api_host or endpoints.SEARCH_API_HOST,
                             Secret(storage.get("key", "")),
                             storage.get("identifier", ""),
                             subscription["uuid"])


def configure_server(site: Site, server: SearchServer,
                     settings: ConnectorSettings) -> Result[SearchServer]:
    """
    Save a search server with the connector's storage values applied.
    """
    values = dict(server.settings, api_host=settings.api_host, api_key=str(settings.api_key),
                  identifier=settings.identifier, uuid=settings.uuid)
    return site.save_server(SearchServer(server.name, values))


@Result.collect_value
def sync_servers(site: Site, settings: ConnectorSettings) -> Collect[int]:
    """
    Re-save every search server registered with the site, returning how many were found.
    """
    servers = site.get_servers()
    for server in servers:
        yield configure_server(site, server, settings)
    LOG.debug("Synchronised %d search servers", len(servers))
    return len(servers)
