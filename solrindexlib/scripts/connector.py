"""
Scripts to manage the site's Acquia Connector integration.
"""

from .utils import entrypoint, error
from ..plumbing import connector
from ..plumbing.site import Site


@entrypoint
def sync(site: Site):
    """
    Apply Acquia Connector settings to every search server of the site.

    Usage: {script}
    """
    try:
        settings = connector.get_settings(site)
    except KeyError as ex:
        error("Acquia Connector unavailable, missing {}".format(ex), exit=1)
    result = connector.sync_servers(site, settings)
    changed = sum(1 for part in result.parts if part)
    print("Updated {} of {} search servers".format(changed, result.value))
