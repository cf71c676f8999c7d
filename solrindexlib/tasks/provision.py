"""
Search index provisioning for the environment a site is deployed to.
"""

import logging
import time
from typing import Optional

from requests import Session as RequestsSession

from ..messages import Messenger
from ..plumbing import cloud, connector, endpoints
from ..plumbing.cloud import Credentials, EnvironmentMatch, Match, Outcome, Reply
from ..plumbing.common import Collect, Result, State
from ..plumbing.site import get_credentials, Site


LOG = logging.getLogger(__name__)

IN_PROGRESS = "in-progress"
"""
Notification status reported while an index is still being provisioned.
"""


class ProvisioningWorkflow:
    """
    Provision an Acquia Search index for one database of the site's current environment:

        workflow = ProvisioningWorkflow(site, Messenger(), environment_name="prod")
        if workflow.set_api_credentials("search_acsf.settings"):
            result = workflow.create_search_index("mydb")
            if result and result.value:
                wait_for_index(workflow, result.value)

    Credentials are read once by `set_api_credentials`, which also resolves the environment ID used
    by all later calls.  An access token is requested before every API call.

    Remote failures are logged and reported through the messenger, and never raised.  Instances
    hold per-run state, and aren't safe to share between threads.
    """

    def __init__(self, site: Site, messenger: Messenger, environment_name: Optional[str] = None,
                 session: Optional[RequestsSession] = None, timeout: float = cloud.TIMEOUT):
        self.site = site
        self.messenger = messenger
        self.environment_name = environment_name
        self.session = session or RequestsSession()
        self.timeout = timeout
        self.credentials: Optional[Credentials] = None
        self.environment_id: Optional[str] = None

    def _call(self, method: str, url: str, expect: int, body: Optional[dict] = None) -> Reply:
        if not self.credentials:
            raise RuntimeError("API credentials not set, call set_api_credentials() first")
        return cloud.call(self.session, self.credentials, method, url, expect, body, self.timeout)

    def _report(self, reply: Reply, template: str) -> None:
        if reply.outcome == Outcome.transport_error:
            LOG.error("%s", reply.describe())
        else:
            LOG.warning("%s", reply.describe())
        self.messenger.error(template)

    def set_api_credentials(self, config_id: str) -> bool:
        """
        Load API credentials from the named configuration object, and resolve the environment ID.
        """
        try:
            self.credentials = get_credentials(self.site, config_id)
        except KeyError:
            LOG.warning("No configuration object %r", config_id)
            self.messenger.error("config_missing.j2", {"config_id": config_id,
                                                       "reason": "not found"})
            return False
        except ValueError as ex:
            LOG.warning("Bad configuration object %r: %s", config_id, ex)
            self.messenger.error("config_missing.j2", {"config_id": config_id, "reason": str(ex)})
            return False
        self.environment_id = self.get_environment_id()
        if not self.environment_id:
            self.messenger.error("environment_required.j2")
            return False
        return True

    def find_environment_id(self) -> EnvironmentMatch:
        """
        Look up the current environment by name amongst the application's environments.
        """
        reply = self._call("GET", endpoints.environments(self.credentials.application_id), 200)
        if not reply:
            return EnvironmentMatch(Match.failed, reply=reply)
        try:
            env_id = cloud.get_environment_id(cloud.get_items(reply.payload),
                                              self.environment_name)
        except KeyError:
            return EnvironmentMatch(Match.not_found, reply=reply)
        except ValueError as ex:
            return EnvironmentMatch(Match.failed, reply=Reply.failed(ex))
        LOG.debug("Resolved environment %r: %r", self.environment_name, env_id)
        return EnvironmentMatch(Match.found, env_id, reply)

    def get_environment_id(self) -> Optional[str]:
        """
        Resolve the ID of the current environment, or `None` if it can't be found.
        """
        if not self.environment_name:
            self.messenger.error("environment_name_missing.j2")
            return None
        if not self.credentials or not self.credentials.application_id:
            self.messenger.error("application_missing.j2")
            return None
        result = self.find_environment_id()
        if result.match == Match.found:
            return result.id
        elif result.match == Match.not_found:
            LOG.warning("No environment %r in application %r", self.environment_name,
                        self.credentials.application_id)
            self.messenger.error("environment_not_found.j2",
                                 {"name": self.environment_name,
                                  "application_id": self.credentials.application_id})
        else:
            self._report(result.reply, "environment_failed.j2")
        return None

    @Result.collect_value
    def create_search_index(self, database_name: str) -> Collect[Optional[str]]:
        """
        Create a search index for a database of the current environment, unless one exists.

        The list of indexes is always fetched fresh.  If no index serves the database, local search
        servers are synchronised with the connector before creation is requested.  The result's
        value is the notification URL to poll, if creation was requested.
        """
        env_id = self.environment_id
        if not env_id or not database_name:
            return None
        reply = self._call("GET", endpoints.search_indexes(env_id), 200)
        if not reply:
            self._report(reply, "index_list_failed.j2")
            return None
        try:
            index = cloud.get_index(cloud.get_items(reply.payload), env_id, database_name)
        except KeyError:
            pass
        else:
            LOG.debug("Found search index: %r", index)
            self.messenger.status("index_exists.j2", {"id": index.get("id"),
                                                      "status": index.get("status")})
            return None
        if not self.acquia_search_connector():
            return None
        res_create = yield from self.create_acquia_solr_search_index(env_id, database_name)
        if res_create:
            try:
                yield self.site.flush_caches()
            except OSError:
                LOG.exception("Failed to flush caches for %r", self.site)
        return res_create.value

    def acquia_search_connector(self) -> bool:
        """
        Apply connector settings to every search server, if the connector is available.
        """
        try:
            settings = connector.get_settings(self.site)
        except KeyError as ex:
            LOG.warning("Acquia Connector unavailable, missing %s", ex)
            self.messenger.error("connector_unavailable.j2")
            return False
        try:
            connector.sync_servers(self.site, settings)
        except OSError:
            self.messenger.error("connector_failed.j2")
            return False
        return True

    def create_acquia_solr_search_index(self, env_id: str,
                                        database_name: str) -> Result[Optional[str]]:
        """
        Request creation of a search index, returning the notification URL if accepted.
        """
        if not self.credentials or not self.credentials.config_set_id:
            self.messenger.error("config_set_missing.j2")
            return Result(State.unchanged, None)
        body = cloud.index_metadata(self.credentials.config_set_id, database_name)
        reply = self._call("POST", endpoints.search_indexes(env_id), 202, body)
        if not reply:
            self._report(reply, "index_create_failed.j2")
            return Result(State.unchanged, None)
        payload = reply.payload if isinstance(reply.payload, dict) else {}
        self.messenger.status("index_created.j2", {"message": payload.get("message", "")})
        LOG.debug("Requested search index: %r %r", env_id, database_name)
        return Result(State.created, cloud.get_notification_url(payload))

    def check_solr_index_status(self, notification_url: str) -> bool:
        """
        Test if an index is still being provisioned, according to its notification.

        Completed, failed and unknown states are not distinguished, nor are failures to fetch the
        notification: all of these return `False`.
        """
        reply = self._call("GET", notification_url, 200)
        if not reply:
            self._report(reply, "status_failed.j2")
            return False
        status = reply.payload.get("status") if isinstance(reply.payload, dict) else None
        LOG.debug("Notification status: %r %r", notification_url, status)
        return status == IN_PROGRESS


def wait_for_index(workflow: ProvisioningWorkflow, notification_url: str, interval: float = 10,
                   attempts: int = 60) -> bool:
    """
    Poll a notification until the index is no longer in progress, for up to `attempts` checks.

    Returns `False` if the index was still in progress when giving up.
    """
    for attempt in range(1, attempts + 1):
        if not workflow.check_solr_index_status(notification_url):
            return True
        LOG.debug("Search index in progress, attempt %d of %d", attempt, attempts)
        if attempt < attempts:
            time.sleep(interval)
    return False
