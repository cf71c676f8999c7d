"""
Local site configuration, state and search server entities, stored in a single INI file.

Sections of the site file fall into a few groups:

- plain configuration objects, looked up by name (e.g. `[search_acsf.settings]`)
- `[modules]`, a map of module names to whether they are enabled
- `[state:<key>]`, values cached locally by other integrations
- `[search_api_server:<name>]`, one per registered search server
- `[cache]`, with the `path` of a directory holding disposable caches
"""

from configparser import ConfigParser
import logging
import os
import os.path
import shutil
from typing import Dict, List, Mapping, NamedTuple, Optional

from .cloud import Credentials
from .common import log_errors, Result, Secret, State


LOG = logging.getLogger(__name__)

STATE_PREFIX = "state:"

SERVER_PREFIX = "search_api_server:"


class SearchServer(NamedTuple):
    """
    Search server configuration entity registered with the site.
    """

    name: str
    settings: Dict[str, str]


class Site:
    """
    Wrapper around a site file, providing access to configuration and local entities.
    """

    def __init__(self, path: str, parser: Optional[ConfigParser] = None):
        self.path = path
        if parser is None:
            parser = ConfigParser(interpolation=None)
            # Keep option names like `clientId` case-sensitive.
            parser.optionxform = str
        self._parser = parser

    @classmethod
    def load(cls, path: str) -> "Site":
        """
        Read an existing site file.
        """
        site = cls(path)
        with open(path) as f:
            site._parser.read_file(f)
        LOG.debug("Loaded site file: %r", path)
        return site

    def __repr__(self):
        return "<{}: {!r}>".format(self.__class__.__name__, self.path)

    def get_config(self, name: str) -> Mapping[str, str]:
        """
        Fetch a configuration object by name.
        """
        if not self._parser.has_section(name):
            raise KeyError(name)
        return self._parser[name]

    def module_exists(self, name: str) -> bool:
        """
        Test if a module is installed and enabled for this site.
        """
        return self._parser.getboolean("modules", name, fallback=False)

    def get_state(self, key: str) -> Dict[str, str]:
        """
        Fetch a locally cached state value.
        """
        section = STATE_PREFIX + key
        if not self._parser.has_section(section):
            raise KeyError(key)
        return dict(self._parser[section])

    def get_servers(self) -> List[SearchServer]:
        """
        Load all registered search servers.
        """
        return [SearchServer(section[len(SERVER_PREFIX):], dict(self._parser[section]))
                for section in self._parser.sections() if section.startswith(SERVER_PREFIX)]

    def save_server(self, server: SearchServer) -> Result[SearchServer]:
        """
        Persist a search server's settings, if they differ from those stored.
        """
        section = SERVER_PREFIX + server.name
        if self._parser.has_section(section) and dict(self._parser[section]) == server.settings:
            return Result(State.unchanged, server)
        previous = dict(self._parser[section]) if self._parser.has_section(section) else None
        self._parser[section] = server.settings
        try:
            self.write()
        except OSError:
            # Keep the loaded configuration in line with the file.
            if previous is None:
                self._parser.remove_section(section)
            else:
                self._parser[section] = previous
            raise
        LOG.debug("Saved search server: %r", server.name)
        return Result(State.success, server)

    @log_errors("Failed to write site file")
    def write(self) -> None:
        """
        Write the current configuration back to the site file.
        """
        tmp = "{}.tmp".format(self.path)
        try:
            with open(tmp, "w") as f:
                self._parser.write(f)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def flush_caches(self) -> Result[None]:
        """
        Empty the site's cache directory, if one is configured.
        """
        path = self._parser.get("cache", "path", fallback=None)
        if not path or not os.path.isdir(path):
            return Result(State.unchanged)
        entries = os.listdir(path)
        if not entries:
            return Result(State.unchanged)
        for entry in entries:
            target = os.path.join(path, entry)
            if os.path.isdir(target) and not os.path.islink(target):
                shutil.rmtree(target)
            else:
                os.unlink(target)
        LOG.debug("Flushed caches: %r", path)
        return Result(State.success)


def get_credentials(site: Site, config_id: str) -> Credentials:
    """
    Read API credentials from a configuration object of the site.

    Missing application and config set identifiers are tolerated here, and left to the callers that
    need them.
    """
    config = site.get_config(config_id)
    client_id = config.get("clientId")
    client_secret = config.get("clientSecret")
    if not client_id or not client_secret:
        raise ValueError("Client ID and secret must be set in {!r}".format(config_id))
    return Credentials(client_id, Secret(client_secret),
                       config.get("application_id") or None,
                       config.get("config_set_id") or None)
