import os
import os.path
import tempfile
import unittest
from unittest.mock import Mock, patch

from solrindexlib.plumbing import common, connector, endpoints
from solrindexlib.plumbing.common import Secret, State
from solrindexlib.plumbing.site import get_credentials, SearchServer, Site

from .utils import make_site, SITE


class TestSite(unittest.TestCase):

    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()
        self.site = make_site(self.tempdir.name)

    def tearDown(self):
        self.tempdir.cleanup()

    def test_load_missing(self):
        with self.assertRaises(FileNotFoundError):
            Site.load(os.path.join(self.tempdir.name, "missing.ini"))

    def test_config_case(self):
        self.assertEqual(self.site.get_config("search_acsf.settings")["clientId"], "client")

    def test_config_missing(self):
        with self.assertRaises(KeyError):
            self.site.get_config("missing.settings")

    def test_module_exists(self):
        self.assertTrue(self.site.module_exists("acquia_connector"))
        self.assertFalse(self.site.module_exists("acquia_search"))

    def test_state(self):
        self.assertEqual(self.site.get_state("acquia_subscription_data"),
                         {"uuid": "subscription-1"})

    def test_state_missing(self):
        with self.assertRaises(KeyError):
            self.site.get_state("missing")

    def test_servers(self):
        names = [server.name for server in self.site.get_servers()]
        self.assertEqual(names, ["default", "backup"])

    def test_save_server(self):
        result = self.site.save_server(SearchServer("default", {"backend": "other"}))
        self.assertEqual(result.state, State.success)
        reloaded = Site.load(self.site.path)
        self.assertEqual(reloaded.get_servers()[0].settings, {"backend": "other"})

    def test_save_server_unchanged(self):
        result = self.site.save_server(SearchServer("default", {"backend": "search_api_solr"}))
        self.assertEqual(result.state, State.unchanged)

    def test_save_server_new(self):
        self.site.save_server(SearchServer("extra", {"backend": "search_api_solr"}))
        reloaded = Site.load(self.site.path)
        self.assertEqual(len(reloaded.get_servers()), 3)

    @patch("{}.LOG".format(common.__spec__.name))
    @patch("os.replace", side_effect=PermissionError("read-only"))
    def test_save_server_write_failed(self, replace: Mock, log: Mock):
        with self.assertRaises(PermissionError):
            self.site.save_server(SearchServer("default", {"backend": "other"}))
        with self.assertRaises(PermissionError):
            self.site.save_server(SearchServer("extra", {"backend": "other"}))
        self.assertEqual(os.listdir(self.tempdir.name), ["site.ini"])
        self.assertEqual(self.site.get_servers(), Site.load(self.site.path).get_servers())
        self.assertEqual(self.site.get_servers()[0].settings, {"backend": "search_api_solr"})
        self.assertEqual(log.exception.call_count, 2)

    def test_flush_caches(self):
        cache = os.path.join(self.tempdir.name, "cache")
        os.makedirs(os.path.join(cache, "render"))
        with open(os.path.join(cache, "page"), "w"):
            pass
        site = make_site(self.tempdir.name, SITE + "\n[cache]\npath = {}\n".format(cache))
        self.assertEqual(site.flush_caches().state, State.success)
        self.assertEqual(os.listdir(cache), [])
        self.assertEqual(site.flush_caches().state, State.unchanged)

    def test_flush_caches_unconfigured(self):
        self.assertEqual(self.site.flush_caches().state, State.unchanged)


class TestCredentials(unittest.TestCase):

    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tempdir.cleanup()

    def test_credentials(self):
        site = make_site(self.tempdir.name)
        credentials = get_credentials(site, "search_acsf.settings")
        self.assertEqual(credentials.client_id, "client")
        self.assertEqual(credentials.client_secret, Secret("secret"))
        self.assertEqual(credentials.application_id, "app-1")
        self.assertEqual(credentials.config_set_id, "config-set-1")
        self.assertNotIn("'secret'", repr(credentials))

    def test_credentials_optional(self):
        site = make_site(self.tempdir.name, "[api]\nclientId = client\nclientSecret = secret\n")
        credentials = get_credentials(site, "api")
        self.assertIsNone(credentials.application_id)
        self.assertIsNone(credentials.config_set_id)

    def test_credentials_missing(self):
        site = make_site(self.tempdir.name)
        with self.assertRaises(KeyError):
            get_credentials(site, "missing.settings")

    def test_credentials_no_secret(self):
        site = make_site(self.tempdir.name, "[api]\nclientId = client\n")
        with self.assertRaises(ValueError):
            get_credentials(site, "api")


class TestConnector(unittest.TestCase):

    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tempdir.cleanup()

    def test_settings(self):
        settings = connector.get_settings(make_site(self.tempdir.name))
        self.assertEqual(settings.api_host, "https://search.example.com")
        self.assertEqual(str(settings.api_key), "connector-key")
        self.assertEqual(settings.identifier, "ABCD-12345")
        self.assertEqual(settings.uuid, "subscription-1")

    def test_settings_default_host(self):
        content = SITE.replace("api_host = https://search.example.com", "")
        settings = connector.get_settings(make_site(self.tempdir.name, content))
        self.assertEqual(settings.api_host, endpoints.SEARCH_API_HOST)

    def test_settings_disabled(self):
        content = SITE.replace("acquia_connector = yes", "acquia_connector = no")
        with self.assertRaises(KeyError):
            connector.get_settings(make_site(self.tempdir.name, content))

    def test_settings_no_subscription(self):
        content = SITE.replace("uuid = subscription-1", "")
        with self.assertRaises(KeyError):
            connector.get_settings(make_site(self.tempdir.name, content))

    def test_sync(self):
        site = make_site(self.tempdir.name)
        result = connector.sync_servers(site, connector.get_settings(site))
        self.assertEqual(result.state, State.success)
        self.assertEqual(result.value, 2)
        for server in Site.load(site.path).get_servers():
            self.assertEqual(server.settings, {"backend": "search_api_solr",
                                               "api_host": "https://search.example.com",
                                               "api_key": "connector-key",
                                               "identifier": "ABCD-12345",
                                               "uuid": "subscription-1"})

    def test_sync_unchanged(self):
        site = make_site(self.tempdir.name)
        settings = connector.get_settings(site)
        connector.sync_servers(site, settings)
        result = connector.sync_servers(site, settings)
        self.assertEqual(result.state, State.unchanged)
        self.assertEqual(result.value, 2)


if __name__ == "__main__":
    unittest.main()
