"""
Fixed addresses of the Acquia services used for search index provisioning.
"""

API = "https://cloud.acquia.com/api"
"""
Base URL of the Acquia Cloud API.
"""

TOKEN = "https://accounts.acquia.com/api/auth/oauth/token"
"""
OAuth2 token endpoint, used with the client credentials grant.
"""

SEARCH_API_HOST = "https://api.sr-prod02.acquia.com"
"""
Default Acquia Search API host, when the site doesn't configure one.
"""


def environments(application_id: str) -> str:
    """
    Collection of environments belonging to an application.
    """
    return "{}/applications/{}/environments".format(API, application_id)


def search_indexes(environment_id: str) -> str:
    """
    Collection of search indexes belonging to an environment.
    """
    return "{}/environments/{}/search/indexes".format(API, environment_id)
