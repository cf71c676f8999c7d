import code
import logging

from solrindexlib import messages, plumbing as p
from solrindexlib.plumbing import cloud, connector, endpoints
from solrindexlib.plumbing.common import *
from solrindexlib.plumbing.site import get_credentials, Site
from solrindexlib.tasks.provision import ProvisioningWorkflow, wait_for_index


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    code.interact(local=globals())
