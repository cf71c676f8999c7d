"""
Scripts to provision Acquia Search indexes.
"""

from .utils import DocOptArgs, entrypoint, error
from ..tasks.provision import ProvisioningWorkflow, wait_for_index


@entrypoint
def environment(workflow: ProvisioningWorkflow):
    """
    Print the Acquia Cloud ID of the current environment.

    Usage: {script} CONFIG
    """
    print(workflow.environment_id)


@entrypoint
def create(opts: DocOptArgs, workflow: ProvisioningWorkflow):
    """
    Create a search index for a database of the current environment, unless one already exists.

    With --wait, the index's notification is polled every SECS seconds (default 10) until
    provisioning finishes, giving up after N checks (default 60).

    Usage: {script} CONFIG DATABASE [--wait] [--interval=SECS] [--attempts=N]
    """
    try:
        interval = float(opts.get("--interval") or 10)
        attempts = int(opts.get("--attempts") or 60)
    except ValueError:
        error("Interval and attempts must be numbers", exit=1)
    result = workflow.create_search_index(opts["DATABASE"])
    if not result or not result.value:
        return
    url = result.value
    print("Notification: {}".format(url))
    if opts.get("--wait"):
        if wait_for_index(workflow, url, interval, attempts):
            print("Search index provisioning finished")
        else:
            error("Search index still in progress after {} checks".format(attempts), exit=2)


@entrypoint
def status(opts: DocOptArgs, workflow: ProvisioningWorkflow):
    """
    Check whether a search index is still being provisioned.

    Prints `in-progress`, or `done` once the notification reports any other status.

    Usage: {script} CONFIG URL
    """
    if workflow.check_solr_index_status(opts["URL"]):
        print("in-progress")
    else:
        print("done")
