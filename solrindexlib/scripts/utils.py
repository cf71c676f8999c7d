"""
Helpers for converting methods into scripts, and filling in arguments with site objects.
"""

from configparser import Error as ConfigError
from functools import wraps
from inspect import cleandoc, signature
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Union

from docopt import docopt

from ..messages import Level, Messenger, SuppressMessages
from ..plumbing.site import Site
from ..tasks.provision import ProvisioningWorkflow


DocOptArgs = Dict[str, Union[bool, str, List[str]]]


ENTRYPOINTS: List[str] = []

DEFAULT_SITE = "/etc/solrindex/site.ini"
"""
Site file used when neither `--site` nor `$SOLRINDEX_SITE` is given.
"""


def entrypoint(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator to make an entrypoint out of a generic function.

    This uses `docopt` to parse arguments according to the method docstring, and will be formatted
    with `{script}` set to the script name.  At minimum, it should contain `Usage: {script}`.

    Functions may optionally accept arguments, but they must be annotated with a recognised type in
    order to be filled in:

    - `DocOptArgs` (a `dict` of input parameters parsed from the usage line)
    - `Messenger` (collects user-facing messages, silent with `--quiet`)
    - `Site` (loaded from `--site`, `$SOLRINDEX_SITE`, or the default site file)
    - `ProvisioningWorkflow` (authenticated using the configuration object named by the `CONFIG`
      parameter, for the environment named by `--env` or `$AH_SITE_ENVIRONMENT`)

    If any error messages were added by the time the function returns, the script exits with status
    1.  An example function:

        @entrypoint
        def create(opts: DocOptArgs, workflow: ProvisioningWorkflow):
            \"""
            Create a search index.

            Usage: {script} CONFIG DATABASE
            \"""
    """
    label = "solrindexlib-{}-{}".format(fn.__module__.rsplit(".", 1)[-1],
                                        fn.__qualname__).replace("_", "-")

    @wraps(fn)
    def wrap(opts: Optional[DocOptArgs] = None):
        extra: Dict[str, Any] = {}
        script = "{} [--debug] [--quiet] [--site=FILE] [--env=NAME]".format(label)
        if opts is None:
            doc = cleandoc(fn.__doc__.format(script=script))
            opts = docopt(doc)
        if opts.pop("--debug", False):
            logging.basicConfig(level=logging.DEBUG)
        if opts.pop("--quiet", False):
            messenger = SuppressMessages()
        else:
            messenger = Messenger()
        site_path = opts.pop("--site", None) or os.getenv("SOLRINDEX_SITE") or DEFAULT_SITE
        env_name = opts.pop("--env", None) or os.getenv("AH_SITE_ENVIRONMENT")
        site: Optional[Site] = None
        # Detect resolvable-typed arguments and fill in their values.
        sig = signature(fn)
        for param in sig.parameters.values():
            name = param.name
            cls = param.annotation
            if cls is DocOptArgs:
                extra[name] = opts
            elif cls is Messenger:
                extra[name] = messenger
            elif cls is Site:
                site = site or load_site(site_path)
                extra[name] = site
            elif cls is ProvisioningWorkflow:
                site = site or load_site(site_path)
                try:
                    config = opts["CONFIG"]
                except KeyError:
                    raise RuntimeError("Missing argument 'CONFIG' for {!r}".format(name))
                workflow = ProvisioningWorkflow(site, messenger, env_name)
                if not workflow.set_api_credentials(config):
                    sys.exit(1)
                extra[name] = workflow
            else:
                raise RuntimeError("Bad parameter {!r} type {!r}".format(name, cls))
        value = fn(**extra)
        if messenger.texts(Level.error):
            sys.exit(1)
        return value
    wrap.__doc__ = wrap.__doc__.format(script=label)
    # Create a console script line for setup.
    target = "{}:{}".format(fn.__module__, fn.__qualname__)
    ENTRYPOINTS.append("{}={}".format(label, target))
    return wrap


def load_site(path: str) -> Site:
    """
    Read the site file, or exit with an error if it's missing or invalid.
    """
    try:
        return Site.load(path)
    except (OSError, ConfigError) as ex:
        error("Can't read site file {!r}: {}".format(path, ex), exit=1)


def error(msg: Optional[str] = None, *, exit: Optional[int] = None, colour: Optional[str] = None):
    """
    Print an error message and/or exit.
    """
    if msg:
        colour = colour or ("1" if exit else "3")
        print("\033[9{}m{}\033[0m".format(colour, msg), file=sys.stderr)
    if exit is not None:
        sys.exit(exit)
