"""
User-facing notification machinery, for tasks to report progress and failures.

Message templates placed inside the `templates` directory of this module render to a single line;
any whitespace in the output is collapsed.  Details of failures belong in the log, not in messages.
"""

from enum import Enum
import logging
import os.path
import sys
from typing import Any, List, Mapping, NamedTuple, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..plumbing.common import Result, State


LOG = logging.getLogger(__name__)

ENV = Environment(loader=FileSystemLoader(os.path.join(os.path.dirname(__file__), "templates")),
                  trim_blocks=True, lstrip_blocks=True, undefined=StrictUndefined)


class Level(Enum):
    """
    Severity of a message shown to the user.
    """

    status = 1
    """
    Progress or confirmation of an action.
    """
    error = 2
    """
    An action couldn't be completed.
    """


class Message(NamedTuple):
    level: Level
    text: str


class Messenger:
    """
    Collector of messages for the user, which displays each one as it's added.
    """

    def __init__(self):
        self.messages: List[Message] = []

    def render(self, template: str, context: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render a message template with Jinja using the provided context.
        """
        out = ENV.get_template(template).render(dict(context or ()))
        return " ".join(out.split())

    def add(self, level: Level, template: str,
            context: Optional[Mapping[str, Any]] = None) -> Result[Message]:
        """
        Render a message, record it, and show it to the user.
        """
        message = Message(level, self.render(template, context))
        self.messages.append(message)
        LOG.debug("Adding %s message %r: %r", level.name, template, message.text)
        self.display(message)
        return Result(State.success, message)

    def status(self, template: str, context: Optional[Mapping[str, Any]] = None) -> Result[Message]:
        return self.add(Level.status, template, context)

    def error(self, template: str, context: Optional[Mapping[str, Any]] = None) -> Result[Message]:
        return self.add(Level.error, template, context)

    def display(self, message: Message) -> None:
        """
        Print a message: statuses to standard output, errors in red to standard error.
        """
        if message.level == Level.error:
            print("\033[91m{}\033[0m".format(message.text), file=sys.stderr)
        else:
            print(message.text)

    def texts(self, level: Optional[Level] = None) -> List[str]:
        """
        Text of all recorded messages, optionally only those of a given level.
        """
        return [msg.text for msg in self.messages if level is None or msg.level == level]


class SuppressMessages(Messenger):
    """
    Messenger that records messages, but doesn't show them to the user.
    """

    def display(self, message: Message) -> None:
        LOG.debug("Suppressing %s message: %r", message.level.name, message.text)
