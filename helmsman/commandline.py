"""
Helmsman argument-line matcher.

One Commandline instance matches one command level: it consumes tokens, assigns
flag values, and either stops at the first token naming a child command or
collects positional arguments.

Token grammar
- "--"               : every remaining token is positional, verbatim.
- "--name=value"     : inline long value (value may be empty).
- "--name value"     : spaced long value.
- "--name"           : boolean or no-argument-default flag; never consumes a token.
- "-x", "-x=v", "-xv", "-x v"
                     : short forms; glued text after the character is the value.
- "-"                : positional.
- anything else      : a child command while command matching is still open,
                       positional otherwise (and command matching closes).

Once a child command matches, the rest of the line is left untouched in `args`
for the child level to parse.
"""
import collections
import difflib
import logging

from .faults import *
from .flags import lookup
from .utils import Unset

logger = logging.getLogger(__name__)


def _lookup_command(commands, name):
    for command in commands:
        if name in command.names:
            return command
    return None


class Commandline:
    """
    Single-level matcher over a flag set and an optional child command set.

    Attributes after parse()
    - command: the matched child command, or None.
    - args: positional arguments, or the unparsed remainder when a command matched.

    Raises from parse()
    - UnrecognizedOptionError for a flag token naming no registered flag.
    - MissingValueError for a value-taking flag with nothing left to take.
    - InvalidValueError for a value the flag's kind rejects.
    """

    def __init__(self, flags=(), commands=()):
        self.flags = list(flags)
        self.commands = list(commands)
        self.command = None
        self.args = []

    def parse(self, tokens, /):
        tokens = collections.deque(tokens)
        searching = bool(self.commands)

        while tokens:
            token = tokens.popleft()

            if token == "--":
                self.args.extend(tokens)
                break

            if token.startswith("--"):
                self._parse_long(token, tokens)
            elif token.startswith("-") and len(token) > 1:
                self._parse_short(token, tokens)
            elif searching and (command := _lookup_command(self.commands, token)) is not None:
                logger.debug("token %r matched command %r", token, command.name)
                self.command = command
                self.args.extend(tokens)
                break
            else:
                searching = False
                self.args.append(token)

        return self

    def _unrecognized(self, token, name, prefix):
        suggestions = difflib.get_close_matches(
            name,
            [name for flag in self.flags for name in flag.names if (len(name) == 1) == (prefix == "-")],
            3,
        )
        return UnrecognizedOptionError(
            "unrecognized option '%s'" % token,
            token=token,
            suggestions=[prefix + suggestion for suggestion in suggestions],
        )

    def _parse_long(self, token, tokens):
        name, separator, value = token[2:].partition("=")
        if not name or (flag := lookup(self.flags, name)) is None:
            raise self._unrecognized(token, name, "--")

        display = "--" + name
        if separator:
            self._assign(flag, display, value)
        elif flag.noarg is not Unset:
            self._assign(flag, display, flag.noarg)
        elif tokens:
            self._assign(flag, display, tokens.popleft())
        else:
            raise MissingValueError("flag needs an argument: '%s'" % display, token=token, flag=flag)

    def _parse_short(self, token, tokens):
        name, rest = token[1], token[2:]
        if (flag := lookup(self.flags, name)) is None:
            raise self._unrecognized(token, name, "-")

        display = "-" + name
        if rest.startswith("="):
            self._assign(flag, display, rest[1:])
        elif rest:
            self._assign(flag, display, rest)
        elif flag.noarg is not Unset:
            self._assign(flag, display, flag.noarg)
        elif tokens:
            self._assign(flag, display, tokens.popleft())
        else:
            raise MissingValueError("flag needs an argument: '%s'" % display, token=token, flag=flag)

    @staticmethod
    def _assign(flag, display, text):
        try:
            flag.set_value(text)
        except InvalidValueError as error:
            raise InvalidValueError(
                "invalid argument %r for '%s' flag: %s" % (text, display, error),
                flag=flag,
                literal=text,
                kind=error.options.get("kind"),
            ) from error
        logger.debug("flag %r set from %r", flag.name, text)


__all__ = (
    "Commandline",
)
