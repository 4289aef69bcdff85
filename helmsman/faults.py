"""
Helmsman faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing error.
  Codes are grouped by domain to keep copy consistent and logs searchable.
- CommandException: base type that carries a message + options and knows how to
  render itself through rich.
- The concrete faults raised by the value system, the matcher and the dispatcher.

Taxonomy
- matching (1110x)
  • UnrecognizedOptionError: a flag token naming no registered flag.
  • MissingValueError: a value-taking flag at the end of the argument line.
- values (1111x)
  • InvalidValueError: a literal rejected by a kind's grammar.
- actions (1112x)
  • ActionPanicError: report wrapper for a failure escaping a user action.

Command-not-found is deliberately absent: the dispatcher leaves the command
unmatched and optionally calls a user hook instead of failing.

Integration
- The matcher raises; the dispatcher catches and hands the fault to
  Context.show_error, which prints it on the error console and terminates.
- Styles can be overridden by the host application through a __styles__
  mapping in __main__.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping
    - matching (1110x): UNRECOGNIZED_OPTION, MISSING_VALUE
    - values   (1111x): INVALID_VALUE
    - actions  (1112x): ACTION_PANIC

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- matching errors (111xx) ---
    UNRECOGNIZED_OPTION = 11101
    MISSING_VALUE       = 11102

    # --- value errors (111xx) ---
    INVALID_VALUE       = 11111

    # --- action errors (111xx) ---
    ACTION_PANIC        = 11121


def _styles():
    return defaultdict(str, {
        "error-message": "bold #FF4DA6",  # friendly pinky message
        "fatal-label": "bold red",  # "fatal:" prefix on contained action failures
        "hint": "italic #9CE19C",  # gentle green hint text
    } | getattr(__import__("__main__"), "__styles__", {}))


class CommandException(Exception):
    """
    Base class for every fault raised while matching or dispatching.

    Options are free-form context kept read-only (token, literal, kind, flag, ...);
    renderers and tests may read them, the library never mutates them.
    """
    code = Unset

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return Text(self.message, _styles()["error-message"])


class UnrecognizedOptionError(CommandException):
    code = FaultCode.UNRECOGNIZED_OPTION


class MissingValueError(CommandException):
    code = FaultCode.MISSING_VALUE


class InvalidValueError(CommandException):
    code = FaultCode.INVALID_VALUE


class ActionPanicError(CommandException):
    """
    Fatal report for a failure that escaped a user action.

    The original exception is kept under options["cause"] (and __cause__ when
    raised); rendering prefixes the message with "fatal: ".
    """
    code = FaultCode.ACTION_PANIC

    @classmethod
    def capture(cls, exception, /):
        if isinstance(exception, cls):
            return exception
        self = cls(str(exception) or type(exception).__name__, cause=exception)
        self.__cause__ = exception
        return self

    def __rich__(self):
        styles = _styles()
        return Text.assemble(("fatal: ", styles["fatal-label"]), (self.message, styles["error-message"]))


__all__ = (
    "FaultCode",
    "CommandException",
    "UnrecognizedOptionError",
    "MissingValueError",
    "InvalidValueError",
    "ActionPanicError",
)
