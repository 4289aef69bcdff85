"""
Per-level dispatch context.

A Context is created for the App (root) and for every Command on the matched
path. It carries the display name ("app build"), the flags visible at that level
(own first, then inherited), the positional arguments left after matching, the
parent link, and the terminator used to end the process.

Getters
- get_string / get_bool / get_int* / get_uint* / get_float* / get_string_slice
  read the flag's rendered text and re-parse it with the requested kind. A missing
  flag or text the kind rejects yields the zero value; getters never raise.
"""
import logging
import sys

from rich.text import Text

from .faults import CommandException
from .help import HelpContext, terminal, show_help as _show_help
from .flags import lookup
from .utils import *
from .values import Kind, parse, truth

logger = logging.getLogger(__name__)


class Context:
    """
    Dispatch state for one command level.

    Parameters
    - name: display path of this level ("" for a detached context).
    - app: owning App (None for a detached context).
    - command: matched Command (None at the root).
    - flags: visible flags, own first.
    - args: positional arguments.
    - parent: enclosing Context (None at the root).
    - terminate: callable receiving the exit code; inherited from the parent,
      then from the app, defaulting to sys.exit.
    """

    def __init__(
            self,
            name="",
            /,
            app=None,
            command=None,
            flags=(),
            args=(),
            parent=None,
            *,
            terminate=Unset,
    ):
        if terminate is Unset:
            if parent is not None:
                terminate = parent.terminate
            elif app is not None:
                terminate = app.terminate
            else:
                terminate = sys.exit
        if not callable(terminate):
            raise TypeError("context 'terminate' must be callable")

        self._name = name
        self._app = app
        self._command = command
        self._flags = list(flags)
        self._args = list(args)
        self._parent = parent
        self._terminate = terminate

    name = mirror("name")
    app = mirror("app")
    command = mirror("command")
    flags = mirror("flags")
    args = mirror("args")
    parent = mirror("parent")
    terminate = mirror("terminate")

    @property
    def root(self):
        """
        The outermost context (self when detached or at the root).
        """
        context = self
        while context._parent is not None:
            context = context._parent
        return context

    @property
    def narg(self):
        return len(self._args)

    def arg(self, index, /):
        """
        Positional argument at `index`; IndexError when out of range.
        """
        return self._args[index]

    @property
    def stdout(self):
        if self._app is not None:
            return self._app.stdout
        return terminal()

    @property
    def stderr(self):
        if self._app is not None:
            return self._app.stderr
        return terminal(stderr=True)

    def exit(self, code=0, /):
        """
        Hand the exit code to the terminator.

        The default terminator raises SystemExit; an injected one may return, in
        which case the caller is expected to stop on its own.
        """
        logger.debug("context %r terminating with code %d", self._name, code)
        self._terminate(code)

    def isset(self, name, /):
        """
        True when the named flag was given on the argument line.
        """
        return (flag := lookup(self._flags, name)) is not None and flag.visited

    def _text(self, name):
        if (flag := lookup(self._flags, name)) is None:
            return None
        return flag.get_value()

    def _get(self, kind, name):
        if (text := self._text(name)) is None:
            return kind.zero()
        try:
            return parse(kind, text)
        except (ValueError, OverflowError):
            return kind.zero()

    def get_string(self, name, /):
        return self._text(name) or ""

    def get_bool(self, name, /):
        if (text := self._text(name)) is None:
            return False
        try:
            return truth(text, strict=True)
        except ValueError:
            return False

    def get_int(self, name, /):
        return self._get(Kind.INT, name)

    def get_int8(self, name, /):
        return self._get(Kind.INT8, name)

    def get_int16(self, name, /):
        return self._get(Kind.INT16, name)

    def get_int32(self, name, /):
        return self._get(Kind.INT32, name)

    def get_int64(self, name, /):
        return self._get(Kind.INT64, name)

    def get_uint(self, name, /):
        return self._get(Kind.UINT, name)

    def get_uint8(self, name, /):
        return self._get(Kind.UINT8, name)

    def get_uint16(self, name, /):
        return self._get(Kind.UINT16, name)

    def get_uint32(self, name, /):
        return self._get(Kind.UINT32, name)

    def get_uint64(self, name, /):
        return self._get(Kind.UINT64, name)

    def get_float32(self, name, /):
        return self._get(Kind.FLOAT32, name)

    def get_float64(self, name, /):
        return self._get(Kind.FLOAT64, name)

    def get_string_slice(self, name, /):
        """
        Comma-split rendering of the named flag; [] when missing or empty.
        """
        if not (text := self._text(name)):
            return []
        return text.split(",")

    def helpcontext(self):
        """
        HelpContext for this level (the App's at the root, the Command's below).
        """
        if self._command is not None:
            return HelpContext.command(self._name, self._command)
        if self._app is not None:
            return HelpContext.app(self._name, self._app)
        return HelpContext(self._name, flags=self._flags)

    def show_help(self):
        _show_help(self.helpcontext(), self.stdout)

    def show_help_and_exit(self, code=0, /):
        self.show_help()
        self.exit(code)

    def show_error(self, error, /):
        """
        Print an error and a --help hint to stderr, then terminate with 1.
        """
        logger.debug("context %r reporting %r", self._name, error)
        console = self.stderr
        console.print(error if isinstance(error, CommandException) else Text(str(error)), soft_wrap=True)
        console.print(soft_wrap=True)
        console.print(Text("Run '%s --help' for more information" % self._name), soft_wrap=True)
        self.exit(1)

    def __repr__(self):
        return f"context({self._name!r}, args={self._args!r})"


__all__ = (
    "Context",
)
