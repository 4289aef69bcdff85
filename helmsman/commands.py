"""
Helmsman command tree and dispatcher.

Overview
- Command: a named node holding flags, child commands and an optional action.
- App: the root Command plus version/author/build metadata, the global action
  failure hook, the terminator and the output consoles.
- command(name, ...): decorator turning a function into a standalone Command.

Dispatch (one level)
1. initialize the level's own flags, then match the incoming tokens;
   a matching fault is reported through Context.show_error (stderr, exit 1).
2. build the level's Context (display path, own + inherited flags, leftover args).
3. --help shows help and exits 0 (--version too, on the App).
4. a matched child runs with this Context as its parent.
5. leftover args under a node with children go to on_command_not_found when set
   (nothing else runs); otherwise control falls through to the action.
6. the action runs contained: any Exception it raises is passed to the App's
   on_action_panic hook (or printed as "fatal: ..." on stderr), then the
   terminator receives 1. Without an action, help is shown and the exit code is 0.

Quick example
    >>> app = App("demo", version="1.0.0", flags=[Flag("v, verbose", bool)])
    >>> @app.command("build", usage="build project")
    ... def build(ctx):
    ...     print("verbose" if ctx.get_bool("verbose") else "quiet", ctx.args)
    >>> app.run(["demo", "-v", "build", "x"])     # doctest: +SKIP
"""
import functools
import logging
import operator
import os
import re
import shlex
import sys
from collections.abc import Iterable

from .buildinfo import BuildInfo, parse as parse_buildinfo
from .commandline import Commandline
from .context import Context
from .faults import *
from .flags import Flag, lookup
from .help import show_version, terminal
from .utils import *
from .values import Cell

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass exposing declared command fields as read-only properties.

    - names listed in __introspectable__ become mirror() properties unless the
      class body defines them itself.
    - __displayable__ (if set) narrows the fields shown by __rich_repr__.
    - __typename__ is the hyphenated lowercase class name, used in messages.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ()) if name not in namespace
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, text):
    if not isinstance(text, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    if not (names := splitnames(text)):
        raise ValueError(f"{cls.__typename__} must specify at least one name")
    if len(set(names)) != len(names):
        raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
    for name in names:
        if name.startswith("-") or re.search(r"\s", name):
            raise ValueError(f"{cls.__typename__} name {name!r} is not a valid command name")
    return names


def _sanitize_strings(cls, metadata):
    for field, value in metadata.items():
        if not isinstance(value, str | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        metadata[field] = coalesce(value, "")
    return metadata


def _sanitize_callback(cls, field, callback):
    if callback is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} {field!r} must be callable")
    return callback


def _sanitize_flags(cls, flags):
    if isinstance(flags, Flag) or not isinstance(flags, Iterable):
        raise TypeError(f"{cls.__typename__} 'flags' must be an iterable of flags")
    seen = {}
    for flag in (flags := list(flags)):
        if not isinstance(flag, Flag):
            raise TypeError(f"{cls.__typename__} 'flags' must be an iterable of flags")
        for name in flag.names:
            if seen.setdefault(name, flag) is not flag:
                raise ValueError(f"{cls.__typename__} flag name {name!r} is already in use")
    return flags


def _union(own, inherited):
    return [*own, *(flag for flag in inherited if flag not in own)]


def _invoke(action, context):
    """
    Run an action, containing any Exception it raises.
    """
    try:
        action(context)
    except Exception as error:
        logger.debug("action of %r failed", context.name, exc_info=True)
        if (app := context.app) is not None and app.on_action_panic is not Unset:
            app.on_action_panic(context, error)
        else:
            context.stderr.print(ActionPanicError.capture(error), soft_wrap=True)
        context.exit(1)


def _dispatch(node, context, line):
    if node._helper is not Unset and node._helper.visited:
        context.show_help_and_exit(0)
        return

    if line.command is not None:
        logger.debug("%r dispatching to %r", context.name, line.command.name)
        line.command.run(context)
        return

    if node._commands and context.narg and node._on_command_not_found is not Unset:
        logger.debug("%r has no command named %r", context.name, context.arg(0))
        node._on_command_not_found(context, context.arg(0))
        return

    if node._action is Unset:
        context.show_help_and_exit(0)
        return

    _invoke(node._action, context)


class Command(metaclass=CommandType):
    """
    Named node of the command tree.

    Parameters
    - name: str
      Comma-separated aliases ("b, build"); the first one is the display name.
    - usage: one-line summary shown next to the name.
    - usagetext: custom usage lines (newline separated); generated when empty.
    - description, examples, seealso: free help text (examples/seealso one per line).
    - flags: Iterable[Flag]
      Flags parsed at this level. A "--help" flag is added unless one is declared.
    - commands: Iterable[Command]
      Child commands, matched by exact name or alias.
    - action: Callable[[Context], Any]
      Called with the level's Context when this node is the end of the path.
    - on_command_not_found: Callable[[Context, str], Any]
      Called with the first leftover token when children exist and none matched.
    - hidden: bool
      Suppress from the parent's help.
    """

    __introspectable__ = (
        "name",
        "names",
        "usage",
        "usagetext",
        "description",
        "examples",
        "seealso",
        "flags",
        "commands",
        "action",
        "on_command_not_found",
        "hidden",
    )

    __displayable__ = (
        "name",
        "usage",
        "flags",
        "commands",
    )

    def __init__(
            self,
            name,
            /,
            usage=Unset,
            usagetext=Unset,
            description=Unset,
            examples=Unset,
            seealso=Unset,
            flags=(),
            commands=(),
            action=Unset,
            *,
            on_command_not_found=Unset,
            hidden=False,
    ):
        cls = type(self)
        self._names = _sanitize_names(cls, name)
        self._name = self._names[0]

        for field, value in _sanitize_strings(cls, {
            "usage": usage,
            "usagetext": usagetext,
            "description": description,
            "examples": examples,
            "seealso": seealso,
        }).items():
            setattr(self, "_" + field, value)

        self._flags = _sanitize_flags(cls, flags)
        self._helper = Unset
        if lookup(self._flags, "help") is None:
            self._helper = Flag("help", Cell(bool), usage="print this usage")
            self._flags.append(self._helper)

        self._commands = []
        if isinstance(commands, Command) or not isinstance(commands, Iterable):
            raise TypeError(f"{cls.__typename__} 'commands' must be an iterable of commands")
        for command in commands:
            self.attach(command)

        self._action = _sanitize_callback(cls, "action", action)
        self._on_command_not_found = _sanitize_callback(cls, "on_command_not_found", on_command_not_found)
        self._hidden = bool(hidden)

    def attach(self, command, /):
        """
        Add a child command, enforcing unique names among siblings.

        Returns the child, so it can be used inline.
        """
        if not isinstance(command, Command) or isinstance(command, App):
            raise TypeError(f"{type(self).__typename__} children must be commands")
        for name in command.names:
            if any(name in sibling.names for sibling in self._commands):
                raise ValueError(f"{type(self).__typename__} command name {name!r} is already in use")
        self._commands.append(command)
        return command

    def command(self, name, /, *args, **kwargs):
        """
        Decorator creating a child command from an action.

            @app.command("b, build", usage="build project")
            def build(ctx): ...

        The decorated name is bound to the new Command.
        """
        @rename("command")
        def wrapper(action, /):
            return self.attach(command(name, *args, **kwargs)(action))

        return wrapper

    def notfound(self, callback, /):
        """
        Register the command-not-found hook (decorator-friendly, set once).
        """
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} command-not-found hook must be callable")
        if self._on_command_not_found is not Unset:
            raise TypeError(f"{type(self).__typename__} command-not-found hook cannot be overridden")
        self._on_command_not_found = callback
        return callback

    def run(self, parent, /):
        """
        Match parent.args at this level and dispatch.

        parent.args holds the tokens after this command's name; the Context built
        here becomes the parent of whatever runs next.
        """
        if not isinstance(parent, Context):
            raise TypeError(f"{type(self).__typename__}.run() argument must be a context")

        line = Commandline(self._flags, self._commands)
        failure = None
        try:
            for flag in self._flags:
                flag.initialize()
            line.parse(parent.args)
        except CommandException as error:
            failure = error

        context = Context(
            " ".join(filter(None, (parent.name, self._name))),
            app=parent.app,
            command=self,
            flags=_union(self._flags, parent.flags),
            args=line.args,
            parent=parent,
        )
        if failure is not None:
            context.show_error(failure)
            return
        _dispatch(self, context, line)


class App(Command):
    """
    Root of a command tree.

    Parameters (in addition to Command's)
    - name: defaults to the basename of the program path (argv[0]).
    - version: enables the "--version" flag and the VERSION help section.
    - authors: newline separated author lines.
    - buildinfo: BuildInfo or a build-info line ("time:... branch:... commit:...").
    - on_action_panic: Callable[[Context, Exception], Any]
      Receives any Exception escaping an action, at any depth.
    - terminate: Callable[[int], Any]
      Receives exit codes; sys.exit by default.
    - stdout, stderr: rich consoles for help/version and errors.
    """

    __introspectable__ = Command.__introspectable__ + (
        "version",
        "authors",
        "buildinfo",
        "on_action_panic",
        "terminate",
    )

    __displayable__ = (
        "name",
        "version",
        "usage",
        "flags",
        "commands",
    )

    def __init__(
            self,
            name=Unset,
            /,
            usage=Unset,
            usagetext=Unset,
            description=Unset,
            examples=Unset,
            seealso=Unset,
            flags=(),
            commands=(),
            action=Unset,
            *,
            version=Unset,
            authors=Unset,
            buildinfo=Unset,
            on_command_not_found=Unset,
            on_action_panic=Unset,
            hidden=False,
            terminate=sys.exit,
            stdout=Unset,
            stderr=Unset,
    ):
        super().__init__(
            coalesce(name, "app"),
            usage,
            usagetext,
            description,
            examples,
            seealso,
            flags,
            commands,
            action,
            on_command_not_found=on_command_not_found,
            hidden=hidden,
        )
        cls = type(self)
        if name is Unset:
            self._names = ()
            self._name = Unset

        metadata = _sanitize_strings(cls, {"version": version, "authors": authors})
        self._version = metadata["version"]
        self._authors = metadata["authors"]

        if isinstance(buildinfo, str):
            buildinfo = parse_buildinfo(buildinfo)
        elif not isinstance(buildinfo, BuildInfo | Unset):
            raise TypeError(f"{cls.__typename__} 'buildinfo' must be a build-info line or a BuildInfo")
        self._buildinfo = coalesce(buildinfo, BuildInfo())

        self._on_action_panic = _sanitize_callback(cls, "on_action_panic", on_action_panic)
        if not callable(terminate):
            raise TypeError(f"{cls.__typename__} 'terminate' must be callable")
        self._terminate = terminate
        self._stdout = terminal() if stdout is Unset else stdout
        self._stderr = terminal(stderr=True) if stderr is Unset else stderr

        self._versioner = Unset
        if self._version and lookup(self._flags, "version") is None:
            self._versioner = Flag("version", Cell(bool), usage="print version information")
            self._flags.append(self._versioner)

    @property
    def name(self):
        """
        Declared name, or the basename of the running program.
        """
        return coalesce(self._name, os.path.basename(sys.argv[0]))

    @property
    def names(self):
        return self._names or (self.name,)

    @property
    def buildinfo(self):
        return self._buildinfo

    @property
    def stdout(self):
        return self._stdout

    @property
    def stderr(self):
        return self._stderr

    def recover(self, callback, /):
        """
        Register the action failure hook (decorator-friendly, set once).
        """
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} action failure hook must be callable")
        if self._on_action_panic is not Unset:
            raise TypeError(f"{type(self).__typename__} action failure hook cannot be overridden")
        self._on_action_panic = callback
        return callback

    def run(self, arguments=Unset, /):
        """
        Run the application with a full argument vector (program path first).

        Parameters
        - arguments:
          • Unset: sys.argv.
          • str: shell-like line, split with shlex.split.
          • Iterable[str]: used as given.
        """
        if arguments is Unset:
            arguments = list(sys.argv)
        elif isinstance(arguments, str):
            arguments = shlex.split(arguments)
        elif isinstance(arguments, Iterable):
            arguments = list(arguments)
            if not all(isinstance(argument, str) for argument in arguments):
                raise TypeError(f"{type(self).__typename__}.run() argument must be a string or an iterable of strings")
        else:
            raise TypeError(f"{type(self).__typename__}.run() argument must be a string or an iterable of strings")

        name = coalesce(self._name, os.path.basename(arguments[0]) if arguments else self.name)
        logger.debug("running %r with %r", name, arguments[1:])

        line = Commandline(self._flags, self._commands)
        failure = None
        try:
            for flag in self._flags:
                flag.initialize()
            line.parse(arguments[1:])
        except CommandException as error:
            failure = error

        context = Context(name, app=self, flags=self._flags, args=line.args)
        if failure is not None:
            context.show_error(failure)
            return

        if self._helper is not Unset and self._helper.visited:
            context.show_help_and_exit(0)
            return
        if self._versioner is not Unset and self._versioner.visited:
            show_version(self, self._stdout)
            context.exit(0)
            return

        _dispatch(self, context, line)


def command(name, /, *args, **kwargs):
    """
    Decorator turning a function into a Command whose action is that function.

        @command("serve", usage="start the server", flags=[Flag("p, port", int)])
        def serve(ctx): ...
    """
    @rename("command")
    def wrapper(action, /):
        if not callable(action):
            raise TypeError("@command() must be applied to a callable")
        return Command(name, *args, action=action, **kwargs)

    return wrapper


__all__ = (
    "Command",
    "App",
    "command",
)

# Keep the metaclass out of star-imports and autocompletion.
del CommandType
