"""
Help and version rendering.

HelpContext gathers what one help screen shows (for the App or for a Command at
a given display path) and renders it as rich Text:

    NAME:
       app - demo app

    USAGE:
       app [global options] COMMAND [command options] [arguments ...]

    VERSION:
       1.1.1

    AUTHORS:
       Jane Doe <jane@example.com>

    COMMANDS:
       build     build project
       release   release project

    GLOBALS OPTIONS:
       -i, --input file     input file
       -o, --output value   output file
           --help           print this usage

    Run 'app COMMAND --help' for more information on a command.

Sections without content are omitted; hidden flags and commands never show.
Styles come from a palette that the host application may override through a
__styles__ mapping in __main__ (same keys as listed in _styles()).
"""
import platform
import sys
from collections import defaultdict

from rich.console import Console
from rich.text import Text

from .utils import Unset


def _styles():
    return defaultdict(str, {
        "section-label": "bold #FFFFFF",
        "program-name": "bold #FF4D94",
        "usage-line": "#36C5F0",
        "flag-label": "bold #22C55E",
        "command-label": "bold #00E6FF",
        "description": "#9CA3AF",
        "footer": "italic #737373",
        "version-label": "bold #FFFFFF",
        "version-value": "#00E6FF",
    } | getattr(__import__("__main__"), "__styles__", {}))


def terminal(*, stderr=False):
    """
    Build a console suited for help/error output (no markup, emoji or highlighting,
    no hard wrapping), writing to stdout or stderr.
    """
    return Console(stderr=stderr, markup=False, emoji=False, highlight=False, soft_wrap=True)


def _lines(text):
    """
    Split multi-line text into stripped lines; blank text yields no lines.
    """
    if not (text := text.strip()):
        return []
    return [line.strip() for line in text.split("\n")]


def _flag_label(flag, indent):
    labels = ", ".join(("-" if len(name) == 1 else "--") + name for name in flag.names)
    if not flag.isbool:
        labels += " [%s]" % flag.placeholder if flag.noarg is not Unset else " " + flag.placeholder
    if indent and labels.startswith("--"):
        labels = "    " + labels
    return labels


class HelpContext:
    """
    One help screen worth of data.

    Build with HelpContext.app(name, app) or HelpContext.command(name, command);
    `name` is the display path ("app build"), its depth drives the generated usage.
    """

    def __init__(
            self,
            name,
            /,
            usage="",
            usagetext="",
            version="",
            description="",
            authors="",
            examples="",
            seealso="",
            flags=(),
            commands=(),
    ):
        self.name = name
        self.usage = usage
        self.usagetext = usagetext
        self.version = version
        self.description = description
        self.authors = authors
        self.examples = examples
        self.seealso = seealso
        self.flags = list(flags)
        self.commands = list(commands)

    @classmethod
    def app(cls, name, app, /):
        return cls(
            name,
            usage=app.usage,
            usagetext=app.usagetext,
            version=app.version,
            description=app.description,
            authors=app.authors,
            examples=app.examples,
            seealso=app.seealso,
            flags=app.flags,
            commands=app.commands,
        )

    @classmethod
    def command(cls, name, command, /):
        return cls(
            name,
            usage=command.usage,
            usagetext=command.usagetext,
            description=command.description,
            examples=command.examples,
            seealso=command.seealso,
            flags=command.flags,
            commands=command.commands,
        )

    @property
    def level(self):
        return self.name.count(" ")

    def visible_flags(self):
        return [flag for flag in self.flags if not flag.hidden]

    def visible_commands(self):
        return [command for command in self.commands if not command.hidden]

    def usage_lines(self):
        """
        Usage lines following the display name; generated when no usage text is set.
        """
        if self.usagetext:
            return [line.strip() for line in self.usagetext.split("\n")]
        flags = self.visible_flags()
        if self.visible_commands():
            return [("[global options] " if flags else "") + "COMMAND [command options] [arguments ...]"]
        if flags:
            return [("[options] " if self.level == 0 else "[command options] ") + "[arguments ...]"]
        return ["[arguments ...]"]

    def author_lines(self):
        return _lines(self.authors)

    def example_lines(self):
        return _lines(self.examples)

    def seealso_lines(self):
        return _lines(self.seealso)

    def flag_lines(self):
        """
        Aligned "label   usage (default: x) (Env: Y)" lines for the visible flags.

        Long-only labels are indented by four columns when any visible flag has a
        short alias, so long names line up under each other.
        """
        flags = self.visible_flags()
        indent = any(len(name) == 1 for flag in flags for name in flag.names)
        labels = [_flag_label(flag, indent) for flag in flags]
        width = max(map(len, labels), default=0)
        lines = []
        for flag, label in zip(flags, labels):
            usage = flag.usage
            if flag.default:
                usage += " (default: %s)" % flag.default
            if flag.envvar:
                usage += " (Env: %s)" % ", ".join(flag.envvar)
            lines.append((label.ljust(width), usage))
        return lines

    def command_lines(self):
        commands = self.visible_commands()
        labels = [", ".join(command.names) for command in commands]
        width = max(map(len, labels), default=0)
        return [(label.ljust(width), command.usage) for command, label in zip(commands, labels)]

    def render(self):
        """
        Render the help screen as a single rich Text.
        """
        styles = _styles()
        text = Text()

        def section(label, rows):
            text.append("\n")
            text.append(label, styles["section-label"]).append(":\n")
            for row in rows:
                text.append("   ").append_text(row).append("\n")

        text.append("NAME", styles["section-label"]).append(":\n   ")
        text.append(self.name, styles["program-name"])
        if self.usage:
            text.append(" - " + self.usage, styles["description"])
        text.append("\n")

        section("USAGE", [
            Text.assemble((self.name, styles["program-name"]), " ", (line, styles["usage-line"]))
            for line in self.usage_lines()
        ])
        if self.version:
            section("VERSION", [Text(self.version)])
        if self.description:
            section("DESCRIPTION", [Text(self.description, styles["description"])])
        if authors := self.author_lines():
            section("AUTHORS", map(Text, authors))
        if commands := self.command_lines():
            section("COMMANDS", [
                Text.assemble((label, styles["command-label"]), "   ", (usage, styles["description"]))
                for label, usage in commands
            ])
        if flags := self.flag_lines():
            section("GLOBALS OPTIONS" if commands else "OPTIONS", [
                Text.assemble((label, styles["flag-label"]), "   ", (usage, styles["description"]))
                for label, usage in flags
            ])
        if examples := self.example_lines():
            section("EXAMPLES", map(Text, examples))
        if seealso := self.seealso_lines():
            section("SEE ALSO", map(Text, seealso))
        if commands:
            text.append("\n")
            text.append("Run '%s COMMAND --help' for more information on a command." % self.name, styles["footer"])
            text.append("\n")

        return text


def show_help(help, /, console=Unset):
    """
    Print a HelpContext to the given console (stdout by default).
    """
    if console is Unset:
        console = terminal()
    console.print(help.render(), soft_wrap=True)


def version_lines(app, /):
    """
    (label, value) pairs of the version block; build fields appear only when set.
    """
    lines = [("Name", app.name), ("Version", app.version)]
    if buildinfo := app.buildinfo:
        lines.extend((label, value) for label, value in (
            ("Patches", buildinfo.patches),
            ("Git branch", buildinfo.branch),
            ("Git commit", buildinfo.commit),
            ("Built", buildinfo.timestamp),
        ) if value)
    lines.append(("Python", platform.python_version()))
    lines.append(("OS/Arch", "%s/%s" % (sys.platform, platform.machine())))
    return lines


def show_version(app, /, console=Unset):
    """
    Print the version block of an App, one "Label:  value" line per field.
    """
    if console is Unset:
        console = terminal()
    styles = _styles()
    text = Text()
    for label, value in version_lines(app):
        text.append((label + ":").ljust(12), styles["version-label"])
        text.append(value, styles["version-value"]).append("\n")
    text.rstrip()
    console.print(text, soft_wrap=True)


__all__ = (
    "HelpContext",
    "terminal",
    "show_help",
    "show_version",
    "version_lines",
)
