"""
Build metadata stamped into an application at build time.

The build pipeline passes a single line of whitespace separated `key:value`
pairs; values may be single or double quoted to carry spaces:

    time:"Sat May 13 19:53:08 UTC 2017" branch:master commit:320279c patches:1234

Recognised keys are time, branch, commit and patches. Unknown keys are ignored and
missing ones read as "".
"""
import re
from collections import namedtuple

BuildInfo = namedtuple("BuildInfo", ("timestamp", "branch", "commit", "patches"), defaults=("", "", "", ""))


def _read(text, key):
    match = re.search(r"(?:^|\s)%s:(\"[^\"]*\"|'[^']*'|[!-~]+)(?:$|\s)" % re.escape(key), text)
    if match is None:
        return ""
    value = match[1]
    if value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse(text, /):
    """
    Parse a build-info line into a BuildInfo.
    """
    if not isinstance(text, str):
        raise TypeError("parse() argument must be a string")
    return BuildInfo(
        timestamp=_read(text, "time"),
        branch=_read(text, "branch"),
        commit=_read(text, "commit"),
        patches=_read(text, "patches"),
    )


__all__ = (
    "BuildInfo",
    "parse",
)
