"""
Helmsman value system: typed storage cells and their parse/render variants.

Overview
- Kind: closed enumeration of every supported destination kind. Python types and
  aliases resolve to a Kind at registration time (bool → BOOL, list[int] → INT_SLICE, ...).
- Cell[_T]: a mutable storage box with a declared kind. Applications keep a reference
  to the cell and read .value after parsing.
- Value: the parse/render capability bound to exactly one Cell for its lifetime.
  • set(text): parse per the kind's grammar and store (slices append).
  • str(value): canonical rendering of the current content.
- bind(cell): select the variant for a cell's kind (unsupported kinds never get here:
  Kind.resolve already raised TypeError).

Grammar summary
- bool: "1 t T TRUE true True on" are true; anything else is false (never fails).
- integers: decimal, 0x/0o/0b prefixes, legacy leading-zero octal, '_' separators;
  sign only for signed kinds; range checked per bit size (native = 64 bits).
- floats: decimal/scientific, hex floats, inf/nan spellings; float32 is range checked;
  rendering is the shortest round-tripping text at the kind's precision.
- duration: "1h2m30s", "1.5s", "500ms", "-3us", "0"; microsecond resolution, finer literals are rejected.
- time: "2018-05-24 14:56:56 +0000 UTC", ISO-8601, "2018-05-24 14:56:56", "2018-05-24".
- location: IANA zone key ("Asia/Shanghai"); empty text is UTC.
- ip / ipmask / ipnet / url: standard textual forms; ipmask renders as packed hex.
- slices: one element per set(); rendering joins elements with ','.

Quick example
    >>> cell = Cell(list[int])
    >>> value = bind(cell)
    >>> value.set("0x10"); value.set("7")
    >>> str(value), cell.value
    ('16,7', [16, 7])
"""
import datetime
import ipaddress
import math
import re
import struct
from decimal import Decimal
from enum import Enum
from urllib.parse import SplitResult, urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .faults import InvalidValueError
from .utils import Unset

_variants = {}


class Kind(Enum):
    """
    Closed set of destination kinds.

    Member values are the short labels used in error messages and help output.
    """
    BOOL = "bool"
    STRING = "string"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DURATION = "duration"
    TIME = "time"
    LOCATION = "location"
    IP = "ip"
    IPMASK = "ipmask"
    IPNET = "ipnet"
    URL = "url"
    STRING_SLICE = "[]string"
    INT_SLICE = "[]int"
    UINT_SLICE = "[]uint"
    FLOAT64_SLICE = "[]float64"
    IP_SLICE = "[]ip"
    IPNET_SLICE = "[]ipnet"
    URL_SLICE = "[]url"

    @classmethod
    def resolve(cls, object, /):
        """
        Resolve a Kind, a kind label ("int8", "[]url") or a supported Python type.

        Raises
        - TypeError when the object names no supported kind.
        """
        if isinstance(object, cls):
            return object
        if isinstance(object, str):
            try:
                return cls(object)
            except ValueError:
                raise TypeError(f"unsupported value kind {object!r}") from None
        try:
            return _aliases[object]
        except (KeyError, TypeError):
            raise TypeError(f"unsupported value kind {object!r}") from None

    @property
    def isslice(self):
        return self.value.startswith("[]")

    def zero(self):
        """
        Return a fresh zero value for this kind (slices get a new list).
        """
        if self.isslice:
            return []
        match self:
            case Kind.BOOL:
                return False
            case Kind.STRING:
                return ""
            case Kind.FLOAT32 | Kind.FLOAT64:
                return 0.0
            case Kind.DURATION:
                return datetime.timedelta(0)
            case Kind.IPMASK:
                return b""
            case Kind.TIME | Kind.LOCATION | Kind.IP | Kind.IPNET | Kind.URL:
                return None
        return 0


_aliases = {
    bool: Kind.BOOL,
    str: Kind.STRING,
    int: Kind.INT,
    float: Kind.FLOAT64,
    datetime.timedelta: Kind.DURATION,
    datetime.datetime: Kind.TIME,
    ZoneInfo: Kind.LOCATION,
    ipaddress.IPv4Address: Kind.IP,
    ipaddress.IPv6Address: Kind.IP,
    ipaddress.IPv4Network: Kind.IPNET,
    ipaddress.IPv6Network: Kind.IPNET,
    SplitResult: Kind.URL,
    list[str]: Kind.STRING_SLICE,
    list[int]: Kind.INT_SLICE,
    list[float]: Kind.FLOAT64_SLICE,
    list[ipaddress.IPv4Address]: Kind.IP_SLICE,
    list[ipaddress.IPv6Address]: Kind.IP_SLICE,
    list[ipaddress.IPv4Network]: Kind.IPNET_SLICE,
    list[ipaddress.IPv6Network]: Kind.IPNET_SLICE,
    list[SplitResult]: Kind.URL_SLICE,
}


class Cell[_T]:
    """
    Mutable storage cell with a declared kind.

    A cell is created by the application (or implicitly by a Flag) and bound to a
    single Value. Parsing mutates .value in place; slices are appended to.

    Parameters
    - kind: Kind | str | type (positional-only), resolved through Kind.resolve.
    - value: initial content; defaults to the kind's zero value.
    """
    __slots__ = ("_kind", "value")

    def __init__(self, kind=str, value=Unset, /):
        self._kind = Kind.resolve(kind)
        self.value = self._kind.zero() if value is Unset else value

    @property
    def kind(self):
        return self._kind

    def __repr__(self):
        return f"cell(kind={self._kind.value!r}, value={self.value!r})"


# ── grammars ───────────────────────────────────────────────────────────────────

_TRUTHY = frozenset(("1", "t", "T", "TRUE", "true", "True"))
_FALSY = frozenset(("0", "f", "F", "FALSE", "false", "False"))


def truth(text, /, *, strict=False):
    """
    Interpret a boolean literal.

    - permissive (default): the strict true spellings and "on" are true, anything
      else is false; never fails.
    - strict: only "1 t T TRUE true True" / "0 f F FALSE false False"; ValueError otherwise.
    """
    if text in _TRUTHY:
        return True
    if strict:
        if text in _FALSY:
            return False
        raise ValueError("invalid syntax")
    return text == "on"


_INTEGER = re.compile(r"(?P<sign>[+-]?)(?P<body>0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+|0[0-7_]*|[1-9][0-9_]*)")


def _parse_integer(text, bits, signed):
    if not (match := _INTEGER.fullmatch(text)):
        raise ValueError("invalid syntax")
    if match["sign"] and not signed:
        raise ValueError("invalid syntax")
    body = match["body"]
    try:
        if body[:2].lower() in ("0x", "0o", "0b"):
            number = int(body, 0)
        elif body.startswith("0") and len(body) > 1:
            number = int(body, 8)
        else:
            number = int(body, 10)
    except ValueError:
        raise ValueError("invalid syntax") from None
    if match["sign"] == "-":
        number = -number
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= number <= high:
        raise ValueError("value out of range")
    return number


_FLOAT = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)", re.IGNORECASE)
_HEXFLOAT = re.compile(r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?")
# literals at or above the rounding midpoint to the next power of two overflow to inf
_FLOAT32_LIMIT = 2.0 ** 128 - 2.0 ** 103


def _parse_float(text, bits):
    if _FLOAT.fullmatch(text):
        number = float(text)
    elif _HEXFLOAT.fullmatch(text):
        number = float.fromhex(text)
    else:
        raise ValueError("invalid syntax")
    if math.isinf(number) and "inf" not in text.lower():
        raise ValueError("value out of range")
    if bits == 32 and math.isfinite(number) and abs(number) >= _FLOAT32_LIMIT:
        raise ValueError("value out of range")
    return number


def _narrow(number, bits):
    if bits == 32:
        if abs(number) >= _FLOAT32_LIMIT:
            return math.copysign(math.inf, number)
        return struct.unpack("f", struct.pack("f", number))[0]
    return number


def _format_float(number, bits):
    """
    Render the shortest text that reads back to the same value at `bits` precision.

    Notation follows %g with shortest digits: exponent form when the decimal
    exponent is below -4 or at least 6 ("1.234567e+06", "1e-05"), plain otherwise.
    """
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, number) < 0 else ""
    if number == 0:
        return sign + "0"
    if bits == 32 and abs(number) >= _FLOAT32_LIMIT:
        bits = 64
    target = _narrow(abs(number), bits)
    for precision in range(1, 18):
        text = "%.*e" % (precision - 1, abs(number))
        if _narrow(float(text), bits) == target:
            break
    mantissa, exponent = text.split("e")
    digits = mantissa.replace(".", "").rstrip("0") or "0"
    point = int(exponent) + 1
    if point - 1 < -4 or point - 1 >= 6:
        head = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return "%s%se%s%02d" % (sign, head, "-" if point - 1 < 0 else "+", abs(point - 1))
    if point <= 0:
        return sign + "0." + "0" * -point + digits
    if point >= len(digits):
        return sign + digits + "0" * (point - len(digits))
    return sign + digits[:point] + "." + digits[point:]


_DURATION_UNITS = {
    "ns": 1,
    "us": 10 ** 3,
    "µs": 10 ** 3,  # U+00B5 micro sign
    "μs": 10 ** 3,  # U+03BC greek mu
    "ms": 10 ** 6,
    "s": 10 ** 9,
    "m": 60 * 10 ** 9,
    "h": 3600 * 10 ** 9,
}
_DURATION = re.compile(r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)")


def _parse_duration(text):
    sign, body = (text[0], text[1:]) if text[:1] in ("+", "-") else ("", text)
    if body == "0":
        return datetime.timedelta(0)
    if not body:
        raise ValueError("invalid duration")
    nanos = Decimal(0)
    position = 0
    while position < len(body):
        match = _DURATION.match(body, position)
        if not match or match.end() == position or match[1] in ("", "."):
            raise ValueError("invalid duration")
        nanos += Decimal(match[1]) * _DURATION_UNITS[match[2]]
        position = match.end()
    if nanos % 1000:
        raise ValueError("duration finer than a microsecond")
    micros = int(nanos) // 1000
    return datetime.timedelta(microseconds=-micros if sign == "-" else micros)


def _fraction(value, scale):
    whole, remainder = divmod(value, scale)
    digits = str(remainder).rjust(len(str(scale)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def _format_duration(delta):
    nanos = (delta.days * 86400 + delta.seconds) * 10 ** 9 + delta.microseconds * 1000
    if not nanos:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < 10 ** 9:
        for unit, scale in (("ns", 1), ("µs", 10 ** 3), ("ms", 10 ** 6)):
            if nanos < scale * 1000:
                return sign + _fraction(nanos, scale) + unit
    seconds, remainder = divmod(nanos, 10 ** 9)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    text = _fraction(seconds * 10 ** 9 + remainder, 10 ** 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{text}"
    if minutes:
        return f"{sign}{minutes}m{text}"
    return sign + text


_TIMESTAMP = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[ T](?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d+))?)?"
    r"(?:\s*(?P<offset>Z|[+-]\d{2}:?\d{2}))?"
    r"(?:\s+(?P<zone>[A-Za-z][A-Za-z0-9_/+-]*))?"
)


def _offset_name(offset):
    minutes = int(offset.total_seconds()) // 60
    return "%s%02d%02d" % ("-" if minutes < 0 else "+", abs(minutes) // 60, abs(minutes) % 60)


def _parse_time(text):
    if not (match := _TIMESTAMP.fullmatch(text)):
        raise ValueError("invalid timestamp")
    moment = datetime.datetime.fromisoformat("%sT%s" % (match["date"], match["time"] or "00:00:00"))
    if match["fraction"]:
        moment = moment.replace(microsecond=int(match["fraction"][:6].ljust(6, "0")))
    offset, zone = match["offset"], match["zone"]
    if offset and offset != "Z":
        digits = offset.replace(":", "")
        delta = datetime.timedelta(hours=int(digits[1:3]), minutes=int(digits[3:5]))
        delta = -delta if digits[0] == "-" else delta
        if not delta and zone in (None, "UTC"):
            tzinfo = datetime.timezone.utc
        else:
            tzinfo = datetime.timezone(delta, zone or _offset_name(delta))
    elif offset == "Z" or zone in (None, "UTC"):
        tzinfo = datetime.timezone.utc
    else:
        tzinfo = _parse_location(zone)
    return moment.replace(tzinfo=tzinfo)


def _format_time(moment):
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    text = "%04d-%02d-%02d %02d:%02d:%02d" % (
        moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second
    )
    if fraction := ("%06d" % moment.microsecond).rstrip("0"):
        text += "." + fraction
    offset = moment.utcoffset()
    return "%s %s %s" % (text, _offset_name(offset), moment.tzname() or _offset_name(offset))


def _parse_location(text):
    try:
        return ZoneInfo(text or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError("unknown time zone %s" % text) from None


def _parse_ip(text):
    address = ipaddress.ip_address(text)
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return address.ipv4_mapped
    return address


def _parse_ipnet(text):
    if "/" not in text:
        raise ValueError("invalid CIDR address: %s" % text)
    return ipaddress.ip_network(text, strict=False)


def _parse_url(text):
    if any(ord(char) < 0x20 or char == "\x7f" for char in text):
        raise ValueError("invalid control character in URL")
    return urlsplit(text)


# ── variants ───────────────────────────────────────────────────────────────────

class Value:
    """
    Parse/render capability bound to one storage cell.

    Variants are declared with a class keyword (class IntValue(Value, kind=Kind.INT))
    which registers them in the closed variant table used by bind().

    Contract
    - set(text) parses and stores, raising InvalidValueError on rejection.
    - str(self) renders the current content canonically ("" for an empty scalar).
    - isbool is True only for the boolean variant (the matcher never consumes a
      following token for it).
    """
    kind = Unset
    isbool = False

    def __init_subclass__(cls, /, kind=Unset, **options):
        super().__init_subclass__(**options)
        if kind is Unset:
            return
        if kind in _variants:
            raise TypeError(f"value kind {kind.value!r} is already bound to {_variants[kind].__name__}")
        cls.kind = kind
        _variants[kind] = cls

    def __init__(self, cell, /):
        if not isinstance(cell, Cell):
            raise TypeError(f"{type(self).__name__} argument must be a cell")
        if cell.kind is not self.kind:
            raise TypeError(f"{type(self).__name__} cannot bind a {cell.kind.value!r} cell")
        self._cell = cell

    @property
    def cell(self):
        return self._cell

    def get(self):
        return self._cell.value

    def set(self, text, /):
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__name__}.set() argument must be a string")
        try:
            self._store(self.parse(text))
        except (ValueError, OverflowError) as error:
            raise InvalidValueError(
                "cannot parse %r as %s: %s" % (text, self.kind.value, error),
                literal=text,
                kind=self.kind,
            ) from error

    def _store(self, object):
        self._cell.value = object

    @staticmethod
    def parse(text, /):
        raise NotImplementedError

    @staticmethod
    def format(object, /):
        return str(object)

    def __str__(self):
        if (value := self._cell.value) is None:
            return ""
        return self.format(value)

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r})"


class SliceValue(Value):
    """
    Repeatable variant: each set() appends one element parsed by `element`.
    """
    element = Unset

    def _store(self, object):
        self._cell.value.append(object)

    def parse(self, text, /):
        return self.element.parse(text)

    def __str__(self):
        return ",".join(map(self.element.format, self._cell.value))


class BoolValue(Value, kind=Kind.BOOL):
    isbool = True

    @staticmethod
    def parse(text, /):
        return truth(text)

    @staticmethod
    def format(object, /):
        return "true" if object else "false"


class StringValue(Value, kind=Kind.STRING):
    @staticmethod
    def parse(text, /):
        return text


def _integer_variant(kind, bits, signed):
    @staticmethod
    def parse(text, /):
        return _parse_integer(text, bits, signed)

    return type(kind.name.title().replace("_", "") + "Value", (Value,), {"parse": parse, "__module__": __name__}, kind=kind)


IntValue = _integer_variant(Kind.INT, 64, True)
Int8Value = _integer_variant(Kind.INT8, 8, True)
Int16Value = _integer_variant(Kind.INT16, 16, True)
Int32Value = _integer_variant(Kind.INT32, 32, True)
Int64Value = _integer_variant(Kind.INT64, 64, True)
UintValue = _integer_variant(Kind.UINT, 64, False)
Uint8Value = _integer_variant(Kind.UINT8, 8, False)
Uint16Value = _integer_variant(Kind.UINT16, 16, False)
Uint32Value = _integer_variant(Kind.UINT32, 32, False)
Uint64Value = _integer_variant(Kind.UINT64, 64, False)


class Float32Value(Value, kind=Kind.FLOAT32):
    @staticmethod
    def parse(text, /):
        return _parse_float(text, 32)

    @staticmethod
    def format(object, /):
        return _format_float(object, 32)


class Float64Value(Value, kind=Kind.FLOAT64):
    @staticmethod
    def parse(text, /):
        return _parse_float(text, 64)

    @staticmethod
    def format(object, /):
        return _format_float(object, 64)


class DurationValue(Value, kind=Kind.DURATION):
    @staticmethod
    def parse(text, /):
        return _parse_duration(text)

    @staticmethod
    def format(object, /):
        return _format_duration(object)


class TimeValue(Value, kind=Kind.TIME):
    @staticmethod
    def parse(text, /):
        return _parse_time(text)

    @staticmethod
    def format(object, /):
        return _format_time(object)


class LocationValue(Value, kind=Kind.LOCATION):
    @staticmethod
    def parse(text, /):
        return _parse_location(text)


class IPValue(Value, kind=Kind.IP):
    @staticmethod
    def parse(text, /):
        return _parse_ip(text)


class IPMaskValue(Value, kind=Kind.IPMASK):
    @staticmethod
    def parse(text, /):
        address = _parse_ip(text)
        return address.packed

    @staticmethod
    def format(object, /):
        return object.hex()


class IPNetValue(Value, kind=Kind.IPNET):
    @staticmethod
    def parse(text, /):
        return _parse_ipnet(text)


class URLValue(Value, kind=Kind.URL):
    @staticmethod
    def parse(text, /):
        return _parse_url(text)

    @staticmethod
    def format(object, /):
        return object.geturl()


class StringSliceValue(SliceValue, kind=Kind.STRING_SLICE):
    element = StringValue


class IntSliceValue(SliceValue, kind=Kind.INT_SLICE):
    element = IntValue


class UintSliceValue(SliceValue, kind=Kind.UINT_SLICE):
    element = UintValue


class Float64SliceValue(SliceValue, kind=Kind.FLOAT64_SLICE):
    element = Float64Value


class IPSliceValue(SliceValue, kind=Kind.IP_SLICE):
    element = IPValue


class IPNetSliceValue(SliceValue, kind=Kind.IPNET_SLICE):
    element = IPNetValue


class URLSliceValue(SliceValue, kind=Kind.URL_SLICE):
    element = URLValue


def bind(cell, /):
    """
    Bind a storage cell to the Value variant for its kind.

    Raises
    - TypeError if the argument is not a Cell.
    """
    if not isinstance(cell, Cell):
        raise TypeError("bind() argument must be a cell")
    return _variants[cell.kind](cell)


def parse(kind, text, /):
    """
    Parse text with a kind's grammar without touching any cell.

    Slice kinds parse a single element. Booleans use the permissive grammar; see
    truth(..., strict=True) for the strict one.

    Raises
    - TypeError for an unsupported kind, ValueError/OverflowError on rejection.
    """
    variant = _variants[Kind.resolve(kind)]
    if issubclass(variant, SliceValue):
        variant = variant.element
    return variant.parse(text)


__all__ = (
    "Kind",
    "Cell",
    "Value",
    "SliceValue",
    "BoolValue",
    "StringValue",
    "IntValue",
    "Int8Value",
    "Int16Value",
    "Int32Value",
    "Int64Value",
    "UintValue",
    "Uint8Value",
    "Uint16Value",
    "Uint32Value",
    "Uint64Value",
    "Float32Value",
    "Float64Value",
    "DurationValue",
    "TimeValue",
    "LocationValue",
    "IPValue",
    "IPMaskValue",
    "IPNetValue",
    "URLValue",
    "StringSliceValue",
    "IntSliceValue",
    "UintSliceValue",
    "Float64SliceValue",
    "IPSliceValue",
    "IPNetSliceValue",
    "URLSliceValue",
    "bind",
    "parse",
    "truth",
)
