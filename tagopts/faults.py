"""
tagopts faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- DefinitionError family: configuration mistakes made by the programmer while
  declaring flags and values (duplicate names, empty names, short-flag clashes).
  These are plain exceptions raised at declaration time, never rendered.
- OptionsException / OptionsWarning: base types for faults caused by the end user's
  input; they carry message + options and know how to render themselves.
- HelpExit: the terminal outcome of a help request.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The parser builds a fault and calls Options.trigger(fault, **ctx), which merges the
  runtime options and delegates to trigger().
- In shell mode, errors are rendered via rich and the process exits; otherwise they are raised.
"""
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, UnsetType, program

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - switches (flags) (1111x)
      • MALFORMED_TOKEN, UNKNOWN_SWITCH
    - positionals (values) (1112x)
      • MISSING_REQUIRED
    - conversions (1113x)
      • UNCASTABLE_VALUE
    - warnings (12xxx)
      • UNPARSED_TOKENS

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired (e.g., to shorter labels).
    """
    # --- switch/flag errors (11xxx) ---
    MALFORMED_TOKEN             = 11111
    UNKNOWN_SWITCH              = 11112

    # --- positional value errors (11xxx) ---
    MISSING_REQUIRED            = 11121

    # --- conversion errors (11xxx) ---
    UNCASTABLE_VALUE            = 11131

    # --- warnings (12xxx) ---
    UNPARSED_TOKENS             = 12121

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class DefinitionError(ValueError):
    """
    base class for configuration mistakes detected while declaring flags and values.

    these are programmer errors: they surface immediately and deterministically,
    independent of what the end user types, so they are raised and never rendered.
    """


class EmptyNameError(DefinitionError): ...
class DuplicateNameError(DefinitionError): ...
class ShortFlagConflictError(DefinitionError): ...
class UndeclaredFlagError(DefinitionError): ...


def _palette(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


class _Renderable:
    """
    shared rendering for exceptions and warnings.

    subclasses provide __palette__ (default styles) and __kind__ (the label used
    for the message/title keys of the palette: "error" or "warning").
    """
    __palette__ = {}
    __kind__ = "error"

    def __rich__(self):
        styles = _palette(self.__palette__)
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(self.options.get("prog") or program(), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.options["code"].normalize() if "code" in self.options else self.__kind__, styler("code")),
            " | ",
            text(self.options.get("title", self.__kind__).title(), styler(self.__kind__ + "-title")),
            " ]"
        )
        message = text(self.message, styler(self.__kind__ + "-message"))

        body = [message]
        if self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(self.options["hint"], styler("hint"))))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left")

        return Group(header, *body)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class OptionsException(_Renderable, Exception):
    """
    base class for faults caused by the end user's input.

    carries the message plus free-form options (title, code, hint, shell, fancy,
    colorful, prog, and any context like token/index/name).
    """
    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-title": "bold #FF4DA6",  # friendly pinky title

        # body
        "error-message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
    }
    __kind__ = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | UnsetType)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __trigger__(self):
        if not self.options.get("shell", True):
            raise self from None
        console.print(self)
        sys.exit(1)


class MalformedTokenError(OptionsException): ...
class UnknownSwitchError(OptionsException): ...
class MissingRequiredError(OptionsException): ...
class UncastableValueError(OptionsException): ...


class OptionsWarning(_Renderable, ABC, Warning):
    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #FFB400",  # amber fault code for warnings
        "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

        # body
        "warning-message": "#D6D6DE",  # slightly lighter gray body
        "hint-arrow": "#B8EFAF dim",  # softer green arrow
        "hint": "italic #B8EFAF",  # softer green hint text
    }
    __kind__ = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | UnsetType)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __trigger__(self):
        if not self.options.get("shell", True):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class UnparsedTokensWarning(OptionsWarning): ...


class HelpExit(Exception):
    """
    terminal outcome of a help request.

    the help text has already been printed when this is triggered. in shell mode
    the process exits with status 0; otherwise the exception is raised so that
    embedding code (and tests) can observe the request without losing the process.
    """

    def __init__(self, message="help requested", /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __trigger__(self):
        if not self.options.get("shell", True):
            raise self from None
        sys.exit(0)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised
      and warnings are emitted through the warnings module.

    typical options
    - prog, shell, fancy, colorful, title, code, hint, docs, and any other context
      the reporter may want to show (e.g., token/index/name).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "DefinitionError",
    "EmptyNameError",
    "DuplicateNameError",
    "ShortFlagConflictError",
    "UndeclaredFlagError",
    "OptionsException",
    "MalformedTokenError",
    "UnknownSwitchError",
    "MissingRequiredError",
    "UncastableValueError",
    "OptionsWarning",
    "UnparsedTokensWarning",
    "HelpExit",
    "FaultCode",
    "trigger",
    "getdoc",
)
