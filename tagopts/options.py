"""
tagopts option registry and parser: declare, classify, render.

What this module provides
- Options: a fluent registry of flags, required values and optional values, plus the
  parser that walks an argv-like sequence and classifies every token.
  • declare_flag / declare_short_flag / declare_long_flag: named switches.
  • declare_required / declare_optional: positional values, filled in declaration order.
  • resolve_short: find the flag owning a short (-x) character.
  • parse: run the classifier and return a ParsedResult.
  • usage: build the Rich renderable used for --help.

Command line structure
    <prog> [OPTIONS] <REQUIRED>... [OPTIONAL]...

- Flags come first. They are recognised by their leading '-', so there is no
  ambiguity between them and values.
- Optional values can only be told apart from required values by counting tokens,
  which is why they must come last.
- When a token could be either the value attached to a flag or a positional value,
  the flag always wins, as long as enough tokens remain to fill every required value.

Quick start
    from tagopts import Options

    options = (
        Options("copy a file somewhere else")
        .declare_required("file", "the file to copy")
        .declare_optional("mode", "copy mode")
        .declare_flag("verbose", "print every step", False)
    )

    flags, required, optional = options.parse(["prog", "-v", "input.txt", "fast"])
    # flags    == {"verbose": "true", "help": ""}
    # required == {"file": "input.txt"}
    # optional == {"mode": "fast"}

Faults
- Declaration mistakes raise DefinitionError subclasses right away.
- Bad user input is surfaced through Options.trigger(): rendered then exit(1) in
  shell mode, raised otherwise.
"""
import difflib
import functools
import operator
from collections import defaultdict
from collections.abc import Sequence
from enum import Enum, auto

from rich.console import Console, Group
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .definitions import FlagDefinition, ValueDefinition, ParsedResult
from .faults import *
from .utils import Unset, mirror, program

console = Console()

HELP = "help"
HELP_DESCR = "prints this help message"


class Phase(Enum):
    """classifier phases, visited strictly left to right."""
    FLAGS = auto()
    REQUIRED = auto()
    OPTIONAL = auto()


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def _check(caller, name, descr):
    if not isinstance(name, str):
        raise TypeError("%s() name must be a string" % caller)
    if not isinstance(descr, str):
        raise TypeError("%s() description must be a string" % caller)
    if not name:
        raise EmptyNameError("%s() requires a non-empty name" % caller)


class Options:
    """
    Registry of declarations and the parser that consumes it.

    Lifecycle
    - Built once per invocation through the declare_* methods (each returns self).
    - Consumed by parse(); the only change parse() makes is adding the built-in
      help flag when it is missing.

    Runtime options
    - shell: render faults/help and exit the process (True), or raise them (False).
    - fancy: wrap faults and help in Rich panels.
    - colorful: apply the palette (overridable through __styles__ in __main__).
    """

    # Fields shown by __repr__/__rich_repr__, each backed by a private "_<name>" attribute.
    __displayable__ = (
        "descr",
        "flags",
        "required",
        "optional",
        "shell",
        "fancy",
        "colorful",
    )

    descr = mirror("descr")
    flags = mirror("flags")
    required = mirror("required")
    optional = mirror("optional")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def __init__(self, descr="", /, *, shell=True, fancy=False, colorful=True):
        if not isinstance(descr, str):
            raise TypeError("Options() description must be a string")
        for name, value in (("shell", shell), ("fancy", fancy), ("colorful", colorful)):
            if not isinstance(value, bool):
                raise TypeError("Options() %s must be a boolean" % name)

        self._descr = descr
        self._flags = {}  # declaration order is the help order
        self._required = []
        self._optional = []
        self._shell = shell
        self._fancy = fancy
        self._colorful = colorful
        self._prog = Unset

    def __rich_repr__(self):
        for name in type(self).__displayable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "options(%s)" % ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))

    # --- declarations ---

    def declare_required(self, name, descr="", /):
        """
        add a positional value that must be present; values are filled in declaration order.
        """
        _check("declare_required", name, descr)
        if any(value.name == name for value in self._required):
            raise DuplicateNameError("invalid required value %r: two values can not share a name" % name)
        self._required.append(ValueDefinition(name, descr))
        return self

    def declare_optional(self, name, descr="", /):
        """
        add a positional value that may be omitted; it is filled after every required value.
        """
        _check("declare_optional", name, descr)
        if any(value.name == name for value in self._optional):
            raise DuplicateNameError("invalid optional value %r: two values can not share a name" % name)
        self._optional.append(ValueDefinition(name, descr))
        return self

    def declare_flag(self, name, descr="", /, takes_value=True):
        """
        add a flag with both forms, e.g. -a/--addr.

        the parse result holds "" when it is absent, "true" when it is given without a
        value, or the token attached to it when takes_value is set.
        """
        _check("declare_flag", name, descr)
        if not isinstance(takes_value, bool):
            raise TypeError("declare_flag() takes_value must be a boolean")
        if name in self._flags:
            raise DuplicateNameError("invalid flag %r: two flags can not share a name" % name)
        self._claim(name)
        self._flags[name] = FlagDefinition(name, True, True, takes_value, descr)
        return self

    def declare_short_flag(self, name, descr="", /, takes_value=True):
        """
        add a short-only flag (-a), or give an existing flag its short form.
        """
        _check("declare_short_flag", name, descr)
        if not isinstance(takes_value, bool):
            raise TypeError("declare_short_flag() takes_value must be a boolean")
        self._claim(name)
        try:
            definition = self._flags[name]
        except KeyError:
            self._flags[name] = FlagDefinition(name, True, False, takes_value, descr)
        else:
            self._flags[name] = definition._replace(short=True, descr=definition.descr or descr)
        return self

    def declare_long_flag(self, name, descr="", /, takes_value=True):
        """
        give an already declared flag its long form (--addr).

        this only upgrades existing entries: declaring the long form of a flag that was
        never declared is a configuration error.
        """
        _check("declare_long_flag", name, descr)
        if not isinstance(takes_value, bool):
            raise TypeError("declare_long_flag() takes_value must be a boolean")
        try:
            definition = self._flags[name]
        except KeyError:
            raise UndeclaredFlagError(
                "invalid long flag %r: declare the flag before adding its long form" % name
            ) from None
        self._flags[name] = definition._replace(long=True, descr=definition.descr or descr)
        return self

    def _claim(self, name):
        owner, _ = self.resolve_short(name[0])
        if owner and owner != name:
            raise ShortFlagConflictError(
                "invalid short flag -%s for %r: it is already used by %r" % (name[0], name, owner)
            )

    def resolve_short(self, char, /):
        """
        return (name, definition) of the flag whose short form is `char`, or ("", None).
        """
        if not isinstance(char, str):
            raise TypeError("resolve_short() argument must be a string")
        for name, definition in self._flags.items():
            if definition.short and definition.char == char:
                return name, definition
        return "", None

    # --- faults ---

    def trigger(self, fault, /, **options):
        """
        surface a fault with this registry's runtime options merged in.

        in shell mode errors terminate the process, otherwise they are raised; either way
        this never returns for errors (warnings do return).
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        return trigger(fault, **(options | {
            "prog": self.prog,
            "shell": self._shell,
            "fancy": self._fancy,
            "colorful": self._colorful,
        }))

    @property
    def prog(self):
        """program name: the one seen by the last parse, else the running program."""
        return self._prog if self._prog is not Unset else program()

    # --- parsing ---

    def _ensure_help(self):
        owner, _ = self.resolve_short("h")
        if not owner:
            if HELP in self._flags:
                self.declare_short_flag(HELP, HELP_DESCR, False)
            else:
                self.declare_flag(HELP, HELP_DESCR, False)
        elif HELP not in self._flags:
            # -h belongs to another flag; --help still has to work
            self._flags[HELP] = FlagDefinition(HELP, False, True, False, HELP_DESCR)

    def _attach(self, definition, tokens, index):
        """
        return (value, index) for a flag found at tokens[index].

        the following token is taken as the value only when the flag takes one, that
        token is not flag-shaped, and consuming it still leaves a token for every
        required value.
        """
        if (
                definition.takes_value and
                len(tokens) - len(self._required) > index + 1 and
                not tokens[index + 1].startswith("-")
        ):
            return tokens[index + 1], index + 1
        return "true", index

    def _unknown(self, token, index, input=Unset):
        input = token if input is Unset else input
        spellings = [form for definition in self._flags.values() for form in definition.forms()]
        suggestions = difflib.get_close_matches(input, spellings, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all flags" % (suggestions[0], self.prog)
        except IndexError:
            hint = "run '%s --help' to see all available flags" % self.prog
        self.trigger(UnknownSwitchError(
            "unknown flag %r at %s position" % (input, _ordinal(index + 1)),
            title="unknown flag",
            code=FaultCode.UNKNOWN_SWITCH,
            hint=hint,
            token=token,
            index=index,
            suggestions=suggestions,
            docs=getdoc(FaultCode.UNKNOWN_SWITCH),
        ))

    def _missing(self, count):
        names = ", ".join(value.name.upper() for value in self._required)
        self.trigger(MissingRequiredError(
            "not all required values are given: expected %d (%s) but got %d" % (len(self._required), names, count),
            title="missing required values",
            code=FaultCode.MISSING_REQUIRED,
            hint="run '%s --help' to see the structure of the command" % self.prog,
            expected=len(self._required),
            given=count,
            docs=getdoc(FaultCode.MISSING_REQUIRED),
        ))

    def _malformed(self, token, index):
        self.trigger(MalformedTokenError(
            "bad form of flag %r at %s position" % (token, _ordinal(index + 1)),
            title="malformed flag",
            code=FaultCode.MALFORMED_TOKEN,
            hint="flags must be written as -x or --x",
            token=token,
            index=index,
            docs=getdoc(FaultCode.MALFORMED_TOKEN),
        ))

    def _parse_switch(self, tokens, index, flags):
        """
        classify the flag-shaped token at tokens[index] and record it into `flags`.

        returns the index of the last token consumed (the value, when one was attached).
        """
        token = tokens[index]

        if token == "--":
            self._malformed(token, index)

        if token.startswith("--"):
            name = token[2:]
            definition = self._flags.get(name)
            if definition is None or not definition.long:
                self._unknown(token, index)
            flags[name], index = self._attach(definition, tokens, index)
        elif len(token) == 2:
            name, definition = self.resolve_short(token[1])
            if definition is None:
                self._unknown(token, index)
            flags[name], index = self._attach(definition, tokens, index)
        else:
            # grouped short flags (-abc) are presence-only, they never take a value
            for char in token[1:]:
                name, definition = self.resolve_short(char)
                if definition is None:
                    self._unknown(token, index, "-" + char)
                flags[name] = "true"

        return index

    def parse(self, argv, /):
        """
        classify an argv-like sequence (program name first) into a ParsedResult.

        phases
        - FLAGS: every token starting with '-' is a flag (--name, -x, or a -abc group),
          and a token shorter than two characters is malformed. the first other token
          moves on to REQUIRED; at that point there must be at least one token left per
          required value.
        - REQUIRED: tokens fill the required values in declaration order.
        - OPTIONAL: tokens fill the optional values in declaration order; anything
          beyond the last optional value is reported as a warning and ignored.

        after the scan
        - a set help flag renders the help and terminates.
        - required values still missing (input made only of flags) are a fault.
        """
        if isinstance(argv, str) or not isinstance(argv, Sequence):
            raise TypeError("parse() argument must be a sequence of strings")
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse() argument must only contain strings")

        self._prog = program(argv)
        tokens = list(argv[1:])
        self._ensure_help()

        flags = dict.fromkeys(self._flags, "")
        required = {}
        optional = {}

        phase = Phase.FLAGS
        cursor = 0  # position within the value list of the current phase
        index = 0
        while index < len(tokens):
            token = tokens[index]
            match phase:
                case Phase.FLAGS:
                    if len(token) < 2:
                        self._malformed(token, index)
                    if not token.startswith("-"):
                        phase = Phase.REQUIRED
                        if len(tokens) - index < len(self._required):
                            self._missing(len(tokens) - index)
                        continue
                    index = self._parse_switch(tokens, index, flags)
                case Phase.REQUIRED:
                    if cursor >= len(self._required):
                        phase, cursor = Phase.OPTIONAL, 0
                        continue
                    required[self._required[cursor].name] = token
                    cursor += 1
                case Phase.OPTIONAL:
                    if cursor >= len(self._optional):
                        self.trigger(UnparsedTokensWarning(
                            "unparsed input remains from %s position: %s" % (
                                _ordinal(index + 1), " ".join(map(repr, tokens[index:]))
                            ),
                            title="unparsed input",
                            code=FaultCode.UNPARSED_TOKENS,
                            hint="remove the extra inputs, run '%s --help' to see valid forms" % self.prog,
                            leftover=tokens[index:],
                            docs=getdoc(FaultCode.UNPARSED_TOKENS),
                        ))
                        break
                    optional[self._optional[cursor].name] = token
                    cursor += 1
            index += 1

        if flags.get(HELP):
            self._helper()

        if len(required) < len(self._required):
            self._missing(len(required))

        return ParsedResult(flags, required, optional)

    # --- help ---

    def usage(self):
        """
        Build the help renderable.

        Palette keys
        - program-name, description-section, usage-label, usage-section
        - group-label, metavar, flag-name, argument-description
        - panel-title

        Customization
        - Define a mapping named __styles__ in __main__ to override any palette entry.
        - When colorful is False, styling is suppressed.
        """
        styles = defaultdict(str, {
            # === Head sections ===
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "description-section": "italic #A3A3A3",  # Neutral gray
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan

            # === Groups / arguments ===
            "group-label": "bold #FFFFFF",  # Pure white headers
            "metavar": "bold #FFD600",  # AMBER for values
            "flag-name": "bold #22C55E",  # GREEN for flags
            "argument-description": "#9CA3AF",  # Muted gray

            # === Fancy panel ===
            "panel-title": "bold #FF4D94",
        } | getattr(__import__('__main__'), "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not self._colorful:
                return Text(str(fragment))
            return Text(str(fragment), style)

        def section(label, table):
            return Group(text(label + ":", styler("group-label")), Padding(table, (0, 0, 0, 4)))

        prog = self.prog
        renders = []

        if not self._fancy:
            renders.append(text(prog, styler("program-name")))
        if self._descr:
            renders.append(Padding(text(self._descr, styler("description-section")), (0, 0, 0, 4)))
        renders.append(Text(""))

        usage = Text()
        usage.append("usage", styler("usage-label")).append(": ")
        usage.append(text(prog, styler("program-name")))
        if self._flags:
            usage.append(" ").append(text("[OPTIONS]", styler("usage-section")))
        for value in self._required:
            usage.append(" ").append(text("<%s>" % value.name.upper(), styler("metavar")))
        for value in self._optional:
            usage.append(" ").append(text("[%s]" % value.name.upper(), styler("metavar")))
        renders.append(usage)

        if self._required or self._optional:
            # the grid aligns every description on the longest name
            table = Table.grid(padding=(0, 4))
            table.add_column(no_wrap=True)
            table.add_column()
            for value in self._required:
                table.add_row(text("<%s>" % value.name.upper(), styler("metavar")),
                              text(value.descr, styler("argument-description")))
            for value in self._optional:
                table.add_row(text("[%s]" % value.name.upper(), styler("metavar")),
                              text(value.descr, styler("argument-description")))
            renders.append(Text(""))
            renders.append(section("args", table))

        if self._flags:
            table = Table.grid(padding=(0, 1))
            table.add_column(no_wrap=True)
            table.add_column(no_wrap=True)
            table.add_column(no_wrap=True)
            for definition in self._flags.values():
                table.add_row(
                    text("-%s," % definition.char if definition.short else "", styler("flag-name")),
                    text("--%s" % definition.name if definition.long else "", styler("flag-name")),
                    Padding(text(definition.descr, styler("argument-description")), (0, 0, 0, 3)),
                )
            renders.append(Text(""))
            renders.append(section("options", table))

        if self._fancy:
            return Panel(Group(*renders), title=text(prog, styler("panel-title")), title_align="left")
        return Group(*renders)

    def _helper(self):
        console.print(self.usage())
        self.trigger(HelpExit())


__all__ = (
    "Options",
    "Phase",
)
