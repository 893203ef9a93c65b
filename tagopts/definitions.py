"""
tagopts declarations: the records stored by an Options registry.

- FlagDefinition: a named switch with its forms (short -x, long --name) and whether
  it expects an attached value.
- ValueDefinition: a named positional value (used for both the required and the
  optional lists).
- ParsedResult: the three mappings produced by one Options.parse call.

All three are immutable named tuples; upgrading a flag (adding a short or long
form) replaces its record with `_replace`.
"""
from typing import NamedTuple


class FlagDefinition(NamedTuple):
    name: str
    short: bool
    long: bool
    takes_value: bool
    descr: str = ""

    @property
    def char(self):
        """the character matched against -x tokens (first character of the name)."""
        return self.name[0]

    def forms(self):
        """the spellings accepted on the command line, short first."""
        forms = []
        if self.short:
            forms.append("-" + self.char)
        if self.long:
            forms.append("--" + self.name)
        return tuple(forms)


class ValueDefinition(NamedTuple):
    name: str
    descr: str = ""


class ParsedResult(NamedTuple):
    """
    result of a parse, keyed by declared names.

    - flags: every declared flag → "" (not given), "true" (given without a value)
      or the attached literal.
    - required: required value name → literal (only supplied entries).
    - optional: optional value name → literal (only supplied entries).

    consumers treat an absent or empty entry as "use the default".
    """
    flags: dict[str, str]
    required: dict[str, str]
    optional: dict[str, str]


__all__ = (
    "FlagDefinition",
    "ValueDefinition",
    "ParsedResult",
)
