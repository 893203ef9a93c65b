r"""
tagopts schema binding: drive an Options registry from tagged dataclass fields.

Overview
- tag(spec, **field_options): a dataclasses.field carrying a tag string.
- interpret(spec, field): turn one tag string into a FieldBinding (pure, no introspection).
- bindings(schema): interpret every tagged field of a dataclass in declaration order.
- register(options, schema, bindings): declare the flags/values implied by the bindings.
- parse(obj, argv, *descr, **options): register, parse, and write typed values back into obj.

Tag grammar
    tag          := entry { "," entry }
    entry        := bare-keyword | keyword "=" value
    bare-keyword := "flag" | "sflag" | "short_flag" | "lflag" | "long_flag" | "optional" | "required"
    keyword      := "desc" | "description" | "name" | "flag"
    value (flag) := "short" | "long" | anything-else     (anything-else means both forms)

- The first recognised entry creates the binding: name defaults to the field name,
  kind to REQUIRED and description to "". Every later entry overwrites the same
  binding, so with conflicting kinds the last one wins.
- Keywords and flag forms match case-insensitively; names and descriptions are kept as written.
- Entries with an unknown keyword or more than one "=" are ignored; a tag without any
  recognised entry leaves the field out.

Fields
- Only fields whose metadata carries the TAG key take part; fields whose name starts
  with "_" are private and ignored.
- Initial field values are the defaults: a field is only written when a non-empty value
  was parsed for it.
- Supported types: int, Unsigned, float, bool, str. Flags of type bool are presence-only;
  every other type expects an attached value. Fields of other types are left untouched.

Example
    from dataclasses import dataclass
    from tagopts.schema import tag, parse

    @dataclass
    class Config:
        port: int = tag("required,name=port,desc=port to listen on", default=8080)
        verbose: bool = tag("flag,desc=talk more", default=False)

    config = parse(Config(), ["serve", "--verbose", "9090"])
    # Config(port=9090, verbose=True)
"""
import dataclasses
import re
import sys
import typing
from enum import IntEnum
from typing import NamedTuple, NewType

from .faults import FaultCode, UncastableValueError, getdoc
from .options import Options

TAG = "tagopts"

Unsigned = NewType("Unsigned", int)
"""marker type for fields that only accept non-negative integers."""


class BindingKind(IntEnum):
    SHORT_FLAG = 0
    LONG_FLAG = 1
    FLAG = 2
    REQUIRED = 3
    OPTIONAL = 4


class FieldBinding(NamedTuple):
    """one tagged field: where it lives (index, field) and how it is declared."""
    index: int
    field: str
    name: str
    descr: str
    kind: BindingKind


_KEYWORDS = {
    "flag": BindingKind.FLAG,
    "sflag": BindingKind.SHORT_FLAG,
    "short_flag": BindingKind.SHORT_FLAG,
    "lflag": BindingKind.LONG_FLAG,
    "long_flag": BindingKind.LONG_FLAG,
    "optional": BindingKind.OPTIONAL,
    "required": BindingKind.REQUIRED,
}

_FORMS = {
    "short": BindingKind.SHORT_FLAG,
    "long": BindingKind.LONG_FLAG,
}


def tag(spec, /, **options):
    """
    build a dataclasses.field carrying `spec` under the TAG metadata key.

    every other keyword (default, default_factory, repr, ...) is forwarded to
    dataclasses.field; an explicit metadata mapping is merged.
    """
    if not isinstance(spec, str):
        raise TypeError("tag() argument must be a string")
    metadata = dict(options.pop("metadata", None) or {}) | {TAG: spec}
    return dataclasses.field(metadata=metadata, **options)


def interpret(spec, field, /, index=0):
    """
    interpret a tag string for the field `field` (at position `index`).

    returns a FieldBinding, or None when the tag holds no recognised entry.
    """
    if not isinstance(spec, str):
        raise TypeError("interpret() first argument must be a string")
    if not isinstance(field, str):
        raise TypeError("interpret() second argument must be a string")

    binding = None

    def update(**changes):
        nonlocal binding
        if binding is None:
            binding = FieldBinding(index, field, field, "", BindingKind.REQUIRED)
        binding = binding._replace(**changes)

    for entry in spec.split(","):
        entry = entry.strip()
        if "=" not in entry:
            if entry.lower() in _KEYWORDS:
                update(kind=_KEYWORDS[entry.lower()])
            continue

        parts = entry.split("=")
        if len(parts) != 2:
            continue
        keyword, value = parts[0].strip().lower(), parts[1].strip()
        match keyword:
            case "desc" | "description":
                update(descr=value)
            case "name":
                update(name=value)
            case "flag":
                update(kind=_FORMS.get(value.lower(), BindingKind.FLAG))

    return binding


def _resolve(hint, namespace):
    if not isinstance(hint, str):
        return hint
    try:
        return eval(hint, namespace)
    except (NameError, AttributeError, SyntaxError):
        # the supported types are still recognised by name
        return {converted.__name__: converted for converted in _CONVERTERS}.get(hint, hint)


def _hints(schema):
    """
    field name → type of a dataclass (class or instance).

    one unresolvable annotation (e.g. a name only imported under TYPE_CHECKING) does not
    cost the other fields their types: on failure every field is resolved on its own,
    and the ones that still fail keep their string annotation.
    """
    cls = schema if isinstance(schema, type) else type(schema)
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        namespace = dict(vars(sys.modules[cls.__module__])) if cls.__module__ in sys.modules else {}
        return {field.name: _resolve(field.type, namespace) for field in dataclasses.fields(cls)}


def bindings(schema, /):
    """
    interpret every tagged, public field of a dataclass (class or instance), in order.
    """
    if not dataclasses.is_dataclass(schema):
        raise TypeError("bindings() argument must be a dataclass or a dataclass instance")

    table = []
    for index, field in enumerate(dataclasses.fields(schema)):
        if field.name.startswith("_"):
            continue
        spec = field.metadata.get(TAG)
        if not spec:
            continue
        if not isinstance(spec, str):
            raise TypeError("%s tag of field %r must be a string" % (TAG, field.name))
        binding = interpret(spec, field.name, index)
        if binding is not None:
            table.append(binding)
    return table


def register(options, schema, bindings, /):
    """
    declare on `options` what each binding implies; returns `options`.

    flags of type bool are presence-only, every other flag takes a value.
    """
    if not isinstance(options, Options):
        raise TypeError("register() first argument must be an Options instance")
    hints = _hints(schema)

    for binding in bindings:
        takes_value = hints.get(binding.field) is not bool
        match binding.kind:
            case BindingKind.REQUIRED:
                options.declare_required(binding.name, binding.descr)
            case BindingKind.OPTIONAL:
                options.declare_optional(binding.name, binding.descr)
            case BindingKind.FLAG:
                options.declare_flag(binding.name, binding.descr, takes_value)
            case BindingKind.SHORT_FLAG:
                options.declare_short_flag(binding.name, binding.descr, takes_value)
            case BindingKind.LONG_FLAG:
                options.declare_long_flag(binding.name, binding.descr, takes_value)
    return options


def _uncastable(options, binding, value, hint):
    options.trigger(UncastableValueError(
        "invalid value %r for %s" % (value, binding.name.upper()),
        title="invalid value",
        code=FaultCode.UNCASTABLE_VALUE,
        hint=hint,
        name=binding.name,
        value=value,
        docs=getdoc(FaultCode.UNCASTABLE_VALUE),
    ))


def _integer(options, binding, value):
    if not re.fullmatch(r"[+-]?[0-9]+", value):
        _uncastable(options, binding, value, "please ensure that it is a positive integer")
    return int(value)


def _unsigned(options, binding, value):
    if not re.fullmatch(r"\+?[0-9]+", value):
        _uncastable(options, binding, value, "please ensure that it is a non-negative integer")
    return int(value)


def _decimal(options, binding, value):
    # float() tolerates surrounding whitespace and digit separators, a command line value does not
    if value != value.strip() or "_" in value:
        _uncastable(options, binding, value, "please ensure that it is a decimal number")
    try:
        return float(value)
    except ValueError:
        _uncastable(options, binding, value, "please ensure that it is a decimal number")


def _boolean(options, binding, value):
    # unrecognised spellings read as False instead of failing
    return {"1": True, "t": True, "true": True}.get(value.lower(), False)


def _string(options, binding, value):
    return value


_CONVERTERS = {
    int: _integer,
    Unsigned: _unsigned,
    float: _decimal,
    bool: _boolean,
    str: _string,
}


def parse(obj, argv, /, *descr, **options):
    """
    fill the dataclass instance `obj` from `argv` (program name first) and return it.

    parameters
    - obj: a (non-frozen) dataclass instance; its current values are the defaults.
    - argv: the full argument vector, e.g. sys.argv.
    - descr: description fragments shown in the help, joined with spaces.
    - options: runtime options forwarded to Options (shell, fancy, colorful).
    """
    if isinstance(obj, type) or not dataclasses.is_dataclass(obj):
        raise TypeError("parse() first argument must be a dataclass instance")
    if obj.__dataclass_params__.frozen:
        raise TypeError("parse() first argument must not be a frozen dataclass instance")
    if not all(isinstance(fragment, str) for fragment in descr):
        raise TypeError("parse() description fragments must be strings")

    table = bindings(obj)
    registry = register(Options(" ".join(descr), **options), obj, table)
    flags, required, optional = registry.parse(argv)
    hints = _hints(obj)

    for binding in table:
        match binding.kind:
            case BindingKind.REQUIRED:
                value = required.get(binding.name, "")
            case BindingKind.OPTIONAL:
                value = optional.get(binding.name, "")
            case _:
                value = flags.get(binding.name, "")
        if not value:
            continue
        try:
            converter = _CONVERTERS[hints.get(binding.field)]
        except (KeyError, TypeError):
            continue
        setattr(obj, binding.field, converter(registry, binding, value))

    return obj


__all__ = (
    "TAG",
    "Unsigned",
    "BindingKind",
    "FieldBinding",
    "tag",
    "interpret",
    "bindings",
    "register",
    "parse",
)
