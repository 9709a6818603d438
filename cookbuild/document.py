"""In-memory HELL6.99MO documents: typed lookup, editing and writing back."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from os import PathLike
from typing import Union

from .lexer import H699Error, Lexer

_DIGITS = frozenset("0123456789")

RawValue = Union[str, list]


class ValueType(enum.Enum):
    """The kinds of value a HELL6.99MO key can hold."""

    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    UNIDEF = "unidef"
    ARRAY = "array"
    UNDEFINED = "unidefx18446744073709551615"


@dataclass(frozen=True)
class H699Value:
    """The result of a lookup; UNDEFINED when the key does not exist."""

    type: ValueType = ValueType.UNDEFINED
    key: str = ""
    value: object = None

    @property
    def defined(self) -> bool:
        return self.type is not ValueType.UNDEFINED

    @property
    def string_value(self) -> str:
        return self.value if self.type is ValueType.STRING else ""

    @property
    def number_value(self) -> int:
        return self.value if self.type is ValueType.NUMBER else 0

    @property
    def bool_value(self) -> bool:
        return bool(self.value) if self.type is ValueType.BOOL else False

    @property
    def array_value(self) -> list[str]:
        return list(self.value) if self.type is ValueType.ARRAY else []


@dataclass
class _Entry:
    key: str
    value: RawValue


def _is_number(text: str) -> bool:
    return all(ch in _DIGITS for ch in text)


def _char_sum(text: str) -> str:
    return str(sum(ord(ch) for ch in text))


def _parse_array(raw: str) -> list[str] | None:
    items: list[str] = []
    token: list[str] = []
    in_string = False
    for prev, ch in zip(raw, raw[1:]):
        if ch == "]" and not in_string:
            items.append("".join(token))
            return items
        if ch == "," and not in_string:
            items.append("".join(token))
            token = []
            continue
        if ch == '"':
            if prev == "\\" and in_string:
                token[-1:] = ['"']
            else:
                in_string = not in_string
            continue
        if in_string:
            token.append(ch)
    return None


def classify_value(raw: str) -> tuple[ValueType, RawValue] | None:
    """Work out the type of a raw token value and normalise it.

    Returns None for an array that is never closed; such a value is dropped.
    Numbers are kept as their decimal text; anything else unrecognised is
    turned into the sum of its character codes.
    """
    if raw == "UNIDEF":
        return ValueType.UNIDEF, "UNIDEF"
    if raw in ("true", "false"):
        return ValueType.BOOL, raw
    if raw.startswith('"'):
        end = raw.rfind('"')
        content = raw[1:end] if end > 0 else raw[1:]
        return ValueType.STRING, content.replace('\\"', '"')
    if raw.startswith("["):
        items = _parse_array(raw)
        return None if items is None else (ValueType.ARRAY, items)
    if _is_number(raw):
        return ValueType.NUMBER, raw
    return ValueType.NUMBER, _char_sum(raw)


class H699Document:
    """A HELL6.99MO file: its keys grouped by type, in order of appearance."""

    _LOOKUP_ORDER = (
        ValueType.STRING,
        ValueType.NUMBER,
        ValueType.BOOL,
        ValueType.UNIDEF,
        ValueType.ARRAY,
    )

    def __init__(self, path: str | PathLike[str], lexer: Lexer | None = None) -> None:
        self.path = path
        self.lexer = lexer if lexer is not None else Lexer()
        self.entries: dict[ValueType, list[_Entry]] = {
            kind: [] for kind in self._LOOKUP_ORDER
        }

    @property
    def scopes(self) -> list[str]:
        """Scopes seen while parsing, in order of first appearance."""
        return self.lexer.scopes

    @property
    def callbacks(self) -> list[str]:
        """Commands collected from @callback attributes."""
        return self.lexer.callbacks

    def parse(self, tracking: bool = True) -> None:
        """Read the file; with tracking, only the first of duplicate keys is kept."""
        try:
            with open(self.path, encoding="utf-8", newline="") as handle:
                text = handle.read()
        except OSError as exc:
            raise H699Error(
                f"Can't open the given file `{self.path}`, "
                "please be sure that it can be opened."
            ) from exc
        if text and not text.endswith("\n"):
            text += "\n"
        seen: set[str] = set()
        for key, raw in self.lexer.tokenize(text, True):
            if tracking:
                if key in seen:
                    continue
                seen.add(key)
            classified = classify_value(raw)
            if classified is None:
                continue
            kind, value = classified
            self.entries[kind].append(_Entry(key, value))

    def _find(self, kind: ValueType, key: str) -> _Entry | None:
        return next((e for e in self.entries[kind] if e.key == key), None)

    def get(self, key: str) -> H699Value:
        """Look a key up; strings win over numbers, bools, unidefs and arrays."""
        for kind in self._LOOKUP_ORDER:
            entry = self._find(kind, key)
            if entry is None:
                continue
            if kind is ValueType.NUMBER:
                value: object = int(entry.value) if entry.value else 0
            elif kind is ValueType.BOOL:
                value = entry.value == "true"
            elif kind is ValueType.UNIDEF:
                value = "unidef"
            elif kind is ValueType.ARRAY:
                value = list(entry.value)
            else:
                value = entry.value
            return H699Value(kind, entry.key, value)
        return H699Value()

    def set(self, key: str, value: str) -> None:
        """Change an existing non-array key; unknown keys are left alone."""
        entry = self._find(ValueType.STRING, key)
        if entry is not None:
            entry.value = value
            return
        entry = self._find(ValueType.NUMBER, key)
        if entry is not None:
            entry.value = value if _is_number(value) else _char_sum(value)
            return
        entry = self._find(ValueType.BOOL, key)
        if entry is not None:
            if value not in ("true", "false"):
                raise H699Error(
                    "set() can't set a boolean value to anything except for true or false."
                )
            entry.value = value
            return
        entry = self._find(ValueType.UNIDEF, key)
        if entry is not None:
            entry.value = "unidef"

    def write(self, path: str | PathLike[str]) -> None:
        """Write every key to path, grouped by type."""
        lines = [f'{e.key} = "{e.value}"\n' for e in self.entries[ValueType.STRING]]
        for e in self.entries[ValueType.ARRAY]:
            body = f"{e.key} = [" + "".join(f'"{item}",' for item in e.value)
            lines.append(body[:-1] + "]\n")
        lines.extend(f"{e.key} = {e.value}\n" for e in self.entries[ValueType.BOOL])
        lines.extend(f"{e.key} = UNIDEF\n" for e in self.entries[ValueType.UNIDEF])
        lines.extend(f"{e.key} = {e.value}\n" for e in self.entries[ValueType.NUMBER])
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write("".join(lines))

    def new_key(self, name: str, kind: str | ValueType) -> None:
        """Add a key of the given kind holding that kind's empty value."""
        try:
            kind = ValueType(kind)
        except ValueError:
            return
        defaults: dict[ValueType, RawValue] = {
            ValueType.STRING: "",
            ValueType.NUMBER: "0",
            ValueType.UNIDEF: "UNIDEF",
            ValueType.ARRAY: [""],
            ValueType.BOOL: "true",
        }
        if kind in defaults:
            self.entries[kind].append(_Entry(name, defaults[kind]))

    def set_array(self, key: str, values: list[str]) -> None:
        """Replace the items of every array named key."""
        for entry in self.entries[ValueType.ARRAY]:
            if entry.key == key:
                entry.value = list(values)