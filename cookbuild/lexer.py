"""Tokenizer for the HELL6.99MO configuration format used by recipes."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Callable

from .log import CookError, Logger

_NOISE = str.maketrans("", "", "\0\r\n")


class H699Error(CookError):
    """Raised when a HELL6.99MO document cannot be read."""


def _clean(text: str) -> str:
    return text.translate(_NOISE)


def _run_shell(command: str) -> None:
    subprocess.run(command, shell=True, check=False)


def _indent_lines(content: str) -> str:
    """Prefix the text with a space and add one after every newline outside strings."""
    out = []
    in_string = False
    text = " " + content
    for prev, ch in zip("\0" + text, text):
        out.append(ch)
        if ch == '"' and prev != "\\":
            in_string = not in_string
        if ch == "\n" and not in_string:
            out.append(" ")
    return "".join(out)


class _CommentStripper:
    """Removes '#' comments; its string and comment state carries across calls."""

    def __init__(self) -> None:
        self.in_string = False
        self.in_comment = False

    def strip(self, text: str) -> str:
        out = []
        for prev, ch in zip("\0" + text, text):
            if ch == '"':
                if self.in_string and prev == "\\":
                    out.append('"')
                    continue
                self.in_string = not self.in_string
            if ch == "#" and not self.in_string and not self.in_comment:
                self.in_comment = True
            if ch == "\n" and not self.in_string:
                self.in_comment = False
            if not self.in_comment:
                out.append(ch)
        return "".join(out)


def remove_comments(text: str) -> str:
    """Return the text with every '#' comment outside a string removed."""
    return _CommentStripper().strip(text)


@dataclass
class _AttributeState:
    in_string: bool = False
    in_name: bool = False
    in_value: bool = False
    writable: bool = True

    def close(self) -> None:
        self.in_name = False
        self.in_value = False
        self.writable = True


def _read_import(path: str) -> str:
    try:
        with open(path, encoding="utf-8", newline="") as handle:
            text = handle.read()
    except OSError as exc:
        raise H699Error(
            "import attribute needs a valid file path to import a file, "
            f"the file `{path}` couldn't be opened, "
            "please make sure that the file is accessible."
        ) from exc
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    # Every imported line keeps a leading space so indentation stays consistent.
    return "".join(f" {line}\n" for line in lines)


def _walk_back(text: str, pos: int) -> tuple[str, int]:
    """Collect the characters before pos on its line (reversed) and count the spaces."""
    collected = []
    spaces = 0
    counting = False
    x = pos
    while x > 0 and text[x] != "\n":
        if text[x - 1] != " " and not counting:
            counting = True
        elif text[x] == " " and counting:
            spaces += 1
        else:
            collected.append(text[x])
            if x == 1:
                if text[0] == " " and counting:
                    spaces += 1
                else:
                    collected.append(text[0])
        x -= 1
    return "".join(collected), spaces


def _tail(collected: str) -> str:
    return collected[0] if collected[0] not in "= " else ""


def _scope_name(collected: str) -> str:
    if not collected:
        return ""
    name = "\0" + collected[:0:-1] + _tail(collected)
    return name.replace(" ", "").replace(":", "")


def _element_name(collected: str) -> str:
    if len(collected) < 2:
        return ""
    name = collected[:0:-1] + _tail(collected)
    return name.replace(" ", "")


def _parent(scope: str) -> str:
    cut = scope.rfind(".")
    return scope[:cut] if cut != -1 else scope


def _read_value(text: str, start: int) -> tuple[str, int]:
    """Read a value up to the end of its line; strings and arrays may span lines."""
    value = []
    started = in_string = in_array = False
    x = start
    while x < len(text):
        c = text[x]
        if c != " " and not started:
            started = True
        if c == '"':
            if in_string and text[x - 1] == "\\":
                # An escaped quote keeps the string open.
                value.append(c)
                x += 1
                continue
            in_string = not in_string
        if c == "]" and not in_string and in_array:
            in_array = False
        elif c == "[" and not in_string and not in_array:
            in_array = True
        if c == "\n" and not in_string and not in_array:
            return "".join(value), x
        if started:
            value.append(c)
        x += 1
    return "".join(value), len(text)


def _expand_reference(text: str, pos: int, elements: list[tuple[str, str]]) -> str:
    """Turn 'name > key' into a scope holding copies of the elements under key."""
    line_end = text.find("\n", pos + 1)
    if line_end == -1:
        line_end = len(text)
    key = text[pos + 1:line_end].replace(" ", "")
    end_line_pos = pos + len(key) + 1
    line_start = text.rfind("\n", 0, pos) + 1
    pad = " " * (text[line_start:pos].count(" ") + 1)
    fetched = "".join(
        f"{pad}    {name} = {value}\n"
        for name, value in elements
        if _clean(name[:len(key) + 1]) == key
    )
    if not fetched:
        fetched = "UNIDEF=UNIDEF"
    return text[:pos] + ":" + "\n" + fetched + text[end_line_pos + 1:]


class Lexer:
    """Turns HELL6.99MO text into (key, raw value) pairs and records scopes."""

    def __init__(
        self,
        logger: Logger | None = None,
        run_command: Callable[[str], object] | None = None,
    ) -> None:
        self.logger = logger if logger is not None else Logger()
        self.run_command = run_command if run_command is not None else _run_shell
        self.scopes: list[str] = []
        self.callbacks: list[str] = []

    def tokenize(self, content: str, track_scopes: bool = True) -> list[tuple[str, str]]:
        """Return the key/value pairs of the document in order of appearance."""
        stripper = _CommentStripper()
        text = stripper.strip(_indent_lines(content))
        state = _AttributeState()
        imported: list[str] = []
        runs = 1
        while runs:
            attributed, extra = self._apply_attributes(text, state, imported)
            runs += extra
            text = stripper.strip(attributed)
            runs -= 1
        elements = self._analyse(text, track_scopes)
        return [(_clean(name), value) for name, value in elements]

    def _apply_attributes(
        self, text: str, state: _AttributeState, imported: list[str]
    ) -> tuple[str, int]:
        out = []
        name: list[str] = []
        value: list[str] = []
        runs = 0
        for prev, ch in zip("\0" + text, text):
            if ch == '"':
                if state.in_string and prev == "\\":
                    out.append('"')
                    continue
                state.in_string = not state.in_string
            if ch == "@" and not state.in_string and not state.in_name:
                state.in_name = True
                state.writable = False
                continue
            if ch == " " and not state.in_string and state.in_name:
                state.in_value = True
                state.in_name = False
                continue
            if ch == "\n" and state.in_name:
                # An attribute without a value is dropped.
                name.clear()
                value.clear()
                state.close()
            if ch == "\n" and state.in_value:
                attribute = "".join(name)
                argument = "".join(value)
                if attribute == "import":
                    if argument in imported:
                        continue
                    out.append(_read_import(argument))
                    imported.append(argument)
                    runs += 1
                elif attribute == "show_logs":
                    if "true" in argument:
                        self.logger.allowed = True
                    elif "false" in argument:
                        self.logger.allowed = False
                    else:
                        self.logger.error(
                            "@show_logs attribute can only contain true or false values"
                        )
                elif attribute == "callback":
                    self.callbacks.append(argument)
                elif attribute == "system":
                    self.run_command(argument)
                name.clear()
                value.clear()
                state.close()
            if state.in_name:
                name.append(ch)
            elif state.in_value:
                value.append(ch)
            if state.writable:
                out.append(ch)
        return "".join(out), runs

    def _analyse(self, text: str, track_scopes: bool) -> list[tuple[str, str]]:
        elements: list[tuple[str, str]] = []
        spacings: list[int] = []
        opened = ""
        in_string = False
        i = 0
        while i < len(text):
            ch = text[i]
            if ch in '"`':
                in_string = not in_string
            if ch == ">" and not in_string:
                text = _expand_reference(text, i, elements)
                i -= 1
                ch = text[i] if i >= 0 else ""

            if ch == ":" and not in_string:
                collected, indent = _walk_back(text, i)
                scope = _scope_name(collected)
                while True:
                    if not spacings:
                        opened = scope
                        spacings.append(indent)
                        break
                    if indent <= spacings[-1]:
                        opened = _parent(opened)
                        spacings.pop()
                        continue
                    opened += "." + scope
                    spacings.append(indent)
                    break
                if track_scopes and opened not in self.scopes:
                    self.scopes.append(_clean(opened))
                text = text[:i + 1] + "\n" + " " * (indent + 2) + text[i + 1:]
            elif ch == "=" and not in_string:
                collected, indent = _walk_back(text, i)
                name = _element_name(collected)
                while spacings:
                    if indent <= spacings[-1]:
                        opened = _parent(opened)
                        spacings.pop()
                    else:
                        name = opened + "." + name
                        break
                value, i = _read_value(text, i + 1)
                elements.append((name, value))
            i += 1
        return elements