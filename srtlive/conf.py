"""Configuration: typed option commands, block-structured conf files and argv parsing."""

from __future__ import annotations

import logging
import re
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

from .common import remove_marks

log = logging.getLogger(__name__)

CONF_OUT_RANGE = "out of range"
CONF_NAME_NOT_EXISTS = "name not exist"
CONF_WRONG_TYPE = "wrong type"

_KINDS = ("int", "string", "double", "bool")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class ConfError(Exception):
    """Raised when a configuration value, file or command line is invalid."""


def _atoi(text: str) -> int:
    """Parse a leading integer the way C's atoi does; 0 when there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    """Parse a leading float the way C's atof does; 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


@dataclass(frozen=True)
class ConfCommand:
    """A named, typed and range-checked setting.

    For strings the range bounds the length; for numbers, the value.
    """

    name: str
    mark: str
    kind: str
    min: float
    max: float
    attr: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in _KINDS:
            raise ValueError(f"unknown conf kind {self.kind!r}")
        if self.attr is None:
            object.__setattr__(self, "attr", self.name)

    def _default(self) -> Any:
        return {"int": 0, "string": "", "double": 0.0, "bool": False}[self.kind]

    def _convert(self, value: str) -> Any:
        if self.kind == "int":
            number = _atoi(value)
            if number < self.min or number > self.max:
                raise ConfError(CONF_OUT_RANGE)
            return number
        if self.kind == "double":
            real = _atof(value)
            if real < self.min or real > self.max:
                raise ConfError(CONF_OUT_RANGE)
            return real
        if self.kind == "bool":
            if value == "true":
                return True
            if value == "false":
                return False
            raise ConfError(CONF_WRONG_TYPE)
        if len(value) < self.min or len(value) > self.max:
            raise ConfError(CONF_OUT_RANGE)
        return value

    def apply(self, value: str, target: Any) -> Any:
        """Convert ``value``, store it on ``target`` and return it.

        ``target`` may be a ConfBlock, a mapping or any object with attributes.
        """
        converted = self._convert(value)
        if isinstance(target, ConfBlock):
            target = target.values
        if isinstance(target, MutableMapping):
            target[self.attr] = converted
        else:
            setattr(target, self.attr, converted)
        return converted


@dataclass
class ConfBlock:
    """One ``name { ... }`` block: its settings and nested blocks."""

    name: str
    values: dict[str, Any] = field(default_factory=dict)
    children: list["ConfBlock"] = field(default_factory=list)


def _new_block(name: str, commands: Sequence[ConfCommand]) -> ConfBlock:
    return ConfBlock(name, {cmd.attr: cmd._default() for cmd in commands})


class ConfRegistry:
    """Maps block names to the commands allowed inside them."""

    def __init__(self) -> None:
        self._blocks: dict[str, tuple[ConfCommand, ...]] = {}

    def register(self, name: str, commands: Iterable[ConfCommand]) -> None:
        """Declare a block type and its commands."""
        self._blocks[name] = tuple(commands)

    def get(self, name: str) -> tuple[ConfCommand, ...] | None:
        """Return the commands of a block type, or None if it is unknown."""
        return self._blocks.get(name)


def find_command(name: str, commands: Iterable[ConfCommand]) -> ConfCommand | None:
    """Return the command called ``name``, or None."""
    return next((cmd for cmd in commands if cmd.name == name), None)


def string_split(text: str, delim: str) -> list[str]:
    """Split on any character of ``delim``, dropping empty pieces."""
    if not text:
        return []
    if not delim:
        return [text]
    pattern = "[" + re.escape(delim) + "]"
    return [piece for piece in re.split(pattern, text) if piece]


def _clean(line: str) -> str:
    return line.replace("\t", "").strip(" ")


def parse_conf(lines: Iterable[str], registry: ConfRegistry) -> list[ConfBlock]:
    """Parse conf text into its top-level blocks.

    Lines end in ';' (setting), '{' (open block) or '}' (close block);
    '#' starts a comment.
    """
    root = ConfBlock("")
    stack: list[ConfBlock] = [root]
    commands_stack: list[tuple[ConfCommand, ...] | None] = [None]

    for number, raw in enumerate(lines, 1):
        line = raw.rstrip("\r\n").split("#", 1)[0]
        line = _clean(line)
        if not line:
            continue
        log.debug("line:%d='%s'", number, line)
        end = line[-1]

        if end == ";":
            commands = commands_stack[-1]
            if commands is None:
                raise ConfError(f"line:{number}='{line}', not found block")
            body = _clean(line[:-1])
            name, sep, value = body.partition(" ")
            if not sep:
                raise ConfError(f"line:{number}='{body}', no space separator")
            cmd = find_command(name, commands)
            if cmd is None:
                raise ConfError(f"line:{number}='{body}', wrong name='{name}'")
            value = value.strip(" ")
            try:
                cmd.apply(value, stack[-1])
            except ConfError as exc:
                raise ConfError(
                    f"line:{number}, set failed, {exc}, name='{name}', value='{value}'"
                ) from exc
        elif end == "{":
            name = _clean(line[:-1])
            if not name:
                raise ConfError(f"line:{number}, no name found")
            commands = registry.get(name)
            if commands is None:
                raise ConfError(f"line:{number}, name='{name}' not found")
            block = _new_block(name, commands)
            stack[-1].children.append(block)
            stack.append(block)
            commands_stack.append(commands)
        elif end == "}":
            if line != "}":
                raise ConfError(f"line:{number}='{line}', end indicator '}}' with more info")
            if len(stack) == 1:
                raise ConfError(f"line:{number}, unbalanced '}}'")
            stack.pop()
            commands_stack.pop()
        else:
            raise ConfError(
                f"line:{number}='{line}', invalid end flag, except ';', '{{', '}}'"
            )

    if len(stack) > 1:
        raise ConfError("parse conf failed, please check count of '{' and '}'")
    if not root.children:
        raise ConfError("parse conf failed, no block found")
    return root.children


def load_conf(path: str | Path, registry: ConfRegistry) -> list[ConfBlock]:
    """Read and parse a conf file."""
    log.info("load_conf, parsing conf file='%s'", path)
    try:
        with open(path, encoding="utf-8") as handle:
            return parse_conf(handle, registry)
    except OSError as exc:
        raise ConfError(
            f"open conf file='{path}' failed, please check if the file exist"
        ) from exc


def format_help(commands: Iterable[ConfCommand]) -> str:
    """Describe each command line option with its range."""
    lines = ["option help info:"]
    lines.extend(
        f"-{cmd.name}, {cmd.mark}, range: {cmd.min:.0f}-{cmd.max:.0f}." for cmd in commands
    )
    return "\n".join(lines)


def parse_argv(argv: Sequence[str], commands: Sequence[ConfCommand]) -> dict[str, Any]:
    """Parse ``-name value`` pairs (program name excluded) into a dict of settings.

    A lone argument is never valid: ``-h`` raises ConfError carrying the help text.
    """
    options: dict[str, Any] = {cmd.attr: cmd._default() for cmd in commands}
    args = list(argv)
    if len(args) == 1:
        if remove_marks(args[0]) == "-h":
            raise ConfError(format_help(commands))
        raise ConfError(f"wrong parameter, '{args[0]}'")

    it = iter(args)
    for arg in it:
        if not arg:
            raise ConfError("wrong parameter, is ''")
        text = remove_marks(arg)
        if not text.startswith("-"):
            raise ConfError(f"wrong parameter '{text}', the first character must be '-'")
        name = text[1:]
        cmd = find_command(name, commands)
        if cmd is None:
            raise ConfError(f"wrong parameter '{arg}'")
        try:
            value = remove_marks(next(it))
        except StopIteration:
            raise ConfError(f"parameter '{name}' has no value") from None
        try:
            cmd.apply(value, options)
        except ConfError as exc:
            raise ConfError(
                f"parameter set failed, {exc}, name='{name}', value='{value}'"
            ) from exc
    return options