"""Chart values: merging, copying and string-path assignment."""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Optional

import yaml

ValuesApplier = Callable[[dict], None]

_MAX_INDEX = 65536
_MAX_NESTED_NAME_LEVEL = 30
_INT_RE = re.compile(r"[+-]?[0-9]+")


def apply_values(to: dict, source: dict) -> None:
    """Merge source into to, recursing where both sides hold mappings."""
    for key, value in source.items():
        if key not in to:
            to[key] = value
        elif isinstance(value, dict) and isinstance(to[key], dict):
            apply_values(to[key], value)
        else:
            to[key] = value


def copy_values(src: dict) -> dict:
    """Return a deep copy of values through a JSON round trip."""
    try:
        data = json.dumps(src)
    except (TypeError, ValueError) as err:
        raise ValueError(f"failed to json.Marshal original values: {err}") from err
    try:
        result = json.loads(data)
    except ValueError as err:
        raise ValueError(f"failed to use json.Unmarshal to copy values: {err}") from err
    if result is None:
        return {}
    return result


class _EndOfInput(Exception):
    pass


class _NotList(Exception):
    pass


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _set(data: dict, key: str, value: Any) -> None:
    if key:
        data[key] = value


def _set_index(items: list, index: int, value: Any) -> list:
    if index < 0:
        raise ValueError(f"negative {index} index not allowed")
    if index > _MAX_INDEX:
        raise ValueError(
            f"index of {index} is greater than maximum supported index of {_MAX_INDEX}"
        )
    if len(items) <= index:
        items.extend([None] * (index + 1 - len(items)))
    items[index] = value
    return items


def _typed_val(text: str) -> Any:
    folded = text.casefold()
    if folded == "true":
        return True
    if folded == "false":
        return False
    if folded == "null":
        return None
    if text == "0":
        return 0
    if text and text[0] != "0" and _INT_RE.fullmatch(text):
        number = int(text)
        if -(2**63) <= number < 2**63:
            return number
    return text


class _Parser:
    def __init__(self, text: str, data: dict) -> None:
        self._text = text
        self._pos = 0
        self._data = data

    def _read(self) -> Optional[str]:
        if self._pos >= len(self._text):
            return None
        ch = self._text[self._pos]
        self._pos += 1
        return ch

    def _unread(self) -> None:
        self._pos -= 1

    def _runes_until(self, stop: str) -> tuple[str, Optional[str]]:
        out: list[str] = []
        while True:
            ch = self._read()
            if ch is None:
                return "".join(out), None
            if ch in stop:
                return "".join(out), ch
            if ch == "\\":
                nxt = self._read()
                if nxt is None:
                    return "".join(out), None
                out.append(nxt)
            else:
                out.append(ch)

    def parse(self) -> None:
        while True:
            try:
                self._key(self._data, 0)
            except _EndOfInput:
                return

    def _key(self, data: dict, level: int) -> None:
        key, last = self._runes_until("=[,.")
        if last is None:
            if not key:
                raise _EndOfInput
            raise ValueError(f"key {_quote(key)} has no value")

        if last == "[":
            index = self._key_index()
            items: list = []
            if key in data:
                if not isinstance(data[key], list):
                    raise ValueError(f"unable to parse key: {_quote(key)} is not a list")
                items = data[key]
            try:
                items = self._list_item(items, index, level)
            except _EndOfInput:
                _set(data, key, items)
                raise
            _set(data, key, items)
            return

        if last == "=":
            try:
                values = self._val_list()
            except _EndOfInput:
                _set(data, key, "")
                raise
            except _NotList:
                _set(data, key, _typed_val(self._val()))
                return
            _set(data, key, values)
            return

        if last == ",":
            _set(data, key, "")
            raise ValueError(f"key {_quote(key)} has no value (cannot end with ,)")

        level += 1
        if level > _MAX_NESTED_NAME_LEVEL:
            raise ValueError(
                "value name nested level is greater than maximum supported "
                f"nested level of {_MAX_NESTED_NAME_LEVEL}"
            )
        inner: dict = {}
        if key in data:
            if not isinstance(data[key], dict):
                raise ValueError(f"unable to parse key: {_quote(key)} is not a map")
            inner = data[key]
        try:
            self._key(inner, level)
        except (_EndOfInput, ValueError):
            if inner:
                _set(data, key, inner)
            raise
        if not inner:
            raise ValueError(f"key map {_quote(key)} has no value")
        _set(data, key, inner)

    def _key_index(self) -> int:
        text, last = self._runes_until("]")
        if last is None:
            raise ValueError("error parsing index: EOF")
        if not _INT_RE.fullmatch(text):
            raise ValueError(f"error parsing index: invalid index {_quote(text)}")
        return int(text)

    def _val_list(self) -> list:
        ch = self._read()
        if ch is None:
            raise _EndOfInput
        if ch != "{":
            self._unread()
            raise _NotList
        items: list = []
        while True:
            text, last = self._runes_until(",}")
            if last is None:
                raise ValueError("list must terminate with '}'")
            items.append(_typed_val(text))
            if last == "}":
                nxt = self._read()
                if nxt is not None and nxt != ",":
                    self._unread()
                return items

    def _val(self) -> str:
        text, _ = self._runes_until(",")
        return text

    def _list_item(self, items: list, index: int, level: int) -> list:
        if index < 0:
            raise ValueError(f"negative {index} index not allowed")
        text, last = self._runes_until("[.=")
        if text:
            raise ValueError(f"unexpected data at end of array index: {_quote(text)}")
        if last is None:
            raise _EndOfInput

        if last == "=":
            try:
                values = self._val_list()
            except _EndOfInput:
                return _set_index(items, index, "")
            except _NotList:
                return _set_index(items, index, _typed_val(self._val()))
            return _set_index(items, index, values)

        if last == "[":
            next_index = self._key_index()
            current: list = []
            if len(items) > index and items[index] is not None:
                if not isinstance(items[index], list):
                    raise ValueError(f"unable to parse key: index {index} is not a list")
                current = items[index]
            nested = self._list_item(current, next_index, level)
            return _set_index(items, index, nested)

        inner: dict = {}
        if len(items) > index:
            if isinstance(items[index], dict):
                inner = items[index]
            else:
                items[index] = inner
        self._key(inner, level)
        return _set_index(items, index, inner)


def parse_into(value: str, target: dict) -> None:
    """Parse a key.path=value[,key=value] string into target."""
    _Parser(value, target).parse()


def string_path_values_applier(*values: str) -> ValuesApplier:
    """Return an applier that sets values given as string paths, e.g. x.y.z=1."""

    def apply(to: dict) -> None:
        for value in values:
            try:
                parse_into(value, to)
            except ValueError as err:
                raise ValueError(f"failed to parse ({value}) into values: {err}") from err

    return apply


def yaml_values_applier(yaml_values: str) -> ValuesApplier:
    """Return an applier that merges the given YAML mapping into values."""
    try:
        parsed = yaml.safe_load(yaml_values)
    except yaml.YAMLError as err:
        raise ValueError(f"failed to parse YAML values: {err}") from err
    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ValueError(f"YAML values must be a mapping, got {type(parsed).__name__}")

    def apply(to: dict) -> None:
        apply_values(to, copy_values(parsed))

    return apply