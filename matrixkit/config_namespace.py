"""Strict, path-aware reader for raw matrix documents and skill metadata."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    if not parent:
        return key
    return f"{parent}.{key}"


@dataclass
class ConfigNamespace:
    """Typed access to one mapping of a raw document with consumed-keys enforcement.

    Every getter records the key as consumed; `assert_consumed` then rejects any
    key nobody asked for, so typos in a rule (`need_any`, `suggests`) fail loudly
    with the dotted path of the offending mapping.
    """

    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: dict[str, "ConfigNamespace"] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def empty(cls, *, path: str) -> "ConfigNamespace":
        return cls({}, path=path)

    @classmethod
    def from_value(cls, raw: Any, *, path: str) -> "ConfigNamespace":
        if raw is None:
            return cls.empty(path=path)
        if not isinstance(raw, Mapping):
            raise TypeError(f"{path or '<root>'} must be a mapping (type={type(raw).__name__})")
        return cls(dict(raw), path=path)

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(str(k) for k in self.data.keys() if k not in self._consumed))

    def assert_consumed(self) -> None:
        unknown = list(self.unconsumed_keys())
        if unknown:
            path = self.path or "<root>"
            consumed = ", ".join(self.consumed_keys()) or "<none>"
            raise ValueError(
                f"Unknown keys under {path}: {', '.join(unknown)} (known: {consumed})"
            )
        for child in self._children.values():
            child.assert_consumed()

    def has(self, key: str) -> bool:
        return key in self.data

    def get_value(self, key: str, *, default: Any = _MISSING) -> Any:
        """Return the raw value without type coercion."""

        return self._get_raw(key, default=default)

    def _get_raw(self, key: str, *, default: Any) -> Any:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("ConfigNamespace key must be a non-empty string")
        normalized = key.strip()
        if normalized in self._children:
            raise ValueError(
                f"{_join_path(self.path, normalized)} already accessed as a nested namespace"
            )

        self._consumed.add(normalized)
        if normalized not in self.data:
            if default is _MISSING:
                raise ValueError(f"Missing required field: {_join_path(self.path, normalized)}")
            return default
        return self.data.get(normalized)

    def namespace(
        self,
        key: str,
        *,
        default: Mapping[str, Any] | None | object = _MISSING,
    ) -> "ConfigNamespace":
        normalized = (key or "").strip()
        if not normalized:
            raise TypeError("ConfigNamespace key must be a non-empty string")
        if normalized in self._children:
            return self._children[normalized]

        child_path = _join_path(self.path, normalized)
        raw = self.data.get(normalized) if normalized in self.data else None
        self._consumed.add(normalized)

        if raw is None:
            if default is _MISSING:
                raise ValueError(f"Missing required section: {child_path}")
            if default is not None and not isinstance(default, Mapping):
                raise TypeError(f"default for {child_path} must be a mapping or None")
            child = ConfigNamespace(dict(default or {}), path=child_path)
        elif not isinstance(raw, Mapping):
            raise TypeError(f"{child_path} must be a mapping (type={type(raw).__name__})")
        else:
            child = ConfigNamespace(dict(raw), path=child_path)

        self._children[normalized] = child
        return child

    def get_bool(self, key: str, *, default: bool | object = _MISSING) -> bool:
        if default is not _MISSING and not isinstance(default, bool):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a boolean")

        value = self._get_raw(key, default=default)
        if not isinstance(value, bool):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a boolean (type={type(value).__name__})"
            )
        return value

    def get_int(self, key: str, *, default: int | object = _MISSING) -> int:
        if default is not _MISSING and (isinstance(default, bool) or not isinstance(default, int)):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be an int")

        value = self._get_raw(key, default=default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be an int (type={type(value).__name__})"
            )
        return int(value)

    def get_str(
        self,
        key: str,
        *,
        default: str | None | object = _MISSING,
        allow_empty: bool = False,
    ) -> str | None:
        if default is not _MISSING and default is not None and not isinstance(default, str):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a string or None")

        raw = self._get_raw(key, default=default)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a string (type={type(raw).__name__})"
            )
        value = raw.strip()
        if not value and not allow_empty:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")
        return value

    def get_list_str(
        self,
        key: str,
        *,
        default: list[str] | tuple[str, ...] | object = _MISSING,
        allow_empty: bool = True,
    ) -> list[str]:
        if default is not _MISSING and not isinstance(default, (list, tuple)):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a list[str]")

        raw = self._get_raw(key, default=default)
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a list[str] (type={type(raw).__name__})"
            )

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str):
                raise TypeError(
                    f"{_join_path(self.path, key.strip())}[{idx}] must be a string (type={type(item).__name__})"
                )
            trimmed = item.strip()
            if not trimmed:
                raise ValueError(f"{_join_path(self.path, key.strip())}[{idx}] cannot be empty")
            items.append(trimmed)

        if not items and not allow_empty:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")
        return items

    def get_list_mapping(
        self,
        key: str,
        *,
        default: list[Mapping[str, Any]] | tuple[Mapping[str, Any], ...] | object = _MISSING,
    ) -> list["ConfigNamespace"]:
        """Parse a list of mappings, one child namespace per item (`key[idx]`)."""

        if default is not _MISSING and not isinstance(default, (list, tuple)):
            raise TypeError(f"{_join_path(self.path, key.strip())} default must be a list[dict]")

        raw = self._get_raw(key, default=default)
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a list[dict] (type={type(raw).__name__})"
            )

        items: list[ConfigNamespace] = []
        for idx, item in enumerate(raw):
            item_path = f"{_join_path(self.path, key.strip())}[{idx}]"
            if not isinstance(item, Mapping):
                raise TypeError(f"{item_path} must be a mapping (type={type(item).__name__})")
            child = ConfigNamespace(dict(item), path=item_path)
            self._children[f"{key.strip()}[{idx}]"] = child
            items.append(child)
        return items

    def get_str_mapping(self, key: str, *, default: Mapping[str, str] | object = _MISSING) -> dict[str, str]:
        """Parse a flat `{str: str}` mapping, preserving declaration order."""

        raw = self._get_raw(key, default=default)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a mapping (type={type(raw).__name__})"
            )

        out: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            item_path = _join_path(_join_path(self.path, key.strip()), str(raw_key))
            if not isinstance(raw_key, str) or not raw_key.strip():
                raise TypeError(f"{item_path} key must be a non-empty string")
            if not isinstance(raw_value, str) or not raw_value.strip():
                raise TypeError(f"{item_path} must be a non-empty string")
            out[raw_key.strip()] = raw_value.strip()
        return out
