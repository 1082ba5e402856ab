"""Shell variables kept in insertion order, plus the name rules of export and unset."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from string import ascii_letters, digits

_NAME_START = frozenset(ascii_letters + "_")
_NAME_CHARS = frozenset(ascii_letters + digits + "_")
_HIDDEN_FROM_EXPORT = frozenset({"_", "?"})


class Environment:
    """An ordered set of shell variables; a variable may exist without a value."""

    def __init__(self, pairs: Iterable[tuple[str, str | None]] = ()) -> None:
        self._vars: dict[str, str | None] = {}
        for key, value in pairs:
            self._vars[key] = value

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> Environment:
        """Build an environment from a mapping such as ``os.environ``."""
        return cls(mapping.items())

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def get(self, key: str) -> str | None:
        """Return the value of ``key``, or None if it is unset or has no value."""
        return self._vars.get(key)

    def set(self, key: str, value: str | None) -> None:
        """Assign ``value`` to ``key``.

        Declaring an existing variable without a value keeps the value it has.
        """
        if value is None and self._vars.get(key) is not None:
            return
        self._vars[key] = value

    def append(self, key: str, value: str) -> None:
        """Append ``value`` to the current value of ``key`` (the ``+=`` form)."""
        current = self._vars.get(key)
        self._vars[key] = (current or "") + value

    def remove(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        return self._vars.pop(key, _MISSING) is not _MISSING

    def to_envp(self) -> list[str]:
        """Return ``KEY=VALUE`` strings for every variable that has a value."""
        return [f"{key}={value}" for key, value in self._vars.items() if value is not None]

    def export_listing(self) -> list[str]:
        """Lines printed by ``export`` without arguments, ordered by first letter."""
        ordered = sorted(self._vars.items(), key=lambda item: item[0][:1])
        lines = []
        for key, value in ordered:
            if key in _HIDDEN_FROM_EXPORT:
                continue
            if value is None:
                lines.append(f"declare -x {key}")
            else:
                lines.append(f'declare -x {key}="{value}"')
        return lines

    def env_listing(self) -> list[str]:
        """Lines printed by ``env``: only variables that have a value."""
        return self.to_envp()


_MISSING = object()


def split_assignment(arg: str) -> tuple[str, str | None]:
    """Split ``NAME=VALUE`` at the first ``=``; the value is None without one."""
    name, sep, value = arg.partition("=")
    return (name, value) if sep else (name, None)


def is_valid_export_name(name: str, arg: str) -> bool:
    """Check a name given to ``export``; ``arg`` is the whole argument.

    A trailing ``+`` is accepted only when the argument carries an ``=``.
    """
    if not name or name[0] not in _NAME_START:
        return False
    body, last = name[1:-1], name[-1]
    if len(name) > 1:
        if last == "+":
            if "=" not in arg:
                return False
        elif last not in _NAME_CHARS:
            return False
    return all(char in _NAME_CHARS for char in body)


def is_valid_unset_name(name: str) -> bool:
    """Check a name given to ``unset``."""
    if not name or name[0] not in _NAME_START:
        return False
    return all(char in _NAME_CHARS for char in name[1:])