from __future__ import annotations

import difflib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from matrixkit.errors import ConfigIssue


@dataclass(frozen=True)
class AliasResolver:
    """Bidirectional lookup between short alias names and canonical skill ids.

    Built once per matrix build and handed to every component that needs it.
    """

    _forward: dict[str, str]
    _reverse: dict[str, str]

    @classmethod
    def from_mapping(cls, aliases: Mapping[str, str]) -> "AliasResolver":
        forward: dict[str, str] = {}
        reverse: dict[str, str] = {}
        for raw_alias, raw_target in aliases.items():
            alias = str(raw_alias).strip()
            target = str(raw_target).strip()
            if not alias or not target:
                continue
            forward.setdefault(alias, target)
            # First declared alias wins the reverse direction.
            reverse.setdefault(target, alias)
        return cls(_forward=forward, _reverse=reverse)

    @property
    def forward(self) -> dict[str, str]:
        return dict(self._forward)

    @property
    def reverse(self) -> dict[str, str]:
        return dict(self._reverse)

    def resolve(self, name_or_id: str) -> str:
        key = (name_or_id or "").strip()
        return self._forward.get(key, key)

    def reverse_alias(self, canonical_id: str) -> str | None:
        return self._reverse.get((canonical_id or "").strip())

    def issues(self, known_ids: Iterable[str]) -> tuple[ConfigIssue, ...]:
        known = set(known_ids)
        found: list[ConfigIssue] = []

        owners: dict[str, str] = {}
        for alias, target in self._forward.items():
            path = f"skill_aliases.{alias}"
            previous = owners.get(target)
            if previous is not None:
                found.append(
                    ConfigIssue(
                        "alias_collision",
                        f"aliases {previous!r} and {alias!r} both map to {target!r}",
                        path,
                    )
                )
            else:
                owners[target] = alias

            if alias != target and alias in known:
                found.append(
                    ConfigIssue(
                        "alias_collision",
                        f"alias {alias!r} shadows the canonical id of another skill",
                        path,
                    )
                )
            if target not in known:
                hint = self.suggest(target, known)
                suffix = f" (did you mean: {', '.join(hint)})" if hint else ""
                found.append(
                    ConfigIssue(
                        "alias_target_missing",
                        f"alias target {target!r} is not a known skill{suffix}",
                        path,
                    )
                )
        return tuple(found)

    def suggest(self, name: str, known_ids: Iterable[str], *, limit: int = 3) -> tuple[str, ...]:
        key = (name or "").strip()
        if not key:
            return ()
        candidates = sorted(set(known_ids) | set(self._forward.keys()))
        if not candidates:
            return ()
        return tuple(difflib.get_close_matches(key, candidates, n=limit))
