from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_MATRIX_PATH = "data/skills-matrix.yaml"
DEFAULT_SKILLS_DIR = "data/skills"

_SCHEMA: Mapping[str, Mapping[str, None]] = {
    "matrix": {"path": None, "skills_dir": None, "local_skills_dir": None, "strict": None},
    "logging": {"level": None, "log_dir": None},
    "output": {"path": None},
}


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


@dataclass(frozen=True)
class AppConfig:
    matrix_path: str
    skills_dir: str
    local_skills_dir: str | None = None
    strict: bool = True
    log_level: str = "INFO"
    log_dir: str | None = None
    output_path: str | None = None

    @staticmethod
    def from_dict(cfg: Mapping[str, Any], *, base_dir: str | None = None) -> tuple["AppConfig", list[str]]:
        """
        Parse and validate settings, returning (AppConfig, warnings).

        Relative paths are resolved against `base_dir` (the working directory
        when omitted). Unknown keys become warnings.

        Raises:
            ValueError: if a key has the wrong type.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []
        for section, value in cfg.items():
            if section not in _SCHEMA:
                warnings.append(f"Unknown config key: {section}")
                continue
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise ValueError(f"Invalid config type for {section}: expected mapping")
            for key in value:
                if key not in _SCHEMA[section]:
                    warnings.append(f"Unknown config key: {section}.{key}")

        root = base_dir or os.getcwd()

        def section(name: str) -> Mapping[str, Any]:
            return cfg.get(name) or {}

        def optional_str(name: str, key: str) -> str | None:
            value = section(name).get(key)
            if value is None:
                return None
            if not isinstance(value, str):
                raise ValueError(f"Invalid config type for {name}.{key}: expected string")
            return value.strip() or None

        def normalize_path(value: str | None) -> str | None:
            if value is None:
                return None
            expanded = os.path.expandvars(os.path.expanduser(value))
            if not os.path.isabs(expanded):
                expanded = os.path.join(root, expanded)
            return os.path.abspath(expanded)

        strict = True
        if "strict" in section("matrix"):
            strict = parse_bool(section("matrix").get("strict"), "matrix.strict")

        log_level = (optional_str("logging", "level") or "INFO").upper()

        config = AppConfig(
            matrix_path=normalize_path(optional_str("matrix", "path") or DEFAULT_MATRIX_PATH),
            skills_dir=normalize_path(optional_str("matrix", "skills_dir") or DEFAULT_SKILLS_DIR),
            local_skills_dir=normalize_path(optional_str("matrix", "local_skills_dir")),
            strict=strict,
            log_level=log_level,
            log_dir=normalize_path(optional_str("logging", "log_dir")),
            output_path=normalize_path(optional_str("output", "path")),
        )
        return config, warnings
