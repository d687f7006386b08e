from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "SKILLMATRIX_CONFIG"
ROOT_MARKERS = ("pyproject.toml", ".git")


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    start_path = Path(start or os.getcwd()).resolve()
    if start_path.is_file():
        start_path = start_path.parent

    for candidate in (start_path, *start_path.parents):
        if (candidate / "pyproject.toml").is_file():
            return str(candidate)
        if (candidate / ".git").exists():
            return str(candidate)

    raise FileNotFoundError(
        "Cannot locate repo root: searched from "
        f"{start_path} for {', '.join(ROOT_MARKERS)}"
    )


def load_yaml_mapping(path: str | os.PathLike[str], *, empty_ok: bool = True) -> dict[str, Any]:
    """Read one YAML document that must be a mapping.

    A missing file propagates `FileNotFoundError`; malformed YAML or a
    non-mapping document is a `ValueError` naming the file.
    """

    path = str(path)
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        if not empty_ok:
            raise ValueError(f"YAML file is empty: {path}")
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"YAML file must contain a mapping: {path}")
    return dict(payload)


def deep_merge(base: Any, overlay: Any, *, path: str = "") -> Any:
    if overlay is None:
        return None

    if base is None:
        return overlay

    if isinstance(base, Mapping):
        if not isinstance(overlay, Mapping):
            raise ValueError(
                f"Invalid config overlay merge at {path}: base is mapping but overlay is {type(overlay).__name__}"
            )
        merged: dict[str, Any] = dict(base)
        for key, overlay_value in overlay.items():
            next_path = f"{path}.{key}" if path else str(key)
            merged[key] = deep_merge(base[key], overlay_value, path=next_path) if key in base else overlay_value
        return merged

    if isinstance(base, (list, tuple)):
        if not isinstance(overlay, (list, tuple)):
            raise ValueError(
                f"Invalid config overlay merge at {path}: base is list but overlay is {type(overlay).__name__}"
            )
        return list(overlay)

    if isinstance(overlay, (Mapping, list, tuple)):
        raise ValueError(
            f"Invalid config overlay merge at {path}: base is {type(base).__name__} but overlay is {type(overlay).__name__}"
        )

    return overlay


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = CONFIG_ENV_VAR,
    config_dir: str | os.PathLike[str] = "config",
    config_name: str = "config.yaml",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Load application settings, returning (cfg, meta).

    An explicit `config_path` or the `env_var` environment variable loads that
    single file. Otherwise `<repo root>/<config_dir>/<config_name>` is loaded
    and `config.local.yaml` beside it, if present, is deep-merged on top.

    `meta["base_dir"]` is the directory relative paths inside the config are
    resolved against.
    """

    explicit_path = None
    if config_path is not None:
        explicit_path = str(config_path).strip() or None
    elif env_var:
        explicit_path = os.environ.get(env_var, "").strip() or None

    if explicit_path:
        expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
        cfg = load_yaml_mapping(expanded)
        meta = {
            "mode": "explicit" if config_path is not None else "env",
            "paths": [expanded],
            "env_var": env_var,
            "repo_root": None,
            "base_dir": os.path.dirname(expanded),
        }
        return cfg, meta

    if os.path.isabs(str(config_dir)):
        directory = str(config_dir)
        repo_root = None
    else:
        repo_root = find_repo_root(start_dir)
        directory = os.path.join(repo_root, str(config_dir))
    base_config_path = os.path.join(directory, config_name)
    local_overlay_path = os.path.join(directory, "config.local.yaml")

    if not os.path.exists(base_config_path):
        raise FileNotFoundError(f"Missing base config file: {base_config_path}")

    cfg = load_yaml_mapping(base_config_path)
    loaded_paths = [os.path.abspath(base_config_path)]
    mode = "base"

    if os.path.exists(local_overlay_path):
        cfg = deep_merge(cfg, load_yaml_mapping(local_overlay_path))
        loaded_paths.append(os.path.abspath(local_overlay_path))
        mode = "base+local"

    meta = {
        "mode": mode,
        "paths": loaded_paths,
        "env_var": env_var,
        "repo_root": repo_root,
        "base_dir": repo_root or directory,
    }
    return cfg, meta
