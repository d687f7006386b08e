"""Read the matrix document and skill directories from disk.

Each skill lives in its own directory holding a `SKILL.md` (YAML frontmatter
with `name` and `description`) and a `metadata.yaml` (category, relations and
display hints).
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from matrixkit import ConfigNamespace, MatrixConfig, MergeResult, RawSkill, merge_matrix
from matrixkit.merger import LOCAL_AUTHOR, LOCAL_CATEGORY_CUSTOM
from matrixkit.parsing import parse_matrix_config, parse_skill_metadata
from skillmatrix.foundation.config_io import load_yaml_mapping
from skillmatrix.framework.config import AppConfig

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"^---\r?\n(.*?)\r?\n---", re.DOTALL)
AUTHOR_SUFFIX_RE = re.compile(r"\s*\(@\w+\)$")
METADATA_FILE = "metadata.yaml"
SKILL_FILE = "SKILL.md"


def parse_frontmatter(content: str) -> dict[str, Any] | None:
    """Return the frontmatter mapping, or None when it is missing or lacks name/description."""

    match = FRONTMATTER_RE.match(content)
    if not match:
        return None
    try:
        payload = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None
    if not isinstance(payload, dict):
        return None
    if not payload.get("name") or not payload.get("description"):
        return None
    return payload


def extract_display_name(skill_id: str) -> str:
    """`frontend/state-zustand (@vince)` -> `State Zustand`."""

    tail = skill_id.split("/")[-1] or skill_id
    tail = AUTHOR_SUFFIX_RE.sub("", tail).strip()
    return " ".join(word[:1].upper() + word[1:] for word in tail.split("-"))


def load_matrix_config(path: str | os.PathLike[str]) -> MatrixConfig:
    raw = load_yaml_mapping(path, empty_ok=False)
    config = parse_matrix_config(raw, source=str(path))
    logger.debug("Loaded skills matrix: %s", path)
    return config


def _read_skill_dir(skill_dir: Path, label: str) -> tuple[dict[str, Any], dict[str, Any]] | None:
    metadata_path = skill_dir / METADATA_FILE
    skill_md_path = skill_dir / SKILL_FILE
    if not metadata_path.is_file():
        logger.debug("Skipping %s: no %s found", label, METADATA_FILE)
        return None
    if not skill_md_path.is_file():
        logger.debug("Skipping %s: no %s found", label, SKILL_FILE)
        return None

    frontmatter = parse_frontmatter(skill_md_path.read_text(encoding="utf-8"))
    if frontmatter is None:
        logger.debug("Skipping %s: invalid %s frontmatter", label, SKILL_FILE)
        return None
    return load_yaml_mapping(metadata_path), frontmatter


def extract_skills(skills_dir: str | os.PathLike[str]) -> list[RawSkill]:
    """Extract every skill under `skills_dir`, sorted by directory path."""

    root = Path(skills_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Skills directory not found: {root}")

    skills: list[RawSkill] = []
    for metadata_path in sorted(root.rglob(METADATA_FILE)):
        skill_dir = metadata_path.parent
        rel_dir = skill_dir.relative_to(root).as_posix()
        loaded = _read_skill_dir(skill_dir, rel_dir)
        if loaded is None:
            continue
        metadata, frontmatter = loaded
        skill_id = str(frontmatter["name"]).strip()
        skill = parse_skill_metadata(
            metadata,
            skill_id=skill_id,
            description=str(frontmatter["description"]).strip(),
            name=extract_display_name(skill_id),
            path=f"skills/{rel_dir}/",
        )
        skills.append(skill)
        logger.debug("Extracted skill: %s", skill_id)
    return skills


def discover_local_skills(local_dir: str | os.PathLike[str]) -> list[RawSkill]:
    """
    Discover project-local skills, one per direct subdirectory.

    Local skills need `cli_name` in their metadata. A missing directory yields
    no skills.
    """

    root = Path(local_dir)
    if not root.is_dir():
        logger.debug("Local skills directory not found: %s", root)
        return []

    skills: list[RawSkill] = []
    for skill_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        loaded = _read_skill_dir(skill_dir, f"local skill {skill_dir.name!r}")
        if loaded is None:
            continue
        metadata, frontmatter = loaded
        ns = ConfigNamespace(metadata, path=f"{skill_dir.name}/{METADATA_FILE}")
        cli_name = ns.get_str("cli_name", default=None, allow_empty=True)
        if not cli_name:
            logger.debug("Skipping local skill %r: missing cli_name in %s", skill_dir.name, METADATA_FILE)
            continue
        skill_id = str(frontmatter["name"]).strip()
        local_path = f"{root.name}/{skill_dir.name}/"
        skills.append(
            RawSkill(
                id=skill_id,
                name=f"{cli_name} {LOCAL_AUTHOR}",
                description=ns.get_str("cli_description", default=None, allow_empty=True)
                or str(frontmatter["description"]).strip(),
                category=LOCAL_CATEGORY_CUSTOM.id,
                author=LOCAL_AUTHOR,
                path=local_path,
                local=True,
                local_path=local_path,
            )
        )
        logger.debug("Extracted local skill: %s", skill_id)

    logger.info("Discovered %d local skills from %s", len(skills), root)
    return skills


def load_and_merge(config: AppConfig) -> MergeResult:
    matrix_config = load_matrix_config(config.matrix_path)
    skills = extract_skills(config.skills_dir)
    local_skills = discover_local_skills(config.local_skills_dir) if config.local_skills_dir else []
    return merge_matrix(matrix_config, skills, local_skills=local_skills)
