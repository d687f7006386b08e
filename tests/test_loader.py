from pathlib import Path

import pytest

from matrixkit.merger import LOCAL_AUTHOR, LOCAL_CATEGORY_CUSTOM
from skillmatrix.framework.config import AppConfig
from skillmatrix.framework.loader import (
    discover_local_skills,
    extract_display_name,
    extract_skills,
    load_and_merge,
    parse_frontmatter,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


def _write_skill(directory: Path, *, frontmatter: str | None, metadata: str | None) -> None:
    directory.mkdir(parents=True)
    if frontmatter is not None:
        (directory / "SKILL.md").write_text(f"---\n{frontmatter}\n---\n\n# Body\n", encoding="utf-8")
    if metadata is not None:
        (directory / "metadata.yaml").write_text(metadata, encoding="utf-8")


def test_parse_frontmatter_requires_name_and_description():
    assert parse_frontmatter("---\nname: a/b (@x)\ndescription: Thing\n---\nbody") == {
        "name": "a/b (@x)",
        "description": "Thing",
    }
    assert parse_frontmatter("---\r\nname: a\r\ndescription: b\r\n---\r\n")["name"] == "a"
    assert parse_frontmatter("---\nname: a\n---\n") is None
    assert parse_frontmatter("# no frontmatter") is None
    assert parse_frontmatter("---\n[unclosed\n---\n") is None


def test_extract_display_name_strips_author_and_titles_words():
    assert extract_display_name("frontend/state-zustand (@vince)") == "State Zustand"
    assert extract_display_name("react") == "React"


def test_extract_skills_reads_nested_directories(tmp_path):
    _write_skill(
        tmp_path / "frontend" / "react",
        frontmatter="name: frontend/react (@vince)\ndescription: UI library",
        metadata="category: framework\nauthor: '@vince'\n",
    )
    _write_skill(
        tmp_path / "testing" / "vitest",
        frontmatter="name: testing/vitest (@vince)\ndescription: Runner",
        metadata="category: testing\ncli_name: Vitest\ncli_description: Fast runner\n",
    )
    _write_skill(tmp_path / "broken" / "no-md", frontmatter=None, metadata="category: x\n")
    _write_skill(
        tmp_path / "broken" / "bad-md",
        frontmatter="name: only-name",
        metadata="category: x\n",
    )

    skills = extract_skills(tmp_path)

    assert [skill.id for skill in skills] == ["frontend/react (@vince)", "testing/vitest (@vince)"]
    assert skills[0].name == "React"
    assert skills[0].path == "skills/frontend/react/"
    assert skills[1].name == "Vitest"
    assert skills[1].description == "Fast runner"


def test_extract_skills_missing_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match=r"Skills directory not found"):
        extract_skills(tmp_path / "nope")


def test_extract_skills_rejects_unknown_metadata_keys(tmp_path):
    _write_skill(
        tmp_path / "react",
        frontmatter="name: react\ndescription: UI",
        metadata="category: framework\nconflicts: [vue]\n",
    )

    with pytest.raises(ValueError, match=r"Unknown keys under skills/react/: conflicts"):
        extract_skills(tmp_path)


def test_discover_local_skills_requires_cli_name(tmp_path, caplog):
    local = tmp_path / "skills"
    _write_skill(
        local / "deploy",
        frontmatter="name: deploy (@me)\ndescription: Ship it",
        metadata="cli_name: Deploy\ncategory: ignored\nconflicts_with: [react]\n",
    )
    _write_skill(
        local / "unnamed",
        frontmatter="name: unnamed\ndescription: No display name",
        metadata="category: ignored\n",
    )
    _write_skill(local / "empty", frontmatter=None, metadata=None)

    with caplog.at_level("INFO", logger="skillmatrix.framework.loader"):
        skills = discover_local_skills(local)

    assert [skill.id for skill in skills] == ["deploy (@me)"]
    skill = skills[0]
    assert skill.name == f"Deploy {LOCAL_AUTHOR}"
    assert skill.description == "Ship it"
    assert skill.category == LOCAL_CATEGORY_CUSTOM.id
    assert skill.local is True
    assert skill.local_path == "skills/deploy/"
    assert skill.conflicts_with == ()
    assert "Discovered 1 local skills" in caplog.text


def test_discover_local_skills_missing_directory_is_empty(tmp_path):
    assert discover_local_skills(tmp_path / "absent") == []


def test_load_and_merge_repository_data(tmp_path):
    local = tmp_path / "local"
    _write_skill(
        local / "house-style",
        frontmatter="name: house-style\ndescription: Our conventions",
        metadata="cli_name: House Style\n",
    )
    config = AppConfig(
        matrix_path=str(REPO_ROOT / "data" / "skills-matrix.yaml"),
        skills_dir=str(REPO_ROOT / "data" / "skills"),
        local_skills_dir=str(local),
    )

    result = load_and_merge(config)

    assert result.ok, result.issues
    matrix = result.matrix
    react = matrix.skills["frontend/react (@vince)"]
    assert react.alias == "react"
    assert react.name == "React @vince"
    assert {r.skill_id for r in react.conflicts_with} == {"frontend/vue (@vince)"}
    assert matrix.skills["house-style"].category == "local/custom"
    assert "local" in matrix.categories
    stack = matrix.stack("react-tailwind")
    assert stack.all_skill_ids == (
        "frontend/react (@vince)",
        "frontend/styling-tailwind (@vince)",
        "frontend/state-zustand (@vince)",
        "testing/vitest (@vince)",
    )
