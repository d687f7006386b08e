import os

import pytest

from skillmatrix.framework.config import AppConfig, parse_bool


def test_defaults_resolve_against_base_dir(tmp_path):
    cfg, warnings = AppConfig.from_dict({}, base_dir=str(tmp_path))

    assert warnings == []
    assert cfg.matrix_path == os.path.join(str(tmp_path), "data", "skills-matrix.yaml")
    assert cfg.skills_dir == os.path.join(str(tmp_path), "data", "skills")
    assert cfg.local_skills_dir is None
    assert cfg.strict is True
    assert cfg.log_level == "INFO"


def test_paths_and_flags_are_parsed(tmp_path):
    absolute = str(tmp_path / "elsewhere" / "matrix.yaml")
    cfg, _warnings = AppConfig.from_dict(
        {
            "matrix": {"path": absolute, "local_skills_dir": ".claude/skills", "strict": "no"},
            "logging": {"level": "debug", "log_dir": "logs"},
            "output": {"path": "  "},
        },
        base_dir=str(tmp_path),
    )

    assert cfg.matrix_path == absolute
    assert cfg.local_skills_dir == os.path.join(str(tmp_path), ".claude", "skills")
    assert cfg.strict is False
    assert cfg.log_level == "DEBUG"
    assert cfg.log_dir == os.path.join(str(tmp_path), "logs")
    assert cfg.output_path is None


def test_unknown_keys_become_warnings(tmp_path):
    _cfg, warnings = AppConfig.from_dict(
        {"matrix": {"pth": "x.yaml"}, "prompt": {}},
        base_dir=str(tmp_path),
    )

    assert warnings == ["Unknown config key: matrix.pth", "Unknown config key: prompt"]


def test_wrong_types_raise():
    with pytest.raises(ValueError, match=r"Invalid config type for matrix: expected mapping"):
        AppConfig.from_dict({"matrix": ["a"]})
    with pytest.raises(ValueError, match=r"Invalid config type for logging.level: expected string"):
        AppConfig.from_dict({"logging": {"level": 10}})
    with pytest.raises(ValueError, match=r"Invalid boolean for matrix.strict"):
        AppConfig.from_dict({"matrix": {"strict": "maybe"}})


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, True), (0, False), (" Yes ", True), ("false", False), ("1", True)],
)
def test_parse_bool_accepts_common_spellings(value, expected):
    assert parse_bool(value, "x") is expected


def test_parse_bool_rejects_other_values():
    with pytest.raises(ValueError, match=r"Invalid boolean for x: 2"):
        parse_bool(2, "x")
