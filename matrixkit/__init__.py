"""Skill relationship graph and selection engine.

This package is intentionally independent of `skillmatrix.*`. File discovery,
YAML decoding, terminal rendering and process exit codes live in the consuming
application.
"""

from matrixkit.aliases import AliasResolver
from matrixkit.config_namespace import ConfigNamespace
from matrixkit.errors import ConfigIssue, MatrixConfigError, MatrixInvariantError
from matrixkit.merger import MergeResult, merge_matrix
from matrixkit.model import (
    AlternativeGroup,
    CategoryDefinition,
    ConflictRule,
    DiscourageRule,
    Matrix,
    MatrixConfig,
    RawSkill,
    RecommendRule,
    RelationshipDefinitions,
    RequireRule,
    ResolvedSkill,
    ResolvedStack,
    SkillAlternative,
    SkillRelation,
    SkillRequirement,
    SuggestedStack,
)
from matrixkit.parsing import parse_matrix_config, parse_skill_metadata
from matrixkit.query import RelationshipQuery, SkillOption
from matrixkit.validator import SelectionReport, ValidationIssue, validate_selection
from matrixkit.wizard import (
    Advance,
    Back,
    Cancel,
    Cancelled,
    Completed,
    Invalid,
    Skip,
    StepPrompt,
    Transition,
    WizardEngine,
    WizardState,
    WizardStep,
    finalize_selection,
    run_wizard,
)

__all__ = [
    "Advance",
    "AliasResolver",
    "AlternativeGroup",
    "Back",
    "Cancel",
    "Cancelled",
    "CategoryDefinition",
    "Completed",
    "ConfigIssue",
    "ConfigNamespace",
    "ConflictRule",
    "DiscourageRule",
    "Invalid",
    "Matrix",
    "MatrixConfig",
    "MatrixConfigError",
    "MatrixInvariantError",
    "MergeResult",
    "RawSkill",
    "RecommendRule",
    "RelationshipDefinitions",
    "RelationshipQuery",
    "RequireRule",
    "ResolvedSkill",
    "ResolvedStack",
    "SelectionReport",
    "Skip",
    "SkillAlternative",
    "SkillOption",
    "SkillRelation",
    "SkillRequirement",
    "StepPrompt",
    "SuggestedStack",
    "Transition",
    "ValidationIssue",
    "WizardEngine",
    "WizardState",
    "WizardStep",
    "finalize_selection",
    "merge_matrix",
    "parse_matrix_config",
    "parse_skill_metadata",
    "run_wizard",
    "validate_selection",
]
