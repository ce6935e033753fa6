"""
Configuration for the consistency audit.

Values come from keyword arguments, then SO_AUDIT_* environment variables,
then a .env file, then the defaults below. The resulting AuditConfig is
passed explicitly to the loader and the evaluator.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigError
from .core.models import DEFAULT_SEVERITY, RuleKind, Severity


DEFAULT_SYNONYM_GROUPS: List[List[str]] = [
    ["customer", "client"],
    ["booking", "reservation"],
    ["supplier", "vendor"],
    ["employee", "staff"],
]


class AuditConfig(BaseSettings):
    """Конфигурация аудита согласованности."""

    model_config = SettingsConfigDict(env_prefix="SO_AUDIT_", env_file=".env", extra="ignore")

    # === Inputs ===
    objectives_path: Optional[Path] = None
    requirements_path: Optional[Path] = None
    glossary_path: Optional[Path] = None

    # === Reports ===
    reports_dir: Path = Path("docs/reports/consistency")
    issue_id_prefix: str = "CONS"

    # === Identifiers ===
    objective_id_pattern: str = r"OBJ-\d{2,}"
    requirement_id_pattern: str = r"[A-Z]{2,5}-\d{2,}"

    # === Rule tuning ===
    criteria_match_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    assumption_match_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    synonym_groups: List[List[str]] = Field(default_factory=lambda: [list(g) for g in DEFAULT_SYNONYM_GROUPS])
    # rule kind -> severity, e.g. {"assumption_violation": "critical"}
    severity_overrides: Dict[str, str] = Field(default_factory=dict)

    # Raise on malformed identifiers instead of reporting them
    strict: bool = False

    @field_validator("objective_id_pattern", "requirement_id_pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid identifier pattern {value!r}: {e}") from e
        return value

    @field_validator("severity_overrides")
    @classmethod
    def _check_overrides(cls, value: Dict[str, str]) -> Dict[str, str]:
        kinds = {k.value for k in RuleKind}
        severities = {s.value for s in Severity}
        normalized = {}
        for kind, severity in value.items():
            if kind not in kinds:
                raise ValueError(f"unknown rule kind {kind!r}; expected one of {sorted(kinds)}")
            if severity.lower() not in severities:
                raise ValueError(f"unknown severity {severity!r}; expected one of {sorted(severities)}")
            normalized[kind] = severity.lower()
        return normalized

    @field_validator("issue_id_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z][A-Za-z0-9_]*", value):
            raise ValueError(f"issue id prefix must be alphanumeric, got {value!r}")
        return value

    def severity_for(self, kind: RuleKind) -> Severity:
        """Серьёзность для правила с учётом переопределений."""
        override = self.severity_overrides.get(kind.value)
        if override:
            return Severity(override)
        return DEFAULT_SEVERITY[kind]

    def format_issue_id(self, number: int) -> str:
        return f"{self.issue_id_prefix}-{number:02d}"

    def input_paths(self) -> Dict[str, Optional[Path]]:
        return {
            "objectives": self.objectives_path,
            "requirements": self.requirements_path,
            "glossary": self.glossary_path,
        }


def load_config(**overrides: Any) -> AuditConfig:
    """
    Собрать конфигурацию; None-значения не переопределяют env и defaults.

    Raises:
        ConfigError: при невалидных значениях
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return AuditConfig(**values)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
