# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Pydantic models for GitHub code scanning and repository payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ghasfix.core.constants import DEFAULT_SEVERITY, AlertState, Severity


class Rule(BaseModel):
    """The code scanning rule an alert was raised by."""

    id: str | None = None
    name: str | None = None
    description: str | None = None
    severity: str | None = None  # tool-native: error | warning | note | none
    security_severity_level: Severity | None = None
    tags: list[str] | None = None

    @field_validator("security_severity_level", mode="before")
    @classmethod
    def _known_severity(cls, v: object) -> Severity | None:
        # Values outside the four levels are treated as unset, which ranks as low.
        if isinstance(v, str) and v.lower() in {s.value for s in Severity}:
            return Severity(v.lower())
        return v if isinstance(v, Severity) else None


class Location(BaseModel):
    path: str | None = None
    start_line: int | None = None
    end_line: int | None = None


class Instance(BaseModel):
    """Most recent occurrence of an alert."""

    ref: str | None = None
    state: str | None = None
    location: Location | None = None


class Tool(BaseModel):
    name: str | None = None
    version: str | None = None


class Finding(BaseModel):
    """A code scanning alert. Read-only once fetched."""

    model_config = ConfigDict(frozen=True)

    number: int
    url: str
    html_url: str = ""
    state: AlertState = AlertState.OPEN
    rule: Rule = Field(default_factory=Rule)
    tool: Tool | None = None
    most_recent_instance: Instance | None = None

    @property
    def security_severity(self) -> Severity:
        """Security severity, with unset treated as low."""
        return self.rule.security_severity_level or DEFAULT_SEVERITY

    @property
    def title(self) -> str:
        return self.rule.description or self.rule.name or self.rule.id or f"Alert #{self.number}"

    @property
    def location_label(self) -> str:
        instance = self.most_recent_instance
        if instance and instance.location and instance.location.path:
            return f"{instance.location.path}:{instance.location.start_line}"
        return "No location available"


class Repository(BaseModel):
    name: str
    full_name: str = ""
    default_branch: str = "main"
    updated_at: str | None = None
    private: bool = False
    archived: bool = False


class AutofixStatusReport(BaseModel):
    """Status of the autofix generated for one alert."""

    status: str
    description: str | None = None
    started_at: str | None = None


class AutofixCommit(BaseModel):
    """Result of committing an autofix to its own ref."""

    target_ref: str | None = None
    sha: str | None = None


class ReviewRequest(BaseModel):
    """An opened pull request."""

    number: int
    html_url: str
