from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from wiregen_core.errors import InvalidRequest

Severity = Literal["FAIL", "WARN", "INFO"]


class Finding(BaseModel):
    """A single validation finding with severity, code, message, and context.

    `kind` names the error class the finding maps to (``UnevenFabricFanout``)
    so callers can branch on it without parsing messages.
    """

    model_config = ConfigDict(extra="ignore")
    severity: Severity
    code: str
    message: str
    kind: str | None = None
    context: dict = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Complete validation result with summary and findings."""

    model_config = ConfigDict(extra="ignore")
    findings: list[Finding] = Field(default_factory=list)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == "FAIL"]

    @property
    def error_messages(self) -> list[str]:
        return [f.message for f in self.errors]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == "WARN"]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def kinds(self) -> set[str]:
        return {f.kind for f in self.errors if f.kind}

    @property
    def summary(self) -> dict:
        return {
            "ok": self.ok,
            "fail": len(self.errors),
            "warn": len(self.warnings),
            "info": sum(1 for f in self.findings if f.severity == "INFO"),
        }

    def raise_for_errors(self) -> None:
        if self.errors:
            raise InvalidRequest.from_findings(self.errors)
