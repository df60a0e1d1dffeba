import threading
from typing import Literal

from pydantic import BaseModel, ConfigDict

from serialization_audit.models import Finding


class DiagnosticDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    message: str
    category: str
    severity: Literal["error", "warning", "info"] = "warning"
    enabled_by_default: bool = True


SERIALIZATION_MODEL_RULE = DiagnosticDescriptor(
    id="CRY001",
    title=(
        "Classes marked with SerializationModel also require a JsonSerializable notation "
        "on the JsonSerializationContext implementation"
    ),
    message=(
        "Classes marked with [SerializationModel] also require a JsonSerializable notation "
        "on the JsonSerializationContext implementation"
    ),
    category="Serialization",
)

RULES = {SERIALIZATION_MODEL_RULE.id: SERIALIZATION_MODEL_RULE}


def describe(finding: Finding) -> DiagnosticDescriptor:
    return RULES[finding.rule_id]


def format_finding(finding: Finding) -> str:
    rule = describe(finding)
    where = str(finding.location) if finding.location else "<unknown>"
    return f"{where}: {rule.severity} {rule.id}: {finding.subject}: {rule.message}"


class CollectingReporter:
    """Append-only sink; safe to share between worker threads."""

    def __init__(self) -> None:
        self.findings: list[Finding] = []
        self._lock = threading.Lock()

    def report(self, finding: Finding) -> None:
        with self._lock:
            self.findings.append(finding)
