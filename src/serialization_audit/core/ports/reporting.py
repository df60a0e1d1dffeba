from typing import Protocol

from serialization_audit.models import Finding


class DiagnosticReporter(Protocol):
    def report(self, finding: Finding) -> None: ...
