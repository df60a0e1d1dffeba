"""Per-program driver: locate the registry once, then check every declaration."""

import logging
import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from serialization_audit.core.checker import check_declaration
from serialization_audit.core.locator import NamingConventionLocator, RegistryLocator, registration_entries
from serialization_audit.core.ports.reporting import DiagnosticReporter
from serialization_audit.core.ports.symbols import SymbolGraphProvider
from serialization_audit.models import AttributeData, DeclarationNode, Finding, TypeSymbol

logger = logging.getLogger(__name__)

_UNSET = object()


class CancellationToken(Protocol):
    def is_set(self) -> bool: ...


class ProgramAnalysis:
    def __init__(self, provider: SymbolGraphProvider, locator: RegistryLocator | None = None) -> None:
        self.provider = provider
        self.locator = locator or NamingConventionLocator()
        self._registry: object = _UNSET
        self._entries: tuple[AttributeData, ...] = ()
        self._lock = threading.Lock()

    def _ensure_registry(self) -> None:
        if self._registry is not _UNSET:
            return
        with self._lock:
            if self._registry is not _UNSET:
                return
            registry = self.locator.locate(self.provider)
            self._entries = registration_entries(self.provider, registry) if registry is not None else ()
            self._registry = registry

    @property
    def registry(self) -> TypeSymbol | None:
        self._ensure_registry()
        return self._registry  # type: ignore[return-value]

    @property
    def entries(self) -> tuple[AttributeData, ...]:
        self._ensure_registry()
        return self._entries

    def check(self, node: DeclarationNode) -> Finding | None:
        if node.generated or self.registry is None:
            return None
        return check_declaration(self.provider, node, self.entries)

    def run(
        self,
        reporter: DiagnosticReporter | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[Finding]:
        if self.registry is None:
            logger.info("No serialization registry in %s; nothing to check", self.provider.assembly_name)
            return []

        findings: list[Finding] = []
        for node in self.provider.declaration_nodes():
            if cancel is not None and cancel.is_set():
                logger.info("Analysis of %s cancelled", self.provider.assembly_name)
                break
            finding = self.check(node)
            if finding is None:
                continue
            findings.append(finding)
            if reporter is not None:
                reporter.report(finding)

        logger.info("Checked %s: %d finding(s)", self.provider.assembly_name, len(findings))
        return findings


def analyze_program(
    provider: SymbolGraphProvider,
    reporter: DiagnosticReporter | None = None,
    cancel: CancellationToken | None = None,
) -> list[Finding]:
    return ProgramAnalysis(provider).run(reporter=reporter, cancel=cancel)


def analyze_programs(
    providers: Iterable[SymbolGraphProvider],
    reporter: DiagnosticReporter | None = None,
    max_workers: int | None = None,
    cancel: CancellationToken | None = None,
) -> list[list[Finding]]:
    """Analyze independent programs in parallel; results keep the input order."""
    programs: Sequence[SymbolGraphProvider] = list(providers)
    if not programs:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(analyze_program, program, reporter, cancel) for program in programs]
        return [future.result() for future in futures]
