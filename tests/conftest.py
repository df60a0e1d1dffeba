"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest
from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

from serialization_audit.core.conventions import REGISTRATION_ATTRIBUTE, REGISTRY_BASE_TYPE
from serialization_audit.models import DeclarationNode, Location, Position, TypeSymbol
from serialization_audit.symbols import InMemoryProgram, attribute

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag every test under tests/unit as "unit"
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# In-memory program helpers
# ---------------------------------------------------------------------------


class ProgramBuilder:
    """Thin wrapper over ``InMemoryProgram`` for writing scenarios."""

    def __init__(self, assembly_name: str = "MyApp", with_framework: bool = True) -> None:
        self.program = InMemoryProgram(assembly_name)
        self.context_base: TypeSymbol | None = None
        if with_framework:
            self.context_base = self.program.add_external_type(REGISTRY_BASE_TYPE)
            self.program.add_external_type(REGISTRATION_ATTRIBUTE)

    def model(self, full_name: str, marked: bool = True, kind: str = "record", resolvable: bool = True) -> TypeSymbol:
        location = Location(path=f"{full_name}.cs", start_point=Position(row=2, column=4))
        symbol = self.program.declare_type(full_name, kind=kind, location=location)
        node = DeclarationNode(
            kind=kind,
            name=symbol.name,
            attribute_names=("SerializationModel",) if marked else (),
            location=location,
        )
        self.program.add_declaration(node, symbol if resolvable else None)
        return symbol

    def registry(
        self,
        full_name: str,
        registered: list[TypeSymbol],
        base: TypeSymbol | None = None,
    ) -> TypeSymbol:
        return self.program.declare_type(
            full_name,
            base=base if base is not None else self.context_base,
            attributes=[attribute(REGISTRATION_ATTRIBUTE, symbol) for symbol in registered],
        )


@pytest.fixture
def builder() -> ProgramBuilder:
    return ProgramBuilder()


@pytest.fixture
def csharp_parser() -> Parser:
    """Return a tree-sitter parser for C#."""
    return get_parser("csharp")


def write_project(root: Path, name: str, files: dict[str, str]) -> Path:
    """Create ``root/name`` with a ``name.csproj`` and the given sources."""
    project = root / name
    project.mkdir(parents=True, exist_ok=True)
    (project / f"{name}.csproj").write_text('<Project Sdk="Microsoft.NET.Sdk" />\n', encoding="utf-8")
    for relative, source in files.items():
        path = project / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
    return project
