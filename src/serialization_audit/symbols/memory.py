from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from serialization_audit.models import AttributeData, DeclarationNode, Location, TypeSymbol


@dataclass
class InMemoryTypeRecord:
    symbol: TypeSymbol
    base: TypeSymbol | None
    attributes: tuple[AttributeData, ...]
    declared: bool


class InMemoryProgram:
    """Symbol graph assembled by hand; used by tests and by the C# front end."""

    def __init__(self, assembly_name: str) -> None:
        self._assembly_name = assembly_name
        self.types: dict[str, InMemoryTypeRecord] = {}
        self.records: dict[int, InMemoryTypeRecord] = {}
        self.declared_names: list[str] = []
        self.nodes: list[DeclarationNode] = []
        self.node_symbols: dict[int, TypeSymbol | None] = {}

    @property
    def assembly_name(self) -> str:
        return self._assembly_name

    def add_external_type(self, full_name: str, base: TypeSymbol | None = None, kind: str = "class") -> TypeSymbol:
        return self._add(TypeSymbol(full_name=full_name, kind=kind), base, (), declared=False)

    def declare_type(
        self,
        full_name: str,
        base: TypeSymbol | None = None,
        attributes: Sequence[AttributeData] = (),
        kind: str = "class",
        location: Location | None = None,
    ) -> TypeSymbol:
        symbol = TypeSymbol(full_name=full_name, kind=kind, location=location)
        return self._add(symbol, base, tuple(attributes), declared=True)

    def set_base(self, symbol: TypeSymbol, base: TypeSymbol | None) -> None:
        self.records[id(symbol)].base = base

    def set_attributes(self, symbol: TypeSymbol, attributes: Sequence[AttributeData]) -> None:
        self.records[id(symbol)].attributes = tuple(attributes)

    def add_declaration(self, node: DeclarationNode, symbol: TypeSymbol | None) -> DeclarationNode:
        """Register a syntax node; ``symbol=None`` makes it unresolvable."""
        self.nodes.append(node)
        self.node_symbols[id(node)] = symbol
        return node

    def _add(
        self,
        symbol: TypeSymbol,
        base: TypeSymbol | None,
        attributes: tuple[AttributeData, ...],
        declared: bool,
    ) -> TypeSymbol:
        record = InMemoryTypeRecord(symbol=symbol, base=base, attributes=attributes, declared=declared)
        # A later declaration with the same metadata name shadows earlier ones for lookups.
        self.types[symbol.full_name] = record
        self.records[id(symbol)] = record
        if declared:
            self.declared_names.append(symbol.name)
        return symbol

    def _declared_record(self, full_name: str) -> InMemoryTypeRecord | None:
        record = self.types.get(full_name)
        if record is None or not record.declared:
            return None
        return record

    def resolve_well_known_type(self, full_name: str) -> TypeSymbol | None:
        record = self.types.get(full_name)
        return record.symbol if record else None

    def all_declared_type_names(self) -> Sequence[str]:
        return list(dict.fromkeys(self.declared_names))

    def lookup_type(self, qualified_name: str) -> TypeSymbol | None:
        record = self._declared_record(qualified_name)
        return record.symbol if record else None

    def base_type_of(self, symbol: TypeSymbol) -> TypeSymbol | None:
        record = self.records.get(id(symbol))
        return record.base if record else None

    def attributes_of(self, symbol: TypeSymbol) -> Sequence[AttributeData]:
        record = self.records.get(id(symbol))
        return record.attributes if record else ()

    def declared_symbol_of(self, node: DeclarationNode) -> TypeSymbol | None:
        return self.node_symbols.get(id(node))

    def same_symbol(self, left: TypeSymbol | None, right: TypeSymbol | None) -> bool:
        return left is not None and left is right

    def declaration_nodes(self) -> Sequence[DeclarationNode]:
        return list(self.nodes)


def attribute(attribute_type: str | None, *arguments: Any) -> AttributeData:
    return AttributeData(attribute_type=attribute_type, arguments=tuple(arguments))
