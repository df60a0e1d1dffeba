from collections.abc import Sequence
from typing import Protocol

from serialization_audit.models import AttributeData, DeclarationNode, TypeSymbol


class SymbolGraphProvider(Protocol):
    """Read-only view over one compiled program."""

    @property
    def assembly_name(self) -> str: ...

    def resolve_well_known_type(self, full_name: str) -> TypeSymbol | None: ...

    def all_declared_type_names(self) -> Sequence[str]: ...

    def lookup_type(self, qualified_name: str) -> TypeSymbol | None: ...

    def base_type_of(self, symbol: TypeSymbol) -> TypeSymbol | None: ...

    def attributes_of(self, symbol: TypeSymbol) -> Sequence[AttributeData]: ...

    def declared_symbol_of(self, node: DeclarationNode) -> TypeSymbol | None: ...

    def same_symbol(self, left: TypeSymbol | None, right: TypeSymbol | None) -> bool: ...

    def declaration_nodes(self) -> Sequence[DeclarationNode]: ...
