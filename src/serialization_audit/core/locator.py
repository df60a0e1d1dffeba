"""Find the program's serialization registry.

The registry type's name is not fixed by any shared contract, so it is found
by convention: a ``...SourceGenerationContext`` type in the assembly's root or
``Converters`` namespace that derives from ``JsonSerializerContext`` and
carries at least one ``[JsonSerializable]`` attribute.
"""

import logging
from typing import Protocol

from serialization_audit.core.conventions import (
    REGISTRATION_ATTRIBUTE,
    REGISTRY_BASE_TYPE,
    REGISTRY_LOOKUP_PATTERNS,
    REGISTRY_NAME_SUFFIX,
)
from serialization_audit.core.ports.symbols import SymbolGraphProvider
from serialization_audit.models import AttributeData, TypeSymbol

logger = logging.getLogger(__name__)


class RegistryLocator(Protocol):
    def locate(self, provider: SymbolGraphProvider) -> TypeSymbol | None: ...


def inherits_from(provider: SymbolGraphProvider, symbol: TypeSymbol, base: TypeSymbol) -> bool:
    """Walk the base-type chain of ``symbol`` looking for ``base`` by identity."""
    seen: set[int] = set()
    current = provider.base_type_of(symbol)
    while current is not None and id(current) not in seen:
        if provider.same_symbol(current, base):
            return True
        seen.add(id(current))
        current = provider.base_type_of(current)
    return False


def registration_entries(provider: SymbolGraphProvider, symbol: TypeSymbol) -> tuple[AttributeData, ...]:
    return tuple(attr for attr in provider.attributes_of(symbol) if attr.attribute_type == REGISTRATION_ATTRIBUTE)


def _lookup_candidate(provider: SymbolGraphProvider, name: str) -> TypeSymbol | None:
    for pattern in REGISTRY_LOOKUP_PATTERNS:
        symbol = provider.lookup_type(pattern.format(assembly=provider.assembly_name, name=name))
        if symbol is not None:
            return symbol
    return None


def locate_registry(provider: SymbolGraphProvider) -> TypeSymbol | None:
    base = provider.resolve_well_known_type(REGISTRY_BASE_TYPE)
    if base is None:
        logger.debug("%s is not referenced by %s", REGISTRY_BASE_TYPE, provider.assembly_name)
        return None

    for name in provider.all_declared_type_names():
        if not name.endswith(REGISTRY_NAME_SUFFIX):
            continue

        candidate = _lookup_candidate(provider, name)
        if candidate is None:
            logger.debug("Skipping %s: not declared in a conventional namespace", name)
            continue

        if inherits_from(provider, candidate, base) and registration_entries(provider, candidate):
            logger.info("Using %s as serialization registry", candidate.full_name)
            return candidate

    return None


class NamingConventionLocator:
    """Default ``RegistryLocator``; first matching type in enumeration order wins."""

    def locate(self, provider: SymbolGraphProvider) -> TypeSymbol | None:
        return locate_registry(provider)
