from collections.abc import Iterable

from serialization_audit.core.conventions import MODEL_DECLARATION_KINDS, MODEL_MARKER
from serialization_audit.core.ports.symbols import SymbolGraphProvider
from serialization_audit.core.reporting import SERIALIZATION_MODEL_RULE
from serialization_audit.models import AttributeData, DeclarationNode, Finding, TypeSymbol


def has_model_marker(node: DeclarationNode) -> bool:
    # Compared as written; the marker takes no arguments so it is never resolved.
    return MODEL_MARKER in node.attribute_names


def is_registered(provider: SymbolGraphProvider, symbol: TypeSymbol, entries: Iterable[AttributeData]) -> bool:
    for entry in entries:
        if not entry.arguments:
            continue
        registered = entry.arguments[0]
        if isinstance(registered, TypeSymbol) and provider.same_symbol(registered, symbol):
            return True
    return False


def check_declaration(
    provider: SymbolGraphProvider,
    node: DeclarationNode,
    entries: Iterable[AttributeData],
) -> Finding | None:
    """Return a finding when a marked record has no registration entry."""
    if node.kind not in MODEL_DECLARATION_KINDS or not has_model_marker(node):
        return None

    symbol = provider.declared_symbol_of(node)
    if symbol is None:
        return None

    if is_registered(provider, symbol, entries):
        return None

    return Finding(
        rule_id=SERIALIZATION_MODEL_RULE.id,
        subject=symbol.full_name,
        location=node.location,
    )
