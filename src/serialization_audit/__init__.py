"""Check that every ``[SerializationModel]`` type is registered on the source generation context."""

from serialization_audit.core.analysis import ProgramAnalysis, analyze_program, analyze_programs
from serialization_audit.core.locator import locate_registry
from serialization_audit.models import AttributeData, DeclarationNode, Finding, Location, Position, TypeSymbol

__all__ = [
    "AttributeData",
    "DeclarationNode",
    "Finding",
    "Location",
    "Position",
    "ProgramAnalysis",
    "TypeSymbol",
    "analyze_program",
    "analyze_programs",
    "locate_registry",
]
