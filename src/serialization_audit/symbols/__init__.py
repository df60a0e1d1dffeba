from serialization_audit.symbols.csharp import CSharpProgram, load_csharp_program
from serialization_audit.symbols.memory import InMemoryProgram, InMemoryTypeRecord, attribute

__all__ = [
    "CSharpProgram",
    "InMemoryProgram",
    "InMemoryTypeRecord",
    "attribute",
    "load_csharp_program",
]
