from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int
    column: int


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    start_byte: int = 0
    end_byte: int = 0
    start_point: Position = Position(row=0, column=0)
    end_point: Position = Position(row=0, column=0)

    def __str__(self) -> str:
        return f"{self.path}:{self.start_point.row + 1}:{self.start_point.column + 1}"


class Finding(BaseModel):
    """A serialization model without a matching registration entry."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    subject: str
    location: Location | None = None


@dataclass(frozen=True, eq=False)
class TypeSymbol:
    """Opaque handle for a type in one program's symbol table.

    Equality is identity: two symbols sharing a name are still distinct.
    """

    full_name: str
    kind: str = "class"
    location: Location | None = None

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    def __repr__(self) -> str:
        return f"TypeSymbol({self.full_name!r}, kind={self.kind!r})"


@dataclass(frozen=True)
class AttributeData:
    attribute_type: str | None
    arguments: tuple[Any, ...] = ()


@dataclass(frozen=True, eq=False)
class DeclarationNode:
    """A syntactic type declaration as the host's traversal hands it out."""

    kind: str
    name: str
    attribute_names: tuple[str, ...] = ()
    location: Location | None = None
    generated: bool = False
