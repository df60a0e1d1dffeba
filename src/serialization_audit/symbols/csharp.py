"""Best-effort C# front end: builds a symbol graph from source with tree-sitter.

This is not a compiler. It knows enough about namespaces, ``using`` directives,
nested and partial types, base lists and attribute arguments to answer the
questions the registry checker asks.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from tree_sitter import Node, Tree
from tree_sitter_language_pack import get_parser

from serialization_audit.core.conventions import REGISTRATION_ATTRIBUTE, REGISTRY_BASE_TYPE
from serialization_audit.models import AttributeData, DeclarationNode, Location, Position, TypeSymbol
from serialization_audit.symbols.memory import InMemoryProgram

logger = logging.getLogger(__name__)

_FRAMEWORK_NAMESPACE = "System.Text.Json.Serialization"
_FRAMEWORK_TYPES = {
    REGISTRY_BASE_TYPE: "class",
    REGISTRATION_ATTRIBUTE: "class",
}

_DECLARATION_KINDS = {
    "class_declaration": "class",
    "record_declaration": "record",
    "record_struct_declaration": "record_struct",
    "struct_declaration": "struct",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

_SKIPPED_DIRECTORIES = frozenset({"bin", "obj"})
_GENERATED_SUFFIXES = (".g.cs", ".g.i.cs", ".generated.cs", ".designer.cs")
_LEADING_COMMENTS = re.compile(r"\A(?:\s+|//[^\n]*|/\*.*?\*/)*", re.DOTALL)
_GENERATED_MARKER = re.compile(r"<auto-?generated", re.IGNORECASE)
_ASSEMBLY_NAME = re.compile(r"<AssemblyName>\s*([^<\s]+)\s*</AssemblyName>")


@dataclass(frozen=True)
class TypeRef:
    """Unresolved type name as written in source, e.g. the operand of ``typeof``."""

    name: str


@dataclass(frozen=True)
class _Scope:
    namespace: str = ""
    containers: tuple[str, ...] = ()
    usings: tuple[str, ...] = ()
    aliases: dict[str, str] = field(default_factory=dict)

    def with_usings(self, usings: Iterable[str], aliases: dict[str, str]) -> "_Scope":
        return replace(self, usings=(*self.usings, *usings), aliases={**self.aliases, **aliases})

    def enter_namespace(self, name: str) -> "_Scope":
        namespace = f"{self.namespace}.{name}" if self.namespace else name
        return replace(self, namespace=namespace)

    def enter_type(self, full_name: str) -> "_Scope":
        return replace(self, containers=(*self.containers, full_name))


@dataclass
class _ParsedAttribute:
    name: str
    arguments: list[Any]


@dataclass
class _ParsedDeclaration:
    node: DeclarationNode
    scope: _Scope
    full_name: str
    partial: bool
    bases: list[str]
    attributes: list[_ParsedAttribute]


class CSharpProgram(InMemoryProgram):
    def __init__(self, assembly_name: str, source_files: Sequence[Path] = ()) -> None:
        super().__init__(assembly_name)
        self.source_files = list(source_files)


def normalize_type_name(text: str) -> str:
    """Turn a written type name into its lookup key.

    Whitespace and ``global::`` are dropped and generic argument lists become
    an arity suffix: ``List<Dictionary<string, int>>`` is ``List`1``.
    """
    text = "".join(text.split())
    if text.startswith("global::"):
        text = text[len("global::") :]
    text = text.rstrip("?")

    out: list[str] = []
    depth = 0
    commas = 0
    for ch in text:
        if ch == "<":
            if depth == 0:
                commas = 0
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth == 0:
                out.append(f"`{commas + 1}")
        elif depth == 0:
            out.append(ch)
        elif ch == "," and depth == 1:
            commas += 1
    return "".join(out)


def is_generated_file(path: Path, source: bytes) -> bool:
    """Generated by file name, or by an ``<auto-generated>`` tag in the leading comments."""
    if path.name.lower().endswith(_GENERATED_SUFFIXES):
        return True
    head = source[:4096].decode("utf-8-sig", errors="replace")
    leading = _LEADING_COMMENTS.match(head)
    return leading is not None and _GENERATED_MARKER.search(leading.group()) is not None


def discover_sources(paths: Iterable[str | Path], exclude: Iterable[Path] = ()) -> list[Path]:
    excluded = [p.resolve() for p in exclude]
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise FileNotFoundError(f"Path not found: {raw}")
        if path.is_dir():
            for candidate in sorted(path.rglob("*.cs")):
                relative = candidate.relative_to(path)
                if _SKIPPED_DIRECTORIES.intersection(relative.parts[:-1]):
                    continue
                if any(candidate.resolve().is_relative_to(e) for e in excluded):
                    continue
                files.append(candidate)
        elif path.suffix.lower() == ".cs":
            files.append(path)
        else:
            raise ValueError(f"Unsupported file extension: {path.suffix}")
    return list(dict.fromkeys(files))


def guess_assembly_name(paths: Sequence[str | Path]) -> str:
    """Use the project's ``AssemblyName``, else the project file stem, else the directory name."""
    if not paths:
        raise ValueError("At least one path is required to guess the assembly name.")
    first = Path(paths[0]).resolve()
    directory = first if first.is_dir() else first.parent
    projects = sorted(directory.glob("*.csproj"))
    if projects:
        match = _ASSEMBLY_NAME.search(projects[0].read_text(encoding="utf-8", errors="replace"))
        return match.group(1) if match else projects[0].stem
    return directory.name


def _text(node: Node) -> str:
    return (node.text or b"").decode("utf-8", errors="replace")


def _location(path: Path, node: Node) -> Location:
    return Location(
        path=str(path),
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        start_point=Position(row=node.start_point[0], column=node.start_point[1]),
        end_point=Position(row=node.end_point[0], column=node.end_point[1]),
    )


def _parse_using(node: Node) -> tuple[str | None, tuple[str, str] | None]:
    """Return (imported namespace, None) or (None, (alias, target))."""
    body = _text(node).strip().rstrip(";").strip()
    body = re.sub(r"^(global\s+)?using\s+", "", body)
    if body.startswith("static "):
        return None, None
    if "=" in body:
        alias, _, target = body.partition("=")
        return None, (alias.strip(), normalize_type_name(target))
    return normalize_type_name(body), None


def _is_global_using(node: Node) -> bool:
    return node.type == "using_directive" and re.match(r"global\s+using\b", _text(node).strip()) is not None


def _global_scope(roots: Iterable[Node]) -> _Scope:
    """Collect the ``global using`` directives of every file into one root scope."""
    usings: list[str] = []
    aliases: dict[str, str] = {}
    for root in roots:
        for child in root.children:
            if not _is_global_using(child):
                continue
            namespace, alias = _parse_using(child)
            if namespace and namespace not in usings:
                usings.append(namespace)
            if alias:
                aliases[alias[0]] = alias[1]
    return _Scope(usings=tuple(usings), aliases=aliases)


def _literal_value(node: Node) -> Any:
    text = _text(node)
    if node.type == "string_literal":
        return text[1:-1]
    if node.type == "verbatim_string_literal":
        return text[2:-1]
    if node.type == "boolean_literal":
        return text == "true"
    if node.type == "integer_literal":
        digits = text.rstrip("uUlL").replace("_", "")
        try:
            return int(digits, 0)
        except ValueError:
            return None
    return None


def _typeof_operand(node: Node) -> str | None:
    operand = node.child_by_field_name("type")
    if operand is None:
        named = [child for child in node.named_children if child.type != "comment"]
        operand = named[0] if named else None
    return _text(operand) if operand is not None else None


def _parse_attribute(node: Node) -> _ParsedAttribute | None:
    name_node = node.child_by_field_name("name") or (node.named_children[0] if node.named_children else None)
    if name_node is None:
        return None

    arguments: list[Any] = []
    for argument_list in (c for c in node.named_children if c.type == "attribute_argument_list"):
        for argument in (c for c in argument_list.named_children if c.type == "attribute_argument"):
            # Named property assignments are not constructor arguments.
            if any(c.type in ("name_equals", "=") for c in argument.children):
                continue
            values = [c for c in argument.named_children if c.type not in ("name_colon", "comment")]
            if not values:
                continue
            value = values[-1]
            if value.type == "assignment_expression":
                continue
            if value.type == "typeof_expression":
                operand = _typeof_operand(value)
                arguments.append(TypeRef(operand) if operand else None)
            else:
                arguments.append(_literal_value(value))

    return _ParsedAttribute(name="".join(_text(name_node).split()), arguments=arguments)


def _base_names(node: Node) -> list[str]:
    names: list[str] = []
    for base_list in (c for c in node.named_children if c.type == "base_list"):
        for entry in base_list.named_children:
            if entry.type in ("argument_list", "comment"):
                continue
            if entry.type == "primary_constructor_base_type":
                inner = entry.child_by_field_name("type") or (entry.named_children[0] if entry.named_children else None)
                if inner is None:
                    continue
                entry = inner
            names.append(_text(entry))
    return names


def _declaration_kind(node: Node) -> str:
    kind = _DECLARATION_KINDS[node.type]
    if kind == "record" and any(child.type == "struct" for child in node.children):
        return "record_struct"
    return kind


class _FileCollector:
    def __init__(self, path: Path, generated: bool, root_scope: _Scope | None = None) -> None:
        self.path = path
        self.generated = generated
        self.root_scope = root_scope or _Scope()
        self.declarations: list[_ParsedDeclaration] = []

    def collect(self, root: Node) -> list[_ParsedDeclaration]:
        self._walk(list(root.children), self.root_scope)
        return self.declarations

    def _walk(self, children: list[Node], scope: _Scope) -> None:
        usings: list[str] = []
        aliases: dict[str, str] = {}
        for child in children:
            if child.type == "using_directive" and not _is_global_using(child):
                namespace, alias = _parse_using(child)
                if namespace:
                    usings.append(namespace)
                if alias:
                    aliases[alias[0]] = alias[1]
        scope = scope.with_usings(usings, aliases)

        for index, child in enumerate(children):
            if child.type == "namespace_declaration":
                name_node = child.child_by_field_name("name")
                body = child.child_by_field_name("body")
                if name_node is None or body is None:
                    continue
                self._walk(list(body.children), scope.enter_namespace(normalize_type_name(_text(name_node))))
            elif child.type == "file_scoped_namespace_declaration":
                name_node = child.child_by_field_name("name")
                if name_node is None:
                    continue
                # Older grammars leave the members as siblings, newer ones nest them.
                members = [c for c in child.children if c != name_node] + children[index + 1 :]
                self._walk(members, scope.enter_namespace(normalize_type_name(_text(name_node))))
                return
            elif child.type in _DECLARATION_KINDS:
                self._declare(child, scope)

    def _declare(self, node: Node, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = _text(name_node)
        arity = sum(
            1
            for params in node.named_children
            if params.type == "type_parameter_list"
            for p in params.named_children
            if p.type == "type_parameter"
        )
        metadata_name = f"{name}`{arity}" if arity else name
        prefix = scope.containers[-1] if scope.containers else scope.namespace
        full_name = f"{prefix}.{metadata_name}" if prefix else metadata_name

        attributes: list[_ParsedAttribute] = []
        for attribute_list in (c for c in node.children if c.type == "attribute_list"):
            for attribute_node in (c for c in attribute_list.named_children if c.type == "attribute"):
                parsed = _parse_attribute(attribute_node)
                if parsed is not None:
                    attributes.append(parsed)

        partial = any(c.type == "modifier" and _text(c) == "partial" for c in node.children)
        declaration = DeclarationNode(
            kind=_declaration_kind(node),
            name=name,
            attribute_names=tuple(a.name for a in attributes),
            location=_location(self.path, node),
            generated=self.generated,
        )
        self.declarations.append(
            _ParsedDeclaration(
                node=declaration,
                scope=scope,
                full_name=full_name,
                partial=partial,
                bases=_base_names(node),
                attributes=attributes,
            )
        )

        body = node.child_by_field_name("body")
        if body is None:
            body = next((c for c in node.named_children if c.type == "declaration_list"), None)
        if body is not None:
            nested_scope = scope.enter_type(full_name)
            for member in body.named_children:
                if member.type in _DECLARATION_KINDS:
                    self._declare(member, nested_scope)


class _Binder:
    """Resolves written names against the program's declared and external types."""

    def __init__(self, program: CSharpProgram) -> None:
        self.program = program

    def _candidates(self, name: str, scope: _Scope) -> Iterable[str]:
        for container in reversed(scope.containers):
            yield f"{container}.{name}"
        parts = scope.namespace.split(".") if scope.namespace else []
        for end in range(len(parts), 0, -1):
            yield ".".join([*parts[:end], name])
        yield name
        for namespace in scope.usings:
            yield f"{namespace}.{name}"

    def resolve(self, written: str, scope: _Scope) -> TypeSymbol | None:
        name = normalize_type_name(written)
        if not name:
            return None
        head, _, rest = name.partition(".")
        if head in scope.aliases:
            target = scope.aliases[head]
            return self.program.resolve_well_known_type(f"{target}.{rest}" if rest else target)
        for candidate in self._candidates(name, scope):
            symbol = self.program.resolve_well_known_type(candidate)
            if symbol is not None:
                return symbol
        return None

    def resolve_attribute(self, written: str, scope: _Scope) -> TypeSymbol | None:
        name = normalize_type_name(written)
        if not name.endswith("Attribute"):
            symbol = self.resolve(f"{name}Attribute", scope)
            if symbol is not None:
                return symbol
        return self.resolve(name, scope)

    def bind_argument(self, value: Any, scope: _Scope) -> Any:
        if isinstance(value, TypeRef):
            written = "".join(value.name.split())
            # Constructed generics and nullable structs are not the definition itself.
            if "<" in written or written.endswith("?"):
                return None
            return self.resolve(written, scope)
        return value


def _references_framework(source: bytes) -> bool:
    return _FRAMEWORK_NAMESPACE.encode("utf-8") in source


def _bind(program: CSharpProgram, declarations: list[_ParsedDeclaration]) -> None:
    groups: dict[str, list[_ParsedDeclaration]] = {}
    for declaration in declarations:
        groups.setdefault(declaration.full_name, []).append(declaration)

    symbols: dict[str, TypeSymbol] = {}
    for full_name, parts in groups.items():
        if len(parts) > 1 and not all(part.partial for part in parts):
            logger.warning("Duplicate declarations of %s; its declarations will not be checked", full_name)
            continue
        first = parts[0]
        symbols[full_name] = program.declare_type(full_name, kind=first.node.kind, location=first.node.location)

    binder = _Binder(program)
    for full_name, symbol in symbols.items():
        parts = groups[full_name]
        base: TypeSymbol | None = None
        attributes: list[AttributeData] = []
        for part in parts:
            if base is None:
                for written in part.bases:
                    resolved = binder.resolve(written, part.scope)
                    if resolved is not None and resolved.kind != "interface":
                        base = resolved
                        break
            for parsed in part.attributes:
                attribute_type = binder.resolve_attribute(parsed.name, part.scope)
                attributes.append(
                    AttributeData(
                        attribute_type=attribute_type.full_name if attribute_type else None,
                        arguments=tuple(binder.bind_argument(arg, part.scope) for arg in parsed.arguments),
                    )
                )
        program.set_base(symbol, base)
        program.set_attributes(symbol, attributes)

    for declaration in declarations:
        program.add_declaration(declaration.node, symbols.get(declaration.full_name))


def load_csharp_program(
    paths: Sequence[str | Path],
    assembly_name: str | None = None,
    exclude: Iterable[Path] = (),
) -> CSharpProgram:
    """Parse the given files and directories into one program."""
    files = discover_sources(paths, exclude)
    program = CSharpProgram(assembly_name or guess_assembly_name(paths), files)
    parser = get_parser("csharp")

    parsed: list[tuple[Path, bool, Tree]] = []
    references_framework = False
    for path in files:
        source = path.read_bytes()
        tree = parser.parse(source)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s; continuing with a partial tree", path)
        references_framework = references_framework or _references_framework(source)
        parsed.append((path, is_generated_file(path, source), tree))

    # global using directives apply to every file of the project
    root_scope = _global_scope(tree.root_node for _, _, tree in parsed)
    declarations: list[_ParsedDeclaration] = []
    for path, generated, tree in parsed:
        declarations.extend(_FileCollector(path, generated, root_scope).collect(tree.root_node))

    if references_framework:
        for full_name, kind in _FRAMEWORK_TYPES.items():
            program.add_external_type(full_name, kind=kind)

    _bind(program, declarations)
    logger.info(
        "Loaded %d file(s), %d type declaration(s) into %s",
        len(files),
        len(declarations),
        program.assembly_name,
    )
    return program


def find_projects(root: str | Path) -> list[Path]:
    """Directories under ``root`` holding a ``.csproj`` file, outermost first."""
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")
    directories = {
        project.parent
        for project in root_path.rglob("*.csproj")
        if not _SKIPPED_DIRECTORIES.intersection(project.relative_to(root_path).parts[:-1])
    }
    return sorted(directories)


def load_projects(root: str | Path) -> list[CSharpProgram]:
    """Load every project below ``root`` as its own program.

    Files of a nested project belong to that project only.
    """
    projects = find_projects(root)
    programs: list[CSharpProgram] = []
    for project in projects:
        nested = [other for other in projects if other != project and other.is_relative_to(project)]
        programs.append(load_csharp_program([project], exclude=nested))
    return programs
