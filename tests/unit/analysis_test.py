"""Unit tests for whole-program analysis."""

import threading

from serialization_audit.core.analysis import ProgramAnalysis, analyze_program, analyze_programs
from serialization_audit.core.reporting import CollectingReporter
from serialization_audit.models import DeclarationNode, Location
from serialization_audit.symbols import InMemoryProgram
from tests.conftest import ProgramBuilder


class _CountingLocator:
    def __init__(self, registry: object) -> None:
        self.registry = registry
        self.calls = 0

    def locate(self, provider: InMemoryProgram) -> object:
        self.calls += 1
        return self.registry


def test_scenario_registered_model_yields_nothing(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])

    assert analyze_program(builder.program) == []


def test_scenario_wrong_registration_yields_one_finding(builder: ProgramBuilder) -> None:
    builder.model("MyApp.Foo")
    bar = builder.program.declare_type("MyApp.Bar")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [bar])

    findings = analyze_program(builder.program)

    assert [f.subject for f in findings] == ["MyApp.Foo"]


def test_scenario_no_registry_yields_nothing(builder: ProgramBuilder) -> None:
    for name in ("MyApp.A", "MyApp.B", "MyApp.C"):
        builder.model(name)

    assert analyze_program(builder.program) == []


def test_no_framework_reference_yields_nothing() -> None:
    builder = ProgramBuilder(with_framework=False)
    builder.model("MyApp.Foo")
    builder.program.declare_type("MyApp.Converters.MyAppSourceGenerationContext")

    assert analyze_program(builder.program) == []


def test_scenario_second_registry_candidate_is_used(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo")
    bar = builder.model("MyApp.Bar")
    unrelated = builder.program.add_external_type("Other.Base")
    builder.registry("MyApp.Converters.OldSourceGenerationContext", [foo, bar], base=unrelated)
    second = builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])

    analysis = ProgramAnalysis(builder.program)
    findings = analysis.run()

    assert analysis.registry is second
    assert [f.subject for f in findings] == ["MyApp.Bar"]


def test_scenario_unresolvable_model_is_skipped(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo", resolvable=False)
    builder.model("MyApp.Bar")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])

    findings = analyze_program(builder.program)

    assert [f.subject for f in findings] == ["MyApp.Bar"]


def test_namespace_collision_reports_only_unregistered_type(builder: ProgramBuilder) -> None:
    registered = builder.model("MyApp.Orders.Item")
    builder.model("MyApp.Catalog.Item")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [registered])

    findings = analyze_program(builder.program)

    assert len(findings) == 1
    assert findings[0].subject == "MyApp.Catalog.Item"


def test_rerun_yields_identical_findings(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo")
    builder.model("MyApp.Bar")
    builder.model("MyApp.Baz")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])

    first = analyze_program(builder.program)
    second = analyze_program(builder.program)

    assert first == second
    assert [f.subject for f in first] == ["MyApp.Bar", "MyApp.Baz"]


def test_registry_is_located_once_per_program(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo")
    builder.model("MyApp.Bar")
    context = builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])
    locator = _CountingLocator(context)

    analysis = ProgramAnalysis(builder.program, locator=locator)
    analysis.run()
    analysis.run()
    _ = analysis.entries

    assert locator.calls == 1


def test_generated_declarations_are_skipped(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])
    generated_symbol = builder.program.declare_type("MyApp.Generated", kind="record")
    builder.program.add_declaration(
        DeclarationNode(
            kind="record",
            name="Generated",
            attribute_names=("SerializationModel",),
            location=Location(path="Generated.g.cs"),
            generated=True,
        ),
        generated_symbol,
    )

    assert analyze_program(builder.program) == []


def test_cancellation_stops_between_declarations(builder: ProgramBuilder) -> None:
    for name in ("MyApp.A", "MyApp.B"):
        builder.model(name)
    other = builder.program.declare_type("MyApp.Other")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [other])
    cancel = threading.Event()

    assert len(analyze_program(builder.program, cancel=cancel)) == 2

    cancel.set()

    assert analyze_program(builder.program, cancel=cancel) == []


def test_reporter_receives_every_finding(builder: ProgramBuilder) -> None:
    foo = builder.model("MyApp.Foo")
    builder.model("MyApp.Bar")
    builder.registry("MyApp.Converters.MyAppSourceGenerationContext", [foo])
    reporter = CollectingReporter()

    findings = analyze_program(builder.program, reporter=reporter)

    assert reporter.findings == findings


def test_analyze_programs_keeps_input_order() -> None:
    programs: list[InMemoryProgram] = []
    for index in range(4):
        builder = ProgramBuilder(assembly_name=f"App{index}")
        builder.model(f"App{index}.Model")
        other = builder.program.declare_type(f"App{index}.Other")
        builder.registry(f"App{index}.Converters.App{index}SourceGenerationContext", [other])
        programs.append(builder.program)
    reporter = CollectingReporter()

    results = analyze_programs(programs, reporter=reporter, max_workers=2)

    assert [[f.subject for f in findings] for findings in results] == [[f"App{i}.Model"] for i in range(4)]
    assert len(reporter.findings) == 4


def test_analyze_programs_accepts_empty_input() -> None:
    assert analyze_programs([]) == []
