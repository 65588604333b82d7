"""Docker Compose file structure analyzer.

Detects:
- The obsolete top-level `version` key
- `container_name`, which prevents `docker compose up --scale`
- depends_on entries naming services that do not exist, and cycles
- Services with neither `image` nor `build`
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-structure",
    category="compose",
    target="compose",
    title="Keep the Compose file valid and scalable",
    rationale=(
        "The Compose Specification ignores `version`. A fixed container_name "
        "means only one replica can run. depends_on must name services defined "
        "in the same project and must not form a cycle."
    ),
    references=["https://docs.docker.com/reference/compose-file/"],
    default_severity=Severity.HIGH,
)


def find_structure_issues(context: StandardRuleContext) -> RuleResult:
    """Check top-level layout and inter-service references."""
    compose = context.compose
    if compose is None:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    def add(line: int, rule_name: str, message: str, severity: Severity, recommendation: str = ""):
        findings.append(
            StandardFinding(
                rule_name=rule_name,
                message=message,
                file_path=path,
                line=line,
                severity=severity,
                category="compose",
                snippet=context.get_snippet(line),
                recommendation=recommendation,
            )
        )

    if compose.version is not None:
        add(
            compose.line_of("version"),
            "compose-obsolete-version",
            f'Top-level "version: {compose.version}" is obsolete and ignored',
            Severity.INFO,
            "Remove the version key",
        )

    if not compose.services:
        add(1, "compose-no-services", "Compose file defines no services", Severity.MEDIUM)
        return RuleResult(findings=findings)

    names = {service.name for service in compose.services}

    for service in compose.services:
        if service.container_name:
            add(
                service.line_of("container_name"),
                "compose-container-name",
                f'Service "{service.name}" sets container_name - it cannot be scaled',
                Severity.LOW,
                "Remove container_name and address the service by its name",
            )

        if service.image is None and service.build is None and "extends" not in service.raw:
            add(
                service.line,
                "compose-missing-image",
                f'Service "{service.name}" has neither image nor build',
                Severity.HIGH,
            )

        for dependency in service.depends_on:
            if dependency not in names:
                add(
                    service.line_of("depends_on"),
                    "compose-unknown-dependency",
                    f'Service "{service.name}" depends on undefined service "{dependency}"',
                    Severity.HIGH,
                )

    for cycle in _dependency_cycles(compose.services):
        first = compose.service(cycle[0])
        add(
            first.line_of("depends_on"),
            "compose-dependency-cycle",
            "Circular depends_on: " + " -> ".join(cycle + [cycle[0]]),
            Severity.HIGH,
        )

    return RuleResult(findings=findings)


def _dependency_cycles(services) -> list[list[str]]:
    """Find depends_on cycles, each reported once."""
    graph = {service.name: list(service.depends_on) for service in services}
    cycles: list[list[str]] = []
    seen_cycles: set[frozenset[str]] = set()
    state: dict[str, int] = {}

    def visit(node: str, stack: list[str]) -> None:
        state[node] = 1
        stack.append(node)
        for neighbour in graph.get(node, []):
            if neighbour not in graph:
                continue
            if state.get(neighbour) == 1:
                cycle = stack[stack.index(neighbour):]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(list(cycle))
            elif neighbour not in state:
                visit(neighbour, stack)
        stack.pop()
        state[node] = 2

    for name in graph:
        if name not in state:
            visit(name, [])

    return cycles
