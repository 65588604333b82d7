"""Docker Compose volumes analyzer.

Named volumes are managed by Docker and outlive containers. A named
volume used by a service must be declared under the top-level `volumes:`
key or `docker compose up` refuses to start.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-named-volumes",
    category="compose",
    target="compose",
    title="Persist data in declared named volumes",
    rationale=(
        "Named volumes keep data independent of the container lifecycle and of "
        "the host directory layout. Bind-mounting a host directory for database "
        "data ties the stack to one machine and its file permissions."
    ),
    references=["https://docs.docker.com/engine/storage/volumes/"],
    default_severity=Severity.HIGH,
)

# Container paths where services keep their persistent state
DATA_DIRECTORIES = (
    "/var/lib/postgresql/data",
    "/var/lib/mysql",
    "/data/db",
    "/var/lib/mongodb",
    "/data",
    "/var/lib/redis",
    "/var/lib/rabbitmq",
    "/usr/share/elasticsearch/data",
    "/bitnami",
)


def find_volume_issues(context: StandardRuleContext) -> RuleResult:
    """Check named volume declarations against their use."""
    compose = context.compose
    if compose is None:
        return RuleResult(applicable=False)

    uses_volumes = any(service.volumes for service in compose.services)
    if not uses_volumes and not compose.volumes:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path
    used: set[str] = set()

    for service in compose.services:
        line = service.line_of("volumes")
        for volume in service.volumes:
            if volume.is_named:
                used.add(volume.source)
                if volume.source not in compose.volumes:
                    findings.append(
                        StandardFinding(
                            rule_name="compose-undeclared-volume",
                            message=(
                                f'Service "{service.name}" uses named volume "{volume.source}" '
                                "which is not declared under top-level volumes"
                            ),
                            file_path=path,
                            line=line,
                            severity=Severity.HIGH,
                            category="compose",
                            snippet=f"volumes:\n  - {volume.raw}",
                            recommendation=f"Declare it:\nvolumes:\n  {volume.source}:",
                        )
                    )
            elif volume.type == "bind" and _is_data_directory(volume.target):
                findings.append(
                    StandardFinding(
                        rule_name="compose-bind-mount-data",
                        message=(
                            f'Service "{service.name}" stores {volume.target} in host directory '
                            f'"{volume.source}"'
                        ),
                        file_path=path,
                        line=line,
                        severity=Severity.LOW,
                        category="compose",
                        snippet=f"volumes:\n  - {volume.raw}",
                        recommendation="Use a named volume for persistent data",
                    )
                )

    for name in compose.volumes:
        if name not in used:
            line = compose.line_of("volumes")
            findings.append(
                StandardFinding(
                    rule_name="compose-unused-volume",
                    message=f'Volume "{name}" is declared but no service uses it',
                    file_path=path,
                    line=line,
                    severity=Severity.INFO,
                    category="compose",
                    snippet=context.get_snippet(line),
                )
            )

    return RuleResult(findings=findings)


def _is_data_directory(target: str) -> bool:
    target = target.rstrip("/")
    return any(target == data_dir or target.startswith(data_dir + "/") for data_dir in DATA_DIRECTORIES)
