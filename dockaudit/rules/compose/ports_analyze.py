"""Docker Compose published ports analyzer.

A port published without a host IP binds every interface of the host, and
Docker's iptables rules bypass host firewalls such as ufw. Databases and
admin consoles should bind to 127.0.0.1 or stay on internal networks.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.patterns import ADMIN_PORTS, CRITICAL_PORTS, DATABASE_PORTS

METADATA = RuleMetadata(
    name="compose-exposed-ports",
    category="compose",
    target="compose",
    title="Do not publish database or admin ports on all interfaces",
    rationale=(
        "Services reach each other over Compose networks by service name without "
        "publishing ports. Publish only public entry points, and bind internal "
        "tools to 127.0.0.1."
    ),
    references=["https://docs.docker.com/engine/network/packet-filtering-firewalls/"],
    default_severity=Severity.HIGH,
)


def find_exposed_ports(context: StandardRuleContext) -> RuleResult:
    """Check published ports of every service."""
    compose = context.compose
    if compose is None:
        return RuleResult(applicable=False)

    services = [service for service in compose.services if service.ports]
    if not services:
        return RuleResult(applicable=False)

    findings = []
    for service in services:
        for port in service.ports:
            findings.extend(check_port_exposure(context, service, port))
    return RuleResult(findings=findings)


def check_port_exposure(context: StandardRuleContext, service, port) -> list[StandardFinding]:
    """Check if a sensitive container port is reachable from outside the host."""
    if port.is_loopback:
        return []

    container_port = port.target.split("-")[0]
    line = service.line_of("ports")

    if container_port in DATABASE_PORTS:
        label = DATABASE_PORTS[container_port]
        rule_name = "compose-database-exposed"
    elif container_port in ADMIN_PORTS:
        label = ADMIN_PORTS[container_port]
        rule_name = "compose-admin-exposed"
    else:
        return []

    if container_port.isdigit() and int(container_port) in CRITICAL_PORTS:
        severity = Severity.CRITICAL
    elif port.published is None:
        severity = Severity.MEDIUM
    else:
        severity = Severity.HIGH

    return [
        StandardFinding(
            rule_name=rule_name,
            message=f'Service "{service.name}" exposes {label} port {container_port} to all interfaces',
            file_path=context.display_path,
            line=_port_line(context, line, port.raw),
            severity=severity,
            category="compose",
            snippet=f"ports:\n  - {port.raw}",
            recommendation=f'Bind to loopback ("127.0.0.1:{port.published or container_port}:{container_port}") or drop the mapping',
            cwe_id="CWE-668",
        )
    ]


def _port_line(context: StandardRuleContext, start: int, raw: str) -> int:
    lines = context.get_lines()
    for index in range(start, min(len(lines), start + 100)):
        if raw and raw in lines[index]:
            return index + 1
    return start
