"""EXPOSE analyzer.

Detects runtime images declaring sensitive management ports (CWE-749).
Exposing the Docker API port is CRITICAL: it grants full control of the host.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.patterns import CRITICAL_PORTS, SENSITIVE_PORTS

METADATA = RuleMetadata(
    name="dockerfile-exposed-ports",
    category="dockerfile",
    target="dockerfile",
    title="Do not expose management ports",
    rationale=(
        "EXPOSE documents the ports a service listens on and is honoured by "
        "`docker run -P`. SSH, RDP, database and Docker API ports should never be "
        "part of an application image's public surface."
    ),
    references=["https://docs.docker.com/reference/dockerfile/#expose"],
    default_severity=Severity.HIGH,
)


def find_sensitive_ports(context: StandardRuleContext) -> RuleResult:
    """Detect runtime images exposing sensitive management ports."""
    dockerfile = context.dockerfile
    if dockerfile is None or dockerfile.final_stage is None:
        return RuleResult(applicable=False)

    findings = []

    for stage in dockerfile.lineage(dockerfile.final_stage):
        for inst in stage.find("EXPOSE"):
            for port_num, protocol in parse_expose(inst.arguments):
                if port_num not in SENSITIVE_PORTS:
                    continue
                service_name = SENSITIVE_PORTS[port_num]
                if port_num in CRITICAL_PORTS:
                    severity = Severity.CRITICAL
                    message = f"Container exposes Docker API port {port_num} - full host takeover possible"
                else:
                    severity = Severity.HIGH
                    message = (
                        f"Container exposes sensitive port {port_num} ({service_name}) "
                        "- should be behind VPN/bastion"
                    )
                findings.append(
                    StandardFinding(
                        rule_name="dockerfile-sensitive-port-exposed",
                        message=message,
                        file_path=context.display_path,
                        line=inst.line,
                        severity=severity,
                        category="dockerfile",
                        snippet=f"EXPOSE {port_num}/{protocol}",
                        cwe_id="CWE-749",
                    )
                )

    return RuleResult(findings=findings)


def parse_expose(arguments: str) -> list[tuple[int, str]]:
    """Parse 'EXPOSE 80 443/tcp 53/udp 8000-8002' into (port, protocol) pairs."""
    ports = []
    for token in arguments.split():
        port_str, _, protocol = token.partition("/")
        protocol = protocol or "tcp"
        start, _, end = port_str.partition("-")
        try:
            first = int(start)
            last = int(end) if end else first
        except ValueError:
            continue  # $PORT and other variables
        if last - first > 1024:
            last = first
        ports.extend((port, protocol) for port in range(first, last + 1))
    return ports
