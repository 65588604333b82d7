"""Docker Compose container hardening analyzer.

Detects security misconfigurations in Compose services:
- Privileged containers (CWE-250)
- Host network, PID and IPC namespaces (CWE-668)
- Docker socket mounting (container escape)
- Dangerous host path mounts
- Root user
- Dangerous capabilities and missing cap_drop
- Disabled AppArmor/seccomp/SELinux confinement (CWE-693)
- Shell metacharacters in string commands (CWE-78)
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-container-hardening",
    category="compose",
    target="compose",
    title="Run services with least privilege",
    rationale=(
        "A privileged container, host namespaces or a mounted Docker socket turn "
        "any compromise of the service into a compromise of the host. Drop all "
        "capabilities and add back only the ones the service needs."
    ),
    references=[
        "https://docs.docker.com/engine/security/",
        "https://cheatsheetseries.owasp.org/cheatsheets/Docker_Security_Cheat_Sheet.html",
    ],
    default_severity=Severity.HIGH,
)

DANGEROUS_MOUNTS = (
    "/etc/shadow",
    "/etc/passwd",
    "/root",
    "/.ssh",
    "/proc",
    "/sys",
    "/dev",
    "/boot",
    "/",
)

DANGEROUS_CAPABILITIES = frozenset(
    [
        "ALL",
        "SYS_ADMIN",
        "NET_ADMIN",
        "SYS_PTRACE",
        "SYS_MODULE",
        "DAC_OVERRIDE",
        "DAC_READ_SEARCH",
        "SYS_RAWIO",
        "SYS_BOOT",
        "SYS_TIME",
        "SYS_RESOURCE",
    ]
)

INSECURE_SECURITY_OPTS = frozenset(
    [
        "apparmor=unconfined",
        "apparmor:unconfined",
        "seccomp=unconfined",
        "seccomp:unconfined",
        "label=disable",
        "label:disable",
        "no-new-privileges=false",
        "no-new-privileges:false",
    ]
)

SHELL_METACHARACTERS = frozenset([";", "&", "|", "`", ">", "<", "$("])

ROOT_USER_IDS = frozenset(["root", "0"])


def find_container_hardening_issues(context: StandardRuleContext) -> RuleResult:
    """Detect Compose service security misconfigurations."""
    compose = context.compose
    if compose is None or not compose.services:
        return RuleResult(applicable=False)

    findings = []
    for service in compose.services:
        findings.extend(analyze_service(context, service))
    return RuleResult(findings=findings)


def analyze_service(context: StandardRuleContext, service) -> list[StandardFinding]:
    """Analyze a single Docker Compose service for security issues."""
    findings = []
    name = service.name

    def add(key: str, rule_name: str, message: str, severity: Severity, cwe_id: str, recommendation: str = ""):
        line = service.line_of(key)
        findings.append(
            StandardFinding(
                rule_name=rule_name,
                message=message,
                file_path=context.display_path,
                line=line,
                severity=severity,
                category="compose",
                snippet=context.get_snippet(line),
                recommendation=recommendation,
                cwe_id=cwe_id,
            )
        )

    if service.privileged:
        add(
            "privileged",
            "compose-privileged-container",
            f'Service "{name}" runs in privileged mode',
            Severity.CRITICAL,
            "CWE-250",
            "Remove privileged: true and grant specific capabilities instead",
        )

    if service.network_mode == "host":
        add(
            "network_mode",
            "compose-host-network",
            f'Service "{name}" uses host network mode',
            Severity.HIGH,
            "CWE-668",
            "Use a bridge network and publish only the required ports",
        )

    for namespace in ("pid", "ipc"):
        if service.raw.get(namespace) == "host":
            add(
                namespace,
                "compose-host-namespace",
                f'Service "{name}" shares the host {namespace.upper()} namespace',
                Severity.HIGH,
                "CWE-668",
            )

    for volume in service.volumes:
        source = volume.source or ""
        if "docker.sock" in source:
            add(
                "volumes",
                "compose-docker-socket",
                f'Service "{name}" mounts Docker socket - container escape risk',
                Severity.CRITICAL,
                "CWE-552",
                "Use a socket proxy with a restricted API, or remove the mount",
            )
            continue
        if volume.type != "bind":
            continue
        dangerous = _dangerous_mount(source)
        if dangerous:
            add(
                "volumes",
                "compose-dangerous-mount",
                f'Service "{name}" mounts sensitive host path: {dangerous}',
                Severity.MEDIUM if volume.read_only else Severity.HIGH,
                "CWE-552",
            )

    user = service.user
    if user is None:
        add(
            "user",
            "compose-root-user",
            f'Service "{name}" does not set user - runs as the image USER, often root',
            Severity.MEDIUM,
            "CWE-250",
            'Set user: "1000:1000" or make sure the image sets a non-root USER',
        )
    elif user.split(":", 1)[0].strip().lower() in ROOT_USER_IDS:
        add(
            "user",
            "compose-root-user",
            f'Service "{name}" runs as root user (user: {user})',
            Severity.HIGH,
            "CWE-250",
            "Run as an unprivileged user",
        )

    for capability in service.cap_add:
        normalized = capability.upper().removeprefix("CAP_")
        if normalized in DANGEROUS_CAPABILITIES:
            add(
                "cap_add",
                "compose-dangerous-capability",
                f'Service "{name}" grants dangerous capability: {capability}',
                Severity.CRITICAL if normalized in ("ALL", "SYS_ADMIN") else Severity.HIGH,
                "CWE-250",
            )

    for opt in service.security_opt:
        if opt.replace(" ", "") in INSECURE_SECURITY_OPTS:
            add(
                "security_opt",
                "compose-disabled-security",
                f'Service "{name}" disables security feature: {opt}',
                Severity.HIGH,
                "CWE-693",
            )

    for cmd_field in ("command", "entrypoint"):
        cmd_value = getattr(service, cmd_field)
        if cmd_value and isinstance(cmd_value, str):
            if any(char in cmd_value for char in SHELL_METACHARACTERS):
                add(
                    cmd_field,
                    "compose-command-injection-risk",
                    f'Service "{name}" has shell metacharacters in {cmd_field}',
                    Severity.MEDIUM,
                    "CWE-78",
                    "Use the list form and avoid shell interpolation",
                )

    if "ALL" not in [cap.upper() for cap in service.cap_drop]:
        add(
            "cap_drop" if service.cap_drop else "",
            "compose-missing-cap-drop",
            f'Service "{name}" does not drop all capabilities (missing cap_drop: [ALL])',
            Severity.LOW,
            "CWE-250",
            "Add cap_drop: [ALL] and cap_add only what is required",
        )

    return findings


def _dangerous_mount(source: str) -> str | None:
    cleaned = source.rstrip("/") or "/"
    for dangerous in DANGEROUS_MOUNTS:
        if dangerous == "/":
            if cleaned == "/":
                return dangerous
            continue
        if cleaned == dangerous or cleaned.startswith(dangerous + "/"):
            return dangerous
    if ".ssh" in cleaned.split("/"):
        return "/.ssh"
    return None
