"""Lint Dockerfiles and Compose files against container best practices."""

import sys
from pathlib import Path

import click

from dockaudit.config_runtime import DEFAULTS, load_runtime_config
from dockaudit.discovery import collect_targets
from dockaudit.reporting import FAIL_ON_CHOICES, SEVERITY_LEVELS, LintReport, render_json, render_text
from dockaudit.rules.orchestrator import RuleRegistry, RulesOrchestrator
from dockaudit.ui import file_console, print_error, print_success, print_warning
from dockaudit.utils.constants import STATE_DIR
from dockaudit.utils.error_handler import handle_exceptions
from dockaudit.utils.exit_codes import ExitCodes
from dockaudit.utils.logging import configure_file_logging, logger

FORMAT_CHOICES = ("text", "json")
SEVERITY_CHOICES = ("all",) + SEVERITY_LEVELS


@click.command("lint")
@handle_exceptions
@click.argument("paths", nargs=-1, type=click.Path())
@click.option(
    "--format",
    "output_format",
    type=click.Choice(FORMAT_CHOICES),
    default=None,
    help="Report format (default: report.format from config, else text)",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the report to a file")
@click.option(
    "--severity",
    type=click.Choice(SEVERITY_CHOICES),
    default=None,
    help="Minimum severity to report (does not change the exit code)",
)
@click.option("--disable", multiple=True, help="Rule to skip (repeatable)")
@click.option(
    "--fail-on",
    type=click.Choice(FAIL_ON_CHOICES),
    default=None,
    help="Lowest severity that fails the run (default: high)",
)
@click.option("--log-to-file", is_flag=True, help="Also write debug logs to .dockaudit/dockaudit.log")
def lint(paths, output_format, output, severity, disable, fail_on, log_to_file):
    """Lint Dockerfiles, Compose files and build contexts for best-practice violations.

    Walks each PATH (default: current directory), finds Dockerfiles
    (Dockerfile, *.Dockerfile, Dockerfile.*) and Compose files
    (docker-compose*.yml, compose*.yaml), and evaluates every registered rule.
    Each rule reports PASS, WARN, FAIL or SKIP per file, plus its findings.

    WHAT IT CHECKS:
      Dockerfile:
        - Multi-stage builds and valid COPY --from stage references
        - HEALTHCHECK in the final image, non-root USER
        - Pinned, supported and minimal base images
        - Secrets in ENV/ARG, credential files copied into layers
        - Layer hygiene: apt/apk/pip caches, apt-get update alone
        - COPY ordering for cache reuse, BuildKit cache mounts
        - ADD vs COPY, sudo, curl | sh, chmod 777, exec-form CMD

      Compose:
        - privileged, host network, Docker socket, capabilities, user
        - Hardcoded secrets, database/admin ports on all interfaces
        - Healthchecks and depends_on conditions
        - restart policy, log rotation, memory/CPU limits
        - Undeclared named volumes, container_name, unknown services

      Build context:
        - .dockerignore present when the Dockerfile copies the context

    SUPPRESSING FINDINGS:
      # dockaudit: ignore=dockerfile-root-user        (next line)
      privileged: true  # dockaudit: ignore=all     (this line, Compose only)
      # dockaudit: ignore-file=compose-logging        (whole file)

    CONFIGURATION:
      .dockaudit.json in the first PATH directory (or the current directory):
        {"rules": {"disabled": ["compose-resource-limits"]},
         "limits": {"max_file_size": 2097152},
         "report": {"format": "text", "min_severity": "all", "fail_on": "high"}}
      Environment overrides: DOCKAUDIT_<SECTION>_<KEY>, e.g.
        DOCKAUDIT_REPORT_FAIL_ON=critical

    EXAMPLES:
      dockaudit lint
      dockaudit lint services/api/Dockerfile docker-compose.yml
      dockaudit lint --format json --output build/dockaudit.json
      dockaudit lint --severity high --disable dockerfile-buildkit
      dockaudit lint --fail-on never        # report only, never fail CI

    EXIT CODES:
      0 = Success, nothing at or above --fail-on
      1 = Findings at or above --fail-on (default: high)
      2 = Critical findings
      3 = Nothing to lint, a PATH does not exist, or an unknown rule name
    """
    paths = list(paths) or ["."]
    config = load_runtime_config(_config_root(paths))

    if log_to_file:
        configure_file_logging(STATE_DIR)

    output_format = _from_config(output_format, config, "format", FORMAT_CHOICES)
    severity = _from_config(severity, config, "min_severity", SEVERITY_CHOICES)
    fail_on = _from_config(fail_on, config, "fail_on", FAIL_ON_CHOICES)

    registry = RuleRegistry()
    registry.validate_names(disable)

    configured_disabled = set(config["rules"]["disabled"])
    for name in sorted(configured_disabled - set(registry.names())):
        logger.warning("Ignoring unknown rule '{}' in rules.disabled", name)

    targets, missing = collect_targets(paths, config)
    for path in missing:
        print_error(f"Path does not exist: {path}")
    if missing:
        sys.exit(ExitCodes.TASK_INCOMPLETE)

    if not targets:
        print_error("No Dockerfile or Compose file found in: " + ", ".join(paths))
        sys.exit(ExitCodes.TASK_INCOMPLETE)

    logger.info("Linting {} file(s)", len(targets))
    orchestrator = RulesOrchestrator(registry, disabled=configured_disabled | set(disable))
    results = orchestrator.lint(targets)
    report = LintReport.from_results(results, min_severity=severity)

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            if output_format == "json":
                f.write(render_json(report) + "\n")
            else:
                render_text(report, file_console(f))
        print_success(f"Report written to: {output}")
    elif output_format == "json":
        click.echo(render_json(report))
    else:
        render_text(report)

    exit_code = report.exit_code(fail_on)
    logger.debug("Exit code {}: {}", exit_code, ExitCodes.get_description(exit_code))
    sys.exit(exit_code)


def _config_root(paths: list[str]) -> Path:
    first = Path(paths[0])
    if first.is_dir():
        return first
    return Path(".")


def _from_config(value, config: dict, key: str, choices: tuple[str, ...]) -> str:
    """CLI flag, else report.<key> from config when valid, else the built-in default."""
    if value is not None:
        return value
    configured = config["report"][key]
    if configured in choices:
        return configured
    print_warning(f"Ignoring invalid report.{key} '{configured}' in configuration")
    return DEFAULTS["report"][key]
