"""Tests for Dockerfile best-practice rules."""

from conftest import GOOD_DOCKERFILE, dockerfile_context, rule_names
from dockaudit.rules.base import RuleStatus, Severity, compute_status
from dockaudit.rules.dockerfile.base_image_analyze import find_base_image_issues
from dockaudit.rules.dockerfile.buildkit_analyze import find_buildkit_usage
from dockaudit.rules.dockerfile.cache_order_analyze import find_copy_before_install
from dockaudit.rules.dockerfile.entrypoint_analyze import find_shell_form_commands
from dockaudit.rules.dockerfile.healthcheck_analyze import find_missing_healthcheck
from dockaudit.rules.dockerfile.instruction_analyze import find_instruction_issues
from dockaudit.rules.dockerfile.layer_analyze import find_layer_issues
from dockaudit.rules.dockerfile.minimal_image_analyze import find_heavy_runtime_image
from dockaudit.rules.dockerfile.multi_stage_analyze import find_multi_stage_build
from dockaudit.rules.dockerfile.ports_analyze import find_sensitive_ports, parse_expose
from dockaudit.rules.dockerfile.secrets_analyze import find_dockerfile_secrets, parse_env_pairs
from dockaudit.rules.dockerfile.user_analyze import find_root_user


def status_of(result):
    return compute_status(result.findings, result.applicable)


class TestMultiStage:
    """dockerfile-multi-stage"""

    def test_two_stages_pass(self):
        """Test a build with two FROM instructions passes."""
        result = find_multi_stage_build(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS

    def test_single_stage_warns(self):
        """Test a single FROM yields a low finding and WARN."""
        result = find_multi_stage_build(dockerfile_context("""
            FROM python:3.12-slim
            COPY . /app
            CMD ["python", "/app/main.py"]
        """))
        assert rule_names(result) == ["dockerfile-single-stage"]
        assert result.findings[0].line == 1
        assert status_of(result) == RuleStatus.WARN

    def test_undefined_copy_from_fails(self):
        """Test COPY --from of an unknown stage is a high finding."""
        result = find_multi_stage_build(dockerfile_context("""
            FROM golang:1.22 AS build
            RUN go build -o /out/app .

            FROM gcr.io/distroless/static-debian12
            COPY --from=builder /out/app /app
        """))
        assert rule_names(result) == ["dockerfile-invalid-stage-reference"]
        assert result.findings[0].line == 5
        assert status_of(result) == RuleStatus.FAIL

    def test_forward_index_reference(self):
        """Test COPY --from=<index> must point at an earlier stage."""
        result = find_multi_stage_build(dockerfile_context("""
            FROM alpine:3.20
            COPY --from=1 /out /out
            FROM alpine:3.20
        """))
        assert rule_names(result) == ["dockerfile-invalid-stage-reference"]

    def test_copy_from_external_image(self):
        """Test COPY --from of an image reference is allowed."""
        result = find_multi_stage_build(dockerfile_context("""
            FROM alpine:3.20 AS base
            FROM base
            COPY --from=nginx:1.27 /etc/nginx/nginx.conf /etc/nginx/nginx.conf
            COPY --from=0 /etc/os-release /tmp/os-release
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_duplicate_stage_names(self):
        """Test reusing a stage name fails the build."""
        result = find_multi_stage_build(dockerfile_context("""
            FROM node:20 AS build
            FROM node:20 AS build
            FROM nginx:1.27-alpine
        """))
        assert "dockerfile-duplicate-stage-name" in rule_names(result)

    def test_empty_file_not_applicable(self):
        """Test a Dockerfile without FROM is skipped."""
        result = find_multi_stage_build(dockerfile_context(""))
        assert status_of(result) == RuleStatus.SKIP


class TestHealthcheck:
    """dockerfile-healthcheck"""

    def test_healthcheck_cmd_passes(self):
        """Test HEALTHCHECK CMD in the final stage passes."""
        result = find_missing_healthcheck(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS

    def test_missing_healthcheck(self):
        """Test no HEALTHCHECK is a medium finding at the final FROM."""
        result = find_missing_healthcheck(dockerfile_context("""
            FROM node:20-slim AS build
            HEALTHCHECK CMD ["true"]
            FROM node:20-slim
            CMD ["node", "server.js"]
        """))
        assert rule_names(result) == ["dockerfile-missing-healthcheck"]
        assert result.findings[0].line == 3
        assert result.findings[0].severity == Severity.MEDIUM

    def test_healthcheck_none_flagged(self):
        """Test HEALTHCHECK NONE is reported as disabled."""
        result = find_missing_healthcheck(dockerfile_context("""
            FROM nginx:1.27-alpine
            HEALTHCHECK NONE
        """))
        assert rule_names(result) == ["dockerfile-healthcheck-disabled"]
        assert result.findings[0].line == 2

    def test_healthcheck_inherited_from_parent_stage(self):
        """Test a HEALTHCHECK in the stage the final stage is built FROM counts."""
        result = find_missing_healthcheck(dockerfile_context("""
            FROM python:3.12-slim AS base
            HEALTHCHECK CMD ["python", "-c", "print(1)"]
            FROM base
            CMD ["python"]
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_overridden_healthcheck(self):
        """Test only the last HEALTHCHECK takes effect."""
        result = find_missing_healthcheck(dockerfile_context("""
            FROM nginx:1.27-alpine
            HEALTHCHECK CMD ["wget", "-qO-", "http://localhost/"]
            HEALTHCHECK CMD ["wget", "-qO-", "http://localhost/health"]
        """))
        assert rule_names(result) == ["dockerfile-multiple-healthcheck"]
        assert result.findings[0].line == 2


class TestUser:
    """dockerfile-user"""

    def test_non_root_user_passes(self):
        """Test USER with a numeric uid passes."""
        result = find_root_user(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS

    def test_user_only_in_builder_does_not_count(self):
        """Test USER in a builder stage does not apply to the final image."""
        result = find_root_user(dockerfile_context("""
            FROM node:20 AS build
            USER node
            RUN npm ci

            FROM node:20-slim
            COPY --from=build /app /app
            CMD ["node", "/app/server.js"]
        """))
        assert rule_names(result) == ["dockerfile-no-user"]
        assert result.findings[0].line == 5
        assert result.findings[0].severity == Severity.MEDIUM

    def test_explicit_root(self):
        """Test USER root as the last USER fails."""
        result = find_root_user(dockerfile_context("""
            FROM debian:bookworm-slim
            USER app
            USER root
        """))
        assert rule_names(result) == ["dockerfile-root-user"]
        assert result.findings[0].line == 3
        assert status_of(result) == RuleStatus.FAIL

    def test_root_uid_with_group(self):
        """Test USER 0:0 is root."""
        result = find_root_user(dockerfile_context("FROM alpine:3.20\nUSER 0:0\n"))
        assert rule_names(result) == ["dockerfile-root-user"]

    def test_nonroot_base_image(self):
        """Test distroless :nonroot images do not need USER."""
        result = find_root_user(dockerfile_context("FROM gcr.io/distroless/static-debian12:nonroot\n"))
        assert status_of(result) == RuleStatus.PASS

    def test_user_from_parent_stage(self):
        """Test USER set in the parent stage is inherited."""
        result = find_root_user(dockerfile_context("""
            FROM node:20-slim AS base
            USER node
            FROM base
            CMD ["node"]
        """))
        assert status_of(result) == RuleStatus.PASS


class TestBaseImage:
    """dockerfile-base-image"""

    def test_latest_tag(self):
        """Test :latest and missing tags are unpinned."""
        result = find_base_image_issues(dockerfile_context("""
            FROM node:latest AS build
            FROM nginx
        """))
        assert rule_names(result) == ["dockerfile-unpinned-image", "dockerfile-unpinned-image"]

    def test_digest_is_pinned(self):
        """Test a digest pins the image even without a tag."""
        result = find_base_image_issues(dockerfile_context(
            "FROM alpine@sha256:0a4eaa0eecf5f8c050e5bba433f58c052be7587ee8af3e8b3910ef9ab5fbe9f5\n"
        ))
        assert status_of(result) == RuleStatus.PASS

    def test_eol_image(self):
        """Test end-of-life images are high severity."""
        result = find_base_image_issues(dockerfile_context("FROM python:3.7-slim\n"))
        assert rule_names(result) == ["dockerfile-eol-image"]
        assert result.findings[0].severity == Severity.HIGH

    def test_eol_prefix_does_not_overmatch(self):
        """Test node:120 is not node:12."""
        result = find_base_image_issues(dockerfile_context("FROM node:120\n"))
        assert "dockerfile-eol-image" not in rule_names(result)

    def test_unofficial_image(self):
        """Test an unknown image without namespace is flagged."""
        result = find_base_image_issues(dockerfile_context("FROM pyhton:3.12\n"))
        assert rule_names(result) == ["dockerfile-unofficial-image"]

    def test_stage_reference_not_checked(self):
        """Test FROM <stage> is not treated as an image."""
        result = find_base_image_issues(dockerfile_context("""
            FROM python:3.12-slim AS base
            FROM base
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_global_arg_resolved(self):
        """Test FROM image:${ARG} uses the global ARG default."""
        result = find_base_image_issues(dockerfile_context("""
            ARG NODE_VERSION=14
            FROM node:${NODE_VERSION}
        """))
        assert rule_names(result) == ["dockerfile-eol-image"]

    def test_unresolvable_arg_skipped(self):
        """Test an image built from an ARG without default is not judged."""
        result = find_base_image_issues(dockerfile_context("""
            ARG BASE_IMAGE
            FROM ${BASE_IMAGE}
        """))
        assert status_of(result) == RuleStatus.SKIP


class TestMinimalRuntime:
    """dockerfile-minimal-runtime"""

    def test_slim_runtime_passes(self):
        """Test a -slim final image passes."""
        result = find_heavy_runtime_image(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS

    def test_toolchain_runtime(self):
        """Test a golang final stage ships the compiler."""
        result = find_heavy_runtime_image(dockerfile_context("FROM golang:1.22\nCMD [\"/app\"]\n"))
        assert rule_names(result) == ["dockerfile-build-tools-in-runtime"]

    def test_full_distribution_runtime(self):
        """Test a full node image is heavy."""
        result = find_heavy_runtime_image(dockerfile_context("FROM node:20\n"))
        assert rule_names(result) == ["dockerfile-heavy-runtime-image"]

    def test_builder_stage_not_checked(self):
        """Test a heavy builder with a distroless final stage passes."""
        result = find_heavy_runtime_image(dockerfile_context("""
            FROM golang:1.22 AS build
            FROM gcr.io/distroless/static-debian12
        """))
        assert status_of(result) == RuleStatus.PASS


class TestSecrets:
    """dockerfile-secrets"""

    def test_env_pairs(self):
        """Test both ENV syntaxes."""
        assert parse_env_pairs('A=1 B="two words"') == [("A", "1"), ("B", "two words")]
        assert parse_env_pairs("JAVA_HOME /opt/java") == [("JAVA_HOME", "/opt/java")]

    def test_hardcoded_secret_in_env(self):
        """Test a sensitive ENV key with a literal value is high."""
        result = find_dockerfile_secrets(dockerfile_context("""
            FROM alpine:3.20
            ENV API_TOKEN=f3c9a1d07be24e6c
        """))
        assert rule_names(result) == ["dockerfile-hardcoded-secret"]
        finding = result.findings[0]
        assert finding.severity == Severity.HIGH
        assert finding.line == 2
        assert "f3c9a1d07be24e6c" not in finding.snippet

    def test_weak_password(self):
        """Test a well-known password is critical."""
        result = find_dockerfile_secrets(dockerfile_context("FROM alpine:3.20\nENV DB_PASSWORD=changeme\n"))
        assert rule_names(result) == ["dockerfile-weak-password"]
        assert result.findings[0].severity == Severity.CRITICAL

    def test_token_pattern_under_neutral_key(self):
        """Test a known token format is found regardless of key name."""
        token = "ghp_" + "a" * 36
        result = find_dockerfile_secrets(dockerfile_context(f"FROM alpine:3.20\nENV UPSTREAM={token}\n"))
        assert rule_names(result) == ["dockerfile-secret-pattern"]

    def test_variable_reference_ignored(self):
        """Test ENV KEY=$ARG passes the value through without embedding it."""
        result = find_dockerfile_secrets(dockerfile_context("""
            FROM alpine:3.20
            ARG NPM_TOKEN
            ENV NPM_TOKEN=${NPM_TOKEN}
        """))
        assert rule_names(result) == ["dockerfile-arg-secret"]
        assert result.findings[0].severity == Severity.MEDIUM

    def test_arg_with_secret_default(self):
        """Test ARG with a literal secret default is high."""
        result = find_dockerfile_secrets(dockerfile_context("FROM alpine:3.20\nARG GITHUB_TOKEN=abc123def456\n"))
        assert rule_names(result) == ["dockerfile-arg-secret"]
        assert result.findings[0].severity == Severity.HIGH

    def test_copied_credential_file(self):
        """Test copying a private key or .env into the image."""
        result = find_dockerfile_secrets(dockerfile_context("""
            FROM alpine:3.20
            COPY id_rsa /root/.ssh/id_rsa
            COPY .env.example /app/.env.example
            COPY .env /app/.env
        """))
        assert rule_names(result) == ["dockerfile-secret-file-copied", "dockerfile-secret-file-copied"]
        assert [f.line for f in result.findings] == [2, 4]

    def test_copy_from_stage_ignored(self):
        """Test files copied from another stage are not context files."""
        result = find_dockerfile_secrets(dockerfile_context("""
            FROM alpine:3.20 AS certs
            FROM alpine:3.20
            COPY --from=certs /etc/ssl/server.pem /etc/ssl/server.pem
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_plain_settings_pass(self):
        """Test ordinary ENV values are not secrets."""
        result = find_dockerfile_secrets(dockerfile_context("""
            FROM python:3.12-slim
            ENV PYTHONUNBUFFERED=1 APP_HOME=/srv/app
        """))
        assert status_of(result) == RuleStatus.PASS


class TestExposedPorts:
    """dockerfile-exposed-ports"""

    def test_parse_expose(self):
        """Test ranges, protocols and variables."""
        assert parse_expose("80 53/udp 8000-8002 $PORT") == [
            (80, "tcp"),
            (53, "udp"),
            (8000, "tcp"),
            (8001, "tcp"),
            (8002, "tcp"),
        ]

    def test_ssh_port(self):
        """Test EXPOSE 22 is high."""
        result = find_sensitive_ports(dockerfile_context("FROM alpine:3.20\nEXPOSE 8080 22\n"))
        assert rule_names(result) == ["dockerfile-sensitive-port-exposed"]
        assert result.findings[0].severity == Severity.HIGH

    def test_docker_api_port(self):
        """Test the Docker API port is critical."""
        result = find_sensitive_ports(dockerfile_context("FROM docker:27-dind\nEXPOSE 2375\n"))
        assert result.findings[0].severity == Severity.CRITICAL

    def test_builder_expose_ignored(self):
        """Test EXPOSE in a builder stage does not reach the final image."""
        result = find_sensitive_ports(dockerfile_context("""
            FROM postgres:16 AS seed
            EXPOSE 5432
            FROM alpine:3.20
            EXPOSE 8080
        """))
        assert status_of(result) == RuleStatus.PASS


class TestLayerHygiene:
    """dockerfile-layer-hygiene"""

    def test_clean_apt_install(self):
        """Test the recommended apt-get pattern passes."""
        result = find_layer_issues(dockerfile_context("""
            FROM debian:bookworm-slim
            RUN apt-get update && apt-get install -y --no-install-recommends curl && rm -rf /var/lib/apt/lists/*
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_apt_update_alone(self):
        """Test apt-get update in its own RUN."""
        result = find_layer_issues(dockerfile_context("""
            FROM debian:bookworm-slim
            RUN apt-get update
            COPY app /app
            RUN apt-get install -y --no-install-recommends curl && rm -rf /var/lib/apt/lists/*
        """))
        assert rule_names(result) == ["dockerfile-apt-update-alone"]
        assert result.findings[0].line == 2

    def test_sloppy_apt_install(self):
        """Test missing -y, recommends and list cleanup."""
        result = find_layer_issues(dockerfile_context("""
            FROM ubuntu:24.04
            RUN apt-get update && apt-get install curl
        """))
        assert sorted(rule_names(result)) == [
            "dockerfile-apt-install-recommends",
            "dockerfile-apt-lists-not-removed",
            "dockerfile-apt-missing-yes",
        ]

    def test_apk_without_no_cache(self):
        """Test apk add without --no-cache."""
        result = find_layer_issues(dockerfile_context("FROM alpine:3.20\nRUN apk add curl\n"))
        assert rule_names(result) == ["dockerfile-apk-cache"]

    def test_pip_cache(self):
        """Test pip install without --no-cache-dir."""
        result = find_layer_issues(dockerfile_context("FROM python:3.12-slim\nRUN pip install flask\n"))
        assert rule_names(result) == ["dockerfile-pip-cache"]

    def test_pip_cache_disabled_by_env(self):
        """Test PIP_NO_CACHE_DIR makes --no-cache-dir unnecessary."""
        result = find_layer_issues(dockerfile_context("""
            FROM python:3.12-slim
            ENV PIP_NO_CACHE_DIR=1
            RUN pip install flask
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_pip_cache_mount(self):
        """Test a BuildKit cache mount keeps the cache out of the layer."""
        result = find_layer_issues(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS

    def test_dnf_without_clean(self):
        """Test dnf install without clean all."""
        result = find_layer_issues(dockerfile_context("FROM fedora:40\nRUN dnf install -y git\n"))
        assert rule_names(result) == ["dockerfile-rpm-cache"]

    def test_consecutive_runs(self):
        """Test three adjacent RUNs are reported once at the first."""
        result = find_layer_issues(dockerfile_context("""
            FROM alpine:3.20
            RUN mkdir /app
            RUN touch /app/ready
            RUN echo done
            WORKDIR /app
            RUN echo one
            RUN echo two
        """))
        assert rule_names(result) == ["dockerfile-consecutive-run"]
        assert result.findings[0].line == 2
        assert status_of(result) == RuleStatus.WARN

    def test_heredoc_run_is_checked(self):
        """Test commands inside RUN <<EOF are checked like a plain RUN."""
        result = find_layer_issues(dockerfile_context("""
            FROM debian:12-slim
            RUN <<EOF
            apt-get update
            apt-get install -y curl
            EOF
        """))
        assert rule_names(result) == [
            "dockerfile-apt-install-recommends",
            "dockerfile-apt-lists-not-removed",
        ]
        assert {finding.line for finding in result.findings} == {2}

    def test_clean_heredoc_run(self):
        """Test a heredoc install with continuation lines and cleanup passes."""
        result = find_layer_issues(dockerfile_context("""
            FROM debian:12-slim
            RUN <<EOF
            apt-get update
            apt-get install -y --no-install-recommends \\
                curl
            rm -rf /var/lib/apt/lists/*
            EOF
        """))
        assert status_of(result) == RuleStatus.PASS


class TestCopyOrder:
    """dockerfile-copy-order"""

    def test_copy_everything_before_install(self):
        """Test COPY . before npm ci invalidates the install layer."""
        result = find_copy_before_install(dockerfile_context("""
            FROM node:20-slim
            WORKDIR /app
            COPY . .
            RUN npm ci
        """))
        assert rule_names(result) == ["dockerfile-copy-before-install"]
        assert result.findings[0].line == 3

    def test_manifest_first(self):
        """Test copying the manifest first passes."""
        result = find_copy_before_install(dockerfile_context("""
            FROM node:20-slim
            WORKDIR /app
            COPY package.json package-lock.json ./
            RUN npm ci
            COPY . .
        """))
        assert status_of(result) == RuleStatus.PASS

    def test_no_dependency_install(self):
        """Test files without an install step are not applicable."""
        result = find_copy_before_install(dockerfile_context("FROM nginx:1.27-alpine\nCOPY . /usr/share/nginx/html\n"))
        assert status_of(result) == RuleStatus.SKIP


class TestBuildKit:
    """dockerfile-buildkit"""

    def test_mount_without_syntax(self):
        """Test RUN --mount without a syntax directive."""
        result = find_buildkit_usage(dockerfile_context("""
            FROM python:3.12-slim
            RUN --mount=type=cache,target=/root/.cache/pip pip install flask
        """))
        assert rule_names(result) == ["dockerfile-missing-syntax-directive"]
        assert result.findings[0].line == 2

    def test_downloads_without_cache_mount(self):
        """Test package downloads without any cache mount are reported once."""
        result = find_buildkit_usage(dockerfile_context("""
            FROM python:3.12-slim
            RUN pip install --no-cache-dir flask
            RUN pip install --no-cache-dir gunicorn
        """))
        assert rule_names(result) == ["dockerfile-no-cache-mount"]
        assert result.findings[0].severity == Severity.INFO

    def test_good_dockerfile(self):
        """Test syntax directive plus cache mount passes."""
        result = find_buildkit_usage(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS


class TestInstructionHygiene:
    """dockerfile-instruction-hygiene"""

    def test_add_local_file(self):
        """Test ADD for a plain local file should be COPY."""
        result = find_instruction_issues(dockerfile_context("FROM alpine:3.20\nADD app.py /app/\n"))
        assert rule_names(result) == ["dockerfile-add-instead-of-copy"]

    def test_add_archive_allowed(self):
        """Test ADD of a local archive is its intended use."""
        result = find_instruction_issues(dockerfile_context("FROM alpine:3.20\nADD rootfs.tar.gz /\n"))
        assert status_of(result) == RuleStatus.PASS

    def test_add_remote_url(self):
        """Test ADD of a URL without --checksum."""
        result = find_instruction_issues(dockerfile_context(
            "FROM alpine:3.20\nADD https://example.com/tool.tar.gz /opt/\n"
        ))
        assert rule_names(result) == ["dockerfile-add-remote-url"]
        assert result.findings[0].cwe_id == "CWE-494"

    def test_add_remote_url_with_checksum(self):
        """Test ADD --checksum verifies the download."""
        result = find_instruction_issues(dockerfile_context(
            "FROM alpine:3.20\nADD --checksum=sha256:24454f830cdb571e2c4ad15481119c43b3cafd48dd869a9b2945d1036d1dc68d "
            "https://example.com/tool.tar.gz /opt/\n"
        ))
        assert status_of(result) == RuleStatus.PASS

    def test_curl_pipe_to_shell(self):
        """Test curl | sh is high severity."""
        result = find_instruction_issues(dockerfile_context(
            "FROM debian:bookworm-slim\nRUN curl -fsSL https://get.example.com | sh\n"
        ))
        assert rule_names(result) == ["dockerfile-pipe-to-shell"]
        assert status_of(result) == RuleStatus.FAIL

    def test_run_hygiene(self):
        """Test sudo, chmod 777 and cd in RUN."""
        result = find_instruction_issues(dockerfile_context("""
            FROM debian:bookworm-slim
            RUN sudo apt-get install -y curl
            RUN chmod 777 /data
            RUN cd /app && make
        """))
        assert rule_names(result) == ["dockerfile-sudo", "dockerfile-world-writable", "dockerfile-cd-in-run"]

    def test_maintainer_and_relative_workdir(self):
        """Test deprecated MAINTAINER and relative WORKDIR."""
        result = find_instruction_issues(dockerfile_context("""
            FROM alpine:3.20
            MAINTAINER ops@example.com
            WORKDIR app
        """))
        assert rule_names(result) == ["dockerfile-maintainer-deprecated", "dockerfile-relative-workdir"]

    def test_heredoc_body_lines(self):
        """Test each heredoc line is a command of its own."""
        result = find_instruction_issues(dockerfile_context("""
            FROM debian:12-slim
            RUN <<EOF
            set -e
            cd /tmp
            curl -fsSL https://example.com/install.sh | sh
            EOF
        """))
        assert rule_names(result) == ["dockerfile-pipe-to-shell", "dockerfile-cd-in-run"]
        assert result.findings[0].line == 2


class TestExecForm:
    """dockerfile-exec-form"""

    def test_exec_form_passes(self):
        """Test JSON array CMD passes."""
        result = find_shell_form_commands(dockerfile_context(GOOD_DOCKERFILE))
        assert status_of(result) == RuleStatus.PASS

    def test_shell_form_entrypoint(self):
        """Test shell-form ENTRYPOINT is medium, CMD low."""
        result = find_shell_form_commands(dockerfile_context("""
            FROM python:3.12-slim
            ENTRYPOINT python -m app
            CMD serve --port 8080
        """))
        severities = {f.line: f.severity for f in result.findings}
        assert severities == {2: Severity.MEDIUM, 3: Severity.LOW}

    def test_multiple_cmd(self):
        """Test an earlier CMD is dead code."""
        result = find_shell_form_commands(dockerfile_context("""
            FROM python:3.12-slim
            CMD ["python", "one.py"]
            CMD ["python", "two.py"]
        """))
        assert rule_names(result) == ["dockerfile-multiple-cmd"]
        assert result.findings[0].line == 2

    def test_no_command_not_applicable(self):
        """Test images without CMD or ENTRYPOINT are skipped."""
        result = find_shell_form_commands(dockerfile_context("FROM alpine:3.20\n"))
        assert status_of(result) == RuleStatus.SKIP
