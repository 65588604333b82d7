"""Tests for Compose file parsing and normalization."""

from conftest import dedent
from dockaudit.parsers import ComposeParser


def parse(content: str):
    return ComposeParser().parse_content(dedent(content))


class TestServices:
    """Services and their key line numbers."""

    def test_services_and_lines(self):
        """Test each service records its header line and key lines."""
        compose = parse("""
            services:
              web:
                image: nginx:1.27
                restart: always
              db:
                image: postgres:16
        """)
        assert compose.error is None
        assert [service.name for service in compose.services] == ["web", "db"]
        web = compose.service("web")
        assert web.line == 2
        assert web.line_of("image") == 3
        assert web.line_of("restart") == 4
        assert web.line_of("healthcheck") == 2
        assert compose.service("db").line == 5
        assert compose.line_of("services") == 1

    def test_empty_service_body(self):
        """Test a service with no body is still a service."""
        compose = parse("""
            services:
              worker:
        """)
        assert compose.service("worker") is not None
        assert compose.service("worker").image is None

    def test_version_and_top_level_volumes(self):
        """Test top-level version and volume declarations."""
        compose = parse("""
            version: "3.8"
            services:
              db:
                image: postgres:16
            volumes:
              pgdata:
        """)
        assert compose.version == "3.8"
        assert compose.volumes == {"pgdata": None}
        assert compose.line_of("volumes") == 5

    def test_empty_document(self):
        """Test an empty file parses without services or error."""
        compose = parse("")
        assert compose.error is None
        assert compose.services == []


class TestPorts:
    """Short and long port syntax."""

    def test_short_syntax(self):
        """Test container-only, host:container and ip:host:container ports."""
        compose = parse("""
            services:
              web:
                image: nginx:1.27
                ports:
                  - "80"
                  - "8080:80"
                  - "127.0.0.1:5432:5432"
                  - "53:53/udp"
        """)
        ports = compose.service("web").ports
        assert [(p.published, p.target, p.host_ip) for p in ports] == [
            (None, "80", None),
            ("8080", "80", None),
            ("5432", "5432", "127.0.0.1"),
            ("53", "53", None),
        ]
        assert ports[2].is_loopback
        assert ports[3].protocol == "udp"

    def test_bracketed_ipv6_host(self):
        """Test [::1]:port:port is a loopback binding."""
        compose = parse("""
            services:
              web:
                image: nginx:1.27
                ports:
                  - "[::1]:6379:6379"
        """)
        port = compose.service("web").ports[0]
        assert port.host_ip == "::1"
        assert port.is_loopback

    def test_long_syntax(self):
        """Test mapping-form ports."""
        compose = parse("""
            services:
              web:
                image: nginx:1.27
                ports:
                  - target: 80
                    published: 8080
                    host_ip: 0.0.0.0
        """)
        port = compose.service("web").ports[0]
        assert (port.target, port.published, port.host_ip) == ("80", "8080", "0.0.0.0")
        assert not port.is_loopback


class TestVolumes:
    """Bind mounts, named volumes and anonymous volumes."""

    def test_short_syntax(self):
        """Test volume type is inferred from the source."""
        compose = parse("""
            services:
              app:
                image: app:1.0
                volumes:
                  - ./src:/app/src:ro
                  - data:/var/lib/data
                  - /var/cache/app
        """)
        bind, named, anonymous = compose.service("app").volumes
        assert (bind.type, bind.source, bind.target, bind.read_only) == ("bind", "./src", "/app/src", True)
        assert named.is_named and named.source == "data"
        assert anonymous.type == "volume" and anonymous.source is None
        assert not anonymous.is_named

    def test_long_syntax(self):
        """Test mapping-form volumes."""
        compose = parse("""
            services:
              app:
                image: app:1.0
                volumes:
                  - type: bind
                    source: /var/run/docker.sock
                    target: /var/run/docker.sock
                    read_only: true
        """)
        volume = compose.service("app").volumes[0]
        assert volume.type == "bind"
        assert volume.source == "/var/run/docker.sock"
        assert volume.read_only


class TestEnvironmentAndDependencies:
    """environment, depends_on and healthcheck normalization."""

    def test_environment_list_and_dict(self):
        """Test both environment forms normalize to a dict."""
        list_form = parse("""
            services:
              app:
                image: app:1.0
                environment:
                  - DEBUG=0
                  - HOME_DIR
        """)
        dict_form = parse("""
            services:
              app:
                image: app:1.0
                environment:
                  DEBUG: 0
                  HOME_DIR:
        """)
        expected = {"DEBUG": "0", "HOME_DIR": None}
        assert list_form.service("app").environment == expected
        assert dict_form.service("app").environment == expected

    def test_depends_on_forms(self):
        """Test list-form depends_on defaults to service_started."""
        compose = parse("""
            services:
              api:
                image: api:1.0
                depends_on: [cache]
              web:
                image: web:1.0
                depends_on:
                  api:
                    condition: service_healthy
              cache:
                image: redis:7
        """)
        assert compose.service("api").depends_on == {"cache": "service_started"}
        assert compose.service("web").depends_on == {"api": "service_healthy"}

    def test_healthcheck_disabled(self):
        """Test test: [NONE] and disable: true both disable the healthcheck."""
        compose = parse("""
            services:
              a:
                image: app:1.0
                healthcheck:
                  test: ["NONE"]
              b:
                image: app:1.0
                healthcheck:
                  disable: true
        """)
        assert compose.service("a").healthcheck["disabled"]
        assert compose.service("b").healthcheck["disabled"]


class TestErrors:
    """Invalid documents are reported on the result."""

    def test_invalid_yaml(self):
        """Test a YAML syntax error is reported, not raised."""
        compose = parse("services:\n  web: [unclosed\n")
        assert compose.error is not None
        assert compose.error.startswith("Invalid YAML")

    def test_top_level_must_be_mapping(self):
        """Test a YAML list is not a Compose file."""
        compose = parse("- web\n- db\n")
        assert compose.error == "Top level of a Compose file must be a mapping"

    def test_services_must_be_mapping(self):
        """Test services as a list is rejected."""
        compose = parse("services:\n  - web\n")
        assert "'services' must be a mapping" in compose.error

    def test_trailing_suppression_comment(self):
        """Test a trailing YAML comment suppresses its own line."""
        compose = parse("""
            services:
              web:
                image: nginx:1.27
                privileged: true  # dockaudit: ignore=compose-container-hardening
        """)
        assert compose.suppressions == {4: {"compose-container-hardening"}}
