"""Parser for docker-compose.yml / compose.yaml files.

This module provides safe parsing of Compose files into per-service
configuration for best-practice rules. Data is loaded with ``yaml.safe_load``;
line numbers come from a second pass over the node graph (``yaml.compose``)
so findings can point at the offending key.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from dockaudit.parsers.suppressions import parse_suppressions
from dockaudit.utils.logging import logger

LOOPBACK_HOSTS = frozenset(["127.0.0.1", "localhost", "::1"])


@dataclass
class PortMapping:
    """A normalized `ports:` entry."""

    target: str
    published: str | None = None
    host_ip: str | None = None
    protocol: str = "tcp"
    raw: str = ""

    @property
    def is_loopback(self) -> bool:
        return self.host_ip in LOOPBACK_HOSTS


@dataclass
class VolumeMount:
    """A normalized `volumes:` entry of a service."""

    type: str
    target: str
    source: str | None = None
    read_only: bool = False
    raw: str = ""

    @property
    def is_named(self) -> bool:
        return self.type == "volume" and bool(self.source)


@dataclass
class ComposeService:
    """Configuration of one Compose service."""

    name: str
    line: int = 1
    key_lines: dict[str, int] = field(default_factory=dict)
    image: str | None = None
    build: Any = None
    ports: list[PortMapping] = field(default_factory=list)
    volumes: list[VolumeMount] = field(default_factory=list)
    environment: dict[str, str | None] = field(default_factory=dict)
    env_files: list[str] = field(default_factory=list)
    privileged: bool = False
    network_mode: str | None = None
    user: str | None = None
    cap_add: list[str] = field(default_factory=list)
    cap_drop: list[str] = field(default_factory=list)
    security_opt: list[str] = field(default_factory=list)
    restart: str | None = None
    command: Any = None
    entrypoint: Any = None
    depends_on: dict[str, str] = field(default_factory=dict)
    healthcheck: dict[str, Any] | None = None
    logging: dict[str, Any] | None = None
    deploy: dict[str, Any] = field(default_factory=dict)
    mem_limit: Any = None
    cpus: Any = None
    container_name: str | None = None
    read_only: bool = False
    raw: dict[str, Any] = field(default_factory=dict)

    def line_of(self, key: str) -> int:
        """Line of a service key, falling back to the service header line."""
        return self.key_lines.get(key, self.line)


@dataclass
class ComposeFile:
    """Parsed Compose file."""

    path: str
    content: str = ""
    version: str | None = None
    services: list[ComposeService] = field(default_factory=list)
    volumes: dict[str, Any] = field(default_factory=dict)
    networks: dict[str, Any] = field(default_factory=dict)
    secrets: dict[str, Any] = field(default_factory=dict)
    top_lines: dict[str, int] = field(default_factory=dict)
    suppressions: dict[int, set[str]] = field(default_factory=dict)
    error: str | None = None

    def line_of(self, key: str) -> int:
        return self.top_lines.get(key, 1)

    def service(self, name: str) -> ComposeService | None:
        for service in self.services:
            if service.name == name:
                return service
        return None

    def get_lines(self) -> list[str]:
        return self.content.splitlines() if self.content else []


class ComposeParser:
    """Parser for Docker Compose files."""

    def parse_file(self, file_path: Path, display_path: str | None = None) -> ComposeFile:
        """
        Parse a Compose file from disk.

        Args:
            file_path: Path to the compose file
            display_path: Path to record on the result (defaults to file_path)

        Returns:
            Parsed ComposeFile. Read and YAML errors are reported in ``error``.
        """
        path_str = display_path or str(file_path)
        try:
            with open(file_path, encoding="utf-8") as f:
                content = f.read()
        except (FileNotFoundError, PermissionError, UnicodeDecodeError) as e:
            return ComposeFile(path=path_str, error=str(e))

        return self.parse_content(content, path_str)

    def parse_content(self, content: str, file_path: str = "docker-compose.yml") -> ComposeFile:
        """
        Parse Compose content string.

        Args:
            content: Compose YAML as string
            file_path: File path for reference

        Returns:
            Parsed ComposeFile
        """
        compose = ComposeFile(path=file_path, content=content)
        compose.suppressions = parse_suppressions(content.splitlines())

        try:
            # Use safe_load to prevent arbitrary code execution
            compose_data = yaml.safe_load(content)
            root_node = yaml.compose(content, Loader=yaml.SafeLoader)
        except yaml.YAMLError as e:
            logger.debug("Invalid YAML in {}: {}", file_path, e)
            compose.error = f"Invalid YAML: {e}"
            return compose

        if compose_data is None:
            return compose

        if not isinstance(compose_data, dict):
            compose.error = "Top level of a Compose file must be a mapping"
            return compose

        top_lines, service_lines = _collect_line_numbers(root_node)
        compose.top_lines = top_lines

        version = compose_data.get("version")
        compose.version = str(version) if version is not None else None
        compose.volumes = _as_dict(compose_data.get("volumes"))
        compose.networks = _as_dict(compose_data.get("networks"))
        compose.secrets = _as_dict(compose_data.get("secrets"))

        services = compose_data.get("services") or {}
        if not isinstance(services, dict):
            compose.error = "'services' must be a mapping of service names"
            return compose

        for service_name, service_config in services.items():
            if not isinstance(service_config, dict):
                # `web:` with no body is a null service - still a service
                service_config = {}
            header_line, key_lines = service_lines.get(str(service_name), (1, {}))
            compose.services.append(
                _build_service(str(service_name), service_config, header_line, key_lines)
            )

        logger.debug("Parsed {}: {} services", file_path, len(compose.services))
        return compose


def _as_dict(value: Any) -> dict[str, Any]:
    """Top-level volumes/networks/secrets: mapping of names, values may be null."""
    if isinstance(value, dict):
        return {str(k): v for k, v in value.items()}
    return {}


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def _collect_line_numbers(root_node) -> tuple[dict[str, int], dict[str, tuple[int, dict[str, int]]]]:
    """Walk the YAML node graph for 1-based key lines.

    Returns:
        (top-level key lines, {service: (header line, {key: line})})
    """
    top_lines: dict[str, int] = {}
    service_lines: dict[str, tuple[int, dict[str, int]]] = {}

    if not isinstance(root_node, yaml.MappingNode):
        return top_lines, service_lines

    for key_node, value_node in root_node.value:
        key = str(key_node.value)
        top_lines[key] = key_node.start_mark.line + 1

        if key != "services" or not isinstance(value_node, yaml.MappingNode):
            continue

        for service_key, service_node in value_node.value:
            key_lines: dict[str, int] = {}
            if isinstance(service_node, yaml.MappingNode):
                for option_key, _option_value in service_node.value:
                    key_lines[str(option_key.value)] = option_key.start_mark.line + 1
            service_lines[str(service_key.value)] = (service_key.start_mark.line + 1, key_lines)

    return top_lines, service_lines


def _build_service(
    name: str, config: dict[str, Any], line: int, key_lines: dict[str, int]
) -> ComposeService:
    """Extract rule-relevant information from one service mapping."""
    deploy = config.get("deploy")
    return ComposeService(
        name=name,
        line=line,
        key_lines=key_lines,
        image=_extract_image(config),
        build=config.get("build"),
        ports=_extract_ports(config),
        volumes=_extract_volumes(config),
        environment=_extract_environment(config),
        env_files=_extract_env_files(config),
        privileged=bool(config.get("privileged", False)),
        network_mode=config.get("network_mode"),
        user=str(config["user"]) if config.get("user") is not None else None,
        cap_add=_as_list(config.get("cap_add")),
        cap_drop=_as_list(config.get("cap_drop")),
        security_opt=_as_list(config.get("security_opt")),
        restart=str(config["restart"]) if config.get("restart") is not None else None,
        command=config.get("command"),
        entrypoint=config.get("entrypoint"),
        depends_on=_extract_depends_on(config),
        healthcheck=_extract_healthcheck(config),
        logging=config.get("logging") if isinstance(config.get("logging"), dict) else None,
        deploy=deploy if isinstance(deploy, dict) else {},
        mem_limit=config.get("mem_limit"),
        cpus=config.get("cpus"),
        container_name=config.get("container_name"),
        read_only=bool(config.get("read_only", False)),
        raw=config,
    )


def _extract_image(service_config: dict[str, Any]) -> str | None:
    """Extract the image reference; None for build-only services."""
    image = service_config.get("image")
    return str(image) if image is not None else None


def _extract_ports(service_config: dict[str, Any]) -> list[PortMapping]:
    """
    Extract port mappings from service configuration.

    Handles the port formats Compose accepts:
    - "80" (container port, published on a random host port)
    - "8080:80", "8080:80/udp" (host:container)
    - "127.0.0.1:8080:80", "[::1]:8080:80"
    - {"target": 80, "published": 8080, "host_ip": "127.0.0.1"}
    """
    ports = []
    port_config = service_config.get("ports") or []

    if not isinstance(port_config, list):
        return ports

    for port in port_config:
        if isinstance(port, dict):
            target = port.get("target")
            if target is None:
                continue
            published = port.get("published")
            ports.append(
                PortMapping(
                    target=str(target),
                    published=str(published) if published is not None else None,
                    host_ip=port.get("host_ip"),
                    protocol=str(port.get("protocol", "tcp")),
                    raw=str(port),
                )
            )
        elif isinstance(port, (str, int, float)):
            mapping = _parse_short_port(str(port))
            if mapping is not None:
                ports.append(mapping)

    return ports


def _parse_short_port(spec: str) -> PortMapping | None:
    """Parse '[HOST_IP:][PUBLISHED:]TARGET[/PROTOCOL]'."""
    raw = spec
    protocol = "tcp"
    if "/" in spec:
        spec, protocol = spec.rsplit("/", 1)

    host_ip = None
    if spec.startswith("["):
        closing = spec.find("]")
        if closing == -1:
            return None
        host_ip = spec[1:closing]
        spec = spec[closing + 1:].lstrip(":")

    parts = spec.split(":")
    if len(parts) == 1:
        return PortMapping(target=parts[0], host_ip=host_ip, protocol=protocol, raw=raw)
    if len(parts) == 2:
        return PortMapping(
            target=parts[1], published=parts[0] or None, host_ip=host_ip, protocol=protocol, raw=raw
        )
    # Unbracketed IPv6 addresses also land here; everything before the last
    # two fields is the host address
    return PortMapping(
        target=parts[-1],
        published=parts[-2] or None,
        host_ip=":".join(parts[:-2]) or host_ip,
        protocol=protocol,
        raw=raw,
    )


def _extract_volumes(service_config: dict[str, Any]) -> list[VolumeMount]:
    """
    Extract volume mounts from service configuration.

    Handles various volume formats:
    - "./data:/var/lib/data[:ro]" (bind mount)
    - "volume_name:/path" (named volume)
    - "/path" (anonymous volume)
    - {"type": "bind", "source": "./data", "target": "/var/lib/data"}
    """
    volumes = []
    volume_config = service_config.get("volumes") or []

    if not isinstance(volume_config, list):
        return volumes

    for volume in volume_config:
        if isinstance(volume, str):
            volumes.append(_parse_short_volume(volume))
        elif isinstance(volume, dict):
            target = volume.get("target")
            if not target:
                continue
            source = volume.get("source")
            volumes.append(
                VolumeMount(
                    type=str(volume.get("type", "volume")),
                    source=str(source) if source else None,
                    target=str(target),
                    read_only=bool(volume.get("read_only", False)),
                    raw=f"{source}:{target}" if source else str(target),
                )
            )

    return volumes


def _parse_short_volume(spec: str) -> VolumeMount:
    """Parse 'SOURCE:TARGET[:MODE]' short syntax."""
    parts = spec.split(":")

    # Windows drive letters: C:\data:/data
    if len(parts) >= 3 and len(parts[0]) == 1 and parts[1].startswith(("\\", "/")):
        parts = [parts[0] + ":" + parts[1]] + parts[2:]

    if len(parts) == 1:
        return VolumeMount(type="volume", target=parts[0], raw=spec)

    source, target = parts[0], parts[1]
    mode = parts[2] if len(parts) > 2 else ""
    read_only = "ro" in mode.split(",")
    return VolumeMount(
        type="bind" if is_host_path(source) else "volume",
        source=source,
        target=target,
        read_only=read_only,
        raw=spec,
    )


def is_host_path(source: str) -> bool:
    """Compose treats sources starting like a path as bind mounts."""
    return (
        source.startswith(("/", ".", "~", "$", "\\"))
        or (len(source) > 1 and source[1] == ":")
    )


def _extract_environment(service_config: dict[str, Any]) -> dict[str, str | None]:
    """
    Extract environment variables from service configuration.

    Handles both formats:
    - List format: ["KEY=value", "KEY2"]
    - Dictionary format: {"KEY": "value", "KEY2": null}

    Variables without a value are inherited from the host and map to None.
    """
    env_vars: dict[str, str | None] = {}
    env_config = service_config.get("environment") or []

    if isinstance(env_config, list):
        for env_item in env_config:
            if not isinstance(env_item, str):
                continue
            if "=" in env_item:
                key, value = env_item.split("=", 1)
                env_vars[key] = value
            else:
                env_vars[env_item] = None
    elif isinstance(env_config, dict):
        for key, value in env_config.items():
            env_vars[str(key)] = str(value) if value is not None else None

    return env_vars


def _extract_env_files(service_config: dict[str, Any]) -> list[str]:
    env_files = service_config.get("env_file")
    if isinstance(env_files, str):
        return [env_files]
    if isinstance(env_files, list):
        paths = []
        for item in env_files:
            if isinstance(item, dict) and item.get("path"):
                paths.append(str(item["path"]))
            elif isinstance(item, str):
                paths.append(item)
        return paths
    return []


def _extract_depends_on(service_config: dict[str, Any]) -> dict[str, str]:
    """Normalize depends_on to {service: condition}."""
    depends_on = service_config.get("depends_on")
    if isinstance(depends_on, list):
        return {str(name): "service_started" for name in depends_on}
    if isinstance(depends_on, dict):
        result = {}
        for name, options in depends_on.items():
            condition = "service_started"
            if isinstance(options, dict):
                condition = str(options.get("condition", condition))
            result[str(name)] = condition
        return result
    return {}


def _extract_healthcheck(service_config: dict[str, Any]) -> dict[str, Any] | None:
    """Extract healthcheck configuration if present."""
    healthcheck = service_config.get("healthcheck")

    if not isinstance(healthcheck, dict):
        return None

    test = healthcheck.get("test", [])
    disabled = bool(healthcheck.get("disable", False))
    if isinstance(test, list) and test[:1] == ["NONE"]:
        disabled = True

    return {
        "test": test,
        "interval": healthcheck.get("interval", "30s"),
        "timeout": healthcheck.get("timeout", "30s"),
        "retries": healthcheck.get("retries", 3),
        "start_period": healthcheck.get("start_period", "0s"),
        "disabled": disabled,
    }
