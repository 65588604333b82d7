"""Parser modules for dockaudit."""

from .compose_parser import ComposeFile, ComposeParser, ComposeService, PortMapping, VolumeMount
from .dockerfile_parser import BuildStage, Dockerfile, DockerfileParser, Instruction
from .dockerignore_parser import DockerIgnore, DockerIgnoreParser, find_dockerignore

__all__ = [
    "BuildStage",
    "ComposeFile",
    "ComposeParser",
    "ComposeService",
    "DockerIgnore",
    "DockerIgnoreParser",
    "Dockerfile",
    "DockerfileParser",
    "Instruction",
    "PortMapping",
    "VolumeMount",
    "find_dockerignore",
]
