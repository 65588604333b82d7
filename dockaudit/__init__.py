"""dockaudit - Dockerfile and Docker Compose best-practices linter."""

__version__ = "0.3.0"
