"""Dockerfile best-practice rules.

Each module covers one practice and exports METADATA plus a single find_*
function. Modules are discovered by dockaudit.rules.orchestrator.
"""
