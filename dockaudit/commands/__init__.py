"""Commands module for dockaudit CLI."""
