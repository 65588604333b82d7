"""Docker Compose rules: service hardening and orchestration practices."""
