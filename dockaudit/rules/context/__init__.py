"""Build context rules: what gets sent to the builder."""
