"""One-shot CLI commands."""
