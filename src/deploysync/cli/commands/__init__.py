"""deploysync CLI commands."""
