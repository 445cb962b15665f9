"""secretsync CLI commands."""
