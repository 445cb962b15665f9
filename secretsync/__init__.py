"""secretsync - secrets dashboard with cross-environment sync tracking."""

__version__ = "1.0.0"
