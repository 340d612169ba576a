"""Runtime settings and feed source configuration."""
