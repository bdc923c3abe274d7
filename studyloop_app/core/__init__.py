"""Core infrastructure: bootstrap, logging, errors, signals and module registry."""
