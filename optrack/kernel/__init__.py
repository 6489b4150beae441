"""Kernel of optrack: domain models, ports, configuration and logging."""
