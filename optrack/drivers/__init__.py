"""Concrete drivers for optrack ports."""
