"""Standard library of optrack: the tracker and its integration adapters."""
