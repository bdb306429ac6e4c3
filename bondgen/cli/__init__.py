"""Command line entry point (``python -m bondgen.cli``)."""
