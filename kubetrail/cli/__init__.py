"""kubetrail command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``kubetrail`` script).
"""

from kubetrail.cli.main import cli

__all__ = ["cli"]
