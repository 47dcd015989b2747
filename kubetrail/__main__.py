"""Entry point for `python -m kubetrail`.

Usage:
    python -m kubetrail --config config.yaml
"""

from __future__ import annotations

from kubetrail.cli import cli

cli()
