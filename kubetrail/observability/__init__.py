"""Logging setup for kubetrail."""
