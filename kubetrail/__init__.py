"""kubetrail: field-level change logging for Kubernetes resources."""

__version__ = "0.1.0"
