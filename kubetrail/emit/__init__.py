"""Event record output for kubetrail."""

from kubetrail.emit.emitter import EmissionError, EventEmitter

__all__ = ["EmissionError", "EventEmitter"]
