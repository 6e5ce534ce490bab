"""Read/control backend for a Kubernetes preview-app dashboard."""

__version__ = "1.0.0"
