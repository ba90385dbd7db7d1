"""Helpers for templating, language detection, GitHub/Azure setup and manifest checks for Kubernetes deployments."""

__version__ = "0.1.0"