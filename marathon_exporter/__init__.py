"""Prometheus exporter republishing Marathon's JSON metrics as typed series."""

from marathon_exporter.core.app import create_app

__all__ = ["create_app"]
