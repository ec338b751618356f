"""HTTP endpoints of the exporter."""
