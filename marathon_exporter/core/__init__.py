"""Application core: container, app factory, runner and shutdown handling."""
