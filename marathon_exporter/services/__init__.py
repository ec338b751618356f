"""Collaborators talking to the Marathon source."""
