"""Portainer Updater: keep a single container service on its latest image."""

__version__ = "1.0.0"
