"""ranchertest - helpers for Rancher Manager end-to-end tests."""

__version__ = "0.1.0"
