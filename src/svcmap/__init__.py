"""svcmap - service dependency topology for monitoring dashboards."""

__version__ = "0.1.0"
