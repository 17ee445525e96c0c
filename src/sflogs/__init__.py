"""Search and download Salesforce debug logs."""

__version__ = "0.1.0"
