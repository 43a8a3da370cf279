"""
blobauth: credential and endpoint resolution for Azure blob storage.

Resolves a usable blob-storage configuration from explicit settings, the
environment, local Azure CLI state, the ~/.azure/config file and managed
identity, falling back through each source in a fixed order.
"""

__version__ = "0.1.0"
