"""
Key Builder Module

This module names persisted values, so every value lives under a
service-scoped, namespaced key.
"""

from typing import Optional


class KeyBuilder:
    """
    Utility for building standardized store keys.

    Keys are colon-separated: ``<namespace>:<service>:<name>``.
    """

    def __init__(self, namespace: str = "entprep"):
        self.namespace = namespace

    @staticmethod
    def build(*parts: str, namespace: Optional[str] = None) -> str:
        """Join key parts with colons, prefixed by ``namespace`` when given."""
        if namespace:
            parts = (namespace,) + parts
        return ":".join(str(part) for part in parts)

    def service_key(self, service: str, name: str) -> str:
        """
        Build the key for a value owned by one logical service.

        Args:
            service: Logical service name (auth, tests, gateway, ...)
            name: Name of the value within the service

        Returns:
            The namespaced key
        """
        return self.build(service, name, namespace=self.namespace)
