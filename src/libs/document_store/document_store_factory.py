"""DocumentStore Factory for creating DocumentStore instances based on configuration.

This module provides the DocumentStoreFactory class that creates the
appropriate document store implementation based on the configuration.

Design Principles:
    - Factory Pattern: Creates the right implementation based on config
    - Configuration-Driven: Provider selection via settings.store.provider
    - Extensible: Providers are registered at runtime, no hardcoded list

Usage:
    # Register a provider
    from libs.document_store import MongoDocumentStore
    DocumentStoreFactory.register("mongodb", MongoDocumentStore)

    # Create an instance
    settings = load_settings()
    store = DocumentStoreFactory.create(settings)
"""

from typing import Any

from core.settings import Settings
from libs.document_store.base_document_store import (
    BaseDocumentStore,
    DocumentStoreConfigurationError,
    UnknownDocumentStoreProviderError,
)
from observability.logger import get_logger

logger = get_logger(__name__)


class DocumentStoreFactory:
    """Factory for creating DocumentStore instances based on configuration.

    No providers are hardcoded; all must be registered before use.
    """

    # Registry of provider names to implementation classes
    _providers: dict[str, type[BaseDocumentStore]] = {}

    @classmethod
    def register(
        cls,
        provider_name: str,
        implementation_class: type[BaseDocumentStore]
    ) -> None:
        """Register a document store provider.

        Args:
            provider_name: Provider identifier (e.g., 'mongodb')
            implementation_class: Class that implements BaseDocumentStore
        """
        cls._providers[provider_name.lower()] = implementation_class
        logger.debug(f"Registered document store provider: {provider_name}")

    @classmethod
    def unregister(cls, provider_name: str) -> bool:
        """Unregister a document store provider.

        Returns:
            True if removed, False if not found
        """
        provider = provider_name.lower()
        if provider in cls._providers:
            del cls._providers[provider]
            logger.debug(f"Unregistered document store provider: {provider_name}")
            return True
        return False

    @classmethod
    def get_provider_names(cls) -> list[str]:
        """Get list of available provider names."""
        return list(cls._providers.keys())

    @classmethod
    def has_provider(cls, provider_name: str) -> bool:
        """Check if a provider is registered."""
        return provider_name.lower() in cls._providers

    @classmethod
    def clear(cls) -> None:
        """Clear all registered providers."""
        cls._providers.clear()

    @classmethod
    def create(
        cls,
        settings: Settings,
        **kwargs: Any
    ) -> BaseDocumentStore:
        """Create a DocumentStore instance based on configuration.

        Args:
            settings: Settings object containing store configuration
            **kwargs: Additional constructor arguments; non-None values
                override the ones derived from settings

        Returns:
            BaseDocumentStore implementation instance

        Raises:
            UnknownDocumentStoreProviderError: If the provider is not registered
            DocumentStoreConfigurationError: If configuration is invalid
        """
        store_config = settings.store

        provider = (store_config.provider or "").lower()
        if not provider:
            raise DocumentStoreConfigurationError(
                "Document store provider is not configured. "
                "Set 'store.provider' in settings.yaml"
            )

        if provider not in cls._providers:
            available = ", ".join(cls._providers.keys())
            if not available:
                available = "(no providers registered - register your own)"
            raise UnknownDocumentStoreProviderError(
                f"Unknown document store provider: '{provider}'. "
                f"Available providers: {available}",
                provider=provider
            )

        implementation_class = cls._providers[provider]

        init_kwargs: dict[str, Any] = {
            "uri": store_config.uri,
            "database": store_config.database,
            "collection_name": store_config.collection,
            "server_selection_timeout_ms": store_config.server_selection_timeout_ms,
            "socket_timeout_ms": store_config.socket_timeout_ms,
        }

        for key, value in kwargs.items():
            if value is not None:
                init_kwargs[key] = value

        init_kwargs = {k: v for k, v in init_kwargs.items() if v is not None}

        logger.info(
            f"Creating document store instance: provider={provider}, "
            f"collection={init_kwargs.get('collection_name', 'N/A')}"
        )

        return implementation_class(**init_kwargs)
