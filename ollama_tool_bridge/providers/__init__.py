# ollama_tool_bridge/ollama_tool_bridge/providers/__init__.py
import os
import importlib
import logging
from typing import Type
from .base import ContentGenerator
from ..exceptions import ConfigurationError

_provider_registry: dict[str, Type[ContentGenerator]] = {}
_providers_discovered = False
module_logger = logging.getLogger(__name__)


def register_provider(name: str):
    """
    Decorator to register content generator classes.

    Args:
        name (str): The identifier for the provider (e.g., 'ollama').
    """
    def decorator(cls):
        if not issubclass(cls, ContentGenerator):
            raise TypeError(
                f"Class {cls.__name__} must inherit from ContentGenerator to be registered."
            )
        if name in _provider_registry:
            module_logger.warning(
                "Provider '%s' is already registered. Overwriting with %s.",
                name,
                cls.__name__,
            )
        _provider_registry[name] = cls
        module_logger.info("Registered provider: '%s' -> %s", name, cls.__name__)
        return cls
    return decorator


def _discover_providers(provider_dir: str | None = None):
    """
    Imports every provider module in ``provider_dir`` so that their
    registration decorators run.

    Args:
        provider_dir (str, optional): Directory containing provider implementations.
                                      Defaults to the directory of this __init__.py file.
    """
    global _providers_discovered
    if _providers_discovered:
        return

    if provider_dir is None:
        provider_dir = os.path.dirname(__file__)

    module_logger.debug("Discovering providers in: %s", provider_dir)
    for filename in sorted(os.listdir(provider_dir)):
        if filename.endswith('.py') and not filename.startswith('_') and filename != 'base.py':
            module_path = f"{__name__}.{filename[:-3]}"
            try:
                importlib.import_module(module_path)
                module_logger.debug("Successfully imported provider module: %s", module_path)
            except ImportError as e:
                # Provider might depend on an optional package
                module_logger.warning("Could not import provider module %s. Error: %s", module_path, e)

    _providers_discovered = True


def available_providers() -> list[str]:
    _discover_providers()
    return sorted(_provider_registry)


def create_provider_instance(provider_type: str, **kwargs) -> ContentGenerator:
    """
    Creates an instance of the specified provider class.

    Args:
        provider_type (str): The name/identifier of the provider type (e.g., 'ollama').
        **kwargs: Keyword arguments for the provider's constructor
                  (e.g., config, tool_factory, timeout).

    Returns:
        ContentGenerator: An instance of the requested provider class.

    Raises:
        ConfigurationError: If the provider type is not registered or cannot be built.
    """
    _discover_providers()

    provider_class = _provider_registry.get(provider_type.lower())
    if not provider_class:
        available = sorted(_provider_registry)
        raise ConfigurationError(
            f"Invalid provider type: '{provider_type}'. Available providers: {available}"
        )

    try:
        return provider_class(**kwargs)
    except ConfigurationError:
        raise
    except Exception as e:
        module_logger.error("Failed to instantiate provider '%s': %s", provider_type, e, exc_info=True)
        raise ConfigurationError(f"Could not create instance of provider '{provider_type}': {e}") from e


__all__ = ['ContentGenerator', 'register_provider', 'create_provider_instance', 'available_providers']
