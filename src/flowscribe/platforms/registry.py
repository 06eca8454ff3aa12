"""
Platform Registry - Named target platforms.

Example:
    >>> from flowscribe.platforms import register_platform, get_platform
    >>>
    >>> @register_platform("acme")
    ... class AcmePlatform(TargetPlatform):
    ...     stable_attribute = "data-acme-id"
    >>>
    >>> platform = get_platform("acme")
"""

from typing import Callable, Dict, List, Type, TYPE_CHECKING

from flowscribe.exceptions import ConfigurationError

if TYPE_CHECKING:
    from flowscribe.platforms.base import TargetPlatform


class PlatformRegistry:
    """
    Class-level registry of target platform implementations.
    
    Platforms are registered by name and instantiated once on first use;
    the instances are stateless so sharing them is safe.
    """
    
    _platforms: Dict[str, Type["TargetPlatform"]] = {}
    _instances: Dict[str, "TargetPlatform"] = {}
    
    @classmethod
    def register(cls, name: str) -> Callable[[Type["TargetPlatform"]], Type["TargetPlatform"]]:
        """
        Decorator to register a platform implementation.
        
        Raises:
            ValueError: If the name is already taken
        """
        def decorator(platform_class: Type["TargetPlatform"]) -> Type["TargetPlatform"]:
            if name in cls._platforms:
                raise ValueError(f"Platform '{name}' is already registered")
            cls._platforms[name] = platform_class
            return platform_class
        return decorator
    
    @classmethod
    def get(cls, name: str) -> "TargetPlatform":
        """
        Get the shared instance of a registered platform.
        
        Raises:
            ConfigurationError: If the platform is not registered
        """
        if name not in cls._instances:
            if name not in cls._platforms:
                raise ConfigurationError(
                    f"Unknown platform: '{name}'",
                    {"available": cls.list()},
                )
            cls._instances[name] = cls._platforms[name]()
        return cls._instances[name]
    
    @classmethod
    def list(cls) -> List[str]:
        return sorted(cls._platforms)
    
    @classmethod
    def unregister(cls, name: str) -> None:
        cls._platforms.pop(name, None)
        cls._instances.pop(name, None)


def register_platform(name: str) -> Callable[[Type["TargetPlatform"]], Type["TargetPlatform"]]:
    """Register a platform with the global registry."""
    return PlatformRegistry.register(name)


def get_platform(name: str = "d365") -> "TargetPlatform":
    """Get a platform from the global registry."""
    return PlatformRegistry.get(name)


def list_platforms() -> List[str]:
    return PlatformRegistry.list()
