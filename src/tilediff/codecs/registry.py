"""Codec registry for tilediff.

Codecs register under a name ("mlt", "mvt") and are looked up by that name
when scenarios are built. The MVT codec registers itself on import; the MLT
decoder comes from outside, either registered from Python or named in the
config file as a "module:callable" import path.

Example:
    # Register a decode function
    register_codec("mlt", my_mlt_decode)

    # Look it up
    codec = get_codec("mlt")
    view = codec.decode(fixture.mlt_tile, fixture.metadata)
"""

import importlib
from typing import Any, Optional, Union

from ..core.errors import ConfigError
from ..core.logging import get_logger
from .abc import Codec, DecodeFunction, FunctionCodec, MetadataParser

logger = get_logger(__name__)

# Global registry: codec name -> Codec instance
CODEC_REGISTRY: dict[str, Codec] = {}


def register_codec(
    name: str,
    codec: Union[Codec, type[Codec], DecodeFunction],
    metadata_parser: Optional[MetadataParser] = None,
) -> Codec:
    """Register a codec in the global registry.

    Args:
        name: Codec name (e.g., "mlt")
        codec: Codec instance, Codec subclass, or decode(blob, metadata) function
        metadata_parser: Optional metadata parser, only used with a decode function

    Returns:
        The registered Codec instance

    Raises:
        ConfigError: If the name is invalid or the codec is not usable

    Example:
        >>> register_codec("mlt", decode_mlt_tile, TileSetMetadata.from_binary)
    """
    if not name:
        raise ConfigError("Codec name cannot be empty")

    if not name.replace("-", "").replace("_", "").isalnum():
        raise ConfigError(
            f"Codec name '{name}' must be alphanumeric with hyphens/underscores only"
        )

    instance = _as_codec(name, codec, metadata_parser)

    if name in CODEC_REGISTRY:
        logger.warning(
            f"Codec '{name}' already registered. Overwriting with {instance!r}"
        )

    CODEC_REGISTRY[name] = instance
    logger.debug(f"Registered codec '{name}' -> {instance!r}")
    return instance


def _as_codec(
    name: str, codec: Any, metadata_parser: Optional[MetadataParser]
) -> Codec:
    if isinstance(codec, Codec):
        codec.name = name
        return codec
    if isinstance(codec, type):
        if not issubclass(codec, Codec):
            raise ConfigError(f"Codec class {codec.__name__} must inherit from Codec")
        instance = codec()
        instance.name = name
        return instance
    if callable(codec):
        return FunctionCodec(name, codec, metadata_parser)
    raise ConfigError(f"Codec '{name}' must be a Codec or a decode function")


def get_codec(name: str) -> Codec:
    """Get a codec from the registry.

    Raises:
        ConfigError: If no codec is registered under that name
    """
    if name not in CODEC_REGISTRY:
        available = ", ".join(sorted(CODEC_REGISTRY.keys()))
        raise ConfigError(
            f"Unknown codec '{name}'. Available codecs: {available or '(none)'}"
        )
    return CODEC_REGISTRY[name]


def list_codecs() -> list[str]:
    """List all registered codec names, sorted."""
    return sorted(CODEC_REGISTRY.keys())


def is_codec_registered(name: str) -> bool:
    return name in CODEC_REGISTRY


def load_codec(name: str, import_path: str) -> Codec:
    """Import a codec from a "module:attribute" path and register it.

    The attribute may be a Codec subclass, a Codec instance or a decode
    function. When the module also defines ``parse_metadata``, it is used as
    the metadata parser for a decode function.

    Raises:
        ConfigError: If the module or attribute cannot be imported
    """
    module_name, _, attribute = import_path.partition(":")
    if not module_name or not attribute:
        raise ConfigError(
            f"Codec '{name}' import path '{import_path}' must look like 'module:callable'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(
            f"Cannot import codec '{name}' from '{import_path}': {e}"
        ) from e

    target = getattr(module, attribute, None)
    if target is None:
        raise ConfigError(
            f"Cannot import codec '{name}' from '{import_path}': "
            f"module has no attribute '{attribute}'"
        )

    metadata_parser = getattr(module, "parse_metadata", None)
    return register_codec(name, target, metadata_parser)
