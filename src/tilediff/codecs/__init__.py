"""tilediff codecs.

A codec decodes one tile encoding into a DecodedTileView. The MVT codec ships
with tilediff (built on mapbox-vector-tile); the MLT decoder is an external
collaborator registered at runtime.

Public API:
    - Codec: Abstract base class
    - FunctionCodec: Codec around a plain decode function
    - codec_errors: wraps foreign decoder exceptions as CodecError
    - MvtCodec: Mapbox Vector Tile codec
    - register_codec / get_codec / list_codecs: registry
    - load_codec: import and register a "module:callable" codec

Example:
    >>> from tilediff.codecs import get_codec
    >>> view = get_codec("mvt").decode(fixture.mvt_tile, None)
    >>> view.layer_names()
    ['building', 'road']
"""

# Importing mvt registers the built-in codec
from . import mvt  # noqa: F401
from .abc import Codec, FunctionCodec, codec_errors
from .mvt import MvtCodec
from .registry import (
    get_codec,
    is_codec_registered,
    list_codecs,
    load_codec,
    register_codec,
)

__all__ = [
    "Codec",
    "FunctionCodec",
    "codec_errors",
    "MvtCodec",
    "register_codec",
    "get_codec",
    "list_codecs",
    "is_codec_registered",
    "load_codec",
]
