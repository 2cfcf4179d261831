"""Codec abstract base class for tilediff.

A Codec turns one encoded tile blob into a DecodedTileView. The byte-level
format is the codec's business; tilediff only relies on the view contract.

Example:
    >>> class MyCodec(Codec):
    ...     name = "mine"
    ...
    ...     def decode(self, blob: bytes, metadata: Any) -> DecodedTileView:
    ...         layers = my_library.parse(blob)
    ...         return as_tile_view(layers)
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from ..core.errors import CodecError, TileDiffError, format_locator
from ..features.view import DecodedTileView, as_tile_view

DecodeFunction = Callable[[bytes, Any], Any]
MetadataParser = Callable[[bytes], Any]


class Codec(ABC):
    """Abstract base class for all tile codecs.

    Decoding must be pure: the same blob and metadata always produce an
    equivalent view, and nothing is cached between calls (the benchmark
    measures a full decode every pass).

    Attributes:
        name: Registry name of the codec ("mlt", "mvt", ...)
    """

    name: str = ""

    def parse_metadata(self, raw: bytes) -> Any:
        """Parse the raw tileset metadata into whatever decode() expects.

        The default passes the bytes through unchanged.
        """
        return raw

    @abstractmethod
    def decode(self, blob: bytes, metadata: Any) -> DecodedTileView:
        """Decode an encoded tile.

        Args:
            blob: Encoded tile bytes
            metadata: Parsed metadata (see parse_metadata)

        Returns:
            DecodedTileView rebuilt from scratch on every call
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class FunctionCodec(Codec):
    """Codec backed by a plain decode function from an external library.

    The function's return value is wrapped with as_tile_view, so it may be a
    DecodedTileView or any object with a ``layers`` mapping.
    """

    def __init__(
        self,
        name: str,
        decode_fn: DecodeFunction,
        metadata_parser: Optional[MetadataParser] = None,
    ):
        self.name = name
        self._decode_fn = decode_fn
        self._metadata_parser = metadata_parser

    def parse_metadata(self, raw: bytes) -> Any:
        if self._metadata_parser is None:
            return raw
        return self._metadata_parser(raw)

    def decode(self, blob: bytes, metadata: Any) -> DecodedTileView:
        return as_tile_view(self._decode_fn(blob, metadata))


@contextmanager
def codec_errors(
    codec: str,
    tile: str,
    layer: Optional[str] = None,
    feature_index: Optional[int] = None,
    scenario: Optional[str] = None,
) -> Iterator[None]:
    """Re-raise foreign exceptions from codec code as CodecError.

    tilediff errors pass through untouched.

    Example:
        >>> with codec_errors("mlt", fixture.tile):
        ...     view = codec.decode(fixture.mlt_tile, fixture.metadata)
    """
    try:
        yield
    except TileDiffError:
        raise
    except Exception as e:
        location = format_locator(tile, layer, feature_index, scenario)
        raise CodecError(
            f"{codec.upper()} codec failed for {location}: {type(e).__name__}: {e}",
            codec,
            tile,
            layer,
            feature_index,
            scenario,
        ) from e
