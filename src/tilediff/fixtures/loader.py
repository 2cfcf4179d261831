"""Fixture loader for tilediff.

Turns a tile identifier such as ``bing/4-8-5`` into a TileFixture holding
both encodings, the parsed MLT metadata and the tile coordinates.

Example:
    >>> loader = FixtureLoader(
    ...     FileSystemResolver(Path("../test/fixtures"), Path("../test/expected")),
    ...     metadata_parser=get_codec("mlt").parse_metadata,
    ... )
    >>> fixture = loader.load("bing/4-8-5")
    >>> (fixture.z, fixture.x, fixture.y)
    (4, 8, 5)
"""

import re
from typing import Any, Callable, Iterable, Optional

from ..core.errors import FixtureError, FixtureNotFound, MalformedIdentifier
from ..core.logging import get_logger
from ..core.models import ArtifactKind, TileFixture
from .encoder import Encoder
from .resolver import FixtureResolver

logger = get_logger(__name__)

# Called with (tile, error) when a tile is skipped by load_fixtures
SkipCallback = Callable[[str, FixtureError], None]

# int() also takes signs, underscores, whitespace and non-ASCII digits
_DIGITS = re.compile(r"[0-9]+")

DERIVED_ARTIFACTS = tuple(kind for kind in ArtifactKind if kind.derived)


def parse_tile_id(tile: str) -> tuple[int, int, int]:
    """Parse ``<set>/<z>-<x>-<y>`` into ``(z, x, y)``.

    Only the segment after the last ``/`` is read, so the set name may itself
    contain slashes.

    Raises:
        MalformedIdentifier: If there are fewer than three components or any
                             component is not an integer

    Example:
        >>> parse_tile_id("bing/5-16-11")
        (5, 16, 11)
    """
    segment = tile.rsplit("/", 1)[-1]
    parts = segment.split("-")
    if len(parts) < 3:
        raise MalformedIdentifier(
            f"Malformed tile identifier '{tile}': expected '<set>/<z>-<x>-<y>'", tile
        )

    if not all(_DIGITS.fullmatch(part) for part in parts[:3]):
        raise MalformedIdentifier(
            f"Malformed tile identifier '{tile}': "
            f"'{segment}' is not a numeric z-x-y triple",
            tile,
        )

    z, x, y = (int(part) for part in parts[:3])

    return z, x, y


class FixtureLoader:
    """Loads tile fixtures through a resolver, regenerating derived artifacts.

    Args:
        resolver: Where artifact bytes come from
        encoder: Optional encoder invoked once when the MLT blob or metadata
                 is missing. The MVT source is never regenerated.
        metadata_parser: Turns raw metadata bytes into the value passed to the
                         MLT decoder (defaults to keeping the bytes)
    """

    def __init__(
        self,
        resolver: FixtureResolver,
        encoder: Optional[Encoder] = None,
        metadata_parser: Optional[Callable[[bytes], Any]] = None,
    ):
        self.resolver = resolver
        self.encoder = encoder
        self.metadata_parser = metadata_parser

    def load(self, tile: str) -> TileFixture:
        """Load a tile fixture.

        Raises:
            MalformedIdentifier: If the tile id cannot be parsed
            SchemaNotFound: If the metadata is missing after regeneration
            BlobNotFound: If an encoded tile is missing after regeneration
            EncoderError: If regeneration itself fails
        """
        z, x, y = parse_tile_id(tile)

        mvt_tile = self.resolver.resolve(tile, ArtifactKind.MVT)
        derived = self._resolve_derived(tile)

        return TileFixture(
            tile=tile,
            x=x,
            y=y,
            z=z,
            mlt_tile=derived[ArtifactKind.MLT],
            mvt_tile=mvt_tile,
            metadata=self._parse_metadata(tile, derived[ArtifactKind.METADATA]),
        )

    def _resolve_derived(self, tile: str) -> dict[ArtifactKind, bytes]:
        found: dict[ArtifactKind, bytes] = {}
        missing: dict[ArtifactKind, FixtureNotFound] = {}

        for artifact in DERIVED_ARTIFACTS:
            try:
                found[artifact] = self.resolver.resolve(tile, artifact)
            except FixtureNotFound as e:
                missing[artifact] = e

        if not missing:
            return found

        if self.encoder is None:
            raise next(iter(missing.values()))

        logger.info(
            f"Missing {', '.join(a.value for a in missing)} for {tile}, regenerating"
        )
        self.encoder.generate(tile)

        for artifact in missing:
            found[artifact] = self.resolver.resolve(tile, artifact)
        return found

    def _parse_metadata(self, tile: str, raw: bytes) -> Any:
        if self.metadata_parser is None:
            return raw
        try:
            return self.metadata_parser(raw)
        except Exception as e:
            raise FixtureError(f"Invalid metadata for {tile}: {e}", tile) from e


def load_fixtures(
    tiles: Iterable[str],
    loader: FixtureLoader,
    on_skip: Optional[SkipCallback] = None,
) -> list[TileFixture]:
    """Load several tiles, skipping the ones that fail.

    Input errors abort only the affected tile; the caller decides whether an
    empty result is fatal.

    Args:
        tiles: Tile identifiers, in benchmark order
        loader: Loader to use
        on_skip: Called with (tile, error) for every skipped tile

    Returns:
        Successfully loaded fixtures, in input order
    """
    fixtures = []
    for tile in tiles:
        try:
            fixtures.append(loader.load(tile))
        except FixtureError as e:
            logger.warning(f"Skipping {tile}: {e}")
            if on_skip is not None:
                on_skip(tile, e)
    return fixtures


def load_fixture(
    tile: str,
    resolver: FixtureResolver,
    encoder: Optional[Encoder] = None,
    metadata_parser: Optional[Callable[[bytes], Any]] = None,
) -> TileFixture:
    """Load a single tile without building a FixtureLoader first."""
    return FixtureLoader(resolver, encoder, metadata_parser).load(tile)
