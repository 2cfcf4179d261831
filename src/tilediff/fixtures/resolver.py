"""Fixture resolution strategies.

A resolver maps (tile id, artifact) to bytes. Where the bytes live is the
resolver's concern: on disk next to the encoder project, bundled in memory
for tests, or anywhere else.

File system layout (matches the encoder's output):

    <fixtures_dir>/<set>/<z>-<x>-<y>.mvt             MVT source tile
    <expected_dir>/<set>/<z>-<x>-<y>.mlt             MLT encoding
    <expected_dir>/<set>/<z>-<x>-<y>.mlt.meta.pbf    MLT tileset metadata
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping

from ..core.errors import BlobNotFound, FixtureNotFound, SchemaNotFound
from ..core.logging import get_logger
from ..core.models import ArtifactKind

logger = get_logger(__name__)


def not_found(tile: str, artifact: ArtifactKind, where: str) -> FixtureNotFound:
    """Build the right FixtureNotFound subclass for a missing artifact."""
    if artifact is ArtifactKind.METADATA:
        return SchemaNotFound(
            f"Metadata for {tile} not found at {where}", tile, artifact.value
        )
    return BlobNotFound(
        f"{artifact.value.upper()} tile for {tile} not found at {where}",
        tile,
        artifact.value,
    )


class FixtureResolver(ABC):
    """Strategy that produces the raw bytes of fixture artifacts."""

    @abstractmethod
    def resolve(self, tile: str, artifact: ArtifactKind) -> bytes:
        """Return the artifact's bytes.

        Raises:
            SchemaNotFound: If the metadata is missing
            BlobNotFound: If an encoded tile is missing
        """
        pass


class FileSystemResolver(FixtureResolver):
    """Reads artifacts from the fixtures and expected-output directories."""

    def __init__(self, fixtures_dir: Path, expected_dir: Path):
        self.fixtures_dir = Path(fixtures_dir)
        self.expected_dir = Path(expected_dir)

    def path_for(self, tile: str, artifact: ArtifactKind) -> Path:
        if artifact is ArtifactKind.MVT:
            return self.fixtures_dir / f"{tile}.mvt"
        if artifact is ArtifactKind.MLT:
            return self.expected_dir / f"{tile}.mlt"
        return self.expected_dir / f"{tile}.mlt.meta.pbf"

    def resolve(self, tile: str, artifact: ArtifactKind) -> bytes:
        path = self.path_for(tile, artifact)
        if not path.is_file():
            raise not_found(tile, artifact, str(path))
        logger.debug(f"Reading {artifact.value} for {tile} from {path}")
        return path.read_bytes()

    def __repr__(self) -> str:
        return (
            f"FileSystemResolver(fixtures_dir={str(self.fixtures_dir)!r}, "
            f"expected_dir={str(self.expected_dir)!r})"
        )


class InMemoryResolver(FixtureResolver):
    """Serves artifacts from an embedded bundle.

    Example:
        >>> resolver = InMemoryResolver({
        ...     "bing/4-8-5": {
        ...         ArtifactKind.MVT: mvt_bytes,
        ...         ArtifactKind.MLT: mlt_bytes,
        ...         ArtifactKind.METADATA: meta_bytes,
        ...     }
        ... })
    """

    def __init__(self, bundle: Mapping[str, Mapping[ArtifactKind, bytes]]):
        self.bundle = {tile: dict(artifacts) for tile, artifacts in bundle.items()}

    def add(self, tile: str, artifact: ArtifactKind, data: bytes) -> None:
        self.bundle.setdefault(tile, {})[artifact] = data

    def resolve(self, tile: str, artifact: ArtifactKind) -> bytes:
        try:
            return self.bundle[tile][artifact]
        except KeyError:
            raise not_found(tile, artifact, "in-memory bundle") from None
