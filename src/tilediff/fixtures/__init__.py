"""Tile fixture loading.

Public API:
    - parse_tile_id: ``"bing/4-8-5"`` -> ``(4, 8, 5)``
    - FixtureLoader / load_fixtures: resolve and assemble TileFixtures
    - FixtureResolver, FileSystemResolver, InMemoryResolver: artifact sources
    - Encoder, JarEncoder: regeneration of missing MLT artifacts
"""

from .encoder import Encoder, JarEncoder
from .loader import FixtureLoader, load_fixture, load_fixtures, parse_tile_id
from .resolver import FileSystemResolver, FixtureResolver, InMemoryResolver

__all__ = [
    "parse_tile_id",
    "FixtureLoader",
    "load_fixture",
    "load_fixtures",
    "FixtureResolver",
    "FileSystemResolver",
    "InMemoryResolver",
    "Encoder",
    "JarEncoder",
]
