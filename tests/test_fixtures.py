"""Tests for tile id parsing, artifact resolution and fixture loading."""

import pytest
from pydantic import ValidationError

from tilediff.core.errors import (
    BlobNotFound,
    EncoderError,
    FixtureError,
    MalformedIdentifier,
    SchemaNotFound,
)
from tilediff.core.models import ArtifactKind, EncoderConfig
from tilediff.fixtures import (
    Encoder,
    FileSystemResolver,
    FixtureLoader,
    InMemoryResolver,
    JarEncoder,
    load_fixture,
    load_fixtures,
    parse_tile_id,
)
from tilediff.fixtures.loader import DERIVED_ARTIFACTS

TILE = "bing/4-8-5"


def full_bundle(tile=TILE):
    return {
        tile: {
            ArtifactKind.MVT: b"mvt",
            ArtifactKind.MLT: b"mlt",
            ArtifactKind.METADATA: b"meta",
        }
    }


class RecordingEncoder(Encoder):
    """Encoder that fills an InMemoryResolver when asked to generate."""

    def __init__(self, resolver: InMemoryResolver, produce: bool = True):
        self.resolver = resolver
        self.produce = produce
        self.generated = []

    def generate(self, tile: str) -> None:
        self.generated.append(tile)
        if self.produce:
            self.resolver.add(tile, ArtifactKind.MLT, b"fresh-mlt")
            self.resolver.add(tile, ArtifactKind.METADATA, b"fresh-meta")


@pytest.fixture
def tile_dirs(tmp_path):
    fixtures_dir = tmp_path / "fixtures"
    expected_dir = tmp_path / "expected"
    (fixtures_dir / "bing").mkdir(parents=True)
    (expected_dir / "bing").mkdir(parents=True)
    return fixtures_dir, expected_dir


# ============================================================================
# Tile Identifier Tests
# ============================================================================


class TestParseTileId:
    def test_standard_id(self):
        assert parse_tile_id("bing/4-8-5") == (4, 8, 5)

    def test_set_name_with_slashes(self):
        assert parse_tile_id("omt/europe/14-8800-5500") == (14, 8800, 5500)

    def test_no_set_name(self):
        assert parse_tile_id("5-16-11") == (5, 16, 11)

    @pytest.mark.parametrize(
        "tile",
        [
            "bad",
            "bing/4-8",
            "bing/4-x-5",
            "bing/",
            "bing/4_0-8-5",
            "bing/ 4-8-5",
            "bing/4-8-5 ",
            "bing/+4-8-5",
            "bing/\u0664-8-5",
        ],
    )
    def test_malformed(self, tile):
        with pytest.raises(MalformedIdentifier) as exc_info:
            parse_tile_id(tile)
        assert exc_info.value.tile == tile

    def test_malformed_is_a_fixture_error(self):
        with pytest.raises(FixtureError):
            parse_tile_id("bad")


# ============================================================================
# Resolver Tests
# ============================================================================


class TestFileSystemResolver:
    def test_layout(self, tile_dirs):
        fixtures_dir, expected_dir = tile_dirs
        resolver = FileSystemResolver(fixtures_dir, expected_dir)

        assert resolver.path_for(TILE, ArtifactKind.MVT) == fixtures_dir / "bing/4-8-5.mvt"
        assert resolver.path_for(TILE, ArtifactKind.MLT) == expected_dir / "bing/4-8-5.mlt"
        assert (
            resolver.path_for(TILE, ArtifactKind.METADATA)
            == expected_dir / "bing/4-8-5.mlt.meta.pbf"
        )

    def test_reads_bytes(self, tile_dirs):
        fixtures_dir, expected_dir = tile_dirs
        (fixtures_dir / "bing/4-8-5.mvt").write_bytes(b"\x1a\x00")

        resolver = FileSystemResolver(fixtures_dir, expected_dir)

        assert resolver.resolve(TILE, ArtifactKind.MVT) == b"\x1a\x00"

    def test_missing_metadata_is_schema_not_found(self, tile_dirs):
        resolver = FileSystemResolver(*tile_dirs)

        with pytest.raises(SchemaNotFound) as exc_info:
            resolver.resolve(TILE, ArtifactKind.METADATA)

        assert exc_info.value.artifact == "metadata"

    @pytest.mark.parametrize("artifact", [ArtifactKind.MLT, ArtifactKind.MVT])
    def test_missing_blob_is_blob_not_found(self, tile_dirs, artifact):
        resolver = FileSystemResolver(*tile_dirs)

        with pytest.raises(BlobNotFound) as exc_info:
            resolver.resolve(TILE, artifact)

        assert exc_info.value.artifact == artifact.value


class TestInMemoryResolver:
    def test_resolve(self):
        assert InMemoryResolver(full_bundle()).resolve(TILE, ArtifactKind.MLT) == b"mlt"

    def test_missing_tile(self):
        with pytest.raises(BlobNotFound):
            InMemoryResolver({}).resolve(TILE, ArtifactKind.MVT)

    def test_add(self):
        resolver = InMemoryResolver({})
        resolver.add(TILE, ArtifactKind.METADATA, b"meta")
        assert resolver.resolve(TILE, ArtifactKind.METADATA) == b"meta"


# ============================================================================
# Loader Tests
# ============================================================================


class TestFixtureLoader:
    def test_load(self):
        fixture = FixtureLoader(InMemoryResolver(full_bundle())).load(TILE)

        assert (fixture.z, fixture.x, fixture.y) == (4, 8, 5)
        assert fixture.mvt_tile == b"mvt"
        assert fixture.mlt_tile == b"mlt"
        assert fixture.metadata == b"meta"

    def test_metadata_parser(self):
        loader = FixtureLoader(
            InMemoryResolver(full_bundle()), metadata_parser=lambda raw: raw.decode().upper()
        )
        assert loader.load(TILE).metadata == "META"

    def test_metadata_parser_failure(self):
        def parse(raw):
            raise ValueError("truncated")

        loader = FixtureLoader(InMemoryResolver(full_bundle()), metadata_parser=parse)

        with pytest.raises(FixtureError, match="truncated"):
            loader.load(TILE)

    def test_fixture_is_immutable(self):
        fixture = FixtureLoader(InMemoryResolver(full_bundle())).load(TILE)
        with pytest.raises(ValidationError):
            fixture.tile = "other"

    def test_missing_metadata_without_encoder(self):
        bundle = full_bundle()
        del bundle[TILE][ArtifactKind.METADATA]

        with pytest.raises(SchemaNotFound):
            FixtureLoader(InMemoryResolver(bundle)).load(TILE)

    def test_missing_mlt_regenerated_once(self):
        bundle = full_bundle()
        del bundle[TILE][ArtifactKind.MLT]
        del bundle[TILE][ArtifactKind.METADATA]
        resolver = InMemoryResolver(bundle)
        encoder = RecordingEncoder(resolver)

        fixture = FixtureLoader(resolver, encoder=encoder).load(TILE)

        assert encoder.generated == [TILE]
        assert fixture.mlt_tile == b"fresh-mlt"
        assert fixture.metadata == b"fresh-meta"

    def test_present_artifacts_not_regenerated(self):
        resolver = InMemoryResolver(full_bundle())
        encoder = RecordingEncoder(resolver)

        FixtureLoader(resolver, encoder=encoder).load(TILE)

        assert encoder.generated == []

    def test_still_missing_after_regeneration(self):
        bundle = full_bundle()
        del bundle[TILE][ArtifactKind.MLT]
        resolver = InMemoryResolver(bundle)
        encoder = RecordingEncoder(resolver, produce=False)

        with pytest.raises(BlobNotFound):
            FixtureLoader(resolver, encoder=encoder).load(TILE)

        assert encoder.generated == [TILE]

    def test_mvt_source_never_regenerated(self):
        bundle = full_bundle()
        del bundle[TILE][ArtifactKind.MVT]
        resolver = InMemoryResolver(bundle)
        encoder = RecordingEncoder(resolver)

        with pytest.raises(BlobNotFound):
            FixtureLoader(resolver, encoder=encoder).load(TILE)

        assert encoder.generated == []

    def test_derived_artifacts(self):
        assert DERIVED_ARTIFACTS == (ArtifactKind.METADATA, ArtifactKind.MLT)
        assert not ArtifactKind.MVT.derived

    def test_malformed_id_checked_first(self):
        encoder = RecordingEncoder(InMemoryResolver({}))

        with pytest.raises(MalformedIdentifier):
            FixtureLoader(InMemoryResolver({}), encoder=encoder).load("bing/4-8")

        assert encoder.generated == []

    def test_load_fixture_shortcut(self):
        assert load_fixture(TILE, InMemoryResolver(full_bundle())).tile == TILE


class TestLoadFixtures:
    def test_bad_tiles_skipped_in_order(self):
        bundle = {**full_bundle("bing/4-8-5"), **full_bundle("bing/5-16-9")}
        skipped = []

        fixtures = load_fixtures(
            ["bing/5-16-9", "bad", "bing/9-9-9", "bing/4-8-5"],
            FixtureLoader(InMemoryResolver(bundle)),
            on_skip=lambda tile, error: skipped.append((tile, type(error))),
        )

        assert [f.tile for f in fixtures] == ["bing/5-16-9", "bing/4-8-5"]
        assert skipped == [("bad", MalformedIdentifier), ("bing/9-9-9", BlobNotFound)]

    def test_all_skipped(self):
        assert load_fixtures(["bad"], FixtureLoader(InMemoryResolver({}))) == []


# ============================================================================
# Jar Encoder Tests
# ============================================================================


class TestJarEncoder:
    def make_encoder(self, tmp_path, **overrides):
        config = EncoderConfig(project_dir=tmp_path / "java", **overrides)
        return JarEncoder(config, tmp_path / "fixtures", tmp_path / "expected")

    def test_command(self, tmp_path):
        encoder = self.make_encoder(tmp_path)

        assert encoder.command_for(TILE) == [
            "java",
            "-jar",
            str(tmp_path / "java/build/libs/encode.jar"),
            "-mvt",
            str(tmp_path / "fixtures/bing/4-8-5.mvt"),
            "-metadata",
            "-decode",
            "-mlt",
            str(tmp_path / "expected/bing/4-8-5.mlt"),
        ]

    def test_builds_missing_jar(self, tmp_path, monkeypatch):
        encoder = self.make_encoder(tmp_path)
        calls = []
        monkeypatch.setattr(encoder, "_run", lambda command, cwd, tile: calls.append((command, cwd)))

        encoder.generate(TILE)

        assert calls[0] == (["./gradlew", "cli"], tmp_path / "java")
        assert calls[1][0][:2] == ["java", "-jar"]
        assert (tmp_path / "expected/bing").is_dir()

    def test_existing_jar_not_rebuilt(self, tmp_path, monkeypatch):
        encoder = self.make_encoder(tmp_path)
        encoder.jar_path.parent.mkdir(parents=True)
        encoder.jar_path.write_bytes(b"")
        calls = []
        monkeypatch.setattr(encoder, "_run", lambda command, cwd, tile: calls.append(command))

        encoder.generate(TILE)

        assert len(calls) == 1

    def test_missing_executable(self, tmp_path):
        encoder = self.make_encoder(
            tmp_path, java="tilediff-no-such-java", build_command=["tilediff-no-such-gradle"]
        )

        with pytest.raises(EncoderError, match="Cannot run encoder"):
            encoder.generate(TILE)

    def test_nonzero_exit(self, tmp_path):
        encoder = self.make_encoder(tmp_path, build_command=["false"])
        encoder.config.project_dir.mkdir()

        with pytest.raises(EncoderError, match="exited with status"):
            encoder.ensure_built()

    def test_encoder_error_is_a_fixture_error(self):
        assert issubclass(EncoderError, FixtureError)
