"""Exception hierarchy for tilediff.

This module defines the taxonomy of errors raised while loading fixtures,
validating codec equivalence and benchmarking decode throughput.

All custom exceptions inherit from TileDiffError, making it easy to catch
all tilediff-specific errors in a single except clause.

Categories:
    - Input errors (FixtureError): malformed tile ids, missing artifacts.
      Reported per tile while loading.
    - Equivalence errors (EquivalenceError): the two codecs disagree.
      Always fatal to the whole run.
    - Invariant errors (InvariantError): a benchmark pass visited a different
      number of features than the previous one. Always fatal.
    - Codec errors (CodecError): a decoder raised a foreign exception.
      Always fatal, reported with the tile it was decoding.

None of these are retried; they are deterministic correctness checks.
"""

from typing import Optional


def format_locator(
    tile: str,
    layer: Optional[str] = None,
    feature_index: Optional[int] = None,
    scenario: Optional[str] = None,
) -> str:
    """Human-readable location, e.g. ``bing/4-8-5 layer 'building' feature 3``."""
    parts = [tile]
    if layer is not None:
        parts.append(f"layer '{layer}'")
    if feature_index is not None:
        parts.append(f"feature {feature_index}")
    if scenario is not None:
        parts.append(f"({scenario})")
    return " ".join(parts)


class TileDiffError(Exception):
    """Base exception for all tilediff errors.

    Example:
        try:
            tilediff.validate_tile(fixture)
        except TileDiffError as e:
            print(f"tilediff error: {e}")
    """

    pass


class ConfigError(TileDiffError):
    """Configuration-related errors.

    Raised when:
    - Config files cannot be read or contain invalid YAML
    - Field values are invalid
    - Environment variables referenced as ${VAR} are missing
    - A codec name is unknown or a codec import path cannot be resolved

    Examples:
        - "Invalid YAML syntax in tilediff.yaml: ..."
        - "Unknown codec 'mlt'. Available codecs: mvt"
        - "Cannot import codec 'mlt' from 'mlt_decoder:decode'"
    """

    pass


# ============================================================================
# Input errors
# ============================================================================


class FixtureError(TileDiffError):
    """Base class for problems with a tile fixture.

    Attributes:
        tile: Tile identifier the error refers to
    """

    def __init__(self, message: str, tile: str):
        super().__init__(message)
        self.tile = tile


class MalformedIdentifier(FixtureError):
    """Tile identifier does not end in a numeric ``z-x-y`` segment.

    Examples:
        - "Malformed tile identifier 'bad': expected '<set>/<z>-<x>-<y>'"
    """

    pass


class FixtureNotFound(FixtureError):
    """A required fixture artifact could not be resolved.

    Attributes:
        tile: Tile identifier
        artifact: Which artifact is missing (see ArtifactKind)
    """

    def __init__(self, message: str, tile: str, artifact: str):
        super().__init__(message, tile)
        self.artifact = artifact


class SchemaNotFound(FixtureNotFound):
    """The MLT tileset metadata (column layout schema) is missing."""

    pass


class BlobNotFound(FixtureNotFound):
    """One of the encoded tile blobs (MLT or MVT) is missing."""

    pass


class EncoderError(FixtureError):
    """The external encoder build or generation step failed.

    Examples:
        - "Encoder exited with status 1 for bing/4-8-5: ..."
    """

    pass


# ============================================================================
# Equivalence errors
# ============================================================================


class EquivalenceError(TileDiffError):
    """The two codecs produced different results for the same tile.

    Every equivalence error carries a locator so the operator can find the
    offending feature.

    Attributes:
        tile: Tile identifier
        layer: Layer name (None for tile-level failures)
        feature_index: Feature index within the layer (None for layer-level failures)
    """

    reason = "equivalence"

    def __init__(
        self,
        message: str,
        tile: str,
        layer: Optional[str] = None,
        feature_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.tile = tile
        self.layer = layer
        self.feature_index = feature_index

    @property
    def locator(self) -> str:
        """Human-readable location, e.g. ``bing/4-8-5 layer 'building' feature 3``."""
        return format_locator(self.tile, self.layer, self.feature_index)


class KeySetMismatch(EquivalenceError):
    """Sorted property keys differ between the codecs.

    Attributes:
        candidate_keys: JSON serialised key list of the candidate (MLT) feature
        reference_keys: JSON serialised key list of the reference (MVT) feature
    """

    reason = "key_set_mismatch"

    def __init__(
        self,
        message: str,
        tile: str,
        layer: str,
        feature_index: int,
        candidate_keys: str,
        reference_keys: str,
    ):
        super().__init__(message, tile, layer, feature_index)
        self.candidate_keys = candidate_keys
        self.reference_keys = reference_keys


class GeometryKindMismatch(EquivalenceError):
    """GeoJSON geometry types differ between the codecs."""

    reason = "geometry_kind_mismatch"


class LayerSetMismatch(EquivalenceError):
    """A reference layer is absent from the candidate decode (strict mode only)."""

    reason = "layer_set_mismatch"


class LayerLengthMismatch(EquivalenceError):
    """A layer holds a different number of features in each codec."""

    reason = "layer_length_mismatch"


class EmptyValidation(EquivalenceError):
    """No layer was validated, so a pass would be meaningless."""

    reason = "empty_validation"


# ============================================================================
# Codec errors
# ============================================================================


class CodecError(TileDiffError):
    """A codec raised something other than a tilediff error.

    Decoders are external libraries; whatever they raise while decoding or
    while a feature is read is re-raised as CodecError with a locator, the
    original exception chained as ``__cause__``.

    Attributes:
        codec: Registry name of the codec that failed
        tile: Tile identifier
        layer: Layer name (None when the failure is not tied to a layer)
        feature_index: Feature index within the layer (None if unknown)
        scenario: Benchmark scenario name (None outside benchmarks)

    Examples:
        - "MLT codec failed for bing/4-8-5: ValueError: truncated varint"
    """

    def __init__(
        self,
        message: str,
        codec: str,
        tile: str,
        layer: Optional[str] = None,
        feature_index: Optional[int] = None,
        scenario: Optional[str] = None,
    ):
        super().__init__(message)
        self.codec = codec
        self.tile = tile
        self.layer = layer
        self.feature_index = feature_index
        self.scenario = scenario

    @property
    def locator(self) -> str:
        """Human-readable location, e.g. ``bing/4-8-5 (MLT -> loadGeo bing/4-8-5)``."""
        return format_locator(self.tile, self.layer, self.feature_index, self.scenario)


# ============================================================================
# Invariant errors
# ============================================================================


class InvariantError(TileDiffError):
    """A benchmark invariant was violated.

    Attributes:
        scenario: Name of the scenario being measured
    """

    def __init__(self, message: str, scenario: str):
        super().__init__(message)
        self.scenario = scenario


class FeatureCountMismatch(InvariantError):
    """A decode-and-traverse pass visited an unexpected number of features.

    Raised when the count drifts between passes or is zero.

    Attributes:
        expected: Count fixed by the first pass (None if the first pass was empty)
        observed: Count of the offending pass
    """

    def __init__(
        self, message: str, scenario: str, expected: Optional[int], observed: int
    ):
        super().__init__(message, scenario)
        self.expected = expected
        self.observed = observed
