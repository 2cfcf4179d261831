"""Equivalence validator: proves MLT and MVT decode to the same tile.

The MVT decode is the reference. Its sorted layer names drive iteration;
MLT layers are looked up by name. Within a layer, features are paired by
index, which assumes both codecs keep the per-layer feature order. That
assumption is not re-verified beyond the checks below.

Per feature pair:
    1. Sorted property key sets must match after dropping an ``id`` key that
       only the MVT side carries (MVT encoders often copy the feature id into
       the properties; MLT keeps it as the feature id only).
    2. GeoJSON geometry types at the tile's coordinates must match.

Validation is fail-fast: the first mismatch raises an EquivalenceError with a
tile / layer / feature-index locator.
"""

import json
from typing import Optional

from ..codecs import Codec, codec_errors, get_codec
from ..core.errors import (
    EmptyValidation,
    EquivalenceError,
    GeometryKindMismatch,
    KeySetMismatch,
    LayerLengthMismatch,
    LayerSetMismatch,
)
from ..core.logging import get_logger
from ..core.models import MLT, MVT, TileFixture, ValidationOutcome
from ..features.view import FeatureView, LayerView

logger = get_logger(__name__)

# Key only the MVT side carries; see module docstring
REFERENCE_ONLY_KEY = "id"


def comparable_keys(
    candidate: FeatureView, reference: FeatureView
) -> tuple[list[str], list[str]]:
    """Return the sorted key lists of both features, ready for comparison.

    An ``id`` key present on the reference side but not on the candidate side
    is removed.
    """
    candidate_keys = sorted(candidate.properties)
    reference_keys = sorted(reference.properties)
    if REFERENCE_ONLY_KEY in reference_keys and REFERENCE_ONLY_KEY not in candidate_keys:
        reference_keys.remove(REFERENCE_ONLY_KEY)
    return candidate_keys, reference_keys


def validate_tile(
    fixture: TileFixture,
    candidate: Optional[Codec] = None,
    reference: Optional[Codec] = None,
    strict_layers: bool = False,
) -> ValidationOutcome:
    """Decode a tile through both codecs and check they agree.

    Args:
        fixture: Tile to validate
        candidate: Codec under test (defaults to the registered "mlt" codec)
        reference: Ground-truth codec (defaults to the registered "mvt" codec)
        strict_layers: Raise LayerSetMismatch when a reference layer is absent
                       from the candidate decode instead of skipping it

    Returns:
        A passing ValidationOutcome with layer and feature counts

    Raises:
        KeySetMismatch: Property keys differ for a feature
        GeometryKindMismatch: Geometry types differ for a feature
        LayerLengthMismatch: A layer has different feature counts
        LayerSetMismatch: A reference layer is missing (strict mode)
        EmptyValidation: No layer was validated
        CodecError: A codec raised while decoding or reading a feature
    """
    candidate = candidate or get_codec(MLT)
    reference = reference or get_codec(MVT)

    with codec_errors(candidate.name, fixture.tile):
        candidate_view = candidate.decode(fixture.mlt_tile, fixture.metadata)
    with codec_errors(reference.name, fixture.tile):
        reference_view = reference.decode(fixture.mvt_tile, None)

    layers_validated = 0
    features_validated = 0

    for layer_name in reference_view.layer_names():
        candidate_layer = candidate_view.layers.get(layer_name)
        if candidate_layer is None:
            if strict_layers:
                raise LayerSetMismatch(
                    f"Layer '{layer_name}' missing from {candidate.name.upper()} "
                    f"decode of {fixture.tile}",
                    fixture.tile,
                    layer_name,
                )
            logger.warning(
                f"Layer '{layer_name}' missing from {candidate.name.upper()} "
                f"decode of {fixture.tile}, skipping"
            )
            continue

        features_validated += _validate_layer(
            fixture,
            layer_name,
            candidate_layer,
            reference_view.layers[layer_name],
            (candidate.name, reference.name),
        )
        layers_validated += 1

    if layers_validated == 0:
        raise EmptyValidation(
            f"Validation count mismatch for {fixture.tile}: no layer was validated",
            fixture.tile,
        )

    logger.debug(
        f"{fixture.tile}: {layers_validated} layers, "
        f"{features_validated} features validated"
    )
    return ValidationOutcome(
        tile=fixture.tile,
        passed=True,
        layers_validated=layers_validated,
        features_validated=features_validated,
    )


def _validate_layer(
    fixture: TileFixture,
    layer_name: str,
    candidate: LayerView,
    reference: LayerView,
    codec_names: tuple[str, str],
) -> int:
    if len(candidate) != len(reference):
        raise LayerLengthMismatch(
            f"Feature count mismatch for {fixture.tile} layer '{layer_name}': "
            f"{len(candidate)} vs {len(reference)}",
            fixture.tile,
            layer_name,
        )

    candidate_name, reference_name = codec_names
    for i in range(len(reference)):
        with codec_errors(candidate_name, fixture.tile, layer_name, i):
            feature = candidate.feature(i)
        with codec_errors(reference_name, fixture.tile, layer_name, i):
            reference_feature = reference.feature(i)

        keys, reference_keys = comparable_keys(feature, reference_feature)
        if keys != reference_keys:
            keys_str = json.dumps(keys)
            reference_keys_str = json.dumps(reference_keys)
            raise KeySetMismatch(
                f"Validation failed for {fixture.tile} layer '{layer_name}' "
                f"feature {i}: property keys differ\n"
                f"{keys_str}\n  vs\n{reference_keys_str}",
                fixture.tile,
                layer_name,
                i,
                candidate_keys=keys_str,
                reference_keys=reference_keys_str,
            )

        with codec_errors(candidate_name, fixture.tile, layer_name, i):
            kind = _geometry_kind(feature, fixture)
        with codec_errors(reference_name, fixture.tile, layer_name, i):
            reference_kind = _geometry_kind(reference_feature, fixture)
        if kind != reference_kind:
            raise GeometryKindMismatch(
                f"Geometry type mismatch for {fixture.tile} layer '{layer_name}' "
                f"feature {i}: {kind} vs {reference_kind}",
                fixture.tile,
                layer_name,
                i,
            )

    return len(reference)


def _geometry_kind(feature: FeatureView, fixture: TileFixture) -> str:
    return feature.to_geojson(fixture.x, fixture.y, fixture.z)["geometry"]["type"]


def outcome_from_error(error: EquivalenceError) -> ValidationOutcome:
    """Convert an equivalence error into a failed ValidationOutcome."""
    return ValidationOutcome(
        tile=error.tile,
        passed=False,
        layer=error.layer,
        feature_index=error.feature_index,
        reason=error.reason,
        message=str(error),
    )
