"""Unit tests for JSON payload encoding."""

from __future__ import annotations

import json
import math

import pytest

from analysis.descriptive import describe
from analysis.modes import GameMode
from analysis.payloads import camel_case, reconstruction_payload, to_jsonable
from analysis.reconstruction import reconstruct
from analysis.regression import simple_linear_regression
from analysis.stats_dto import InsufficientData

pytestmark = pytest.mark.unit


def test_camel_case() -> None:
    assert camel_case("std_dev") == "stdDev"
    assert camel_case("p_value_slope") == "pValueSlope"
    assert camel_case("mean") == "mean"


def test_descriptive_stats_use_camel_case_keys() -> None:
    """Dataclass fields become camelCase keys."""

    payload = to_jsonable(describe([1, 2, 3]))

    assert payload == {"count": 3, "mean": 2.0, "median": 2.0, "mode": 1.0, "stdDev": pytest.approx(math.sqrt(2 / 3)), "variance": pytest.approx(2 / 3)}


def test_insufficient_data_encodes_as_error() -> None:
    assert to_jsonable(InsufficientData("too few")) == {"error": "too few"}


def test_infinite_statistics_encode_as_null() -> None:
    """A perfect fit's infinite t-statistic stays valid JSON."""

    payload = to_jsonable(simple_linear_regression([1, 2, 3, 4], [2, 4, 6, 8]))

    assert payload["tSlope"] is None
    assert payload["rSquared"] == 1.0
    assert payload["predictedLine"] == [[1.0, 2.0], [4.0, 8.0]]
    json.dumps(payload, allow_nan=False)


def test_mapping_keys_are_kept_verbatim() -> None:
    """Data keys such as modes and event types are not renamed."""

    assert to_jsonable({GameMode.TWO_D: 1, "simon_select": 2}) == {"2D": 1, "simon_select": 2}


def test_reconstruction_payload_is_json_serializable(sample_batch) -> None:
    """The hierarchy encodes with ISO timestamps and derived durations."""

    payload = reconstruction_payload(reconstruct(sample_batch))

    json.dumps(payload, allow_nan=False)
    assert [game["gameReference"] for game in payload["games"]] == ["G1", "G2", "G4"]
    assert payload["games"][0]["mode"] == "AR"
    assert payload["games"][0]["startedAt"] == "2025-01-01T10:00:00+00:00"
    assert payload["games"][0]["levels"][0]["simonColors"] == ["Red"]
    assert payload["sessions"][0]["durationSeconds"] == 40.0
    assert payload["players"][0]["identified"] is True
    assert payload["invalidGameReferences"] == ["G3"]


def test_unsupported_values_raise() -> None:
    with pytest.raises(TypeError):
        to_jsonable(object())
