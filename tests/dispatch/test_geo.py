import pytest

from src.dispatch.domain.models.geo import LocationInput, normalize_coordinates
from src.dispatch.errors import InvalidCoordinates


def test_in_range_pair_is_read_as_latitude_longitude():
    point = normalize_coordinates([9.03, 38.74])
    assert point.latitude == 9.03
    assert point.longitude == 38.74
    assert point.model_dump() == {"type": "Point", "coordinates": [38.74, 9.03]}


def test_latitude_out_of_range_swaps_pair():
    point = normalize_coordinates([95, 40])
    assert point.latitude == 40
    assert point.longitude == 95


def test_ambiguous_pair_is_never_swapped():
    point = normalize_coordinates([10, 50])
    assert point.latitude == 10
    assert point.longitude == 50


@pytest.mark.parametrize("pair", [[45, 200], [100, 200], [-91, -181]])
def test_unrecoverable_pairs_raise(pair):
    with pytest.raises(InvalidCoordinates) as excinfo:
        normalize_coordinates(pair)
    assert excinfo.value.status_code == 400
    assert str(pair[0]) in excinfo.value.error


def test_boundaries_are_inclusive():
    point = normalize_coordinates([-90, 180])
    assert point.coordinates == [180, -90]


def test_explicit_form_skips_swap():
    point = LocationInput(latitude=10, longitude=50).to_point()
    assert point.coordinates == [50, 10]

    with pytest.raises(InvalidCoordinates):
        LocationInput(latitude=95, longitude=40).to_point()


def test_location_requires_one_form():
    with pytest.raises(ValueError):
        LocationInput()
    with pytest.raises(ValueError):
        LocationInput(latitude=10)
