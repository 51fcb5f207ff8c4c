from datetime import datetime

import pytest

from app.schemas.property_search import PropertySearchFilter, clamp_limit, normalize_location


def parse(**params):
    return PropertySearchFilter.model_validate(params)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 50), ("", 50), ("20", 20), ("500", 100), ("0", 1), ("-3", 1), ("abc", 50), ("12.7", 12)],
)
def test_limit_is_clamped(raw, expected):
    assert clamp_limit(raw) == expected
    assert parse(limit=raw).limit == expected


def test_limit_defaults_when_absent():
    assert parse().limit == 50


def test_coordinates_param_is_lng_lat():
    f = parse(coordinates="18.42,-33.92")
    assert f.longitude == 18.42
    assert f.latitude == -33.92
    assert f.has_valid_coordinates


def test_coordinates_param_ignores_extra_components():
    f = parse(coordinates="18.42,-33.92,0", location="cape town")
    assert (f.longitude, f.latitude) == (18.42, -33.92)
    assert f.has_valid_coordinates


def test_coordinates_param_wins_over_latitude_longitude():
    f = parse(coordinates="18.42,-33.92", latitude="1", longitude="2")
    assert (f.longitude, f.latitude) == (18.42, -33.92)


def test_latitude_longitude_fill_in_when_coordinates_unparseable():
    f = parse(coordinates="abc,def", latitude="-26.2", longitude="28.04")
    assert (f.longitude, f.latitude) == (28.04, -26.2)


@pytest.mark.parametrize(
    "params",
    [
        {"coordinates": "0,0"},
        {"latitude": "0", "longitude": "0"},
        {"latitude": "-33.9"},
        {"coordinates": "nan,-33.9"},
        {"latitude": "inf", "longitude": "18.4"},
        {},
    ],
)
def test_invalid_or_zero_coordinates_are_not_usable(params):
    assert not parse(**params).has_valid_coordinates


def test_point_on_one_zero_axis_is_still_valid():
    assert parse(coordinates="0,51.47").has_valid_coordinates


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Cape Town, South Africa", "cape town"),
        ("  Rondebosch,   Cape   Town ,  south africa  ", "rondebosch, cape town"),
        ("South Africa Road, Durban", "south africa road, durban"),
        ("Stellenbosch", "stellenbosch"),
        (", South Africa", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_location(raw, expected):
    assert normalize_location(raw) == expected


def test_normalize_location_with_other_country():
    assert normalize_location("Nairobi, Kenya", country_suffix="kenya") == "nairobi"


def test_any_and_blank_values_mean_no_filter():
    f = parse(beds="any", baths="", propertyType="any", amenities="any", availableFrom="any",
              location="any", propertyName=" ")
    assert f.beds is None
    assert f.baths is None
    assert f.property_type is None
    assert f.amenities is None
    assert f.available_from is None
    assert f.location is None
    assert f.property_name is None


def test_malformed_numbers_and_dates_are_ignored():
    f = parse(priceMin="cheap", priceMax="5000", availableFrom="not-a-date", favoriteIds="3,x,5")
    assert f.price_min is None
    assert f.price_max == 5000
    assert f.available_from is None
    assert f.favorite_ids == [3, 5]


def test_csv_lists_and_dates_are_parsed():
    f = parse(amenities="WiFi, Laundry,,", availableFrom="2026-02-01", propertyType="apartment")
    assert f.amenities == ["WiFi", "Laundry"]
    assert f.available_from == datetime(2026, 2, 1)
    assert f.property_type == "APARTMENT"


def test_is_narrow_when_place_name_or_point_present():
    assert not parse(priceMin="100", beds="2").is_narrow
    assert parse(location="cape town").is_narrow
    assert parse(propertyName="lodge").is_narrow
    assert parse(coordinates="18.4,-33.9").is_narrow
    assert not parse(coordinates="0,0").is_narrow


def test_cache_params_are_the_normalized_filter():
    a = parse(priceMin="2000", beds="2", limit="500")
    b = parse(limit="100", beds="2.0", priceMin="2000.0")
    assert a.cache_params() == b.cache_params()
