"""
Tests for the unit conversion functions.
"""
import math
import numpy as np
import pandas as pd
import pytest

from weather_sales.transformation.conversions import (
    fahrenheit_to_celsius,
    celsius_to_fahrenheit,
    inch_to_millimeter,
    millimeter_to_inch,
)


def test_fahrenheit_to_celsius_known_points():
    assert fahrenheit_to_celsius(32) == 0
    assert fahrenheit_to_celsius(212) == pytest.approx(100)
    assert fahrenheit_to_celsius(-40) == pytest.approx(-40)


def test_inch_to_millimeter_known_points():
    assert inch_to_millimeter(0) == 0
    assert inch_to_millimeter(1) == pytest.approx(25.4)
    assert inch_to_millimeter(0.3) == pytest.approx(7.62)


@pytest.mark.parametrize("fahrenheit", [-459.67, -40.0, 0.0, 41.0, 98.6, 1e6])
def test_celsius_round_trip(fahrenheit):
    assert celsius_to_fahrenheit(fahrenheit_to_celsius(fahrenheit)) == pytest.approx(fahrenheit)


@pytest.mark.parametrize("inches", [0.0, 0.01, 0.3, 12.5, 1e4])
def test_millimeter_round_trip(inches):
    assert inch_to_millimeter(inches) / 25.4 == pytest.approx(inches)
    assert millimeter_to_inch(inch_to_millimeter(inches)) == pytest.approx(inches)


def test_null_input_stays_null():
    assert fahrenheit_to_celsius(None) is None
    assert inch_to_millimeter(None) is None
    assert math.isnan(fahrenheit_to_celsius(float('nan')))
    assert math.isnan(inch_to_millimeter(np.nan))


def test_series_input_propagates_nan():
    temperatures = pd.Series([32.0, np.nan, 50.0])

    celsius = fahrenheit_to_celsius(temperatures)

    assert celsius.iloc[0] == 0
    assert pd.isna(celsius.iloc[1])
    assert celsius.iloc[2] == pytest.approx(10)
