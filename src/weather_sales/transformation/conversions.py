"""
Unit conversions used by the analytics views.

The functions accept scalars or pandas Series. Null input stays null: None
returns None and NaN propagates through the arithmetic, so a missing reading
never turns into a number.
"""

MILLIMETERS_PER_INCH = 25.4


def fahrenheit_to_celsius(fahrenheit):
    """Convert degrees Fahrenheit to degrees Celsius."""
    if fahrenheit is None:
        return None
    return (fahrenheit - 32) * 5 / 9


def celsius_to_fahrenheit(celsius):
    """Convert degrees Celsius to degrees Fahrenheit."""
    if celsius is None:
        return None
    return celsius * 9 / 5 + 32


def inch_to_millimeter(inches):
    """Convert inches to millimeters."""
    if inches is None:
        return None
    return inches * MILLIMETERS_PER_INCH


def millimeter_to_inch(millimeters):
    if millimeters is None:
        return None
    return millimeters / MILLIMETERS_PER_INCH
