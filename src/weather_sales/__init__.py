"""
Weather and sales data pipeline: raw point-of-sale and weather data joined by
city and day for correlation analysis.
"""
__version__ = "0.1.0"
