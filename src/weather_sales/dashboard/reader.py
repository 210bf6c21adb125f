"""
Read path from the analytics layer to the dashboard.
"""
import logging
import pandas as pd

from weather_sales.exceptions import ViewQueryError
from weather_sales.transformation.joins import build_harmonized_views
from weather_sales.transformation.calculations import calculate_weather_sales

logger = logging.getLogger(__name__)


def _parse_date(value, name, query):
    try:
        parsed = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ViewQueryError(f"Invalid {name}: {e}", query) from e
    if pd.isna(parsed):
        raise ViewQueryError(f"Missing {name}", query)
    return parsed.normalize()


def query_weather_sales(raw_data, city, start_date, end_date, country=None):
    """
    Query the weather-sales view for one city and date range.

    The harmonized views are recomputed from raw_data on every call. Rows are
    ordered by date; a day missing from the result had no weather observation.

    Raises:
        ViewQueryError: On invalid parameters or when the view cannot be computed
    """
    query = {'city': city, 'country': country, 'start_date': start_date, 'end_date': end_date}

    if not city or not str(city).strip():
        raise ViewQueryError("A city is required", query)
    start = _parse_date(start_date, 'start_date', query)
    end = _parse_date(end_date, 'end_date', query)
    if start > end:
        raise ViewQueryError("start_date is after end_date", query)

    try:
        harmonized = build_harmonized_views(raw_data)
        result = calculate_weather_sales(
            harmonized['daily_weather'], harmonized['orders'], city=city, start_date=start, end_date=end, country=country
        )
    except Exception as e:
        raise ViewQueryError(f"Weather sales query failed: {e}", query) from e

    logger.info(f"Weather sales query returned {len(result)} rows for {city}")
    return result
