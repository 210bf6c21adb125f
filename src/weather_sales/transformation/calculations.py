"""
Analytics views for the weather and sales data pipeline.
"""
import logging
import traceback
import numpy as np
import pandas as pd

from weather_sales.transformation.conversions import fahrenheit_to_celsius, inch_to_millimeter

logger = logging.getLogger(__name__)

WEATHER_SALES_COLUMNS = [
    'date', 'city', 'country', 'daily_sales',
    'avg_temp_f', 'avg_temp_c', 'avg_precip_in', 'avg_precip_mm', 'max_wind_speed_mph'
]

CUSTOMER_LOYALTY_METRICS_COLUMNS = [
    'customer_id', 'first_name', 'last_name', 'city', 'country', 'e_mail', 'phone_number',
    'total_sales', 'order_count', 'visited_location_ids'
]

WEATHER_METRICS = {
    'temperature': 'avg_temp_f',
    'precipitation': 'avg_precip_in',
    'wind_speed': 'max_wind_speed_mph'
}


def analytics_orders(harmonized_orders):
    """
    Orders at analytics grain: the harmonized orders as they are.
    """
    return harmonized_orders.copy()


def calculate_customer_loyalty_metrics(customer_loyalty, harmonized_orders):
    """
    Calculate sales metrics per loyalty member.

    Only members with at least one harmonized order are returned.
    """
    try:
        logger.info("Calculating customer loyalty metrics")

        member_orders = harmonized_orders.dropna(subset=['customer_id'])
        grouped = member_orders.groupby('customer_id')
        per_customer = grouped.agg(
            total_sales=('price', 'sum'),
            order_count=('order_id', 'nunique')
        )
        per_customer['visited_location_ids'] = grouped['location_id'].apply(
            lambda ids: sorted(int(i) for i in ids.dropna().unique())
        )
        per_customer = per_customer.reset_index()

        metrics = pd.merge(
            customer_loyalty[[
                'customer_id', 'first_name', 'last_name', 'city', 'country', 'e_mail', 'phone_number'
            ]],
            per_customer,
            on='customer_id',
            how='inner'
        )

        metrics = metrics[CUSTOMER_LOYALTY_METRICS_COLUMNS].sort_values(
            'total_sales', ascending=False, kind='mergesort'
        ).reset_index(drop=True)

        logger.info(f"Calculated metrics for {len(metrics)} loyalty members")
        return metrics
    except Exception as e:
        logger.error(f"Error calculating customer loyalty metrics: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def _in_scope(df, date_column, city_column, city=None, start_date=None, end_date=None, country=None):
    """Boolean mask for rows inside the requested city, country and date range."""
    mask = pd.Series(True, index=df.index)
    if city is not None:
        mask &= df[city_column] == city
    if country is not None:
        mask &= df['country'] == country
    if start_date is not None:
        mask &= df[date_column] >= pd.Timestamp(start_date)
    if end_date is not None:
        mask &= df[date_column] <= pd.Timestamp(end_date)
    return mask


def calculate_daily_sales(harmonized_orders):
    """
    Sum order line prices per city and day.
    """
    daily_sales = harmonized_orders.groupby(
        ['order_date', 'primary_city', 'country']
    )['price'].sum().reset_index()

    daily_sales = daily_sales.rename(columns={
        'order_date': 'date',
        'primary_city': 'city',
        'price': 'daily_sales'
    })
    daily_sales['date'] = pd.to_datetime(daily_sales['date'])
    daily_sales['city'] = daily_sales['city'].astype(object)
    daily_sales['country'] = daily_sales['country'].astype(object)
    return daily_sales


def calculate_weather_sales(daily_weather, harmonized_orders, city=None, start_date=None,
                            end_date=None, country=None):
    """
    Join city-day weather with daily sales for a city and date range.

    Weather drives the rows: a day with a weather observation and no orders
    reports daily_sales of 0, a day without an observation is absent. The join
    key is (date, city, country) with no timezone adjustment of order
    timestamps. Celsius and millimeter columns are derived from the Fahrenheit
    and inch averages.

    Args:
        daily_weather (DataFrame): Harmonized weather at city-day grain
        harmonized_orders (DataFrame): Harmonized orders
        city (str): City to report, all cities if None
        start_date: First day, inclusive
        end_date: Last day, inclusive
        country (str): Country name, any if None

    Returns:
        DataFrame: One row per city and day ordered by date
    """
    try:
        logger.info(
            f"Calculating weather sales (city={city}, country={country}, "
            f"start_date={start_date}, end_date={end_date})"
        )

        weather = daily_weather[_in_scope(
            daily_weather, 'date', 'city', city, start_date, end_date, country
        )]
        orders = harmonized_orders[_in_scope(
            harmonized_orders, 'order_date', 'primary_city', city, start_date, end_date, country
        )]

        metrics = pd.merge(
            weather,
            calculate_daily_sales(orders),
            on=['date', 'city', 'country'],
            how='left'
        )

        # No orders on an observed day means zero sales, not unknown sales
        metrics['daily_sales'] = metrics['daily_sales'].fillna(0.0)

        metrics['avg_temp_f'] = metrics['avg_temperature_air_2m_f']
        metrics['avg_temp_c'] = fahrenheit_to_celsius(metrics['avg_temperature_air_2m_f'])
        metrics['avg_precip_in'] = metrics['avg_precipitation_in']
        metrics['avg_precip_mm'] = inch_to_millimeter(metrics['avg_precipitation_in'])
        metrics['max_wind_speed_mph'] = metrics['max_wind_speed_100m_mph']

        metrics = metrics[WEATHER_SALES_COLUMNS].round({
            'daily_sales': 2,
            'avg_temp_f': 2,
            'avg_temp_c': 2,
            'avg_precip_in': 2,
            'avg_precip_mm': 2
        })
        metrics = metrics.sort_values(['date', 'city', 'country'], kind='mergesort').reset_index(drop=True)

        zero_sales_days = int((metrics['daily_sales'] == 0).sum())
        logger.info(f"Calculated weather sales for {len(metrics)} city-days ({zero_sales_days} without sales)")
        return metrics
    except Exception as e:
        logger.error(f"Error calculating weather sales: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def summarize_weather_correlations(weather_sales_df):
    """
    Correlate daily sales with each weather measure.

    Correlations are Pearson coefficients, None where they are undefined
    (fewer than two days or a constant series).
    """
    correlations = {}
    for name, column in WEATHER_METRICS.items():
        pair = weather_sales_df[['daily_sales', column]].dropna()
        value = np.nan
        if len(pair) > 1 and pair['daily_sales'].std() > 0 and pair[column].std() > 0:
            value = pair['daily_sales'].corr(pair[column])
        correlations[name] = None if np.isnan(value) else round(float(value), 3)

    zero_sales = weather_sales_df[weather_sales_df['daily_sales'] == 0]
    summary = {
        'days': int(len(weather_sales_df)),
        'total_sales': float(weather_sales_df['daily_sales'].sum()),
        'zero_sales_days': int(len(zero_sales)),
        'zero_sales_max_wind_speed_mph': {
            row.date.strftime('%Y-%m-%d'): row.max_wind_speed_mph
            for row in zero_sales.itertuples()
        },
        'correlations': correlations
    }

    for name, value in correlations.items():
        if value is not None:
            logger.info(f"Sales vs {name} correlation: {value:.3f}")
    return summary


def build_analytics_views(harmonized_views, customer_loyalty, city=None, start_date=None,
                          end_date=None, country=None):
    """
    Compute the analytics views from the harmonized views.
    """
    return {
        'orders': analytics_orders(harmonized_views['orders']),
        'customer_loyalty_metrics': calculate_customer_loyalty_metrics(
            customer_loyalty, harmonized_views['orders']
        ),
        'daily_city_metrics': calculate_weather_sales(
            harmonized_views['daily_weather'],
            harmonized_views['orders'],
            city=city,
            start_date=start_date,
            end_date=end_date,
            country=country
        )
    }
