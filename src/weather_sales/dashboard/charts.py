"""
Weather and sales dashboard charts.
"""
import logging
import os
import pandas as pd
import matplotlib

matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.dates as mdates

from weather_sales.exceptions import ViewQueryError
from weather_sales.transformation.conversions import (
    fahrenheit_to_celsius,
    celsius_to_fahrenheit,
    inch_to_millimeter,
    millimeter_to_inch
)

logger = logging.getLogger(__name__)

SERIES_COLUMNS = ['daily_sales', 'avg_temp_f', 'avg_precip_in', 'max_wind_speed_mph']


def prepare_dashboard_frame(weather_sales_df, start_date, end_date):
    """
    Put the series on a continuous daily axis.

    Days without a weather row stay NaN so the charts show a gap instead of a
    zero. Zero-sales days are real rows and keep their 0.
    """
    axis = pd.date_range(pd.Timestamp(start_date), pd.Timestamp(end_date), freq='D', name='date')

    frame = weather_sales_df.set_index('date')
    if frame.index.duplicated().any():
        raise ViewQueryError("Dashboard data has more than one row per day; scope the query to one city and country")

    return frame[SERIES_COLUMNS].reindex(axis)


def render_dashboard(weather_sales_df, output_path, start_date=None, end_date=None, title=None):
    """
    Render daily sales, temperature, precipitation and wind speed on a shared date axis.

    Returns:
        str: Path of the written image
    """
    if start_date is None:
        start_date = weather_sales_df['date'].min()
    if end_date is None:
        end_date = weather_sales_df['date'].max()
    if pd.isna(start_date) or pd.isna(end_date):
        raise ViewQueryError("No date range to render: the query returned no rows and none was given")

    frame = prepare_dashboard_frame(weather_sales_df, start_date, end_date)
    missing_days = int(frame['avg_temp_f'].isna().sum())
    if missing_days > 0:
        logger.info(f"{missing_days} days have no weather observation and are left blank")

    fig, axes = plt.subplots(4, 1, figsize=(12, 11), sharex=True)

    axes[0].bar(frame.index, frame['daily_sales'], color='tab:blue')
    axes[0].set_title('Daily Sales')
    axes[0].set_ylabel('Sales ($)')

    axes[1].plot(frame.index, frame['avg_temp_f'], marker='o', color='tab:red')
    axes[1].set_title('Average Temperature')
    axes[1].set_ylabel('Temperature (F)')
    celsius_axis = axes[1].secondary_yaxis('right', functions=(fahrenheit_to_celsius, celsius_to_fahrenheit))
    celsius_axis.set_ylabel('Temperature (C)')

    axes[2].plot(frame.index, frame['avg_precip_in'], marker='o', color='tab:cyan')
    axes[2].set_title('Average Precipitation')
    axes[2].set_ylabel('Precipitation (in)')
    mm_axis = axes[2].secondary_yaxis('right', functions=(inch_to_millimeter, millimeter_to_inch))
    mm_axis.set_ylabel('Precipitation (mm)')

    axes[3].plot(frame.index, frame['max_wind_speed_mph'], marker='o', color='tab:gray')
    axes[3].set_title('Max Wind Speed')
    axes[3].set_ylabel('Wind Speed (mph)')
    axes[3].xaxis.set_major_formatter(mdates.DateFormatter('%Y-%m-%d'))

    if title:
        fig.suptitle(title)
    fig.autofmt_xdate()
    plt.tight_layout()

    output_dir = os.path.dirname(output_path)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)
    fig.savefig(output_path)
    plt.close(fig)

    logger.info(f"Dashboard written to {output_path}")
    return output_path
