"""
Pytest configuration and fixtures for the weather and sales pipeline tests.
"""
import pytest
import pandas as pd
from sqlalchemy import create_engine

from weather_sales.db.models import (
    Base,
    RAW_SOURCE_FILES,
    RawOrderHeader,
    RawOrderDetail,
    RawTruck,
    RawMenu,
    RawCustomerLoyalty,
    RawCountry,
    RawPostalCode,
    RawDailyWeather,
)
from weather_sales.ingestion.loader import coerce_to_schema


def make_frame(model, rows):
    """Build a typed raw DataFrame from a list of dicts."""
    return coerce_to_schema(pd.DataFrame(rows), model)


@pytest.fixture
def trucks():
    return make_frame(RawTruck, [
        {'truck_id': 1, 'primary_city': 'Hamburg', 'region': 'Hamburg', 'country': 'Germany',
         'iso_country_code': 'DE', 'franchise_flag': 1, 'franchise_id': 1},
        {'truck_id': 2, 'primary_city': 'Berlin', 'region': 'Berlin', 'country': 'Germany',
         'iso_country_code': 'DE', 'franchise_flag': 0, 'franchise_id': 2},
    ])


@pytest.fixture
def menu():
    return make_frame(RawMenu, [
        {'menu_item_id': 10, 'menu_type': 'Hot Dogs', 'truck_brand_name': 'Amped Up Franks',
         'menu_item_name': 'Chicago Dog', 'item_category': 'Main', 'item_subcategory': 'Hot Option',
         'cost_of_goods_usd': 4.0, 'sale_price_usd': 10.0},
        {'menu_item_id': 11, 'menu_type': 'Ice Cream', 'truck_brand_name': 'Freezing Point',
         'menu_item_name': 'Mango Sticky Rice', 'item_category': 'Dessert', 'item_subcategory': 'Cold Option',
         'cost_of_goods_usd': 1.5, 'sale_price_usd': 5.0},
    ])


@pytest.fixture
def customer_loyalty():
    return make_frame(RawCustomerLoyalty, [
        {'customer_id': 100, 'first_name': 'Jana', 'last_name': 'Becker', 'city': 'Hamburg',
         'country': 'Germany', 'postal_code': '20095', 'sign_up_date': '2020-05-01',
         'e_mail': 'jana.becker@example.com', 'phone_number': '040-555-0100'},
        {'customer_id': 101, 'first_name': 'Luca', 'last_name': 'Meyer', 'city': 'Berlin',
         'country': 'Germany', 'postal_code': '10115', 'sign_up_date': '2021-01-12',
         'e_mail': 'luca.meyer@example.com', 'phone_number': '030-555-0101'},
    ])


@pytest.fixture
def order_header():
    return make_frame(RawOrderHeader, [
        # $100 order in Hamburg on the windy day
        {'order_id': 1, 'truck_id': 1, 'location_id': 5001, 'customer_id': 100,
         'order_channel': 'Store', 'order_ts': '2022-02-15 12:05:00', 'order_currency': 'EUR',
         'order_amount': 100.0, 'order_total': 100.0},
        # Truck 99 does not exist
        {'order_id': 2, 'truck_id': 99, 'location_id': 5003, 'customer_id': 101,
         'order_channel': 'Store', 'order_ts': '2022-02-15 13:00:00', 'order_currency': 'EUR',
         'order_amount': 500.0, 'order_total': 500.0},
        # Guest order in Berlin
        {'order_id': 3, 'truck_id': 2, 'location_id': 6001, 'customer_id': None,
         'order_channel': 'Store', 'order_ts': '2022-02-15 14:30:00', 'order_currency': 'EUR',
         'order_amount': 25.0, 'order_total': 25.0},
        # Late order, truncated to its calendar day
        {'order_id': 4, 'truck_id': 1, 'location_id': 5002, 'customer_id': 100,
         'order_channel': 'Store', 'order_ts': '2022-02-17 23:30:00', 'order_currency': 'EUR',
         'order_amount': 45.0, 'order_total': 45.0},
    ])


@pytest.fixture
def order_detail():
    return make_frame(RawOrderDetail, [
        {'order_detail_id': 1, 'order_id': 1, 'menu_item_id': 10, 'line_number': 0,
         'quantity': 6, 'unit_price': 10.0, 'price': 60.0},
        {'order_detail_id': 2, 'order_id': 1, 'menu_item_id': 11, 'line_number': 1,
         'quantity': 8, 'unit_price': 5.0, 'price': 40.0},
        {'order_detail_id': 3, 'order_id': 2, 'menu_item_id': 10, 'line_number': 0,
         'quantity': 50, 'unit_price': 10.0, 'price': 500.0},
        {'order_detail_id': 4, 'order_id': 3, 'menu_item_id': 10, 'line_number': 0,
         'quantity': 2, 'unit_price': 12.5, 'price': 25.0},
        # Menu item 999 does not exist
        {'order_detail_id': 5, 'order_id': 4, 'menu_item_id': 999, 'line_number': 0,
         'quantity': 3, 'unit_price': 10.0, 'price': 30.0},
        {'order_detail_id': 6, 'order_id': 4, 'menu_item_id': 11, 'line_number': 1,
         'quantity': 3, 'unit_price': 5.0, 'price': 15.0},
        # Order 77 has no header
        {'order_detail_id': 7, 'order_id': 77, 'menu_item_id': 10, 'line_number': 0,
         'quantity': 1, 'unit_price': 5.0, 'price': 5.0},
    ])


@pytest.fixture
def country():
    return make_frame(RawCountry, [
        {'country_id': 1, 'country': 'Germany', 'iso_currency': 'EUR', 'iso_country': 'DE',
         'city_id': 1, 'city': 'Hamburg', 'city_population': 1841000},
        {'country_id': 2, 'country': 'Germany', 'iso_currency': 'EUR', 'iso_country': 'DE',
         'city_id': 2, 'city': 'Berlin', 'city_population': 3645000},
        {'country_id': 3, 'country': 'France', 'iso_currency': 'EUR', 'iso_country': 'FR',
         'city_id': 3, 'city': 'Paris', 'city_population': 2161000},
    ])


@pytest.fixture
def postal_code():
    return make_frame(RawPostalCode, [
        {'postal_code': '20095', 'country': 'DE', 'city_name': 'Hamburg'},
        {'postal_code': '20097', 'country': 'DE', 'city_name': 'Hamburg'},
        {'postal_code': '10115', 'country': 'DE', 'city_name': 'Berlin'},
        {'postal_code': '80331', 'country': 'DE', 'city_name': 'Munich'},
    ])


@pytest.fixture
def daily_weather():
    return make_frame(RawDailyWeather, [
        {'date_valid_std': '2022-02-15', 'postal_code': '20095', 'country': 'DE',
         'avg_temperature_air_2m_f': 40.0, 'tot_precipitation_in': 0.2, 'max_wind_speed_100m_mph': 70.0},
        {'date_valid_std': '2022-02-15', 'postal_code': '20097', 'country': 'DE',
         'avg_temperature_air_2m_f': 42.0, 'tot_precipitation_in': 0.4, 'max_wind_speed_100m_mph': 60.0},
        {'date_valid_std': '2022-02-16', 'postal_code': '20095', 'country': 'DE',
         'avg_temperature_air_2m_f': 38.0, 'tot_precipitation_in': 0.0, 'max_wind_speed_100m_mph': 30.0},
        {'date_valid_std': '2022-02-17', 'postal_code': '20095', 'country': 'DE',
         'avg_temperature_air_2m_f': 35.0, 'tot_precipitation_in': 0.1, 'max_wind_speed_100m_mph': 20.0},
        {'date_valid_std': '2022-02-15', 'postal_code': '10115', 'country': 'DE',
         'avg_temperature_air_2m_f': 39.0, 'tot_precipitation_in': 0.0, 'max_wind_speed_100m_mph': 25.0},
        # Unknown postal code
        {'date_valid_std': '2022-02-15', 'postal_code': '88888', 'country': 'DE',
         'avg_temperature_air_2m_f': 41.0, 'tot_precipitation_in': 0.0, 'max_wind_speed_100m_mph': 10.0},
        # Munich is not a business city
        {'date_valid_std': '2022-02-15', 'postal_code': '80331', 'country': 'DE',
         'avg_temperature_air_2m_f': 37.0, 'tot_precipitation_in': 0.0, 'max_wind_speed_100m_mph': 15.0},
    ])


@pytest.fixture
def raw_data(order_header, order_detail, trucks, menu, customer_loyalty, country, postal_code, daily_weather):
    """All raw entities keyed by entity name, as read_raw_tables returns them."""
    return {
        'truck': trucks,
        'menu': menu,
        'customer_loyalty': customer_loyalty,
        'country': country,
        'order_header': order_header,
        'order_detail': order_detail,
        'postal_code': postal_code,
        'daily_weather': daily_weather,
    }


@pytest.fixture
def input_dir(tmp_path, raw_data):
    """Source CSV files for every raw entity."""
    directory = tmp_path / 'input'
    directory.mkdir()
    for entity, df in raw_data.items():
        df.to_csv(directory / RAW_SOURCE_FILES[entity], index=False)
    return directory


@pytest.fixture
def engine(tmp_path):
    """SQLite engine with the raw tables created."""
    engine = create_engine(f"sqlite:///{tmp_path / 'raw.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()
