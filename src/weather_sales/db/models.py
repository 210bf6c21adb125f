"""
Database models for the raw layer.

Each model mirrors one source file: column order is the file's column order and
the column types are the schema the loader validates against.
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class RawOrderHeader(Base):
    """Raw point-of-sale order headers."""
    __tablename__ = 'raw_order_header'

    order_id = Column(Integer, primary_key=True, autoincrement=False)
    truck_id = Column(Integer, nullable=False)
    location_id = Column(Integer)
    customer_id = Column(Integer)
    order_channel = Column(String(50))
    order_ts = Column(DateTime, nullable=False)
    order_currency = Column(String(3))
    order_amount = Column(Float)
    order_total = Column(Float)


class RawOrderDetail(Base):
    """Raw order lines."""
    __tablename__ = 'raw_order_detail'

    order_detail_id = Column(Integer, primary_key=True, autoincrement=False)
    order_id = Column(Integer, nullable=False)
    menu_item_id = Column(Integer, nullable=False)
    line_number = Column(Integer)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    price = Column(Float, nullable=False)


class RawTruck(Base):
    """Raw truck reference data."""
    __tablename__ = 'raw_truck'

    truck_id = Column(Integer, primary_key=True, autoincrement=False)
    menu_type_id = Column(Integer)
    primary_city = Column(String(100), nullable=False)
    region = Column(String(100))
    iso_region = Column(String(10))
    country = Column(String(100), nullable=False)
    iso_country_code = Column(String(2))
    franchise_flag = Column(Integer)
    franchise_id = Column(Integer)


class RawMenu(Base):
    """Raw menu items."""
    __tablename__ = 'raw_menu'

    menu_item_id = Column(Integer, primary_key=True, autoincrement=False)
    menu_type_id = Column(Integer)
    menu_type = Column(String(100))
    truck_brand_name = Column(String(100))
    menu_item_name = Column(String(100), nullable=False)
    item_category = Column(String(50))
    item_subcategory = Column(String(50))
    cost_of_goods_usd = Column(Float)
    sale_price_usd = Column(Float)


class RawCustomerLoyalty(Base):
    """Raw customer loyalty members."""
    __tablename__ = 'raw_customer_loyalty'

    customer_id = Column(Integer, primary_key=True, autoincrement=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    city = Column(String(100))
    country = Column(String(100))
    postal_code = Column(String(20))
    gender = Column(String(20))
    marital_status = Column(String(20))
    children_count = Column(String(20))
    sign_up_date = Column(Date)
    e_mail = Column(String(200))
    phone_number = Column(String(50))


class RawCountry(Base):
    """Raw country and city reference data."""
    __tablename__ = 'raw_country'

    country_id = Column(Integer, primary_key=True, autoincrement=False)
    country = Column(String(100), nullable=False)
    iso_currency = Column(String(3))
    iso_country = Column(String(2), nullable=False)
    city_id = Column(Integer)
    city = Column(String(100), nullable=False)
    city_population = Column(Integer)


class RawPostalCode(Base):
    """Weather feed postal codes resolved to city names."""
    __tablename__ = 'raw_postal_code'

    id = Column(Integer, primary_key=True, autoincrement=True)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(2), nullable=False)
    city_name = Column(String(100), nullable=False)


class RawDailyWeather(Base):
    """Weather feed daily observations, one row per postal code per date."""
    __tablename__ = 'raw_daily_weather'

    id = Column(Integer, primary_key=True, autoincrement=True)
    date_valid_std = Column(Date, nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(2), nullable=False)
    avg_temperature_air_2m_f = Column(Float)
    tot_precipitation_in = Column(Float)
    max_wind_speed_100m_mph = Column(Float)


# Load order follows the source entities, references first
RAW_TABLES = {
    'truck': RawTruck,
    'menu': RawMenu,
    'customer_loyalty': RawCustomerLoyalty,
    'country': RawCountry,
    'order_header': RawOrderHeader,
    'order_detail': RawOrderDetail,
    'postal_code': RawPostalCode,
    'daily_weather': RawDailyWeather,
}

RAW_SOURCE_FILES = {
    'truck': 'truck.csv',
    'menu': 'menu.csv',
    'customer_loyalty': 'customer_loyalty.csv',
    'country': 'country.csv',
    'order_header': 'order_header.csv',
    'order_detail': 'order_detail.csv',
    'postal_code': 'postal_code.csv',
    'daily_weather': 'daily_weather.csv',
}


def source_columns(model):
    """Columns present in the source file, i.e. everything but surrogate keys."""
    return [
        column for column in model.__table__.columns
        if not (column.primary_key and column.autoincrement is True)
    ]
