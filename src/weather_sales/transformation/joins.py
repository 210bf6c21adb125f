"""
Harmonization views for the weather and sales data pipeline.

Both views are recomputed from the raw tables on every call. Order lines that
do not resolve to an order header, a truck and a menu item are dropped by inner
joins; this is a deliberate data-quality filter and the dropped rows are
counted by check_for_missing_relationships.
"""
import logging
import traceback
import pandas as pd

logger = logging.getLogger(__name__)

ORDERS_COLUMNS = [
    'order_id', 'order_detail_id', 'line_number', 'truck_id', 'order_ts', 'order_date',
    'truck_brand_name', 'menu_type', 'primary_city', 'region', 'country',
    'franchise_flag', 'franchise_id', 'location_id', 'order_channel',
    'customer_id', 'first_name', 'last_name', 'e_mail', 'phone_number',
    'children_count', 'gender', 'marital_status', 'customer_city', 'customer_country',
    'menu_item_id', 'menu_item_name', 'item_category', 'item_subcategory',
    'quantity', 'unit_price', 'price', 'order_amount', 'order_total'
]

DAILY_WEATHER_COLUMNS = [
    'date', 'city', 'country', 'iso_country', 'year_month',
    'avg_temperature_air_2m_f', 'avg_precipitation_in', 'max_wind_speed_100m_mph',
    'postal_code_count'
]


def harmonize_orders(order_header, order_detail, truck, menu, customer_loyalty):
    """
    Join order lines with their header, truck, menu item and loyalty member.

    One row per order line. Truck and menu item are required (inner join),
    the loyalty member is optional (left join) so guest orders are kept.
    order_date is order_ts truncated to the day with no timezone adjustment.
    """
    try:
        logger.info("Harmonizing order_detail, order_header, truck, menu and customer_loyalty")

        trucks = truck[[
            'truck_id', 'primary_city', 'region', 'country', 'franchise_flag', 'franchise_id'
        ]]
        menu_items = menu[[
            'menu_item_id', 'menu_type', 'truck_brand_name', 'menu_item_name',
            'item_category', 'item_subcategory'
        ]]
        customers = customer_loyalty[[
            'customer_id', 'first_name', 'last_name', 'e_mail', 'phone_number',
            'children_count', 'gender', 'marital_status', 'city', 'country'
        ]].rename(columns={'city': 'customer_city', 'country': 'customer_country'})

        orders = pd.merge(order_detail, order_header, on='order_id', how='inner')
        orders = pd.merge(orders, trucks, on='truck_id', how='inner')
        orders = pd.merge(orders, menu_items, on='menu_item_id', how='inner')
        # Guests have no customer_id; only non-null keys may match
        orders = pd.merge(
            orders,
            customers.dropna(subset=['customer_id']),
            on='customer_id',
            how='left'
        )

        orders['order_date'] = pd.to_datetime(orders['order_ts']).dt.normalize()

        excluded = len(order_detail) - len(orders)
        if excluded > 0:
            logger.warning(f"Excluded {excluded} order lines without a matching order, truck or menu item")

        orders = orders[ORDERS_COLUMNS].sort_values(
            ['order_id', 'order_detail_id'], kind='mergesort'
        ).reset_index(drop=True)

        logger.info(f"Harmonized orders have {len(orders)} rows")
        return orders
    except Exception as e:
        logger.error(f"Error harmonizing orders: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def harmonize_daily_weather(daily_weather, postal_code, country):
    """
    Resolve postal-code weather observations to business cities at city-day grain.

    Observations are matched to a city through (postal_code, country) and then
    to the business country reference through (city, iso country). Cities with
    several postal codes are collapsed to one row per day: temperature and
    precipitation are averaged across postal codes and wind speed takes the
    daily maximum. Collapsing here keeps the later join with daily sales 1:1.
    """
    try:
        logger.info("Harmonizing daily_weather with postal_code and country")

        postal_cities = postal_code[['postal_code', 'country', 'city_name']].drop_duplicates()
        business_cities = country[['city', 'iso_country', 'country']].drop_duplicates(
            subset=['city', 'iso_country']
        )

        observations = pd.merge(
            daily_weather, postal_cities, on=['postal_code', 'country'], how='inner'
        ).rename(columns={'country': 'iso_country', 'city_name': 'city'})
        observations = pd.merge(
            observations, business_cities, on=['city', 'iso_country'], how='inner'
        )

        excluded = len(daily_weather) - len(observations)
        if excluded > 0:
            logger.warning(f"Excluded {excluded} weather observations outside business cities")

        weather = observations.groupby(
            ['date_valid_std', 'city', 'country', 'iso_country'], sort=True
        ).agg(
            avg_temperature_air_2m_f=('avg_temperature_air_2m_f', 'mean'),
            avg_precipitation_in=('tot_precipitation_in', 'mean'),
            max_wind_speed_100m_mph=('max_wind_speed_100m_mph', 'max'),
            postal_code_count=('postal_code', 'nunique')
        ).reset_index().rename(columns={'date_valid_std': 'date'})

        weather['date'] = pd.to_datetime(weather['date'])
        weather['year_month'] = weather['date'].dt.strftime('%Y-%m')

        weather = weather[DAILY_WEATHER_COLUMNS]
        logger.info(f"Harmonized daily weather has {len(weather)} city-day rows")
        return weather
    except Exception as e:
        logger.error(f"Error harmonizing daily weather: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def build_harmonized_views(raw_data):
    """
    Compute both harmonized views from a dict of raw DataFrames.
    """
    return {
        'orders': harmonize_orders(
            raw_data['order_header'],
            raw_data['order_detail'],
            raw_data['truck'],
            raw_data['menu'],
            raw_data['customer_loyalty']
        ),
        'daily_weather': harmonize_daily_weather(
            raw_data['daily_weather'],
            raw_data['postal_code'],
            raw_data['country']
        )
    }


def check_for_missing_relationships(raw_data):
    """
    Count the rows the harmonization joins drop, by cause.

    Causes are counted in join order, so for order lines they add up to the
    difference between the raw and harmonized row counts.
    """
    try:
        order_header = raw_data['order_header']
        order_detail = raw_data['order_detail']

        has_order = order_detail['order_id'].isin(order_header['order_id'])
        lines = pd.merge(
            order_detail[has_order], order_header[['order_id', 'truck_id']], on='order_id', how='inner'
        )
        has_truck = lines['truck_id'].isin(raw_data['truck']['truck_id'])
        lines = lines[has_truck]
        has_menu_item = lines['menu_item_id'].isin(raw_data['menu']['menu_item_id'])

        without_order = order_detail.loc[~has_order, 'order_detail_id']
        lines_without_truck = (~has_truck).sum()
        without_menu_item = lines.loc[~has_menu_item, 'order_detail_id']

        guest_orders = order_header['customer_id'].isna()
        unknown_customers = ~guest_orders & ~order_header['customer_id'].isin(
            raw_data['customer_loyalty']['customer_id']
        )

        weather = pd.merge(
            raw_data['daily_weather'][['postal_code', 'country']],
            raw_data['postal_code'][['postal_code', 'country', 'city_name']].drop_duplicates(),
            on=['postal_code', 'country'],
            how='left',
            indicator='postal_match'
        )
        without_postal_code = weather['postal_match'] == 'left_only'
        resolved = weather[~without_postal_code]
        city_keys = set(zip(raw_data['country']['city'], raw_data['country']['iso_country']))
        without_business_city = [
            key not in city_keys for key in zip(resolved['city_name'], resolved['country'])
        ]

        results = {
            'lines_without_order_count': int(len(without_order)),
            'lines_without_order': without_order.head(10).tolist(),
            'lines_without_truck_count': int(lines_without_truck),
            'lines_without_menu_item_count': int(len(without_menu_item)),
            'lines_without_menu_item': without_menu_item.head(10).tolist(),
            'guest_orders_count': int(guest_orders.sum()),
            'unknown_customers_count': int(unknown_customers.sum()),
            'observations_without_postal_code_count': int(without_postal_code.sum()),
            'observations_without_business_city_count': int(sum(without_business_city))
        }
        results['excluded_order_lines_count'] = (
            results['lines_without_order_count']
            + results['lines_without_truck_count']
            + results['lines_without_menu_item_count']
        )
        results['excluded_observations_count'] = (
            results['observations_without_postal_code_count']
            + results['observations_without_business_city_count']
        )

        # Log the issues found
        if results['excluded_order_lines_count'] > 0:
            logger.warning(
                f"{results['excluded_order_lines_count']} order lines are excluded from harmonized orders "
                f"(no order: {results['lines_without_order_count']}, "
                f"no truck: {results['lines_without_truck_count']}, "
                f"no menu item: {results['lines_without_menu_item_count']})"
            )

        if results['unknown_customers_count'] > 0:
            logger.info(f"Found {results['unknown_customers_count']} orders with customers outside the loyalty program")

        if results['excluded_observations_count'] > 0:
            logger.warning(
                f"{results['excluded_observations_count']} weather observations are excluded "
                f"(unknown postal code: {results['observations_without_postal_code_count']}, "
                f"city outside business locations: {results['observations_without_business_city_count']})"
            )

        return results

    except Exception as e:
        logger.error(f"Error checking for missing relationships: {str(e)}")
        logger.error(traceback.format_exc())
        raise
