"""
Data quality checks for the raw layer.

The checks only report. Raw tables are never modified; rows with broken
references are dropped later by the harmonization joins.
"""
import logging
import traceback
import numpy as np

logger = logging.getLogger(__name__)

PRIMARY_KEYS = {
    'order_header': ['order_id'],
    'order_detail': ['order_detail_id'],
    'truck': ['truck_id'],
    'menu': ['menu_item_id'],
    'customer_loyalty': ['customer_id'],
    'country': ['country_id'],
    'postal_code': ['postal_code', 'country'],
    'daily_weather': ['date_valid_std', 'postal_code', 'country'],
}

RANGE_CHECKS = {
    'order_header': {
        'order_total': lambda x: x >= 0,
    },
    'order_detail': {
        'quantity': lambda x: x > 0,
        'unit_price': lambda x: x >= 0,
        'price': lambda x: x >= 0,
    },
    'daily_weather': {
        'avg_temperature_air_2m_f': lambda x: np.isfinite(x),
        'tot_precipitation_in': lambda x: x >= 0,
        'max_wind_speed_100m_mph': lambda x: x >= 0,
    },
}

FOREIGN_KEYS = [
    {'table': 'order_detail', 'key': ['order_id'], 'ref_table': 'order_header', 'ref_key': ['order_id']},
    {'table': 'order_detail', 'key': ['menu_item_id'], 'ref_table': 'menu', 'ref_key': ['menu_item_id']},
    {'table': 'order_header', 'key': ['truck_id'], 'ref_table': 'truck', 'ref_key': ['truck_id']},
    {'table': 'order_header', 'key': ['customer_id'], 'ref_table': 'customer_loyalty', 'ref_key': ['customer_id']},
    {'table': 'daily_weather', 'key': ['postal_code', 'country'], 'ref_table': 'postal_code', 'ref_key': ['postal_code', 'country']},
    {'table': 'postal_code', 'key': ['city_name', 'country'], 'ref_table': 'country', 'ref_key': ['city', 'iso_country']},
]


def run_data_quality_checks(raw_data):
    """
    Run a series of data quality checks on the raw data.

    """
    try:
        logger.info("Running data quality checks")

        quality_results = {}

        # Run individual checks
        quality_results['missing_values'] = check_missing_values(raw_data)
        quality_results['duplicate_keys'] = check_duplicate_keys(raw_data)
        quality_results['value_ranges'] = check_value_ranges(raw_data)
        quality_results['referential_integrity'] = check_referential_integrity(raw_data)

        total_issues = count_quality_issues(quality_results)
        if total_issues > 0:
            logger.warning(f"Found a total of {total_issues} data quality issues")
        else:
            logger.info("All data quality checks passed")

        return quality_results
    except Exception as e:
        logger.error(f"Error running data quality checks: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def count_quality_issues(quality_results):
    """
    Total the issue counts reported by run_data_quality_checks.
    """
    total = 0
    for result in quality_results.get('missing_values', {}).values():
        total += result['total_missing']
    for result in quality_results.get('duplicate_keys', {}).values():
        total += result['duplicate_count']
    for column_results in quality_results.get('value_ranges', {}).values():
        for result in column_results.values():
            total += result.get('invalid_count', 0)
    for result in quality_results.get('referential_integrity', {}).values():
        total += result.get('orphaned_count', 0)
    return int(total)


def check_missing_values(raw_data):
    """
    Check for missing values in each DataFrame.
    """
    results = {}

    for table_name, df in raw_data.items():
        # Get count of missing values by column
        missing_by_column = df.isnull().sum()
        total_missing = int(missing_by_column.sum())

        # Only include columns with missing values
        missing_columns = {
            col: int(count) for col, count in missing_by_column[missing_by_column > 0].items()
        }

        results[table_name] = {
            'total_missing': total_missing,
            'missing_columns': missing_columns
        }

        if total_missing > 0:
            logger.info(f"Table '{table_name}' has {total_missing} missing values")
            for col, count in missing_columns.items():
                logger.info(f"  - Column '{col}': {count} missing values")

    return results


def check_duplicate_keys(raw_data):
    """
    Check for duplicate keys in each DataFrame.
    """
    results = {}

    for table_name, df in raw_data.items():
        if table_name not in PRIMARY_KEYS:
            continue
        pk_columns = PRIMARY_KEYS[table_name]

        duplicates = df[df.duplicated(subset=pk_columns, keep=False)]
        duplicate_count = len(duplicates)

        results[table_name] = {
            'duplicate_count': duplicate_count,
            'duplicate_keys': duplicates[pk_columns].head(10).values.tolist() if duplicate_count > 0 else []
        }

        if duplicate_count > 0:
            logger.warning(f"Table '{table_name}' has {duplicate_count} rows sharing a key {pk_columns}")

    return results


def check_value_ranges(raw_data):
    """
    Check for values outside of expected ranges. Nulls are not range failures.
    """
    results = {}

    for table_name, checks in RANGE_CHECKS.items():
        if table_name not in raw_data:
            continue
        df = raw_data[table_name]
        table_results = {}

        for column, condition in checks.items():
            values = df[column].dropna().astype(float)
            invalid = values[~condition(values)]
            invalid_count = len(invalid)

            table_results[column] = {
                'invalid_count': invalid_count,
                'invalid_examples': invalid.head(5).tolist()
            }

            if invalid_count > 0:
                logger.warning(f"Table '{table_name}' has {invalid_count} invalid values in column '{column}'")

        results[table_name] = table_results

    return results


def check_referential_integrity(raw_data):
    """
    Check referential integrity between tables.
    """
    results = {}

    for fk in FOREIGN_KEYS:
        relationship = f"{fk['table']}.{'+'.join(fk['key'])} -> {fk['ref_table']}.{'+'.join(fk['ref_key'])}"
        if fk['table'] not in raw_data or fk['ref_table'] not in raw_data:
            continue

        fk_values = {
            key for key in raw_data[fk['table']][fk['key']].dropna().itertuples(index=False, name=None)
        }
        ref_values = set(raw_data[fk['ref_table']][fk['ref_key']].itertuples(index=False, name=None))

        # Find orphaned values (foreign keys without matching reference keys)
        orphaned = sorted(fk_values - ref_values, key=str)
        orphaned_count = len(orphaned)

        results[relationship] = {
            'orphaned_count': orphaned_count,
            'orphaned_examples': [key[0] if len(key) == 1 else list(key) for key in orphaned[:10]]
        }

        if orphaned_count > 0:
            logger.warning(
                f"Referential integrity issue: {orphaned_count} values in "
                f"{fk['table']}.{fk['key']} have no matching {fk['ref_table']}.{fk['ref_key']}"
            )

    return results
