"""
Data ingestion components for the weather and sales data pipeline.

Source files are loaded verbatim into the raw tables: no deduplication and no
cross-entity validation happen here. Every load is a full refresh that runs
in one transaction, so a failed load leaves the previous contents in place.
"""
import os
import logging
import traceback
import pandas as pd
from sqlalchemy import select, Integer, Float, Date, DateTime
from sqlalchemy.exc import SQLAlchemyError

from weather_sales.db.models import RAW_TABLES, RAW_SOURCE_FILES, source_columns
from weather_sales.exceptions import RawLoadError

logger = logging.getLogger(__name__)

# Header row plus 1-based numbering
_FIRST_DATA_LINE = 2

# Integer columns are held as Int64
_INT64_MIN = -2 ** 63
_INT64_LIMIT = 2 ** 63


def _parse_column(values, column):
    """Parse one string column into the declared type; blanks become null."""
    if isinstance(column.type, DateTime):
        return pd.to_datetime(values, errors='coerce', format='ISO8601')
    if isinstance(column.type, Date):
        return pd.to_datetime(values, errors='coerce', format='ISO8601').dt.normalize()
    if isinstance(column.type, (Integer, Float)):
        return pd.to_numeric(values, errors='coerce')
    return values


def read_source_file(file_path, model, entity=None):
    """
    Read a delimited source file and validate it against a raw table model.

    Args:
        file_path: Path or readable buffer holding the CSV data
        model: Declarative model describing the raw table
        entity (str): Entity name used in error messages

    Returns:
        DataFrame: Typed data in the declared column order

    Raises:
        RawLoadError: If the file is missing or any record is malformed
    """
    entity = entity or model.__tablename__
    columns = source_columns(model)
    expected = [column.name for column in columns]

    if isinstance(file_path, (str, os.PathLike)) and not os.path.exists(file_path):
        raise RawLoadError("Source file not found", entity, file_path)

    try:
        # Everything is read as text so blank fields stay distinguishable from
        # fields missing on short rows, which the parser fills with NaN.
        # The header is read as an ordinary record so it fixes the field
        # count and a wider row can never be taken for an index column.
        raw = pd.read_csv(
            file_path, header=None, dtype=str, keep_default_na=False, skipinitialspace=True
        )
    except pd.errors.EmptyDataError:
        raise RawLoadError("Source file is empty", entity, file_path)
    except pd.errors.ParserError as e:
        raise RawLoadError(f"Malformed record: {str(e).strip()}", entity, file_path)
    except UnicodeDecodeError as e:
        raise RawLoadError(f"Source file is not valid UTF-8: {e.reason}", entity, file_path)

    header = [str(name).strip() for name in raw.iloc[0]]
    if header != expected:
        raise RawLoadError(
            f"Header {header} does not match declared columns {expected}", entity, file_path
        )
    raw = raw.iloc[1:].reset_index(drop=True)
    raw.columns = header

    short_rows = raw.isna().any(axis=1)
    if short_rows.any():
        position = int(short_rows.to_numpy().argmax())
        raise RawLoadError(
            f"Expected {len(expected)} fields, found fewer", entity, file_path,
            line=position + _FIRST_DATA_LINE
        )

    df = pd.DataFrame(index=raw.index)
    for column in columns:
        values = raw[column.name].str.strip()
        blank = values == ''
        parsed = _parse_column(values.where(~blank), column)

        invalid = parsed.isna() & ~blank
        if isinstance(column.type, Integer):
            invalid |= parsed.notna() & (
                (parsed % 1 != 0) | (parsed < _INT64_MIN) | (parsed >= _INT64_LIMIT)
            )
        if invalid.any():
            position = int(invalid.to_numpy().argmax())
            raise RawLoadError(
                f"Unparseable value {values.iloc[position]!r} in column '{column.name}'",
                entity, file_path, line=position + _FIRST_DATA_LINE
            )

        if not column.nullable and blank.any():
            position = int(blank.to_numpy().argmax())
            raise RawLoadError(
                f"Missing value in required column '{column.name}'",
                entity, file_path, line=position + _FIRST_DATA_LINE
            )

        df[column.name] = parsed

    try:
        return coerce_to_schema(df, model)
    except (TypeError, ValueError) as e:
        raise RawLoadError(f"Values do not fit the declared column types: {e}", entity, file_path)


def coerce_to_schema(df, model):
    """
    Cast a DataFrame to the dtypes declared by a raw table model.

    Integers use the nullable Int64 dtype so optional keys such as
    customer_id survive nulls without turning into floats.
    """
    typed = pd.DataFrame(index=df.index)
    for column in source_columns(model):
        values = df[column.name] if column.name in df.columns else pd.Series(None, index=df.index, dtype=object)
        if isinstance(column.type, DateTime):
            typed[column.name] = pd.to_datetime(values)
        elif isinstance(column.type, Date):
            typed[column.name] = pd.to_datetime(values).dt.normalize()
        elif isinstance(column.type, Integer):
            typed[column.name] = pd.to_numeric(values).astype('Int64')
        elif isinstance(column.type, Float):
            typed[column.name] = pd.to_numeric(values).astype('float64')
        else:
            # Database reads may hand back NaN where the CSV path has None
            typed[column.name] = values.astype(object).where(values.notna(), None)
    return typed.reset_index(drop=True)


def _to_records(df, model):
    """Prepare a typed DataFrame for insertion."""
    records = df.copy()
    for column in source_columns(model):
        if isinstance(column.type, Date):
            records[column.name] = records[column.name].dt.date
    return records


def ingest_csv_to_raw(file_path, engine, model, entity=None):
    """
    Load a CSV file into its raw table, replacing the previous contents.

    The delete and the inserts share one transaction.
    """
    entity = entity or model.__tablename__
    table_name = model.__tablename__
    logger.info(f"Loading data from {file_path} to {table_name}")

    df = read_source_file(file_path, model, entity)
    logger.info(f"Parsed {len(df)} rows from {file_path}")

    try:
        with engine.begin() as conn:
            model.__table__.create(conn, checkfirst=True)
            conn.execute(model.__table__.delete())
            if len(df) > 0:
                _to_records(df, model).to_sql(
                    table_name, conn, if_exists='append', index=False, chunksize=1000
                )
    except (SQLAlchemyError, pd.errors.DatabaseError) as e:
        logger.error(f"Error during database operations: {str(e)}")
        reason = getattr(e, 'orig', None) or e
        raise RawLoadError(f"Database rejected load: {reason}", entity, file_path) from e

    logger.info(f"Successfully loaded {len(df)} rows to {table_name}")
    return df


def load_raw_data(config, engine):
    """
    Load all source CSV files to raw tables.

    Args:
        config: Configuration object
        engine: SQLAlchemy engine

    Returns:
        dict: Dictionary of loaded DataFrames keyed by entity name
    """
    try:
        loaded = {}
        for entity, model in RAW_TABLES.items():
            loaded[entity] = ingest_csv_to_raw(
                config.get_input_path(RAW_SOURCE_FILES[entity]),
                engine,
                model,
                entity
            )
        return loaded
    except Exception as e:
        logger.error(f"Failed to load raw data: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def read_raw_tables(engine):
    """
    Read every raw table into typed DataFrames.

    The returned dict is the data-source handle the view functions take.
    """
    raw_data = {}
    with engine.connect() as conn:
        for entity, model in RAW_TABLES.items():
            df = pd.read_sql(select(*source_columns(model)), conn)
            raw_data[entity] = coerce_to_schema(df, model)
            logger.info(f"Read {len(raw_data[entity])} rows from {model.__tablename__}")
    return raw_data
