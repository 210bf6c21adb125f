"""
Configuration handling for the weather and sales data pipeline.

Settings come from an INI file layered over built-in defaults. Database
credentials default to the environment, which may be populated from a
.env file.
"""
import os
import logging
import configparser
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULTS = {
    'DATABASE': {
        'type': os.getenv("DB_TYPE", "sqlite"),
        'name': os.getenv("POSTGRES_DB", "weather_sales.db"),
        'host': os.getenv("POSTGRES_HOST", ""),
        'port': os.getenv("POSTGRES_PORT", ""),
        'user': os.getenv("POSTGRES_USER", ""),
        'password': os.getenv("POSTGRES_PASSWORD", ""),
    },
    'LOGGING': {
        'level': 'INFO',
        'file': 'logs/pipeline.log',
    },
    'PATHS': {
        'input_dir': 'data/input',
        'output_dir': 'data/output',
    },
    'PIPELINE': {
        'quality_check': 'true',
        'export_csv': 'false',
    },
    # Hamburg in February 2022 is the windstorm period the dashboard was built around
    'DASHBOARD': {
        'city': 'Hamburg',
        'country': 'Germany',
        'start_date': '2022-02-01',
        'end_date': '2022-02-28',
        'output_file': 'weather_sales_dashboard.png',
    },
}

DATABASE_KEYS = ('type', 'name', 'host', 'port', 'user', 'password')


class Config:
    """Pipeline settings: database, logging, paths, stages and dashboard scope."""

    def __init__(self, config_file='config.ini'):
        # Values may hold '%' (passwords), so no interpolation
        self.config = configparser.ConfigParser(interpolation=None)
        self.config.read_dict(DEFAULTS)

        if Path(config_file).exists():
            self.config.read(config_file)
            self._setup_logging()
        else:
            logger.warning(f"Config file {config_file} not found. Using defaults.")

    def _setup_logging(self):
        """Send log records to the configured file and to the console."""
        settings = self.config['LOGGING']
        level = getattr(logging, settings.get('level', 'INFO').upper(), logging.INFO)
        log_file = settings.get('file')

        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            handlers=[logging.FileHandler(log_file), logging.StreamHandler()]
        )

    def get_database_config(self):
        """Connection settings for create_db_engine."""
        section = self.config['DATABASE']
        return {key: section.get(key) for key in DATABASE_KEYS}

    def get_input_path(self, filename=None):
        """Source directory, or the path of one source file inside it."""
        input_dir = self.config['PATHS'].get('input_dir')
        return os.path.join(input_dir, filename) if filename else input_dir

    def get_output_path(self, filename=None):
        """
        Output directory, or the path of one output file inside it.

        The directory is created on first use.
        """
        output_dir = self.config['PATHS'].get('output_dir')
        os.makedirs(output_dir, exist_ok=True)
        return os.path.join(output_dir, filename) if filename else output_dir

    def is_quality_check_enabled(self):
        return self.config['PIPELINE'].getboolean('quality_check', True)

    def is_export_enabled(self):
        return self.config['PIPELINE'].getboolean('export_csv', False)

    def get_dashboard_config(self):
        """City, optional country, inclusive date range and chart file name."""
        dashboard = self.config['DASHBOARD']
        return {
            'city': dashboard.get('city'),
            'country': dashboard.get('country') or None,
            'start_date': dashboard.get('start_date'),
            'end_date': dashboard.get('end_date'),
            'output_file': dashboard.get('output_file')
        }
