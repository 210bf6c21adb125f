"""
End-to-end tests for the pipeline entry points and configuration.
"""
import os
import pandas as pd
import pytest

from weather_sales.config import Config
from weather_sales.db.engine import create_db_engine
from weather_sales.main import run_pipeline, main


@pytest.fixture
def config_file(tmp_path, input_dir):
    path = tmp_path / 'config.ini'
    path.write_text(
        "[DATABASE]\n"
        "type = sqlite\n"
        f"name = {tmp_path / 'pipeline.db'}\n"
        "\n"
        "[LOGGING]\n"
        "level = INFO\n"
        f"file = {tmp_path / 'logs' / 'pipeline.log'}\n"
        "\n"
        "[PATHS]\n"
        f"input_dir = {input_dir}\n"
        f"output_dir = {tmp_path / 'output'}\n"
        "\n"
        "[DASHBOARD]\n"
        "city = Hamburg\n"
        "country = Germany\n"
        "start_date = 2022-02-14\n"
        "end_date = 2022-02-18\n"
        "output_file = dashboard.png\n"
    )
    return str(path)


def test_config_defaults(tmp_path):
    config = Config(str(tmp_path / 'missing.ini'))

    assert config.is_quality_check_enabled()
    assert not config.is_export_enabled()
    assert config.get_dashboard_config()['city'] == 'Hamburg'
    assert config.get_input_path('truck.csv') == os.path.join('data/input', 'truck.csv')


def test_config_file_overrides(config_file, tmp_path):
    config = Config(config_file)

    assert config.get_database_config()['type'] == 'sqlite'
    assert config.get_dashboard_config()['end_date'] == '2022-02-18'
    assert config.get_output_path('x.csv') == os.path.join(str(tmp_path / 'output'), 'x.csv')


def test_create_db_engine_rejects_unknown_type(tmp_path):
    config = Config(str(tmp_path / 'missing.ini'))
    config.config['DATABASE']['type'] = 'oracle'

    with pytest.raises(ValueError):
        create_db_engine(config)


def test_run_pipeline_end_to_end(config_file, tmp_path):
    results = run_pipeline(config_file, export_csv=True, dashboard_path='')

    assert results['status'] == 'success', results.get('error')
    assert results['stages']['ingestion']['rows_processed']['order_detail'] == 7

    transformation = results['stages']['transformation']
    assert transformation['rows_generated']['harmonized.orders'] == 4
    assert transformation['rows_generated']['analytics.daily_city_metrics'] == 3
    assert transformation['excluded_order_lines'] == 3
    assert transformation['excluded_weather_observations'] == 2
    assert results['stages']['quality_check']['issues_found'] > 0

    exported = results['stages']['export']['file_paths']
    metrics = pd.read_csv(exported['daily_city_metrics'])
    assert metrics['daily_sales'].tolist() == [100, 0, 15]
    assert metrics['max_wind_speed_mph'].tolist() == [70, 30, 20]

    assert os.path.exists(tmp_path / 'output' / 'dashboard.png')
    assert results['stages']['dashboard']['days'] == 3


def test_run_pipeline_recomputes_identically(config_file):
    first = run_pipeline(config_file, export_csv=True)
    first_metrics = pd.read_csv(first['stages']['export']['file_paths']['daily_city_metrics'])

    second = run_pipeline(config_file, skip_load=True, export_csv=True)
    second_metrics = pd.read_csv(second['stages']['export']['file_paths']['daily_city_metrics'])

    assert second['status'] == 'success'
    assert 'ingestion' not in second['stages']
    pd.testing.assert_frame_equal(first_metrics, second_metrics)


def test_run_pipeline_reports_load_failure(config_file, input_dir):
    (input_dir / 'menu.csv').write_text("menu_item_id,menu_item_name\n10,Chicago Dog\n")

    results = run_pipeline(config_file)

    assert results['status'] == 'failed'
    assert 'entity=menu' in results['error']


def test_main_scope_overrides(config_file, tmp_path):
    status = main([
        '--config', config_file, '--export-csv',
        '--city', 'Berlin', '--country', 'Germany',
        '--start-date', '2022-02-15', '--end-date', '2022-02-15',
    ])

    assert status == 0
    metrics = pd.read_csv(tmp_path / 'output' / 'analytics_daily_city_metrics.csv')
    assert metrics['city'].tolist() == ['Berlin']
    assert metrics['date'].tolist() == ['2022-02-15']
    assert metrics['daily_sales'].tolist() == [25]


def test_main_exit_status(config_file, input_dir, capsys):
    assert main(['--config', config_file, '--no-quality-check']) == 0

    os.remove(input_dir / 'truck.csv')
    assert main(['--config', config_file]) == 1
    assert 'Status: failed' in capsys.readouterr().out
