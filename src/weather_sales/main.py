"""
Main pipeline orchestration for the weather and sales data pipeline.
"""
import sys
import logging
import argparse
import time
import traceback
from datetime import datetime
from weather_sales.config import Config
from weather_sales.db.engine import create_db_engine, init_db
from weather_sales.db.models import Base
from weather_sales.ingestion.loader import load_raw_data, read_raw_tables
from weather_sales.transformation.joins import build_harmonized_views, check_for_missing_relationships
from weather_sales.transformation.calculations import build_analytics_views, summarize_weather_correlations
from weather_sales.transformation.quality import run_data_quality_checks, count_quality_issues
from weather_sales.loading.writer import export_results_to_csv
from weather_sales.dashboard.reader import query_weather_sales
from weather_sales.dashboard.charts import render_dashboard

logger = logging.getLogger(__name__)


def run_pipeline(config_file='config.ini', skip_load=False, quality_check=None, export_csv=None,
                 city=None, country=None, start_date=None, end_date=None, dashboard_path=None):
    """
    Load the raw layer, compute the views and optionally export and chart them.

    Returns a statistics dict; status is 'failed' with the error message when
    any stage raised.
    """
    start_time = time.time()
    statistics = {
        'start_time': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'status': 'failed',
        'stages': {},
    }

    try:
        logger.info("Starting data pipeline")

        # Load configuration
        config = Config(config_file)

        # Override config settings if provided
        if quality_check is not None:
            config.config['PIPELINE']['quality_check'] = str(quality_check).lower()
        if export_csv is not None:
            config.config['PIPELINE']['export_csv'] = str(export_csv).lower()

        scope = config.get_dashboard_config()
        for key, value in (('city', city), ('country', country),
                           ('start_date', start_date), ('end_date', end_date)):
            if value is not None:
                scope[key] = value

        run_quality_check = config.is_quality_check_enabled()
        logger.info(f"Pipeline mode: skip_load={skip_load}, quality_check={run_quality_check}")

        engine = create_db_engine(config)
        init_db(engine, Base)

        # ---- Raw ingestion
        if not skip_load:
            stage_start = time.time()
            loaded = load_raw_data(config, engine)
            statistics['stages']['ingestion'] = {
                'duration': time.time() - stage_start,
                'rows_processed': {entity: len(df) for entity, df in loaded.items()}
            }

        raw_data = read_raw_tables(engine)

        # ---- Data quality audit
        if run_quality_check:
            stage_start = time.time()
            quality_results = run_data_quality_checks(raw_data)
            statistics['stages']['quality_check'] = {
                'duration': time.time() - stage_start,
                'issues_found': count_quality_issues(quality_results)
            }

        # ---- Views
        stage_start = time.time()
        exclusions = check_for_missing_relationships(raw_data)
        harmonized = build_harmonized_views(raw_data)
        analytics = build_analytics_views(
            harmonized,
            raw_data['customer_loyalty'],
            city=scope['city'],
            start_date=scope['start_date'],
            end_date=scope['end_date'],
            country=scope['country']
        )

        statistics['stages']['transformation'] = {
            'duration': time.time() - stage_start,
            'rows_generated': {
                **{f"harmonized.{name}": len(df) for name, df in harmonized.items()},
                **{f"analytics.{name}": len(df) for name, df in analytics.items()}
            },
            'excluded_order_lines': exclusions['excluded_order_lines_count'],
            'excluded_weather_observations': exclusions['excluded_observations_count'],
            'correlations': summarize_weather_correlations(analytics['daily_city_metrics'])['correlations']
        }

        # ---- Export
        if config.is_export_enabled():
            exported_files = {
                **export_results_to_csv(harmonized, config.get_output_path(), prefix='harmonized_'),
                **export_results_to_csv(analytics, config.get_output_path(), prefix='analytics_')
            }
            statistics['stages']['export'] = {
                'files_exported': len(exported_files),
                'file_paths': exported_files
            }

        # ---- Dashboard
        if dashboard_path is not None:
            stage_start = time.time()
            dashboard_path = dashboard_path or config.get_output_path(scope['output_file'])
            weather_sales = query_weather_sales(
                raw_data, scope['city'], scope['start_date'], scope['end_date'], scope['country']
            )
            render_dashboard(
                weather_sales,
                dashboard_path,
                start_date=scope['start_date'],
                end_date=scope['end_date'],
                title=f"{scope['city']} weather and sales, {scope['start_date']} to {scope['end_date']}"
            )
            statistics['stages']['dashboard'] = {
                'duration': time.time() - stage_start,
                'days': len(weather_sales),
                'file_path': dashboard_path
            }

        statistics['status'] = 'success'
        logger.info("Data pipeline completed successfully")

    except Exception as e:
        logger.error(f"Pipeline execution failed: {str(e)}")
        logger.error(traceback.format_exc())
        statistics['status'] = 'failed'
        statistics['error'] = str(e)

    # Calculate total duration
    statistics['duration'] = time.time() - start_time

    return statistics


def main(argv=None):
    """Command line entry point."""
    parser = argparse.ArgumentParser(description='Weather and Sales Data Pipeline')
    parser.add_argument('--config', default='config.ini', help='Path to configuration file')
    parser.add_argument('--skip-load', action='store_true', help='Compute views from the raw tables already loaded')
    parser.add_argument('--quality-check', action='store_true', help='Run data quality checks')
    parser.add_argument('--no-quality-check', action='store_true', help='Skip data quality checks')
    parser.add_argument('--export-csv', action='store_true', help='Export views to CSV files')
    parser.add_argument('--city', help='City for the weather sales view')
    parser.add_argument('--country', help='Country name for the weather sales view')
    parser.add_argument('--start-date', help='First day of the weather sales view (YYYY-MM-DD)')
    parser.add_argument('--end-date', help='Last day of the weather sales view (YYYY-MM-DD)')
    parser.add_argument('--dashboard', nargs='?', const='', metavar='PATH',
                        help='Render the dashboard, to PATH or the configured output file')

    args = parser.parse_args(argv)

    # Determine quality check mode
    quality_check = None
    if args.quality_check:
        quality_check = True
    elif args.no_quality_check:
        quality_check = False

    # Run the pipeline
    results = run_pipeline(
        config_file=args.config,
        skip_load=args.skip_load,
        quality_check=quality_check,
        export_csv=True if args.export_csv else None,
        city=args.city,
        country=args.country,
        start_date=args.start_date,
        end_date=args.end_date,
        dashboard_path=args.dashboard
    )

    # Print summary
    print("\nPipeline Execution Summary:")
    print(f"Status: {results['status']}")
    print(f"Duration: {results['duration']:.2f} seconds")

    if results['status'] == 'failed' and 'error' in results:
        print(f"Error: {results['error']}")

    for stage, stats in results.get('stages', {}).items():
        print(f"\n{stage.capitalize()} stage:")
        for key, value in stats.items():
            if key not in ('rows_processed', 'rows_generated', 'file_paths'):
                print(f"  {key}: {value}")

    return 0 if results['status'] == 'success' else 1


if __name__ == "__main__":
    sys.exit(main())
