"""
Export of computed views for the weather and sales data pipeline.

Views are never written back to the database; exports are snapshots for
reporting.
"""
import logging
import os
import traceback

logger = logging.getLogger(__name__)


def export_results_to_csv(views, output_dir, prefix=''):
    """
    Export computed views to CSV files.

    Args:
        views (dict): View name -> DataFrame
        output_dir (str): Target directory, created if missing
        prefix (str): Prefix for the file names, e.g. the layer name

    Returns:
        dict: View name -> written file path
    """
    try:
        # Create output directory if it doesn't exist
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        exported_files = {}

        for name, df in views.items():
            if df is None:
                continue
            file_path = os.path.join(output_dir, f"{prefix}{name}.csv")
            df.to_csv(file_path, index=False)
            exported_files[name] = file_path
            logger.info(f"Exported {len(df)} rows to {file_path}")

        return exported_files
    except Exception as e:
        logger.error(f"Error exporting results to CSV: {str(e)}")
        logger.error(traceback.format_exc())
        raise
