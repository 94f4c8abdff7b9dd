# =============================================================================
# utils/csv_utils.py - CSV utilities
# =============================================================================

import csv
from typing import List, Dict, Any, Optional, Tuple
import logging

from core.exceptions import InputError


class CSVHandler:
    """Utilities for reading and writing CSV files"""

    @staticmethod
    def read_csv(file_path: str, encoding: str = 'utf-8-sig',
                 delimiter: str = ',') -> Tuple[List[Dict[str, Any]], List[str]]:
        """Read CSV file and return list of dictionaries plus the header row"""
        logger = logging.getLogger(__name__)

        try:
            with open(file_path, 'r', newline='', encoding=encoding) as file:
                # Read headers first for validation
                reader = csv.reader(file, delimiter=delimiter)
                headers = [header.strip() for header in next(reader, [])]
                if not headers:
                    raise InputError(f"Input file {file_path} has no header row")

                logger.info(f"CSV Headers: {headers[:10]}")

                # Reset and read with DictReader
                file.seek(0)
                dict_reader = csv.DictReader(file, delimiter=delimiter)
                dict_reader.fieldnames = headers
                next(dict_reader, None)
                data = list(dict_reader)

                logger.info(f"Successfully read {len(data)} records from {file_path}")
                return data, headers

        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise InputError(f"Input file not found: {file_path}")
        except (UnicodeDecodeError, csv.Error) as e:
            logger.error(f"Error reading CSV: {e}")
            raise InputError(f"Cannot read {file_path} as {encoding} CSV: {e}")

    @staticmethod
    def require_columns(headers: List[str], required: List[str], file_path: str = '') -> None:
        """Raise InputError when any required column is absent"""
        missing = [column for column in required if column not in headers]
        if missing:
            raise InputError(
                f"Missing required column(s) {missing} in {file_path or 'input'}; "
                f"found {headers}"
            )

    @staticmethod
    def write_csv(data: List[Dict[str, Any]], output_path: str,
                  fieldnames: Optional[List[str]] = None) -> None:
        """Write data to CSV file"""
        logger = logging.getLogger(__name__)

        if not data:
            logger.warning("No data to write")
            return

        if fieldnames is None:
            fieldnames = list(data[0].keys())

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                writer = csv.DictWriter(file, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(data)

            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except Exception as e:
            logger.error(f"Error writing CSV: {e}")
            raise
