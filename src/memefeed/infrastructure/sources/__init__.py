from .csv_source import CsvUrlSource
from .google_sheets import GoogleSheetsUrlSource

__all__ = ["CsvUrlSource", "GoogleSheetsUrlSource"]
