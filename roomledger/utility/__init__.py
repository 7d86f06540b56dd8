""" A package with various self-contained methods and classes.

These are used throughout the application and provide ways to read
configuration values from JSON files and to work with calendar years
and months.
"""

# See roomledger.__init__.py for version and licensing info.

__all__ = ['value_reader', 'dates']

from roomledger.utility.value_reader import (
    ValueReader, ValueReaderAttribute, resolve_data_path)
from roomledger.utility.dates import (
    to_date, month_end, year_start, iter_months, age_at_year_end,
    annual_figure)
