""" Calendar helpers shared by the room, penalty and grant calculators.

Room rules are keyed to calendar years and penalties to calendar
months, so everything here works on `datetime.date` values and never
on times of day.
"""

import datetime
from dateutil.parser import parse
from dateutil.relativedelta import relativedelta
from roomledger.errors import InvalidInputError

def to_date(val):
    """ Converts `val` to a `datetime.date`.

    Args:
        val (date, datetime, str): A date, a datetime (the time is
            discarded) or a string in any format `dateutil` can parse
            (e.g. "2024-03-15").

    Returns:
        datetime.date: The converted date.

    Raises:
        InvalidInputError: `val` is not a date-like value.
    """
    if isinstance(val, datetime.datetime):
        return val.date()
    if isinstance(val, datetime.date):
        return val
    if isinstance(val, str):
        try:
            return parse(val).date()
        except (ValueError, OverflowError) as error:
            raise InvalidInputError(
                'Cannot interpret ' + repr(val) + ' as a date.') from error
    raise InvalidInputError(
        'Expected a date, got ' + type(val).__name__ + '.')

def month_end(year, month):
    """ The last calendar day of `month` in `year`. """
    return (
        datetime.date(year, month, 1)
        + relativedelta(months=1)
        - relativedelta(days=1))

def year_start(year):
    """ January 1 of `year`. """
    return datetime.date(year, 1, 1)

def iter_months(start, end):
    """ Yields `(year, month)` for each month from `start` to `end`.

    Both endpoints are inclusive; only their year and month matter.
    Nothing is yielded if `end` precedes `start`.
    """
    current = datetime.date(start.year, start.month, 1)
    last = datetime.date(end.year, end.month, 1)
    while current <= last:
        yield (current.year, current.month)
        current += relativedelta(months=1)

def age_at_year_end(birth_date, year):
    """ A person's age on December 31 of `year`. """
    return relativedelta(datetime.date(year, 12, 31), birth_date).years

def annual_figure(table, year, default=0):
    """ Looks up a year-keyed statutory figure.

    Years after the last published figure reuse the most recent figure;
    years before the first one return `default` (the figure didn't
    exist yet).

    Args:
        table (dict[int, Any]): `{year: value}` pairs.
        year (int): The year to look up.
        default (Any): The value for years preceding the table.

    Returns:
        Any: The figure in effect for `year`.
    """
    if year in table:
        return table[year]
    earlier = [key for key in table if key < year]
    if not earlier:
        return default
    return table[max(earlier)]
