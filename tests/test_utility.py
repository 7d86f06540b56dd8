""" Unit tests for the calendar helpers in `roomledger.utility`. """

import unittest
import datetime
from roomledger.errors import InvalidInputError
from roomledger.utility import (
    to_date, month_end, year_start, iter_months, age_at_year_end,
    annual_figure)


class TestToDate(unittest.TestCase):
    """ Tests `to_date`. """

    def test_date(self):
        """ Dates are returned as-is. """
        date = datetime.date(2024, 3, 15)
        self.assertEqual(to_date(date), date)

    def test_datetime(self):
        """ The time of day is dropped. """
        self.assertEqual(
            to_date(datetime.datetime(2024, 3, 15, 13, 30)),
            datetime.date(2024, 3, 15))

    def test_str(self):
        """ Strings are parsed. """
        self.assertEqual(to_date('2024-03-15'), datetime.date(2024, 3, 15))

    def test_bad_str(self):
        """ Unparseable strings raise InvalidInputError. """
        with self.assertRaises(InvalidInputError):
            to_date('not a date')

    def test_bad_type(self):
        """ Non-date values raise InvalidInputError. """
        with self.assertRaises(InvalidInputError):
            to_date(20240315)


class TestCalendar(unittest.TestCase):
    """ Tests the month and year helpers. """

    def test_month_end(self):
        """ Month ends account for month length and leap years. """
        self.assertEqual(month_end(2024, 2), datetime.date(2024, 2, 29))
        self.assertEqual(month_end(2023, 2), datetime.date(2023, 2, 28))
        self.assertEqual(month_end(2023, 12), datetime.date(2023, 12, 31))

    def test_year_start(self):
        """ January 1. """
        self.assertEqual(year_start(2025), datetime.date(2025, 1, 1))

    def test_iter_months(self):
        """ Both endpoints are included, across a year boundary. """
        months = list(iter_months(
            datetime.date(2023, 11, 5), datetime.date(2024, 2, 1)))
        self.assertEqual(
            months, [(2023, 11), (2023, 12), (2024, 1), (2024, 2)])

    def test_iter_months_reversed(self):
        """ Nothing is yielded if the end precedes the start. """
        self.assertEqual(
            list(iter_months(
                datetime.date(2024, 2, 1), datetime.date(2023, 11, 5))),
            [])

    def test_age_at_year_end(self):
        """ Age on December 31. """
        birth = datetime.date(2010, 6, 1)
        self.assertEqual(age_at_year_end(birth, 2027), 17)
        self.assertEqual(age_at_year_end(birth, 2010), 0)


class TestAnnualFigure(unittest.TestCase):
    """ Tests `annual_figure`. """

    def setUp(self):
        self.table = {2009: 5000, 2013: 5500}

    def test_exact(self):
        """ A published year returns its figure. """
        self.assertEqual(annual_figure(self.table, 2013), 5500)

    def test_gap(self):
        """ An unpublished year uses the last earlier figure. """
        self.assertEqual(annual_figure(self.table, 2011), 5000)

    def test_after(self):
        """ Years after the table reuse the latest figure. """
        self.assertEqual(annual_figure(self.table, 2030), 5500)

    def test_before(self):
        """ Years before the table get the default. """
        self.assertEqual(annual_figure(self.table, 2008), 0)
        self.assertIsNone(annual_figure(self.table, 2008, default=None))


if __name__ == '__main__':
    unittest.TextTestRunner().run(
        unittest.TestLoader().loadTestsFromName(__name__))
