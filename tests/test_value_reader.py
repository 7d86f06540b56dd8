""" Unit tests for `ValueReader`, `Constants` and `Settings`. """

import unittest
import os
import json
import tempfile
from decimal import Decimal
from roomledger.utility.value_reader import (
    ValueReader, ValueReaderAttribute, resolve_data_path)
from roomledger.constants import Constants
from roomledger.money import to_money
from roomledger.settings import Settings


class TestValueReader(unittest.TestCase):
    """ Tests the `ValueReader` class. """

    def write(self, vals):
        """ Convenience method for writing to the testing JSON file """
        with open(self.filename, 'w', encoding="utf-8") as file:
            json.dump(vals, file, indent=2, sort_keys=True)

    def setUp(self):
        """ Use a temporary file for testing: """
        handle, self.filename = tempfile.mkstemp(suffix='.json')
        os.close(handle)
        self.values = {
            'dict': {'key': 'val'},
            'float': 0.5,
            'int': 1,
            'str': 'str',
            'list': ['a', 'b', 'c'],
            'limits': {'2009': 5000, '2010': 5000},
        }
        self.write(self.values)

    def tearDown(self):
        """ Remove file created during testing. """
        os.remove(self.filename)

    def test_resolve_relative(self):
        """ Relative paths resolve into the package's data dir. """
        path = resolve_data_path('constants.json')
        self.assertTrue(os.path.isabs(path))
        self.assertTrue(os.path.exists(path))

    def test_resolve_absolute(self):
        """ Absolute paths are left alone. """
        self.assertEqual(resolve_data_path(self.filename), self.filename)

    def test_init_read(self):
        """ Test reading a file on init. """
        reader = ValueReader(self.filename)
        self.assertEqual(reader.values['str'], 'str')
        self.assertEqual(reader.values['list'], ['a', 'b', 'c'])

    def test_decimal_read(self):
        """ Floats are read as Decimal. """
        reader = ValueReader(self.filename)
        self.assertEqual(reader.values['float'], Decimal('0.5'))
        self.assertIsInstance(reader.values['float'], Decimal)

    def test_year_keys(self):
        """ Numeric str keys become ints. """
        reader = ValueReader(self.filename)
        self.assertEqual(reader.values['limits'], {2009: 5000, 2010: 5000})

    def test_no_numeric_convert(self):
        """ Keys are left as str when conversion is off. """
        reader = ValueReader(self.filename, numeric_convert=False)
        self.assertIn('2009', reader.values['limits'])

    def test_not_a_dict(self):
        """ A file that isn't a JSON object raises TypeError. """
        self.write([1, 2, 3])
        with self.assertRaises(TypeError):
            ValueReader(self.filename)

    def test_overrides(self):
        """ Keyword overrides win over the file. """
        reader = ValueReader(self.filename, int=2, float=0.25)
        self.assertEqual(reader.values['int'], 2)
        self.assertEqual(reader.values['float'], Decimal('0.25'))

    def test_attribute(self):
        """ Test ValueReaderAttribute descriptor """
        class TestReader(ValueReader):
            """ A ValueReader with one ValueReaderAttribute attr. """
            test_attr = ValueReaderAttribute()

        reader = TestReader()
        reader.test_attr = "new value"
        self.assertEqual(reader.test_attr, "new value")
        self.assertEqual(reader.values['test_attr'], "new value")

    def test_attribute_default(self):
        """ Defaults are used, and converted, until a value is set. """
        class TestReader(ValueReader):
            """ A ValueReader with one ValueReaderAttribute attr. """
            test_attr = ValueReaderAttribute(0.1)

        reader = TestReader()
        self.assertEqual(reader.test_attr, Decimal('0.1'))
        reader.test_attr = "value"
        self.assertEqual(reader.test_attr, "value")
        del reader.test_attr
        self.assertEqual(reader.test_attr, Decimal('0.1'))

    def test_attribute_no_default(self):
        """ Test ValueReaderAttribute with use_defaults=False. """
        class TestReader(ValueReader):
            """ A ValueReader with one ValueReaderAttribute attr. """
            test_attr = ValueReaderAttribute("default")

        reader = TestReader(use_defaults=False)
        with self.assertRaises(KeyError):
            _ = reader.test_attr


class TestConstants(unittest.TestCase):
    """ Tests the packaged constants file and defaults. """

    def test_file(self):
        """ Values are read from data/constants.json. """
        constants = Constants()
        self.assertEqual(constants.TFSA_ANNUAL_LIMITS[2015], 10000)
        self.assertEqual(constants.TFSA_ANNUAL_LIMITS[2024], 7000)
        self.assertEqual(constants.RRSP_ACCRUAL_RATE, Decimal('0.18'))
        self.assertEqual(
            constants.OVERCONTRIBUTION_PENALTY_RATE, Decimal('0.01'))

    def test_defaults_match_file(self):
        """ The class defaults agree with the packaged file. """
        from_file = Constants()
        defaults = Constants(filename=self.empty_file())
        for name in (
                'TFSA_ANNUAL_LIMITS', 'RRSP_ANNUAL_LIMITS',
                'RRSP_ACCRUAL_RATE', 'CESG_MATCH_RATE', 'CESG_LIFETIME_MAX',
                'RESP_LIFETIME_LIMIT', 'RRSP_OVERCONTRIBUTION_BUFFER'):
            self.assertEqual(
                getattr(from_file, name), getattr(defaults, name), name)

    def empty_file(self):
        """ Writes an empty JSON object to a temp file. """
        handle, filename = tempfile.mkstemp(suffix='.json')
        with os.fdopen(handle, 'w', encoding='utf-8') as file:
            file.write('{}')
        self.addCleanup(os.remove, filename)
        return filename

    def test_override(self):
        """ Keyword arguments override individual constants. """
        constants = Constants(CESG_ANNUAL_MAX=400)
        self.assertEqual(constants.CESG_ANNUAL_MAX, 400)
        self.assertEqual(constants.CESG_LIFETIME_MAX, 7200)


class TestSettings(unittest.TestCase):
    """ Tests the packaged settings. """

    def test_file(self):
        """ Values are read from data/settings.json. """
        settings = Settings()
        self.assertEqual(settings.discrepancy_tolerance, 1)
        self.assertEqual(settings.tfsa_overcontribution_buffer, 0)
        self.assertEqual(settings.extraction_min_confidence, 50)

    def test_no_currency(self):
        """ Currency isn't a setting: amounts are always CAD. """
        self.assertFalse(hasattr(Settings(), 'currency'))
        self.assertEqual(to_money(100).currency.code, 'CAD')


if __name__ == '__main__':
    unittest.TextTestRunner().run(
        unittest.TestLoader().loadTestsFromName(__name__))
