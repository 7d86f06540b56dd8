""" Unit tests for `Money` and the helpers in `roomledger.money`. """

import unittest
from decimal import Decimal
from roomledger.money import Money, money_sum, round_cents, to_money


class TestMoney(unittest.TestCase):
    """ Tests the `Money` class. """

    def test_default_currency(self):
        """ Money defaults to CAD. """
        self.assertEqual(Money(10).currency.code, 'CAD')

    def test_init_from_money(self):
        """ Money can be built from another Money object. """
        money = Money(Money(5, 'USD'))
        self.assertEqual(money.amount, 5)
        self.assertEqual(money.currency.code, 'USD')

    def test_compare_zero(self):
        """ Money compares with plain zero. """
        self.assertTrue(Money(1) > 0)
        self.assertTrue(Money(-1) < 0)
        self.assertEqual(Money(0), 0)

    def test_hash(self):
        """ Equal Money values hash equally. """
        self.assertEqual(hash(Money(3)), hash(Money('3.00')))
        self.assertEqual(len({Money(3), Money('3.00')}), 1)

    def test_round(self):
        """ round() keeps the currency. """
        self.assertEqual(round(Money('1.234'), 2), Money('1.23'))


class TestHelpers(unittest.TestCase):
    """ Tests `to_money`, `money_sum` and `round_cents`. """

    def test_to_money_none(self):
        """ None passes through. """
        self.assertIsNone(to_money(None))

    def test_to_money_float(self):
        """ Floats are converted via their str representation. """
        self.assertEqual(to_money(0.1).amount, Decimal('0.1'))

    def test_to_money_passthrough(self):
        """ Money values are returned unchanged. """
        money = Money(7)
        self.assertIs(to_money(money), money)

    def test_money_sum_empty(self):
        """ Summing nothing gives zero Money. """
        total = money_sum([])
        self.assertIsInstance(total, Money)
        self.assertEqual(total, 0)

    def test_money_sum(self):
        """ Sums several values. """
        self.assertEqual(money_sum([Money(1), Money(2), Money(3)]), Money(6))

    def test_round_cents_half_up(self):
        """ Halves round up. """
        self.assertEqual(round_cents(Money('1.005')), Money('1.01'))
        self.assertEqual(round_cents(Money('20.0000')), Money('20.00'))


if __name__ == '__main__':
    unittest.TextTestRunner().run(
        unittest.TestLoader().loadTestsFromName(__name__))
