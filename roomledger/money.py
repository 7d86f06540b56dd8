""" A module providing a `Money` class.

`Money` is an extension of the `py-moneyed` `Money` class, with added
methods for rounding, hashing, and comparison with non-`Money` zero
values. Every amount handled by the room calculators is a `Money`.
"""

from decimal import Decimal, ROUND_HALF_UP
from moneyed import Money as PyMoney

CENT = Decimal('0.01')

class Money(PyMoney):
    """ Extends py-moneyed to support Decimal-like functions. """

    # We're only extending Money's magic methods for convenience, not
    # adding new public methods.
    # pylint: disable=too-few-public-methods

    default_currency = 'CAD'

    def __init__(self, amount=Decimal('0.0'), currency=None):
        """ Initializes with application-level default currency.

        Also allows for initializing from another Money object.
        """
        if isinstance(amount, PyMoney):
            super().__init__(amount.amount, amount.currency)
        elif currency is None:
            super().__init__(amount, self.default_currency)
        else:
            super().__init__(amount, currency)

    def __round__(self, ndigits=None):
        """ Rounds to ndigits """
        return Money(round(self.amount, ndigits), self.currency)

    def __hash__(self):
        """ Allows for use in sets and as dict keys. """
        # Equality of Money objects is based on amount and currency.
        return hash(self.amount) + hash(self.currency)

    def __eq__(self, other):
        """ Extends == operator to allow comparison with Decimal.

        This allows for comparison to 0 (or other Decimal-convertible
        values), but not with other Money objects in different
        currencies.
        """
        # NOTE: If the other object is also a Money object, this
        # won't fall back to Decimal, because Decimal doesn't know how
        # to compare itself to Money. This is good, because otherwise
        # we'd be comparing face values of different currencies,
        # yielding incorrect behaviour like JPY1 == USD1.
        if isinstance(other, PyMoney):
            return super().__eq__(other)
        return self.amount == other

    def __lt__(self, other):
        """ Extends < operator to allow comparison with 0 """
        if not isinstance(other, PyMoney) and other == 0:
            return self.amount < 0
        return super().__lt__(other)

    def __gt__(self, other):
        """ Extends > operator to allow comparison with 0 """
        if not isinstance(other, PyMoney) and other == 0:
            return self.amount > 0
        return super().__gt__(other)

def to_money(value, currency=None):
    """ Converts `value` to `Money`, passing `None` through. """
    if value is None:
        return None
    if isinstance(value, Money) and currency is None:
        return value
    if isinstance(value, float):
        # Go through str so that 0.1 doesn't become 0.1000000000000000055
        value = str(value)
    return Money(value, currency)

def money_sum(values, currency=None):
    """ Sums `Money` values, returning `Money(0)` for no values. """
    total = Money(0, currency)
    for value in values:
        total += value
    return total

def round_cents(value):
    """ Rounds a `Money` value to the cent, rounding halves up. """
    return Money(
        value.amount.quantize(CENT, rounding=ROUND_HALF_UP), value.currency)
