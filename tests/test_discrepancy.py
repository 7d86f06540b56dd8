""" Unit tests for NOA comparisons in `roomledger.discrepancy`. """

import unittest
from roomledger.discrepancy import (
    check_discrepancy, calculated_room_for_snapshot)
from roomledger.errors import InvalidInputError
from roomledger.journal import AccountType, Person, Transaction, Snapshot
from roomledger.money import Money


class TestCheckDiscrepancy(unittest.TestCase):
    """ Tests `check_discrepancy`. """

    def setUp(self):
        self.snapshot = Snapshot(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2023,
            official_deduction_limit=12500)

    def check(self, calculated, snapshot=None, **kwargs):
        """ Checks `calculated` against an RRSP snapshot for 2023. """
        if snapshot is None:
            snapshot = self.snapshot
        return check_discrepancy(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2023, calculated,
            snapshot, **kwargs)

    def test_discrepancy(self):
        """ Scenario: 12,000 calculated against 12,500 reported. """
        result = self.check(Money(12000), tolerance=1)
        self.assertTrue(result.has_discrepancy)
        self.assertEqual(result.difference, Money(500))
        self.assertEqual(result.calculated_room, Money(12000))
        self.assertEqual(result.noa_room, Money(12500))
        self.assertFalse(result.low_confidence)

    def test_difference_is_absolute(self):
        """ Over- and under-estimates both give a positive difference. """
        result = self.check(Money(13000))
        self.assertEqual(result.difference, Money(500))

    def test_within_tolerance(self):
        """ Rounding-sized differences aren't discrepancies. """
        result = self.check(Money('12499.50'))
        self.assertFalse(result.has_discrepancy)
        result = self.check(Money(12500))
        self.assertFalse(result.has_discrepancy)
        self.assertEqual(result.difference, Money(0))

    def test_no_snapshot(self):
        """ With no snapshot the check is skipped. """
        self.assertIsNone(check_discrepancy(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2023, Money(1), None))

    def test_no_figure(self):
        """ A snapshot without an official figure is skipped. """
        snapshot = Snapshot(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2023,
            earned_income=60000)
        self.assertIsNone(self.check(Money(1), snapshot))

    def test_unknown_room(self):
        """ Unknown calculated room is skipped. """
        self.assertIsNone(self.check(None))

    def test_mismatched_snapshot(self):
        """ A snapshot for another year is an error. """
        snapshot = Snapshot(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2022,
            official_deduction_limit=1)
        with self.assertRaises(InvalidInputError):
            self.check(Money(1), snapshot)

    def test_low_confidence(self):
        """ Low-confidence extractions are flagged. """
        snapshot = self.snapshot.merge(confidence=30)
        result = self.check(Money(12000), snapshot)
        self.assertTrue(result.low_confidence)

    def test_lifetime(self):
        """ TFSA snapshots compare the January 1 room figure. """
        snapshot = Snapshot(
            Person.SPOUSE, AccountType.LIFETIME_ROOM, 2024,
            official_room_as_of_jan1=30000)
        result = check_discrepancy(
            'spouse', 'TFSA', 2024, Money(30500), snapshot)
        self.assertTrue(result.has_discrepancy)
        self.assertEqual(result.difference, Money(500))


class TestCalculatedRoom(unittest.TestCase):
    """ Tests `calculated_room_for_snapshot`. """

    def test_deduction_limit(self):
        """ RRSP room is taken at January 1 after the tax year, without
        the snapshot's own official figure. """
        snapshots = [
            Snapshot(
                Person.SELF, AccountType.DEDUCTION_LIMIT, 2022,
                official_deduction_limit=10000),
            Snapshot(
                Person.SELF, AccountType.DEDUCTION_LIMIT, 2023,
                earned_income=50000, official_deduction_limit=19000)]
        transactions = [
            Transaction(1, 'contribution', 1000, '2023-05-01'),
            Transaction(1, 'contribution', 4000, '2024-01-01')]
        room = calculated_room_for_snapshot(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2023, transactions,
            snapshots)
        self.assertEqual(room, Money(18000))

    def test_deduction_limit_unknown(self):
        """ Without earlier figures, RRSP room can't be calculated. """
        snapshots = [
            Snapshot(
                Person.SELF, AccountType.DEDUCTION_LIMIT, 2023,
                official_deduction_limit=19000)]
        self.assertIsNone(calculated_room_for_snapshot(
            Person.SELF, AccountType.DEDUCTION_LIMIT, 2023, [], snapshots))

    def test_lifetime(self):
        """ TFSA room is taken at the start of January 1. """
        snapshots = [
            Snapshot(
                Person.SELF, AccountType.LIFETIME_ROOM, 2024,
                official_room_as_of_jan1=30000)]
        transactions = [
            Transaction(1, 'contribution', 1000, '2023-05-01'),
            Transaction(1, 'contribution', 2000, '2024-01-01')]
        room = calculated_room_for_snapshot(
            Person.SELF, AccountType.LIFETIME_ROOM, 2024, transactions,
            snapshots, room_start_year=2020)
        self.assertEqual(room, Money(30500))

    def test_education(self):
        """ Education accounts have no NOA figure. """
        with self.assertRaises(InvalidInputError):
            calculated_room_for_snapshot(
                Person.SELF, AccountType.EDUCATION_GRANT, 2024, [])


if __name__ == '__main__':
    unittest.TextTestRunner().run(
        unittest.TestLoader().loadTestsFromName(__name__))
