""" Comparison of calculated room with Notice of Assessment figures.

The figures on an NOA are authoritative. When the room derived from the
journal disagrees with them by more than a small tolerance, something
is missing from the journal (or was mis-entered) and the user should
be told.
"""

from collections import namedtuple
import structlog
from roomledger.constants import Constants
from roomledger.errors import InvalidInputError
from roomledger.journal import AccountType, Person, Snapshot
from roomledger.money import to_money
from roomledger.room import relevant_snapshots, room_tracker, validated
from roomledger.settings import Settings
from roomledger.utility import year_start

logger = structlog.get_logger(__name__)

DiscrepancyResult = namedtuple(
    'DiscrepancyResult',
    'has_discrepancy calculated_room noa_room difference low_confidence')


def official_room(snapshot):
    """ The authoritative room figure a snapshot states, if any.

    For RRSPs this is the deduction limit (room for the following
    year); for TFSAs, room as of January 1 of the snapshot's year.
    """
    if snapshot.account_type is AccountType.DEDUCTION_LIMIT:
        return snapshot.official_deduction_limit
    if snapshot.account_type is AccountType.LIFETIME_ROOM:
        return snapshot.official_room_as_of_jan1
    return None


def check_discrepancy(
        person, account_type, tax_year, calculated_room, snapshot, *,
        tolerance=None, settings=None):
    """ Compares calculated room with the room stated in a snapshot.

    The check is skipped (returns `None`, which means neither "matches"
    nor "differs") when there's no snapshot, the snapshot has no room
    figure, the calculated room is unknown, or the account type has no
    NOA figure to compare against.

    Args:
        person (Person): Whose room is being checked.
        account_type (AccountType): Which account type.
        tax_year (int): The snapshot's tax year.
        calculated_room (Money): The room the journal implies for the
            date the snapshot's figure describes (see
            `calculated_room_for_snapshot`).
        snapshot (Snapshot): The authoritative figures. May be `None`.
        tolerance (Money): Differences up to this amount are treated as
            rounding. Optional. Defaults to the
            `discrepancy_tolerance` setting.
        settings (Settings): User settings. Optional.

    Returns:
        DiscrepancyResult: The comparison, or `None` if skipped.
        `difference` is the absolute difference. `low_confidence` is
        True when the snapshot was extracted from a document with a
        confidence below the `extraction_min_confidence` setting.

    Raises:
        InvalidInputError: `snapshot` is for a different person,
            account type or year.
    """
    if settings is None:
        settings = Settings()
    person = Person.convert(person)
    account_type = AccountType.convert(account_type)
    if snapshot is None or calculated_room is None:
        return None
    if snapshot.key != (person, account_type, tax_year):
        raise InvalidInputError(
            'Snapshot ' + repr(snapshot.key) + ' does not match '
            + repr((person, account_type, tax_year)))
    noa_room = official_room(snapshot)
    if noa_room is None:
        return None
    if tolerance is None:
        tolerance = settings.discrepancy_tolerance
    tolerance = to_money(tolerance)

    calculated_room = to_money(calculated_room)
    difference = abs(noa_room - calculated_room)
    low_confidence = (
        snapshot.confidence is not None
        and snapshot.confidence < settings.extraction_min_confidence)
    result = DiscrepancyResult(
        has_discrepancy=difference > tolerance,
        calculated_room=calculated_room,
        noa_room=noa_room,
        difference=difference,
        low_confidence=low_confidence)
    if result.has_discrepancy:
        logger.warning(
            'noa_discrepancy', person=person.value,
            account_type=account_type.value, tax_year=tax_year,
            calculated=str(calculated_room.amount),
            noa=str(noa_room.amount), low_confidence=low_confidence)
    return result


def calculated_room_for_snapshot(
        person, account_type, tax_year, transactions, snapshots=(), *,
        room_start_year=None, constants=None, settings=None):
    """ The room the journal implies on the date an NOA figure describes.

    The snapshot being checked must not feed into the calculation, or
    the comparison would be circular. So only snapshots for earlier
    years are used, except that an RRSP snapshot's earned income for
    `tax_year` is kept (it's what generates the room being checked).

    * RRSP: the deduction limit on the NOA for `tax_year` is room at
      the start of `tax_year + 1`, so room is taken at that January 1,
      before any contribution dated that day.
    * TFSA: room at the start of January 1 of `tax_year`.

    Args:
        person (Person): Whose room is being checked.
        account_type (AccountType): `DEDUCTION_LIMIT` or
            `LIFETIME_ROOM`.
        tax_year (int): The snapshot's tax year.
        transactions (Iterable[Transaction]): The person's pooled
            history for `account_type`.
        snapshots (Iterable[Snapshot]): The person's snapshots.
        room_start_year (int): TFSA only. Optional.
        constants (Constants): Statutory figures. Optional.
        settings (Settings): User settings. Optional.

    Returns:
        Money: The calculated room, or `None` if it can't be determined.

    Raises:
        InvalidInputError: `account_type` has no NOA room figure.
    """
    if constants is None:
        constants = Constants()
    person = Person.convert(person)
    account_type = AccountType.convert(account_type)
    if account_type is AccountType.EDUCATION_GRANT:
        raise InvalidInputError(
            'Education accounts have no NOA room figure to check.')
    transactions = validated(account_type, transactions)
    snapshots = relevant_snapshots(person, account_type, snapshots)

    if account_type is AccountType.DEDUCTION_LIMIT:
        usable = [
            snapshot for snapshot in snapshots
            if snapshot.tax_year < tax_year]
        usable += [
            Snapshot(
                person, account_type, tax_year,
                earned_income=snapshot.earned_income)
            for snapshot in snapshots
            if snapshot.tax_year == tax_year
            and snapshot.earned_income is not None]
        as_of = year_start(tax_year + 1)
    else:
        usable = [
            snapshot for snapshot in snapshots
            if snapshot.tax_year < tax_year]
        as_of = year_start(tax_year)

    tracker = room_tracker(
        account_type,
        [transaction for transaction in transactions
         if transaction.date < as_of],
        usable, end_year=as_of.year, room_start_year=room_start_year,
        constants=constants, settings=settings)
    tracker.advance(as_of, inclusive=False)
    return tracker.remaining_room
