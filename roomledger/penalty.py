""" Monthly over-contribution penalties.

Excess contributions to an RRSP or TFSA attract a penalty of a fixed
rate for every month in which an excess exists at the month's end. This
module walks an account's history one month at a time and produces the
resulting schedule.
"""

import datetime
from collections import namedtuple
import structlog
from roomledger.constants import Constants
from roomledger.errors import InvalidInputError
from roomledger.journal import AccountType
from roomledger.money import money_sum, round_cents
from roomledger.room import (
    account_type_of, relevant_snapshots, room_start_year_of, room_tracker,
    validated)
from roomledger.settings import Settings
from roomledger.utility import iter_months, month_end, to_date

logger = structlog.get_logger(__name__)

MonthlyPenalty = namedtuple(
    'MonthlyPenalty', 'year month excess_amount penalty')


class PenaltySchedule(list):
    """ A list of `MonthlyPenalty` entries, in chronological order.

    Attributes:
        skipped_years (list[int]): Years left out of the schedule
            because room couldn't be determined for them (an RRSP with
            no official deduction limit on file). Penalties for those
            years aren't known, so `total_penalty` may understate them.
    """

    def __init__(self, entries=(), skipped_years=None):
        super().__init__(entries)
        self.skipped_years = list(skipped_years or [])

    @property
    def total_penalty(self):
        """ The sum of every month's penalty. """
        return money_sum(entry.penalty for entry in self)


def compute_penalties(
        account, transactions, snapshots=(), *, on_date=None,
        room_start_year=None, constants=None, settings=None):
    """ Builds the month-by-month penalty schedule for an account.

    Starting in the month of the earliest transaction and ending in the
    month of `on_date`, room is evaluated as of each month's last day
    (or `on_date` itself, for the final month). A month with an excess
    gets an entry with a penalty of the monthly rate times the excess.
    For RRSPs the lifetime buffer is deducted from the excess first.
    For TFSAs a withdrawal made while there's an excess pays it down,
    even though the room itself only comes back next January 1.

    Months without an excess have no entry; an account that has never
    been over-contributed has an empty schedule.

    Args:
        account (Account): A deduction-limit or lifetime-room account.
        transactions (Iterable[Transaction]): The pooled history for
            the account's room (see `roomledger.room.compute_room`).
        snapshots (Iterable[Snapshot]): Authoritative yearly figures.
        on_date (date): The last date to consider. Optional. Defaults
            to today.
        room_start_year (int): TFSA only. Overrides the account's own
            `room_start_year`. Optional.
        constants (Constants): Statutory figures. Optional.
        settings (Settings): User settings. Optional.

    Returns:
        PenaltySchedule: The months with penalties.

    Raises:
        InvalidInputError: The account is an education account, which
            has no monthly penalty, or a transaction breaks a journal
            rule.
    """
    on_date = datetime.date.today() if on_date is None else to_date(on_date)
    if constants is None:
        constants = Constants()
    if settings is None:
        settings = Settings()
    account_type = account_type_of(account)
    if account_type is AccountType.EDUCATION_GRANT:
        raise InvalidInputError(
            'Penalties are not computed for education accounts.')
    transactions = validated(account_type, transactions)
    schedule = PenaltySchedule()
    if not transactions:
        return schedule

    tracker = room_tracker(
        account_type, transactions,
        relevant_snapshots(account.contributor, account_type, snapshots),
        end_year=on_date.year,
        room_start_year=room_start_year_of(account, room_start_year),
        constants=constants, settings=settings)
    rate = constants.OVERCONTRIBUTION_PENALTY_RATE

    for (year, month) in iter_months(transactions[0].date, on_date):
        tracker.advance(min(month_end(year, month), on_date))
        if (
                account_type is AccountType.DEDUCTION_LIMIT
                and not tracker.limit_known):
            if year not in schedule.skipped_years:
                schedule.skipped_years.append(year)
                logger.warning(
                    'penalty_year_skipped', account_id=account.id,
                    year=year, reason='no official deduction limit')
            continue
        excess = tracker.penalized_excess
        if excess is not None and excess > 0:
            schedule.append(MonthlyPenalty(
                year=year, month=month, excess_amount=excess,
                penalty=round_cents(excess * rate)))

    if schedule:
        logger.info(
            'overcontribution_penalties', account_id=account.id,
            months=len(schedule),
            total=str(schedule.total_penalty.amount))
    return schedule
