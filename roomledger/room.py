""" Contribution room for registered accounts.

Room is never stored. It is re-derived on every call by folding over an
account's transaction history, year by year, with the rules for the
account's type:

* Deduction-limit accounts (RRSPs) are anchored to the deduction limit
  stated on the latest Notice of Assessment and grow by a share of each
  year's earned income.
* Lifetime-room accounts (TFSAs) accrue a fixed amount every January 1
  and get withdrawals back on the January 1 after they're made.
* Education accounts (RESPs) have a single lifetime limit and attract
  grants (see `roomledger.cesg`).

The year-by-year fold is done by `RoomTracker` objects, which step
through years with `next_year` in the same way for a one-off room
calculation and for the month-by-month penalty schedule.
"""

import datetime
from collections import deque, namedtuple
from dataclasses import dataclass, field
from operator import attrgetter
from typing import List, Optional
import structlog
from roomledger.cesg import CESGSummary, compute_cesg
from roomledger.constants import Constants
from roomledger.errors import InvalidInputError
from roomledger.journal import (
    AccountType, TransactionKind, validate_transaction)
from roomledger.money import Money, money_sum, round_cents, to_money
from roomledger.settings import Settings
from roomledger.utility import annual_figure, to_date

logger = structlog.get_logger(__name__)


@dataclass
class RoomState:
    """ An account's contribution room as of a date.

    Fields that don't apply to the account's type are `None`.

    Attributes:
        account_type (AccountType): Which rules produced this state.
        as_of (date): The date the state describes.
        total_contributions (Money): All contributions to date. For
            pooled room (e.g. several RRSPs with one contributor) this
            covers every pooled account.
        total_withdrawals (Money): All withdrawals to date.
        remaining_room (Money): Room left, negative when over-contributed.
            `None` when it can't be determined (an RRSP with no NOA or
            earned income on file).
        over_contribution_amount (Money): `max(0, -remaining_room)`, or
            `None` when room is unknown.
        within_buffer (bool): True if there's an excess, but no more than
            the buffer for the account type.
        incomplete (bool): True if some authoritative figure needed to
            determine room is missing.
        missing_years (list[int]): Years whose room couldn't be
            determined from snapshots.
        total_room (Money): TFSA. Room accrued to date.
        restored_withdrawals (Money): TFSA. Withdrawals from earlier
            years, which have been added back to room.
        current_year_withdrawals (Money): TFSA. This year's
            withdrawals, which are added back next January 1.
        deduction_limit (Money): RRSP. Room at the start of the year.
        unused_room (Money): RRSP. `max(0, remaining_room)`.
        lifetime_limit (Money): RESP. The lifetime contribution limit.
        total_grants (Money): RESP. Grants recorded in the journal.
        cesg (CESGSummary): RESP. The beneficiary's grant position.
    """
    account_type: AccountType
    as_of: datetime.date
    total_contributions: Money
    total_withdrawals: Money
    remaining_room: Optional[Money]
    over_contribution_amount: Optional[Money]
    within_buffer: bool = False
    incomplete: bool = False
    missing_years: List[int] = field(default_factory=list)
    total_room: Optional[Money] = None
    restored_withdrawals: Optional[Money] = None
    current_year_withdrawals: Optional[Money] = None
    deduction_limit: Optional[Money] = None
    unused_room: Optional[Money] = None
    lifetime_limit: Optional[Money] = None
    total_grants: Optional[Money] = None
    cesg: Optional[CESGSummary] = None

    @property
    def room_known(self):
        """ Whether `remaining_room` could be determined. """
        return self.remaining_room is not None


def sort_transactions(transactions):
    """ Sorts transactions by date, keeping same-day entries in order. """
    return sorted(transactions, key=attrgetter('date'))


def account_type_of(account):
    """ The `AccountType` of `account`.

    Raises:
        InvalidInputError: The account's type is unknown.
    """
    return AccountType.convert(getattr(account, 'account_type', None))


def validated(account_type, transactions):
    """ Re-checks journal rules and returns transactions sorted by date.

    Raises:
        InvalidInputError: A transaction breaks a rule for
            `account_type`.
    """
    transactions = list(transactions)
    for transaction in transactions:
        validate_transaction(account_type, transaction)
    return sort_transactions(transactions)


def relevant_snapshots(person, account_type, snapshots):
    """ The snapshots for `person` and `account_type`, by tax year. """
    return sorted(
        (
            snapshot for snapshot in snapshots
            if snapshot.person is person
            and snapshot.account_type is account_type),
        key=attrgetter('tax_year'))


def room_start_year_of(account, room_start_year=None):
    """ `room_start_year` if given, else the account's own. """
    if room_start_year is not None:
        return room_start_year
    return getattr(account, 'room_start_year', None)


class RoomTracker(object):
    """ Folds a transaction history into contribution room, year by year.

    A tracker starts on January 1 of `first_year` and is moved forward
    with `advance`, which applies transactions in date order and calls
    `next_year` whenever it crosses into a new year. Subclasses provide
    the rules by overriding `start_year` (what happens on January 1),
    `end_year` (what happens on December 31) and `apply` (what a single
    transaction does).

    Args:
        transactions (Iterable[Transaction]): The history to fold.
            Needn't be sorted.
        first_year (int): The year to start in. Must not be later than
            the year of any transaction.
        constants (Constants): Statutory figures.
        buffer (Money): Excess up to this amount is "within buffer".
            Optional. Defaults to 0.

    Attributes:
        this_year (int): The year the tracker has reached.
        total_contributions (Money): Contributions applied so far.
        total_withdrawals (Money): Withdrawals applied so far.
    """

    def __init__(self, transactions, first_year, *, constants, buffer=None):
        self.constants = constants
        self.buffer = Money(0) if buffer is None else to_money(buffer)
        self._pending = deque(sort_transactions(transactions))
        self.total_contributions = Money(0)
        self.total_withdrawals = Money(0)
        self.this_year = first_year
        self.start_year(first_year)

    @property
    def remaining_room(self):
        """ Room left, or `None` if unknown. """
        raise NotImplementedError(
            'RoomTracker: remaining_room is not implemented. '
            + 'Subclasses must override this property.')

    @property
    def excess(self):
        """ The over-contribution, `max(0, -remaining_room)`. """
        room = self.remaining_room
        if room is None:
            return None
        return max(Money(0), -room)

    @property
    def within_buffer(self):
        """ Whether there's an excess no larger than `buffer`. """
        excess = self.excess
        return excess is not None and excess > 0 and excess <= self.buffer

    @property
    def penalized_excess(self):
        """ The excess on which penalties accrue. """
        return self.excess

    def start_year(self, year):
        """ Applies the rules for January 1 of `year`. """

    def end_year(self):
        """ Applies the rules for December 31 of `this_year`. """

    def apply(self, transaction):
        """ Applies the effect of `transaction` on room. """

    def next_year(self):
        """ Closes out this year and opens the next. """
        self.end_year()
        self.this_year += 1
        self.start_year(self.this_year)

    def add_transaction(self, transaction):
        """ Records a transaction dated in `this_year`. """
        if transaction.kind is TransactionKind.CONTRIBUTION:
            self.total_contributions += transaction.amount
        elif transaction.kind is TransactionKind.WITHDRAWAL:
            self.total_withdrawals += transaction.amount
        self.apply(transaction)

    def advance(self, end_date, inclusive=True):
        """ Applies every transaction up to `end_date`.

        Afterwards `this_year` is `end_date.year`, so the January 1 rules
        of that year have been applied even if no transaction falls in
        it. A tracker never moves backwards; dates before the last one
        advanced to just apply nothing.

        Args:
            end_date (date): The last date to apply.
            inclusive (bool): Whether transactions dated `end_date`
                itself are applied. Pass False with a January 1 date to
                get the state at the very start of a year.
        """
        while self._pending:
            date = self._pending[0].date
            if date > end_date or (date == end_date and not inclusive):
                break
            transaction = self._pending.popleft()
            while self.this_year < transaction.tax_year:
                self.next_year()
            self.add_transaction(transaction)
        while self.this_year < end_date.year:
            self.next_year()


class LifetimeRoomTracker(RoomTracker):
    """ Lifetime room (TFSA) rules.

    Room accrues by the annual limit on January 1 of each year from
    `room_start_year`. Contributions use room immediately; withdrawals
    are given back on January 1 of the following year. An official
    room figure for January 1 of some year re-anchors room to that
    figure.

    Args:
        room_start_year (int): The first year in which room accrues.
        anchors (dict[int, Money]): Official room as of January 1, by
            year. Optional.

    Attributes:
        total_room (Money): Room accrued so far (adjusted by anchors).
        restored_withdrawals (Money): Withdrawals from earlier years.
        current_year_withdrawals (Money): Withdrawals this year.
        excess_withdrawn (Money): The part of this year's withdrawals
            that paid down an excess. It stops the excess being
            penalized but doesn't give room back until January 1.
    """

    def __init__(
            self, transactions, first_year, *, room_start_year,
            anchors=None, **kwargs):
        # These are needed by `start_year`, which the superclass init
        # calls, so set them first:
        self.room_start_year = room_start_year
        self.anchors = dict(anchors or {})
        self.total_room = Money(0)
        self.restored_withdrawals = Money(0)
        self.current_year_withdrawals = Money(0)
        self.excess_withdrawn = Money(0)
        super().__init__(transactions, first_year, **kwargs)

    @property
    def remaining_room(self):
        return (
            self.total_room - self.total_contributions
            + self.restored_withdrawals)

    @property
    def penalized_excess(self):
        """ The excess not yet paid down by a withdrawal this year. """
        return max(Money(0), self.excess - self.excess_withdrawn)

    def start_year(self, year):
        if year >= self.room_start_year:
            self.total_room += to_money(
                annual_figure(self.constants.TFSA_ANNUAL_LIMITS, year))
        if year in self.anchors:
            # Shift total room so that remaining room equals the
            # official figure:
            self.total_room += self.anchors[year] - self.remaining_room

    def end_year(self):
        self.restored_withdrawals += self.current_year_withdrawals
        self.current_year_withdrawals = Money(0)
        self.excess_withdrawn = Money(0)

    def apply(self, transaction):
        if transaction.kind is TransactionKind.WITHDRAWAL:
            # Only the part of a withdrawal that covers an outstanding
            # excess pays it down:
            self.excess_withdrawn += min(
                transaction.amount, self.penalized_excess)
            self.current_year_withdrawals += transaction.amount


class DeductionRoomTracker(RoomTracker):
    """ Deduction limit (RRSP) rules.

    The NOA for tax year X states the room available in X + 1. So, on
    January 1 of each year, room is re-anchored to the previous year's
    official deduction limit if there is one. Otherwise room grows by
    the accrual rate times the previous year's earned income (capped by
    the year's maximum) or, if that's unknown too, is carried forward
    and the year is noted in `missing_years`. Contributions reduce room.

    With no official limit on file at all, room is built up from earned
    income alone, starting from nothing; `limit_known` stays False.

    Args:
        snapshots (Iterable[Snapshot]): The contributor's RRSP
            snapshots.

    Attributes:
        deduction_limit (Money): Room at the start of `this_year`.
        anchor_year (int): The year of the latest official limit
            applied, or `None`.
        missing_years (list[int]): Years for which room was carried
            forward because no figures were available.
    """

    def __init__(self, transactions, first_year, *, snapshots, **kwargs):
        self.snapshots = {snapshot.tax_year: snapshot for snapshot in snapshots}
        self._room = None
        self.deduction_limit = None
        self.anchor_year = None
        self.missing_years = []
        super().__init__(transactions, first_year, **kwargs)

    @property
    def remaining_room(self):
        return self._room

    @property
    def limit_known(self):
        """ Whether room rests on an official deduction limit. """
        return self.anchor_year is not None

    @property
    def penalized_excess(self):
        """ The excess beyond the buffer. """
        excess = self.excess
        if excess is None:
            return None
        return max(Money(0), excess - self.buffer)

    def accrual(self, year, earned_income):
        """ New room for `year` from the prior year's earned income. """
        maximum = to_money(
            annual_figure(self.constants.RRSP_ANNUAL_LIMITS, year))
        return min(
            round_cents(earned_income * self.constants.RRSP_ACCRUAL_RATE),
            maximum)

    def start_year(self, year):
        prior = self.snapshots.get(year - 1)
        if prior is not None and prior.official_deduction_limit is not None:
            self._room = prior.official_deduction_limit
            self.anchor_year = year
        elif prior is not None and prior.earned_income is not None:
            if self._room is None:
                # No NOA yet: build room up from earned income alone.
                self._room = Money(0) - self.total_contributions
            self._room += self.accrual(year, prior.earned_income)
        elif self._room is not None:
            self.missing_years.append(year)
        self.deduction_limit = self._room

    def apply(self, transaction):
        if (
                self._room is not None and
                transaction.kind is TransactionKind.CONTRIBUTION):
            self._room -= transaction.amount


def room_tracker(
        account_type, transactions, snapshots=(), *, end_year,
        room_start_year=None, constants=None, settings=None):
    """ Builds the `RoomTracker` for an account type.

    The tracker starts early enough to see every transaction and every
    snapshot that can affect room by `end_year`.

    Args:
        account_type (AccountType): `DEDUCTION_LIMIT` or
            `LIFETIME_ROOM`.
        transactions (Iterable[Transaction]): The (pooled) history.
        snapshots (Iterable[Snapshot]): The contributor's snapshots for
            `account_type`.
        end_year (int): The last year the tracker will be advanced to.
        room_start_year (int): TFSA only. Optional; defaults to the
            first year TFSAs existed.
        constants (Constants): Statutory figures. Optional.
        settings (Settings): User settings. Optional.

    Raises:
        InvalidInputError: `account_type` has no yearly room (RESP).
    """
    if constants is None:
        constants = Constants()
    if settings is None:
        settings = Settings()
    transactions = list(transactions)
    snapshots = list(snapshots)
    years = [transaction.tax_year for transaction in transactions]

    if account_type is AccountType.DEDUCTION_LIMIT:
        # A snapshot for year X first affects room in X + 1:
        years += [snapshot.tax_year + 1 for snapshot in snapshots]
        first_year = min(years + [end_year])
        return DeductionRoomTracker(
            transactions, first_year, snapshots=snapshots,
            constants=constants,
            buffer=constants.RRSP_OVERCONTRIBUTION_BUFFER)
    elif account_type is AccountType.LIFETIME_ROOM:
        if room_start_year is None:
            room_start_year = constants.TFSA_FIRST_YEAR
        anchors = {
            snapshot.tax_year: snapshot.official_room_as_of_jan1
            for snapshot in snapshots
            if snapshot.official_room_as_of_jan1 is not None}
        first_year = min(years + list(anchors) + [room_start_year, end_year])
        return LifetimeRoomTracker(
            transactions, first_year, room_start_year=room_start_year,
            anchors=anchors, constants=constants,
            buffer=settings.tfsa_overcontribution_buffer)
    raise InvalidInputError(
        account_type.value + ' accounts have no yearly room to track.')


def compute_room(
        account, transactions, snapshots=(), *, on_date=None,
        beneficiary=None, room_start_year=None,
        constants=None, settings=None):
    """ Derives an account's contribution room as of a date.

    This is a pure function: the same arguments always produce the same
    `RoomState`, and nothing is written anywhere.

    Args:
        account (Account): The account. Its `contributor` selects the
            relevant snapshots; for TFSAs its `room_start_year` sets
            when room starts accruing.
        transactions (Iterable[Transaction]): The account's history, in
            any order. Pass the pooled history of every account sharing
            the room (all of a contributor's RRSPs, all of a
            beneficiary's RESPs) to get room for the pool.
        snapshots (Iterable[Snapshot]): Authoritative yearly figures.
            Snapshots for other people or account types are ignored.
        on_date (date): The date to compute room as of. Transactions
            after it are ignored. Optional. Defaults to today.
        beneficiary (Beneficiary): RESP only. Used for CESG eligibility.
        room_start_year (int): TFSA only. The first year room accrues
            for the pool, overriding the account's own
            `room_start_year`. Optional.
        constants (Constants): Statutory figures. Optional.
        settings (Settings): User settings. Optional.

    Returns:
        RoomState: The account's room.

    Raises:
        InvalidInputError: The account type is unknown, or a transaction
            breaks a journal rule.
    """
    on_date = datetime.date.today() if on_date is None else to_date(on_date)
    if constants is None:
        constants = Constants()
    if settings is None:
        settings = Settings()
    account_type = account_type_of(account)
    transactions = validated(account_type, transactions)

    if account_type is AccountType.EDUCATION_GRANT:
        return _education_room(
            transactions, beneficiary, on_date, constants)

    snapshots = relevant_snapshots(
        account.contributor, account_type, snapshots)
    tracker = room_tracker(
        account_type, transactions, snapshots, end_year=on_date.year,
        room_start_year=room_start_year_of(account, room_start_year),
        constants=constants, settings=settings)
    tracker.advance(on_date)

    state = RoomState(
        account_type=account_type,
        as_of=on_date,
        total_contributions=tracker.total_contributions,
        total_withdrawals=tracker.total_withdrawals,
        remaining_room=tracker.remaining_room,
        over_contribution_amount=tracker.excess,
        within_buffer=tracker.within_buffer)

    if account_type is AccountType.DEDUCTION_LIMIT:
        state.deduction_limit = tracker.deduction_limit
        state.missing_years = list(tracker.missing_years)
        state.incomplete = not tracker.limit_known or bool(
            tracker.missing_years)
        if state.room_known:
            state.unused_room = max(Money(0), state.remaining_room)
        if state.incomplete:
            logger.warning(
                'deduction_room_incomplete',
                account_id=getattr(account, 'id', None),
                room_known=state.room_known,
                missing_years=state.missing_years)
    else:
        state.total_room = tracker.total_room
        state.restored_withdrawals = tracker.restored_withdrawals
        state.current_year_withdrawals = tracker.current_year_withdrawals
    return state


def _education_room(transactions, beneficiary, on_date, constants):
    """ RESP room: a lifetime limit, untouched by grants. """
    transactions = [
        transaction for transaction in transactions
        if transaction.date <= on_date]

    def total(kind):
        return money_sum(
            transaction.amount for transaction in transactions
            if transaction.kind is kind)

    contributions = total(TransactionKind.CONTRIBUTION)
    lifetime_limit = to_money(constants.RESP_LIFETIME_LIMIT)
    remaining = lifetime_limit - contributions
    return RoomState(
        account_type=AccountType.EDUCATION_GRANT,
        as_of=on_date,
        total_contributions=contributions,
        total_withdrawals=total(TransactionKind.WITHDRAWAL),
        remaining_room=remaining,
        over_contribution_amount=max(Money(0), -remaining),
        lifetime_limit=lifetime_limit,
        total_grants=total(TransactionKind.GRANT),
        cesg=compute_cesg(
            beneficiary, transactions, on_date=on_date,
            constants=constants))


SpousalAttribution = namedtuple(
    'SpousalAttribution',
    'attributed_to_contributor attributed_to_owner total_withdrawal '
    'contributions_in_window')


def compute_spousal_attribution(
        withdrawal_date, withdrawal_amount, contributions, *,
        constants=None):
    """ Splits a spousal RRSP withdrawal between contributor and owner.

    A withdrawal is taxed in the contributor's hands, up to the amount
    the contributor put into the account in the withdrawal year and the
    preceding years of the attribution window. The rest is the owner's.

    Args:
        withdrawal_date (date): When the withdrawal was made.
        withdrawal_amount (Money): How much was withdrawn.
        contributions (Iterable[Transaction]): Transactions on the
            spousal account. Only contributions are considered.
        constants (Constants): Statutory figures. Optional.

    Returns:
        SpousalAttribution: The split, along with the contributions in
        the window.
    """
    if constants is None:
        constants = Constants()
    withdrawal_year = to_date(withdrawal_date).year
    withdrawal_amount = to_money(withdrawal_amount)
    window_start = withdrawal_year - (constants.SPOUSAL_ATTRIBUTION_YEARS - 1)
    in_window = money_sum(
        transaction.amount for transaction in contributions
        if transaction.kind is TransactionKind.CONTRIBUTION
        and window_start <= transaction.tax_year <= withdrawal_year)
    to_contributor = min(withdrawal_amount, in_window)
    return SpousalAttribution(
        attributed_to_contributor=to_contributor,
        attributed_to_owner=withdrawal_amount - to_contributor,
        total_withdrawal=withdrawal_amount,
        contributions_in_window=in_window)
