""" Canada Education Savings Grant (CESG) entitlement for a beneficiary.

The grant matches a share of each year's contributions to all of a
beneficiary's education accounts. Every year the beneficiary is
eligible adds a fixed amount of grant room; room that isn't used is
carried forward, but no more than a fixed ceiling can be paid in any one
year, and there is a lifetime maximum.

Because each year's cap depends on the room left over from all earlier
years, years are processed strictly in chronological order.
"""

import datetime
from dataclasses import dataclass, field
from typing import Dict, Optional
import structlog
from roomledger.constants import Constants
from roomledger.journal import (
    AccountType, TransactionKind, validate_transaction)
from roomledger.money import Money, money_sum, round_cents, to_money
from roomledger.utility import age_at_year_end, to_date

logger = structlog.get_logger(__name__)


@dataclass
class CESGSummary:
    """ A beneficiary's CESG position as of a date.

    Attributes:
        total_cesg_received (Money): Grant earned to date, derived from
            contributions.
        lifetime_max (Money): The lifetime grant limit.
        remaining_lifetime_cesg (Money): `lifetime_max` less
            `total_cesg_received`.
        current_year_cesg (Money): Grant earned by this year's
            contributions.
        current_year_max (Money): The most grant this year's
            contributions can earn (including carried-forward room).
            Zero if the beneficiary is no longer eligible.
        carry_forward_room (Money): Unused grant room brought into this
            year from earlier years.
        eligible_for_cesg (bool): False once the lifetime maximum is
            reached or the beneficiary is too old.
        recorded_grants (Money): Grant deposits actually recorded in the
            journal, for comparison with `total_cesg_received`.
        by_year (dict[int, Money]): Grant earned in each year that
            earned any.
    """
    total_cesg_received: Money
    lifetime_max: Money
    remaining_lifetime_cesg: Money
    current_year_cesg: Money
    current_year_max: Money
    carry_forward_room: Money
    eligible_for_cesg: bool
    recorded_grants: Money = field(default_factory=Money)
    by_year: Dict[int, Money] = field(default_factory=dict)


def _is_eligible(birth_date, year, max_age):
    """ Whether a beneficiary attracts grant in `year`. """
    if birth_date is None:
        return True
    return birth_date.year <= year and (
        age_at_year_end(birth_date, year) <= max_age)


def compute_cesg(
        beneficiary, transactions, *,
        on_date: Optional[datetime.date] = None,
        constants: Optional[Constants] = None) -> CESGSummary:
    """ Derives a beneficiary's grant entitlement from contributions.

    Grant room accrues from the beneficiary's birth year (or, when no
    birth date is known, from the year of the first contribution) for
    every year up to the age limit. In each year the grant is the
    matching rate times that year's contributions, capped by the unused
    room accumulated so far, the annual carry-forward ceiling and the
    remaining lifetime grant.

    Args:
        beneficiary (Beneficiary): The beneficiary, whose
            `date_of_birth` (if any) limits eligibility. May be `None`
            for an account with no beneficiary on file.
        transactions (Iterable[Transaction]): Every transaction on every
            education account for this beneficiary. Recorded grants are
            reported but do not drive the calculation.
        on_date (date): The date to compute as of; later transactions
            are ignored. Optional. Defaults to today.
        constants (Constants): Statutory figures. Optional.

    Returns:
        CESGSummary: The beneficiary's grant position.

    Raises:
        InvalidInputError: A transaction has a non-positive amount.
    """
    on_date = (
        datetime.date.today() if on_date is None else to_date(on_date))
    if constants is None:
        constants = Constants()

    contributions = {}
    recorded = []
    for transaction in transactions:
        validate_transaction(AccountType.EDUCATION_GRANT, transaction)
        if transaction.date > on_date:
            continue
        if transaction.kind is TransactionKind.CONTRIBUTION:
            year = transaction.tax_year
            contributions[year] = (
                contributions.get(year, Money(0)) + transaction.amount)
        elif transaction.kind is TransactionKind.GRANT:
            recorded.append(transaction.amount)

    rate = constants.CESG_MATCH_RATE
    annual_max = to_money(constants.CESG_ANNUAL_MAX)
    ceiling = to_money(constants.CESG_ANNUAL_MAX_WITH_CARRYFORWARD)
    lifetime_max = to_money(constants.CESG_LIFETIME_MAX)
    max_age = constants.CESG_MAX_AGE

    birth_date = beneficiary.date_of_birth if beneficiary else None
    this_year = on_date.year
    if birth_date is not None:
        first_year = birth_date.year
    else:
        first_year = min(contributions, default=this_year)

    unused_room = Money(0)
    total = Money(0)
    by_year = {}
    carry_forward_room = Money(0)
    current_year_max = Money(0)
    current_year_cesg = Money(0)
    for year in range(first_year, this_year + 1):
        if not _is_eligible(birth_date, year, max_age):
            continue
        carried = unused_room
        unused_room += annual_max
        cap = min(unused_room, ceiling, lifetime_max - total)
        matched = round_cents(contributions.get(year, Money(0)) * rate)
        grant = min(matched, cap)
        unused_room -= grant
        total += grant
        if grant > 0:
            by_year[year] = grant
        if year == this_year:
            carry_forward_room = carried
            current_year_max = cap
            current_year_cesg = grant

    remaining = lifetime_max - total
    eligible = remaining > 0 and _is_eligible(birth_date, this_year, max_age)
    if not eligible:
        current_year_max = Money(0)

    logger.debug(
        'cesg_computed', beneficiary=getattr(beneficiary, 'id', None),
        total=str(total.amount), eligible=eligible)
    return CESGSummary(
        total_cesg_received=total,
        lifetime_max=lifetime_max,
        remaining_lifetime_cesg=remaining,
        current_year_cesg=current_year_cesg,
        current_year_max=current_year_max,
        carry_forward_room=carry_forward_room,
        eligible_for_cesg=eligible,
        recorded_grants=money_sum(recorded),
        by_year=by_year)


def estimate_cesg(contribution_amount, summary, *, constants=None):
    """ The grant an additional contribution this year would attract.

    Args:
        contribution_amount (Money): The contemplated contribution.
        summary (CESGSummary): The beneficiary's current position, as
            returned by `compute_cesg`.
        constants (Constants): Statutory figures. Optional.

    Returns:
        Money: The additional grant, which is zero once the year's cap
        (or the lifetime maximum) has been reached.
    """
    if constants is None:
        constants = Constants()
    if not summary.eligible_for_cesg:
        return Money(0)
    remaining_this_year = summary.current_year_max - summary.current_year_cesg
    if not remaining_this_year > 0:
        return Money(0)
    matched = round_cents(
        to_money(contribution_amount) * constants.CESG_MATCH_RATE)
    return min(matched, remaining_this_year, summary.remaining_lifetime_cesg)
