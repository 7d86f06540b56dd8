""" The read-side service consumed by a UI or API layer.

`RegisteredAccountService` wires the calculators to the stores. Every
read recomputes room from the journal; nothing is cached, so a change
to the journal or snapshot store shows up on the next read.

Room belongs to people, not accounts, so reads pool the transactions of
every account that shares the same room:

* RRSPs and TFSAs pool by contributor (a spousal RRSP uses its
  contributor's room, not its owner's).
* RESPs pool by beneficiary, for both the lifetime limit and the CESG.
"""

import dataclasses
import datetime
import structlog
from roomledger.cesg import compute_cesg
from roomledger.constants import Constants
from roomledger.discrepancy import (
    calculated_room_for_snapshot, check_discrepancy)
from roomledger.errors import ExtractionError
from roomledger.journal import AccountType, Person
from roomledger.penalty import compute_penalties
from roomledger.room import compute_room, sort_transactions
from roomledger.settings import Settings

logger = structlog.get_logger(__name__)


def _earliest_start_year(accounts):
    return min(
        (
            account.room_start_year for account in accounts
            if account.room_start_year is not None),
        default=None)


class RegisteredAccountService(object):
    """ Room, penalty and discrepancy queries over a household's accounts.

    Args:
        accounts (AccountStore): Accounts and beneficiaries.
        journal (TransactionJournal): Transactions.
        snapshots (SnapshotStore): Authoritative yearly figures.
        extractor (StatementExtractor): Reads NOAs for
            `import_statement`. Optional.
        constants (Constants): Statutory figures. Optional.
        settings (Settings): User settings. Optional.
        clock (Callable[[], date]): Returns today's date. Optional.
            Defaults to `datetime.date.today`.
    """

    def __init__(
            self, accounts, journal, snapshots, *, extractor=None,
            constants=None, settings=None, clock=None):
        self.accounts = accounts
        self.journal = journal
        self.snapshots = snapshots
        self.extractor = extractor
        self.constants = Constants() if constants is None else constants
        self.settings = Settings() if settings is None else settings
        self.clock = datetime.date.today if clock is None else clock

    def pooled_accounts(self, account):
        """ The accounts whose transactions share `account`'s room. """
        def shares_room(other):
            if other.account_type is not account.account_type:
                return False
            if account.account_type is AccountType.EDUCATION_GRANT:
                return other.beneficiary_id == account.beneficiary_id
            return other.contributor is account.contributor
        return [
            other for other in self.accounts.list_accounts()
            if shares_room(other)]

    def pooled_transactions(self, account):
        """ Transactions for every account sharing `account`'s room. """
        transactions = []
        for other in self.pooled_accounts(account):
            transactions.extend(self.journal.list_transactions(other.id))
        return transactions

    def pooled_room_start_year(self, account):
        """ The first year TFSA room accrues for `account`'s pool.

        This is the earliest `room_start_year` set on any pooled TFSA,
        so every account in the pool reports the same room. `None` when
        none is set (room then accrues from the first TFSA year) and for
        other account types.
        """
        if account.account_type is not AccountType.LIFETIME_ROOM:
            return None
        return _earliest_start_year(self.pooled_accounts(account))

    def _snapshots_for(self, account):
        if account.account_type is AccountType.EDUCATION_GRANT:
            return []
        return self.snapshots.list_snapshots(
            account.contributor, account.account_type)

    def _beneficiary_for(self, account):
        if account.beneficiary_id is None:
            return None
        return self.accounts.get_beneficiary(account.beneficiary_id)

    def _room(self, account, on_date):
        return compute_room(
            account, self.pooled_transactions(account),
            self._snapshots_for(account), on_date=on_date,
            beneficiary=self._beneficiary_for(account),
            room_start_year=self.pooled_room_start_year(account),
            constants=self.constants, settings=self.settings)

    def get_account_with_room(self, account_id):
        """ An account's fields with its room and transactions.

        Returns:
            dict: The account's fields, plus `beneficiary` (or `None`),
            `room` (a `RoomState`) and `transactions` (this account's
            own, newest first). `None` if there's no such account.
        """
        account = self.accounts.get_account(account_id)
        if account is None:
            return None
        today = self.clock()
        result = dataclasses.asdict(account)
        result['beneficiary'] = self._beneficiary_for(account)
        result['room'] = self._room(account, today)
        result['transactions'] = list(reversed(sort_transactions(
            self.journal.list_transactions(account_id))))
        logger.info(
            'account_room_read', account_id=account_id,
            account_type=account.account_type.value,
            incomplete=result['room'].incomplete)
        return result

    def get_over_contribution_penalties(self, account_id):
        """ The monthly penalty schedule for an RRSP or TFSA.

        Returns:
            PenaltySchedule: The schedule, or `None` if there's no such
            account.

        Raises:
            InvalidInputError: The account is an education account.
        """
        account = self.accounts.get_account(account_id)
        if account is None:
            return None
        return compute_penalties(
            account, self.pooled_transactions(account),
            self._snapshots_for(account), on_date=self.clock(),
            room_start_year=self.pooled_room_start_year(account),
            constants=self.constants, settings=self.settings)

    def get_summary(self):
        """ Every visible account's room, grouped by account type.

        Returns:
            dict[AccountType, list[dict]]: For each type (including
            types with no accounts), a list of `{'account', 'room'}`
            dicts in account creation order. Education accounts also
            have a `'cesg'` entry.
        """
        today = self.clock()
        summary = {account_type: [] for account_type in AccountType}
        for account in self.accounts.list_accounts():
            if account.hidden:
                continue
            room = self._room(account, today)
            entry = {'account': account, 'room': room}
            if account.account_type is AccountType.EDUCATION_GRANT:
                entry['cesg'] = room.cesg
            summary[account.account_type].append(entry)
        return summary

    def get_cesg(self, beneficiary_id):
        """ A beneficiary's CESG position across all their accounts.

        Returns:
            CESGSummary: The position, or `None` if there's no such
            beneficiary.
        """
        beneficiary = self.accounts.get_beneficiary(beneficiary_id)
        if beneficiary is None:
            return None
        transactions = []
        for account in self.accounts.list_accounts():
            if (
                    account.account_type is AccountType.EDUCATION_GRANT
                    and account.beneficiary_id == beneficiary_id):
                transactions.extend(self.journal.list_transactions(account.id))
        return compute_cesg(
            beneficiary, transactions, on_date=self.clock(),
            constants=self.constants)

    def check_noa_discrepancy(self, person, account_type, tax_year):
        """ Compares calculated room with a snapshot's official figure.

        Returns:
            DiscrepancyResult: The comparison, or `None` when there's
            nothing to compare: no snapshot for that year, no official
            figure on it, room that can't be calculated, or an
            education account type.
        """
        person = Person.convert(person)
        account_type = AccountType.convert(account_type)
        if account_type is AccountType.EDUCATION_GRANT:
            return None
        snapshot = self.snapshots.get_snapshot(person, account_type, tax_year)
        if snapshot is None:
            logger.debug(
                'noa_check_skipped', person=person.value,
                account_type=account_type.value, tax_year=tax_year)
            return None

        accounts = [
            account for account in self.accounts.list_accounts()
            if account.account_type is account_type
            and account.contributor is person]
        transactions = []
        for account in accounts:
            transactions.extend(self.journal.list_transactions(account.id))
        calculated = calculated_room_for_snapshot(
            person, account_type, tax_year, transactions,
            self.snapshots.list_snapshots(person, account_type),
            room_start_year=_earliest_start_year(accounts),
            constants=self.constants, settings=self.settings)
        return check_discrepancy(
            person, account_type, tax_year, calculated, snapshot,
            settings=self.settings)

    def import_statement(self, person, document, *, source_document=None):
        """ Reads an NOA and records its figures as snapshots.

        The RRSP figures are stored on the snapshot for the statement's
        tax year. The TFSA figure is room on January 1 of the next year,
        so it's stored on the TFSA snapshot for that year. Figures the
        extractor couldn't find leave existing values untouched.

        Args:
            person (Person): Whose NOA it is.
            document (Any): Passed to the extractor as-is.
            source_document (str): A reference to the document, saved
                on the snapshots. Optional.

        Returns:
            list[Snapshot]: The snapshots written. Empty if the
            extractor found no tax year or no figures.

        Raises:
            ExtractionError: There's no extractor, or it couldn't read
                the document at all.
        """
        if self.extractor is None:
            raise ExtractionError('No statement extractor is configured.')
        person = Person.convert(person)
        statement = self.extractor.extract(document)
        if statement.tax_year is None or not statement.has_figures:
            logger.warning(
                'statement_unusable', person=person.value,
                source_document=source_document,
                tax_year=statement.tax_year)
            return []

        written = []
        if any(val is not None for val in (
                statement.earned_income, statement.deduction_limit,
                statement.unused_contributions)):
            written.append(self.snapshots.upsert_snapshot(
                person, AccountType.DEDUCTION_LIMIT, statement.tax_year,
                earned_income=statement.earned_income,
                official_deduction_limit=statement.deduction_limit,
                unused_contributions=statement.unused_contributions,
                source_document=source_document,
                confidence=statement.confidence))
        if statement.lifetime_room is not None:
            written.append(self.snapshots.upsert_snapshot(
                person, AccountType.LIFETIME_ROOM, statement.tax_year + 1,
                official_room_as_of_jan1=statement.lifetime_room,
                source_document=source_document,
                confidence=statement.confidence))
        logger.info(
            'statement_imported', person=person.value,
            tax_year=statement.tax_year, snapshots=len(written),
            confidence=statement.confidence)
        return written
