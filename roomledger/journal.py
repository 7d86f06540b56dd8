""" Domain records and the storage collaborators the calculators read.

This module provides the records the room calculators consume
(`Account`, `Beneficiary`, `Transaction`, `Snapshot`), the protocols
that any storage backend must satisfy (`TransactionJournal`,
`SnapshotStore`, `AccountStore`), and in-memory implementations of
those protocols.

The calculators never write to a journal or snapshot store. Only user
actions do, through the stores, which validate each write.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from itertools import count
from typing import Any, Hashable, List, Optional, Protocol
import datetime
import structlog
from roomledger.errors import InvalidInputError, NotFoundError
from roomledger.money import Money, to_money
from roomledger.utility import to_date

logger = structlog.get_logger(__name__)


class AccountType(Enum):
    """ The three kinds of registered account.

    Each kind has its own room rules; see `roomledger.room`.
    """
    DEDUCTION_LIMIT = 'RRSP'
    LIFETIME_ROOM = 'TFSA'
    EDUCATION_GRANT = 'RESP'

    @classmethod
    def convert(cls, val):
        """ Converts `val` (an `AccountType` or its value) to an
        `AccountType`, raising `InvalidInputError` if unknown. """
        try:
            return cls(val)
        except ValueError as error:
            raise InvalidInputError(
                'Unknown account type: ' + repr(val)) from error


class Person(Enum):
    """ The two members of the household. """
    SELF = 'self'
    SPOUSE = 'spouse'

    @classmethod
    def convert(cls, val):
        """ Converts `val` to a `Person`, raising `InvalidInputError`. """
        try:
            return cls(val)
        except ValueError as error:
            raise InvalidInputError(
                'Unknown person: ' + repr(val)) from error


class TransactionKind(Enum):
    """ What a journal entry records. """
    CONTRIBUTION = 'contribution'
    WITHDRAWAL = 'withdrawal'
    GRANT = 'grant'

    @classmethod
    def convert(cls, val):
        """ Converts `val` to a `TransactionKind`. """
        try:
            return cls(val)
        except ValueError as error:
            raise InvalidInputError(
                'Unknown transaction kind: ' + repr(val)) from error


@dataclass(frozen=True)
class Beneficiary:
    """ The beneficiary of one or more education accounts.

    `date_of_birth` determines CESG eligibility; it may be `None`, in
    which case no age limit is applied.
    """
    name: str
    date_of_birth: Optional[datetime.date] = None
    id: Hashable = None
    notes: Optional[str] = None

    def __post_init__(self):
        if self.date_of_birth is not None:
            object.__setattr__(
                self, 'date_of_birth', to_date(self.date_of_birth))


@dataclass(frozen=True)
class Account:
    """ A registered account.

    Only the administrative fields (see `ADMIN_FIELDS`) may change after
    creation; use `AccountStore.update_account` to change them.

    Args:
        account_type (AccountType): Which room rules apply.
        owner (Person): The account holder (annuitant).
        contributor (Person): The person whose room is used. Optional;
            defaults to `owner`. Differs from `owner` for spousal RRSPs.
        name (str): A display name. Optional.
        room_start_year (int): For TFSAs, the first year the holder was
            eligible to accrue room. Optional.
        beneficiary_id (Hashable): For RESPs, the `Beneficiary`.
        notes (str): Free-form notes. Optional.
        hidden (bool): Whether to leave the account out of summaries.
        id (Hashable): Assigned by the `AccountStore`.
    """
    account_type: AccountType
    owner: Person
    contributor: Optional[Person] = None
    name: Optional[str] = None
    room_start_year: Optional[int] = None
    beneficiary_id: Hashable = None
    notes: Optional[str] = None
    hidden: bool = False
    id: Hashable = None

    ADMIN_FIELDS = frozenset(
        ('name', 'notes', 'room_start_year', 'beneficiary_id', 'hidden'))

    def __post_init__(self):
        object.__setattr__(
            self, 'account_type', AccountType.convert(self.account_type))
        object.__setattr__(self, 'owner', Person.convert(self.owner))
        if self.contributor is None:
            object.__setattr__(self, 'contributor', self.owner)
        else:
            object.__setattr__(
                self, 'contributor', Person.convert(self.contributor))


@dataclass(frozen=True)
class Transaction:
    """ A dated contribution, withdrawal or grant on one account.

    Construction only normalizes types (`amount` to `Money`, `date` to
    `datetime.date`); rule checks live in `validate_transaction` so
    that the calculators can re-check entries from any source.
    """
    account_id: Hashable
    kind: TransactionKind
    amount: Money
    date: datetime.date
    id: Hashable = None
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'kind', TransactionKind.convert(self.kind))
        object.__setattr__(self, 'amount', to_money(self.amount))
        object.__setattr__(self, 'date', to_date(self.date))

    @property
    def tax_year(self):
        """ The calendar year of the transaction. """
        return self.date.year


@dataclass(frozen=True)
class Snapshot:
    """ One year's authoritative figures for a person and account type.

    Every figure is optional: a snapshot may be entered by hand with
    only some fields, or extracted from a document with low confidence.

    Args:
        person (Person): Whose figures these are.
        account_type (AccountType): Which account type they describe.
        tax_year (int): The NOA's tax year.
        earned_income (Money): RRSP only. Earned income for `tax_year`,
            which generates room for `tax_year + 1`.
        official_deduction_limit (Money): RRSP only. The deduction
            limit stated on the NOA for `tax_year`, which is the room
            available in `tax_year + 1`.
        official_room_as_of_jan1 (Money): TFSA only. Room on January 1
            of `tax_year`.
        unused_contributions (Money): RRSP only. Contributions not yet
            deducted, as reported. Informational.
        source_document (str): A reference to the uploaded statement.
        confidence (int): 0-100, for figures extracted from documents.
        notes (str): Free-form notes.
    """
    person: Person
    account_type: AccountType
    tax_year: int
    earned_income: Optional[Money] = None
    official_deduction_limit: Optional[Money] = None
    official_room_as_of_jan1: Optional[Money] = None
    unused_contributions: Optional[Money] = None
    source_document: Optional[str] = None
    confidence: Optional[int] = None
    notes: Optional[str] = None

    MONEY_FIELDS = (
        'earned_income', 'official_deduction_limit',
        'official_room_as_of_jan1', 'unused_contributions')

    def __post_init__(self):
        object.__setattr__(self, 'person', Person.convert(self.person))
        object.__setattr__(
            self, 'account_type', AccountType.convert(self.account_type))
        object.__setattr__(self, 'tax_year', int(self.tax_year))
        for name in self.MONEY_FIELDS:
            object.__setattr__(self, name, to_money(getattr(self, name)))

    @property
    def key(self):
        """ The `(person, account_type, tax_year)` uniqueness key. """
        return (self.person, self.account_type, self.tax_year)

    def merge(self, **fields):
        """ Returns a copy with every non-`None` value in `fields` set. """
        updates = {
            name: val for (name, val) in fields.items() if val is not None}
        return dataclasses.replace(self, **updates)


def validate_transaction(account_type, transaction):
    """ Checks a transaction against the rules of its account type.

    Raises:
        InvalidInputError: The amount is not positive, or the
            transaction is a grant on a non-education account.
    """
    if not transaction.amount > 0:
        raise InvalidInputError(
            'Transaction amounts must be positive, got '
            + str(transaction.amount) + '.')
    if (
            transaction.kind is TransactionKind.GRANT and
            account_type is not AccountType.EDUCATION_GRANT):
        raise InvalidInputError(
            'Grants are only permitted on education accounts, not '
            + account_type.value + '.')


class TransactionJournal(Protocol):
    """ An ordered, per-account record of transactions. """

    def list_transactions(self, account_id: Hashable) -> List[Transaction]:
        """ All transactions for the account, in insertion order. """
        raise NotImplementedError

    def create_transaction(
            self, account_id: Hashable, kind: Any, amount: Any, date: Any,
            notes: Optional[str] = None) -> Transaction:
        """ Validates and records a new transaction. """
        raise NotImplementedError

    def update_transaction(
            self, transaction_id: Hashable, **fields) -> Transaction:
        """ Validates and applies changes to `kind`, `amount`, `date`
        or `notes`. """
        raise NotImplementedError

    def delete_transaction(self, transaction_id: Hashable) -> None:
        """ Removes a transaction. """
        raise NotImplementedError


class SnapshotStore(Protocol):
    """ Yearly authoritative figures, unique per person/type/year. """

    def get_snapshot(
            self, person: Person, account_type: AccountType,
            tax_year: int) -> Optional[Snapshot]:
        """ The snapshot, or `None` if there isn't one. """
        raise NotImplementedError

    def list_snapshots(
            self, person: Person,
            account_type: Optional[AccountType] = None) -> List[Snapshot]:
        """ A person's snapshots, optionally for one account type. """
        raise NotImplementedError

    def upsert_snapshot(
            self, person: Person, account_type: AccountType,
            tax_year: int, **fields) -> Snapshot:
        """ Creates the snapshot or merges non-`None` `fields` into it. """
        raise NotImplementedError

    def delete_snapshot(
            self, person: Person, account_type: AccountType,
            tax_year: int) -> None:
        """ Removes a snapshot. """
        raise NotImplementedError


class AccountStore(Protocol):
    """ Registered accounts and education beneficiaries. """

    def get_account(self, account_id: Hashable) -> Optional[Account]:
        """ The account, or `None` if there isn't one. """
        raise NotImplementedError

    def list_accounts(self) -> List[Account]:
        """ All accounts, in creation order. """
        raise NotImplementedError

    def get_beneficiary(
            self, beneficiary_id: Hashable) -> Optional[Beneficiary]:
        """ The beneficiary, or `None` if there isn't one. """
        raise NotImplementedError


class InMemoryJournal(object):
    """ A `TransactionJournal` backed by a dict.

    Writes are validated against the owning account's type, so the
    journal needs an `AccountStore` to look accounts up.

    Args:
        accounts (AccountStore): Used to validate writes.
    """

    def __init__(self, accounts):
        self.accounts = accounts
        self._transactions = {}
        self._ids = count(1)

    def _account_type(self, account_id):
        account = self.accounts.get_account(account_id)
        if account is None:
            raise NotFoundError('No account with id ' + repr(account_id))
        return account.account_type

    def list_transactions(self, account_id):
        """ All transactions for the account, in insertion order. """
        return [
            transaction for transaction in self._transactions.values()
            if transaction.account_id == account_id]

    def create_transaction(self, account_id, kind, amount, date, notes=None):
        """ Validates and records a new transaction.

        Raises:
            NotFoundError: No such account.
            InvalidInputError: The amount is not positive or the kind
                isn't permitted for the account's type.
        """
        account_type = self._account_type(account_id)
        transaction = Transaction(
            account_id=account_id, kind=kind, amount=amount, date=date,
            id=next(self._ids), notes=notes)
        validate_transaction(account_type, transaction)
        self._transactions[transaction.id] = transaction
        logger.debug(
            'transaction_created', transaction_id=transaction.id,
            account_id=account_id, kind=transaction.kind.value)
        return transaction

    def update_transaction(self, transaction_id, **fields):
        """ Validates and applies changes to a transaction.

        Only `kind`, `amount`, `date` and `notes` may change; `None`
        values are ignored.

        Raises:
            NotFoundError: No such transaction.
            InvalidInputError: An unknown field, or a change that breaks
                a journal rule.
        """
        if transaction_id not in self._transactions:
            raise NotFoundError(
                'No transaction with id ' + repr(transaction_id))
        unknown = set(fields) - {'kind', 'amount', 'date', 'notes'}
        if unknown:
            raise InvalidInputError(
                'Cannot update transaction fields: '
                + ', '.join(sorted(unknown)))
        current = self._transactions[transaction_id]
        updated = dataclasses.replace(current, **{
            name: val for (name, val) in fields.items() if val is not None})
        validate_transaction(
            self._account_type(updated.account_id), updated)
        self._transactions[transaction_id] = updated
        return updated

    def delete_transaction(self, transaction_id):
        """ Removes a transaction.

        Raises:
            NotFoundError: No such transaction.
        """
        if transaction_id not in self._transactions:
            raise NotFoundError(
                'No transaction with id ' + repr(transaction_id))
        del self._transactions[transaction_id]

    def delete_account_transactions(self, account_id):
        """ Removes every transaction for an account. """
        for transaction in self.list_transactions(account_id):
            del self._transactions[transaction.id]


class InMemorySnapshotStore(object):
    """ A `SnapshotStore` backed by a dict keyed on `Snapshot.key`. """

    def __init__(self):
        self._snapshots = {}

    def get_snapshot(self, person, account_type, tax_year):
        """ The snapshot, or `None` if there isn't one. """
        key = (
            Person.convert(person), AccountType.convert(account_type),
            int(tax_year))
        return self._snapshots.get(key)

    def list_snapshots(self, person, account_type=None):
        """ A person's snapshots, ordered by tax year. """
        person = Person.convert(person)
        if account_type is not None:
            account_type = AccountType.convert(account_type)
        snapshots = [
            snapshot for snapshot in self._snapshots.values()
            if snapshot.person is person and (
                account_type is None
                or snapshot.account_type is account_type)]
        return sorted(snapshots, key=lambda snapshot: snapshot.tax_year)

    def upsert_snapshot(self, person, account_type, tax_year, **fields):
        """ Creates the snapshot, or merges non-`None` `fields` into it.

        Returns:
            Snapshot: The stored snapshot.
        """
        snapshot = Snapshot(person, account_type, tax_year)
        existing = self._snapshots.get(snapshot.key)
        if existing is not None:
            snapshot = existing
        snapshot = snapshot.merge(**fields)
        self._snapshots[snapshot.key] = snapshot
        logger.debug(
            'snapshot_upserted', person=snapshot.person.value,
            account_type=snapshot.account_type.value,
            tax_year=snapshot.tax_year, created=existing is None)
        return snapshot

    def delete_snapshot(self, person, account_type, tax_year):
        """ Removes a snapshot.

        Raises:
            NotFoundError: No such snapshot.
        """
        key = (
            Person.convert(person), AccountType.convert(account_type),
            int(tax_year))
        if key not in self._snapshots:
            raise NotFoundError('No snapshot for ' + repr(key))
        del self._snapshots[key]


class InMemoryAccountStore(object):
    """ An `AccountStore` backed by dicts.

    Accounts and beneficiaries share one id sequence.
    """

    def __init__(self):
        self._accounts = {}
        self._beneficiaries = {}
        self._ids = count(1)

    def get_account(self, account_id):
        """ The account, or `None` if there isn't one. """
        return self._accounts.get(account_id)

    def list_accounts(self):
        """ All accounts, in creation order. """
        return list(self._accounts.values())

    def add_account(self, account_type, owner, contributor=None, **fields):
        """ Creates an account.

        Raises:
            InvalidInputError: An education account without a known
                beneficiary, or an unknown account type or person.
        """
        account = Account(
            account_type, owner, contributor=contributor,
            id=next(self._ids), **fields)
        if account.account_type is AccountType.EDUCATION_GRANT:
            if account.beneficiary_id not in self._beneficiaries:
                raise InvalidInputError(
                    'Education accounts require an existing beneficiary.')
        self._accounts[account.id] = account
        return account

    def update_account(self, account_id, **fields):
        """ Changes an account's administrative fields.

        Raises:
            NotFoundError: No such account.
            InvalidInputError: An attempt to change a field other than
                those in `Account.ADMIN_FIELDS`, or to point an
                education account at a beneficiary that doesn't exist.
        """
        if account_id not in self._accounts:
            raise NotFoundError('No account with id ' + repr(account_id))
        immutable = set(fields) - Account.ADMIN_FIELDS
        if immutable:
            raise InvalidInputError(
                'Cannot change account fields: '
                + ', '.join(sorted(immutable)))
        account = dataclasses.replace(self._accounts[account_id], **fields)
        if (
                account.account_type is AccountType.EDUCATION_GRANT
                and account.beneficiary_id not in self._beneficiaries):
            raise InvalidInputError(
                'Education accounts require an existing beneficiary.')
        self._accounts[account_id] = account
        return account

    def delete_account(self, account_id, journal=None):
        """ Deletes an account, and its transactions if `journal` is
        given.

        Raises:
            NotFoundError: No such account.
        """
        if account_id not in self._accounts:
            raise NotFoundError('No account with id ' + repr(account_id))
        if journal is not None:
            journal.delete_account_transactions(account_id)
        del self._accounts[account_id]

    def get_beneficiary(self, beneficiary_id):
        """ The beneficiary, or `None` if there isn't one. """
        return self._beneficiaries.get(beneficiary_id)

    def add_beneficiary(self, name, date_of_birth=None, notes=None):
        """ Creates a beneficiary. """
        beneficiary = Beneficiary(
            name, date_of_birth=date_of_birth, id=next(self._ids),
            notes=notes)
        self._beneficiaries[beneficiary.id] = beneficiary
        return beneficiary

    def delete_beneficiary(self, beneficiary_id):
        """ Deletes a beneficiary that no account refers to.

        Raises:
            NotFoundError: No such beneficiary.
            InvalidInputError: An account still names the beneficiary.
        """
        if beneficiary_id not in self._beneficiaries:
            raise NotFoundError(
                'No beneficiary with id ' + repr(beneficiary_id))
        for account in self._accounts.values():
            if account.beneficiary_id == beneficiary_id:
                raise InvalidInputError(
                    'Cannot delete beneficiary: linked to account '
                    + repr(account.name or account.id))
        del self._beneficiaries[beneficiary_id]
