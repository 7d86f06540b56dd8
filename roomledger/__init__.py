""" A package for tracking contribution room in registered accounts. """

__all__ = [
    'cesg', 'constants', 'discrepancy', 'errors', 'extraction', 'journal',
    'money', 'penalty', 'room', 'service', 'settings', 'utility'
]

__version__ = '0.1.0'
__license__ = 'All rights reserved'

from roomledger.money import Money
from roomledger.errors import (
    RoomLedgerError, InvalidInputError, NotFoundError, ExtractionError)
from roomledger.constants import Constants
from roomledger.settings import Settings
from roomledger.journal import (
    AccountType, Person, TransactionKind, Account, Beneficiary,
    Transaction, Snapshot, validate_transaction,
    TransactionJournal, SnapshotStore, AccountStore,
    InMemoryJournal, InMemorySnapshotStore, InMemoryAccountStore)
from roomledger.cesg import CESGSummary, compute_cesg, estimate_cesg
from roomledger.room import (
    RoomState, RoomTracker, LifetimeRoomTracker, DeductionRoomTracker,
    room_tracker, compute_room, SpousalAttribution,
    compute_spousal_attribution)
from roomledger.penalty import (
    MonthlyPenalty, PenaltySchedule, compute_penalties)
from roomledger.discrepancy import (
    DiscrepancyResult, check_discrepancy, calculated_room_for_snapshot)
from roomledger.extraction import ExtractedStatement, StatementExtractor
from roomledger.service import RegisteredAccountService
