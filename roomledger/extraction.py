""" The interface to Notice of Assessment extraction.

Reading figures out of an uploaded NOA (a PDF or a photo) is done by an
external collaborator: OCR, a language model, or a person. Extraction
is best-effort, so every figure is optional and the result carries a
confidence score. `RegisteredAccountService.import_statement` turns an
`ExtractedStatement` into snapshots.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol
from roomledger.errors import InvalidInputError
from roomledger.money import Money, to_money


@dataclass(frozen=True)
class ExtractedStatement:
    """ Figures read from one Notice of Assessment.

    Args:
        tax_year (int): The NOA's tax year. Without it nothing else can
            be used.
        earned_income (Money): Earned income for `tax_year`.
        deduction_limit (Money): The RRSP deduction limit for
            `tax_year + 1`.
        unused_contributions (Money): RRSP contributions not yet
            deducted.
        lifetime_room (Money): TFSA room available on January 1 of
            `tax_year + 1`.
        confidence (int): 0-100. How sure the extractor is.
    """
    tax_year: Optional[int] = None
    earned_income: Optional[Money] = None
    deduction_limit: Optional[Money] = None
    unused_contributions: Optional[Money] = None
    lifetime_room: Optional[Money] = None
    confidence: Optional[int] = None

    def __post_init__(self):
        if self.tax_year is not None:
            object.__setattr__(self, 'tax_year', int(self.tax_year))
        for name in (
                'earned_income', 'deduction_limit', 'unused_contributions',
                'lifetime_room'):
            object.__setattr__(self, name, to_money(getattr(self, name)))
        if self.confidence is not None and not 0 <= self.confidence <= 100:
            raise InvalidInputError(
                'Confidence must be between 0 and 100, got '
                + str(self.confidence))

    @property
    def has_figures(self):
        """ Whether any figure besides the tax year was found. """
        return any(
            val is not None for val in (
                self.earned_income, self.deduction_limit,
                self.unused_contributions, self.lifetime_room))


class StatementExtractor(Protocol):
    """ Anything that can read an `ExtractedStatement` out of a document.

    Implementations should return partial results rather than fail when
    only some figures can be read, and raise `ExtractionError` only when
    the document can't be read at all.
    """

    def extract(self, document: Any) -> ExtractedStatement:
        """ Reads whatever figures it can from `document`. """
        raise NotImplementedError
