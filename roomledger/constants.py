""" Constant values used by the room calculators: annual TFSA and RRSP
limits, the RRSP accrual rate, penalty rates, RESP and CESG limits, and
other non-user-modifiable figures. """

from roomledger.utility.value_reader import (
    ValueReader, ValueReaderAttribute as Attr)

FILENAME_DEFAULT = 'constants.json'

class Constants(ValueReader):
    """ Container for statutory constants.

    This class is analogous to `Settings`, except that it does not
    store values that are determined by a user. Rather, it provides
    values that define the rules for registered accounts. These are
    jurisdiction-specific and are of interest principally to developers
    preparing updated versions of the software; the calculators never
    embed them as literals.

    All constants are exposed as attributes of `Constants` objects. For
    example, `Constants().RESP_LIFETIME_LIMIT` will return the value of
    the `'RESP_LIFETIME_LIMIT'` key in `data/constants.json`.

    Each constant has a default value circa 2026, used if a value isn't
    read in from file. Fractional values are `Decimal`.

    Although a filename can be specified for loading constants, by
    default this class reads from `roomledger/data/constants.json`.

    This class takes all of the same args as `ValueReader`. Keyword
    arguments named after a constant override the file, which is
    convenient in tests (e.g. `Constants(CESG_ANNUAL_MAX=400)`).
    """

    # TFSA constants
    # Annual room added on January 1 of each year:
    TFSA_ANNUAL_LIMITS = Attr({
        2009: 5000,
        2010: 5000,
        2011: 5000,
        2012: 5000,
        2013: 5500,
        2014: 5500,
        2015: 10000,
        2016: 5500,
        2017: 5500,
        2018: 5500,
        2019: 6000,
        2020: 6000,
        2021: 6000,
        2022: 6000,
        2023: 6500,
        2024: 7000,
        2025: 7000,
        2026: 7000,
    })
    # Default room start year when an account doesn't name one:
    TFSA_FIRST_YEAR = Attr(2009)

    # RRSP constants
    RRSP_ANNUAL_LIMITS = Attr({
        2009: 21000,
        2010: 22000,
        2011: 22450,
        2012: 22970,
        2013: 23820,
        2014: 24270,
        2015: 24930,
        2016: 25370,
        2017: 26010,
        2018: 26230,
        2019: 26500,
        2020: 27230,
        2021: 27830,
        2022: 29210,
        2023: 30780,
        2024: 31560,
        2025: 32490,
        2026: 33810,
    })
    RRSP_ACCRUAL_RATE = Attr(0.18)
    # Lifetime excess tolerated without penalty:
    RRSP_OVERCONTRIBUTION_BUFFER = Attr(2000)
    # Withdrawals from a spousal RRSP are taxed in the contributor's
    # hands if contributions were made in this many calendar years
    # (the withdrawal year included):
    SPOUSAL_ATTRIBUTION_YEARS = Attr(3)

    # Applies to both RRSPs and TFSAs, per month of excess:
    OVERCONTRIBUTION_PENALTY_RATE = Attr(0.01)

    # RESP constants
    RESP_LIFETIME_LIMIT = Attr(50000)
    CESG_MATCH_RATE = Attr(0.2)
    CESG_ANNUAL_MAX = Attr(500)
    CESG_ANNUAL_MAX_WITH_CARRYFORWARD = Attr(1000)
    CESG_LIFETIME_MAX = Attr(7200)
    # Last age (at year end) at which a beneficiary attracts CESG:
    CESG_MAX_AGE = Attr(17)

    def __init__(self, filename=None, **kwargs):
        if filename is None:
            filename = FILENAME_DEFAULT
        super().__init__(filename=filename, **kwargs)
