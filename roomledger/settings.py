""" This module provides user-modifiable settings for the application.

It provides the `Settings` class, which supplies default values for
tolerances and thresholds that a household may reasonably tune.
"""

from roomledger.utility.value_reader import (
    ValueReader, ValueReaderAttribute as Attr)

FILENAME_DEFAULT = 'settings.json'

class Settings(ValueReader):
    """ Container for variables used to control application settings.

    All settings are exposed as attributes of `Settings` objects. For
    example, `Settings().discrepancy_tolerance` will return the value of
    the `'discrepancy_tolerance'` key in `data/settings.json`.

    Each attribute has a sensible default value, used if a value isn't
    read in from file (and if `use_defaults` is True).

    Although a filename can be specified for loading settings, by
    default this class reads from `roomledger/data/settings.json`. All
    relative paths are resolved from `roomledger/data`, so if you want
    to open a file elsewhere use an absolute path!

    This class takes all of the same args as `ValueReader`.

    Attributes:
        discrepancy_tolerance (int, Decimal): The largest difference
            between calculated room and an NOA figure which is treated
            as rounding rather than a discrepancy. Defaults to 1.
        tfsa_overcontribution_buffer (int, Decimal): TFSA excess up to
            this amount is reported as "within buffer". This is purely
            informational: the excess and its penalties are still
            reported. Defaults to 0.
        extraction_min_confidence (int): Snapshots extracted from
            documents with a confidence (0-100) below this value are
            flagged as low-confidence when compared. Defaults to 50.
    """

    discrepancy_tolerance = Attr(1)
    tfsa_overcontribution_buffer = Attr(0)
    extraction_min_confidence = Attr(50)

    def __init__(self, filename=None, **kwargs):
        if filename is None:
            # Use default settings file (at roomledger/data/settings.json)
            filename = FILENAME_DEFAULT
        super().__init__(filename=filename, **kwargs)
