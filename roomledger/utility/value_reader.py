""" Provides a class for reading stored values from files. """

import os
import json
from decimal import Decimal

INFINITY = float('inf')
DIR_PATH = os.path.dirname(__file__)
DATA_PATH = os.path.join(DIR_PATH, "../data/")

def resolve_data_path(filename):
    """ Returns an absolute path to `filename`.

    If `filename` is a relative path, it is resolved to an absolute
    path with a root in this package's `roomledger/data/` directory.
    If `filename` is an absolute path, it is returned unchanged.
    """
    # If this is a bare filename, assume it's in /data
    if not os.path.isabs(filename):
        filename = os.path.join(DATA_PATH, filename)
    # Don't modify absolute paths.
    return filename

class ValueReaderAttribute(object):
    """ A descriptor for managed attributes of `ValueReader`.

    Attributes with this descriptor are get and set via the `values`
    dict (rather than `__dict__`).
    """

    def __init__(self, default=None):
        self.default = default
        self.name = None # set in __set_name__

    def __set_name__(self, owner, name):
        # Called when the class `owner` is defined, passes the name
        # of the attribute to which this descriptor is assigned.
        self.name = name

    def __get__(self, obj, objtype=None):
        # Accessed on the class itself (e.g. by introspection):
        if obj is None:
            return self
        # If a value hasn't been read in for this attribute, use the
        # default value if one has been provided (and if the calling
        # object has enabled this functionality via `use_defaults`):
        if (
                self.name not in obj.values and
                self.default is not None and
                obj.use_defaults):
            return obj.convert(self.default)
        # Return the value read in from file (or raise a KeyError if
        # it's missing and there's no default):
        return obj.values[self.name]

    def __set__(self, obj, value):
        # Set the value in the `values` dict:
        obj.values[self.name] = value

    def __delete__(self, obj):
        # Remove the value from the `values` dict, which restores the
        # default (if any):
        del obj.values[self.name]

class ValueReader(object):
    """ Reads values from JSON-encoded files.

    Values read from the JSON file are stored in a `values` dict.
    Subclasses can expose these values as attributes by providing
    `ValueReaderAttribute` instances as class variables with the same
    name as a key in the `values` dict. For example, setting the class
    variable `attr = ValueReaderAttribute()` will result in calls to
    `ValueReader(filename).attr` to return the value associated with the
    `"attr"` key in the JSON file named by `filename` (i.e. it is
    equivalent to calling `ValueReader(filename).values['attr']`).

    Relative paths in `filename` are resolved relative to
    `roomledger/data/`, not the current working directory.
    If you want to point to a file anywhere else, use an absolute path.

    Floating-point values are converted to `Decimal` (or whatever type
    `high_precision` names), since they describe money and rates.
    Default values declared on the class are converted the same way, so
    a value reads back with the same type whether or not it came from
    file.

    Examples:
        constants = ValueReader(
            "filename.json",  # Read this file in roomledger/data
            high_precision=Decimal)  # Use Decimal representation

    Arguments:
        filename (str): The filename of a JSON file to read.
            The file must be UTF-8 encoded. Optional.
        high_precision (Callable[[str], HighPrecisionType]): A
            callable object, such as a method or class, which takes a
            `str` argument and returns a value in a high-precision type.
            Optional. Defaults to `Decimal`.
        numeric_convert (bool): If True, any float-convertible str
            keys or values will be converted to a numeric type on read
            (int if appropriate, otherwise a high-precision type).
            Optional. Defaults to True.
        use_defaults (bool): If True, any `ValueReaderAttribute` which
            doesn't have a value read in from file will return its
            default value if one is provided in the class definition.
            Optional. Defaults to True.
        overrides (dict[str, Any]): Values which take precedence over
            anything read from file. Optional.
    """

    def __init__(
            self, filename=None, *, high_precision=Decimal,
            numeric_convert=True, use_defaults=True, **overrides):
        # Set up instance attributes:
        self.values = {}
        self.high_precision = high_precision
        self.use_defaults = use_defaults
        # For convenience, let users call `read` as part of init:
        if filename is not None:
            self.read(filename, numeric_convert=numeric_convert)
        # Explicit overrides are applied last, so they always win:
        for key, val in overrides.items():
            self.values[key] = self.convert(val)

    def read(self, filename, *, numeric_convert=True):
        """ Reads in values from file "filename".

        Any existing values in `self.values` are cleared - only values
        read in from `filename` will be stored.

        Relative paths are resolved relative to `roomledger/data/`, not
        the current working directory. If you want to point to a file
        anywhere else, use an absolute path.

        Arguments:
            filename (str): The filename of a JSON file to read.
                The file must be UTF-8 encoded.
            numeric_convert (bool): If True, any float-convertible str
                keys or values will be converted to a numeric type
                (int if appropriate, otherwise a high-precision type).
                Optional. Defaults to True.

        Raises:
            FileNotFoundError: No such file or directory.
            TypeError: The file does not contain a JSON object.
        """
        # If this is a bare filename, assume it's in /data
        filename = resolve_data_path(filename)

        # Read in JSON values to the `values` dict:
        with open(filename, "rt", encoding="utf-8") as file:
            values = json.load(
                file,
                parse_float=self._parse_float, # High-precision support
                parse_constant=self._parse_constant) # Support +/- infinity

        if not isinstance(values, dict):
            raise TypeError('JSON file must provide dict of key: value pairs')

        # Convert str-encoded numbers (e.g. year keys) to numeric types:
        if numeric_convert:
            values = self._numeric_convert(values)
        self.values = values

    def convert(self, vals):
        """ Converts floats in a tree of values to the high-precision type.

        Used for class-level defaults and explicit overrides, which are
        written in Python rather than parsed from JSON.
        """
        if isinstance(vals, dict):
            return {key: self.convert(val) for (key, val) in vals.items()}
        if isinstance(vals, list):
            return [self.convert(val) for val in vals]
        if isinstance(vals, float) and self.high_precision is not None:
            return self.high_precision(str(vals))
        return vals

    def _parse_float(self, val):
        """ Parses float values (except infinite/NaN). """
        # `val` is received as a str, which `Decimal` prefers to avoid
        # loss of precision:
        if self.high_precision is not None:
            return self.high_precision(val)
        return float(val)

    def _parse_constant(self, val):
        """ Parses 'Infinity' and '-Infinity' from JSON files. """
        inf = INFINITY
        if self.high_precision is not None:
            inf = self.high_precision(inf)
        if val == 'Infinity':
            return inf
        if val == '-Infinity':
            return -inf
        # We don't support non-infinite special constants (i.e. 'NaN'):
        raise ValueError("'" + val + "' value not supported.")

    def _numeric_convert(self, vals):
        """ Converts str-encoded entries in a JSON tree to numeric type.

        JSON object keys are always strings, so tables keyed by year
        (e.g. `{"2009": 5000}`) come back with `int` keys.
        """
        # Attempt to convert both keys and values in a dict:
        if isinstance(vals, dict):
            return {
                self._numeric_convert(key): self._numeric_convert(val)
                for (key, val) in vals.items()}
        # Attempt to convert each item of a list:
        if isinstance(vals, list):
            return [self._numeric_convert(val) for val in vals]
        # Dismiss the non-str values:
        if not isinstance(vals, str):
            return vals

        # Now we know we're working with a str.
        # See whether this value is numeric:
        try:
            float_val = float(vals)
        except ValueError:
            # If we can't convert to number, return the unconverted str.
            return vals

        # Prefer int representation if possible:
        if float_val % 1 == 0:
            # `float_val % 1` is `NaN` for infinite or NaN values,
            # and is a non-zero number for any floating-point value.
            # Thus, if this test passes, we have an integer value.
            return int(float_val)
        if self.high_precision is not None:
            return self.high_precision(vals)
        return float_val
