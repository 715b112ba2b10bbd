"""
Row cell normalization.

Drivers and DataFrames hand back NumPy scalars, pandas NA markers, float NaN
for missing values, dates and Decimals. Packets carry JSON-native scalars or
None, so every cell goes through `to_wire_scalar` while a row stream is
drained.
"""
import datetime
import decimal
import logging
import math
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NUMPY_FLOAT_TYPES = (np.floating,)
NUMPY_INT_TYPES = (np.integer, np.unsignedinteger)


def _convert_numpy_value(val: Any) -> Any:
    """Convert NumPy value to Python type."""
    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64):
        if np.isnat(val):
            return None
        return pd.Timestamp(val).to_pydatetime()

    if isinstance(val, np.bool_ | np.floating | np.integer | np.unsignedinteger):
        return val.item()

    return val


def to_wire_scalar(value: Any) -> Any:
    """Convert a single cell to a wire-compatible scalar.

    Temporal values become ISO text and Decimals become int or float, so a
    packet holds exactly what its JSON form decodes back to.
    """
    if value is None:
        return None

    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None

    if isinstance(value, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_, np.datetime64)):
        value = _convert_numpy_value(value)

    if value is None or value is pd.NaT or value is pd.NA:
        return None

    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()

    if isinstance(value, datetime.date | datetime.time):
        return value.isoformat()

    if isinstance(value, decimal.Decimal):
        if not value.is_finite():
            return None
        if value == value.to_integral_value():
            return int(value)
        return float(value)

    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).hex()

    if isinstance(value, datetime.timedelta):
        return value.total_seconds()

    return value


def normalize_row(row: Any) -> tuple[Any, ...]:
    """Normalize every cell of one positional row."""
    return tuple(to_wire_scalar(v) for v in row)
