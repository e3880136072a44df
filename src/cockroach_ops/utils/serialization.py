"""JSON serialization utilities using orjson for speed and correctness.

orjson handles most column types automatically:
- datetime, date, time → ISO format
- UUID → string
- dataclasses, pydantic-dumped dicts → objects

Only a few special cases need a default handler.
"""

import base64
import datetime
import decimal
from pathlib import Path
from typing import Any, Union

import orjson


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation

    Raises:
        TypeError: If object cannot be serialized
    """
    # Decimal - keep precision as a string
    if isinstance(obj, decimal.Decimal):
        return str(obj)

    # timedelta - convert to total seconds
    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()

    # bytes/bytearray/memoryview (from BYTES) - try UTF-8, fall back to base64
    if isinstance(obj, (bytes, bytearray, memoryview)):
        data = bytes(obj)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(data).decode("ascii")

    # Sets - convert to list
    if isinstance(obj, (set, frozenset)):
        return list(obj)

    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def dumps(obj: Any, indent: bool = False) -> str:
    """
    Serialize object to JSON string using orjson.

    Args:
        obj: Object to serialize
        indent: Pretty-print with two-space indentation

    Returns:
        JSON string
    """
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(obj, default=_default_handler, option=option).decode("utf-8")


def read_json(path: Union[str, Path]) -> Any:
    """
    Read and decode a JSON file.

    Args:
        path: File path

    Returns:
        Decoded JSON document

    Raises:
        orjson.JSONDecodeError: If the file is not valid JSON
    """
    return orjson.loads(Path(path).read_bytes())
