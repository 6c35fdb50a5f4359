"""
Serialization Utilities

This module provides the helpers used to turn domain objects into the JSON
blobs kept in the key-value store and sent to the remote service, and to read
such blobs back without trusting their shape.
"""

import json
import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union
from dataclasses import is_dataclass, asdict

from entprep.common.exceptions import StorageCorruptError, ValidationError
from entprep.common.logger import app_logger

# Module logger
logger = app_logger.getChild("serialization")

T = TypeVar('T')


def serialize(obj: Any, exclude_none: bool = False) -> Any:
    """
    Serialize an object to JSON-compatible Python data.

    Objects exposing ``to_dict`` are serialized through it, so domain models
    control their own wire shape.

    Args:
        obj: The object to serialize
        exclude_none: Whether to exclude None values from mappings

    Returns:
        Plain dicts, lists and scalars
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple)):
        return [serialize(item, exclude_none) for item in obj]

    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if exclude_none and value is None:
                continue
            result[str(key)] = serialize(value, exclude_none)
        return result

    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), exclude_none)

    if is_dataclass(obj):
        return serialize(asdict(obj), exclude_none)

    if hasattr(obj, 'model_dump') and callable(getattr(obj, 'model_dump')):
        return serialize(obj.model_dump(by_alias=True), exclude_none)

    return str(obj)


def to_json(obj: Any, pretty: bool = False, exclude_none: bool = False) -> str:
    """
    Serialize an object to a JSON string.

    Args:
        obj: The object to serialize
        pretty: Whether to format the JSON with indentation
        exclude_none: Whether to exclude None values

    Returns:
        JSON string representation
    """
    indent = 2 if pretty else None
    return json.dumps(serialize(obj, exclude_none), indent=indent, ensure_ascii=False, default=str)


def parse_stored(raw: Optional[Union[str, bytes]], key: str) -> Optional[Any]:
    """
    Parse a stored JSON blob, treating unreadable content as absent.

    Args:
        raw: The raw value read from the store, or None
        key: Store key the value came from (for logging)

    Returns:
        Parsed data, or None when the value is missing or corrupt
    """
    if raw is None:
        return None
    try:
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8')
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        error = StorageCorruptError(key, e)
        logger.error(f"{error.message}: {e}")
        return None


def ensure_list(data: Any, key: str) -> List[Any]:
    """Return data when it is a list, otherwise log and return an empty list."""
    if data is None:
        return []
    if not isinstance(data, list):
        logger.error(f"Expected a list under {key}, got {type(data).__name__}")
        return []
    return data


def ensure_dict(data: Any, key: str) -> Optional[Dict[str, Any]]:
    """Return data when it is a mapping, otherwise log and return None."""
    if data is None:
        return None
    if not isinstance(data, dict):
        logger.error(f"Expected an object under {key}, got {type(data).__name__}")
        return None
    return data


def parse_records(items: Any, factory: Callable[[Dict[str, Any]], T], key: str) -> List[T]:
    """
    Build domain objects from a list of untrusted records.

    Malformed records are dropped and logged; a non-list yields an empty list.

    Args:
        items: Raw data expected to be a list of mappings
        factory: Callable turning one mapping into a domain object
        key: Where the data came from (for logging)

    Returns:
        The successfully parsed objects, in input order
    """
    records = []
    for index, item in enumerate(ensure_list(items, key)):
        try:
            records.append(factory(item))
        except ValidationError as e:
            logger.warning(f"Dropping malformed record {index} from {key}: {e.message}")
    return records
