"""
Local Data Source

Serves every gateway operation from the key-value store. Values are kept as
the same camelCase JSON the remote service speaks, so callers cannot tell the
two sources apart. Anything missing or malformed in the store reads as absent.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from entprep.analytics.feedback import generate_feedback
from entprep.analytics.performance import summarize_performance
from entprep.common.exceptions import ConfigurationError, ValidationError
from entprep.common.logger import app_logger
from entprep.common.serialization import ensure_dict, ensure_list, parse_records, parse_stored, to_json
from entprep.common.storage.base import KeyValueStore
from entprep.common.storage.key_builder import KeyBuilder
from entprep.domain.catalog.model import TestDefinition, catalog_to_dicts, find_test
from entprep.domain.profiles.model import Attempt, UserProfile

# Module logger
logger = app_logger.getChild("gateway.local")

Params = Dict[str, Any]


def _raw_history(record: Dict[str, Any]) -> List[Any]:
    history = record.get("testHistory")
    return list(history) if isinstance(history, list) else []


def _public_profile(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Profile as handed to callers: identity validated, without credentials.

    History entries are carried over as stored, unreadable ones included.
    """
    profile = UserProfile.from_dict(record).to_dict()
    profile["testHistory"] = _raw_history(record)
    return profile


class LocalDataSource:
    """Local implementations of the gateway operations."""

    def __init__(self, store: KeyValueStore, keys: Optional[KeyBuilder] = None):
        """
        Initialize the local data source.

        Args:
            store: Durable key-value store
            keys: Key builder used to name persisted values
        """
        self.store = store
        self.keys = keys or KeyBuilder()
        self.current_user_key = self.keys.service_key("auth", "current_user")
        self.users_key = self.keys.service_key("auth", "users")
        self.catalog_key = self.keys.service_key("tests", "catalog")
        self.results_key = self.keys.service_key("tests", "results")

    # Store access

    async def _read(self, key: str) -> Any:
        return parse_stored(await self.store.get(key), key)

    async def _write(self, key: str, value: Any) -> bool:
        return await self.store.set(key, to_json(value))

    async def _read_list(self, key: str) -> List[Any]:
        return ensure_list(await self._read(key), key)

    async def catalog(self) -> List[TestDefinition]:
        """The locally stored test catalog; malformed entries are dropped."""
        return parse_records(await self._read(self.catalog_key), TestDefinition.from_dict, self.catalog_key)

    async def results(self) -> List[Attempt]:
        return parse_records(await self._read(self.results_key), Attempt.from_dict, self.results_key)

    async def current_profile(self) -> Optional[UserProfile]:
        record = ensure_dict(await self._read(self.current_user_key), self.current_user_key)
        if record is None:
            return None
        try:
            return UserProfile.from_dict(record)
        except ValidationError as e:
            logger.error(f"Ignoring malformed current user: {e.message}")
            return None

    async def _users(self) -> List[Dict[str, Any]]:
        return [u for u in await self._read_list(self.users_key) if isinstance(u, dict)]

    # Reference data

    async def seed(self, catalog: Optional[Iterable[TestDefinition]] = None,
                   users: Optional[Iterable[Dict[str, Any]]] = None) -> None:
        """
        Install static reference data.

        Args:
            catalog: Test definitions replacing the stored catalog
            users: User directory records (with credentials) replacing the
                stored directory
        """
        if catalog is not None:
            catalog = list(catalog)
            await self._write(self.catalog_key, catalog_to_dicts(catalog))
            logger.info(f"Seeded local catalog with {len(catalog)} test(s)")
        if users is not None:
            users = list(users)
            await self._write(self.users_key, users)
            logger.info(f"Seeded local user directory with {len(users)} user(s)")

    # auth

    async def login(self, params: Params) -> Optional[Dict[str, Any]]:
        username = params.get("username")
        password = params.get("password")
        for record in await self._users():
            if record.get("username") == username and record.get("password") == password:
                try:
                    profile = _public_profile(record)
                except ValidationError as e:
                    logger.error(f"Skipping malformed user record {username!r}: {e.message}")
                    return None
                await self._write(self.current_user_key, profile)
                return profile
        logger.info(f"Local login rejected for {username!r}")
        return None

    async def register(self, params: Params) -> Optional[Dict[str, Any]]:
        username = params.get("username")
        if not isinstance(username, str) or not username:
            raise ValidationError("username is required", {"username": username})

        users = await self._users()
        if any(record.get("username") == username for record in users):
            logger.info(f"Username {username!r} is already taken")
            return None

        record = {
            "id": len(users) + 1,
            "username": username,
            "password": params.get("password", ""),
            "fullName": params.get("fullName", ""),
            "email": params.get("email", ""),
            "testHistory": [],
        }
        users.append(record)
        await self._write(self.users_key, users)

        profile = _public_profile(record)
        await self._write(self.current_user_key, profile)
        return profile

    async def logout(self, params: Params) -> bool:
        await self.store.remove(self.current_user_key)
        return True

    async def current_user(self, params: Params) -> Optional[Dict[str, Any]]:
        profile = await self.current_profile()
        return profile.to_dict() if profile else None

    async def remember_user(self, params: Params, payload: Any) -> Any:
        """Store a profile returned by the remote service as the current user."""
        record = ensure_dict(payload, "remote profile")
        if record is not None:
            try:
                await self._write(self.current_user_key, _public_profile(record))
            except ValidationError as e:
                logger.warning(f"Remote profile not cached locally: {e.message}")
        return payload

    async def append_history(self, params: Params) -> bool:
        entry = Attempt.from_dict(params.get("attempt")).to_dict()
        record = ensure_dict(await self._read(self.current_user_key), self.current_user_key)
        if record is None:
            logger.info("Cannot record attempt: no current user")
            return False
        try:
            UserProfile.from_dict(record)
        except ValidationError as e:
            logger.error(f"Cannot record attempt for malformed current user: {e.message}")
            return False

        # Stored entries are kept as they are, only the new one is validated
        record["testHistory"] = _raw_history(record) + [entry]
        await self._write(self.current_user_key, record)
        await self._append_to_directory(record, entry)
        return True

    async def _append_to_directory(self, profile: Dict[str, Any], entry: Dict[str, Any]) -> None:
        users = await self._users()
        for record in users:
            if record.get("id") == profile.get("id") and record.get("username") == profile.get("username"):
                record["testHistory"] = _raw_history(record) + [entry]
                await self._write(self.users_key, users)
                return

    # tests

    async def list_tests(self, params: Params) -> List[Dict[str, Any]]:
        return catalog_to_dicts(await self.catalog())

    async def get_test(self, params: Params) -> Optional[Dict[str, Any]]:
        test = find_test(await self.catalog(), params.get("id"))
        return test.to_dict() if test is not None else None

    async def cache_catalog(self, params: Params, payload: Any) -> Any:
        """Refresh the local catalog from a remote listing."""
        catalog = parse_records(payload, TestDefinition.from_dict, "remote catalog")
        if catalog or payload == []:
            await self._write(self.catalog_key, catalog_to_dicts(catalog))
        return payload

    async def save_result(self, params: Params) -> bool:
        attempt = Attempt.from_dict(params.get("attempt"))
        results = await self._read_list(self.results_key)
        results.append(attempt.to_dict())
        return await self._write(self.results_key, results)

    async def list_results(self, params: Params) -> List[Dict[str, Any]]:
        return [a.to_dict() for a in await self.results()]

    async def list_results_for_test(self, params: Params) -> List[Dict[str, Any]]:
        test_id = params.get("testId")
        return [a.to_dict() for a in await self.results() if a.test_id == test_id]

    async def analyze(self, params: Params) -> Dict[str, Any]:
        summary = summarize_performance(await self.results(), await self.catalog(), params.get("testIds"))
        return summary.to_dict()

    # analytics

    async def feedback(self, params: Params) -> Dict[str, Any]:
        return generate_feedback(await self.current_profile(), await self.catalog()).to_dict()

    # Mirrors for remote writes

    async def mirror_logout(self, params: Params, payload: Any) -> Any:
        await self.logout(params)
        return payload

    async def mirror_append_history(self, params: Params, payload: Any) -> Any:
        await self.append_history(params)
        return payload

    async def mirror_save_result(self, params: Params, payload: Any) -> Any:
        await self.save_result(params)
        return payload


def load_reference_data(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read static reference data from a JSON or YAML file.

    The file holds a mapping with optional ``tests`` (test definitions) and
    ``users`` (user directory records) lists.

    Args:
        path: Path to the file

    Returns:
        Mapping with ``catalog`` (list of TestDefinition) and ``users``

    Raises:
        ConfigurationError: If the file cannot be read or has the wrong shape
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"cannot read reference data {path}: {e}", "data.reference_data_path") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"reference data {path} must be a mapping", "data.reference_data_path")

    catalog = parse_records(data.get("tests"), TestDefinition.from_dict, str(path))
    users = [u for u in ensure_list(data.get("users"), str(path)) if isinstance(u, dict)]
    logger.info(f"Loaded {len(catalog)} test(s) and {len(users)} user(s) from {path}")
    return {"catalog": catalog, "users": users}
