"""Save persistence: blob stores, save migrations and export/import.

Saves are JSON documents with the camelCase shape of
:class:`~cultivation.models.state.CultivationState`. Every load, whether it
comes from a blob store or from pasted export text, runs through the same
pipeline: structural validation, the ``migrations/saves`` chain and finally
dataclass coercion.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import importlib.util
import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, MutableMapping, Optional, Protocol, runtime_checkable
from urllib.parse import quote

from .balance import BalanceConfig
from .constants import SAVE_KEY, SAVE_SCHEMA_VERSION, VERSION
from .models._validation import ModelValidationError
from .models.realms import DEFAULT_LADDER, RealmLadder
from .models.state import CultivationState

log = logging.getLogger(__name__)

MIGRATIONS_BASE = Path(__file__).resolve().parent / "migrations"


class SaveFormatError(ValueError):
    """Raised when export text can not be decoded into a save document."""


def _is_site_packages(path: Path) -> bool:
    """Return ``True`` if ``path`` is inside a site/dist-packages directory."""

    normalized = {part.lower() for part in path.parts}
    return "site-packages" in normalized or "dist-packages" in normalized


def resolve_storage_root(package_root: Path) -> Path:
    """Determine where mutable save data should be stored.

    Saves live alongside the source tree when the project runs from a
    checkout. When the package is installed into a site-packages directory,
    or the checkout is read-only, they move to the working directory. An
    explicit override always wins.
    """

    override = os.getenv("CULTIVATION_DATA_ROOT") or os.getenv("CULTIVATION_STORAGE_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    if _is_site_packages(package_root) or not os.access(package_root, os.W_OK):
        return Path.cwd().resolve()

    return package_root


def _write_text(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf8", dir=path.parent, delete=False
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass


# ---------------------------------------------------------------------------
# Blob stores
# ---------------------------------------------------------------------------


@runtime_checkable
class BlobStore(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryBlobStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    async def set(self, key: str, value: str) -> None:
        self._blobs[key] = value

    async def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class FileBlobStore:
    """One JSON file per key, replaced atomically on every write."""

    def __init__(self, root: Path | str | None = None) -> None:
        if root is None:
            root = resolve_storage_root(Path(__file__).resolve().parent.parent) / "saves"
        self.root = Path(root)
        self._lock = asyncio.Lock()

    def path_for(self, key: str) -> Path:
        return self.root / f"{quote(key, safe='')}.json"

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            try:
                return self.path_for(key).read_text(encoding="utf8")
            except FileNotFoundError:
                return None

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            _write_text(self.path_for(key), value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            try:
                self.path_for(key).unlink()
            except FileNotFoundError:
                pass


# ---------------------------------------------------------------------------
# Migration runner
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MigrationModule:
    from_version: int
    to_version: int
    apply: Callable[["MigrationContext"], None]
    description: str


@dataclass(slots=True)
class MigrationContext:
    payload: MutableMapping[str, Any]
    ladder: RealmLadder
    balance: BalanceConfig
    applied: list[str] = field(default_factory=list)

    @property
    def realm_count(self) -> int:
        return len(self.ladder)

    def configured_lifespan(self, realm_index: int) -> Optional[float]:
        return self.balance.lifespan.configured_for(realm_index)

    def skill_kinds(self) -> dict[str, bool]:
        """Map every known skill id to whether it is a one-time technique."""

        return {skill.id: skill.is_technique for skill in self.balance.skills}

    def log(self, message: str) -> None:
        self.applied.append(message)
        log.info("[migration:saves] %s", message)


class MissingMigrationError(RuntimeError):
    pass


class SaveMigrator:
    def __init__(
        self,
        *,
        balance: BalanceConfig,
        ladder: RealmLadder = DEFAULT_LADDER,
        migrations_base: Path = MIGRATIONS_BASE,
        target_version: int = SAVE_SCHEMA_VERSION,
    ) -> None:
        self.balance = balance
        self.ladder = ladder
        self._migrations_base = migrations_base
        self.target_version = target_version
        self._modules: list[MigrationModule] | None = None

    @staticmethod
    def version_of(payload: Mapping[str, Any]) -> int:
        """Return the schema version of ``payload``; ``0`` when it is absent.

        Raises :class:`SaveFormatError` for a version that is not a finite
        number, since no migration plan can be built from it.
        """

        version = payload.get("schemaVersion", 0)
        if version is None or isinstance(version, bool):
            return 0
        try:
            number = float(version)
        except (TypeError, ValueError):
            return 0
        except OverflowError as exc:
            raise SaveFormatError(f"schemaVersion is out of range: {exc}") from exc
        if not math.isfinite(number):
            raise SaveFormatError(f"schemaVersion must be finite, got {version!r}")
        return max(0, int(number))

    def migrate(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        data = dict(payload)
        current = self.version_of(data)
        if current >= self.target_version:
            return data

        migrations = self._load_migrations()
        plan: list[MigrationModule] = []
        version = current
        while version < self.target_version:
            step = next((m for m in migrations if m.from_version == version), None)
            if step is None:
                raise MissingMigrationError(
                    f"Missing save migration: {version} -> {self.target_version}"
                )
            plan.append(step)
            version = step.to_version

        if version != self.target_version:
            raise MissingMigrationError(
                f"Incomplete save migration chain: {current} -> {self.target_version}"
            )

        context = MigrationContext(payload=data, ladder=self.ladder, balance=self.balance)
        for step in plan:
            step.apply(context)
            data["schemaVersion"] = step.to_version
        return data

    def _load_migrations(self) -> list[MigrationModule]:
        if self._modules is not None:
            return self._modules
        directory = self._migrations_base / "saves"
        modules: list[MigrationModule] = []
        if directory.is_dir():
            for path in sorted(directory.glob("*.py")):
                if path.name.startswith("__"):
                    continue
                spec = importlib.util.spec_from_file_location(
                    f"cultivation.migrations.saves.{path.stem}", path
                )
                if spec is None or spec.loader is None:
                    continue
                module = importlib.util.module_from_spec(spec)
                try:
                    spec.loader.exec_module(module)  # type: ignore[assignment]
                except Exception:
                    log.exception("Skipping broken save migration %s", path.name)
                    continue
                from_version = getattr(module, "FROM_VERSION", None)
                to_version = getattr(module, "TO_VERSION", None)
                apply = getattr(module, "apply", None)
                if not isinstance(from_version, int) or not isinstance(to_version, int):
                    continue
                if not callable(apply):
                    continue
                description = getattr(module, "DESCRIPTION", path.stem)
                modules.append(
                    MigrationModule(
                        from_version=from_version,
                        to_version=to_version,
                        apply=apply,
                        description=str(description),
                    )
                )
        modules.sort(key=lambda module: module.from_version)
        self._modules = modules
        return modules


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def dump_payload(state: CultivationState) -> str:
    return json.dumps(state.to_dict(), separators=(",", ":"))


def export_text(state: CultivationState) -> str:
    """Portable save text: the JSON document, base64 encoded as UTF-8."""

    return base64.b64encode(dump_payload(state).encode("utf8")).decode("ascii")


def decode_export(text: str) -> dict[str, Any]:
    try:
        raw = base64.b64decode("".join(str(text).split()), validate=True)
        payload = json.loads(raw.decode("utf8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise SaveFormatError(f"Save text could not be decoded: {exc}") from exc
    if not isinstance(payload, dict):
        raise SaveFormatError("Save text does not contain a save document")
    return payload


def parse_payload(text: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise SaveFormatError(f"Stored save is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SaveFormatError("Stored save is not a JSON object")
    return payload


# ---------------------------------------------------------------------------
# Save manager
# ---------------------------------------------------------------------------


class SaveManager:
    """Loads, migrates and writes the single save slot."""

    def __init__(
        self,
        store: BlobStore,
        *,
        balance: BalanceConfig,
        ladder: RealmLadder = DEFAULT_LADDER,
        key: str = SAVE_KEY,
        migrator: SaveMigrator | None = None,
    ) -> None:
        self.store = store
        self.ladder = ladder
        self.key = key
        self.migrator = migrator or SaveMigrator(balance=balance, ladder=ladder)

    def restore(self, payload: Mapping[str, Any]) -> CultivationState:
        """Validate, migrate and coerce ``payload`` into a state.

        Raises :class:`ModelValidationError`, :class:`SaveFormatError` or
        :class:`MissingMigrationError` when the document is unusable.
        """

        validated = CultivationState.validator.validate(payload)
        migrated = self.migrator.migrate(validated)
        state = CultivationState.from_dict(migrated)
        state.realm_index = self.ladder.clamp_index(state.realm_index)
        state.version = VERSION
        state.schema_version = self.migrator.target_version
        return state

    def import_text(self, text: str) -> CultivationState:
        return self.restore(decode_export(text))

    async def load(self) -> Optional[CultivationState]:
        raw = await self.store.get(self.key)
        if raw is None:
            return None
        return self.restore(parse_payload(raw))

    async def save(self, state: CultivationState, *, now: float) -> None:
        state.version = VERSION
        state.last_save = now
        await self.store.set(self.key, dump_payload(state))

    async def clear(self) -> None:
        await self.store.delete(self.key)


LOAD_ERRORS = (SaveFormatError, ModelValidationError, MissingMigrationError)


__all__ = [
    "BlobStore",
    "FileBlobStore",
    "LOAD_ERRORS",
    "MemoryBlobStore",
    "MigrationContext",
    "MigrationModule",
    "MissingMigrationError",
    "SaveFormatError",
    "SaveManager",
    "SaveMigrator",
    "decode_export",
    "dump_payload",
    "export_text",
    "parse_payload",
    "resolve_storage_root",
]
