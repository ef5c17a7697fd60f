"""BriefSession — the state container for one editing session.

Owns the Document, the selected role, the wizard state machine, dirty
tracking, id allocation for the ordered lists, and persistence.  Every
document write goes through update_field() or one of the list operations;
each successful write stamps ``updated_at`` and marks the session dirty.
Operations that change nothing (unknown ids, repeated removes) leave the
dirty flag alone.

Access is serialised by a re-entrant lock so that the auto-save thread and
export snapshots always see a complete document.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from brief_engine import ordered_list
from brief_engine.completion import missing_fields, percentage
from brief_engine.config import EngineConfig
from brief_engine.exceptions import FieldValidationError, UnknownFieldError, UnsavedChangesError
from brief_engine.models import (
    EDITABLE_FIELDS,
    ORDERED_LIST_FIELDS,
    Document,
    ListItem,
    Shot,
    UserRole,
    new_document,
)
from brief_engine.ordered_list import IdAllocator
from brief_engine.roles import ROLES, RoleConfig, get_config, get_required_fields, has_permission
from brief_engine.roles import field_in_context as _field_in_context
from brief_engine.wizard import WizardStateMachine
from brief_store.autosave import DEFAULT_INTERVAL_SEC, AutoSaveTimer
from brief_store.document_store import (
    DEFAULT_KEY,
    STATE_SCHEMA_VERSION,
    JsonFileStorage,
    clear_state,
    load_state,
    save_state,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _error_strings(exc: ValidationError) -> List[str]:
    return [f"{e['loc']}: {e['msg']}" for e in exc.errors()]


class PersistedState(BaseModel):
    """Shape of the stored entry: document plus wizard position."""

    model_config = ConfigDict(extra="ignore")

    schema_version: str = STATE_SCHEMA_VERSION
    document: Document
    role: Optional[UserRole] = None
    current_step_index: int = 0


class BriefSession:
    """One in-progress brief and everything needed to edit and persist it."""

    def __init__(
        self,
        storage: Optional[JsonFileStorage] = None,
        *,
        key: str = DEFAULT_KEY,
        clock: Optional[Clock] = None,
        autosave_interval_sec: float = DEFAULT_INTERVAL_SEC,
        document: Optional[Document] = None,
        role: Optional[str] = None,
        current_step_index: int = 0,
    ):
        self._lock = threading.RLock()
        self._clock: Clock = clock or _utc_now
        self.storage = storage
        self.key = key
        self.document = self._normalise(document or new_document(self._now_iso()))
        if role is not None and role not in ROLES:
            raise FieldValidationError("role", [f"must be one of {list(ROLES)}, got {role!r}"])
        if role is None:
            role = self.document.role
        if role is not None and role != self.document.role:
            self.document = self.document.model_copy(update={"role": role})
        self._allocators = self._seed_allocators(self.document)
        self.wizard = WizardStateMachine(self.document.role, lambda: self.document)
        self.wizard.restore(current_step_index)
        self.is_dirty = False
        self.last_saved: Optional[datetime] = None
        self.autosave = AutoSaveTimer(self, autosave_interval_sec)

    # ── construction ─────────────────────────────────────────────────────

    @classmethod
    def load(
        cls,
        storage: JsonFileStorage,
        *,
        key: str = DEFAULT_KEY,
        clock: Optional[Clock] = None,
        autosave_interval_sec: float = DEFAULT_INTERVAL_SEC,
    ) -> "BriefSession":
        """Rehydrate from *storage*, or start empty when nothing usable is stored."""
        raw = load_state(storage, key)
        state: Optional[PersistedState] = None
        if raw is not None:
            try:
                state = PersistedState.model_validate(raw)
            except ValidationError as exc:
                logger.warning(
                    "Stored brief under %r does not validate, starting empty: %s",
                    key, "; ".join(_error_strings(exc)),
                )
        if state is None:
            return cls(storage, key=key, clock=clock, autosave_interval_sec=autosave_interval_sec)
        logger.info("Rehydrated brief from %s", storage.path_for(key))
        return cls(
            storage,
            key=key,
            clock=clock,
            autosave_interval_sec=autosave_interval_sec,
            document=state.document,
            role=state.role or state.document.role,
            current_step_index=state.current_step_index,
        )

    @classmethod
    def from_config(cls, config: EngineConfig, *, clock: Optional[Clock] = None) -> "BriefSession":
        return cls.load(
            JsonFileStorage(config.storage_path),
            key=config.storage_key,
            clock=clock,
            autosave_interval_sec=config.autosave_interval_sec,
        )

    # ── role ─────────────────────────────────────────────────────────────

    @property
    def role(self) -> Optional[str]:
        return self.document.role

    @property
    def role_config(self) -> RoleConfig:
        return get_config(self.role)

    @property
    def required_fields(self) -> List[str]:
        return get_required_fields(self.role)

    def select_role(self, role: str) -> None:
        """Choose or switch the role.

        Entered field values are kept; the wizard restarts at its first step
        with the new role's steps and required fields.  Re-selecting the
        current role changes nothing.

        Raises:
            FieldValidationError: *role* is not one of ROLES.
        """
        if role not in ROLES:
            raise FieldValidationError("role", [f"must be one of {list(ROLES)}, got {role!r}"])
        with self._lock:
            if role == self.document.role:
                return
            self._commit(self.document.model_copy(update={"role": role}))
            self.wizard.set_role(role)

    def has_permission(self, permission: str) -> bool:
        return self.role is not None and has_permission(self.role, permission)

    def field_in_context(self, field_name: str) -> bool:
        return _field_in_context(self.role, field_name)

    # ── document writes ──────────────────────────────────────────────────

    def update_field(self, key: str, value: Any) -> None:
        """Merge one field into the document (last writer wins).

        Raises:
            UnknownFieldError: *key* is not an editable Document field.
            FieldValidationError: *value* does not validate; nothing is written.
        """
        if key == "role":
            self.select_role(value)
            return
        if key not in EDITABLE_FIELDS:
            raise UnknownFieldError(key)
        with self._lock:
            data = self.document.model_dump()
            data[key] = value
            try:
                candidate = Document.model_validate(data)
            except ValidationError as exc:
                raise FieldValidationError(key, _error_strings(exc)) from exc
            if key in ORDERED_LIST_FIELDS:
                items = ordered_list.restamp(getattr(candidate, key))
                ids = [item.id for item in items]
                if len(set(ids)) != len(ids):
                    raise FieldValidationError(key, ["item ids must be unique"])
                current = {item.id for item in getattr(self.document, key)}
                retired = sorted(
                    i for i in ids if i not in current and i <= self._allocators[key].high_water
                )
                if retired:
                    raise FieldValidationError(key, [f"ids {retired} were removed and cannot be reused"])
                self._allocators[key].observe(ids)
                candidate = candidate.model_copy(update={key: items})
            self._commit(candidate)

    def update_fields(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.update_field(key, value)

    # ── ordered lists ────────────────────────────────────────────────────

    def items(self, list_name: str) -> List[ListItem]:
        self._check_list(list_name)
        return list(getattr(self.document, list_name))

    def add_item(self, list_name: str, item: Union[ListItem, Mapping[str, Any]]) -> ListItem:
        """Append a new item under a freshly allocated id and return it."""
        return self.add_items(list_name, [item])[0]

    def add_items(
        self, list_name: str, new_items: Iterable[Union[ListItem, Mapping[str, Any]]]
    ) -> List[ListItem]:
        """Append several items at once; either all are added or none.

        Raises:
            FieldValidationError: any item does not validate.
        """
        model = self._check_list(list_name)
        try:
            validated = [
                item if isinstance(item, model) else model.model_validate({**item, "id": 0})
                for item in new_items
            ]
        except ValidationError as exc:
            raise FieldValidationError(list_name, _error_strings(exc)) from exc
        with self._lock:
            current = getattr(self.document, list_name)
            result = current
            for item in validated:
                result = ordered_list.append(result, item, self._allocators[list_name])
            if validated:
                self._set_list(list_name, result)
            return result[len(current):]

    def reorder_items(self, list_name: str, from_id: int, to_id: int) -> bool:
        self._check_list(list_name)
        with self._lock:
            current = getattr(self.document, list_name)
            return self._set_list(list_name, ordered_list.reorder(current, from_id, to_id))

    def duplicate_item(self, list_name: str, item_id: int) -> Optional[ListItem]:
        """Duplicate *item_id* to the end of the list; None when it does not exist."""
        self._check_list(list_name)
        with self._lock:
            current = getattr(self.document, list_name)
            result = ordered_list.duplicate(current, item_id, self._allocators[list_name])
            if not self._set_list(list_name, result):
                return None
            return result[-1]

    def remove_item(self, list_name: str, item_id: int) -> bool:
        self._check_list(list_name)
        with self._lock:
            current = getattr(self.document, list_name)
            return self._set_list(list_name, ordered_list.remove(current, item_id))

    def update_item(self, list_name: str, item_id: int, patch: Mapping[str, Any]) -> bool:
        """Shallow-merge *patch* into one item.

        Raises:
            FieldValidationError: the merged item does not validate.
        """
        self._check_list(list_name)
        with self._lock:
            current = getattr(self.document, list_name)
            try:
                result = ordered_list.update(current, item_id, patch)
            except ValidationError as exc:
                raise FieldValidationError(list_name, _error_strings(exc)) from exc
            return self._set_list(list_name, result)

    def grouped(self, list_name: str) -> Dict[str, List[ListItem]]:
        self._check_list(list_name)
        return ordered_list.group_by_category(getattr(self.document, list_name))

    # shot-list shorthands

    def add_shot(self, **fields: Any) -> Shot:
        return self.add_item("shot_list", fields)  # type: ignore[return-value]

    def reorder_shots(self, from_id: int, to_id: int) -> bool:
        return self.reorder_items("shot_list", from_id, to_id)

    def duplicate_shot(self, shot_id: int) -> Optional[Shot]:
        return self.duplicate_item("shot_list", shot_id)  # type: ignore[return-value]

    def remove_shot(self, shot_id: int) -> bool:
        return self.remove_item("shot_list", shot_id)

    def update_shot(self, shot_id: int, **patch: Any) -> bool:
        return self.update_item("shot_list", shot_id, patch)

    def grouped_shots(self) -> Dict[str, List[ListItem]]:
        return self.grouped("shot_list")

    # ── navigation ───────────────────────────────────────────────────────

    @property
    def current_step_index(self) -> int:
        return self.wizard.current_step_index

    def next(self) -> bool:
        with self._lock:
            return self.wizard.next()

    def prev(self) -> bool:
        with self._lock:
            return self.wizard.prev()

    def go_to(self, index: int) -> bool:
        with self._lock:
            return self.wizard.go_to(index)

    # ── completion ───────────────────────────────────────────────────────

    def completion(self) -> int:
        return percentage(self.document, self.required_fields)

    def missing_required_fields(self) -> List[str]:
        return missing_fields(self.document, self.required_fields)

    # ── persistence ──────────────────────────────────────────────────────

    def save(self) -> None:
        """Write document, role and step index to storage and clear the dirty flag."""
        with self._lock:
            if self.storage is not None:
                save_state(
                    self.storage,
                    self.document.model_dump(mode="json"),
                    self.role,
                    self.wizard.current_step_index,
                    key=self.key,
                )
            self.is_dirty = False
            self.last_saved = self._clock()

    def save_now(self) -> None:
        """Explicit save, independent of the auto-save timer."""
        self.save()

    def can_leave(self) -> bool:
        return not self.is_dirty

    def close(self, force: bool = False) -> None:
        """Stop auto-saving and release the session.

        Raises:
            UnsavedChangesError: the session is dirty and *force* is False.
        """
        if self.is_dirty and not force:
            logger.warning("Refusing to close brief session with unsaved changes")
            raise UnsavedChangesError("brief has unsaved changes; save first or force close")
        self.autosave.stop()

    def reset(self) -> None:
        """Clear everything back to the empty initial document and forget the stored copy."""
        with self._lock:
            self.document = new_document(self._now_iso())
            self._allocators = self._seed_allocators(self.document)
            self.wizard.set_role(None)
            self.is_dirty = False
            self.last_saved = None
            if self.storage is not None:
                clear_state(self.storage, self.key)

    def snapshot(self) -> Document:
        """Deep, normalised copy of the document for export collaborators."""
        with self._lock:
            return self._normalise(self.document.model_copy(deep=True))

    # ── internals ────────────────────────────────────────────────────────

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    def _check_list(self, list_name: str):
        model = ORDERED_LIST_FIELDS.get(list_name)
        if model is None:
            raise UnknownFieldError(list_name)
        return model

    def _set_list(self, list_name: str, items: List[ListItem]) -> bool:
        if items is getattr(self.document, list_name):
            return False
        self._commit(self.document.model_copy(update={list_name: items}))
        return True

    def _commit(self, candidate: Document) -> None:
        watermarks = {name: alloc.high_water for name, alloc in self._allocators.items()}
        self.document = candidate.model_copy(
            update={"updated_at": self._now_iso(), "id_watermarks": watermarks}
        )
        self.is_dirty = True

    @staticmethod
    def _normalise(document: Document) -> Document:
        updates = {
            name: ordered_list.restamp(getattr(document, name)) for name in ORDERED_LIST_FIELDS
        }
        return document.model_copy(update=updates)

    @staticmethod
    def _seed_allocators(document: Document) -> Dict[str, IdAllocator]:
        allocators: Dict[str, IdAllocator] = {}
        for name in ORDERED_LIST_FIELDS:
            allocator = IdAllocator(document.id_watermarks.get(name, 0))
            allocator.observe(item.id for item in getattr(document, name))
            allocators[name] = allocator
        return allocators
