# Brief Store — durable state + auto-save
from .autosave import AutoSaveTimer
from .document_store import JsonFileStorage, clear_state, load_state, save_state

__all__ = ["AutoSaveTimer", "JsonFileStorage", "clear_state", "load_state", "save_state"]
