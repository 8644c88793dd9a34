from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, List

from app import db
from app.config import Settings
from promptgen.workflow.runner import ListStore, SavedResult


log = logging.getLogger("app.store")


def decode_list(raw: Any) -> List[SavedResult]:
    """Turn a stored record into saved results.

    A record that is absent, not JSON or not a list yields ``[]``; single
    malformed entries are skipped.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            log.warning("store_decode_failed error=%s", e)
            return []
    if not isinstance(raw, list):
        log.warning("store_decode_failed error=record is %s, not a list", type(raw).__name__)
        return []
    items: List[SavedResult] = []
    seen = set()
    for rec in raw:
        try:
            item = SavedResult.from_record(rec)
        except (ValueError, TypeError) as e:
            log.warning("store_entry_skipped error=%s", e)
            continue
        if item.id in seen:
            log.warning("store_entry_skipped error=duplicate id %s", item.id)
            continue
        seen.add(item.id)
        items.append(item)
    return items


def encode_list(items: List[SavedResult]) -> List[dict]:
    return [i.to_record() for i in items]


class SupabaseListStore:
    def __init__(self, key: str) -> None:
        self.key = key

    def load(self) -> List[SavedResult]:
        try:
            raw = db.kv_get(self.key)
        except Exception as e:
            log.error("store_load_error backend=supabase key=%s error=%s", self.key, e)
            return []
        items = decode_list(raw)
        log.info("store_loaded backend=supabase key=%s count=%s", self.key, len(items))
        return items

    def save(self, items: List[SavedResult]) -> None:
        try:
            db.kv_put(self.key, encode_list(items))
        except Exception as e:
            log.error("store_save_error backend=supabase key=%s count=%s error=%s", self.key, len(items), e)
            return
        log.info("store_saved backend=supabase key=%s count=%s", self.key, len(items))


class FileListStore:
    """Keeps the list as ``{key: [...]}`` in a local JSON file."""

    def __init__(self, path: str, key: str) -> None:
        self.path = path
        self.key = key

    def _read_all(self) -> dict:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("store file must hold a JSON object")
        return data

    def load(self) -> List[SavedResult]:
        if not os.path.exists(self.path):
            return []
        try:
            data = self._read_all()
        except (OSError, ValueError) as e:
            log.warning("store_load_error backend=file path=%s error=%s", self.path, e)
            return []
        items = decode_list(data.get(self.key))
        log.info("store_loaded backend=file path=%s count=%s", self.path, len(items))
        return items

    def save(self, items: List[SavedResult]) -> None:
        try:
            data = self._read_all() if os.path.exists(self.path) else {}
        except (OSError, ValueError):
            data = {}
        data[self.key] = encode_list(items)
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".saved-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            log.error("store_save_error backend=file path=%s count=%s error=%s", self.path, len(items), e)
            return
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
        log.info("store_saved backend=file path=%s count=%s", self.path, len(items))


def build_store(cfg: Settings) -> ListStore:
    backend = cfg.resolved_store_backend()
    if backend == "supabase":
        return SupabaseListStore(cfg.store_key)
    if backend == "file":
        return FileListStore(cfg.store_path, cfg.store_key)
    raise ValueError(f"unknown store backend: {backend}")
