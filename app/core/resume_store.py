from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
import secrets
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.schemas.chat import Conversation, StoredChatMessage, StoredUserContext
from app.schemas.resume import OptimizationRecord, Resume, ResumeSection
from app.schemas.user import User

logger = logging.getLogger(__name__)

_COLLECTIONS: dict[str, type[BaseModel]] = {
    "users": User,
    "resumes": Resume,
    "optimizations": OptimizationRecord,
    "conversations": Conversation,
    "messages": StoredChatMessage,
    "chat_contexts": StoredUserContext,
}
_PBKDF2_ROUNDS = 200_000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def hash_password(password: str, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), _PBKDF2_ROUNDS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    salt, _, _digest = password_hash.partition("$")
    if not salt:
        return False
    return hmac.compare_digest(hash_password(password, salt), password_hash)


class JsonFileStore:
    """Process-wide datastore persisted as a single JSON document.

    Every mutation rewrites the file under a lock (last write wins). Nothing
    coordinates separate processes sharing the same file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._data: dict[str, dict[str, BaseModel]] = {name: {} for name in _COLLECTIONS}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            logger.info("store_not_found path=%s, starting with a new database", self._path)
            self._save()
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("store_load_failed path=%s: %s", self._path, exc)
            return
        for name, model in _COLLECTIONS.items():
            for key, record in (raw.get(name) or {}).items():
                try:
                    self._data[name][key] = model.model_validate(record)
                except ValidationError as exc:
                    logger.warning("store_record_skipped collection=%s id=%s: %s", name, key, exc)
        logger.info("store_loaded path=%s resumes=%s", self._path, len(self._data["resumes"]))

    def _save(self) -> None:
        payload = {
            name: {key: record.model_dump(mode="json") for key, record in records.items()}
            for name, records in self._data.items()
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    # Users

    def create_user(self, username: str, password: str) -> User:
        with self._lock:
            if self.get_user_by_username(username) is not None:
                raise ValueError(f"Username '{username}' is already taken.")
            user = User(id=_new_id(), username=username, password_hash=hash_password(password))
            self._data["users"][user.id] = user
            self._save()
            return user

    def get_user(self, user_id: str) -> User | None:
        return self._data["users"].get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in self._data["users"].values() if u.username == username), None)

    # Resumes

    def create_resume(
        self,
        *,
        user_id: str | None,
        name: str,
        latex_content: str,
        sections: list[ResumeSection],
        template: str | None = None,
        pdf_url: str | None = None,
    ) -> Resume:
        now = _utc_now()
        resume = Resume(
            id=_new_id(),
            user_id=user_id,
            name=name,
            latex_content=latex_content,
            pdf_url=pdf_url,
            template=template or "modern",
            sections=sections,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._data["resumes"][resume.id] = resume
            self._save()
        return resume

    def get_resume(self, resume_id: str) -> Resume | None:
        return self._data["resumes"].get(resume_id)

    def list_resumes(self, user_id: str) -> list[Resume]:
        resumes = [r for r in self._data["resumes"].values() if r.user_id == user_id]
        return sorted(resumes, key=lambda r: r.updated_at, reverse=True)

    def update_resume(self, resume_id: str, **changes: Any) -> Resume | None:
        with self._lock:
            existing = self._data["resumes"].get(resume_id)
            if existing is None:
                return None
            # The owner never changes through an update.
            changes.pop("user_id", None)
            changes.pop("id", None)
            changes["updated_at"] = _utc_now()
            updated = existing.model_copy(update=changes)
            self._data["resumes"][resume_id] = updated
            self._save()
            return updated

    def delete_resume(self, resume_id: str) -> bool:
        with self._lock:
            if self._data["resumes"].pop(resume_id, None) is None:
                return False
            self._save()
            return True

    # Optimization audit log

    def save_optimization(
        self,
        *,
        resume_id: str,
        section_name: str,
        original_content: str,
        optimized_content: str,
        job_description: str,
        additional_details: str | None = None,
    ) -> OptimizationRecord:
        record = OptimizationRecord(
            id=_new_id(),
            resume_id=resume_id,
            section_name=section_name,
            original_content=original_content,
            optimized_content=optimized_content,
            job_description=job_description,
            additional_details=additional_details,
            created_at=_utc_now(),
        )
        with self._lock:
            self._data["optimizations"][record.id] = record
            self._save()
        return record

    def get_optimization_history(self, resume_id: str) -> list[OptimizationRecord]:
        records = [o for o in self._data["optimizations"].values() if o.resume_id == resume_id]
        return sorted(records, key=lambda o: o.created_at)

    # Chat

    def create_conversation(self, *, user_id: str, persona: str, title: str | None = None) -> Conversation:
        now = _utc_now()
        conversation = Conversation(
            id=_new_id(),
            user_id=user_id,
            persona=persona,
            title=title or "New Conversation",
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._data["conversations"][conversation.id] = conversation
            self._save()
        return conversation

    def list_conversations(self, user_id: str) -> list[Conversation]:
        items = [c for c in self._data["conversations"].values() if c.user_id == user_id]
        return sorted(items, key=lambda c: c.updated_at, reverse=True)

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._data["conversations"].get(conversation_id)

    def update_conversation(self, conversation_id: str, **changes: Any) -> Conversation | None:
        with self._lock:
            existing = self._data["conversations"].get(conversation_id)
            if existing is None:
                return None
            changes.pop("user_id", None)
            changes.pop("id", None)
            changes["updated_at"] = _utc_now()
            updated = existing.model_copy(update=changes)
            self._data["conversations"][conversation_id] = updated
            self._save()
            return updated

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            if self._data["conversations"].pop(conversation_id, None) is None:
                return False
            messages = self._data["messages"]
            for message_id in [m.id for m in messages.values() if m.conversation_id == conversation_id]:
                del messages[message_id]
            self._save()
            return True

    def add_message(self, *, conversation_id: str, role: str, content: str) -> StoredChatMessage:
        message = StoredChatMessage(
            id=_new_id(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=_utc_now(),
        )
        with self._lock:
            self._data["messages"][message.id] = message
            conversation = self._data["conversations"].get(conversation_id)
            if conversation is not None:
                self._data["conversations"][conversation_id] = conversation.model_copy(
                    update={"updated_at": message.created_at}
                )
            self._save()
        return message

    def list_messages(self, conversation_id: str) -> list[StoredChatMessage]:
        items = [m for m in self._data["messages"].values() if m.conversation_id == conversation_id]
        return sorted(items, key=lambda m: m.created_at)

    def get_chat_context(self, user_id: str) -> StoredUserContext | None:
        return self._data["chat_contexts"].get(user_id)

    def upsert_chat_context(self, user_id: str, **fields: Any) -> StoredUserContext:
        with self._lock:
            existing = self._data["chat_contexts"].get(user_id)
            base = existing.model_dump() if existing else {}
            # Only the fields passed are touched; an explicit None clears one.
            base.update(fields)
            base["user_id"] = user_id
            base["updated_at"] = _utc_now()
            context = StoredUserContext.model_validate(base)
            self._data["chat_contexts"][user_id] = context
            self._save()
            return context


_store: JsonFileStore | None = None
_store_lock = threading.Lock()


def get_store() -> JsonFileStore:
    global _store
    with _store_lock:
        if _store is None:
            _store = JsonFileStore(settings.store_path)
        return _store
