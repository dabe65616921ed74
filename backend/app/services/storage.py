from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from secrets import token_urlsafe

from sqlalchemy import delete, func, or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import JournalEntry, SessionToken, SettingEntry, User
from ..insights.models import JournalEntryRecord
from ..utils.dates import as_date
from ..utils.text import join_labels, split_labels, strip_html
from .theme import DEFAULT_THEME, normalize_theme, theme_setting_key

EXPORT_COLUMNS = (
    "entry_date",
    "title",
    "mood",
    "secondary_moods",
    "tags",
    "content",
    "updated_at",
)


class StorageError(Exception):
    """Base class for persistence rule violations."""


class DuplicateUserError(StorageError):
    """Username or email already registered."""


class EntryNotFoundError(StorageError):
    """Journal entry does not exist or belongs to another user."""


class DuplicateEntryDateError(StorageError):
    """Another entry already occupies the requested day."""


class StorageService:
    """Persist users, sessions, journal entries and settings."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- settings helpers ------------------------------------------------
    async def get_setting(self, key: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SettingEntry).where(SettingEntry.key == key)
            )
            entry = result.scalar_one_or_none()
            return entry.value if entry else None

    async def set_setting(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SettingEntry).where(SettingEntry.key == key)
            )
            entry = result.scalar_one_or_none()
            if entry is None:
                entry = SettingEntry(key=key, value=value)
                session.add(entry)
            else:
                entry.value = value
            await session.commit()

    async def get_theme(self, user_id: int) -> str:
        stored = await self.get_setting(theme_setting_key(user_id))
        return normalize_theme(stored) if stored else DEFAULT_THEME

    async def set_theme(self, user_id: int, theme: str | None) -> str:
        normalized = normalize_theme(theme)
        await self.set_setting(theme_setting_key(user_id), normalized)
        return normalized

    # -- user management -------------------------------------------------
    async def create_user(self, *, username: str, email: str, password_hash: str) -> User:
        async with self._session_factory() as session:
            existing = await session.scalar(
                select(User.id).where(
                    or_(
                        func.lower(User.username) == username.lower(),
                        func.lower(User.email) == email.lower(),
                    )
                )
            )
            if existing is not None:
                raise DuplicateUserError("username or email already registered")
            user = User(username=username, email=email.lower(), password_hash=password_hash)
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateUserError("username or email already registered") from exc
            await session.refresh(user)
            return user

    async def get_user_by_id(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        async with self._session_factory() as session:
            return await session.scalar(
                select(User).where(func.lower(User.username) == username.strip().lower())
            )

    async def update_password_hash(self, user_id: int, password_hash: str) -> None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return
            user.password_hash = password_hash
            await session.commit()

    async def delete_user(self, user_id: int) -> None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user:
                await session.delete(user)
            await session.execute(
                delete(SettingEntry).where(SettingEntry.key == theme_setting_key(user_id))
            )
            await session.commit()

    # -- sessions ----------------------------------------------------------
    async def issue_session(self, user_id: int, ttl_days: int = 30) -> SessionToken:
        async with self._session_factory() as session:
            session_token = SessionToken(
                user_id=user_id,
                token=token_urlsafe(32),
                expires_at=datetime.utcnow() + timedelta(days=ttl_days),
            )
            session.add(session_token)
            await session.commit()
            await session.refresh(session_token)
            return session_token

    async def get_user_by_session(self, token: str) -> User | None:
        async with self._session_factory() as session:
            query = (
                select(User)
                .join(SessionToken)
                .where(SessionToken.token == token)
                .where(SessionToken.expires_at > datetime.utcnow())
            )
            return await session.scalar(query)

    async def revoke_session(self, token: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(SessionToken).where(SessionToken.token == token)
            )
            await session.commit()
            return bool(result.rowcount)

    async def purge_expired_sessions(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(SessionToken).where(SessionToken.expires_at <= datetime.utcnow())
            )
            await session.commit()
            return int(result.rowcount or 0)

    # -- journal entries ---------------------------------------------------
    async def get_entry_by_date(self, user_id: int, day: date | datetime) -> JournalEntry | None:
        async with self._session_factory() as session:
            return await session.scalar(
                select(JournalEntry)
                .where(JournalEntry.user_id == user_id)
                .where(JournalEntry.entry_date == as_date(day))
            )

    async def get_entry_by_id(self, user_id: int, entry_id: int) -> JournalEntry | None:
        async with self._session_factory() as session:
            return await session.scalar(
                select(JournalEntry)
                .where(JournalEntry.user_id == user_id)
                .where(JournalEntry.id == entry_id)
            )

    async def upsert_entry(
        self,
        *,
        user_id: int,
        entry_date: date | datetime,
        title: str,
        content: str,
        mood: str = "Neutral",
        secondary_moods: Iterable[str] | None = None,
        tags: Iterable[str] | None = None,
        entry_id: int | None = None,
    ) -> JournalEntry:
        """Create or update an entry while keeping one entry per day.

        Without ``entry_id`` a second write for an existing day updates that
        day's entry instead of inserting a duplicate.
        """

        day = as_date(entry_date)
        now = datetime.utcnow()
        fields = {
            "title": title,
            "content": content,
            "mood": mood,
            "secondary_moods_csv": join_labels(secondary_moods),
            "tags_csv": join_labels(tags),
        }
        async with self._session_factory() as session:
            if entry_id is None:
                entry = await session.scalar(
                    select(JournalEntry)
                    .where(JournalEntry.user_id == user_id)
                    .where(JournalEntry.entry_date == day)
                )
                if entry is None:
                    entry = JournalEntry(
                        user_id=user_id,
                        entry_date=day,
                        created_at=now,
                        updated_at=now,
                        **fields,
                    )
                    session.add(entry)
                else:
                    for key, value in fields.items():
                        setattr(entry, key, value)
                    entry.updated_at = now
            else:
                entry = await session.scalar(
                    select(JournalEntry)
                    .where(JournalEntry.user_id == user_id)
                    .where(JournalEntry.id == entry_id)
                )
                if entry is None:
                    raise EntryNotFoundError(f"entry {entry_id} not found")
                if entry.entry_date != day:
                    clash = await session.scalar(
                        select(JournalEntry.id)
                        .where(JournalEntry.user_id == user_id)
                        .where(JournalEntry.entry_date == day)
                        .where(JournalEntry.id != entry_id)
                    )
                    if clash is not None:
                        raise DuplicateEntryDateError(f"an entry already exists for {day.isoformat()}")
                    entry.entry_date = day
                for key, value in fields.items():
                    setattr(entry, key, value)
                entry.updated_at = now
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateEntryDateError(
                    f"an entry already exists for {day.isoformat()}"
                ) from exc
            await session.refresh(entry)
            return entry

    async def delete_entry(self, user_id: int, entry_id: int) -> bool:
        async with self._session_factory() as session:
            entry = await session.scalar(
                select(JournalEntry)
                .where(JournalEntry.user_id == user_id)
                .where(JournalEntry.id == entry_id)
            )
            if entry is None:
                return False
            await session.delete(entry)
            await session.commit()
            return True

    async def list_entries(
        self,
        *,
        user_id: int,
        start: date | None = None,
        end: date | None = None,
        limit: int = 100,
    ) -> Sequence[JournalEntry]:
        query = select(JournalEntry).where(JournalEntry.user_id == user_id)
        if start is not None:
            query = query.where(JournalEntry.entry_date >= as_date(start))
        if end is not None:
            query = query.where(JournalEntry.entry_date <= as_date(end))
        async with self._session_factory() as session:
            result = await session.execute(
                query.order_by(JournalEntry.entry_date.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def _entries_in_range(
        self,
        user_id: int,
        start: date,
        end: date,
    ) -> list[JournalEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(JournalEntry)
                .where(JournalEntry.user_id == user_id)
                .where(JournalEntry.entry_date >= start)
                .where(JournalEntry.entry_date <= end)
                .order_by(JournalEntry.entry_date.asc())
            )
            return list(result.scalars().all())

    async def fetch_entry_records(
        self,
        user_id: int,
        start: date | datetime,
        end: date | datetime,
    ) -> list[JournalEntryRecord]:
        rows = await self._entries_in_range(user_id, as_date(start), as_date(end))
        return [JournalEntryRecord.from_model(row) for row in rows]

    # -- export ------------------------------------------------------------
    async def export_entries_csv(
        self,
        user_id: int,
        start: date | datetime,
        end: date | datetime,
    ) -> bytes:
        rows = await self._entries_in_range(user_id, as_date(start), as_date(end))

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_COLUMNS)
        for entry in rows:
            writer.writerow(
                [
                    entry.entry_date.isoformat(),
                    entry.title,
                    entry.mood,
                    ", ".join(split_labels(entry.secondary_moods_csv)),
                    ", ".join(split_labels(entry.tags_csv)),
                    strip_html(entry.content),
                    entry.updated_at.isoformat() if entry.updated_at else "",
                ]
            )
        return buffer.getvalue().encode("utf-8")


__all__ = [
    "DuplicateEntryDateError",
    "DuplicateUserError",
    "EntryNotFoundError",
    "StorageError",
    "StorageService",
]
