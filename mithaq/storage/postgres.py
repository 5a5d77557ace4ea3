"""
PostgreSQL MatchStore (asyncpg)

Each entity is stored as a JSONB document next to the columns used for
lookups. Atomic commits run inside a single transaction.

Usage:
    store = await PostgresStore.connect(os.getenv("DATABASE_URL"))
    await store.init_schema()
"""

import json
import logging
from typing import List, Optional

import asyncpg

from mithaq.matching.models import GuardianApproval, Match, MatchStatus, SwipeRecord, pair_key
from mithaq.storage.base import MatchStore
from mithaq.users.models import User, UserPreferences

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS mithaq_users (
    id TEXT PRIMARY KEY,
    doc JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS mithaq_preferences (
    user_id TEXT PRIMARY KEY,
    doc JSONB NOT NULL
);

CREATE TABLE IF NOT EXISTS mithaq_matches (
    id TEXT PRIMARY KEY,
    pair_key TEXT NOT NULL UNIQUE,
    user1_id TEXT NOT NULL,
    user2_id TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    doc JSONB NOT NULL
);

CREATE TABLE IF NOT EXISTS mithaq_swipes (
    actor_id TEXT NOT NULL,
    target_id TEXT NOT NULL,
    action TEXT NOT NULL,
    doc JSONB NOT NULL,
    PRIMARY KEY (actor_id, target_id)
);

CREATE TABLE IF NOT EXISTS mithaq_guardian_approvals (
    id TEXT PRIMARY KEY,
    match_id TEXT NOT NULL REFERENCES mithaq_matches(id),
    guardian_id TEXT NOT NULL,
    seq BIGSERIAL,
    doc JSONB NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_mithaq_matches_user1 ON mithaq_matches(user1_id);
CREATE INDEX IF NOT EXISTS idx_mithaq_matches_user2 ON mithaq_matches(user2_id);
CREATE INDEX IF NOT EXISTS idx_mithaq_approvals_match ON mithaq_guardian_approvals(match_id);
"""


def _dump(model) -> str:
    return json.dumps(model.model_dump(mode="json"))


def _load(model_class, doc):
    # asyncpg returns JSONB as text unless a codec is registered
    if isinstance(doc, str):
        return model_class.model_validate_json(doc)
    return model_class.model_validate(doc)


class PostgresStore(MatchStore):

    connection_errors = (
        asyncpg.exceptions.PostgresConnectionError,
        asyncpg.exceptions.InterfaceError,
    )

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    @classmethod
    async def connect(cls, database_url: str, min_size: int = 1, max_size: int = 10) -> "PostgresStore":
        pool = await asyncpg.create_pool(database_url, min_size=min_size, max_size=max_size)
        logger.info("PostgresStore connected")
        return cls(pool)

    async def init_schema(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)

    async def close(self) -> None:
        await self.pool.close()

    # ===== USERS =====

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT doc FROM mithaq_users WHERE id = $1", user_id)
        return _load(User, row["doc"]) if row else None

    async def put_user(self, user: User) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("""
                INSERT INTO mithaq_users (id, doc) VALUES ($1, $2::jsonb)
                ON CONFLICT (id) DO UPDATE SET doc = EXCLUDED.doc
            """, user.id, _dump(user))

    async def list_users(self) -> List[User]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT doc FROM mithaq_users ORDER BY created_at, id")
        return [_load(User, row["doc"]) for row in rows]

    # ===== PREFERENCES =====

    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT doc FROM mithaq_preferences WHERE user_id = $1", user_id
            )
        return _load(UserPreferences, row["doc"]) if row else None

    async def put_preferences(self, preferences: UserPreferences) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("""
                INSERT INTO mithaq_preferences (user_id, doc) VALUES ($1, $2::jsonb)
                ON CONFLICT (user_id) DO UPDATE SET doc = EXCLUDED.doc
            """, preferences.user_id, _dump(preferences))

    # ===== MATCHES =====

    @staticmethod
    async def _upsert_match(conn, match: Match) -> None:
        await conn.execute("""
            INSERT INTO mithaq_matches (id, pair_key, user1_id, user2_id, status, created_at, doc)
            VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb)
            ON CONFLICT (id) DO UPDATE SET status = EXCLUDED.status, doc = EXCLUDED.doc
        """,
            match.id,
            pair_key(match.user1_id, match.user2_id),
            match.user1_id,
            match.user2_id,
            match.status.value,
            match.created_at,
            _dump(match),
        )

    async def get_match(self, match_id: str) -> Optional[Match]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT doc FROM mithaq_matches WHERE id = $1", match_id)
        return _load(Match, row["doc"]) if row else None

    async def put_match(self, match: Match) -> None:
        async with self.pool.acquire() as conn:
            await self._upsert_match(conn, match)

    async def find_match_for_pair(self, user_a: str, user_b: str) -> Optional[Match]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT doc FROM mithaq_matches WHERE pair_key = $1", pair_key(user_a, user_b)
            )
        return _load(Match, row["doc"]) if row else None

    async def list_matches(
        self,
        user_id: Optional[str] = None,
        status: Optional[MatchStatus] = None,
    ) -> List[Match]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT doc FROM mithaq_matches
                WHERE ($1::text IS NULL OR user1_id = $1 OR user2_id = $1)
                  AND ($2::text IS NULL OR status = $2)
                ORDER BY created_at
            """, user_id, status.value if status else None)
        return [_load(Match, row["doc"]) for row in rows]

    # ===== SWIPES =====

    async def list_swipes(self, actor_id: str) -> List[SwipeRecord]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT doc FROM mithaq_swipes WHERE actor_id = $1", actor_id)
        return [_load(SwipeRecord, row["doc"]) for row in rows]

    async def get_swipe(self, actor_id: str, target_id: str) -> Optional[SwipeRecord]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT doc FROM mithaq_swipes WHERE actor_id = $1 AND target_id = $2",
                actor_id, target_id,
            )
        return _load(SwipeRecord, row["doc"]) if row else None

    async def save_swipe(self, swipe: SwipeRecord, match: Optional[Match] = None) -> None:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute("""
                    INSERT INTO mithaq_swipes (actor_id, target_id, action, doc)
                    VALUES ($1, $2, $3, $4::jsonb)
                    ON CONFLICT (actor_id, target_id)
                    DO UPDATE SET action = EXCLUDED.action, doc = EXCLUDED.doc
                """, swipe.actor_id, swipe.target_id, swipe.action.value, _dump(swipe))
                if match is not None:
                    await self._upsert_match(conn, match)

    # ===== GUARDIAN APPROVALS =====

    async def save_approval(self, approval: GuardianApproval, match: Match) -> None:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute("""
                    INSERT INTO mithaq_guardian_approvals (id, match_id, guardian_id, doc)
                    VALUES ($1, $2, $3, $4::jsonb)
                """, approval.id, approval.match_id, approval.guardian_id, _dump(approval))
                await self._upsert_match(conn, match)

    async def list_approvals(self, match_id: str) -> List[GuardianApproval]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT doc FROM mithaq_guardian_approvals
                WHERE match_id = $1 ORDER BY seq
            """, match_id)
        return [_load(GuardianApproval, row["doc"]) for row in rows]
