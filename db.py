import sqlite3
import aiosqlite
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple, Optional

from exercises import PREDEFINED_EXERCISES


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS: dict[str, tuple[str, list[str]]] = {}

    def __init__(self, db_path: str, provision: bool = True) -> None:
        self._db_path = db_path
        if provision:
            self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA foreign_keys=off;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)
            conn.execute("PRAGMA foreign_keys=on;")

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols]
            if missing:
                def default_val(col: str) -> str:
                    if col == "sets":
                        return "'[]'"
                    if col == "created_at":
                        return "CURRENT_TIMESTAMP"
                    return "NULL"

                defaults = ", ".join(default_val(c) for c in missing)
                conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        conn.execute(f"DROP TABLE {table}_old;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class KeyValueStore(BaseRepository):
    """String-keyed blob store backing the local adapter."""

    _TABLE_DEFINITIONS = {
        "kv_store": (
            """CREATE TABLE kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def get_item(self, key: str) -> Optional[str]:
        rows = self.fetch_all("SELECT value FROM kv_store WHERE key = ?;", (key,))
        return rows[0][0] if rows else None

    def set_item(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )

    def remove_item(self, key: str) -> None:
        self.execute("DELETE FROM kv_store WHERE key = ?;", (key,))


class AsyncDatabase(Database):
    """Provides asynchronous connection management."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()


class AsyncBaseRepository(AsyncDatabase):
    """Asynchronous variant of BaseRepository using aiosqlite."""

    async def execute(self, query: str, params: Tuple = ()) -> int:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            return cursor.lastrowid

    async def execute_rowcount(self, query: str, params: Tuple = ()) -> int:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            return cursor.rowcount

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return list(rows)

    async def fetch_one(self, query: str, params: Tuple = ()) -> Optional[Tuple]:
        rows = await self.fetch_all(query, params)
        return rows[0] if rows else None


class RemoteRepository(AsyncBaseRepository):
    """Async repository bound to the hosted workout datastore schema."""

    _TABLE_DEFINITIONS = {
        "profiles": (
            """CREATE TABLE profiles (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                );""",
            ["id", "name", "created_at", "updated_at"],
        ),
        "exercises": (
            """CREATE TABLE exercises (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    muscle_group TEXT NOT NULL
                );""",
            ["id", "name", "category", "muscle_group"],
        ),
        "custom_exercises": (
            """CREATE TABLE custom_exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    exercise_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    muscle_group TEXT NOT NULL,
                    UNIQUE (user_id, exercise_id)
                );""",
            ["id", "user_id", "exercise_id", "name", "category", "muscle_group"],
        ),
        "workouts": (
            """CREATE TABLE workouts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    exercise_id TEXT NOT NULL,
                    sets TEXT NOT NULL DEFAULT '[]'
                );""",
            ["id", "user_id", "date", "exercise_id", "sets"],
        ),
    }

    def __init__(self, db_path: str, provision: bool = True) -> None:
        super().__init__(db_path, provision)
        if provision:
            self._import_exercise_catalog_data()

    def _import_exercise_catalog_data(self) -> None:
        with self._connection() as conn:
            for ex in PREDEFINED_EXERCISES:
                conn.execute(
                    "INSERT INTO exercises (id, name, category, muscle_group) VALUES (?, ?, ?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET name=excluded.name, category=excluded.category, muscle_group=excluded.muscle_group;",
                    (ex.id, ex.name, ex.category, ex.muscle_group),
                )


class AsyncProfileRepository(RemoteRepository):
    """Async repository for account profiles."""

    async def fetch_detail(self, user_id: str) -> Optional[Tuple[str, str, str, Optional[str]]]:
        return await self.fetch_one(
            "SELECT id, name, created_at, updated_at FROM profiles WHERE id = ?;",
            (user_id,),
        )

    async def upsert_name(self, user_id: str, name: str, timestamp: str) -> None:
        await self.execute(
            "INSERT INTO profiles (id, name, created_at) VALUES (?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET name=excluded.name, updated_at=?;",
            (user_id, name, timestamp, timestamp),
        )

    async def update_name(self, user_id: str, name: str, timestamp: str) -> int:
        return await self.execute_rowcount(
            "UPDATE profiles SET name = ?, updated_at = ? WHERE id = ?;",
            (name, timestamp, user_id),
        )


class AsyncExerciseRepository(RemoteRepository):
    """Async repository for the predefined exercise catalog."""

    async def fetch_catalog(self) -> List[Tuple[str, str, str, str]]:
        return await self.fetch_all(
            "SELECT id, name, category, muscle_group FROM exercises ORDER BY category ASC, name ASC;"
        )

    async def fetch_detail(self, exercise_id: str) -> Optional[Tuple[str, str, str, str]]:
        return await self.fetch_one(
            "SELECT id, name, category, muscle_group FROM exercises WHERE id = ?;",
            (exercise_id,),
        )


class AsyncCustomExerciseRepository(RemoteRepository):
    """Async repository for user-owned exercises."""

    async def add(
        self, user_id: str, exercise_id: str, name: str, category: str, muscle_group: str
    ) -> int:
        return await self.execute(
            "INSERT INTO custom_exercises (user_id, exercise_id, name, category, muscle_group) VALUES (?, ?, ?, ?, ?);",
            (user_id, exercise_id, name, category, muscle_group),
        )

    async def update(
        self, user_id: str, exercise_id: str, name: str, category: str, muscle_group: str
    ) -> int:
        return await self.execute_rowcount(
            "UPDATE custom_exercises SET name = ?, category = ?, muscle_group = ? WHERE user_id = ? AND exercise_id = ?;",
            (name, category, muscle_group, user_id, exercise_id),
        )

    async def fetch_for_user(self, user_id: str) -> List[Tuple[str, str, str, str]]:
        return await self.fetch_all(
            "SELECT exercise_id, name, category, muscle_group FROM custom_exercises WHERE user_id = ? ORDER BY id;",
            (user_id,),
        )

    async def exists(self, user_id: str, exercise_id: str) -> bool:
        row = await self.fetch_one(
            "SELECT exercise_id FROM custom_exercises WHERE user_id = ? AND exercise_id = ?;",
            (user_id, exercise_id),
        )
        return row is not None

    async def delete(self, user_id: str, exercise_id: str) -> None:
        await self.execute(
            "DELETE FROM custom_exercises WHERE user_id = ? AND exercise_id = ?;",
            (user_id, exercise_id),
        )


class AsyncWorkoutRepository(RemoteRepository):
    """Async repository for workout table operations."""

    async def create(
        self, workout_id: str, user_id: str, date: str, exercise_id: str, sets: str
    ) -> None:
        await self.execute(
            "INSERT INTO workouts (id, user_id, date, exercise_id, sets) VALUES (?, ?, ?, ?, ?);",
            (workout_id, user_id, date, exercise_id, sets),
        )

    async def fetch_all_workouts(
        self,
        user_id: str,
        exercise_id: Optional[str] = None,
        date: Optional[str] = None,
    ) -> List[Tuple[str, str, str, str]]:
        query = "SELECT id, date, exercise_id, sets FROM workouts"
        where_clauses = ["user_id = ?"]
        params: list[str] = [user_id]
        if exercise_id:
            where_clauses.append("exercise_id = ?")
            params.append(exercise_id)
        if date:
            where_clauses.append("date = ?")
            params.append(date)
        query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY date DESC, rowid ASC;"
        return await self.fetch_all(query, tuple(params))

    async def fetch_detail(
        self, workout_id: str, user_id: str
    ) -> Optional[Tuple[str, str, str, str]]:
        return await self.fetch_one(
            "SELECT id, date, exercise_id, sets FROM workouts WHERE id = ? AND user_id = ?;",
            (workout_id, user_id),
        )

    async def exists(self, workout_id: str, user_id: str) -> bool:
        row = await self.fetch_one(
            "SELECT id FROM workouts WHERE id = ? AND user_id = ?;",
            (workout_id, user_id),
        )
        return row is not None

    async def update(
        self, workout_id: str, user_id: str, date: str, exercise_id: str, sets: str
    ) -> int:
        return await self.execute_rowcount(
            "UPDATE workouts SET date = ?, exercise_id = ?, sets = ? WHERE id = ? AND user_id = ?;",
            (date, exercise_id, sets, workout_id, user_id),
        )

    async def delete(self, workout_id: str, user_id: str) -> None:
        await self.execute(
            "DELETE FROM workouts WHERE id = ? AND user_id = ?;",
            (workout_id, user_id),
        )
