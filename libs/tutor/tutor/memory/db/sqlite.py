import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

try:
    from sqlalchemy import Column, DateTime, Engine, MetaData, String, Table, create_engine, delete, inspect, select
    from sqlalchemy.exc import SQLAlchemyError
    from sqlalchemy.orm import scoped_session, sessionmaker
    from sqlalchemy.sql.expression import Insert, Update
except ImportError:
    raise ImportError("`sqlalchemy` not installed. Please install it with `pip install sqlalchemy`")

from tutor.memory.db.base import MemoryDb
from tutor.memory.schema import MemoryRow
from tutor.utils.log import log_debug, log_error, log_info, log_warning
from tutor.utils.vector import cosine_similarity


class SqliteMemoryDb(MemoryDb):
    def __init__(
        self,
        table_name: str = "memory",
        db_url: Optional[str] = None,
        db_file: Optional[str] = None,
        db_engine: Optional[Engine] = None,
    ):
        """
        This class provides a memory store backed by a SQLite table.

        The following order is used to determine the database connection:
            1. Use the db_engine if provided
            2. Use the db_url
            3. Use the db_file
            4. Create a new in-memory database

        Args:
            table_name: The name of the table to store memories.
            db_url: The database URL to connect to.
            db_file: The database file to connect to.
            db_engine: The database engine to use.
        """
        self.db_file = db_file
        _engine: Optional[Engine] = db_engine
        if _engine is None and db_url is not None:
            _engine = create_engine(db_url)
        elif _engine is None and db_file is not None:
            db_path = Path(db_file).resolve()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            _engine = create_engine(f"sqlite:///{db_path}")
        elif _engine is None:
            _engine = create_engine("sqlite://")

        self.table_name: str = table_name
        self.db_url: Optional[str] = db_url
        self.db_engine: Engine = _engine
        self.metadata: MetaData = MetaData()

        self.Session = scoped_session(sessionmaker(bind=self.db_engine))
        self.table: Table = self.get_table()

    def get_table(self) -> Table:
        return Table(
            self.table_name,
            self.metadata,
            Column("id", String, primary_key=True),
            Column("user_id", String, index=True),
            # Memory and embedding are stored as JSON strings
            Column("memory", String),
            Column("embedding", String),
            Column("created_at", DateTime, default=datetime.now),
            Column("updated_at", DateTime, default=datetime.now),
            extend_existing=True,
        )

    def create(self) -> None:
        if not self.table_exists():
            try:
                log_debug(f"Creating table: {self.table_name}")
                self.table.create(self.db_engine, checkfirst=True)
            except Exception as e:
                log_error(f"Error creating table '{self.table_name}': {e}")
                raise

    def _to_memory_row(self, row) -> MemoryRow:
        return MemoryRow(
            id=row.id,
            user_id=row.user_id,
            memory=json.loads(row.memory),
            embedding=json.loads(row.embedding) if row.embedding else None,
            last_updated=row.updated_at or row.created_at,
        )

    def memory_exists(self, memory: MemoryRow) -> bool:
        with self.Session() as session:
            stmt = select(self.table.c.id).where(self.table.c.id == memory.id)
            result = session.execute(stmt).first()
            return result is not None

    def read_memories(
        self, user_id: Optional[str] = None, limit: Optional[int] = None, sort: Optional[str] = None
    ) -> List[MemoryRow]:
        memories: List[MemoryRow] = []
        try:
            with self.Session() as session:
                stmt = select(self.table)
                if user_id is not None:
                    stmt = stmt.where(self.table.c.user_id == user_id)

                if sort == "asc":
                    stmt = stmt.order_by(self.table.c.updated_at.asc())
                else:
                    stmt = stmt.order_by(self.table.c.updated_at.desc())

                if limit is not None:
                    stmt = stmt.limit(limit)

                for row in session.execute(stmt):
                    try:
                        memories.append(self._to_memory_row(row))
                    except (json.JSONDecodeError, TypeError, KeyError) as e:
                        log_warning(f"Error processing memory row {row.id} during read: {e}")
        except SQLAlchemyError as e:
            log_debug(f"Exception reading from table: {e}")
            if not self.table_exists():
                log_debug(f"Table does not exist: {self.table_name}")
                log_debug("Creating table for future transactions")
                self.create()
        return memories

    def upsert_memory(self, memory: MemoryRow, create_and_retry: bool = True) -> Optional[MemoryRow]:
        try:
            with self.Session() as session:
                existing = session.execute(select(self.table.c.id).where(self.table.c.id == memory.id)).first()

                memory_json = json.dumps(memory.memory)
                embedding_json = json.dumps(memory.embedding) if memory.embedding else None
                now = datetime.now()

                stmt: Union[Update, Insert]
                if existing:
                    stmt = (
                        self.table.update()
                        .where(self.table.c.id == memory.id)
                        .values(user_id=memory.user_id, memory=memory_json, embedding=embedding_json, updated_at=now)
                    )
                else:
                    stmt = self.table.insert().values(
                        id=memory.id,
                        user_id=memory.user_id,
                        memory=memory_json,
                        embedding=embedding_json,
                        created_at=now,
                        updated_at=now,
                    )

                session.execute(stmt)
                session.commit()
            return memory
        except SQLAlchemyError as e:
            if not self.table_exists():
                log_info(f"Table does not exist: {self.table_name}")
                log_info("Creating table for future transactions")
                self.create()
                if create_and_retry:
                    return self.upsert_memory(memory, create_and_retry=False)
            log_error(f"Exception upserting into table: {e}")
            raise

    def delete_memory(self, memory_id: str) -> None:
        if not self.table_exists():
            return
        with self.Session() as session:
            stmt = delete(self.table).where(self.table.c.id == memory_id)
            session.execute(stmt)
            session.commit()

    def drop_table(self) -> None:
        if self.table_exists():
            log_debug(f"Deleting table: {self.table_name}")
            self.table.drop(self.db_engine)

    def table_exists(self) -> bool:
        log_debug(f"Checking if table exists: {self.table.name}", log_level=2)
        try:
            return inspect(self.db_engine).has_table(self.table.name)
        except Exception as e:
            log_error(e)
            return False

    def clear(self) -> bool:
        with self.Session() as session:
            if self.table_exists():
                stmt = delete(self.table)
                session.execute(stmt)
                session.commit()
        return True

    def search_memories_semantic(
        self, query_embedding: List[float], user_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[MemoryRow]:
        """Retrieve memories semantically similar to the query embedding using cosine similarity."""
        scored = [
            (row, cosine_similarity(query_embedding, row.embedding))
            for row in self.read_memories(user_id=user_id)
            if row.embedding
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        if limit is not None:
            scored = scored[:limit]
        return [row for row, _ in scored]
