"""FTS5-backed full-text index for posts and pages."""

import json
import re
import sqlite3
import threading

import structlog
from pydantic import BaseModel

from blog.search.schemas import SearchDocument, SearchDocumentType
from blog.search.stopwords import DEFAULT_STOPWORDS

logger = structlog.get_logger()

DEFAULT_TOKENIZER = "porter unicode61"

# Characters with meaning in FTS5 query syntax
_FTS5_SPECIAL = re.compile(r"[\"*(){}\[\]^~:+\-.,;!?/\\'`<>=|&@#$%]")
_TOKENIZER_SPEC = re.compile(r"^[A-Za-z0-9_ ]+$")


class SearchIndexError(Exception):
    """Raised when the underlying index fails."""

    def __init__(self, message: str, operation: str) -> None:
        """Initialize index error.

        Args:
            message: Error description.
            operation: Index operation that failed (insert, remove, search...).
        """
        super().__init__(message)
        self.operation = operation


class IndexHit(BaseModel):
    """A matched document with its relevance score (higher is better)."""

    document: SearchDocument
    score: float


def query_tokens(raw: str, stopwords: frozenset[str] = frozenset()) -> list[str]:
    """Split user input into the searchable tokens, in order.

    FTS5 syntax characters act as separators and stopwords are dropped,
    compared case-insensitively.
    """
    return [t for t in _FTS5_SPECIAL.sub(" ", raw).split() if t.lower() not in stopwords]


def build_match_query(
    raw: str,
    stopwords: frozenset[str] = frozenset(),
    prefix_last: bool = True,
) -> str | None:
    """Turn user input into a safe FTS5 MATCH expression.

    Strips FTS5 syntax characters, drops stopwords and quotes every
    remaining token. All tokens must match; the last one is prefix-matched
    for type-ahead.

    Args:
        raw: Raw user query string.
        stopwords: Lowercase words removed from the query.
        prefix_last: Append ``*`` to the final token.

    Returns:
        MATCH expression, or None if nothing searchable remains.
    """
    tokens = query_tokens(raw, stopwords)
    if not tokens:
        return None

    parts = [f'"{t}"' for t in tokens]
    if prefix_last:
        parts[-1] = f"{parts[-1]}*"
    return " ".join(parts)


class SearchIndex:
    """In-memory SQLite FTS5 index over search documents.

    Thread-safe via a lock around the connection, which is opened with
    check_same_thread=False since calls arrive from worker threads.

    Attributes:
        tokenizer: FTS5 tokenizer spec the table was created with.
    """

    def __init__(
        self,
        tokenizer: str = DEFAULT_TOKENIZER,
        stopwords: frozenset[str] = DEFAULT_STOPWORDS,
    ) -> None:
        """Initialize search index (call initialize() before use).

        Args:
            tokenizer: FTS5 tokenizer spec, e.g. "porter unicode61" or "trigram".
            stopwords: Words dropped from queries.

        Raises:
            ValueError: If the tokenizer spec contains unexpected characters.
        """
        if not _TOKENIZER_SPEC.match(tokenizer):
            raise ValueError(f"Invalid tokenizer spec: {tokenizer!r}")
        self.tokenizer = tokenizer
        self._stopwords = stopwords
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _connection(self, operation: str) -> sqlite3.Connection:
        if self._conn is None:
            raise SearchIndexError("Search index is not initialized", operation)
        return self._conn

    def initialize(self) -> None:
        """Create the in-memory database and FTS5 virtual table.

        Raises:
            SearchIndexError: If SQLite lacks FTS5 or the tokenizer is unknown.
        """
        try:
            conn = sqlite3.connect(":memory:", check_same_thread=False)
            conn.execute(f"""
                CREATE VIRTUAL TABLE documents_fts USING fts5(
                    title,
                    content,
                    excerpt,
                    tags,
                    author,
                    doc_id UNINDEXED,
                    doc_type UNINDEXED,
                    url UNINDEXED,
                    slug UNINDEXED,
                    published_at UNINDEXED,
                    tag_list UNINDEXED,
                    tokenize='{self.tokenizer}'
                )
                """)
            conn.commit()
        except sqlite3.Error as e:
            raise SearchIndexError(f"Failed to create index: {e}", "initialize") from e

        with self._lock:
            self._conn = conn
        logger.debug("search_index_initialized", tokenizer=self.tokenizer)

    def insert(self, doc: SearchDocument) -> None:
        """Add a document. Does not check for an existing document with the same id.

        Args:
            doc: Document to index.

        Raises:
            SearchIndexError: If the insert fails.
        """
        with self._lock:
            conn = self._connection("insert")
            try:
                conn.execute(
                    """
                    INSERT INTO documents_fts (
                        title, content, excerpt, tags, author,
                        doc_id, doc_type, url, slug, published_at, tag_list
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        doc.title,
                        doc.content,
                        doc.excerpt,
                        " ".join(doc.tags),
                        doc.author or "",
                        doc.id,
                        doc.type.value,
                        doc.url,
                        doc.slug,
                        doc.published_at or "",
                        json.dumps(doc.tags, ensure_ascii=False),
                    ),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise SearchIndexError(f"Failed to insert {doc.id}: {e}", "insert") from e

    def remove(self, doc_id: str) -> bool:
        """Remove every document with the given id.

        Args:
            doc_id: Document identifier.

        Returns:
            True if a document was removed, False if none was indexed.

        Raises:
            SearchIndexError: If the delete fails.
        """
        with self._lock:
            conn = self._connection("remove")
            try:
                existing = conn.execute(
                    "SELECT COUNT(*) FROM documents_fts WHERE doc_id = ?", (doc_id,)
                ).fetchone()[0]
                if existing:
                    conn.execute("DELETE FROM documents_fts WHERE doc_id = ?", (doc_id,))
                    conn.commit()
            except sqlite3.Error as e:
                raise SearchIndexError(f"Failed to remove {doc_id}: {e}", "remove") from e
        return existing > 0

    def find_id(self, doc_type: SearchDocumentType, slug: str) -> str | None:
        """Look up the id of the document indexed for an entity slug."""
        with self._lock:
            conn = self._connection("find")
            try:
                row = conn.execute(
                    "SELECT doc_id FROM documents_fts WHERE doc_type = ? AND slug = ?",
                    (doc_type.value, slug),
                ).fetchone()
            except sqlite3.Error as e:
                raise SearchIndexError(f"Failed to look up {slug}: {e}", "find") from e
        return row[0] if row else None

    @property
    def document_count(self) -> int:
        """Number of documents currently indexed."""
        with self._lock:
            conn = self._connection("count")
            try:
                return conn.execute("SELECT COUNT(*) FROM documents_fts").fetchone()[0]
            except sqlite3.Error as e:
                raise SearchIndexError(f"Failed to count documents: {e}", "count") from e

    def search(
        self,
        term: str,
        limit: int = 20,
        doc_type: SearchDocumentType | None = None,
    ) -> tuple[list[IndexHit], int]:
        """Match a term across title, content, excerpt, tags and author.

        Ranking is FTS5's bm25() with default column weights.

        Args:
            term: Raw user query.
            limit: Maximum hits to return.
            doc_type: Restrict matches to posts or pages.

        Returns:
            Tuple of (hits ordered by descending score, total match count).

        Raises:
            SearchIndexError: If the index is unavailable.
        """
        match = build_match_query(
            term,
            self._stopwords,
            prefix_last=not self.tokenizer.startswith("trigram"),
        )
        if match is None:
            return [], 0

        where = "documents_fts MATCH ?"
        params: list[str | int] = [match]
        if doc_type is not None:
            where += " AND doc_type = ?"
            params.append(doc_type.value)

        count_sql = f"SELECT COUNT(*) FROM documents_fts WHERE {where}"
        search_sql = (
            "SELECT doc_id, doc_type, title, excerpt, url, slug, published_at, "
            "author, tag_list, bm25(documents_fts) AS rank "
            f"FROM documents_fts WHERE {where} "
            "ORDER BY rank "
            "LIMIT ?"
        )

        with self._lock:
            conn = self._connection("search")
            try:
                total = conn.execute(count_sql, params).fetchone()[0]
                rows = conn.execute(search_sql, [*params, limit]).fetchall()
            except sqlite3.OperationalError:
                logger.warning("search_query_failed", query=term, match=match)
                return [], 0
            except sqlite3.Error as e:
                raise SearchIndexError(f"Search failed: {e}", "search") from e

        hits: list[IndexHit] = []
        for row in rows:
            doc_id, dt, title, excerpt, url, slug, published_at, author, tag_list, rank = row
            hits.append(
                IndexHit(
                    document=SearchDocument(
                        id=doc_id,
                        title=title,
                        excerpt=excerpt,
                        type=SearchDocumentType(dt),
                        url=url,
                        slug=slug,
                        tags=json.loads(tag_list) if tag_list else [],
                        published_at=published_at or None,
                        author=author or None,
                    ),
                    # bm25() is negative with the best match lowest
                    score=-rank,
                )
            )
        return hits, total

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.debug("search_index_closed")
