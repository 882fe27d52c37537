"""Blog API configuration loaded from environment variables."""
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Blog API configuration loaded from environment variables.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug logging and API documentation.
        log_json: Emit JSON log lines; False switches to console rendering.
        cors_origins_raw: Raw comma-separated CORS origins string.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        admin_key: API key required for mutating requests. Empty disables auth.
        content_root: Directory containing posts/ and pages/ markdown files.
        search_fetch_limit: Maximum posts and pages fetched per rebuild.
        search_default_limit: Results returned when a query gives no limit.
        search_tokenizer: FTS5 tokenizer spec used at index creation.
        search_stopwords: Drop stopwords from query terms.
        highlight_tag: Element name wrapped around highlighted matches.
        search_warm_on_startup: Build the index during startup instead of lazily.
        watch_enabled: Keep the index in sync with content file changes.
        event_debounce_ms: Debounce window for filesystem events.
        event_queue_size: Maximum size of each subscriber queue.
        event_max_subscribers: Maximum number of concurrent subscribers.
    """

    model_config = SettingsConfigDict(
        env_prefix="BLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_json: bool = True
    cors_origins_raw: str = "http://localhost:3000"
    shutdown_timeout: float = 30.0
    admin_key: str = ""

    content_root: Path = Path("content")

    search_fetch_limit: int = 1000
    search_default_limit: int = 20
    search_tokenizer: str = "porter unicode61"
    search_stopwords: bool = True
    highlight_tag: str = "mark"
    search_warm_on_startup: bool = False

    watch_enabled: bool = True
    event_debounce_ms: int = 50
    event_queue_size: int = 100
    event_max_subscribers: int = 10

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]

    @computed_field
    @property
    def posts_dir(self) -> Path:
        """Directory holding post markdown files."""
        return self.content_root / "posts"

    @computed_field
    @property
    def pages_dir(self) -> Path:
        """Directory holding page markdown files."""
        return self.content_root / "pages"
