"""Reading markdown files with YAML frontmatter from the content root."""
import errno
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

import structlog
import yaml
from pydantic import BaseModel, ValidationError

from blog.content.paths import MARKDOWN_SUFFIX, is_excluded

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

# The closing fence must start a line; the body may be empty.
_FRONTMATTER = re.compile(
    r"\A---[ \t]*\n(?P<meta>.*?)^---[ \t]*(?:\n|\Z)(?P<body>.*)\Z",
    re.DOTALL | re.MULTILINE,
)


@dataclass(frozen=True)
class ParsedContent(Generic[T]):
    """A content file split into validated frontmatter and markdown body.

    Attributes:
        meta: Validated frontmatter.
        content: Markdown after the frontmatter block.
        mtime: Modification time when the file was read.
    """

    meta: T
    content: str
    mtime: float = 0.0


class FileSystemError(Exception):
    """Raised when the content root cannot be read.

    Attributes:
        path: File or directory involved.
        code: errno name such as ``ENOENT``, when known.
    """

    def __init__(self, message: str, path: str, code: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.code = code

    @classmethod
    def from_os_error(cls, error: OSError, path: Path) -> "FileSystemError":
        code = errno.errorcode.get(error.errno) if error.errno is not None else None
        return cls(f"{error.strerror or error}: {path}", str(path), code)


class ContentValidationError(Exception):
    """Raised when a file's frontmatter does not fit its schema."""

    def __init__(
        self, message: str, path: str, validation_error: ValidationError
    ) -> None:
        super().__init__(message)
        self.path = path
        self.validation_error = validation_error


def parse_frontmatter(content: str) -> tuple[dict[str, object], str]:
    """Split a ``---`` fenced YAML block from the top of a markdown file.

    Text without a well-formed mapping block is returned whole as body.

    Args:
        content: Raw file text.

    Returns:
        Tuple of (frontmatter mapping, body).
    """
    text = content.lstrip("\ufeff").replace("\r\n", "\n")
    match = _FRONTMATTER.match(text)
    if match is None:
        return {}, text

    try:
        data = yaml.safe_load(match["meta"])
    except yaml.YAMLError:
        return {}, text

    if data is None:
        return {}, match["body"]
    if not isinstance(data, dict):
        return {}, text
    return data, match["body"]


def read_content(filepath: Path, schema: type[T]) -> ParsedContent[T]:
    """Load one markdown file and validate its frontmatter.

    Args:
        filepath: Markdown file to read.
        schema: Frontmatter model (``PostMeta`` or ``PageMeta``).

    Returns:
        Parsed file.

    Raises:
        FileSystemError: If the file cannot be read; ``code`` is ``ENOENT``
            for a missing file.
        ContentValidationError: If the frontmatter is invalid.
    """
    try:
        raw = filepath.read_text(encoding="utf-8")
        mtime = filepath.stat().st_mtime
    except OSError as e:
        raise FileSystemError.from_os_error(e, filepath) from e
    except UnicodeDecodeError as e:
        raise FileSystemError(f"Not UTF-8 text: {filepath}", str(filepath), "EILSEQ") from e

    frontmatter, body = parse_frontmatter(raw)
    try:
        meta = schema.model_validate(frontmatter)
    except ValidationError as e:
        raise ContentValidationError(
            f"Invalid frontmatter in {filepath}", str(filepath), e
        ) from e

    return ParsedContent(meta=meta, content=body, mtime=mtime)


def iter_directory(
    directory: Path, schema: type[T]
) -> Iterator[tuple[str, ParsedContent[T]]]:
    """Yield (slug, parsed file) for every markdown file in a directory.

    Files that cannot be read or validated are logged and skipped so one
    broken post never hides the rest. A missing directory yields nothing.

    Args:
        directory: Posts or pages directory (not searched recursively).
        schema: Frontmatter model for the directory's entities.

    Yields:
        Slug (file stem) and parsed file, in filename order.

    Raises:
        FileSystemError: If the directory exists but cannot be listed.
    """
    try:
        entries = sorted(directory.iterdir())
    except FileNotFoundError:
        logger.warning("content_directory_not_found", path=str(directory))
        return
    except OSError as e:
        raise FileSystemError.from_os_error(e, directory) from e

    for entry in entries:
        if entry.suffix != MARKDOWN_SUFFIX or is_excluded(entry.name) or not entry.is_file():
            continue
        try:
            yield entry.stem, read_content(entry, schema)
        except ContentValidationError as e:
            logger.warning(
                "content_validation_error",
                file=str(entry),
                errors=e.validation_error.error_count(),
                detail=str(e.validation_error),
            )
        except FileSystemError as e:
            logger.warning("content_read_error", file=str(entry), code=e.code, error=str(e))
