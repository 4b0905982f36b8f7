"""Fragment stores for prompt composition.

A fragment is a named block of prompt text. Identifiers are opaque to the
composer; the file-backed store maps them to ``<prompts_dir>/<id>.txt``.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from agentsync.observability.logging import get_logger
from agentsync.sync.exceptions import FragmentNotFoundError

logger = get_logger(__name__)

FRAGMENT_EXTENSION = ".txt"


class FragmentStore(ABC):
    """Keyed lookup of prompt fragment bodies."""

    @property
    @abstractmethod
    def location(self) -> str | None:
        """Human-readable location reported in not-found errors."""

    @abstractmethod
    def load(self, identifier: str) -> str:
        """Return the fragment body.

        Raises:
            FragmentNotFoundError: If no fragment exists for the identifier
        """


class FileFragmentStore(FragmentStore):
    """Loads fragments from text files under a prompts directory."""

    def __init__(self, prompts_dir: Path | str, extension: str = FRAGMENT_EXTENSION) -> None:
        self._root = Path(prompts_dir)
        self._extension = extension

    @property
    def location(self) -> str:
        return str(self._root)

    def path_for(self, identifier: str) -> Path:
        """Resolve the file path for an identifier."""
        return self._root / f"{identifier}{self._extension}"

    def load(self, identifier: str) -> str:
        path = self.path_for(identifier)
        if not path.is_file():
            logger.warning("fragment_not_found", identifier=identifier, path=str(path))
            raise FragmentNotFoundError(identifier, str(path.parent))
        content = path.read_text(encoding="utf-8")
        logger.debug("fragment_loaded", identifier=identifier, chars=len(content))
        return content


class InMemoryFragmentStore(FragmentStore):
    """Dict-backed fragment store for tests and programmatic composition."""

    def __init__(self, fragments: dict[str, str] | None = None) -> None:
        self._fragments: dict[str, str] = dict(fragments or {})

    @property
    def location(self) -> None:
        return None

    def add(self, identifier: str, content: str) -> None:
        """Register or replace a fragment."""
        self._fragments[identifier] = content

    def load(self, identifier: str) -> str:
        try:
            return self._fragments[identifier]
        except KeyError:
            raise FragmentNotFoundError(identifier) from None
