"""Random name generation for temporary resources.

Names are drawn uniformly from the configured alphabet. Uniqueness is
checked against the target directory, but the check alone cannot rule out
a concurrent creator taking the same name before we do; callers that
create the entry exclusively use ``create_unique`` so a lost race simply
costs one attempt.
"""

import logging
import random
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from tempfs.config import TempfsConfig, get_default_config
from tempfs.errors import NameGenerationExhaustedError, PathExistsError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NameGenerator:
    """Generates random names that are free in a given directory.

    Attributes:
        config: Settings providing alphabet, name length and retry budget.
    """

    def __init__(
        self,
        config: TempfsConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the NameGenerator.

        Args:
            config: Settings to use. Defaults to the shared default config.
            rng: Random source. Defaults to ``random.SystemRandom``.
        """
        self.config = config if config is not None else get_default_config()
        self._rng = rng if rng is not None else random.SystemRandom()

    def generate(self) -> str:
        """Generate a single candidate name.

        Returns:
            A name of ``config.name_length`` characters.
        """
        alphabet = self.config.alphabet
        return "".join(self._rng.choice(alphabet) for _ in range(self.config.name_length))

    def generate_unique(self, parent_dir: Path) -> Path:
        """Find a name that does not exist yet in ``parent_dir``.

        Args:
            parent_dir: Directory the name must be free in.

        Returns:
            ``parent_dir / name`` for the first free candidate.

        Raises:
            NameGenerationExhaustedError: If the retry budget was used up.
        """
        for _ in range(self.config.retry_budget):
            candidate = parent_dir / self.generate()
            if not candidate.exists():
                return candidate

        raise NameGenerationExhaustedError(parent_dir, self.config.retry_budget)

    def create_unique(self, parent_dir: Path, create: Callable[[Path], T]) -> T:
        """Find a free name in ``parent_dir`` and create it.

        ``create`` is expected to create the entry exclusively and raise
        PathExistsError if the entry appeared in the meantime. Such a
        collision uses up one attempt and generation continues.

        Args:
            parent_dir: Directory to create the entry in.
            create: Callable creating the entry at the given path.

        Returns:
            Whatever ``create`` returned.

        Raises:
            NameGenerationExhaustedError: If the retry budget was used up.
        """
        for _ in range(self.config.retry_budget):
            candidate = parent_dir / self.generate()
            if candidate.exists():
                continue
            try:
                return create(candidate)
            except PathExistsError:
                logger.debug("Lost creation race for %s, retrying", candidate)

        raise NameGenerationExhaustedError(parent_dir, self.config.retry_budget)
