"""Process-wide holder for the active policy matrix.

Readers take a snapshot with :meth:`MatrixStore.current` and evaluate
against it. Reloading builds and validates a complete new matrix first,
then replaces the reference in one assignment, so an evaluation in flight
keeps using the snapshot it started with and never sees a half-updated
table.

Example
-------
>>> store = MatrixStore()
>>> matrix = store.current()
>>> store.reload_from_file("policy.yaml")   # raises if the file is invalid
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path

from aumos_asset_access.policy.defaults import default_matrix
from aumos_asset_access.policy.loader import PolicyLoader
from aumos_asset_access.policy.matrix import PolicyMatrix

logger = logging.getLogger(__name__)


class MatrixStore:
    """Atomically swappable reference to an immutable PolicyMatrix.

    Parameters
    ----------
    initial:
        Matrix to start with. Defaults to the built-in policy.
    loader:
        Loader used by :meth:`reload_from_file`.
    """

    def __init__(
        self,
        initial: PolicyMatrix | None = None,
        loader: PolicyLoader | None = None,
    ) -> None:
        self._matrix = initial if initial is not None else default_matrix()
        self._loader = loader or PolicyLoader()
        self._write_lock = threading.Lock()
        self._generation = 0

    def current(self) -> PolicyMatrix:
        """Return the active snapshot."""
        return self._matrix

    @property
    def generation(self) -> int:
        """Number of successful swaps since construction."""
        return self._generation

    def swap(self, matrix: PolicyMatrix) -> PolicyMatrix:
        """Install *matrix* and return the snapshot it replaced."""
        if not isinstance(matrix, PolicyMatrix):
            raise TypeError(f"Expected PolicyMatrix, got {type(matrix).__name__}")
        with self._write_lock:
            previous = self._matrix
            self._matrix = matrix
            self._generation += 1
        logger.info("Policy matrix swapped (generation %d)", self._generation)
        return previous

    def reload_from_file(self, config_path: str | Path) -> PolicyMatrix:
        """Load *config_path* and install it.

        The active matrix is left untouched when loading fails.

        Raises
        ------
        PolicyConfigError
            If the file is malformed or incomplete.
        FileNotFoundError
            If the file does not exist.
        """
        matrix = self._loader.load(config_path)
        self.swap(matrix)
        return matrix


_DEFAULT_STORE = MatrixStore()


def default_store() -> MatrixStore:
    """Return the process-wide store consulted when no matrix is passed."""
    return _DEFAULT_STORE
