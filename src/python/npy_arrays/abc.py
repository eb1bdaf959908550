# npy_arrays/abc.py
"""Abstract Base Classes for the npy_arrays library."""

import abc


class NpyFileBase(abc.ABC):
    """Abstract base class for .npy file handlers."""

    @abc.abstractmethod
    def close(self) -> None:
        """
        Releases the handle; the underlying stream is closed if the handle
        owns it. Subsequent operations on the object will raise an error.
        """
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def closed(self) -> bool:
        """Returns True if the handle is closed."""
        raise NotImplementedError

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError(f"Operation attempted on a closed {type(self).__name__}.")

    def __enter__(self) -> "NpyFileBase":
        if self.closed:
            raise ValueError("Cannot enter context with a closed file handle.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
