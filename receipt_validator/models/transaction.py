"""
Store-agnostic transaction base.

A transaction owns the raw key/value payload it was decoded from and exposes
a typed view over it. Concrete stores implement parse() to derive that view.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Self


class AbstractTransaction(ABC):
    """Base class for a typed view over one decoded store transaction payload."""

    def __init__(self, raw_data: Mapping[str, Any] | None = None) -> None:
        """
        Create a transaction holding raw_data without parsing it.

        Args:
            raw_data: Decoded transaction payload, or None to assign later
        """
        self._raw_data: Any = None
        self.set_raw_data(raw_data)

    @classmethod
    def from_raw_data(cls, raw_data: Mapping[str, Any]) -> Self:
        """Create a transaction from raw_data and parse it immediately."""
        return cls(raw_data).parse()

    @property
    def raw_data(self) -> Any:
        """The payload the typed view is derived from."""
        return self._raw_data

    @raw_data.setter
    def raw_data(self, raw_data: Any) -> None:
        self.set_raw_data(raw_data)

    def get_raw_data(self) -> Any:
        """Return the raw payload: a dict, None if unassigned, or a non-mapping awaiting rejection."""
        return self._raw_data

    def set_raw_data(self, raw_data: Mapping[str, Any] | None) -> Self:
        """
        Replace the raw payload wholesale.

        Mappings are copied so the transaction owns its payload. Anything else
        is kept as given and rejected by the next parse(). Typed fields are not
        recomputed until parse() runs.
        """
        if isinstance(raw_data, Mapping):
            self._raw_data = dict(raw_data)
        else:
            self._raw_data = raw_data
        return self

    @abstractmethod
    def parse(self) -> Self:
        """Derive every typed field from the raw payload."""

    @property
    @abstractmethod
    def transaction_id(self) -> str | None:
        """Unique identifier of the transaction."""

    @property
    @abstractmethod
    def product_id(self) -> str | None:
        """Identifier of the purchased product."""

    @property
    @abstractmethod
    def quantity(self) -> int | None:
        """Number of items purchased."""
