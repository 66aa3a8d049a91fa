"""Validation context passed through every rule invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Protocol

from gatekeep._selector import DefaultValidatorSelector, ValidatorSelector
from gatekeep._types import T


class CancellationSignal(Protocol):
    """Anything with an is_set() method, e.g. asyncio.Event or threading.Event."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class ValidationContext(Generic[T]):
    """
    State shared by all rules during one validate call.

    Attributes:
        instance: The object under validation
        property_chain: Property names leading to ``instance`` from the
                        top-level object, empty at the top level
        selector: Decides which rules run in this pass
        cancellation: Optional signal checked before each async rule
    """

    instance: T
    property_chain: tuple[str, ...] = ()
    selector: ValidatorSelector = field(default_factory=DefaultValidatorSelector)
    cancellation: CancellationSignal | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancellation is not None and self.cancellation.is_set()

    def property_path(self, property_name: str) -> str:
        """Full dotted path of ``property_name`` under the current chain."""
        if not property_name:
            return ".".join(self.property_chain)
        return ".".join((*self.property_chain, property_name))

    def for_child(self, instance: Any, property_name: str) -> ValidationContext[Any]:
        """Derive a context for validating a nested object."""
        return ValidationContext(
            instance=instance,
            property_chain=(*self.property_chain, property_name),
            selector=self.selector,
            cancellation=self.cancellation,
        )
