"""Asset custody adapter — the ledger's only view of asset ownership.

Bridge boundary
---------------
The marketplace never touches a registry directly.  It depends on the
``CustodyAdapter`` protocol, so any ownership service with a
``transfer_custody`` / ``current_holder`` pair can stand behind it.
``RegistryCustodyAdapter`` is the implementation over ``AssetRegistry``
collections, acting with the marketplace escrow identity as operator.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from marketledger.custody.registry import AssetRegistry, CustodyError
from marketledger.models.market import ESCROW_IDENTITY

logger = logging.getLogger(__name__)


@runtime_checkable
class CustodyAdapter(Protocol):
    """Protocol for asset custody backends."""

    def transfer_custody(self, collection: str, token_id: int, from_: str, to: str) -> None:
        """Reassign custody of an asset, or raise ``CustodyError``.

        Fails if *from_* does not hold the asset or has not granted transfer
        capability to the marketplace.
        """
        ...

    def current_holder(self, collection: str, token_id: int) -> str:
        """Return the holder of record for an asset."""
        ...


class RegistryCustodyAdapter:
    """Custody adapter over one or more in-process ``AssetRegistry`` objects.

    Parameters
    ----------
    registries:
        Collections to serve, keyed by their ``collection_id``.
    operator:
        Identity the adapter acts as when calling ``transfer_from``.
    """

    def __init__(
        self,
        registries: list[AssetRegistry] | None = None,
        operator: str = ESCROW_IDENTITY,
    ) -> None:
        self._operator = operator
        self._registries: dict[str, AssetRegistry] = {}
        for registry in registries or []:
            self.register(registry)

    @property
    def operator(self) -> str:
        return self._operator

    def register(self, registry: AssetRegistry) -> None:
        """Make *registry* reachable under its collection id."""
        self._registries[registry.collection_id] = registry

    def _registry(self, collection: str) -> AssetRegistry:
        registry = self._registries.get(collection)
        if registry is None:
            raise CustodyError(f"Unknown collection {collection!r}.")
        return registry

    def transfer_custody(self, collection: str, token_id: int, from_: str, to: str) -> None:
        self._registry(collection).transfer_from(self._operator, from_, to, token_id)
        logger.info("Custody of %s#%d moved %s -> %s.", collection, token_id, from_, to)

    def current_holder(self, collection: str, token_id: int) -> str:
        return self._registry(collection).owner_of(token_id)
