"""In-memory non-fungible asset registry.

Reference collection used by the demo and the test-suite.  It keeps the
usual ownership rules of a non-fungible token contract: one owner per
token, and a transfer is allowed only when the operator is the owner or has
been approved for all of the owner's tokens.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class CustodyError(RuntimeError):
    """Raised when the registry refuses a mint or transfer."""


class AssetRegistry:
    """One collection of non-fungible assets.

    Parameters
    ----------
    collection_id:
        Identifier of this collection, as referenced by listings.

    Examples
    --------
    >>> nft = AssetRegistry("nft")
    >>> nft.mint("alice", "ipfs://token-1")
    1
    >>> nft.owner_of(1)
    'alice'
    """

    def __init__(self, collection_id: str) -> None:
        self.collection_id = collection_id
        self._lock = threading.Lock()
        self._owners: dict[int, str] = {}
        self._uris: dict[int, str] = {}
        self._operators: dict[str, set[str]] = {}
        self._token_count = 0

    # -- Minting ------------------------------------------------------------

    def mint(self, owner: str, token_uri: str = "") -> int:
        """Mint a new token to *owner* and return its id (ids start at 1)."""
        if not owner:
            raise CustodyError("Cannot mint to an empty identity.")
        with self._lock:
            self._token_count += 1
            token_id = self._token_count
            self._owners[token_id] = owner
            self._uris[token_id] = token_uri
        logger.debug("Minted %s#%d to %s.", self.collection_id, token_id, owner)
        return token_id

    # -- Queries ------------------------------------------------------------

    @property
    def token_count(self) -> int:
        return self._token_count

    def owner_of(self, token_id: int) -> str:
        """Return the current owner of *token_id*."""
        try:
            return self._owners[token_id]
        except KeyError:
            raise CustodyError(
                f"{self.collection_id}#{token_id} does not exist."
            ) from None

    def token_uri(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self._uris[token_id]

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return operator in self._operators.get(owner, set())

    # -- Approvals & transfers ----------------------------------------------

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        """Grant or revoke *operator*'s right to move all of *owner*'s tokens."""
        if owner == operator:
            raise CustodyError("Cannot approve yourself as operator.")
        with self._lock:
            operators = self._operators.setdefault(owner, set())
            if approved:
                operators.add(operator)
            else:
                operators.discard(operator)
        logger.debug(
            "%s approval for %s on %s: %s.",
            self.collection_id, operator, owner, approved,
        )

    def transfer_from(self, operator: str, from_: str, to: str, token_id: int) -> None:
        """Move *token_id* from *from_* to *to* on behalf of *operator*.

        Raises
        ------
        CustodyError
            If the token does not exist, *from_* is not its owner, *operator*
            is neither the owner nor an approved operator, or *to* is empty.
        """
        if not to:
            raise CustodyError("Cannot transfer to an empty identity.")
        with self._lock:
            owner = self.owner_of(token_id)
            if owner != from_:
                raise CustodyError(
                    f"{self.collection_id}#{token_id} is held by {owner!r}, "
                    f"not {from_!r}."
                )
            if operator != owner and not self.is_approved_for_all(owner, operator):
                raise CustodyError(
                    f"{operator!r} is not approved to transfer "
                    f"{self.collection_id}#{token_id} for {owner!r}."
                )
            self._owners[token_id] = to
        logger.debug(
            "Transferred %s#%d: %s -> %s.", self.collection_id, token_id, from_, to
        )
