"""Ownable: Single-owner authorization for privileged cache writes.

The cache never sees this class; it receives the bound
:meth:`Ownable.is_administrator` callable.

.. code-block:: python

    >>> owner = Ownable("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
    >>> owner.is_administrator("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266")
    True
    >>> owner.is_administrator("mallory")
    False
"""

from __future__ import annotations

import logging

from web3 import Web3

from .errors import Unauthorized

logger = logging.getLogger(__name__)


def normalize_identity(identity: str) -> str:
    """Normalize a caller identity for comparison.

    Hex addresses are checksummed so that case differences do not matter;
    any other identity is compared as given.
    """
    if Web3.is_address(identity):
        return Web3.to_checksum_address(identity)
    return identity


class Ownable:
    """Holds the single privileged identity.

    :ivar owner: Normalized identity of the current owner.
    """

    def __init__(self, owner: str) -> None:
        """Initialize with the deploying identity as owner.

        :param owner: Owner identity (address or operator name).
        :raises ValueError: If owner is empty.
        """
        if not owner:
            raise ValueError("Owner identity must not be empty")
        self.owner = normalize_identity(owner)

    def is_administrator(self, caller: str) -> bool:
        """Check whether ``caller`` is the owner."""
        if not caller:
            return False
        return normalize_identity(caller) == self.owner

    def transfer_ownership(self, new_owner: str, caller: str) -> None:
        """Hand the owner role to ``new_owner``.

        :param new_owner: Identity receiving ownership.
        :param caller: Identity requesting the transfer.
        :raises Unauthorized: If caller is not the current owner. Its
            ``symbol`` is ``"ownership"``.
        :raises ValueError: If new_owner is empty.
        """
        if not self.is_administrator(caller):
            raise Unauthorized("ownership", caller)
        if not new_owner:
            raise ValueError("New owner identity must not be empty")

        previous = self.owner
        self.owner = normalize_identity(new_owner)
        logger.info(f"Ownership transferred from {previous} to {self.owner}")
