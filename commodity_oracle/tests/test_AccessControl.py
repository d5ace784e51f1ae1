"""Unit tests for Ownable."""

import pytest

from commodity_oracle.src.AccessControl import Ownable, normalize_identity
from commodity_oracle.src.errors import Unauthorized

OWNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
OTHER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


class TestOwnable:
    """Test owner checks and ownership transfer."""

    def test_owner_is_administrator(self) -> None:
        """The configured owner should pass the check."""
        assert Ownable(OWNER).is_administrator(OWNER) is True

    def test_address_case_ignored(self) -> None:
        """Lowercase and checksummed forms should be the same identity."""
        owner = Ownable(OWNER.lower())
        assert owner.owner == OWNER
        assert owner.is_administrator(OWNER.upper().replace("0X", "0x")) is True

    def test_other_is_not_administrator(self) -> None:
        """Any other identity should fail the check."""
        owner = Ownable(OWNER)
        assert owner.is_administrator(OTHER) is False
        assert owner.is_administrator("") is False

    def test_plain_identities_compare_exactly(self) -> None:
        """Non-address identities should match only when identical."""
        owner = Ownable("operator")
        assert owner.is_administrator("operator") is True
        assert owner.is_administrator("Operator") is False

    def test_empty_owner_rejected(self) -> None:
        """An owner identity is required."""
        with pytest.raises(ValueError):
            Ownable("")

    def test_transfer_ownership(self) -> None:
        """The owner should be able to hand over the role."""
        owner = Ownable(OWNER)
        owner.transfer_ownership(OTHER, caller=OWNER)

        assert owner.is_administrator(OTHER) is True
        assert owner.is_administrator(OWNER) is False

    def test_transfer_by_non_owner(self) -> None:
        """Only the owner may transfer ownership."""
        owner = Ownable(OWNER)
        with pytest.raises(Unauthorized) as exc_info:
            owner.transfer_ownership(OTHER, caller=OTHER)
        assert owner.owner == OWNER
        assert exc_info.value.symbol == "ownership"
        assert exc_info.value.caller == OTHER

    def test_normalize_identity(self) -> None:
        """Only valid hex addresses are rewritten."""
        assert normalize_identity(OWNER.lower()) == OWNER
        assert normalize_identity("operator") == "operator"
