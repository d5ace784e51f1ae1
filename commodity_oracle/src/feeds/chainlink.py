"""On-chain AggregatorV3 price feed.

Feed reference: address of a Chainlink-compatible aggregator contract,
e.g. 0xC5981F461d74c46eB4b0CF3f4Ec79f025573B0Ea (XAU/USD on Sepolia).
The raw ``answer`` of ``latestRoundData()`` is returned unscaled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from web3 import Web3

from ..ContractUtility import ContractUtility
from ..errors import FeedUnavailable
from .base import BasePriceFeed, register_feed

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


@register_feed
class ChainlinkPriceFeed(BasePriceFeed):
    """Feed reading ``latestRoundData()`` from aggregator contracts.

    :ivar w3: Web3 instance used for contract calls.
    """

    name = "chainlink"

    def __init__(self, w3: Web3, timeout: float | None = None):
        """Initialize the feed.

        :param w3: Connected Web3 instance.
        :param timeout: Unused for RPC calls, kept for a uniform constructor.
        """
        super().__init__(timeout=timeout)
        self.w3 = w3
        self.abi = ContractUtility.get_contract("AggregatorV3Interface")
        self._contracts: dict[str, Contract] = {}

    def _contract(self, feed_ref: str) -> Contract:
        try:
            address = Web3.to_checksum_address(feed_ref)
        except ValueError as e:
            raise FeedUnavailable(feed_ref, f"invalid aggregator address: {e}") from e

        if address not in self._contracts:
            self._contracts[address] = self.w3.eth.contract(address=address, abi=self.abi)
        return self._contracts[address]

    async def latest_price(self, feed_ref: str) -> int:
        """Read the latest round answer from the aggregator at ``feed_ref``.

        :param feed_ref: Aggregator contract address.
        :returns: Latest answer as reported on-chain.
        :raises FeedUnavailable: On RPC failure, an incomplete round
            (``updatedAt == 0``) or a negative answer.
        """
        contract = self._contract(feed_ref)
        try:
            round_data = await asyncio.to_thread(
                contract.functions.latestRoundData().call
            )
        except Exception as e:
            logger.warning(f"[chainlink] latestRoundData failed for {feed_ref}: {e}")
            raise FeedUnavailable(feed_ref, f"RPC call failed: {e}") from e

        round_id, answer, _started_at, updated_at, _answered_in_round = round_data
        if updated_at == 0:
            raise FeedUnavailable(feed_ref, f"round {round_id} not complete")
        if answer < 0:
            raise FeedUnavailable(feed_ref, f"negative answer {answer}")

        logger.debug(f"[chainlink] {feed_ref} round {round_id}: {answer}")
        return int(answer)
