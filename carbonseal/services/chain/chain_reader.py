"""
Chain Reader.

Async, read-only access to the registry, token and oracle contracts.
Synchronous web3 calls run in a thread pool so the event loop never
blocks on RPC.
"""

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from carbonseal.config.constants import DEFAULT_CARBON_PRICE
from carbonseal.config.settings import Settings
from carbonseal.utils.security import mask_address, mask_url

from .contract_manager import ContractManager
from .decoding import decode_credit, decode_farm, decode_farm_stats, decode_readings
from .event_stream import ChainEventStream
from .events import EventHandler, EventType
from .records import CreditRecord, FarmRecord, FarmStats, ReadingRecord

T = TypeVar("T")

# Reverts and empty returns mean "no such entity", not a transport failure
NOT_FOUND_ERRORS = (ContractLogicError, BadFunctionCallOutput)


class ChainReader:
    """
    Typed getters over the CarbonSeal contracts.

    Getters return None when the contract reports an unknown id (zeroed
    struct or revert). RPC/transport errors propagate to the caller.
    No timeout is applied to individual calls.
    """

    def __init__(
        self,
        web3: Web3,
        contracts: ContractManager,
        max_workers: int = 4,
        poll_interval: float = 3,
        block_chunk: int = 2000,
    ) -> None:
        """
        Initialize chain reader.

        Args:
            web3: Web3 instance
            contracts: ContractManager for the three contracts
            max_workers: Thread pool size for RPC calls
            poll_interval: Event log polling interval in seconds
            block_chunk: Max blocks per get_logs request
        """
        self.web3 = web3
        self.contracts = contracts
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="web3",
        )
        self.events = ChainEventStream(
            self,
            poll_interval=poll_interval,
            block_chunk=block_chunk,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChainReader":
        """Build a reader with an HTTP provider from settings."""
        web3 = Web3(Web3.HTTPProvider(settings.rpc_url))
        contracts = ContractManager(
            web3,
            registry_address=settings.registry_address,
            token_address=settings.token_address,
            oracle_address=settings.oracle_address,
        )
        logger.info(
            f"[ChainReader] Initialized: rpc={mask_url(settings.rpc_url)}, "
            f"registry={mask_address(settings.registry_address)}, "
            f"token={mask_address(settings.token_address)}, "
            f"oracle={mask_address(settings.oracle_address)}"
        )
        return cls(
            web3,
            contracts,
            max_workers=settings.chain_executor_workers,
            poll_interval=settings.event_poll_interval,
            block_chunk=settings.event_block_chunk,
        )

    async def _run(self, func: Callable[[], T]) -> T:
        """Run a synchronous web3 call in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func)

    # Provider

    async def get_block_number(self) -> int:
        """Get current chain head."""
        return int(await self._run(lambda: self.web3.eth.block_number))

    async def is_connected(self) -> bool:
        """Probe the RPC with a block number read. False on any error."""
        try:
            await self.get_block_number()
            return True
        except Exception as e:
            logger.debug(f"[ChainReader] Connectivity probe failed: {e}")
            return False

    # Registry

    async def get_total_farms(self) -> int:
        """Number of farms ever registered (highest farm id)."""
        registry = self.contracts.registry
        return int(await self._run(registry.functions.farmCounter().call))

    async def get_farm(self, farm_id: int) -> FarmRecord | None:
        """Get farm by id, None if not registered."""
        registry = self.contracts.registry
        raw = await self._run(registry.functions.farms(farm_id).call)
        return decode_farm(raw)

    async def get_farm_by_address(self, address: str) -> FarmRecord | None:
        """Get farm owned by address, None for unregistered addresses."""
        registry = self.contracts.registry
        checksum = to_checksum_address(address)
        try:
            raw = await self._run(
                registry.functions.getFarmByAddress(checksum).call
            )
        except NOT_FOUND_ERRORS:
            return None
        return decode_farm(raw)

    async def get_available_carbon(self, farm_id: int) -> int:
        """Carbon available for minting on a farm."""
        registry = self.contracts.registry
        return int(
            await self._run(registry.functions.getAvailableCarbon(farm_id).call)
        )

    async def get_farm_stats(self, farm_id: int) -> FarmStats:
        """Aggregated farm statistics."""
        registry = self.contracts.registry
        raw = await self._run(registry.functions.getFarmStats(farm_id).call)
        return decode_farm_stats(raw)

    async def get_recent_readings(
        self, farm_id: int, count: int
    ) -> list[ReadingRecord]:
        """Most recent readings for a farm, at most count."""
        registry = self.contracts.registry
        raw = await self._run(
            registry.functions.getRecentReadings(farm_id, count).call
        )
        return decode_readings(raw)

    async def get_active_farmers(self) -> list[str]:
        """Addresses of farmers with an active farm."""
        registry = self.contracts.registry
        raw = await self._run(registry.functions.getActiveFarmers().call)
        return [to_checksum_address(a) for a in raw]

    # Token

    async def get_total_credits(self) -> int:
        """Total credit supply; 0 if the token does not expose totalSupply."""
        token = self.contracts.token
        try:
            return int(await self._run(token.functions.totalSupply().call))
        except NOT_FOUND_ERRORS as e:
            logger.warning(f"[ChainReader] totalSupply unavailable: {e}")
            return 0

    async def get_credit_details(self, token_id: int) -> CreditRecord | None:
        """Get credit by token id, None if it does not exist."""
        token = self.contracts.token
        try:
            raw = await self._run(token.functions.getCreditDetails(token_id).call)
        except NOT_FOUND_ERRORS:
            return None
        return decode_credit(raw)

    async def get_farm_credits(self, farm_id: int) -> list[int]:
        """Token ids minted against a farm."""
        token = self.contracts.token
        raw = await self._run(token.functions.getFarmCredits(farm_id).call)
        return [int(token_id) for token_id in raw]

    async def get_owner_credits(self, owner: str) -> list[int]:
        """Token ids held by an address."""
        token = self.contracts.token
        checksum = to_checksum_address(owner)
        raw = await self._run(token.functions.getOwnerCredits(checksum).call)
        return [int(token_id) for token_id in raw]

    async def get_token_uri(self, token_id: int) -> str:
        """Metadata URI of a credit."""
        token = self.contracts.token
        return str(await self._run(token.functions.tokenURI(token_id).call))

    async def get_token_owner(self, token_id: int) -> str | None:
        """Current holder of a credit, None if it does not exist."""
        token = self.contracts.token
        try:
            owner = await self._run(token.functions.ownerOf(token_id).call)
        except NOT_FOUND_ERRORS:
            return None
        return to_checksum_address(owner)

    # Oracle

    async def get_carbon_price(self) -> int:
        """Carbon price from the oracle, 8 decimals; default $50 if it reverts."""
        oracle = self.contracts.oracle
        try:
            return int(await self._run(oracle.functions.getCarbonPrice().call))
        except NOT_FOUND_ERRORS as e:
            logger.warning(f"[ChainReader] Oracle price unavailable, using default: {e}")
            return DEFAULT_CARBON_PRICE

    async def is_proof_verified(self, proof_hash: bytes | str) -> bool:
        """Whether the oracle has verified a proof hash."""
        oracle = self.contracts.oracle
        if isinstance(proof_hash, str):
            proof_hash = Web3.to_bytes(hexstr=proof_hash)
        return bool(
            await self._run(oracle.functions.isProofVerified(proof_hash).call)
        )

    # Events

    async def get_event_logs(
        self,
        event_type: EventType,
        from_block: int,
        to_block: int,
    ) -> list[Any]:
        """Fetch raw logs of one event type in an inclusive block range."""
        event = self.contracts.event(event_type)
        logs = await self._run(
            lambda: event.get_logs(from_block=from_block, to_block=to_block)
        )
        return list(logs)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for decoded events of one type."""
        self.events.subscribe(event_type, handler)

    async def remove_all_listeners(self) -> None:
        """Deregister every handler and stop the event stream."""
        await self.events.close()

    def close(self) -> None:
        """Shut down the RPC thread pool."""
        self._executor.shutdown(wait=True)
