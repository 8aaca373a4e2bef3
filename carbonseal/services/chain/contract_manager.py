"""
Contract Manager - Centralized contract instantiation.

Holds lazily created registry, token and oracle contract instances.
"""

from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractEvent

from carbonseal.config.abis import ORACLE_ABI, REGISTRY_ABI, TOKEN_ABI

from .events import EventType


class ContractManager:
    """
    Manages the three CarbonSeal contract instances.

    Features:
    - Lazy loading of contracts (created only when first accessed)
    - Event accessor by EventType
    """

    def __init__(
        self,
        web3: Web3,
        registry_address: str,
        token_address: str,
        oracle_address: str,
    ) -> None:
        """
        Initialize contract manager.

        Args:
            web3: Web3 instance
            registry_address: Registry contract address
            token_address: Credit token contract address
            oracle_address: Price/proof oracle contract address
        """
        self.web3 = web3

        # Store addresses as checksummed
        self.registry_address = to_checksum_address(registry_address)
        self.token_address = to_checksum_address(token_address)
        self.oracle_address = to_checksum_address(oracle_address)

        # Lazy-loaded contract instances
        self._registry: Contract | None = None
        self._token: Contract | None = None
        self._oracle: Contract | None = None

        logger.debug(
            f"ContractManager initialized: registry={self.registry_address}, "
            f"token={self.token_address}, oracle={self.oracle_address}"
        )

    @property
    def registry(self) -> Contract:
        """Registry contract (lazy loaded)."""
        if self._registry is None:
            self._registry = self.web3.eth.contract(
                address=self.registry_address, abi=REGISTRY_ABI
            )
        return self._registry

    @property
    def token(self) -> Contract:
        """Credit token contract (lazy loaded)."""
        if self._token is None:
            self._token = self.web3.eth.contract(
                address=self.token_address, abi=TOKEN_ABI
            )
        return self._token

    @property
    def oracle(self) -> Contract:
        """Oracle contract (lazy loaded)."""
        if self._oracle is None:
            self._oracle = self.web3.eth.contract(
                address=self.oracle_address, abi=ORACLE_ABI
            )
        return self._oracle

    def event(self, event_type: EventType) -> ContractEvent:
        """
        Get the contract event object for an event type.

        Args:
            event_type: Event to look up

        Returns:
            ContractEvent usable for get_logs
        """
        contract = self.registry if event_type.contract == "registry" else self.token
        return getattr(contract.events, event_type.value)
