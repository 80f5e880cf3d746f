from abc import ABC, abstractmethod
from ..core.types import RewardsData

class SigningClient(ABC):
    """
    Abstract Base Class for the reward-epoch contract collaborator.
    Reads signing status and submits signatures for one contract.
    Submissions raise SigningError (or any exception classify_error understands).
    """

    @abstractmethod
    async def get_current_reward_epoch_id(self) -> int:
        pass

    @abstractmethod
    async def get_uptime_vote_hash(self, epoch_id: int):
        """
        Returns the stored uptime vote hash, ZERO_BYTES32 when unsigned.
        """
        pass

    @abstractmethod
    async def get_rewards_hash(self, epoch_id: int):
        """
        Returns the stored rewards hash, ZERO_BYTES32 when unsigned.
        """
        pass

    @abstractmethod
    async def compute_uptime_vote_hash(self) -> str:
        pass

    @abstractmethod
    async def sign_uptime_vote(self, epoch_id: int, vote_hash: str) -> str:
        """
        Signs and submits the uptime vote. Returns the transaction hash.
        """
        pass

    @abstractmethod
    async def sign_rewards(self, epoch_id: int, rewards_hash: str, no_of_weight_based_claims: int) -> str:
        """
        Signs and submits the rewards hash. Returns the transaction hash.
        """
        pass

class RewardsDataSource(ABC):
    """
    Provides the computed reward distribution for an epoch.
    """

    @abstractmethod
    async def fetch_rewards_data(self, epoch_id: int) -> RewardsData:
        pass

    async def close(self):
        pass
