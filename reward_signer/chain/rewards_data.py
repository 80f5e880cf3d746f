from typing import Any, Dict, Optional
import httpx
from pydantic import ValidationError
from .interface import RewardsDataSource
from ..core.types import RewardsData
from ..core.errors import RewardsDataError
from ..core.logger import get_logger

logger = get_logger("HttpRewardsDataSource")

class HttpRewardsDataSource(RewardsDataSource):
    """
    Downloads the published reward distribution data for an epoch.
    The URL template receives `network` and `epoch`.
    """
    def __init__(self, url_template: str, network: str, timeout: float = 20.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.url_template = url_template
        self.network = network
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    def url_for(self, epoch_id: int) -> str:
        return self.url_template.format(network=self.network, epoch=epoch_id)

    async def fetch_rewards_data(self, epoch_id: int) -> RewardsData:
        url = self.url_for(epoch_id)
        logger.info("fetching_rewards_data", epoch_id=epoch_id, url=url)
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise RewardsDataError(f"rewards data for epoch {epoch_id}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RewardsDataError(f"rewards data for epoch {epoch_id}: {e}") from e
        except ValueError as e:
            raise RewardsDataError(f"rewards data for epoch {epoch_id} is not JSON") from e
        return parse_rewards_data(payload, epoch_id)

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

def parse_rewards_data(payload: Dict[str, Any], epoch_id: int) -> RewardsData:
    """
    Extracts the merkle root and weight-based claim count.
    Only the single-count format is accepted. Files that list claims per
    reward manager belong to a contract whose signRewards takes an array,
    and a summed count would be signed over the wrong message.
    """
    if not isinstance(payload, dict):
        raise RewardsDataError(f"rewards data for epoch {epoch_id} must be an object")

    published_epoch = payload.get("rewardEpochId")
    if published_epoch is not None:
        try:
            published_epoch = int(published_epoch)
        except (TypeError, ValueError) as e:
            raise RewardsDataError(f"rewards data for epoch {epoch_id} has invalid rewardEpochId") from e
        if published_epoch != epoch_id:
            raise RewardsDataError(f"rewards data is for epoch {published_epoch}, expected {epoch_id}")

    merkle_root = payload.get("merkleRoot")
    if not isinstance(merkle_root, str) or not merkle_root.startswith("0x") or len(merkle_root) != 66:
        raise RewardsDataError(f"rewards data for epoch {epoch_id} has no valid merkleRoot")

    claims = payload.get("noOfWeightBasedClaims")
    if isinstance(claims, list):
        raise RewardsDataError(
            f"rewards data for epoch {epoch_id} lists claims per reward manager, which is not supported"
        )
    try:
        return RewardsData(rewards_hash=merkle_root, no_of_weight_based_claims=int(claims))
    except (TypeError, ValueError, ValidationError) as e:
        raise RewardsDataError(f"rewards data for epoch {epoch_id} has invalid noOfWeightBasedClaims") from e
