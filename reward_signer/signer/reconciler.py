"""
Reward Signer: Epoch Reconciler

Scans the most recent reward epochs and signs whatever is missing.
Per epoch the uptime vote comes first, then the rewards hash. The checkpoint
advances only over epochs where both are on chain.
"""
from ..chain.interface import SigningClient, RewardsDataSource
from ..core.clock import Clock
from ..core.errors import ErrorKind, classify_error
from ..core.state import StateStore
from ..core.types import EpochStatus, ScanResult, SigningState, is_empty_hash
from ..core.logger import get_logger

logger = get_logger("EpochReconciler")

DEFAULT_LOOKBACK_EPOCHS = 4

def compute_start_epoch(last_completed: int, current: int, lookback: int = DEFAULT_LOOKBACK_EPOCHS) -> int:
    """
    Resume right after the checkpoint, but never look further back than
    `lookback` epochs before the current one.
    """
    return max(last_completed + 1, current - lookback)

class EpochReconciler:
    """
    Truth Enforcement for reward epoch signatures.
    Compares on-chain signing status with the local checkpoint and repairs gaps.
    """
    def __init__(self, client: SigningClient, rewards_source: RewardsDataSource,
                 state_store: StateStore, lookback: int = DEFAULT_LOOKBACK_EPOCHS):
        self.client = client
        self.rewards_source = rewards_source
        self.state_store = state_store
        self.lookback = lookback

    async def check_and_sign(self) -> ScanResult:
        """
        One full scan. Never raises: unexpected errors are logged and
        reported through ScanResult.stopped_reason.
        """
        result = ScanResult(started_at=Clock.iso_now())
        try:
            await self._scan(result)
        except Exception as e:
            logger.error("check_and_sign_failed", error=str(e), error_type=type(e).__name__)
            result.stopped_reason = "error"
        return result

    async def _scan(self, result: ScanResult):
        current = await self.client.get_current_reward_epoch_id()
        state = self.state_store.load()
        start = compute_start_epoch(state.last_completed_epoch, current, self.lookback)

        result.current_epoch = current
        result.start_epoch = start
        result.previous_completed_epoch = state.last_completed_epoch
        result.last_completed_epoch = state.last_completed_epoch

        logger.info("scan_started", start_epoch=start, current_epoch=current,
                    last_completed_epoch=state.last_completed_epoch)

        for epoch_id in range(start, current + 1):
            result.examined.append(epoch_id)
            logger.info("epoch_check_started", epoch_id=epoch_id)
            status = EpochStatus(epoch_id=epoch_id)

            await self._ensure_uptime_vote(status)
            if status.not_ended:
                logger.warning("scan_halted_epoch_not_ended", epoch_id=epoch_id)
                result.stopped_reason = "not_ended"
                break

            if not await self._ensure_rewards(status):
                # Rewards of later epochs depend on this one being resolved
                logger.warning("scan_halted_rewards_incomplete", epoch_id=epoch_id)
                result.stopped_reason = "rewards_failed"
                break

            if status.fully_completed:
                result.last_completed_epoch = epoch_id
                result.completed.append(epoch_id)
                # Persist per epoch so a crash mid-scan keeps finished work
                self.state_store.save(SigningState(last_completed_epoch=epoch_id))
                logger.info("epoch_completed", epoch_id=epoch_id)

        logger.info("scan_complete", last_completed_epoch=result.last_completed_epoch,
                    stopped_reason=result.stopped_reason)

    async def _ensure_uptime_vote(self, status: EpochStatus):
        epoch_id = status.epoch_id
        existing = await self.client.get_uptime_vote_hash(epoch_id)
        if not is_empty_hash(existing):
            logger.info("uptime_vote_already_signed", epoch_id=epoch_id)
            status.uptime_signed = True
            return

        logger.warning("uptime_vote_missing", epoch_id=epoch_id)
        vote_hash = await self.client.compute_uptime_vote_hash()
        try:
            tx_hash = await self.client.sign_uptime_vote(epoch_id, vote_hash)
        except Exception as e:
            status.failed = True
            if classify_error(e) == ErrorKind.NOT_YET_ENDED:
                logger.warning("epoch_not_ended", epoch_id=epoch_id)
                status.not_ended = True
            else:
                # Rewards are still checked, the two facts are independent
                logger.error("uptime_vote_sign_failed", epoch_id=epoch_id, error=str(e))
            return

        logger.info("uptime_vote_signed", epoch_id=epoch_id, tx_hash=tx_hash)
        status.uptime_signed = True

    async def _ensure_rewards(self, status: EpochStatus) -> bool:
        """
        Returns False when the rewards hash is missing and could not be signed.
        """
        epoch_id = status.epoch_id
        existing = await self.client.get_rewards_hash(epoch_id)
        if not is_empty_hash(existing):
            logger.info("rewards_already_signed", epoch_id=epoch_id)
            status.rewards_signed = True
            return True

        logger.warning("rewards_missing", epoch_id=epoch_id)
        try:
            data = await self.rewards_source.fetch_rewards_data(epoch_id)
            tx_hash = await self.client.sign_rewards(epoch_id, data.rewards_hash, data.no_of_weight_based_claims)
        except Exception as e:
            logger.error("rewards_sign_failed", epoch_id=epoch_id, error=str(e))
            status.failed = True
            return False

        logger.info("rewards_signed", epoch_id=epoch_id, tx_hash=tx_hash,
                    no_of_weight_based_claims=data.no_of_weight_based_claims)
        status.rewards_signed = True
        return True
