"""
Reward Signer: Service Wiring

Builds the collaborators from settings and owns their lifecycle.
"""
import asyncio
import signal
from typing import Optional
from ..chain.interface import SigningClient, RewardsDataSource
from ..chain.flare_client import FlareSystemsManagerClient
from ..chain.rewards_data import HttpRewardsDataSource
from ..core.config import SignerSettings, build_state_store
from ..core.state import StateStore
from ..core.logger import get_logger
from .reconciler import EpochReconciler
from .retry import RetryRunner
from .scheduler import SigningScheduler

logger = get_logger("AutoSigner")

class AutoSigner:
    """
    Reconciler + retry wrapper + scheduler for one contract.
    """
    def __init__(self, settings: SignerSettings, client: SigningClient,
                 rewards_source: RewardsDataSource, state_store: StateStore,
                 stop_event: Optional[asyncio.Event] = None):
        self.settings = settings
        self.rewards_source = rewards_source
        self.reconciler = EpochReconciler(client, rewards_source, state_store,
                                          lookback=settings.LOOKBACK_EPOCHS)
        self.retry = RetryRunner(self.reconciler.check_and_sign,
                                 max_retries=settings.MAX_RETRIES,
                                 retry_delay=settings.RETRY_DELAY_S)
        self.scheduler = SigningScheduler(self.retry.run,
                                          interval=settings.CHECK_INTERVAL_S,
                                          stop_event=stop_event,
                                          allow_overlap=settings.ALLOW_OVERLAP)

    @classmethod
    def from_settings(cls, settings: SignerSettings,
                      stop_event: Optional[asyncio.Event] = None) -> "AutoSigner":
        settings.require_chain()
        client = FlareSystemsManagerClient.from_rpc_url(
            settings.RPC_URL,
            settings.FLARE_SYSTEMS_MANAGER_ADDRESS,
            settings.SIGNING_POLICY_PRIVATE_KEY,
            identity_private_key=settings.identity_key,
            receipt_timeout=settings.TX_RECEIPT_TIMEOUT_S,
        )
        rewards_source = HttpRewardsDataSource(
            settings.REWARDS_DATA_URL_TEMPLATE,
            settings.NETWORK,
            timeout=settings.HTTP_TIMEOUT_S,
        )
        return cls(settings, client, rewards_source, build_state_store(settings), stop_event)

    def stop(self):
        self.scheduler.stop()

    def install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: self._on_signal(s))

    def _on_signal(self, sig):
        logger.info("shutdown_signal_received", signal=sig.name if hasattr(sig, 'name') else str(sig))
        self.stop()

    async def run_once(self):
        try:
            return await self.retry.run()
        finally:
            await self.rewards_source.close()

    async def run(self):
        logger.info("auto_signing_started", interval_s=self.settings.CHECK_INTERVAL_S)
        try:
            await self.scheduler.run_forever()
        finally:
            await self.rewards_source.close()
            logger.info("auto_signing_stopped")
