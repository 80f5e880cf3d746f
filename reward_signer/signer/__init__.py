"""
Reward Signer Package

Keeps reward epoch uptime votes and rewards hashes signed on chain.
"""
from .reconciler import EpochReconciler, compute_start_epoch
from .retry import RetryRunner
from .scheduler import SigningScheduler
from .service import AutoSigner

__all__ = [
    "EpochReconciler",
    "compute_start_epoch",
    "RetryRunner",
    "SigningScheduler",
    "AutoSigner",
]
