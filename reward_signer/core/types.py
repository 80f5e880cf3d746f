from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

# Constants
ZERO_BYTES32 = "0x" + "0" * 64
STATE_SCHEMA_VERSION = 1

def is_empty_hash(value) -> bool:
    """
    True when a contract hash slot is unset.
    Accepts bytes (web3 returns bytes32 as bytes) or hex strings.
    """
    if value is None:
        return True
    if isinstance(value, (bytes, bytearray)):
        return not any(value)
    text = str(value).lower()
    if not text or text == "0x":
        return True
    return text == ZERO_BYTES32

class SigningState(BaseModel):
    """
    Persisted checkpoint: the last epoch whose uptime vote AND rewards are signed.
    The camelCase alias keeps the on-disk format of the existing state file.
    """
    model_config = ConfigDict(populate_by_name=True)

    last_completed_epoch: int = Field(default=-1, alias="lastCompletedEpoch")
    version: int = STATE_SCHEMA_VERSION

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)

class EpochStatus(BaseModel):
    """
    Completion facts for one epoch, computed per scan and never persisted.
    """
    epoch_id: int
    uptime_signed: bool = False
    rewards_signed: bool = False
    not_ended: bool = False
    failed: bool = False

    @property
    def fully_completed(self) -> bool:
        return self.uptime_signed and self.rewards_signed and not self.failed

class RewardsData(BaseModel):
    rewards_hash: str # bytes32 hex, 0x-prefixed
    no_of_weight_based_claims: int = Field(ge=0)

StopReason = Literal["not_ended", "rewards_failed", "error"]

class ScanResult(BaseModel):
    """
    Outcome of one reconciliation run.
    """
    started_at: str = ""
    current_epoch: Optional[int] = None
    start_epoch: Optional[int] = None
    previous_completed_epoch: int = -1
    last_completed_epoch: int = -1
    examined: List[int] = Field(default_factory=list)
    completed: List[int] = Field(default_factory=list)
    stopped_reason: Optional[StopReason] = None
