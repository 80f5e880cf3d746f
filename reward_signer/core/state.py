import json
import os
from abc import ABC, abstractmethod
from typing import Optional
import redis
from pydantic import ValidationError
from .types import SigningState
from .logger import get_logger

logger = get_logger("StateStore")

STATE_FILE_NAME = ".signing-tool-state.json"
DEFAULT_REDIS_KEY = "reward_signer:state"

def default_state_path() -> str:
    return os.path.join(os.getcwd(), STATE_FILE_NAME)

class StateStore(ABC):
    """
    Persistence for the single signing checkpoint.
    Implementations never raise: load falls back to the default state,
    save logs and returns.
    """

    @abstractmethod
    def load(self) -> SigningState:
        pass

    @abstractmethod
    def save(self, state: SigningState) -> None:
        pass

def _parse_record(raw: str) -> SigningState:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"checkpoint record must be an object, got {type(data).__name__}")
    return SigningState.model_validate(data)

class JsonFileStateStore(StateStore):
    """
    Checkpoint kept as a pretty-printed JSON file, overwritten on every save.
    """
    def __init__(self, path: Optional[str] = None):
        self.path = path or default_state_path()

    def load(self) -> SigningState:
        try:
            if os.path.exists(self.path):
                with open(self.path, "r", encoding="utf-8") as f:
                    return _parse_record(f.read())
        except Exception as e:
            logger.error("state_load_failed", path=self.path, error=str(e))
        return SigningState()

    def save(self, state: SigningState) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(state.to_record(), f, indent=2)
        except Exception as e:
            logger.error("state_save_failed", path=self.path, error=str(e))

class RedisStateStore(StateStore):
    """
    Checkpoint kept as a JSON document under one Redis key.
    Lets several hosts share the same progress marker.
    """
    def __init__(self, redis_url: str = "redis://localhost:6379/0", key: str = DEFAULT_REDIS_KEY):
        self.redis = redis.from_url(redis_url, decode_responses=True)
        self.key = key

    def load(self) -> SigningState:
        try:
            raw = self.redis.get(self.key)
            if raw:
                return _parse_record(raw)
        except (redis.RedisError, ValueError, ValidationError) as e:
            logger.error("state_load_failed", key=self.key, error=str(e))
        return SigningState()

    def save(self, state: SigningState) -> None:
        try:
            self.redis.set(self.key, json.dumps(state.to_record(), indent=2))
        except redis.RedisError as e:
            logger.error("state_save_failed", key=self.key, error=str(e))

class InMemoryStateStore(StateStore):
    """
    Process-local store for tests and dry runs.
    Keeps every saved record so callers can inspect the save history.
    """
    def __init__(self, initial: Optional[SigningState] = None):
        self._state = initial.model_copy() if initial else None
        self.saves = []

    def load(self) -> SigningState:
        if self._state is None:
            return SigningState()
        return self._state.model_copy()

    def save(self, state: SigningState) -> None:
        self._state = state.model_copy()
        self.saves.append(state.last_completed_epoch)
