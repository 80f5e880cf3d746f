import asyncio
from typing import Any, Dict, Tuple
from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_defunct
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from .interface import SigningClient
from ..core.errors import SigningError, ErrorKind, classify_error
from ..core.logger import get_logger

logger = get_logger("FlareSystemsManagerClient")

PLACEHOLDER_VOTE_SEED = "fakeVoteHash"

_SIGNATURE_COMPONENTS = [
    {"internalType": "uint8", "name": "v", "type": "uint8"},
    {"internalType": "bytes32", "name": "r", "type": "bytes32"},
    {"internalType": "bytes32", "name": "s", "type": "bytes32"},
]

# Minimal ABI fragment of the FlareSystemsManager contract.
FLARE_SYSTEMS_MANAGER_ABI = [
    {
        "inputs": [],
        "name": "getCurrentRewardEpochId",
        "outputs": [{"internalType": "uint24", "name": "", "type": "uint24"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "rewardEpochId", "type": "uint256"}],
        "name": "uptimeVoteHash",
        "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "rewardEpochId", "type": "uint256"}],
        "name": "rewardsHash",
        "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint24", "name": "_rewardEpochId", "type": "uint24"},
            {"internalType": "bytes32", "name": "_uptimeVoteHash", "type": "bytes32"},
            {
                "components": _SIGNATURE_COMPONENTS,
                "internalType": "struct IFlareSystemsManager.Signature",
                "name": "_signature",
                "type": "tuple",
            },
        ],
        "name": "signUptimeVote",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint24", "name": "_rewardEpochId", "type": "uint24"},
            {"internalType": "uint64", "name": "_noOfWeightBasedClaims", "type": "uint64"},
            {"internalType": "bytes32", "name": "_rewardsHash", "type": "bytes32"},
            {
                "components": _SIGNATURE_COMPONENTS,
                "internalType": "struct IFlareSystemsManager.Signature",
                "name": "_signature",
                "type": "tuple",
            },
        ],
        "name": "signRewards",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

def placeholder_vote_hash() -> str:
    return Web3.to_hex(Web3.keccak(text=PLACEHOLDER_VOTE_SEED))

def uptime_vote_message_hash(epoch_id: int, vote_hash: str) -> bytes:
    """keccak256(abi.encode(uint24 epoch, bytes32 voteHash))"""
    return Web3.keccak(encode(["uint24", "bytes32"], [epoch_id, HexBytes(vote_hash)]))

def rewards_message_hash(epoch_id: int, no_of_weight_based_claims: int, rewards_hash: str) -> bytes:
    """keccak256(abi.encode(uint24 epoch, uint64 claims, bytes32 rewardsHash))"""
    return Web3.keccak(
        encode(
            ["uint24", "uint64", "bytes32"],
            [epoch_id, no_of_weight_based_claims, HexBytes(rewards_hash)],
        )
    )

def sign_message_hash(message_hash: bytes, private_key: str) -> Tuple[int, bytes, bytes]:
    """
    Signs a 32-byte message hash as an Ethereum signed message.
    Returns the (v, r, s) tuple expected by the contract's Signature struct.
    """
    signed = Account.sign_message(encode_defunct(primitive=message_hash), private_key=private_key)
    return (signed.v, signed.r.to_bytes(32, "big"), signed.s.to_bytes(32, "big"))

def _normalise_key(key: str) -> str:
    key = key.strip()
    return key if key.startswith("0x") else f"0x{key}"

class FlareSystemsManagerClient(SigningClient):
    """
    SigningClient backed by web3's AsyncWeb3.
    Message signatures come from the signing policy key, transactions are
    sent from the identity account.
    """
    def __init__(
        self,
        w3: AsyncWeb3,
        contract_address: str,
        signing_policy_private_key: str,
        identity_private_key: str = "",
        receipt_timeout: float = 120.0,
    ):
        self.w3 = w3
        self.contract = w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=FLARE_SYSTEMS_MANAGER_ABI,
        )
        self._signing_key = _normalise_key(signing_policy_private_key)
        self._identity = Account.from_key(_normalise_key(identity_private_key or signing_policy_private_key))
        self.receipt_timeout = receipt_timeout
        # One submission at a time keeps the pending nonce consistent
        self._submit_lock = asyncio.Lock()

    @classmethod
    def from_rpc_url(cls, rpc_url: str, contract_address: str, signing_policy_private_key: str,
                     identity_private_key: str = "", receipt_timeout: float = 120.0,
                     request_timeout: float = 30.0) -> "FlareSystemsManagerClient":
        w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
        return cls(w3, contract_address, signing_policy_private_key, identity_private_key, receipt_timeout)

    async def get_current_reward_epoch_id(self) -> int:
        return int(await self.contract.functions.getCurrentRewardEpochId().call())

    async def get_uptime_vote_hash(self, epoch_id: int):
        return await self.contract.functions.uptimeVoteHash(epoch_id).call()

    async def get_rewards_hash(self, epoch_id: int):
        return await self.contract.functions.rewardsHash(epoch_id).call()

    async def compute_uptime_vote_hash(self) -> str:
        return placeholder_vote_hash()

    async def sign_uptime_vote(self, epoch_id: int, vote_hash: str) -> str:
        signature = sign_message_hash(uptime_vote_message_hash(epoch_id, vote_hash), self._signing_key)
        call = self.contract.functions.signUptimeVote(epoch_id, HexBytes(vote_hash), signature)
        return await self._submit("signUptimeVote", epoch_id, call)

    async def sign_rewards(self, epoch_id: int, rewards_hash: str, no_of_weight_based_claims: int) -> str:
        message_hash = rewards_message_hash(epoch_id, no_of_weight_based_claims, rewards_hash)
        signature = sign_message_hash(message_hash, self._signing_key)
        call = self.contract.functions.signRewards(
            epoch_id, no_of_weight_based_claims, HexBytes(rewards_hash), signature
        )
        return await self._submit("signRewards", epoch_id, call)

    async def _submit(self, method: str, epoch_id: int, call) -> str:
        """
        Builds, signs and sends the transaction, then waits for its receipt.
        Every failure surfaces as SigningError with a classified kind.
        """
        async with self._submit_lock:
            try:
                tx_params: Dict[str, Any] = {
                    "from": self._identity.address,
                    "nonce": await self.w3.eth.get_transaction_count(self._identity.address, "pending"),
                    "chainId": await self.w3.eth.chain_id,
                }
                # Gas estimation runs the call, so reverts surface here
                tx = await call.build_transaction(tx_params)
                signed = self._identity.sign_transaction(tx)
                raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
                tx_hash = await self.w3.eth.send_raw_transaction(raw_tx)
                logger.info("transaction_sent", method=method, epoch_id=epoch_id, tx_hash=Web3.to_hex(tx_hash))
                receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
            except ContractLogicError as e:
                reason = str(getattr(e, "message", None) or e)
                raise SigningError(f"{method} reverted: {reason}", classify_error(e), reason=reason) from e
            except TimeExhausted as e:
                raise SigningError(f"{method} receipt not received: {e}") from e
            except (Web3Exception, ValueError, OSError) as e:
                raise SigningError(f"{method} failed: {e}", classify_error(e)) from e

        if receipt["status"] != 1:
            raise SigningError(f"{method} transaction {Web3.to_hex(tx_hash)} reverted on chain", ErrorKind.OTHER)
        return Web3.to_hex(tx_hash)
