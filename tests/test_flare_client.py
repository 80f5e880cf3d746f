"""
Unit tests for the web3 signing client.
Tests: message hashing, signatures, transaction submission and error mapping.
"""
import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock
from eth_account import Account
from eth_account.messages import encode_defunct
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError
from reward_signer.chain.flare_client import (
    FlareSystemsManagerClient,
    placeholder_vote_hash,
    rewards_message_hash,
    sign_message_hash,
    uptime_vote_message_hash,
)
from reward_signer.core.errors import SigningError, ErrorKind

SIGNING_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
IDENTITY_KEY = "0x" + "11" * 32
CONTRACT = "0x" + "22" * 20
VOTE_HASH = "0x" + "aa" * 32
TX_HASH = HexBytes("0x" + "ab" * 32)

class TestMessageSigning(unittest.TestCase):
    def test_placeholder_vote_hash_is_stable_bytes32(self):
        value = placeholder_vote_hash()
        self.assertEqual(value, placeholder_vote_hash())
        self.assertTrue(value.startswith("0x"))
        self.assertEqual(len(value), 66)

    def test_message_hashes_depend_on_inputs(self):
        self.assertEqual(len(uptime_vote_message_hash(1, VOTE_HASH)), 32)
        self.assertNotEqual(uptime_vote_message_hash(1, VOTE_HASH), uptime_vote_message_hash(2, VOTE_HASH))
        self.assertNotEqual(rewards_message_hash(1, 5, VOTE_HASH), rewards_message_hash(1, 6, VOTE_HASH))

    def test_signature_recovers_signer(self):
        message_hash = uptime_vote_message_hash(7, VOTE_HASH)
        v, r, s = sign_message_hash(message_hash, SIGNING_KEY)
        self.assertIn(v, (27, 28))
        self.assertEqual(len(r), 32)
        self.assertEqual(len(s), 32)
        recovered = Account.recover_message(
            encode_defunct(primitive=message_hash),
            vrs=(v, int.from_bytes(r, "big"), int.from_bytes(s, "big")),
        )
        self.assertEqual(recovered, Account.from_key(SIGNING_KEY).address)

class TestFlareSystemsManagerClient(unittest.IsolatedAsyncioTestCase):
    def make_client(self):
        w3 = MagicMock()
        w3.eth.get_transaction_count = AsyncMock(return_value=3)
        chain_id = asyncio.get_running_loop().create_future()
        chain_id.set_result(14)
        w3.eth.chain_id = chain_id
        w3.eth.send_raw_transaction = AsyncMock(return_value=TX_HASH)
        w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})
        client = FlareSystemsManagerClient(w3, CONTRACT, SIGNING_KEY, IDENTITY_KEY)
        client.contract = MagicMock()
        return client, w3

    def built_tx(self):
        return {
            "to": Web3.to_checksum_address(CONTRACT),
            "value": 0,
            "gas": 200_000,
            "gasPrice": 25_000_000_000,
            "nonce": 3,
            "chainId": 14,
            "data": "0x",
        }

    async def test_reads(self):
        client, _ = self.make_client()
        client.contract.functions.getCurrentRewardEpochId.return_value.call = AsyncMock(return_value=12)
        client.contract.functions.uptimeVoteHash.return_value.call = AsyncMock(return_value=bytes(32))
        self.assertEqual(await client.get_current_reward_epoch_id(), 12)
        self.assertEqual(await client.get_uptime_vote_hash(12), bytes(32))
        client.contract.functions.uptimeVoteHash.assert_called_with(12)

    async def test_sign_uptime_vote_submits_transaction(self):
        client, w3 = self.make_client()
        call = client.contract.functions.signUptimeVote.return_value
        call.build_transaction = AsyncMock(return_value=self.built_tx())

        tx_hash = await client.sign_uptime_vote(5, VOTE_HASH)

        self.assertEqual(tx_hash, "0x" + "ab" * 32)
        epoch_arg, vote_arg, signature = client.contract.functions.signUptimeVote.call_args[0]
        self.assertEqual(epoch_arg, 5)
        self.assertEqual(vote_arg, HexBytes(VOTE_HASH))
        self.assertEqual(signature, sign_message_hash(uptime_vote_message_hash(5, VOTE_HASH), SIGNING_KEY))
        params = call.build_transaction.call_args[0][0]
        self.assertEqual(params["from"], Account.from_key(IDENTITY_KEY).address)
        self.assertEqual(params["nonce"], 3)
        self.assertEqual(params["chainId"], 14)
        w3.eth.send_raw_transaction.assert_awaited_once()

    async def test_sign_rewards_arguments(self):
        client, _ = self.make_client()
        call = client.contract.functions.signRewards.return_value
        call.build_transaction = AsyncMock(return_value=self.built_tx())

        await client.sign_rewards(5, VOTE_HASH, 42)

        epoch_arg, claims_arg, hash_arg, _ = client.contract.functions.signRewards.call_args[0]
        self.assertEqual((epoch_arg, claims_arg, hash_arg), (5, 42, HexBytes(VOTE_HASH)))

    async def test_epoch_not_ended_revert(self):
        client, w3 = self.make_client()
        call = client.contract.functions.signUptimeVote.return_value
        call.build_transaction = AsyncMock(side_effect=ContractLogicError("execution reverted: epoch not ended"))

        with self.assertRaises(SigningError) as ctx:
            await client.sign_uptime_vote(5, VOTE_HASH)

        self.assertEqual(ctx.exception.kind, ErrorKind.NOT_YET_ENDED)
        self.assertIn("epoch not ended", ctx.exception.reason)
        w3.eth.send_raw_transaction.assert_not_awaited()

    async def test_other_revert(self):
        client, _ = self.make_client()
        call = client.contract.functions.signRewards.return_value
        call.build_transaction = AsyncMock(side_effect=ContractLogicError("execution reverted: signing policy not set"))

        with self.assertRaises(SigningError) as ctx:
            await client.sign_rewards(5, VOTE_HASH, 1)
        self.assertEqual(ctx.exception.kind, ErrorKind.OTHER)

    async def test_failed_receipt(self):
        client, w3 = self.make_client()
        call = client.contract.functions.signUptimeVote.return_value
        call.build_transaction = AsyncMock(return_value=self.built_tx())
        w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 0})

        with self.assertRaises(SigningError) as ctx:
            await client.sign_uptime_vote(5, VOTE_HASH)
        self.assertEqual(ctx.exception.kind, ErrorKind.OTHER)

    async def test_rpc_error_wrapped(self):
        client, w3 = self.make_client()
        w3.eth.get_transaction_count = AsyncMock(side_effect=OSError("connection reset"))
        client.contract.functions.signUptimeVote.return_value.build_transaction = AsyncMock()

        with self.assertRaises(SigningError) as ctx:
            await client.sign_uptime_vote(5, VOTE_HASH)
        self.assertEqual(ctx.exception.kind, ErrorKind.OTHER)

if __name__ == '__main__':
    unittest.main()
