import unittest
from reward_signer.core.errors import SigningError, ErrorKind, classify_error
from reward_signer.core.types import is_empty_hash, EpochStatus, ZERO_BYTES32

class ReasonError(Exception):
    def __init__(self, reason=None, message=None):
        super().__init__("call failed")
        self.reason = reason
        if message is not None:
            self.message = message

class TestClassifyError(unittest.TestCase):
    def test_structured_kind_wins(self):
        err = SigningError("epoch not ended", kind=ErrorKind.OTHER)
        self.assertEqual(classify_error(err), ErrorKind.OTHER)
        self.assertEqual(classify_error(SigningError("x", ErrorKind.NOT_YET_ENDED)), ErrorKind.NOT_YET_ENDED)

    def test_reason_substring(self):
        err = ReasonError(reason="execution reverted: epoch not ended")
        self.assertEqual(classify_error(err), ErrorKind.NOT_YET_ENDED)

    def test_message_substring(self):
        err = ReasonError(message="VM Exception: epoch not ended yet")
        self.assertEqual(classify_error(err), ErrorKind.NOT_YET_ENDED)

    def test_plain_exception_text(self):
        self.assertEqual(classify_error(RuntimeError("epoch not ended")), ErrorKind.NOT_YET_ENDED)

    def test_other_errors(self):
        self.assertEqual(classify_error(RuntimeError("nonce too low")), ErrorKind.OTHER)
        self.assertEqual(classify_error(ReasonError(reason=None, message="")), ErrorKind.OTHER)

    def test_match_is_case_sensitive(self):
        self.assertEqual(classify_error(RuntimeError("Epoch Not Ended")), ErrorKind.OTHER)

class TestHashHelpers(unittest.TestCase):
    def test_empty_values(self):
        self.assertTrue(is_empty_hash(None))
        self.assertTrue(is_empty_hash(ZERO_BYTES32))
        self.assertTrue(is_empty_hash(bytes(32)))
        self.assertTrue(is_empty_hash("0x"))

    def test_present_values(self):
        self.assertFalse(is_empty_hash("0x" + "01" * 32))
        self.assertFalse(is_empty_hash(b"\x00" * 31 + b"\x01"))

    def test_epoch_status_completion(self):
        status = EpochStatus(epoch_id=1, uptime_signed=True, rewards_signed=True)
        self.assertTrue(status.fully_completed)
        status.failed = True
        self.assertFalse(status.fully_completed)

if __name__ == '__main__':
    unittest.main()
