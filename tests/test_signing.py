"""
Tests for nocostcoin_wallet.signing — Ed25519 over transaction digests.
"""

from __future__ import annotations

import unittest

import pytest

from nocostcoin_wallet.errors import SigningError
from nocostcoin_wallet.signing import SIGNATURE_BYTES, SigningService

# RFC 8032, section 7.1, TEST 1
RFC_SECRET = "9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"
RFC_PUBLIC = "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
RFC_SIGNATURE = (
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065224901555"
    "fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)

ABANDON_PRIVATE = "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
ABANDON_PUBLIC = "c5785e1865b708938aff8161d573006496663b1aa10834e396dc566869a2c66a"
# SHA-256 of the canonical payload for sender 00..01, receiver 00..02, nonce 1, amount 100
CONFORMANCE_DIGEST = "cb54abef430065e75bafe0eee4ed97d389aa760858f9778daafe11c7cd7931d7"
CONFORMANCE_SIGNATURE = (
    "0d92eadcf96fb9c7dde9c9a9716685afaf6a9ccd60b206a00af9b4734f3ba505"
    "c7df79f655585ec0d99f699fde30cee5bd61d406eb6b94cd3935bec31d909306"
)


# ═══════════════════════════════════════════════════════════════════
#  Known-answer vectors
# ═══════════════════════════════════════════════════════════════════

class TestVectors(unittest.TestCase):

    def test_rfc8032_public_key(self):
        self.assertEqual(SigningService.public_key_for(RFC_SECRET), RFC_PUBLIC)

    def test_rfc8032_signature(self):
        self.assertEqual(SigningService.sign(b"", RFC_SECRET).hex(), RFC_SIGNATURE)

    def test_rfc8032_verifies(self):
        self.assertTrue(SigningService.verify(b"", bytes.fromhex(RFC_SIGNATURE), RFC_PUBLIC))

    def test_wallet_key_signs_conformance_digest(self):
        sig = SigningService.sign(bytes.fromhex(CONFORMANCE_DIGEST), ABANDON_PRIVATE)
        self.assertEqual(sig.hex(), CONFORMANCE_SIGNATURE)
        self.assertTrue(SigningService.verify(bytes.fromhex(CONFORMANCE_DIGEST), sig, ABANDON_PUBLIC))


# ═══════════════════════════════════════════════════════════════════
#  Behaviour
# ═══════════════════════════════════════════════════════════════════

class TestSignVerify:
    digest = bytes.fromhex(CONFORMANCE_DIGEST)

    def test_signature_length(self):
        assert len(SigningService.sign(self.digest, ABANDON_PRIVATE)) == SIGNATURE_BYTES

    def test_deterministic(self):
        a = SigningService.sign(self.digest, ABANDON_PRIVATE)
        b = SigningService.sign(self.digest, bytes.fromhex(ABANDON_PRIVATE))
        assert a == b

    def test_mutated_signature_rejected(self):
        sig = bytearray(SigningService.sign(self.digest, ABANDON_PRIVATE))
        sig[0] ^= 0xFF
        assert not SigningService.verify(self.digest, bytes(sig), ABANDON_PUBLIC)

    def test_mutated_digest_rejected(self):
        sig = SigningService.sign(self.digest, ABANDON_PRIVATE)
        other = bytes([self.digest[0] ^ 1]) + self.digest[1:]
        assert not SigningService.verify(other, sig, ABANDON_PUBLIC)

    def test_wrong_public_key_rejected(self):
        sig = SigningService.sign(self.digest, ABANDON_PRIVATE)
        assert not SigningService.verify(self.digest, sig, RFC_PUBLIC)

    def test_malformed_inputs_return_false(self):
        sig = SigningService.sign(self.digest, ABANDON_PRIVATE)
        assert not SigningService.verify(self.digest, sig[:63], ABANDON_PUBLIC)
        assert not SigningService.verify(self.digest, sig, ABANDON_PUBLIC[:62])
        assert not SigningService.verify(self.digest, sig, "zz" * 32)
        assert not SigningService.verify(self.digest, sig, None)  # type: ignore[arg-type]

    def test_short_private_key(self):
        with pytest.raises(SigningError):
            SigningService.sign(self.digest, ABANDON_PRIVATE[:62])

    def test_non_hex_private_key(self):
        with pytest.raises(SigningError):
            SigningService.sign(self.digest, "not-a-key")

    def test_signing_error_is_value_error(self):
        with pytest.raises(ValueError):
            SigningService.public_key_for(b"\x00" * 31)
