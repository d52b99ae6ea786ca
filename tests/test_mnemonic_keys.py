"""
Tests for nocostcoin_wallet.mnemonic_keys — BIP-39 phrase to Ed25519 keypair.

Covers:
  - Published BIP-39 seed vector for the "abandon ... about" phrase
  - Deterministic keypair derivation (first 32 seed bytes as Ed25519 seed)
  - Whitespace normalisation
  - Rejection of bad checksums and unknown words
  - Phrase generation at every supported strength
"""

from __future__ import annotations

import unittest

import pytest

from nocostcoin_wallet.errors import InvalidMnemonic, WalletError
from nocostcoin_wallet.mnemonic_keys import (
    KeyPair,
    derive,
    generate,
    mnemonic_to_seed,
    normalize_mnemonic,
    validate_mnemonic,
)

ABANDON = " ".join(["abandon"] * 11 + ["about"])
ABANDON_SEED = (
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4"
)
ABANDON_PRIVATE = "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
ABANDON_PUBLIC = "c5785e1865b708938aff8161d573006496663b1aa10834e396dc566869a2c66a"


# ═══════════════════════════════════════════════════════════════════
#  Derivation vectors
# ═══════════════════════════════════════════════════════════════════

class TestDerivation(unittest.TestCase):

    def test_seed_matches_bip39_vector(self):
        self.assertEqual(mnemonic_to_seed(ABANDON).hex(), ABANDON_SEED)

    def test_private_key_is_first_half_of_seed(self):
        kp = derive(ABANDON)
        self.assertEqual(kp.private_key, ABANDON_PRIVATE)
        self.assertEqual(kp.private_key, ABANDON_SEED[:64])

    def test_public_key_vector(self):
        self.assertEqual(derive(ABANDON).public_key, ABANDON_PUBLIC)

    def test_address_is_public_key(self):
        kp = derive(ABANDON)
        self.assertEqual(kp.address, kp.public_key)
        self.assertEqual(len(kp.address), 64)

    def test_derivation_is_deterministic(self):
        self.assertEqual(derive(ABANDON), derive(ABANDON))

    def test_from_seed_matches_derive(self):
        kp = KeyPair.from_seed(bytes.fromhex(ABANDON_PRIVATE))
        self.assertEqual(kp, derive(ABANDON))

    def test_repr_hides_private_key(self):
        self.assertNotIn(ABANDON_PRIVATE, repr(derive(ABANDON)))


# ═══════════════════════════════════════════════════════════════════
#  Normalisation and validation
# ═══════════════════════════════════════════════════════════════════

class TestValidation:
    def test_normalize_collapses_whitespace(self):
        messy = "  abandon\tabandon  abandon abandon abandon abandon abandon\n" \
                "abandon abandon abandon   abandon about  "
        assert normalize_mnemonic(messy) == ABANDON

    def test_messy_phrase_derives_same_key(self):
        messy = "\n " + ABANDON.replace(" ", "   ") + " \t"
        assert derive(messy).public_key == ABANDON_PUBLIC

    def test_valid_phrase(self):
        assert validate_mnemonic(ABANDON)

    def test_bad_checksum_rejected(self):
        bad = " ".join(["abandon"] * 12)
        assert not validate_mnemonic(bad)
        with pytest.raises(InvalidMnemonic):
            derive(bad)

    def test_unknown_word_rejected(self):
        bad = " ".join(["abandon"] * 11 + ["nocostcoin"])
        with pytest.raises(InvalidMnemonic):
            derive(bad)

    def test_empty_phrase_rejected(self):
        with pytest.raises(InvalidMnemonic):
            derive("")

    def test_non_string_is_invalid(self):
        assert not validate_mnemonic(None)  # type: ignore[arg-type]

    def test_invalid_mnemonic_is_value_and_wallet_error(self):
        with pytest.raises(ValueError):
            derive("not a phrase")
        with pytest.raises(WalletError):
            derive("not a phrase")


# ═══════════════════════════════════════════════════════════════════
#  Generation
# ═══════════════════════════════════════════════════════════════════

class TestGenerate:
    def test_default_is_twelve_words(self):
        phrase, kp = generate()
        assert len(phrase.split()) == 12
        assert validate_mnemonic(phrase)
        assert derive(phrase) == kp

    @pytest.mark.parametrize("strength,words", [(128, 12), (160, 15), (192, 18),
                                                (224, 21), (256, 24)])
    def test_supported_strengths(self, strength, words):
        phrase, _ = generate(strength)
        assert len(phrase.split()) == words

    def test_generated_phrases_differ(self):
        assert generate()[0] != generate()[0]

    def test_bad_strength(self):
        with pytest.raises(ValueError):
            generate(100)
