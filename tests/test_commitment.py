"""Tests for the hash commitment and actor key helpers."""

import hashlib

import pytest
from web3 import Web3

from verigate.crypto.accounts import actor_from_key, new_actor
from verigate.crypto.codec import decode_actor
from verigate.crypto.commitment import HashCommitment
from verigate.errors import MalformedInput


ALICE = decode_actor("0x" + "11" * 20)
BOB = decode_actor("0x" + "22" * 20)


class TestHashCommitment:
    def test_default_is_keccak_of_packed_actor_and_credential(self) -> None:
        commitment = HashCommitment()
        expected = bytes(Web3.keccak(bytes.fromhex("11" * 20) + b"secret"))
        assert commitment.digest(ALICE, b"secret") == expected

    def test_sha256(self) -> None:
        commitment = HashCommitment("sha256")
        expected = hashlib.sha256(bytes.fromhex("11" * 20) + b"secret").digest()
        assert commitment.digest(ALICE, b"secret") == expected

    def test_digest_width(self) -> None:
        assert len(HashCommitment().digest(ALICE, b"x")) == 32
        assert len(HashCommitment("sha256").digest(ALICE, b"x")) == 32

    def test_actor_binding(self) -> None:
        """Same credential, different actor → different commitment."""
        commitment = HashCommitment()
        assert commitment.digest(ALICE, b"secret") != commitment.digest(BOB, b"secret")

    def test_actor_case_does_not_matter(self) -> None:
        commitment = HashCommitment()
        assert commitment.digest(ALICE.lower(), b"s") == commitment.digest(ALICE, b"s")

    def test_unknown_algorithm(self) -> None:
        with pytest.raises(ValueError):
            HashCommitment("md5")


class TestAccounts:
    def test_known_key_derives_known_address(self) -> None:
        key = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
        assert actor_from_key(key) == "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

    def test_new_actor_controls_its_address(self) -> None:
        key = new_actor()
        assert actor_from_key(key.private_key) == key.address

    def test_new_actors_are_distinct(self) -> None:
        assert new_actor().address != new_actor().address

    def test_bad_key_rejected(self) -> None:
        with pytest.raises(MalformedInput):
            actor_from_key("0x1234")
