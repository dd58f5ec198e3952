"""
Tests for transaction building and wire encoding.
"""
import struct

import base58
import pytest

from sollens.exceptions import ValidationError
from sollens.transaction import (
    SYSTEM_PROGRAM_ID, Transaction, decode_compact_u16, encode_compact_u16, transfer_instruction
)

from conftest import RECIPIENT, SENDER, TEST_BLOCKHASH


@pytest.mark.parametrize("value,encoded", [
    (0, b"\x00"),
    (5, b"\x05"),
    (0x7F, b"\x7f"),
    (0x80, b"\x80\x01"),
    (0x3FFF, b"\xff\x7f"),
    (0x4000, b"\x80\x80\x01"),
    (0xFFFF, b"\xff\xff\x03"),
])
def test_compact_u16(value, encoded):
    assert encode_compact_u16(value) == encoded
    assert decode_compact_u16(encoded) == (value, len(encoded))


@pytest.mark.parametrize("value", [-1, 0x10000])
def test_compact_u16_out_of_range(value):
    with pytest.raises(ValueError):
        encode_compact_u16(value)


def test_transfer_instruction_data():
    ix = transfer_instruction(SENDER, RECIPIENT, 1_500_000_000)
    assert ix.program_id == SYSTEM_PROGRAM_ID
    assert ix.data == struct.pack("<IQ", 2, 1_500_000_000)
    assert [m.address for m in ix.accounts] == [SENDER, RECIPIENT]
    assert ix.accounts[0].is_signer and ix.accounts[0].is_writable
    assert not ix.accounts[1].is_signer and ix.accounts[1].is_writable


@pytest.mark.parametrize("lamports", [0, -1, 2 ** 64])
def test_transfer_instruction_rejects_out_of_range(lamports):
    with pytest.raises(ValidationError):
        transfer_instruction(SENDER, RECIPIENT, lamports)


def test_compile_transfer_message_layout():
    tx = Transaction.transfer(SENDER, RECIPIENT, 42)
    message = tx.compile_message(TEST_BLOCKHASH)

    # Header: 1 signer, 0 readonly signed, 1 readonly unsigned (system program)
    assert message[:3] == bytes([1, 0, 1])
    assert message[3] == 3
    keys = [message[4 + 32 * i: 4 + 32 * (i + 1)] for i in range(3)]
    assert keys == [SENDER.raw, RECIPIENT.raw, SYSTEM_PROGRAM_ID.raw]

    offset = 4 + 96
    assert message[offset:offset + 32] == base58.b58decode(TEST_BLOCKHASH)
    offset += 32

    # One instruction: program index 2, accounts [0, 1], 12 bytes of data
    assert message[offset:offset + 5] == bytes([1, 2, 2, 0, 1])
    offset += 5
    assert message[offset] == 12
    assert message[offset + 1:] == struct.pack("<IQ", 2, 42)


def test_self_transfer_dedupes_account():
    tx = Transaction.transfer(SENDER, SENDER, 42)
    message = tx.compile_message(TEST_BLOCKHASH)
    assert message[:4] == bytes([1, 0, 1, 2])
    assert tx.signers == [SENDER]
    # Both instruction accounts point at index 0
    assert bytes([1, 1, 2, 0, 0]) in message


def test_signers():
    assert Transaction.transfer(SENDER, RECIPIENT, 1).signers == [SENDER]


@pytest.mark.parametrize("blockhash", ["", "0OIl", base58.b58encode(bytes(16)).decode("ascii")])
def test_invalid_blockhash(blockhash):
    tx = Transaction.transfer(SENDER, RECIPIENT, 1)
    with pytest.raises(ValidationError):
        tx.compile_message(blockhash)


def test_empty_transaction_cannot_compile():
    with pytest.raises(ValidationError):
        Transaction(fee_payer=SENDER).compile_message(TEST_BLOCKHASH)


def test_serialize():
    message = b"message"
    raw = Transaction.serialize(message, [bytes(64)])
    assert raw == b"\x01" + bytes(64) + message


def test_serialize_rejects_bad_signature_length():
    with pytest.raises(ValueError):
        Transaction.serialize(b"m", [bytes(10)])
