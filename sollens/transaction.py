"""
Transaction construction and wire encoding.

Implements the legacy (non-versioned) message format:

    header            3 bytes: required signatures, readonly signed, readonly unsigned
    account keys      compact-u16 length, then 32 bytes each
    recent blockhash  32 bytes
    instructions      compact-u16 length, then per instruction:
                      program id index, compact-u16 account indices, compact-u16 data

A serialized transaction is a compact-u16 array of 64-byte signatures
followed by the message bytes.
"""
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import base58

from .address import Address
from .exceptions import ValidationError
from .units import MAX_LAMPORTS

SYSTEM_PROGRAM_ID = Address("11111111111111111111111111111111")
SYSTEM_TRANSFER_INDEX = 2
SIGNATURE_LENGTH = 64
BLOCKHASH_LENGTH = 32


def encode_compact_u16(value: int) -> bytes:
    """Encode an integer in the 1-3 byte compact-u16 format."""
    if value < 0 or value > 0xFFFF:
        raise ValueError(f"compact-u16 value out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_compact_u16(data: bytes, offset: int = 0):
    """
    Decode a compact-u16 value.

    Returns:
        Tuple of (value, bytes consumed)
    """
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise ValueError("Truncated compact-u16")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, i + 1
    raise ValueError("compact-u16 longer than 3 bytes")


@dataclass(frozen=True)
class AccountMeta:
    address: Address
    is_signer: bool
    is_writable: bool


@dataclass(frozen=True)
class Instruction:
    program_id: Address
    accounts: Sequence[AccountMeta]
    data: bytes


def transfer_instruction(sender: Address, recipient: Address, lamports: int) -> Instruction:
    """
    Build a System Program transfer instruction.

    Raises:
        ValidationError: If lamports is not a positive u64
    """
    if lamports <= 0 or lamports > MAX_LAMPORTS:
        raise ValidationError(f"Transfer amount must be between 1 and {MAX_LAMPORTS} lamports")
    data = struct.pack("<IQ", SYSTEM_TRANSFER_INDEX, lamports)
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(
            AccountMeta(sender, is_signer=True, is_writable=True),
            AccountMeta(recipient, is_signer=False, is_writable=True),
        ),
        data=data,
    )


@dataclass
class Transaction:
    """
    An unsigned transaction: a fee payer and an ordered list of instructions.

    The fee payer is always the first account key and the only required signer
    for the transfers this SDK builds.
    """
    fee_payer: Address
    instructions: List[Instruction] = field(default_factory=list)

    @classmethod
    def transfer(cls, sender: Address, recipient: Address, lamports: int) -> "Transaction":
        """Single-instruction native transfer from sender to recipient."""
        return cls(fee_payer=sender, instructions=[transfer_instruction(sender, recipient, lamports)])

    def _account_keys(self) -> List[AccountMeta]:
        merged: Dict[Address, AccountMeta] = {
            self.fee_payer: AccountMeta(self.fee_payer, is_signer=True, is_writable=True)
        }

        def add(meta: AccountMeta) -> None:
            existing = merged.get(meta.address)
            if existing is None:
                merged[meta.address] = meta
            else:
                merged[meta.address] = AccountMeta(
                    meta.address,
                    is_signer=existing.is_signer or meta.is_signer,
                    is_writable=existing.is_writable or meta.is_writable,
                )

        for ix in self.instructions:
            for meta in ix.accounts:
                add(meta)
            add(AccountMeta(ix.program_id, is_signer=False, is_writable=False))

        # Stable sort keeps insertion order within each group; fee payer stays first
        def rank(meta: AccountMeta) -> int:
            if meta.is_signer:
                return 0 if meta.is_writable else 1
            return 2 if meta.is_writable else 3

        return sorted(merged.values(), key=rank)

    @property
    def signers(self) -> List[Address]:
        """Addresses whose signatures the transaction requires, in order."""
        return [meta.address for meta in self._account_keys() if meta.is_signer]

    def compile_message(self, recent_blockhash: str) -> bytes:
        """
        Compile the message that signers sign.

        Args:
            recent_blockhash: Base58 blockhash from getLatestBlockhash

        Returns:
            Message bytes
        """
        if not self.instructions:
            raise ValidationError("Transaction has no instructions")
        try:
            blockhash = base58.b58decode(recent_blockhash)
        except ValueError as e:
            raise ValidationError(f"Invalid recent blockhash: {e}") from e
        if len(blockhash) != BLOCKHASH_LENGTH:
            raise ValidationError(f"Recent blockhash must be {BLOCKHASH_LENGTH} bytes, got {len(blockhash)}")

        keys = self._account_keys()
        index = {meta.address: i for i, meta in enumerate(keys)}

        num_signers = sum(1 for m in keys if m.is_signer)
        readonly_signed = sum(1 for m in keys if m.is_signer and not m.is_writable)
        readonly_unsigned = sum(1 for m in keys if not m.is_signer and not m.is_writable)

        out = bytearray([num_signers, readonly_signed, readonly_unsigned])
        out += encode_compact_u16(len(keys))
        for meta in keys:
            out += meta.address.raw
        out += blockhash

        out += encode_compact_u16(len(self.instructions))
        for ix in self.instructions:
            out.append(index[ix.program_id])
            out += encode_compact_u16(len(ix.accounts))
            out += bytes(index[meta.address] for meta in ix.accounts)
            out += encode_compact_u16(len(ix.data))
            out += ix.data
        return bytes(out)

    @staticmethod
    def serialize(message: bytes, signatures: Sequence[bytes]) -> bytes:
        """Wire format: compact-u16 signature count, signatures, message."""
        out = bytearray(encode_compact_u16(len(signatures)))
        for sig in signatures:
            if len(sig) != SIGNATURE_LENGTH:
                raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(sig)}")
            out += sig
        out += message
        return bytes(out)
