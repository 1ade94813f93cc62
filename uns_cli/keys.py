"""Passphrase based key pairs and Base58Check wallet addresses.

A wallet key is derived the way Ark-family chains derive it: the private
scalar is ``sha256(passphrase)`` on secp256k1, the public key is the compressed
point, and the address is the Base58Check encoding of the network version byte
followed by ``ripemd160(public_key)``.
"""

from __future__ import annotations

import binascii
import hashlib
from dataclasses import dataclass
from typing import List

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

b58_digits = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def base58_check_encode(payload: bytes, version: bytes) -> str:
    """Encode bytes into a Base58Check string with the provided version byte."""
    data = version + payload
    checksum = _double_sha256(data)[:4]
    address_bytes = data + checksum

    value = int("0x0" + binascii.hexlify(address_bytes).decode("utf8"), 16)

    output: List[str] = []
    while value > 0:
        value, remainder = divmod(value, 58)
        output.append(b58_digits[remainder])
    encoded = "".join(output[::-1])

    leading_zero_count = 0
    for byte in data:
        if byte == 0:
            leading_zero_count += 1
        else:
            break

    return b58_digits[0] * leading_zero_count + encoded


def base58_check_decode(value: str) -> bytes:
    """Decode a Base58Check string, returning version byte plus payload."""
    number = 0
    for character in value:
        if character not in b58_digits:
            raise ValueError(f"Invalid Base58 character: {character}")
        number = number * 58 + b58_digits.index(character)

    hex_value = f"{number:x}"
    if len(hex_value) % 2:
        hex_value = "0" + hex_value
    decoded = binascii.unhexlify(hex_value.encode("utf8"))
    padding = len(value) - len(value.lstrip(b58_digits[0]))
    raw = b"\x00" * padding + decoded

    data, checksum = raw[:-4], raw[-4:]
    if _double_sha256(data)[:4] != checksum:
        raise ValueError("Base58Check checksum mismatch")
    return data


@dataclass(frozen=True)
class KeyPair:
    private_key: ec.EllipticCurvePrivateKey
    public_key_hex: str

    def sign(self, message: bytes) -> str:
        """Return a hex DER ECDSA (RFC 6979) signature over ``message``."""

        signature = self.private_key.sign(
            message,
            ec.ECDSA(hashes.SHA256(), deterministic_signing=True),
        )
        return signature.hex()


def keypair_from_passphrase(passphrase: str) -> KeyPair:
    secret = int.from_bytes(hashlib.sha256(passphrase.encode("utf-8")).digest(), "big")
    private_key = ec.derive_private_key(secret % SECP256K1_ORDER, ec.SECP256K1())
    public_bytes = private_key.public_key().public_bytes(
        Encoding.X962, PublicFormat.CompressedPoint
    )
    return KeyPair(private_key=private_key, public_key_hex=public_bytes.hex())


def public_key_from_passphrase(passphrase: str) -> str:
    return keypair_from_passphrase(passphrase).public_key_hex


def address_from_public_key(public_key_hex: str, pub_key_hash: int) -> str:
    digest = hashes.Hash(hashes.RIPEMD160())
    digest.update(bytes.fromhex(public_key_hex))
    ripemd = digest.finalize()
    return base58_check_encode(ripemd, bytes([pub_key_hash]))


def address_from_passphrase(passphrase: str, pub_key_hash: int) -> str:
    return address_from_public_key(public_key_from_passphrase(passphrase), pub_key_hash)


def verify_signature(public_key_hex: str, message: bytes, signature_hex: str) -> bool:
    public_key = ec.EllipticCurvePublicKey.from_encoded_point(
        ec.SECP256K1(), bytes.fromhex(public_key_hex)
    )
    try:
        public_key.verify(bytes.fromhex(signature_hex), message, ec.ECDSA(hashes.SHA256()))
    except InvalidSignature:
        return False
    return True
