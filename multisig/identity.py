"""secp256k1 signer identity: key generation, load, save and authorization signing."""

from pathlib import Path

from eth_account import Account
from eth_account.messages import encode_defunct

from .errors import IdentityError
from .types import Action, Signature
from .verifier import authorization_hash


class Identity:
    """A wallet signer backed by a secp256k1 private key."""

    def __init__(self, private_key: bytes):
        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            raise IdentityError(f"Invalid private key: {e}") from e

    @classmethod
    def generate(cls) -> "Identity":
        """Generate a new random keypair (in-memory only)."""
        return cls(bytes(Account.create().key))

    @classmethod
    def create(cls, path: str) -> "Identity":
        """Generate a new keypair and save it to *path*. Creates parent dirs.

        Raises:
            IdentityError: If *path* already exists (will not overwrite).
        """
        p = Path(path)
        if p.exists():
            raise IdentityError(f"Identity file already exists: {path}")
        identity = cls.generate()
        identity.save(path)
        return identity

    @classmethod
    def load(cls, path: str) -> "Identity":
        """Load a private key from a file (raw 32 bytes)."""
        p = Path(path)
        if not p.exists():
            raise IdentityError(f"Identity file not found: {path}")
        raw = p.read_bytes()
        if len(raw) != 32:
            raise IdentityError(
                f"Invalid key file: expected 32 bytes, got {len(raw)}"
            )
        return cls(raw)

    def save(self, path: str) -> None:
        """Save the raw 32-byte private key to disk. Creates parent dirs."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(bytes(self._account.key))

    @property
    def address(self) -> str:
        """EIP-55 checksum address of this identity."""
        return self._account.address

    def sign_hash(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest as an EIP-191 personal message.

        Returns the 65-byte ``r || s || v`` signature with ``v`` in {27, 28}.
        """
        if len(digest) != 32:
            raise IdentityError(f"digest must be 32 bytes, got {len(digest)}")
        signed = self._account.sign_message(encode_defunct(primitive=digest))
        return bytes(signed.signature)

    def sign_authorization(
        self, action: Action, nonce: int, context: str
    ) -> Signature:
        """Authorize *action* under *nonce* for the wallet at *context*."""
        digest = authorization_hash(action, nonce, context)
        return Signature(data=self.sign_hash(digest), nonce=nonce)
