import hashlib
from abc import ABC, abstractmethod


class ContentDigester(ABC):
    """
    Content-addressing oracle.
    Deterministic: equal input bytes always produce the same digest.
    """
    @abstractmethod
    def digest(self, data: bytes) -> str:
        pass

    def digest_text(self, text: str) -> str:
        return self.digest(text.encode("utf-8"))


class Sha256ContentDigester(ContentDigester):
    """64-character lowercase hex SHA-256."""

    def digest(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()
