"""
LevelUp Learning - Question Hashing
Normalized SHA-256 hashes used to de-duplicate generated questions
"""
import re
from hashlib import sha256

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[.,!?;:'\"]")


def normalize_question(text: str) -> str:
    """Lowercase, collapse whitespace and drop punctuation that tends to vary."""
    text = _WHITESPACE.sub(" ", text.lower())
    return _PUNCTUATION.sub("", text).strip()


def hash_question(text: str) -> str:
    """SHA-256 hex digest of the normalized question text."""
    return sha256(normalize_question(text).encode("utf-8")).hexdigest()


def is_duplicate_question(question_hash: str, existing_hashes: set[str]) -> bool:
    return question_hash in existing_hashes
