"""
LevelUp Learning - Question Hash Tests
"""
from levelup.core.question_hash import hash_question, is_duplicate_question, normalize_question


def test_normalize_question():
    assert normalize_question("  What is 2 + 2?\n") == "what is 2 + 2"
    assert normalize_question("Isn't it:  \"blue\"!") == "isnt it blue"


def test_equivalent_texts_hash_the_same():
    assert hash_question("What is 2 + 2?") == hash_question("what   is 2 + 2")
    assert hash_question("What is 2 + 2?") != hash_question("What is 2 + 3?")
    assert len(hash_question("anything")) == 64


def test_is_duplicate_question():
    seen = {hash_question("Name a primary color.")}
    assert is_duplicate_question(hash_question("name a primary color"), seen)
    assert not is_duplicate_question(hash_question("Name a secondary color."), seen)
