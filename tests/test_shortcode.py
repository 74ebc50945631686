"""Tests for identifier generation."""

import random

import pytest

from ephemera.errors import CodeGenerationExhaustedError, DuplicateKeyError
from ephemera.shortcode import ShortCodeGenerator, ensure_unique, insert_with_unique_code


class TestShortCodeGenerator:
    """Test ShortCodeGenerator."""

    def test_content_id_length_and_charset(self):
        """Content ids are 8 alphanumeric characters."""
        generator = ShortCodeGenerator()

        for _ in range(500):
            content_id = generator.generate_content_id()
            assert len(content_id) == 8
            assert content_id.isalnum()
            assert content_id.isascii()

    def test_content_id_custom_length(self):
        """Filtering never shortens ids below the requested length."""
        generator = ShortCodeGenerator(content_id_length=32)

        for _ in range(100):
            assert len(generator.generate_content_id()) == 32

    def test_short_code_length_and_charset(self):
        """Short codes are 6 base62 characters."""
        generator = ShortCodeGenerator()

        for _ in range(500):
            code = generator.generate_short_code()
            assert len(code) == 6
            assert ShortCodeGenerator.is_valid_format(code)

    def test_generated_codes_are_mostly_unique(self):
        """Test that generated codes are mostly unique."""
        generator = ShortCodeGenerator()
        codes = {generator.generate_short_code() for _ in range(1000)}

        assert len(codes) > 990

    def test_seeded_rng_is_deterministic(self):
        """Short codes follow a seeded random source."""
        first = ShortCodeGenerator(rng=random.Random(42))
        second = ShortCodeGenerator(rng=random.Random(42))

        assert [first.generate_short_code() for _ in range(5)] == [
            second.generate_short_code() for _ in range(5)
        ]

    def test_generate_random_uses_alphabet(self):
        """Test generation over a custom alphabet."""
        generator = ShortCodeGenerator()
        code = generator.generate_random("ab", 20)

        assert len(code) == 20
        assert set(code) <= {"a", "b"}

    def test_generate_random_rejects_bad_arguments(self):
        """Empty alphabets and non-positive lengths are rejected."""
        generator = ShortCodeGenerator()

        with pytest.raises(ValueError):
            generator.generate_random("", 6)
        with pytest.raises(ValueError):
            generator.generate_random("abc", 0)

    def test_is_valid_format(self):
        """Test format validation."""
        assert ShortCodeGenerator.is_valid_format("abc123")
        assert ShortCodeGenerator.is_valid_format("ABCxyz")
        assert not ShortCodeGenerator.is_valid_format("")
        assert not ShortCodeGenerator.is_valid_format("abc-12")
        assert not ShortCodeGenerator.is_valid_format("abc 12")
        assert ShortCodeGenerator.is_valid_format("aab", alphabet="ab")
        assert not ShortCodeGenerator.is_valid_format("abc", alphabet="ab")


def _sequence(*codes):
    it = iter(codes)
    return lambda: next(it)


def _taken(*codes):
    taken = set(codes)

    async def exists(code):
        return code in taken

    return exists


@pytest.mark.asyncio
class TestEnsureUnique:
    """Test collision handling."""

    async def test_returns_first_free_code(self):
        code = await ensure_unique(_sequence("aaa", "bbb", "ccc"), _taken("aaa"))
        assert code == "bbb"

    async def test_exhaustion(self):
        """Every candidate taken raises after max_attempts."""
        calls = []

        def generate():
            calls.append(1)
            return "taken"

        with pytest.raises(CodeGenerationExhaustedError) as exc_info:
            await ensure_unique(generate, _taken("taken"), max_attempts=5)

        assert len(calls) == 5
        assert exc_info.value.message == "failed to generate unique code after retries"
        assert exc_info.value.status_code == 500


@pytest.mark.asyncio
class TestInsertWithUniqueCode:
    """Test generate-check-insert with race retries."""

    async def test_inserts_free_code(self):
        inserted = []

        async def insert(code):
            inserted.append(code)
            return code

        result = await insert_with_unique_code(_sequence("one"), _taken(), insert)

        assert result == "one"
        assert inserted == ["one"]

    async def test_retries_when_insert_loses_race(self):
        """A duplicate key on insert triggers a fresh code."""

        async def insert(code):
            if code == "raced":
                raise DuplicateKeyError()
            return code

        result = await insert_with_unique_code(_sequence("raced", "fresh"), _taken(), insert)

        assert result == "fresh"

    async def test_race_retries_share_budget(self):
        """Check collisions and insert collisions count against one budget."""
        attempts = []

        def generate():
            attempts.append(1)
            return f"code{len(attempts)}"

        async def insert(code):
            raise DuplicateKeyError()

        with pytest.raises(CodeGenerationExhaustedError):
            await insert_with_unique_code(generate, _taken("code1"), insert, max_attempts=3)

        assert len(attempts) == 3
