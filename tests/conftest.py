"""Pytest configuration and fixtures for chatmpl tests."""

import pytest

from chatmpl import Environment


@pytest.fixture
def env():
    """Create a basic chatmpl Environment."""
    return Environment()


@pytest.fixture
def env_trim():
    """Create an Environment with trim_blocks and lstrip_blocks enabled."""
    return Environment(trim_blocks=True, lstrip_blocks=True)


@pytest.fixture
def render(env):
    """Render a template source string against keyword context."""

    def _render(source: str, **context) -> str:
        return env.from_string(source).render(context)

    return _render


@pytest.fixture
def messages():
    """A short conversation in the shape chat templates receive."""
    return [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hi!"},
        {"role": "assistant", "content": "Hello."},
        {"role": "user", "content": "Tell me a joke."},
    ]


def assert_template_equal(template_result: str, expected: str) -> None:
    """Assert template result equals expected, normalizing whitespace.

    Args:
        template_result: The actual template rendering result.
        expected: The expected output.
    """
    actual_normalized = " ".join(template_result.split())
    expected_normalized = " ".join(expected.split())
    assert actual_normalized == expected_normalized, (
        f"Template output mismatch:\n"
        f"  Actual: {actual_normalized!r}\n"
        f"  Expected: {expected_normalized!r}"
    )
