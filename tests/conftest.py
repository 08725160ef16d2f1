"""Shared fixtures for mailbox tests."""

import pytest

from mbox_samples import ATTACHMENT_MESSAGE, PLAIN_MESSAGE, SECOND_MESSAGE


@pytest.fixture
def messages():
    """The three sample messages, in file order."""
    return [PLAIN_MESSAGE, SECOND_MESSAGE, ATTACHMENT_MESSAGE]


@pytest.fixture
def mbox_path(tmp_path, messages):
    """Write the sample messages to an mbox file."""
    path = tmp_path / "sample.mbox"
    path.write_bytes(b"".join(messages))
    return path
