import os
import sys

import pytest

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sns_sdk.states import RECORD_HEADER_LAYOUT, Validation  # noqa: E402


def _registry_bytes(content=b"", owner=None, parent=None, class_address=None):
    return (
        (bytes(parent) if parent else bytes(32))
        + (bytes(owner) if owner else bytes(32))
        + (bytes(class_address) if class_address else bytes(32))
        + content
    )


def _record_v2_bytes(
    content,
    staleness_id=b"",
    roa_id=b"",
    staleness_validation=Validation.NONE,
    roa_validation=Validation.NONE,
    owner=None,
):
    header = RECORD_HEADER_LAYOUT.build(dict(
        staleness_validation=int(staleness_validation),
        roa_validation=int(roa_validation),
        content_length=len(content),
    ))
    return _registry_bytes(header + bytes(staleness_id) + bytes(roa_id) + content, owner=owner)


@pytest.fixture
def registry_bytes():
    """Build raw registry account bytes: header then content."""
    return _registry_bytes


@pytest.fixture
def record_v2_bytes():
    """Build raw record v2 account bytes."""
    return _record_v2_bytes
