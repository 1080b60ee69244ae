"""Global test configuration — runs before any test module imports."""
import os

# Must be set BEFORE any intuition_trust imports — slowapi reads this at init
os.environ["RATELIMIT_ENABLED"] = "False"

import pytest

from intuition_trust.errors import RetrievalError
from intuition_trust.models import Attestation, AttestationFilters

ALICE = "0xabc0000000000000000000000000000000000001"
BOB = "0xb0b0000000000000000000000000000000000002"
CAROL = "0xca70000000000000000000000000000000000003"


def pytest_configure(config):
    """Disable rate limiter after all imports."""
    from intuition_trust.middleware import limiter
    limiter.enabled = False


def make_att(subject=ALICE, predicate="expert-in-defi", object="true", *,
             id="1", creator=BOB, timestamp=1_700_000_000, confidence=0.8) -> Attestation:
    return Attestation(
        id=id, creator=creator, subject=subject, predicate=predicate,
        object=object, timestamp=timestamp, confidence=confidence,
    )


class FakeGraphClient:
    """Stands in for GraphClient: returns canned attestations, records filters."""

    def __init__(self, attestations=None, error: str = None):
        self.attestations = list(attestations or [])
        self.error = error
        self.calls: list[AttestationFilters] = []
        self.closed = False

    async def get_attestations(self, filters=None):
        filters = filters or AttestationFilters()
        self.calls.append(filters)
        if self.error:
            raise RetrievalError(self.error)
        atts = self.attestations
        if filters.has_predicates:
            atts = [a for a in atts if filters.matches(a)]
        return atts

    async def aclose(self):
        self.closed = True


@pytest.fixture
def attestations():
    return [
        make_att(ALICE, "expert-in-defi", "true", id="1", confidence=0.9, timestamp=1_700_000_100),
        make_att(ALICE, "scam-alert", "warning", id="2", confidence=0.1, timestamp=1_700_000_200),
        make_att(BOB, "expert-in-solidity", "true", id="3", creator=CAROL, timestamp=1_700_000_300),
        make_att(BOB, "trusted-by", CAROL, id="4", creator=CAROL, timestamp=1_700_000_400),
        make_att(CAROL, "knows", "solidity", id="5", creator=ALICE, timestamp=1_700_000_500),
    ]


@pytest.fixture
def fake_client(attestations):
    return FakeGraphClient(attestations)
