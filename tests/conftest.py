"""Pytest configuration and shared fixtures for RxNav MCP server tests.

Testing Strategy:
-----------------
- Unit tests (tests/unit/) never touch the network. RxNav is replaced by an
  httpx.MockTransport serving canned JSON payloads, so the real client,
  resolver and tools run end to end against predictable data.
- The retrieval pipeline is pure and is tested directly with literal texts.

Fixture Design Principles:
---------------------------
1. Payloads mirror real RxNav responses for aspirin (RxCUI 1191) and one of
   its branded clinical drugs (RxCUI 211874).
2. FakeRxNav records every request so tests can assert which endpoints were
   called and with which parameters.
3. Clients are created with zero retries and a no-op sleep unless a test
   needs the retry behaviour.

Example Usage:
--------------
```python
@pytest.mark.asyncio
async def test_generic_name(drug_tools):
    result = await drug_tools.get_generic_name("aspirin")
    assert result.rxcui == "1191"
```
"""

from pathlib import Path
from typing import Any

import httpx
import pytest

from rxnav_mcp.rxnav.client import RxNavClient
from rxnav_mcp.rxnav.resolver import TerminologyResolver
from rxnav_mcp.tools.drug_tools import DrugTerminologyTools
from rxnav_mcp.tools.rag_tools import RAGPipelineTools

TEST_BASE_URL = "https://rxnav.test/REST"

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Register custom markers.

    - @pytest.mark.unit: Fast, isolated unit tests
    - @pytest.mark.integration: Tests requiring the live RxNav API
    - @pytest.mark.slow: Tests that take > 1 second

    ```bash
    pytest -m unit              # Only unit tests (fast)
    pytest -m "not slow"        # Skip slow tests
    ```
    """
    config.addinivalue_line("markers", "unit: Fast unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests with real dependencies")
    config.addinivalue_line("markers", "slow: Tests that take more than 1 second")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location.

    - tests/unit/* → @pytest.mark.unit
    - tests/integration/* → @pytest.mark.integration
    """
    for item in items:
        test_path = Path(item.fspath)

        if "unit" in test_path.parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# FAKE RXNAV API
# =============================================================================


class FakeRxNav:
    """In-memory RxNav served through httpx.MockTransport.

    Routes match on the endpoint path (without the /REST prefix) and on any
    query parameters given when the route was added. Unmatched requests get
    a 404, like RxNav does for unknown paths.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[str, dict[str, str], int, Any]] = []
        self.requests: list[httpx.Request] = []

    def add(self, path: str, payload: Any, status: int = 200, **params: str) -> "FakeRxNav":
        self.routes.append((path, params, status, payload))
        return self

    def paths(self) -> list[str]:
        return [self._endpoint(request) for request in self.requests]

    @staticmethod
    def _endpoint(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/REST")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = self._endpoint(request)

        for path, params, status, payload in self.routes:
            if path != endpoint:
                continue
            if any(request.url.params.get(key) != value for key, value in params.items()):
                continue
            if isinstance(payload, Exception):
                raise payload
            return httpx.Response(status, json=payload)

        return httpx.Response(404, json={"error": f"no route for {endpoint}"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


async def no_sleep(_delay: float) -> None:
    return None


def make_client(transport: httpx.AsyncBaseTransport, max_retries: int = 0, **kwargs) -> RxNavClient:
    return RxNavClient(
        base_url=TEST_BASE_URL,
        request_timeout=5.0,
        max_retries=max_retries,
        retry_delay=0.5,
        transport=transport,
        sleep=kwargs.pop("sleep", no_sleep),
        **kwargs,
    )


# =============================================================================
# RXNAV PAYLOAD FIXTURES
# =============================================================================


def concept_groups(wrapper: str, groups: dict[str, list[dict[str, str]]]) -> dict[str, Any]:
    """Build an RxNav {wrapper: {conceptGroup: [...]}} payload."""
    return {
        wrapper: {
            "conceptGroup": [
                {"tty": tty, "conceptProperties": concepts} for tty, concepts in groups.items()
            ]
        }
    }


def prop_concepts(*props: tuple[str, str]) -> dict[str, Any]:
    """Build an RxNav propConceptGroup payload from (name, value) pairs."""
    return {
        "propConceptGroup": {
            "propConcept": [
                {"propCategory": "ATTRIBUTES", "propName": name, "propValue": value}
                for name, value in props
            ]
        }
    }


ASPIRIN = {"rxcui": "1191", "name": "aspirin", "tty": "IN", "synonym": ""}
BAYER_TABLET = {
    "rxcui": "211874",
    "name": "aspirin 325 MG Oral Tablet [Bayer]",
    "tty": "SBD",
    "synonym": "Bayer Aspirin",
}
BAYER_BRAND = {"rxcui": "1293", "name": "Bayer", "tty": "BN"}


@pytest.fixture
def aspirin_search_payload() -> dict[str, Any]:
    return concept_groups("drugGroup", {"IN": [ASPIRIN], "SBD": [BAYER_TABLET]})


@pytest.fixture
def fake_rxnav(aspirin_search_payload) -> FakeRxNav:
    """FakeRxNav loaded with the aspirin payloads used across tool tests."""
    fake = FakeRxNav()
    fake.add("/drugs.json", aspirin_search_payload, name="aspirin")
    fake.add("/drugs.json", {"drugGroup": {"name": None}}, name="notadrug")
    fake.add(
        "/rxcui/1191/related.json",
        concept_groups("relatedGroup", {"IN": [ASPIRIN]}),
        tty="IN PIN",
    )
    fake.add(
        "/rxcui/1191/related.json",
        concept_groups("relatedGroup", {"BN": [BAYER_BRAND], "SBD": [BAYER_TABLET]}),
        tty="SBD BPCK BN",
    )
    fake.add(
        "/rxcui/1191/property.json",
        prop_concepts(("ATC", "N02BA01"), ("ATC", "B01AC06"), ("ATC", "N02BA01")),
        propName="ATC",
    )
    fake.add(
        "/rxcui/1191/allProperties.json",
        prop_concepts(("RxNorm Name", "aspirin"), ("Strength", "325 MG")),
        prop="all",
    )
    fake.add(
        "/rxcui/211874/related.json",
        concept_groups("relatedGroup", {"IN": [ASPIRIN]}),
        tty="IN PIN",
    )
    fake.add("/rxcui/211874/property.json", {"propConceptGroup": None}, propName="ATC")
    return fake


# =============================================================================
# CLIENT AND TOOL FIXTURES
# =============================================================================


@pytest.fixture
def client_factory():
    """make_client, for tests that build their own transport."""
    return make_client


@pytest.fixture
def fake_rxnav_factory():
    """FakeRxNav class, for tests that need an empty fake."""
    return FakeRxNav


@pytest.fixture
def rxnav_client(fake_rxnav) -> RxNavClient:
    return make_client(fake_rxnav.transport())


@pytest.fixture
def resolver(rxnav_client) -> TerminologyResolver:
    return TerminologyResolver(rxnav_client)


@pytest.fixture
def drug_tools(resolver) -> DrugTerminologyTools:
    return DrugTerminologyTools(resolver)


@pytest.fixture
def rag_tools(resolver, drug_tools) -> RAGPipelineTools:
    return RAGPipelineTools(resolver, drug_tools)
