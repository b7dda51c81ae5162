"""
Shared fixtures for the quote analyzer tests.
"""
import io
import pytest


class FakeLLMClient:
    """
    Stand-in for QuoteLLMClient that records calls.

    Responses are consumed in order; an Exception instance is raised
    instead of returned. When responses run out, default_response is used.
    """

    def __init__(self, responses=None, default_response='Looks like a fair quote.'):
        self.responses = list(responses or [])
        self.default_response = default_response
        self.calls = []

    def complete(self, system_prompt, user_prompt, json_mode=False, max_tokens=None):
        self.calls.append({
            'system_prompt': system_prompt,
            'user_prompt': user_prompt,
            'json_mode': json_mode,
            'max_tokens': max_tokens,
        })
        item = self.responses.pop(0) if self.responses else self.default_response
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def app():
    """Flask app with test settings; config is restored afterwards."""
    from main import app as flask_app

    original_config = dict(flask_app.config)
    flask_app.config.update(
        TESTING=True,
        ANALYSIS_MODE='sectioned',
        SECTION_CALL_DELAY_SECONDS=0,
    )

    yield flask_app

    flask_app.config.clear()
    flask_app.config.update(original_config)


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()


@pytest.fixture
def upload(client):
    """Post a file to /api/analyze."""
    def _upload(content, filename='quote.txt', mime_type='text/plain', location=None):
        data = {'file': (io.BytesIO(content), filename, mime_type)}
        if location is not None:
            data['location'] = location
        return client.post('/api/analyze', data=data, content_type='multipart/form-data')
    return _upload


@pytest.fixture
def sample_quote():
    """A plain-text roofing quote with several recognizable sections."""
    return (
        "ACME Home Services - Estimate #2291\n"
        "Customer: J. Rivera, 14 Elm Street\n\n"
        "Scope of Work\n"
        "Remove existing asphalt shingles down to the deck on the main house roof. Inspect the decking "
        "and replace up to 3 sheets of damaged plywood. Install synthetic underlayment, ice and water "
        "shield at the eaves and valleys, and new architectural shingles with ridge vent.\n\n"
        "Price Breakdown\n"
        "Labor: $6,400\n"
        "Materials: $5,150\n"
        "Permit: $250\n"
        "Disposal: $600\n"
        "Total: $12,400 if signed today only. Regular price $15,900.\n"
        "A 50% deposit is due at signing and the balance is due on the day the crew finishes.\n\n"
        "Warranty\n"
        "Lifetime workmanship warranty on all installed components, subject to annual paid "
        "maintenance inspections by ACME. Manufacturer warranty terms apply to shingles and underlayment.\n"
    )
