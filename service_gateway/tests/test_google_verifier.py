"""
Unit tests for Google ID token verification.
"""

import httpx
import pytest
import respx

from service_gateway.app.auth.google import GoogleIdentityVerifier
from shared.errors import InvalidExternalToken
from shared.test_helpers import (
    TEST_CLIENT_ID,
    TEST_JWKS_URL,
    GoogleTokenFactory,
    create_mock_identity_claims,
)


@pytest.fixture(scope="module")
def token_factory():
    return GoogleTokenFactory()


@pytest.fixture
def verifier():
    return GoogleIdentityVerifier(TEST_CLIENT_ID, TEST_JWKS_URL)


@pytest.mark.asyncio
async def test_verify_extracts_identity(verifier, token_factory):
    """A valid token yields the normalized identity."""
    with respx.mock(assert_all_called=True) as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        identity = await verifier.verify(token_factory.issue())

    assert identity.email == "ada@example.com"
    assert identity.name == "Ada Lovelace"
    assert identity.picture == "https://example.com/ada.png"


@pytest.mark.asyncio
async def test_verify_accepts_bare_google_issuer(verifier, token_factory):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        identity = await verifier.verify(token_factory.issue(issuer="accounts.google.com"))

    assert identity.email == "ada@example.com"


@pytest.mark.asyncio
async def test_verify_rejects_wrong_audience(verifier, token_factory):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(token_factory.issue(audience="someone-else"))


@pytest.mark.asyncio
async def test_verify_rejects_foreign_issuer(verifier, token_factory):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(token_factory.issue(issuer="https://evil.example.com"))


@pytest.mark.asyncio
async def test_verify_rejects_expired_token(verifier, token_factory):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(token_factory.issue(expires_in=-60))


@pytest.mark.asyncio
async def test_verify_rejects_token_signed_by_unknown_key(verifier, token_factory):
    """A key id missing from the JWKS triggers one forced refresh, then fails."""
    impostor = GoogleTokenFactory(kid="impostor")

    with respx.mock() as router:
        route = router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(impostor.issue())

    assert route.call_count == 2


@pytest.mark.asyncio
async def test_verify_rejects_forged_signature(verifier, token_factory):
    """Same kid, different private key."""
    forger = GoogleTokenFactory(kid=token_factory.kid)

    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(forger.issue())


@pytest.mark.asyncio
async def test_verify_rejects_token_without_email(verifier, token_factory):
    claims = create_mock_identity_claims()
    del claims["email"]

    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(token_factory.issue(claims))


@pytest.mark.asyncio
async def test_verify_rejects_garbage(verifier):
    with respx.mock(assert_all_called=False):
        with pytest.raises(InvalidExternalToken):
            await verifier.verify("definitely-not-a-jwt")


@pytest.mark.asyncio
async def test_verify_fails_when_provider_unreachable(verifier, token_factory):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(token_factory.issue())


@pytest.mark.asyncio
async def test_verify_fails_when_provider_errors(verifier, token_factory):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(503)

        with pytest.raises(InvalidExternalToken):
            await verifier.verify(token_factory.issue())


@pytest.mark.asyncio
async def test_signing_keys_are_cached(verifier, token_factory):
    with respx.mock() as router:
        route = router.get(TEST_JWKS_URL).respond(200, json=token_factory.jwks)

        await verifier.verify(token_factory.issue())
        await verifier.verify(token_factory.issue())

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_warmup_swallows_provider_outage(verifier):
    with respx.mock() as router:
        router.get(TEST_JWKS_URL).respond(500)

        await verifier.warmup()

    await verifier.close()
