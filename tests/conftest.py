"""
Pytest Configuration and Centralized Fixtures.

Provides reusable decoded App Store transaction payloads and records:
- A fully populated auto-renewable subscription payload
- A minimal consumable payload
- Parsed records built from both
"""

import logging
from collections.abc import Iterator
from typing import Any

import pytest
import structlog

from receipt_validator.models.apple_storekit import TransactionRecord

# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def quiet_structlog() -> Iterator[None]:
    """Drop debug events so per-parse logging does not flood test output."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.INFO))
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# ============================================================================
# Payload Fixtures
# ============================================================================


@pytest.fixture
def subscription_payload() -> dict[str, Any]:
    """Decoded payload of a production auto-renewable subscription renewal."""
    return {
        "transactionId": "2000000456789012",
        "originalTransactionId": "2000000123456789",
        "webOrderLineItemId": "2000000034567890",
        "bundleId": "ai.ciris.agent",
        "productId": "pro_monthly",
        "subscriptionGroupIdentifier": "21345678",
        "appAccountToken": "7e3fb20b-4cdb-47cc-936d-99d65f608138",
        "appTransactionId": "704289572311513215",
        "type": "Auto-Renewable Subscription",
        "inAppOwnershipType": "PURCHASED",
        "offerType": 1,
        "offerIdentifier": "intro_week",
        "offerDiscountType": "FREE_TRIAL",
        "offerPeriod": "P1W",
        "storefront": "USA",
        "storefrontId": "143441",
        "transactionReason": "RENEWAL",
        "currency": "USD",
        "quantity": 1,
        "price": 9990,
        "isUpgraded": False,
        "purchaseDate": 1700000000000,
        "originalPurchaseDate": 1690000000000,
        "expiresDate": 1702592000000,
        "signedDate": 1700000005123,
        "environment": "Production",
    }


@pytest.fixture
def consumable_payload() -> dict[str, Any]:
    """Decoded payload of a sandbox consumable purchase with only required keys."""
    return {
        "transactionId": "1000000987654321",
        "originalTransactionId": "1000000987654321",
        "bundleId": "ai.ciris.agent",
        "productId": "credits_100",
        "type": "Consumable",
        "quantity": 3,
        "purchaseDate": 1700000000000,
        "signedDate": 1700000005123,
        "environment": "Sandbox",
    }


# ============================================================================
# Record Fixtures
# ============================================================================


@pytest.fixture
def subscription_record(subscription_payload: dict[str, Any]) -> TransactionRecord:
    """Parsed record for the subscription payload."""
    return TransactionRecord.from_raw_data(subscription_payload)


@pytest.fixture
def consumable_record(consumable_payload: dict[str, Any]) -> TransactionRecord:
    """Parsed record for the consumable payload."""
    return TransactionRecord.from_raw_data(consumable_payload)
