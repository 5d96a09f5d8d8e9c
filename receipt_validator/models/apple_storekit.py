"""
Apple StoreKit transaction record - typed view over a decoded JWS transaction.

The raw payload is the single source of truth. Typed fields are a projection
of it, rebuilt in full by parse() and by every write made through
set_field(). Deleting a key does NOT rebuild the projection.

Payload keys follow Apple's JWSTransactionDecodedPayload schema:
https://developer.apple.com/documentation/appstoreserverapi/jwstransactiondecodedpayload
"""

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any, Self

from receipt_validator.exceptions import ValidationError
from receipt_validator.models.environment import Environment
from receipt_validator.models.transaction import AbstractTransaction
from receipt_validator.observability import get_logger

logger = get_logger(__name__)

PRODUCTION_ENVIRONMENT = "Production"

# Typed attribute -> payload key, copied through without coercion
_PASSTHROUGH_FIELDS: tuple[tuple[str, str], ...] = (
    ("transaction_id", "transactionId"),
    ("original_transaction_id", "originalTransactionId"),
    ("web_order_line_item_id", "webOrderLineItemId"),
    ("bundle_id", "bundleId"),
    ("product_id", "productId"),
    ("subscription_group_identifier", "subscriptionGroupIdentifier"),
    ("app_account_token", "appAccountToken"),
    ("app_transaction_id", "appTransactionId"),
    ("type", "type"),
    ("in_app_ownership_type", "inAppOwnershipType"),
    ("revocation_reason", "revocationReason"),
    ("offer_type", "offerType"),
    ("offer_identifier", "offerIdentifier"),
    ("offer_discount_type", "offerDiscountType"),
    ("offer_period", "offerPeriod"),
    ("storefront", "storefront"),
    ("storefront_id", "storefrontId"),
    ("transaction_reason", "transactionReason"),
    ("currency", "currency"),
    ("quantity", "quantity"),
    ("price", "price"),
    ("is_upgraded", "isUpgraded"),
)

# Typed attribute -> payload key holding epoch milliseconds
_TIMESTAMP_FIELDS: tuple[tuple[str, str], ...] = (
    ("purchase_date", "purchaseDate"),
    ("original_purchase_date", "originalPurchaseDate"),
    ("expires_date", "expiresDate"),
    ("signed_date", "signedDate"),
    ("revocation_date", "revocationDate"),
)

# Every typed attribute -> the Apple payload key it is derived from
PAYLOAD_KEYS: dict[str, str] = {
    **dict(_PASSTHROUGH_FIELDS),
    **dict(_TIMESTAMP_FIELDS),
    "environment": "environment",
}


def parse_timestamp_ms(value: Any) -> datetime | None:
    """
    Convert an epoch-milliseconds payload value to an aware UTC datetime.

    None, 0, "", "0" and False are treated as absent. Values int() cannot
    handle, or that fall outside the platform's timestamp range, raise.
    """
    if not value or value == "0":
        return None
    ms = int(value)
    return datetime.fromtimestamp(ms // 1000, tz=UTC).replace(microsecond=(ms % 1000) * 1000)


def parse_environment(value: Any) -> Environment:
    """Only the exact literal "Production" is production; everything else is sandbox."""
    if isinstance(value, str) and value == PRODUCTION_ENVIRONMENT:
        return Environment.PRODUCTION
    return Environment.SANDBOX


@dataclass(frozen=True)
class TransactionFields:
    """Immutable snapshot of the typed fields derived by one parse()."""

    # Identifiers
    transaction_id: str | None = None
    original_transaction_id: str | None = None  # First transaction in subscription chain
    web_order_line_item_id: str | None = None  # Subscription purchase events across devices
    bundle_id: str | None = None
    product_id: str | None = None
    subscription_group_identifier: str | None = None
    app_account_token: str | None = None  # UUID linking the purchase to an app account
    app_transaction_id: str | None = None

    # Classification
    type: str | None = None  # "Auto-Renewable Subscription", "Non-Consumable", ...
    in_app_ownership_type: str | None = None  # "PURCHASED" or "FAMILY_SHARED"
    revocation_reason: int | str | None = None  # 0: other, 1: app issue
    offer_type: int | str | None = None  # 1: intro, 2: promo, 3: offer code, 4: win-back
    offer_identifier: str | None = None
    offer_discount_type: str | None = None  # "FREE_TRIAL", "PAY_AS_YOU_GO", "PAY_UP_FRONT"
    offer_period: str | None = None  # ISO 8601 duration
    storefront: str | None = None  # Three-letter country code (e.g., "USA")
    storefront_id: str | None = None
    transaction_reason: str | None = None  # "PURCHASE" or "RENEWAL"
    currency: str | None = None  # ISO 4217

    # Numeric / boolean
    quantity: int | None = None
    price: int | None = None  # Milliunits
    is_upgraded: bool | None = None

    # Timestamps
    purchase_date: datetime | None = None
    original_purchase_date: datetime | None = None
    expires_date: datetime | None = None
    signed_date: datetime | None = None
    revocation_date: datetime | None = None

    environment: Environment = Environment.SANDBOX


class TransactionRecord(AbstractTransaction):
    """
    Apple App Store transaction backed by its decoded payload.

    Map-style access (get_field / set_field / has_field / delete_field, or the
    equivalent [] / in / del operators) reads and writes the raw payload:

    - set_field() writes the key and then re-runs parse(), rebuilding every
      typed field, not only the one written. Cost is proportional to the
      number of recognised fields.
    - delete_field() only removes the key. Typed fields keep their last
      parsed values until the next parse() or set_field().

    Typed properties never parse; they read the snapshot from the last parse().
    """

    def __init__(self, raw_data: Mapping[str, Any] | None = None) -> None:
        self._fields = TransactionFields()
        super().__init__(raw_data)

    def parse(self) -> Self:
        """
        Rebuild all typed fields from the raw payload.

        Returns:
            The record itself

        Raises:
            ValidationError: If the raw payload is unset or not a mapping.
                Typed fields are left untouched.
        """
        data = self._raw_data
        if not isinstance(data, Mapping):
            logger.warning(
                "apple_transaction_payload_rejected",
                payload_type=type(data).__name__,
            )
            raise ValidationError("Response must be an array")

        values: dict[str, Any] = {attr: data.get(key) for attr, key in _PASSTHROUGH_FIELDS}
        for attr, key in _TIMESTAMP_FIELDS:
            values[attr] = parse_timestamp_ms(data.get(key))
        values["environment"] = parse_environment(data.get("environment"))

        self._fields = TransactionFields(**values)

        logger.debug(
            "apple_transaction_parsed",
            transaction_id=self._fields.transaction_id,
            product_id=self._fields.product_id,
            environment=self._fields.environment.value,
        )
        return self

    @property
    def fields(self) -> TransactionFields:
        """Snapshot of every typed field as of the last parse()."""
        return self._fields

    # ------------------------------------------------------------------
    # Map-style access to the raw payload
    # ------------------------------------------------------------------

    def get_field(self, key: str) -> Any:
        """Return the raw value stored at key, or None. Never raises."""
        if not isinstance(self._raw_data, Mapping):
            return None
        return self._raw_data.get(key)

    def set_field(self, key: str, value: Any) -> Self:
        """
        Write value at key in the raw payload, then re-run parse().

        The payload is created if it was never assigned.

        Raises:
            ValidationError: If the current raw payload is not a mapping.
        """
        if self._raw_data is None:
            self._raw_data = {}
        elif not isinstance(self._raw_data, MutableMapping):
            raise ValidationError("Response must be an array")
        self._raw_data[key] = value
        return self.parse()

    def has_field(self, key: str) -> bool:
        """True if key is present in the raw payload, even when its value is None."""
        return isinstance(self._raw_data, Mapping) and key in self._raw_data

    def delete_field(self, key: str) -> None:
        """Remove key from the raw payload if present. Does not re-run parse()."""
        # TODO: decide with consumers whether deletes should re-parse like writes
        if isinstance(self._raw_data, MutableMapping):
            self._raw_data.pop(key, None)

    def __getitem__(self, key: str) -> Any:
        return self.get_field(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set_field(key, value)

    def __delitem__(self, key: str) -> None:
        self.delete_field(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has_field(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionRecord):
            return NotImplemented
        return self._raw_data == other._raw_data and self._fields == other._fields

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"TransactionRecord(transaction_id={self._fields.transaction_id!r}, "
            f"product_id={self._fields.product_id!r}, "
            f"environment={self._fields.environment.value!r})"
        )

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    @property
    def environment(self) -> Environment:
        """Production only if the payload said exactly "Production"."""
        return self._fields.environment

    def set_environment(self, environment: Environment) -> Self:
        """Force the environment until the next parse() recomputes it."""
        self._fields = replace(self._fields, environment=environment)
        logger.info(
            "apple_transaction_environment_overridden",
            transaction_id=self._fields.transaction_id,
            environment=environment.value,
        )
        return self

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    @property
    def transaction_id(self) -> str | None:
        return self._fields.transaction_id

    @property
    def original_transaction_id(self) -> str | None:
        return self._fields.original_transaction_id

    @property
    def web_order_line_item_id(self) -> str | None:
        return self._fields.web_order_line_item_id

    @property
    def bundle_id(self) -> str | None:
        return self._fields.bundle_id

    @property
    def product_id(self) -> str | None:
        return self._fields.product_id

    @property
    def subscription_group_identifier(self) -> str | None:
        return self._fields.subscription_group_identifier

    @property
    def app_account_token(self) -> str | None:
        return self._fields.app_account_token

    @property
    def app_transaction_id(self) -> str | None:
        return self._fields.app_transaction_id

    @property
    def type(self) -> str | None:
        """Type of in-app purchase."""
        return self._fields.type

    @property
    def in_app_ownership_type(self) -> str | None:
        """Whether the transaction was purchased or shared via Family Sharing."""
        return self._fields.in_app_ownership_type

    @property
    def revocation_reason(self) -> int | str | None:
        return self._fields.revocation_reason

    @property
    def offer_type(self) -> int | str | None:
        return self._fields.offer_type

    @property
    def offer_identifier(self) -> str | None:
        """Identifier of the promo code or promotional offer."""
        return self._fields.offer_identifier

    @property
    def offer_discount_type(self) -> str | None:
        return self._fields.offer_discount_type

    @property
    def offer_period(self) -> str | None:
        return self._fields.offer_period

    @property
    def storefront(self) -> str | None:
        return self._fields.storefront

    @property
    def storefront_id(self) -> str | None:
        return self._fields.storefront_id

    @property
    def transaction_reason(self) -> str | None:
        """Whether the transaction is a customer purchase or a renewal."""
        return self._fields.transaction_reason

    @property
    def currency(self) -> str | None:
        return self._fields.currency

    @property
    def quantity(self) -> int | None:
        return self._fields.quantity

    @property
    def price(self) -> int | None:
        """Price in milliunits of the currency."""
        return self._fields.price

    @property
    def is_upgraded(self) -> bool | None:
        return self._fields.is_upgraded

    @property
    def purchase_date(self) -> datetime | None:
        """Time the App Store charged the user's account."""
        return self._fields.purchase_date

    @property
    def original_purchase_date(self) -> datetime | None:
        return self._fields.original_purchase_date

    @property
    def expires_date(self) -> datetime | None:
        """Expiration of an auto-renewable subscription."""
        return self._fields.expires_date

    @property
    def signed_date(self) -> datetime | None:
        """Time the App Store signed the JWS data."""
        return self._fields.signed_date

    @property
    def revocation_date(self) -> datetime | None:
        return self._fields.revocation_date
