from typing import Any

from pydantic import BaseModel, ConfigDict

from mockstripe.schemas.common import (
    ListParams,
    Metadata,
    StripeParams,
    StripeUpdateParams,
)

# ── Charges ──────────────────────────────────────────────


class ChargeCreate(StripeParams):
    id: str | None = None
    amount: int | None = None
    currency: str | None = None
    customer: str | None = None
    source: str | None = None
    capture: bool | None = None
    description: str | None = None
    metadata: Metadata = None
    receipt_email: str | None = None
    shipping: dict[str, Any] | None = None
    statement_descriptor: str | None = None
    transfer_group: str | None = None


class ChargeUpdate(StripeUpdateParams):
    description: str | None = None
    metadata: Metadata = None
    receipt_email: str | None = None
    shipping: dict[str, Any] | None = None
    fraud_details: dict[str, Any] | None = None
    transfer_group: str | None = None


class ChargeCapture(StripeParams):
    amount: int | None = None
    receipt_email: str | None = None
    statement_descriptor: str | None = None


class ChargeListParams(ListParams):
    customer: str | None = None


# ── Refunds ──────────────────────────────────────────────


class RefundCreate(StripeParams):
    id: str | None = None
    charge: str | None = None
    payment_intent: str | None = None
    amount: int | None = None
    reason: str | None = None
    metadata: Metadata = None


class RefundUpdate(StripeUpdateParams):
    metadata: Metadata = None


class RefundListParams(ListParams):
    charge: str | None = None


# ── Disputes ─────────────────────────────────────────────


class DisputeUpdate(StripeUpdateParams):
    evidence: dict[str, Any] | None = None
    metadata: Metadata = None
    submit: bool | None = None


class DisputeListParams(ListParams):
    charge: str | None = None


# ── Customers & cards ────────────────────────────────────


class CustomerCreate(StripeParams):
    id: str | None = None
    source: str | dict[str, Any] | None = None
    email: str | None = None
    description: str | None = None
    name: str | None = None
    phone: str | None = None
    address: dict[str, Any] | None = None
    shipping: dict[str, Any] | None = None
    balance: int | None = None
    account_balance: int | None = None
    metadata: Metadata = None


class CustomerUpdate(StripeUpdateParams):
    source: str | dict[str, Any] | None = None
    default_source: str | None = None
    email: str | None = None
    description: str | None = None
    name: str | None = None
    phone: str | None = None
    address: dict[str, Any] | None = None
    shipping: dict[str, Any] | None = None
    metadata: Metadata = None


class CardCreate(StripeParams):
    source: str | dict[str, Any] | None = None
    metadata: Metadata = None


class CustomerListParams(ListParams):
    email: str | None = None


# ── Subscriptions ────────────────────────────────────────


class SubscriptionItemParams(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
    id: str | None = None
    plan: str | None = None
    price: str | None = None
    quantity: int | None = None
    metadata: Metadata = None


class SubscriptionCreate(StripeParams):
    id: str | None = None
    customer: str | None = None
    plan: str | None = None
    items: list[SubscriptionItemParams] | None = None
    quantity: int | None = None
    default_source: str | dict[str, Any] | None = None
    metadata: Metadata = None
    billing: str | None = None
    collection_method: str | None = None
    application_fee_percent: float | None = None
    billing_cycle_anchor: int | None = None
    days_until_due: int | None = None
    tax_percent: float | None = None
    cancel_at_period_end: bool | None = None


class SubscriptionUpdate(StripeUpdateParams):
    metadata: Metadata = None
    cancel_at_period_end: bool | None = None
    default_source: str | dict[str, Any] | None = None
    quantity: int | None = None


class SubscriptionListParams(ListParams):
    customer: str | None = None
    plan: str | None = None
    status: str | None = None


class SubscriptionItemUpdate(StripeUpdateParams):
    quantity: int | None = None
    metadata: Metadata = None


class SubscriptionItemListParams(ListParams):
    subscription: str | None = None


# ── Plans ────────────────────────────────────────────────


class PlanCreate(StripeParams):
    id: str | None = None
    currency: str | None = None
    interval: str | None = None
    interval_count: int | None = None
    product: str | dict[str, Any] | None = None
    amount: int | None = None
    active: bool | None = None
    billing_scheme: str | None = None
    usage_type: str | None = None
    aggregate_usage: str | None = None
    nickname: str | None = None
    tiers: list[dict[str, Any]] | None = None
    tiers_mode: str | None = None
    transform_usage: dict[str, Any] | None = None
    trial_period_days: int | None = None
    metadata: Metadata = None


class PlanUpdate(StripeUpdateParams):
    active: bool | None = None
    metadata: Metadata = None
    nickname: str | None = None
    trial_period_days: int | None = None


class PlanListParams(ListParams):
    active: bool | None = None
    product: str | None = None


# ── Prices ───────────────────────────────────────────────


class PriceRecurring(BaseModel):
    model_config = ConfigDict(extra="allow")
    interval: str | None = None
    interval_count: int | None = None
    usage_type: str | None = None
    aggregate_usage: str | None = None
    trial_period_days: int | None = None


class PriceCreate(StripeParams):
    id: str | None = None
    currency: str | None = None
    product: str | None = None
    product_data: dict[str, Any] | None = None
    unit_amount: int | None = None
    unit_amount_decimal: str | None = None
    recurring: PriceRecurring | None = None
    billing_scheme: str | None = None
    active: bool | None = None
    lookup_key: str | None = None
    nickname: str | None = None
    tiers_mode: str | None = None
    transform_quantity: dict[str, Any] | None = None
    metadata: Metadata = None


class PriceUpdate(StripeUpdateParams):
    active: bool | None = None
    metadata: Metadata = None
    nickname: str | None = None
    lookup_key: str | None = None


class PriceListParams(ListParams):
    active: bool | None = None
    currency: str | None = None
    product: str | None = None
    type: str | None = None


# ── Products & SKUs ──────────────────────────────────────


class ProductCreate(StripeParams):
    id: str | None = None
    name: str | None = None
    type: str | None = None
    active: bool | None = None
    attributes: list[str] | None = None
    caption: str | None = None
    description: str | None = None
    images: list[str] | None = None
    package_dimensions: dict[str, Any] | None = None
    shippable: bool | None = None
    statement_descriptor: str | None = None
    url: str | None = None
    metadata: Metadata = None


class ProductUpdate(StripeUpdateParams):
    name: str | None = None
    description: str | None = None
    active: bool | None = None
    images: list[str] | None = None
    url: str | None = None
    statement_descriptor: str | None = None
    metadata: Metadata = None


class ProductListParams(ListParams):
    active: bool | None = None
    ids: list[str] | None = None
    shippable: bool | None = None
    url: str | None = None
    type: str | None = None


class SkuCreate(StripeParams):
    id: str | None = None
    currency: str | None = None
    inventory: dict[str, Any] | None = None
    price: int | None = None
    product: str | None = None
    active: bool | None = None
    attributes: dict[str, Any] | None = None
    image: str | None = None
    package_dimensions: dict[str, Any] | None = None
    metadata: Metadata = None


class SkuUpdate(StripeUpdateParams):
    active: bool | None = None
    price: int | None = None
    inventory: dict[str, Any] | None = None
    attributes: dict[str, Any] | None = None
    image: str | None = None
    metadata: Metadata = None


class SkuListParams(ListParams):
    active: bool | None = None
    ids: list[str] | None = None
    product: str | None = None


# ── Tax rates ────────────────────────────────────────────


class TaxRateCreate(StripeParams):
    id: str | None = None
    display_name: str | None = None
    inclusive: bool | None = None
    percentage: float | None = None
    active: bool | None = None
    description: str | None = None
    jurisdiction: str | None = None
    metadata: Metadata = None


class TaxRateUpdate(StripeUpdateParams):
    active: bool | None = None
    description: str | None = None
    display_name: str | None = None
    jurisdiction: str | None = None
    metadata: Metadata = None


class TaxRateListParams(ListParams):
    active: bool | None = None
    inclusive: bool | None = None


# ── Checkout sessions ────────────────────────────────────


class CheckoutLineItem(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
    amount: int | None = None
    currency: str | None = None
    name: str | None = None
    description: str | None = None
    price: str | None = None
    price_data: dict[str, Any] | None = None
    quantity: int | None = None


class CheckoutSessionCreate(StripeParams):
    id: str | None = None
    cancel_url: str | None = None
    success_url: str | None = None
    payment_method_types: list[str] | None = None
    line_items: list[CheckoutLineItem] | None = None
    mode: str | None = None
    customer: str | None = None
    customer_email: str | None = None
    client_reference_id: str | None = None
    allow_promotion_codes: bool | None = None
    billing_address_collection: str | None = None
    locale: str | None = None
    submit_type: str | None = None
    metadata: Metadata = None


# ── Payment intents ──────────────────────────────────────


class PaymentIntentCreate(StripeParams):
    id: str | None = None
    amount: int | None = None
    currency: str | None = None
    customer: str | None = None
    description: str | None = None
    payment_method: str | None = None
    payment_method_types: list[str] | None = None
    capture_method: str | None = None
    confirm: bool | None = None
    receipt_email: str | None = None
    statement_descriptor: str | None = None
    metadata: Metadata = None


class PaymentIntentUpdate(StripeUpdateParams):
    amount: int | None = None
    currency: str | None = None
    customer: str | None = None
    description: str | None = None
    payment_method: str | None = None
    receipt_email: str | None = None
    statement_descriptor: str | None = None
    shipping: dict[str, Any] | None = None
    metadata: Metadata = None


class PaymentIntentConfirm(StripeParams):
    payment_method: str | None = None
    receipt_email: str | None = None
    return_url: str | None = None


class PaymentIntentCapture(StripeParams):
    amount_to_capture: int | None = None


class PaymentIntentCancel(StripeParams):
    cancellation_reason: str | None = None


class PaymentIntentListParams(ListParams):
    customer: str | None = None


# ── Accounts ─────────────────────────────────────────────


class AccountCreate(StripeParams):
    id: str | None = None
    type: str | None = None
    country: str | None = None
    email: str | None = None
    business_type: str | None = None
    business_profile: dict[str, Any] | None = None
    default_currency: str | None = None
    settings: dict[str, Any] | None = None
    tos_acceptance: dict[str, Any] | None = None
    metadata: Metadata = None


class AccountUpdate(StripeUpdateParams):
    email: str | None = None
    business_profile: dict[str, Any] | None = None
    default_currency: str | None = None
    metadata: Metadata = None
