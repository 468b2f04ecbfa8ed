"""Shared fixtures for the callback tests."""
import base64
import json
from decimal import Decimal
from types import SimpleNamespace

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from sqlalchemy.orm import sessionmaker

from wata_callback.db import build_engine
from wata_callback.models import Base, PaymentProfile, PaymentProvider, PurchaseRequest

GATEWAY_IP = "62.84.126.140"

PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
PUBLIC_KEY = PRIVATE_KEY.public_key()
PUBLIC_PEM = PUBLIC_KEY.public_bytes(
    serialization.Encoding.PEM,
    serialization.PublicFormat.SubjectPublicKeyInfo,
).decode()

OTHER_PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)

DEFAULT_FIELDS = {
    "transactionType": "CardCrypto",
    "transactionId": "3a16a4f0-27b0-09d1-16da-ba8d5c63eae3",
    "transactionStatus": "Paid",
    "errorCode": None,
    "errorDescription": None,
    "terminalName": "forum",
    "amount": Decimal("25.50"),
    "currency": "EUR",
    "orderId": "ORD-2550",
    "orderDescription": "Order #ORD-2550",
    "paymentTime": "2026-10-19T10:00:00Z",
    "commission": Decimal("0.77"),
    "email": "payer@example.com",
}


def callback_body(drop=(), **overrides) -> bytes:
    """Render a callback body; Decimal values are written as raw JSON numbers."""
    fields = dict(DEFAULT_FIELDS)
    fields.update(overrides)
    parts = []
    for name, value in fields.items():
        if name in drop:
            continue
        rendered = str(value) if isinstance(value, Decimal) else json.dumps(value)
        parts.append(f'"{name}": {rendered}')
    return ("{" + ", ".join(parts) + "}").encode()


def sign(payload: bytes, private_key=PRIVATE_KEY) -> str:
    signature = private_key.sign(payload, padding.PKCS1v15(), hashes.SHA512())
    return base64.b64encode(signature).decode()


class FakeKeyProvider:
    def __init__(self, key=PUBLIC_KEY):
        self.key = key
        self.calls = 0

    async def get_public_key(self):
        self.calls += 1
        return self.key


class FakeStore:
    """In-memory PurchaseRequestStore."""

    def __init__(self, requests=(), profiles=()):
        self.requests = {r.request_key: r for r in requests}
        self.profiles = {p.id: p for p in profiles}
        self.lookups = 0

    def find_by_key(self, request_key):
        self.lookups += 1
        return self.requests.get(request_key)

    def get_profile(self, profile_id):
        return self.profiles.get(profile_id)


def make_request(request_key="ORD-2550", amount="25.50", currency="EUR", profile_id=1):
    return SimpleNamespace(
        request_key=request_key,
        cost_amount=Decimal(amount),
        cost_currency=currency,
        payment_profile_id=profile_id,
    )


def make_profile(profile_id=1, provider_id="Wata", token="tok_test"):
    return SimpleNamespace(id=profile_id, provider_id=provider_id, options={"token": token}, is_active=True)


def make_sessionmaker():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def seed_purchase(db, request_key="ORD-2550", amount="25.50", currency="EUR",
                  provider_id="Wata", options=None):
    provider = db.get(PaymentProvider, provider_id)
    if provider is None:
        provider = PaymentProvider(provider_id=provider_id, provider_class="test", title=provider_id)
        db.add(provider)
    profile = PaymentProfile(
        provider_id=provider_id,
        title=f"{provider_id} profile",
        options={"token": "tok_test"} if options is None else options,
    )
    db.add(profile)
    db.flush()
    purchase = PurchaseRequest(
        request_key=request_key,
        payment_profile_id=profile.id,
        cost_amount=Decimal(amount),
        cost_currency=currency,
    )
    db.add(purchase)
    db.commit()
    return purchase
