import unittest
from decimal import Decimal

from structlog.testing import capture_logs

from wata_callback.exceptions import ValidationError
from wata_callback.services.callback_parser import parse_callback
from wata_callback.services.callback_state import CallbackOutcome, PaymentDecision
from wata_callback.services.callback_validator import CallbackValidator, round_amount

from support import (
    GATEWAY_IP, OTHER_PRIVATE_KEY, FakeKeyProvider, FakeStore,
    callback_body, make_profile, make_request, sign,
)

ALLOWED_IPS = {"62.84.126.140", "51.250.106.150"}


class TestCallbackValidator(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.key_provider = FakeKeyProvider()
        self.store = FakeStore(requests=[make_request()], profiles=[make_profile()])
        self.hook_calls = []

    def make_validator(self, hooks=None):
        return CallbackValidator(
            allowed_ips=ALLOWED_IPS,
            key_provider=self.key_provider,
            store=self.store,
            platform_hooks=hooks if hooks is not None else [self.hook_calls.append],
        )

    async def run_validation(self, body=None, ip=GATEWAY_IP, signature=None, provider_id="Wata", hooks=None):
        body = callback_body() if body is None else body
        state = parse_callback(provider_id, ip, body)
        if signature is None:
            signature = sign(body)
        ok = await self.make_validator(hooks).validate(state, signature)
        return ok, state

    def assertRejected(self, state, reason):
        self.assertEqual(state.outcome, CallbackOutcome.REJECTED)
        self.assertEqual(state.rejection_reason, reason)
        self.assertEqual(state.decision, PaymentDecision.NONE)
        self.assertEqual(state.log_type, "error")

    async def test_accepts_valid_callback(self):
        ok, state = await self.run_validation()
        self.assertTrue(ok)
        self.assertEqual(state.outcome, CallbackOutcome.ACCEPTED)
        self.assertIsNone(state.rejection_reason)
        self.assertEqual(state.matched_request.request_key, "ORD-2550")
        self.assertEqual(self.hook_calls, [state])

    async def test_rejects_unknown_ip_even_with_valid_signature(self):
        for ip in ("10.0.0.1", "62.84.126.141", "", "testclient"):
            ok, state = await self.run_validation(ip=ip)
            self.assertFalse(ok)
            self.assertRejected(state, "invalid IP address")
        self.assertEqual(self.key_provider.calls, 0)

    async def test_second_gateway_ip_allowed(self):
        ok, _ = await self.run_validation(ip="51.250.106.150")
        self.assertTrue(ok)

    async def test_empty_signature(self):
        ok, state = await self.run_validation(signature="")
        self.assertFalse(ok)
        self.assertRejected(state, "empty signature")
        self.assertEqual(self.key_provider.calls, 0)

    async def test_key_unavailable_rejects(self):
        self.key_provider.key = None
        ok, state = await self.run_validation()
        self.assertFalse(ok)
        self.assertRejected(state, "invalid signature")

    async def test_tampered_payload(self):
        body = callback_body()
        signature = sign(body)
        tampered = body.replace(b"25.50", b"25.51")
        ok, state = await self.run_validation(body=tampered, signature=signature)
        self.assertFalse(ok)
        self.assertRejected(state, "invalid signature")

    async def test_foreign_key_signature(self):
        body = callback_body()
        ok, state = await self.run_validation(body=body, signature=sign(body, OTHER_PRIVATE_KEY))
        self.assertRejected(state, "invalid signature")

    async def test_provider_mismatch(self):
        self.store.profiles[1] = make_profile(provider_id="PayPal")
        ok, state = await self.run_validation()
        self.assertFalse(ok)
        self.assertRejected(state, "invalid provider")

    async def test_provider_check_skipped_without_profile(self):
        self.store.profiles.clear()
        ok, _ = await self.run_validation()
        self.assertTrue(ok)

    async def test_missing_transaction_id(self):
        ok, state = await self.run_validation(body=callback_body(drop=("transactionId",)))
        self.assertRejected(state, "missing transaction data")

    async def test_missing_order_id(self):
        ok, state = await self.run_validation(body=callback_body(orderId=""))
        self.assertRejected(state, "missing transaction data")

    async def test_unknown_purchase_request(self):
        ok, state = await self.run_validation(body=callback_body(orderId="ORD-404"))
        self.assertFalse(ok)
        self.assertRejected(state, "invalid purchase request")

    async def test_amount_matches_after_rounding(self):
        self.store.requests["ORD-2550"] = make_request(amount="10.00", currency="USD")
        ok, _ = await self.run_validation(body=callback_body(amount=Decimal("10.00"), currency="USD"))
        self.assertTrue(ok)
        ok, _ = await self.run_validation(body=callback_body(amount=10, currency="USD"))
        self.assertTrue(ok)

    async def test_amount_rounding_up_mismatch(self):
        self.store.requests["ORD-2550"] = make_request(amount="10.00", currency="USD")
        ok, state = await self.run_validation(body=callback_body(amount=Decimal("10.005"), currency="USD"))
        self.assertFalse(ok)
        self.assertRejected(state, "invalid payment amount")

    async def test_missing_amount(self):
        ok, state = await self.run_validation(body=callback_body(drop=("amount",)))
        self.assertRejected(state, "invalid payment amount")

    async def test_currency_is_case_sensitive(self):
        ok, state = await self.run_validation(body=callback_body(currency="eur"))
        self.assertFalse(ok)
        self.assertRejected(state, "invalid payment currency")

    async def test_platform_hook_rejection_propagates(self):
        def duplicate(state):
            raise ValidationError("transaction already processed")

        ok, state = await self.run_validation(hooks=[duplicate])
        self.assertFalse(ok)
        self.assertRejected(state, "transaction already processed")

    async def test_async_platform_hook(self):
        seen = []

        async def hook(state):
            seen.append(state.transaction_id)

        ok, _ = await self.run_validation(hooks=[hook])
        self.assertTrue(ok)
        self.assertEqual(seen, ["3a16a4f0-27b0-09d1-16da-ba8d5c63eae3"])

    async def test_platform_hooks_skipped_after_core_failure(self):
        ok, _ = await self.run_validation(body=callback_body(currency="USD"))
        self.assertFalse(ok)
        self.assertEqual(self.hook_calls, [])

    async def test_rejected_state_is_final(self):
        ok, state = await self.run_validation(ip="10.0.0.1")
        self.assertFalse(ok)

        again = await self.make_validator().validate(state, sign(state.raw_payload))
        self.assertFalse(again)
        self.assertEqual(state.outcome, CallbackOutcome.REJECTED)
        with self.assertRaises(RuntimeError):
            state.accept()


class TestValidationLogging(unittest.IsolatedAsyncioTestCase):
    async def validate(self, body, ip=GATEWAY_IP, signature=None):
        validator = CallbackValidator(
            allowed_ips=ALLOWED_IPS,
            key_provider=FakeKeyProvider(),
            store=FakeStore(requests=[make_request()], profiles=[make_profile()]),
        )
        state = parse_callback("Wata", ip, body)
        with capture_logs() as logs:
            await validator.validate(state, sign(body) if signature is None else signature)
        return logs

    def only_event(self, logs, name):
        matching = [e for e in logs if e["event"] == name]
        self.assertEqual(len(matching), 1, logs)
        return matching[0]

    async def test_rejection_logged_with_redacted_payload(self):
        logs = await self.validate(callback_body(), ip="10.0.0.1")

        event = self.only_event(logs, "callback_rejected")
        self.assertEqual(event["log_level"], "error")
        self.assertEqual(event["ip"], "10.0.0.1")
        self.assertEqual(event["reason"], "invalid IP address")
        self.assertIn('"orderId": "ORD-2550"', event["payload"])
        self.assertNotIn("payer@example.com", event["payload"])
        self.assertFalse([e for e in logs if e["event"] == "callback_signature_mismatch"])

    async def test_signature_failure_is_security_event(self):
        body = callback_body()
        logs = await self.validate(body, signature=sign(body, OTHER_PRIVATE_KEY))

        event = self.only_event(logs, "callback_signature_mismatch")
        self.assertEqual(event["log_level"], "error")
        self.assertIs(event["security_event"], True)
        self.assertEqual(event["ip"], GATEWAY_IP)
        self.assertEqual(event["reason"], "invalid signature")
        self.assertNotIn("payer@example.com", event["payload"])
        self.assertFalse([e for e in logs if e["event"] == "callback_rejected"])

    async def test_acceptance_logs_no_error(self):
        logs = await self.validate(callback_body())
        self.only_event(logs, "callback_accepted")
        self.assertFalse([e for e in logs if e["log_level"] == "error"])


class TestRoundAmount(unittest.TestCase):
    def test_half_up(self):
        self.assertEqual(round_amount(Decimal("10.005")), Decimal("10.01"))
        self.assertEqual(round_amount(Decimal("10.004")), Decimal("10.00"))
        self.assertEqual(round_amount(25.5), Decimal("25.50"))
        self.assertIsNone(round_amount(None))
        self.assertIsNone(round_amount("abc"))


if __name__ == "__main__":
    unittest.main()
