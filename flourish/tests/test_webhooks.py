import hashlib
import hmac
import json
import unittest
from unittest import mock

from flourish.tests.support import ApiTestCase

WEBHOOK_PATH = "/api/webhooks/revenuecat"


def event_body(event_type, app_user_id="alice", product_id="flourish_premium_annual"):
    return {
        "event": {
            "type": event_type,
            "app_user_id": app_user_id,
            "product_id": product_id,
        }
    }


class RevenueCatWebhookTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.init_user("alice")

    def post_event(self, body, headers=None):
        return self.client.post(WEBHOOK_PATH, json=body, headers=headers or {})

    def test_purchase_grants_premium(self):
        response = self.post_event(event_body("INITIAL_PURCHASE"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"ok": True, "received": True, "action": "grant"}
        )

        user = self.db.get_user("alice")
        self.assertTrue(user.has_premium)
        self.assertEqual(user.premium_plan, "annual")
        self.assertEqual(user.revenuecat_id, "alice")

        activity = self.db.list_activity("alice")[0]
        self.assertEqual(activity.action, "app_open")
        self.assertEqual(activity.metadata["event"], "subscription_granted")
        self.assertEqual(activity.metadata["type"], "INITIAL_PURCHASE")

    def test_unknown_product_defaults_to_monthly(self):
        self.post_event(event_body("RENEWAL", product_id="some_promo"))
        self.assertEqual(self.db.get_user("alice").premium_plan, "monthly")

    def test_expiration_revokes_premium(self):
        self.post_event(event_body("INITIAL_PURCHASE"))
        response = self.post_event(event_body("EXPIRATION"))
        self.assertEqual(response.json()["action"], "revoke")

        user = self.db.get_user("alice")
        self.assertFalse(user.has_premium)
        self.assertEqual(user.premium_plan, "free")
        self.assertEqual(
            self.db.list_activity("alice")[0].metadata["event"], "subscription_revoked"
        )

    def test_other_events_are_ignored(self):
        before = self.db.get_user("alice")
        response = self.post_event(event_body("TRANSFER"))
        self.assertEqual(
            response.json(), {"ok": True, "received": True, "action": "ignored"}
        )
        self.assertEqual(self.db.get_user("alice"), before)

    def test_unknown_user_is_acknowledged(self):
        response = self.post_event(event_body("INITIAL_PURCHASE", app_user_id="ghost"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["action"], "user_not_found")
        self.assertIsNone(self.db.get_user("ghost"))

    def test_user_found_by_revenuecat_id(self):
        self.db.update_user("alice", {"revenuecat_id": "$RCAnonymousID:abc"})
        response = self.post_event(
            event_body("INITIAL_PURCHASE", app_user_id="$RCAnonymousID:abc")
        )
        self.assertEqual(response.json()["action"], "grant")
        self.assertTrue(self.db.get_user("alice").has_premium)

    def test_invalid_json(self):
        response = self.client.post(
            WEBHOOK_PATH,
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"ok": False, "error": "Invalid JSON body"})

    def test_missing_event_fields(self):
        for body in ({}, {"event": {"type": "RENEWAL"}}, {"event": "RENEWAL"}, []):
            response = self.post_event(body)
            self.assertEqual(response.status_code, 400, body)
            self.assertEqual(response.json()["error"], "Invalid webhook payload")

    def test_processing_errors_still_return_200(self):
        with mock.patch.object(self.db, "update_user", side_effect=RuntimeError("down")):
            response = self.post_event(event_body("INITIAL_PURCHASE"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"ok": True, "received": True, "error": "internal"}
        )


class SignedWebhookTests(ApiTestCase):
    secret = "whsec_test"

    def setUp(self):
        super().setUp()
        self.settings.revenuecat_webhook_secret = self.secret
        self.init_user("alice")
        self.raw = json.dumps(event_body("INITIAL_PURCHASE")).encode("utf-8")

    def post_raw(self, signature=None):
        headers = {"Content-Type": "application/json"}
        if signature is not None:
            headers["X-RevenueCat-Signature"] = signature
        return self.client.post(WEBHOOK_PATH, content=self.raw, headers=headers)

    def test_valid_signature(self):
        signature = hmac.new(self.secret.encode(), self.raw, hashlib.sha256).hexdigest()
        response = self.post_raw(signature)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.db.get_user("alice").has_premium)

    def test_bad_signature_is_rejected(self):
        response = self.post_raw("deadbeef")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()["ok"])
        self.assertFalse(self.db.get_user("alice").has_premium)

    def test_missing_signature_is_rejected(self):
        self.assertEqual(self.post_raw().status_code, 401)


if __name__ == "__main__":
    unittest.main()
