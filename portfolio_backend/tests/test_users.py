import re
import time
import unittest
from datetime import datetime, timedelta, timezone

import jwt
from fastapi.testclient import TestClient

from portfolio_backend.auth import issue_token
from portfolio_backend.testing import REGISTRATION, image, in_memory_app
from portfolio_backend.users import hash_reset_token

API = "/api/v1"


class UserApiTests(unittest.TestCase):
    def setUp(self):
        self.env = in_memory_app()
        self.store = self.env.store
        self.storage = self.env.storage
        self.mailer = self.env.mailer
        self.client = TestClient(self.env.app)

    def register(self, **overrides):
        return self.client.post(
            f"{API}/user/register",
            data={**REGISTRATION, **overrides},
            files={"avatar": image("avatar.png"), "resume": image("resume.pdf")},
        )

    def login(self, email=REGISTRATION["email"], password=REGISTRATION["password"]):
        return self.client.post(
            f"{API}/user/login", json={"email": email, "password": password}
        )

    def test_register_sets_cookie_and_hides_credentials(self):
        response = self.register()
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["message"], "User Registered Successfully!")
        self.assertTrue(body["token"])
        self.assertIn("token", response.cookies)
        self.assertNotIn("password", body["user"])
        self.assertEqual(body["user"]["portfolioURL"], "https://ada.example.com")
        self.assertTrue(body["user"]["avatar"]["url"])
        self.assertTrue(body["user"]["resume"]["url"])

        stored = self.store.find_one("users", email=REGISTRATION["email"])
        self.assertNotEqual(stored["password"], REGISTRATION["password"])

    def test_register_requires_both_files(self):
        response = self.client.post(
            f"{API}/user/register",
            data=REGISTRATION,
            files={"avatar": image("avatar.png")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Resume Required!")
        self.assertEqual(self.store.find("users"), [])

    def test_register_upload_failure_is_fatal(self):
        self.storage.fail_uploads = True
        response = self.register()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.store.find("users"), [])

    def test_register_short_password(self):
        response = self.register(password="short")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.storage.uploads, [])

    def test_register_duplicate_email(self):
        self.register()
        response = self.register()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Duplicate email Entered")
        self.assertEqual(len(self.storage.uploads), 2)

    def test_login_and_me(self):
        self.register()
        self.client.cookies.clear()
        self.assertEqual(self.client.get(f"{API}/user/me").status_code, 401)

        response = self.login()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Logged In Successfully!")

        me = self.client.get(f"{API}/user/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["email"], REGISTRATION["email"])

    def test_login_failures(self):
        self.register()
        missing = self.client.post(f"{API}/user/login", json={"email": "ada@example.com"})
        self.assertEqual(missing.status_code, 400)

        wrong = self.login(password="not-the-password")
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(wrong.json()["message"], "Invalid Email Or Password!")

        unknown = self.login(email="nobody@example.com")
        self.assertEqual(unknown.status_code, 401)

    def test_logout_clears_session(self):
        self.register()
        response = self.client.get(f"{API}/user/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Logged Out Successfully!")
        self.assertEqual(self.client.get(f"{API}/user/me").status_code, 401)

    def test_bearer_token_is_accepted(self):
        token = self.register().json()["token"]
        self.client.cookies.clear()
        me = self.client.get(
            f"{API}/user/me", headers={"Authorization": f"Bearer {token}"}
        )
        self.assertEqual(me.status_code, 200)

    def test_invalid_and_expired_tokens(self):
        user_id = self.register().json()["user"]["_id"]
        self.client.cookies.clear()

        invalid = self.client.get(
            f"{API}/user/me", headers={"Authorization": "Bearer not.a.token"}
        )
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(
            invalid.json()["message"], "Json Web Token is invalid, Try again!"
        )

        expired_token = jwt.encode(
            {"id": user_id, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            self.env.settings.jwt_secret_key,
            algorithm="HS256",
        )
        expired = self.client.get(
            f"{API}/user/me", headers={"Authorization": f"Bearer {expired_token}"}
        )
        self.assertEqual(expired.status_code, 400)
        self.assertEqual(
            expired.json()["message"], "Json Web Token is expired, Try again!"
        )

    def test_token_for_deleted_user(self):
        user_id = self.register().json()["user"]["_id"]
        self.store.delete("users", user_id)
        response = self.client.get(f"{API}/user/me")
        self.assertEqual(response.status_code, 401)

    def test_portfolio_profile_is_public(self):
        self.register()
        anonymous = TestClient(self.env.app)
        response = anonymous.get(f"{API}/user/portfolio/me")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["fullName"], "Ada Lovelace")
        self.assertNotIn("password", response.json()["user"])

    def test_portfolio_profile_without_user(self):
        response = self.client.get(f"{API}/user/portfolio/me")
        self.assertEqual(response.status_code, 404)

    def test_update_profile_replaces_avatar(self):
        user = self.register().json()["user"]
        old_avatar = user["avatar"]["storageId"]

        response = self.client.put(
            f"{API}/user/me/profile/update",
            data={"aboutMe": "Poet of science"},
            files={"avatar": image("new-avatar.png", b"new")},
        )
        self.assertEqual(response.status_code, 200, response.text)
        updated = response.json()["user"]
        self.assertEqual(updated["aboutMe"], "Poet of science")
        self.assertNotEqual(updated["avatar"]["storageId"], old_avatar)
        self.assertEqual(updated["resume"], user["resume"])
        self.assertEqual(self.storage.deletes, [old_avatar])

    def test_update_password(self):
        self.register()
        mismatch = self.client.put(
            f"{API}/user/password/update",
            json={
                "currentPassword": REGISTRATION["password"],
                "newPassword": "difference-engine",
                "confirmNewPassword": "something-else",
            },
        )
        self.assertEqual(mismatch.status_code, 400)

        wrong = self.client.put(
            f"{API}/user/password/update",
            json={
                "currentPassword": "wrong-password",
                "newPassword": "difference-engine",
                "confirmNewPassword": "difference-engine",
            },
        )
        self.assertEqual(wrong.json()["message"], "Incorrect Current Password!")

        response = self.client.put(
            f"{API}/user/password/update",
            json={
                "currentPassword": REGISTRATION["password"],
                "newPassword": "difference-engine",
                "confirmNewPassword": "difference-engine",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.login().status_code, 401)
        self.assertEqual(self.login(password="difference-engine").status_code, 200)

    def test_forgot_and_reset_password(self):
        self.register()
        self.client.cookies.clear()

        response = self.client.post(
            f"{API}/user/password/forgot", json={"email": REGISTRATION["email"]}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(
            response.json()["message"], f"Email sent to {REGISTRATION['email']} successfully"
        )
        self.assertEqual(len(self.mailer.outbox), 1)
        mail = self.mailer.outbox[0]
        self.assertEqual(mail.to, REGISTRATION["email"])
        token = re.search(r"/password/reset/([0-9a-f]+)", mail.body).group(1)

        stored = self.store.find_one("users", email=REGISTRATION["email"])
        self.assertEqual(stored["resetPasswordToken"], hash_reset_token(token))
        self.assertGreater(stored["resetPasswordExpire"], time.time())

        mismatch = self.client.put(
            f"{API}/user/password/reset/{token}",
            json={"password": "new-password-1", "confirmPassword": "new-password-2"},
        )
        self.assertEqual(mismatch.status_code, 400)

        response = self.client.put(
            f"{API}/user/password/reset/{token}",
            json={"password": "new-password-1", "confirmPassword": "new-password-1"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["message"], "Reset Password Successfully!")
        self.assertEqual(self.client.get(f"{API}/user/me").status_code, 200)

        reused = self.client.put(
            f"{API}/user/password/reset/{token}",
            json={"password": "new-password-1", "confirmPassword": "new-password-1"},
        )
        self.assertEqual(reused.status_code, 400)

    def test_expired_reset_token(self):
        user_id = self.register().json()["user"]["_id"]
        self.store.update(
            "users",
            user_id,
            {
                "resetPasswordToken": hash_reset_token("abc123"),
                "resetPasswordExpire": time.time() - 1,
            },
        )
        response = self.client.put(
            f"{API}/user/password/reset/abc123",
            json={"password": "new-password-1", "confirmPassword": "new-password-1"},
        )
        self.assertEqual(response.status_code, 400)

    def test_forgot_password_mail_failure_clears_token(self):
        self.register()
        self.mailer.fail_sends = True
        response = self.client.post(
            f"{API}/user/password/forgot", json={"email": REGISTRATION["email"]}
        )
        self.assertEqual(response.status_code, 500)
        stored = self.store.find_one("users", email=REGISTRATION["email"])
        self.assertIsNone(stored["resetPasswordToken"])
        self.assertIsNone(stored["resetPasswordExpire"])

    def test_forgot_password_unknown_email(self):
        response = self.client.post(
            f"{API}/user/password/forgot", json={"email": "nobody@example.com"}
        )
        self.assertEqual(response.status_code, 404)

    def test_issued_token_carries_user_id(self):
        token = issue_token("a" * 32, self.env.settings)
        payload = jwt.decode(
            token, self.env.settings.jwt_secret_key, algorithms=["HS256"]
        )
        self.assertEqual(payload["id"], "a" * 32)
        self.assertIn("exp", payload)


if __name__ == "__main__":
    unittest.main()
