from tripvoucher.main import create_app
from tripvoucher.core.config import Settings
from fastapi.testclient import TestClient
from jose import jwt
import tempfile
import time
import os
import json

SECRET = "smoke-secret"


def _token(user_id: str, email: str) -> str:
    claims = {"sub": user_id, "email": email, "aud": "authenticated", "exp": int(time.time()) + 600}
    return jwt.encode(claims, SECRET, algorithm="HS256")


def run():
    with tempfile.TemporaryDirectory() as d:
        settings = Settings(data_dir=d, db_path=os.path.join(d, "smoke.sqlite3"), jwt_secret=SECRET)
        client = TestClient(create_app(settings_override=settings))
        alice = {"Authorization": f"Bearer {_token('smoke-alice', 'alice@example.com')}"}
        bob = {"Authorization": f"Bearer {_token('smoke-bob', 'bob@example.com')}"}

        results = {}
        results["profile"] = client.get("/user/profile", headers=alice).json()
        voucher = client.post(
            "/vouchers",
            json={"name": "Smoke trip", "startDate": "2026-03-01", "endDate": "2026-03-03"},
            headers=alice,
        ).json()
        vid = voucher["id"]
        results["created"] = voucher
        results["cab"] = client.post(
            f"/vouchers/{vid}/expenses",
            json={"description": "Airport cab", "transportType": "cab", "amount": "250", "datetime": "2026-03-01T07:00:00Z"},
            headers=alice,
        ).json()["voucher"]["totalAmount"]
        results["fuel"] = client.post(
            f"/vouchers/{vid}/expenses",
            json={"description": "Site drive", "transportType": "fuel", "distance": 40, "datetime": "2026-03-02T09:00:00Z"},
            headers=alice,
        ).json()["expense"]["amount"]
        results["foreign_status"] = client.get(f"/vouchers/{vid}", headers=bob).status_code
        results["submitted"] = client.post(f"/vouchers/{vid}/submit", headers=alice).json()["status"]
        late = client.post(
            f"/vouchers/{vid}/expenses",
            json={"description": "Late cab", "transportType": "cab", "amount": "10", "datetime": "2026-03-03T20:00:00Z"},
            headers=alice,
        )
        results["late_status"] = late.status_code
        results["late_body"] = late.json()
        results["summary"] = client.get("/reports/summary", headers=alice).json()
        print(json.dumps(results, indent=2))


if __name__ == "__main__":
    run()
