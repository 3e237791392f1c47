from brandcollab.api.rate_limit import limiter
from brandcollab.auth.tokens import token_service
from brandcollab.storage.models import UserType

API = "/api/v1"
ADMIN_PASSWORD = "Admin@12345"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_master_data(client, city, niches):
    countries = client.get(f"{API}/master-data/countries").json()["countries"]
    cities = client.get(f"{API}/master-data/cities/search", params={"q": "mum"}).json()["cities"]
    all_niches = client.get(f"{API}/master-data/niches").json()["niches"]

    assert countries[0]["code"] == "IN"
    assert [c["name"] for c in cities] == ["Mumbai"]
    assert len(all_niches) == 3


def test_city_search_needs_two_characters(client):
    assert client.get(f"{API}/master-data/cities/search", params={"q": "m"}).status_code == 422


def test_profile_requires_token(client):
    assert client.get(f"{API}/influencer/profile").status_code == 401


def test_profile_rejects_wrong_account_type(client, make_brand, auth_header):
    headers = auth_header(make_brand(), UserType.BRAND)

    assert client.get(f"{API}/influencer/profile", headers=headers).status_code == 403


def test_own_profile(client, make_influencer, auth_header):
    influencer_id = make_influencer(username="asha")

    response = client.get(f"{API}/influencer/profile", headers=auth_header(influencer_id, UserType.INFLUENCER))

    assert response.status_code == 200
    assert response.json()["username"] == "asha"


def test_service_errors_map_to_status_codes(client, make_influencer, auth_header):
    headers = auth_header(make_influencer(), UserType.INFLUENCER)

    response = client.get(f"{API}/influencer/campaigns/999", headers=headers)

    assert response.status_code == 404
    assert response.json() == {"detail": "Campaign not found"}


def test_apply_over_http(client, make_influencer, make_campaign, auth_header):
    headers = auth_header(make_influencer(), UserType.INFLUENCER)
    campaign_id = make_campaign(name="Street Style")

    listed = client.get(f"{API}/influencer/campaigns", headers=headers).json()
    applied = client.post(f"{API}/influencer/campaigns/{campaign_id}/apply", json={"cover_letter": "Hi"}, headers=headers)
    again = client.post(f"{API}/influencer/campaigns/{campaign_id}/apply", json={}, headers=headers)

    assert [c["name"] for c in listed["campaigns"]] == ["Street Style"]
    assert applied.status_code == 201
    assert again.status_code == 400


def test_experiences_crud(client, make_influencer, auth_header):
    headers = auth_header(make_influencer(), UserType.INFLUENCER)
    body = {
        "campaign_name": "Festive Edit",
        "brand_name": "Chai Point",
        "keyword_tags": ["festive"],
        "social_links": [{"platform": "instagram", "url": "https://instagram.com/p/1"}],
    }

    created = client.post(f"{API}/influencer/experiences", json=body, headers=headers).json()
    updated = client.put(
        f"{API}/influencer/experiences/{created['id']}", json={"brand_name": "Blue Tokai"}, headers=headers
    ).json()
    listing = client.get(f"{API}/influencer/experiences", headers=headers).json()

    assert created["socialLinks"][0]["platform"] == "instagram"
    assert updated["brandName"] == "Blue Tokai"
    assert updated["socialLinks"] == created["socialLinks"]
    assert listing["total"] == 1

    assert client.delete(f"{API}/influencer/experiences/{created['id']}", headers=headers).status_code == 200
    assert client.get(
        f"{API}/influencer/experiences", params={"experience_id": created["id"]}, headers=headers
    ).status_code == 404


def test_devices_endpoints(client, make_brand, auth_header):
    headers = auth_header(make_brand(), UserType.BRAND)

    created = client.post(f"{API}/devices", json={"fcm_token": "tok-1", "device_os": "ios"}, headers=headers)
    listing = client.get(f"{API}/devices", headers=headers).json()
    missing = client.post(f"{API}/devices/remove", json={"fcm_token": "tok-unknown"}, headers=headers)
    removed = client.post(f"{API}/devices/remove", json={"fcm_token": "tok-1"}, headers=headers)

    assert created.status_code == 201
    assert listing["count"] == 1
    assert listing["devices"][0]["deviceOs"] == "ios"
    assert missing.status_code == 404
    assert removed.status_code == 200


def test_brand_signup_validates_password(client):
    response = client.post(f"{API}/auth/brand/signup", json={"email": "shop@example.com", "password": "weakpassword"})

    assert response.status_code == 422


def test_influencer_request_otp(client, notifications):
    response = client.post(f"{API}/auth/influencer/request-otp", json={"phone": "9123456789"})

    assert response.status_code == 200
    assert notifications["whatsapp"].await_count == 1


def test_otp_limit_ignores_forwarded_for(client, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()

    codes = [
        client.post(
            f"{API}/auth/influencer/request-otp",
            json={"phone": f"91234567{n:02d}"},
            headers={"X-Forwarded-For": f"203.0.113.{n}"},
        ).status_code
        for n in range(6)
    ]
    limiter.reset()

    assert codes == [200] * 5 + [429]


def test_refresh_rotation_over_http(client, make_influencer):
    tokens = token_service.issue_tokens(make_influencer(), UserType.INFLUENCER, True)

    refreshed = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refreshToken"]})
    reused = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refreshToken"]})

    assert refreshed.status_code == 200
    assert reused.status_code == 403


def test_admin_login(client, make_admin):
    make_admin()

    ok = client.post(f"{API}/admin/login", json={"email": "admin@example.com", "password": ADMIN_PASSWORD})
    bad = client.post(f"{API}/admin/login", json={"email": "admin@example.com", "password": "Wrong@12345"})

    assert ok.status_code == 200
    assert ok.json()["admin"]["email"] == "admin@example.com"
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid credentials"

    profile = client.get(f"{API}/admin/profile", headers={"Authorization": f"Bearer {ok.json()['accessToken']}"})
    assert profile.status_code == 200


def test_admin_routes_reject_influencers(client, make_influencer, auth_header):
    headers = auth_header(make_influencer(), UserType.INFLUENCER)

    assert client.get(f"{API}/admin/dashboard", headers=headers).status_code == 403


def test_stripe_webhook_unconfigured(client):
    response = client.post(f"{API}/webhooks/stripe", content=b"{}")

    assert response.status_code == 503
