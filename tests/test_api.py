"""
API tests for the media map service.

Uses FastAPI's TestClient against a temporary SQLite database and a stub
geocoder (see conftest.py).
"""

import pytest

pytestmark = pytest.mark.integration

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom"


def upload(client, headers, content, category="solar", filename="photo.jpg", content_type="image/jpeg", **fields):
    data = {"category": category}
    data.update({k: str(v) for k, v in fields.items()})
    return client.post(
        "/api/media/upload",
        headers=headers,
        files={"media": (filename, content, content_type)},
        data=data,
    )


def second_user(client):
    response = client.post("/api/auth/register", json={"email": "other@example.com", "password": "secret456"})
    return {"Authorization": f"Bearer {response.json()['token']}"}


# =============================================================================
# HEALTH AND ERRORS
# =============================================================================

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_readiness(client):
    assert client.get("/health/ready").json()["status"] == "ready"


def test_error_shape(client):
    response = client.get("/api/media/999")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Media not found"
    assert body["request_id"] == response.headers["X-Request-ID"]


# =============================================================================
# AUTH
# =============================================================================

def test_register_login_verify_logout(client):
    response = client.post("/api/auth/register", json={"email": "Jo@Example.com", "password": "secret123"})
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "jo@example.com"

    response = client.post("/api/auth/login", json={"email": "jo@example.com", "password": "secret123"})
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['token']}"}

    assert client.get("/api/auth/verify", headers=headers).json()["email"] == "jo@example.com"
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/verify", headers=headers).status_code == 401


def test_duplicate_registration(client, auth_headers):
    response = client.post("/api/auth/register", json={"email": "uploader@example.com", "password": "secret123"})
    assert response.status_code == 409


def test_short_password(client):
    response = client.post("/api/auth/register", json={"email": "a@example.com", "password": "123"})
    assert response.status_code == 422


def test_wrong_password(client, auth_headers):
    response = client.post("/api/auth/login", json={"email": "uploader@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_token_query_parameter(client, auth_headers):
    token = auth_headers["Authorization"].split()[1]
    assert client.get(f"/api/auth/verify?token={token}").status_code == 200


# =============================================================================
# UPLOAD
# =============================================================================

def test_upload_requires_session(client, geotagged_jpeg):
    response = upload(client, {}, geotagged_jpeg)
    assert response.status_code == 401


def test_upload_uses_exif(client, auth_headers, geotagged_jpeg):
    response = upload(client, auth_headers, geotagged_jpeg, description="Rooftop panels")

    assert response.status_code == 201
    media = response.json()["media"]
    assert media["coordinate_source"] == "exif"
    assert media["latitude"] == pytest.approx(-26.106358, abs=1e-6)
    assert media["longitude"] == pytest.approx(28.172825, abs=1e-6)
    assert media["kind"] == "image"
    assert media["description"] == "Rooftop panels"


def test_upload_without_gps_or_coordinates(client, auth_headers, plain_jpeg):
    response = upload(client, auth_headers, plain_jpeg)

    assert response.status_code == 400
    assert response.json()["error"] == "No GPS data in image EXIF. Please provide latitude and longitude."
    assert client.get("/api/media").json()["media"] == []


def test_upload_with_manual_coordinates(client, auth_headers, plain_jpeg):
    response = upload(client, auth_headers, plain_jpeg, latitude=-33.9249, longitude=18.4241)

    assert response.status_code == 201
    assert response.json()["media"]["coordinate_source"] == "manual"


def test_upload_with_coordinate_text(client, auth_headers, plain_jpeg):
    response = upload(client, auth_headers, plain_jpeg, coordinates_text="lat 13.323528 lon 75.771964")

    assert response.status_code == 201
    assert response.json()["media"]["latitude"] == pytest.approx(13.323528)


def test_upload_out_of_range_coordinates(client, auth_headers, plain_jpeg):
    response = upload(client, auth_headers, plain_jpeg, latitude=91, longitude=10)
    assert response.status_code == 400


def test_video_requires_coordinates(client, auth_headers):
    response = upload(client, auth_headers, VIDEO_BYTES, filename="clip.mp4", content_type="video/mp4")
    assert response.status_code == 400
    assert response.json()["error"] == "Videos do not contain GPS data. Please provide latitude and longitude."

    response = upload(
        client, auth_headers, VIDEO_BYTES, filename="clip.mp4", content_type="video/mp4",
        latitude=-26.2041, longitude=28.0473,
    )
    assert response.status_code == 201
    assert response.json()["media"]["kind"] == "video"


def test_unsupported_type(client, auth_headers):
    response = upload(client, auth_headers, b"hello", filename="notes.txt", content_type="text/plain")
    assert response.status_code == 400
    assert response.json()["error"] == "Unsupported file type. Only images and videos are allowed."


def test_unknown_category(client, auth_headers, geotagged_jpeg):
    assert upload(client, auth_headers, geotagged_jpeg, category="castle").status_code == 400


def test_extract_only(client, plain_jpeg, geotagged_jpeg):
    response = client.post("/api/media/extract", files={"media": ("p.jpg", geotagged_jpeg, "image/jpeg")})
    body = response.json()
    assert body["needs_manual_entry"] is False
    assert body["source"] == "exif"

    response = client.post("/api/media/extract", files={"media": ("p.jpg", plain_jpeg, "image/jpeg")})
    body = response.json()
    assert body["needs_manual_entry"] is True
    assert body["latitude"] is None
    assert [a["source"] for a in body["attempts"]] == ["exif", "text_overlay", "manual"]


# =============================================================================
# READS
# =============================================================================

@pytest.fixture
def seeded(client, auth_headers, geotagged_jpeg, plain_jpeg):
    ids = [
        upload(client, auth_headers, geotagged_jpeg, category="solar").json()["media"]["id"],
        upload(client, auth_headers, plain_jpeg, category="solar", latitude=-26.10649, longitude=28.17299).json()["media"]["id"],
        upload(client, auth_headers, plain_jpeg, category="building", latitude=-26.10631, longitude=28.17281).json()["media"]["id"],
        upload(client, auth_headers, plain_jpeg, category="equipment", latitude=-33.9249, longitude=18.4241).json()["media"]["id"],
    ]
    return ids


def test_list_and_filter(client, seeded):
    assert len(client.get("/api/media").json()["media"]) == 4
    assert len(client.get("/api/media?category=all").json()["media"]) == 4
    solar = client.get("/api/media?category=solar").json()["media"]
    assert {m["category"] for m in solar} == {"solar"}
    assert len(solar) == 2


def test_locations_are_aggregated(client, seeded):
    locations = client.get("/api/locations").json()["locations"]

    assert len(locations) == 3
    top = locations[0]
    assert (top["latitude"], top["longitude"], top["category"], top["count"]) == (-26.106, 28.173, "solar", 2)
    assert all(loc["address"] is None for loc in locations)


def test_locations_with_address_use_cache(client, seeded, counting_geocoder):
    first = client.get("/api/locations?with_address=true").json()["locations"]
    calls = len(counting_geocoder.calls)
    client.get("/api/locations?with_address=true")

    assert all(loc["address"] == counting_geocoder.address for loc in first)
    assert len(counting_geocoder.calls) == calls


def test_media_near_location(client, seeded):
    media = client.get("/api/media/location?lat=-26.1064&lng=28.1729").json()["media"]
    assert len(media) == 3

    solar = client.get("/api/media/location?lat=-26.106&lng=28.173&category=solar").json()["media"]
    assert [m["category"] for m in solar] == ["solar", "solar"]
    assert len(client.get("/api/media/location?lat=-26.106&lng=28.173&category=all").json()["media"]) == 3
    assert client.get("/api/media/location?lat=-26.106&lng=28.173&category=castle").status_code == 400

    assert client.get("/api/media/location").status_code == 400


def test_bbox(client, seeded):
    media = client.get("/api/media/bbox?south=-35&west=17&north=-33&east=20").json()["media"]
    assert [m["category"] for m in media] == ["equipment"]


def test_get_and_download(client, seeded, geotagged_jpeg):
    media_id = seeded[0]
    assert client.get(f"/api/media/{media_id}").json()["id"] == media_id

    response = client.get(f"/api/media/{media_id}/file")
    assert response.status_code == 200
    assert response.content == geotagged_jpeg


def test_delete_is_owner_only(client, seeded, auth_headers):
    media_id = seeded[3]

    assert client.delete(f"/api/media/{media_id}", headers=second_user(client)).status_code == 404
    assert client.delete(f"/api/media/{media_id}").status_code == 401

    assert client.delete(f"/api/media/{media_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/media/{media_id}").status_code == 404
    assert len(client.get("/api/locations").json()["locations"]) == 2


def test_export_only_own_media(client, seeded, auth_headers):
    other = second_user(client)
    body = client.get("/api/export", headers=other).json()
    assert body["count"] == 0

    body = client.get("/api/export", headers=auth_headers).json()
    assert body["count"] == 4
    assert {m["id"] for m in body["data"]} == set(seeded)


# =============================================================================
# COORDINATES AND GEOCODING
# =============================================================================

def test_parse_endpoint(client):
    body = client.post("/api/coordinates/parse", json={"text": "lat 22.889299 lon 22.169399"}).json()
    assert body == {"found": True, "latitude": 22.889299, "longitude": 22.169399, "template": "labeled_decimal"}

    body = client.post("/api/coordinates/parse", json={"text": "not a coordinate at all"}).json()
    assert body["found"] is False


def test_reverse_geocode(client, counting_geocoder):
    body = client.get("/api/geocode/reverse?lat=-26.106358&lng=28.172825").json()
    assert body["address"] == counting_geocoder.address

    client.get("/api/geocode/reverse?lat=-26.10636&lng=28.17283")
    assert len(counting_geocoder.calls) == 1

    assert client.get("/api/geocode/reverse?lat=100&lng=0").status_code == 422
