import base64

import httpx
import pytest

from roomrelay.core.errors import ProviderError
from roomrelay.vision.client import CaptionClient
from roomrelay.vision.service import VisionAnalyzer

from conftest import FakeAnalyzer, FakeGateway


IMAGE = "data:image/png;base64,AAA"


# ============================================================
# start-redesign
# ============================================================

@pytest.mark.parametrize(
    "body",
    [
        {},
        {"image": ""},
        {"image": "   "},
        {"image": None, "style": "kitchen"},
        {"userPrompt": "make it cozy"},
    ],
)
def test_missing_image_is_rejected_without_provider_calls(client, analyzer, gateway, body):
    response = client.post("/api/start-redesign", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Image is required"}
    assert analyzer.calls == []
    assert gateway.generate_calls == []


def test_non_string_image_is_rejected(client, gateway):
    response = client.post("/api/start-redesign", json={"image": 123})

    assert response.status_code == 400
    assert gateway.generate_calls == []


def test_invalid_json_is_rejected(client, gateway):
    response = client.post(
        "/api/start-redesign",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert gateway.generate_calls == []


def test_wait_mode_returns_image_url(client, gateway):
    response = client.post("/api/start-redesign", json={"image": IMAGE})

    assert response.status_code == 201
    assert response.json() == {
        "success": True,
        "output": "https://cdn.example/out.png",
        "imageUrl": "https://cdn.example/out.png",
    }
    assert gateway.generate_calls[0][0] == IMAGE


def test_poll_mode_returns_provider_job(make_client):
    job = {"id": "p42", "status": "starting", "urls": {"get": "https://api/p42"}}
    gateway = FakeGateway(mode="poll", job=job)
    client = make_client(gateway=gateway)

    response = client.post("/api/start-redesign", json={"image": IMAGE})

    assert response.status_code == 201
    assert response.json() == job


def test_composed_prompt_includes_labels_and_description(make_client):
    analyzer = FakeAnalyzer("a wooden table and two chairs")
    gateway = FakeGateway()
    client = make_client(analyzer=analyzer, gateway=gateway)

    response = client.post(
        "/api/start-redesign",
        json={"image": IMAGE, "style": "scandinavian_minimalist", "roomType": "kitchen"},
    )

    assert response.status_code == 201
    assert analyzer.calls == [IMAGE]
    prompt = gateway.generate_calls[0][1]
    assert "Scandinavian Minimalist" in prompt
    assert "Kitchen" in prompt
    assert "wooden table and two chairs" in prompt


def test_vision_network_failure_still_reaches_generation(make_client):
    def handler(request):
        raise httpx.ConnectError("network down", request=request)

    analyzer = VisionAnalyzer(CaptionClient("https://vision.example", transport=httpx.MockTransport(handler)))
    gateway = FakeGateway()
    client = make_client(analyzer=analyzer, gateway=gateway)

    response = client.post(
        "/api/start-redesign",
        json={"image": IMAGE, "style": "scandinavian_minimalist", "roomType": "kitchen"},
    )

    assert response.status_code == 201
    prompt = gateway.generate_calls[0][1]
    assert "currently contains" not in prompt
    assert "Scandinavian Minimalist" in prompt
    assert "Kitchen" in prompt


@pytest.mark.parametrize("status", [401, 403])
def test_vision_auth_failure_still_reaches_generation(make_client, status):
    analyzer = VisionAnalyzer(
        CaptionClient(
            "https://vision.example",
            token="bad",
            transport=httpx.MockTransport(lambda request: httpx.Response(status, text="denied")),
        )
    )
    gateway = FakeGateway()
    client = make_client(analyzer=analyzer, gateway=gateway)

    assert client.post("/api/start-redesign", json={"image": IMAGE}).status_code == 201
    assert len(gateway.generate_calls) == 1


def test_unknown_tags_are_corrected_not_rejected(make_client):
    gateway = FakeGateway()
    client = make_client(gateway=gateway)

    response = client.post(
        "/api/start-redesign",
        json={"image": IMAGE, "style": "space_age", "roomType": ["garage"]},
    )

    assert response.status_code == 201
    assert gateway.generate_calls[0][1].startswith("A Modern Luxury Living Room")


def test_prompt_alias_is_accepted(make_client):
    gateway = FakeGateway()
    client = make_client(gateway=gateway)

    client.post("/api/start-redesign", json={"image": IMAGE, "prompt": "paint the walls sage green"})

    assert "paint the walls sage green" in gateway.generate_calls[0][1]


@pytest.mark.parametrize(
    "status, expected",
    [(429, 429), (404, 404), (422, 422), (400, 400), (401, 500), (500, 500), (None, 500)],
)
def test_generation_errors_are_mapped(make_client, status, expected):
    gateway = FakeGateway(error=ProviderError("upstream detail", status_code=status))
    client = make_client(gateway=gateway)

    response = client.post("/api/start-redesign", json={"image": IMAGE})

    assert response.status_code == expected
    body = response.json()
    assert set(body) == {"error", "details"}
    assert body["details"] == "upstream detail"


def test_unexpected_exception_maps_to_500(make_client):
    client = make_client(gateway=FakeGateway(error=RuntimeError("socket closed")))

    response = client.post("/api/start-redesign", json={"image": IMAGE})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to start redesign", "details": "socket closed"}


# ============================================================
# multipart uploads and size limit
# ============================================================

def test_multipart_upload_is_converted_to_data_uri(client, gateway, png_bytes):
    response = client.post(
        "/api/start-redesign",
        files={"image": ("room.png", png_bytes, "image/png")},
        data={"style": "japanese_zen", "roomType": "bedroom"},
    )

    assert response.status_code == 201
    image, prompt = gateway.generate_calls[0]
    assert image == "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
    assert "Japanese Zen Bedroom" in prompt


def test_multipart_non_image_is_rejected(client, gateway):
    response = client.post(
        "/api/start-redesign",
        files={"image": ("notes.txt", b"just some text", "text/plain")},
    )

    assert response.status_code == 400
    assert gateway.generate_calls == []


def test_multipart_without_image_is_rejected(client, gateway):
    response = client.post("/api/start-redesign", data={"style": "japanese_zen"}, files={"other": ("x", b"x")})

    assert response.status_code == 400
    assert response.json()["error"] == "Image is required"
    assert gateway.generate_calls == []


def test_malformed_multipart_returns_structured_error(client, analyzer, gateway):
    response = client.post(
        "/api/start-redesign",
        content=b"--nothing\r\nnot a real part",
        headers={"content-type": "multipart/form-data"},
    )

    assert response.status_code == 400
    assert "error" in response.json()
    assert "detail" not in response.json()
    assert analyzer.calls == []
    assert gateway.generate_calls == []


def test_oversized_body_is_rejected(make_client):
    gateway = FakeGateway()
    client = make_client(gateway=gateway, max_body_mb=1)

    response = client.post("/api/start-redesign", json={"image": "data:image/png;base64," + "A" * (2 * 1024 * 1024)})

    assert response.status_code == 413
    assert response.json()["error"] == "Request body too large"
    assert gateway.generate_calls == []


# ============================================================
# get-redesign
# ============================================================

def test_get_redesign_requires_id(client, gateway):
    response = client.get("/api/get-redesign")

    assert response.status_code == 400
    assert response.json() == {"error": "Prediction ID is required"}
    assert gateway.status_calls == []


@pytest.mark.parametrize("job_id", ["", "../secrets", "abc def", "a/b", "abc\n"])
def test_get_redesign_rejects_invalid_ids(client, gateway, job_id):
    response = client.get("/api/get-redesign", params={"id": job_id})

    assert response.status_code == 400
    assert gateway.status_calls == []


def test_get_redesign_relays_job_verbatim(make_client):
    job = {"id": "p42", "status": "succeeded", "output": "https://cdn/out.png", "metrics": {"predict_time": 4.2}}
    gateway = FakeGateway(job=job)
    client = make_client(gateway=gateway)

    response = client.get("/api/get-redesign", params={"id": "p42"})

    assert response.status_code == 200
    assert response.json() == job
    assert gateway.status_calls == ["p42"]


@pytest.mark.parametrize("error", [ProviderError("not found", status_code=404), RuntimeError("timeout")])
def test_get_redesign_failures_map_to_500(make_client, error):
    client = make_client(gateway=FakeGateway(error=error))

    response = client.get("/api/get-redesign", params={"id": "p42"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to get redesign status"


# ============================================================
# misc
# ============================================================

def test_health_reports_mode(make_client):
    client = make_client(gateway=FakeGateway(mode="poll"))
    assert client.get("/health").json() == {"status": "healthy", "mode": "poll"}


def test_cors_allows_configured_origin(make_client):
    client = make_client(frontend_url="https://app.example")

    response = client.options(
        "/api/start-redesign",
        headers={"Origin": "https://app.example", "Access-Control-Request-Method": "POST"},
    )

    assert response.headers["access-control-allow-origin"] == "https://app.example"
