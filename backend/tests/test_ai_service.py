"""
External AI collaborator tests.

The Gemini REST API is replaced by an httpx.MockTransport installed via
AI_HTTP_TRANSPORT, so no network is touched.
"""

import json

import httpx
import pytest

from visionx.models import EyeTest
from visionx.services import ai_service
from visionx.services.ai_service import AIServiceError


DIAGNOSIS = {
    "left_eye": {"spherical": "-1.25", "cylindrical": "-0.50", "axis": 180, "redness": "None", "dryness": "Absent", "clarity": "Clear"},
    "right_eye": {"spherical": "-1.00", "cylindrical": "0.00", "axis": 0, "redness": "Mild", "dryness": "Absent", "clarity": "Clear"},
    "pd": "62mm",
    "abnormalities": ["Healthy"],
    "confidence_level": 87,
    "summary": "Mild myopia in both eyes.",
}


def _gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def ai_transport(app):
    """Install a scripted transport; returns the list of captured requests."""
    state = {"responses": [], "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        response = state["responses"].pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    app.config["AI_HTTP_TRANSPORT"] = httpx.MockTransport(handler)
    yield state
    app.config.pop("AI_HTTP_TRANSPORT", None)


class TestGeminiClient:

    def test_diagnosis_parses_json(self, app, ai_transport):
        ai_transport["responses"].append(httpx.Response(200, json=_gemini_reply(json.dumps(DIAGNOSIS))))

        with app.app_context():
            result = ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")

        assert result == DIAGNOSIS
        request = ai_transport["requests"][0]
        assert request.headers["x-goog-api-key"] == app.config["GEMINI_API_KEY"]
        assert request.url.path.endswith(f"{app.config['GEMINI_DIAGNOSIS_MODEL']}:generateContent")
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][1]["inline_data"] == {"mime_type": "image/jpeg", "data": "aGVsbG8="}

    def test_code_fenced_json_is_accepted(self, app, ai_transport):
        fenced = "```json\n" + json.dumps(DIAGNOSIS) + "\n```"
        ai_transport["responses"].append(httpx.Response(200, json=_gemini_reply(fenced)))

        with app.app_context():
            assert ai_service.diagnose_eye("aGVsbG8=", "image/png")["pd"] == "62mm"

    def test_retries_transient_failure_once(self, app, ai_transport):
        ai_transport["responses"].extend([
            httpx.Response(503, json={"error": "overloaded"}),
            httpx.Response(200, json=_gemini_reply(json.dumps(DIAGNOSIS))),
        ])

        with app.app_context():
            assert ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")["summary"] == DIAGNOSIS["summary"]
        assert len(ai_transport["requests"]) == 2

    def test_gives_up_after_retries(self, app, ai_transport):
        ai_transport["responses"].extend([
            httpx.ConnectError("down"),
            httpx.ConnectError("still down"),
        ])

        with app.app_context(), pytest.raises(AIServiceError):
            ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")
        assert len(ai_transport["requests"]) == 2

    def test_client_errors_are_not_retried(self, app, ai_transport):
        ai_transport["responses"].append(httpx.Response(400, json={"error": "bad"}))

        with app.app_context(), pytest.raises(AIServiceError):
            ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")
        assert len(ai_transport["requests"]) == 1

    @pytest.mark.parametrize("text", [
        "not json at all",
        json.dumps(["a", "list"]),
        json.dumps({"summary": "missing the rest"}),
        json.dumps({**DIAGNOSIS, "left_eye": "fine"}),
    ])
    def test_malformed_diagnosis(self, app, ai_transport, text):
        ai_transport["responses"].append(httpx.Response(200, json=_gemini_reply(text)))

        with app.app_context(), pytest.raises(AIServiceError):
            ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")

    def test_decoding_error_becomes_service_error(self, app, ai_transport):
        ai_transport["responses"].append(httpx.DecodingError("bad gzip"))

        with app.app_context(), pytest.raises(AIServiceError):
            ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")
        assert len(ai_transport["requests"]) == 1

    def test_missing_api_key(self, app, ai_transport):
        app.config["GEMINI_API_KEY"] = None
        try:
            with app.app_context(), pytest.raises(AIServiceError):
                ai_service.diagnose_eye("aGVsbG8=", "image/jpeg")
        finally:
            app.config["GEMINI_API_KEY"] = "test-key"
        assert ai_transport["requests"] == []


class TestDiagnoseRoute:

    def test_success_persists_result(self, client, db_session, make_customer, staff_headers, ai_transport):
        customer = make_customer(name="Scan")
        ai_transport["responses"].append(httpx.Response(200, json=_gemini_reply(json.dumps(DIAGNOSIS))))

        resp = client.post(
            "/api/eye-tests/diagnose",
            json={"customer_id": customer.id, "image_base64": "aGVsbG8=", "mime_type": "image/jpeg"},
            headers=staff_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["diagnosis"] == DIAGNOSIS
        stored = db_session.query(EyeTest).one()
        assert json.loads(stored.results) == DIAGNOSIS

    def test_failure_returns_generic_message_and_persists_nothing(self, client, db_session, make_customer, staff_headers, ai_transport):
        customer = make_customer()
        ai_transport["responses"].append(httpx.Response(200, json=_gemini_reply("I cannot see an eye here")))

        resp = client.post(
            "/api/eye-tests/diagnose",
            json={"customer_id": customer.id, "image_base64": "aGVsbG8=", "mime_type": "image/jpeg"},
            headers=staff_headers,
        )
        assert resp.status_code == 502
        assert resp.get_json() == {"error": "Diagnosis failed, please try again"}
        assert db_session.query(EyeTest).count() == 0

    def test_validates_before_calling_ai(self, client, make_customer, staff_headers, ai_transport):
        customer = make_customer()
        resp = client.post(
            "/api/eye-tests/diagnose",
            json={"customer_id": customer.id, "image_base64": "aGVsbG8=", "mime_type": "image/gif"},
            headers=staff_headers,
        )
        assert resp.status_code == 400
        assert ai_transport["requests"] == []


class TestChat:

    def test_reply(self, client, patient_headers, ai_transport):
        ai_transport["responses"].append(httpx.Response(200, json=_gemini_reply("Blue light glasses reduce glare. ")))

        resp = client.post("/api/chat", json={"message": "Do I need blue light glasses?"}, headers=patient_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"reply": "Blue light glasses reduce glare."}

        body = json.loads(ai_transport["requests"][0].content)
        assert body["systemInstruction"]["parts"][0]["text"] == ai_service.CHAT_SYSTEM_INSTRUCTION

    def test_failure_uses_fallback(self, client, patient_headers, ai_transport):
        ai_transport["responses"].extend([httpx.Response(500), httpx.Response(500)])

        resp = client.post("/api/chat", json={"message": "hello"}, headers=patient_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"reply": ai_service.CHAT_FALLBACK_REPLY}

    @pytest.mark.parametrize("failure", [
        httpx.DecodingError("bad gzip"),
        httpx.TooManyRedirects("redirect loop"),
    ])
    def test_non_transport_http_errors_use_fallback(self, client, patient_headers, ai_transport, failure):
        ai_transport["responses"].append(failure)

        resp = client.post("/api/chat", json={"message": "hello"}, headers=patient_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"reply": ai_service.CHAT_FALLBACK_REPLY}
        assert len(ai_transport["requests"]) == 1

    @pytest.mark.parametrize("parts", [
        [{"text": 5}],
        [{"text": None}, "stray"],
    ])
    def test_non_text_parts_never_fail_the_request(self, client, patient_headers, ai_transport, parts):
        payload = {"candidates": [{"content": {"parts": parts}}]}
        ai_transport["responses"].append(httpx.Response(200, json=payload))

        resp = client.post("/api/chat", json={"message": "hello"}, headers=patient_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"reply": ai_service.CHAT_EMPTY_REPLY}

    def test_parts_not_a_list_uses_fallback(self, client, patient_headers, ai_transport):
        payload = {"candidates": [{"content": {"parts": "hello"}}]}
        ai_transport["responses"].append(httpx.Response(200, json=payload))

        resp = client.post("/api/chat", json={"message": "hello"}, headers=patient_headers)
        assert resp.get_json() == {"reply": ai_service.CHAT_FALLBACK_REPLY}

    def test_empty_message(self, client, patient_headers):
        assert client.post("/api/chat", json={"message": "  "}, headers=patient_headers).status_code == 400
