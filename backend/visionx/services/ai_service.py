# Overview: Client for the external generative AI collaborator (Gemini REST API).

"""
External AI Collaborator

Two call sites:
- diagnose_eye: image + fixed ophthalmology prompt -> structured JSON
- chat_reply: free text + fixed system instruction -> plain text

RELIABILITY:
- Every request carries a bounded timeout (AI_TIMEOUT_SECONDS)
- Transient failures (transport errors, 429, 5xx) are retried
  AI_MAX_RETRIES times; other failures are not
- Every failure surfaces as AIServiceError; callers decide the user-facing
  message. Nothing here touches the database.
"""

from __future__ import annotations

import json

import httpx
from flask import current_app


DIAGNOSIS_PROMPT = """You are a world-class ophthalmologist and optical expert.
Analyze the provided eye image with extreme precision.

Your task is to provide a comprehensive optical diagnosis and prescription.

REQUIRED FIELDS (Do not return 'N/A', 'None', or '0' if you can provide a clinical estimate):
1. Refractive Power (OD - Right Eye, OS - Left Eye):
   - Spherical (S): Must include sign (+ for hyperopia, - for myopia). e.g., "-2.50", "+1.75".
   - Cylindrical (C): Must include sign. e.g., "-0.75", "+0.25".
   - Axis (A): Degrees from 0 to 180.
2. Clinical Observations:
   - Redness: Level (None, Mild, Moderate, Severe).
   - Dryness: Status (Absent, Mild, Chronic).
   - Clarity: Status of the cornea and lens (Clear, Cloudy, Hazy).
3. Pupillary Distance (PD): Estimate the distance between pupils in mm (e.g., "63mm").
4. Abnormalities: List any detected conditions (e.g., "Slight Conjunctivitis", "Early Cataract signs", "Healthy").
5. Confidence Level: 0-100.
6. Professional Summary: A detailed explanation of the findings and recommended next steps.

Return ONLY a valid JSON object following this schema:
{
  "left_eye": { "spherical": string, "cylindrical": string, "axis": number, "redness": string, "dryness": string, "clarity": string },
  "right_eye": { "spherical": string, "cylindrical": string, "axis": number, "redness": string, "dryness": string, "clarity": string },
  "pd": string,
  "abnormalities": string[],
  "confidence_level": number,
  "summary": string
}"""

CHAT_SYSTEM_INSTRUCTION = (
    "You are VisionX AI, a helpful assistant for an Optical Shop ERP. You help patients "
    "understand eye health, explain test results, and provide information about eyewear. "
    "Keep responses concise, professional, and empathetic. If asked about medical "
    "emergencies, advise seeing a doctor immediately."
)

CHAT_FALLBACK_REPLY = "I'm having trouble connecting right now. Please try again later."
CHAT_EMPTY_REPLY = "I'm sorry, I couldn't process that. How else can I help?"

DIAGNOSIS_REQUIRED_KEYS = ("left_eye", "right_eye", "pd", "abnormalities", "confidence_level", "summary")

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class AIServiceError(Exception):
    """Raised when the AI collaborator cannot produce a usable answer."""
    pass


class GeminiClient:
    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str,
        timeout: float,
        max_retries: int = 1,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.transport = transport

    def _post(self, model: str, body: dict) -> dict:
        if not self.api_key:
            raise AIServiceError("AI API key is not configured")

        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        logger = current_app.logger

        attempts = self.max_retries + 1
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, attempts + 1):
                try:
                    response = client.post(url, headers=headers, json=body)
                except httpx.HTTPError as exc:
                    if isinstance(exc, httpx.TransportError) and attempt < attempts:
                        logger.warning("AI request to %s failed (%s); retrying", model, exc.__class__.__name__)
                        continue
                    raise AIServiceError(f"AI request failed: {exc.__class__.__name__}") from exc

                if response.status_code in RETRYABLE_STATUS and attempt < attempts:
                    logger.warning("AI request to %s returned %s; retrying", model, response.status_code)
                    continue
                if response.status_code >= 400:
                    raise AIServiceError(f"AI service returned HTTP {response.status_code}")

                try:
                    return response.json()
                except ValueError as exc:
                    raise AIServiceError("AI service returned a non-JSON response") from exc

        raise AIServiceError("AI service did not respond")

    @staticmethod
    def _extract_text(payload: dict) -> str:
        try:
            parts = payload["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AIServiceError("AI response has no candidates") from exc
        if not isinstance(parts, list):
            raise AIServiceError("AI response parts must be a list")
        return "".join(
            part["text"] for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )

    def generate(self, model: str, body: dict) -> str:
        return self._extract_text(self._post(model, body))


def get_ai_client() -> GeminiClient:
    cfg = current_app.config
    return GeminiClient(
        cfg.get("GEMINI_API_KEY"),
        base_url=cfg["GEMINI_BASE_URL"],
        timeout=cfg["AI_TIMEOUT_SECONDS"],
        max_retries=cfg["AI_MAX_RETRIES"],
        transport=cfg.get("AI_HTTP_TRANSPORT"),
    )


def _strip_code_fence(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else ""
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


def diagnose_eye(image_base64: str, mime_type: str, client: GeminiClient | None = None) -> dict:
    """
    Ask the AI for a structured diagnosis of an eye image.

    Raises AIServiceError on transport failure, malformed JSON, or when any
    key of the diagnosis schema is missing.
    """
    client = client or get_ai_client()
    body = {
        "contents": [
            {
                "parts": [
                    {"text": DIAGNOSIS_PROMPT},
                    {"inline_data": {"mime_type": mime_type, "data": image_base64}},
                ]
            }
        ],
        "generationConfig": {"responseMimeType": "application/json", "temperature": 0.1},
    }
    text = client.generate(current_app.config["GEMINI_DIAGNOSIS_MODEL"], body)

    try:
        result = json.loads(_strip_code_fence(text))
    except ValueError as exc:
        raise AIServiceError("AI diagnosis was not valid JSON") from exc
    if not isinstance(result, dict):
        raise AIServiceError("AI diagnosis was not a JSON object")

    missing = [key for key in DIAGNOSIS_REQUIRED_KEYS if key not in result]
    if missing:
        raise AIServiceError(f"AI diagnosis missing keys: {', '.join(missing)}")
    if not isinstance(result["left_eye"], dict) or not isinstance(result["right_eye"], dict):
        raise AIServiceError("AI diagnosis eye sections must be objects")
    return result


def chat_reply(message: str, client: GeminiClient | None = None) -> str:
    """
    Assistant reply for one user message.

    Never raises: any failure, including an unexpected response shape, is
    logged and replaced by CHAT_FALLBACK_REPLY.
    """
    body = {
        "systemInstruction": {"parts": [{"text": CHAT_SYSTEM_INSTRUCTION}]},
        "contents": [{"role": "user", "parts": [{"text": message}]}],
    }
    try:
        client = client or get_ai_client()
        text = client.generate(current_app.config["GEMINI_CHAT_MODEL"], body)
    except Exception:
        current_app.logger.exception("Chat assistant request failed")
        return CHAT_FALLBACK_REPLY
    return text.strip() or CHAT_EMPTY_REPLY
