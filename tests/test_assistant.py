"""Tests for the AI assistant and its completion client."""

import json

import httpx
import pytest
from httpx import AsyncClient

from healthmate.core.completion import (
    CONNECTION_FALLBACK,
    EMPTY_RESPONSE_FALLBACK,
    CompletionClient,
)
from healthmate.services.assistant_service import SYMPTOM_CHECKER_PROMPT

MESSAGES = [{"role": "user", "content": "Hello"}]


def make_client(handler) -> CompletionClient:
    return CompletionClient(
        api_url="https://completions.test/v1/chat/completions",
        api_key="key-123",
        model="default-model",
        temperature=0.2,
        max_tokens=256,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
class TestCompletionClient:
    """Tests for the chat-completion wrapper."""

    async def test_sends_payload_and_auth(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "Hi there"}}]})

        reply = await make_client(handler).complete(MESSAGES)

        assert reply == "Hi there"
        request = seen[0]
        assert str(request.url) == "https://completions.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer key-123"
        assert json.loads(request.content) == {
            "model": "default-model",
            "messages": MESSAGES,
            "temperature": 0.2,
            "max_tokens": 256,
        }

    async def test_model_override(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        await make_client(handler).complete(MESSAGES, model="other-model")

        assert bodies[0]["model"] == "other-model"

    @pytest.mark.parametrize(
        "body",
        [
            {"choices": [{"message": {"content": ""}}]},
            {"choices": [{"message": {"content": None}}]},
            {"choices": []},
            {"unexpected": True},
        ],
    )
    async def test_empty_content_falls_back(self, body: dict):
        reply = await make_client(lambda request: httpx.Response(200, json=body)).complete(
            MESSAGES
        )

        assert reply == EMPTY_RESPONSE_FALLBACK

    @pytest.mark.parametrize("status_code", [401, 429, 500])
    async def test_error_status_falls_back(self, status_code: int):
        reply = await make_client(
            lambda request: httpx.Response(status_code, json={"error": "nope"})
        ).complete(MESSAGES)

        assert reply == CONNECTION_FALLBACK

    async def test_transport_error_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert await make_client(handler).complete(MESSAGES) == CONNECTION_FALLBACK

    async def test_malformed_json_falls_back(self):
        reply = await make_client(lambda request: httpx.Response(200, text="<html>")).complete(
            MESSAGES
        )

        assert reply == CONNECTION_FALLBACK


@pytest.mark.asyncio
class TestAssistantEndpoints:
    """Tests for the assistant features."""

    async def test_symptom_check(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        response = await client.post(
            "/api/v1/assistant/symptom-check",
            json={"symptoms": "Headache and fever for two days"},
            headers=patient_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"response": "Stub assistant reply"}

        request = completion_stub.requests[0]
        assert request["model"] == "test-model"
        assert request["messages"][0] == {"role": "system", "content": SYMPTOM_CHECKER_PROMPT}
        assert completion_stub.last_user_message == (
            "Patient reports these symptoms: Headache and fever for two days"
        )

    async def test_fallback_is_returned_with_200(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        completion_stub.status_code = 500

        response = await client.post(
            "/api/v1/assistant/symptom-check",
            json={"symptoms": "Cough"},
            headers=patient_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"response": CONNECTION_FALLBACK}

    async def test_mental_health_with_mood(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        response = await client.post(
            "/api/v1/assistant/mental-health",
            json={"message": "I feel overwhelmed", "mood_level": 2},
            headers=patient_headers,
        )

        assert response.status_code == 200
        assert completion_stub.last_user_message == (
            "Current mood level: 2/5\n\nUser says: I feel overwhelmed"
        )

    async def test_mental_health_without_mood(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        await client.post(
            "/api/v1/assistant/mental-health",
            json={"message": "Can't sleep"},
            headers=patient_headers,
        )

        assert completion_stub.last_user_message == "\n\nUser says: Can't sleep"

    async def test_consultation_summary_for_doctors(
        self,
        client: AsyncClient,
        completion_stub,
        doctor_headers: dict,
        patient_headers: dict,
    ):
        payload = {"transcript": "Patient reports chest tightness on exertion."}

        denied = await client.post(
            "/api/v1/assistant/consultation-summary", json=payload, headers=patient_headers
        )
        allowed = await client.post(
            "/api/v1/assistant/consultation-summary", json=payload, headers=doctor_headers
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert completion_stub.last_user_message == (
            "Consultation transcript: Patient reports chest tightness on exertion."
        )

    async def test_education_content(
        self, client: AsyncClient, completion_stub, doctor_headers: dict
    ):
        response = await client.post(
            "/api/v1/assistant/education", json={"topic": "Diabetes"}, headers=doctor_headers
        )

        assert response.status_code == 200
        assert completion_stub.last_user_message == "Create educational content about: Diabetes"

    async def test_triage_uses_recorded_vitals(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        await client.post(
            "/api/v1/vitals", json={"type": "heart_rate", "value": "112"}, headers=patient_headers
        )

        response = await client.post(
            "/api/v1/assistant/triage",
            json={"symptoms": "Dizziness"},
            headers=patient_headers,
        )

        assert response.status_code == 200
        assert completion_stub.last_user_message == (
            'Symptoms: Dizziness\nVital signs: {"heart_rate": "112 bpm"}'
        )

    async def test_triage_with_supplied_vitals(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        await client.post(
            "/api/v1/assistant/triage",
            json={"symptoms": "Fever", "vitals": {"temperature": 102.4}},
            headers=patient_headers,
        )

        assert completion_stub.last_user_message == (
            'Symptoms: Fever\nVital signs: {"temperature": 102.4}'
        )

    async def test_triage_without_vitals(
        self, client: AsyncClient, completion_stub, patient_headers: dict
    ):
        await client.post(
            "/api/v1/assistant/triage", json={"symptoms": "Rash"}, headers=patient_headers
        )

        assert completion_stub.last_user_message == "Symptoms: Rash\n"

    async def test_assistant_requires_auth(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/assistant/symptom-check", json={"symptoms": "Cough"}
        )

        assert response.status_code == 401
