"""AI assistant prompts over the completion client."""

import json
from typing import Any

import structlog

from healthmate.core.completion import CompletionClient

logger = structlog.get_logger(__name__)

SYMPTOM_CHECKER_PROMPT = """You are a certified AI medical assistant. Analyze symptoms and provide:
1. Top 3 possible causes with confidence levels
2. Severity assessment (Low/Medium/High)
3. Recommended action (Home Care/Doctor Visit/Emergency Room)
4. Warning signs to watch for

Be thorough but never replace professional medical advice. Always recommend consulting \
healthcare providers for serious concerns."""

MENTAL_HEALTH_PROMPT = """You are a compassionate CBT therapist assistant. Provide:
1. Empathetic response to the user's feelings
2. CBT-based coping strategies
3. Helpful reflection questions
4. When to seek professional help

Use a warm, supportive tone. Focus on cognitive behavioral techniques."""

CONSULTATION_SUMMARY_PROMPT = """Summarize this medical consultation into structured format:

CHIEF COMPLAINT:
HISTORY OF PRESENT ILLNESS:
CLINICAL IMPRESSION:
RECOMMENDATIONS:
FOLLOW-UP:

Be concise and medically accurate."""

EDUCATION_PROMPT = """Provide educational medical content that is:
1. Accurate and evidence-based
2. Easy to understand for patients
3. Includes prevention tips
4. When to seek medical care

Structure with clear headings and bullet points."""

TRIAGE_PROMPT = """You are a medical triage AI. Based on symptoms and vitals, determine:
1. Urgency level (Emergency/Urgent/Routine)
2. Recommended care setting (ER/Urgent Care/Primary Care/Self Care)
3. Time sensitivity
4. Red flag symptoms present

Prioritize patient safety - when in doubt, recommend higher level of care."""


def _conversation(system: str, user: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


class AssistantService:
    """One fixed system prompt per assistant feature, same completion call."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def symptom_check(self, symptoms: str) -> str:
        """Possible causes, severity and recommended action for free-text symptoms."""
        return await self.client.complete(
            _conversation(SYMPTOM_CHECKER_PROMPT, f"Patient reports these symptoms: {symptoms}")
        )

    async def mental_health_chat(self, message: str, mood_level: int | None = None) -> str:
        """Supportive reply; the mood level (1-5) is passed as context when given."""
        mood_context = f"Current mood level: {mood_level}/5" if mood_level else ""
        return await self.client.complete(
            _conversation(MENTAL_HEALTH_PROMPT, f"{mood_context}\n\nUser says: {message}")
        )

    async def consultation_summary(self, transcript: str) -> str:
        return await self.client.complete(
            _conversation(CONSULTATION_SUMMARY_PROMPT, f"Consultation transcript: {transcript}")
        )

    async def educational_content(self, topic: str) -> str:
        return await self.client.complete(
            _conversation(EDUCATION_PROMPT, f"Create educational content about: {topic}")
        )

    async def triage(self, symptoms: str, vitals: dict[str, Any] | None = None) -> str:
        """Urgency assessment from symptoms and, when available, vital signs."""
        vitals_info = f"Vital signs: {json.dumps(vitals, default=str)}" if vitals else ""
        logger.info("triage_requested", with_vitals=bool(vitals))
        return await self.client.complete(
            _conversation(TRIAGE_PROMPT, f"Symptoms: {symptoms}\n{vitals_info}")
        )
