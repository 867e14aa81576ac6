"""AI assistant endpoints."""

from fastapi import APIRouter, status

from healthmate.dependencies import (
    CompletionClientDep,
    CurrentUser,
    DatabaseSession,
    DoctorUser,
    PatientUser,
)
from healthmate.schemas.assistant import (
    AssistantResponse,
    ConsultationSummaryRequest,
    EducationRequest,
    MentalHealthRequest,
    SymptomCheckRequest,
    TriageRequest,
)
from healthmate.services.assistant_service import AssistantService
from healthmate.services.vital_service import VitalService

router = APIRouter(prefix="/assistant")

# Completion failures come back as fallback text with status 200


@router.post(
    "/symptom-check",
    response_model=AssistantResponse,
    status_code=status.HTTP_200_OK,
    summary="AI symptom checker",
)
async def symptom_check(
    data: SymptomCheckRequest,
    current_user: PatientUser,
    completion: CompletionClientDep,
) -> AssistantResponse:
    """Possible causes, severity and recommended action for the described symptoms."""
    reply = await AssistantService(completion).symptom_check(data.symptoms)
    return AssistantResponse(response=reply)


@router.post(
    "/mental-health",
    response_model=AssistantResponse,
    status_code=status.HTTP_200_OK,
    summary="Mental health chat",
)
async def mental_health_chat(
    data: MentalHealthRequest,
    current_user: PatientUser,
    completion: CompletionClientDep,
) -> AssistantResponse:
    """CBT-style supportive reply; ``mood_level`` (1-5) adds context."""
    reply = await AssistantService(completion).mental_health_chat(data.message, data.mood_level)
    return AssistantResponse(response=reply)


@router.post(
    "/consultation-summary",
    response_model=AssistantResponse,
    status_code=status.HTTP_200_OK,
    summary="Summarize a consultation",
)
async def consultation_summary(
    data: ConsultationSummaryRequest,
    current_user: DoctorUser,
    completion: CompletionClientDep,
) -> AssistantResponse:
    """Structured summary of a consultation transcript."""
    summary = await AssistantService(completion).consultation_summary(data.transcript)
    return AssistantResponse(response=summary)


@router.post(
    "/education",
    response_model=AssistantResponse,
    status_code=status.HTTP_200_OK,
    summary="Patient education content",
)
async def educational_content(
    data: EducationRequest,
    current_user: CurrentUser,
    completion: CompletionClientDep,
) -> AssistantResponse:
    content = await AssistantService(completion).educational_content(data.topic)
    return AssistantResponse(response=content)


@router.post(
    "/triage",
    response_model=AssistantResponse,
    status_code=status.HTTP_200_OK,
    summary="Triage assessment",
)
async def triage(
    data: TriageRequest,
    current_user: PatientUser,
    db: DatabaseSession,
    completion: CompletionClientDep,
) -> AssistantResponse:
    """
    Urgency assessment.

    Without ``vitals`` in the request the caller's latest recorded readings
    are used.
    """
    vitals = data.vitals
    if vitals is None:
        vitals = await VitalService(db).latest_summary(current_user["id"]) or None

    assessment = await AssistantService(completion).triage(data.symptoms, vitals)
    return AssistantResponse(response=assessment)
