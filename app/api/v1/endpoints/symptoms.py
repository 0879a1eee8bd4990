"""Symptom checker endpoint."""

from fastapi import APIRouter, status

from app.dependencies import CurrentUser, TriageClientDep
from app.schemas.triage import SymptomCheckRequest, SymptomCheckResponse

router = APIRouter()


@router.post(
    "/symptom-check",
    response_model=SymptomCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Analyze symptoms",
)
async def check_symptoms(
    data: SymptomCheckRequest,
    current_user: CurrentUser,
    triage_client: TriageClientDep,
) -> SymptomCheckResponse:
    """
    Run an AI triage of free-text symptoms.

    Always answers 200: when the AI service is unavailable the response
    carries fixed fallback values and explains why in ``message``.
    """
    result = await triage_client.analyze_symptoms(data.symptoms)
    return SymptomCheckResponse(
        message=result.formatted_message,
        severity_score=result.severity_score,
        urgency=result.urgency,
        recommended_action=result.recommended_action,
    )
