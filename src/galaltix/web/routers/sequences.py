from fastapi import APIRouter
from pydantic import BaseModel, Field

from galaltix.core.modules.sequence.models import CounterView, DocumentType
from galaltix.web.deps import AppDep, AuthTokenDep
from galaltix.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["sequences"])


class PreviewResponse(BaseModel):
    """Preview of the next reference code."""

    document_type: DocumentType = Field(..., description="Document type of the stream")
    next_code: str = Field(..., description="Code the next allocation would most likely produce")


@router.get(
    "/sequences/{document_type}/preview",
    summary="Preview next reference code",
    description=(
        "Show the reference code the next document of this type created today would receive.\n\n"
        "The code is **not reserved**: a concurrent create may take it, and the number on the "
        "stored document is authoritative."
    ),
    operation_id="previewReference",
    responses={
        200: {"description": "Next reference code"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def preview_reference(document_type: DocumentType, app: AppDep, auth_token: AuthTokenDep) -> PreviewResponse:
    next_code = await app.preview_reference(auth_token, document_type)
    return PreviewResponse(document_type=document_type, next_code=next_code)


@router.get(
    "/sequences/{document_type}/counters/{counter_key}",
    summary="Get counter state",
    description="Get the last issued sequence for a numbering stream, e.g. `INV` / `20260203`.",
    operation_id="getCounter",
    responses={
        200: {"description": "Counter state"},
        400: {"model": ErrorResponse, "description": "Invalid counter key"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_counter(document_type: DocumentType, counter_key: str, app: AppDep, auth_token: AuthTokenDep) -> CounterView:
    return await app.get_counter(auth_token, document_type, counter_key)
