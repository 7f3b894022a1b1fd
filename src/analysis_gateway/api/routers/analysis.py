from fastapi import APIRouter, Depends

from src.analysis_gateway.api.deps import get_batch_dispatcher, get_current_user_id
from src.analysis_gateway.api.schemas import AnalyzeRequest, AnalyzeResponse, quota_to_response
from src.analysis_gateway.domain.value_objects import BatchRequest
from src.analysis_gateway.services.batch_dispatcher import BatchDispatcher


router = APIRouter(tags=["analysis"])


@router.post("/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True)
async def analyze(
    req: AnalyzeRequest,
    user_id: int = Depends(get_current_user_id),
    dispatcher: BatchDispatcher = Depends(get_batch_dispatcher),
):
    batch = BatchRequest(
        text=req.text or "",
        actions=list(req.actions or []),
        style=req.style,
        gender=req.gender,
    )
    result = await dispatcher.dispatch(user_id, batch)
    return AnalyzeResponse(results=result.results, quota=quota_to_response(result.quota))
