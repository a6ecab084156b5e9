import logging
import orjson
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from ..auth import require_function_key
from ..dependencies import get_status_service, get_submission_service
from ..models import AcceptedResponse, CompletedResponse, StatusResponse, TaskRequest, TaskRequestType
from ..services.status import TaskStatusService
from ..services.submission import TaskSubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Tasks", dependencies=[Depends(require_function_key)])

async def _parse_task_request(request: Request) -> TaskRequest:
    body = await request.body()
    if not body.strip():
        raise HTTPException(status_code=400, detail="Request body is empty")
    try:
        return TaskRequest.model_validate(orjson.loads(body))
    except orjson.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Request body is not valid JSON")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors(include_url=False, include_context=False))

@router.post("/Submit", response_model=CompletedResponse, responses={202: {"model": AcceptedResponse}})
async def submit_task(request: Request, service: TaskSubmissionService = Depends(get_submission_service)):
    logger.info("SubmitTask: processing a request")
    payload = await _parse_task_request(request)
    task, rec = await service.submit(payload, should_stop=request.is_disconnected)

    if rec is not None:
        return CompletedResponse(task_id=task.task_id, result=orjson.loads(rec.output))

    status_url = str(request.url_for("get_task", type=task.type.value, task_id=task.task_id))
    accepted = AcceptedResponse(task_id=task.task_id, status_url=status_url)
    return JSONResponse(status_code=202, content=accepted.model_dump(by_alias=True))

@router.get("/Get/{type}/{task_id}", name="get_task", response_model=StatusResponse)
async def get_task(type: TaskRequestType, task_id: str, service: TaskStatusService = Depends(get_status_service)):
    status = await service.get_status(type, task_id)
    if status is None:
        raise HTTPException(status_code=404, detail="Unknown task")
    return StatusResponse(task_id=task_id, type=type, status=status)
