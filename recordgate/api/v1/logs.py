"""Log ingestion endpoint: lets superusers write to the service log."""
from fastapi import APIRouter, Depends, Response, status

from recordgate.api.deps import Superuser, get_log_sink, require_superuser
from recordgate.core.activity_log import skip_success_activity_log
from recordgate.core.log_sink import LogSink, flatten_data
from recordgate.schemas.logs import LogEventRequest

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    dependencies=[Depends(skip_success_activity_log)],
)
async def ingest_log(
    data: LogEventRequest,
    _: Superuser = Depends(require_superuser),
    sink: LogSink = Depends(get_log_sink),
):
    """
    Write a log event.

    - **level**: debug, info, warn or error
    - **message**: log message
    - **data**: non-empty object, written as structured fields
    """
    sink.emit(data.level, data.message, *flatten_data(data.data))

    # Empty 201: this endpoint is called a lot, no point echoing the payload back
    return Response(status_code=status.HTTP_201_CREATED)
