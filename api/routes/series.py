import logging

from fastapi import APIRouter, HTTPException, Request

from api.schemas import GapFixFigureRequest, GapFixRequest, GapFixResponse
from core.errors import GapFixError
from services.gap_fix_service import fix_series_records, stacked_area_figure_payload
from services.models import GapFixParams


router = APIRouter()


def _get_logger(request: Request) -> logging.Logger:
    return request.app.state.logger


def _get_request_id(request: Request) -> str:
    return getattr(getattr(request, "state", None), "request_id", "-")


def _records_from_body(body: GapFixRequest) -> list:
    records = []
    for series in body.series:
        data = []
        for point in series.data:
            raw = {"x": point.x, "y": point.y}
            if point.type is not None:
                raw["type"] = point.type
            data.append(raw)
        records.append({"id": series.id, "data": data})
    return records


@router.post("/series/gap-fix", response_model=GapFixResponse)
async def gap_fix_series(request: Request, body: GapFixRequest):
    """Insere les points de correction autour des trous des series empilees"""
    logger = _get_logger(request)
    request_id = _get_request_id(request)

    params = GapFixParams(fix_distance=body.fix_distance, policy=body.policy)
    try:
        payload = fix_series_records(_records_from_body(body), params, cache=request.app.state.cache)
    except GapFixError as e:
        logger.info(
            "gap_fix_rejected",
            extra={"request_id": request_id, "error": type(e).__name__, "details": e.details},
        )
        raise HTTPException(status_code=400, detail={"error": type(e).__name__, "message": str(e)})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("gap_fix_failed", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail=f"Failed to fix series gaps: {str(e)}")

    logger.info(
        "gap_fix_ok",
        extra={"request_id": request_id, **payload["meta"]},
    )
    return payload


@router.post("/series/gap-fix/figure")
async def gap_fix_figure(request: Request, body: GapFixFigureRequest):
    """Figure Plotly (aire empilee) des series corrigees"""
    logger = _get_logger(request)
    request_id = _get_request_id(request)

    params = GapFixParams(fix_distance=body.fix_distance, policy=body.policy)
    try:
        payload = stacked_area_figure_payload(
            _records_from_body(body),
            params,
            title=body.title,
            x_is_epoch_ms=body.x_is_epoch_ms,
        )
    except GapFixError as e:
        logger.info(
            "gap_fix_figure_rejected",
            extra={"request_id": request_id, "error": type(e).__name__, "details": e.details},
        )
        raise HTTPException(status_code=400, detail={"error": type(e).__name__, "message": str(e)})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("gap_fix_figure_failed", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail=f"Failed to build figure: {str(e)}")

    logger.info(
        "gap_fix_figure_ok",
        extra={"request_id": request_id, "traces": len(payload["figure"].get("data", []))},
    )
    return payload


@router.get("/series/gap-fix/defaults")
async def gap_fix_defaults(request: Request):
    """Parametres par defaut utilises quand la requete n'en fournit pas"""
    params: GapFixParams = request.app.state.params
    return {"fix_distance": params.fix_distance, "policy": params.policy}
