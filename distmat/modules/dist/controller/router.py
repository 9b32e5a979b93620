"""FastAPI routes for dist materialization and builds."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from distmat.modules.dist.domain import (
    ArtifactCoordinate,
    BuildRequest,
    CompilationError,
    ExtractionError,
    ResolutionError,
)
from distmat.modules.dist.service import DistBuildService

router = APIRouter(prefix="/dist", tags=["dist"])


def get_service(request: Request) -> DistBuildService:
    container = getattr(request.app.state, "container", None)
    if not container or not getattr(container, "dist_service", None):
        raise HTTPException(status_code=500, detail="Dist service not initialized.")
    return container.dist_service


def _optional_str(payload: Dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{key} must be a string")
    return value or None


@router.get("/coordinate")
async def configured_coordinate(svc: DistBuildService = Depends(get_service)) -> Dict[str, str]:
    return {"coordinate": str(svc.coordinate())}


@router.post("/materialize")
def materialize(payload: Dict[str, Any], svc: DistBuildService = Depends(get_service)) -> Dict[str, Any]:
    raw = _optional_str(payload, "coordinate")
    try:
        coordinate = ArtifactCoordinate.parse(raw) if raw else None
        result = svc.materialize_dist(
            coordinate=coordinate,
            version=_optional_str(payload, "version"),
            base_dir=_optional_str(payload, "base_dir"),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ResolutionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {
        "directory": str(result.directory),
        "coordinate": str(result.coordinate),
        "reused": result.reused,
    }


@router.post("/build")
def build(payload: Dict[str, Any], svc: DistBuildService = Depends(get_service)) -> Dict[str, Any]:
    main_class = payload.get("main_class")
    if not isinstance(main_class, str) or not main_class:
        raise HTTPException(status_code=400, detail="main_class is required")
    classpath = payload.get("classpath") or []
    if not isinstance(classpath, list) or not all(isinstance(item, str) for item in classpath):
        raise HTTPException(status_code=400, detail="classpath must be an array of strings")
    try:
        request = BuildRequest(
            main_class=main_class,
            classpath=classpath,
            os=_optional_str(payload, "os"),
            arch=_optional_str(payload, "arch"),
            version=_optional_str(payload, "version"),
            output_dir=_optional_str(payload, "output_dir"),
        )
        result = svc.build(request)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ResolutionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except CompilationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {
        "dist_dir": str(result.dist_dir),
        "command": result.command,
        "returncode": result.returncode,
        "stdout": result.stdout,
    }
