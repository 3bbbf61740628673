# path: blueways-api/blueways/api/routes/network.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from blueways.config import Settings, get_settings
from blueways.errors import AcquisitionError
from blueways.models.network_models import AlignmentSummary, RouteNetwork, TracingSummary
from blueways.services.pipeline import align_network, trace_network
from blueways.services.waterway_source import OverpassSource

router = APIRouter(prefix="/network", tags=["network"])


class AlignResponse(BaseModel):
    summary: AlignmentSummary
    network: RouteNetwork


class TraceResponse(BaseModel):
    summary: TracingSummary
    network: RouteNetwork


def get_waterway_source(settings: Settings = Depends(get_settings)) -> OverpassSource:
    return OverpassSource.from_settings(settings)


@router.post("/align", response_model=AlignResponse, response_model_exclude_unset=True)
def align(network: RouteNetwork, settings: Settings = Depends(get_settings)) -> AlignResponse:
    aligned, summary = align_network(network, settings)
    return AlignResponse(summary=summary, network=aligned)


@router.post("/trace", response_model=TraceResponse, response_model_exclude_unset=True)
def trace(
    network: RouteNetwork,
    settings: Settings = Depends(get_settings),
    source: OverpassSource = Depends(get_waterway_source),
) -> TraceResponse:
    try:
        traced, summary = trace_network(network, settings, source)
    except AcquisitionError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return TraceResponse(summary=summary, network=traced)
