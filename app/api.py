"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import ValidationError

from app.schemas import (
    AmbientTemperatureIn,
    Coordinates,
    SensorEventIn,
    SensorEventKind,
    SensorLinesIn,
    SnapshotOut,
    SoilObservationRecord,
)
from models.readings import Connected, DataLine, Disconnected, SensorEvent
from services.observations import ObservationService, build_default_service

router = APIRouter()


def get_service() -> ObservationService:
    return build_default_service()


def _to_event(payload: SensorEventIn) -> SensorEvent:
    if payload.kind is SensorEventKind.connected:
        return Connected()
    if payload.kind is SensorEventKind.disconnected:
        return Disconnected()
    if payload.line is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="data_line events require a line.",
        )
    return DataLine(text=payload.line)


@router.get(
    "/sensor/snapshot",
    response_model=SnapshotOut,
    summary="Current sensor readings with display strings.",
)
async def get_snapshot(
    service: ObservationService = Depends(get_service),
) -> SnapshotOut:
    return SnapshotOut.from_snapshot(service.snapshot())


@router.post(
    "/sensor/events",
    response_model=SnapshotOut,
    summary="Deliver a connection event or data line from the sensor link.",
)
async def post_event(
    payload: SensorEventIn,
    service: ObservationService = Depends(get_service),
) -> SnapshotOut:
    snapshot = service.handle_event(_to_event(payload))
    return SnapshotOut.from_snapshot(snapshot)


@router.post(
    "/sensor/lines",
    response_model=SnapshotOut,
    summary="Apply a batch of raw sensor lines in order.",
)
async def post_lines(
    payload: SensorLinesIn,
    service: ObservationService = Depends(get_service),
) -> SnapshotOut:
    return SnapshotOut.from_snapshot(service.ingest_lines(payload.lines))


@router.put(
    "/sensor/ambient-temperature",
    response_model=SnapshotOut,
    summary="Set or clear the weather temperature fallback.",
)
async def put_ambient_temperature(
    payload: AmbientTemperatureIn,
    service: ObservationService = Depends(get_service),
) -> SnapshotOut:
    return SnapshotOut.from_snapshot(service.set_ambient_temperature(payload.fahrenheit))


@router.post(
    "/observations",
    status_code=status.HTTP_201_CREATED,
    response_model=SoilObservationRecord,
    summary="Save the current snapshot as an observation.",
)
async def create_observation(
    site_name: str = Form(..., description="Name of the sampled site."),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    observed_at: Optional[datetime] = Form(None),
    photo: Optional[UploadFile] = File(None, description="Optional site photo."),
    service: ObservationService = Depends(get_service),
) -> SoilObservationRecord:
    coordinates: Optional[Coordinates] = None
    if (latitude is None) != (longitude is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Latitude and longitude must be supplied together.",
        )
    if latitude is not None and longitude is not None:
        try:
            coordinates = Coordinates(latitude=latitude, longitude=longitude)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Coordinates are out of range.",
            ) from exc

    photo_bytes: Optional[bytes] = None
    photo_filename: Optional[str] = None
    if photo is not None:
        photo_bytes = await photo.read()
        photo_filename = photo.filename
        await photo.close()

    try:
        return service.finalize(
            site_name,
            observed_at=observed_at,
            photo=photo_bytes,
            photo_filename=photo_filename,
            coordinates=coordinates,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/observations",
    response_model=list[SoilObservationRecord],
    summary="List saved observations in the order they were saved.",
)
async def list_observations(
    service: ObservationService = Depends(get_service),
) -> list[SoilObservationRecord]:
    return service.list_records()


@router.get(
    "/observations/{record_id}",
    response_model=SoilObservationRecord,
    summary="Fetch a single observation.",
)
async def get_observation(
    record_id: str,
    service: ObservationService = Depends(get_service),
) -> SoilObservationRecord:
    try:
        return service.fetch_record(record_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.get(
    "/observations/{record_id}/photo",
    summary="Download the photo attached to an observation.",
)
async def get_observation_photo(
    record_id: str,
    service: ObservationService = Depends(get_service),
) -> Response:
    try:
        _key, data = service.fetch_photo(record_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return Response(content=data, media_type="application/octet-stream")


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
