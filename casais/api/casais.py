"""Casal and simplified casal routes, always scoped to the caller's account."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from .deps import get_casal_service, get_casal_simple_service, http_error_from_service_error
from ..domain.casal_service import CasalService, CasalSimpleService
from ..domain.contracts import CasalFields, CasalSimpleFields, ImageUpload
from ..domain.errors import ServiceError
from ..domain.scoping import PageRequest
from ..media import MediaError
from ..schemas import CasalOut, CasalSimpleIn, CasalSimpleOut, StatusResponse
from ..schemas.casal import CasalListResponse, CasalResponse, CasalSimpleListResponse, CasalSimpleResponse
from ..security.gate import current_identity
from ..security.tokens import SessionClaims

logger = logging.getLogger(__name__)

router = APIRouter(tags=["casais"])


def _read_upload(image: UploadFile | None, file: UploadFile | None) -> ImageUpload | None:
    """Accept the photo under either the ``image`` or the ``file`` form field."""
    upload = image or file
    if upload is None or not upload.filename:
        return None
    return ImageUpload(
        data=upload.file.read(),
        filename=upload.filename,
        content_type=upload.content_type or "",
    )


def _media_failure(exc: MediaError, message: str) -> HTTPException:
    logger.error("media host failure: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.get("/get-casal", response_model=CasalListResponse)
def get_casal(
    search: str | None = Query(default=None),
    page: str | None = Query(default=None),
    per_page: str | None = Query(default=None, alias="perPage"),
    identity: SessionClaims = Depends(current_identity),
    service: CasalService = Depends(get_casal_service),
) -> CasalListResponse:
    """List the caller's casais, optionally filtered by name and paginated."""
    try:
        result = service.list_casais(identity.subject, PageRequest.parse(page, per_page), search)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return CasalListResponse(
        title="Casais recuperados.",
        casal=[CasalOut.from_domain(item) for item in result.items],
        current_page=result.current_page,
        total=result.total,
        pages=result.pages,
    )


@router.post("/add-casal", response_model=CasalResponse, status_code=status.HTTP_201_CREATED)
def add_casal(
    name: str | None = Form(default=None),
    desc: str | None = Form(default=None),
    niver_h: str | None = Form(default=None, alias="niverH"),
    niver_m: str | None = Form(default=None, alias="niverM"),
    tel: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    file: UploadFile | None = File(default=None),
    identity: SessionClaims = Depends(current_identity),
    service: CasalService = Depends(get_casal_service),
) -> CasalResponse:
    fields = CasalFields(name=name, desc=desc, niver_h=niver_h, niver_m=niver_m, tel=tel)
    try:
        casal = service.add_casal(identity.subject, fields, _read_upload(image, file))
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    except MediaError as exc:
        raise _media_failure(exc, "Erro ao adicionar casal.") from exc
    return CasalResponse(title="Casal adicionado com sucesso.", casal=CasalOut.from_domain(casal))


@router.put("/update-casal/{casal_id}", response_model=CasalResponse)
def update_casal(
    casal_id: str,
    name: str | None = Form(default=None),
    desc: str | None = Form(default=None),
    niver_h: str | None = Form(default=None, alias="niverH"),
    niver_m: str | None = Form(default=None, alias="niverM"),
    tel: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    file: UploadFile | None = File(default=None),
    identity: SessionClaims = Depends(current_identity),
    service: CasalService = Depends(get_casal_service),
) -> CasalResponse:
    """Partially update a casal; empty fields keep their stored value."""
    fields = CasalFields(name=name, desc=desc, niver_h=niver_h, niver_m=niver_m, tel=tel)
    try:
        casal = service.update_casal(identity.subject, casal_id, fields, _read_upload(image, file))
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    except MediaError as exc:
        raise _media_failure(exc, "Erro ao atualizar casal.") from exc
    return CasalResponse(title="Casal atualizado com sucesso.", casal=CasalOut.from_domain(casal))


@router.delete("/delete-casal/{casal_id}", response_model=StatusResponse)
def delete_casal(
    casal_id: str,
    identity: SessionClaims = Depends(current_identity),
    service: CasalService = Depends(get_casal_service),
) -> StatusResponse:
    try:
        service.delete_casal(identity.subject, casal_id)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return StatusResponse(title="Casal deletado.")


@router.get("/casal-simple", response_model=CasalSimpleListResponse)
def list_casal_simple(
    search: str | None = Query(default=None),
    page: str | None = Query(default=None),
    per_page: str | None = Query(default=None, alias="perPage"),
    identity: SessionClaims = Depends(current_identity),
    service: CasalSimpleService = Depends(get_casal_simple_service),
) -> CasalSimpleListResponse:
    result = service.list_casais(identity.subject, PageRequest.parse(page, per_page), search)
    return CasalSimpleListResponse(
        casal=[CasalSimpleOut.from_domain(item) for item in result.items],
        current_page=result.current_page,
        total=result.total,
        pages=result.pages,
    )


@router.post("/casal-simple", response_model=CasalSimpleResponse, status_code=status.HTTP_201_CREATED)
def add_casal_simple(
    payload: CasalSimpleIn,
    identity: SessionClaims = Depends(current_identity),
    service: CasalSimpleService = Depends(get_casal_simple_service),
) -> CasalSimpleResponse:
    try:
        casal = service.add_casal(identity.subject, CasalSimpleFields(name=payload.name, age=payload.age))
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return CasalSimpleResponse(title="Casal adicionado com sucesso.", casal=CasalSimpleOut.from_domain(casal))


@router.put("/casal-simple/{casal_id}", response_model=CasalSimpleResponse)
def update_casal_simple(
    casal_id: str,
    payload: CasalSimpleIn,
    identity: SessionClaims = Depends(current_identity),
    service: CasalSimpleService = Depends(get_casal_simple_service),
) -> CasalSimpleResponse:
    try:
        casal = service.update_casal(
            identity.subject, casal_id, CasalSimpleFields(name=payload.name, age=payload.age)
        )
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return CasalSimpleResponse(title="Casal atualizado com sucesso.", casal=CasalSimpleOut.from_domain(casal))


@router.delete("/casal-simple/{casal_id}", response_model=StatusResponse)
def delete_casal_simple(
    casal_id: str,
    identity: SessionClaims = Depends(current_identity),
    service: CasalSimpleService = Depends(get_casal_simple_service),
) -> StatusResponse:
    try:
        service.delete_casal(identity.subject, casal_id)
    except ServiceError as exc:
        raise http_error_from_service_error(exc) from exc
    return StatusResponse(title="Casal deletado.")
