"""Owner-scoped casal workflows, including the photo upload pass-through."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from .contracts import CasalFields, CasalSimpleFields, ImageUpload
from .errors import InvalidInputError, NotFoundError
from .resources import Casal, CasalSimple
from .scoping import Page, PageRequest, ResourceScope, merge_truthy
from .service import AccountService
from ..media import MediaBridge, MediaRef, destroy_quietly, image_extension
from ..repository import CasalRepository, CasalSimpleRepository

logger = logging.getLogger(__name__)


class CasalService:
    """Casal CRUD restricted to the requesting account."""

    def __init__(
        self,
        repository: CasalRepository,
        media: MediaBridge,
        accounts: AccountService,
    ) -> None:
        self._repository = repository
        self._media = media
        self._accounts = accounts

    def list_casais(self, owner_id: str, page: PageRequest, search: str | None = None) -> Page[Casal]:
        result = self._repository.list_page(ResourceScope.owned_by(owner_id), page, search)
        if not result.items:
            raise NotFoundError("Não há Casais cadastrados!")
        return result

    def add_casal(self, owner_id: str, fields: CasalFields, image: ImageUpload | None = None) -> Casal:
        """Create a casal, uploading its photo first when one is supplied.

        A failed upload raises ``MediaError`` and nothing is stored. The casal
        name is appended to the owner's name history.
        """
        name = (fields.name or "").strip()
        if not name:
            raise InvalidInputError("Nome é obrigatório.")
        ref = self._upload(image) if image is not None else None
        casal = self._repository.insert(
            Casal(
                id="",
                user_id=owner_id,
                name=name,
                desc=fields.desc or "",
                niver_h=fields.niver_h or "",
                niver_m=fields.niver_m or "",
                tel=fields.tel or "",
                image=ref.url if ref else "",
                public_id=ref.public_id if ref else "",
                date=datetime.now(timezone.utc),
            )
        )
        self._accounts.add_history(owner_id, casal.name)
        return casal

    def update_casal(
        self,
        owner_id: str,
        casal_id: str,
        fields: CasalFields,
        image: ImageUpload | None = None,
    ) -> Casal:
        """Merge truthy fields into the stored casal and optionally swap its photo."""
        scope = ResourceScope.owned_by(owner_id)
        existing = self._repository.get(casal_id, scope)
        if existing is None:
            raise NotFoundError("Casal não encontrado")

        ref = self._upload(image) if image is not None else None
        merged = replace(
            existing,
            name=merge_truthy(existing.name, fields.name),
            desc=merge_truthy(existing.desc, fields.desc),
            niver_h=merge_truthy(existing.niver_h, fields.niver_h),
            niver_m=merge_truthy(existing.niver_m, fields.niver_m),
            tel=merge_truthy(existing.tel, fields.tel),
            image=merge_truthy(existing.image, ref.url if ref else None),
            public_id=merge_truthy(existing.public_id, ref.public_id if ref else None),
        )
        # the old photo is only released once the record points at the new one
        try:
            updated = self._repository.update(merged, scope)
        except Exception:
            if ref is not None:
                destroy_quietly(self._media, ref.public_id)
            raise
        if updated is None:
            if ref is not None:
                destroy_quietly(self._media, ref.public_id)
            raise NotFoundError("Casal não encontrado")
        if ref is not None:
            destroy_quietly(self._media, existing.public_id)
        return updated

    def delete_casal(self, owner_id: str, casal_id: str) -> None:
        """Soft-delete the casal; its photo is removed from the media host if possible."""
        scope = ResourceScope.owned_by(owner_id)
        existing = self._repository.get(casal_id, scope)
        if existing is None:
            raise NotFoundError("Casal não encontrado")
        if not self._repository.soft_delete(casal_id, scope):
            raise NotFoundError("Casal não encontrado")
        destroy_quietly(self._media, existing.public_id)

    def _upload(self, image: ImageUpload) -> MediaRef:
        if image_extension(image.filename, image.content_type) is None:
            raise InvalidInputError("Formato de imagem não suportado.")
        if not image.data:
            raise InvalidInputError("Imagem vazia.")
        ref = self._media.upload(image.data, filename=image.filename, content_type=image.content_type)
        logger.info("uploaded image %s", ref.public_id)
        return ref


class CasalSimpleService:
    def __init__(self, repository: CasalSimpleRepository) -> None:
        self._repository = repository

    def list_casais(self, owner_id: str, page: PageRequest, search: str | None = None) -> Page[CasalSimple]:
        return self._repository.list_page(ResourceScope.owned_by(owner_id), page, search)

    def add_casal(self, owner_id: str, fields: CasalSimpleFields) -> CasalSimple:
        name = (fields.name or "").strip()
        if not name or fields.age is None:
            raise InvalidInputError("Nome e idade são obrigatórios.")
        if fields.age < 0:
            raise InvalidInputError("Idade inválida.")
        return self._repository.insert(
            CasalSimple(id="", user_id=owner_id, name=name, age=fields.age, date=datetime.now(timezone.utc))
        )

    def update_casal(self, owner_id: str, casal_id: str, fields: CasalSimpleFields) -> CasalSimple:
        scope = ResourceScope.owned_by(owner_id)
        existing = self._repository.get(casal_id, scope)
        if existing is None:
            raise NotFoundError("Casal não encontrado")
        if fields.age is not None and fields.age < 0:
            raise InvalidInputError("Idade inválida.")
        merged = replace(
            existing,
            name=merge_truthy(existing.name, fields.name),
            age=merge_truthy(existing.age, fields.age),
        )
        updated = self._repository.update(merged, scope)
        if updated is None:
            raise NotFoundError("Casal não encontrado")
        return updated

    def delete_casal(self, owner_id: str, casal_id: str) -> None:
        if not self._repository.soft_delete(casal_id, ResourceScope.owned_by(owner_id)):
            raise NotFoundError("Casal não encontrado")
