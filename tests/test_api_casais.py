from __future__ import annotations

import logging

import pytest

from casais.media import InMemoryMediaBridge, MediaError

PNG = ("foto.png", b"\x89PNG fake image bytes", "image/png")


def _add(api, headers, name="Ana e João", files=None, **fields):
    response = api.client.post("/add-casal", data={"name": name, **fields}, files=files, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["casal"]


class FailingMedia(InMemoryMediaBridge):
    def upload(self, data, *, filename, content_type):
        raise MediaError("media host down")


class UndeletableMedia(InMemoryMediaBridge):
    def destroy(self, public_id):
        raise MediaError("cannot delete")


def test_get_casal_without_bearer(api):
    response = api.client.get("/get-casal")
    assert response.status_code == 401
    assert response.json()["status"] is False


def test_add_casal_with_photo(api):
    headers, account_id = api.signup("ana")
    casal = _add(api, headers, desc="Amigos", niverH="1990-01-02", niverM="1991-03-04", tel="1199", files={"image": PNG})

    assert casal["niverH"] == "1990-01-02"
    assert casal["niverM"] == "1991-03-04"
    assert casal["image"].startswith("https://media.example.test/casais_app/")
    assert casal["public_id"] in api.media.stored_objects

    stored = api.casais.records[casal["id"]]
    assert stored.user_id == account_id
    assert stored.is_delete is False


def test_add_casal_accepts_file_field(api):
    headers, _ = api.signup("ana")
    casal = _add(api, headers, files={"file": ("foto.JPG", b"jpeg", "image/jpeg")})
    assert casal["public_id"].endswith(".jpg")


def test_add_casal_without_photo(api):
    headers, _ = api.signup("ana")
    casal = _add(api, headers)
    assert casal["image"] == ""
    assert casal["public_id"] == ""


def test_add_casal_requires_name(api):
    headers, _ = api.signup("ana")
    response = api.client.post("/add-casal", data={"desc": "sem nome"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"status": False, "errorMessage": "Nome é obrigatório."}


def test_add_casal_rejects_unsupported_format(api):
    headers, _ = api.signup("ana")
    response = api.client.post(
        "/add-casal",
        data={"name": "Ana"},
        files={"image": ("doc.pdf", b"%PDF", "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 400
    assert api.casais.records == {}


def test_add_casal_appends_name_history(api):
    headers, account_id = api.signup("ana")
    _add(api, headers, name="Ana e João")
    _add(api, headers, name="Ana e João")
    _add(api, headers, name="Bia e Caio")
    assert api.accounts.get_account(account_id).name_history == ["Ana e João", "Bia e Caio"]


def test_upload_failure_aborts_create(make_api):
    harness = make_api(media=FailingMedia())
    with harness.client:
        headers, _ = harness.signup("ana")
        response = harness.client.post("/add-casal", data={"name": "Ana"}, files={"image": PNG}, headers=headers)
    assert response.status_code == 500
    assert response.json() == {"status": False, "errorMessage": "Erro ao adicionar casal."}
    assert harness.casais.records == {}


def test_pagination(api):
    headers, _ = api.signup("ana")
    for idx in range(12):
        _add(api, headers, name=f"Casal {idx:02d}")

    response = api.client.get("/get-casal", params={"page": 2, "perPage": 5}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] is True
    assert len(body["casal"]) == 5
    assert [item["name"] for item in body["casal"]] == [f"Casal {idx:02d}" for idx in range(5, 10)]
    assert body["current_page"] == 2
    assert body["total"] == 12
    assert body["pages"] == 3


def test_pagination_defaults_for_bad_values(api):
    headers, _ = api.signup("ana")
    for idx in range(7):
        _add(api, headers, name=f"Casal {idx}")
    body = api.client.get("/get-casal", params={"page": "zero", "perPage": "many"}, headers=headers).json()
    assert body["current_page"] == 1
    assert len(body["casal"]) == 5
    assert body["pages"] == 2


def test_search_is_case_insensitive_substring(api):
    headers, _ = api.signup("ana")
    _add(api, headers, name="Ana e João")
    _add(api, headers, name="Bia e Caio")
    body = api.client.get("/get-casal", params={"search": "JOÃO"}, headers=headers).json()
    assert [item["name"] for item in body["casal"]] == ["Ana e João"]
    assert body["total"] == 1


def test_empty_listing_is_not_found(api):
    headers, _ = api.signup("ana")
    response = api.client.get("/get-casal", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"status": False, "errorMessage": "Não há Casais cadastrados!"}


def test_ownership_isolation(api):
    headers_a, _ = api.signup("ana")
    headers_b, _ = api.signup("beto")
    casal = _add(api, headers_a, name="Privado")

    assert api.client.get("/get-casal", headers=headers_b).status_code == 404
    assert api.client.get("/get-casal", params={"search": "Privado"}, headers=headers_b).status_code == 404

    update = api.client.put(f"/update-casal/{casal['id']}", data={"name": "Invadido"}, headers=headers_b)
    assert update.status_code == 404
    delete = api.client.delete(f"/delete-casal/{casal['id']}", headers=headers_b)
    assert delete.status_code == 404

    stored = api.casais.records[casal["id"]]
    assert stored.name == "Privado"
    assert stored.is_delete is False


def test_partial_update_keeps_other_fields(api):
    headers, _ = api.signup("ana")
    casal = _add(api, headers, name="Ana", desc="antes", tel="1199", files={"image": PNG})

    response = api.client.put(f"/update-casal/{casal['id']}", data={"desc": "depois"}, headers=headers)
    assert response.status_code == 200
    updated = response.json()["casal"]
    assert updated["desc"] == "depois"
    assert updated["name"] == "Ana"
    assert updated["tel"] == "1199"
    assert updated["image"] == casal["image"]


def test_update_cannot_clear_fields_with_empty_values(api):
    headers, _ = api.signup("ana")
    casal = _add(api, headers, name="Ana", tel="1199")
    response = api.client.put(f"/update-casal/{casal['id']}", data={"tel": ""}, headers=headers)
    assert response.status_code == 200
    assert response.json()["casal"]["tel"] == "1199"


def test_update_replaces_photo_and_destroys_old_one(api):
    headers, _ = api.signup("ana")
    casal = _add(api, headers, files={"image": PNG})

    response = api.client.put(
        f"/update-casal/{casal['id']}",
        files={"image": ("nova.jpeg", b"jpeg bytes", "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 200
    updated = response.json()["casal"]
    assert updated["public_id"] != casal["public_id"]
    assert casal["public_id"] in api.media.destroyed
    assert updated["public_id"] in api.media.stored_objects


def test_update_survives_failed_old_photo_deletion(make_api, caplog):
    harness = make_api(media=UndeletableMedia())
    with harness.client:
        headers, _ = harness.signup("ana")
        casal = _add(harness, headers, files={"image": PNG})
        with caplog.at_level(logging.WARNING, logger="casais.media"):
            response = harness.client.put(
                f"/update-casal/{casal['id']}", files={"image": PNG}, headers=headers
            )
    assert response.status_code == 200
    assert response.json()["casal"]["public_id"] != casal["public_id"]
    assert "could not delete old image" in caplog.text


def test_update_unknown_casal(api):
    headers, _ = api.signup("ana")
    response = api.client.put("/update-casal/missing", data={"name": "x"}, headers=headers)
    assert response.status_code == 404
    assert response.json()["errorMessage"] == "Casal não encontrado"


def test_soft_delete_hides_but_keeps_record(api):
    headers, _ = api.signup("ana")
    keep = _add(api, headers, name="Fica")
    gone = _add(api, headers, name="Sai", desc="desc", tel="1199", files={"image": PNG})

    response = api.client.delete(f"/delete-casal/{gone['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] is True

    listing = api.client.get("/get-casal", headers=headers).json()
    assert [item["id"] for item in listing["casal"]] == [keep["id"]]
    assert listing["total"] == 1

    stored = api.casais.records[gone["id"]]
    assert stored.is_delete is True
    assert (stored.name, stored.desc, stored.tel) == ("Sai", "desc", "1199")
    assert stored.image == gone["image"]
    assert stored.public_id == gone["public_id"]
    assert gone["public_id"] in api.media.destroyed


def test_deleted_casal_cannot_be_updated_or_deleted_again(api):
    headers, _ = api.signup("ana")
    casal = _add(api, headers)
    assert api.client.delete(f"/delete-casal/{casal['id']}", headers=headers).status_code == 200
    assert api.client.delete(f"/delete-casal/{casal['id']}", headers=headers).status_code == 404
    assert api.client.put(f"/update-casal/{casal['id']}", data={"name": "x"}, headers=headers).status_code == 404


def test_delete_survives_failed_photo_deletion(make_api):
    harness = make_api(media=UndeletableMedia())
    with harness.client:
        headers, _ = harness.signup("ana")
        casal = _add(harness, headers, files={"image": PNG})
        response = harness.client.delete(f"/delete-casal/{casal['id']}", headers=headers)
    assert response.status_code == 200
    assert harness.casais.records[casal["id"]].is_delete is True


@pytest.mark.parametrize("header", ["Authorization", "token"])
def test_casal_routes_accept_both_header_forms(api, header):
    headers, _ = api.signup("ana")
    token = headers["Authorization"].split(" ", 1)[1]
    _add(api, headers)
    value = f"Bearer {token}" if header == "Authorization" else token
    assert api.client.get("/get-casal", headers={header: value}).status_code == 200


class FlakyMedia(InMemoryMediaBridge):
    fail_uploads = False

    def upload(self, data, *, filename, content_type):
        if self.fail_uploads:
            raise MediaError("media host down")
        return super().upload(data, filename=filename, content_type=content_type)


def test_upload_failure_aborts_update(make_api):
    media = FlakyMedia()
    harness = make_api(media=media)
    with harness.client:
        headers, _ = harness.signup("ana")
        casal = _add(harness, headers, tel="1", files={"image": PNG})
        media.fail_uploads = True
        response = harness.client.put(
            f"/update-casal/{casal['id']}", data={"tel": "2"}, files={"image": PNG}, headers=headers
        )
    assert response.status_code == 500
    assert response.json() == {"status": False, "errorMessage": "Erro ao atualizar casal."}
    stored = harness.casais.records[casal["id"]]
    assert stored.tel == "1"
    assert stored.public_id == casal["public_id"]
    assert casal["public_id"] in media.stored_objects


def test_failed_update_keeps_old_photo_and_drops_new_upload(make_api, monkeypatch):
    harness = make_api(raise_server_exceptions=False)
    with harness.client:
        headers, _ = harness.signup("ana")
        casal = _add(harness, headers, files={"image": PNG})

        def broken_update(record, scope):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(harness.casais, "update", broken_update)
        response = harness.client.put(f"/update-casal/{casal['id']}", files={"image": PNG}, headers=headers)

    assert response.status_code == 500
    assert harness.casais.records[casal["id"]].public_id == casal["public_id"]
    assert casal["public_id"] in harness.media.stored_objects
    assert casal["public_id"] not in harness.media.destroyed
    assert len(harness.media.destroyed) == 1
    assert list(harness.media.stored_objects) == [casal["public_id"]]


def test_failed_soft_delete_keeps_photo(make_api, monkeypatch):
    harness = make_api(raise_server_exceptions=False)
    with harness.client:
        headers, _ = harness.signup("ana")
        casal = _add(harness, headers, files={"image": PNG})

        def broken_soft_delete(resource_id, scope):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(harness.casais, "soft_delete", broken_soft_delete)
        response = harness.client.delete(f"/delete-casal/{casal['id']}", headers=headers)

    assert response.status_code == 500
    assert harness.casais.records[casal["id"]].is_delete is False
    assert casal["public_id"] in harness.media.stored_objects
    assert harness.media.destroyed == []
