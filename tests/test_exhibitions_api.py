"""Tests for exhibition endpoints."""

import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from gallery_api.exceptions import NotFoundError
from gallery_api.models import Exhibition, ExhibitionPhoto
from gallery_api.services.exhibition_service import ExhibitionService


async def count_rows(db_session, model, *criteria) -> int:
    result = await db_session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_exhibition(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/admin/exhibitions",
        json={"title": "Autumn Rooms", "date": "2024-10-03", "location": "Porto"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    exhibition = response.json()["exhibition"]
    assert exhibition["title"] == "Autumn Rooms"
    assert exhibition["date"] == "2024-10-03"
    assert exhibition["order"] == 1
    assert exhibition["photos"] == []


@pytest.mark.asyncio
async def test_create_exhibition_requires_date(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/admin/exhibitions", json={"title": "Undated"}, headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_new_exhibition_ranked_first(client: AsyncClient, sample_exhibition, admin_headers: dict):
    response = await client.post(
        "/api/admin/exhibitions",
        json={"title": "Later Show", "date": "2020-01-01"},
        headers=admin_headers,
    )
    new_id = response.json()["exhibition"]["id"]

    response = await client.get("/api/exhibitions")

    assert response.json()["exhibitions"][0]["id"] == new_id


@pytest.mark.asyncio
async def test_list_exhibitions_with_photos(client: AsyncClient, sample_exhibition):
    response = await client.get("/api/exhibitions")

    assert response.status_code == 200
    exhibitions = response.json()["exhibitions"]
    assert len(exhibitions) == 1
    photos = exhibitions[0]["photos"]
    assert [p["order"] for p in photos] == [3, 2, 1]
    assert photos[0]["exhibitionId"] == exhibitions[0]["id"]


@pytest.mark.asyncio
async def test_list_exhibitions_sorted_by_date_within_rank(client: AsyncClient, db_session):
    db_session.add_all([
        Exhibition(title="Old", date=datetime.date(2019, 5, 1), order=0),
        Exhibition(title="New", date=datetime.date(2024, 5, 1), order=0),
    ])
    await db_session.commit()

    response = await client.get("/api/exhibitions")
    assert [e["title"] for e in response.json()["exhibitions"]] == ["New", "Old"]

    response = await client.get("/api/exhibitions", params={"sortOrder": "asc"})
    assert [e["title"] for e in response.json()["exhibitions"]] == ["Old", "New"]


@pytest.mark.asyncio
async def test_update_exhibition(client: AsyncClient, sample_exhibition, admin_headers: dict):
    exhibition_id = sample_exhibition.id

    response = await client.put(
        f"/api/admin/exhibitions/{exhibition_id}",
        json={"location": "Madrid", "date": None},
        headers=admin_headers,
    )

    assert response.status_code == 200
    exhibition = response.json()["exhibition"]
    assert exhibition["location"] == "Madrid"
    assert exhibition["date"] == "2024-04-12"
    assert len(exhibition["photos"]) == 3


@pytest.mark.asyncio
async def test_delete_exhibition_cascades_photos(
    client: AsyncClient, db_session, admin_headers: dict
):
    exhibition = Exhibition(title="Two Photos", date=datetime.date(2022, 2, 2), order=1)
    db_session.add(exhibition)
    await db_session.flush()
    db_session.add_all([
        ExhibitionPhoto(exhibition_id=exhibition.id, image_url=f"/uploads/e/{i}.webp", order=i)
        for i in (1, 2)
    ])
    await db_session.commit()
    exhibition_id = exhibition.id

    response = await client.delete(f"/api/admin/exhibitions/{exhibition_id}", headers=admin_headers)

    assert response.status_code == 200
    assert await count_rows(db_session, ExhibitionPhoto, ExhibitionPhoto.exhibition_id == exhibition_id) == 0
    assert await count_rows(db_session, Exhibition, Exhibition.id == exhibition_id) == 0

    response = await client.get(f"/api/exhibitions/{exhibition_id}")
    assert response.status_code == 404

    with pytest.raises(NotFoundError):
        await ExhibitionService(db_session).get_exhibition(exhibition_id)


@pytest.mark.asyncio
async def test_upload_photos(
    client: AsyncClient, sample_exhibition, admin_headers: dict, image_storage, png_bytes: bytes
):
    exhibition_id = sample_exhibition.id

    response = await client.post(
        f"/api/admin/exhibitions/{exhibition_id}/photos",
        files=[
            ("photos", ("one.png", png_bytes, "image/png")),
            ("photos", ("two.png", png_bytes, "image/png")),
        ],
        data={"titles": ["Entrance", "Main hall"]},
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["errors"] is None
    photos = data["photos"]
    assert [p["order"] for p in photos] == [4, 5]
    assert [p["title"] for p in photos] == ["Entrance", "Main hall"]
    for photo in photos:
        assert photo["imageUrl"].startswith(f"/uploads/exhibitions/{exhibition_id}/")
        assert image_storage.path_for(photo["imageUrl"]).exists()

    response = await client.get(f"/api/exhibitions/{exhibition_id}")
    assert len(response.json()["exhibition"]["photos"]) == 5


@pytest.mark.asyncio
async def test_upload_photos_single_title_applies_to_all(
    client: AsyncClient, sample_exhibition, admin_headers: dict, png_bytes: bytes
):
    response = await client.post(
        f"/api/admin/exhibitions/{sample_exhibition.id}/photos",
        files=[
            ("photos", ("one.png", png_bytes, "image/png")),
            ("photos", ("two.png", png_bytes, "image/png")),
        ],
        data={"titles": "Opening night"},
        headers=admin_headers,
    )

    assert [p["title"] for p in response.json()["photos"]] == ["Opening night", "Opening night"]


@pytest.mark.asyncio
async def test_upload_photos_rejects_batch_with_non_image(
    client: AsyncClient, db_session, sample_exhibition, admin_headers: dict, png_bytes: bytes
):
    exhibition_id = sample_exhibition.id

    response = await client.post(
        f"/api/admin/exhibitions/{exhibition_id}/photos",
        files=[
            ("photos", ("one.png", png_bytes, "image/png")),
            ("photos", ("notes.txt", b"plain text", "text/plain")),
        ],
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["index"] == 1
    assert await count_rows(db_session, ExhibitionPhoto, ExhibitionPhoto.exhibition_id == exhibition_id) == 3


@pytest.mark.asyncio
async def test_upload_photos_partial_storage_failure(
    client: AsyncClient, sample_exhibition, admin_headers: dict, image_storage, png_bytes: bytes, monkeypatch
):
    original_save = image_storage.save
    calls = []

    async def flaky_save(content, folder, extension):
        calls.append(folder)
        if len(calls) == 2:
            raise OSError("disk full")
        return await original_save(content, folder, extension)

    monkeypatch.setattr(image_storage, "save", flaky_save)

    response = await client.post(
        f"/api/admin/exhibitions/{sample_exhibition.id}/photos",
        files=[
            ("photos", ("one.png", png_bytes, "image/png")),
            ("photos", ("two.png", png_bytes, "image/png")),
        ],
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["photos"]) == 1
    assert data["errors"] == [{"filename": "two.png", "error": "disk full"}]


@pytest.mark.asyncio
async def test_upload_photos_all_failed(
    client: AsyncClient, db_session, sample_exhibition, admin_headers: dict, image_storage, png_bytes: bytes, monkeypatch
):
    exhibition_id = sample_exhibition.id

    async def broken_save(content, folder, extension):
        raise OSError("disk full")

    monkeypatch.setattr(image_storage, "save", broken_save)

    response = await client.post(
        f"/api/admin/exhibitions/{exhibition_id}/photos",
        files=[("photos", ("one.png", png_bytes, "image/png"))],
        headers=admin_headers,
    )

    assert response.status_code == 500
    data = response.json()
    assert data["detail"] == "All uploads failed"
    assert data["errors"] == [{"filename": "one.png", "error": "disk full"}]
    assert await count_rows(db_session, ExhibitionPhoto, ExhibitionPhoto.exhibition_id == exhibition_id) == 3


@pytest.mark.asyncio
async def test_delete_photo(client: AsyncClient, db_session, sample_exhibition, admin_headers: dict):
    exhibition_id = sample_exhibition.id
    response = await client.get(f"/api/exhibitions/{exhibition_id}")
    photo_id = response.json()["exhibition"]["photos"][0]["id"]

    response = await client.delete(
        f"/api/admin/exhibitions/{exhibition_id}/photos/{photo_id}", headers=admin_headers
    )

    assert response.status_code == 200
    assert await count_rows(db_session, ExhibitionPhoto, ExhibitionPhoto.id == photo_id) == 0


@pytest.mark.asyncio
async def test_delete_photo_of_other_exhibition(
    client: AsyncClient, sample_exhibition, admin_headers: dict
):
    response = await client.get(f"/api/exhibitions/{sample_exhibition.id}")
    photo_id = response.json()["exhibition"]["photos"][0]["id"]

    response = await client.delete(
        f"/api/admin/exhibitions/{sample_exhibition.id + 1}/photos/{photo_id}", headers=admin_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_blank_exhibition_title_rejected(client: AsyncClient, sample_exhibition, admin_headers: dict):
    exhibition_id = sample_exhibition.id

    response = await client.post(
        "/api/admin/exhibitions", json={"title": "  ", "date": "2024-10-03"}, headers=admin_headers
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/admin/exhibitions/{exhibition_id}", json={"title": "   "}, headers=admin_headers
    )
    assert response.status_code == 400

    response = await client.get(f"/api/exhibitions/{exhibition_id}")
    assert response.json()["exhibition"]["title"] == "Spring Salon"
