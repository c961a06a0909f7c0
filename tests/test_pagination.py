import pytest

from pixelshelf.utils.pagination import Page, page_offset, paginate, total_pages


@pytest.mark.parametrize("page,limit,offset", [(1, 10, 0), (2, 10, 10), (5, 20, 80)])
def test_page_offset(page, limit, offset):
    assert page_offset(page, limit) == offset
    assert Page(page, limit).offset == offset


@pytest.mark.parametrize("total,limit,pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (95, 20, 5)])
def test_total_pages(total, limit, pages):
    assert total_pages(total, limit) == pages


def test_paginate_override_pages():
    pagination = paginate(1, 10, 0, pages=1)
    assert pagination.total_pages == 1
    assert pagination.model_dump(by_alias=True) == {"page": 1, "limit": 10, "totalCount": 0, "totalPages": 1}


def test_listing_defaults(client, make_user):
    alice = make_user("alice")
    assert client.get("/api/assets").json()["pagination"]["limit"] == 10
    assert client.get("/api/notifications", headers=alice.headers).json()["pagination"]["limit"] == 20


def test_listing_rejects_non_numeric_page(client):
    resp = client.get("/api/projects?page=abc")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid request data"
