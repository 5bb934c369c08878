"""runQuery endpoint."""

from collections.abc import Callable

import pytest
from httpx import AsyncClient

from tests.conftest import PROJECT

DB_URL = f"/v1/projects/{PROJECT}/databases/(default)"


async def _seed(client: AsyncClient, headers: dict[str, str]) -> None:
    for name, age in (("Ada", 36), ("Bob", 25), ("Cy", 41)):
        response = await client.post(
            f"{DB_URL}/documents/people",
            headers=headers,
            json={"fields": {"name": {"stringValue": name}, "age": {"integerValue": str(age)}}},
        )
        assert response.status_code == 201


async def test_run_query(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    headers = auth_headers("alice")
    await _seed(client, headers)
    response = await client.post(
        f"{DB_URL}/documents:runQuery",
        headers=headers,
        json={
            "structuredQuery": {
                "from": [{"collectionId": "people"}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "age"},
                        "op": "GREATER_THAN",
                        "value": {"integerValue": "30"},
                    }
                },
                "orderBy": [{"field": {"fieldPath": "age"}, "direction": "DESCENDING"}],
            }
        },
    )
    assert response.status_code == 200
    results = response.json()
    assert [r["document"]["fields"]["name"]["stringValue"] for r in results] == ["Cy", "Ada"]
    assert results[0]["readTime"].endswith("Z")


async def test_run_query_requires_structured_query(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.post(f"{DB_URL}/documents:runQuery", headers=auth_headers("alice"), json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing structuredQuery in request body"


async def test_run_query_unsupported_operator(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.post(
        f"{DB_URL}/documents:runQuery",
        headers=auth_headers("alice"),
        json={
            "structuredQuery": {
                "from": [{"collectionId": "people"}],
                "where": {
                    "fieldFilter": {"field": {"fieldPath": "age"}, "op": "LIKE", "value": {"stringValue": "x"}}
                },
            }
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid where clause: Unsupported filter operator: LIKE"


@pytest.mark.parametrize(
    ("structured_query", "error"),
    [
        (
            {
                "from": [{"collectionId": "people"}],
                "where": {"fieldFilter": {"field": "age", "op": "EQUAL", "value": {"integerValue": "1"}}},
            },
            "Invalid where clause: fieldFilter.field must be an object",
        ),
        (
            {"from": [{"collectionId": "people"}], "where": {"fieldFilter": "age == 1"}},
            "Invalid where clause: fieldFilter must be an object",
        ),
        (
            {"from": [{"collectionId": "people"}], "where": {"compositeFilter": ["AND"]}},
            "Invalid where clause: compositeFilter must be an object",
        ),
        (
            {
                "from": [{"collectionId": "people"}],
                "where": {"compositeFilter": {"op": "AND", "filters": "age"}},
            },
            "Invalid where clause: compositeFilter.filters must be an array",
        ),
        (
            {
                "from": [{"collectionId": "people"}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "when"},
                        "op": "EQUAL",
                        "value": {"timestampValue": 12},
                    }
                },
            },
            None,
        ),
        ({"from": ["people"]}, "Invalid 'from' clause: expected {\"collectionId\": ...}"),
        (
            {"from": [{"collectionId": "people"}], "orderBy": ["age"]},
            'Invalid orderBy clause: expected {"field": {"fieldPath": ...}}',
        ),
    ],
)
async def test_run_query_malformed_clauses_are_bad_requests(
    client: AsyncClient,
    auth_headers: Callable[..., dict[str, str]],
    structured_query: dict,
    error: str | None,
) -> None:
    """Clauses of the wrong JSON shape are 400s, never server errors."""
    response = await client.post(
        f"{DB_URL}/documents:runQuery",
        headers=auth_headers("alice"),
        json={"structuredQuery": structured_query},
    )
    assert response.status_code == 400
    body = response.json()
    if error is None:
        assert body["error"].startswith("Invalid where clause: Invalid filter value")
    else:
        assert body["error"] == error


async def test_run_query_equality_order_and_limit(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    """EQUAL selects matching documents; orderBy and limit pick the newest two."""
    headers = auth_headers("alice")
    for source_id, timestamp in (
        ("12345", "2024-01-01T10:00:00Z"),
        ("12345", "2024-01-03T10:00:00Z"),
        ("99999", "2024-01-04T10:00:00Z"),
        ("12345", "2024-01-02T10:00:00Z"),
    ):
        response = await client.post(
            f"{DB_URL}/documents/readings",
            headers=headers,
            json={
                "fields": {
                    "sourceId": {"stringValue": source_id},
                    "timestamp": {"timestampValue": timestamp},
                }
            },
        )
        assert response.status_code == 201

    where = {
        "fieldFilter": {
            "field": {"fieldPath": "sourceId"},
            "op": "EQUAL",
            "value": {"stringValue": "12345"},
        }
    }
    response = await client.post(
        f"{DB_URL}/documents:runQuery",
        headers=headers,
        json={"structuredQuery": {"from": [{"collectionId": "readings"}], "where": where}},
    )
    assert response.status_code == 200
    assert len(response.json()) == 3

    response = await client.post(
        f"{DB_URL}/documents:runQuery",
        headers=headers,
        json={
            "structuredQuery": {
                "from": [{"collectionId": "readings"}],
                "where": where,
                "orderBy": [{"field": {"fieldPath": "timestamp"}, "direction": "DESCENDING"}],
                "limit": 2,
            }
        },
    )
    assert response.status_code == 200
    timestamps = [r["document"]["fields"]["timestamp"]["timestampValue"] for r in response.json()]
    assert timestamps == ["2024-01-03T10:00:00Z", "2024-01-02T10:00:00Z"]
