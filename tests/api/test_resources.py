"""API resource tests."""

import pytest
from falcon.testing import TestClient


class TestServer:
    """Server-level endpoints."""

    def test_welcome(self, client: TestClient) -> None:
        result = client.simulate_get("/")
        assert result.status_code == 200
        assert result.json["postdb"] == "Welcome"
        assert result.json["cluster_id"] == "node-a"

    def test_uuids(self, client: TestClient) -> None:
        result = client.simulate_get("/_uuids", params={"count": 3})
        assert result.status_code == 200
        assert len(set(result.json["uuids"])) == 3

    def test_uuids_count_bounds(self, client: TestClient) -> None:
        assert client.simulate_get("/_uuids", params={"count": 0}).status_code == 400
        assert client.simulate_get("/_uuids", params={"count": 101}).status_code == 400

    def test_all_dbs_hides_reserved_collections(self, client: TestClient) -> None:
        client.simulate_put("/orders")
        client.simulate_post("/_replicate", json={"source": "orders", "target": "copy"})
        result = client.simulate_get("/_all_dbs")
        assert result.json == ["orders"]


class TestDatabases:
    """PUT/GET/DELETE/POST /{db}."""

    def test_create_with_declared_indexes(self, client: TestClient) -> None:
        result = client.simulate_put("/people", json={"indexes": {"email": "contact.email"}})
        assert result.status_code == 201
        assert result.json == {"ok": True, "indexes": {"email": "contact.email"}}

    def test_create_twice_is_412(self, orders: TestClient) -> None:
        result = orders.simulate_put("/orders")
        assert result.status_code == 412
        assert "already exists" in result.json["error"]

    def test_invalid_name_is_400(self, client: TestClient) -> None:
        assert client.simulate_put("/bad!name").status_code == 400

    def test_info(self, orders: TestClient) -> None:
        orders.simulate_put("/orders/a", json={"v": 1})
        orders.simulate_put("/orders/b", json={"v": 2})
        orders.simulate_delete("/orders/b")
        result = orders.simulate_get("/orders")
        assert result.status_code == 200
        assert result.json["db_name"] == "orders"
        assert result.json["doc_count"] == 1
        assert result.json["doc_del_count"] == 1
        assert result.json["update_seq"] == 3

    def test_drop(self, orders: TestClient) -> None:
        assert orders.simulate_delete("/orders").json == {"ok": True}
        assert orders.simulate_get("/orders").status_code == 404
        assert orders.simulate_delete("/orders").status_code == 404

    def test_post_generates_id(self, orders: TestClient) -> None:
        result = orders.simulate_post("/orders", json={"v": 1})
        assert result.status_code == 201
        doc_id = result.json["id"]
        assert orders.simulate_get(f"/orders/{doc_id}").json["v"] == 1

    def test_post_honours_given_id(self, orders: TestClient) -> None:
        result = orders.simulate_post("/orders", json={"_id": "given", "v": 1})
        assert result.json["id"] == "given"


class TestDocuments:
    """GET/PUT/DELETE /{db}/{doc_id}."""

    def test_put_get_delete(self, orders: TestClient) -> None:
        result = orders.simulate_put("/orders/o1", json={"v": 1, "_i1": "open"})
        assert result.status_code == 201
        assert result.json == {"ok": True, "id": "o1", "rev": "0-1"}

        doc = orders.simulate_get("/orders/o1").json
        assert doc == {"v": 1, "_id": "o1", "_rev": "0-1", "_i1": "open"}

        assert orders.simulate_delete("/orders/o1").status_code == 200
        assert orders.simulate_get("/orders/o1").status_code == 404
        # Tombstones can be deleted again.
        assert orders.simulate_delete("/orders/o1").status_code == 200

    def test_delete_unknown_is_404(self, orders: TestClient) -> None:
        assert orders.simulate_delete("/orders/nope").status_code == 404

    def test_invalid_body_or_id(self, orders: TestClient) -> None:
        assert orders.simulate_put("/orders/o1", json=[1, 2]).status_code == 400
        assert orders.simulate_put("/orders/_o1", json={}).status_code == 400

    def test_unknown_collection_is_404(self, client: TestClient) -> None:
        result = client.simulate_get("/ghosts/o1")
        assert result.status_code == 404
        assert result.json["error"] == "Collection not found: ghosts"


class TestAllDocs:
    def test_rows_and_bounds(self, orders: TestClient) -> None:
        for doc_id in ["c", "a", "b"]:
            orders.simulate_put(f"/orders/{doc_id}", json={"id": doc_id})
        result = orders.simulate_get("/orders/_all_docs")
        assert [r["id"] for r in result.json["rows"]] == ["a", "b", "c"]
        assert "doc" not in result.json["rows"][0]

        result = orders.simulate_get(
            "/orders/_all_docs",
            params={"startkey": '"b"', "endkey": "c", "include_docs": "true"},
        )
        rows = result.json["rows"]
        assert [r["key"] for r in rows] == ["b", "c"]
        assert rows[0]["doc"] == {"id": "b", "_id": "b", "_rev": "0-1"}

    def test_invalid_limit(self, orders: TestClient) -> None:
        assert orders.simulate_get("/orders/_all_docs", params={"limit": 0}).status_code == 400
        assert orders.simulate_get("/orders/_all_docs", params={"limit": "x"}).status_code == 400


class TestBulkDocs:
    def test_per_item_results(self, orders: TestClient) -> None:
        result = orders.simulate_post(
            "/orders/_bulk_docs",
            json={"docs": [{"_id": "a"}, {"_id": "bad id"}, {"_deleted": True}]},
        )
        assert result.status_code == 201
        assert result.json[0] == {"ok": True, "id": "a", "rev": "0-1"}
        assert result.json[1]["ok"] is False and result.json[1]["id"] == "bad id"
        assert result.json[2] == {"ok": False, "error": "missing or invalid _id"}

    def test_missing_docs(self, orders: TestClient) -> None:
        assert orders.simulate_post("/orders/_bulk_docs", json={"docs": []}).status_code == 400


class TestChanges:
    def test_feed_wire_format(self, orders: TestClient) -> None:
        orders.simulate_put("/orders/a", json={"v": 1})
        orders.simulate_put("/orders/b", json={"v": 2})
        orders.simulate_delete("/orders/a")

        result = orders.simulate_get("/orders/_changes", params={"include_docs": "true"})
        assert result.status_code == 200
        assert result.json["last_seq"] == 3
        assert result.json["results"] == [
            {
                "id": "b",
                "seq": 2,
                "deleted": False,
                "clusterid": "node-a",
                "changes": [{"rev": "0-1"}],
                "doc": {"v": 2, "_id": "b", "_rev": "0-1"},
            },
            {
                "id": "a",
                "seq": 3,
                "deleted": True,
                "clusterid": "node-a",
                "changes": [{"rev": "0-1"}],
                "doc": {"_id": "a", "_rev": "0-1", "_deleted": True},
            },
        ]

    def test_since_limit_and_exclude(self, orders: TestClient) -> None:
        orders.simulate_put("/orders/a", json={})
        orders.simulate_put("/orders/b", json={})
        result = orders.simulate_get("/orders/_changes", params={"since": 1, "limit": 5})
        assert [r["id"] for r in result.json["results"]] == ["b"]
        assert "doc" not in result.json["results"][0]

        result = orders.simulate_get("/orders/_changes", params={"exclude": "node-a"})
        assert result.json == {"results": [], "last_seq": 0}

    def test_longpoll_times_out_empty(self, orders: TestClient) -> None:
        result = orders.simulate_get(
            "/orders/_changes", params={"feed": "longpoll", "timeout": 20, "since": 0}
        )
        assert result.status_code == 200
        assert result.json == {"results": [], "last_seq": 0}

    @pytest.mark.parametrize(
        "params", [{"since": -1}, {"since": "x"}, {"limit": 0}, {"feed": "continuous"}]
    )
    def test_invalid_parameters(self, orders: TestClient, params: dict) -> None:
        assert orders.simulate_get("/orders/_changes", params=params).status_code == 400


class TestQuery:
    def test_key_and_range(self, orders: TestClient) -> None:
        orders.simulate_put("/orders/o1", json={"_i1": "open", "amount": 5})
        orders.simulate_put("/orders/o2", json={"_i1": "open", "amount": 7})
        orders.simulate_put("/orders/o3", json={"_i1": "closed"})

        result = orders.simulate_post("/orders/_query", json={"index": "i1", "key": "open"})
        assert result.status_code == 200
        assert [d["_id"] for d in result.json["docs"]] == ["o1", "o2"]
        assert result.json["docs"][0]["_i1"] == "open"

        result = orders.simulate_post(
            "/orders/_query", json={"index": "i1", "startkey": "a", "endkey": "c"}
        )
        assert [d["_id"] for d in result.json["docs"]] == ["o3"]

    @pytest.mark.parametrize(
        "body",
        [
            {"key": "open"},
            {"index": "i1"},
            {"index": "i1", "key": "a", "startkey": "a"},
            {"index": "nope", "key": "a"},
            {"index": "i1", "key": "a", "limit": 0},
        ],
    )
    def test_invalid_queries(self, orders: TestClient, body: dict) -> None:
        assert orders.simulate_post("/orders/_query", json=body).status_code == 400


class TestPurge:
    def test_purge_removes_from_feed(self, orders: TestClient) -> None:
        orders.simulate_put("/orders/a", json={})
        orders.simulate_put("/orders/b", json={})
        result = orders.simulate_post("/orders/_purge", json={"a": ["0-1"], "zz": ["0-1"]})
        assert result.status_code == 201
        assert result.json["purged"] == {"a": ["0-1"]}
        changes = orders.simulate_get("/orders/_changes").json["results"]
        assert [c["id"] for c in changes] == ["b"]

    def test_empty_request(self, orders: TestClient) -> None:
        assert orders.simulate_post("/orders/_purge", json={}).status_code == 400


class TestReplicate:
    def test_submit_get_and_cancel(self, orders: TestClient) -> None:
        body = {"source": "http://node-b:5984/orders", "target": "orders", "continuous": True}
        result = orders.simulate_post("/_replicate", json=body)
        assert result.status_code == 202
        job = result.json
        assert job["state"] == "new"
        assert job["exclude"] == "node-a"
        assert job["continuous"] is True

        again = orders.simulate_post("/_replicate", json=body)
        assert again.json["id"] == job["id"]

        fetched = orders.simulate_get(f"/_replicate/{job['id']}")
        assert fetched.status_code == 200
        assert fetched.json["source"] == body["source"]

        cancelled = orders.simulate_post("/_replicate", json={**body, "cancel": True})
        assert cancelled.status_code == 200
        assert cancelled.json["state"] == "cancelled"

    def test_missing_fields_and_unknown_job(self, client: TestClient) -> None:
        assert client.simulate_post("/_replicate", json={"source": "a"}).status_code == 400
        assert client.simulate_get("/_replicate/" + "0" * 32).status_code == 404
