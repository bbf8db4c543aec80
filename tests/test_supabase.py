import pytest

from espacos.config import Settings
from espacos.errors import GatewayError
from espacos.supabase import MediaStorage, SpacesGateway, default_gateways, make_client


class APIError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


def test_insert_returns_created_row(fake_client):
    client = fake_client(data=[{"id": "s1", "name": "A"}])
    assert SpacesGateway(client).insert({"name": "A"}) == {"id": "s1", "name": "A"}
    table, ops = client.log[0]
    assert table == "spaces" and ops[0][0] == "insert"


def test_errors_are_wrapped_verbatim(fake_client):
    client = fake_client(error=APIError("new row violates row-level security policy"))
    gw = SpacesGateway(client)
    with pytest.raises(GatewayError) as exc:
        gw.insert({"name": "A"})
    assert exc.value.message == "new row violates row-level security policy"
    for call in (lambda: gw.delete("s1"), lambda: gw.select_all(), lambda: gw.select_by_id("s1")):
        with pytest.raises(GatewayError):
            call()


def test_update_filters_by_id(fake_client):
    client = fake_client(data=[{"id": "s1", "rating": 5}])
    assert SpacesGateway(client, "spaces").update("s1", {"rating": 5})["rating"] == 5
    _, ops = client.log[0]
    assert [o[0] for o in ops] == ["update", "eq"]
    assert ops[1][1] == ("id", "s1")


def test_update_missing_row(fake_client):
    with pytest.raises(GatewayError):
        SpacesGateway(fake_client(data=[])).update("nope", {"rating": 1})


def test_select_by_id_and_all(fake_client):
    assert SpacesGateway(fake_client(data=[])).select_by_id("x") is None
    client = fake_client(data=[{"id": "b"}, {"id": "a"}])
    assert [r["id"] for r in SpacesGateway(client).select_all()] == ["b", "a"]
    _, ops = client.log[0]
    assert ("order", ("created_at",), {"desc": True}) in ops


def test_storage_upload_and_remove(fake_client):
    client = fake_client()
    store = MediaStorage(client, "spaces")
    url = store.upload("u1/1-a.png", b"x", "image/png")
    assert url == "https://demo.supabase.co/storage/v1/object/public/spaces/u1/1-a.png"
    assert client.log[0][3]["upsert"] == "false"
    store.remove("u1/1-a.png")
    assert client.log[-1] == ("remove", "spaces", ["u1/1-a.png"])


def test_storage_errors_wrapped(fake_client):
    store = MediaStorage(fake_client(error=RuntimeError("Bucket not found")))
    with pytest.raises(GatewayError, match="Bucket not found"):
        store.upload("p", b"x", "image/png")


def test_make_client_builds_a_fresh_client_each_call(fake_client, monkeypatch):
    monkeypatch.setattr("espacos.supabase.create_client", lambda url, key: fake_client())
    settings = Settings(supabase_url="https://demo.supabase.co", supabase_key="anon",
                        spaces_table="places", media_bucket="photos")
    a, b = make_client(settings), make_client(settings)
    assert a is not b
    gw, store = default_gateways(a, settings)
    assert gw.table == "places" and store.bucket == "photos"
    with pytest.raises(RuntimeError):
        make_client(Settings())
