import pytest


async def _create(api_client, **fields) -> int:
    resp = await api_client.post("/users", json=fields)
    assert resp.status_code == 200
    assert resp.json() == {}
    return int(resp.headers["location"].rsplit("/", 1)[-1])


async def test_responses_include_x_request_id(api_client) -> None:
    resp = await api_client.get("/users")
    assert resp.status_code == 200
    assert resp.headers.get("x-request-id")


async def test_create_then_get_returns_same_fields(api_client) -> None:
    user_id = await _create(api_client, Firstname="Ada", Lastname="Lovelace", Occupation="Mathematician")

    resp = await api_client.get(f"/users/{user_id}")
    assert resp.status_code == 200
    assert resp.json() == {
        "ID": user_id,
        "Firstname": "Ada",
        "Lastname": "Lovelace",
        "Occupation": "Mathematician",
    }


async def test_get_response_is_indented_json(api_client) -> None:
    user_id = await _create(api_client, Firstname="Ada")
    resp = await api_client.get(f"/users/{user_id}")
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.text.startswith('{\n "ID": ')


async def test_create_ignores_client_supplied_id_and_fills_missing_fields(api_client) -> None:
    user_id = await _create(api_client, ID=999, Firstname="Grace")
    assert user_id != 999

    payload = (await api_client.get(f"/users/{user_id}")).json()
    assert payload["Firstname"] == "Grace"
    assert payload["Lastname"] == ""
    assert payload["Occupation"] == ""


async def test_ids_start_at_one(api_client) -> None:
    assert await _create(api_client, Firstname="First") == 1


async def test_get_unknown_id_returns_empty_object(api_client) -> None:
    resp = await api_client.get("/users/987654321")
    assert resp.status_code == 200
    assert resp.json() == {}


async def test_get_non_integer_id_returns_404(api_client) -> None:
    resp = await api_client.get("/users/abc")
    assert resp.status_code == 404
    assert resp.text == "Invalid User ID"


async def test_get_id_beyond_64_bits_is_invalid(api_client) -> None:
    resp = await api_client.get(f"/users/{2**64}")
    assert resp.status_code == 404


async def test_list_matches_row_count(api_client, store) -> None:
    empty = await api_client.get("/users")
    assert empty.json() == {"Users": []}

    for name in ("a", "b", "c"):
        await _create(api_client, Firstname=name)

    resp = await api_client.get("/users")
    assert resp.status_code == 200
    users = resp.json()["Users"]
    assert len(users) == store.count_users() == 3
    assert {u["Firstname"] for u in users} == {"a", "b", "c"}


async def test_create_with_malformed_json_returns_400(api_client, store) -> None:
    before = store.count_users()
    resp = await api_client.post(
        "/users", content=b'{"Firstname": ', headers={"content-type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.text == "Unable to parse data"
    assert store.count_users() == before


async def test_create_with_wrong_field_type_returns_400(api_client, store) -> None:
    resp = await api_client.post("/users", json={"Firstname": 5})
    assert resp.status_code == 400
    assert store.count_users() == 0


async def test_create_accepts_case_insensitive_keys(api_client) -> None:
    user_id = await _create(api_client, firstname="Linus", OCCUPATION="Engineer")
    payload = (await api_client.get(f"/users/{user_id}")).json()
    assert payload["Firstname"] == "Linus"
    assert payload["Occupation"] == "Engineer"


async def test_update_changes_only_supplied_fields(api_client) -> None:
    user_id = await _create(api_client, Firstname="Ada", Lastname="Lovelace", Occupation="Mathematician")

    resp = await api_client.post(f"/users/{user_id}", json={"Firstname": "X"})
    assert resp.status_code == 200
    assert resp.text == "Record updated successfuly"

    payload = (await api_client.get(f"/users/{user_id}")).json()
    assert payload == {"ID": user_id, "Firstname": "X", "Lastname": "Lovelace", "Occupation": "Mathematician"}


async def test_update_null_leaves_field_and_empty_string_clears_it(api_client) -> None:
    user_id = await _create(api_client, Firstname="Ada", Lastname="Lovelace", Occupation="Mathematician")

    resp = await api_client.post(f"/users/{user_id}", json={"Lastname": None, "Occupation": ""})
    assert resp.status_code == 200

    payload = (await api_client.get(f"/users/{user_id}")).json()
    assert payload["Lastname"] == "Lovelace"
    assert payload["Occupation"] == ""


async def test_update_missing_record_returns_400_and_leaves_store_unchanged(api_client, store) -> None:
    await _create(api_client, Firstname="Ada")
    before = store.list_users()

    resp = await api_client.post("/users/4242", json={"Firstname": "X"})
    assert resp.status_code == 400
    assert resp.text == "Record does not exist"
    assert store.list_users() == before


async def test_update_checks_body_before_id(api_client) -> None:
    resp = await api_client.post("/users/abc", content=b"not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.text == "Unable to parse data"

    resp = await api_client.post("/users/abc", json={"Firstname": "X"})
    assert resp.status_code == 404
    assert resp.text == "Invalid User ID"


async def test_delete_removes_record(api_client, store) -> None:
    user_id = await _create(api_client, Firstname="Temp")

    resp = await api_client.delete(f"/users/{user_id}")
    assert resp.status_code == 200
    assert resp.text == "Record Deleted"

    assert (await api_client.get(f"/users/{user_id}")).json() == {}
    assert store.count_users() == 0


async def test_delete_unknown_id_still_succeeds(api_client) -> None:
    resp = await api_client.delete("/users/31337")
    assert resp.status_code == 200
    assert resp.text == "Record Deleted"


async def test_delete_non_integer_id_returns_404(api_client) -> None:
    resp = await api_client.delete("/users/1.5")
    assert resp.status_code == 404
    assert resp.text == "Invalid User ID"


async def test_created_ids_are_never_zero(api_client) -> None:
    first = await _create(api_client, Firstname="a")
    await api_client.delete(f"/users/{first}")
    second = await _create(api_client, Firstname="b")
    assert first > 0
    assert second > 0


async def test_health_reports_store_status(api_client) -> None:
    resp = await api_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_parse_user_id_follows_atoi_rules() -> None:
    from app.api.users import parse_user_id

    assert parse_user_id("42") == 42
    assert parse_user_id("+7") == 7
    assert parse_user_id("-3") == -3
    assert parse_user_id("007") == 7
    for raw in ("", " 5", "1_000", "0x10", "١٢", "9223372036854775808"):
        assert parse_user_id(raw) is None


@pytest.mark.parametrize("content_type", ["application/x-www-form-urlencoded", "text/plain", None])
async def test_create_decodes_json_whatever_the_content_type(api_client, store, content_type) -> None:
    headers = {"content-type": content_type} if content_type else {}
    resp = await api_client.post("/users", content=b'{"Firstname":"Ada"}', headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {}
    assert [u.Firstname for u in store.list_users()] == ["Ada"]


async def test_update_decodes_json_sent_as_form_data(api_client) -> None:
    user_id = await _create(api_client, Firstname="Ada", Lastname="Lovelace")

    resp = await api_client.post(
        f"/users/{user_id}",
        content=b'{"Lastname":"Byron"}',
        headers={"content-type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 200
    assert resp.text == "Record updated successfuly"
    assert (await api_client.get(f"/users/{user_id}")).json()["Lastname"] == "Byron"


async def test_create_with_empty_body_returns_400(api_client, store) -> None:
    resp = await api_client.post("/users", content=b"", headers={"content-type": "text/plain"})
    assert resp.status_code == 400
    assert resp.text == "Unable to parse data"
    assert store.count_users() == 0


async def test_later_key_wins_when_keys_differ_only_in_case(api_client) -> None:
    resp = await api_client.post(
        "/users", content=b'{"Firstname":"Ada","firstname":"Grace","Lastname":"Hopper","LASTNAME":null}'
    )
    user_id = int(resp.headers["location"].rsplit("/", 1)[-1])

    payload = (await api_client.get(f"/users/{user_id}")).json()
    assert payload["Firstname"] == "Grace"
    assert payload["Lastname"] == "Hopper"
