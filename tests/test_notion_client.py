from unittest.mock import MagicMock

import pytest
import requests

from config import Config
from domain.exceptions import ConfigurationError, RecordStoreError
from infrastructure.notion_client import NotionClient


class KeyConfig(Config):
    NOTION_API_KEY = "secret_test"
    NOTION_BASE_URL = "https://api.notion.test/v1/"
    REQUEST_TIMEOUT = 5
    MAX_RETRIES = 0


def _response(status=200, payload=None):
    response = MagicMock()
    response.ok = status < 400
    response.status_code = status
    response.json.return_value = payload if payload is not None else {}
    return response


def _client(*responses):
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return NotionClient(KeyConfig(), session=session), session


def test_sets_auth_headers():
    client, session = _client()
    assert session.headers["Authorization"] == "Bearer secret_test"
    assert session.headers["Notion-Version"] == KeyConfig.NOTION_VERSION


def test_iter_database_follows_cursor():
    client, session = _client(
        _response(payload={"results": [{"id": "a"}], "has_more": True, "next_cursor": "cur-2"}),
        _response(payload={"results": [{"id": "b"}], "has_more": False, "next_cursor": None}),
    )

    pages = list(client.iter_database("db1", filter={"property": "x"}))

    assert [p["id"] for p in pages] == ["a", "b"]
    first, second = session.request.call_args_list
    assert first.args == ("POST", "https://api.notion.test/v1/databases/db1/query")
    assert first.kwargs["json"] == {"filter": {"property": "x"}}
    assert second.kwargs["json"] == {"filter": {"property": "x"}, "start_cursor": "cur-2"}
    assert first.kwargs["timeout"] == 5


def test_update_page_sends_archived_flag():
    client, session = _client(_response(payload={"id": "p1", "archived": True}))
    client.update_page("p1", archived=True)
    method, url = session.request.call_args.args
    assert (method, url) == ("PATCH", "https://api.notion.test/v1/pages/p1")
    assert session.request.call_args.kwargs["json"] == {"archived": True}


def test_error_status_raises_record_store_error():
    client, _ = _client(_response(404, {"message": "Could not find page"}))
    with pytest.raises(RecordStoreError) as excinfo:
        client.retrieve_page("missing")
    assert excinfo.value.status_code == 404
    assert excinfo.value.details == "Could not find page"


def test_network_failure_raises_record_store_error():
    client, _ = _client(requests.ConnectionError("refused"))
    with pytest.raises(RecordStoreError):
        client.retrieve_page("p1")


def test_missing_api_key_is_configuration_error():
    class NoKeyConfig(Config):
        NOTION_API_KEY = ""

    session = MagicMock()
    session.headers = {}
    client = NotionClient(NoKeyConfig(), session=session)
    with pytest.raises(ConfigurationError):
        client.retrieve_page("p1")
    session.request.assert_not_called()
