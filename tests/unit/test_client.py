from unittest.mock import Mock

import pytest
import requests

from manage_easy.client import ApiService, ApiRequestError


def _response(status=200, data=None):
    response = Mock()
    response.status_code = status
    response.ok = status < 400
    response.json.return_value = data if data is not None else {}
    return response


@pytest.fixture
def session():
    session = Mock()
    session.request.return_value = _response(data={"success": True})
    return session


@pytest.fixture
def api(session):
    return ApiService(base_url="http://api.test/", token="tok", timeout=5, session=session)


class TestRequest:
    def test_sends_bearer_token_and_drops_empty_params(self, api, session):
        session.request.return_value = _response(data={"works": [{"id": "w1"}]})

        works = api.list_works(idea_id="i1", tag="")

        assert works == [{"id": "w1"}]
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert (method, url) == ("GET", "http://api.test/listWorks")
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["params"] == {"ideaId": "i1"}
        assert kwargs["timeout"] == 5

    def test_server_error_message(self, api, session):
        session.request.return_value = _response(400, {"success": False, "error": "Title is required"})

        with pytest.raises(ApiRequestError) as exc:
            api.create_idea({"title": ""})

        assert str(exc.value) == "Title is required"
        assert exc.value.status_code == 400
        assert exc.value.endpoint == "createIdea"

    def test_error_without_body(self, api, session):
        response = _response(502)
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(ApiRequestError, match="status 502"):
            api.list_ideas()

    def test_network_error(self, api, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApiRequestError, match="Failed to request http://api.test/listTags"):
            api.list_tags()


class TestEndpoints:
    def test_create_work_drops_unset_fields(self, api, session):
        session.request.return_value = _response(201, {"success": True, "id": "w9", "order": 3})

        result = api.create_work({"title": "Task", "ideaId": "i1", "featureId": None})

        assert result["id"] == "w9"
        assert session.request.call_args.kwargs["json"] == {"title": "Task", "ideaId": "i1"}

    def test_update_work_keeps_null_to_unbind(self, api, session):
        api.update_work("w1", {"featureId": None, "order": 2})
        assert session.request.call_args.args == ("POST", "http://api.test/updateWork")
        assert session.request.call_args.kwargs["json"] == {"id": "w1", "featureId": None, "order": 2}

    def test_get_feature(self, api, session):
        session.request.return_value = _response(data={"feature": {"id": "f1"}})
        assert api.get_feature("f1") == {"id": "f1"}
        assert session.request.call_args.kwargs["params"] == {"id": "f1"}

    def test_assign_work(self, api, session):
        api.assign_work("w1", ["u1"])
        assert session.request.call_args.kwargs["json"] == {"id": "w1", "assigneeIds": ["u1"]}
