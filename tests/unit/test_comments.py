from conftest import AUTH_HEADERS, OWNER


def _comment(comment_id, author=OWNER, text="hello"):
    return {"id": comment_id, "text": text, "authorId": author, "authorName": "Ann",
            "createdAt": "2024-01-01T00:00:00+00:00"}


class TestAddComment:
    """Test the addComment endpoint"""

    def test_add_comment(self, client, db, seed):
        seed("works", "w1", {"title": "Work", "comments": []})

        response = client.post("/addComment", json={"entityId": "w1", "text": " Looks good ",
                                                    "authorName": "Ann"}, headers=AUTH_HEADERS)

        assert response.status_code == 200
        comment = response.get_json()["comment"]
        assert comment["text"] == "Looks good"
        assert comment["authorId"] == OWNER
        assert len(comment["id"]) == 7
        assert db.data("works", "w1")["comments"] == [comment]

    def test_add_comment_default_author_name(self, client, seed):
        seed("works", "w1", {"title": "Work"})
        response = client.post("/addComment", json={"entityId": "w1", "text": "hi"}, headers=AUTH_HEADERS)
        assert response.get_json()["comment"]["authorName"] == "Unknown"

    def test_add_comment_requires_text(self, client, db, seed):
        seed("works", "w1", {"title": "Work"})
        db.writes.clear()
        response = client.post("/addComment", json={"entityId": "w1", "text": "  "}, headers=AUTH_HEADERS)
        assert response.status_code == 400
        assert db.writes == []

    def test_add_comment_invalid_entity_type(self, client, seed):
        seed("works", "w1", {"title": "Work"})
        response = client.post("/addComment", json={"entityId": "w1", "text": "hi", "entityType": "ideas"},
                               headers=AUTH_HEADERS)
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid entityType"

    def test_add_comment_unknown_work(self, client, db):
        response = client.post("/addComment", json={"entityId": "ghost", "text": "hi"}, headers=AUTH_HEADERS)
        assert response.status_code == 404


class TestEditComments:
    """Test updateComment and deleteComment"""

    def test_update_own_comment(self, client, db, seed):
        seed("works", "w1", {"comments": [_comment("c1"), _comment("c2")]})

        response = client.post("/updateComment", json={"entityId": "w1", "commentId": "c2", "text": "edited"},
                               headers=AUTH_HEADERS)

        assert response.status_code == 200
        comments = db.data("works", "w1")["comments"]
        assert [c["text"] for c in comments] == ["hello", "edited"]
        assert "updatedAt" in comments[1]

    def test_update_other_users_comment_forbidden(self, client, db, seed):
        seed("works", "w1", {"comments": [_comment("c1", author="bob")]})

        response = client.post("/updateComment", json={"entityId": "w1", "commentId": "c1", "text": "mine now"},
                               headers=AUTH_HEADERS)

        assert response.status_code == 403
        assert response.get_json()["error"] == "Not authorized to edit this comment"
        assert db.data("works", "w1")["comments"][0]["text"] == "hello"

    def test_update_missing_comment(self, client, seed):
        seed("works", "w1", {"comments": []})
        response = client.post("/updateComment", json={"entityId": "w1", "commentId": "c9", "text": "x"},
                               headers=AUTH_HEADERS)
        assert response.status_code == 404
        assert response.get_json()["error"] == "Comment not found"

    def test_delete_own_comment(self, client, db, seed):
        seed("works", "w1", {"comments": [_comment("c1"), _comment("c2")]})

        response = client.post("/deleteComment", json={"entityId": "w1", "commentId": "c1"}, headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert [c["id"] for c in db.data("works", "w1")["comments"]] == ["c2"]

    def test_delete_other_users_comment_forbidden(self, client, seed):
        seed("works", "w1", {"comments": [_comment("c1", author="bob")]})
        response = client.post("/deleteComment", json={"entityId": "w1", "commentId": "c1"}, headers=AUTH_HEADERS)
        assert response.status_code == 403
        assert response.get_json()["error"] == "Not authorized to delete this comment"
