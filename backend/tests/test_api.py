import re
from pathlib import Path
from unittest import mock

import requests

from chat_backend.document_processor.extractor import UNSUPPORTED_MESSAGE
from chat_backend.llm.generation import EXTRACTION_ISSUE_PREFIX

from conftest import make_response, register_and_login


def create_chat(client, headers, title="My chat"):
    response = client.post("/api/chat", json={"title": title}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def upload(client, headers, chat_id, name, content, content_type, message_id=None):
    data = {"chat_id": str(chat_id)}
    if message_id is not None:
        data["message_id"] = str(message_id)
    return client.post(
        "/api/files/upload",
        data=data,
        files={"file": (name, content, content_type)},
        headers=headers,
    )


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy", "service": "chat-backend"}


def test_auth_flow(client):
    headers = register_and_login(client)
    response = client.get("/api/auth/validate-token", headers=headers)
    assert response.status_code == 200
    assert response.json()["username"] == "alice"


def test_duplicate_signup_and_bad_login(client, auth_headers):
    duplicate = client.post(
        "/api/auth/signup",
        json={"username": "alice", "email": "other@example.com", "password": "x"},
    )
    assert duplicate.status_code == 409

    invalid_email = client.post(
        "/api/auth/signup",
        json={"username": "bob", "email": "bob-at-example", "password": "x"},
    )
    assert invalid_email.status_code == 400

    bad_login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert bad_login.status_code == 401
    assert bad_login.json()["detail"] == "Invalid email or password"


def test_change_password(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "secret", "new_password": "better"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "better"})
    assert login.status_code == 200


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/chat").status_code == 401
    assert client.get("/api/chat", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_chat_crud(client, auth_headers):
    chat = create_chat(client, auth_headers)
    assert re.fullmatch(r"sh_[0-9a-f]{32}", chat["share_token"])
    assert chat["llm_type"] == "deepseek-r1:1.5b"

    renamed = client.put(f"/api/chat/{chat['id']}/title", json={"title": "Renamed"}, headers=auth_headers)
    assert renamed.json()["title"] == "Renamed"

    chats = client.get("/api/chat", headers=auth_headers).json()
    assert [c["title"] for c in chats] == ["Renamed"]

    assert client.delete(f"/api/chat/{chat['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/chat/{chat['id']}", headers=auth_headers).status_code == 404


def test_other_users_cannot_touch_chat(client, auth_headers):
    chat = create_chat(client, auth_headers)
    intruder = register_and_login(client, "mallory", "mallory@example.com", "pw")

    assert client.get(f"/api/chat/{chat['id']}", headers=intruder).status_code == 403
    assert client.get(f"/api/message/chat/{chat['id']}", headers=intruder).status_code == 403
    response = upload(client, intruder, chat["id"], "x.txt", b"x", "text/plain")
    assert response.status_code == 403


def test_sharing(client, auth_headers):
    chat = create_chat(client, auth_headers, "Shared")
    client.post("/api/message", json={"chat_id": chat["id"], "content": "Hi there"}, headers=auth_headers)

    info = client.get(f"/api/chat/{chat['id']}/share", headers=auth_headers).json()
    assert info["share_url"] == f"http://share.test/share/{chat['share_token']}"

    shared = client.get(f"/api/share/{chat['share_token']}")
    assert shared.status_code == 200
    body = shared.json()
    assert body["chat"]["title"] == "Shared"
    assert "user_id" not in body["chat"]
    assert [m["content"] for m in body["messages"]] == ["Hi there"]

    assert client.delete(f"/api/share/disable/{chat['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/share/{chat['share_token']}").status_code == 404

    regenerated = client.post(f"/api/chat/{chat['id']}/regenerate-share", headers=auth_headers).json()
    assert client.get(f"/api/share/{regenerated['share_token']}").status_code == 200


def test_bot_messages_are_stored_without_think_tags(client, auth_headers):
    chat = create_chat(client, auth_headers)
    response = client.post(
        "/api/message",
        json={"chat_id": chat["id"], "content": "<think>hmm</think>\n\nFinal answer", "message_type": "bot"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["content"] == "Final answer"


def test_message_links_unlinked_chat_files(client, auth_headers):
    chat = create_chat(client, auth_headers)
    file_id = upload(client, auth_headers, chat["id"], "a.txt", b"alpha", "text/plain").json()["file"]["id"]

    message = client.post(
        "/api/message", json={"chat_id": chat["id"], "content": "see file"}, headers=auth_headers
    ).json()

    files = client.get(f"/api/files/message/{message['id']}", headers=auth_headers).json()
    assert [f["id"] for f in files] == [file_id]


def test_notes_upload_and_summarize(client, auth_headers, settings):
    chat = create_chat(client, auth_headers)

    response = upload(client, auth_headers, chat["id"], "notes.txt", b"Hello world", "text/plain")
    assert response.status_code == 200, response.text
    uploaded = response.json()
    file_id = uploaded["file"]["id"]
    assert uploaded["file"]["text_extraction_successful"] is True
    assert uploaded["extracted_text_length"] == len("Hello world")

    text = client.get(f"/api/files/ai/text/{file_id}", headers=auth_headers).json()
    assert text["extracted_text"] == "Hello world"
    assert text["text_extraction_successful"] is True

    reply = make_response(200, {"response": "A short greeting."})
    with mock.patch.object(requests.Session, "post", return_value=reply) as post:
        summary = client.post(f"/api/files/ai/summarize/{file_id}", headers=auth_headers)

    assert summary.status_code == 200
    assert summary.json()["response"] == "A short greeting."
    assert post.call_args[0][0] == "http://ollama.test:11434/api/generate"
    prompt = post.call_args[1]["json"]["prompt"]
    assert "notes.txt" in prompt
    assert "Hello world" in prompt

    assert len(list(Path(settings.upload_dir).iterdir())) == 1


def test_unsupported_upload_is_stored_with_placeholder(client, auth_headers):
    chat = create_chat(client, auth_headers)
    response = upload(client, auth_headers, chat["id"], "blob.bin", b"\x00\x01", "application/octet-stream")
    file_id = response.json()["file"]["id"]
    assert response.json()["file"]["text_extraction_successful"] is False

    answer = client.post(
        f"/api/files/ai/question/{file_id}", json={"question": "What is it?"}, headers=auth_headers
    ).json()
    assert answer["response"] == EXTRACTION_ISSUE_PREFIX + UNSUPPORTED_MESSAGE


def test_empty_upload_is_rejected(client, auth_headers):
    chat = create_chat(client, auth_headers)
    assert upload(client, auth_headers, chat["id"], "e.txt", b"", "text/plain").status_code == 400


def test_upload_links_message_of_same_chat(client, auth_headers):
    chat = create_chat(client, auth_headers)
    message = client.post(
        "/api/message", json={"chat_id": chat["id"], "content": "see file"}, headers=auth_headers
    ).json()

    response = upload(client, auth_headers, chat["id"], "a.txt", b"alpha", "text/plain", message_id=message["id"])
    assert response.status_code == 200
    assert response.json()["file"]["message_id"] == message["id"]


def test_upload_cannot_link_message_of_another_chat(client, auth_headers, settings):
    victim_chat = create_chat(client, auth_headers)
    victim_message = client.post(
        "/api/message", json={"chat_id": victim_chat["id"], "content": "private"}, headers=auth_headers
    ).json()

    other = register_and_login(client, "mallory", "mallory@example.com", "pw")
    other_chat = create_chat(client, other)
    response = upload(client, other, other_chat["id"], "x.txt", b"x", "text/plain", message_id=victim_message["id"])

    assert response.status_code == 400
    assert client.get(f"/api/files/message/{victim_message['id']}", headers=auth_headers).json() == []
    assert list(Path(settings.upload_dir).glob("*")) == []


def test_upload_with_unknown_message_is_not_found(client, auth_headers):
    chat = create_chat(client, auth_headers)
    response = upload(client, auth_headers, chat["id"], "a.txt", b"alpha", "text/plain", message_id=9999)

    assert response.status_code == 404
    assert response.json() == {"detail": "Message with ID 9999 not found"}


def test_download_and_delete_file(client, auth_headers, settings):
    chat = create_chat(client, auth_headers)
    file_id = upload(client, auth_headers, chat["id"], "a.txt", b"alpha", "text/plain").json()["file"]["id"]

    download = client.get(f"/api/files/download/{file_id}", headers=auth_headers)
    assert download.content == b"alpha"
    assert 'filename="a.txt"' in download.headers["content-disposition"]

    assert client.delete(f"/api/files/{file_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/files/{file_id}", headers=auth_headers).status_code == 404
    assert list(Path(settings.upload_dir).iterdir()) == []


def test_download_with_missing_blob_is_not_found(client, auth_headers, settings):
    chat = create_chat(client, auth_headers)
    file_id = upload(client, auth_headers, chat["id"], "a.txt", b"alpha", "text/plain").json()["file"]["id"]
    for blob in Path(settings.upload_dir).iterdir():
        blob.unlink()

    assert client.get(f"/api/files/download/{file_id}", headers=auth_headers).status_code == 404


def test_stateless_analyze(client, auth_headers):
    response = client.post(
        "/api/files/ai/analyze",
        files={"file": ("notes.txt", b"Hello world", "text/plain")},
        headers=auth_headers,
    )
    body = response.json()
    assert body["extraction_successful"] is True
    assert body["word_count"] == 2


def test_system_check(client, auth_headers):
    body = client.get("/api/files/system-check", headers=auth_headers).json()
    assert body["file_count"] == 0
    assert "text/plain" in body["supported_types"]


def test_generate_with_attachment(client, auth_headers):
    chat = create_chat(client, auth_headers)
    file_id = upload(client, auth_headers, chat["id"], "notes.txt", b"Hello world", "text/plain").json()["file"]["id"]

    with mock.patch.object(requests.Session, "post", return_value=make_response(200, {"response": "Hi"})) as post:
        response = client.post(
            "/api/chat/generate",
            json={"prompt": "What is in it?", "file_attachment": {"file_id": file_id, "file_name": "notes.txt"}},
            headers=auth_headers,
        )

    assert response.json() == {"success": True, "response": "Hi", "model": "deepseek-r1:1.5b"}
    assert "Content:\nHello world" in post.call_args[1]["json"]["prompt"]


def test_generate_errors(client, auth_headers):
    with mock.patch.object(requests.Session, "post", side_effect=requests.ConnectionError("refused")):
        response = client.post("/api/chat/generate", json={"prompt": "Hi"}, headers=auth_headers)
    assert response.status_code == 502

    client.put("/api/server/1/status", json={"status": "offline"}, headers=auth_headers)
    response = client.post("/api/chat/generate", json={"prompt": "Hi"}, headers=auth_headers)
    assert response.status_code == 503
    assert response.json()["detail"] == "No active Ollama server found"


def test_server_management(client, auth_headers):
    servers = client.get("/api/server", headers=auth_headers).json()
    assert [(s["host"], s["port"], s["status"]) for s in servers] == [("ollama.test", 11434, "active")]

    created = client.post("/api/server", json={"host": "gpu", "port": 8000}, headers=auth_headers).json()
    assert created["token"]

    regenerated = client.post(f"/api/server/{created['id']}/token/regenerate", headers=auth_headers).json()
    assert regenerated["token"] != created["token"]

    with mock.patch.object(requests.Session, "get", side_effect=requests.ConnectionError("down")):
        check = client.get(f"/api/server/{created['id']}/status/check", headers=auth_headers).json()
    assert check == {"server_id": created["id"], "reachable": False, "status": "offline"}

    with mock.patch.object(requests.Session, "get", return_value=make_response(200, {"models": []})):
        summary = client.post("/api/server/status/check-all", headers=auth_headers).json()
    assert summary["server_count"] == 2
    assert summary["status_summary"] == {"active": 2}

    assert client.delete(f"/api/server/{created['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/server/{created['id']}", headers=auth_headers).status_code == 404


def test_list_models(client, auth_headers):
    body = {"models": [{"name": "deepseek-r1:1.5b"}]}
    with mock.patch.object(requests.Session, "get", return_value=make_response(200, body)):
        response = client.get("/api/server/models", headers=auth_headers)
    assert response.json() == {"success": True, "server_id": 1, "models": ["deepseek-r1:1.5b"]}


def test_votes(client, auth_headers):
    chat = create_chat(client, auth_headers)
    message = client.post(
        "/api/message", json={"chat_id": chat["id"], "content": "answer", "message_type": "bot"}, headers=auth_headers
    ).json()

    vote = client.post(
        "/api/vote",
        json={"chat_id": chat["id"], "message_id": message["id"], "vote": 1, "comment": "helpful"},
        headers=auth_headers,
    )
    assert vote.status_code == 201
    vote_id = vote.json()["id"]

    votes = client.get(f"/api/vote/chat/{chat['id']}", headers=auth_headers).json()
    assert [v["id"] for v in votes] == [vote_id]

    assert client.delete(f"/api/vote/{vote_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/vote/{vote_id}", headers=auth_headers).status_code == 404
