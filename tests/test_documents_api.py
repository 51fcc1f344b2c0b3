def test_list_documents(client, account, document_factory, encoder):
    first = document_factory(account.company, account.user, name="contract.pdf", type="pdf", size=1200)
    second = document_factory(account.company, account.user, name="photo.png", type="png", width=640, height=480)

    resp = client.get("/api/v1/documents/?sort=id|asc", headers=account.headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert [d["id"] for d in data] == [encoder.encode(first.id), encoder.encode(second.id)]
    assert data[0]["size"] == 1200
    assert data[1]["width"] == 640 and data[1]["height"] == 480
    assert resp.json()["meta"]["pagination"]["total"] == 2


def test_document_text_filter(client, account, document_factory):
    document_factory(account.company, account.user, name="contract.pdf")
    document_factory(account.company, account.user, name="photo.png")
    resp = client.get("/api/v1/documents/?filter=contract", headers=account.headers)
    assert [d["name"] for d in resp.json()["data"]] == ["contract.pdf"]


def test_show_document_uses_external_ids(client, account, document_factory, encoder):
    doc = document_factory(account.company, account.user, hash="deadbeef", disk="s3")
    resp = client.get(f"/api/v1/documents/{encoder.encode(doc.id)}", headers=account.headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["hash"] == "deadbeef"
    assert data["disk"] == "s3"
    assert data["project_id"] == ""
    assert data["user_id"] == encoder.encode(account.user.id)


def test_document_of_other_company_is_404(client, account, document_factory, company_factory, user_factory, encoder):
    other = company_factory()
    doc = document_factory(other, user_factory(other))
    assert client.get(f"/api/v1/documents/{encoder.encode(doc.id)}", headers=account.headers).status_code == 404


def test_delete_document(client, account, document_factory, encoder):
    doc = document_factory(account.company, account.user)
    token = encoder.encode(doc.id)
    resp = client.delete(f"/api/v1/documents/{token}", headers=account.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["archived_at"] > 0

    listed = client.get("/api/v1/documents/", headers=account.headers).json()["data"]
    assert token not in [d["id"] for d in listed]


def test_bulk_archive_documents(client, account, document_factory, encoder):
    doc = document_factory(account.company, account.user)
    resp = client.post(
        "/api/v1/documents/bulk",
        json={"action": "archive", "ids": [encoder.encode(doc.id), "nope"]},
        headers=account.headers,
    )
    assert resp.status_code == 200
    rows = resp.json()["data"]
    assert len(rows) == 1 and rows[0]["archived_at"] > 0
