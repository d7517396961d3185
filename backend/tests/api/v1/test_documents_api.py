"""
API tests for document endpoints.
"""

from fastapi import status

from docdesk.models.document import DocumentCategory, DocumentStatus

from conftest import bearer, make_document

PDF_BYTES = b"%PDF-1.4 test document"


def upload(client, headers, file=None, **fields):
    data = {"title": "Travel receipts", "category": "expense_report"}
    data.update(fields)
    files = {"document": file} if file else None
    return client.post("/api/v1/documents/upload", data=data, files=files, headers=headers)


def upload_pdf(client, headers, **fields):
    return upload(client, headers, file=("receipts.pdf", PDF_BYTES, "application/pdf"), **fields)


class TestUpload:
    """POST /documents/upload"""

    def test_upload_with_file(self, client, auth_headers):
        """Defaults are applied and the file type is derived."""
        response = upload_pdf(client, auth_headers)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "Document uploaded successfully"
        data = body["data"]
        assert data["status"] == "pending"
        assert data["priority"] == "medium"
        assert data["file_type"] == "pdf"
        assert data["tags"] == []
        assert data["has_file"] is True
        assert data["file_size"] == len(PDF_BYTES)
        assert data["file_size_formatted"] == "22 Bytes"
        assert data["original_name"] == "receipts.pdf"
        assert data["uploaded_by"]["employee_id"] == "EMP001"
        assert data["document_metadata"]["department"] == "Engineering"

    def test_upload_without_file(self, client, auth_headers):
        response = upload(client, auth_headers, category="leave_application", priority="high")

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["has_file"] is False
        assert data["priority"] == "high"
        for name in ("file_name", "file_path", "file_size", "mime_type"):
            assert name not in data

    def test_repeated_tags(self, client, auth_headers):
        response = upload(client, auth_headers, tags=["Travel", " Hotel "])
        assert response.json()["data"]["tags"] == ["travel", "hotel"]

    def test_comma_separated_tags(self, client, auth_headers):
        response = upload(client, auth_headers, tags="a,b")
        assert response.json()["data"]["tags"] == ["a", "b"]

    def test_has_file_flag_without_file(self, client, auth_headers):
        response = upload(client, auth_headers, has_file="true")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert {"field": "document", "message": "No file uploaded"} in body["errors"]

    def test_rejected_content_type(self, client, auth_headers):
        response = upload(client, auth_headers, file=("run.sh", b"#!/bin/sh", "application/x-sh"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert {"field": "document", "message": "Invalid file type"} in response.json()["errors"]

    def test_missing_fields(self, client, auth_headers):
        response = client.post("/api/v1/documents/upload", data={}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"title", "category"} <= fields

    def test_requires_authentication(self, client):
        response = upload_pdf(client, {})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestListAndStats:
    """GET /documents and GET /documents/my-stats"""

    def test_pagination(self, client, db, test_user, auth_headers):
        for i in range(5):
            make_document(db, test_user, title=f"Doc {i}")

        response = client.get("/api/v1/documents?page=2&limit=2", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["page"] == 2
        assert data["limit"] == 2
        assert data["total"] == 5
        assert data["total_pages"] == 3
        assert [d["title"] for d in data["items"]] == ["Doc 2", "Doc 1"]

    def test_status_filter(self, client, db, test_user, auth_headers):
        make_document(db, test_user, status=DocumentStatus.APPROVED)
        make_document(db, test_user)

        response = client.get("/api/v1/documents?status=approved", headers=auth_headers)
        assert [d["status"] for d in response.json()["data"]["items"]] == ["approved"]

        response = client.get("/api/v1/documents?status=all", headers=auth_headers)
        assert response.json()["data"]["total"] == 2

    def test_bad_sort_field(self, client, auth_headers):
        response = client.get("/api/v1/documents?sort_by=hashed_password", headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "sort_by"

    def test_limit_out_of_range(self, client, auth_headers):
        response = client.get("/api/v1/documents?limit=500", headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "limit"

    def test_my_stats(self, client, db, test_user, other_user, auth_headers):
        make_document(db, test_user)
        make_document(db, test_user, status=DocumentStatus.REJECTED)
        make_document(db, other_user)

        response = client.get("/api/v1/documents/my-stats", headers=auth_headers)

        assert response.json()["data"] == {
            "total_documents": 2,
            "pending_documents": 1,
            "approved_documents": 0,
            "rejected_documents": 1,
            "under_review_documents": 0,
        }


class TestSearch:
    """GET /documents/search/query"""

    def test_quarterly_finance_documents(self, client, db, test_user, auth_headers):
        by_description = make_document(
            db, test_user, title="Budget", description="Quarterly overview",
            category=DocumentCategory.FINANCE_DOCUMENT,
        )
        by_title = make_document(
            db, test_user, title="Quarterly report", category=DocumentCategory.FINANCE_DOCUMENT
        )
        make_document(db, test_user, title="Quarterly party", category=DocumentCategory.OTHER)
        make_document(db, test_user, title="Invoice", category=DocumentCategory.FINANCE_DOCUMENT)

        response = client.get(
            "/api/v1/documents/search/query?q=quarterly&category=finance_document",
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        items = response.json()["data"]["items"]
        assert [d["id"] for d in items] == [by_title.id, by_description.id]
        assert {d["category"] for d in items} == {"finance_document"}

    def test_archived_documents_are_not_found(self, client, db, test_user, auth_headers):
        make_document(db, test_user, title="Quarterly report", is_archived=True)

        response = client.get("/api/v1/documents/search/query?q=quarterly", headers=auth_headers)

        assert response.json()["data"]["total"] == 0


class TestSingleDocument:
    """GET/PUT/DELETE /documents/{id}"""

    def test_owner_reads_twice_identically(self, client, db, test_user, auth_headers):
        document = make_document(db, test_user)

        first = client.get(f"/api/v1/documents/{document.id}", headers=auth_headers)
        second = client.get(f"/api/v1/documents/{document.id}", headers=auth_headers)

        assert first.status_code == status.HTTP_200_OK
        assert first.json()["data"]["status"] == second.json()["data"]["status"]
        assert first.json()["data"].get("reviewed_by") == second.json()["data"].get("reviewed_by")

    def test_non_owner_forbidden_on_every_route(self, client, db, test_user, other_user):
        document = make_document(db, test_user, has_file=False)
        headers = bearer(other_user)
        url = f"/api/v1/documents/{document.id}"

        responses = [
            client.get(url, headers=headers),
            client.put(url, json={"title": "Mine now"}, headers=headers),
            client.delete(url, headers=headers),
            client.get(f"{url}/download", headers=headers),
        ]

        for response in responses:
            assert response.status_code == status.HTTP_403_FORBIDDEN
            assert "data" not in response.json()

    def test_missing_document(self, client, auth_headers):
        response = client.get("/api/v1/documents/9999", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "message": "Document not found"}

    def test_admin_may_read(self, client, db, test_user, admin_headers):
        document = make_document(db, test_user)
        response = client.get(f"/api/v1/documents/{document.id}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

    def test_update(self, client, db, test_user, auth_headers):
        document = make_document(db, test_user)

        response = client.put(
            f"/api/v1/documents/{document.id}",
            json={"title": "Hotel receipts", "vendor_name": "Grand Hotel", "status": "approved"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Hotel receipts"
        assert data["vendor_details"]["vendor_name"] == "Grand Hotel"
        assert data["status"] == "pending"

    def test_update_after_verdict(self, client, db, test_user, auth_headers):
        document = make_document(db, test_user, status=DocumentStatus.REJECTED)

        response = client.put(
            f"/api/v1/documents/{document.id}", json={"title": "Again"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Cannot edit document that has been approved or rejected"

    def test_delete_approved_then_admin_deletes(
        self, client, db, test_user, auth_headers, admin_headers
    ):
        """Owner is refused; the admin deletes; the document is gone."""
        document = make_document(db, test_user, status=DocumentStatus.APPROVED)
        url = f"/api/v1/documents/{document.id}"

        response = client.delete(url, headers=auth_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = client.delete(f"/api/v1/admin/documents/{document.id}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Document deleted successfully"

        response = client.get(url, headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_owner_deletes_pending(self, client, auth_headers, storage):
        created = upload_pdf(client, auth_headers).json()["data"]

        response = client.delete(f"/api/v1/documents/{created['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert not storage.exists(created["file_path"])


class TestDownload:
    """GET /documents/{id}/download"""

    def test_download_streams_file_and_counts(self, client, auth_headers):
        created = upload_pdf(client, auth_headers).json()["data"]
        url = f"/api/v1/documents/{created['id']}/download"

        response = client.get(url, headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.content == PDF_BYTES
        assert response.headers["content-type"] == "application/pdf"
        assert "receipts.pdf" in response.headers["content-disposition"]

        detail = client.get(f"/api/v1/documents/{created['id']}", headers=auth_headers).json()
        assert detail["data"]["download_count"] == 1
        assert detail["data"]["last_download_date"] is not None

    def test_document_without_file(self, client, db, test_user, auth_headers):
        document = make_document(db, test_user)

        response = client.get(f"/api/v1/documents/{document.id}/download", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "No file attached to this document"
