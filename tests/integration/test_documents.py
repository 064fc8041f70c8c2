"""
Integration tests for the document vault.
"""

import pytest

from conftest import (
    API,
    PDF_BYTES,
    PNG_BYTES,
    STAFF_PASSWORD,
    apply,
    create_job,
    create_staff,
    login,
    stored_files,
)


@pytest.fixture
def application_id(client, admin_headers):
    job = create_job(client, admin_headers)
    return apply(client, job["id"]).json()["application_id"]


def upload(client, headers, application_id, filename, data, content_type, doc_type="passport"):
    return client.post(
        f"{API}/ats/applications/{application_id}/documents",
        files={"file": (filename, data, content_type)},
        data={"doc_type": doc_type} if doc_type is not None else None,
        headers=headers,
    )


class TestUploadDownloadDelete:

    def test_round_trip_then_delete(self, client, recruiter, application_id, upload_dir):
        uploaded = upload(client, recruiter["headers"], application_id, "passport.png", PNG_BYTES, "image/png")

        assert uploaded.status_code == 201, uploaded.text
        document = uploaded.json()
        assert document["doc_type"] == "passport"
        assert document["original_filename"] == "passport.png"
        assert document["file_size_bytes"] == len(PNG_BYTES)
        assert document["uploaded_by"]["id"] == recruiter["id"]

        download = client.get(
            f"{API}/ats/documents/{document['id']}/download", headers=recruiter["headers"]
        )
        assert download.status_code == 200
        assert download.content == PNG_BYTES
        assert download.headers["content-type"] == "image/png"
        assert download.headers["content-disposition"] == 'attachment; filename="passport.png"'

        deleted = client.delete(f"{API}/ats/documents/{document['id']}", headers=recruiter["headers"])
        assert deleted.status_code == 200
        assert stored_files(upload_dir) == []

        gone = client.get(
            f"{API}/ats/documents/{document['id']}/download", headers=recruiter["headers"]
        )
        assert gone.status_code == 404

    def test_filename_is_percent_encoded(self, client, recruiter, application_id):
        document = upload(
            client, recruiter["headers"], application_id, "my resume (final).pdf", PDF_BYTES, "application/pdf",
            doc_type="resume",
        ).json()

        download = client.get(
            f"{API}/ats/documents/{document['id']}/download", headers=recruiter["headers"]
        )
        assert download.headers["content-disposition"] == (
            'attachment; filename="my%20resume%20%28final%29.pdf"'
        )

    def test_unknown_doc_type_becomes_other(self, client, recruiter, application_id):
        response = upload(
            client, recruiter["headers"], application_id, "misc.pdf", PDF_BYTES, "application/pdf",
            doc_type="tax_return",
        )

        assert response.status_code == 201
        assert response.json()["doc_type"] == "other"

    def test_disallowed_type_leaves_no_row_or_file(self, client, recruiter, application_id, upload_dir):
        response = upload(
            client, recruiter["headers"], application_id, "notes.txt", b"hello", "text/plain"
        )

        assert response.status_code == 400
        assert "File type not allowed" in response.json()["error"]["message"]
        assert client.get(
            f"{API}/ats/applications/{application_id}/documents", headers=recruiter["headers"]
        ).json() == []
        assert stored_files(upload_dir) == []

    def test_missing_file_part(self, client, recruiter, application_id):
        response = client.post(
            f"{API}/ats/applications/{application_id}/documents",
            data={"doc_type": "passport"},
            headers=recruiter["headers"],
        )

        assert response.status_code == 400

    def test_upload_to_missing_application(self, client, recruiter, upload_dir):
        response = upload(client, recruiter["headers"], 999999, "p.png", PNG_BYTES, "image/png")

        assert response.status_code == 404
        assert stored_files(upload_dir) == []


class TestDeletePermissions:

    def test_other_recruiter_cannot_delete(self, client, admin_headers, recruiter, application_id):
        document = upload(
            client, recruiter["headers"], application_id, "p.png", PNG_BYTES, "image/png"
        ).json()
        create_staff(client, admin_headers, "second.recruiter@example.com", "recruiter")
        other = login(client, "second.recruiter@example.com", STAFF_PASSWORD)

        response = client.delete(f"{API}/ats/documents/{document['id']}", headers=other)

        assert response.status_code == 403

    def test_admin_can_delete_any(self, client, admin_headers, recruiter, application_id):
        document = upload(
            client, recruiter["headers"], application_id, "p.png", PNG_BYTES, "image/png"
        ).json()

        response = client.delete(f"{API}/ats/documents/{document['id']}", headers=admin_headers)

        assert response.status_code == 200

    def test_hiring_manager_cannot_delete(self, client, admin_headers, application_id):
        create_staff(client, admin_headers, "manager@example.com", "hiring_manager")
        manager = login(client, "manager@example.com", STAFF_PASSWORD)
        document = upload(
            client, manager, application_id, "p.png", PNG_BYTES, "image/png"
        ).json()

        response = client.delete(f"{API}/ats/documents/{document['id']}", headers=manager)

        assert response.status_code == 403

    def test_viewer_cannot_upload(self, client, viewer, application_id):
        response = upload(client, viewer["headers"], application_id, "p.png", PNG_BYTES, "image/png")

        assert response.status_code == 403

    def test_delete_missing_document(self, client, admin_headers):
        assert client.delete(f"{API}/ats/documents/31337", headers=admin_headers).status_code == 404
