"""
Integration tests for staff job management.
"""

from conftest import API, PDF_BYTES, apply, create_job, stored_files


class TestJobCrud:

    def test_create_records_creator(self, client, recruiter):
        job = create_job(client, recruiter["headers"], assigned_recruiter_id=recruiter["id"])

        assert job["created_by"]["id"] == recruiter["id"]
        assert job["assigned_recruiter"]["id"] == recruiter["id"]
        assert job["internal_notes"] == "Client pays net 45"
        assert job["status"] == "open"
        assert job["closed_at"] is None

    def test_inverted_salary_range(self, client, admin_headers):
        response = client.post(
            f"{API}/ats/jobs",
            json={
                "title": "DBA",
                "public_description": "Postgres",
                "salary_min": 200,
                "salary_max": 100,
            },
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_partial_update(self, client, admin_headers):
        job = create_job(client, admin_headers)

        response = client.put(
            f"{API}/ats/jobs/{job['id']}",
            json={"department": "Data", "show_salary": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["department"] == "Data"
        assert updated["show_salary"] is True
        assert updated["title"] == job["title"]

    def test_required_field_cannot_be_nulled(self, client, admin_headers):
        job = create_job(client, admin_headers)

        response = client.put(
            f"{API}/ats/jobs/{job['id']}", json={"title": None}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_status_change_stamps_closed_at(self, client, admin_headers):
        job = create_job(client, admin_headers)
        url = f"{API}/ats/jobs/{job['id']}/status"

        closed = client.patch(url, json={"status": "closed"}, headers=admin_headers).json()
        assert closed["status"] == "closed"
        assert closed["closed_at"] is not None

        reopened = client.patch(url, json={"status": "open"}, headers=admin_headers).json()
        assert reopened["status"] == "open"
        assert reopened["closed_at"] is None

    def test_viewer_cannot_create(self, client, viewer):
        response = client.post(
            f"{API}/ats/jobs",
            json={"title": "X", "public_description": "Y"},
            headers=viewer["headers"],
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_list_includes_stats_and_filters(self, client, admin_headers, recruiter):
        mine = create_job(client, admin_headers, assigned_recruiter_id=recruiter["id"])
        create_job(client, admin_headers, title="Unassigned role")
        apply(client, mine["id"])

        listed = client.get(
            f"{API}/ats/jobs", params={"recruiter_id": recruiter["id"]}, headers=recruiter["headers"]
        ).json()

        assert [job["id"] for job in listed] == [mine["id"]]
        assert listed[0]["stats"]["total"] == 1
        assert listed[0]["stats"]["stage_counts"] == {"resume_received": 1}

        closed_only = client.get(
            f"{API}/ats/jobs", params={"status": "closed"}, headers=admin_headers
        ).json()
        assert closed_only == []


class TestJobDetail:

    def test_tabs_and_stage_filter(self, client, admin_headers):
        job = create_job(client, admin_headers)
        first = apply(client, job["id"], email="a@example.com").json()["application_id"]
        apply(client, job["id"], email="b@example.com")
        client.patch(
            f"{API}/ats/applications/{first}/stage",
            json={"stage": "vetted", "note_content": "Vetted by tech lead"},
            headers=admin_headers,
        )

        def application_ids(**params):
            response = client.get(f"{API}/ats/jobs/{job['id']}", params=params, headers=admin_headers)
            assert response.status_code == 200
            return [a["id"] for a in response.json()["applications"]]

        assert len(application_ids()) == 2
        assert application_ids(tab="processed") == [first]
        assert first not in application_ids(tab="unprocessed")
        assert application_ids(stage="vetted") == [first]

        data = client.get(f"{API}/ats/jobs/{job['id']}", headers=admin_headers).json()
        assert data["stats"]["total"] == 2
        assert data["stats"]["processed"] == 1
        assert data["job"]["internal_notes"] == "Client pays net 45"

    def test_invalid_tab(self, client, admin_headers):
        job = create_job(client, admin_headers)

        response = client.get(
            f"{API}/ats/jobs/{job['id']}", params={"tab": "archived"}, headers=admin_headers
        )

        assert response.status_code == 400


class TestJobDelete:

    def test_delete_cascades_to_applications_and_files(self, client, admin_headers, upload_dir):
        job = create_job(client, admin_headers)
        kept_job = create_job(client, admin_headers, public_title="Kept")
        apply(
            client,
            job["id"],
            files=[("resume", ("cv.pdf", PDF_BYTES, "application/pdf"))],
        )
        apply(
            client,
            kept_job["id"],
            files=[("resume", ("cv.pdf", PDF_BYTES, "application/pdf"))],
        )
        assert len(stored_files(upload_dir)) == 2

        response = client.delete(f"{API}/ats/jobs/{job['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"{API}/ats/jobs/{job['id']}", headers=admin_headers).status_code == 404
        remaining = client.get(f"{API}/ats/applications", headers=admin_headers).json()
        assert remaining["total"] == 1
        assert remaining["items"][0]["job"]["id"] == kept_job["id"]
        assert len(stored_files(upload_dir)) == 1

    def test_only_admin_can_delete(self, client, admin_headers, recruiter):
        job = create_job(client, admin_headers)

        response = client.delete(f"{API}/ats/jobs/{job['id']}", headers=recruiter["headers"])

        assert response.status_code == 403
