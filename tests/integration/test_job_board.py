"""
Integration tests for the public job board.
"""

from conftest import API, create_job

INTERNAL_FIELDS = ("internal_notes", "salary_min", "salary_max", "show_salary", "assigned_recruiter_id")


class TestPublicListing:

    def test_only_published_open_jobs_are_listed(self, client, admin_headers):
        visible = create_job(client, admin_headers)
        create_job(client, admin_headers, public_title="Draft", is_published=False)
        on_hold = create_job(client, admin_headers, public_title="Paused")
        client.patch(
            f"{API}/ats/jobs/{on_hold['id']}/status", json={"status": "on_hold"}, headers=admin_headers
        )

        response = client.get(f"{API}/jobs")

        assert response.status_code == 200
        assert [job["id"] for job in response.json()] == [visible["id"]]

    def test_internal_fields_are_never_exposed(self, client, admin_headers):
        job = create_job(client, admin_headers)

        listed = client.get(f"{API}/jobs").json()[0]
        detail = client.get(f"{API}/jobs/{job['id']}").json()

        for payload in (listed, detail):
            for field in INTERNAL_FIELDS:
                assert field not in payload
            assert payload["title"] == "Senior Java Developer"
            assert "Client: Acme" not in str(payload)
        assert detail["description"] == "Build and maintain Spring Boot services."

    def test_salary_hidden_unless_shown(self, client, admin_headers):
        hidden = create_job(client, admin_headers, show_salary=False)
        shown = create_job(client, admin_headers, public_title="Shown", show_salary=True)

        assert client.get(f"{API}/jobs/{hidden['id']}").json()["salary"] is None
        assert client.get(f"{API}/jobs/{shown['id']}").json()["salary"] == {
            "min": 120000,
            "max": 150000,
        }

    def test_title_falls_back_to_internal_title(self, client, admin_headers):
        job = create_job(client, admin_headers, title="QA Engineer", public_title=None)

        assert client.get(f"{API}/jobs/{job['id']}").json()["title"] == "QA Engineer"

    def test_unpublished_or_closed_detail_is_404(self, client, admin_headers):
        draft = create_job(client, admin_headers, is_published=False)
        closed = create_job(client, admin_headers, status="closed")

        assert client.get(f"{API}/jobs/{draft['id']}").status_code == 404
        assert client.get(f"{API}/jobs/{closed['id']}").status_code == 404
        assert client.get(f"{API}/jobs/99999").status_code == 404


class TestPublicFilters:

    def test_filters(self, client, admin_headers):
        dallas = create_job(client, admin_headers)
        remote_contract = create_job(
            client,
            admin_headers,
            public_title="Python Contractor",
            public_description="Django APIs",
            location_city="Newark",
            location_state="NJ",
            job_type="c2c",
            visa_sponsorship=False,
        )

        def ids(**params):
            response = client.get(f"{API}/jobs", params=params)
            assert response.status_code == 200
            return {job["id"] for job in response.json()}

        assert ids(location="dallas") == {dallas["id"]}
        assert ids(location="NJ") == {remote_contract["id"]}
        assert ids(job_type="c2c") == {remote_contract["id"]}
        assert ids(visa="sponsored") == {dallas["id"]}
        assert ids(search="django") == {remote_contract["id"]}
        assert ids(search="spring boot") == {dallas["id"]}
        assert ids(location="TX", search="django") == set()

    def test_invalid_job_type_is_400(self, client):
        response = client.get(f"{API}/jobs", params={"job_type": "freelance"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
