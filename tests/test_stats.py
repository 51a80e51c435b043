from conftest import API


async def seed_school(client, headers, school_id, create_grade, create_tutor):
    await create_grade(school_id, sections=[
        {"name": "A", "subjects": ["English", "Maths"]},
        {"name": "B", "subjects": ["English"]},
    ])
    await create_grade(school_id, name="Grade 2", sections=[{"name": "A", "subjects": ["Science"]}])
    jane_id = (await create_tutor(school_id))["tutor"]["id"]
    bob_id = (await create_tutor(school_id, name="Bob", email="bob@lincoln.edu"))["tutor"]["id"]
    await client.post(
        f"{API}/schools/{school_id}/assignments/tutor-assignments",
        json={"tutorId": jane_id, "assignments": {"Grade 1-A": ["English", "Maths"]}, "classGrade": "Grade 1", "classSection": "A"},
        headers=headers,
    )
    await client.put(f"{API}/schools/{school_id}/tutors/{bob_id}", json={"isActive": False}, headers=headers)


async def test_stats_totals(client, admin_headers, school_id, create_grade, create_tutor):
    await seed_school(client, admin_headers, school_id, create_grade, create_tutor)

    resp = await client.get(f"{API}/schools/{school_id}/stats", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json() == {
        "totalStudents": 420,
        "totalTutors": 2,
        "activeTutors": 1,
        "totalGrades": 2,
        "totalSections": 3,
        "totalSubjects": 4,
        "totalAssignments": 2,
        "sectionsWithClassTutor": 1,
        "sectionsWithoutClassTutor": 2,
    }


async def test_header(client, admin_headers, school_id, create_grade, create_tutor):
    await seed_school(client, admin_headers, school_id, create_grade, create_tutor)

    body = (await client.get(f"{API}/schools/{school_id}/header", headers=admin_headers)).json()

    assert body["name"] == "Lincoln"
    assert body["code"] == "LIN01"
    assert body["district"] == "Springfield"
    assert body["totalClasses"] == 2
    assert body["totalSections"] == 3
    assert body["totalTutors"] == 1
    assert body["studentCount"] == 420


async def test_dashboard_summary(client, admin_headers, school_id, create_grade, create_tutor):
    await seed_school(client, admin_headers, school_id, create_grade, create_tutor)

    body = (await client.get(f"{API}/schools/{school_id}/dashboard", headers=admin_headers)).json()

    assert body["school"]["name"] == "Lincoln"
    assert body["stats"] == {"totalClasses": 2, "totalSections": 3, "totalTutors": 1}
    assert [g["name"] for g in body["grades"]] == ["Grade 1", "Grade 2"]
    assert body["grades"][0]["sections"][0]["classTutor"]["name"] == "Jane"
    assert [t["name"] for t in body["tutors"]] == ["Jane"]
    assert body["subjects"] == ["English", "Maths", "Science"]


async def test_stats_for_unknown_school(client, superadmin_headers):
    resp = await client.get(f"{API}/schools/missing/stats", headers=superadmin_headers)

    assert resp.status_code == 404
    assert resp.json() == {"message": "School not found"}
