from conftest import API


def grades_url(school_id):
    return f"{API}/schools/{school_id}/grades"


async def test_create_grade_with_sections_and_subjects(client, admin_headers, school_id):
    resp = await client.post(
        grades_url(school_id),
        json={"gradeName": "Grade 1", "sections": [{"name": "A", "subjects": ["English", "Maths"]}, {"name": "B"}]},
        headers=admin_headers,
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Grade 1"
    assert body["order"] == 1
    assert body["message"] == "Grade created successfully"
    assert [s["name"] for s in body["sections"]] == ["A", "B"]
    assert [s["name"] for s in body["sections"][0]["subjects"]] == ["English", "Maths"]
    assert body["sections"][1]["subjects"] == []


async def test_grade_order_defaults_to_next(school_id, create_grade):
    first = await create_grade(school_id, name="Nursery", order=5)
    second = await create_grade(school_id, name="Grade 1")

    assert first["order"] == 5
    assert second["order"] == 6


async def test_create_grade_validation(client, admin_headers, school_id, create_grade):
    await create_grade(school_id)

    no_sections = await client.post(grades_url(school_id), json={"gradeName": "Grade 2", "sections": []}, headers=admin_headers)
    duplicate = await client.post(
        grades_url(school_id), json={"gradeName": "Grade 1", "sections": [{"name": "A"}]}, headers=admin_headers
    )

    assert no_sections.status_code == 400
    assert duplicate.status_code == 409
    assert duplicate.json() == {"message": "Grade already exists in this school"}


async def test_create_grade_is_all_or_nothing(client, admin_headers, school_id):
    resp = await client.post(
        grades_url(school_id),
        json={"gradeName": "Grade 1", "sections": [{"name": "A"}, {"name": "A"}]},
        headers=admin_headers,
    )

    assert resp.status_code == 409
    listed = (await client.get(grades_url(school_id), headers=admin_headers)).json()
    assert listed == []


async def test_list_grades_nested_view(client, admin_headers, school_id, create_grade):
    await create_grade(school_id, name="Grade 2", order=2)
    await create_grade(school_id, name="Grade 1", order=1, sections=[{"name": "B", "subjects": ["Maths"]}, {"name": "A", "subjects": ["Science", "Art"]}])

    resp = await client.get(grades_url(school_id), headers=admin_headers)

    assert resp.status_code == 200
    grades = resp.json()
    assert [g["name"] for g in grades] == ["Grade 1", "Grade 2"]
    grade_1 = grades[0]
    assert grade_1["sectionsCount"] == 2
    assert [s["name"] for s in grade_1["sections"]] == ["A", "B"]
    section_a = grade_1["sections"][0]
    assert section_a["classTutor"] is None
    assert [s["name"] for s in section_a["subjects"]] == ["Art", "Science"]
    assert section_a["subjects"][0]["tutor"] is None
    assert section_a["subjects"][0]["tutors"] == []


async def test_get_grade_includes_school(client, admin_headers, school_id, create_grade):
    grade = await create_grade(school_id)

    resp = await client.get(f"{grades_url(school_id)}/{grade['id']}", headers=admin_headers)
    missing = await client.get(f"{grades_url(school_id)}/nope", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["school"]["code"] == "LIN01"
    assert resp.json()["sections"][0]["name"] == "A"
    assert missing.status_code == 404


async def test_update_grade_renames_reconciles_adds_and_deletes(client, admin_headers, school_id, create_grade):
    grade = await create_grade(school_id, sections=[{"name": "A", "subjects": ["English", "Maths"]}, {"name": "B"}])
    section_a, section_b = grade["sections"]

    resp = await client.put(
        f"{grades_url(school_id)}/{grade['id']}",
        json={
            "name": "Grade One",
            "sections": [
                {"id": section_a["id"], "name": "A", "subjects": ["English", "Science"]},
                {"name": "C", "subjects": ["Art"]},
            ],
            "deleteSectionIds": [section_b["id"]],
        },
        headers=admin_headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Grade One"
    assert [s["name"] for s in body["sections"]] == ["A", "C"]
    assert [s["name"] for s in body["sections"][0]["subjects"]] == ["English", "Science"]
    english = next(s for s in body["sections"][0]["subjects"] if s["name"] == "English")
    assert english["id"] == section_a["subjects"][0]["id"]


async def test_update_grade_rejects_duplicate_name(client, admin_headers, school_id, create_grade):
    await create_grade(school_id, name="Grade 1")
    grade_2 = await create_grade(school_id, name="Grade 2")

    resp = await client.put(f"{grades_url(school_id)}/{grade_2['id']}", json={"name": "Grade 1"}, headers=admin_headers)

    assert resp.status_code == 409


async def test_subject_reactivation_keeps_id(client, admin_headers, school_id, create_grade):
    grade = await create_grade(school_id)
    section = grade["sections"][0]
    maths_id = next(s["id"] for s in section["subjects"] if s["name"] == "Maths")
    subjects_url = f"{grades_url(school_id)}/sections/{section['id']}/subjects"

    dropped = await client.put(subjects_url, json={"subjects": ["English"]}, headers=admin_headers)
    assert [s["name"] for s in dropped.json()] == ["English"]

    restored = await client.put(subjects_url, json={"subjects": ["English", "Maths"]}, headers=admin_headers)

    assert restored.status_code == 200
    maths = next(s for s in restored.json() if s["name"] == "Maths")
    assert maths["id"] == maths_id
    assert maths["isActive"] is True
    assert len(restored.json()) == 2


async def test_add_subject_to_section(client, admin_headers, school_id, create_grade):
    grade = await create_grade(school_id)
    section = grade["sections"][0]
    url = f"{grades_url(school_id)}/sections/{section['id']}/subjects"

    created = await client.post(url, json={"name": "Science"}, headers=admin_headers)
    duplicate = await client.post(url, json={"name": "Science"}, headers=admin_headers)
    await client.put(url, json={"subjects": ["English", "Maths"]}, headers=admin_headers)
    revived = await client.post(url, json={"name": "Science"}, headers=admin_headers)

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert revived.status_code == 200
    assert revived.json()["id"] == created.json()["id"]
    assert revived.json()["isActive"] is True


async def test_sections_and_subjects_can_be_removed(client, admin_headers, school_id, create_grade):
    grade = await create_grade(school_id)
    section = grade["sections"][0]
    english_id = section["subjects"][0]["id"]

    added = await client.post(
        f"{grades_url(school_id)}/{grade['id']}/sections", json={"name": "B", "subjects": ["Art"]}, headers=admin_headers
    )
    dup = await client.post(f"{grades_url(school_id)}/{grade['id']}/sections", json={"name": "B"}, headers=admin_headers)
    assert added.status_code == 201
    assert added.json()["subjects"][0]["name"] == "Art"
    assert dup.status_code == 409

    subject = await client.delete(f"{grades_url(school_id)}/section-subjects/{english_id}", headers=admin_headers)
    assert subject.status_code == 200

    removed = await client.delete(f"{grades_url(school_id)}/sections/{added.json()['id']}", headers=admin_headers)
    assert removed.status_code == 200

    view = (await client.get(f"{grades_url(school_id)}/{grade['id']}", headers=admin_headers)).json()
    assert [s["name"] for s in view["sections"]] == ["A"]
    assert [s["name"] for s in view["sections"][0]["subjects"]] == ["Maths"]


async def test_delete_grade(client, admin_headers, school_id, create_grade):
    grade = await create_grade(school_id)

    resp = await client.delete(f"{grades_url(school_id)}/{grade['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert (await client.get(grades_url(school_id), headers=admin_headers)).json() == []


async def test_school_subjects_are_distinct(client, admin_headers, school_id, create_grade):
    await create_grade(school_id, sections=[{"name": "A", "subjects": ["Maths", "English"]}, {"name": "B", "subjects": ["Maths"]}])

    resp = await client.get(f"{grades_url(school_id)}/subjects/all", headers=admin_headers)

    assert resp.json() == ["English", "Maths"]


async def test_sections_of_other_schools_are_not_found(client, superadmin_headers, school_id, create_school, create_grade):
    other = await create_school(name="Roosevelt", code="ROO01", admin_email="admin@roosevelt.edu")
    grade = await create_grade(school_id)
    section_id = grade["sections"][0]["id"]

    resp = await client.delete(
        f"{grades_url(other['school']['id'])}/sections/{section_id}",
        headers=superadmin_headers,
    )

    assert resp.status_code == 404
    assert resp.json() == {"message": "Section not found"}
