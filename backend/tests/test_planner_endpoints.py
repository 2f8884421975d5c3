import uuid

from fastapi.testclient import TestClient

from collegeplan.config import settings
from collegeplan.main import app

client = TestClient(app)


def new_user():
    tag = uuid.uuid4().hex[:8]
    email = f'{tag}@example.com'
    body = {
        'username': f'u{tag}', 'email': email, 'password': 'pw', 'confirm_password': 'pw',
        'first_name': 'Jo', 'last_name': 'March', 'grade_level': 'senior',
    }
    user = client.post('/api/auth/register', json=body).json()['user']
    token = client.post('/api/auth/login', json={'email': email, 'password': 'pw'}).json()['access_token']
    return user, token


def new_college(name=None):
    name = name or f'College {uuid.uuid4().hex[:8]}'
    r = client.post('/api/colleges', json={'name': name, 'location': 'Boston, MA', 'tuition': 60000})
    assert r.status_code == 201
    return r.json()


def test_user_get_and_partial_update():
    user, _ = new_user()
    r = client.put(f"/api/users/{user['id']}", json={'school_name': 'Concord High'})
    assert r.status_code == 200
    assert r.json()['school_name'] == 'Concord High'
    assert r.json()['first_name'] == 'Jo'
    assert 'password' not in r.json()
    assert client.get(f"/api/users/{user['id']}").json()['school_name'] == 'Concord High'


def test_missing_user_is_404():
    assert client.get('/api/users/999999').status_code == 404
    r = client.put('/api/users/999999', json={'gpa': 3.0})
    assert r.status_code == 404
    assert r.json() == {'message': 'User not found'}


def test_resume_create_get_and_score_update():
    user, _ = new_user()
    body = {
        'user_id': user['id'], 'personal_info': {'city': 'Concord'}, 'education': [],
        'activities': ['debate'], 'awards': [], 'work_experience': [], 'skills': ['writing'],
        'essays': [], 'score': 60,
    }
    assert client.post('/api/resumes', json=body).status_code == 201
    r = client.put(f"/api/resumes/{user['id']}", json={'score': 5})
    assert r.status_code == 200
    assert r.json()['score'] == 5
    assert r.json()['activities'] == ['debate']
    assert client.get(f"/api/resumes/{user['id']}").json()['skills'] == ['writing']


def test_resume_missing_is_404():
    assert client.get('/api/resumes/999999').status_code == 404
    assert client.put('/api/resumes/999999', json={'score': 1}).status_code == 404


def test_college_list_search_and_lookup():
    tag = 'QX' + uuid.uuid4().hex[:6].upper()
    created = new_college(f'Zeta {tag} Institute')
    found = client.get('/api/colleges', params={'search': tag}).json()
    assert [c['id'] for c in found] == [created['id']]
    assert client.get('/api/colleges', params={'search': tag.lower()}).json() == []
    assert len(client.get('/api/colleges', params={'limit': 1}).json()) == 1
    assert client.get(f"/api/colleges/{created['id']}").json()['name'] == created['name']
    assert client.get('/api/colleges/999999').status_code == 404


def test_user_college_list_lifecycle():
    user, _ = new_user()
    low, high = new_college(), new_college()
    base = f"/api/users/{user['id']}/colleges"
    assert client.post(base, json={'college_id': low['id'], 'status': 'interested', 'priority': 1}).status_code == 201
    assert client.post(base, json={'college_id': high['id'], 'status': 'applied', 'priority': 5}).status_code == 201

    listed = client.get(base).json()
    assert [c['college']['id'] for c in listed] == [high['id'], low['id']]

    r = client.put(f"{base}/{low['id']}", json={'status': 'accepted'})
    assert r.status_code == 200
    assert r.json()['status'] == 'accepted'
    assert r.json()['priority'] == 1

    assert client.delete(f"{base}/{low['id']}").status_code == 204
    assert client.delete(f"{base}/{low['id']}").status_code == 404
    assert [c['college']['id'] for c in client.get(base).json()] == [high['id']]


def test_user_college_requires_existing_college():
    user, _ = new_user()
    r = client.post(f"/api/users/{user['id']}/colleges", json={'college_id': 999999, 'status': 'interested'})
    assert r.status_code == 400


def test_feedback_flow():
    student, _ = new_user()
    mentor, _ = new_user()
    body = {'user_id': student['id'], 'reviewer_id': mentor['id'], 'type': 'mentor', 'content': 'Great start'}
    assert client.post('/api/feedback', json=body).status_code == 201
    listed = client.get(f"/api/users/{student['id']}/feedback").json()
    assert listed[0]['reviewer']['id'] == mentor['id']
    assert 'password' not in listed[0]['reviewer']
    assert client.post('/api/feedback', json={'user_id': student['id']}).status_code == 400


def test_deadlines_flow():
    user, _ = new_user()
    college = new_college()
    later = {'user_id': user['id'], 'college_id': college['id'], 'title': 'RD application',
             'due_date': '2026-01-01T00:00:00', 'type': 'application'}
    sooner = {'user_id': user['id'], 'title': 'SAT', 'due_date': '2025-10-04T08:00:00', 'type': 'test'}
    created = client.post('/api/deadlines', json=later).json()
    client.post('/api/deadlines', json=sooner)

    listed = client.get(f"/api/users/{user['id']}/deadlines").json()
    assert [d['title'] for d in listed] == ['SAT', 'RD application']
    assert listed[0]['college'] is None
    assert listed[1]['college']['id'] == college['id']

    r = client.put(f"/api/deadlines/{created['id']}", json={'is_completed': True})
    assert r.status_code == 200
    assert r.json()['is_completed'] is True
    assert r.json()['title'] == 'RD application'
    assert client.put('/api/deadlines/999999', json={'is_completed': True}).status_code == 404


def test_forum_reply_count_and_thread_order():
    author, _ = new_user()
    replier, _ = new_user()
    category = f'cat-{uuid.uuid4().hex[:6]}'
    post = client.post('/api/forum/posts', json={
        'user_id': author['id'], 'title': 'Waitlisted, now what?', 'content': '...', 'category': category,
    }).json()
    assert post['replies'] == 0
    for i in range(3):
        r = client.post(f"/api/forum/posts/{post['id']}/replies", json={'user_id': replier['id'], 'content': f'r{i}'})
        assert r.status_code == 201

    detail = client.get(f"/api/forum/posts/{post['id']}").json()
    assert detail['replies'] == 3
    assert [r['content'] for r in detail['reply_list']] == ['r0', 'r1', 'r2']
    assert detail['user']['id'] == author['id']

    listed = client.get('/api/forum/posts', params={'category': category}).json()
    assert [p['id'] for p in listed] == [post['id']]


def test_forum_missing_post():
    assert client.get('/api/forum/posts/999999').status_code == 404
    user, _ = new_user()
    r = client.post('/api/forum/posts/999999/replies', json={'user_id': user['id'], 'content': 'hi'})
    assert r.status_code == 404


def test_documents_flow():
    user, _ = new_user()
    base = f"/api/users/{user['id']}/documents"
    client.post(base, json={'name': 'transcript.pdf', 'type': 'transcript', 'url': 'https://cdn/t.pdf', 'size': 1024})
    client.post(base, json={'name': 'essay.docx', 'type': 'essay', 'url': 'https://cdn/e.docx'})
    assert [d['name'] for d in client.get(base).json()] == ['essay.docx', 'transcript.pdf']


def test_catalog_conflicts():
    name = f'Linguistics {uuid.uuid4().hex[:6]}'
    assert client.post('/api/major/create-major', json={'name': name}).status_code == 201
    dup = client.post('/api/major/create-major', json={'name': name})
    assert dup.status_code == 400
    assert dup.json() == {'message': 'Major already exists'}
    assert name in [m['name'] for m in client.get('/api/major/get-all-majors').json()]

    title = f'Olympiad {uuid.uuid4().hex[:6]}'
    resource = {'title': title, 'description': 'Math contest', 'type': 'competition',
                'category': 'mathematics', 'difficulty': 'advanced'}
    assert client.post('/api/resource/create-resource', json=resource).status_code == 201
    assert client.post('/api/resource/create-resource', json=resource).status_code == 400
    found = client.get('/api/resource/get-all-resources', params={'search': title}).json()
    assert [r['title'] for r in found] == [title]

    level = f'grade-{uuid.uuid4().hex[:6]}'
    assert client.post('/api/grade-level', json={'name': level}).status_code == 201
    assert client.post('/api/grade-level', json={'name': level}).json() == {'message': 'Grade Level already exists'}
    assert level in [g['name'] for g in client.get('/api/grade-level').json()]


def test_mutations_unchecked_by_default():
    owner, _ = new_user()
    _, stranger_token = new_user()
    r = client.put(f"/api/users/{owner['id']}", json={'career_goals': 'changed by someone else'},
                   headers={'accesstoken': stranger_token})
    assert r.status_code == 200


def test_ownership_enforced_when_enabled(monkeypatch):
    monkeypatch.setattr(settings, 'ENFORCE_OWNERSHIP', True)
    owner, owner_token = new_user()
    _, stranger_token = new_user()
    url = f"/api/users/{owner['id']}"

    assert client.put(url, json={'gpa': 2.0}).status_code == 401
    forbidden = client.put(url, json={'gpa': 2.0}, headers={'accesstoken': stranger_token})
    assert forbidden.status_code == 403
    assert client.put(url, json={'gpa': 3.9}, headers={'accesstoken': owner_token}).status_code == 200

    deadline = client.post('/api/deadlines', headers={'accesstoken': owner_token}, json={
        'user_id': owner['id'], 'title': 'Essay draft', 'due_date': '2025-12-01T00:00:00', 'type': 'document',
    }).json()
    r = client.put(f"/api/deadlines/{deadline['id']}", json={'is_completed': True},
                   headers={'accesstoken': stranger_token})
    assert r.status_code == 403


def test_resume_post_twice_keeps_last_write():
    user, _ = new_user()
    body = {
        'user_id': user['id'], 'personal_info': {}, 'education': [], 'activities': ['chess'],
        'awards': [], 'work_experience': [], 'skills': [], 'essays': [], 'score': 10,
    }
    first = client.post('/api/resumes', json=body).json()
    second = client.post('/api/resumes', json={**body, 'activities': ['band'], 'score': 90}).json()
    assert second['id'] == first['id']
    stored = client.get(f"/api/resumes/{user['id']}").json()
    assert stored['activities'] == ['band']
    assert stored['score'] == 90


def test_due_date_with_or_without_offset():
    user, _ = new_user()
    base = {'user_id': user['id'], 'type': 'test'}
    naive = client.post('/api/deadlines', json={**base, 'title': 'ACT', 'due_date': '2025-10-04T08:00:00'})
    aware = client.post('/api/deadlines', json={**base, 'title': 'SAT', 'due_date': '2025-11-01T08:00:00Z'})
    assert naive.status_code == 201
    assert aware.status_code == 201
    r = client.put(f"/api/deadlines/{naive.json()['id']}", json={'due_date': '2025-12-06T08:00:00'})
    assert r.status_code == 200
    titles = [d['title'] for d in client.get(f"/api/users/{user['id']}/deadlines").json()]
    assert titles == ['SAT', 'ACT']


def test_null_for_required_field_is_a_validation_error():
    user, _ = new_user()
    r = client.put(f"/api/users/{user['id']}", json={'first_name': None})
    assert r.status_code == 400
    assert r.json()['message'].startswith('first_name')
    assert client.get(f"/api/users/{user['id']}").json()['first_name'] == 'Jo'
    assert client.put(f"/api/users/{user['id']}", json={'phone': None}).status_code == 200

    deadline = client.post('/api/deadlines', json={
        'user_id': user['id'], 'title': 'Portfolio', 'due_date': '2025-12-01T00:00:00Z', 'type': 'document',
    }).json()
    assert client.put(f"/api/deadlines/{deadline['id']}", json={'title': None}).status_code == 400


def test_references_to_missing_rows_are_rejected():
    author, _ = new_user()
    post = client.post('/api/forum/posts', json={
        'user_id': author['id'], 'title': 'Safety schools', 'content': '...', 'category': 'lists',
    }).json()
    r = client.post(f"/api/forum/posts/{post['id']}/replies", json={'user_id': 987654, 'content': 'hi'})
    assert r.status_code == 400
    assert r.json() == {'message': 'Request violates a data constraint'}
    detail = client.get(f"/api/forum/posts/{post['id']}").json()
    assert detail['replies'] == 0
    assert detail['reply_list'] == []

    feedback = {'user_id': author['id'], 'reviewer_id': 987654, 'type': 'peer', 'content': 'Nice'}
    assert client.post('/api/feedback', json=feedback).status_code == 400
    assert client.get(f"/api/users/{author['id']}/feedback").json() == []


def test_catalog_lists_default_to_fifty_rows():
    tag = uuid.uuid4().hex[:6]
    for i in range(51):
        new_college(f'Cap College {tag} {i:02d}')
        client.post('/api/resource/create-resource', json={
            'title': f'Cap Resource {tag} {i:02d}', 'description': '-', 'type': 'scholarship',
            'category': 'general', 'difficulty': 'beginner',
        })
    assert len(client.get('/api/colleges').json()) == 50
    assert len(client.get('/api/resource/get-all-resources').json()) == 50
    assert len(client.get('/api/colleges', params={'search': f'Cap College {tag}'}).json()) == 50
