import pytest

from quizgrader.extensions import db
from quizgrader.models import Answer, QuizAttempt
from quizgrader.schemas import SubmittedAnswer
from quizgrader.services import AttemptService, ScoringService

from tests.fakes import OUTSIDER_ID, OWNER_ID, OTHER_STUDENT_ID, STUDENT_ID, TEACHER_ID


def start(login, quiz_id, user_id=STUDENT_ID, expected_status=201):
    response = login(user_id).post('/api/quizzes/attempts/start', json={"quizId": quiz_id})
    assert response.status_code == expected_status
    return response.get_json()


def full_submission(seeded):
    opt = seeded["opt"]
    return [
        {"questionId": seeded["mc"].id, "selectedOptions": [opt(seeded["mc"], "Newton")]},
        {"questionId": seeded["ma"].id,
         "selectedOptions": [opt(seeded["ma"], "Velocity"), opt(seeded["ma"], "Force"),
                             opt(seeded["ma"], "Mass")]},
        {"questionId": seeded["sa"].id, "textAnswer": "paris"},
        {"questionId": seeded["essay"].id, "textAnswer": "long response"},
    ]


def test_requires_login(client, seeded):
    response = client.get(f'/api/quizzes/{seeded["quiz"].id}')
    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthorized"}


def test_full_attempt_flow(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    assert attempt["state"] == "IN_PROGRESS"
    assert attempt["submitted_at"] is None

    response = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"],
        "answers": full_submission(seeded),
    })
    assert response.status_code == 200
    body = response.get_json()
    # 10 + 7.5 + 5 + 0 out of 45
    assert body["score"] == pytest.approx(100 * 22.5 / 45)
    assert body["state"] == "ESSAY_PENDING"
    assert body["submitted_at"] is not None
    points = {a["question_id"]: a["points"] for a in body["answers"]}
    assert points == {
        seeded["mc"].id: 10.0,
        seeded["ma"].id: 7.5,
        seeded["sa"].id: 5.0,
        seeded["essay"].id: 0.0,
    }

    essay_answer = next(a for a in body["answers"] if a["question_id"] == seeded["essay"].id)
    response = login(TEACHER_ID).post(
        f'/api/quizzes/answers/{essay_answer["id"]}/grade', json={"points": 15}
    )
    assert response.status_code == 200
    graded = response.get_json()
    assert graded["score"] == pytest.approx(100 * 37.5 / 45)
    assert graded["state"] == "SCORED"
    graded_essay = next(a for a in graded["answers"] if a["id"] == essay_answer["id"])
    assert graded_essay["points"] == 15.0
    assert graded_essay["is_correct"] is True

    response = login(STUDENT_ID).get(f'/api/quizzes/attempts/{attempt["id"]}')
    assert response.status_code == 200
    assert response.get_json()["score"] == pytest.approx(graded["score"])


def test_resubmission_returns_409_and_keeps_answers(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    payload = {"attemptId": attempt["id"], "answers": full_submission(seeded)}
    assert login(STUDENT_ID).post('/api/quizzes/attempts/submit', json=payload).status_code == 200

    response = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json=payload)

    assert response.status_code == 409
    assert response.get_json() == {"error": "This attempt has already been submitted"}
    assert Answer.query.filter_by(attempt_id=attempt["id"]).count() == 4


def test_submit_someone_elses_attempt_is_403(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    response = login(OTHER_STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": [],
    })
    assert response.status_code == 403


def test_submit_missing_attempt_is_404(login, seeded):
    response = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": 9999, "answers": [],
    })
    assert response.status_code == 404


@pytest.mark.parametrize("payload", [
    None,
    {"answers": []},
    {"attemptId": 1, "answers": [{"selectedOptions": [1]}]},
    {"attemptId": 1, "answers": [{"questionId": 1, "selectedOptions": "abc"}]},
    {"attemptId": 1, "answers": [{"questionId": 1}, {"questionId": 1}]},
    {"attemptId": 1, "answers": [], "score": 100},
])
def test_malformed_submission_is_400(login, seeded, payload):
    response = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


@pytest.mark.parametrize("points", [-1, 21, "lots", True, "7", None])
def test_invalid_grade_is_400(login, seeded, points):
    attempt = start(login, seeded["quiz"].id)
    body = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    }).get_json()
    essay_answer = next(a for a in body["answers"] if a["question_id"] == seeded["essay"].id)

    response = login(TEACHER_ID).post(
        f'/api/quizzes/answers/{essay_answer["id"]}/grade', json={"points": points}
    )
    assert response.status_code == 400
    view = login(STUDENT_ID).get(f'/api/quizzes/attempts/{attempt["id"]}').get_json()
    assert view["state"] == "ESSAY_PENDING"


def test_grade_accepts_fractional_points(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    body = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    }).get_json()
    essay_answer = next(a for a in body["answers"] if a["question_id"] == seeded["essay"].id)

    response = login(TEACHER_ID).post(
        f'/api/quizzes/answers/{essay_answer["id"]}/grade', json={"points": 12.5}
    )
    assert response.status_code == 200
    assert response.get_json()["score"] == pytest.approx(100 * 35 / 45)


def test_student_cannot_grade(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    body = login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    }).get_json()
    essay_answer = next(a for a in body["answers"] if a["question_id"] == seeded["essay"].id)

    response = login(STUDENT_ID).post(
        f'/api/quizzes/answers/{essay_answer["id"]}/grade', json={"points": 20}
    )
    assert response.status_code == 403


def test_grading_missing_answer_is_404(login, seeded):
    response = login(TEACHER_ID).post('/api/quizzes/answers/9999/grade', json={"points": 1})
    assert response.status_code == 404


def test_submission_rolls_back_on_failure(app, sql_repo, seeded, monkeypatch):
    attempt, _ = AttemptService(sql_repo).start_attempt(STUDENT_ID, seeded["quiz"].id)
    attempt_id = attempt.id
    real_grade = ScoringService.grade_answer
    calls = []

    def fail_on_second(*args, **kwargs):
        calls.append(1)
        if len(calls) == 2:
            raise RuntimeError("grader crashed")
        return real_grade(*args, **kwargs)

    monkeypatch.setattr(ScoringService, "grade_answer", staticmethod(fail_on_second))
    answers = [SubmittedAnswer.model_validate(a) for a in full_submission(seeded)]

    with pytest.raises(RuntimeError):
        AttemptService(sql_repo).submit_attempt(STUDENT_ID, attempt_id, answers)

    db.session.expire_all()
    reloaded = db.session.get(QuizAttempt, attempt_id)
    assert reloaded.submitted_at is None
    assert reloaded.score is None
    assert Answer.query.filter_by(attempt_id=attempt_id).count() == 0


def test_claim_submission_only_succeeds_once(app, sql_repo, seeded):
    attempt, _ = AttemptService(sql_repo).start_attempt(STUDENT_ID, seeded["quiz"].id)
    from quizgrader.utils import now_utc

    assert sql_repo.claim_submission(attempt.id, now_utc()) is True
    assert sql_repo.claim_submission(attempt.id, now_utc()) is False


def test_score_recomputed_from_store(app, sql_repo, seeded):
    attempt, _ = AttemptService(sql_repo).start_attempt(STUDENT_ID, seeded["quiz"].id)
    answers = [SubmittedAnswer.model_validate(a) for a in full_submission(seeded)]
    submitted = AttemptService(sql_repo).submit_attempt(STUDENT_ID, attempt.id, answers)

    db.session.expire_all()
    persisted = Answer.query.filter_by(attempt_id=submitted.id).all()
    assert ScoringService.score_from_answers(persisted) == pytest.approx(submitted.score)
    assert sql_repo.sum_answer_points(submitted.id) == pytest.approx(22.5)
    assert sql_repo.sum_question_points(seeded["quiz"].id) == pytest.approx(45.0)


# ---------------- quizzes ----------------

def test_create_and_publish_quiz(login, seeded):
    response = login(TEACHER_ID).post('/api/quizzes', json={
        "classroomId": seeded["classroom"].id,
        "title": "Energy",
        "questions": [{
            "text": "Is energy conserved?",
            "type": "TRUE_FALSE",
            "points": 1,
            "options": [{"text": "True", "isCorrect": True}, {"text": "False", "orderIndex": 1}],
        }],
    })
    assert response.status_code == 201
    quiz = response.get_json()
    assert quiz["is_published"] is False
    assert quiz["questions"][0]["options"][0]["is_correct"] is True

    assert login(STUDENT_ID).get(f'/api/quizzes/{quiz["id"]}').status_code == 404

    response = login(OWNER_ID).post(f'/api/quizzes/{quiz["id"]}/publish')
    assert response.status_code == 200

    response = login(STUDENT_ID).get(f'/api/quizzes/{quiz["id"]}')
    assert response.status_code == 200
    assert "is_correct" not in response.get_json()["questions"][0]["options"][0]


def test_student_cannot_create_quiz(login, seeded):
    response = login(STUDENT_ID).post('/api/quizzes', json={
        "classroomId": seeded["classroom"].id, "title": "Nope",
    })
    assert response.status_code == 403


def test_classroom_quiz_listing(login, seeded):
    response = login(STUDENT_ID).get(f'/api/quizzes/classroom/{seeded["classroom"].id}')
    assert response.status_code == 200
    assert [q["id"] for q in response.get_json()] == [seeded["quiz"].id]

    response = login(OUTSIDER_ID).get(f'/api/quizzes/classroom/{seeded["classroom"].id}')
    assert response.status_code == 403


def test_start_twice_resumes(login, seeded):
    first = start(login, seeded["quiz"].id)
    second = start(login, seeded["quiz"].id, expected_status=200)
    assert first["id"] == second["id"]


# ---------------- editing quizzes ----------------

def test_edit_quiz_questions_and_options(login, seeded):
    teacher = login(TEACHER_ID)
    quiz_id = seeded["quiz"].id

    response = teacher.put(f'/api/quizzes/{quiz_id}', json={"title": "Kinematics II", "timeLimit": 30})
    assert response.status_code == 200
    assert response.get_json()["title"] == "Kinematics II"
    assert response.get_json()["time_limit"] == 30

    response = teacher.post('/api/quizzes/questions', json={
        "quizId": quiz_id,
        "text": "Which is a scalar?",
        "type": "MULTIPLE_CHOICE",
        "points": 4,
        "orderIndex": 4,
        "options": [{"text": "Speed", "isCorrect": True}],
    })
    assert response.status_code == 201
    question = response.get_json()
    assert question["quiz_id"] == quiz_id
    assert question["options"][0]["is_correct"] is True

    response = teacher.post('/api/quizzes/options', json={
        "questionId": question["id"], "text": "Velocity", "orderIndex": 1,
    })
    assert response.status_code == 201
    option = response.get_json()
    assert option["is_correct"] is False

    response = teacher.put(f'/api/quizzes/options/{option["id"]}', json={"isCorrect": True})
    assert response.status_code == 200
    assert response.get_json()["is_correct"] is True

    response = teacher.put(f'/api/quizzes/questions/{question["id"]}', json={"points": 5})
    assert response.status_code == 200
    assert response.get_json()["points"] == 5.0

    assert teacher.delete(f'/api/quizzes/options/{option["id"]}').status_code == 200

    body = teacher.get(f'/api/quizzes/{quiz_id}').get_json()
    added = next(q for q in body["questions"] if q["id"] == question["id"])
    assert [o["option_text"] for o in added["options"]] == ["Speed"]
    assert body["total_points"] == 50.0

    assert teacher.delete(f'/api/quizzes/questions/{question["id"]}').status_code == 200
    assert teacher.get(f'/api/quizzes/{quiz_id}').get_json()["total_points"] == 45.0


def test_students_cannot_edit_quizzes(login, seeded):
    student = login(STUDENT_ID)
    quiz_id = seeded["quiz"].id
    option_id = seeded["opt"](seeded["mc"], "Joule")

    assert student.put(f'/api/quizzes/{quiz_id}', json={"title": "Mine"}).status_code == 403
    assert student.delete(f'/api/quizzes/{quiz_id}').status_code == 403
    assert student.post('/api/quizzes/questions', json={
        "quizId": quiz_id, "text": "Q", "type": "ESSAY",
    }).status_code == 403
    assert student.put(f'/api/quizzes/questions/{seeded["mc"].id}', json={"points": 1}).status_code == 403
    assert student.put(f'/api/quizzes/options/{option_id}', json={"isCorrect": True}).status_code == 403
    assert student.delete(f'/api/quizzes/options/{option_id}').status_code == 403


def test_editing_missing_items_is_404(login, seeded):
    teacher = login(TEACHER_ID)
    assert teacher.put('/api/quizzes/9999', json={"title": "x"}).status_code == 404
    assert teacher.delete('/api/quizzes/questions/9999').status_code == 404
    assert teacher.put('/api/quizzes/options/9999', json={"text": "x"}).status_code == 404
    assert teacher.post('/api/quizzes/options', json={"questionId": 9999, "text": "x"}).status_code == 404


@pytest.mark.parametrize("path_key, payload", [
    ("quiz", {"classroomId": 7}),
    ("quiz", {"title": None}),
    ("quiz", {"timeLimit": 0}),
    ("mc", {"points": 0}),
    ("mc", {"points": True}),
    ("mc", {"text": None}),
    ("mc", {"type": "ESSAY"}),
])
def test_invalid_edits_are_400(login, seeded, path_key, payload):
    if path_key == "quiz":
        url = f'/api/quizzes/{seeded["quiz"].id}'
    else:
        url = f'/api/quizzes/questions/{seeded["mc"].id}'
    response = login(TEACHER_ID).put(url, json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_essay_questions_reject_options(login, seeded):
    response = login(TEACHER_ID).post('/api/quizzes/options', json={
        "questionId": seeded["essay"].id, "text": "A",
    })
    assert response.status_code == 400


def test_answered_question_cannot_be_deleted(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    })

    response = login(TEACHER_ID).delete(f'/api/quizzes/questions/{seeded["mc"].id}')

    assert response.status_code == 409
    assert Answer.query.filter_by(attempt_id=attempt["id"]).count() == 4


def test_delete_quiz_removes_attempts_and_answers(login, seeded):
    quiz_id = seeded["quiz"].id
    attempt = start(login, quiz_id)
    login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    })

    response = login(OWNER_ID).delete(f'/api/quizzes/{quiz_id}')

    assert response.status_code == 200
    assert response.get_json() == {"message": "Quiz deleted successfully"}
    assert login(OWNER_ID).get(f'/api/quizzes/{quiz_id}').status_code == 404
    assert QuizAttempt.query.count() == 0
    assert Answer.query.count() == 0


# ---------------- results ----------------

def test_results_and_attempt_listing(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    })
    other = start(login, seeded["quiz"].id, user_id=OTHER_STUDENT_ID)
    login(OTHER_STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": other["id"],
        "answers": [{"questionId": seeded["mc"].id, "selectedOptions": [seeded["opt"](seeded["mc"], "Joule")]}],
    })

    response = login(TEACHER_ID).get(f'/api/quizzes/{seeded["quiz"].id}/results')
    assert response.status_code == 200
    body = response.get_json()
    assert body["total_points"] == 45.0
    first, second = body["results"]
    assert first["user_id"] == STUDENT_ID
    assert first["earned_points"] == 22.5
    assert first["correct"] == 2
    assert first["incorrect"] == 2
    assert first["pending_essays"] == 1
    assert second["user_id"] == OTHER_STUDENT_ID
    assert second["score"] == 0.0
    assert second["pending_essays"] == 0

    response = login(TEACHER_ID).get(f'/api/quizzes/{seeded["quiz"].id}/attempts')
    assert response.status_code == 200
    assert {a["user_id"] for a in response.get_json()} == {STUDENT_ID, OTHER_STUDENT_ID}

    assert login(STUDENT_ID).get(f'/api/quizzes/{seeded["quiz"].id}/results').status_code == 403
    assert login(STUDENT_ID).get(f'/api/quizzes/{seeded["quiz"].id}/attempts').status_code == 403


def test_average_score(login, seeded):
    attempt = start(login, seeded["quiz"].id)
    login(STUDENT_ID).post('/api/quizzes/attempts/submit', json={
        "attemptId": attempt["id"], "answers": full_submission(seeded),
    })
    classroom_id = seeded["classroom"].id

    response = login(STUDENT_ID).get(f'/api/quizzes/classroom/{classroom_id}/average-score')
    assert response.status_code == 200
    assert response.get_json()["quiz_avg_score"] == pytest.approx(50.0)

    response = login(TEACHER_ID).get(
        f'/api/quizzes/classroom/{classroom_id}/average-score?userId={OTHER_STUDENT_ID}'
    )
    assert response.get_json()["quiz_avg_score"] == 0.0

    response = login(OTHER_STUDENT_ID).get(
        f'/api/quizzes/classroom/{classroom_id}/average-score?userId={STUDENT_ID}'
    )
    assert response.status_code == 403
