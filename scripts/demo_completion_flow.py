"""Demo: complete a two-item curriculum and verify the vault record.

Runs against the in-memory repositories through FastAPI TestClient.

Run with:
    python scripts/demo_completion_flow.py
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi.testclient import TestClient

from app.main import app
from app.models.assignment import (
    Assignment,
    ContentItem,
    ContentType,
    Curriculum,
    CurriculumItem,
    CurriculumSection,
)
from app.models.certificate import CertificateTemplate
from app.repos import bundle
from app.services import token_service

TEMPLATE = "<h1>{{userName}}</h1><p>{{courseName}}</p><p>{{certificateNumber}}</p>"


async def _seed(org_id, article: ContentItem, quiz: ContentItem) -> Assignment:
    repos = bundle.memory_repos
    await repos.assignments.add_content_item(article)
    await repos.assignments.add_content_item(quiz)
    curriculum = Curriculum(
        id=uuid4(),
        org_id=org_id,
        title="Security Awareness",
        sections=(
            CurriculumSection(
                id=uuid4(),
                title="Basics",
                position=0,
                items=(
                    CurriculumItem(content_item_id=article.id, position=0),
                    CurriculumItem(content_item_id=quiz.id, position=1),
                ),
            ),
        ),
    )
    await repos.assignments.add_curriculum(curriculum)
    assignment = Assignment.for_curriculum(
        org_id=org_id, title="Annual Security Training", curriculum_id=curriculum.id
    )
    await repos.assignments.add(assignment)
    await repos.certificates.add_template(
        CertificateTemplate.new(org_id=org_id, name="Default", html_template=TEMPLATE)
    )
    return assignment


def main() -> None:
    client = TestClient(app)
    org_id, user_id, admin_id = uuid4(), uuid4(), uuid4()
    article = ContentItem.new(org_id=org_id, type=ContentType.ARTICLE, title="Phishing 101")
    quiz = ContentItem.new(
        org_id=org_id, type=ContentType.QUIZ, title="Phishing quiz", passing_score=80
    )
    assignment = asyncio.run(_seed(org_id, article, quiz))

    learner = {
        "Authorization": "Bearer "
        + token_service.create_access_token(sub=str(user_id), org_id=str(org_id))
    }
    admin = {
        "Authorization": "Bearer "
        + token_service.create_access_token(
            sub=str(admin_id), org_id=str(org_id), org_role="admin"
        )
    }
    base = f"/v1/orgs/{org_id}"

    r = client.post(f"{base}/assignments/{assignment.id}/enroll", headers=learner)
    enrollment_id = r.json()["id"]
    print(f"1. enroll                  → {r.status_code}  enrollment={enrollment_id}")

    r = client.post(
        f"{base}/training/{enrollment_id}/complete",
        json={"content_item_id": str(article.id)},
        headers=learner,
    )
    print(f"2. mark article complete   → {r.status_code}  status={r.json()['status']}")

    r = client.post(
        f"{base}/training/{enrollment_id}/quiz-result",
        json={"content_item_id": str(quiz.id), "score": 60},
        headers=learner,
    )
    print(f"3. quiz 60%                → {r.status_code}  passed={r.json()['passed']}")

    r = client.post(
        f"{base}/training/{enrollment_id}/quiz-result",
        json={"content_item_id": str(quiz.id), "score": 90},
        headers=learner,
    )
    completion = r.json()["completion"]
    print(
        f"4. quiz 90%                → {r.status_code}  status={completion['status']} "
        f"certificate={completion['certificate_number']}"
    )

    r = client.get(f"{base}/vault/{enrollment_id}/verify", headers=admin)
    print(f"5. verify vault record     → {r.status_code}  valid={r.json()['valid']}")

    r = client.get(
        f"{base}/certificates/{completion['certificate_id']}/metadata",
        params={"name": "Jane Doe"},
        headers=learner,
    )
    print(f"6. certificate metadata    → {r.status_code}  file={r.json()['fileName']}")


if __name__ == "__main__":
    main()
