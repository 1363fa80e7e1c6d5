"""One-time DB setup: create tables and seed demo accounts plus a sample exam."""
from examhub.db.session import create_tables, session_scope
from examhub.db.models import Exam, RoleEnum, User
from examhub.core.security import hash_password

# 1. Create all tables
create_tables()
print("✅ All tables created")

with session_scope() as db:
    # 2. Demo teacher
    teacher = db.query(User).filter(User.email == "teacher@example.com").first()
    if not teacher:
        teacher = User(
            email="teacher@example.com",
            hashed_password=hash_password("teacher123"),
            name="Demo Teacher",
            role=RoleEnum.TEACHER,
        )
        db.add(teacher)
        db.commit()
        db.refresh(teacher)
        print("✅ Created teacher: teacher@example.com / teacher123")
    else:
        print("  Teacher already exists")

    # 3. Demo student
    student = db.query(User).filter(User.email == "student@example.com").first()
    if not student:
        db.add(
            User(
                email="student@example.com",
                hashed_password=hash_password("student123"),
                name="Demo Student",
                role=RoleEnum.STUDENT,
            )
        )
        db.commit()
        print("✅ Created student: student@example.com / student123")
    else:
        print("  Student already exists")

    # 4. Sample exam
    if not db.query(Exam).filter(Exam.created_by == teacher.id).first():
        db.add(
            Exam(
                title="Sample quiz",
                description="Two multiple-choice questions, one short answer, one essay.",
                created_by=teacher.id,
                is_active=True,
                time_limit=15,
                questions=[
                    {
                        "id": "q1",
                        "type": "multiple_choice",
                        "question": "Which letter comes second?",
                        "options": ["A", "B", "C"],
                        "correct_answer": "B",
                        "points": 2,
                    },
                    {
                        "id": "q2",
                        "type": "multiple_choice",
                        "question": "Pick the last two letters of the alphabet.",
                        "options": ["W", "X", "Y", "Z"],
                        "correct_answer": ["Y", "Z"],
                        "points": 3,
                    },
                    {
                        "id": "q3",
                        "type": "short_answer",
                        "question": "What is the capital of France?",
                        "correct_answer": "Paris",
                        "points": 1,
                    },
                    {
                        "id": "q4",
                        "type": "long_answer",
                        "question": "Describe your favourite book.",
                        "points": 4,
                    },
                ],
            )
        )
        db.commit()
        print("✅ Created sample exam")

print("Done.")
