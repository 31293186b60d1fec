#!/usr/bin/env python3
"""
테스트용 강사/학생/강의를 생성하는 스크립트
사용법: python create_test_data.py
"""
import sys
from datetime import timedelta
from pathlib import Path

# server 폴더를 PYTHONPATH에 추가
server_root = Path(__file__).resolve().parent
sys.path.insert(0, str(server_root))

from sqlmodel import Session, select

from core.courses import generate_course_code
from core.db import engine, init_db
from core.errors import Conflict
from core.models import Assignment, Course, Enrollment, Resource, Student, Teacher, User, utc_now
from core.provisioning import register_user

TEACHER_EMAIL = "teacher@learnloop.dev"
STUDENT_EMAIL = "student@learnloop.dev"
PASSWORD = "password123"


def _ensure_user(session: Session, **fields) -> User:
    try:
        user, _ = register_user(session, **fields)
        print(f"✅ 계정 생성: {user.email} ({user.user_type.value})")
    except Conflict:
        user = session.exec(select(User).where(User.email == fields["email"])).one()
        print(f"ℹ️ 계정 이미 존재: {user.email}")
    return user


def create_test_data():
    """테스트용 강사/학생/강의 생성"""
    init_db()

    with Session(engine) as session:
        # 1. 계정 생성
        teacher_user = _ensure_user(
            session,
            email=TEACHER_EMAIL,
            password=PASSWORD,
            user_type="teacher",
            name="테스트 강사",
            department="Computer Science",
        )
        student_user = _ensure_user(
            session,
            email=STUDENT_EMAIL,
            password=PASSWORD,
            user_type="student",
            name="테스트 학생",
            course_year=2,
        )
        teacher = session.exec(select(Teacher).where(Teacher.user_id == teacher_user.id)).one()
        student = session.exec(select(Student).where(Student.user_id == student_user.id)).one()

        # 2. 강의 생성
        course = session.exec(select(Course).where(Course.teacher_id == teacher.id)).first()
        if not course:
            course = Course(
                teacher_id=teacher.id,
                name="Algorithms",
                description="테스트 강의",
                code=generate_course_code(session),
            )
            session.add(course)
            session.add(Assignment(
                title="Sorting practice",
                description="Implement merge sort",
                due_date=utc_now() + timedelta(days=7),
                teacher_id=teacher.id,
                course_id=course.id,
            ))
            session.add(Resource(
                title="Lecture notes",
                file_url="https://example.com/notes.pdf",
                teacher_id=teacher.id,
                course_id=course.id,
            ))
            session.commit()
            print(f"✅ 테스트 강의 생성: {course.name} (코드: {course.code})")
        else:
            print(f"ℹ️ 테스트 강의 이미 존재: {course.name} (코드: {course.code})")

        # 3. 학생 수강 등록
        enrolled = session.exec(
            select(Enrollment).where(Enrollment.student_id == student.id, Enrollment.course_id == course.id)
        ).first()
        if not enrolled:
            session.add(Enrollment(student_id=student.id, course_id=course.id))
            session.commit()
            print("✅ 학생 수강 등록 완료")

        print("\n" + "=" * 60)
        print("✅ 테스트 데이터 생성 완료!")
        print("=" * 60)
        print(f"강사: {TEACHER_EMAIL} / {PASSWORD}")
        print(f"학생: {STUDENT_EMAIL} / {PASSWORD}")
        print(f"강의 코드: {course.code}")


if __name__ == "__main__":
    try:
        create_test_data()
    except Exception as e:
        print(f"❌ 오류 발생: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
