#!/usr/bin/env python
"""
프로필 없이 남은 User 를 찾아 정리하는 스크립트
(회원가입 도중 프로세스가 죽어 보상 삭제가 실행되지 못한 경우)

사용법:
    python sweep_orphans.py          # 목록만 출력
    python sweep_orphans.py --apply  # 실제 삭제
"""
import argparse
import sys
from pathlib import Path

server_root = Path(__file__).resolve().parent
sys.path.insert(0, str(server_root))

from sqlmodel import Session

from core.db import engine, init_db
from core.provisioning import find_orphan_users, sweep_orphan_users


def main() -> int:
    parser = argparse.ArgumentParser(description="Remove users that have no role profile")
    parser.add_argument("--apply", action="store_true", help="delete the orphans instead of listing them")
    args = parser.parse_args()

    init_db()
    with Session(engine) as session:
        orphans = find_orphan_users(session)
        print("=" * 60)
        print(f"프로필 없는 계정: {len(orphans)}개")
        print("=" * 60)
        for user in orphans:
            print(f"  - {user.id} {user.email} ({user.user_type.value}, {user.created_at.isoformat()})")

        if not args.apply or not orphans:
            return 0

        removed = sweep_orphan_users(session)
        print(f"\n✅ {len(removed)}개 삭제 완료")
        return 0 if len(removed) == len(orphans) else 1


if __name__ == "__main__":
    sys.exit(main())
