"""
Postgres-backed classroom store.

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- Every classroom read and write is scoped by (tenant_id, classroom_id); an
  id from another tenant behaves exactly like an unknown id.
- Membership changes are single UPDATE statements using array_append /
  array_remove guarded on current membership. Postgres row locking
  serializes concurrent updates and re-checks the guard on the latest row
  version, so no update is lost and no id is appended twice.
- Driver errors surface as `UpstreamError`; nothing is retried.
"""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple
from uuid import UUID

from backend.classrooms.errors import UpstreamError
from backend.classrooms.models import Classroom, ForumPost, MemberKind
from backend.classrooms.store import ensure_writable

try:
    import psycopg
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional in some dev envs
    psycopg = None  # type: ignore
    HAVE_PSYCOPG = False

logger = logging.getLogger("classroom_service.classrooms.repo_db")

_TS = "to_char({col} at time zone 'utc', 'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"')"

_CLASSROOM_COLUMNS_SQL = """
    id::text,
    tenant_id,
    name,
    teachers,
    students,
    content
"""


def _dsn() -> str:
    for dsn in (os.getenv("CLASSROOM_DATABASE_URL"), os.getenv("DATABASE_URL")):
        if dsn:
            return dsn
    raise RuntimeError("Database DSN unavailable for DBClassroomStore")


def _is_uuid_like(value: str) -> bool:
    try:
        UUID(str(value))
    except (ValueError, TypeError):
        return False
    return True


def _classroom_row(row: Tuple) -> Classroom:
    return Classroom(
        id=row[0],
        tenant_id=row[1],
        name=row[2],
        teachers=list(row[3] or []),
        students=list(row[4] or []),
        content=row[5] or "",
    )


def _post_row(row: Tuple) -> ForumPost:
    return ForumPost(id=row[0], author=row[1], content=row[2], created_at=row[3])


class DBClassroomStore:
    def __init__(self, dsn: Optional[str] = None, *, connect_timeout: int | None = None) -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBClassroomStore")
        self._dsn = dsn or _dsn()
        self._connect_timeout = connect_timeout or int(os.getenv("DATABASE_CONNECT_TIMEOUT_SECONDS", "5"))

    @contextmanager
    def _connection(self) -> Iterator:
        try:
            with psycopg.connect(self._dsn, connect_timeout=self._connect_timeout) as conn:
                yield conn
        except psycopg.Error as exc:
            logger.error("classroom store failure: err=%s", exc.__class__.__name__)
            raise UpstreamError("Classroom store error", upstream={"type": exc.__class__.__name__}) from exc

    # --- Classrooms --------------------------------------------------------------
    def create_classroom(self, *, tenant_id: str, name: str, teacher_id: str) -> Classroom:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    insert into public.classrooms (tenant_id, name, teachers, students, content)
                    values (%s, %s, %s, '{{}}', '')
                    returning {_CLASSROOM_COLUMNS_SQL}
                    """,
                    (tenant_id, name, [teacher_id]),
                )
                row = cur.fetchone()
                conn.commit()
        return _classroom_row(row)

    def read_classroom(self, tenant_id: str, classroom_id: str) -> Optional[Classroom]:
        if not _is_uuid_like(classroom_id):
            return None
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select {_CLASSROOM_COLUMNS_SQL}
                    from public.classrooms
                    where id = %s and tenant_id = %s
                    """,
                    (classroom_id, tenant_id),
                )
                row = cur.fetchone()
                if not row:
                    return None
                classroom = _classroom_row(row)
                cur.execute(
                    f"""
                    select id::text, author, content, {_TS.format(col='created_at')}
                    from public.forum_posts
                    where classroom_id = %s
                    order by seq
                    """,
                    (classroom_id,),
                )
                classroom.forum_posts = [_post_row(r) for r in (cur.fetchall() or [])]
        return classroom

    def write_classroom_field(self, tenant_id: str, classroom_id: str, field: str, value: str) -> bool:
        ensure_writable(field)
        if not _is_uuid_like(classroom_id):
            return False
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"update public.classrooms set {field} = %s, updated_at = now() where id = %s and tenant_id = %s",
                    (value, classroom_id, tenant_id),
                )
                updated = cur.rowcount == 1
                conn.commit()
        return updated

    def _exists(self, cur, tenant_id: str, classroom_id: str) -> bool:
        cur.execute(
            "select 1 from public.classrooms where id = %s and tenant_id = %s",
            (classroom_id, tenant_id),
        )
        return cur.fetchone() is not None

    # --- Membership (atomic set operations) -----------------------------------------
    def add_member(self, tenant_id: str, classroom_id: str, kind: MemberKind, user_id: str) -> bool:
        if not _is_uuid_like(classroom_id):
            raise LookupError("classroom_not_found")
        col = kind.field
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    update public.classrooms
                    set {col} = array_append({col}, %s), updated_at = now()
                    where id = %s and tenant_id = %s and not (%s = any({col}))
                    """,
                    (user_id, classroom_id, tenant_id, user_id),
                )
                added = cur.rowcount == 1
                if not added and not self._exists(cur, tenant_id, classroom_id):
                    raise LookupError("classroom_not_found")
                conn.commit()
        return added

    def remove_member(self, tenant_id: str, classroom_id: str, kind: MemberKind, user_id: str) -> bool:
        if not _is_uuid_like(classroom_id):
            raise LookupError("classroom_not_found")
        col = kind.field
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    update public.classrooms
                    set {col} = array_remove({col}, %s), updated_at = now()
                    where id = %s and tenant_id = %s and %s = any({col})
                    """,
                    (user_id, classroom_id, tenant_id, user_id),
                )
                removed = cur.rowcount == 1
                if not removed and not self._exists(cur, tenant_id, classroom_id):
                    raise LookupError("classroom_not_found")
                conn.commit()
        return removed

    # --- Forum -----------------------------------------------------------------------
    def append_forum_post(self, tenant_id: str, classroom_id: str, *, author: str, content: str) -> ForumPost:
        if not _is_uuid_like(classroom_id):
            raise LookupError("classroom_not_found")
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    insert into public.forum_posts (classroom_id, author, content)
                    select c.id, %s, %s from public.classrooms c
                    where c.id = %s and c.tenant_id = %s
                    returning id::text, author, content, {_TS.format(col='created_at')}
                    """,
                    (author, content, classroom_id, tenant_id),
                )
                row = cur.fetchone()
                if not row:
                    raise LookupError("classroom_not_found")
                conn.commit()
        return _post_row(row)

    # --- Listings --------------------------------------------------------------------
    def list_classrooms(self, tenant_id: str) -> List[Classroom]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select {_CLASSROOM_COLUMNS_SQL}
                    from public.classrooms
                    where tenant_id = %s
                    order by created_at, id
                    """,
                    (tenant_id,),
                )
                rows = cur.fetchall() or []
        return [_classroom_row(r) for r in rows]

    def list_classrooms_for_user(self, tenant_id: str, user_id: str) -> List[Classroom]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select {_CLASSROOM_COLUMNS_SQL}
                    from public.classrooms
                    where tenant_id = %s and (%s = any(students) or %s = any(teachers))
                    order by created_at, id
                    """,
                    (tenant_id, user_id, user_id),
                )
                rows = cur.fetchall() or []
        return [_classroom_row(r) for r in rows]

    def ping(self) -> None:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("select 1", ())
                cur.fetchone()


__all__ = ["DBClassroomStore", "HAVE_PSYCOPG"]
