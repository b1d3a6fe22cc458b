import io
import re
import uuid
from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from fastapi.testclient import TestClient

from ilibrary.core.security import pwd_context
from ilibrary.main import app
from ilibrary.services.hasura import GraphQLError, get_hasura
from ilibrary.services.object_store import S3ObjectStore, get_object_store

PASSWORD = "Pw123456!"
PASSWORD_HASH = pwd_context.hash(PASSWORD)

_OP_RE = re.compile(r"\b(?:query|mutation)\s+(\w+)")


def _new_id() -> str:
    return str(uuid.uuid4())


def _ilike(value: Optional[str], pattern: str) -> bool:
    # Postgres ILIKE: % and _ are wildcards, backslash escapes the next char
    out, chars = [], iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.fullmatch("".join(out), value or "", re.IGNORECASE | re.DOTALL) is not None


class FakeHasura:
    """In-memory stand-in for the Hasura endpoint.

    Dispatches on the GraphQL operation name and applies the variables the
    storage layer sends, so pagination and filters behave like upstream.
    """

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.authors: Dict[str, Dict[str, Any]] = {}
        self.books: Dict[str, Dict[str, Any]] = {}
        self.categories: Dict[str, Dict[str, Any]] = {}
        self.chapters: Dict[str, Dict[str, Any]] = {}
        self.favorites: Dict[str, Dict[str, Any]] = {}
        self.reviews: Dict[str, Dict[str, Any]] = {}
        self.feedback: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []
        self.fail_ops: set = set()

    # ---- seeding helpers ----------------------------------------------------

    def add_user(self, email: str, role: str = "admin", password_hash: Optional[str] = PASSWORD_HASH, **extra) -> Dict[str, Any]:
        row = {
            "id": _new_id(),
            "email": email,
            "displayName": extra.pop("displayName", email.split("@")[0]),
            "defaultRole": role,
            "disabled": False,
            "emailVerified": True,
            "isAnonymous": False,
            "locale": "ar",
            "avatarUrl": "",
            "phoneNumber": None,
            "passwordHash": password_hash,
        }
        row.update(extra)
        self.users[row["id"]] = row
        return row

    def add_author(self, name: str, user_id: Optional[str] = None, book_num: int = 0) -> Dict[str, Any]:
        row = {"id": _new_id(), "name": name, "bio": None, "image_url": None,
               "book_num": book_num, "Category_Id": None, "user_id": user_id}
        self.authors[row["id"]] = row
        return row

    def add_book(self, title: str, author_id: Optional[str] = None) -> Dict[str, Any]:
        row = {"id": _new_id(), "title": title, "description": "", "ISBN": 9780000000000,
               "coverImage": "", "publicationDate": "2024-01-01", "chapter_num": 0,
               "total_pages": 100, "author_id": author_id, "Category_id": None}
        self.books[row["id"]] = row
        return row

    def add_chapter(self, book_id: str, num: int, title: Optional[str] = None) -> Dict[str, Any]:
        row = {"id": _new_id(), "title": title or f"Chapter {num}", "content": ["text"],
               "chapter_num": num, "book__id": book_id, "Create_at": "2024-01-01T00:00:00+00:00"}
        self.chapters[row["id"]] = row
        return row

    # ---- transport ----------------------------------------------------------

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        match = _OP_RE.search(query)
        assert match, "operation name required"
        op = match.group(1)
        variables = variables or {}
        self.calls.append({"op": op, "variables": variables})
        if op in self.fail_ops:
            raise GraphQLError(f"GraphQL errors: simulated failure in {op}")
        handler = getattr(self, f"_op_{op}")
        return handler(variables)

    @staticmethod
    def _public_user(row):
        return {k: v for k, v in row.items() if k != "passwordHash"} if row else None

    # users
    def _op_GetUsers(self, v):
        return {"users": [self._public_user(u) for u in self.users.values()]}

    def _op_GetUser(self, v):
        return {"user": self._public_user(self.users.get(v["id"]))}

    def _op_GetUserByEmail(self, v):
        rows = [u for u in self.users.values() if u["email"].lower() == v["email"].lower()]
        return {"users": [dict(r) for r in rows[:1]]}

    def _op_InsertUser(self, v):
        row = {"id": _new_id(), "isAnonymous": False, "avatarUrl": "", **v["object"]}
        self.users[row["id"]] = row
        return {"insertUser": self._public_user(row)}

    def _op_UpdateUser(self, v):
        row = self.users.get(v["id"])
        if row:
            row.update(v["object"])
        return {"updateUser": self._public_user(row)}

    def _op_DeleteUser(self, v):
        row = self.users.pop(v["id"], None)
        return {"deleteUser": {"id": row["id"], "email": row["email"]} if row else None}

    # authors
    def _op_GetAuthors(self, v):
        return {"libaray_Autor": [dict(a) for a in self.authors.values()]}

    def _op_GetAuthor(self, v):
        row = self.authors.get(v["id"])
        return {"libaray_Autor_by_pk": dict(row) if row else None}

    def _op_GetAuthorByUserId(self, v):
        rows = [dict(a) for a in self.authors.values() if a["user_id"] == v["user_id"]]
        return {"libaray_Autor": rows[:1]}

    def _op_GetAuthorBookCount(self, v):
        count = sum(1 for b in self.books.values() if b["author_id"] == v["author_id"])
        return {"libaray_Book_aggregate": {"aggregate": {"count": count}}}

    def _op_InsertAuthor(self, v):
        row = {"id": _new_id(), "Category_Id": None, **v["object"]}
        self.authors[row["id"]] = row
        return {"insert_libaray_Autor_one": dict(row)}

    def _op_UpdateAuthor(self, v):
        row = self.authors.get(v["id"])
        if row:
            row.update(v["object"])
        return {"update_libaray_Autor_by_pk": dict(row) if row else None}

    def _op_DeleteAuthor(self, v):
        row = self.authors.pop(v["id"], None)
        return {"delete_libaray_Autor_by_pk": row}

    # books
    def _op_GetBooks(self, v):
        where = v.get("where") or {}
        rows = list(self.books.values())
        if "author_id" in where:
            rows = [b for b in rows if b["author_id"] == where["author_id"]["_eq"]]
        if "id" in where:
            rows = [b for b in rows if b["id"] in where["id"]["_in"]]
        return {"libaray_Book": [dict(b) for b in rows]}

    def _op_GetChapterCounts(self, v):
        where = v.get("where") or {}
        rows = list(self.chapters.values())
        if "book__id" in where:
            rows = [c for c in rows if c["book__id"] in where["book__id"]["_in"]]
        return {"libaray_Chapter": [{"book__id": c["book__id"]} for c in rows]}

    def _op_GetBook(self, v):
        row = self.books.get(v["id"])
        return {"libaray_Book_by_pk": dict(row) if row else None}

    def _op_InsertBook(self, v):
        row = {"id": _new_id(), "chapter_num": None, "total_pages": None, "author_id": None,
               "Category_id": None, "ISBN": None, "publicationDate": None, "description": None,
               **v["object"]}
        self.books[row["id"]] = row
        return {"insert_libaray_Book_one": dict(row)}

    def _op_UpdateBook(self, v):
        row = self.books.get(v["id"])
        if row:
            row.update(v["object"])
        return {"update_libaray_Book_by_pk": dict(row) if row else None}

    def _op_DeleteBook(self, v):
        return {"delete_libaray_Book_by_pk": self.books.pop(v["id"], None)}

    # categories
    def _op_GetCategories(self, v):
        return {"libaray_Category": [dict(c) for c in self.categories.values()]}

    def _op_GetCategory(self, v):
        row = self.categories.get(v["id"])
        return {"libaray_Category_by_pk": dict(row) if row else None}

    def _op_InsertCategory(self, v):
        row = {"id": _new_id(), "name": v["name"]}
        self.categories[row["id"]] = row
        return {"insert_libaray_Category_one": dict(row)}

    def _op_UpdateCategory(self, v):
        row = self.categories.get(v["id"])
        if row:
            row["name"] = v["name"]
        return {"update_libaray_Category_by_pk": dict(row) if row else None}

    def _op_DeleteCategory(self, v):
        return {"delete_libaray_Category_by_pk": self.categories.pop(v["id"], None)}

    # chapters
    def _op_GetChapters(self, v):
        where = v.get("where") or {}
        rows = list(self.chapters.values())
        if "book__id" in where:
            rows = [c for c in rows if c["book__id"] in where["book__id"]["_in"]]
        if "title" in where:
            rows = [c for c in rows if _ilike(c["title"], where["title"]["_ilike"])]
        rows.sort(key=lambda c: c["chapter_num"])
        offset = v.get("offset") or 0
        limit = v.get("limit")
        page = rows[offset:offset + limit] if limit is not None else rows[offset:]
        return {
            "libaray_Chapter": [dict(c) for c in page],
            "libaray_Chapter_aggregate": {"aggregate": {"count": len(rows)}},
        }

    def _op_GetChaptersByBook(self, v):
        rows = sorted(
            (c for c in self.chapters.values() if c["book__id"] == v["bookId"]),
            key=lambda c: c["chapter_num"],
        )
        return {"libaray_Chapter": [dict(c) for c in rows]}

    def _op_GetChapter(self, v):
        row = self.chapters.get(v["id"])
        return {"libaray_Chapter_by_pk": dict(row) if row else None}

    def _op_InsertChapter(self, v):
        row = {"id": _new_id(), **v["object"]}
        self.chapters[row["id"]] = row
        return {"insert_libaray_Chapter_one": dict(row)}

    def _op_UpdateChapter(self, v):
        row = self.chapters.get(v["id"])
        if row:
            row.update(v["object"])
        return {"update_libaray_Chapter_by_pk": dict(row) if row else None}

    def _op_DeleteChapter(self, v):
        return {"delete_libaray_Chapter_by_pk": self.chapters.pop(v["id"], None)}

    # dashboard / favorites / reviews / feedback
    def _op_GetDashboardStats(self, v):
        def agg(n):
            return {"aggregate": {"count": n}}
        return {
            "users_count": agg(len(self.users)),
            "books_count": agg(len(self.books)),
            "authors_count": agg(len(self.authors)),
            "categories_count": agg(len(self.categories)),
            "chapters_count": agg(len(self.chapters)),
            "reviews_count": agg(len(self.reviews)),
            "favorites_count": agg(len(self.favorites)),
        }

    def _op_GetFavorites(self, v):
        return {"libaray_Favorite": [dict(f) for f in self.favorites.values()]}

    def _op_DeleteFavorite(self, v):
        row = self.favorites.pop(v["id"], None)
        return {"delete_libaray_Favorite_by_pk": {"id": row["id"]} if row else None}

    def _op_GetReviews(self, v):
        return {"libaray_Review": [dict(r) for r in self.reviews.values()]}

    def _op_InsertFeedback(self, v):
        row = {"id": _new_id(), "message": v["message"], "rating": v["rating"],
               "user_id": v["user_id"], "created_at": "2024-01-01T00:00:00+00:00"}
        self.feedback.append(row)
        return {"insert_libaray_Feedback_one": {k: row[k] for k in ("id", "message", "rating", "created_at")}}


class FakeS3Client:
    def __init__(self):
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.opened: List[io.BytesIO] = []

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[f"{Bucket}/{Key}"] = {"data": Body, "content_type": ContentType}
        return {"ETag": '"fake"'}

    def get_object(self, Bucket, Key):
        obj = self.objects.get(f"{Bucket}/{Key}")
        if obj is None:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        data = obj["data"]
        raw = io.BytesIO(data)
        self.opened.append(raw)
        return {
            "Body": StreamingBody(raw, len(data)),
            "ContentType": obj["content_type"],
            "ContentLength": len(data),
        }


@pytest.fixture
def hasura():
    return FakeHasura()


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def client(hasura, s3):
    app.dependency_overrides[get_hasura] = lambda: hasura
    app.dependency_overrides[get_object_store] = lambda: S3ObjectStore(s3, "test-bucket")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client: TestClient, email: str, password: str = PASSWORD):
    return client.post("/api/login", json={"email": email, "password": password})


@pytest.fixture
def admin_client(client, hasura):
    hasura.add_user("admin@example.com", role="admin")
    r = login(client, "admin@example.com")
    assert r.status_code == 200
    return client


@pytest.fixture
def author_setup(client, hasura):
    """Logged-in author owning one book, plus a second author's book."""
    user = hasura.add_user("writer@example.com", role="author", displayName="Writer")
    r = login(client, "writer@example.com")
    assert r.status_code == 200
    author_id = r.json()["user"]["authorId"]
    own_book = hasura.add_book("My Book", author_id=author_id)
    other = hasura.add_author("Someone Else")
    other_book = hasura.add_book("Other Book", author_id=other["id"])
    return {
        "client": client,
        "user": user,
        "author_id": author_id,
        "own_book": own_book,
        "other_book": other_book,
    }
