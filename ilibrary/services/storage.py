"""GraphQL-backed data access for every library entity.

Nothing is stored locally: each method issues one or more queries against the
hosted Hasura service and reshapes the upstream rows into the field names the
admin dashboard expects (``coverImage`` -> ``cover_URL``, ``book__id`` ->
``book_id`` and so on).

Upstream failures surface as :class:`GraphQLError` except where noted.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends

from .hasura import GraphQLError, HasuraClient, get_hasura

logger = logging.getLogger(__name__)

USER_FIELDS = """
          id
          displayName
          email
          emailVerified
          phoneNumber
          disabled
          defaultRole
          isAnonymous
          lastSeen
          locale
          metadata
          avatarUrl
          createdAt
          updatedAt
"""

AUTHOR_FIELDS = """
          id
          name
          bio
          image_url
          book_num
          Category_Id
          user_id
"""

BOOK_FIELDS = """
          id
          title
          description
          ISBN
          coverImage
          publicationDate
          chapter_num
          total_pages
          author_id
          Category_id
"""

CHAPTER_FIELDS = """
          id
          title
          content
          chapter_num
          book__id
          Create_at
"""

DEFAULT_AUTHOR_BIO = "كاتب في المكتبة الإلكترونية"


def _isbn_to_int(value: Any) -> Optional[int]:
    # upstream ISBN column is an Int
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    digits = "".join(ch for ch in str(value) if ch.isdigit())
    return int(digits) if digits else None


def _chapter_content(content: Any) -> Any:
    # jsonb column holds a list of text segments
    if isinstance(content, str):
        return [content]
    return content


def _escape_like(term: str) -> str:
    # ILIKE treats % and _ as wildcards; backslash is the default escape
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _map_book(book: Dict[str, Any], chapter_count: Optional[int] = None) -> Dict[str, Any]:
    parts = chapter_count if chapter_count is not None else book.get("chapter_num")
    return {
        "id": book["id"],
        "title": book.get("title"),
        "description": book.get("description"),
        "ISBN": str(book["ISBN"]) if book.get("ISBN") is not None else None,
        "cover_URL": book.get("coverImage"),
        "publication_date": book.get("publicationDate"),
        "parts_num": parts or 0,
        "chapter_num": parts or 0,
        "total_pages": book.get("total_pages"),
        "author_id": book.get("author_id"),
        "category_id": book.get("Category_id"),
        "most_view": 0,
    }


def _map_chapter(chapter: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": chapter["id"],
        "title": chapter.get("title"),
        "content": chapter.get("content"),
        "chapter_num": chapter.get("chapter_num"),
        "book_id": chapter.get("book__id"),
        "Create_at": chapter.get("Create_at"),
    }


def _referenced_books(rows: List[Dict[str, Any]]) -> List[str]:
    return sorted({r["book_id"] for r in rows if r.get("book_id")})


def _book_variables(book: Dict[str, Any]) -> Dict[str, Any]:
    mapping = {
        "title": "title",
        "description": "description",
        "cover_URL": "coverImage",
        "publication_date": "publicationDate",
        "parts_num": "chapter_num",
        "total_pages": "total_pages",
        "author_id": "author_id",
        "category_id": "Category_id",
    }
    out: Dict[str, Any] = {}
    for src, dst in mapping.items():
        if src in book:
            out[dst] = book[src]
    if "ISBN" in book:
        out["ISBN"] = _isbn_to_int(book["ISBN"])
    return out


class GraphQLStorage:
    def __init__(self, client: HasuraClient):
        self.client = client

    # ---- Users -------------------------------------------------------------

    def get_users(self) -> List[Dict[str, Any]]:
        query = f"""
      query GetUsers {{
        users(order_by: {{createdAt: desc}}) {{{USER_FIELDS}        }}
      }}
    """
        data = self.client.execute(query)
        return data.get("users") or []

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        query = f"""
      query GetUser($id: uuid!) {{
        user(id: $id) {{{USER_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"id": user_id})
        return data.get("user")

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Login lookup; the only read that includes ``passwordHash``."""
        query = f"""
      query GetUserByEmail($email: citext!) {{
        users(where: {{email: {{_eq: $email}}}}, limit: 1) {{{USER_FIELDS}          passwordHash
        }}
      }}
    """
        data = self.client.execute(query, {"email": email})
        users = data.get("users") or []
        return users[0] if users else None

    def create_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        obj = dict(user)
        obj.pop("password", None)
        if "phoneNumber" in obj:
            obj["phoneNumber"] = (obj["phoneNumber"] or "").strip() or None
        mutation = f"""
      mutation InsertUser($object: users_insert_input!) {{
        insertUser(object: $object) {{{USER_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"object": obj})
        return data["insertUser"]

    def update_user(self, user_id: str, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        obj = dict(user)
        obj.pop("password", None)
        obj.pop("id", None)
        if "phoneNumber" in obj:
            obj["phoneNumber"] = (obj["phoneNumber"] or "").strip() or None
        mutation = f"""
      mutation UpdateUser($id: uuid!, $object: users_set_input!) {{
        updateUser(pk_columns: {{id: $id}}, _set: $object) {{{USER_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": user_id, "object": obj})
        return data.get("updateUser")

    def delete_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        mutation = """
      mutation DeleteUser($id: uuid!) {
        deleteUser(id: $id) {
          id
          email
        }
      }
    """
        data = self.client.execute(mutation, {"id": user_id})
        return data.get("deleteUser")

    # ---- Authors -----------------------------------------------------------

    def get_authors(self) -> List[Dict[str, Any]]:
        query = f"""
      query GetAuthors {{
        libaray_Autor {{{AUTHOR_FIELDS}        }}
      }}
    """
        data = self.client.execute(query)
        return data.get("libaray_Autor") or []

    def get_author(self, author_id: str) -> Optional[Dict[str, Any]]:
        query = f"""
      query GetAuthor($id: uuid!) {{
        libaray_Autor_by_pk(id: $id) {{{AUTHOR_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"id": author_id})
        return data.get("libaray_Autor_by_pk")

    def count_books_by_author(self, author_id: str) -> int:
        query = """
      query GetAuthorBookCount($author_id: uuid!) {
        libaray_Book_aggregate(where: {author_id: {_eq: $author_id}}) {
          aggregate {
            count
          }
        }
      }
    """
        data = self.client.execute(query, {"author_id": author_id})
        agg = (data.get("libaray_Book_aggregate") or {}).get("aggregate") or {}
        return int(agg.get("count") or 0)

    def get_author_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Author linked to ``user_id`` with ``book_num`` recounted from Books.

        The stored ``book_num`` can be stale, so it is replaced by a live
        aggregate; if that second query fails the stored value is kept.
        """
        query = f"""
      query GetAuthorByUserId($user_id: uuid!) {{
        libaray_Autor(where: {{user_id: {{_eq: $user_id}}}}, limit: 1) {{{AUTHOR_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"user_id": user_id})
        rows = data.get("libaray_Autor") or []
        if not rows:
            return None
        author = dict(rows[0])
        try:
            author["book_num"] = self.count_books_by_author(author["id"])
        except GraphQLError:
            logger.exception("book count failed for author %s, keeping stored book_num", author["id"])
        return author

    def create_author(self, author: Dict[str, Any]) -> Dict[str, Any]:
        mutation = f"""
      mutation InsertAuthor($object: libaray_Autor_insert_input!) {{
        insert_libaray_Autor_one(object: $object) {{{AUTHOR_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"object": author})
        return data["insert_libaray_Autor_one"]

    def update_author(self, author_id: str, author: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        obj = {k: v for k, v in author.items() if k not in ("id", "user_id")}
        mutation = f"""
      mutation UpdateAuthor($id: uuid!, $object: libaray_Autor_set_input!) {{
        update_libaray_Autor_by_pk(pk_columns: {{id: $id}}, _set: $object) {{{AUTHOR_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": author_id, "object": obj})
        return data.get("update_libaray_Autor_by_pk")

    def delete_author(self, author_id: str) -> Optional[Dict[str, Any]]:
        mutation = f"""
      mutation DeleteAuthor($id: uuid!) {{
        delete_libaray_Autor_by_pk(id: $id) {{{AUTHOR_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": author_id})
        return data.get("delete_libaray_Autor_by_pk")

    # ---- Books -------------------------------------------------------------

    def _chapter_counts(self, book_ids: List[str]) -> Dict[str, int]:
        where = {"book__id": {"_in": book_ids}}
        query = """
      query GetChapterCounts($where: libaray_Chapter_bool_exp) {
        libaray_Chapter(where: $where) {
          book__id
        }
      }
    """
        data = self.client.execute(query, {"where": where})
        counts: Dict[str, int] = {}
        for row in data.get("libaray_Chapter") or []:
            bid = row.get("book__id")
            if bid:
                counts[bid] = counts.get(bid, 0) + 1
        return counts

    def get_books(self, author_id: Optional[str] = None, book_ids: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        where: Dict[str, Any] = {}
        if author_id is not None:
            where["author_id"] = {"_eq": author_id}
        if book_ids is not None:
            if not book_ids:
                return []
            where["id"] = {"_in": list(book_ids)}
        query = f"""
      query GetBooks($where: libaray_Book_bool_exp) {{
        libaray_Book(where: $where) {{{BOOK_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"where": where})
        books = data.get("libaray_Book") or []
        if not books:
            return []
        counts = self._chapter_counts([b["id"] for b in books])
        return [_map_book(b, counts.get(b["id"], 0)) for b in books]

    def get_books_by_author(self, author_id: str) -> List[Dict[str, Any]]:
        return self.get_books(author_id=author_id)

    def get_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        query = f"""
      query GetBook($id: uuid!) {{
        libaray_Book_by_pk(id: $id) {{{BOOK_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"id": book_id})
        book = data.get("libaray_Book_by_pk")
        return _map_book(book) if book else None

    def create_book(self, book: Dict[str, Any]) -> Dict[str, Any]:
        obj = _book_variables(book)
        obj.setdefault("coverImage", "")
        mutation = f"""
      mutation InsertBook($object: libaray_Book_insert_input!) {{
        insert_libaray_Book_one(object: $object) {{{BOOK_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"object": obj})
        return _map_book(data["insert_libaray_Book_one"])

    def update_book(self, book_id: str, book: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        mutation = f"""
      mutation UpdateBook($id: uuid!, $object: libaray_Book_set_input!) {{
        update_libaray_Book_by_pk(pk_columns: {{id: $id}}, _set: $object) {{{BOOK_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": book_id, "object": _book_variables(book)})
        updated = data.get("update_libaray_Book_by_pk")
        return _map_book(updated) if updated else None

    def delete_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        # chapters/favorites of the book are left to upstream constraints
        mutation = f"""
      mutation DeleteBook($id: uuid!) {{
        delete_libaray_Book_by_pk(id: $id) {{{BOOK_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": book_id})
        deleted = data.get("delete_libaray_Book_by_pk")
        return _map_book(deleted) if deleted else None

    # ---- Categories --------------------------------------------------------

    def get_categories(self) -> List[Dict[str, Any]]:
        query = """
      query GetCategories {
        libaray_Category {
          id
          name
        }
      }
    """
        data = self.client.execute(query)
        return data.get("libaray_Category") or []

    def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        query = """
      query GetCategory($id: uuid!) {
        libaray_Category_by_pk(id: $id) {
          id
          name
        }
      }
    """
        data = self.client.execute(query, {"id": category_id})
        return data.get("libaray_Category_by_pk")

    def create_category(self, category: Dict[str, Any]) -> Dict[str, Any]:
        mutation = """
      mutation InsertCategory($name: String) {
        insert_libaray_Category_one(object: {name: $name}) {
          id
          name
        }
      }
    """
        data = self.client.execute(mutation, {"name": category.get("name")})
        return data["insert_libaray_Category_one"]

    def update_category(self, category_id: str, category: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        mutation = """
      mutation UpdateCategory($id: uuid!, $name: String!) {
        update_libaray_Category_by_pk(pk_columns: {id: $id}, _set: {name: $name}) {
          id
          name
        }
      }
    """
        data = self.client.execute(mutation, {"id": category_id, "name": category.get("name")})
        return data.get("update_libaray_Category_by_pk")

    def delete_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        mutation = """
      mutation DeleteCategory($id: uuid!) {
        delete_libaray_Category_by_pk(id: $id) {
          id
          name
        }
      }
    """
        data = self.client.execute(mutation, {"id": category_id})
        return data.get("delete_libaray_Category_by_pk")

    # ---- Chapters ----------------------------------------------------------

    def get_chapters(
        self,
        book_ids: Optional[List[str]] = None,
        page: int = 1,
        limit: int = 10,
        search: str = "",
    ) -> Dict[str, Any]:
        """One page of chapters plus the total match count.

        ``book_ids=None`` means unrestricted (admin); ``[]`` means the caller
        owns no books, and yields an empty page without querying upstream.
        Upstream errors are logged and reported as an empty page.
        """
        if book_ids is not None and len(book_ids) == 0:
            return {"chapters": [], "total": 0}

        page = page or 1
        limit = limit or 10
        where: Dict[str, Any] = {}
        if book_ids:
            where["book__id"] = {"_in": list(book_ids)}
        if search:
            where["title"] = {"_ilike": f"%{_escape_like(search)}%"}

        query = f"""
      query GetChapters($limit: Int, $offset: Int, $where: libaray_Chapter_bool_exp) {{
        libaray_Chapter(limit: $limit, offset: $offset, where: $where, order_by: {{chapter_num: asc}}) {{{CHAPTER_FIELDS}        }}
        libaray_Chapter_aggregate(where: $where) {{
          aggregate {{
            count
          }}
        }}
      }}
    """
        variables = {"limit": limit, "offset": (page - 1) * limit, "where": where}
        try:
            data = self.client.execute(query, variables)
        except GraphQLError:
            logger.exception("chapter listing failed (where=%s, page=%s, limit=%s)", where, page, limit)
            return {"chapters": [], "total": 0}

        agg = (data.get("libaray_Chapter_aggregate") or {}).get("aggregate") or {}
        rows = data.get("libaray_Chapter") or []
        return {"chapters": [_map_chapter(c) for c in rows], "total": int(agg.get("count") or 0)}

    def get_chapters_by_book(self, book_id: str) -> List[Dict[str, Any]]:
        query = f"""
      query GetChaptersByBook($bookId: uuid!) {{
        libaray_Chapter(where: {{book__id: {{_eq: $bookId}}}}, order_by: {{chapter_num: asc}}) {{{CHAPTER_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"bookId": book_id})
        return [_map_chapter(c) for c in data.get("libaray_Chapter") or []]

    def get_chapter(self, chapter_id: str) -> Optional[Dict[str, Any]]:
        query = f"""
      query GetChapter($id: uuid!) {{
        libaray_Chapter_by_pk(id: $id) {{{CHAPTER_FIELDS}        }}
      }}
    """
        data = self.client.execute(query, {"id": chapter_id})
        chapter = data.get("libaray_Chapter_by_pk")
        return _map_chapter(chapter) if chapter else None

    def create_chapter(self, chapter: Dict[str, Any]) -> Dict[str, Any]:
        obj = {
            "title": chapter["title"],
            "chapter_num": chapter["chapter_num"],
            "content": _chapter_content(chapter.get("content")),
            "book__id": chapter["book_id"],
            "Create_at": datetime.now(timezone.utc).isoformat(),
        }
        mutation = f"""
      mutation InsertChapter($object: libaray_Chapter_insert_input!) {{
        insert_libaray_Chapter_one(object: $object) {{{CHAPTER_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"object": obj})
        return _map_chapter(data["insert_libaray_Chapter_one"])

    def update_chapter(self, chapter_id: str, chapter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        obj: Dict[str, Any] = {}
        if "title" in chapter:
            obj["title"] = chapter["title"]
        if "chapter_num" in chapter:
            obj["chapter_num"] = chapter["chapter_num"]
        if "content" in chapter:
            obj["content"] = _chapter_content(chapter["content"])
        if "book_id" in chapter:
            obj["book__id"] = chapter["book_id"]
        mutation = f"""
      mutation UpdateChapter($id: uuid!, $object: libaray_Chapter_set_input!) {{
        update_libaray_Chapter_by_pk(pk_columns: {{id: $id}}, _set: $object) {{{CHAPTER_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": chapter_id, "object": obj})
        updated = data.get("update_libaray_Chapter_by_pk")
        return _map_chapter(updated) if updated else None

    def delete_chapter(self, chapter_id: str) -> Optional[Dict[str, Any]]:
        mutation = f"""
      mutation DeleteChapter($id: uuid!) {{
        delete_libaray_Chapter_by_pk(id: $id) {{{CHAPTER_FIELDS}        }}
      }}
    """
        data = self.client.execute(mutation, {"id": chapter_id})
        deleted = data.get("delete_libaray_Chapter_by_pk")
        return _map_chapter(deleted) if deleted else None

    # ---- Dashboard ---------------------------------------------------------

    def get_dashboard_stats(self) -> Dict[str, Any]:
        query = """
      query GetDashboardStats {
        users_count: usersAggregate { aggregate { count } }
        books_count: libaray_Book_aggregate { aggregate { count } }
        authors_count: libaray_Autor_aggregate { aggregate { count } }
        categories_count: libaray_Category_aggregate { aggregate { count } }
        chapters_count: libaray_Chapter_aggregate { aggregate { count } }
        reviews_count: libaray_Review_aggregate { aggregate { count } }
        favorites_count: libaray_Favorite_aggregate { aggregate { count } }
      }
    """
        data = self.client.execute(query)

        def _count(key: str) -> int:
            return int(((data.get(key) or {}).get("aggregate") or {}).get("count") or 0)

        return {
            "totalUsers": _count("users_count"),
            "totalBooks": _count("books_count"),
            "totalAuthors": _count("authors_count"),
            "totalCategories": _count("categories_count"),
            "totalChapters": _count("chapters_count"),
            "totalReviews": _count("reviews_count"),
            "totalFavorites": _count("favorites_count"),
            "averageRating": 0,
        }

    # ---- Favorites / Reviews / Feedback ------------------------------------

    def _user_summary(self, user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not user:
            return None
        return {
            "id": user["id"],
            "displayName": user.get("displayName"),
            "email": user.get("email"),
            "avatarUrl": user.get("avatarUrl"),
        }

    def get_favorites(self) -> List[Dict[str, Any]]:
        query = """
      query GetFavorites {
        libaray_Favorite {
          id
          user_id
          book_id
          added_at
        }
      }
    """
        data = self.client.execute(query)
        favorites = data.get("libaray_Favorite") or []
        if not favorites:
            return []

        books = {b["id"]: b for b in self.get_books(book_ids=_referenced_books(favorites))}
        users = {u["id"]: u for u in self.get_users()}
        authors = {a["id"]: a for a in self.get_authors()}
        categories = {c["id"]: c for c in self.get_categories()}

        out = []
        for fav in favorites:
            book = books.get(fav.get("book_id"))
            enriched_book = None
            if book:
                author = authors.get(book.get("author_id"))
                category = categories.get(book.get("category_id"))
                enriched_book = {
                    "id": book["id"],
                    "title": book.get("title"),
                    "cover_URL": book.get("cover_URL"),
                    "total_pages": book.get("total_pages"),
                    "category_name": category.get("name") if category else None,
                    "author_name": author.get("name") if author else None,
                }
            out.append({
                "id": fav["id"],
                "user": self._user_summary(users.get(fav.get("user_id"))),
                "book": enriched_book,
                "added_at": fav.get("added_at"),
            })
        return out

    def delete_favorite(self, favorite_id: str) -> Optional[Dict[str, Any]]:
        mutation = """
      mutation DeleteFavorite($id: uuid!) {
        delete_libaray_Favorite_by_pk(id: $id) {
          id
        }
      }
    """
        data = self.client.execute(mutation, {"id": favorite_id})
        return data.get("delete_libaray_Favorite_by_pk")

    def get_reviews(self) -> List[Dict[str, Any]]:
        query = """
      query GetReviews {
        libaray_Review {
          id
          user_id
          book_id
          rating
          q1_answer
          q2_answer
          q3_answer
        }
      }
    """
        data = self.client.execute(query)
        reviews = data.get("libaray_Review") or []
        if not reviews:
            return []

        books = {b["id"]: b for b in self.get_books(book_ids=_referenced_books(reviews))}
        users = {u["id"]: u for u in self.get_users()}
        authors = {a["id"]: a for a in self.get_authors()}

        out = []
        for review in reviews:
            book = books.get(review.get("book_id"))
            enriched_book = None
            if book:
                author = authors.get(book.get("author_id"))
                enriched_book = {
                    "id": book["id"],
                    "title": book.get("title"),
                    "cover_URL": book.get("cover_URL"),
                    "author_name": author.get("name") if author else None,
                }
            out.append({
                "id": review["id"],
                "rating": review.get("rating"),
                "q1_answer": review.get("q1_answer"),
                "q2_answer": review.get("q2_answer"),
                "q3_answer": review.get("q3_answer"),
                "user": self._user_summary(users.get(review.get("user_id"))),
                "book": enriched_book,
            })
        return out

    def create_feedback(self, feedback: Dict[str, Any]) -> Dict[str, Any]:
        mutation = """
      mutation InsertFeedback($message: String!, $rating: Int, $user_id: uuid) {
        insert_libaray_Feedback_one(object: {message: $message, rating: $rating, user_id: $user_id}) {
          id
          message
          rating
          created_at
        }
      }
    """
        data = self.client.execute(mutation, {
            "message": feedback["message"],
            "rating": feedback.get("rating"),
            "user_id": feedback.get("user_id"),
        })
        return data["insert_libaray_Feedback_one"]


def get_storage(client: HasuraClient = Depends(get_hasura)) -> GraphQLStorage:
    return GraphQLStorage(client)
