import pytest

from ilibrary.services.storage import GraphQLStorage


@pytest.fixture
def storage(hasura):
    return GraphQLStorage(hasura)


@pytest.fixture
def two_books(hasura):
    a = hasura.add_book("Book A")
    b = hasura.add_book("Book B")
    for i in range(1, 9):
        hasura.add_chapter(a["id"], i)
    for i in range(1, 8):
        hasura.add_chapter(b["id"], i)
    return a, b


@pytest.mark.parametrize("page,limit,search", [(1, 10, ""), (3, 5, "x"), (1, 100, "Chapter")])
def test_empty_book_ids_short_circuits(storage, hasura, two_books, page, limit, search):
    result = storage.get_chapters([], page=page, limit=limit, search=search)
    assert result == {"chapters": [], "total": 0}
    assert hasura.calls == []


def test_none_book_ids_is_unrestricted(storage, hasura, two_books):
    result = storage.get_chapters(None, page=1, limit=100)
    assert result["total"] == 15
    assert len(result["chapters"]) == 15
    where = hasura.calls[-1]["variables"]["where"]
    assert "book__id" not in where


def test_second_page_returns_remainder(storage, two_books):
    result = storage.get_chapters(None, page=2, limit=10)
    assert result["total"] == 15
    assert len(result["chapters"]) == 5


def test_offset_and_ordering(storage, hasura, two_books):
    storage.get_chapters(None, page=3, limit=4)
    variables = hasura.calls[-1]["variables"]
    assert variables["offset"] == 8
    assert variables["limit"] == 4

    result = storage.get_chapters(None, page=1, limit=15)
    nums = [c["chapter_num"] for c in result["chapters"]]
    assert nums == sorted(nums)


def test_restricted_to_given_books(storage, two_books):
    a, _ = two_books
    result = storage.get_chapters([a["id"]], page=1, limit=50)
    assert result["total"] == 8
    assert {c["book_id"] for c in result["chapters"]} == {a["id"]}


def test_search_is_case_insensitive_substring(storage, hasura):
    book = hasura.add_book("Arabic")
    hasura.add_chapter(book["id"], 1, title="المقدمة")
    hasura.add_chapter(book["id"], 2, title="Introduction")
    hasura.add_chapter(book["id"], 3, title="الخاتمة")

    arabic = storage.get_chapters(None, search="قدم")
    assert [c["title"] for c in arabic["chapters"]] == ["المقدمة"]
    assert arabic["total"] == 1

    latin = storage.get_chapters(None, search="INTRO")
    assert [c["title"] for c in latin["chapters"]] == ["Introduction"]


def test_upstream_failure_becomes_empty_page(storage, hasura, two_books):
    hasura.fail_ops.add("GetChapters")
    assert storage.get_chapters(None) == {"chapters": [], "total": 0}


def test_chapter_fields_are_renamed(storage, hasura):
    book = hasura.add_book("B")
    hasura.add_chapter(book["id"], 1)
    chapter = storage.get_chapters(None)["chapters"][0]
    assert chapter["book_id"] == book["id"]
    assert "book__id" not in chapter


@pytest.mark.parametrize("term,expected", [("_", ["snake_case"]), ("%", ["100% done"]), ("\\", ["back\\slash"])])
def test_search_wildcards_match_literally(storage, hasura, term, expected):
    book = hasura.add_book("Symbols")
    for i, title in enumerate(["snake_case", "100% done", "back\\slash", "plain"], start=1):
        hasura.add_chapter(book["id"], i, title)

    result = storage.get_chapters(None, search=term)
    assert [c["title"] for c in result["chapters"]] == expected
    assert result["total"] == 1


def test_search_term_is_escaped_upstream(storage, hasura):
    storage.get_chapters(None, search="50%_off")
    assert hasura.calls[-1]["variables"]["where"]["title"] == {"_ilike": "%50\\%\\_off%"}
