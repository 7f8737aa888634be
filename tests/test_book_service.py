import pytest

from conftest import as_current_user
from library_api.book_service import BookService
from library_api.errors import ActiveLoansPreventDeletion, BookNotFound, BookUnavailable, DuplicateISBN, InvalidStock
from library_api.loan_service import LoanService
from library_api.user_service import UserService


@pytest.fixture
def books(db):
    return BookService(db)


def add(books, isbn, title="Dune", author="Frank Herbert", category=None, total_stock=2):
    return books.create({"title": title, "author": author, "isbn": isbn, "category": category, "total_stock": total_stock})


def test_create_starts_fully_available(books):
    book = add(books, "9780441013593", total_stock=4)
    assert book.total_stock == 4
    assert book.available_stock == 4


def test_create_duplicate_isbn(books):
    add(books, "9780441013593")
    with pytest.raises(DuplicateISBN):
        add(books, "9780441013593", title="Dune (reprint)")


def test_get_missing_book(books):
    with pytest.raises(BookNotFound):
        books.get_by_id(42)


def test_list_search_category_and_pagination(books):
    add(books, "9780441013593", category="scifi")
    add(books, "9780553293357", title="Foundation", author="Isaac Asimov", category="scifi")
    add(books, "9780261103573", title="The Hobbit", author="J. R. R. Tolkien", category="fantasy")

    assert books.get_all(search="asimov")["pagination"]["total"] == 1
    assert [b.title for b in books.get_all(search="DUNE")["data"]] == ["Dune"]
    assert books.get_all(category="scifi")["pagination"]["total"] == 2

    page = books.get_all(page=2, limit=2)
    assert [b.title for b in page["data"]] == ["The Hobbit"]
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}


def test_update_fields(books):
    book = add(books, "9780441013593")
    updated = books.update(book.id, {"title": "Dune Messiah", "published_year": 1969})
    assert updated.title == "Dune Messiah"
    assert updated.published_year == 1969


def test_update_to_taken_isbn(books):
    add(books, "9780441013593")
    other = add(books, "9780553293357", title="Foundation")
    with pytest.raises(DuplicateISBN):
        books.update(other.id, {"isbn": "9780441013593"})
    # keeping its own isbn is fine
    assert books.update(other.id, {"isbn": "9780553293357"}).isbn == "9780553293357"


def test_update_rejects_available_above_total(books):
    book = add(books, "9780441013593", total_stock=2)
    with pytest.raises(InvalidStock):
        books.update(book.id, {"available_stock": 3})
    with pytest.raises(InvalidStock):
        books.update(book.id, {"total_stock": 1})
    assert books.update(book.id, {"total_stock": 5, "available_stock": 5}).available_stock == 5


def test_update_missing_book(books):
    with pytest.raises(BookNotFound):
        books.update(9, {"title": "x"})


def test_reserve_and_release_stay_within_bounds(books, db):
    book = add(books, "9780441013593", total_stock=1)

    books.reserve_copy(book.id)
    db.commit()
    with pytest.raises(BookUnavailable):
        books.reserve_copy(book.id)

    books.release_copy(book.id)
    books.release_copy(book.id)
    db.commit()
    assert books.get_by_id(book.id).available_stock == 1


def test_delete_book_with_and_without_active_loans(books, db, settings, clock):
    admin = as_current_user(UserService(db).insert("root@example.com", "x", "Librarian", role="admin"))
    loans = LoanService(db, settings, clock=clock)
    idle_id = add(books, "9780553293357", title="Foundation").id
    lent_id = add(books, "9780441013593").id
    loan_id = loans.create(lent_id, admin).id

    assert books.delete(idle_id) is True
    with pytest.raises(BookNotFound):
        books.get_by_id(idle_id)

    with pytest.raises(ActiveLoansPreventDeletion):
        books.delete(lent_id)

    loans.return_book(loan_id, admin)
    assert books.delete(lent_id) is True
    with pytest.raises(BookNotFound):
        books.get_by_id(lent_id)
    # the loan record outlives the book
    assert loans.get_by_id(loan_id, admin).book is None


def test_delete_missing_book(books):
    with pytest.raises(BookNotFound):
        books.delete(77)


def test_set_cover(books):
    book = add(books, "9780441013593")
    assert books.set_cover(book.id, "/uploads/covers/1-1-dune.png").cover_image == "/uploads/covers/1-1-dune.png"


def test_total_stock_cannot_drop_below_active_loans(books, db, settings, clock):
    users = UserService(db)
    ann = as_current_user(users.insert("ann@example.com", "x", "Ann Reader"))
    bob = as_current_user(users.insert("bob@example.com", "x", "Bob Reader"))
    loans = LoanService(db, settings, clock=clock)
    book_id = add(books, "9780441013593", total_stock=3).id
    loans.create(book_id, ann)
    loans.create(book_id, bob)

    with pytest.raises(InvalidStock):
        books.update(book_id, {"total_stock": 1, "available_stock": 0})

    book = books.update(book_id, {"total_stock": 2, "available_stock": 0})
    assert book.total_stock == 2
    assert book.available_stock == 0
