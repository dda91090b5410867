"""HTTP surface: routes, status codes and camelCase payloads."""
from decimal import Decimal

import main
from services.errors import PersistenceError


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json() == {"status": "Bookstore API", "version": "1.0"}


async def test_book_crud(client):
    r = await client.post("/api/books", json={
        "Title": "The Hobbit", "ISBN": "9780547928227", "Author": "J.R.R. Tolkien",
        "Category": "Fantasy", "Price": 12.5, "NumberInStock": 8,
    })
    assert r.status_code == 201
    book = r.json()
    assert book["title"] == "The Hobbit"
    assert book["numberInStock"] == 8
    assert book["price"] == 12.5

    r = await client.put(f"/api/books/{book['id']}", json={"price": 10, "numberInStock": 2})
    assert r.status_code == 200
    assert r.json()["price"] == 10
    assert r.json()["numberInStock"] == 2
    assert r.json()["title"] == "The Hobbit"

    r = await client.get(f"/api/books/{book['id']}")
    assert r.json()["numberInStock"] == 2

    r = await client.delete(f"/api/books/{book['id']}")
    assert r.json() == {"success": True}
    assert (await client.get(f"/api/books/{book['id']}")).status_code == 404


async def test_book_errors(client, add_book):
    await add_book(isbn="dup")
    r = await client.post("/api/books", json={"title": "X", "author": "Y", "isbn": "dup", "price": 1})
    assert r.status_code == 400
    assert "already exists" in r.json()["detail"]

    r = await client.post("/api/books", json={"title": "No price", "author": "Y", "isbn": "new"})
    assert r.status_code == 400

    assert (await client.get("/api/books/9999")).status_code == 404
    assert (await client.get("/api/books/abc")).status_code == 404
    assert (await client.get("/api/books/²")).status_code == 404
    assert (await client.put("/api/books/9999", json={"price": 1})).status_code == 404
    assert (await client.delete("/api/books/9999")).status_code == 404
    assert (await client.put("/api/books/1", json={"numberInStock": -1})).status_code == 422


async def test_list_and_search(client, add_book):
    await add_book(title="The Hobbit", author="J.R.R. Tolkien", isbn="1", category="Fantasy")
    await add_book(title="Dune", author="Frank Herbert", isbn="2", category="Science Fiction")

    r = await client.get("/api/books")
    assert [b["title"] for b in r.json()] == ["Dune", "The Hobbit"]

    r = await client.get("/api/books", params={"search": "fantasy"})
    assert [b["isbn"] for b in r.json()] == ["1"]

    r = await client.get("/api/books", params={"author": "herbert"})
    assert [b["isbn"] for b in r.json()] == ["2"]


async def test_import_from_body(client):
    r = await client.post("/api/books/import", json=[
        {"title": "Dune", "isbn": "1", "author": "Frank Herbert", "price": 10},
        {"Title": "The Hobbit", "ISBN": "2", "Author": "J.R.R. Tolkien", "Price": 12},
    ])
    assert r.status_code == 200
    assert r.json() == {"imported": 2}
    assert len((await client.get("/api/books")).json()) == 2


async def test_import_from_seed_file(client, tmp_path, monkeypatch):
    path = tmp_path / "books.json"
    path.write_text('[{"title": "Dune", "isbn": "1", "author": "F", "price": 10}]')
    monkeypatch.setattr(main.config, "BOOKS_JSON_PATH", str(path))
    r = await client.post("/api/books/import")
    assert r.json() == {"imported": 1}

    monkeypatch.setattr(main.config, "BOOKS_JSON_PATH", str(tmp_path / "missing.json"))
    r = await client.post("/api/books/import")
    assert r.status_code == 500


async def test_login(client):
    r = await client.post("/api/users/login", json={"name": "Alice"})
    assert r.status_code == 400

    r = await client.post("/api/users/login", json={"name": "Alice", "email": "alice@example.com"})
    assert r.status_code == 200
    user = r.json()["user"]
    assert r.json()["success"] is True
    assert user["totalSpent"] == 0

    r = await client.post("/api/users/login", json={"name": "Alice B", "email": "alice@example.com"})
    assert r.json()["user"]["id"] == user["id"]
    assert r.json()["user"]["name"] == "Alice B"

    r = await client.get(f"/api/users/{user['id']}")
    assert r.json()["name"] == "Alice B"
    assert (await client.get("/api/users/9999")).status_code == 404


async def test_purchase_flow(client, add_book):
    book = await add_book(price=Decimal("20.00"), number_in_stock=5)
    login = await client.post("/api/users/login", json={"name": "Alice", "email": "alice@example.com"})
    user_id = login.json()["user"]["id"]

    r = await client.post("/api/purchases", json={"bookId": str(book.id), "quantity": 2, "userId": str(user_id)})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["newStock"] == 3
    assert body["userTotalSpent"] == 40
    assert body["purchase"]["totalPrice"] == 40
    assert body["purchase"]["discountApplied"] == 0
    assert body["purchase"]["userId"] == user_id
    assert body["purchase"]["book"]["title"] == "Dune"

    assert (await client.get(f"/api/users/{user_id}")).json()["totalSpent"] == 40

    history = (await client.get(f"/api/purchases/user/{user_id}")).json()
    assert len(history) == 1
    assert history[0]["book"]["isbn"] == book.isbn


async def test_purchase_rejections(client, add_book, stock_of):
    book = await add_book(number_in_stock=1)

    r = await client.post("/api/purchases", json={"bookId": book.id, "quantity": "abc"})
    assert r.status_code == 400
    assert "quantity" in r.json()["detail"]

    r = await client.post("/api/purchases", json={"quantity": 1})
    assert r.status_code == 400

    r = await client.post("/api/purchases", json={"bookId": book.id, "quantity": 2})
    assert r.status_code == 400
    assert r.json()["detail"] == "Not enough stock"
    assert await stock_of(book.id) == 1


async def test_persistence_error_maps_to_500(client, monkeypatch):
    # Only the error-to-status mapping; the real failure path lives in test_purchase.py
    async def broken(*args, **kwargs):
        raise PersistenceError("Purchase could not be saved", stock_reserved=True)

    monkeypatch.setattr(main, "purchase_book", broken)
    r = await client.post("/api/purchases", json={"bookId": 1, "quantity": 1})
    assert r.status_code == 500
    assert "Stock was reserved" in r.json()["detail"]


async def test_cart_holds_ten_most_recent(client, add_book):
    book = await add_book(number_in_stock=20)
    first = await client.post("/api/purchases", json={"bookId": book.id, "quantity": 1, "email": "cart@example.com"})
    user_id = first.json()["purchase"]["userId"]
    for _ in range(10):
        await client.post("/api/purchases", json={"bookId": book.id, "quantity": 1, "userId": user_id})

    cart = (await client.get(f"/api/purchases/cart/{user_id}")).json()
    assert len(cart) == 10
    assert first.json()["purchase"]["id"] not in [p["id"] for p in cart]
    assert len((await client.get(f"/api/purchases/user/{user_id}")).json()) == 11
    assert (await client.get("/api/purchases/user/nobody")).json() == []
