"""GET /api/products и GET /api/products/{id}."""


async def test_list_products(client, products):
    res = await client.get("/api/products")
    assert res.status_code == 200
    body = res.json()
    assert [p["id"] for p in body] == [1, 2, 3]
    assert body[0]["name"] == "Keyboard"
    assert body[0]["price"] == "10.00"
    assert body[0]["stock"] == 5


async def test_list_products_empty_catalog(client):
    res = await client.get("/api/products")
    assert res.status_code == 200
    assert res.json() == []


async def test_get_product(client, products):
    res = await client.get(f"/api/products/{products['P2']}")
    assert res.status_code == 200
    assert res.json()["name"] == "Cable"


async def test_get_missing_product_is_404(client, products):
    res = await client.get("/api/products/999")
    assert res.status_code == 404
    assert res.json() == {"message": "Product not found"}


async def test_product_with_non_numeric_id_is_404(client, products):
    res = await client.get("/api/products/abc")
    assert res.status_code == 404
    assert res.json() == {"message": "Product not found"}
